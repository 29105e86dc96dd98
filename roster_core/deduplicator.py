"""
Deduplicator Module
Limpieza final de duplicados entre capturas:
nombres exactos, prefijos de ruido y scores idénticos
"""

import logging
from dataclasses import replace
from typing import Callable, List, Sequence, TypeVar, Union

from .noise_classifier import all_noise
from .records import EventRecord, MemberRecord

logger = logging.getLogger(__name__)

Record = Union[MemberRecord, EventRecord]
R = TypeVar("R", MemberRecord, EventRecord)


def _copy(record: R) -> R:
    return replace(record, source_origins=set(record.source_origins))


def _absorb_origins(keep: Record, remove: Record):
    keep.source_origins |= remove.source_origins


# --- Pasada 1: nombres idénticos (sin distinguir mayúsculas) ---

def _merge_member_exact(existing: MemberRecord, entry: MemberRecord):
    if entry.score > existing.score:
        existing.score = entry.score
        if entry.coords:
            existing.coords = entry.coords


def _merge_event_exact(existing: EventRecord, entry: EventRecord):
    if entry.power > existing.power:
        existing.power = entry.power
    if entry.event_points > existing.event_points:
        existing.event_points = entry.event_points


def deduplicate_exact(records: Sequence[R], merge: Callable[[R, R], None]) -> List[R]:
    """
    Fusiona registros con el mismo nombre en la primera aparición

    Args:
        records: Registros en orden de inserción
        merge: Función que copia los valores mayores al registro que se queda

    Returns:
        Nueva lista sin nombres repetidos
    """
    index = {}
    result: List[R] = []
    for entry in records:
        key = entry.name.strip().lower()
        if key in index:
            existing = result[index[key]]
            merge(existing, entry)
            _absorb_origins(existing, entry)
            logger.info(f"  ✕ Duplicado eliminado: \"{entry.name}\"")
        else:
            index[key] = len(result)
            result.append(_copy(entry))
    return result


# --- Pasada 2: sufijos (prefijo de ruido del OCR) ---

def _merge_member_scores(keep: MemberRecord, remove: MemberRecord):
    if remove.score > keep.score:
        keep.score = remove.score


def _merge_event_scores(keep: EventRecord, remove: EventRecord):
    if remove.power > keep.power:
        keep.power = remove.power
    if remove.event_points > keep.event_points:
        keep.event_points = remove.event_points


def deduplicate_suffix(records: List[R], merge: Callable[[R, R], None]) -> List[R]:
    """
    Fusiona pares donde un nombre es sufijo del otro

    Si el prefijo sobrante es todo ruido, se queda el nombre corto (limpio);
    si no, el prefijo es parte real del nombre y se queda el largo.
    """
    removed = set()
    for i in range(len(records)):
        if i in removed:
            continue
        for j in range(i + 1, len(records)):
            if j in removed or i in removed:
                continue
            lower_a = records[i].name.lower()
            lower_b = records[j].name.lower()
            if lower_a == lower_b:
                continue
            if lower_a.endswith(lower_b):
                longer_idx, shorter_idx = i, j
            elif lower_b.endswith(lower_a):
                longer_idx, shorter_idx = j, i
            else:
                continue

            longer, shorter = records[longer_idx], records[shorter_idx]
            prefix = longer.name[:len(longer.name) - len(shorter.name)].strip()
            if all_noise(prefix.split()):
                merge(shorter, longer)
                _absorb_origins(shorter, longer)
                removed.add(longer_idx)
                logger.info(f"  ✕ Prefijo de ruido eliminado: \"{longer.name}\" → \"{shorter.name}\"")
            else:
                merge(longer, shorter)
                _absorb_origins(longer, shorter)
                removed.add(shorter_idx)
                logger.info(f"  ✕ Nombre corto fusionado: \"{shorter.name}\" → \"{longer.name}\"")
    return [r for idx, r in enumerate(records) if idx not in removed]


# --- Pasada 3: scores idénticos ---

def _keep_longer(a: R, b: R) -> R:
    return a if len(a.name) >= len(b.name) else b


def _merge_adjacent(records: List[R], same: Callable[[R, R], bool]) -> List[R]:
    final: List[R] = []
    for entry in records:
        if final and same(final[-1], entry):
            prev = final[-1]
            keep = _keep_longer(prev, entry)
            drop = entry if keep is prev else prev
            _absorb_origins(keep, drop)
            final[-1] = keep
            logger.info(f"  ✕ Score duplicado: \"{drop.name}\" = \"{keep.name}\"")
        else:
            final.append(entry)
    return final


def _same_member_score(a: MemberRecord, b: MemberRecord) -> bool:
    return a.score > 0 and a.score == b.score


def _merge_same_score_and_kingdom(records: List[MemberRecord]) -> List[MemberRecord]:
    removed = set()
    for i, a in enumerate(records):
        if i in removed or a.score == 0 or a.kingdom is None:
            continue
        for j in range(i + 1, len(records)):
            if j in removed or i in removed:
                continue
            b = records[j]
            if a.score != b.score or b.kingdom != a.kingdom:
                continue
            keep_idx = i if len(a.name) >= len(b.name) else j
            drop_idx = j if keep_idx == i else i
            _absorb_origins(records[keep_idx], records[drop_idx])
            removed.add(drop_idx)
            logger.info(f"  ✕ Score duplicado (mismo K): \"{records[drop_idx].name}\" = \"{records[keep_idx].name}\"")
    return [r for idx, r in enumerate(records) if idx not in removed]


def deduplicate_members_by_score(records: List[MemberRecord]) -> List[MemberRecord]:
    """
    Registros con el mismo score positivo: vecinos en orden de inserción,
    o cualquier par que además comparta el valor K. Se repite hasta que no
    queden fusiones posibles.
    """
    while True:
        before = len(records)
        records = _merge_adjacent(records, _same_member_score)
        records = _merge_same_score_and_kingdom(records)
        if len(records) == before:
            return records


def _same_event_scores(a: EventRecord, b: EventRecord) -> bool:
    return a.power > 0 and a.power == b.power and a.event_points == b.event_points


def deduplicate_events_by_score(records: List[EventRecord]) -> List[EventRecord]:
    """Vecinos con la misma macht y los mismos punkte"""
    return _merge_adjacent(records, _same_event_scores)


class Deduplicator:
    """Ejecuta las tres pasadas en orden para cada modo"""

    def deduplicate_members(self, records: Sequence[MemberRecord]) -> List[MemberRecord]:
        """
        Limpieza final del modo miembros

        Args:
            records: Registros acumulados del lote

        Returns:
            Lista deduplicada (los registros de entrada no se modifican)
        """
        result = deduplicate_exact(records, _merge_member_exact)
        result = deduplicate_suffix(result, _merge_member_scores)
        result = deduplicate_members_by_score(result)
        if len(result) < len(records):
            logger.info(f"Dedup por nombre: {len(records) - len(result)} duplicado(s) eliminado(s).")
        return result

    def deduplicate_events(self, records: Sequence[EventRecord]) -> List[EventRecord]:
        """Limpieza final del modo evento"""
        result = deduplicate_exact(records, _merge_event_exact)
        result = deduplicate_suffix(result, _merge_event_scores)
        result = deduplicate_events_by_score(result)
        if len(result) < len(records):
            logger.info(f"Dedup de evento: {len(records) - len(result)} duplicado(s) eliminado(s).")
        return result
