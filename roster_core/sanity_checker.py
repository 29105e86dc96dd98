"""
Sanity Checker Module
Anota (nunca elimina) los registros sospechosos para revisión manual:
coordenadas inválidas, reino distinto, coordenadas repetidas,
score cero y scores atípicos respecto a los vecinos
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional, Sequence

from .records import EventRecord, MemberRecord, WarningKind, format_thousands

logger = logging.getLogger(__name__)

COORDS_REGEX = re.compile(r"^K:(\d{1,3})\s+X:\d+\s+Y:\d+$")

DOMINANT_K_SHARE = 0.8
DEFAULT_OUTLIER_THRESHOLD = 0.2
MIN_OUTLIER_THRESHOLD = 0.01
MAX_OUTLIER_THRESHOLD = 1.0
MIN_OUTLIER_SAMPLE = 3


def find_dominant_kingdom(members: Sequence[MemberRecord]) -> Optional[int]:
    """
    Valor K compartido por al menos el 80% de los registros con K legible

    Returns:
        El K dominante o None si no hay mayoría suficiente
    """
    counts = Counter(m.kingdom for m in members if m.kingdom is not None)
    if not counts:
        return None
    best_k, best_count = counts.most_common(1)[0]
    total = sum(counts.values())
    return best_k if best_count / total >= DOMINANT_K_SHARE else None


def validate_outlier_threshold(value) -> float:
    """
    Umbral de scores atípicos dentro de [0.01, 1]

    Returns:
        El valor como float, o el umbral por defecto si no es válido
    """
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        threshold = None
    if threshold is None or not MIN_OUTLIER_THRESHOLD <= threshold <= MAX_OUTLIER_THRESHOLD:
        logger.warning(
            f"Umbral de atípicos no válido ({value!r}); se usa {DEFAULT_OUTLIER_THRESHOLD}"
        )
        return DEFAULT_OUTLIER_THRESHOLD
    return threshold


class SanityChecker:
    """Comprobaciones posteriores al OCR, en orden fijo de prioridad"""

    def __init__(self, score_outlier_threshold: float = DEFAULT_OUTLIER_THRESHOLD):
        self.score_outlier_threshold = validate_outlier_threshold(score_outlier_threshold)

    def check_members(self, members: List[MemberRecord]) -> List[MemberRecord]:
        """
        Ejecuta las cinco comprobaciones; solo la primera advertencia queda

        Args:
            members: Registros finales del lote (se anotan en sitio)

        Returns:
            La misma lista, con advertencias
        """
        if not members:
            return members

        count = 0
        count += self._check_coords_format(members)
        count += self._check_kingdom(members)
        count += self._check_duplicate_coords(members)
        count += self._check_zero_score(members)
        count += self._check_score_outliers(members)

        if count:
            logger.warning(f"{count} entrada(s) sospechosa(s) encontradas; revisar en la validación.")
        return members

    def _check_coords_format(self, members: List[MemberRecord]) -> int:
        count = 0
        for entry in members:
            if entry.coords and COORDS_REGEX.match(entry.coords):
                continue
            shown = entry.coords or "(vacío)"
            if entry.flag(WarningKind.INVALID_COORDS, f"Coordenadas inválidas: \"{shown}\""):
                logger.warning(f"⚠️ {entry.name}: coordenadas inválidas \"{shown}\"")
                count += 1
        return count

    def _check_kingdom(self, members: List[MemberRecord]) -> int:
        dominant = find_dominant_kingdom(members)
        if dominant is None:
            return 0
        count = 0
        for entry in members:
            if entry.warning:
                continue
            k = entry.kingdom
            if k is not None and k != dominant:
                entry.flag(WarningKind.WRONG_KINGDOM, f"K:{k} difiere (esperado K:{dominant})")
                logger.warning(f"⚠️ {entry.name}: K:{k} difiere de K:{dominant}")
                count += 1
        return count

    def _check_duplicate_coords(self, members: List[MemberRecord]) -> int:
        seen: Dict[str, MemberRecord] = {}
        count = 0
        for entry in members:
            if not entry.coords or entry.warning:
                continue
            key = entry.coords.strip()
            existing = seen.get(key)
            if existing is None:
                seen[key] = entry
                continue
            # Se marca el de menor score (más probable que sea el erróneo)
            loser = entry if entry.score < existing.score else existing
            winner = existing if loser is entry else entry
            if loser.flag(WarningKind.DUPLICATE_COORDS, f"Mismas coordenadas que \"{winner.name}\""):
                logger.warning(f"⚠️ {loser.name}: mismas coordenadas que \"{winner.name}\" ({key})")
                count += 1
        return count

    def _check_zero_score(self, members: List[MemberRecord]) -> int:
        count = 0
        for entry in members:
            if not entry.warning and entry.score == 0:
                entry.flag(WarningKind.SCORE_ZERO, "El score es 0")
                logger.warning(f"⚠️ {entry.name}: el score es 0")
                count += 1
        return count

    def _check_score_outliers(self, members: List[MemberRecord]) -> int:
        threshold = self.score_outlier_threshold
        valid = [m for m in members if not m.warning and m.score > 0]
        if len(valid) < MIN_OUTLIER_SAMPLE:
            return 0

        # Los vecinos se toman de la lista sin marcar, antes de anotar nada
        neighbour_avgs = []
        for pos in range(len(valid)):
            neighbours = []
            if pos > 0:
                neighbours.append(valid[pos - 1].score)
            if pos < len(valid) - 1:
                neighbours.append(valid[pos + 1].score)
            neighbour_avgs.append(sum(neighbours) / len(neighbours))

        count = 0
        for entry, avg in zip(valid, neighbour_avgs):
            ratio = entry.score / avg
            if ratio < threshold:
                pct = round((1 - ratio) * 100)
                entry.flag(WarningKind.SCORE_OUTLIER, f"Score {pct}% menor que los vecinos ({format_thousands(avg)})")
            elif ratio > 1 / threshold:
                pct = round((ratio - 1) * 100)
                entry.flag(WarningKind.SCORE_OUTLIER, f"Score {pct}% mayor que los vecinos ({format_thousands(avg)})")
            else:
                continue
            logger.warning(f"⚠️ {entry.name}: score {format_thousands(entry.score)} atípico frente a {format_thousands(avg)}")
            count += 1
        return count

    def check_events(self, entries: List[EventRecord]) -> List[EventRecord]:
        """
        Comprobaciones del modo evento: macht igual a punkte, o macht ausente

        Args:
            entries: Registros finales del lote

        Returns:
            La misma lista, con advertencias
        """
        count = 0
        for entry in entries:
            if entry.power > 0 and entry.power == entry.event_points:
                if entry.flag(WarningKind.POWER_EQUALS_EVENTPOINTS,
                              f"Macht = Event-Punkte ({format_thousands(entry.power)}); probablemente se leyó un solo valor"):
                    logger.warning(f"⚠️ Sospechoso: \"{entry.name}\" tiene Macht = Event-Punkte ({format_thousands(entry.power)})")
                    count += 1
            elif entry.power == 0 and entry.event_points > 0:
                if entry.flag(WarningKind.POWER_MISSING,
                              f"Macht = 0 pero Event-Punkte = {format_thousands(entry.event_points)}"):
                    logger.warning(f"⚠️ Sospechoso: \"{entry.name}\" sin Macht pero con {format_thousands(entry.event_points)} puntos")
                    count += 1
        if count:
            logger.warning(f"{count} entrada(s) de evento sospechosa(s); revisar manualmente.")
        return entries
