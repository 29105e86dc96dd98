"""
Overlap Detector Module
Detecta huecos entre capturas consecutivas: pares de capturas que no
comparten ningún registro (posibles filas saltadas al hacer scroll)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Set, Union

from .records import EventRecord, MemberRecord

logger = logging.getLogger(__name__)


@dataclass
class OverlapGap:
    """Par de capturas consecutivas sin registros en común"""
    before: str
    after: str
    index: int


@dataclass
class OverlapReport:
    """Resultado del análisis de solapamiento"""
    gaps: List[OverlapGap] = field(default_factory=list)
    overlap_counts: List[int] = field(default_factory=list)

    @property
    def has_gaps(self) -> bool:
        return bool(self.gaps)


def _record_key(record: Union[MemberRecord, EventRecord]) -> str:
    coords = getattr(record, "coords", None)
    return coords or record.name.lower()


def detect_overlap_gaps(records: Sequence[Union[MemberRecord, EventRecord]],
                        sources: Sequence[str]) -> OverlapReport:
    """
    Analiza qué registros aparecen en cada captura

    Args:
        records: Registros deduplicados (con source_origins)
        sources: Identificadores de las capturas, en orden

    Returns:
        OverlapReport con los huecos y el número de registros compartidos por par
    """
    if len(sources) < 2:
        return OverlapReport()

    names = [Path(s).name for s in sources]
    per_source: Dict[str, Set[str]] = {name: set() for name in names}

    for record in records:
        key = _record_key(record)
        for origin in record.source_origins:
            seen = per_source.get(Path(origin).name)
            if seen is not None:
                seen.add(key)

    report = OverlapReport()
    for i in range(len(names) - 1):
        keys_a = per_source[names[i]]
        keys_b = per_source[names[i + 1]]
        shared = len(keys_a & keys_b)
        report.overlap_counts.append(shared)
        if shared == 0 and keys_a and keys_b:
            report.gaps.append(OverlapGap(before=names[i], after=names[i + 1], index=i))

    _log_summary(report, names)
    return report


def _log_summary(report: OverlapReport, names: List[str]):
    if not report.gaps:
        logger.info(
            f"Control de solapamiento: las {len(names)} capturas comparten registros "
            f"(mín. {min(report.overlap_counts)} por par)."
        )
        return
    logger.warning(
        f"⚠️ {len(report.gaps)} hueco(s) entre capturas; pueden faltar registros. "
        f"Reducir la distancia de scroll."
    )
    for gap in report.gaps:
        logger.warning(f"  Hueco: {gap.before} ↔ {gap.after}")
