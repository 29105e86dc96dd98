"""
Name Corrector Module
Corrección de nombres leídos por OCR contra la lista de jugadores conocidos:
tabla de correcciones, mayúsculas canónicas y coincidencia aproximada
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rapidfuzz.distance import Levenshtein

logger = logging.getLogger(__name__)


@dataclass
class NameContext:
    """Jugadores conocidos y correcciones fijas"""
    corrections: Dict[str, str] = field(default_factory=dict)
    known_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._lower_known = {n.lower(): n for n in self.known_names}
        self._lower_corrections = {k.lower(): v for k, v in self.corrections.items()}

    @property
    def is_empty(self) -> bool:
        return not self.corrections and not self.known_names


@dataclass
class CorrectionResult:
    """Resultado de la corrección de un nombre"""
    name: str
    corrected: bool = False
    method: Optional[str] = None


def fuzzy_match_name(name: str, known_names: List[str]) -> Optional[str]:
    """
    Busca el nombre conocido más cercano

    Args:
        name: Nombre leído por OCR
        known_names: Nombres canónicos

    Returns:
        El nombre conocido más cercano, o None si ninguno está lo bastante cerca
    """
    name_lower = name.lower()
    best_match = None
    best_dist = None

    for known in known_names:
        known_lower = known.lower()
        if name_lower == known_lower:
            return known
        # Prefijo de ruido del OCR: "AB Foo Fighter" → "Foo Fighter"
        if name_lower.endswith(known_lower) or known_lower.endswith(name_lower):
            return known

        threshold = 2 if max(len(name_lower), len(known_lower)) >= 5 else 1
        dist = Levenshtein.distance(name_lower, known_lower, score_cutoff=threshold)
        if dist <= threshold and (best_dist is None or dist < best_dist):
            best_dist = dist
            best_match = known

    return best_match


def apply_known_corrections(name: str, ctx: Optional[NameContext]) -> CorrectionResult:
    """
    Aplica la corrección de nombre en orden de prioridad

    Prioridad:
        1. Tabla de correcciones (sin distinguir mayúsculas)
        2. Nombre conocido exacto: normaliza mayúsculas
        3. Coincidencia aproximada (sufijo o distancia de Levenshtein)

    Args:
        name: Nombre leído por OCR
        ctx: Contexto con correcciones y nombres conocidos

    Returns:
        CorrectionResult con el nombre final y el método aplicado
    """
    if ctx is None or not name:
        return CorrectionResult(name)

    hit = ctx.corrections.get(name) or ctx._lower_corrections.get(name.lower())
    if hit:
        canonical = ctx._lower_known.get(hit.lower(), hit)
        return CorrectionResult(canonical, True, "correction")

    canonical = ctx._lower_known.get(name.lower())
    if canonical is not None:
        if canonical != name:
            return CorrectionResult(canonical, True, "canonical")
        return CorrectionResult(name)

    fuzzy = fuzzy_match_name(name, ctx.known_names)
    if fuzzy:
        return CorrectionResult(fuzzy, True, "fuzzy")

    return CorrectionResult(name)
