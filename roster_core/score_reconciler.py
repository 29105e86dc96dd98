"""
Score Reconciler Module
Resuelve desacuerdos entre las dos pasadas de OCR (principal y verificación
en escala de grises) para un mismo campo numérico

Errores típicos del OCR:
    1) Se pierden dígitos iniciales: 5,822,073 → 822,073 (el menor está mal)
    2) Primer dígito mal leído: 8,939,291 → 3,939,291 (el menor está mal)
    3) Separador leído como dígito: ~10x mayor (el mayor está mal)
"""

from typing import Callable, List, Optional, Tuple

RATIO_MIN = 5
RATIO_MAX = 15


def _lost_leading_digits(larger: int, smaller: int) -> Optional[int]:
    return larger if str(larger).endswith(str(smaller)) else None


def _first_digit_misread(larger: int, smaller: int) -> Optional[int]:
    str_larger, str_smaller = str(larger), str(smaller)
    if len(str_larger) != len(str_smaller):
        return None
    tail = max(3, len(str_larger) - 2)
    return larger if str_larger[-tail:] == str_smaller[-tail:] else None


def _separator_inflation(larger: int, smaller: int) -> Optional[int]:
    ratio = larger / smaller
    return smaller if RATIO_MIN <= ratio <= RATIO_MAX else None


# Reglas en orden de precedencia: (nombre, regla(mayor, menor) -> valor o None)
RECONCILE_RULES: List[Tuple[str, Callable[[int, int], Optional[int]]]] = [
    ("lost_leading_digits", _lost_leading_digits),
    ("first_digit_misread", _first_digit_misread),
    ("separator_inflation", _separator_inflation),
]


def explain_score_conflict(score_a: int, score_b: int) -> Tuple[int, str]:
    """
    Resuelve el conflicto e indica qué regla decidió

    Args:
        score_a: Lectura de la pasada principal
        score_b: Lectura de la pasada de verificación

    Returns:
        (valor resuelto, nombre de la regla)
    """
    if score_a == 0 and score_b > 0:
        return score_b, "primary_missing"
    if score_b == 0 and score_a > 0:
        return score_a, "verify_missing"
    if score_a == score_b:
        return score_a, "equal"

    larger, smaller = max(score_a, score_b), min(score_a, score_b)
    for name, rule in RECONCILE_RULES:
        resolved = rule(larger, smaller)
        if resolved is not None:
            return resolved, name

    # Ninguna heurística segura: se mantiene la lectura principal
    return score_a, "default_primary"


def resolve_score_conflict(score_a: int, score_b: int) -> int:
    """
    Valor final para un campo leído dos veces

    Args:
        score_a: Lectura de la pasada principal
        score_b: Lectura de la pasada de verificación

    Returns:
        Valor resuelto
    """
    return explain_score_conflict(score_a, score_b)[0]
