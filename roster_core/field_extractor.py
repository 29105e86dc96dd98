"""
Field Extractor Module
Extrae los campos de un registro a partir de un ancla:
nombre (lectura hacia atrás) y score / macht / punkte (lectura hacia adelante)
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .noise_classifier import is_noise_token
from .records import Anchor, RankMarker

# Scores: al menos 4 dígitos con separador de miles. Solo coma, punto y
# espacio duro; un espacio normal absorbería dígitos sueltos ("9 185,896,605").
SCORE_REGEX = re.compile(r"(?<!\d)(\d{1,3}(?:[,.\u00A0]\d{3})+)(?!\d)")

# Respaldo: falta el primer separador ("1922,130" en lugar de "1.922,130")
SCORE_FALLBACK_REGEX = re.compile(r"(?<!\d)(\d{4,7}[,.\u00A0]\d{3})(?!\d)")

PUNKTE_REGEX = re.compile(r"Punkte|Punkt[ae]?", re.IGNORECASE)
ZERO_PUNKTE_REGEX = re.compile(r"(?<!\d)\b0\s+Punkte", re.IGNORECASE)

# Distancia máxima (caracteres) entre un número y "Punkte" en la misma línea
PUNKTE_PROXIMITY = 20

_DOUBLE_SEPARATOR = re.compile(r"([,.])\s*([,.])")
_NAME_JUNK = re.compile(r"[^0-9A-Za-zÀ-ÖØ-öø-ɏ\s_.\-]")
_WHITESPACE = re.compile(r"\s+")
_LEADING_TOKEN = re.compile(r"^(\S+)\s+")
_TRAILING_TOKEN = re.compile(r"\s+(\S+)$")
_TRAILING_SINGLE_CHAR = re.compile(r"\s+[a-km-zäöüı]$")
_TRAILING_LEVEL_BADGE = re.compile(r"\s+\d{1,2}$")
_ROMAN = re.compile(r"^[IVX]+$")
_DIGITS = re.compile(r"^\d+$")
_LONG_NUMBER = re.compile(r"^\d{3,}$")

# Correcciones de números romanos, solo al final del nombre
ROMAN_NUMERAL_FIXES = [
    (re.compile(r" Il$"), " II"),
    (re.compile(r" lI$"), " II"),
    (re.compile(r" ll$"), " II"),
    (re.compile(r" IIl$"), " III"),
    (re.compile(r" l$"), " I"),
]


@dataclass
class ScoreMatch:
    """Número con separadores encontrado en un segmento"""
    value: int
    start: int
    end: int


def apply_roman_numeral_fixes(name: str) -> str:
    for pattern, replacement in ROMAN_NUMERAL_FIXES:
        name = pattern.sub(replacement, name)
    return name


def _clean_raw_name(raw: str) -> str:
    raw = raw.replace("|", "I")
    raw = _NAME_JUNK.sub(" ", raw)
    return _WHITESPACE.sub(" ", raw).strip()


def _strip_leading_noise(raw: str, keep_long_numbers: bool = False) -> Tuple[str, str]:
    """
    Quita tokens de ruido al inicio, uno por uno

    Returns:
        (resultado, mejor candidato intermedio con >= 2 caracteres)
    """
    best = raw
    while raw:
        match = _LEADING_TOKEN.match(raw)
        if not match:
            break
        token = match.group(1)
        if keep_long_numbers and _LONG_NUMBER.match(token):
            break
        if not is_noise_token(token):
            break
        raw = raw[match.end():]
        if len(raw) >= 2:
            best = raw
    return raw, best


def _fallback(name: str, best: str, saved: str) -> str:
    if len(name) < 2:
        name = best
    if len(name) < 2:
        name = saved
    return name


def extract_member_name(text: str, anchor_start: int) -> str:
    """
    Extrae el nombre leyendo hacia atrás desde el ancla de coordenadas

    Args:
        text: Texto OCR completo
        anchor_start: Posición inicial de la coordenada

    Returns:
        Nombre del jugador (nunca vacío si la línea tenía texto)
    """
    line_start = text.rfind("\n", 0, anchor_start) + 1
    raw = _clean_raw_name(text[line_start:anchor_start])
    saved = raw

    raw, best = _strip_leading_noise(raw)

    # Un carácter suelto al final es ruido, salvo "l" (romano I)
    raw = _TRAILING_SINGLE_CHAR.sub("", raw).strip()
    raw = apply_roman_numeral_fixes(raw)
    return _fallback(raw, best, saved)


def extract_event_name(segment: str) -> str:
    """
    Extrae el nombre del segmento que sigue a un clan tag

    Args:
        segment: Texto desde el final del clan tag hasta el siguiente

    Returns:
        Nombre del jugador
    """
    first_line = segment.split("\n", 1)[0]
    raw = _clean_raw_name(first_line)
    saved = raw

    # Números de 3+ dígitos al inicio pueden ser el nombre
    raw, best = _strip_leading_noise(raw, keep_long_numbers=True)

    # Insignia de nivel (1-2 dígitos) al final
    raw = _TRAILING_LEVEL_BADGE.sub("", raw).strip()

    while raw:
        match = _TRAILING_TOKEN.search(raw)
        if not match:
            break
        trailing = match.group(1)
        if _ROMAN.match(trailing) or _DIGITS.match(trailing) or trailing == "l":
            break
        if not is_noise_token(trailing):
            break
        raw = raw[:match.start()].strip()

    raw = apply_roman_numeral_fixes(raw)
    return _fallback(raw, best, saved)


def collapse_separators(segment: str) -> str:
    """'1,,234' / '1, .234' → '1,234'"""
    return _DOUBLE_SEPARATOR.sub(r"\1", segment)


def _to_int(raw: str) -> int:
    return int(re.sub(r"[,.\u00A0\s]", "", raw))


def find_all_scores(segment: str) -> List[ScoreMatch]:
    """
    Todos los números con formato de score del segmento.
    Usa el patrón de respaldo solo si el principal no encuentra nada.
    """
    found = [ScoreMatch(_to_int(m.group(1)), m.start(), m.end()) for m in SCORE_REGEX.finditer(segment)]
    if not found:
        found = [ScoreMatch(_to_int(m.group(1)), m.start(), m.end())
                 for m in SCORE_FALLBACK_REGEX.finditer(segment)]
    return found


def extract_score(text: str, from_index: int, to_index: int, min_score: int) -> int:
    """
    Primer score válido del segmento (el más cercano al ancla, no el mayor)

    Args:
        text: Texto OCR completo
        from_index: Inicio del segmento (fin del ancla)
        to_index: Fin del segmento (siguiente límite)
        min_score: Valor mínimo aceptado

    Returns:
        Score encontrado o 0
    """
    segment = collapse_separators(text[from_index:to_index])
    for pattern in (SCORE_REGEX, SCORE_FALLBACK_REGEX):
        for match in pattern.finditer(segment):
            value = _to_int(match.group(1))
            if value >= min_score:
                return value
    return 0


def find_next_boundary(text: str, after_index: int, anchors: List[Anchor],
                       current: int, rank_markers: List[RankMarker]) -> int:
    """
    Límite del escaneo hacia adelante: la siguiente coordenada o la siguiente
    cabecera de rango, lo que aparezca primero
    """
    boundary = len(text)
    if current + 1 < len(anchors):
        boundary = min(boundary, anchors[current + 1].start)
    for marker in rank_markers:
        if after_index < marker.index < boundary:
            boundary = marker.index
            break
    return boundary


def _line_of(segment: str, index: int) -> int:
    return segment.count("\n", 0, index)


def extract_event_scores(segment: str) -> Tuple[int, int]:
    """
    Separa macht y punkte dentro del segmento de un jugador

    Args:
        segment: Texto del jugador (tras el clan tag)

    Returns:
        (power, event_points)
    """
    cleaned = collapse_separators(segment)

    # "0 Punkte": sin puntos, la macht es el mayor número
    if ZERO_PUNKTE_REGEX.search(cleaned):
        power = max((m.value for m in find_all_scores(cleaned)), default=0)
        return power, 0

    scores = find_all_scores(cleaned)
    if not scores:
        return 0, 0

    first_line_end = len(cleaned.split("\n", 1)[0])
    punkte = PUNKTE_REGEX.search(cleaned)
    punkte_index = punkte.start() if punkte else -1
    return assign_event_scores(cleaned, scores, punkte_index, first_line_end)


def assign_event_scores(segment: str, scores: List[ScoreMatch], punkte_index: int,
                        first_line_end: int) -> Tuple[int, int]:
    power = 0
    event_points = 0

    if punkte_index >= 0:
        if len(scores) == 1:
            score = scores[0]
            same_line = _line_of(segment, score.start) == _line_of(segment, punkte_index)
            near = abs(score.end - punkte_index) <= PUNKTE_PROXIMITY
            both_first_line = score.start < first_line_end and punkte_index < first_line_end
            if (same_line and near) or both_first_line:
                event_points = score.value
            else:
                power = score.value
            return power, event_points

        # Varios números: el más cercano a "Punkte", priorizando la primera línea
        def distance(score: ScoreMatch) -> int:
            dist = abs(score.end - punkte_index)
            return dist if score.start < first_line_end else dist + 1000

        best = min(range(len(scores)), key=lambda i: distance(scores[i]))
        event_points = scores[best].value
        power = max((s.value for i, s in enumerate(scores) if i != best), default=0)
        return power, event_points

    first_line = [s.value for s in scores if s.start < first_line_end]
    rest = [s.value for s in scores if s.start >= first_line_end]
    if first_line and rest:
        return max(rest), max(first_line)

    distinct = sorted(set(s.value for s in scores), reverse=True)
    if len(distinct) >= 2:
        return distinct[0], distinct[1]
    return distinct[0], 0
