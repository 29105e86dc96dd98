"""
Anchor Scanner Module
Localiza las anclas estructurales en el texto OCR:
coordenadas (K:98 X:707 Y:919), clan tags ([K98]) y cabeceras de rango
"""

import re
from typing import List, Optional

from .records import Anchor, AnchorKind, RankMarker

# Orden fijo: una entrada por rango conocido del juego
RANK_PATTERNS = [
    (re.compile(r"ANF[ÜU]HRER", re.IGNORECASE), "Anführer"),
    (re.compile(r"VORGESETZT", re.IGNORECASE), "Vorgesetzter"),
    (re.compile(r"OFFIZIER", re.IGNORECASE), "Offizier"),
    (re.compile(r"MITGLIED", re.IGNORECASE), "Mitglied"),
    (re.compile(r"REKRUT", re.IGNORECASE), "Rekrut"),
    (re.compile(r"VETERAN", re.IGNORECASE), "Veteran"),
    (re.compile(r"HAUPTMANN", re.IGNORECASE), "Hauptmann"),
    (re.compile(r"GENERAL", re.IGNORECASE), "General"),
]

# Tolera K→1/l/|, Y→V y separadores : ; . ı o ausentes
COORD_REGEX = re.compile(
    r"\(?[K1l|]\s*[:;.ı]?\s*(\d+)\s+X\s*[:;.ı]?\s*(\d+)\s+[YV]\s*[:;.ı]?\s*(\d+)\)?",
    re.IGNORECASE,
)

CLAN_TAG_REGEX = re.compile(
    r"[\[(\{<]?\s*[K1l|]\s*[:;.]?\s*(\d{1,3})\s*[\])\}>]",
    re.IGNORECASE,
)


def find_coordinates(text: str) -> List[Anchor]:
    """
    Encuentra todas las coordenadas del texto

    Args:
        text: Texto OCR completo

    Returns:
        Anclas de tipo COORDINATE en orden de aparición
    """
    anchors = []
    # finditer crea un cursor nuevo en cada llamada
    for match in COORD_REGEX.finditer(text):
        k, x, y = (int(g) for g in match.groups())
        anchors.append(Anchor(
            start=match.start(),
            end=match.end(),
            kind=AnchorKind.COORDINATE,
            payload=(k, x, y),
        ))
    return anchors


def find_clan_tags(text: str) -> List[Anchor]:
    """Encuentra los clan tags del modo evento"""
    return [
        Anchor(start=m.start(), end=m.end(), kind=AnchorKind.CLAN_TAG, payload=int(m.group(1)))
        for m in CLAN_TAG_REGEX.finditer(text)
    ]


def find_rank_markers(text: str) -> List[RankMarker]:
    """
    Encuentra las cabeceras de rango, ordenadas por posición

    Args:
        text: Texto OCR completo

    Returns:
        Lista de marcadores de rango
    """
    markers = []
    for pattern, normalized in RANK_PATTERNS:
        for match in pattern.finditer(text):
            markers.append(RankMarker(index=match.start(), rank=normalized))
    markers.sort(key=lambda m: m.index)
    return markers


def rank_before(markers: List[RankMarker], index: int) -> Optional[str]:
    """Rango del marcador más cercano antes de index, o None"""
    rank = None
    for marker in markers:
        if marker.index < index:
            rank = marker.rank
        else:
            break
    return rank


def normalize_coordinates(raw: str) -> Optional[str]:
    """
    Normaliza una cadena de coordenadas leída por OCR

    Args:
        raw: Por ejemplo '(l;98 X.707 V919)'

    Returns:
        'K:98 X:707 Y:919' o None si no hay coordenadas
    """
    anchors = find_coordinates(raw)
    return anchors[0].coords if anchors else None
