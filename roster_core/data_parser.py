"""
Data Parser Module
Parser de texto OCR de las pantallas de miembros y de evento.
Convierte un bloque de texto en registros usando las anclas,
y genera los mapas de verificación para la segunda pasada
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .anchor_scanner import find_clan_tags, find_coordinates, find_rank_markers, rank_before
from .config_manager import ExtractionSettings
from .field_extractor import (
    extract_event_name,
    extract_event_scores,
    extract_member_name,
    extract_score,
    find_next_boundary,
)
from .records import EventRecord, MemberRecord, normalize_name

logger = logging.getLogger(__name__)


@dataclass
class MemberParseResult:
    """Resultado del parseo de una captura de miembros"""
    entries: List[MemberRecord] = field(default_factory=list)
    last_rank: Optional[str] = None


@dataclass
class EventParseResult:
    """Resultado del parseo de una captura de evento"""
    entries: List[EventRecord] = field(default_factory=list)


class DataParser:
    """Parser especializado para las listas del juego"""

    def __init__(self, settings: Optional[ExtractionSettings] = None):
        """
        Inicializa el parser

        Args:
            settings: Umbrales de extracción (min_score, etc.)
        """
        self.settings = settings or ExtractionSettings()

    def parse_member_text(self, text: str) -> MemberParseResult:
        """
        Parsea el texto de una captura de la lista de miembros

        Args:
            text: Texto OCR de la pasada principal

        Returns:
            Registros encontrados y el último rango visto en el texto.
            Los registros sin cabecera previa quedan con rank=None; el
            scraper les asigna el último rango conocido del lote.
        """
        if not text:
            return MemberParseResult()

        markers = find_rank_markers(text)
        anchors = find_coordinates(text)
        entries = []

        for i, anchor in enumerate(anchors):
            name = extract_member_name(text, anchor.start)
            boundary = find_next_boundary(text, anchor.end, anchors, i, markers)
            score = extract_score(text, anchor.end, boundary, self.settings.min_score)
            if len(name) < 2:
                logger.debug(f"  Ancla sin nombre descartada: {anchor.coords}")
                continue
            entries.append(MemberRecord(
                name=name,
                coords=anchor.coords,
                score=score,
                rank=rank_before(markers, anchor.start),
            ))

        return MemberParseResult(
            entries=entries,
            last_rank=markers[-1].rank if markers else None,
        )

    def extract_score_map(self, text: str) -> Dict[str, int]:
        """
        Scores por coordenada para la pasada de verificación

        Args:
            text: Texto OCR de la pasada en escala de grises

        Returns:
            Diccionario coords → score (solo scores positivos)
        """
        if not text:
            return {}
        markers = find_rank_markers(text)
        anchors = find_coordinates(text)
        scores = {}
        for i, anchor in enumerate(anchors):
            boundary = find_next_boundary(text, anchor.end, anchors, i, markers)
            score = extract_score(text, anchor.end, boundary, self.settings.min_score)
            if score > 0:
                scores[anchor.coords] = score
        return scores

    def parse_event_text(self, text: str) -> EventParseResult:
        """
        Parsea el texto de una captura de evento

        Args:
            text: Texto OCR de la pasada principal

        Returns:
            Registros con nombre, macht y punkte
        """
        if not text:
            return EventParseResult()

        tags = find_clan_tags(text)
        entries = []
        for i, tag in enumerate(tags):
            boundary = tags[i + 1].start if i + 1 < len(tags) else len(text)
            segment = text[tag.end:boundary]
            name = extract_event_name(segment)
            power, event_points = extract_event_scores(segment)
            if len(name) >= 2:
                entries.append(EventRecord(name=name, power=power, event_points=event_points))
        return EventParseResult(entries=entries)

    def extract_event_score_map(self, text: str) -> Dict[str, Tuple[int, int]]:
        """
        Macht y punkte por nombre normalizado, para la pasada de verificación

        Returns:
            Diccionario nombre → (power, event_points)
        """
        return {
            normalize_name(e.name): (e.power, e.event_points)
            for e in self.parse_event_text(text).entries
        }


def extract_records(text: str, settings: Optional[ExtractionSettings] = None) -> List[MemberRecord]:
    """
    Función pura: texto OCR → registros de miembros

    Args:
        text: Texto de una captura
        settings: Umbrales de extracción

    Returns:
        Lista de registros (mismo resultado para la misma entrada)
    """
    return DataParser(settings).parse_member_text(text).entries
