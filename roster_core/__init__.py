"""
Core Package
Motor de extracción para las listas de miembros y de eventos del juego
"""

from .records import (
    Anchor, AnchorKind, EventRecord, MemberRecord, RankMarker,
    RecordWarning, WarningKind, UNKNOWN_RANK
)
from .noise_classifier import is_noise_token, all_noise
from .anchor_scanner import find_coordinates, find_clan_tags, find_rank_markers, normalize_coordinates
from .field_extractor import extract_member_name, extract_event_name, extract_score, extract_event_scores
from .score_reconciler import resolve_score_conflict, explain_score_conflict
from .deduplicator import Deduplicator
from .sanity_checker import SanityChecker
from .config_manager import ConfigManager, ExtractionSettings
from .data_parser import DataParser, MemberParseResult, EventParseResult, extract_records
from .name_corrector import NameContext, CorrectionResult, apply_known_corrections
from .overlap_detector import OverlapReport, OverlapGap, detect_overlap_gaps
from .csv_io import CsvFormatError, format_member_csv, format_event_csv

__all__ = [
    'Anchor',
    'AnchorKind',
    'EventRecord',
    'MemberRecord',
    'RankMarker',
    'RecordWarning',
    'WarningKind',
    'UNKNOWN_RANK',
    'is_noise_token',
    'all_noise',
    'find_coordinates',
    'find_clan_tags',
    'find_rank_markers',
    'normalize_coordinates',
    'extract_member_name',
    'extract_event_name',
    'extract_score',
    'extract_event_scores',
    'resolve_score_conflict',
    'explain_score_conflict',
    'Deduplicator',
    'SanityChecker',
    'ConfigManager',
    'ExtractionSettings',
    'DataParser',
    'MemberParseResult',
    'EventParseResult',
    'extract_records',
    'NameContext',
    'CorrectionResult',
    'apply_known_corrections',
    'OverlapReport',
    'OverlapGap',
    'detect_overlap_gaps',
    'CsvFormatError',
    'format_member_csv',
    'format_event_csv'
]

__version__ = '1.0.0'
