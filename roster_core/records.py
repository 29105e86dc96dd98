"""
Records Module
Tipos de datos compartidos por el motor de extracción:
registros de miembros y eventos, anclas, marcadores de rango y advertencias
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set, Tuple, Union


UNKNOWN_RANK = "unknown"

_KINGDOM_RE = re.compile(r"K:([0-9]+)")


class AnchorKind(Enum):
    """Tipo de ancla estructural dentro del texto OCR"""
    COORDINATE = "coordinate"
    CLAN_TAG = "clanTag"


class WarningKind(Enum):
    """Tipos de advertencia que produce el SanityChecker"""
    INVALID_COORDS = "invalid_coords"
    WRONG_KINGDOM = "wrong_kingdom"
    DUPLICATE_COORDS = "duplicate_coords"
    SCORE_ZERO = "score_zero"
    SCORE_OUTLIER = "score_outlier"
    POWER_EQUALS_EVENTPOINTS = "power_equals_eventpoints"
    POWER_MISSING = "power_missing"


@dataclass
class RecordWarning:
    """Anotación para revisión manual"""
    kind: WarningKind
    detail: str


@dataclass
class Anchor:
    """Subcadena fiable (coordenadas o clan tag) que localiza un registro"""
    start: int
    end: int
    kind: AnchorKind
    payload: Union[Tuple[int, int, int], int]

    @property
    def coords(self) -> Optional[str]:
        """Coordenadas en forma canónica, o None para clan tags"""
        if self.kind is not AnchorKind.COORDINATE:
            return None
        k, x, y = self.payload
        return format_coords(k, x, y)


@dataclass
class RankMarker:
    """Cabecera de rango encontrada en el texto"""
    index: int
    rank: str


class _AnnotatedRecord:
    """Base con la lógica de advertencia (solo la primera gana)"""

    warning: Optional[RecordWarning]

    def flag(self, kind: WarningKind, detail: str) -> bool:
        """
        Marca el registro si todavía no tiene advertencia

        Returns:
            True si la advertencia fue aplicada
        """
        if self.warning is not None:
            return False
        self.warning = RecordWarning(kind=kind, detail=detail)
        return True

    @property
    def warning_kind(self) -> Optional[str]:
        return self.warning.kind.value if self.warning else None


@dataclass
class MemberRecord(_AnnotatedRecord):
    """Fila de la lista de miembros"""
    name: str
    coords: str
    score: int = 0
    rank: Optional[str] = None
    source_origins: Set[str] = field(default_factory=set)
    warning: Optional[RecordWarning] = None

    @property
    def kingdom(self) -> Optional[int]:
        """Valor K de las coordenadas o None si no se puede leer"""
        return parse_kingdom(self.coords)


@dataclass
class EventRecord(_AnnotatedRecord):
    """Fila de la lista de evento"""
    name: str
    power: int = 0
    event_points: int = 0
    source_origins: Set[str] = field(default_factory=set)
    warning: Optional[RecordWarning] = None

    @property
    def name_key(self) -> str:
        return normalize_name(self.name)


def format_coords(k: int, x: int, y: int) -> str:
    """Forma canónica: 'K:98 X:707 Y:919'"""
    return f"K:{k} X:{x} Y:{y}"


def parse_kingdom(coords: Optional[str]) -> Optional[int]:
    if not coords:
        return None
    match = _KINGDOM_RE.match(coords.strip())
    return int(match.group(1)) if match else None


def normalize_name(name: str) -> str:
    """Clave de nombre para el modo evento"""
    return name.strip().lower()


def format_thousands(value: float) -> str:
    """Formato de miles alemán: 1.234.567"""
    return f"{round(value):,}".replace(",", ".")
