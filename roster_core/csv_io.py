"""
CSV I/O Module
Exportación de resultados a CSV (UTF-8 con BOM para Excel, fin de línea CRLF)
e importación de listas de miembros, nombres y correcciones
"""

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .records import EventRecord, MemberRecord, UNKNOWN_RANK

logger = logging.getLogger(__name__)

BOM = "\ufeff"
LINE_TERMINATOR = "\r\n"

MEMBER_HEADER = "Rang,Name,Koordinaten,Score"
EVENT_HEADER = "Name,Macht,Event-Punkte"

COORD_HEADERS = ("koordinaten", "coords", "coordinates")
SCORE_HEADERS = ("score", "punkte")
OCR_NAME_HEADERS = ("ocr-name", "ocrname", "ocr name")
CORRECT_NAME_HEADERS = ("korrekter name", "correct name", "korrekt", "correct")


class CsvFormatError(ValueError):
    """La cabecera del CSV no contiene las columnas obligatorias"""


# --- Exportación ---

def _render(header: str, rows: Iterable[list]) -> str:
    buffer = io.StringIO()
    buffer.write(header + LINE_TERMINATOR)
    # Cadenas entre comillas, enteros sin comillas
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator=LINE_TERMINATOR)
    writer.writerows(rows)
    # Sin salto de línea final
    return BOM + buffer.getvalue()[:-len(LINE_TERMINATOR)]


def format_member_csv(members: List[MemberRecord]) -> str:
    """
    Genera el CSV de miembros

    Args:
        members: Registros finales

    Returns:
        Contenido CSV con BOM y cabecera Rang,Name,Koordinaten,Score
    """
    return _render(MEMBER_HEADER, (
        [m.rank or UNKNOWN_RANK, m.name or "", m.coords or "", int(m.score)]
        for m in members
    ))


def format_event_csv(entries: List[EventRecord]) -> str:
    """
    Genera el CSV de evento

    Args:
        entries: Registros finales

    Returns:
        Contenido CSV con BOM y cabecera Name,Macht,Event-Punkte
    """
    return _render(EVENT_HEADER, (
        [e.name, int(e.power), int(e.event_points)]
        for e in entries
    ))


def write_csv(path, content: str) -> Path:
    """Escribe el contenido tal cual (el BOM ya va incluido)"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)
    logger.info(f"CSV exportado: {path}")
    return path


# --- Importación ---

def _rows(csv_text: str) -> List[List[str]]:
    if csv_text.startswith(BOM):
        csv_text = csv_text[1:]
    lines = [line for line in csv_text.strip().splitlines() if line.strip()]
    return list(csv.reader(lines))


def _find_column(header: List[str], names: Tuple[str, ...]) -> Optional[int]:
    for idx, h in enumerate(header):
        if h.strip().lower() in names:
            return idx
    return None


def _field(row: List[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


def _parse_score(raw: str) -> int:
    digits = "".join(ch for ch in raw if ch not in ".," and not ch.isspace())
    try:
        value = int(digits)
    except ValueError:
        return 0
    # Un score nunca es negativo
    return max(value, 0)


def parse_member_csv(csv_text: str) -> List[MemberRecord]:
    """
    Importa un CSV de miembros (por ejemplo, uno exportado por esta misma suite)

    Args:
        csv_text: Contenido del archivo (puede incluir BOM)

    Returns:
        Registros con nombre, coordenadas, score y rango si la columna existe

    Raises:
        CsvFormatError: si falta la columna Name
    """
    rows = _rows(csv_text)
    if len(rows) < 2:
        return []

    header = rows[0]
    name_idx = _find_column(header, ("name",))
    if name_idx is None:
        raise CsvFormatError('La cabecera del CSV debe contener una columna "Name".')
    coord_idx = _find_column(header, COORD_HEADERS)
    score_idx = _find_column(header, SCORE_HEADERS)
    rank_idx = _find_column(header, ("rang", "rank"))

    members = []
    for row in rows[1:]:
        name = _field(row, name_idx)
        if not name:
            continue
        members.append(MemberRecord(
            name=name,
            coords=_field(row, coord_idx),
            score=_parse_score(_field(row, score_idx)),
            rank=_field(row, rank_idx) or None,
        ))
    return members


def parse_names_csv(csv_text: str) -> List[str]:
    """
    Importa una lista de nombres de una sola columna Name

    Raises:
        CsvFormatError: si falta la columna Name
    """
    rows = _rows(csv_text)
    if len(rows) < 2:
        return []
    name_idx = _find_column(rows[0], ("name",))
    if name_idx is None:
        raise CsvFormatError('La cabecera del CSV debe contener una columna "Name".')
    return [name for name in (_field(row, name_idx) for row in rows[1:]) if name]


def parse_corrections_csv(csv_text: str) -> List[Tuple[str, str]]:
    """
    Importa una tabla de correcciones

    Args:
        csv_text: CSV con columnas OCR-Name y Korrekter Name

    Returns:
        Lista de pares (nombre OCR, nombre correcto)

    Raises:
        CsvFormatError: si falta alguna de las dos columnas
    """
    rows = _rows(csv_text)
    if len(rows) < 2:
        return []
    ocr_idx = _find_column(rows[0], OCR_NAME_HEADERS)
    correct_idx = _find_column(rows[0], CORRECT_NAME_HEADERS)
    if ocr_idx is None or correct_idx is None:
        raise CsvFormatError('La cabecera del CSV debe contener las columnas "OCR-Name" y "Korrekter Name".')

    pairs = []
    for row in rows[1:]:
        ocr_name = _field(row, ocr_idx)
        correct_name = _field(row, correct_idx)
        if ocr_name and correct_name:
            pairs.append((ocr_name, correct_name))
    return pairs


def read_text(path) -> str:
    """Lee un CSV respetando el BOM"""
    with open(path, 'r', encoding='utf-8-sig', newline='') as f:
        return f.read()
