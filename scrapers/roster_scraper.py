"""
Roster Scraper
Procesa un lote de capturas de la lista de miembros o de un evento:
extrae registros, reconcilia las dos pasadas de OCR, fusiona entre capturas,
deduplica y anota los registros sospechosos
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from roster_core.config_manager import ExtractionSettings
from roster_core.data_parser import DataParser
from roster_core.deduplicator import Deduplicator
from roster_core.name_corrector import NameContext, apply_known_corrections
from roster_core.overlap_detector import OverlapReport, detect_overlap_gaps
from roster_core.records import EventRecord, MemberRecord, UNKNOWN_RANK, normalize_name, format_thousands
from roster_core.sanity_checker import SanityChecker
from roster_core.score_reconciler import resolve_score_conflict

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
R = TypeVar("R", MemberRecord, EventRecord)


class NoScreenshotsError(ValueError):
    """El lote no contiene ninguna captura"""


@dataclass
class ScreenshotText:
    """Texto de las dos pasadas de OCR de una captura"""
    source: str
    primary_text: str
    verify_text: str = ""


@dataclass
class ScrapeResult:
    """Resultado de un lote"""
    records: List[Union[MemberRecord, EventRecord]] = field(default_factory=list)
    overlap: OverlapReport = field(default_factory=OverlapReport)
    processed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def warnings(self) -> int:
        return sum(1 for r in self.records if r.warning)


# --- Fusión entre capturas ---

def prefer_cleaner_name(existing: R, entry: R) -> bool:
    """
    Adopta el nombre nuevo si es más corto y está contenido en el existente
    (el largo arrastra ruido del OCR)

    Returns:
        True si se cambió el nombre
    """
    if len(entry.name) < len(existing.name) and len(entry.name) >= 2:
        exist_lower = existing.name.lower()
        entry_lower = entry.name.lower()
        if exist_lower.endswith(entry_lower) or entry_lower in exist_lower:
            logger.info(f"  ~ Nombre actualizado: \"{existing.name}\" → \"{entry.name}\" (más limpio)")
            existing.name = entry.name
            return True
    return False


def merge_or_add_member(all_members: Dict[str, MemberRecord], entry: MemberRecord):
    """Fusiona por coordenadas: gana el score mayor y el nombre más limpio"""
    key = entry.coords
    existing = all_members.get(key)
    if existing is None:
        all_members[key] = entry
        logger.info(f"  + {entry.name} ({entry.coords}) | {entry.rank} | {format_thousands(entry.score)}")
        return

    existing.source_origins |= entry.source_origins
    if entry.score > existing.score:
        logger.info(f"  ~ Score actualizado: {existing.name} {format_thousands(existing.score)} → {format_thousands(entry.score)}")
        existing.score = entry.score
    prefer_cleaner_name(existing, entry)


def merge_or_add_event(all_entries: Dict[str, EventRecord], entry: EventRecord, name_key: str):
    """Fusiona por nombre normalizado: gana la macht y los punkte mayores"""
    existing = all_entries.get(name_key)
    if existing is None:
        all_entries[name_key] = entry
        logger.info(f"  + {entry.name} | Macht: {format_thousands(entry.power)} | Punkte: {format_thousands(entry.event_points)}")
        return

    existing.source_origins |= entry.source_origins
    if entry.power > existing.power:
        logger.info(f"  ~ Macht actualizada: {existing.name} {format_thousands(existing.power)} → {format_thousands(entry.power)}")
        existing.power = entry.power
    if entry.event_points > existing.event_points:
        logger.info(f"  ~ Punkte actualizados: {existing.name} {format_thousands(existing.event_points)} → {format_thousands(entry.event_points)}")
        existing.event_points = entry.event_points
    prefer_cleaner_name(existing, entry)


def _reconcile(label: str, name: str, primary: int, verify: int) -> int:
    if verify <= 0 or verify == primary:
        return primary
    resolved = resolve_score_conflict(primary, verify)
    if resolved != primary:
        logger.info(f"  ⟳ {label} corregido: {name} {format_thousands(primary)} → {format_thousands(resolved)}")
    return resolved


def list_png_files(folder) -> List[Path]:
    """
    Capturas PNG de una carpeta, en orden alfabético

    Raises:
        NoScreenshotsError: si no hay ninguna
    """
    folder = Path(folder)
    files = sorted(
        (p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == '.png'),
        key=lambda p: p.name
    ) if folder.is_dir() else []
    if not files:
        raise NoScreenshotsError(f"No se encontraron capturas PNG en: {folder}")
    return files


def load_text_folder(folder) -> List[ScreenshotText]:
    """
    Carga textos OCR ya extraídos: <nombre>.txt y opcionalmente <nombre>.verify.txt

    Raises:
        NoScreenshotsError: si no hay ningún texto
    """
    folder = Path(folder)
    screens = []
    if folder.is_dir():
        for path in sorted(folder.glob("*.txt"), key=lambda p: p.name):
            if path.name.endswith(".verify.txt"):
                continue
            verify_path = path.with_name(path.stem + ".verify.txt")
            screens.append(ScreenshotText(
                source=path.stem,
                primary_text=path.read_text(encoding='utf-8'),
                verify_text=verify_path.read_text(encoding='utf-8') if verify_path.exists() else "",
            ))
    if not screens:
        raise NoScreenshotsError(f"No se encontraron textos OCR en: {folder}")
    return screens


class RosterScraper:
    """Scraper por lotes de la lista de miembros y de los eventos"""

    def __init__(self, settings: Optional[ExtractionSettings] = None,
                 name_context: Optional[NameContext] = None,
                 tesseract_cmd: Optional[str] = None):
        """
        Inicializa el scraper

        Args:
            settings: Umbrales de extracción y ajustes de OCR
            name_context: Jugadores conocidos y correcciones (opcional)
            tesseract_cmd: Ruta al ejecutable de Tesseract para el modo carpeta
        """
        self.settings = settings or ExtractionSettings()
        self.name_context = name_context if name_context and not name_context.is_empty else None
        self.tesseract_cmd = tesseract_cmd

        self.parser = DataParser(self.settings)
        self.deduplicator = Deduplicator()
        self.sanity_checker = SanityChecker(self.settings.score_outlier_threshold)

        self.aborted = False
        self.start_time = None
        self.stats = {'screenshots': 0, 'records': 0, 'corrections': 0, 'errors': 0}
        self._failed: List[str] = []

    def abort(self):
        """Solicita detener el lote; se comprueba una vez por captura"""
        self.aborted = True

    def log(self, message: str):
        """Registra un mensaje de estado"""
        logger.info(message)

    def _correct_name(self, entry: Union[MemberRecord, EventRecord]):
        if self.name_context is None:
            return
        result = apply_known_corrections(entry.name, self.name_context)
        if result.corrected:
            logger.info(f"  ✎ Nombre corregido ({result.method}): \"{entry.name}\" → \"{result.name}\"")
            entry.name = result.name
            self.stats['corrections'] += 1

    def _iterate(self, sources: Sequence[str], read: Callable[[int], Tuple[str, str]],
                 on_progress: Optional[ProgressCallback], label: str) -> Iterable[Tuple[str, str, str]]:
        """Recorre las capturas respetando la cancelación y aislando los fallos"""
        total = len(sources)
        for i, source in enumerate(sources):
            if self.aborted:
                logger.warning(f"{label} cancelado tras {i}/{total} capturas.")
                break
            self.log(f"{label}: {Path(source).name} ({i + 1}/{total})...")
            if on_progress:
                on_progress(i + 1, total, source)
            try:
                primary, verify = read(i)
            except Exception as e:
                logger.error(f"Error en {source}: {e}")
                self.stats['errors'] += 1
                self._failed.append(source)
                continue
            logger.debug(f"  Texto: {primary[:200]!r}")
            yield source, primary, verify

    def _begin(self):
        self.aborted = False
        self.start_time = datetime.now()
        self.stats = {'screenshots': 0, 'records': 0, 'corrections': 0, 'errors': 0}
        self._failed = []

    def _elapsed(self) -> str:
        elapsed = datetime.now() - self.start_time
        minutes, seconds = divmod(int(elapsed.total_seconds()), 60)
        return f"{minutes:02d}:{seconds:02d}"

    # --- Modo miembros ---

    def process_members(self, screens: Sequence[ScreenshotText],
                        on_progress: Optional[ProgressCallback] = None) -> ScrapeResult:
        """
        Procesa un lote de capturas de la lista de miembros

        Args:
            screens: Textos de las dos pasadas por captura, en orden
            on_progress: Callback (actual, total, origen)

        Returns:
            ScrapeResult con los miembros deduplicados y anotados

        Raises:
            NoScreenshotsError: si el lote está vacío
        """
        if not screens:
            raise NoScreenshotsError("El lote no contiene capturas.")
        return self._run_members(
            [s.source for s in screens],
            lambda i: (screens[i].primary_text, screens[i].verify_text),
            on_progress,
        )

    def process_member_folder(self, folder, on_progress: Optional[ProgressCallback] = None) -> ScrapeResult:
        """Modo carpeta: OCR de cada PNG y procesamiento del lote"""
        files = list_png_files(folder)
        self.log(f"{len(files)} capturas encontradas en: {folder}")
        engine = self._create_engine()
        return self._run_members([str(f) for f in files],
                                 lambda i: engine.recognize_pair(files[i]), on_progress)

    def _run_members(self, sources, read, on_progress) -> ScrapeResult:
        self._begin()
        all_members: Dict[str, MemberRecord] = {}
        last_rank = UNKNOWN_RANK
        result = ScrapeResult()

        for source, primary, verify in self._iterate(sources, read, on_progress, "OCR"):
            try:
                parsed = self.parser.parse_member_text(primary)
                verify_scores = self.parser.extract_score_map(verify)
                self.log(f"  {len(parsed.entries)} entradas, {len(verify_scores)} scores de verificación.")

                rank = last_rank
                for entry in parsed.entries:
                    entry.source_origins = {source}
                    if not entry.rank:
                        entry.rank = rank
                    else:
                        rank = entry.rank
                    entry.score = _reconcile("Score", entry.name, entry.score,
                                             verify_scores.get(entry.coords, 0))
                    self._correct_name(entry)
            except Exception as e:
                logger.error(f"Error en {source}: {e}")
                self.stats['errors'] += 1
                self._failed.append(source)
                continue

            # Solo se fusiona una captura completa
            for entry in parsed.entries:
                merge_or_add_member(all_members, entry)
            last_rank = parsed.last_rank or rank
            result.processed.append(source)

        result.aborted = self.aborted
        result.failed = list(self._failed)
        members = self.deduplicator.deduplicate_members(list(all_members.values()))
        self.sanity_checker.check_members(members)
        result.records = members
        result.overlap = detect_overlap_gaps(members, result.processed)

        self.stats['screenshots'] = len(result.processed)
        self.stats['records'] = len(members)
        self.log(f"OCR completado en {self._elapsed()}: {len(members)} miembros encontrados.")
        return result

    # --- Modo evento ---

    def process_events(self, screens: Sequence[ScreenshotText],
                       on_progress: Optional[ProgressCallback] = None) -> ScrapeResult:
        """
        Procesa un lote de capturas de un evento

        Args:
            screens: Textos de las dos pasadas por captura, en orden
            on_progress: Callback (actual, total, origen)

        Returns:
            ScrapeResult con los registros de evento deduplicados y anotados

        Raises:
            NoScreenshotsError: si el lote está vacío
        """
        if not screens:
            raise NoScreenshotsError("El lote no contiene capturas.")
        return self._run_events(
            [s.source for s in screens],
            lambda i: (screens[i].primary_text, screens[i].verify_text),
            on_progress,
        )

    def process_event_folder(self, folder, on_progress: Optional[ProgressCallback] = None) -> ScrapeResult:
        """Modo carpeta para capturas de evento"""
        files = list_png_files(folder)
        self.log(f"{len(files)} capturas de evento encontradas en: {folder}")
        engine = self._create_engine()
        return self._run_events([str(f) for f in files],
                                lambda i: engine.recognize_pair(files[i]), on_progress)

    def _run_events(self, sources, read, on_progress) -> ScrapeResult:
        self._begin()
        all_entries: Dict[str, EventRecord] = {}
        result = ScrapeResult()

        for source, primary, verify in self._iterate(sources, read, on_progress, "OCR de evento"):
            try:
                parsed = self.parser.parse_event_text(primary)
                verify_scores = self.parser.extract_event_score_map(verify)
                self.log(f"  {len(parsed.entries)} entradas de evento, {len(verify_scores)} de verificación.")

                for entry in parsed.entries:
                    entry.source_origins = {source}
                    verify_power, verify_points = verify_scores.get(normalize_name(entry.name), (0, 0))
                    entry.power = _reconcile("Macht", entry.name, entry.power, verify_power)
                    entry.event_points = _reconcile("Punkte", entry.name, entry.event_points, verify_points)
                    self._correct_name(entry)
            except Exception as e:
                logger.error(f"Error en {source}: {e}")
                self.stats['errors'] += 1
                self._failed.append(source)
                continue

            for entry in parsed.entries:
                merge_or_add_event(all_entries, entry, entry.name_key)
            result.processed.append(source)

        result.aborted = self.aborted
        result.failed = list(self._failed)
        entries = self.deduplicator.deduplicate_events(list(all_entries.values()))
        self.sanity_checker.check_events(entries)
        result.records = entries
        result.overlap = detect_overlap_gaps(entries, result.processed)

        self.stats['screenshots'] = len(result.processed)
        self.stats['records'] = len(entries)
        self.log(f"OCR de evento completado en {self._elapsed()}: {len(entries)} jugadores encontrados.")
        return result

    def _create_engine(self):
        # Import diferido: el modo texto no necesita OpenCV ni Tesseract
        from roster_core.ocr_engine import OCREngine
        return OCREngine(self.settings, tesseract_cmd=self.tesseract_cmd)

    def get_stats(self) -> Dict[str, object]:
        """Estadísticas del último lote"""
        return dict(self.stats)
