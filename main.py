"""
Roster Scraper Suite - Main Application
Línea de comandos para procesar lotes de capturas de miembros y de eventos
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

# Añadir el directorio al path para importar módulos
sys.path.insert(0, str(Path(__file__).parent))

from roster_core import ConfigManager, SanityChecker, apply_known_corrections
from roster_core.csv_io import (
    CsvFormatError, format_event_csv, format_member_csv,
    parse_corrections_csv, parse_member_csv, parse_names_csv, read_text, write_csv
)
from scrapers import NoScreenshotsError, RosterScraper
from scrapers.roster_scraper import load_text_folder

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Mensajes con hora, como las líneas de estado del scraper"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    """Define los subcomandos y sus opciones"""
    parser = argparse.ArgumentParser(
        prog="roster-scraper",
        description="Extrae la lista de miembros o de un evento a partir de capturas"
    )
    parser.add_argument("--config", default="RosterScraperSuite",
                        help="Directorio base de la configuración")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Mostrar mensajes de depuración")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (("members", "Lista de miembros"), ("events", "Ranking de evento")):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("folder", help="Carpeta con las capturas PNG (o textos con --text)")
        sub.add_argument("--text", action="store_true",
                         help="La carpeta contiene <nombre>.txt y <nombre>.verify.txt en lugar de PNG")
        sub.add_argument("-o", "--output", help="Ruta del CSV de salida")
        sub.add_argument("--min-score", type=int, help="Score mínimo aceptado (modo miembros)")

    players = subparsers.add_parser("players", help="Importa jugadores conocidos y correcciones")
    players.add_argument("--names", help="CSV con una columna Name")
    players.add_argument("--corrections", help="CSV con columnas OCR-Name y Korrekter Name")
    players.add_argument("--remove", action="append", default=[], metavar="NAME",
                         help="Elimina un jugador conocido (repetible)")
    players.add_argument("--remove-correction", action="append", default=[], metavar="OCR_NAME",
                         help="Elimina una corrección (repetible)")
    players.add_argument("--list", action="store_true",
                         help="Muestra los jugadores conocidos y las correcciones")

    check = subparsers.add_parser("check", help="Valida un CSV de miembros ya exportado")
    check.add_argument("csv_file", help="CSV con columnas Name, Koordinaten y Score")
    check.add_argument("-o", "--output", help="Guarda el CSV con los nombres corregidos")

    config = subparsers.add_parser("config", help="Exporta, importa o resetea la configuración")
    action = config.add_mutually_exclusive_group(required=True)
    action.add_argument("--export", metavar="PATH", help="Exporta toda la configuración a JSON")
    action.add_argument("--import", dest="import_path", metavar="PATH",
                        help="Importa la configuración desde JSON")
    action.add_argument("--reset", action="store_true", help="Vuelve a los valores por defecto")

    return parser


class RosterScraperSuite:
    """Aplicación de línea de comandos del Roster Scraper Suite"""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.config_manager = ConfigManager(args.config)

    def _default_output(self, prefix: str) -> Path:
        output_dir = Path(self.config_manager.get_app_setting(
            "export.output_dir", str(self.config_manager.data_dir / "exports")))
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return output_dir / f"{prefix}_{stamp}.csv"

    def _create_scraper(self) -> RosterScraper:
        settings = self.config_manager.get_extraction_settings()
        if getattr(self.args, "min_score", None) is not None:
            settings.min_score = self.args.min_score
        return RosterScraper(
            settings,
            name_context=self.config_manager.get_name_context(),
            tesseract_cmd=self.config_manager.get_app_setting("ocr_settings.tesseract_cmd"),
        )

    def run_members(self) -> int:
        """Procesa un lote de la lista de miembros"""
        scraper = self._create_scraper()
        if self.args.text:
            result = scraper.process_members(load_text_folder(self.args.folder))
        else:
            result = scraper.process_member_folder(self.args.folder)

        output = Path(self.args.output) if self.args.output else self._default_output("miembros")
        write_csv(output, format_member_csv(result.records))
        logger.info(f"{len(result.records)} miembros exportados, {result.warnings} con advertencia.")
        return 0

    def run_events(self) -> int:
        """Procesa un lote de capturas de evento"""
        scraper = self._create_scraper()
        if self.args.text:
            result = scraper.process_events(load_text_folder(self.args.folder))
        else:
            result = scraper.process_event_folder(self.args.folder)

        output = Path(self.args.output) if self.args.output else self._default_output("evento")
        write_csv(output, format_event_csv(result.records))
        logger.info(f"{len(result.records)} jugadores exportados, {result.warnings} con advertencia.")
        return 0

    def run_players(self) -> int:
        """Importa nombres conocidos y correcciones a la configuración"""
        if self.args.names:
            names = parse_names_csv(read_text(self.args.names))
            for name in names:
                self.config_manager.add_known_player(name)
            logger.info(f"{len(names)} jugadores conocidos importados.")
        if self.args.corrections:
            pairs = parse_corrections_csv(read_text(self.args.corrections))
            for ocr_name, correct_name in pairs:
                self.config_manager.add_correction(ocr_name, correct_name)
            logger.info(f"{len(pairs)} correcciones importadas.")
        for name in self.args.remove:
            self.config_manager.remove_known_player(name)
            logger.info(f"Jugador eliminado: {name}")
        for ocr_name in self.args.remove_correction:
            self.config_manager.remove_correction(ocr_name)
            logger.info(f"Corrección eliminada: {ocr_name}")
        if self.args.list:
            names = self.config_manager.get_known_names()
            logger.info(f"{len(names)} jugadores conocidos:")
            for name in names:
                logger.info(f"  {name}")
            for ocr_name, correct_name in self.config_manager.get_name_context().corrections.items():
                logger.info(f"  {ocr_name} → {correct_name}")
        return 0

    def run_check(self) -> int:
        """Corrige los nombres y anota los registros de un CSV de miembros"""
        members = parse_member_csv(read_text(self.args.csv_file))
        context = self.config_manager.get_name_context()
        for member in members:
            corrected = apply_known_corrections(member.name, context)
            if corrected.corrected:
                logger.info(f"  ✎ Nombre corregido ({corrected.method}): \"{member.name}\" → \"{corrected.name}\"")
                member.name = corrected.name

        settings = self.config_manager.get_extraction_settings()
        SanityChecker(settings.score_outlier_threshold).check_members(members)
        for member in members:
            if member.warning:
                logger.info(f"  ⚠️ {member.name}: {member.warning.detail}")

        if self.args.output:
            write_csv(self.args.output, format_member_csv(members))
        logger.info(f"{len(members)} miembros revisados, {sum(1 for m in members if m.warning)} con advertencia.")
        return 0

    def run_config(self) -> int:
        """Exporta, importa o resetea la configuración"""
        if self.args.export:
            self.config_manager.export_config(self.args.export)
        elif self.args.import_path:
            if not self.config_manager.import_config(self.args.import_path):
                return 1
        else:
            self.config_manager.reset_to_defaults()
        return 0

    def run(self) -> int:
        """Ejecuta el subcomando elegido"""
        handlers = {
            "members": self.run_members,
            "events": self.run_events,
            "players": self.run_players,
            "check": self.run_check,
            "config": self.run_config,
        }
        try:
            return handlers[self.args.command]()
        except NoScreenshotsError as e:
            logger.error(str(e))
            return 1
        except CsvFormatError as e:
            logger.error(f"CSV no válido: {e}")
            return 1
        except OSError as e:
            logger.error(f"Error de archivo: {e}")
            return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return RosterScraperSuite(args).run()


if __name__ == "__main__":
    sys.exit(main())
