"""
Config Manager Module
Sistema de gestión de configuración centralizada:
ajustes de OCR y extracción, jugadores conocidos y correcciones de nombres
"""

import json
import logging
import shutil
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from .name_corrector import NameContext
from .sanity_checker import validate_outlier_threshold

logger = logging.getLogger(__name__)


@dataclass
class ExtractionSettings:
    """Ajustes que consume el motor de extracción"""
    min_score: int = 5000
    lang: str = "deu"
    psm: int = 6
    score_outlier_threshold: float = 0.2

    def to_dict(self) -> dict:
        """Convierte a diccionario"""
        return asdict(self)


class ConfigManager:
    """Gestor centralizado de configuración"""

    APP_CONFIG = "app_config.json"
    KNOWN_PLAYERS = "known_players.json"

    def __init__(self, base_dir: str = "RosterScraperSuite"):
        """
        Inicializa el gestor de configuración

        Args:
            base_dir: Directorio base del proyecto
        """
        self.base_dir = Path(base_dir)
        self.config_dir = self.base_dir / "config"
        self.data_dir = self.base_dir / "data"

        # Crear directorios si no existen
        self._create_directories()

        # Cargar configuraciones
        self.app_config = self._load_or_create_config(self.APP_CONFIG, self._get_default_app_config())
        self.known_players = self._load_or_create_config(self.KNOWN_PLAYERS, self._get_default_known_players())

    def _create_directories(self):
        """Crea la estructura de directorios necesaria"""
        directories = [
            self.base_dir,
            self.config_dir,
            self.config_dir / "backups",
            self.data_dir,
            self.data_dir / "exports",
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def _get_default_app_config(self) -> Dict:
        """Retorna la configuración por defecto de la aplicación"""
        return {
            "version": "1.0.0",
            "language": "de",
            "debug_mode": False,
            "ocr_settings": {
                "engine": "tesseract",
                "language": "deu",
                "psm": 6,
                "tesseract_cmd": None
            },
            "extraction": {
                "min_score": 5000,
                "score_outlier_threshold": 0.2
            },
            "export": {
                "output_dir": str(self.data_dir / "exports")
            }
        }

    def _get_default_known_players(self) -> Dict:
        """Retorna la lista por defecto de jugadores conocidos"""
        return {
            "known_names": [],
            "corrections": {}
        }

    def _load_or_create_config(self, filename: str, default: Dict) -> Dict:
        """
        Carga un archivo de configuración o crea uno por defecto

        Args:
            filename: Nombre del archivo
            default: Configuración por defecto

        Returns:
            Configuración cargada o creada
        """
        config_path = self.config_dir / filename

        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error cargando {filename}: {e}")
                logger.error("Usando configuración por defecto")
                return default
        else:
            # Crear archivo con configuración por defecto
            self._save_config(filename, default)
            return default

    def _save_config(self, filename: str, config: Dict):
        """
        Guarda una configuración en archivo

        Args:
            filename: Nombre del archivo
            config: Configuración a guardar
        """
        config_path = self.config_dir / filename

        # Hacer backup si existe
        if config_path.exists():
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
            backup_path = self.config_dir / "backups" / f"{config_path.stem}.backup_{stamp}.json"
            shutil.copy(config_path, backup_path)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=4, ensure_ascii=False)
            logger.debug(f"Configuración guardada: {filename}")
        except OSError as e:
            logger.error(f"Error guardando {filename}: {e}")

    def get_extraction_settings(self) -> ExtractionSettings:
        """Ajustes tipados para el motor de extracción"""
        defaults = ExtractionSettings()
        return ExtractionSettings(
            min_score=int(self.get_app_setting("extraction.min_score", defaults.min_score)),
            lang=self.get_app_setting("ocr_settings.language", defaults.lang),
            psm=int(self.get_app_setting("ocr_settings.psm", defaults.psm)),
            score_outlier_threshold=validate_outlier_threshold(
                self.get_app_setting("extraction.score_outlier_threshold", defaults.score_outlier_threshold)
            ),
        )

    def get_name_context(self) -> NameContext:
        """Jugadores conocidos y correcciones para el NameCorrector"""
        return NameContext(
            corrections=dict(self.known_players.get('corrections', {})),
            known_names=list(self.known_players.get('known_names', [])),
        )

    def add_known_player(self, name: str):
        """
        Añade un jugador a la lista de nombres conocidos

        Args:
            name: Nombre canónico del jugador
        """
        names = self.known_players.get('known_names', [])
        if name.lower() not in (n.lower() for n in names):
            names.append(name)
        self.known_players['known_names'] = names
        self._save_config(self.KNOWN_PLAYERS, self.known_players)

    def remove_known_player(self, name: str):
        """Elimina un jugador de la lista de nombres conocidos"""
        names = self.known_players.get('known_names', [])
        self.known_players['known_names'] = [n for n in names if n.lower() != name.lower()]
        self._save_config(self.KNOWN_PLAYERS, self.known_players)

    def add_correction(self, ocr_name: str, correct_name: str):
        """
        Registra una corrección fija para una lectura errónea del OCR

        Args:
            ocr_name: Nombre tal como lo lee el OCR
            correct_name: Nombre correcto
        """
        self.known_players.setdefault('corrections', {})[ocr_name] = correct_name
        self._save_config(self.KNOWN_PLAYERS, self.known_players)

    def remove_correction(self, ocr_name: str):
        """Elimina una corrección"""
        self.known_players.get('corrections', {}).pop(ocr_name, None)
        self._save_config(self.KNOWN_PLAYERS, self.known_players)

    def get_known_names(self) -> List[str]:
        """Obtiene la lista de jugadores conocidos"""
        return list(self.known_players.get('known_names', []))

    def update_app_setting(self, key: str, value: Any):
        """
        Actualiza una configuración de la aplicación

        Args:
            key: Clave de configuración (puede ser anidada con '.')
            value: Nuevo valor
        """
        keys = key.split('.')
        config = self.app_config

        # Navegar hasta la clave final
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self._save_config(self.APP_CONFIG, self.app_config)

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """
        Obtiene una configuración de la aplicación

        Args:
            key: Clave de configuración (puede ser anidada con '.')
            default: Valor por defecto si no existe

        Returns:
            Valor de la configuración
        """
        config = self.app_config

        try:
            for k in key.split('.'):
                config = config[k]
            return default if config is None else config
        except (KeyError, TypeError):
            return default

    def export_config(self, output_path: str):
        """
        Exporta toda la configuración a un archivo

        Args:
            output_path: Ruta del archivo de salida
        """
        all_config = {
            "app_config": self.app_config,
            "known_players": self.known_players,
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(all_config, f, indent=4, ensure_ascii=False)

        logger.info(f"Configuración exportada a {output_path}")

    def import_config(self, input_path: str) -> bool:
        """
        Importa configuración desde un archivo

        Args:
            input_path: Ruta del archivo a importar

        Returns:
            True si se importó correctamente
        """
        try:
            with open(input_path, 'r', encoding='utf-8') as f:
                all_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error importando configuración: {e}")
            return False

        if 'app_config' in all_config:
            self.app_config = all_config['app_config']
            self._save_config(self.APP_CONFIG, self.app_config)

        if 'known_players' in all_config:
            self.known_players = all_config['known_players']
            self._save_config(self.KNOWN_PLAYERS, self.known_players)

        logger.info(f"Configuración importada desde {input_path}")
        return True

    def reset_to_defaults(self):
        """Resetea toda la configuración a valores por defecto"""
        self.app_config = self._get_default_app_config()
        self.known_players = self._get_default_known_players()

        self._save_config(self.APP_CONFIG, self.app_config)
        self._save_config(self.KNOWN_PLAYERS, self.known_players)

        logger.info("Configuración reseteada a valores por defecto")

