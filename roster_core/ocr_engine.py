"""
OCR Engine Module
Adaptador de Tesseract para las capturas de listas:
dos pasadas por imagen (color y escala de grises) sin más preprocesamiento
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np
import pytesseract

from .config_manager import ExtractionSettings

logger = logging.getLogger(__name__)


@dataclass
class OCRResult:
    """Texto de una pasada de OCR"""
    text: str
    method: str  # 'primary' o 'verify'


class OCREngine:
    """Motor OCR de dos pasadas"""

    def __init__(self, settings: Optional[ExtractionSettings] = None,
                 tesseract_cmd: Optional[str] = None):
        """
        Inicializa el motor OCR

        Args:
            settings: Idioma y modo de segmentación de Tesseract
            tesseract_cmd: Ruta al ejecutable de Tesseract (None = el del PATH)
        """
        self.settings = settings or ExtractionSettings()
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

        self.language = self.settings.lang
        self.tesseract_config = f"--psm {self.settings.psm}"

    def load_image(self, image_path: str) -> np.ndarray:
        """
        Carga una captura desde disco

        Raises:
            OSError: si la imagen no se puede leer
        """
        image = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise OSError(f"No se pudo leer la imagen: {image_path}")

        # Si la imagen tiene 4 canales (BGRA), quita el alfa
        if image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        return image

    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        """Convierte a escala de grises si es necesario"""
        if image.ndim == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image.copy()

    def extract_text(self, image: np.ndarray, method: str = 'primary') -> OCRResult:
        """
        Ejecuta Tesseract sobre una imagen

        Args:
            image: Imagen en formato numpy array
            method: Etiqueta de la pasada

        Returns:
            OCRResult con el texto crudo
        """
        text = pytesseract.image_to_string(
            image,
            lang=self.language,
            config=self.tesseract_config
        )
        logger.debug(f"  OCR {method}: {len(text)} caracteres")
        return OCRResult(text=text, method=method)

    def recognize_pair(self, image_path: str) -> Tuple[str, str]:
        """
        Pasada principal (color) y de verificación (escala de grises)

        Args:
            image_path: Ruta de la captura

        Returns:
            (texto principal, texto de verificación)
        """
        image = self.load_image(image_path)
        primary = self.extract_text(image, 'primary')
        verify = self.extract_text(self.to_grayscale(image), 'verify')
        return primary.text, verify.text
