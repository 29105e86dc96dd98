import cv2
import numpy as np
import pytest

from roster_core.config_manager import ExtractionSettings
from roster_core.ocr_engine import OCREngine


def test_recognize_pair_runs_colour_and_greyscale_passes(monkeypatch, tmp_path):
    image_path = tmp_path / "shot.png"
    cv2.imwrite(str(image_path), np.full((20, 40, 3), 255, dtype=np.uint8))

    calls = []

    def fake_image_to_string(image, lang, config):
        calls.append((image.ndim, lang, config))
        return "primary" if image.ndim == 3 else "verify"

    monkeypatch.setattr("roster_core.ocr_engine.pytesseract.image_to_string", fake_image_to_string)

    engine = OCREngine(ExtractionSettings(lang="deu", psm=6))
    primary, verify = engine.recognize_pair(str(image_path))

    assert (primary, verify) == ("primary", "verify")
    assert calls == [(3, "deu", "--psm 6"), (2, "deu", "--psm 6")]


def test_alpha_channel_is_dropped(tmp_path):
    image_path = tmp_path / "alpha.png"
    cv2.imwrite(str(image_path), np.full((10, 10, 4), 255, dtype=np.uint8))

    image = OCREngine().load_image(str(image_path))
    assert image.shape == (10, 10, 3)


def test_unreadable_image_raises(tmp_path):
    with pytest.raises(OSError):
        OCREngine().load_image(str(tmp_path / "missing.png"))
