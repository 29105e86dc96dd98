"""
Noise Classifier Module
Decide si un token corto es basura del OCR (insignias de nivel,
restos del retrato) y no parte del nombre de un jugador
"""

import re
from typing import List, Pattern, Tuple

_UPPER = "A-ZÄÖÜ"
_LOWER = "a-zäöü"
_LETTER = "a-zA-ZäöüÄÖÜß"

_HAS_DIGIT = re.compile(r"\d")
_HAS_LETTER = re.compile(f"[{_LETTER}]")

# Tablas de guardas por longitud: (patrón, descripción).
# El orden solo importa para el diagnóstico; cualquier coincidencia es ruido.
SHORT_TOKEN_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(f"^[{_UPPER}]{{1,2}}$"), "mayúsculas"),
    (re.compile(f"^[{_LOWER}]{{1,2}}$"), "minúsculas"),
    (re.compile(f"^[{_UPPER}][{_LOWER}]$"), "par mayúscula-minúscula"),
    (re.compile(f"^[{_LOWER}][{_UPPER}]$"), "par minúscula-mayúscula"),
    (re.compile(r"^\d{1,2}$"), "dígitos"),
    (re.compile(f"^[^{_LETTER}]+$"), "sin letras"),
    (re.compile(f"^[{_LETTER}]\\d$"), "letra+dígito"),
    (re.compile(f"^\\d[{_LETTER}]$"), "dígito+letra"),
]

MEDIUM_TOKEN_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(f"^[{_UPPER}]{{3}}$"), "tres mayúsculas"),
    (re.compile(f"^[{_LOWER}]{{3}}$"), "tres minúsculas"),
    (re.compile(f"^[{_LOWER}]{{2}}[{_UPPER}]$"), "dos minúsculas+mayúscula"),
    (re.compile(f"^[{_LOWER}][{_UPPER}][{_LOWER}]$"), "minúscula-mayúscula-minúscula"),
    (re.compile(f"^[{_LOWER}][{_UPPER}]{{2}}$"), "minúscula+dos mayúsculas"),
    (re.compile(f"^[{_UPPER}]{{2,3}}[{_LOWER}]$"), "mayúsculas+minúscula"),
    (re.compile(r"^\d+$"), "dígitos"),
    (re.compile(f"^[^{_LETTER}]+$"), "sin letras"),
]

LONG_TOKEN_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"^\d+$"), "dígitos"),
    (re.compile(f"^[^{_LETTER}]+$"), "sin letras"),
]


def _matches_any(token: str, rules: List[Tuple[Pattern, str]]) -> bool:
    return any(pattern.search(token) for pattern, _ in rules)


def is_noise_token(token: str) -> bool:
    """
    Indica si un token es probablemente ruido del OCR

    Args:
        token: Un token delimitado por espacios

    Returns:
        True si el token debe descartarse
    """
    if not token:
        return True

    if len(token) <= 2:
        return _matches_any(token, SHORT_TOKEN_RULES)

    if len(token) <= 4:
        # Mezcla de dígitos y letras en tokens cortos: casi siempre una insignia
        if _HAS_DIGIT.search(token) and _HAS_LETTER.search(token):
            return True
        return _matches_any(token, MEDIUM_TOKEN_RULES)

    return _matches_any(token, LONG_TOKEN_RULES)


def all_noise(tokens: List[str]) -> bool:
    """True si hay al menos un token y todos son ruido"""
    return bool(tokens) and all(is_noise_token(t) for t in tokens)
