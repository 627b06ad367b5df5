import re
from typing import Dict, Tuple

AUTO = "auto"
FALLBACK_LANGUAGE = "en"

# -------------------------------------------------------------------------
# [Language Registry] code -> display name / flag
# -------------------------------------------------------------------------
LANGUAGES: Dict[str, Dict[str, str]] = {
    "ja": {"name": "Japanese", "flag": "🇯🇵"},
    "en": {"name": "English", "flag": "🇺🇸"},
    "es": {"name": "Spanish", "flag": "🇪🇸"},
    "pt": {"name": "Portuguese", "flag": "🇧🇷"},
}

TARGET_LANGUAGES: Tuple[str, ...] = tuple(LANGUAGES.keys())

# Order matters: the first pattern that matches wins.
DETECTION_PATTERNS: Tuple[Tuple[str, "re.Pattern"], ...] = (
    ("ja", re.compile(r"[\u3040-\u309F\u30A0-\u30FF\uFF65-\uFF9F]")),
    ("es", re.compile(r"[áéíóúüñÁÉÍÓÚÜÑ]")),
    ("pt", re.compile(r"[áéíóúâêôãõçÁÉÍÓÚÂÊÔÃÕÇ]")),
    ("en", re.compile(r"[a-zA-Z]")),
)


def is_supported(code: str) -> bool:
    return code in LANGUAGES


def detect_language(text: str) -> str:
    """
    Best-effort script heuristic, not a real detector.
    Mixed input resolves to whichever pattern is checked first.
    """
    for code, pattern in DETECTION_PATTERNS:
        if pattern.search(text or ""):
            return code
    return FALLBACK_LANGUAGE
