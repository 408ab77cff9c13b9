import re
from typing import Any, Dict, List, Optional

SUPPORTED_LANGUAGES = ["python", "c", "cpp", "java"]
SUPPORTED_LEVELS = ["basic", "moderate", "complex"]
MAX_HINT_LEVEL = 5

_LANGUAGE_ALIASES = {
    "python": "python",
    "py": "python",
    "c": "c",
    "cpp": "cpp",
    "c++": "cpp",
    "java": "java",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: 3 -> 3, "4" -> 4, "2abc" -> 2, 3.9 -> 3, "x" -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _in_allow_list(value: Any, allowed: List[str]) -> bool:
    return isinstance(value, str) and value.lower() in allowed


def validate_analyze_request(body: Any) -> Dict[str, Any]:
    """Check an incoming /analyze body.

    Returns ``{"valid": bool, "errors": [...]}``. Never raises and never
    mutates ``body``; anything that is not a mapping is treated as empty.
    """
    if not isinstance(body, dict):
        body = {}
    errors: List[str] = []

    code = body.get("code")
    if not code:
        errors.append("code is required")
    elif not isinstance(code, str):
        errors.append("code must be a string")
    elif not code.strip():
        errors.append("code cannot be empty")

    language = body.get("language")
    if not language:
        errors.append("language is required")
    elif not _in_allow_list(language, SUPPORTED_LANGUAGES):
        errors.append(f"language must be one of: {', '.join(SUPPORTED_LANGUAGES)}")

    level = body.get("level")
    if not level:
        errors.append("level is required")
    elif not _in_allow_list(level, SUPPORTED_LEVELS):
        errors.append(f"level must be one of: {', '.join(SUPPORTED_LEVELS)}")

    if "hintLevel" in body and body["hintLevel"] is not None:
        hint = parse_int(body["hintLevel"])
        if hint is None or hint < 1 or hint > MAX_HINT_LEVEL:
            errors.append(f"hintLevel must be between 1 and {MAX_HINT_LEVEL}")

    return {"valid": not errors, "errors": errors}


def normalize_language(language: str) -> str:
    lowered = (language or "").lower()
    return _LANGUAGE_ALIASES.get(lowered, lowered)
