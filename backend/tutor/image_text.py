"""Screenshot text: external OCR plus code/problem classification."""
import logging
import re
from typing import Any, Dict, List

import requests

from .config import Settings
from .errors import UpstreamFailure, UpstreamTimeout
from .models import ExtractedText

logger = logging.getLogger(__name__)

SERVICE = "ocr"
MAX_TEXT_LENGTH = 3000
CODE_SCORE_THRESHOLD = 3

CODE_PATTERNS = [
    # Python
    re.compile(r"\bdef\s+\w+\s*\(", re.IGNORECASE),
    re.compile(r"\bclass\s+\w+.*:", re.IGNORECASE),
    re.compile(r"\bimport\s+\w+", re.IGNORECASE),
    re.compile(r"\bfrom\s+\w+\s+import", re.IGNORECASE),
    re.compile(r"\bprint\s*\(", re.IGNORECASE),
    re.compile(r"\bif\s+.*:", re.IGNORECASE),
    re.compile(r"\bfor\s+\w+\s+in\s+", re.IGNORECASE),
    re.compile(r"\bwhile\s+.*:", re.IGNORECASE),
    re.compile(r"\breturn\s+", re.IGNORECASE),
    # Java
    re.compile(r"\bpublic\s+(static\s+)?(void|int|String|boolean|class)", re.IGNORECASE),
    re.compile(r"\bSystem\.out\.print", re.IGNORECASE),
    re.compile(r"\bstatic\s+void\s+main", re.IGNORECASE),
    # C/C++
    re.compile(r"#include\s*[<\"]", re.IGNORECASE),
    re.compile(r"\bint\s+main\s*\(", re.IGNORECASE),
    re.compile(r"\bprintf\s*\(", re.IGNORECASE),
    re.compile(r"\bcout\s*<<", re.IGNORECASE),
    re.compile(r"\bstd::", re.IGNORECASE),
    # General
    re.compile(r"\w+\s*\[\s*\w+\s*\]"),
    re.compile(r"[{};]\s*$", re.MULTILINE),
]

PROBLEM_HINT = re.compile(r"\b(given|return|find|array|string|input|output|example)\b", re.IGNORECASE)


def is_code_content(text: str) -> bool:
    score = sum(1 for pattern in CODE_PATTERNS if pattern.search(text))
    lines = text.split("\n")
    indented = sum(1 for line in lines if re.match(r"^\s{2,}", line))
    brackets = sum(len(re.findall(r"[{}()\[\]]", line)) for line in lines)
    if indented > 2:
        score += 2
    if brackets > 5:
        score += 2
    return score >= CODE_SCORE_THRESHOLD


def detect_language(text: str) -> str:
    if re.search(r"\bdef\s+\w+\s*\(", text) or re.search(r":\s*$", text, re.MULTILINE):
        return "python"
    if re.search(r"\bpublic\s+(static\s+)?class", text) or "System.out" in text:
        return "java"
    if re.search(r"#include\s*<stdio", text) or re.search(r"\bprintf\s*\(", text):
        return "c"
    if re.search(r"#include\s*<", text) or re.search(r"\bcout\s*<<", text):
        return "cpp"
    return "unknown"


def looks_like_problem(text: str) -> bool:
    return bool(PROBLEM_HINT.search(text))


def clean_ocr_text(raw_text: str, is_code: bool) -> str:
    if is_code:
        # Leading indentation is kept; it is syntax for Python.
        lines: List[str] = [
            line[: len(line) - len(line.lstrip())] + re.sub(r"[ \t]+", " ", line.strip())
            for line in raw_text.replace("\r\n", "\n").split("\n")
        ]
        text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip("\n")
        return text[:MAX_TEXT_LENGTH]

    kept = []
    for line in raw_text.split("\n"):
        trimmed = line.strip()
        if len(trimmed) < 5:
            continue
        alphanumeric = re.sub(r"[^a-zA-Z0-9]", "", trimmed)
        # Mostly symbols: OCR picked up UI chrome.
        if len(alphanumeric) < len(trimmed) * 0.4:
            continue
        kept.append(trimmed)
    text = re.sub(r"\s+", " ", " ".join(kept)).strip()
    return text[:MAX_TEXT_LENGTH]


def _ocr(data: bytes, filename: str, settings: Settings) -> str:
    if not settings.ocr_api_key:
        raise UpstreamFailure(SERVICE, "no OCR API key configured")
    try:
        r = requests.post(
            settings.ocr_api_url,
            files={"file": (filename or "image.png", data)},
            data={"apikey": settings.ocr_api_key, "language": "eng", "OCREngine": "2"},
            timeout=settings.ocr_timeout_seconds,
        )
    except requests.Timeout as exc:
        raise UpstreamTimeout(SERVICE, "OCR service did not answer in time") from exc
    except requests.RequestException as exc:
        raise UpstreamFailure(SERVICE, str(exc)) from exc
    if r.status_code != 200:
        raise UpstreamFailure(SERVICE, f"HTTP {r.status_code}")
    try:
        payload: Dict[str, Any] = r.json()
    except ValueError as exc:
        raise UpstreamFailure(SERVICE, "response body was not JSON") from exc
    if payload.get("IsErroredOnProcessing"):
        raise UpstreamFailure(SERVICE, str(payload.get("ErrorMessage") or "processing failed"))
    results = payload.get("ParsedResults") or []
    return "\n".join(str(result.get("ParsedText") or "") for result in results)


def extract_text_from_image(data: bytes, filename: str, settings: Settings) -> ExtractedText:
    raw_text = _ocr(data, filename, settings)
    logger.info("OCR returned %d characters", len(raw_text))
    is_code = is_code_content(raw_text)
    language = detect_language(raw_text) if is_code else None
    return ExtractedText(text=clean_ocr_text(raw_text, is_code), is_code=is_code, language=language)
