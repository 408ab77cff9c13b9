"""Redact LLM replies that look like a complete solution.

Short snippets and syntax examples stay; they are part of teaching. Only
when some field contains a whole function body (a Python def with five or
more body lines, or a brace body longer than ~200 characters) are all fenced
code blocks swapped for a placeholder. This is best effort: a solution split
into small enough snippets still gets through.
"""
import re
from typing import Any, Dict

PLACEHOLDER_BLOCK = "```\n[Complete solution removed - try writing it yourself!]\n```"

_CONTROL_WORDS = r"(?:if|for|while|switch|catch|else|do|return|new)\b"

COMPLETE_SOLUTION_PATTERNS = [
    re.compile(r"def \w+\([^)]*\)[^:\n]*:\s*\n(\s+.+\n){5,}"),
    re.compile(r"function \w+\([^)]*\)\s*\{[^`]{200,}?\}"),
    re.compile(r"public\s+(static\s+)?\w+\s+\w+\([^)]*\)\s*\{[^`]{200,}?\}"),
    # C-style "T name(...) {" on one line; the body may not leave its code block.
    re.compile(
        r"\b(?!%s)\w+[ \t]+(?!%s)\w+[ \t]*\([^)]*\)\s*\{[^`]{200,}?\}" % (_CONTROL_WORDS, _CONTROL_WORDS)
    ),
]

_FENCED_BLOCK = re.compile(r"```[\s\S]*?```")


def contains_complete_solution(text: str) -> bool:
    return any(pattern.search(text) for pattern in COMPLETE_SOLUTION_PATTERNS)


def redact_code_blocks(text: str) -> str:
    return _FENCED_BLOCK.sub(PLACEHOLDER_BLOCK, text)


def sanitize_text(text: str) -> str:
    if not isinstance(text, str) or not contains_complete_solution(text):
        return text
    return redact_code_blocks(text)


def sanitize_response(response: Any) -> Any:
    """Return a copy of ``response`` with code blocks redacted if needed.

    Accepts the parsed JSON object from the model (or a bare string). Any
    other value is returned untouched; the input is never mutated.
    """
    if isinstance(response, str):
        return sanitize_text(response)
    if not isinstance(response, dict):
        return response

    sanitized: Dict[str, Any] = dict(response)
    leaked = any(isinstance(value, str) and contains_complete_solution(value) for value in sanitized.values())
    if not leaked:
        return sanitized
    for key, value in sanitized.items():
        if isinstance(value, str):
            sanitized[key] = redact_code_blocks(value)
    return sanitized
