"""Coarse Big-O guess from loop and recursion patterns in source text.

This is a textual heuristic, not asymptotic analysis: it counts loop
headers, looks for a second loop inside the first block, spots halving or
doubling arithmetic and self-referencing function names. Treat the label
as a conversation starter for the student.
"""
import re
from dataclasses import dataclass
from typing import List

from .models import ComplexityEstimate

_DOUBLE_QUOTED = re.compile(r'"[^"]*"')
_SINGLE_QUOTED = re.compile(r"'[^']*'")
_BACKTICK = re.compile(r"`[^`]*`")

_BRACE_LOOP = re.compile(r"\b(for|while)\s*\(", re.IGNORECASE)
_BRACE_NESTED_LOOP = re.compile(r"(for|while)\s*\([^)]*\)\s*\{[^}]*(for|while)\s*\(", re.IGNORECASE)
_PY_LOOP_HEADER = re.compile(r"^([ \t]*)(?:for|while)\b.*:\s*(?:#.*)?$")

_HALVING = re.compile(r"/=\s*2|/\s*2|>>=\s*1")
_DOUBLING = re.compile(r"\*=\s*2|\*\s*2|<<=\s*1")

_PY_FUNCTION = re.compile(r"\bdef\s+(\w+)\s*\(")
_C_FUNCTION = re.compile(r"\b\w+\s+(\w+)\s*\([^)]*\)\s*\{")
_NOT_FUNCTION_NAMES = {"if", "for", "while", "switch", "catch", "return", "else", "sizeof"}


@dataclass
class LoopPatterns:
    simple_loops: int = 0
    nested_loops: int = 0
    halving: int = 0
    doubling: int = 0

    @property
    def logarithmic(self) -> bool:
        return self.halving > 0 or self.doubling > 0


def remove_strings(code: str) -> str:
    clean = _DOUBLE_QUOTED.sub('""', code)
    clean = _SINGLE_QUOTED.sub("''", clean)
    return _BACKTICK.sub("``", clean)


def _indent_width(indent: str) -> int:
    return len(indent.expandtabs(4))


def _python_loops(code: str):
    """Return (loop count, nested count) using indentation as block structure."""
    total = 0
    max_depth = 0
    open_loops: List[int] = []
    for line in code.split("\n"):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        width = _indent_width(line[: len(line) - len(line.lstrip())])
        while open_loops and open_loops[-1] >= width:
            open_loops.pop()
        match = _PY_LOOP_HEADER.match(line)
        if match:
            total += 1
            open_loops.append(width)
            max_depth = max(max_depth, len(open_loops))
    return total, max(0, max_depth - 1)


def detect_loop_patterns(code: str, language: str) -> LoopPatterns:
    if language == "python":
        total, nested = _python_loops(code)
    else:
        total = len(_BRACE_LOOP.findall(code))
        nested = len(_BRACE_NESTED_LOOP.findall(code))

    return LoopPatterns(
        simple_loops=max(0, total - nested),
        nested_loops=nested,
        halving=len(_HALVING.findall(code)),
        doubling=len(_DOUBLING.findall(code)),
    )


def detect_recursion(code: str) -> bool:
    names = _PY_FUNCTION.findall(code)
    names.extend(name for name in _C_FUNCTION.findall(code) if name not in _NOT_FUNCTION_NAMES)
    for name in names:
        # The definition itself counts as one reference.
        if len(re.findall(r"\b%s\s*\(" % re.escape(name), code)) > 1:
            return True
    return False


def _same(label: str, explanation: str) -> ComplexityEstimate:
    return ComplexityEstimate(best=label, worst=label, average=label, explanation=explanation)


def calculate_complexity(patterns: LoopPatterns, has_recursion: bool) -> ComplexityEstimate:
    if (
        patterns.simple_loops == 0
        and patterns.nested_loops == 0
        and not patterns.logarithmic
        and not has_recursion
    ):
        return _same("O(1)", "No loops or recursion detected - constant time operations")

    if patterns.logarithmic:
        if patterns.nested_loops > 0:
            return _same("O(n log n)", "Nested loop with logarithmic pattern (like merge sort)")
        return _same("O(log n)", "Loop divides/multiplies by 2 each iteration (logarithmic)")

    if patterns.nested_loops > 0:
        depth = patterns.nested_loops + 1
        label = "O(n²)" if depth == 2 else f"O(n^{depth})"
        return _same(label, f"{depth} levels of nested loops detected")

    if patterns.simple_loops > 0:
        return _same("O(n)", f"{patterns.simple_loops} linear loop(s) detected")

    if has_recursion:
        return ComplexityEstimate(
            best="O(n)",
            worst="O(2^n)",
            average="O(n) to O(2^n)",
            explanation="Recursion detected - complexity depends on the recursion pattern",
        )

    return ComplexityEstimate(
        best="O(1)",
        worst="O(n)",
        average="O(n)",
        explanation="Unable to determine exact complexity",
    )


def estimate_complexity(code: str, language: str) -> ComplexityEstimate:
    clean = remove_strings(code or "")
    patterns = detect_loop_patterns(clean, (language or "").lower())
    return calculate_complexity(patterns, detect_recursion(clean))
