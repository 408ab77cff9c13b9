"""Regex heuristics for common beginner mistakes.

Nothing here parses or runs the code: every rule is a line or whole-text
pattern, so results are hints that can both over- and under-report.
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from .models import DetectedError

_STRING_LITERAL = re.compile(r"\"[^\"]*\"|'[^']*'")

BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = set(BRACKET_PAIRS.values())


@dataclass
class BracketBalance:
    balanced: bool
    type: Optional[str] = None
    message: Optional[str] = None


def strip_string_literals(code: str) -> str:
    return _STRING_LITERAL.sub('""', code)


def check_bracket_balance(code: str) -> BracketBalance:
    stack: List[str] = []
    for char in strip_string_literals(code):
        if char in BRACKET_PAIRS:
            stack.append(char)
        elif char in _CLOSERS:
            if not stack:
                return BracketBalance(False, "bracket", f"Unexpected '{char}'")
            expected = BRACKET_PAIRS[stack.pop()]
            if expected != char:
                return BracketBalance(False, "bracket", f"Expected '{expected}' but found '{char}'")
    if stack:
        return BracketBalance(False, "bracket", f"Unclosed: {', '.join(stack)}")
    return BracketBalance(True)


@dataclass(frozen=True)
class Typo:
    pattern: "re.Pattern[str]"
    fix: str


TYPOS = [
    Typo(re.compile(r"\bpirnt\b", re.IGNORECASE), "print"),
    Typo(re.compile(r"\bretrun\b", re.IGNORECASE), "return"),
    Typo(re.compile(r"\bfunciton\b", re.IGNORECASE), "function"),
    Typo(re.compile(r"\bvraible\b", re.IGNORECASE), "variable"),
    Typo(re.compile(r"\blenght\b", re.IGNORECASE), "length"),
    Typo(re.compile(r"\bwidht\b", re.IGNORECASE), "width"),
]

_ALWAYS_TRUE_LOOP = re.compile(r"\bwhile\s*(?:\(\s*(?:true|1|True)\s*\)|\s(?:True|1)\s*:)")
_BREAK = re.compile(r"\bbreak\b")
INFINITE_LOOP_LOOKAHEAD = 10


@dataclass
class SourceContext:
    """Per-analysis facts shared by the line rules."""

    code: str
    lines: List[str]
    array_size: Optional[int] = None
    array_decl_line: Optional[int] = None
    declares_string: bool = False

    @property
    def array_last_index(self) -> Optional[int]:
        return None if self.array_size is None else self.array_size - 1


_ARRAY_DECL = re.compile(r"\w+\s*\[\s*(\d+)\s*\]")


def build_context(code: str) -> SourceContext:
    ctx = SourceContext(code=code, lines=code.split("\n"))
    decl = _ARRAY_DECL.search(code)
    if decl:
        ctx.array_size = int(decl.group(1))
        ctx.array_decl_line = code.count("\n", 0, decl.start())
    ctx.declares_string = bool(re.search(r"String\s+\w+", code))
    return ctx


@dataclass(frozen=True)
class LineRule:
    name: str
    type: str
    severity: str
    description: str
    matches: Callable[[str, int, SourceContext], bool]


@dataclass(frozen=True)
class SourceRule:
    name: str
    type: str
    severity: str
    description: str
    matches: Callable[[SourceContext], bool]


# Python ---------------------------------------------------------------

_PY_HEADER_NO_COLON = re.compile(r"^\s*(if|elif|else|for|while|def|class|try|except|finally|with)\b[^:]*$")
_PY_ASSIGN_IN_CONDITION = re.compile(r"\b(if|elif|while)\s+.*[^=!<>]=(?!=)")
_PY_PRINT_STATEMENT = re.compile(r"\bprint\s+[^(]")
_PY_BARE_PRINT = re.compile(r"\bprint\s*$")


def _py_missing_colon(line: str, index: int, ctx: SourceContext) -> bool:
    return bool(_PY_HEADER_NO_COLON.search(line)) and not line.strip().endswith(":") and "#" not in line


def _py_print_statement(line: str, index: int, ctx: SourceContext) -> bool:
    return bool(_PY_PRINT_STATEMENT.search(line)) and not _PY_BARE_PRINT.search(line)


def _py_mixed_indent(line: str, index: int, ctx: SourceContext) -> bool:
    return bool(re.match(r"^\t+ ", line) or re.match(r"^ +\t", line))


PYTHON_LINE_RULES = [
    LineRule(
        "python-missing-colon",
        "syntax",
        "error",
        "Python requires a colon (:) at the end of this statement",
        _py_missing_colon,
    ),
    LineRule(
        "python-assignment-in-condition",
        "logic",
        "warning",
        "Are you assigning (=) when you meant to compare (==)?",
        lambda line, index, ctx: bool(_PY_ASSIGN_IN_CONDITION.search(line)),
    ),
    LineRule(
        "python-print-statement",
        "syntax",
        "error",
        "In Python 3, print is a function: use print() with parentheses",
        _py_print_statement,
    ),
    LineRule(
        "python-mixed-indentation",
        "style",
        "warning",
        "Mixing tabs and spaces for indentation can cause issues",
        _py_mixed_indent,
    ),
]

PYTHON_SOURCE_RULES: List[SourceRule] = []


# C / C++ ---------------------------------------------------------------

_C_CONTROL_HEADER = re.compile(r"^\s*(if|else|for|while|switch|do)\s*")
_HAS_OPERATOR = re.compile(r"\w+\s*[=+\-*/]")
_C_ASSIGN_IN_CONDITION = re.compile(r"\b(if|while)\s*\([^)]*[^=!<>]=(?!=)[^=]")


def _c_missing_semicolon(line: str, index: int, ctx: SourceContext) -> bool:
    trimmed = line.strip()
    if not trimmed:
        return False
    if trimmed.endswith((";", "{", "}", ":")):
        return False
    if trimmed.startswith(("//", "#", "/*", "*")):
        return False
    if _C_CONTROL_HEADER.search(trimmed):
        return False
    return bool(_HAS_OPERATOR.search(trimmed))


def _c_array_out_of_bounds(line: str, index: int, ctx: SourceContext) -> bool:
    if ctx.array_size is None or index == ctx.array_decl_line:
        return False
    return bool(re.search(r"\[\s*%d\s*\]" % ctx.array_size, line))


C_LINE_RULES = [
    LineRule(
        "c-missing-semicolon",
        "syntax",
        "warning",
        "This line might be missing a semicolon",
        _c_missing_semicolon,
    ),
    LineRule(
        "c-assignment-in-condition",
        "logic",
        "warning",
        "Using assignment (=) instead of comparison (==) in condition",
        lambda line, index, ctx: bool(_C_ASSIGN_IN_CONDITION.search(line)),
    ),
    LineRule(
        "c-array-out-of-bounds",
        "logic",
        "error",
        "Array index {ctx.array_size} is out of bounds for array of size {ctx.array_size} "
        "(valid indices: 0 to {ctx.array_last_index})",
        _c_array_out_of_bounds,
    ),
]


def _c_missing_main(ctx: SourceContext) -> bool:
    # Only a complete-looking program without includes is expected to carry main().
    if "#include" in ctx.code or len(ctx.code) <= 50:
        return False
    return not re.search(r"\bmain\s*\(", ctx.code)


C_SOURCE_RULES = [
    SourceRule(
        "c-missing-main",
        "structure",
        "info",
        "C/C++ programs need a main() function as the entry point",
        _c_missing_main,
    ),
]


# Java ------------------------------------------------------------------

_JAVA_CONTROL_HEADER = re.compile(
    r"^\s*(if|else|for|while|switch|do|try|catch|finally|class|interface|enum)\s*"
)
_JAVA_TYPE_DECL = re.compile(r"^\s*(public|private|protected|static|final|abstract)\s+(class|interface|enum)")
_JAVA_CLASS = re.compile(r"\bclass\s+\w+")
_JAVA_MAIN = re.compile(r"public\s+static\s+void\s+main")


def _java_string_equality(line: str, index: int, ctx: SourceContext) -> bool:
    return ctx.declares_string and bool(re.search(r'==\s*"', line))


def _java_missing_semicolon(line: str, index: int, ctx: SourceContext) -> bool:
    trimmed = line.strip()
    if not trimmed:
        return False
    if trimmed.endswith((";", "{", "}")):
        return False
    if trimmed.startswith(("//", "/*", "*", "@")):
        return False
    if _JAVA_CONTROL_HEADER.search(trimmed) or _JAVA_TYPE_DECL.search(trimmed):
        return False
    return bool(_HAS_OPERATOR.search(trimmed))


JAVA_LINE_RULES = [
    LineRule(
        "java-string-equality",
        "logic",
        "error",
        "In Java, compare Strings using .equals() not ==",
        _java_string_equality,
    ),
    LineRule(
        "java-missing-semicolon",
        "syntax",
        "warning",
        "This line might be missing a semicolon",
        _java_missing_semicolon,
    ),
]

JAVA_SOURCE_RULES = [
    SourceRule(
        "java-missing-class",
        "structure",
        "info",
        "Java code must be inside a class",
        lambda ctx: not _JAVA_CLASS.search(ctx.code) and len(ctx.code) > 50,
    ),
    SourceRule(
        "java-missing-main",
        "structure",
        "info",
        "Java programs need a main method: public static void main(String[] args)",
        lambda ctx: bool(_JAVA_CLASS.search(ctx.code)) and not _JAVA_MAIN.search(ctx.code),
    ),
]


LANGUAGE_RULES = {
    "python": (PYTHON_LINE_RULES, PYTHON_SOURCE_RULES),
    "c": (C_LINE_RULES, C_SOURCE_RULES),
    "cpp": (C_LINE_RULES, C_SOURCE_RULES),
    "java": (JAVA_LINE_RULES, JAVA_SOURCE_RULES),
}


def detect_common_errors(ctx: SourceContext) -> List[DetectedError]:
    errors: List[DetectedError] = []

    balance = check_bracket_balance(ctx.code)
    if not balance.balanced:
        errors.append(
            DetectedError(
                type="syntax",
                description=f"Unbalanced {balance.type}: {balance.message}",
                severity="error",
            )
        )

    for typo in TYPOS:
        if typo.pattern.search(ctx.code):
            errors.append(
                DetectedError(
                    type="typo",
                    description=f"Possible typo: Did you mean '{typo.fix}'?",
                    severity="warning",
                )
            )

    for index, line in enumerate(ctx.lines):
        if not _ALWAYS_TRUE_LOOP.search(line):
            continue
        window = "\n".join(ctx.lines[index : index + INFINITE_LOOP_LOOKAHEAD])
        if not _BREAK.search(window):
            errors.append(
                DetectedError(
                    type="logic",
                    description="Potential infinite loop: while(true) without visible break statement",
                    line=index + 1,
                    severity="warning",
                )
            )
    return errors


def detect_language_errors(ctx: SourceContext, language: str) -> List[DetectedError]:
    line_rules, source_rules = LANGUAGE_RULES.get(language.lower(), ([], []))
    errors: List[DetectedError] = []

    for index, line in enumerate(ctx.lines):
        for rule in line_rules:
            if rule.matches(line, index, ctx):
                errors.append(
                    DetectedError(
                        type=rule.type,
                        description=rule.description.format(ctx=ctx),
                        line=index + 1,
                        severity=rule.severity,
                    )
                )

    for rule in source_rules:
        if rule.matches(ctx):
            errors.append(
                DetectedError(
                    type=rule.type,
                    description=rule.description.format(ctx=ctx),
                    severity=rule.severity,
                )
            )
    return errors


def detect_errors(code: str, language: str) -> List[DetectedError]:
    """Return likely issues in discovery order: common checks, then language rules."""
    ctx = build_context(code)
    errors = detect_common_errors(ctx)
    errors.extend(detect_language_errors(ctx, language))
    return errors
