"""Heuristic error detection rules."""
import pytest

from tutor.error_detector import (
    C_LINE_RULES,
    PYTHON_LINE_RULES,
    build_context,
    check_bracket_balance,
    detect_errors,
)
from tutor.models import DetectedError


class TestBracketBalance:
    @pytest.mark.parametrize(
        "code",
        [
            "f(a[1], {'b': 2})",
            "int main() { int a[3] = {1, 2, 3}; return a[0]; }",
            "print(')')",
            's = "[[[" + "}}"',
            "",
        ],
    )
    def test_balanced(self, code):
        assert check_bracket_balance(code).balanced is True

    def test_unclosed_opener(self):
        result = check_bracket_balance("f(a")

        assert result.balanced is False
        assert result.type == "bracket"
        assert result.message == "Unclosed: ("

    def test_unexpected_closer(self):
        result = check_bracket_balance("a)")

        assert result.balanced is False
        assert result.message == "Unexpected ')'"

    def test_mismatched_closer(self):
        result = check_bracket_balance("(]")

        assert result.balanced is False
        assert result.message == "Expected ')' but found ']'"


class TestCommonChecks:
    def test_typo_names_intended_word(self):
        errors = detect_errors("pirnt('hi')", "python")

        typos = [e for e in errors if e.type == "typo"]
        assert len(typos) == 1
        assert "print" in typos[0].description
        assert typos[0].severity == "warning"

    def test_typo_is_case_insensitive(self):
        errors = detect_errors("x = lenght\ny = RETRUN", "python")

        descriptions = [e.description for e in errors if e.type == "typo"]
        assert descriptions == ["Possible typo: Did you mean 'return'?", "Possible typo: Did you mean 'length'?"]

    def test_common_checks_come_first(self):
        errors = detect_errors("pirnt(x", "python")

        assert [e.type for e in errors] == ["syntax", "typo"]
        assert errors[0].description == "Unbalanced bracket: Unclosed: ("

    def test_infinite_loop_without_break(self):
        errors = detect_errors("while (1) {\n  x++;\n}", "c")

        loops = [e for e in errors if "infinite loop" in e.description]
        assert len(loops) == 1
        assert loops[0].line == 1
        assert loops[0].type == "logic"

    def test_loop_with_break_nearby_is_fine(self):
        code = "while (true) {\n  if (done) {\n    break;\n  }\n}"

        errors = detect_errors(code, "java")

        assert not [e for e in errors if "infinite loop" in e.description]

    def test_python_while_true_header(self):
        errors = detect_errors("while True:\n    pass", "python")

        assert [e.line for e in errors if "infinite loop" in e.description] == [1]


class TestPythonRules:
    def test_missing_colon_after_for(self):
        errors = detect_errors("for i in range(10)\n  print(i)", "python")

        assert errors == [
            DetectedError(
                type="syntax",
                description="Python requires a colon (:) at the end of this statement",
                line=1,
                severity="error",
            )
        ]

    def test_comment_lines_are_not_flagged_for_colon(self):
        errors = detect_errors("if ready  # colon comes later", "python")

        assert not [e for e in errors if "colon" in e.description]

    def test_assignment_in_condition(self):
        errors = detect_errors("if x = 5:\n    pass", "python")

        assert [e.type for e in errors] == ["logic"]

    def test_comparison_in_condition_is_fine(self):
        assert detect_errors("if x == 5:\n    pass", "python") == []

    def test_print_statement(self):
        errors = detect_errors("print 'hello'", "python")

        assert errors[0].type == "syntax"
        assert "print()" in errors[0].description

    def test_mixed_indentation(self):
        errors = detect_errors("def f():\n\t    return 1", "python")

        assert [(e.type, e.line) for e in errors] == [("style", 2)]

    def test_rule_table_order(self):
        assert [rule.name for rule in PYTHON_LINE_RULES] == [
            "python-missing-colon",
            "python-assignment-in-condition",
            "python-print-statement",
            "python-mixed-indentation",
        ]


class TestCRules:
    def test_missing_semicolon(self):
        code = "int main() {\n    int x = 5\n    return 0;\n}"

        errors = detect_errors(code, "c")

        assert [(e.type, e.line, e.severity) for e in errors] == [("syntax", 2, "warning")]

    def test_assignment_in_if(self):
        errors = detect_errors("if (x = 5) {", "cpp")

        assert any(e.type == "logic" and "comparison" in e.description for e in errors)

    def test_array_index_equal_to_size(self):
        errors = detect_errors("int arr[5];\narr[5] = 10;", "c")

        assert len(errors) == 1
        assert errors[0].line == 2
        assert errors[0].severity == "error"
        assert errors[0].description == (
            "Array index 5 is out of bounds for array of size 5 (valid indices: 0 to 4)"
        )

    def test_array_out_of_bounds_rule_skips_declaration_line(self):
        ctx = build_context("int arr[5];")
        rule = next(r for r in C_LINE_RULES if r.name == "c-array-out-of-bounds")

        assert rule.matches("int arr[5];", 0, ctx) is False

    def test_missing_main(self):
        code = "int add(int a, int b) {\n    return a + b;\n}\nint sub(int a, int b) { return a - b; }"

        errors = detect_errors(code, "c")

        assert errors[-1].type == "structure"
        assert errors[-1].severity == "info"
        assert "main()" in errors[-1].description

    def test_includes_suppress_missing_main(self):
        code = "#include <stdio.h>\nint add(int a, int b) {\n    return a + b;\n}\n"

        assert not [e for e in detect_errors(code, "c") if e.type == "structure"]


class TestJavaRules:
    def test_string_compared_with_double_equals(self):
        code = (
            "public class Main {\n"
            "    public static void main(String[] args) {\n"
            '        String name = "a";\n'
            '        if (name == "a") {\n'
            "        }\n"
            "    }\n"
            "}"
        )

        errors = detect_errors(code, "java")

        assert [(e.type, e.line, e.severity) for e in errors] == [("logic", 4, "error")]
        assert ".equals()" in errors[0].description

    def test_code_outside_class(self):
        code = 'int x = 5;\nSystem.out.println("hello world from java");'

        errors = detect_errors(code, "java")

        assert [e.description for e in errors] == ["Java code must be inside a class"]

    def test_class_without_main(self):
        errors = detect_errors("public class Helper {\n    int x = 1;\n}", "java")

        assert [e.type for e in errors] == ["structure"]
        assert "public static void main" in errors[0].description


def test_unknown_language_only_runs_common_checks():
    assert detect_errors("x = 1\nprint x", "ruby") == []
