"""Tests for the type-check, lint and build output parsers."""

import pytest

from buildmedic.models import ErrorCategory, Severity
from buildmedic.output_parsers import BuildParser, LintParser, TypeCheckParser, default_parsers


class TestTypeCheckParser:
    """Test suite for TypeCheckParser."""

    def test_single_diagnostic_line(self):
        output = "src/a.ts:10:3 - error TC001: 'x' is declared but its value is never read"

        errors = TypeCheckParser().parse(output)

        assert len(errors) == 1
        error = errors[0]
        assert error.file == "src/a.ts"
        assert error.line == 10
        assert error.message == "'x' is declared but its value is never read"
        assert error.category is ErrorCategory.TYPE_ERROR
        assert error.severity is Severity.ERROR

    def test_column_is_optional(self):
        errors = TypeCheckParser().parse("lib/util.ts:7 - error TS2307: Cannot find module 'foo'.")

        assert len(errors) == 1
        assert errors[0].file == "lib/util.ts"
        assert errors[0].line == 7

    def test_parenthesised_format(self):
        output = "src/index.ts(4,12): error TS7010: 'load', which lacks return-type annotation"

        errors = TypeCheckParser().parse(output)

        assert len(errors) == 1
        assert errors[0].file == "src/index.ts"
        assert errors[0].line == 4
        assert errors[0].message.startswith("'load'")

    def test_ignores_non_matching_lines(self):
        output = "\n".join(
            [
                "> @repo/core@1.0.0 type-check",
                "> tsc --noEmit",
                "",
                "packages/core/src/agent.ts:22:5 - error TS6133: 'unused' is declared but its value is never read.",
                "",
                "22     const unused = 1;",
                "       ~~~~~~",
                "Found 1 error in packages/core/src/agent.ts:22",
            ]
        )

        errors = TypeCheckParser().parse(output)

        assert [(e.file, e.line) for e in errors] == [("packages/core/src/agent.ts", 22)]

    def test_strips_ansi_colour_codes(self):
        output = "\x1b[96msrc/a.ts\x1b[0m:\x1b[93m3\x1b[0m:\x1b[93m1\x1b[0m - \x1b[91merror\x1b[0m TS1005: ';' expected."

        errors = TypeCheckParser().parse(output)

        assert len(errors) == 1
        assert errors[0].file == "src/a.ts"
        assert errors[0].line == 3

    @pytest.mark.parametrize("raw", ["", "garbage\nmore garbage", "error without location"])
    def test_unparsable_output_yields_nothing(self, raw):
        assert TypeCheckParser().parse(raw) == []


class TestLintParser:
    """Test suite for LintParser."""

    def test_severity_follows_keyword(self):
        output = "\n".join(
            [
                "/repo/src/a.ts",
                "  3:7  error    'foo' is assigned a value but never used  no-unused-vars",
                "  9:1  warning  Unexpected console statement              no-console",
                "",
            ]
        )

        errors = LintParser().parse(output)

        assert [e.severity for e in errors] == [Severity.ERROR, Severity.WARNING]
        assert all(e.category is ErrorCategory.LINT_ISSUE for e in errors)
        assert all(e.file is None for e in errors)
        assert errors[1].message == "9:1  warning  Unexpected console statement              no-console"

    def test_line_with_both_keywords_is_error(self):
        errors = LintParser().parse("✖ 2 problems (1 error, 1 warning)")

        assert len(errors) == 1
        assert errors[0].severity is Severity.ERROR

    def test_keyword_match_is_case_sensitive(self):
        assert LintParser().parse("ERROR: something\nWarning: other") == []


class TestBuildParser:
    """Test suite for BuildParser."""

    def test_error_and_failed_lines_are_configuration_issues(self):
        output = "\n".join(
            [
                "building...",
                "ERROR: tsconfig.json is invalid",
                "Failed to compile.",
                "done",
            ]
        )

        errors = BuildParser().parse(output)

        assert [e.message for e in errors] == ["ERROR: tsconfig.json is invalid", "Failed to compile."]
        assert all(e.category is ErrorCategory.CONFIGURATION_ISSUE for e in errors)
        assert all(e.severity is Severity.ERROR for e in errors)

    def test_dependency_resolution_lines_are_dependency_issues(self):
        output = "npm ERR! code ERESOLVE\nnpm ERR! Could not resolve dependency:"

        errors = BuildParser().parse(output)

        assert len(errors) == 2
        assert all(e.category is ErrorCategory.DEPENDENCY_ISSUE for e in errors)
        assert errors[0].file is None

    def test_dependency_marker_wins_over_failure_marker(self):
        output = "ERROR ERESOLVE unable to resolve dependency tree\nERROR: Could not resolve dependency react@18"

        errors = BuildParser().parse(output)

        assert [e.category for e in errors] == [ErrorCategory.DEPENDENCY_ISSUE] * 2


def test_default_parsers_follow_detection_order():
    parsers = default_parsers()

    assert list(parsers) == ["type-check", "lint", "build"]
    assert isinstance(parsers["type-check"], TypeCheckParser)
