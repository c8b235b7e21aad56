"""Tests for the health expression parser and AST evaluation."""

import pytest

from statuscore.errors import ExpressionSyntaxError, UnknownFlagError
from statuscore.health.expression import (
    And,
    Flag,
    Not,
    Or,
    normalize_flag_name,
    parse_expression,
)


class TestNormalization:
    def test_hyphens_become_underscores(self):
        assert normalize_flag_name("compute.api-slow") == "compute.api_slow"

    def test_flag_names_are_normalized_when_parsed(self):
        expr = parse_expression("compute.api-slow")
        assert expr.references == frozenset({"compute.api_slow"})
        assert expr.root == Flag("compute.api_slow")


class TestPrecedence:
    """NOT binds tighter than AND, AND tighter than OR."""

    def test_and_binds_tighter_than_or(self):
        expr = parse_expression("a || b && c")
        assert expr.root == Or(Flag("a"), And(Flag("b"), Flag("c")))

    def test_not_binds_tighter_than_and(self):
        expr = parse_expression("!a && b")
        assert expr.root == And(Not(Flag("a")), Flag("b"))

    def test_parentheses_override(self):
        expr = parse_expression("(a || b) && c")
        assert expr.root == And(Or(Flag("a"), Flag("b")), Flag("c"))

    def test_keyword_operators(self):
        expr = parse_expression("a AND NOT b or c")
        assert expr.root == Or(And(Flag("a"), Not(Flag("b"))), Flag("c"))

    def test_double_negation(self):
        assert parse_expression("!!a").evaluate({"a": True}) is True


class TestEvaluation:
    @pytest.mark.parametrize(
        "flags,expected",
        [
            ({"a": True, "b": False, "c": False}, True),
            ({"a": False, "b": True, "c": True}, True),
            ({"a": False, "b": True, "c": False}, False),
            ({"a": False, "b": False, "c": True}, False),
        ],
    )
    def test_or_of_and(self, flags, expected):
        assert parse_expression("a || b && c").evaluate(flags) is expected

    def test_constants(self):
        assert parse_expression("true").evaluate({}) is True
        assert parse_expression("false || TRUE").evaluate({}) is True
        assert parse_expression("a && false").evaluate({"a": True}) is False

    def test_missing_flag_raises_even_when_short_circuited(self):
        """The outcome never depends on which operand is evaluated first."""
        expr = parse_expression("a || b")
        with pytest.raises(UnknownFlagError) as exc_info:
            expr.evaluate({"a": True})
        assert exc_info.value.flag == "b"


class TestSyntaxErrors:
    @pytest.mark.parametrize(
        "expression",
        ["", "   ", "a &&", "(a || b", "a b", "a & b", "|| a", "a )", "a + b"],
    )
    def test_malformed_expressions(self, expression):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression(expression)

    def test_error_reports_position(self):
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            parse_expression("a && $b")
        assert exc_info.value.position == 5
        assert "'$'" in exc_info.value.reason
