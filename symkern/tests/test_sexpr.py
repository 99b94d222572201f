"""Tests for the s-expression reader and printer."""

import math
from decimal import Decimal
from fractions import Fraction

import pytest
from symkern.sexpr import (
    format_sexpr, parse_all, parse_atom, parse_sexpr, significant_digits, tokenize,
)


class TestTokenize:
    """Tests for tokenize()."""

    def test_simple(self):
        """Parentheses and atoms."""
        assert tokenize("(Add x 1)") == ["(", "Add", "x", "1", ")"]

    def test_comments(self):
        """A semicolon comments out the rest of the line."""
        assert tokenize("(Add x 1) ; sum\n(f y)") == ["(", "Add", "x", "1", ")", "(", "f", "y", ")"]

    def test_whitespace(self):
        """Any whitespace separates tokens."""
        assert tokenize("  (f\n\tx)  ") == ["(", "f", "x", ")"]


class TestParseAtom:
    """Tests for parse_atom()."""

    def test_integer(self):
        """Integer tokens are ints."""
        assert parse_atom("42") == 42
        assert parse_atom("-7") == -7

    def test_float(self):
        """Short decimal tokens are floats."""
        assert parse_atom("0.5") == 0.5
        assert parse_atom("1e3") == 1000.0

    def test_long_decimal(self):
        """Tokens beyond machine precision keep their digits."""
        assert parse_atom("3.14159265358979323846") == Decimal("3.14159265358979323846")

    def test_symbol(self):
        """Anything else is a symbol name."""
        assert parse_atom("x") == "x"
        assert parse_atom("_x") == "_x"

    def test_special(self):
        """NaN and infinities."""
        assert math.isnan(parse_atom("NaN"))
        assert parse_atom("-Infinity") == -math.inf

    def test_significant_digits(self):
        """Leading zeros and the exponent do not count."""
        assert significant_digits("0.00125") == 3
        assert significant_digits("-12.5e10") == 3


class TestParseSexpr:
    """Tests for parse_sexpr() and parse_all()."""

    def test_nested(self):
        """Nested lists."""
        assert parse_sexpr("(Power (Add a b) 2)") == ["Power", ["Add", "a", "b"], 2]

    def test_atom(self):
        """A lone atom."""
        assert parse_sexpr("x") == "x"

    def test_empty(self):
        """Empty input is None."""
        assert parse_sexpr("") is None
        assert parse_sexpr("; only a comment") is None

    def test_missing_close(self):
        """Missing ')' raises."""
        with pytest.raises(ValueError, match="missing"):
            parse_sexpr("(Add x")

    def test_extra_close(self):
        """Trailing input raises."""
        with pytest.raises(ValueError):
            parse_sexpr("(Add x))")

    def test_parse_all(self):
        """Several top-level expressions."""
        assert parse_all("(f x) y 3") == [["f", "x"], "y", 3]


class TestFormat:
    """Tests for format_sexpr()."""

    def test_function(self):
        """Lists format as s-expressions."""
        assert format_sexpr(["Add", "x", 1]) == "(Add x 1)"

    def test_fraction(self):
        """Fractions format as Rational."""
        assert format_sexpr(Fraction(1, 2)) == "(Rational 1 2)"
        assert format_sexpr(Fraction(4, 2)) == "2"

    def test_complex(self):
        """Complex numbers format as Complex."""
        assert format_sexpr(complex(1, 2)) == "(Complex 1.0 2.0)"

    def test_special(self):
        """NaN and infinities."""
        assert format_sexpr(math.nan) == "NaN"
        assert format_sexpr(-math.inf) == "-Infinity"

    def test_bool(self):
        """Booleans format as True/False."""
        assert format_sexpr(True) == "True"

    def test_inverse(self):
        """format_sexpr() reads back with parse_sexpr()."""
        text = "(Multiply 2 (Power x 3) (Sin y))"
        assert format_sexpr(parse_sexpr(text)) == text

    def test_not_a_number(self):
        """Unknown atoms raise TypeError."""
        with pytest.raises(TypeError):
            format_sexpr(object())
