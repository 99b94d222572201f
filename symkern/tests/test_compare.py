"""Tests for canonical comparison and ordering."""

import pytest
from symkern import Engine
from symkern.order import order_key


@pytest.fixture
def ce():
    return Engine()


# [a, b, compare(a, b)]
COMPARISONS = [
    (1, 1, 0),
    (1, 0, 1),
    (2, 5, -1),
    (5, 2, 1),
    (7, 7, 0),

    (1, "Pi", -1),
    ("Pi", "Pi", 0),
    (4, "Pi", 1),
    ("Pi", 1, 1),
    ("Pi", 4, -1),

    (1, "x", None),
    ("x", 1, None),
    ("x", "y", None),
    ("x", ["Foo"], None),
    (["Foo"], "x", None),

    (["Add", "x", 1], ["Add", "x", 1], 0),
    (["Add", 1, "x"], ["Add", "x", 1], -1),
    (["Add", "x", 1], ["Add", 1, "x"], 1),
]


class TestCompare:
    """Tests for the three-way comparison."""

    @pytest.mark.parametrize("a,b,expected", COMPARISONS)
    def test_compare(self, ce, a, b, expected):
        """compare() over literals, constants, symbols and functions."""
        assert ce.compare(a, b) == expected

    def test_exact_and_machine(self, ce):
        """Values compare across lanes."""
        assert ce.compare(["Rational", 1, 2], 0.5) == 0
        assert ce.compare(0.25, ["Rational", 1, 3]) == -1

    def test_nan_incomparable(self, ce):
        """NaN is incomparable even with itself."""
        assert ce.compare(float("nan"), 1) is None

    def test_different_operators(self, ce):
        """Different operators are incomparable."""
        assert ce.compare(["Add", "x", 1], ["Multiply", "x", 1]) is None

    def test_different_operands(self, ce):
        """Same operator over different multisets is incomparable."""
        assert ce.compare(["Add", "x", 1], ["Add", "x", 2]) is None

    def test_numeric_totality(self, ce):
        """Real literals always compare like native numbers."""
        values = [-3, -1, 0, 0.5, 2, 10]
        for a in values:
            for b in values:
                assert ce.compare(a, b) == (a > b) - (a < b)

    def test_numeric_expressions(self, ce):
        """Expressions with a real value compare numerically."""
        assert ce.compare(["Negate", "Pi"], 0) == -1
        assert ce.compare(0, ["Negate", "Pi"]) == 1
        assert ce.compare(["Add", 1, 1], 2) == 0
        assert ce.compare(["Sqrt", 2], 2) == -1
        assert ce.compare(["Multiply", 2, "Pi"], 6) == 1
        assert ce.less(["Negate", "Pi"], 0) is True
        assert ce.equal(["Add", 1, 1], 2) is True

    def test_non_real_expressions(self, ce):
        """Complex, symbolic and impure expressions stay incomparable."""
        assert ce.compare(["Sqrt", -1], 0) is None
        assert ce.compare(["Add", "x", 1], 1) is None
        assert ce.compare(["Random"], 2) is None


class TestPredicates:
    """equal/less/greater propagate incomparability."""

    def test_equal(self, ce):
        """equal() is compare() == 0."""
        assert ce.equal(3, 3) is True
        assert ce.equal(3, 4) is False
        assert ce.equal("x", "x") is True

    def test_undefined_propagation(self, ce):
        """Incomparable symbols give None, never False."""
        assert ce.equal("a", "b") is None
        assert ce.less("a", "b") is None
        assert ce.less_equal("a", "b") is None
        assert ce.greater("a", "b") is None
        assert ce.greater_equal("a", "b") is None

    def test_ordering(self, ce):
        """less/greater and friends."""
        assert ce.less(1, 2) is True
        assert ce.less_equal(2, 2) is True
        assert ce.greater("Pi", 3) is True
        assert ce.greater_equal(1, 2) is False

    def test_boxed_shortcuts(self, ce):
        """Boxed expressions expose the comparisons."""
        one = ce.box(1)
        assert one.compare(2) == -1
        assert one.is_less(2) is True
        assert one.is_greater(2) is False
        assert one.is_equal(1) is True


class TestOrderKey:
    """Tests for the total sort key."""

    def test_kinds(self, ce):
        """Numbers, then symbols, then functions."""
        items = [ce.box(["Add", "x", 1]), ce.box("x"), ce.box(2)]
        ordered = sorted(items, key=order_key)
        assert [e.kind for e in ordered] == ["number", "symbol", "function"]

    def test_numbers_by_value(self, ce):
        """Numbers sort by value."""
        items = [ce.box(3), ce.box(-1), ce.box(["Rational", 1, 2])]
        ordered = sorted(items, key=order_key)
        assert [str(e) for e in ordered] == ["-1", "(Rational 1 2)", "3"]

    def test_symbols_by_name(self, ce):
        """Symbols sort by name."""
        ordered = sorted([ce.box("c"), ce.box("a"), ce.box("b")], key=order_key)
        assert [e.symbol for e in ordered] == ["a", "b", "c"]

    def test_functions_by_complexity(self, ce):
        """Cheaper operators come first."""
        add = ce.box(["Add", "x", 1])
        power = ce.box(["Power", "x", 2])
        assert order_key(add) < order_key(power)
