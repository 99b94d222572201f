"""Tests for algebraic expansion."""

import pytest
from symkern import Engine
from symkern.expand import (
    choose, distribute, expand, expand_all, expand_denominator, expand_numerator,
    multinomial_coefficient, powers,
)


@pytest.fixture
def ce():
    return Engine()


class TestCombinatorics:
    """Binomial and multinomial helpers."""

    def test_choose(self):
        """Pascal's triangle, including rows beyond the cached ones."""
        assert choose(4, 2) == 6
        assert choose(10, 3) == 120
        assert choose(7, 0) == 1

    def test_multinomial_coefficient(self):
        """3! / (1! 1! 1!) = 6 and 4! / (2! 2!) = 6."""
        assert multinomial_coefficient([1, 1, 1]) == 6
        assert multinomial_coefficient([2, 2]) == 6
        assert multinomial_coefficient([3, 0]) == 1

    def test_powers(self):
        """Compositions of an exponent, in a fixed order."""
        assert list(powers(2, 2)) == [[0, 2], [1, 1], [2, 0]]
        assert len(list(powers(3, 2))) == 6
        assert all(sum(p) == 4 for p in powers(3, 4))


class TestDistribute:
    """Tests for distribution of products."""

    def test_over_sum(self, ce):
        """a (b + c) = a b + a c."""
        result = ce.expand(["Multiply", "a", ["Add", "b", "c"]])
        assert str(result) == "(Add (Multiply a b) (Multiply a c))"

    def test_two_sums(self, ce):
        """(a + b)(c + d) has four terms."""
        result = ce.expand(["Multiply", ["Add", "a", "b"], ["Add", "c", "d"]])
        assert result.operator == "Add"
        assert result.nops == 4

    def test_negated_factors(self, ce):
        """(-a)(-(b + c)) = a b + a c."""
        a = ce.box(["Negate", "a"])
        bc = ce.box(["Negate", ["Add", "b", "c"]])
        result = distribute(ce, "Multiply", [a, bc])
        assert result == ce.expand(["Multiply", "a", ["Add", "b", "c"]])

    def test_not_distributable(self, ce):
        """Operators other than products are not distributed."""
        assert distribute(ce, "Sin", [ce.box("x")]) is None


class TestExpandPower:
    """Tests for the multinomial expansion."""

    def test_square(self, ce):
        """(a + b)^2 = a^2 + 2ab + b^2."""
        result = ce.expand(["Power", ["Add", "a", "b"], 2])
        assert str(result) == "(Add (Power a 2) (Multiply 2 a b) (Power b 2))"

    def test_cube(self, ce):
        """(a + b)^3 has coefficients 1 3 3 1."""
        result = ce.expand(["Power", ["Add", "a", "b"], 3])
        expected = ce.add(
            ce.pow("a", 3),
            ce.mul(3, ce.pow("a", 2), "b"),
            ce.mul(3, "a", ce.pow("b", 2)),
            ce.pow("b", 3),
        )
        assert result == expected

    def test_trinomial(self, ce):
        """(a + b + c)^2 has six terms."""
        result = ce.expand(["Power", ["Add", "a", "b", "c"], 2])
        assert str(result) == (
            "(Add (Power a 2) (Multiply 2 a b) (Multiply 2 a c)"
            " (Power b 2) (Multiply 2 b c) (Power c 2))"
        )

    def test_negative_exponent(self, ce):
        """(a + b)^-2 is the inverse of the expanded square."""
        result = ce.expand(["Power", ["Add", "a", "b"], -2])
        assert result.operator == "Divide"
        assert result.op1.numeric_value.is_one
        assert result.op2 == ce.expand(["Power", ["Add", "a", "b"], 2])

    def test_zero_exponent(self, ce):
        """(a + b)^0 expands to 1."""
        assert ce.expand(["Power", ["Add", "a", "b"], 0]).numeric_value.is_one

    def test_symbolic_exponent(self, ce):
        """Non-integer exponents are not expanded."""
        expr = ce.box(["Power", ["Add", "a", "b"], "n"])
        assert expand(expr) is None


class TestExpand:
    """Tests for the expansion drivers."""

    def test_not_expandable(self, ce):
        """expand() returns None; Engine.expand() returns the input."""
        expr = ce.box(["Sin", "x"])
        assert expand(expr) is None
        assert ce.expand(expr) is expr

    def test_atoms(self, ce):
        """Symbols and numbers are not expandable."""
        assert expand(ce.box("x")) is None
        assert expand(ce.box(3)) is None

    def test_relational(self, ce):
        """Both sides of a relation are expanded."""
        result = ce.expand(["Equal", ["Multiply", "a", ["Add", "b", "c"]], 0])
        assert result.operator == "Equal"
        assert str(result.op1) == "(Add (Multiply a b) (Multiply a c))"

    def test_sum_collects(self, ce):
        """Expanded terms of a sum are collected."""
        result = ce.expand(["Add", ["Multiply", "a", ["Add", "b", 1]], ["Negate", "a"]])
        assert str(result) == "(Multiply a b)"

    def test_expand_numerator(self, ce):
        """(a (b + c)) / d = ab/d + ac/d."""
        expr = ce.box(["Divide", ["Multiply", "a", ["Add", "b", "c"]], "d"])
        result = expand_numerator(expr)
        assert result.operator == "Add"
        assert [op.operator for op in result.ops] == ["Divide", "Divide"]

    def test_expand_denominator(self, ce):
        """1 / (a (b + c)) = 1 / (ab + ac)."""
        expr = ce.box(["Divide", 1, ["Multiply", "a", ["Add", "b", "c"]]])
        result = expand_denominator(expr)
        assert result.operator == "Divide"
        assert str(result.op2) == "(Add (Multiply a b) (Multiply a c))"

    def test_expand_numerator_not_divide(self, ce):
        """Only quotients have numerators."""
        assert expand_numerator(ce.box(["Add", "a", 1])) is None
        assert expand_denominator(ce.box(["Add", "a", 1])) is None

    def test_expand_all(self, ce):
        """Nested products inside functions are expanded too."""
        result = ce.expand_all(["Sin", ["Multiply", "a", ["Add", "b", "c"]]])
        assert str(result) == "(Sin (Add (Multiply a b) (Multiply a c)))"

    def test_expand_all_atom(self, ce):
        """expand_all of an atom returns it."""
        assert expand_all(ce.box("x")) is None
        assert ce.expand_all("x") == ce.box("x")

    def test_boxed_shortcut(self, ce):
        """Boxed expressions expose expand()."""
        expr = ce.box(["Multiply", "a", ["Add", "b", "c"]])
        assert expr.expand() == ce.expand(expr)
