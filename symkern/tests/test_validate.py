"""Tests for arity, type, purity and signature validation."""

import pytest
from symkern import Engine, Signature
from symkern.validate import (
    check_arity, check_numeric_args, check_pure, check_type, check_types,
    flatten_sequence, validate_arguments,
)


@pytest.fixture
def ce():
    return Engine()


class TestArity:
    """Tests for check_arity()."""

    def test_exact(self, ce):
        """The right number of operands passes through."""
        ops = (ce.box(1), ce.box(2))
        assert check_arity(ce, ops, 2) == ops

    def test_missing(self, ce):
        """Missing operands are padded with errors."""
        result = check_arity(ce, (ce.box(1),), 3)
        assert len(result) == 3
        assert [op.code for op in result[1:]] == ["missing", "missing"]

    def test_excess(self, ce):
        """Excess operands become unexpected-argument errors."""
        result = check_arity(ce, (ce.box(1), ce.box(2), ce.box(3)), 1)
        assert result[0].numeric_value.is_one
        assert [op.details for op in result[1:]] == [("2",), ("3",)]

    def test_non_strict(self):
        """Non-strict engines do not check arity."""
        ce = Engine(strict=False)
        ops = (ce.box(1), ce.box(2))
        assert check_arity(ce, ops, 1) == ops

    def test_flattens_sequences(self, ce):
        """Sequences count as their elements."""
        ops = (ce.box(["Sequence", 1, 2], canonical=False),)
        assert len(flatten_sequence(ops)) == 2
        assert check_arity(ce, ops, 2) == (ce.box(1), ce.box(2))


class TestNumericArgs:
    """Tests for check_numeric_args()."""

    def test_numbers_and_constants(self, ce):
        """Literals and numeric constants validate."""
        result = check_numeric_args(ce, [ce.box(7), ce.box("Pi")], count=2)
        assert all(op.is_valid for op in result)

    def test_boolean_rejected(self, ce):
        """Booleans are type mismatches."""
        result = check_numeric_args(ce, [ce.box(1), ce.box("True")])
        assert result[1].code == "type-mismatch"

    def test_inference(self, ce):
        """Unresolved symbols are inferred real."""
        check_numeric_args(ce, [ce.box("s"), ce.box(2)])
        assert ce.box("s").type == "real"

    def test_non_strict_widens(self):
        """Non-strict engines still infer, widening to number for complex operands."""
        ce = Engine(strict=False)
        check_numeric_args(ce, [ce.box("s"), ce.box(["Complex", 1, 2])])
        assert ce.box("s").type == "number"


class TestTypeChecks:
    """Tests for check_type(), check_types() and check_pure()."""

    def test_check_type(self, ce):
        """Subtypes pass, others are type mismatches."""
        assert check_type(ce, ce.box(3), "real").is_valid
        error = check_type(ce, ce.box("True"), "real")
        assert error.code == "type-mismatch"
        assert error.details == ("real", "boolean")

    def test_check_type_missing(self, ce):
        """A missing argument and a missing type are both errors."""
        assert check_type(ce, None, "real").code == "missing"
        assert check_type(ce, ce.box(1), None).code == "unexpected-argument"

    def test_check_types(self, ce):
        """Each argument is checked against its own type."""
        result = check_types(ce, [ce.box(1), ce.box("True")], ["real", "real"])
        assert result[0].is_valid
        assert result[1].code == "type-mismatch"

    def test_check_pure(self, ce):
        """Random is not pure."""
        assert check_pure(ce, ce.box(["Add", "x", 1])).is_valid
        assert check_pure(ce, ce.box(["Random"])).code == "expected-pure-expression"


class TestValidateArguments:
    """Tests for signature validation."""

    def test_valid(self, ce):
        """Valid operands return None."""
        sig = Signature.parse("(real, real?) -> real")
        assert validate_arguments(ce, [ce.box(1)], sig) is None

    def test_lazy(self, ce):
        """Lazy functions skip type checks."""
        sig = Signature.parse("(real) -> real")
        assert validate_arguments(ce, [ce.box("True")], sig, lazy=True) is None

    def test_threadable_collection(self, ce):
        """Threadable functions accept collections."""
        sig = Signature.parse("(real) -> real")
        assert validate_arguments(ce, [ce.box(["List", 1, 2])], sig, threadable=True) is None

    def test_errors_in_place(self, ce):
        """Invalid operands are replaced by error nodes."""
        sig = Signature.parse("(real) -> real")
        result = validate_arguments(ce, [ce.box(1), ce.box(2)], sig)
        assert result[0].numeric_value.is_one
        assert result[1].code == "unexpected-argument"
