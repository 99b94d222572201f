"""Tests for the type lattice, signatures and definitions."""

import pytest
from symkern import Engine, DefinitionError, Signature
from symkern.lattice import is_compatible, is_subtype, widen
from symkern.definitions import (
    DefinitionTable, FunctionDefinition, SymbolDefinition, definition_from_dict,
    normalize_flags,
)


class TestLattice:
    """Tests for subtype checks."""

    def test_subtype_chain(self):
        """integer < rational < real < number < any."""
        assert is_subtype("integer", "rational")
        assert is_subtype("integer", "real")
        assert is_subtype("integer", "number")
        assert is_subtype("integer", "any")
        assert not is_subtype("real", "integer")

    def test_nothing_below_everything(self):
        """nothing is a subtype of every type."""
        assert is_subtype("nothing", "integer")
        assert is_subtype("nothing", "boolean")

    def test_unknown_matches_only_itself(self):
        """unknown is only a subtype of unknown and any."""
        assert is_subtype("unknown", "unknown")
        assert is_subtype("unknown", "any")
        assert not is_subtype("unknown", "number")

    def test_compatible(self):
        """Compatibility is subtyping in either direction."""
        assert is_compatible("number", "integer")
        assert is_compatible("integer", "number")
        assert not is_compatible("boolean", "number")

    def test_widen(self):
        """Narrowest common supertype."""
        assert widen("integer", "rational") == "rational"
        assert widen("integer", "imaginary") == "number"
        assert widen("real", "boolean") == "any"
        assert widen("nothing", "integer") == "integer"
        assert widen("nothing") == "nothing"
        assert widen("unknown", "nothing") == "unknown"


class TestSignature:
    """Tests for textual signatures."""

    def test_parse_full(self):
        """Required, optional and rest parameters."""
        sig = Signature.parse("(real, real?, ...real) -> real")
        assert sig.required == ("real",)
        assert sig.optional == ("real",)
        assert sig.rest == "real"
        assert sig.result == "real"
        assert not sig.is_fixed_arity

    def test_parse_fixed(self):
        """A signature with only required parameters has fixed arity."""
        sig = Signature.parse("(number, number) -> number")
        assert sig.is_fixed_arity
        assert len(sig.required) == 2

    def test_parse_empty(self):
        """No parameters."""
        sig = Signature.parse("() -> real")
        assert sig.required == ()
        assert sig.is_fixed_arity

    def test_default_result(self):
        """Without an arrow the result is any."""
        assert Signature.parse("(any)").result == "any"

    def test_str_roundtrip(self):
        """str() writes the textual form back."""
        text = "(real, real?, ...real) -> real"
        assert str(Signature.parse(text)) == text

    def test_required_after_optional(self):
        """Optional parameters come after required ones."""
        with pytest.raises(ValueError):
            Signature.parse("(real?, real) -> real")

    def test_rest_must_be_last(self):
        """Nothing may follow the rest parameter."""
        with pytest.raises(ValueError):
            Signature.parse("(...real, real) -> real")

    def test_malformed(self):
        """Parameters must be parenthesized."""
        with pytest.raises(ValueError):
            Signature.parse("real -> real")

    def test_unknown_type(self):
        """Unknown type names are rejected."""
        with pytest.raises(ValueError):
            Signature.parse("(banana) -> real")

    def test_computed_result(self):
        """A callable result is computed from the operands."""
        sig = Signature(rest="any", result=lambda ops: "integer" if len(ops) == 1 else "real")
        assert sig.result_type([1]) == "integer"
        assert sig.result_type([1, 2]) == "real"


class TestFlags:
    """Tests for numeric flag normalization."""

    def test_odd_clears_even(self):
        """odd implies not even."""
        assert normalize_flags({"odd": True})["even"] is False

    def test_even_clears_odd(self):
        """even implies not odd."""
        assert normalize_flags({"even": True})["odd"] is False

    def test_zero(self):
        """zero is even and neither positive nor negative."""
        flags = normalize_flags({"zero": True})
        assert flags["even"] is True
        assert flags["positive"] is False
        assert flags["negative"] is False

    def test_unknown_flag(self):
        """Unknown flags are rejected."""
        with pytest.raises(DefinitionError):
            normalize_flags({"prime": True})


class TestDefinitionRecords:
    """Tests for classifying definition records."""

    def test_symbol_record(self):
        """A record with type and value is a symbol."""
        d = definition_from_dict("c", {"type": "real", "constant": True, "value": 3})
        assert isinstance(d, SymbolDefinition)
        assert d.constant
        assert not d.inferred

    def test_function_record(self):
        """A record with a signature is a function."""
        d = definition_from_dict("f", {"signature": "(real) -> real"})
        assert isinstance(d, FunctionDefinition)
        assert d.signature.required == ("real",)

    def test_type_from_value(self):
        """A symbol without a type takes the type of its value."""
        assert SymbolDefinition("n", value=3).type == "integer"
        assert SymbolDefinition("h", value=0.5).type == "real"

    def test_symbol_type_must_be_string(self):
        """Symbol type must be a string."""
        with pytest.raises(DefinitionError, match="string"):
            definition_from_dict("x", {"type": 5})

    def test_symbol_cannot_have_signature(self):
        """A value and a signature cannot be mixed."""
        with pytest.raises(DefinitionError, match="signature"):
            definition_from_dict("x", {"value": 1, "signature": "(real) -> real"})

    def test_symbol_cannot_have_sgn(self):
        """A value and sgn cannot be mixed."""
        with pytest.raises(DefinitionError, match="sgn"):
            definition_from_dict("x", {"value": 1, "sgn": lambda ops: 1})

    def test_function_cannot_be_constant(self):
        """A function record cannot carry `constant`."""
        with pytest.raises(DefinitionError, match="constant"):
            definition_from_dict("f", {"signature": "(real) -> real", "constant": True})

    def test_function_type_must_be_callable(self):
        """A function type is computed by a callback."""
        with pytest.raises(DefinitionError, match="function"):
            definition_from_dict("f", {"signature": "(real) -> real", "type": "real"})

    def test_unknown_key(self):
        """Unknown fields are rejected."""
        with pytest.raises(DefinitionError, match="Unknown field"):
            definition_from_dict("x", {"type": "real", "colour": "red"})

    def test_unknown_type_name(self):
        """Type names must be in the lattice."""
        with pytest.raises(DefinitionError):
            definition_from_dict("x", {"type": "banana"})

    def test_not_a_dict(self):
        """Records must be dicts."""
        with pytest.raises(DefinitionError):
            definition_from_dict("x", ["real"])


class TestInference:
    """Tests for monotonic type inference."""

    def test_symbol_narrowed_once(self):
        """An inferred symbol is narrowed from unknown exactly once."""
        d = SymbolDefinition("x", inferred=True)
        assert d.type == "unknown"
        assert d.infer("real")
        assert d.type == "real"
        assert not d.infer("integer")
        assert d.type == "real"

    def test_declared_symbol_not_narrowed(self):
        """Declared definitions are never changed by inference."""
        d = SymbolDefinition("x", type="number")
        assert not d.infer("real")
        assert d.type == "number"

    def test_infer_unknown_is_noop(self):
        """Inferring unknown does nothing."""
        d = SymbolDefinition("x", inferred=True)
        assert not d.infer("unknown")

    def test_function_result_narrowed(self):
        """An inferred function's result type is narrowed once."""
        d = FunctionDefinition("f", inferred=True)
        assert d.result_type([]) == "unknown"
        assert d.infer("real")
        assert d.result_type([]) == "real"
        assert not d.infer("boolean")


class TestDefinitionTable:
    """Tests for the definitions table."""

    def test_declare_and_lookup(self):
        """Declared names can be looked up by kind."""
        table = DefinitionTable()
        table.declare("x", {"type": "real"})
        table.declare("f", {"signature": "(real) -> real"})
        assert table.symbol("x").type == "real"
        assert table.function("x") is None
        assert table.function("f") is not None
        assert "x" in table
        assert len(table) == 2
        assert set(table) == {"x", "f"}

    def test_redeclaration_raises(self):
        """A concrete definition cannot be redeclared."""
        table = DefinitionTable()
        table.declare("x", {"type": "real"})
        with pytest.raises(DefinitionError, match="already defined"):
            table.declare("x", {"type": "integer"})

    def test_inferred_unresolved_can_be_declared(self):
        """An auto-created, still unknown definition may be replaced."""
        table = DefinitionTable()
        table.infer_symbol("x")
        table.declare("x", {"type": "integer"})
        assert table.symbol("x").type == "integer"

    def test_infer_other_kind_returns_none(self):
        """Inference never overwrites a definition of the other kind."""
        table = DefinitionTable()
        table.declare("f", {"signature": "(real) -> real"})
        assert table.infer_symbol("f") is None
        table.declare("x", {"type": "real"})
        assert table.infer_function("x") is None

    def test_clear(self):
        """clear() drops every definition."""
        table = DefinitionTable()
        table.declare("x", {"type": "real"})
        table.clear()
        assert len(table) == 0


class TestEngineDeclare:
    """Declarations through the engine."""

    def test_declare_type_string(self):
        """A type name declares a symbol."""
        ce = Engine()
        ce.declare("t", "integer")
        assert ce.box("t").type == "integer"

    def test_declare_redefinition(self):
        """Redeclaring a library name raises."""
        ce = Engine()
        with pytest.raises(DefinitionError):
            ce.declare("Pi", "real")

    def test_redeclare_refreshes_interned(self):
        """Boxing after a declaration sees the new definition."""
        ce = Engine()
        assert ce.box("u").type == "unknown"
        ce.declare("u", "boolean")
        assert ce.box("u").type == "boolean"

    def test_constant_value(self):
        """A declared constant has a numeric value."""
        ce = Engine()
        ce.declare("k", {"type": "integer", "constant": True, "value": 7})
        assert ce.numeric_constant("k").to_float() == 7
