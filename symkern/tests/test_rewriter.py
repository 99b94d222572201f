"""Tests for pattern matching and rewriting."""

import logging

import pytest
from symkern import Engine
from symkern.rewriter import (
    Bindings, NoMatch, apply_rule, is_wildcard, match, replace, replace_all, substitute,
)
from symkern.rules import compile_rule


@pytest.fixture
def ce():
    return Engine()


def raw(ce, expr):
    """Box without canonicalization, keeping the shape exactly as written."""
    return ce.box(expr, canonical=False)


class TestBindings:
    """Tests for Bindings and NoMatch."""

    def test_lookup_without_underscore(self, ce):
        """Keys can be given with or without the leading underscore."""
        one = ce.box(1)
        b = Bindings({"_x": one})
        assert b["x"] is one
        assert b["_x"] is one
        assert "x" in b
        assert b.get("y") is None
        assert len(b) == 1

    def test_empty_is_truthy(self):
        """A match that binds nothing is still a match."""
        assert Bindings()
        assert bool(Bindings({})) is True

    def test_to_dict(self, ce):
        """to_dict() returns a copy."""
        b = Bindings({"_x": ce.box(1)})
        d = b.to_dict()
        d["_y"] = ce.box(2)
        assert "y" not in b

    def test_no_match(self):
        """NoMatch is a falsy singleton."""
        assert not NoMatch
        assert NoMatch is type(NoMatch)()
        assert NoMatch.get("x") is None
        assert "x" not in NoMatch
        assert len(NoMatch) == 0
        with pytest.raises(KeyError):
            NoMatch["x"]


class TestMatch:
    """Tests for match()."""

    def test_wildcard(self, ce):
        """A wildcard matches any subexpression."""
        b = match(raw(ce, ["Add", "_x", 0]), raw(ce, ["Add", ["Power", "y", 2], 0]))
        assert b["x"] == raw(ce, ["Power", "y", 2])

    def test_repeated_wildcard(self, ce):
        """A repeated wildcard must match equal subexpressions."""
        pattern = raw(ce, ["Multiply", "_x", "_x"])
        assert match(pattern, raw(ce, ["Multiply", "a", "a"]))
        assert match(pattern, raw(ce, ["Multiply", "a", "b"])) is NoMatch

    def test_anonymous_wildcard(self, ce):
        """'_' matches without binding."""
        b = match(raw(ce, ["Foo", "_", "_y"]), raw(ce, ["Foo", 1, 2]))
        assert list(b.keys()) == ["_y"]
        assert match(raw(ce, ["Foo", "_", "_"]), raw(ce, ["Foo", 1, 2]))

    def test_literal_symbols(self, ce):
        """Non-wildcard symbols match by name."""
        assert match(raw(ce, ["f", "a"]), raw(ce, ["f", "a"]))
        assert not match(raw(ce, ["f", "a"]), raw(ce, ["f", "b"]))

    def test_numbers_by_value(self, ce):
        """Numeric literals match by value across lanes."""
        assert match(raw(ce, ["Add", "_x", 0.0]), raw(ce, ["Add", "y", 0]))
        assert not match(raw(ce, ["Add", "_x", 1]), raw(ce, ["Add", "y", 0]))

    def test_operator_and_arity(self, ce):
        """Operators and operand counts must agree."""
        assert not match(raw(ce, ["Add", "_x", "_y"]), raw(ce, ["Multiply", "a", "b"]))
        assert not match(raw(ce, ["Add", "_x", "_y"]), raw(ce, ["Add", "a", "b", "c"]))

    def test_wildcard_operator(self, ce):
        """A wildcard operator binds the operator name."""
        pattern = raw(ce, ["_f", "_x", "_x"])
        b = match(pattern, raw(ce, ["Add", "a", "a"]))
        assert b["f"].symbol == "Add"
        assert b["x"].symbol == "a"
        assert not match(pattern, raw(ce, ["Multiply", "a", "b"]))

    def test_is_wildcard(self, ce):
        """Wildcards are symbols starting with an underscore."""
        assert is_wildcard(ce.box("_x"))
        assert not is_wildcard(ce.box("x"))
        assert not is_wildcard(ce.box(1))


class TestSubstitute:
    """Tests for substitute()."""

    def test_replace_wildcards(self, ce):
        """Bound wildcards are replaced."""
        result = substitute(raw(ce, ["Add", "_x", 1]), {"_x": ce.box("y")})
        assert str(result) == "(Add y 1)"

    def test_unbound_left_in_place(self, ce):
        """Unbound wildcards stay."""
        result = substitute(raw(ce, ["Add", "_x", "_y"]), Bindings({"_x": ce.box(2)}))
        assert str(result) == "(Add 2 _y)"

    def test_unchanged_is_identical(self, ce):
        """Nothing to substitute returns the expression itself."""
        expr = ce.box(["Add", "a", 1])
        assert substitute(expr, {"_x": ce.box(2)}) is expr

    def test_canonical_stays_canonical(self, ce):
        """A canonical template yields a canonical result."""
        template = ce.box(["Multiply", "_x", "_y"])
        result = substitute(template, {"_x": ce.box(2), "_y": ce.box("z")})
        assert result.is_canonical
        assert result == ce.box(["Multiply", 2, "z"])

    def test_wildcard_operator(self, ce):
        """A bound operator wildcard renames the function."""
        b = match(raw(ce, ["_f", "_x"]), raw(ce, ["Sin", 1]))
        result = substitute(raw(ce, ["_f", ["Add", "_x", 1]]), b)
        assert str(result) == "(Sin (Add 1 1))"


class TestApplyRule:
    """Tests for apply_rule()."""

    def test_apply(self, ce):
        """A matching rule rewrites the root."""
        rule = compile_rule(ce, "(Add x 0)", "x")
        assert apply_rule(ce, rule, ce.parse("(Add y 0)")) == ce.box("y")

    def test_no_match(self, ce):
        """A non-matching rule gives None."""
        rule = compile_rule(ce, "(Add x 0)", "x")
        assert apply_rule(ce, rule, ce.parse("(Add y 1)")) is None

    def test_callable_guard(self, ce):
        """Guards receive the engine and the bindings."""
        rule = compile_rule(ce, "(f x)", "x", condition=lambda ce, b: b["x"].is_number_literal)
        assert apply_rule(ce, rule, ce.parse("(f 3)")) == ce.box(3)
        assert apply_rule(ce, rule, ce.parse("(f y)")) is None

    def test_raising_guard(self, ce, caplog):
        """A guard that raises is logged and treated as false."""
        rule = compile_rule(ce, "(f x)", "x", condition=lambda ce, b: 1 / 0, name="boom")
        with caplog.at_level(logging.WARNING, logger="symkern.rewriter"):
            assert apply_rule(ce, rule, ce.parse("(f 3)")) is None
        assert "boom" in caplog.text
        assert "ZeroDivisionError" in caplog.text

    def test_debug_log(self, ce, caplog):
        """Rule applications are logged at DEBUG."""
        rule = compile_rule(ce, "(Add x 0)", "x", name="add-zero")
        with caplog.at_level(logging.DEBUG, logger="symkern.rewriter"):
            apply_rule(ce, rule, ce.parse("(Add y 0)"))
        assert "add-zero" in caplog.text


class TestReplace:
    """Tests for the root-only replace() driver."""

    def test_no_match_returns_input(self, ce):
        """An expression no rule matches is returned unchanged."""
        rule = compile_rule(ce, "(Add x 0)", "x")
        expr = ce.parse("(Multiply y 2)")
        assert replace(ce, [rule], expr) is expr

    def test_root_only(self, ce):
        """Subexpressions are not visited."""
        rule = compile_rule(ce, "(f x)", "(g x)")
        result = replace(ce, [rule], ce.parse("(f (f a))"))
        assert str(result) == "(g (f a))"

    def test_restart_from_first_rule(self, ce):
        """After a rewrite the scan starts again from the first rule."""
        rules = [compile_rule(ce, "(g x)", "(h x)"), compile_rule(ce, "(f x)", "(g x)")]
        assert str(replace(ce, rules, ce.parse("(f a)"))) == "(h a)"

    def test_identity_rule_terminates(self, ce):
        """A rewrite to an identical expression is not a change."""
        rule = compile_rule(ce, "(f x)", "(f x)")
        expr = ce.parse("(f a)")
        assert replace(ce, [rule], expr) == expr

    def test_max_iterations(self, ce):
        """max_iterations bounds a non-terminating rule."""
        rule = compile_rule(ce, "(f x)", "(f (f x))")
        result = replace(ce, [rule], ce.parse("(f a)"), max_iterations=3)
        assert str(result) == "(f (f (f (f a))))"

    def test_guarded(self, ce):
        """A textual guard controls the rewrite."""
        rule = compile_rule(ce, "(Abs x)", "x", "(GreaterEqual x 0)")
        assert replace(ce, [rule], ce.box(["Abs", 3])) == ce.box(3)
        assert replace(ce, [rule], ce.box(["Abs", -3])) == ce.box(["Abs", -3])
        assert replace(ce, [rule], ce.box(["Abs", "y"])) == ce.box(["Abs", "y"])


class TestReplaceAll:
    """Tests for the bottom-up replace_all() driver."""

    def test_nested(self, ce):
        """Every subexpression is rewritten."""
        rule = compile_rule(ce, "(f x)", "(g x)")
        result = replace_all(ce, [rule], ce.parse("(f (f a))"))
        assert str(result) == "(g (g a))"

    def test_inside_other_functions(self, ce):
        """Rewrites reach into unrelated operators."""
        rule = compile_rule(ce, "(Add x 0)", "x")
        result = replace_all(ce, [rule], ce.parse("(Sin (Add y 0))"))
        assert result == ce.parse("(Sin y)")

    def test_fixpoint(self, ce):
        """Passes repeat until nothing changes."""
        rules = [compile_rule(ce, "(h x)", "x"), compile_rule(ce, "(f x)", "(h x)")]
        result = replace_all(ce, rules, ce.parse("(g (f (f a)))"))
        assert str(result) == "(g a)"

    def test_max_iterations(self, ce):
        """max_iterations bounds the passes."""
        rule = compile_rule(ce, "(f x)", "(f (f x))")
        result = replace_all(ce, [rule], ce.parse("(f a)"), max_iterations=1)
        assert str(result) == "(f (f a))"
