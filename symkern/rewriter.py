"""
Pattern matching and rule rewriting over boxed expressions.

Patterns are boxed expressions in which wildcard symbols (names starting
with "_") stand for arbitrary subexpressions:

    (Add _x 0)          matches (Add (Power y 2) 0), binding _x
    (Multiply _x _x)    matches (Multiply a a) but not (Multiply a b)
    (Foo _ _y)          "_" matches anything without binding
    (_f _x _x)          matches (Add a a) and (Multiply b b), binding _f

Everything else in a pattern must be equal to the candidate: symbols by
name, operators by name, numeric literals by value.

match() returns a Bindings object (truthy) or NoMatch (falsy):

    if bindings := match(pattern, expr):
        print(bindings["x"])     # same as bindings["_x"]

replace() is the root-only fixpoint driver; replace_all() rewrites every
subexpression, bottom-up.
"""

import logging
from typing import Dict, Iterable, Optional, Union

from .boxed import BoxedExpression

logger = logging.getLogger(__name__)


# ============================================================
# Bindings Class - Dict-like interface for match results
# ============================================================

class Bindings:
    """
    Dict-like wrapper for pattern matching bindings.

    Keys are wildcard names ("_x"); lookups also accept the bare name
    ("x"):

        bindings = Bindings({"_x": one, "_y": two})
        bindings["x"]      # => one
        bindings.get("z")  # => None
        "y" in bindings    # => True
        len(bindings)      # => 2

    Bindings objects are truthy when a match succeeded, even when nothing
    was bound. Use NoMatch (which is falsy) to represent failed matches.
    """

    __slots__ = ('_dict',)

    def __init__(self, mapping: Optional[Dict[str, BoxedExpression]] = None):
        self._dict = dict(mapping or {})

    @staticmethod
    def _key(key: str) -> str:
        return key if key.startswith('_') else '_' + key

    def __bool__(self) -> bool:
        return True

    def __getitem__(self, key: str) -> BoxedExpression:
        return self._dict[self._key(key)]

    def get(self, key: str, default=None):
        return self._dict.get(self._key(key), default)

    def __contains__(self, key: str) -> bool:
        return self._key(key) in self._dict

    def keys(self):
        return self._dict.keys()

    def values(self):
        return self._dict.values()

    def items(self):
        return self._dict.items()

    def __iter__(self):
        return iter(self._dict)

    def __len__(self) -> int:
        return len(self._dict)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}: {v}" for k, v in self._dict.items())
        return f"Bindings({{{inner}}})"

    def __eq__(self, other):
        if isinstance(other, Bindings):
            return self._dict == other._dict
        return False

    def to_dict(self) -> Dict[str, BoxedExpression]:
        """Convert to a plain dictionary."""
        return self._dict.copy()


class _NoMatch:
    """
    Singleton representing a failed pattern match.

    NoMatch is falsy, allowing natural use in conditionals:

        if bindings := match(pattern, expr):
            # matched
        else:
            # NoMatch
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoMatch"

    def __getitem__(self, key: str):
        raise KeyError(f"NoMatch has no binding for '{key}'")

    def get(self, key: str, default=None):
        return default

    def __contains__(self, key: str) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self):
        return iter([])


NoMatch = _NoMatch()

MatchResult = Union[Bindings, _NoMatch]


# ============================================================
# Pattern Matching
# ============================================================

def is_wildcard(expr: BoxedExpression) -> bool:
    return expr.is_symbol and expr.symbol.startswith('_')


def _match(pat: BoxedExpression, exp: BoxedExpression,
           subs: Dict[str, BoxedExpression]) -> Optional[Dict[str, BoxedExpression]]:
    """Match with an accumulated substitution; None on failure."""
    if is_wildcard(pat):
        name = pat.symbol
        if name == '_':
            return subs
        if name in subs:
            return subs if subs[name] == exp else None
        return {**subs, name: exp}

    if pat.is_number_literal:
        if exp.is_number_literal and pat.numeric_value.compare(exp.numeric_value) == 0:
            return subs
        return None

    if pat.is_symbol:
        return subs if exp.is_symbol and exp.symbol == pat.symbol else None

    if pat.is_function:
        if not exp.is_function or pat.nops != exp.nops:
            return None
        if pat.operator.startswith('_') and pat.operator != '_':
            # Wildcard operator: binds the operator name as a symbol
            head = exp.engine.symbol(exp.operator, canonical=False)
            bound = subs.get(pat.operator)
            if bound is None:
                subs = {**subs, pat.operator: head}
            elif not (bound.is_symbol and bound.symbol == exp.operator):
                return None
        elif pat.operator != exp.operator:
            return None
        for p, e in zip(pat.ops, exp.ops):
            subs = _match(p, e, subs)
            if subs is None:
                return None
        return subs

    return None


def match(pattern: BoxedExpression, expr: BoxedExpression) -> MatchResult:
    """
    Match a pattern against an expression.

    Args:
        pattern: Pattern, with wildcard symbols
        expr: Expression to match against

    Returns:
        Bindings if matched, NoMatch if not
    """
    result = _match(pattern, expr, {})
    return NoMatch if result is None else Bindings(result)


def substitute(expr: BoxedExpression, bindings: Union[Bindings, Dict[str, BoxedExpression]]
               ) -> BoxedExpression:
    """
    Replace bound wildcards in `expr` by their values.

    Functions are rebuilt through the engine, so the result is canonical
    whenever `expr` was. Unbound wildcards are left in place.
    """
    if isinstance(bindings, Bindings):
        bindings = bindings.to_dict()

    def loop(e: BoxedExpression) -> BoxedExpression:
        if is_wildcard(e):
            return bindings.get(e.symbol, e)
        if e.is_function:
            ops = [loop(op) for op in e.ops]
            operator = e.operator
            head = bindings.get(operator) if operator.startswith('_') else None
            if head is not None and head.is_symbol:
                operator = head.symbol
            elif all(a is b for a, b in zip(ops, e.ops)):
                return e
            return e.engine.function(operator, ops, canonical=e.is_canonical)
        return e

    return loop(expr)


# ============================================================
# Rule Application
# ============================================================

def apply_rule(engine, rule, expr: BoxedExpression) -> Optional[BoxedExpression]:
    """
    Apply one rule at the root of `expr`.

    Returns:
        The rewritten expression, or None if the pattern does not match or
        the guard does not hold. A guard that raises is logged and treated
        as not holding.
    """
    bindings = match(rule.lhs, expr)
    if not bindings:
        return None

    if rule.condition is not None:
        try:
            holds = rule.condition(engine, bindings)
        except Exception as e:
            logger.warning("Guard of rule %s raised %s: %s", rule.label, type(e).__name__, e)
            return None
        if not holds:
            return None

    result = substitute(rule.rhs, bindings)
    logger.debug("Applied rule %s: %s -> %s", rule.label, expr, result)
    return result


def replace(engine, rules: Iterable, expr: BoxedExpression,
            max_iterations: Optional[int] = None) -> BoxedExpression:
    """
    Rewrite the root of `expr` until no rule applies.

    Rules are tried in order; after each rewrite the scan restarts from the
    first rule. A rewrite that yields a structurally identical expression
    does not count as a change. Subexpressions are not visited.

    Termination is the caller's responsibility unless `max_iterations`
    bounds the number of rewrites.
    """
    rules = list(rules)
    count = 0
    changed = True
    while changed:
        changed = False
        for rule in rules:
            result = apply_rule(engine, rule, expr)
            if result is not None and result != expr:
                expr = result
                changed = True
                count += 1
                if max_iterations is not None and count >= max_iterations:
                    logger.debug("Stopped after %d rewrites", count)
                    return expr
                break
    return expr


def _replace_bottom_up(engine, rules, expr: BoxedExpression,
                       max_iterations: Optional[int]) -> BoxedExpression:
    if expr.is_function:
        ops = [_replace_bottom_up(engine, rules, op, max_iterations) for op in expr.ops]
        if not all(a is b for a, b in zip(ops, expr.ops)):
            expr = engine.function(expr.operator, ops, canonical=expr.is_canonical)
    return replace(engine, rules, expr, max_iterations)


def replace_all(engine, rules: Iterable, expr: BoxedExpression,
                max_iterations: Optional[int] = None) -> BoxedExpression:
    """
    Rewrite every subexpression, bottom-up, until a full pass changes nothing.

    `max_iterations` bounds both the rewrites at each node and the number
    of passes.
    """
    rules = list(rules)
    passes = 0
    while max_iterations is None or passes < max_iterations:
        result = _replace_bottom_up(engine, rules, expr, max_iterations)
        passes += 1
        if result == expr:
            return result
        expr = result
    return expr
