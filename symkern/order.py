"""
Canonical comparison and ordering of boxed expressions.

compare() is three-valued plus "incomparable" (None):

    compare(1, 2)                      # => -1
    compare(4, Pi)                     # => 1
    compare((Negate Pi), 0)            # => -1  numeric value
    compare((Add 1 x), (Add x 1))      # => -1  positional tie-break
    compare(x, y)                      # => None

The predicates equal(), less() etc. return None when compare() does, and
never coerce it to False.

order_key() is a total, deterministic sort key used to order factors and
terms: numbers before symbols before functions; functions by complexity,
then operator name, then operands.
"""

import math
from collections import Counter
from typing import Optional, Tuple

from .boxed import BoxedExpression
from .numeric import NumericValue


def real_value(expr: BoxedExpression) -> Optional[NumericValue]:
    """
    Real numeric value of `expr`, else None.

    Literals and constant symbols are read directly. Pure function
    expressions are evaluated, exactly where the operations allow it.
    """
    if expr.is_number_literal:
        value = expr.numeric_value
    elif expr.is_symbol and expr.is_constant:
        value = expr.engine.numeric_constant(expr.symbol)
    elif expr.is_function and expr.is_pure:
        value = expr.engine.evaluate(expr)
    else:
        return None
    if value is None or value.is_complex:
        return None
    return value


def compare(a: BoxedExpression, b: BoxedExpression) -> Optional[int]:
    """Three-way comparison: -1, 0, 1, or None if incomparable."""
    x, y = real_value(a), real_value(b)
    if x is not None and y is not None:
        return x.compare(y)

    if a == b:
        return 0

    if (a.is_function and b.is_function and a.operator == b.operator
            and a.nops == b.nops and Counter(a.ops) == Counter(b.ops)):
        for p, q in zip(a.ops, b.ops):
            if p != q:
                return -1 if order_key(p) < order_key(q) else 1

    return None


def equal(a: BoxedExpression, b: BoxedExpression) -> Optional[bool]:
    c = compare(a, b)
    return None if c is None else c == 0


def less(a: BoxedExpression, b: BoxedExpression) -> Optional[bool]:
    c = compare(a, b)
    return None if c is None else c < 0


def less_equal(a: BoxedExpression, b: BoxedExpression) -> Optional[bool]:
    c = compare(a, b)
    return None if c is None else c <= 0


def greater(a: BoxedExpression, b: BoxedExpression) -> Optional[bool]:
    c = compare(a, b)
    return None if c is None else c > 0


def greater_equal(a: BoxedExpression, b: BoxedExpression) -> Optional[bool]:
    c = compare(a, b)
    return None if c is None else c >= 0


def _number_key(value: NumericValue) -> Tuple:
    def part(v):
        f = v.to_float()
        return math.inf if math.isnan(f) else f
    return (part(value.re), part(value.im), str(value))


def order_key(expr: BoxedExpression) -> Tuple:
    """Total sort key over boxed expressions."""
    if expr.is_number_literal:
        return (0, _number_key(expr.numeric_value))
    if expr.is_symbol:
        return (1, expr.symbol)
    if expr.is_error:
        return (3, expr.code, expr.details)
    return (2, expr.complexity, expr.operator, expr.nops,
            tuple(order_key(op) for op in expr.ops))
