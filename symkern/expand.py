"""
Algebraic expansion.

    expand((Multiply a (Add b c)))   -> (Add (Multiply a b) (Multiply a c))
    expand((Power (Add a b) 2))      -> (Add (Power a 2) (Multiply 2 a b) (Power b 2))

expand() returns None when the expression is not expandable, which is
distinct from an expansion that leaves the expression as it was.
Engine.expand() maps None back to the input expression.

The size of a multinomial expansion grows quickly with the exponent and
the number of addends; callers are responsible for bounding both.
"""

from typing import Iterator, List, Optional, Sequence

from .boxed import BoxedExpression
from .evaluate import is_relational_operator


def _as_integer(expr: BoxedExpression) -> Optional[int]:
    if not expr.is_number_literal:
        return None
    value = expr.numeric_value
    if value.is_complex or not value.is_finite or not value.is_integer:
        return None
    return int(value.to_fraction())


# ============================================================
# Distribution
# ============================================================

def distribute2(lhs: BoxedExpression, rhs: BoxedExpression) -> BoxedExpression:
    """Distribute the product lhs * rhs over sums and quotients."""
    engine = lhs.engine

    if lhs.operator == "Negate" and rhs.operator == "Negate":
        return distribute2(lhs.op1, rhs.op1)
    if lhs.operator == "Negate":
        return engine.neg(distribute2(lhs.op1, rhs))
    if rhs.operator == "Negate":
        return engine.neg(distribute2(lhs, rhs.op1))

    if lhs.operator == "Divide" and rhs.operator == "Divide":
        denominator = engine.mul(lhs.op2, rhs.op2)
        return engine.div(distribute2(lhs.op1, rhs.op1), denominator)
    if lhs.operator == "Divide":
        return engine.div(distribute2(lhs.op1, rhs), lhs.op2)
    if rhs.operator == "Divide":
        return engine.div(distribute2(lhs, rhs.op1), rhs.op2)

    if lhs.operator == "Add":
        return engine.add(*[distribute2(x, rhs) for x in lhs.ops])
    if rhs.operator == "Add":
        return engine.add(*[distribute2(lhs, x) for x in rhs.ops])

    return engine.mul(lhs, rhs)


def distribute(engine, operator: str, ops: Sequence[BoxedExpression]) -> Optional[BoxedExpression]:
    """
    Distribute the operands of a product (or Power, Negate, Divide).

    An n-ary product is reduced right to left: a*b*c = a*(b*c).
    """
    if operator == "Power":
        n = _as_integer(ops[1])
        if n is None:
            return None
        return expand_power(ops[0], n)

    if operator == "Negate":
        return distribute(engine, "Multiply", [engine.NegativeOne, ops[0]])

    if operator == "Divide":
        numerator = ops[0]
        if not numerator.is_function:
            return None
        result = distribute(engine, numerator.operator, numerator.ops)
        if result is None:
            return None
        return engine.div(result, ops[1])

    if operator == "Multiply":
        if len(ops) == 1:
            return ops[0]
        if len(ops) == 2:
            return distribute2(ops[0], ops[1])
        rhs = distribute(engine, operator, ops[1:])
        if rhs is None:
            return None
        return distribute2(ops[0], rhs)

    return None


# ============================================================
# Multinomial theorem
# ============================================================

# Pascal's triangle, extended on demand and kept for the process lifetime
_BINOMIALS: List[List[int]] = [
    [1],
    [1, 1],
    [1, 2, 1],
    [1, 3, 3, 1],
    [1, 4, 6, 4, 1],
]


def choose(n: int, k: int) -> int:
    """Binomial coefficient n choose k."""
    while n >= len(_BINOMIALS):
        prev = _BINOMIALS[-1]
        _BINOMIALS.append([1] + [prev[i - 1] + prev[i] for i in range(1, len(prev))] + [1])
    return _BINOMIALS[n][k]


def multinomial_coefficient(ks: Sequence[int]) -> int:
    """n! / (k1! k2! ... km!) with n = sum(ks)."""
    n = sum(ks)
    result = 1
    for k in ks:
        result *= choose(n, k)
        n -= k
    return result


def powers(n: int, exp: int) -> Iterator[List[int]]:
    """
    Yield every composition of `exp` into `n` non-negative parts.

    Order: first part ascending, the remaining parts enumerated
    recursively in the same order.

        list(powers(2, 2))  # => [[0, 2], [1, 1], [2, 0]]
    """
    if n == 1:
        yield [exp]
        return
    for i in range(exp + 1):
        for rest in powers(n - 1, exp - i):
            yield [i] + rest


def expand_power(base: BoxedExpression, exp: int) -> Optional[BoxedExpression]:
    """Expand base^exp for an integer exp, or None if base is not a sum."""
    engine = base.engine
    if exp < 0:
        result = expand_power(base, -exp)
        return None if result is None else engine.inv(result)
    if exp == 0:
        return engine.One
    if exp == 1:
        return expand(base)

    if base.operator == "Negate":
        result = expand_power(base.op1, exp)
        if result is None:
            return None
        return result if exp % 2 == 0 else engine.neg(result)

    if base.operator != "Add":
        return None

    terms = base.ops
    result = []
    for ks in powers(len(terms), exp):
        product = [engine.number(multinomial_coefficient(ks))]
        for term, k in zip(terms, ks):
            if k == 1:
                product.append(term)
            elif k != 0:
                product.append(engine.pow(term, engine.number(k)))
        result.append(engine.mul(*product))
    return engine.add(*result)


def expand_multinomial(expr: BoxedExpression) -> Optional[BoxedExpression]:
    if expr.operator != "Power":
        return None
    n = _as_integer(expr.op2)
    if n is None:
        return None
    return expand_power(expr.op1, n)


# ============================================================
# Expansion drivers
# ============================================================

def expand_numerator(expr: BoxedExpression) -> Optional[BoxedExpression]:
    """Expand the numerator of a Divide, splitting it over the denominator."""
    if expr.operator != "Divide":
        return None
    numerator = expand(expr.op1)
    if numerator is None:
        return None
    engine = expr.engine
    if numerator.operator == "Add":
        return engine.add(*[engine.div(x, expr.op2) for x in numerator.ops])
    return engine.div(numerator, expr.op2)


def expand_denominator(expr: BoxedExpression) -> Optional[BoxedExpression]:
    """
    Expand the denominator of a Divide.

    The expanded denominator is kept whole: a quotient does not split over
    the terms of its denominator.
    """
    if expr.operator != "Divide":
        return None
    denominator = expand(expr.op2)
    if denominator is None:
        return None
    return expr.engine.div(expr.op1, denominator)


def expand(expr: Optional[BoxedExpression]) -> Optional[BoxedExpression]:
    """
    Expand products of sums and integer powers of sums.

    Relational operators expand both sides; a Divide expands its
    numerator; a sum is rebuilt from its expanded terms.

    Returns:
        The expanded expression, or None if it is not expandable
    """
    if expr is None or not expr.is_function:
        return None
    engine = expr.engine
    operator = expr.operator

    if is_relational_operator(operator):
        return engine._fn(operator, [expand(x) or x for x in expr.ops])

    result = expand_numerator(expr)
    if result is not None:
        return result

    if operator == "Multiply":
        return distribute(engine, "Multiply", expr.ops)

    if operator == "Add":
        return engine.add(*[expand(x) or x for x in expr.ops])

    if operator == "Negate":
        op = expand(expr.op1)
        return None if op is None else engine.neg(op)

    if operator == "Power":
        return expand_multinomial(expr)

    return None


def expand_all(expr: BoxedExpression) -> Optional[BoxedExpression]:
    """Expand every subexpression, bottom-up, then the rebuilt expression."""
    if not expr.is_function:
        return None
    ops = [expand_all(x) or x for x in expr.ops]
    result = expr.engine.function(expr.operator, ops)
    return expand(result) or result
