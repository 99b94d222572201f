"""
Canonical arithmetic over boxed expressions.

These build sums, products and powers in normal form:

- nested sums/products are flattened
- numeric literals are folded exactly
- like terms (sums) and like bases (products) are collected
- identities are dropped (x + 0, 1 * x, x^1, x^0)

Term order is deterministic. In a product the numeric coefficient comes
first, then the factors by order_key() of their base. In a sum, terms of
higher total degree come first, then terms are ordered lexicographically
on their bases (higher exponent first), and the constant term comes last:

    (Add (Power a 2) (Multiply 2 a b) (Power b 2) 1)

A product whose coefficient is -1 is written as a Negate.
All operands are expected to be canonical.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .boxed import BoxedExpression
from .numeric import NumericValue, ONE, ZERO, NEGATIVE_ONE
from .order import order_key
from .validate import flatten_ops


def _literal(expr: BoxedExpression) -> Optional[NumericValue]:
    return expr.numeric_value if expr.is_number_literal else None


def _exact_power(base: NumericValue, exponent: NumericValue, precision: int) -> Optional[NumericValue]:
    """base^exponent if it stays exact (or was approximate to begin with)."""
    value = base.pow(exponent, precision)
    if value.is_exact or not (base.is_exact and exponent.is_exact):
        return value
    return None


# ============================================================
# Products
# ============================================================

def _collect_factors(ops: Sequence[BoxedExpression], coef: NumericValue,
                     powers: Dict[BoxedExpression, NumericValue]) -> NumericValue:
    for f in ops:
        value = _literal(f)
        if value is not None:
            coef = coef.mul(value)
        elif f.operator == "Negate":
            coef = _collect_factors(f.ops, coef.neg(), powers)
        elif f.operator == "Multiply":
            coef = _collect_factors(f.ops, coef, powers)
        elif f.operator == "Power" and _literal(f.op2) is not None:
            powers[f.op1] = powers.get(f.op1, ZERO).add(_literal(f.op2))
        else:
            powers[f] = powers.get(f, ZERO).add(ONE)
    return coef


def mul(engine, ops: Sequence[BoxedExpression]) -> BoxedExpression:
    """Canonical product of `ops`."""
    ops = flatten_ops(ops, "Multiply")
    if not all(op.is_valid for op in ops):
        return engine._fn("Multiply", ops)
    if not ops:
        return engine.One
    if len(ops) == 1 and ops[0].operator not in ("Multiply", "Negate", "Power"):
        return ops[0]

    powers: Dict[BoxedExpression, NumericValue] = {}
    coef = _collect_factors(ops, ONE, powers)

    factors: List[BoxedExpression] = []
    for base in sorted(powers, key=order_key):
        exponent = powers[base]
        if exponent.is_zero:
            continue
        base_value = _literal(base)
        if base_value is not None:
            value = _exact_power(base_value, exponent, engine.precision)
            if value is not None:
                coef = coef.mul(value)
                continue
        if exponent.is_one:
            factors.append(base)
        else:
            factors.append(engine._fn("Power", (base, engine.number(exponent))))

    if coef.is_nan or coef.is_zero or not factors:
        return engine.number(coef)

    product = factors[0] if len(factors) == 1 else engine._fn("Multiply", factors)
    if coef.is_one:
        return product
    if coef.is_negative_one:
        return engine._fn("Negate", (product,))
    return engine._fn("Multiply", [engine.number(coef)] + factors)


def split_coefficient(engine, term: BoxedExpression) -> Tuple[NumericValue, Optional[BoxedExpression]]:
    """
    Split a term into (numeric coefficient, monomial).

    The monomial is None when the term is a pure number.
    """
    term = mul(engine, [term])
    value = _literal(term)
    if value is not None:
        return value, None
    if term.operator == "Negate":
        return NEGATIVE_ONE, term.op1
    if term.operator == "Multiply" and term.op1.is_number_literal:
        rest = term.ops[1:]
        return term.op1.numeric_value, rest[0] if len(rest) == 1 else engine._fn("Multiply", rest)
    return ONE, term


# ============================================================
# Sums
# ============================================================

def _factors(monomial: BoxedExpression) -> List[Tuple[BoxedExpression, float]]:
    factors = monomial.ops if monomial.operator == "Multiply" else (monomial,)
    result = []
    for f in factors:
        if f.operator == "Power" and f.op2.is_number_literal and not f.op2.numeric_value.is_complex:
            result.append((f.op1, f.op2.numeric_value.to_float()))
        else:
            result.append((f, 1.0))
    return result


def degree(monomial: BoxedExpression) -> float:
    """Total degree of a monomial; numeric bases count as degree 0."""
    return sum(0.0 if base.is_number_literal else e for base, e in _factors(monomial))


def _sum_key(monomial: BoxedExpression) -> Tuple:
    return (-degree(monomial),
            tuple((order_key(base), -e) for base, e in _factors(monomial)))


def add(engine, ops: Sequence[BoxedExpression]) -> BoxedExpression:
    """Canonical sum of `ops`."""
    ops = flatten_ops(ops, "Add")
    if not all(op.is_valid for op in ops):
        return engine._fn("Add", ops)

    constant = ZERO
    terms: Dict[BoxedExpression, NumericValue] = {}
    for op in ops:
        coef, monomial = split_coefficient(engine, op)
        if monomial is None:
            constant = constant.add(coef)
        else:
            terms[monomial] = terms.get(monomial, ZERO).add(coef)

    if constant.is_nan:
        return engine.number(constant)

    monomials = sorted((m for m, c in terms.items() if not c.is_zero), key=_sum_key)
    result = [mul(engine, [engine.number(terms[m]), m]) for m in monomials]
    if not constant.is_zero or not result:
        result.append(engine.number(constant))

    if len(result) == 1:
        return result[0]
    return engine._fn("Add", result)


# ============================================================
# Negation, subtraction, division, powers
# ============================================================

def neg(engine, x: BoxedExpression) -> BoxedExpression:
    value = _literal(x)
    if value is not None:
        return engine.number(value.neg())
    if x.operator == "Negate":
        return x.op1
    if x.operator == "Add" and x.is_valid:
        return add(engine, [neg(engine, t) for t in x.ops])
    if not x.is_valid:
        return engine._fn("Negate", (x,))
    return mul(engine, [engine.NegativeOne, x])


def sub(engine, a: BoxedExpression, b: BoxedExpression) -> BoxedExpression:
    return add(engine, [a, neg(engine, b)])


def div(engine, a: BoxedExpression, b: BoxedExpression) -> BoxedExpression:
    """Canonical quotient. Division by an exact zero gives NaN."""
    if not (a.is_valid and b.is_valid):
        return engine._fn("Divide", (a, b))

    x, y = _literal(a), _literal(b)
    if x is not None and y is not None:
        return engine.number(x.div(y))
    if y is not None:
        if y.is_one:
            return a
        return mul(engine, [a, engine.number(y.inv())])
    if x is not None and x.is_zero:
        return engine.Zero
    if a == b:
        return engine.One
    if a.operator == "Divide":
        return div(engine, a.op1, mul(engine, [a.op2, b]))
    if b.operator == "Divide":
        return div(engine, mul(engine, [a, b.op2]), b.op1)
    return engine._fn("Divide", (a, b))


def inv(engine, x: BoxedExpression) -> BoxedExpression:
    value = _literal(x)
    if value is not None:
        return engine.number(value.inv())
    if x.operator == "Divide":
        return div(engine, x.op2, x.op1)
    if x.operator == "Power" and x.op2.is_number_literal:
        return pow(engine, x.op1, engine.number(x.op2.numeric_value.neg()))
    return div(engine, engine.One, x)


def pow(engine, base: BoxedExpression, exponent: BoxedExpression) -> BoxedExpression:
    """Canonical power."""
    if not (base.is_valid and exponent.is_valid):
        return engine._fn("Power", (base, exponent))

    e = _literal(exponent)
    if e is not None:
        if e.is_zero:
            return engine.One
        if e.is_one:
            return base

    b = _literal(base)
    if b is not None:
        if b.is_one:
            return engine.One
        if e is not None:
            value = _exact_power(b, e, engine.precision)
            if value is not None:
                return engine.number(value)

    if e is not None and e.is_exact and not e.is_complex and e.is_integer:
        n = e.numerator
        if base.operator == "Power" and base.op2.is_number_literal:
            return pow(engine, base.op1, engine.number(base.op2.numeric_value.mul(e)))
        if base.operator == "Negate":
            result = pow(engine, base.op1, exponent)
            return result if n % 2 == 0 else neg(engine, result)
        if base.operator == "Multiply":
            return mul(engine, [pow(engine, f, exponent) for f in base.ops])
        if base.operator == "Divide":
            return div(engine, pow(engine, base.op1, exponent), pow(engine, base.op2, exponent))

    return engine._fn("Power", (base, exponent))
