"""
Numeric evaluation, truth values and angle helpers.

evaluate() folds an expression built from literals, constants and library
functions into a NumericValue, exactly where the operations allow it.
Anything without a numeric interpretation (unknown symbols, lazy or
user functions without an evaluate callback) yields None.
"""

from typing import Optional, Tuple

from .boxed import BoxedExpression
from .numeric import NumericValue, ZERO, ONE, pi_value
from .order import compare

RELATIONAL_OPERATORS = frozenset([
    "Equal", "NotEqual", "Less", "LessEqual", "Greater", "GreaterEqual",
])


def is_relational_operator(name: str) -> bool:
    return name in RELATIONAL_OPERATORS


def evaluate(engine, expr: BoxedExpression, numeric: bool = False) -> Optional[NumericValue]:
    """
    Evaluate `expr` to a NumericValue.

    Args:
        engine: Owning engine
        expr: Expression to evaluate
        numeric: If True, move the result into the approximate lane at the
            engine precision

    Returns:
        The value, or None if the expression has no numeric value
    """
    if not expr.is_valid:
        return None

    if expr.is_number_literal:
        value = expr.numeric_value
    elif expr.is_symbol:
        value = engine.numeric_constant(expr.symbol)
    elif expr.is_function:
        definition = expr.definition
        if definition is None or definition.evaluate is None or definition.lazy:
            return None
        args = []
        for op in expr.ops:
            v = evaluate(engine, op, numeric)
            if v is None:
                return None
            args.append(v)
        value = definition.evaluate(engine, args)
    else:
        return None

    if value is not None and numeric:
        value = value.approximate(engine.precision)
    return value


def is_true(engine, expr: BoxedExpression) -> Optional[bool]:
    """
    Three-valued truth of a predicate expression.

    Returns True or False when the truth value is known, None otherwise.
    """
    if expr.symbol == "True":
        return True
    if expr.symbol == "False":
        return False

    operator = expr.operator
    if operator in RELATIONAL_OPERATORS and expr.nops == 2:
        c = _compare_values(engine, expr.op1, expr.op2)
        if c is None:
            return None
        return {
            "Equal": c == 0,
            "NotEqual": c != 0,
            "Less": c < 0,
            "LessEqual": c <= 0,
            "Greater": c > 0,
            "GreaterEqual": c >= 0,
        }[operator]

    if operator == "Not" and expr.nops == 1:
        value = is_true(engine, expr.op1)
        return None if value is None else not value

    if operator in ("And", "Or"):
        values = [is_true(engine, op) for op in expr.ops]
        decisive = operator == "Or"
        if decisive in values:
            return decisive
        if None in values:
            return None
        return not decisive

    return None


def _compare_values(engine, a: BoxedExpression, b: BoxedExpression) -> Optional[int]:
    c = compare(a, b)
    if c is not None:
        return c
    x, y = evaluate(engine, a, numeric=True), evaluate(engine, b, numeric=True)
    if x is None or y is None:
        return None
    return x.compare(y)


# ============================================================
# Imaginary factors
# ============================================================

def get_imaginary_factor(expr: BoxedExpression) -> Optional[BoxedExpression]:
    """
    Return k such that expr = k * ImaginaryUnit, or None.

    Examples:
        ImaginaryUnit                    -> 1
        (Complex 0 3)                    -> 3
        (Negate (Multiply 2 ImaginaryUnit)) -> -2
        (Divide ImaginaryUnit 4)         -> 1/4
    """
    engine = expr.engine
    if expr.symbol == "ImaginaryUnit":
        return engine.One

    if expr.is_number_literal:
        value = expr.numeric_value
        if value.is_purely_imaginary:
            return engine.number(value.im)
        return None

    if expr.operator == "Negate":
        k = get_imaginary_factor(expr.op1)
        return None if k is None else k.neg()

    if expr.operator == "Complex" and expr.nops == 2:
        if expr.op1.is_number_literal and expr.op1.numeric_value.is_zero:
            return expr.op2
        return None

    if expr.operator == "Multiply" and expr.nops == 2:
        op1, op2 = expr.ops
        if op1.symbol == "ImaginaryUnit":
            return op2
        if op2.symbol == "ImaginaryUnit":
            return op1
        if op2.is_number_literal and op2.numeric_value.is_purely_imaginary:
            return op1.mul(engine.number(op2.numeric_value.im))
        if op1.is_number_literal and op1.numeric_value.is_purely_imaginary:
            return op2.mul(engine.number(op1.numeric_value.im))

    if expr.operator == "Divide" and expr.nops == 2:
        denominator = expr.op2
        if denominator.is_number_literal and denominator.numeric_value.is_zero:
            return None
        k = get_imaginary_factor(expr.op1)
        return None if k is None else k.div(denominator)

    return None


# ============================================================
# Angles
# ============================================================

def angle_to_radians(engine, x: BoxedExpression) -> BoxedExpression:
    """Convert an angle in the engine's angular unit to radians."""
    unit = engine.angular_unit
    if unit == "deg":
        return engine.div(engine.mul(x, engine.Pi), engine.number(180))
    if unit == "grad":
        return engine.div(engine.mul(x, engine.Pi), engine.number(200))
    if unit == "turn":
        return engine.mul(x, engine.Pi, engine.number(2))
    return x


def get_pi_term(engine, expr: BoxedExpression) -> Tuple[NumericValue, NumericValue]:
    """
    Return (k, t) such that expr = k * Pi + t.

    The decomposition recurses through Negate, binary Add, Multiply by a
    numeric literal and Divide by a numeric literal. Any other expression
    contributes its numeric value (or 0) to t.
    """
    if expr.symbol == "Pi":
        return ONE, ZERO

    if expr.operator == "Negate":
        k, t = get_pi_term(engine, expr.op1)
        return k.neg(), t.neg()

    if expr.operator == "Add" and expr.nops == 2:
        k1, t1 = get_pi_term(engine, expr.op1)
        k2, t2 = get_pi_term(engine, expr.op2)
        return k1.add(k2), t1.add(t2)

    if expr.operator == "Multiply" and expr.nops == 2:
        for factor, other in ((expr.op1, expr.op2), (expr.op2, expr.op1)):
            if factor.is_number_literal:
                k, t = get_pi_term(engine, other)
                n = factor.numeric_value
                return k.mul(n), t.mul(n)

    if expr.operator == "Divide" and expr.nops == 2 and expr.op2.is_number_literal:
        k, t = get_pi_term(engine, expr.op1)
        d = expr.op2.numeric_value
        return k.div(d), t.div(d)

    value = evaluate(engine, expr, numeric=True)
    return ZERO, value if value is not None else ZERO


def canonical_angle(engine, x: BoxedExpression) -> BoxedExpression:
    """
    Reduce an angle to radians, modulo 2*Pi.

    The angle is converted from the engine's angular unit, decomposed as
    k*Pi + t, and k is reduced modulo 2. Angles without a real numeric
    value are returned in radians, unreduced.
    """
    theta = angle_to_radians(engine, x)
    value = evaluate(engine, theta, numeric=True)
    if value is None or value.is_complex:
        return theta

    k, t = get_pi_term(engine, theta)
    if k.is_zero:
        return engine.number(t)

    k = k.mod(2)
    return engine.number(t.add(pi_value(engine.precision).mul(k)))
