"""
Standard library of symbol and function definitions.

STANDARD_LIBRARY maps names to definition records. An Engine registers it
at construction; custom libraries can extend it:

    my_library = {**STANDARD_LIBRARY, "Half": {"signature": "(real) -> real", ...}}
    ce = Engine(library=my_library)

Numeric functions are marked `numeric` and canonicalize through the
check_numeric_args() fast path instead of full signature validation.
"""

import random
from functools import reduce
from typing import List, Optional, Sequence

from . import numeric as nv
from .lattice import is_subtype, widen
from .numeric import NumericValue, make_complex
from .validate import check_numeric_args

# ============================================================
# Result types
# ============================================================


def _numeric_type(ops: Sequence) -> str:
    types = [op.type for op in ops]
    if not all(is_subtype(t, "number") for t in types):
        return "number"
    return widen(*types)


def _real_or_number(ops: Sequence) -> str:
    return "real" if all(is_subtype(op.type, "real") for op in ops) else "number"


def _divide_type(ops: Sequence) -> str:
    t = _numeric_type(ops)
    return "rational" if t == "integer" else t


def _power_type(ops: Sequence) -> str:
    if len(ops) == 2 and is_subtype(ops[1].type, "integer"):
        t = _numeric_type(ops[:1])
        return "rational" if t == "integer" else t
    return "number"


# ============================================================
# Evaluation callbacks: (engine, values) -> NumericValue or None
# ============================================================

def _add(engine, values: List[NumericValue]) -> NumericValue:
    return reduce(lambda a, b: a.add(b), values, nv.ZERO)


def _multiply(engine, values: List[NumericValue]) -> NumericValue:
    return reduce(lambda a, b: a.mul(b), values, nv.ONE)


def _unary(fn):
    def evaluate(engine, values: List[NumericValue]) -> Optional[NumericValue]:
        if len(values) != 1:
            return None
        return fn(values[0], engine.precision)
    return evaluate


def _binary(fn):
    def evaluate(engine, values: List[NumericValue]) -> Optional[NumericValue]:
        if len(values) != 2:
            return None
        return fn(engine, values[0], values[1])
    return evaluate


def _complex(engine, re: NumericValue, im: NumericValue) -> Optional[NumericValue]:
    if re.is_complex or im.is_complex:
        return None
    return make_complex(re, im)


def _abs_sgn(ops) -> Optional[int]:
    if not ops[0].is_number_literal:
        return None
    return 0 if ops[0].numeric_value.is_zero else 1


def _random(engine, values: List[NumericValue]) -> NumericValue:
    return nv.MachineValue(random.random())


# ============================================================
# Canonical callbacks: (engine, ops) -> BoxedExpression or None
# ============================================================

def _canonical_negate(engine, ops):
    ops = check_numeric_args(engine, ops, count=1)
    op = ops[0]
    if op.is_number_literal:
        return engine.number(op.numeric_value.neg())
    if op.operator == "Negate" and op.is_valid:
        return op.op1
    return engine._fn("Negate", ops)


def _canonical_rational(engine, ops):
    ops = check_numeric_args(engine, ops, count=2)
    n, d = ops
    if (n.is_number_literal and d.is_number_literal
            and n.numeric_value.is_exact and d.numeric_value.is_exact):
        return engine.number(n.numeric_value.div(d.numeric_value))
    return engine._fn("Rational", ops)


def _canonical_complex(engine, ops):
    ops = check_numeric_args(engine, ops, count=2)
    re, im = ops
    if (re.is_number_literal and im.is_number_literal
            and not re.numeric_value.is_complex and not im.numeric_value.is_complex):
        return engine.number(make_complex(re.numeric_value, im.numeric_value))
    return engine._fn("Complex", ops)


# ============================================================
# Library
# ============================================================

STANDARD_LIBRARY = {
    # Constants
    "Pi": {"type": "real", "constant": True, "value": nv.pi_value,
           "flags": {"positive": True}, "description": "Ratio of a circle's circumference to its diameter"},
    "ExponentialE": {"type": "real", "constant": True, "value": nv.e_value,
                     "flags": {"positive": True}, "description": "Euler's number"},
    "ImaginaryUnit": {"type": "imaginary", "constant": True, "value": nv.I},
    "True": {"type": "boolean", "constant": True},
    "False": {"type": "boolean", "constant": True},
    "Nothing": {"type": "nothing", "constant": True},

    # Arithmetic
    "Add": {"signature": "(...number) -> number", "type": _numeric_type, "numeric": True,
            "associative": True, "threadable": True, "complexity": 1300, "evaluate": _add},
    "Multiply": {"signature": "(...number) -> number", "type": _numeric_type, "numeric": True,
                 "associative": True, "threadable": True, "complexity": 2100,
                 "evaluate": _multiply},
    "Negate": {"signature": "(number) -> number", "type": _numeric_type, "numeric": True,
               "threadable": True, "complexity": 2000, "canonical": _canonical_negate,
               "evaluate": _unary(lambda x, p: x.neg())},
    "Subtract": {"signature": "(number, number) -> number", "type": _numeric_type,
                 "numeric": True, "threadable": True, "complexity": 1350,
                 "evaluate": _binary(lambda ce, a, b: a.sub(b))},
    "Divide": {"signature": "(number, number) -> number", "type": _divide_type,
               "numeric": True, "threadable": True, "complexity": 2500,
               "evaluate": _binary(lambda ce, a, b: a.div(b))},
    "Power": {"signature": "(number, number) -> number", "type": _power_type,
              "numeric": True, "threadable": True, "complexity": 3500,
              "evaluate": _binary(lambda ce, a, b: a.pow(b, ce.precision))},
    "Sqrt": {"signature": "(number) -> number", "numeric": True, "threadable": True,
             "complexity": 3600, "evaluate": _unary(lambda x, p: x.sqrt(p))},
    "Abs": {"signature": "(number) -> real", "numeric": True, "threadable": True,
            "complexity": 1200, "evaluate": _unary(nv.absolute), "sgn": _abs_sgn},
    "Sin": {"signature": "(number) -> number", "type": _real_or_number, "numeric": True,
            "threadable": True, "complexity": 5000, "evaluate": _unary(nv.sin)},
    "Cos": {"signature": "(number) -> number", "type": _real_or_number, "numeric": True,
            "threadable": True, "complexity": 5000, "evaluate": _unary(nv.cos)},
    "Tan": {"signature": "(number) -> number", "type": _real_or_number, "numeric": True,
            "threadable": True, "complexity": 5000, "evaluate": _unary(nv.tan)},
    "Exp": {"signature": "(number) -> number", "type": _real_or_number, "numeric": True,
            "threadable": True, "complexity": 3500, "evaluate": _unary(nv.exp)},
    "Ln": {"signature": "(number) -> number", "numeric": True, "threadable": True,
           "complexity": 4000, "evaluate": _unary(nv.ln)},

    # Literal constructors
    "Rational": {"signature": "(integer, integer) -> rational", "numeric": True,
                 "complexity": 2400, "canonical": _canonical_rational,
                 "evaluate": _binary(lambda ce, n, d: n.div(d))},
    "Complex": {"signature": "(real, real) -> complex", "numeric": True,
                "complexity": 2400, "canonical": _canonical_complex,
                "evaluate": _binary(_complex)},

    # Structural
    "Sequence": {"signature": "(...any) -> any", "complexity": 9000},
    "List": {"signature": "(...any) -> list", "complexity": 8200},
    "Hold": {"signature": "(any) -> any", "lazy": True, "complexity": 9000},

    # Relational
    "Equal": {"signature": "(any, any) -> boolean", "complexity": 11000},
    "NotEqual": {"signature": "(any, any) -> boolean", "complexity": 11000},
    "Less": {"signature": "(real, real) -> boolean", "complexity": 11000},
    "LessEqual": {"signature": "(real, real) -> boolean", "complexity": 11000},
    "Greater": {"signature": "(real, real) -> boolean", "complexity": 11000},
    "GreaterEqual": {"signature": "(real, real) -> boolean", "complexity": 11000},

    # Logic
    "And": {"signature": "(...boolean) -> boolean", "associative": True, "complexity": 10000},
    "Or": {"signature": "(...boolean) -> boolean", "associative": True, "complexity": 10000},
    "Not": {"signature": "(boolean) -> boolean", "complexity": 10100},

    # Impure
    "Random": {"signature": "() -> real", "pure": False, "complexity": 8000,
               "evaluate": _random},
}
