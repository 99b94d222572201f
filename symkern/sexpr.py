"""
S-expression reader and printer.

The textual form of an expression is an s-expression whose head is the
operator name:

    (Add x 1)
    (Power (Add a b) 2)
    (Rational 3 4)

parse_sexpr() produces the raw shape an Engine boxes (ints, floats,
Decimals, symbol names and nested lists); format_sexpr() is its inverse.
Numeric tokens with more than 15 significant digits are read as Decimal
so that no digits are lost.
"""

import math
import re
from decimal import Decimal
from fractions import Fraction
from typing import Any, List, Tuple

from .numeric import MACHINE_PRECISION, pad_decimal

RawExpr = Any

_NUMBER = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
_INTEGER = re.compile(r'^[+-]?\d+$')

_SPECIAL_NUMBERS = {
    "NaN": math.nan,
    "Infinity": math.inf,
    "+Infinity": math.inf,
    "-Infinity": -math.inf,
}


def tokenize(s: str) -> List[str]:
    """Split text into parentheses and atoms. `;` starts a comment."""
    tokens = []
    current = ''
    in_comment = False
    for c in s:
        if in_comment:
            if c == '\n':
                in_comment = False
            continue
        if c == ';':
            in_comment = True
        elif c in '()':
            if current:
                tokens.append(current)
                current = ''
            tokens.append(c)
        elif c.isspace():
            if current:
                tokens.append(current)
                current = ''
        else:
            current += c
    if current:
        tokens.append(current)
    return tokens


def significant_digits(token: str) -> int:
    """Count the significant digits of a numeric token."""
    mantissa = re.split(r'[eE]', token.lstrip('+-'))[0]
    digits = mantissa.replace('.', '').lstrip('0')
    return len(digits)


def parse_atom(token: str) -> RawExpr:
    """
    Parse a single atom.

    Examples:
        "42"    -> 42
        "0.5"   -> 0.5
        "x"     -> "x"
        "NaN"   -> nan
    """
    if token in _SPECIAL_NUMBERS:
        return _SPECIAL_NUMBERS[token]
    if _INTEGER.match(token):
        return int(token)
    if _NUMBER.match(token):
        if significant_digits(token) > MACHINE_PRECISION:
            return Decimal(token)
        return float(token)
    return token


def _parse_tokens(tokens: List[str], pos: int) -> Tuple[RawExpr, int]:
    token = tokens[pos]
    if token == ')':
        raise ValueError("Unbalanced parentheses: unexpected ')'")
    if token != '(':
        return parse_atom(token), pos + 1

    parts = []
    pos += 1
    while True:
        if pos >= len(tokens):
            raise ValueError("Unbalanced parentheses: missing ')'")
        if tokens[pos] == ')':
            return parts, pos + 1
        part, pos = _parse_tokens(tokens, pos)
        parts.append(part)


def parse_sexpr(s: str) -> RawExpr:
    """
    Parse an S-expression string into a raw shape.

    Examples:
        "(Add x 1)"              -> ["Add", "x", 1]
        "(Power (Add a b) 2)"    -> ["Power", ["Add", "a", "b"], 2]
        ""                       -> None

    Raises:
        ValueError: On unbalanced parentheses or trailing input
    """
    tokens = tokenize(s)
    if not tokens:
        return None
    expr, pos = _parse_tokens(tokens, 0)
    if pos != len(tokens):
        raise ValueError(f"Unexpected input after expression: {' '.join(tokens[pos:])}")
    return expr


def parse_all(s: str) -> List[RawExpr]:
    """Parse every top-level expression in `s`."""
    tokens = tokenize(s)
    result = []
    pos = 0
    while pos < len(tokens):
        expr, pos = _parse_tokens(tokens, pos)
        result.append(expr)
    return result


def format_number(x) -> str:
    if isinstance(x, bool):
        return "True" if x else "False"
    if isinstance(x, int):
        return str(x)
    if isinstance(x, float):
        if math.isnan(x):
            return "NaN"
        if math.isinf(x):
            return "Infinity" if x > 0 else "-Infinity"
        return repr(x)
    if isinstance(x, Decimal):
        if x.is_nan():
            return "NaN"
        if x.is_infinite():
            return "Infinity" if x > 0 else "-Infinity"
        # Enough digits, and no bare integer, so the text reads back as Decimal
        x = pad_decimal(x, MACHINE_PRECISION + 1)
        text = str(x)
        return f"{x:E}" if _INTEGER.match(text) else text
    if isinstance(x, Fraction):
        if x.denominator == 1:
            return str(x.numerator)
        return f"(Rational {x.numerator} {x.denominator})"
    if isinstance(x, complex):
        return f"(Complex {format_number(x.real)} {format_number(x.imag)})"
    raise TypeError(f"Not a number: {x!r}")


def format_sexpr(expr: RawExpr) -> str:
    """
    Format a raw shape as an S-expression string.

    Examples:
        ["Add", "x", 1]                  -> "(Add x 1)"
        ["Rational", 1, 2]               -> "(Rational 1 2)"
        Fraction(1, 2)                   -> "(Rational 1 2)"
    """
    if isinstance(expr, (list, tuple)):
        return "(" + " ".join(format_sexpr(e) for e in expr) + ")"
    if isinstance(expr, str):
        return expr
    if expr is None:
        return "Nothing"
    return format_number(expr)
