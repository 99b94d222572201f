"""
Numeric value tower for symkern.

Four kinds of scalar values:

    RationalValue  - exact rational (fractions.Fraction), always reduced
    BigValue       - arbitrary-precision real (decimal.Decimal) tagged with
                     the precision it was computed at
    MachineValue   - machine double (float)
    ComplexValue   - real and imaginary parts, each one of the above

Lane rules for arithmetic:
    exact  (op) exact    -> exact
    big    (op) anything -> big, at the larger precision involved
    machine(op) exact    -> machine

Results that cannot stay exact (irrational powers, transcendental
functions) land in the approximate lane chosen by the caller's precision:
machine floats up to MACHINE_PRECISION digits, Decimal above it.

Python integers are unbounded, so numerators and denominators never
overflow: a rational that outgrows the machine range keeps growing
without the caller noticing.
"""

import cmath
import math
from decimal import Decimal, ROUND_FLOOR, getcontext, localcontext
from fractions import Fraction
from functools import lru_cache
from typing import Callable, Dict, Optional, Union

# Number of significant decimal digits a machine double carries reliably
MACHINE_PRECISION = 15


def bignum_preferred(precision: int) -> bool:
    """Whether approximate results at `precision` digits need Decimal."""
    return precision > MACHINE_PRECISION


# ============================================================
# Decimal constants and functions (recipes from the decimal docs)
# ============================================================

@lru_cache(maxsize=None)
def decimal_pi(precision: int) -> Decimal:
    """Compute pi to `precision` significant digits."""
    with localcontext() as ctx:
        ctx.prec = precision + 2
        three = Decimal(3)
        lasts, t, s, n, na, d, da = 0, three, 3, 1, 0, 0, 24
        while s != lasts:
            lasts = s
            n, na = n + na, na + 8
            d, da = d + da, da + 32
            t = (t * n) / d
            s += t
    with localcontext() as ctx:
        ctx.prec = precision
        return +s


@lru_cache(maxsize=None)
def decimal_e(precision: int) -> Decimal:
    """Compute e to `precision` significant digits."""
    with localcontext() as ctx:
        ctx.prec = precision
        return Decimal(1).exp()


def _rounded(x: Decimal, precision: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = precision
        return +x


def _reduce_angle(x: Decimal, precision: int):
    """Reduce x into [-pi, pi); return it with the working precision used."""
    working = precision + max(0, x.adjusted()) + 4
    with localcontext() as ctx:
        ctx.prec = working
        pi = decimal_pi(working)
        return _decimal_mod(x + pi, 2 * pi) - pi, working


def _decimal_cos(x: Decimal, precision: int) -> Decimal:
    if not x.is_finite():
        return Decimal("NaN")
    x, working = _reduce_angle(x, precision)
    with localcontext() as ctx:
        ctx.prec = working + 2
        i, lasts, s, fact, num, sign = 0, 0, 1, 1, 1, 1
        while s != lasts:
            lasts = s
            i += 2
            fact *= i * (i - 1)
            num *= x * x
            sign *= -1
            s += num / fact * sign
    return _rounded(s, precision)


def _decimal_sin(x: Decimal, precision: int) -> Decimal:
    if not x.is_finite():
        return Decimal("NaN")
    x, working = _reduce_angle(x, precision)
    with localcontext() as ctx:
        ctx.prec = working + 2
        i, lasts, s, fact, num, sign = 1, 0, x, 1, x, 1
        while s != lasts:
            lasts = s
            i += 2
            fact *= i * (i - 1)
            num *= x * x
            sign *= -1
            s += num / fact * sign
    return _rounded(s, precision)


def _decimal_sinh_cosh(x: Decimal, precision: int):
    with localcontext() as ctx:
        # Guard digits for the cancellation in sinh near zero
        ctx.prec = precision + 2 + max(0, -x.adjusted())
        ex = x.exp()
        emx = 1 / ex
        return (ex - emx) / 2, (ex + emx) / 2


def _decimal_atan(x: Decimal, precision: int) -> Decimal:
    if x < 0:
        return -_decimal_atan(-x, precision)
    with localcontext() as ctx:
        ctx.prec = precision + 5
        # atan(x) = 2 atan(x / (1 + sqrt(1 + x^2))) until the series converges fast
        doublings = 0
        while x > Decimal("0.1"):
            x = x / (1 + (1 + x * x).sqrt())
            doublings += 1
        x2, term, s, n, lasts = x * x, x, x, 1, 0
        while s != lasts:
            lasts = s
            term *= -x2
            n += 2
            s += term / n
        s *= 2 ** doublings
    return _rounded(s, precision)


def _decimal_atan2(y: Decimal, x: Decimal, precision: int) -> Decimal:
    working = precision + 2
    with localcontext() as ctx:
        ctx.prec = working
        pi = decimal_pi(working)
        if x > 0:
            angle = _decimal_atan(y / x, working)
        elif x < 0:
            angle = _decimal_atan(y / x, working) + (pi if y >= 0 else -pi)
        elif y:
            angle = pi / 2 if y > 0 else -pi / 2
        else:
            angle = Decimal(0)
    return _rounded(angle, precision)


def _decimal_mod(x: Decimal, y: Decimal) -> Decimal:
    # Floored modulo: the result has the sign of the divisor
    q = (x / y).to_integral_value(rounding=ROUND_FLOOR)
    return x - y * q


def pad_decimal(value: Decimal, digits: int) -> Decimal:
    """Append trailing zeros until the coefficient has `digits` digits."""
    if not value.is_finite():
        return value
    sign, coefficient, exponent = value.as_tuple()
    missing = digits - len(coefficient)
    if missing <= 0:
        return value
    return Decimal((sign, coefficient + (0,) * missing, exponent - missing))



def _exact_root(value: Fraction, n: int) -> Optional[Fraction]:
    """Return the exact n-th root of a non-negative rational, if any."""
    def int_root(k: int) -> Optional[int]:
        if k < 2:
            return k
        guess = int(round(k ** (1.0 / n))) if k.bit_length() < 1000 else None
        if guess is None:
            return None
        for candidate in (guess - 1, guess, guess + 1):
            if candidate >= 0 and candidate ** n == k:
                return candidate
        return None

    num = int_root(value.numerator)
    if num is None:
        return None
    den = int_root(value.denominator)
    if den is None:
        return None
    return Fraction(num, den)


# ============================================================
# Numeric values
# ============================================================

class NumericValue:
    """
    Base class of the numeric tower.

    Values are immutable. Binary operations accept another NumericValue or
    a plain Python number (int, float, Fraction, Decimal, complex).
    """

    __slots__ = ()

    is_exact = False
    is_complex = False

    # Parts ------------------------------------------------------------

    @property
    def re(self) -> "NumericValue":
        return self

    @property
    def im(self) -> "NumericValue":
        return ZERO

    # Arithmetic -------------------------------------------------------

    def add(self, other) -> "NumericValue":
        return _binary(self, numeric_value(other), "add")

    def sub(self, other) -> "NumericValue":
        return _binary(self, numeric_value(other), "sub")

    def mul(self, other) -> "NumericValue":
        return _binary(self, numeric_value(other), "mul")

    def div(self, other) -> "NumericValue":
        return _binary(self, numeric_value(other), "div")

    def mod(self, other) -> "NumericValue":
        return _binary(self, numeric_value(other), "mod")

    def neg(self) -> "NumericValue":
        raise NotImplementedError

    def inv(self) -> "NumericValue":
        return ONE.div(self)

    def pow(self, exponent, precision: int = MACHINE_PRECISION) -> "NumericValue":
        return _pow(self, numeric_value(exponent), precision)

    def sqrt(self, precision: int = MACHINE_PRECISION) -> "NumericValue":
        return _pow(self, HALF, precision)

    def compare(self, other) -> Optional[int]:
        """Three-way comparison: -1, 0, 1, or None if incomparable."""
        return _compare(self, numeric_value(other))

    # Conversion -------------------------------------------------------

    def approximate(self, precision: int = MACHINE_PRECISION) -> "NumericValue":
        """Move the value into the approximate lane selected by `precision`."""
        return self

    def to_float(self) -> float:
        raise NotImplementedError

    def to_complex(self) -> complex:
        return complex(self.re.to_float(), self.im.to_float())

    # Predicates -------------------------------------------------------

    @property
    def is_zero(self) -> bool:
        return False

    @property
    def is_one(self) -> bool:
        return False

    @property
    def is_negative_one(self) -> bool:
        return False

    @property
    def is_nan(self) -> bool:
        return False

    @property
    def is_finite(self) -> bool:
        return True

    @property
    def is_integer(self) -> bool:
        return False

    @property
    def is_negative(self) -> Optional[bool]:
        return None

    @property
    def is_purely_imaginary(self) -> bool:
        return False

    def numeric_type(self) -> str:
        """The most specific type of this value in the type lattice."""
        raise NotImplementedError


class _RealValue(NumericValue):
    """Shared behavior of the three real lanes."""

    __slots__ = ()

    def to_fraction(self) -> Fraction:
        raise NotImplementedError

    def to_decimal(self, precision: int) -> Decimal:
        raise NotImplementedError

    @property
    def is_negative(self) -> Optional[bool]:
        if self.is_nan:
            return None
        return self.compare(ZERO) < 0

    def numeric_type(self) -> str:
        if self.is_nan:
            return "number"
        return "integer" if self.is_integer else ("rational" if self.is_exact else "real")


class RationalValue(_RealValue):
    """Exact rational number backed by fractions.Fraction."""

    __slots__ = ("value",)

    is_exact = True

    def __init__(self, value: Union[int, Fraction]):
        object.__setattr__(self, "value", Fraction(value))

    def __setattr__(self, name, value):
        raise AttributeError("RationalValue is immutable")

    def neg(self) -> "RationalValue":
        return RationalValue(-self.value)

    def to_fraction(self) -> Fraction:
        return self.value

    def to_float(self) -> float:
        try:
            return float(self.value)
        except OverflowError:
            return math.inf if self.value > 0 else -math.inf

    def to_decimal(self, precision: int) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = precision
            return Decimal(self.value.numerator) / Decimal(self.value.denominator)

    def approximate(self, precision: int = MACHINE_PRECISION) -> NumericValue:
        if bignum_preferred(precision):
            return BigValue(self.to_decimal(precision), precision)
        return MachineValue(self.to_float())

    @property
    def numerator(self) -> int:
        return self.value.numerator

    @property
    def denominator(self) -> int:
        return self.value.denominator

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    @property
    def is_one(self) -> bool:
        return self.value == 1

    @property
    def is_negative_one(self) -> bool:
        return self.value == -1

    @property
    def is_integer(self) -> bool:
        return self.value.denominator == 1

    def __eq__(self, other) -> bool:
        return isinstance(other, RationalValue) and self.value == other.value

    def __hash__(self) -> int:
        return hash(("rational", self.value))

    def __repr__(self) -> str:
        return f"RationalValue({self.value})"

    def __str__(self) -> str:
        return str(self.value)


class BigValue(_RealValue):
    """Arbitrary-precision real, with the precision it was computed at."""

    __slots__ = ("value", "precision")

    def __init__(self, value: Decimal, precision: int):
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "precision", precision)

    def __setattr__(self, name, value):
        raise AttributeError("BigValue is immutable")

    def neg(self) -> "BigValue":
        return BigValue(-self.value, self.precision)

    def to_fraction(self) -> Fraction:
        return Fraction(self.value)

    def to_float(self) -> float:
        return float(self.value)

    def to_decimal(self, precision: int) -> Decimal:
        return self.value

    @property
    def is_zero(self) -> bool:
        return self.value.is_zero()

    @property
    def is_one(self) -> bool:
        return self.value == 1

    @property
    def is_negative_one(self) -> bool:
        return self.value == -1

    @property
    def is_nan(self) -> bool:
        return self.value.is_nan()

    @property
    def is_finite(self) -> bool:
        return self.value.is_finite()

    @property
    def is_integer(self) -> bool:
        return self.value.is_finite() and self.value == self.value.to_integral_value()

    def __eq__(self, other) -> bool:
        if not isinstance(other, BigValue):
            return False
        if self.is_nan and other.is_nan:
            return True
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(("big", "nan" if self.is_nan else self.value))

    def __repr__(self) -> str:
        return f"BigValue({self.value}, precision={self.precision})"

    def __str__(self) -> str:
        return str(self.value)


class MachineValue(_RealValue):
    """Machine double."""

    __slots__ = ("value",)

    def __init__(self, value: float):
        object.__setattr__(self, "value", float(value))

    def __setattr__(self, name, value):
        raise AttributeError("MachineValue is immutable")

    def neg(self) -> "MachineValue":
        return MachineValue(-self.value)

    def to_fraction(self) -> Fraction:
        return Fraction(self.value)

    def to_float(self) -> float:
        return self.value

    def to_decimal(self, precision: int) -> Decimal:
        return Decimal(self.value)

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    @property
    def is_one(self) -> bool:
        return self.value == 1

    @property
    def is_negative_one(self) -> bool:
        return self.value == -1

    @property
    def is_nan(self) -> bool:
        return math.isnan(self.value)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.value)

    @property
    def is_integer(self) -> bool:
        return self.value.is_integer()

    def __eq__(self, other) -> bool:
        if not isinstance(other, MachineValue):
            return False
        if self.is_nan and other.is_nan:
            return True
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(("machine", "nan" if self.is_nan else self.value))

    def __repr__(self) -> str:
        return f"MachineValue({self.value!r})"

    def __str__(self) -> str:
        return repr(self.value)


class ComplexValue(NumericValue):
    """Complex number whose parts are real values from any lane."""

    __slots__ = ("_re", "_im")

    is_complex = True

    def __init__(self, re: _RealValue, im: _RealValue):
        object.__setattr__(self, "_re", re)
        object.__setattr__(self, "_im", im)

    def __setattr__(self, name, value):
        raise AttributeError("ComplexValue is immutable")

    @property
    def re(self) -> _RealValue:
        return self._re

    @property
    def im(self) -> _RealValue:
        return self._im

    @property
    def is_exact(self) -> bool:
        return self._re.is_exact and self._im.is_exact

    def neg(self) -> NumericValue:
        return make_complex(self._re.neg(), self._im.neg())

    def conjugate(self) -> NumericValue:
        return make_complex(self._re, self._im.neg())

    def approximate(self, precision: int = MACHINE_PRECISION) -> NumericValue:
        return make_complex(self._re.approximate(precision), self._im.approximate(precision))

    def to_float(self) -> float:
        raise TypeError("Cannot convert a complex value to a float")

    @property
    def is_nan(self) -> bool:
        return self._re.is_nan or self._im.is_nan

    @property
    def is_finite(self) -> bool:
        return self._re.is_finite and self._im.is_finite

    @property
    def is_purely_imaginary(self) -> bool:
        return self._re.is_zero and not self._im.is_zero

    def numeric_type(self) -> str:
        return "imaginary" if self._re.is_zero else "complex"

    def __eq__(self, other) -> bool:
        return (isinstance(other, ComplexValue)
                and self._re == other._re and self._im == other._im)

    def __hash__(self) -> int:
        return hash(("complex", self._re, self._im))

    def __repr__(self) -> str:
        return f"ComplexValue({self._re!r}, {self._im!r})"

    def __str__(self) -> str:
        sign = "-" if self._im.is_negative else "+"
        magnitude = self._im.neg() if self._im.is_negative else self._im
        return f"{self._re} {sign} {magnitude}i"


# ============================================================
# Construction
# ============================================================

def make_complex(re: NumericValue, im: NumericValue) -> NumericValue:
    """Build a complex value, collapsing to the real part when im is zero."""
    if im.is_zero:
        return re
    return ComplexValue(re, im)


def numeric_value(x, precision: Optional[int] = None) -> NumericValue:
    """
    Convert a Python number to a NumericValue.

    Args:
        x: int, Fraction, float, Decimal, complex or NumericValue
        precision: Precision to tag Decimal inputs with (defaults to the
            current decimal context precision)

    Raises:
        TypeError: If x is not a number (booleans are rejected)
    """
    if isinstance(x, NumericValue):
        return x
    if isinstance(x, bool):
        raise TypeError("Booleans are not numeric values")
    if isinstance(x, (int, Fraction)):
        return RationalValue(x)
    if isinstance(x, float):
        return MachineValue(x)
    if isinstance(x, Decimal):
        return BigValue(x, precision or getcontext().prec)
    if isinstance(x, complex):
        return make_complex(MachineValue(x.real), MachineValue(x.imag))
    raise TypeError(f"Cannot convert {x!r} to a numeric value")


def _from_complex(z: complex) -> NumericValue:
    return make_complex(MachineValue(z.real), MachineValue(z.imag))


ZERO = RationalValue(0)
ONE = RationalValue(1)
TWO = RationalValue(2)
HALF = RationalValue(Fraction(1, 2))
NEGATIVE_ONE = RationalValue(-1)
NAN = MachineValue(math.nan)
I = ComplexValue(ZERO, ONE)


# ============================================================
# Arithmetic kernels
# ============================================================

_EXACT_OPS = {
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "mul": lambda a, b: a * b,
    "div": lambda a, b: a / b,
    "mod": lambda a, b: a % b,
}

_FLOAT_OPS = _EXACT_OPS

_DECIMAL_OPS = {
    **_EXACT_OPS,
    "mod": _decimal_mod,
}


def _real_binary(a: _RealValue, b: _RealValue, op: str) -> NumericValue:
    if op in ("div", "mod") and b.is_zero:
        return NAN

    if isinstance(a, BigValue) or isinstance(b, BigValue):
        precision = max(x.precision for x in (a, b) if isinstance(x, BigValue))
        with localcontext() as ctx:
            ctx.prec = precision
            result = _DECIMAL_OPS[op](a.to_decimal(precision), b.to_decimal(precision))
        return BigValue(result, precision)

    if isinstance(a, MachineValue) or isinstance(b, MachineValue):
        try:
            return MachineValue(_FLOAT_OPS[op](a.to_float(), b.to_float()))
        except OverflowError:
            return NAN

    return RationalValue(_EXACT_OPS[op](a.value, b.value))


def _complex_binary(a: NumericValue, b: NumericValue, op: str) -> NumericValue:
    ar, ai, br, bi = a.re, a.im, b.re, b.im
    if op == "add":
        return make_complex(ar.add(br), ai.add(bi))
    if op == "sub":
        return make_complex(ar.sub(br), ai.sub(bi))
    if op == "mul":
        return make_complex(ar.mul(br).sub(ai.mul(bi)), ar.mul(bi).add(ai.mul(br)))
    if op == "div":
        denominator = br.mul(br).add(bi.mul(bi))
        if denominator.is_zero:
            return NAN
        re = ar.mul(br).add(ai.mul(bi)).div(denominator)
        im = ai.mul(br).sub(ar.mul(bi)).div(denominator)
        return make_complex(re, im)
    # Modulo is not defined over the complex plane
    return NAN


def _binary(a: NumericValue, b: NumericValue, op: str) -> NumericValue:
    if a.is_complex or b.is_complex:
        return _complex_binary(a, b, op)
    return _real_binary(a, b, op)


def _compare(a: NumericValue, b: NumericValue) -> Optional[int]:
    if a.is_nan or b.is_nan:
        return None
    if a.is_complex or b.is_complex:
        # Complex values are only comparable for equality
        if _compare(a.re, b.re) == 0 and _compare(a.im, b.im) == 0:
            return 0
        return None
    if a.is_finite and b.is_finite:
        x, y = a.to_fraction(), b.to_fraction()
    else:
        x, y = a.to_float(), b.to_float()
    return (x > y) - (x < y)


def _pow_integer(base: NumericValue, n: int) -> NumericValue:
    """Raise to an integer power by repeated squaring (keeps exactness)."""
    if n < 0:
        return _pow_integer(base, -n).inv()
    result: NumericValue = ONE
    while n:
        if n & 1:
            result = result.mul(base)
        base = base.mul(base)
        n >>= 1
    return result


def _pow(base: NumericValue, exponent: NumericValue, precision: int) -> NumericValue:
    if base.is_nan or exponent.is_nan:
        return NAN

    if exponent.is_exact and not exponent.is_complex and exponent.is_integer:
        n = exponent.numerator
        if base.is_zero and n < 0:
            return NAN
        if isinstance(base, RationalValue):
            return RationalValue(base.value ** n)
        if isinstance(base, MachineValue):
            try:
                return MachineValue(base.value ** n)
            except OverflowError:
                return MachineValue(math.inf)
        if isinstance(base, BigValue):
            with localcontext() as ctx:
                ctx.prec = base.precision
                return BigValue(base.value ** n, base.precision)
        return _pow_integer(base, n)

    if (not base.is_complex and not exponent.is_complex and base.is_negative
            and not exponent.is_integer and base.is_finite and exponent.is_finite):
        return _pow_negative(base, exponent, precision)

    if base.is_complex or exponent.is_complex:
        try:
            return _from_complex(base.to_complex() ** exponent.to_complex())
        except (OverflowError, ZeroDivisionError):
            return NAN

    if isinstance(base, RationalValue) and isinstance(exponent, RationalValue):
        root = _exact_root(base.value, exponent.denominator)
        if root is not None:
            return RationalValue(root ** exponent.numerator)

    if (isinstance(base, BigValue) or isinstance(exponent, BigValue)
            or (base.is_exact and exponent.is_exact and bignum_preferred(precision))):
        precision = max([precision] + [x.precision for x in (base, exponent)
                                       if isinstance(x, BigValue)])
        with localcontext() as ctx:
            ctx.prec = precision
            result = base.to_decimal(precision) ** exponent.to_decimal(precision)
        return BigValue(result, precision)

    try:
        return MachineValue(base.to_float() ** exponent.to_float())
    except OverflowError:
        return MachineValue(math.inf)


def _pow_negative(base: _RealValue, exponent: _RealValue, precision: int) -> NumericValue:
    """Principal value of a negative real raised to a non-integer real power."""
    magnitude = _pow(base.neg(), exponent, precision)
    ratio = exponent.to_fraction()
    if ratio.denominator == 2:
        # (-b)^(p/2) = i^p * b^(p/2), p odd
        return make_complex(ZERO, magnitude if ratio.numerator % 4 == 1 else magnitude.neg())
    lane = _big_lane([base, exponent], precision) or MACHINE_PRECISION
    magnitude = magnitude.approximate(lane)
    angle = pi_value(lane).mul(exponent)
    return make_complex(magnitude.mul(cos(angle, lane)), magnitude.mul(sin(angle, lane)))


# ============================================================
# Constants and elementary functions
# ============================================================

def pi_value(precision: int = MACHINE_PRECISION) -> NumericValue:
    """Numeric value of pi in the lane selected by `precision`."""
    if bignum_preferred(precision):
        return BigValue(decimal_pi(precision), precision)
    return MachineValue(math.pi)


def e_value(precision: int = MACHINE_PRECISION) -> NumericValue:
    """Numeric value of e in the lane selected by `precision`."""
    if bignum_preferred(precision):
        return BigValue(decimal_e(precision), precision)
    return MachineValue(math.e)


NUMERIC_CONSTANTS: Dict[str, Callable[[int], NumericValue]] = {
    "Pi": pi_value,
    "ExponentialE": e_value,
    "ImaginaryUnit": lambda precision: I,
}


def _big_lane(values, precision: int) -> Optional[int]:
    """Working precision of the Decimal lane for `values`, or None for machine floats."""
    parts = [part for value in values for part in (value.re, value.im)]
    bigs = [part.precision for part in parts if isinstance(part, BigValue)]
    if bigs:
        return max([precision] + bigs)
    if all(part.is_exact for part in parts) and bignum_preferred(precision):
        return precision
    return None


def _approximate_unary(x: NumericValue, precision: int,
                       machine: Callable[[float], float],
                       complex_fn: Callable[[complex], complex],
                       big: Callable[[Decimal, int], Decimal],
                       big_complex: Callable[[Decimal, Decimal, int], tuple]) -> NumericValue:
    lane = _big_lane([x], precision)
    if x.is_complex:
        if lane is None:
            return _from_complex(complex_fn(x.to_complex()))
        re, im = big_complex(x.re.to_decimal(lane), x.im.to_decimal(lane), lane)
        return make_complex(BigValue(re, lane), BigValue(im, lane))
    if lane is not None:
        return BigValue(big(x.to_decimal(lane), lane), lane)
    try:
        return MachineValue(machine(x.to_float()))
    except (ValueError, OverflowError):
        return _from_complex(complex_fn(complex(x.to_float())))


def _decimal_exp(x: Decimal, precision: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = precision
        return x.exp()


def _decimal_ln(x: Decimal, precision: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = precision
        return x.ln()


def _decimal_tan(x: Decimal, precision: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = precision
        return _decimal_sin(x, precision + 2) / _decimal_cos(x, precision + 2)


# Complex arguments in the Decimal lane: (re, im, precision) -> (re, im)

def _complex_sin(a: Decimal, b: Decimal, precision: int):
    working = precision + 2
    sinh, cosh = _decimal_sinh_cosh(b, working)
    with localcontext() as ctx:
        ctx.prec = working
        re = _decimal_sin(a, working) * cosh
        im = _decimal_cos(a, working) * sinh
    return _rounded(re, precision), _rounded(im, precision)


def _complex_cos(a: Decimal, b: Decimal, precision: int):
    working = precision + 2
    sinh, cosh = _decimal_sinh_cosh(b, working)
    with localcontext() as ctx:
        ctx.prec = working
        re = _decimal_cos(a, working) * cosh
        im = -_decimal_sin(a, working) * sinh
    return _rounded(re, precision), _rounded(im, precision)


def _complex_tan(a: Decimal, b: Decimal, precision: int):
    working = precision + 4
    p, q = _complex_sin(a, b, working)
    r, s = _complex_cos(a, b, working)
    with localcontext() as ctx:
        ctx.prec = working
        denominator = r * r + s * s
        re = (p * r + q * s) / denominator
        im = (q * r - p * s) / denominator
    return _rounded(re, precision), _rounded(im, precision)


def _complex_exp(a: Decimal, b: Decimal, precision: int):
    working = precision + 2
    with localcontext() as ctx:
        ctx.prec = working
        modulus = a.exp()
        re = modulus * _decimal_cos(b, working)
        im = modulus * _decimal_sin(b, working)
    return _rounded(re, precision), _rounded(im, precision)


def _complex_ln(a: Decimal, b: Decimal, precision: int):
    working = precision + 2
    with localcontext() as ctx:
        ctx.prec = working
        re = (a * a + b * b).ln() / 2
    return _rounded(re, precision), _decimal_atan2(b, a, precision)


def sin(x: NumericValue, precision: int = MACHINE_PRECISION) -> NumericValue:
    if x.is_zero:
        return ZERO
    return _approximate_unary(x, precision, math.sin, cmath.sin, _decimal_sin, _complex_sin)


def cos(x: NumericValue, precision: int = MACHINE_PRECISION) -> NumericValue:
    if x.is_zero:
        return ONE
    return _approximate_unary(x, precision, math.cos, cmath.cos, _decimal_cos, _complex_cos)


def tan(x: NumericValue, precision: int = MACHINE_PRECISION) -> NumericValue:
    if x.is_zero:
        return ZERO
    return _approximate_unary(x, precision, math.tan, cmath.tan, _decimal_tan, _complex_tan)


def exp(x: NumericValue, precision: int = MACHINE_PRECISION) -> NumericValue:
    if x.is_zero:
        return ONE
    return _approximate_unary(x, precision, math.exp, cmath.exp, _decimal_exp, _complex_exp)


def ln(x: NumericValue, precision: int = MACHINE_PRECISION) -> NumericValue:
    if x.is_one:
        return ZERO
    if x.is_zero:
        return MachineValue(-math.inf)
    if not x.is_complex and x.is_negative:
        # ln(-x) = ln(x) + i*pi, with pi in the lane of x
        lane = _big_lane([x], precision) or MACHINE_PRECISION
        return make_complex(ln(x.neg(), lane), pi_value(lane))
    return _approximate_unary(x, precision, math.log, cmath.log, _decimal_ln, _complex_ln)


def absolute(x: NumericValue, precision: int = MACHINE_PRECISION) -> NumericValue:
    if x.is_complex:
        return x.re.mul(x.re).add(x.im.mul(x.im)).sqrt(precision)
    return x.neg() if x.is_negative else x
