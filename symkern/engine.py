"""
The Engine: configuration, definitions and expression construction.

An Engine owns its definitions table and the arena of interned canonical
expressions, and is the factory for every boxed expression:

    ce = Engine()
    expr = ce.parse("(Power (Add a b) 2)")
    ce.expand(expr)              # (Add (Power a 2) (Multiply 2 a b) (Power b 2))
    ce.compare(1, "Pi")          # -1

Options:
    precision     Significant digits of approximate results: a positive
                  int, or "machine" (15)
    strict        Validate operands of function applications
    angular_unit  "rad", "deg", "grad" or "turn"
    library       Definition records registered at construction

Engines are not thread-safe: inference mutates the definitions table.
"""

import logging
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from . import arithmetic, order
from .boxed import BoxedError, BoxedExpression, BoxedFunction, BoxedNumber, BoxedSymbol
from .definitions import DefinitionTable, FunctionDefinition
from .evaluate import canonical_angle, evaluate, is_true
from .expand import expand as _expand, expand_all as _expand_all
from .library import STANDARD_LIBRARY
from .numeric import (
    MACHINE_PRECISION, NAN, NumericValue, bignum_preferred, numeric_value,
)
from .sexpr import format_sexpr, parse_sexpr
from .validate import check_numeric_args, flatten_ops, validate_arguments

logger = logging.getLogger(__name__)

ANGULAR_UNITS = ("rad", "deg", "grad", "turn")


class Engine:
    """Context and factory for boxed expressions."""

    def __init__(self, precision: Union[int, str] = MACHINE_PRECISION, strict: bool = True,
                 angular_unit: str = "rad", library: Optional[Dict[str, Any]] = None):
        self._precision = MACHINE_PRECISION
        self._angular_unit = "rad"
        self._constants: Dict[str, Optional[NumericValue]] = {}
        self._interned: Dict[BoxedExpression, BoxedExpression] = {}
        self.definitions = DefinitionTable()

        self.precision = precision
        self.angular_unit = angular_unit
        self.strict = bool(strict)

        for name, record in (STANDARD_LIBRARY if library is None else library).items():
            self.declare(name, record)

    # ============================================================
    # Configuration
    # ============================================================

    @property
    def precision(self) -> int:
        return self._precision

    @precision.setter
    def precision(self, value: Union[int, str]) -> None:
        if value == "machine":
            value = MACHINE_PRECISION
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"Precision must be a positive integer or 'machine', got {value!r}")
        if value != self._precision:
            logger.debug("Precision changed from %d to %d", self._precision, value)
            self._constants.clear()
        self._precision = value

    def bignum_preferred(self) -> bool:
        """True when approximate results are computed with Decimal."""
        return bignum_preferred(self._precision)

    @property
    def angular_unit(self) -> str:
        return self._angular_unit

    @angular_unit.setter
    def angular_unit(self, value: str) -> None:
        if value not in ANGULAR_UNITS:
            raise ValueError(f"Angular unit must be one of {', '.join(ANGULAR_UNITS)}, got {value!r}")
        self._angular_unit = value

    # ============================================================
    # Definitions
    # ============================================================

    def declare(self, name: str, definition) -> None:
        """
        Declare a symbol or function.

        Args:
            name: Symbol or function name
            definition: A definition object, a definition record (dict), or
                a type name for a symbol ("real", "integer", ...)

        Raises:
            DefinitionError: If the definition is malformed or `name` is
                already defined
        """
        if isinstance(definition, str):
            definition = {"type": definition}
        replaces = name in self.definitions
        self.definitions.declare(name, definition)
        self._constants.pop(name, None)
        if replaces:
            # Interned nodes hold the definition they were built with
            self._interned.clear()

    def lookup_symbol(self, name: str):
        return self.definitions.symbol(name)

    def lookup_function(self, name: str) -> Optional[FunctionDefinition]:
        return self.definitions.function(name)

    def numeric_constant(self, name: str) -> Optional[NumericValue]:
        """Numeric value of a symbol with a value, at the current precision."""
        if name in self._constants:
            return self._constants[name]
        definition = self.definitions.symbol(name)
        if definition is None or definition.value is None:
            return None

        value = definition.value
        if isinstance(value, BoxedExpression):
            result = evaluate(self, value)
        elif callable(value):
            result = value(self._precision)
        elif isinstance(value, (list, str)):
            result = evaluate(self, self.box(value))
        else:
            result = numeric_value(value)
        self._constants[name] = result
        return result

    # ============================================================
    # Construction
    # ============================================================

    def box(self, expr: Any, canonical: bool = True) -> BoxedExpression:
        """
        Box a raw shape.

        Raw shapes: numbers (int, float, Fraction, Decimal, complex,
        NumericValue), bools, symbol names, and lists/tuples whose head is
        an operator name. Boxed expressions are passed through (and made
        canonical if requested).

        Raises:
            TypeError: If `expr` is not a raw shape
        """
        if isinstance(expr, BoxedExpression):
            if not canonical or expr.is_canonical:
                return expr
            if expr.is_function:
                return self.function(expr.operator, expr.ops)
            return self.box(expr.to_raw())

        if isinstance(expr, bool):
            return self.symbol("True" if expr else "False")
        if isinstance(expr, (int, float, Fraction, Decimal, complex, NumericValue)):
            return self.number(expr)
        if isinstance(expr, str):
            return self.symbol(expr, canonical)
        if isinstance(expr, (list, tuple)):
            if not expr or not isinstance(expr[0], str):
                raise TypeError(f"Function expression needs an operator name: {expr!r}")
            if expr[0] == "Error":
                return self._box_error(expr[1:])
            return self.function(expr[0], expr[1:], canonical)
        raise TypeError(f"Cannot box {expr!r}")

    def number(self, value) -> BoxedNumber:
        return self._intern(BoxedNumber(self, numeric_value(value, self._precision)))

    def symbol(self, name: str, canonical: bool = True) -> BoxedSymbol:
        if name.startswith('_'):
            return self._intern(BoxedSymbol(self, name, None))
        if not canonical:
            return BoxedSymbol(self, name, self.definitions.lookup(name), canonical=False)
        definition = self.definitions.lookup(name) or self.definitions.infer_symbol(name)
        return self._intern(BoxedSymbol(self, name, definition))

    def function(self, operator: str, ops: Sequence, canonical: bool = True) -> BoxedExpression:
        """
        Build a function application.

        In canonical form the operands are boxed, sequences and associative
        operators are flattened, and the operands are validated against the
        definition (numeric functions use the numeric fast path). Operand
        order is preserved.
        """
        if not canonical:
            boxed = tuple(self.box(op, canonical=False) for op in ops)
            return BoxedFunction(self, operator, boxed, self.definitions.function(operator),
                                 canonical=False)

        if operator.startswith('_'):
            return self._fn(operator, self.canonical_ops(ops))

        definition = self.definitions.function(operator) or self.definitions.infer_function(operator)
        if definition is None:
            # The name is a symbol: keep the application, unvalidated
            return self._fn(operator, self.canonical_ops(ops))

        if definition.lazy:
            boxed = tuple(self.box(op, canonical=False) for op in ops)
            return self._fn(operator, boxed)

        ops = self.canonical_ops(ops)
        if definition.canonical is not None:
            result = definition.canonical(self, ops)
            if result is not None:
                return result

        ops = flatten_ops(ops, operator if definition.associative else None)

        if definition.numeric:
            signature = definition.signature
            count = len(signature.required) if signature.is_fixed_arity else None
            ops = check_numeric_args(self, ops, count=count)
        else:
            checked = validate_arguments(self, ops, definition.signature,
                                         lazy=definition.lazy, threadable=definition.threadable)
            if checked is not None:
                ops = checked
        return self._fn(operator, ops)

    def canonical_ops(self, ops: Sequence) -> Tuple[BoxedExpression, ...]:
        """Box operands, reusing them when they are all canonical already."""
        if all(isinstance(op, BoxedExpression) and op.is_canonical for op in ops):
            return tuple(ops)
        return tuple(self.box(op) for op in ops)

    def _fn(self, operator: str, ops: Sequence[BoxedExpression]) -> BoxedExpression:
        """Build a canonical function from canonical operands, without validation."""
        definition = self.definitions.function(operator)
        return self._intern(BoxedFunction(self, operator, tuple(ops), definition))

    def _intern(self, node: BoxedExpression) -> BoxedExpression:
        return self._interned.setdefault(node, node)

    def error(self, code: str, details: Tuple[str, ...] = (),
              operand: Optional[BoxedExpression] = None) -> BoxedError:
        return BoxedError(self, code, details, operand)

    def type_error(self, expected: str, actual: str, operand: BoxedExpression) -> BoxedError:
        return BoxedError(self, "type-mismatch", (expected, actual), operand)

    def _box_error(self, args: Sequence) -> BoxedError:
        if not args:
            return self.error("missing")
        code, rest = args[0], list(args[1:])
        operand = None
        if rest and not isinstance(rest[-1], str):
            operand = self.box(rest.pop(), canonical=False)
        return self.error(str(code), tuple(str(x) for x in rest), operand)

    # Common constants ---------------------------------------------------

    @property
    def Zero(self) -> BoxedNumber:
        return self.number(0)

    @property
    def One(self) -> BoxedNumber:
        return self.number(1)

    @property
    def NegativeOne(self) -> BoxedNumber:
        return self.number(-1)

    @property
    def Half(self) -> BoxedNumber:
        return self.number(Fraction(1, 2))

    @property
    def NaN(self) -> BoxedNumber:
        return self.number(NAN)

    @property
    def Pi(self) -> BoxedSymbol:
        return self.symbol("Pi")

    @property
    def I(self) -> BoxedSymbol:
        return self.symbol("ImaginaryUnit")

    @property
    def Nothing(self) -> BoxedSymbol:
        return self.symbol("Nothing")

    # ============================================================
    # Arithmetic
    # ============================================================

    def add(self, *ops) -> BoxedExpression:
        return arithmetic.add(self, self.canonical_ops(ops))

    def mul(self, *ops) -> BoxedExpression:
        return arithmetic.mul(self, self.canonical_ops(ops))

    def neg(self, x) -> BoxedExpression:
        return arithmetic.neg(self, self.box(x))

    def sub(self, a, b) -> BoxedExpression:
        return arithmetic.sub(self, self.box(a), self.box(b))

    def div(self, a, b) -> BoxedExpression:
        return arithmetic.div(self, self.box(a), self.box(b))

    def inv(self, x) -> BoxedExpression:
        return arithmetic.inv(self, self.box(x))

    def pow(self, base, exponent) -> BoxedExpression:
        return arithmetic.pow(self, self.box(base), self.box(exponent))

    # ============================================================
    # Comparison
    # ============================================================

    def compare(self, a, b) -> Optional[int]:
        return order.compare(self.box(a), self.box(b))

    def equal(self, a, b) -> Optional[bool]:
        return order.equal(self.box(a), self.box(b))

    def less(self, a, b) -> Optional[bool]:
        return order.less(self.box(a), self.box(b))

    def less_equal(self, a, b) -> Optional[bool]:
        return order.less_equal(self.box(a), self.box(b))

    def greater(self, a, b) -> Optional[bool]:
        return order.greater(self.box(a), self.box(b))

    def greater_equal(self, a, b) -> Optional[bool]:
        return order.greater_equal(self.box(a), self.box(b))

    # ============================================================
    # Evaluation and expansion
    # ============================================================

    def evaluate(self, expr) -> Optional[NumericValue]:
        """Exact-where-possible numeric value of `expr`, or None."""
        return evaluate(self, self.box(expr))

    def N(self, expr) -> Optional[NumericValue]:
        """Approximate numeric value of `expr` at the engine precision, or None."""
        return evaluate(self, self.box(expr), numeric=True)

    def is_true(self, expr) -> Optional[bool]:
        return is_true(self, self.box(expr))

    def canonical_angle(self, expr) -> BoxedExpression:
        return canonical_angle(self, self.box(expr))

    def expand(self, expr) -> BoxedExpression:
        """Expand `expr`; return it unchanged if it is not expandable."""
        expr = self.box(expr)
        result = _expand(expr)
        return expr if result is None else result

    def expand_all(self, expr) -> BoxedExpression:
        """Expand every subexpression of `expr`, bottom-up."""
        expr = self.box(expr)
        result = _expand_all(expr)
        return expr if result is None else result

    # ============================================================
    # Serialization
    # ============================================================

    def parse(self, text: str, canonical: bool = True) -> Optional[BoxedExpression]:
        """
        Parse an s-expression and box it.

        Raises:
            ValueError: On malformed input
        """
        raw = parse_sexpr(text)
        if raw is None:
            return None
        return self.box(raw, canonical)

    def serialize(self, expr) -> str:
        if isinstance(expr, BoxedExpression):
            return format_sexpr(expr.to_raw())
        return format_sexpr(expr)

    # ============================================================
    # Lifecycle
    # ============================================================

    def close(self) -> None:
        """Drop the definitions table and the interned expressions."""
        self._interned.clear()
        self._constants.clear()
        self.definitions.clear()

    def __enter__(self) -> 'Engine':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (f"Engine(precision={self._precision}, strict={self.strict}, "
                f"angular_unit={self._angular_unit!r})")
