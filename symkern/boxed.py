"""
Boxed expressions.

A boxed expression is one of:

    BoxedNumber    - a numeric literal holding a NumericValue
    BoxedSymbol    - a symbol name, with its definition
    BoxedFunction  - an operator applied to a tuple of boxed operands
    BoxedError     - an error sentinel (code, details, offending operand)

Nodes are immutable and carry a reference to the Engine that built them.
Canonical nodes are interned by the engine, so structurally equal
canonical nodes are usually the same object; equality is structural in
any case:

    ce.box(["Add", "x", 1]) == ce.box(["Add", "x", 1])   # => True

Errors are data, not exceptions: a function with an error operand is
itself invalid (`is_valid` is False).
"""

from typing import Any, Dict, Iterator, Optional, Tuple

from .lattice import is_subtype
from .numeric import (
    NumericValue, RationalValue, MachineValue, BigValue, ComplexValue, pad_decimal,
)


class BoxedExpression:
    """Base class of all expression nodes."""

    __slots__ = ('engine', 'is_canonical', '_hash')

    kind = "expression"

    def __init__(self, engine, canonical: bool = False):
        self.engine = engine
        self.is_canonical = canonical
        self._hash = None

    # Structure ----------------------------------------------------------

    @property
    def operator(self) -> str:
        raise NotImplementedError

    @property
    def ops(self) -> Tuple['BoxedExpression', ...]:
        return ()

    @property
    def nops(self) -> int:
        return len(self.ops)

    @property
    def op1(self) -> Optional['BoxedExpression']:
        return self.ops[0] if self.ops else None

    @property
    def op2(self) -> Optional['BoxedExpression']:
        return self.ops[1] if len(self.ops) > 1 else None

    @property
    def symbol(self) -> Optional[str]:
        return None

    @property
    def numeric_value(self) -> Optional[NumericValue]:
        return None

    is_number_literal = False
    is_symbol = False
    is_function = False
    is_error = False

    # Metadata -----------------------------------------------------------

    @property
    def type(self) -> str:
        return "unknown"

    @property
    def is_number(self) -> bool:
        """True if the value of this expression is known to be a number."""
        return is_subtype(self.type, "number")

    @property
    def is_valid(self) -> bool:
        return True

    @property
    def is_pure(self) -> bool:
        return True

    @property
    def definition(self):
        return None

    @property
    def complexity(self) -> int:
        return 0

    def infer(self, type: str) -> bool:
        """Narrow the inferred type of this expression, if it has one."""
        return False

    def has(self, name: str) -> bool:
        """True if the symbol or operator `name` occurs in the expression."""
        return False

    def to_raw(self) -> Any:
        """Return the raw (unboxed) shape: numbers, names and nested lists."""
        raise NotImplementedError

    def _key(self) -> Tuple:
        raise NotImplementedError

    # Engine shortcuts ---------------------------------------------------

    @property
    def canonical(self) -> 'BoxedExpression':
        return self if self.is_canonical else self.engine.box(self)

    def add(self, *others) -> 'BoxedExpression':
        return self.engine.add(self, *others)

    def mul(self, *others) -> 'BoxedExpression':
        return self.engine.mul(self, *others)

    def sub(self, other) -> 'BoxedExpression':
        return self.engine.sub(self, other)

    def div(self, other) -> 'BoxedExpression':
        return self.engine.div(self, other)

    def neg(self) -> 'BoxedExpression':
        return self.engine.neg(self)

    def inv(self) -> 'BoxedExpression':
        return self.engine.inv(self)

    def pow(self, exponent) -> 'BoxedExpression':
        return self.engine.pow(self, exponent)

    def compare(self, other) -> Optional[int]:
        return self.engine.compare(self, other)

    def is_equal(self, other) -> Optional[bool]:
        return self.engine.equal(self, other)

    def is_less(self, other) -> Optional[bool]:
        return self.engine.less(self, other)

    def is_greater(self, other) -> Optional[bool]:
        return self.engine.greater(self, other)

    def expand(self) -> 'BoxedExpression':
        return self.engine.expand(self)

    def expand_all(self) -> 'BoxedExpression':
        return self.engine.expand_all(self)

    def evaluate(self) -> Optional[NumericValue]:
        return self.engine.evaluate(self)

    def N(self) -> Optional[NumericValue]:
        return self.engine.N(self)

    # Identity -----------------------------------------------------------

    def is_same(self, other: 'BoxedExpression') -> bool:
        """Structural equality."""
        return self == other

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, BoxedExpression):
            return False
        return self._key() == other._key()

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(self._key())
        return self._hash

    def __str__(self) -> str:
        return self.engine.serialize(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


class BoxedNumber(BoxedExpression):
    """Numeric literal."""

    __slots__ = ('_value',)

    kind = "number"
    is_number_literal = True

    def __init__(self, engine, value: NumericValue, canonical: bool = True):
        super().__init__(engine, canonical)
        self._value = value

    @property
    def operator(self) -> str:
        return "Number"

    @property
    def numeric_value(self) -> NumericValue:
        return self._value

    @property
    def type(self) -> str:
        return self._value.numeric_type()

    @property
    def is_zero(self) -> bool:
        return self._value.is_zero

    @property
    def is_one(self) -> bool:
        return self._value.is_one

    @property
    def is_negative_one(self) -> bool:
        return self._value.is_negative_one

    def to_raw(self) -> Any:
        return _raw_number(self._value)

    def _key(self) -> Tuple:
        return ("number", self._value)


def _raw_number(value: NumericValue) -> Any:
    if isinstance(value, RationalValue):
        if value.is_integer:
            return value.numerator
        return ["Rational", value.numerator, value.denominator]
    if isinstance(value, BigValue):
        # Trailing zeros record the precision in the textual form
        return pad_decimal(value.value, value.precision)
    if isinstance(value, MachineValue):
        return value.value
    if isinstance(value, ComplexValue):
        return ["Complex", _raw_number(value.re), _raw_number(value.im)]
    raise TypeError(f"Unknown numeric value {value!r}")


class BoxedSymbol(BoxedExpression):
    """
    Symbol, bound to its definition at construction.

    Symbols whose name starts with "_" are pattern wildcards: they have no
    definition and their type is never inferred.
    """

    __slots__ = ('_name', '_def')

    kind = "symbol"
    is_symbol = True

    def __init__(self, engine, name: str, definition=None, canonical: bool = True):
        super().__init__(engine, canonical)
        self._name = name
        self._def = definition

    @property
    def operator(self) -> str:
        return "Symbol"

    @property
    def symbol(self) -> str:
        return self._name

    @property
    def definition(self):
        return self._def

    @property
    def is_wildcard(self) -> bool:
        return self._name.startswith('_')

    @property
    def is_constant(self) -> bool:
        return self._def is not None and self._def.kind == "symbol" and self._def.constant

    @property
    def type(self) -> str:
        if self._def is None:
            return "unknown"
        if self._def.kind == "function":
            return "function"
        return self._def.type

    def infer(self, type: str) -> bool:
        if self._def is None or self._def.kind != "symbol":
            return False
        return self._def.infer(type)

    def has(self, name: str) -> bool:
        return self._name == name

    def to_raw(self) -> Any:
        return self._name

    def _key(self) -> Tuple:
        return ("symbol", self._name)


class BoxedFunction(BoxedExpression):
    """Application of an operator to a tuple of operands."""

    __slots__ = ('_operator', '_ops', '_def', '_valid')

    kind = "function"
    is_function = True

    def __init__(self, engine, operator: str, ops: Tuple[BoxedExpression, ...],
                 definition=None, canonical: bool = True):
        super().__init__(engine, canonical)
        self._operator = operator
        self._ops = tuple(ops)
        self._def = definition
        self._valid = all(op.is_valid for op in self._ops)

    @property
    def operator(self) -> str:
        return self._operator

    @property
    def ops(self) -> Tuple[BoxedExpression, ...]:
        return self._ops

    @property
    def definition(self):
        return self._def

    @property
    def type(self) -> str:
        if self._def is None:
            return "unknown"
        return self._def.result_type(self._ops)

    @property
    def is_valid(self) -> bool:
        return self._valid

    @property
    def is_pure(self) -> bool:
        if self._def is not None and not self._def.pure:
            return False
        return all(op.is_pure for op in self._ops)

    @property
    def complexity(self) -> int:
        return self._def.complexity if self._def is not None else 0

    @property
    def sgn(self) -> Optional[int]:
        if self._def is None or self._def.sgn is None:
            return None
        return self._def.sgn(self._ops)

    def infer(self, type: str) -> bool:
        if self._def is None:
            return False
        return self._def.infer(type)

    def has(self, name: str) -> bool:
        return self._operator == name or any(op.has(name) for op in self._ops)

    def each(self) -> Iterator[BoxedExpression]:
        """Iterate over the elements of a collection."""
        return iter(self._ops)

    def to_raw(self) -> Any:
        return [self._operator] + [op.to_raw() for op in self._ops]

    def _key(self) -> Tuple:
        return ("function", self._operator, self._ops)


class BoxedError(BoxedExpression):
    """
    Error sentinel.

    Codes:
        missing                   - required operand absent
        unexpected-argument       - excess operand (details: its text form)
        type-mismatch             - details: (expected, actual), operand set
        expected-pure-expression  - details: the operand's text form
    """

    __slots__ = ('code', 'details', 'operand')

    kind = "error"
    is_error = True

    def __init__(self, engine, code: str, details: Tuple[str, ...] = (),
                 operand: Optional[BoxedExpression] = None):
        super().__init__(engine, True)
        self.code = code
        self.details = tuple(details)
        self.operand = operand

    @property
    def operator(self) -> str:
        return "Error"

    @property
    def type(self) -> str:
        return "nothing"

    @property
    def is_valid(self) -> bool:
        return False

    def to_raw(self) -> Any:
        raw = ["Error", self.code] + list(self.details)
        if self.operand is not None:
            raw.append(self.operand.to_raw())
        return raw

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "details": list(self.details),
            "operand": str(self.operand) if self.operand is not None else None,
        }

    def _key(self) -> Tuple:
        return ("error", self.code, self.details, self.operand)
