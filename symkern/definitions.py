"""
Symbol and function definitions.

A definition is per-name metadata owned by an Engine. Definition records
are usually written as dicts and classified once, at registration:

    {"type": "real", "constant": True, "value": 3}          -> SymbolDefinition
    {"signature": "(real) -> real", "evaluate": fn}          -> FunctionDefinition

Malformed records raise DefinitionError immediately: they are programming
errors in metadata setup, not data conditions.

Inference is the only path that mutates a definition after registration.
An inferred definition starts with type "unknown" and is narrowed to a
concrete type exactly once.
"""

import logging
from typing import Any, Callable, Dict, Iterator, Optional, Union

from .lattice import Signature, is_known_type
from .numeric import NumericValue, numeric_value

logger = logging.getLogger(__name__)

# Complexity of functions with no declared complexity, used for ordering
DEFAULT_COMPLEXITY = 100000

NUMERIC_FLAGS = ('even', 'odd', 'positive', 'negative', 'zero', 'integer', 'finite')

SYMBOL_KEYS = frozenset(['value', 'type', 'constant', 'flags', 'description', 'inferred'])
FUNCTION_KEYS = frozenset([
    'signature', 'type', 'sgn', 'complexity', 'associative', 'threadable',
    'lazy', 'pure', 'numeric', 'evaluate', 'canonical', 'description',
])
# Keys whose presence marks a record as a function definition
FUNCTION_MARKERS = frozenset(['signature', 'sgn', 'complexity', 'evaluate', 'canonical'])


class DefinitionError(ValueError):
    """Raised when a definition record is malformed or redeclared."""


def normalize_flags(flags: Optional[Dict[str, Optional[bool]]]) -> Optional[Dict[str, Optional[bool]]]:
    """
    Normalize numeric flags so that mutually exclusive flags agree.

    Setting `odd` clears `even` and vice versa; `zero` implies even and
    neither positive nor negative.

    Raises:
        DefinitionError: On an unknown flag name
    """
    if not flags:
        return None
    for key in flags:
        if key not in NUMERIC_FLAGS:
            raise DefinitionError(f"Unknown numeric flag `{key}`")
    result = dict(flags)

    if result.get('odd'):
        result['even'] = False
    if result.get('even'):
        result['odd'] = False
    if result.get('zero'):
        result.update(positive=False, negative=False, even=True, odd=False)
    if result.get('positive'):
        result.update(negative=False, zero=False)
    if result.get('negative'):
        result.update(positive=False, zero=False)
    return result


class SymbolDefinition:
    """
    Metadata of a symbol: optional value, constant flag, type, numeric flags.

    The value may be a number, a callable taking the engine precision and
    returning a NumericValue (for constants such as Pi), or an expression.
    """

    kind = "symbol"

    def __init__(self, name: str, value: Any = None, type: Optional[str] = None,
                 constant: bool = False, flags: Optional[Dict] = None,
                 description: Optional[str] = None, inferred: Optional[bool] = None):
        if type is not None and not isinstance(type, str):
            raise DefinitionError(
                "The `type` field of a symbol definition should be of type `string`")
        if type is not None and not is_known_type(type):
            raise DefinitionError(f"Unknown type `{type}` in definition of `{name}`")

        if type is None:
            if isinstance(value, (int, float, complex, NumericValue)) and not isinstance(value, bool):
                type = numeric_value(value).numeric_type()
            elif callable(value):
                type = "number"
            else:
                type = "unknown"
            if inferred is None:
                inferred = value is None

        self.name = name
        self.value = value
        self.type = type
        self.constant = constant
        self.flags = normalize_flags(flags)
        self.description = description
        self.inferred = bool(inferred)

    def infer(self, type: str) -> bool:
        """
        Narrow an inferred, still unknown type to `type`.

        Returns:
            True if the definition was updated
        """
        if not self.inferred or self.type not in ("unknown", "any") or type in ("unknown", "any"):
            return False
        logger.debug("Inferred type of symbol %s: %s", self.name, type)
        self.type = type
        return True

    def __repr__(self) -> str:
        tag = " (inferred)" if self.inferred else ""
        return f"SymbolDefinition({self.name}: {self.type}{tag})"


class FunctionDefinition:
    """
    Metadata of a function: signature, ordering complexity, attributes and
    optional evaluation/canonicalization callbacks.

    Callbacks:
        evaluate(engine, values) -> NumericValue or None
        canonical(engine, ops) -> BoxedExpression or None (fall through)
        type(ops) -> result type name
        sgn(ops) -> -1, 0, 1 or None
    """

    kind = "function"

    def __init__(self, name: str, signature: Union[str, Signature, None] = None,
                 type: Optional[Callable] = None, sgn: Optional[Callable] = None,
                 complexity: int = DEFAULT_COMPLEXITY, associative: bool = False,
                 threadable: bool = False, lazy: bool = False, pure: bool = True,
                 numeric: bool = False, evaluate: Optional[Callable] = None,
                 canonical: Optional[Callable] = None, description: Optional[str] = None,
                 inferred: bool = False):
        if type is not None and not callable(type):
            raise DefinitionError(
                "The `type` field of a function definition should be a function")
        if sgn is not None and not callable(sgn):
            raise DefinitionError(
                "The `sgn` field of a function definition should be a function")
        for field, callback in (('evaluate', evaluate), ('canonical', canonical)):
            if callback is not None and not callable(callback):
                raise DefinitionError(
                    f"The `{field}` field of a function definition should be a function")
        if not isinstance(complexity, int) or isinstance(complexity, bool):
            raise DefinitionError(f"The `complexity` of `{name}` should be an integer")

        if signature is None:
            signature = Signature(rest="any", result="unknown" if inferred else "any")
        elif isinstance(signature, str):
            try:
                signature = Signature.parse(signature)
            except ValueError as e:
                raise DefinitionError(f"Invalid signature for `{name}`: {e}") from e
        if type is not None:
            signature.result = type

        self.name = name
        self.signature = signature
        self.sgn = sgn
        self.complexity = complexity
        self.associative = associative
        self.threadable = threadable
        self.lazy = lazy
        self.pure = pure
        self.numeric = numeric
        self.evaluate = evaluate
        self.canonical = canonical
        self.description = description
        self.inferred = inferred

    def result_type(self, ops) -> str:
        return self.signature.result_type(ops)

    def infer(self, type: str) -> bool:
        """Narrow an inferred, still unknown result type to `type`."""
        if (not self.inferred or callable(self.signature.result)
                or self.signature.result not in ("unknown", "any")
                or type in ("unknown", "any")):
            return False
        logger.debug("Inferred result type of function %s: %s", self.name, type)
        self.signature.result = type
        return True

    def __repr__(self) -> str:
        return f"FunctionDefinition({self.name}: {self.signature})"


Definition = Union[SymbolDefinition, FunctionDefinition]


def definition_from_dict(name: str, record: Dict[str, Any]) -> Definition:
    """
    Classify a definition record and build the matching definition.

    Args:
        name: Symbol or function name
        record: Definition fields

    Raises:
        DefinitionError: If the record is malformed
    """
    if not isinstance(record, dict):
        raise DefinitionError(f"Definition of `{name}` should be a dict, got {type(record).__name__}")

    is_function = any(key in record for key in FUNCTION_MARKERS)

    if is_function:
        if 'constant' in record:
            raise DefinitionError(
                "Function definition cannot have a `constant` field and symbol "
                "definition cannot have a `signature` field.")
        if 'value' in record or 'flags' in record:
            if 'signature' in record:
                raise DefinitionError(
                    "Symbol definition cannot have a `signature` field. Use a `type` field instead.")
            if 'sgn' in record:
                raise DefinitionError(
                    "Symbol definition cannot have a `sgn` field. Use a `flags.sgn` field instead.")
            raise DefinitionError(f"Definition of `{name}` mixes symbol and function fields")
        for key in record:
            if key not in FUNCTION_KEYS:
                raise DefinitionError(f"Unknown field `{key}` in definition of function `{name}`")
        return FunctionDefinition(name, **record)

    for key in record:
        if key not in SYMBOL_KEYS | FUNCTION_KEYS:
            raise DefinitionError(f"Unknown field `{key}` in definition of `{name}`")
        if key not in SYMBOL_KEYS:
            # A function-only attribute without any function marker
            return FunctionDefinition(name, **record)
    return SymbolDefinition(name, **record)


class DefinitionTable:
    """
    Mutable table of definitions owned by one Engine.

    Declaration and inference are the only writers.
    """

    def __init__(self):
        self._defs: Dict[str, Definition] = {}

    def declare(self, name: str, definition: Union[Definition, Dict[str, Any]]) -> Definition:
        """
        Register a definition.

        Raises:
            DefinitionError: If the record is malformed, or `name` already
                has a declared or concretely inferred definition
        """
        if isinstance(definition, dict):
            definition = definition_from_dict(name, definition)
        elif not isinstance(definition, (SymbolDefinition, FunctionDefinition)):
            raise DefinitionError(f"Invalid definition for `{name}`: {definition!r}")

        existing = self._defs.get(name)
        if existing is not None and not (existing.inferred and _is_unresolved(existing)):
            raise DefinitionError(f"`{name}` is already defined")

        logger.debug("Declared %s %s", definition.kind, name)
        self._defs[name] = definition
        return definition

    def lookup(self, name: str) -> Optional[Definition]:
        return self._defs.get(name)

    def symbol(self, name: str) -> Optional[SymbolDefinition]:
        d = self._defs.get(name)
        return d if isinstance(d, SymbolDefinition) else None

    def function(self, name: str) -> Optional[FunctionDefinition]:
        d = self._defs.get(name)
        return d if isinstance(d, FunctionDefinition) else None

    def infer_symbol(self, name: str) -> Optional[SymbolDefinition]:
        """
        Return the symbol definition of `name`, creating an inferred one if
        the name is not defined at all. Returns None if `name` is a function.
        """
        d = self._defs.get(name)
        if d is None:
            d = self._defs[name] = SymbolDefinition(name, inferred=True)
        return d if isinstance(d, SymbolDefinition) else None

    def infer_function(self, name: str) -> Optional[FunctionDefinition]:
        """Same as infer_symbol(), for function definitions."""
        d = self._defs.get(name)
        if d is None:
            d = self._defs[name] = FunctionDefinition(name, inferred=True)
        return d if isinstance(d, FunctionDefinition) else None

    def clear(self) -> None:
        self._defs.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._defs

    def __iter__(self) -> Iterator[str]:
        return iter(self._defs)

    def __len__(self) -> int:
        return len(self._defs)

    def __repr__(self) -> str:
        return f"DefinitionTable({len(self._defs)} definitions)"


def _is_unresolved(definition: Definition) -> bool:
    if isinstance(definition, SymbolDefinition):
        return definition.type == "unknown"
    return definition.signature.result == "unknown"
