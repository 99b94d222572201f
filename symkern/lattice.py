"""
Type lattice and function signatures.

The lattice is a tree rooted at "any":

    any
    ├── expression
    │   ├── symbol
    │   └── function
    ├── number
    │   ├── complex
    │   │   └── imaginary
    │   └── real
    │       └── rational
    │           └── integer
    ├── boolean
    ├── string
    └── collection
        └── list

"nothing" is a subtype of every type. "unknown" marks a type that has not
been inferred yet; it only matches "any" and itself.

Signatures are written as text:

    "(real, real?, ...real) -> real"

required parameters first, then optional ones (suffix "?"), then at most
one rest parameter (prefix "...").
"""

from typing import Callable, List, Optional, Sequence, Tuple, Union

TYPE_PARENTS = {
    "any": None,
    "expression": "any",
    "symbol": "expression",
    "function": "expression",
    "number": "any",
    "complex": "number",
    "imaginary": "complex",
    "real": "number",
    "rational": "real",
    "integer": "rational",
    "boolean": "any",
    "string": "any",
    "collection": "any",
    "list": "collection",
    "nothing": None,
    "unknown": None,
}

# A result type is either fixed or computed from the (canonical) operands
ResultType = Union[str, Callable[[Sequence], str]]


def is_known_type(name: str) -> bool:
    return name in TYPE_PARENTS


def ancestors(name: str) -> List[str]:
    """Return `name` followed by its chain of parent types up to the root."""
    chain = []
    while name is not None:
        chain.append(name)
        name = TYPE_PARENTS.get(name)
    return chain


def is_subtype(lhs: str, rhs: str) -> bool:
    """
    Check whether `lhs` is a subtype of `rhs`.

    Examples:
        is_subtype("integer", "real")  # => True
        is_subtype("real", "integer")  # => False
        is_subtype("nothing", "real")  # => True
        is_subtype("unknown", "real")  # => False
    """
    if rhs == "any" or lhs == "nothing":
        return True
    if lhs == "unknown":
        return rhs == "unknown"
    return rhs in ancestors(lhs)


def is_compatible(lhs: str, rhs: str) -> bool:
    """Two types are compatible if one is a subtype of the other."""
    return is_subtype(lhs, rhs) or is_subtype(rhs, lhs)


def widen(*types: str) -> str:
    """Return the narrowest common supertype of `types`."""
    known = [t for t in types if t not in ("nothing", "unknown")]
    if not known:
        return "unknown" if "unknown" in types else "nothing"
    result = ancestors(known[0])
    for t in known[1:]:
        chain = ancestors(t)
        result = [a for a in result if a in chain]
    return result[0] if result else "any"


class Signature:
    """
    Parameter types of a function plus its result type.

    Attributes:
        required: Types of the required parameters, in order
        optional: Types of the optional parameters, in order
        rest: Type of the rest parameter, or None
        result: Result type name, or a callable computing it from the operands
    """

    __slots__ = ('required', 'optional', 'rest', 'result')

    def __init__(self, required: Sequence[str] = (), optional: Sequence[str] = (),
                 rest: Optional[str] = None, result: ResultType = "any"):
        for t in list(required) + list(optional) + ([rest] if rest else []):
            if not is_known_type(t):
                raise ValueError(f"Unknown type '{t}' in signature")
        self.required: Tuple[str, ...] = tuple(required)
        self.optional: Tuple[str, ...] = tuple(optional)
        self.rest = rest
        self.result = result

    @classmethod
    def parse(cls, text: str) -> 'Signature':
        """
        Parse a textual signature.

        Examples:
            Signature.parse("(number, number) -> number")
            Signature.parse("(...real) -> real")
            Signature.parse("(any, integer?) -> any")

        Raises:
            ValueError: If the text is not a well-formed signature
        """
        text = text.strip()
        if '->' in text:
            params_text, result = (part.strip() for part in text.rsplit('->', 1))
        else:
            params_text, result = text, "any"

        if not (params_text.startswith('(') and params_text.endswith(')')):
            raise ValueError(f"Malformed signature: {text!r}")
        if not is_known_type(result):
            raise ValueError(f"Unknown result type '{result}' in signature")

        required, optional, rest = [], [], None
        body = params_text[1:-1].strip()
        for param in (p.strip() for p in body.split(',')) if body else []:
            if rest is not None:
                raise ValueError(f"Rest parameter must be last: {text!r}")
            if param.startswith('...'):
                rest = param[3:].strip()
            elif param.endswith('?'):
                optional.append(param[:-1].strip())
            elif optional:
                raise ValueError(f"Required parameter after optional one: {text!r}")
            else:
                required.append(param)
        return cls(required, optional, rest, result)

    @property
    def is_fixed_arity(self) -> bool:
        return not self.optional and self.rest is None

    def result_type(self, ops: Sequence) -> str:
        if callable(self.result):
            return self.result(ops)
        return self.result

    def __eq__(self, other) -> bool:
        if not isinstance(other, Signature):
            return False
        return ((self.required, self.optional, self.rest, self.result) ==
                (other.required, other.optional, other.rest, other.result))

    def __hash__(self) -> int:
        return hash((self.required, self.optional, self.rest))

    def __str__(self) -> str:
        params = list(self.required) + [f"{t}?" for t in self.optional]
        if self.rest:
            params.append(f"...{self.rest}")
        result = "any" if callable(self.result) else self.result
        return f"({', '.join(params)}) -> {result}"

    def __repr__(self) -> str:
        return f"Signature({str(self)!r})"
