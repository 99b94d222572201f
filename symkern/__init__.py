"""
symkern - a symbolic computation kernel

Expressions are boxed into immutable, canonical trees, validated against
function signatures, rewritten with pattern rules and expanded.

Quick Start:
    from symkern import Engine, rules

    ce = Engine()
    expr = ce.parse("(Power (Add a b) 2)")
    ce.expand(expr)            # (Add (Power a 2) (Multiply 2 a b) (Power b 2))

    rs = rules(ce, [("(Add x 0)", "x")])
    rs.replace(ce.parse("(Add y 0)"))   # y

Textual forms are s-expressions whose head is the operator name:

    (Add x 1)
    (Rational 3 4)
    (Sin (Multiply (Rational 1 2) Pi))

Rule DSL:
    # Comments start with #
    @add-zero: (Add x 0) => x
    @abs-pos "Absolute value of a non-negative": (Abs x) => x when (GreaterEqual x 0)

In textual rules x, y, z, a, b, c, m, n, i, j are pattern variables.
"""

__version__ = "0.1.0"

# Numeric tower
from .numeric import (
    MACHINE_PRECISION,
    NumericValue,
    RationalValue,
    BigValue,
    MachineValue,
    ComplexValue,
    numeric_value,
)

# Types and definitions
from .lattice import Signature, is_subtype, widen
from .definitions import (
    DefinitionError,
    SymbolDefinition,
    FunctionDefinition,
)

# Expressions and engine
from .boxed import (
    BoxedExpression,
    BoxedNumber,
    BoxedSymbol,
    BoxedFunction,
    BoxedError,
)
from .engine import Engine
from .library import STANDARD_LIBRARY

# Rewriting
from .rewriter import (
    Bindings,
    NoMatch,
    match,
    substitute,
    apply_rule,
    replace,
    replace_all,
)
from .rules import (
    Rule,
    RuleSet,
    rules,
    parse_rule_line,
    load_rules_from_dsl,
    load_rules_from_file,
    load_rules_from_json,
)

# Serialization
from .sexpr import parse_sexpr, format_sexpr

# Public API
__all__ = [
    # Version
    "__version__",
    # Numeric tower
    "MACHINE_PRECISION",
    "NumericValue",
    "RationalValue",
    "BigValue",
    "MachineValue",
    "ComplexValue",
    "numeric_value",
    # Types and definitions
    "Signature",
    "is_subtype",
    "widen",
    "DefinitionError",
    "SymbolDefinition",
    "FunctionDefinition",
    # Expressions
    "BoxedExpression",
    "BoxedNumber",
    "BoxedSymbol",
    "BoxedFunction",
    "BoxedError",
    "Engine",
    "STANDARD_LIBRARY",
    # Rewriting
    "Bindings",
    "NoMatch",
    "match",
    "substitute",
    "apply_rule",
    "replace",
    "replace_all",
    "Rule",
    "RuleSet",
    "rules",
    "parse_rule_line",
    "load_rules_from_dsl",
    "load_rules_from_file",
    "load_rules_from_json",
    # Serialization
    "parse_sexpr",
    "format_sexpr",
]
