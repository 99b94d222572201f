"""
Rules, rule sets and their loaders.

A rule pairs a pattern with a replacement and an optional guard:

    ce = Engine()
    rs = rules(ce, [
        ("(Add x 0)", "x"),
        ("(Multiply x 1)", "x"),
        ("(Abs x)", "x", "(GreaterEqual x 0)"),
    ])
    rs.replace(ce.parse("(Add (Power y 2) 0)"))     # (Power y 2)

In textual rules the identifiers x, y, z, a, b, c, m, n, i, j are pattern
variables; they are renamed to the wildcards _x, _y, ... before the rule
is compiled. Patterns given as boxed expressions are used as they are.

Rule text DSL, one rule per line:

    # comment
    @add-zero: (Add x 0) => x
    @abs-pos "Absolute value of a non-negative": (Abs x) => x when (GreaterEqual x 0)
    (Multiply x 1) => x
    :include more.rules
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .boxed import BoxedExpression
from .rewriter import Bindings, apply_rule, match, replace, replace_all, substitute
from .sexpr import parse_sexpr

logger = logging.getLogger(__name__)

PATTERN_VARIABLES = {
    "x": "_x",
    "y": "_y",
    "z": "_z",
    "a": "_a",
    "b": "_b",
    "c": "_c",
    "m": "_m",
    "n": "_n",
    "i": "_i",
    "j": "_j",
}

Guard = Callable[[Any, Bindings], Optional[bool]]


def substitute_symbols(raw: Any, subs: Dict[str, str] = PATTERN_VARIABLES) -> Any:
    """Rename symbols of a raw shape according to `subs`."""
    if isinstance(raw, str):
        return subs.get(raw, raw)
    if isinstance(raw, (list, tuple)):
        return [substitute_symbols(x, subs) for x in raw]
    return raw


# ============================================================
# Rule
# ============================================================

class Rule:
    """
    A compiled rewrite rule.

    Attributes:
        lhs: Pattern
        rhs: Replacement
        condition: Guard callback `(engine, bindings) -> bool`, or None
        name: Optional rule name
        description: Optional human-readable description
        condition_text: Source of a textual guard, kept for display
    """

    __slots__ = ('lhs', 'rhs', 'condition', 'name', 'description', 'condition_text')

    def __init__(self, lhs: BoxedExpression, rhs: BoxedExpression,
                 condition: Optional[Guard] = None, name: Optional[str] = None,
                 description: Optional[str] = None, condition_text: Optional[str] = None):
        self.lhs = lhs
        self.rhs = rhs
        self.condition = condition
        self.name = name
        self.description = description
        self.condition_text = condition_text

    @property
    def label(self) -> str:
        return self.name or str(self.lhs)

    def to_dsl(self) -> str:
        head = ""
        if self.name and self.description:
            head = f'@{self.name} "{self.description}": '
        elif self.name:
            head = f"@{self.name}: "
        line = f"{head}{self.lhs} => {self.rhs}"
        if self.condition_text:
            line += f" when {self.condition_text}"
        elif self.condition is not None:
            line += " when <guard>"
        return line

    def __repr__(self) -> str:
        return f"Rule({self.to_dsl()})"


def _compile_expr(engine, expr) -> BoxedExpression:
    if isinstance(expr, BoxedExpression):
        return expr
    if isinstance(expr, str):
        raw = parse_sexpr(expr)
        if raw is None:
            raise ValueError("Empty rule expression")
        return engine.box(substitute_symbols(raw), canonical=True)
    # Pre-built raw shapes may be non-canonical on purpose
    return engine.box(substitute_symbols(expr), canonical=False)


def _compile_condition(engine, condition) -> Tuple[Optional[Guard], Optional[str]]:
    if condition is None:
        return None, None
    if callable(condition):
        return condition, None
    if isinstance(condition, (str, list, tuple, BoxedExpression)):
        text = condition if isinstance(condition, str) else None
        template = _compile_expr(engine, condition)
        if text is None:
            text = str(template)

        def guard(ce, bindings: Bindings) -> bool:
            return ce.is_true(substitute(template, bindings)) or False

        return guard, text
    raise ValueError(f"Invalid rule condition: {condition!r}")


def compile_rule(engine, lhs, rhs, condition=None, name: Optional[str] = None,
                 description: Optional[str] = None) -> Rule:
    """
    Compile a rule once.

    Textual sides are parsed, have their pattern variables renamed and are
    made canonical. A textual guard is compiled into a callback that
    substitutes the bindings into it and tests its truth.
    """
    guard, text = _compile_condition(engine, condition)
    return Rule(_compile_expr(engine, lhs), _compile_expr(engine, rhs), guard,
                name=name, description=description, condition_text=text)


def _rule_from_spec(engine, spec) -> Rule:
    if isinstance(spec, Rule):
        return spec
    if isinstance(spec, dict):
        if "match" not in spec or "replace" not in spec:
            raise ValueError(f"Rule needs 'match' and 'replace': {spec!r}")
        return compile_rule(engine, spec["match"], spec["replace"], spec.get("condition"),
                            name=spec.get("name"), description=spec.get("description"))
    if isinstance(spec, (list, tuple)) and len(spec) in (2, 3):
        return compile_rule(engine, *spec)
    raise ValueError(f"Invalid rule specification: {spec!r}")


# ============================================================
# RuleSet
# ============================================================

class RuleSet:
    """
    An ordered, immutable collection of compiled rules.

    Usage:
        rs = RuleSet.from_dsl(ce, '''
            @add-zero: (Add x 0) => x
            @mul-one: (Multiply x 1) => x
        ''')

        len(rs)              # => 2
        "add-zero" in rs     # => True
        rs["mul-one"]        # => Rule(...)
        rs | other           # union, keeping order
        rs.replace(expr)
    """

    def __init__(self, engine, rules: Sequence[Rule] = ()):
        self.engine = engine
        self._rules: Tuple[Rule, ...] = tuple(rules)

    # ----------------------------------------------------------
    # Construction
    # ----------------------------------------------------------

    @classmethod
    def from_specs(cls, engine, specs) -> 'RuleSet':
        return cls(engine, [_rule_from_spec(engine, spec) for spec in specs])

    @classmethod
    def from_dsl(cls, engine, text: str) -> 'RuleSet':
        return cls(engine, load_rules_from_dsl(engine, text))

    @classmethod
    def from_json(cls, engine, text: str) -> 'RuleSet':
        return cls(engine, load_rules_from_json(engine, text))

    @classmethod
    def from_file(cls, engine, path: Union[str, Path]) -> 'RuleSet':
        return cls(engine, load_rules_from_file(engine, path))

    # ----------------------------------------------------------
    # Collection protocol
    # ----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __contains__(self, name: str) -> bool:
        return any(rule.name == name for rule in self._rules)

    def __getitem__(self, name: str) -> Rule:
        for rule in self._rules:
            if rule.name == name:
                return rule
        raise KeyError(f"No rule named '{name}'")

    def __or__(self, other: 'RuleSet') -> 'RuleSet':
        if not isinstance(other, RuleSet):
            return NotImplemented
        return RuleSet(self.engine, self._rules + other._rules)

    def __repr__(self) -> str:
        return f"RuleSet({len(self)} rules)"

    def list_rules(self) -> List[str]:
        return [rule.to_dsl() for rule in self._rules]

    # ----------------------------------------------------------
    # Rewriting
    # ----------------------------------------------------------

    def rules_matching(self, expr) -> List[Tuple[Rule, Bindings]]:
        """Rules whose pattern matches `expr` at the root, with their bindings."""
        expr = self.engine.box(expr)
        result = []
        for rule in self._rules:
            bindings = match(rule.lhs, expr)
            if bindings:
                result.append((rule, bindings))
        return result

    def apply_once(self, expr) -> Tuple[BoxedExpression, Optional[Rule]]:
        """Apply the first rule that rewrites `expr` at the root."""
        expr = self.engine.box(expr)
        for rule in self._rules:
            result = apply_rule(self.engine, rule, expr)
            if result is not None:
                return result, rule
        return expr, None

    def replace(self, expr, max_iterations: Optional[int] = None) -> BoxedExpression:
        return replace(self.engine, self._rules, self.engine.box(expr), max_iterations)

    def replace_all(self, expr, max_iterations: Optional[int] = None) -> BoxedExpression:
        return replace_all(self.engine, self._rules, self.engine.box(expr), max_iterations)


def rules(engine, specs) -> RuleSet:
    """
    Build a rule set.

    Each spec is a Rule, a `(lhs, rhs)` or `(lhs, rhs, guard)` tuple, or a
    dict with keys "match", "replace" and optionally "condition", "name",
    "description".

    Raises:
        ValueError: On a malformed spec
    """
    if isinstance(specs, RuleSet):
        return specs
    return RuleSet.from_specs(engine, specs)


# ============================================================
# Rule DSL
# ============================================================

def _find_when(text: str) -> int:
    """Position of a top-level 'when' keyword, or -1."""
    depth = 0
    for i, c in enumerate(text):
        if c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
        elif depth == 0 and text.startswith('when', i) and (i == 0 or text[i - 1].isspace()):
            after = i + 4
            if after >= len(text) or text[after].isspace():
                return i
    return -1


def parse_rule_line(line: str) -> Optional[Dict[str, Optional[str]]]:
    """
    Parse a single rule line into its textual parts.

    Formats:
        @name: lhs => rhs
        @name "description": lhs => rhs
        @name: lhs => rhs when condition
        lhs => rhs

    Returns:
        Dict with keys name, description, match, replace, condition;
        None for blank lines and comments

    Raises:
        ValueError: If the line is not a rule
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None

    name = description = None
    if line.startswith('@'):
        m = re.match(r'@([\w-]+)\s+"([^"]+)":\s*(.+)', line)
        if m:
            name, description, line = m.group(1), m.group(2), m.group(3)
        else:
            m = re.match(r'@([\w-]+):\s*(.+)', line)
            if m:
                name, line = m.group(1), m.group(2)

    if '=>' not in line:
        raise ValueError(f"Not a rule: {line!r}")

    lhs, rest = (part.strip() for part in line.split('=>', 1))
    condition = None
    when = _find_when(rest)
    if when >= 0:
        condition = rest[when + 4:].strip()
        rest = rest[:when].strip()

    if not lhs or not rest:
        raise ValueError(f"Rule is missing a side: {line!r}")

    return {"name": name, "description": description,
            "match": lhs, "replace": rest, "condition": condition}


def load_rules_from_dsl(engine, text: str, base_path: Optional[Path] = None,
                        _included_files: Optional[set] = None) -> List[Rule]:
    """
    Load rules from DSL text.

    `:include path` loads another rules file, resolved against
    `base_path`. Lines that are not rules are skipped with a warning.

    Raises:
        FileNotFoundError: If an included file does not exist
        ValueError: On circular includes
    """
    if _included_files is None:
        _included_files = set()

    result = []
    for number, line in enumerate(text.split('\n'), 1):
        stripped = line.strip()

        if stripped.startswith(':include '):
            include = Path(stripped[9:].strip())
            if base_path is not None:
                include = base_path / include
            resolved = include.resolve()
            if resolved in _included_files:
                raise ValueError(f"Circular include detected: {include}")
            if not include.exists():
                raise FileNotFoundError(f"Include file not found: {include}")
            _included_files.add(resolved)
            result.extend(load_rules_from_file(engine, include, _included_files=_included_files))
            continue

        try:
            parts = parse_rule_line(line)
            if parts is not None:
                result.append(_rule_from_spec(engine, parts))
        except (ValueError, TypeError) as e:
            logger.warning("Skipping line %d: %s", number, e)
    return result


def load_rules_from_json(engine, text: str) -> List[Rule]:
    """
    Load rules from JSON text.

    Expected format:
        {
            "rules": [
                {
                    "name": "add-zero",
                    "description": "...",
                    "match": "(Add x 0)",          # or a raw shape
                    "replace": "x",
                    "condition": "(Greater x 0)"   # optional
                },
                or just [match, replace] / [match, replace, condition]
            ]
        }
    """
    data = json.loads(text)
    specs = data.get("rules", []) if isinstance(data, dict) else data
    return [_rule_from_spec(engine, spec) for spec in specs]


def load_rules_from_file(engine, path: Union[str, Path],
                         _included_files: Optional[set] = None) -> List[Rule]:
    """
    Load rules from a .rules or .json file.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    text = path.read_text()
    if path.suffix == '.json':
        return load_rules_from_json(engine, text)
    return load_rules_from_dsl(engine, text, base_path=path.parent,
                               _included_files=_included_files)
