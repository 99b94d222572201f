"""
Argument and signature validation.

Every function-constructing operation runs its (canonical) operands
through one of these checks before the node is built. Validation never
raises: failures come back as error nodes at the position where they
occurred, so the result can still be boxed and reported.

Type inference is all-or-nothing: definitions are narrowed only when the
whole operand group validated.
"""

from typing import List, Optional, Sequence, Tuple

from .boxed import BoxedExpression
from .lattice import Signature, is_compatible, is_subtype

Ops = Sequence[BoxedExpression]


# ============================================================
# Flattening
# ============================================================

def flatten_sequence(ops: Ops) -> Tuple[BoxedExpression, ...]:
    """Splice the operands of `Sequence` expressions into `ops`."""
    if not any(op.operator == "Sequence" for op in ops):
        return tuple(ops)
    result: List[BoxedExpression] = []
    for op in ops:
        if op.operator == "Sequence":
            result.extend(flatten_sequence(op.ops))
        else:
            result.append(op)
    return tuple(result)


def flatten_ops(ops: Ops, operator: Optional[str]) -> Tuple[BoxedExpression, ...]:
    """
    Splice sequences and nested applications of an associative operator.

    Example:
        flatten_ops([a, (Add b (Add c d))], "Add")  # => (a, b, c, d)
    """
    ops = flatten_sequence(ops)
    if operator is None or not any(op.operator == operator for op in ops):
        return ops
    result: List[BoxedExpression] = []
    for op in ops:
        if op.operator == operator and op.is_function:
            result.extend(flatten_ops(op.ops, operator))
        else:
            result.append(op)
    return tuple(result)


def is_finite_indexable_collection(expr: Optional[BoxedExpression]) -> bool:
    return expr is not None and expr.is_function and expr.operator == "List"


def _is_held(op: BoxedExpression) -> bool:
    if op.operator == "Hold":
        return True
    definition = op.definition
    value = getattr(definition, 'value', None)
    return isinstance(value, BoxedExpression) and value.operator == "Hold"


def _infer_all(ops: Ops, type: str, skip_collections: bool = False) -> None:
    for op in ops:
        if is_finite_indexable_collection(op):
            if not skip_collections:
                for element in op.each():
                    element.infer(type)
        else:
            op.infer(type)


def _numeric_group_type(ops: Ops) -> str:
    # A complex operand widens the whole group to "number"
    if any(is_subtype(op.type, "complex") for op in ops):
        return "number"
    return "real"


# ============================================================
# Checks
# ============================================================

def check_arity(engine, ops: Ops, count: int) -> Tuple[BoxedExpression, ...]:
    """
    Check that there are exactly `count` operands.

    Sequences are flattened first. In strict mode, missing operands are
    padded with "missing" errors and excess ones replaced by
    "unexpected-argument" errors, in positional order.
    """
    ops = flatten_sequence(ops)

    if not engine.strict or len(ops) == count:
        return ops

    result = list(ops[:count])
    i = min(count, len(ops))
    while i < count:
        result.append(engine.error("missing"))
        i += 1
    while i < len(ops):
        result.append(engine.error("unexpected-argument", (str(ops[i]),)))
        i += 1
    return tuple(result)


def check_numeric_args(engine, ops: Ops, count: Optional[int] = None,
                       flatten: Optional[str] = None) -> Tuple[BoxedExpression, ...]:
    """
    Validate operands of a numeric function.

    Args:
        engine: Owning engine
        ops: Canonical operands
        count: Expected number of operands (defaults to len(ops))
        flatten: Associative operator to flatten, if any

    Returns:
        The operands, with error nodes where an operand is not numeric.
        If every operand validated, deferred operands are inferred to be
        "real" (or "number" when a complex operand is present).
    """
    ops = flatten_ops(ops, flatten)

    if not engine.strict:
        _infer_all(ops, _numeric_group_type(ops), skip_collections=True)
        return ops

    if count is None:
        count = len(ops)

    is_valid = True
    result: List[BoxedExpression] = []
    for i in range(max(count, len(ops))):
        op = ops[i] if i < len(ops) else None
        if i >= count:
            is_valid = False
            result.append(engine.error("unexpected-argument", (str(op),)))
        elif op is None:
            is_valid = False
            result.append(engine.error("missing"))
        elif not op.is_valid:
            is_valid = False
            result.append(op)
        elif op.is_number:
            result.append(op)
        elif op.is_symbol and op.definition is None:
            # Unresolved symbol: assumed numeric, inferred below
            result.append(op)
        elif op.type == "unknown":
            result.append(op)
        elif is_finite_indexable_collection(op):
            if all(element.is_number for element in op.each()):
                result.append(op)
            else:
                is_valid = False
                result.append(engine.type_error("number", op.type, op))
        elif (op.definition is not None and op.definition.inferred
              and is_compatible("number", op.type)):
            result.append(op)
        elif _is_held(op):
            result.append(op)
        else:
            is_valid = False
            result.append(engine.type_error("number", op.type, op))

    if is_valid:
        _infer_all(result, _numeric_group_type(result))

    return tuple(result)


def check_type(engine, arg: Optional[BoxedExpression], type: Optional[str]) -> BoxedExpression:
    """Check that `arg` is of (a subtype of) `type`, canonicalizing it first."""
    if arg is None:
        return engine.error("missing")
    if type is None:
        return engine.error("unexpected-argument", (str(arg),))

    arg = arg.canonical
    if not arg.is_valid:
        return arg
    if is_subtype(arg.type, type):
        return arg
    return engine.type_error(type, arg.type, arg)


def check_types(engine, args: Ops, types: Sequence[str]) -> Tuple[BoxedExpression, ...]:
    """Check each argument against the type at the same position."""
    if len(args) == len(types) and all(is_subtype(x.type, t) for x, t in zip(args, types)):
        return tuple(args)

    result = [check_type(engine, args[i] if i < len(args) else None, t)
              for i, t in enumerate(types)]
    for extra in args[len(types):]:
        result.append(engine.error("unexpected-argument", (str(extra),)))
    return tuple(result)


def check_pure(engine, arg: Optional[BoxedExpression]) -> BoxedExpression:
    """Check that `arg` is free of side effects and non-determinism."""
    if arg is None:
        return engine.error("missing")
    arg = arg.canonical
    if not arg.is_valid:
        return arg
    if arg.is_pure:
        return arg
    return engine.error("expected-pure-expression", (str(arg),))


def _check_param(engine, op: BoxedExpression, param: str, lazy: bool,
                 threadable: bool) -> Tuple[BoxedExpression, bool]:
    """Check one operand against one parameter type: (result, ok)."""
    if lazy:
        return op, True
    if not op.is_valid:
        return op, False
    if op.type == "unknown":
        return op, True
    if threadable and is_finite_indexable_collection(op):
        return op, True
    if op.definition is not None and op.definition.inferred and is_compatible(op.type, param):
        return op, True
    if not is_subtype(op.type, param):
        return engine.type_error(param, op.type, op), False
    return op, True


def validate_arguments(engine, ops: Ops, signature: Signature, lazy: bool = False,
                       threadable: bool = False) -> Optional[Tuple[BoxedExpression, ...]]:
    """
    Validate operands against a signature.

    Walks the required, then optional, then rest parameters. Operands
    beyond all parameters become "unexpected-argument" errors.

    Returns:
        None if the operands are valid (inference has then been committed),
        otherwise the operands with error nodes in place.
    """
    if not engine.strict:
        return None

    result: List[BoxedExpression] = []
    is_valid = True
    i = 0

    for param in signature.required:
        if i >= len(ops):
            result.append(engine.error("missing"))
            is_valid = False
            continue
        checked, ok = _check_param(engine, ops[i], param, lazy, threadable)
        result.append(checked)
        is_valid = is_valid and ok
        i += 1

    for param in signature.optional:
        if i >= len(ops):
            break
        checked, ok = _check_param(engine, ops[i], param, lazy, threadable)
        result.append(checked)
        is_valid = is_valid and ok
        i += 1

    if signature.rest is not None:
        while i < len(ops):
            checked, ok = _check_param(engine, ops[i], signature.rest, lazy, threadable)
            result.append(checked)
            is_valid = is_valid and ok
            i += 1

    for extra in ops[i:]:
        result.append(engine.error("unexpected-argument", (str(extra),)))
        is_valid = False

    if not is_valid:
        return tuple(result)

    if not lazy:
        params = list(signature.required) + list(signature.optional)
        for index, op in enumerate(ops):
            if threadable and is_finite_indexable_collection(op):
                continue
            op.infer(params[index] if index < len(params) else signature.rest)
    return None
