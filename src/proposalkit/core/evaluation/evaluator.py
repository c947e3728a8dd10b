"""
Condition evaluator: decides which blocks are visible.

Semantics
---------
- A rule whose path is missing from the context is ``False`` (fail closed):
  a broken reference can never reveal or require content by accident.
- ``>``, ``<``, ``>=``, ``<=`` need two numeric operands; anything else is
  ``False``. Booleans are not numbers here.
- ``==`` / ``!=`` compare type *and* value: ``"5"`` never equals ``5`` and
  ``True`` never equals ``1``. Numbers compare by value across
  ``int``/``float``/``Decimal``.
- ``AND`` groups need every rule, ``OR`` groups need one; both short-circuit.
  An empty group passes. Groups may nest.

Everything here is pure and never raises; it runs after every edit and on
every render.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable
from decimal import Decimal, InvalidOperation

from proposalkit.core.contracts.blocks import Block
from proposalkit.core.contracts.conditions import ConditionGroup, ConditionRule, RuleValue

from .context import ContextValue, EvaluationContext, build_context

_ORDERING: dict[str, Callable[[Decimal, Decimal], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


def _as_number(value: ContextValue | RuleValue) -> Decimal | None:
    """Return ``value`` as a finite Decimal, or None if it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def _strict_equal(actual: ContextValue, expected: RuleValue) -> bool:
    left, right = _as_number(actual), _as_number(expected)
    if left is not None and right is not None:
        return left == right
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if isinstance(actual, str) and isinstance(expected, str):
        return actual == expected
    return False


def evaluate_rule(rule: ConditionRule, context: EvaluationContext) -> bool:
    """Evaluate a single rule against ``context``."""
    if rule.path not in context:
        return False
    actual = context[rule.path]

    if rule.operator == "==":
        return _strict_equal(actual, rule.value)
    if rule.operator == "!=":
        return not _strict_equal(actual, rule.value)

    left, right = _as_number(actual), _as_number(rule.value)
    if left is None or right is None:
        return False
    return _ORDERING[rule.operator](left, right)


def evaluate_group(group: ConditionGroup, context: EvaluationContext) -> bool:
    """Evaluate a (possibly nested) group; an empty group is ``True``."""
    if not group.rules:
        return True
    results = (
        evaluate_group(node, context)
        if isinstance(node, ConditionGroup)
        else evaluate_rule(node, context)
        for node in group.rules
    )
    if group.logic == "AND":
        return all(results)
    return any(results)


def is_block_visible(block: Block, context: EvaluationContext) -> bool:
    """Return ``True`` if ``block`` has no condition or its condition holds."""
    if block.visibility is None:
        return True
    return evaluate_group(block.visibility, context)


def evaluate_visibility(
    blocks: Iterable[Block], context: EvaluationContext | None = None
) -> dict[str, bool]:
    """Map every block id to its visibility, in document order."""
    seq = tuple(blocks)
    ctx = build_context(seq) if context is None else context
    return {block.id: is_block_visible(block, ctx) for block in seq}


def filter_visible_blocks(
    blocks: Iterable[Block], context: EvaluationContext | None = None
) -> list[Block]:
    """Return only the visible blocks, preserving order."""
    seq = tuple(blocks)
    ctx = build_context(seq) if context is None else context
    return [block for block in seq if is_block_visible(block, ctx)]


__all__ = [
    "evaluate_group",
    "evaluate_rule",
    "evaluate_visibility",
    "filter_visible_blocks",
    "is_block_visible",
]
