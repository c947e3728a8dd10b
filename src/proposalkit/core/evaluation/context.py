"""
Evaluation context: the flat, computed view of a document that conditions read.

The context maps typed field paths (see :mod:`.paths`) to values:

- ``pricing.total`` / ``pricing.subtotal`` of the **first** pricing table in
  document order;
- ``pricing.items.<id>.isSelected`` / ``.quantity`` / ``.total`` for every
  item of that table.

A document without a pricing table yields an *empty* context. Rules that
reference pricing then fail closed instead of comparing against zero.

Memoization
-----------
Visibility is recomputed after every edit, but most edits do not touch the
pricing table. The context is therefore cached on the pricing payload itself:
payload models are frozen and hashable, so an unchanged table hits the cache
no matter what happened to the other blocks.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from functools import lru_cache
from types import MappingProxyType
from typing import Any

from proposalkit.core.contracts.blocks import Block
from proposalkit.core.contracts.pricing import PricingBlockData
from proposalkit.core.pricing import compute_pricing, first_pricing_block

from .paths import (
    FieldPath,
    ItemQuantity,
    ItemSelected,
    ItemTotal,
    PricingSubtotal,
    PricingTotal,
    format_field_path,
)

ContextValue = bool | int | Decimal
EvaluationContext = Mapping[FieldPath, ContextValue]

EMPTY_CONTEXT: EvaluationContext = MappingProxyType({})


def build_context(blocks: Iterable[Block]) -> EvaluationContext:
    """Project ``blocks`` into an evaluation context."""
    pricing = first_pricing_block(blocks)
    if pricing is None:
        return EMPTY_CONTEXT
    return pricing_context(pricing.data)


@lru_cache(maxsize=256)
def pricing_context(data: PricingBlockData) -> EvaluationContext:
    """Return the (cached) context entries derived from one pricing table."""
    summary = compute_pricing(data)
    values: dict[FieldPath, ContextValue] = {
        PricingTotal(): summary.total,
        PricingSubtotal(): summary.subtotal,
    }
    for item in data.items:
        values[ItemSelected(item.id)] = item.counts_towards_total
        values[ItemQuantity(item.id)] = item.quantity
        values[ItemTotal(item.id)] = item.line_total
    return MappingProxyType(values)


def context_as_dict(context: EvaluationContext) -> dict[str, Any]:
    """Return the context keyed by dotted paths (for display and the API)."""
    out: dict[str, Any] = {}
    for path, value in context.items():
        out[format_field_path(path)] = float(value) if isinstance(value, Decimal) else value
    return dict(sorted(out.items()))


__all__ = [
    "EMPTY_CONTEXT",
    "ContextValue",
    "EvaluationContext",
    "build_context",
    "context_as_dict",
    "pricing_context",
]
