"""Unit tests for the evaluation context builder and its pricing memoization."""

from __future__ import annotations

from decimal import Decimal

import pytest

from proposalkit.core import store
from proposalkit.core.contracts.blocks import PricingTableBlock, TextBlock
from proposalkit.core.contracts.pricing import PricingBlockData
from proposalkit.core.evaluation.context import (
    EMPTY_CONTEXT,
    build_context,
    context_as_dict,
    pricing_context,
)
from proposalkit.core.evaluation.paths import (
    ItemQuantity,
    ItemSelected,
    ItemTotal,
    PricingSubtotal,
    PricingTotal,
)


def _pricing(block_id: str = "p1", price: int = 100) -> PricingTableBlock:
    data = PricingBlockData.model_validate(
        {
            "items": [
                {"id": "base", "quantity": 2, "unitPrice": price},
                {"id": "opt", "quantity": 1, "unitPrice": 50, "isOptional": True,
                 "isSelected": False, "allowQuantityChange": False},
            ],
            "taxRate": 10,
        }
    )
    return PricingTableBlock(id=block_id, data=data)


def test_no_pricing_table_means_no_pricing_paths() -> None:
    ctx = build_context([TextBlock(id="t")])
    assert ctx is EMPTY_CONTEXT
    assert PricingTotal() not in ctx


def test_context_entries_of_first_pricing_table() -> None:
    ctx = build_context([TextBlock(id="t"), _pricing()])

    assert ctx[PricingSubtotal()] == Decimal("200")
    assert ctx[PricingTotal()] == Decimal("220")
    assert ctx[ItemSelected("base")] is True
    assert ctx[ItemSelected("opt")] is False
    assert ctx[ItemQuantity("opt")] == 1
    assert ctx[ItemTotal("opt")] == Decimal("50")


def test_later_pricing_tables_are_ignored() -> None:
    ctx = build_context([_pricing("p1", 100), _pricing("p2", 999)])
    assert ctx[PricingSubtotal()] == Decimal("200")


def test_context_is_read_only() -> None:
    ctx = build_context([_pricing()])
    with pytest.raises(TypeError):
        ctx[PricingTotal()] = Decimal("0")  # type: ignore[index]


def test_context_is_memoized_on_pricing_data() -> None:
    pricing_context.cache_clear()
    table = _pricing()
    blocks = (TextBlock(id="a"), table)

    first = build_context(blocks)
    # Editing an unrelated block reuses the cached context.
    edited = store.update_block_data(blocks, "a", {"content": "changed"}).blocks
    second = build_context(edited)
    assert second is first
    assert pricing_context.cache_info().hits >= 1

    # Editing the table computes a new one.
    repriced = store.update_block_data(edited, "p1", {"taxRate": 0}).blocks
    third = build_context(repriced)
    assert third is not first
    assert third[PricingTotal()] == Decimal("200")


def test_context_as_dict_uses_dotted_keys() -> None:
    out = context_as_dict(build_context([_pricing()]))
    assert out["pricing.total"] == 220.0
    assert out["pricing.items.base.isSelected"] is True
    assert out["pricing.items.opt.quantity"] == 1
    assert list(out) == sorted(out)
