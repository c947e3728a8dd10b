"""Unit tests for the block store: ordering, mutation and payload merging."""

from __future__ import annotations

from decimal import Decimal

import pytest

from proposalkit.core import store
from proposalkit.core.contracts.blocks import (
    PricingTableBlock,
    SignatureBlock,
    TextBlock,
    TextBlockData,
)
from proposalkit.core.contracts.conditions import ConditionGroup
from proposalkit.core.contracts.pricing import PricingBlockData, PricingItem
from proposalkit.core.errors import ValidationError


def _texts(*ids: str) -> tuple[TextBlock, ...]:
    return tuple(TextBlock(id=i, data=TextBlockData(content=i)) for i in ids)


def _ids(blocks: store.Blocks) -> list[str]:
    return [b.id for b in blocks]


# ------------------------------- add / remove ---------------------------------


def test_add_block_appends_with_defaults() -> None:
    result = store.add_block(_texts("a"), "signature", block_id="sig")
    assert result.applied
    assert _ids(result.blocks) == ["a", "sig"]
    added = result.blocks[-1]
    assert isinstance(added, SignatureBlock)
    assert added.data.role == "Client" and added.data.required


def test_add_block_at_index_is_clamped() -> None:
    blocks = _texts("a", "b")
    assert _ids(store.add_block(blocks, "text", 0, block_id="n").blocks) == ["n", "a", "b"]
    assert _ids(store.add_block(blocks, "text", 99, block_id="n").blocks) == ["a", "b", "n"]
    assert _ids(store.add_block(blocks, "text", -5, block_id="n").blocks) == ["n", "a", "b"]


def test_new_pricing_table_starts_with_one_item() -> None:
    block = store.make_block("pricing-table", "p")
    assert isinstance(block, PricingTableBlock)
    assert len(block.data.items) == 1
    item = block.data.items[0]
    assert item.name == "Item 1" and item.quantity == 1 and item.unit_price == 0


def test_add_block_rejects_unknown_type_and_duplicate_id() -> None:
    with pytest.raises(ValidationError):
        store.add_block((), "carousel")
    with pytest.raises(ValidationError):
        store.add_block(_texts("a"), "text", block_id="a")


def test_remove_block() -> None:
    result = store.remove_block(_texts("a", "b", "c"), "b")
    assert result.applied and _ids(result.blocks) == ["a", "c"]


def test_missing_id_is_a_noop() -> None:
    blocks = _texts("a", "b")
    for result in (
        store.remove_block(blocks, "zzz"),
        store.move_block(blocks, "zzz", "a"),
        store.update_block_data(blocks, "zzz", {"content": "x"}),
        store.set_visibility(blocks, "zzz", None),
    ):
        assert not result.applied
        assert result.blocks is blocks


def test_insert_block_from_json() -> None:
    result = store.insert_block(
        _texts("a"), {"id": "sp", "type": "spacer", "data": {"height": 80}}, at_index=0
    )
    assert _ids(result.blocks) == ["sp", "a"]
    with pytest.raises(ValidationError):
        store.insert_block(_texts("a"), {"id": "x", "type": "nope"})


# ------------------------------- move ------------------------------------------


def test_move_before_target_preserves_others() -> None:
    blocks = _texts("a", "b", "c", "d")
    assert _ids(store.move_block(blocks, "d", "b").blocks) == ["a", "d", "b", "c"]
    assert _ids(store.move_block(blocks, "a", "d").blocks) == ["b", "c", "a", "d"]


def test_move_without_target_goes_to_end() -> None:
    blocks = _texts("a", "b", "c")
    assert _ids(store.move_block(blocks, "a").blocks) == ["b", "c", "a"]
    assert _ids(store.move_block(blocks, "a", "gone").blocks) == ["b", "c", "a"]


def test_move_that_keeps_order_is_not_applied() -> None:
    blocks = _texts("a", "b", "c")
    assert not store.move_block(blocks, "a", "b").applied
    assert not store.move_block(blocks, "c").applied
    assert not store.move_block(blocks, "b", "b").applied


# ------------------------------- update ----------------------------------------


def test_update_merges_without_touching_id_or_type() -> None:
    blocks = _texts("a")
    result = store.update_block_data(blocks, "a", {"fontSize": 24, "alignment": "center"})
    block = result.blocks[0]
    assert block.id == "a" and block.type == "text"
    assert isinstance(block, TextBlock)
    assert block.data.content == "a"
    assert block.data.font_size == 24 and block.data.alignment == "center"
    # Original is untouched.
    assert blocks[0].data.font_size != 24


def test_update_accepts_python_field_names() -> None:
    block = PricingTableBlock(id="p")
    result = store.update_block_data((block,), "p", {"tax_rate": 8, "discountType": "fixed"})
    data = result.blocks[0].data
    assert isinstance(data, PricingBlockData)
    assert data.tax_rate == Decimal("8") and data.discount_type == "fixed"


def test_update_that_changes_nothing_is_not_applied() -> None:
    blocks = _texts("a")
    for partial in ({}, {"content": "a"}, {"fontSize": 16}):
        result = store.update_block_data(blocks, "a", partial)
        assert not result.applied
        assert result.blocks is blocks


@pytest.mark.parametrize(  # type: ignore[misc]
    "partial",
    [
        {"taxRate": 150},
        {"items": [{"id": "i", "quantity": 0}]},
        {"noSuchField": 1},
    ],
)
def test_invalid_update_raises(partial: dict[str, object]) -> None:
    blocks = (PricingTableBlock(id="p"),)
    with pytest.raises(ValidationError):
        store.update_block_data(blocks, "p", partial)


def test_set_visibility_attach_and_clear() -> None:
    blocks = _texts("a")
    group = {"logic": "OR", "rules": [{"field": "pricing.total", "operator": ">", "value": 1}]}
    attached = store.set_visibility(blocks, "a", group).blocks
    assert isinstance(attached[0].visibility, ConditionGroup)
    assert attached[0].visibility.logic == "OR"

    cleared = store.set_visibility(attached, "a", None).blocks
    assert cleared[0].visibility is None


def test_set_visibility_rejects_malformed_path() -> None:
    bad = {"rules": [{"field": "pricing.items.x", "operator": "==", "value": True}]}
    with pytest.raises(ValidationError):
        store.set_visibility(_texts("a"), "a", bad)


# ------------------------------- pricing items ---------------------------------


def test_pricing_item_helpers() -> None:
    data = PricingBlockData(items=(PricingItem(id="i1", name="Design", unit_price=Decimal("100")),))

    added = store.add_pricing_item(data, {"name": "Hosting", "unitPrice": 20})
    assert [i.name for i in added["items"]] == ["Design", "Hosting"]

    updated = store.update_pricing_item(data, "i1", {"quantity": 3})
    assert updated["items"][0].quantity == 3

    removed = store.remove_pricing_item(data, "i1")
    assert removed["items"] == ()

    with pytest.raises(ValidationError):
        store.update_pricing_item(data, "i1", {"id": "other"})


def _table_data(blocks: store.Blocks) -> PricingBlockData:
    data = blocks[0].data
    assert isinstance(data, PricingBlockData)
    return data


def test_pricing_item_partials_feed_update_block_data() -> None:
    blocks: store.Blocks = (store.make_block("pricing-table", "p"),)

    result = store.update_block_data(blocks, "p", store.add_pricing_item(_table_data(blocks)))
    assert result.applied
    data = _table_data(result.blocks)
    assert [i.name for i in data.items] == ["Item 1", "Item 2"]
    second = data.items[1].id

    partial = store.update_pricing_item(data, second, {"unitPrice": 75, "quantity": 2})
    result = store.update_block_data(result.blocks, "p", partial)
    assert result.applied
    item = _table_data(result.blocks).find_item(second)
    assert item is not None
    assert item.unit_price == Decimal("75") and item.quantity == 2

    partial = store.remove_pricing_item(_table_data(result.blocks), second)
    result = store.update_block_data(result.blocks, "p", partial)
    assert result.applied
    assert [i.name for i in _table_data(result.blocks).items] == ["Item 1"]


def test_unknown_pricing_item_partial_is_not_applied() -> None:
    blocks: store.Blocks = (store.make_block("pricing-table", "p"),)
    partial = store.update_pricing_item(_table_data(blocks), "ghost", {"quantity": 5})
    result = store.update_block_data(blocks, "p", partial)
    assert not result.applied
    assert result.blocks is blocks


def test_describe_covers_every_type() -> None:
    for block_type in ("text", "image", "divider", "spacer", "video-embed", "table",
                       "pricing-table", "signature", "payment"):
        assert store.describe(store.make_block(block_type))
