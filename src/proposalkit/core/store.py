"""
Block store: ordered, immutable block sequences and the operations on them.

Every operation takes a ``tuple`` of blocks and returns a :class:`StoreResult`
holding a *new* tuple; nothing is mutated in place. Operations are total:
targeting an id that is not in the document returns the input unchanged with
``applied=False`` instead of raising, so replaying a command log never fails
halfway because an earlier command removed a block.

Payload problems (unknown block type, duplicate id, invalid data) are a
different matter and raise :class:`~proposalkit.core.errors.ValidationError`.

Operations
----------
- :func:`add_block`          insert a block with type defaults
- :func:`remove_block`       delete a block
- :func:`move_block`         move a block before another one (or to the end)
- :func:`update_block_data`  merge fields into a block's ``data``
- :func:`set_visibility`     attach or clear a block's condition
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, assert_never

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from proposalkit.core.contracts.blocks import (
    BLOCK_CLASSES,
    Block,
    BlockData,
    DividerBlockData,
    ImageBlockData,
    PaymentBlockData,
    SignatureBlockData,
    SpacerBlockData,
    TableBlockData,
    TextBlockData,
    VideoEmbedBlockData,
    block_adapter,
)
from proposalkit.core.contracts.conditions import ConditionGroup
from proposalkit.core.contracts.pricing import PricingBlockData, PricingItem
from proposalkit.core.errors import ValidationError

Blocks = tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class StoreResult:
    """Outcome of a store operation.

    Attributes
    ----------
    blocks : tuple[Block, ...]
        The resulting block sequence (the input itself when nothing changed).
    applied : bool
        False when the operation targeted a missing id and was skipped.
    """

    blocks: Blocks
    applied: bool


def new_id() -> str:
    """Return a fresh random id for blocks and pricing items."""
    return str(uuid.uuid4())


def default_block_data(block_type: str) -> BlockData:
    """Return the payload a freshly added block of ``block_type`` starts with."""
    match block_type:
        case "text":
            return TextBlockData()
        case "image":
            return ImageBlockData()
        case "divider":
            return DividerBlockData()
        case "spacer":
            return SpacerBlockData()
        case "video-embed":
            return VideoEmbedBlockData()
        case "table":
            return TableBlockData()
        case "pricing-table":
            return PricingBlockData(items=(PricingItem(id=new_id(), name="Item 1"),))
        case "signature":
            return SignatureBlockData()
        case "payment":
            return PaymentBlockData()
        case _:
            raise ValidationError(f"Unknown block type: {block_type!r}")


def make_block(block_type: str, block_id: str | None = None) -> Block:
    """Build a new block of ``block_type`` with its default payload."""
    data = default_block_data(block_type)
    block = BLOCK_CLASSES[block_type](id=block_id or new_id(), data=data)
    return block  # type: ignore[return-value]


def index_of(blocks: Blocks, block_id: str) -> int | None:
    """Return the position of ``block_id`` in ``blocks`` or ``None``."""
    for index, block in enumerate(blocks):
        if block.id == block_id:
            return index
    return None


def find_block(blocks: Blocks, block_id: str) -> Block | None:
    index = index_of(blocks, block_id)
    return None if index is None else blocks[index]


# ------------------------------- Operations ------------------------------------


def add_block(
    blocks: Blocks,
    block_type: str,
    at_index: int | None = None,
    *,
    block_id: str | None = None,
) -> StoreResult:
    """Insert a new block of ``block_type`` at ``at_index`` (default: the end).

    Indexes outside the sequence are clamped to its bounds.
    """
    if block_id is not None and index_of(blocks, block_id) is not None:
        raise ValidationError(f"Block id already in use: {block_id!r}")

    block = make_block(block_type, block_id)
    position = len(blocks) if at_index is None else max(0, min(at_index, len(blocks)))
    return StoreResult(blocks[:position] + (block,) + blocks[position:], applied=True)


def insert_block(
    blocks: Blocks, block: Block | Mapping[str, Any], at_index: int | None = None
) -> StoreResult:
    """Insert an already-built block (e.g. pasted or duplicated content)."""
    try:
        parsed = block if isinstance(block, BaseModel) else block_adapter.validate_python(block)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, "Invalid block") from exc
    if index_of(blocks, parsed.id) is not None:
        raise ValidationError(f"Block id already in use: {parsed.id!r}")

    position = len(blocks) if at_index is None else max(0, min(at_index, len(blocks)))
    return StoreResult(blocks[:position] + (parsed,) + blocks[position:], applied=True)


def remove_block(blocks: Blocks, block_id: str) -> StoreResult:
    """Delete ``block_id``; a no-op if it is not present."""
    index = index_of(blocks, block_id)
    if index is None:
        return StoreResult(blocks, applied=False)
    return StoreResult(blocks[:index] + blocks[index + 1 :], applied=True)


def move_block(blocks: Blocks, block_id: str, before_id: str | None = None) -> StoreResult:
    """Move ``block_id`` immediately before ``before_id``.

    When ``before_id`` is ``None`` or not in the document the block moves to
    the end. The relative order of all other blocks is preserved.
    """
    index = index_of(blocks, block_id)
    if index is None:
        return StoreResult(blocks, applied=False)
    if before_id == block_id:
        return StoreResult(blocks, applied=False)

    moving = blocks[index]
    rest = blocks[:index] + blocks[index + 1 :]
    target = index_of(rest, before_id) if before_id is not None else None
    if target is None:
        target = len(rest)

    moved = rest[:target] + (moving,) + rest[target:]
    if moved == blocks:
        return StoreResult(blocks, applied=False)
    return StoreResult(moved, applied=True)


def update_block_data(blocks: Blocks, block_id: str, partial: Mapping[str, Any]) -> StoreResult:
    """Merge ``partial`` into the ``data`` of ``block_id``.

    Keys may use either the Python (``unit_price``) or the wire
    (``unitPrice``) spelling. The merged payload is re-validated as a whole,
    so a bad value leaves the document untouched.
    A partial that changes nothing is reported as not applied.
    """
    index = index_of(blocks, block_id)
    if index is None:
        return StoreResult(blocks, applied=False)

    block = blocks[index]
    data = merge_payload(block.data, partial)
    if data == block.data:
        return StoreResult(blocks, applied=False)
    updated = block.model_copy(update={"data": data})
    return StoreResult(blocks[:index] + (updated,) + blocks[index + 1 :], applied=True)


def set_visibility(
    blocks: Blocks,
    block_id: str,
    visibility: ConditionGroup | Mapping[str, Any] | None,
) -> StoreResult:
    """Attach ``visibility`` to ``block_id`` (``None`` clears it)."""
    index = index_of(blocks, block_id)
    if index is None:
        return StoreResult(blocks, applied=False)

    group: ConditionGroup | None
    if visibility is None or isinstance(visibility, ConditionGroup):
        group = visibility
    else:
        try:
            group = ConditionGroup.model_validate(visibility)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc, "Invalid visibility condition") from exc

    updated = blocks[index].model_copy(update={"visibility": group})
    return StoreResult(blocks[:index] + (updated,) + blocks[index + 1 :], applied=True)


# ------------------------------- Payload helpers -------------------------------


def _wire_keys(model: type[BaseModel], partial: Mapping[str, Any]) -> dict[str, Any]:
    """Rename ``partial`` keys to ``model``'s camelCase aliases; reject unknown keys."""
    aliases = {name: info.alias or to_camel(name) for name, info in model.model_fields.items()}
    known = set(aliases.values())
    out: dict[str, Any] = {}
    for key, value in partial.items():
        if key in aliases:
            out[aliases[key]] = value
        elif key in known:
            out[key] = value
        else:
            raise ValidationError(f"Unknown field {key!r} for {model.__name__}")
    return out


def merge_payload(data: BlockData, partial: Mapping[str, Any]) -> BlockData:
    """Return a new, validated payload with ``partial`` merged into ``data``."""
    model = type(data)
    merged: dict[str, Any] = data.model_dump(by_alias=True)
    merged.update(_wire_keys(model, partial))

    try:
        return model.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, f"Invalid {model.__name__}") from exc


def add_pricing_item(
    data: PricingBlockData, item: PricingItem | Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Return the ``items`` partial that appends ``item`` (a blank line by default)."""
    if item is None:
        new_item = PricingItem(id=new_id(), name=f"Item {len(data.items) + 1}")
    elif isinstance(item, PricingItem):
        new_item = item
    else:
        try:
            new_item = PricingItem.model_validate({"id": new_id(), **item})
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc, "Invalid pricing item") from exc
    return {"items": data.items + (new_item,)}


def update_pricing_item(
    data: PricingBlockData, item_id: str, partial: Mapping[str, Any]
) -> dict[str, Any]:
    """Return the ``items`` partial with ``partial`` merged into ``item_id``.

    An unknown ``item_id`` yields the items unchanged.
    """
    items = tuple(
        merge_item(item, partial) if item.id == item_id else item for item in data.items
    )
    return {"items": items}


def remove_pricing_item(data: PricingBlockData, item_id: str) -> dict[str, Any]:
    """Return the ``items`` partial without ``item_id``."""
    return {"items": tuple(item for item in data.items if item.id != item_id)}


def merge_item(item: PricingItem, partial: Mapping[str, Any]) -> PricingItem:
    if "id" in partial and partial["id"] != item.id:
        raise ValidationError("Pricing item ids cannot be changed")
    merged = item.model_dump(by_alias=True)
    merged.update(_wire_keys(PricingItem, partial))
    try:
        return PricingItem.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, "Invalid pricing item") from exc


def describe(block: Block) -> str:
    """Return a short human label for ``block`` (used by the CLI and logs)."""
    data = block.data
    match data:
        case TextBlockData(content=content):
            text = " ".join(content.split())
            return text[:40] + ("…" if len(text) > 40 else "") or "(empty text)"
        case ImageBlockData(url=url, alt=alt):
            return alt or url or "(no image)"
        case DividerBlockData(style=style):
            return f"{style} divider"
        case SpacerBlockData(height=height):
            return f"{height}px"
        case VideoEmbedBlockData(url=url, title=title):
            return title or url or "(no video)"
        case TableBlockData(rows=rows, columns=columns):
            return f"{rows}x{columns} table"
        case PricingBlockData(title=title, items=items):
            return f"{title} ({len(items)} items)"
        case SignatureBlockData(role=role, required=required):
            return f"{role}{' (required)' if required else ''}"
        case PaymentBlockData(description=description):
            return description
        case _:
            assert_never(data)


__all__ = [
    "Blocks",
    "StoreResult",
    "add_block",
    "add_pricing_item",
    "default_block_data",
    "describe",
    "find_block",
    "index_of",
    "insert_block",
    "make_block",
    "merge_payload",
    "move_block",
    "new_id",
    "remove_block",
    "remove_pricing_item",
    "set_visibility",
    "update_block_data",
    "update_pricing_item",
]
