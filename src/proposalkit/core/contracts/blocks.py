"""
Block contracts: the typed units a proposal is built from.

A block is ``{id, type, data, visibility?}``. The set of block types is closed
and every type has its own payload model, so ``Block`` is a Pydantic
discriminated union over ``type``. Code that needs per-type behaviour matches
on the concrete block classes and ends with ``assert_never`` so a new block
type cannot be forgotten silently.

Block types
-----------
``text``, ``image``, ``divider``, ``spacer``, ``video-embed``, ``table``,
``pricing-table``, ``signature``, ``payment``.

Notes
-----
- Payload field names are snake_case in Python and camelCase on the wire.
- Unknown keys in persisted JSON (``createdAt`` and friends) are ignored.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import Field, TypeAdapter

from .base import ContractModel, Money, Percent
from .conditions import ConditionGroup
from .pricing import PricingBlockData

Alignment = Literal["left", "center", "right"]

# ---- Payloads -----------------------------------------------------------------


class TextBlockData(ContractModel):
    content: str = ""
    font_size: int = Field(default=16, ge=1)
    alignment: Alignment = "left"
    color: str = "#000000"
    font_weight: Literal["normal", "bold"] = "normal"


class ImageBlockData(ContractModel):
    url: str = ""
    alt: str = ""
    width: int = Field(default=100, ge=1)
    height: int | Literal["auto"] = "auto"
    alignment: Alignment = "center"


class DividerBlockData(ContractModel):
    style: Literal["solid", "dashed", "dotted"] = "solid"
    thickness: int = Field(default=1, ge=1)
    color: str = "#e5e7eb"


class SpacerBlockData(ContractModel):
    height: int = Field(default=32, ge=0)


class VideoEmbedBlockData(ContractModel):
    url: str = ""
    title: str = ""
    aspect_ratio: Literal["16:9", "4:3", "1:1"] = "16:9"


class TableBlockData(ContractModel):
    columns: int = Field(default=3, ge=1)
    rows: int = Field(default=3, ge=1)
    headers: tuple[str, ...] = ("Column 1", "Column 2", "Column 3")
    cells: tuple[tuple[str, ...], ...] = (("", "", ""), ("", "", ""))
    header_background: str = "#f3f4f6"


class SignatureBlockData(ContractModel):
    """Signature field; the signing UI writes the ``signature*`` fields back."""

    role: str = "Client"
    required: bool = True
    signature_type: Literal["draw", "type"] = "draw"
    signature_value: str | None = None
    signed_at: datetime | None = None
    signed_by: str | None = None

    @property
    def is_signed(self) -> bool:
        return bool(self.signature_value and self.signature_value.strip())


class PaymentBlockData(ContractModel):
    """Payment request. Charge execution happens outside this package."""

    amount: Money = Decimal("0")
    currency: str = "USD"
    description: str = "Payment required"
    timing: Literal["due_now", "net_30", "net_60"] = "due_now"
    use_pricing_table_total: bool = True
    # 0 means the full amount is due.
    down_payment_percent: Percent = Decimal("0")
    payment_status: Literal["pending", "paid", "failed"] | None = None
    payment_id: str | None = None
    paid_at: datetime | None = None


# ---- Blocks -------------------------------------------------------------------


class _BlockBase(ContractModel):
    id: str = Field(min_length=1)
    visibility: ConditionGroup | None = None


class TextBlock(_BlockBase):
    type: Literal["text"] = "text"
    data: TextBlockData = Field(default_factory=TextBlockData)


class ImageBlock(_BlockBase):
    type: Literal["image"] = "image"
    data: ImageBlockData = Field(default_factory=ImageBlockData)


class DividerBlock(_BlockBase):
    type: Literal["divider"] = "divider"
    data: DividerBlockData = Field(default_factory=DividerBlockData)


class SpacerBlock(_BlockBase):
    type: Literal["spacer"] = "spacer"
    data: SpacerBlockData = Field(default_factory=SpacerBlockData)


class VideoEmbedBlock(_BlockBase):
    type: Literal["video-embed"] = "video-embed"
    data: VideoEmbedBlockData = Field(default_factory=VideoEmbedBlockData)


class TableBlock(_BlockBase):
    type: Literal["table"] = "table"
    data: TableBlockData = Field(default_factory=TableBlockData)


class PricingTableBlock(_BlockBase):
    type: Literal["pricing-table"] = "pricing-table"
    data: PricingBlockData = Field(default_factory=PricingBlockData)


class SignatureBlock(_BlockBase):
    type: Literal["signature"] = "signature"
    data: SignatureBlockData = Field(default_factory=SignatureBlockData)


class PaymentBlock(_BlockBase):
    type: Literal["payment"] = "payment"
    data: PaymentBlockData = Field(default_factory=PaymentBlockData)


Block = Annotated[
    TextBlock
    | ImageBlock
    | DividerBlock
    | SpacerBlock
    | VideoEmbedBlock
    | TableBlock
    | PricingTableBlock
    | SignatureBlock
    | PaymentBlock,
    Field(discriminator="type"),
]

BlockData = (
    TextBlockData
    | ImageBlockData
    | DividerBlockData
    | SpacerBlockData
    | VideoEmbedBlockData
    | TableBlockData
    | PricingBlockData
    | SignatureBlockData
    | PaymentBlockData
)

BlockType = Literal[
    "text",
    "image",
    "divider",
    "spacer",
    "video-embed",
    "table",
    "pricing-table",
    "signature",
    "payment",
]

#: Concrete block class for every type tag.
BLOCK_CLASSES: dict[str, type[_BlockBase]] = {
    "text": TextBlock,
    "image": ImageBlock,
    "divider": DividerBlock,
    "spacer": SpacerBlock,
    "video-embed": VideoEmbedBlock,
    "table": TableBlock,
    "pricing-table": PricingTableBlock,
    "signature": SignatureBlock,
    "payment": PaymentBlock,
}

block_adapter: TypeAdapter[Block] = TypeAdapter(Block)


__all__ = [
    "BLOCK_CLASSES",
    "Block",
    "BlockData",
    "BlockType",
    "DividerBlock",
    "DividerBlockData",
    "ImageBlock",
    "ImageBlockData",
    "PaymentBlock",
    "PaymentBlockData",
    "PricingTableBlock",
    "SignatureBlock",
    "SignatureBlockData",
    "SpacerBlock",
    "SpacerBlockData",
    "TableBlock",
    "TableBlockData",
    "TextBlock",
    "TextBlockData",
    "VideoEmbedBlock",
    "VideoEmbedBlockData",
    "block_adapter",
]
