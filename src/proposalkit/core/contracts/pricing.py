"""
Pricing table contracts.

- :class:`PricingItem`: one line of the table.
- :class:`PricingBlockData`: the payload of a ``pricing-table`` block.
- :class:`PricingSummary`: the derived totals (see :mod:`proposalkit.core.pricing`).

Invariants
----------
- ``quantity`` is an integer >= 1, ``unitPrice`` is a non-negative decimal.
- ``taxRate`` lies in [0, 100]; ``discountValue`` is non-negative.
- Item ids are unique within their table.
- ``isSelected`` only matters for optional items; mandatory items always count.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import Field, field_validator

from .base import ContractModel, Money, Percent

DiscountType = Literal["percentage", "fixed"]


class PricingItem(ContractModel):
    """A single line item."""

    # No dots: the id is a segment of ``pricing.items.<id>.*`` paths.
    id: str = Field(min_length=1, pattern=r"^[^.]+$")
    name: str = ""
    description: str = ""
    quantity: int = Field(default=1, ge=1)
    unit_price: Money = Decimal("0")
    is_optional: bool = False
    is_selected: bool = True
    allow_quantity_change: bool = False

    @property
    def counts_towards_total(self) -> bool:
        """True if the item is mandatory or an optional item the client picked."""
        return not self.is_optional or self.is_selected

    @property
    def line_total(self) -> Decimal:
        """Quantity times unit price, regardless of selection."""
        return self.unit_price * self.quantity


class PricingBlockData(ContractModel):
    """Payload of a ``pricing-table`` block."""

    title: str = "Pricing"
    items: tuple[PricingItem, ...] = ()
    currency: str = Field(default="USD", min_length=1)
    show_description: bool = True
    discount_type: DiscountType = "percentage"
    discount_value: Money = Decimal("0")
    tax_rate: Percent = Decimal("0")
    tax_label: str = "Tax"

    @field_validator("items")
    @classmethod
    def _unique_item_ids(cls, items: tuple[PricingItem, ...]) -> tuple[PricingItem, ...]:
        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                raise ValueError(f"duplicate pricing item id {item.id!r}")
            seen.add(item.id)
        return items

    def find_item(self, item_id: str) -> PricingItem | None:
        """Return the item with ``item_id``, or ``None``."""
        return next((i for i in self.items if i.id == item_id), None)


class PricingSummary(ContractModel):
    """Derived totals of a pricing table."""

    subtotal: Money = Decimal("0")
    discount: Money = Decimal("0")
    tax: Money = Decimal("0")
    total: Money = Decimal("0")

    @property
    def after_discount(self) -> Decimal:
        return self.subtotal - self.discount


__all__ = ["DiscountType", "PricingBlockData", "PricingItem", "PricingSummary"]
