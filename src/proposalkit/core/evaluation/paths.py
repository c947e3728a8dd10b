"""
Typed field paths addressable by visibility conditions.

Condition rules name the value they test with a dotted string such as
``"pricing.items.item1.isSelected"``. Those strings are parsed exactly once,
when the rule is constructed, into one of the small frozen path types below.
The evaluation context is keyed by the same types, so evaluating a rule is a
plain dictionary lookup.

Grammar
-------
::

    pricing.total
    pricing.subtotal
    pricing.items.<itemId>.isSelected
    pricing.items.<itemId>.quantity
    pricing.items.<itemId>.total

Item ids may not contain dots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import assert_never

from proposalkit.core.errors import ValidationError


@dataclass(frozen=True, slots=True)
class PricingTotal:
    """Grand total of the document's pricing table."""


@dataclass(frozen=True, slots=True)
class PricingSubtotal:
    """Sum of selected line items before discount and tax."""


@dataclass(frozen=True, slots=True)
class ItemSelected:
    """Whether a line item counts towards the total."""

    item_id: str


@dataclass(frozen=True, slots=True)
class ItemQuantity:
    """Current quantity of a line item."""

    item_id: str


@dataclass(frozen=True, slots=True)
class ItemTotal:
    """Quantity times unit price of a line item, selected or not."""

    item_id: str


FieldPath = PricingTotal | PricingSubtotal | ItemSelected | ItemQuantity | ItemTotal

_ITEM_FIELDS: dict[str, type[ItemSelected] | type[ItemQuantity] | type[ItemTotal]] = {
    "isSelected": ItemSelected,
    "quantity": ItemQuantity,
    "total": ItemTotal,
}


def parse_field_path(raw: str) -> FieldPath:
    """Parse a dotted path into its typed form.

    Raises
    ------
    ValidationError
        If ``raw`` does not match the grammar in the module docstring.
    """
    if not isinstance(raw, str):
        raise ValidationError(f"Condition field must be a string, got {type(raw).__name__}")

    match raw.strip().split("."):
        case ["pricing", "total"]:
            return PricingTotal()
        case ["pricing", "subtotal"]:
            return PricingSubtotal()
        case ["pricing", "items", item_id, attr] if item_id and attr in _ITEM_FIELDS:
            return _ITEM_FIELDS[attr](item_id)
        case _:
            raise ValidationError(f"Unknown condition field path: {raw!r}")


def format_field_path(path: FieldPath) -> str:
    """Return the dotted form of ``path`` (inverse of :func:`parse_field_path`)."""
    match path:
        case PricingTotal():
            return "pricing.total"
        case PricingSubtotal():
            return "pricing.subtotal"
        case ItemSelected(item_id=item_id):
            return f"pricing.items.{item_id}.isSelected"
        case ItemQuantity(item_id=item_id):
            return f"pricing.items.{item_id}.quantity"
        case ItemTotal(item_id=item_id):
            return f"pricing.items.{item_id}.total"
        case _:
            assert_never(path)


__all__ = [
    "FieldPath",
    "ItemQuantity",
    "ItemSelected",
    "ItemTotal",
    "PricingSubtotal",
    "PricingTotal",
    "format_field_path",
    "parse_field_path",
]
