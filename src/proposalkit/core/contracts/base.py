"""Shared building blocks for the document contracts.

- `ContractModel`: frozen Pydantic base with camelCase aliases, so Python code
  uses ``unit_price`` while the persisted JSON keeps ``unitPrice``.
- `Money`, `Percent`: `Decimal` amounts that serialize as JSON numbers.

Notes
-----
- Pydantic v2 serializes `Decimal` as a string in JSON mode by default; the
  persisted document format uses plain numbers, hence the serializer below.
- `dump_json_dict()` is the one place that decides the wire shape
  (aliases on, ``None`` fields dropped).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def _decimal_to_number(value: Decimal) -> int | float:
    """Render integral amounts as ints and the rest as floats."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


Money = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(_decimal_to_number, return_type=int | float, when_used="json"),
]
Percent = Annotated[
    Decimal,
    Field(ge=0, le=100),
    PlainSerializer(_decimal_to_number, return_type=int | float, when_used="json"),
]


class ContractModel(BaseModel):
    """Frozen base model with camelCase wire aliases."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def dump_json_dict(self) -> dict[str, Any]:
        """Return the JSON-safe, camelCase representation of this model."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["ContractModel", "Money", "Percent"]
