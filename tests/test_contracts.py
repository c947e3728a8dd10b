"""Contract tests: block union, camelCase wire format, document invariants.

This suite checks:
- Every block type parses from its persisted JSON into its own class.
- Generated JSON Schemas expose the camelCase property names clients send.
- Documents reject duplicate block ids.
"""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError as PydanticValidationError

from proposalkit.core.contracts.blocks import (
    BLOCK_CLASSES,
    PaymentBlock,
    PricingTableBlock,
    SignatureBlockData,
    VideoEmbedBlock,
    block_adapter,
)
from proposalkit.core.contracts.document import Document
from proposalkit.core.contracts.pricing import PricingBlockData, PricingItem


def _required(schema: dict[str, Any]) -> set[str]:
    return set(schema.get("required", []))


@pytest.mark.parametrize("block_type", sorted(BLOCK_CLASSES))  # type: ignore[misc]
def test_each_block_type_parses_to_its_class(block_type: str) -> None:
    block = block_adapter.validate_python({"id": "b", "type": block_type})
    assert type(block) is BLOCK_CLASSES[block_type]
    assert block.type == block_type


def test_unknown_block_type_is_rejected() -> None:
    with pytest.raises(PydanticValidationError):
        block_adapter.validate_python({"id": "b", "type": "hologram"})


def test_payload_fields_are_camel_case_on_the_wire() -> None:
    block = block_adapter.validate_python(
        {"id": "v", "type": "video-embed", "data": {"url": "https://x", "aspectRatio": "4:3"}}
    )
    assert isinstance(block, VideoEmbedBlock)
    assert block.data.aspect_ratio == "4:3"
    assert block.dump_json_dict()["data"]["aspectRatio"] == "4:3"


def test_pricing_schema_uses_wire_names() -> None:
    item = PricingItem.model_json_schema(by_alias=True)
    assert _required(item) == {"id"}
    for key in ("unitPrice", "isOptional", "isSelected", "allowQuantityChange"):
        assert key in item["properties"]

    table = PricingBlockData.model_json_schema(by_alias=True)
    for key in ("discountType", "discountValue", "taxRate", "taxLabel", "showDescription"):
        assert key in table["properties"]


def test_signature_and_payment_wire_names() -> None:
    props = SignatureBlockData.model_json_schema(by_alias=True)["properties"]
    assert {"signatureType", "signatureValue", "signedAt", "signedBy"} <= set(props)

    payment = block_adapter.validate_python(
        {"id": "pay", "type": "payment", "data": {"usePricingTableTotal": False, "amount": 90}}
    )
    assert isinstance(payment, PaymentBlock)
    assert payment.data.use_pricing_table_total is False


def test_models_are_frozen() -> None:
    block = PricingTableBlock(id="p")
    with pytest.raises(PydanticValidationError):
        block.id = "q"  # type: ignore[misc]


def test_document_rejects_duplicate_block_ids() -> None:
    with pytest.raises(PydanticValidationError):
        Document.model_validate(
            {"blocks": [{"id": "a", "type": "text"}, {"id": "a", "type": "divider"}]}
        )


def test_document_defaults() -> None:
    doc = Document()
    assert doc.title == "Untitled Document"
    assert doc.blocks == ()
    assert doc.dump_json_dict() == {"title": "Untitled Document", "blocks": []}
