"""
Request/response models of the HTTP API.

All models reuse :class:`~proposalkit.core.contracts.base.ContractModel`, so
the wire format is the same camelCase JSON as the persisted documents.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from proposalkit.core.contracts.base import ContractModel
from proposalkit.core.contracts.blocks import Block
from proposalkit.core.contracts.document import Document
from proposalkit.core.contracts.pricing import PricingBlockData, PricingSummary
from proposalkit.core.gate import SubmissionCheck
from proposalkit.core.history.state import SaveStatus
from proposalkit.core.session import EditSession

# ------------------------------- Stateless ------------------------------------


class PricingRequest(ContractModel):
    data: PricingBlockData


class PricingResponse(ContractModel):
    summary: PricingSummary
    formatted_total: str


class BlocksRequest(ContractModel):
    """Body of the stateless evaluation endpoints."""

    blocks: tuple[Block, ...] = Field(default=())


class VisibilityResponse(ContractModel):
    visibility: dict[str, bool]
    context: dict[str, Any]


# ------------------------------- Sessions -------------------------------------


class CreateSessionRequest(ContractModel):
    document: Document | None = None
    document_id: str | None = None


class SessionView(ContractModel):
    """Everything a client needs to render an open session."""

    session_id: str
    title: str
    blocks: tuple[Block, ...]
    dirty: bool
    save_status: SaveStatus
    revision: int
    can_undo: bool
    can_redo: bool
    last_error: str | None = None
    visibility: dict[str, bool]
    pricing: PricingSummary | None = None
    submission: SubmissionCheck

    @classmethod
    def of(cls, session: EditSession) -> SessionView:
        state = session.state
        return cls(
            session_id=session.document_id,
            title=state.title,
            blocks=state.blocks,
            dirty=state.dirty,
            save_status=state.save_status,
            revision=state.revision,
            can_undo=state.can_undo,
            can_redo=state.can_redo,
            last_error=state.last_error,
            visibility=dict(session.visibility),
            pricing=session.pricing,
            submission=session.submission,
        )


class SaveResponse(ContractModel):
    saved: bool
    session: SessionView


__all__ = [
    "BlocksRequest",
    "CreateSessionRequest",
    "PricingRequest",
    "PricingResponse",
    "SaveResponse",
    "SessionView",
    "VisibilityResponse",
]
