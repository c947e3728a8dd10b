"""Persisted document contract: ``{title, blocks}``.

This is the JSON shape exchanged with the persistence collaborator. Editing
state (dirty flag, history, save status) is *not* part of it; see
:mod:`proposalkit.core.history.state`.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from .base import ContractModel
from .blocks import Block


class Document(ContractModel):
    """A titled, ordered sequence of blocks with unique ids."""

    title: str = "Untitled Document"
    blocks: tuple[Block, ...] = Field(default=())

    @field_validator("blocks")
    @classmethod
    def _unique_block_ids(cls, blocks: tuple[Block, ...]) -> tuple[Block, ...]:
        seen: set[str] = set()
        for block in blocks:
            if block.id in seen:
                raise ValueError(f"duplicate block id {block.id!r}")
            seen.add(block.id)
        return blocks


__all__ = ["Document"]
