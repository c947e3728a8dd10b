"""
Signature completion gate: may this document be submitted?

Rules
-----
- Only signature blocks that are ``required`` **and** currently visible count.
  A required signature hidden by its condition is not required; visibility
  always wins.
- A counted block is complete when it carries a non-blank ``signatureValue``.
- The document can be submitted when every counted block is complete.

When submission is blocked the gate reports *which* signer roles are still
missing, so the caller can show a specific message instead of a bare "no".
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import Field

from proposalkit.core.contracts.base import ContractModel
from proposalkit.core.contracts.blocks import Block, SignatureBlock
from proposalkit.core.contracts.document import Document
from proposalkit.core.evaluation.context import EvaluationContext, build_context
from proposalkit.core.evaluation.evaluator import is_block_visible
from proposalkit.core.result import Result, err, ok


class SubmissionCheck(ContractModel):
    """Outcome of the gate: ``ok`` plus the roles that still have to sign."""

    ok: bool
    missing_roles: tuple[str, ...] = Field(default=())


@dataclass(frozen=True, slots=True)
class SubmissionError:
    """Recoverable refusal to submit; returned, never raised."""

    missing_roles: tuple[str, ...]

    @property
    def message(self) -> str:
        roles = ", ".join(self.missing_roles)
        noun = "signature" if len(self.missing_roles) == 1 else "signatures"
        return f"Missing required {noun}: {roles}"


def required_signatures(
    blocks: Iterable[Block], context: EvaluationContext | None = None
) -> list[SignatureBlock]:
    """Return the required signature blocks that are currently visible."""
    seq = tuple(blocks)
    ctx = build_context(seq) if context is None else context
    return [
        block
        for block in seq
        if isinstance(block, SignatureBlock)
        and block.data.required
        and is_block_visible(block, ctx)
    ]


def can_submit(
    blocks: Iterable[Block], context: EvaluationContext | None = None
) -> SubmissionCheck:
    """Check whether every visible required signature has been given.

    ``missing_roles`` lists unsigned roles in document order (a role appears
    once per unsigned block).
    """
    missing = tuple(
        block.data.role
        for block in required_signatures(blocks, context)
        if not block.data.is_signed
    )
    return SubmissionCheck(ok=not missing, missing_roles=missing)


def submit(document: Document) -> Result[Document, SubmissionError]:
    """Gate a document for the submission flow.

    Returns ``Ok(document)`` when it may be submitted, ``Err(SubmissionError)``
    listing the missing roles otherwise.
    """
    check = can_submit(document.blocks)
    if check.ok:
        return ok(document)
    return err(SubmissionError(missing_roles=check.missing_roles))


__all__ = [
    "SubmissionCheck",
    "SubmissionError",
    "can_submit",
    "required_signatures",
    "submit",
]
