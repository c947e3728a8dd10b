"""
Stateless evaluation endpoints.

Endpoints
---------
- `POST /pricing`: totals of one pricing table.
- `POST /visibility`: visibility of every block, plus the evaluation context.
- `POST /submission-check`: whether the blocks may be submitted.

These take the full block list in the request body and keep nothing between
calls. Editing with history and autosave goes through `/sessions`.
"""

from __future__ import annotations

from fastapi import APIRouter

from proposalkit.api.schemas import (
    BlocksRequest,
    PricingRequest,
    PricingResponse,
    VisibilityResponse,
)
from proposalkit.core.evaluation.context import build_context, context_as_dict
from proposalkit.core.evaluation.evaluator import evaluate_visibility
from proposalkit.core.gate import SubmissionCheck, can_submit
from proposalkit.core.pricing import compute_pricing, format_money

router = APIRouter(tags=["Documents"])


@router.post("/pricing", response_model=PricingResponse, summary="Compute pricing totals")
async def pricing(request: PricingRequest) -> PricingResponse:
    summary = compute_pricing(request.data)
    return PricingResponse(
        summary=summary,
        formatted_total=format_money(summary.total, request.data.currency),
    )


@router.post(
    "/visibility",
    response_model=VisibilityResponse,
    summary="Evaluate block visibility",
)
async def visibility(request: BlocksRequest) -> VisibilityResponse:
    """
    Evaluate every block's condition against the context derived from the
    first pricing table. Blocks without a condition are always visible.
    """
    context = build_context(request.blocks)
    return VisibilityResponse(
        visibility=evaluate_visibility(request.blocks, context),
        context=context_as_dict(context),
    )


@router.post(
    "/submission-check",
    response_model=SubmissionCheck,
    summary="Check required signatures",
)
async def submission_check(request: BlocksRequest) -> SubmissionCheck:
    return can_submit(request.blocks)


__all__ = ["router"]
