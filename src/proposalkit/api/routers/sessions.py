"""
Edit-session endpoints.

Endpoints
---------
- `POST /sessions`: open a session (new document, given document, or a saved
  document by id).
- `GET /sessions/{session_id}`: current state, visibility, pricing, gate.
- `POST /sessions/{session_id}/commands`: apply one edit command.
- `POST /sessions/{session_id}/undo` and `/redo`.
- `POST /sessions/{session_id}/save`: save now, bypassing the debounce.

Commands use the JSON form of :mod:`proposalkit.core.history.commands`, e.g.
``{"kind": "set_title", "title": "Q3 Proposal"}``. An invalid command is a
400 and leaves the session unchanged.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, status

from proposalkit.api.schemas import CreateSessionRequest, SaveResponse, SessionView
from proposalkit.api.session_store import get_session_store
from proposalkit.core.session import EditSession

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _require(session_id: str) -> EditSession:
    session = get_session_store().get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    return session


@router.post(
    "",
    response_model=SessionView,
    status_code=status.HTTP_201_CREATED,
    summary="Open an edit session",
)
async def open_session(request: CreateSessionRequest | None = None) -> SessionView:
    body = request or CreateSessionRequest()
    session = await get_session_store().open(body.document, body.document_id)
    return SessionView.of(session)


@router.get("/{session_id}", response_model=SessionView, summary="Get session state")
async def get_session(session_id: str) -> SessionView:
    return SessionView.of(_require(session_id))


@router.post(
    "/{session_id}/commands",
    response_model=SessionView,
    summary="Apply an edit command",
)
async def apply_command(
    session_id: str, command: dict[str, Any] = Body(...)  # noqa: B008
) -> SessionView:
    session = _require(session_id)
    session.execute(command)
    return SessionView.of(session)


@router.post("/{session_id}/undo", response_model=SessionView, summary="Undo the last edit")
async def undo(session_id: str) -> SessionView:
    session = _require(session_id)
    session.undo()
    return SessionView.of(session)


@router.post("/{session_id}/redo", response_model=SessionView, summary="Redo the last undo")
async def redo(session_id: str) -> SessionView:
    session = _require(session_id)
    session.redo()
    return SessionView.of(session)


@router.post("/{session_id}/save", response_model=SaveResponse, summary="Save now")
async def save(session_id: str) -> SaveResponse:
    """
    Flush the session to the document store.

    `saved` is false when the store failed; the session then reports
    `saveStatus = "error"` with `lastError` set and stays dirty.
    """
    session = _require(session_id)
    saved = await session.save()
    return SaveResponse(saved=saved, session=SessionView.of(session))


__all__ = ["router"]
