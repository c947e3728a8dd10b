"""
Editing state of one document: content, history stacks, dirty flag, save status.

This is the editor-side counterpart of :class:`~proposalkit.core.contracts.document.Document`.
It is a frozen dataclass; every transition returns a new instance, which is
what makes snapshot-based undo/redo cheap (unchanged blocks are shared
between snapshots).

Save status
-----------
::

    idle ──edit──▶ dirty ──save starts──▶ saving ──ok──▶ saved
                     ▲                      │  │
                     └──────edit────────────┘  └─fail─▶ error (dirty kept)

``revision`` increases on every content change. A save records the revision
it carried; when it completes, the document is clean only if no edit
happened in the meantime.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum

from proposalkit.core.contracts.blocks import Block
from proposalkit.core.contracts.document import Document


class SaveStatus(StrEnum):
    IDLE = "idle"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Content of the document at one point of the history.

    Attributes
    ----------
    title : str
        Document title at that point.
    blocks : tuple[Block, ...]
        Block sequence at that point.
    label : str
        Name of the command that moved the document away from this snapshot
        (e.g. ``"add_block"``); shown in history listings.
    """

    title: str
    blocks: tuple[Block, ...]
    label: str = ""


@dataclass(frozen=True, slots=True)
class DocumentState:
    """Immutable editing state."""

    title: str = "Untitled Document"
    blocks: tuple[Block, ...] = ()
    dirty: bool = False
    undo_stack: tuple[Snapshot, ...] = ()
    redo_stack: tuple[Snapshot, ...] = ()
    save_status: SaveStatus = SaveStatus.IDLE
    revision: int = 0
    saved_revision: int | None = None
    last_error: str | None = None

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def snapshot(self, label: str = "") -> Snapshot:
        return Snapshot(title=self.title, blocks=self.blocks, label=label)

    def to_document(self) -> Document:
        """Return the persisted representation of the current content."""
        return Document(title=self.title, blocks=self.blocks)


def load(document: Document | None = None) -> DocumentState:
    """Return a clean state for ``document`` with empty history."""
    if document is None:
        return DocumentState()
    return DocumentState(title=document.title, blocks=document.blocks)


# ------------------------------- Save transitions ------------------------------


def mark_saving(state: DocumentState) -> DocumentState:
    """A save of the current revision has started."""
    return replace(state, save_status=SaveStatus.SAVING)


def mark_saved(state: DocumentState, revision: int) -> DocumentState:
    """A save carrying ``revision`` completed.

    If the document changed while the save was in flight it stays dirty, and
    the caller is expected to save again.
    """
    if state.revision == revision:
        return replace(
            state,
            dirty=False,
            save_status=SaveStatus.SAVED,
            saved_revision=revision,
            last_error=None,
        )
    return replace(
        state, save_status=SaveStatus.DIRTY, saved_revision=revision, last_error=None
    )


def mark_save_failed(state: DocumentState, error: str) -> DocumentState:
    """A save failed; the dirty flag is left as it was."""
    return replace(state, save_status=SaveStatus.ERROR, last_error=error)


__all__ = [
    "DocumentState",
    "SaveStatus",
    "Snapshot",
    "load",
    "mark_save_failed",
    "mark_saved",
    "mark_saving",
]
