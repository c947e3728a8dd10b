"""
Edit session: one open document and everything derived from it.

The session is the object the surrounding application holds while a user
edits a proposal. It threads each user action through the core:

1. the command is applied by the edit history (:mod:`.history.commands`);
2. the evaluation context is rebuilt (memoized on pricing state);
3. visibility is recomputed for every block;
4. the completion gate is recomputed;
5. autosave is notified if the document became dirty.

There is no global session registry in the core; callers create and pass
sessions explicitly (the HTTP layer keeps its own map of open sessions).
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from proposalkit.core import store as block_store
from proposalkit.core.contracts.blocks import Block, BlockType
from proposalkit.core.contracts.conditions import ConditionGroup
from proposalkit.core.contracts.document import Document
from proposalkit.core.contracts.pricing import PricingSummary
from proposalkit.core.evaluation.context import EvaluationContext, build_context
from proposalkit.core.evaluation.evaluator import is_block_visible
from proposalkit.core.gate import SubmissionCheck, SubmissionError, can_submit, submit
from proposalkit.core.history import commands
from proposalkit.core.history.autosave import AutosaveScheduler
from proposalkit.core.history.state import (
    DocumentState,
    load,
    mark_save_failed,
    mark_saved,
    mark_saving,
)
from proposalkit.core.persistence import DocumentStore
from proposalkit.core.pricing import compute_pricing, first_pricing_block
from proposalkit.core.result import Result
from proposalkit.core.settings import Settings, get_logger, load_settings

logger = get_logger("proposalkit.session")


@dataclass(frozen=True, slots=True)
class Evaluation:
    """Everything derived from one revision of the document.

    Attributes
    ----------
    revision : int
        The state revision this evaluation belongs to.
    context : EvaluationContext
        Values addressable by visibility conditions.
    visibility : Mapping[str, bool]
        Block id -> visible, in document order.
    pricing : PricingSummary | None
        Totals of the first pricing table, if any.
    submission : SubmissionCheck
        Result of the completion gate.
    """

    revision: int
    context: EvaluationContext
    visibility: Mapping[str, bool]
    pricing: PricingSummary | None
    submission: SubmissionCheck


def evaluate(blocks: tuple[Block, ...], revision: int = 0) -> Evaluation:
    """Derive context, visibility, pricing and gate state for ``blocks``."""
    context = build_context(blocks)
    visibility = {block.id: is_block_visible(block, context) for block in blocks}
    pricing_block = first_pricing_block(blocks)
    return Evaluation(
        revision=revision,
        context=context,
        visibility=MappingProxyType(visibility),
        pricing=compute_pricing(pricing_block.data) if pricing_block is not None else None,
        submission=can_submit(blocks, context),
    )


class EditSession:
    """A document being edited, with history, evaluation and autosave.

    Parameters
    ----------
    document:
        Initial content; an empty untitled document by default.
    document_id:
        Key used for persistence; a random UUID by default.
    store:
        Optional persistence collaborator. Without one the session never saves.
    config:
        Settings override (history depth, autosave tuning).
    """

    def __init__(
        self,
        document: Document | None = None,
        *,
        document_id: str | None = None,
        store: DocumentStore | None = None,
        config: Settings | None = None,
    ) -> None:
        self.document_id: str = document_id or str(uuid.uuid4())
        self._settings = config or load_settings()
        self._state: DocumentState = load(document)
        self._evaluation: Evaluation | None = None

        self._autosave: AutosaveScheduler | None = None
        if store is not None:
            self._autosave = AutosaveScheduler(
                self,
                store,
                self.document_id,
                debounce=self._settings.autosave_debounce,
                timeout=self._settings.autosave_timeout,
                retry_delay=self._settings.autosave_retry_delay,
                max_retries=self._settings.autosave_max_retries,
            )

    @classmethod
    async def open(
        cls, store: DocumentStore, document_id: str, *, config: Settings | None = None
    ) -> EditSession:
        """Load ``document_id`` from ``store`` and start a session on it."""
        document = await store.load(document_id)
        return cls(document, document_id=document_id, store=store, config=config)

    # ------------------------------- State -----------------------------------

    @property
    def state(self) -> DocumentState:
        return self._state

    @property
    def blocks(self) -> tuple[Block, ...]:
        return self._state.blocks

    def document(self) -> Document:
        return self._state.to_document()

    def history(self) -> tuple[str, ...]:
        """Labels of the undoable commands, oldest first."""
        return tuple(snap.label for snap in self._state.undo_stack)

    # ------------------------------- Commands --------------------------------

    def execute(self, command: commands.Command | Mapping[str, Any]) -> DocumentState:
        """Apply one command; raises ValidationError and keeps state on bad input."""
        new_state = commands.apply(command, self._state, depth=self._settings.history_depth)
        self._transition(new_state)
        return self._state

    def add_block(self, block_type: BlockType, at_index: int | None = None) -> str:
        """Add a block with default content and return its id."""
        block_id = block_store.new_id()
        self.execute(commands.AddBlock(block_type=block_type, at_index=at_index, block_id=block_id))
        return block_id

    def remove_block(self, block_id: str) -> DocumentState:
        return self.execute(commands.RemoveBlock(block_id=block_id))

    def move_block(self, block_id: str, before_id: str | None = None) -> DocumentState:
        return self.execute(commands.MoveBlock(block_id=block_id, before_id=before_id))

    def update_block_data(self, block_id: str, partial: Mapping[str, Any]) -> DocumentState:
        return self.execute(commands.UpdateBlockData(block_id=block_id, data=dict(partial)))

    def set_title(self, title: str) -> DocumentState:
        return self.execute(commands.SetTitle(title=title))

    def set_visibility(
        self, block_id: str, visibility: ConditionGroup | Mapping[str, Any] | None
    ) -> DocumentState:
        return self.execute(
            {"kind": "set_visibility", "blockId": block_id, "visibility": visibility}
        )

    def undo(self) -> DocumentState:
        self._transition(commands.undo(self._state, depth=self._settings.history_depth))
        return self._state

    def redo(self) -> DocumentState:
        self._transition(commands.redo(self._state, depth=self._settings.history_depth))
        return self._state

    def _transition(self, new_state: DocumentState) -> None:
        if new_state is self._state:
            return
        self._state = new_state
        if self._autosave is not None and self._settings.autosave_enabled and new_state.dirty:
            self._autosave.notify()

    # ------------------------------- Evaluation ------------------------------

    @property
    def evaluation(self) -> Evaluation:
        """Derived state for the current revision (computed once per revision)."""
        if self._evaluation is None or self._evaluation.revision != self._state.revision:
            self._evaluation = evaluate(self._state.blocks, self._state.revision)
        return self._evaluation

    @property
    def visibility(self) -> Mapping[str, bool]:
        return self.evaluation.visibility

    @property
    def pricing(self) -> PricingSummary | None:
        return self.evaluation.pricing

    @property
    def submission(self) -> SubmissionCheck:
        return self.evaluation.submission

    def submit(self) -> Result[Document, SubmissionError]:
        """Gate the current content for submission."""
        return submit(self.document())

    # ------------------------------- Saving ----------------------------------

    @property
    def needs_save(self) -> bool:
        return self._state.dirty

    def begin_save(self) -> tuple[int, Document]:
        self._state = mark_saving(self._state)
        return self._state.revision, self._state.to_document()

    def save_succeeded(self, revision: int) -> bool:
        self._state = mark_saved(self._state, revision)
        return self._state.dirty

    def save_failed(self, error: Exception) -> None:
        self._state = mark_save_failed(self._state, str(error) or type(error).__name__)

    async def save(self) -> bool:
        """Save now; returns True when the document is clean afterwards.

        Without a store there is nothing to save to and the call returns
        ``not dirty``.
        """
        if self._autosave is None:
            return not self._state.dirty
        return await self._autosave.flush()

    async def close(self) -> None:
        """Stop autosave; pending work is cancelled."""
        if self._autosave is not None:
            await self._autosave.close()
            logger.debug("Closed session %s", self.document_id)


__all__ = ["EditSession", "Evaluation", "evaluate"]
