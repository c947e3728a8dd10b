"""
Edit commands and the history state machine that applies them.

Commands
--------
``add_block``, ``remove_block``, ``move_block``, ``update_block_data``,
``set_title`` and ``set_visibility``. They are Pydantic models discriminated
by ``kind`` so the HTTP layer can accept them as JSON, e.g.::

    {"kind": "move_block", "blockId": "b3", "beforeId": "b1"}

History
-------
- :func:`apply` pushes the *pre-mutation* snapshot onto the undo stack, clears
  the redo stack and marks the document dirty.
- :func:`undo` / :func:`redo` swap snapshots between the stacks.
- Both stacks are bounded; pushing onto a full stack drops its oldest entry.
- A command that targets a missing id is a no-op and leaves history alone.
- An invalid payload raises :class:`ValidationError` before anything changes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Annotated, Any, Literal, assert_never

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from proposalkit.core import store
from proposalkit.core.contracts.base import ContractModel
from proposalkit.core.contracts.blocks import BlockType
from proposalkit.core.contracts.conditions import ConditionGroup
from proposalkit.core.errors import ValidationError
from proposalkit.core.settings import get_logger, load_settings

from .state import DocumentState, SaveStatus, Snapshot

logger = get_logger("proposalkit.history")


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


class AddBlock(ContractModel):
    kind: Literal["add_block"] = "add_block"
    block_type: BlockType
    at_index: int | None = None
    block_id: str | None = None


class RemoveBlock(ContractModel):
    kind: Literal["remove_block"] = "remove_block"
    block_id: str


class MoveBlock(ContractModel):
    kind: Literal["move_block"] = "move_block"
    block_id: str
    before_id: str | None = None


class UpdateBlockData(ContractModel):
    kind: Literal["update_block_data"] = "update_block_data"
    block_id: str
    data: dict[str, Any]


class SetTitle(ContractModel):
    kind: Literal["set_title"] = "set_title"
    title: str


class SetVisibility(ContractModel):
    kind: Literal["set_visibility"] = "set_visibility"
    block_id: str
    visibility: ConditionGroup | None = None


Command = Annotated[
    AddBlock | RemoveBlock | MoveBlock | UpdateBlockData | SetTitle | SetVisibility,
    Field(discriminator="kind"),
]

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(payload: Command | Mapping[str, Any]) -> Command:
    """Validate a raw command payload; raises :class:`ValidationError`."""
    if isinstance(
        payload, AddBlock | RemoveBlock | MoveBlock | UpdateBlockData | SetTitle | SetVisibility
    ):
        return payload
    try:
        return _command_adapter.validate_python(payload)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, "Invalid command") from exc


# --------------------------------------------------------------------------- #
# State machine
# --------------------------------------------------------------------------- #


def _history_limit(depth: int | None) -> int:
    """Resolve the stack bound; ``None`` means ``settings.history_depth``."""
    if depth is None:
        return load_settings().history_depth
    if depth < 1:
        raise ValidationError(f"History depth must be at least 1, got {depth}")
    return depth


def _push(stack: tuple[Snapshot, ...], snap: Snapshot, depth: int) -> tuple[Snapshot, ...]:
    """Append ``snap``, evicting the oldest entries beyond ``depth``."""
    return (stack + (snap,))[-depth:]


def _status_after_edit(status: SaveStatus) -> SaveStatus:
    # An in-flight save stays "saving"; the scheduler notices the new
    # revision when it completes.
    return SaveStatus.SAVING if status is SaveStatus.SAVING else SaveStatus.DIRTY


def _mutate(command: Command, state: DocumentState) -> tuple[str, store.StoreResult]:
    blocks = state.blocks
    match command:
        case AddBlock():
            result = store.add_block(
                blocks, command.block_type, command.at_index, block_id=command.block_id
            )
            return state.title, result
        case RemoveBlock():
            return state.title, store.remove_block(blocks, command.block_id)
        case MoveBlock():
            return state.title, store.move_block(blocks, command.block_id, command.before_id)
        case UpdateBlockData():
            return state.title, store.update_block_data(blocks, command.block_id, command.data)
        case SetVisibility():
            return state.title, store.set_visibility(blocks, command.block_id, command.visibility)
        case SetTitle():
            return command.title, store.StoreResult(blocks, applied=command.title != state.title)
        case _:
            assert_never(command)


def apply(
    command: Command | Mapping[str, Any],
    state: DocumentState,
    *,
    depth: int | None = None,
) -> DocumentState:
    """Apply ``command`` to ``state`` and return the new state.

    Parameters
    ----------
    command:
        A command model or its JSON form.
    state:
        The current state; never modified.
    depth:
        Undo/redo stack bound; defaults to ``settings.history_depth``.

    Raises
    ------
    ValidationError
        If the command, its payload or ``depth`` is invalid. ``state`` stays
        current.
    """
    cmd = parse_command(command)
    limit = _history_limit(depth)

    title, result = _mutate(cmd, state)
    if not result.applied:
        logger.debug("Command %s was a no-op (rev %d)", cmd.kind, state.revision)
        return state

    logger.debug("Applied %s (rev %d -> %d)", cmd.kind, state.revision, state.revision + 1)
    return replace(
        state,
        title=title,
        blocks=result.blocks,
        undo_stack=_push(state.undo_stack, state.snapshot(cmd.kind), limit),
        redo_stack=(),
        dirty=True,
        save_status=_status_after_edit(state.save_status),
        revision=state.revision + 1,
    )


def undo(state: DocumentState, *, depth: int | None = None) -> DocumentState:
    """Restore the most recent undo snapshot; a no-op when there is none."""
    if not state.undo_stack:
        return state
    limit = _history_limit(depth)

    previous = state.undo_stack[-1]
    return replace(
        state,
        title=previous.title,
        blocks=previous.blocks,
        undo_stack=state.undo_stack[:-1],
        redo_stack=_push(state.redo_stack, state.snapshot(previous.label), limit),
        dirty=True,
        save_status=_status_after_edit(state.save_status),
        revision=state.revision + 1,
    )


def redo(state: DocumentState, *, depth: int | None = None) -> DocumentState:
    """Re-apply the most recently undone snapshot; a no-op when there is none."""
    if not state.redo_stack:
        return state
    limit = _history_limit(depth)

    following = state.redo_stack[-1]
    return replace(
        state,
        title=following.title,
        blocks=following.blocks,
        undo_stack=_push(state.undo_stack, state.snapshot(following.label), limit),
        redo_stack=state.redo_stack[:-1],
        dirty=True,
        save_status=_status_after_edit(state.save_status),
        revision=state.revision + 1,
    )


__all__ = [
    "AddBlock",
    "Command",
    "MoveBlock",
    "RemoveBlock",
    "SetTitle",
    "SetVisibility",
    "UpdateBlockData",
    "apply",
    "parse_command",
    "redo",
    "undo",
]
