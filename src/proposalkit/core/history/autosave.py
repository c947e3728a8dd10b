"""
Debounced, coalescing autosave on top of the edit history.

Behaviour
---------
- Every edit calls :meth:`AutosaveScheduler.notify`, which (re)arms a timer;
  the save starts after ``debounce`` seconds without further edits.
- At most one save is in flight. Edits made while a save is running leave the
  document dirty; when the save returns, exactly one follow-up save carrying
  the latest content is started.
- A save that times out or raises any exception marks the document ``error``
  (still dirty) and is retried after ``retry_delay`` seconds, up to
  ``max_retries`` times in a row.
  After that the next edit or an explicit :meth:`flush` tries again.
- :meth:`close` cancels pending timers and the in-flight request, so leaving a
  document never leaks background work.

The scheduler does not own the document. It talks to a :class:`SaveTarget`
(in practice :class:`~proposalkit.core.session.EditSession`) that hands out
the content to save and records the outcome.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Protocol

from proposalkit.core.contracts.document import Document
from proposalkit.core.errors import PersistenceError
from proposalkit.core.persistence import DocumentStore
from proposalkit.core.settings import get_logger

logger = get_logger("proposalkit.autosave")


class SaveTarget(Protocol):
    """What the scheduler needs from the document it saves."""

    @property
    def needs_save(self) -> bool: ...

    def begin_save(self) -> tuple[int, Document]:
        """Mark a save as started; return the revision and content to write."""
        ...

    def save_succeeded(self, revision: int) -> bool:
        """Record a completed save; return True if the document is still dirty."""
        ...

    def save_failed(self, error: Exception) -> None: ...


class AutosaveScheduler:
    """Serialize and coalesce saves of one document.

    Parameters
    ----------
    target:
        The document being edited.
    store:
        Persistence collaborator receiving the saves.
    document_id:
        Key under which the document is saved.
    debounce, timeout, retry_delay, max_retries:
        See :class:`~proposalkit.core.settings.Settings`.
    """

    def __init__(
        self,
        target: SaveTarget,
        store: DocumentStore,
        document_id: str,
        *,
        debounce: float,
        timeout: float,
        retry_delay: float,
        max_retries: int,
    ) -> None:
        self._target = target
        self._store = store
        self._document_id = document_id
        self._debounce = debounce
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._max_retries = max_retries

        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._failures = 0
        self._closed = False
        self.saves_started = 0

    # ------------------------------- Public API ------------------------------

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def notify(self) -> None:
        """Record an edit; (re)arm the debounce timer.

        Must be called from a running event loop.
        """
        if self._closed:
            return
        self._failures = 0
        self._arm(self._debounce)

    async def flush(self) -> bool:
        """Save now (waiting for an in-flight save first).

        Returns True if the document is clean afterwards.
        """
        self._cancel_timer()
        if self._task is not None and not self._task.done():
            await asyncio.shield(self._task)
            self._cancel_timer()
        if self._target.needs_save:
            self._failures = 0
            self._task = asyncio.get_running_loop().create_task(self._run(retry=False))
            await self._task
        return not self._target.needs_save

    async def close(self) -> None:
        """Cancel the pending timer and any in-flight save."""
        self._closed = True
        self._cancel_timer()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

    # ------------------------------- Internals -------------------------------

    def _arm(self, delay: float) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._kick)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _kick(self) -> None:
        self._timer = None
        if self._closed or self.in_flight or not self._target.needs_save:
            # An in-flight save picks up newer edits when it completes.
            return
        self._task = asyncio.get_running_loop().create_task(self._run(retry=True))

    async def _run(self, *, retry: bool) -> None:
        while True:
            revision, document = self._target.begin_save()
            self.saves_started += 1
            logger.info("Saving document %s (rev %d)", self._document_id, revision)
            try:
                async with asyncio.timeout(self._timeout):
                    await self._store.save(self._document_id, document)
            except asyncio.CancelledError:
                self._target.save_failed(PersistenceError("save cancelled"))
                raise
            except Exception as exc:
                # Any store error counts, not only PersistenceError.
                self._failures += 1
                logger.warning(
                    "Save of %s (rev %d) failed [%d]: %s",
                    self._document_id,
                    revision,
                    self._failures,
                    exc or type(exc).__name__,
                )
                self._target.save_failed(exc)
                if retry and self._failures <= self._max_retries and not self._closed:
                    self._arm(self._retry_delay)
                return

            self._failures = 0
            still_dirty = self._target.save_succeeded(revision)
            logger.info("Saved document %s (rev %d)", self._document_id, revision)
            if not still_dirty:
                return
            # Edits arrived during the save: one follow-up with the latest content.
            self._cancel_timer()


__all__ = ["AutosaveScheduler", "SaveTarget"]
