"""Shared fixtures: every test runs against fresh, isolated settings.

- `PROPOSALKIT_STORE_DIR` points into the test's `tmp_path`, so nothing is
  written under `artifacts/`.
- Autosave is off by default; autosave tests pass their own `Settings`.
- The settings cache is cleared before and after each test.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from proposalkit.core.contracts.document import Document
from proposalkit.core.errors import PersistenceError
from proposalkit.core.settings import Settings, load_settings


@pytest.fixture(autouse=True)  # type: ignore[misc]
def isolated_settings(tmp_path: Path, monkeypatch: Any) -> Iterator[None]:
    monkeypatch.setenv("PROPOSALKIT_ENV", "test")
    monkeypatch.setenv("PROPOSALKIT_STORE_DIR", str(tmp_path / "documents"))
    monkeypatch.setenv("PROPOSALKIT_AUTOSAVE_ENABLED", "false")
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


class MemoryStore:
    """In-memory document store that can fail, stall or block on demand.

    Attributes
    ----------
    fail_times : int
        The first ``fail_times`` saves raise ``error``.
    error : Exception
        What a failing save raises (a :class:`PersistenceError` by default).
    delay : float
        Seconds every save sleeps before completing.
    """

    def __init__(self) -> None:
        self.documents: dict[str, Document] = {}
        self.saves: list[Document] = []
        self.calls = 0
        self.fail_times = 0
        self.error: Exception = PersistenceError("disk full")
        self.delay = 0.0
        self.started: asyncio.Event | None = None
        self.release: asyncio.Event | None = None

    def hold(self) -> None:
        """Make saves signal `started` and wait until `release` is set."""
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def save(self, document_id: str, document: Document) -> None:
        self.calls += 1
        if self.started is not None:
            self.started.set()
        if self.release is not None:
            await self.release.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.calls <= self.fail_times:
            raise self.error
        self.documents[document_id] = document
        self.saves.append(document)

    async def load(self, document_id: str) -> Document:
        try:
            return self.documents[document_id]
        except KeyError as exc:
            raise PersistenceError(f"No document {document_id}") from exc


@pytest.fixture  # type: ignore[misc]
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture  # type: ignore[misc]
def fast_settings() -> Settings:
    """Autosave on, with delays short enough for tests."""
    return load_settings().model_copy(
        update={
            "autosave_enabled": True,
            "autosave_debounce": 0.01,
            "autosave_timeout": 1.0,
            "autosave_retry_delay": 0.01,
            "autosave_max_retries": 3,
        }
    )
