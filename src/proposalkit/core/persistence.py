"""Document persistence: the storage interface and a JSON-file implementation.

The editor core never talks to a database itself. It saves through a
:class:`DocumentStore`, which the surrounding application provides. This
module ships the interface and a small disk-backed store used by the API,
the CLI and tests.

- Default directory: `PROPOSALKIT_STORE_DIR` or `artifacts/documents/`
- Filename pattern:  `<document_id>.json`
- Content:           the camelCase `Document` JSON (`{"title", "blocks"}`)

Writes go to a temporary file first and are then renamed over the target,
so a crash mid-write never leaves a truncated document behind.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from proposalkit.core.contracts.document import Document
from proposalkit.core.errors import PersistenceError, ValidationError
from proposalkit.core.settings import load_settings

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class DocumentStore(Protocol):
    """Storage collaborator used by sessions and autosave."""

    async def save(self, document_id: str, document: Document) -> None: ...

    async def load(self, document_id: str) -> Document: ...


def read_document(path: Path) -> Document:
    """Read a document JSON file synchronously (CLI helper).

    Raises
    ------
    PersistenceError
        If the file is missing, unreadable, or not a valid document.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Cannot read {path}: {exc}") from exc
    try:
        return Document.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise PersistenceError(
            f"{path} is not a valid document: {exc.error_count()} error(s)"
        ) from exc


def dump_document(document: Document) -> str:
    """Serialize ``document`` to the persisted JSON text."""
    return json.dumps(document.dump_json_dict(), ensure_ascii=False, indent=2) + "\n"


class JsonFileDocumentStore:
    """Persist documents as JSON files under a base directory."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir: Path = base_dir if base_dir is not None else load_settings().store_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, document_id: str) -> Path:
        """Return the file path of ``document_id``.

        Raises :class:`ValidationError` for ids that could escape ``base_dir``.
        """
        if not _SAFE_ID.match(document_id) or document_id in {".", ".."}:
            raise ValidationError(f"Invalid document id: {document_id!r}")
        return self.base_dir / f"{document_id}.json"

    async def save(self, document_id: str, document: Document) -> None:
        path = self.path_for(document_id)
        payload = dump_document(document)
        await asyncio.to_thread(self._write, path, payload)

    async def load(self, document_id: str) -> Document:
        path = self.path_for(document_id)
        return await asyncio.to_thread(read_document, path)

    def exists(self, document_id: str) -> bool:
        return self.path_for(document_id).exists()

    @staticmethod
    def _write(path: Path, payload: str) -> None:
        tmp = path.with_suffix(".json.tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                f.write(payload)
            tmp.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc


__all__ = ["DocumentStore", "JsonFileDocumentStore", "dump_document", "read_document"]
