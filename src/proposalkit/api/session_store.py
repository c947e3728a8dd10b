"""
In-memory registry of open edit sessions.

The core never keeps sessions in a global; this HTTP layer does, so that
successive requests can address the same document by id.

Responsibilities
----------------
- **Open**: start a session on a new document, or reopen a saved one from the
  JSON document store.
- **Lookup**: return the session for an id.
- **Close**: stop autosave of every session on shutdown.

Note on Persistence
-------------------
Sessions themselves are volatile; only documents reach disk, through the
session's autosave or an explicit save.
"""

from __future__ import annotations

from typing import ClassVar

from proposalkit.core.contracts.document import Document
from proposalkit.core.persistence import JsonFileDocumentStore
from proposalkit.core.session import EditSession
from proposalkit.core.settings import get_logger, load_settings

logger = get_logger("proposalkit.api")


class SessionStore:
    """A dictionary-backed map of session id -> EditSession."""

    # Singleton instance placeholder (initialized in app startup)
    _instance: ClassVar[SessionStore | None] = None

    def __init__(self, documents: JsonFileDocumentStore | None = None) -> None:
        self._sessions: dict[str, EditSession] = {}
        self._documents = documents

    @classmethod
    def get_instance(cls) -> SessionStore:
        """Accessor for the global singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton (tests use this between apps)."""
        cls._instance = None

    @property
    def documents(self) -> JsonFileDocumentStore:
        if self._documents is None:
            self._documents = JsonFileDocumentStore(load_settings().store_dir)
        return self._documents

    async def open(
        self, document: Document | None = None, document_id: str | None = None
    ) -> EditSession:
        """Return the session for ``document_id``, creating it when needed.

        With an explicit ``document`` a fresh session is started on it. With
        only an id of a stored document, that document is loaded.
        """
        if document is None and document_id is not None:
            if existing := self._sessions.get(document_id):
                return existing
            if self.documents.exists(document_id):
                session = await EditSession.open(self.documents, document_id)
                self._sessions[session.document_id] = session
                return session

        if document_id is not None:
            # Validates the id before anything is kept.
            self.documents.path_for(document_id)
        session = EditSession(document, document_id=document_id, store=self.documents)
        if previous := self._sessions.get(session.document_id):
            await previous.close()
        self._sessions[session.document_id] = session
        logger.info("Opened session %s", session.document_id)
        return session

    def get(self, session_id: str) -> EditSession | None:
        """Retrieve a session, or None if it is not open."""
        return self._sessions.get(session_id)

    async def close_all(self) -> None:
        for session in self._sessions.values():
            await session.close()
        self._sessions.clear()


# Global accessor for convenience
def get_session_store() -> SessionStore:
    return SessionStore.get_instance()


__all__ = ["SessionStore", "get_session_store"]
