"""Exception types raised by the proposalkit core.

Only two conditions are exceptional:

- :class:`ValidationError`: a command carried a payload the document model
  rejects (bad condition path, non-positive quantity, tax rate out of range,
  unknown block type). It is raised before any state changes.
- :class:`PersistenceError`: the storage collaborator failed to save or load.
  The autosave scheduler catches it and retries.

Visibility evaluation never raises, and a blocked submission is reported as
a value (see :mod:`proposalkit.core.gate`), not an exception.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


class ProposalKitError(Exception):
    """Base class for all proposalkit errors."""


class ValidationError(ProposalKitError, ValueError):
    """A command payload failed validation; the document is unchanged."""

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or []

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, context: str) -> ValidationError:
        """Flatten a Pydantic error into a single readable message."""
        details = [
            f"{'.'.join(str(p) for p in e['loc']) or '<root>'}: {e['msg']}" for e in exc.errors()
        ]
        return cls(f"{context}: {'; '.join(details)}", errors=details)


class PersistenceError(ProposalKitError):
    """Saving or loading a document failed."""


__all__ = ["ProposalKitError", "ValidationError", "PersistenceError"]
