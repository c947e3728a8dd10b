"""Edit history: immutable editing state, undoable commands and autosave.

Entry points:
    from proposalkit.core.history.commands import apply, undo, redo
    from proposalkit.core.history.state import DocumentState, load
"""

from __future__ import annotations
