"""proposalkit: the document-composition core behind the proposal builder.

The package is split into a pure core (block model, pricing, visibility
evaluation, edit history, completion gate) and two thin surfaces on top of
it: an HTTP API and a command-line interface.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
