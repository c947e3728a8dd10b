"""Pydantic contracts for the persisted document shape.

All models are frozen: a change to a block always produces a new object, which
is what lets the edit history keep cheap structural snapshots.
"""

from __future__ import annotations
