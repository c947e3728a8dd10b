"""Core package initializer for proposalkit.

Downstream code imports from the concrete modules, e.g.:
    from proposalkit.core.pricing import compute_pricing
    from proposalkit.core.settings import settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
