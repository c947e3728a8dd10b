"""Visibility evaluation: field paths, the evaluation context and the evaluator."""

from __future__ import annotations
