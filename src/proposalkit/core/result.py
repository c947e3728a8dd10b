"""Typed Result container for outcomes that are expected to fail sometimes.

Motivation
----------
Some outcomes are not errors in the exceptional sense: a recipient pressing
"submit" before every required signer has signed is a normal, recoverable
situation the UI has to explain. For those paths we return a ``Result``:

- ``Ok(value)`` / ``Err(error)`` variants,
- combinators: ``map``, ``map_err``,
- helpers: ``unwrap``, ``unwrap_err``, ``get_or``.

Example
-------
>>> from proposalkit.core.result import ok, err, Result
>>> def half(x: int) -> Result[int, str]:
...     return ok(x // 2) if x % 2 == 0 else err("odd")
>>> half(8).map(lambda v: v + 1).unwrap()
5
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, cast

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Sum type representing either success (`Ok[T]`) or failure (`Err[E]`)."""

    def is_ok(self) -> bool:
        """Return ``True`` if this is an :class:`Ok` value."""
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` if this is an :class:`Err` value."""
        return isinstance(self, Err)

    def unwrap(self) -> T:
        """Return the inner value, raising ``RuntimeError`` on ``Err``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        raise RuntimeError(f"Attempted to unwrap Err: {self!r}")

    def unwrap_err(self) -> E:
        """Return the error value if ``Err``, else raise."""
        if isinstance(self, Err):
            return cast(Err[T, E], self).error
        raise RuntimeError(f"Attempted to unwrap_err on Ok: {self!r}")

    def get_or(self, default: T) -> T:
        """Return the success value or ``default`` if ``Err``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        return default

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        """Apply ``fn`` to the success value; propagate error unchanged."""
        if isinstance(self, Ok):
            return Ok(fn(cast(Ok[T, E], self).value))
        return cast(Result[U, E], self)

    def map_err(self, fn: Callable[[E], F]) -> Result[T, F]:
        """Apply ``fn`` to the error value; propagate success unchanged."""
        if isinstance(self, Err):
            return Err(fn(cast(Err[T, E], self).error))
        return cast(Result[T, F], self)


@dataclass(frozen=True)
class Ok(Result[T, E]):
    """Successful result wrapping a value of type ``T``."""

    value: T


@dataclass(frozen=True)
class Err(Result[T, E]):
    """Failed result wrapping an error payload of type ``E``."""

    error: E


def ok(value: T) -> Result[T, E]:
    """Construct :class:`Ok` with better type inference at call sites."""
    return Ok(value)


def err(error: E) -> Result[T, E]:
    """Construct :class:`Err` with better type inference at call sites."""
    return Err(error)


__all__ = ["Result", "Ok", "Err", "ok", "err"]
