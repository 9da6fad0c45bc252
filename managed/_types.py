"""
Core type definitions for managed.

Aliases shared by the bracket primitive and the Resource combinators.
"""

from __future__ import annotations

import typing
from collections.abc import Callable, Coroutine

from kungfu import LazyCoroResult

from .exit_case import ExitCase

# ============================================================================
# Type aliases
# ============================================================================

# Thunk = zero-arg factory, called once per invocation
type Thunk[M] = Callable[[], M]

# Raw thunk = what a lazy monad returns when called
type RawThunk[Raw] = Callable[[], Coroutine[typing.Any, typing.Any, Raw]]

# Release = cleanup that ignores how use ended
type Release[T, M] = Callable[[T], M]

# ReleaseCase = cleanup that branches on how use ended (commit vs rollback)
type ReleaseCase[T, E, M] = Callable[[T, ExitCase[E]], M]

# NoError = type representing "never fails" semantic
type NoError = typing.Never


class Combinable(typing.Protocol):
    """Semigroup: `combine` must be associative (Log is one)."""

    def combine(self, other: typing.Self, /) -> typing.Self: ...

# ============================================================================
# Concrete type shortcuts
# ============================================================================

# LCR = LazyCoroResult shortcut
type LCR[T, E] = LazyCoroResult[T, E]

__all__ = (
    "Thunk",
    "RawThunk",
    "Release",
    "ReleaseCase",
    "NoError",
    "Combinable",
    "LCR",
)
