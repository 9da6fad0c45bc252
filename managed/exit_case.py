"""
Exit cases
==========

How the use phase of a bracket ended. Every release function receives one,
so cleanup can branch on it (commit on Completed, rollback otherwise).

    match case:
        case Completed():
            await tx.commit()
        case Errored(error):
            await tx.rollback(reason=error)
        case Cancelled():
            await tx.rollback(reason="cancelled")
"""

from __future__ import annotations

from dataclasses import dataclass

from kungfu import Error, Ok, Result


@dataclass(frozen=True, slots=True)
class Completed:
    """Use finished with Ok."""


@dataclass(frozen=True, slots=True)
class Errored[E]:
    """
    Use finished with Error(e) or raised an exception.

    `error` is the Error payload, or the exception instance when use raised.
    """

    error: E


@dataclass(frozen=True, slots=True)
class Cancelled:
    """Use was interrupted (asyncio cancellation, KeyboardInterrupt, ...)."""


type ExitCase[E] = Completed | Errored[E] | Cancelled

COMPLETED = Completed()
CANCELLED = Cancelled()


def from_result[T, E](result: Result[T, E]) -> ExitCase[E]:
    """Exit case of a use phase that returned normally."""
    match result:
        case Ok(_):
            return COMPLETED
        case Error(e):
            return Errored(e)


def from_exception(exc: BaseException) -> ExitCase[Exception]:
    """Exit case of a use phase that raised."""
    if isinstance(exc, Exception):
        return Errored(exc)
    # CancelledError, KeyboardInterrupt, SystemExit
    return CANCELLED


__all__ = (
    "Completed",
    "Errored",
    "Cancelled",
    "ExitCase",
    "COMPLETED",
    "CANCELLED",
    "from_result",
    "from_exception",
)
