"""
WriterResult - Result paired with its journal
=============================================
"""

from __future__ import annotations

from dataclasses import dataclass

from kungfu import Result


@dataclass(frozen=True, slots=True)
class WriterResult[T, E, W]:
    """
    Raw value of LazyCoroResultWriter: a Result and the log written so far.

    bracket_case_w builds one of these from the acquire, use and release
    steps, with their logs concatenated in that order.
    """

    result: Result[T, E]
    log: W


__all__ = ("WriterResult",)
