"""Internal helpers for managed.

Extract/finish/wrap functions shared by the bracket sugar. Not public API,
but usable when plugging a custom monad into bracket_caseM."""

from __future__ import annotations

import typing
from collections.abc import Callable, Coroutine, Iterable, Sequence

from kungfu import Result

from .writer import LazyCoroResultWriter, Log, WriterResult


def identity[T](x: T) -> T:
    return x


# Extract functions (Raw -> Result[T, E])
def extract_writer_result[T, E, W](wr: WriterResult[T, E, Log[W]]) -> Result[T, E]:
    """LazyCoroResultWriter's Raw type is WriterResult[T, E, Log[W]]."""
    return wr.result


# Finish functions ((Result, raws) -> Raw)
def finish_result[T, E](result: Result[T, E], raws: Sequence[object]) -> Result[T, E]:
    """LazyCoroResult's Raw type IS Result[T, E]; nothing to merge."""
    _ = raws
    return result


def finish_writer_result[T, E, W](
    result: Result[T, E],
    raws: Sequence[WriterResult[typing.Any, typing.Any, Log[W]]],
) -> WriterResult[T, E, Log[W]]:
    """Rebuild a WriterResult, concatenating logs of every step that ran."""
    return WriterResult(result, merge_logs(wr.log for wr in raws))


# Wrap functions (Fn -> M)
def wrap_lazy_coro_result_writer[T, E, W](
    fn: Callable[[], Coroutine[typing.Any, typing.Any, WriterResult[T, E, Log[W]]]]
) -> LazyCoroResultWriter[T, E, W]:
    return LazyCoroResultWriter(fn)


def merge_logs[W](logs: Iterable[Log[W]]) -> Log[W]:
    """Fold logs left to right with monoidal combine."""
    result = Log[W]()
    for log in logs:
        result = result.combine(log)
    return result


__all__ = (
    "identity",
    "extract_writer_result",
    "finish_result",
    "finish_writer_result",
    "wrap_lazy_coro_result_writer",
    "merge_logs",
)
