"""LazyCoroResultWriter

Lazy coroutine producing Result[T, E] plus a Log[W]. Resources built on
writer_bracket() get acquire, use and release journals merged in execution
order, which makes release ordering observable without side channels."""

from __future__ import annotations

import typing
from collections.abc import Callable, Coroutine
from typing import assert_never

from kungfu import Error, LazyCoroResult, Ok

from .log import Log
from .result import WriterResult


class LazyCoroResultWriter[T, E, W]:
    """Lazy + Coro + Result[T, E] + Writer[Log[W]].

    Nothing runs until the writer is called (or awaited); every call starts
    a fresh computation.
    """

    __slots__ = ("_value",)

    def __init__(
        self,
        value: Callable[[], Coroutine[typing.Any, typing.Any, WriterResult[T, E, Log[W]]]],
        /,
    ) -> None:
        self._value = value

    @staticmethod
    def tell[LogEntry](
        *entries: LogEntry,
    ) -> LazyCoroResultWriter[None, typing.Never, LogEntry]:
        """Write entries without producing a value. Typical release body."""

        async def wrapper() -> WriterResult[None, typing.Never, Log[LogEntry]]:
            return WriterResult(Ok(None), Log.of(*entries))

        return LazyCoroResultWriter(wrapper)

    @staticmethod
    def from_lazy_coro_result[V, Err, LogT](
        lazy: LazyCoroResult[V, Err],
    ) -> LazyCoroResultWriter[V, Err, LogT]:
        """Run a kungfu LazyCoroResult with an empty log."""

        async def wrapper() -> WriterResult[V, Err, Log[LogT]]:
            result = await lazy()
            return WriterResult(result, Log[LogT]())

        return LazyCoroResultWriter(wrapper)

    def map[U](self, f: Callable[[T], U], /) -> LazyCoroResultWriter[U, E, W]:
        async def wrapper() -> WriterResult[U, E, Log[W]]:
            wr = await self()
            return WriterResult(wr.result.map(f), wr.log)

        return LazyCoroResultWriter(wrapper)

    def then[U](
        self,
        f: Callable[[T], LazyCoroResultWriter[U, E, W]],
        /,
    ) -> LazyCoroResultWriter[U, E, W]:
        """
        Monadic bind.

        - On Ok: runs f(value), logs concatenated
        - On Error: short-circuits, keeps the log written so far
        """

        async def wrapper() -> WriterResult[U, E, Log[W]]:
            wr = await self()
            match wr.result:
                case Ok(value):
                    next_wr = await f(value)()
                    return WriterResult(next_wr.result, wr.log.combine(next_wr.log))
                case Error(err):
                    return WriterResult(Error(err), wr.log)
                case _ as unreachable:
                    assert_never(unreachable)

        return LazyCoroResultWriter(wrapper)

    def with_log(self, *entries: W) -> LazyCoroResultWriter[T, E, W]:
        """Append entries after the computation, whatever its outcome."""

        async def wrapper() -> WriterResult[T, E, Log[W]]:
            wr = await self()
            return WriterResult(wr.result, wr.log.combine(Log.of(*entries)))

        return LazyCoroResultWriter(wrapper)

    def __call__(self) -> Coroutine[typing.Any, typing.Any, WriterResult[T, E, Log[W]]]:
        return self._value()

    def __await__(self) -> typing.Generator[typing.Any, None, WriterResult[T, E, Log[W]]]:
        return self().__await__()


def writer_ok[T, W](
    value: T,
    *log_entries: W,
) -> LazyCoroResultWriter[T, typing.Never, W]:
    """Successful writer with value and optional log entries."""

    async def wrapper() -> WriterResult[T, typing.Never, Log[W]]:
        return WriterResult(Ok(value), Log.of(*log_entries))

    return LazyCoroResultWriter(wrapper)


def writer_error[E, W](
    error: E,
    *log_entries: W,
) -> LazyCoroResultWriter[typing.Never, E, W]:
    """Failed writer with error and optional log entries."""

    async def wrapper() -> WriterResult[typing.Never, E, Log[W]]:
        return WriterResult(Error(error), Log.of(*log_entries))

    return LazyCoroResultWriter(wrapper)


__all__ = (
    "LazyCoroResultWriter",
    "writer_ok",
    "writer_error",
)
