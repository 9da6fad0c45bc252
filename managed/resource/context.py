"""
Async context managers as Resources
===================================

    pool = from_async_context(lambda: asyncpg.create_pool(dsn))
    conn = pool.flat_map(lambda p: from_async_context(p.acquire))

`__aenter__` is the acquire step, `__aexit__` the release step. The exit
case is translated into the exception arguments __aexit__ expects. The
boolean __aexit__ returns is ignored: a Resource never suppresses errors.
"""

from __future__ import annotations

import asyncio
import typing
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from kungfu import LazyCoroResult, Ok, Result

from .._errors import ResourceError
from ..capability import LCR_BRACKET, BracketCapability
from ..exit_case import Cancelled, Completed, Errored, ExitCase
from .resource import Resource

type _Entered[T] = tuple[AbstractAsyncContextManager[T], T]


def exception_for(case: ExitCase[typing.Any]) -> BaseException | None:
    """Exception to hand to __aexit__ for an exit case."""
    match case:
        case Completed():
            return None
        case Errored(error):
            if isinstance(error, BaseException):
                return error
            return ResourceError(error)
        case Cancelled():
            return asyncio.CancelledError()


def from_async_context[T](
    factory: Callable[[], AbstractAsyncContextManager[T]],
    *,
    bracket: BracketCapability[typing.Any] = LCR_BRACKET,
) -> Resource[T, typing.Never]:
    """
    Resource entering a fresh context manager from `factory` per invocation.

    `bracket` must run LazyCoroResult, e.g. lcr_bracket(ReleasePolicy.shielded()).

    Exceptions from __aenter__ / __aexit__ propagate like any raised
    acquire/release failure.
    """

    def acquire() -> LazyCoroResult[_Entered[T], typing.Never]:
        async def enter() -> Result[_Entered[T], typing.Never]:
            manager = factory()
            value = await manager.__aenter__()
            return Ok((manager, value))

        return LazyCoroResult(enter)

    def release(entered: _Entered[T], case: ExitCase[typing.Any]) -> LazyCoroResult[None, typing.Never]:
        manager, _ = entered

        async def leave() -> Result[None, typing.Never]:
            exc = exception_for(case)
            if exc is None:
                await manager.__aexit__(None, None, None)
            else:
                await manager.__aexit__(type(exc), exc, exc.__traceback__)
            return Ok(None)

        return LazyCoroResult(leave)

    return Resource.of_case(acquire, release, bracket=bracket).map(lambda entered: entered[1])


__all__ = ("exception_for", "from_async_context")
