"""
Bracket combinators
===================

acquire → use → release, with release told how use ended.

Guarantees:
- acquire fails → neither use nor release runs, the failure propagates
- acquire succeeds → use runs once, then release runs once, whether use
  returned Ok, returned Error, raised, or was cancelled
- use and release both fail → CompositeError(use failure, release failure)
- only release fails → the release failure is the result
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from kungfu import Error, LazyCoroResult, Ok, Result

from .. import exit_case
from .._errors import CompositeError, TimeoutError
from .._helpers import (
    extract_writer_result,
    finish_result,
    finish_writer_result,
    identity,
    wrap_lazy_coro_result_writer,
)
from .._types import RawThunk
from ..exit_case import Cancelled, ExitCase
from ..writer import LazyCoroResultWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReleasePolicy:
    """
    How release steps are awaited.

    timeout_seconds: upper bound per release; on expiry the release yields
        Error(TimeoutError) instead of hanging the whole chain.
    shield: run release in its own task under asyncio.shield. A cancellation
        arriving during cleanup cannot interrupt it, and the bracket waits
        for it to finish before the cancellation propagates.
    """

    timeout_seconds: float | None = None
    shield: bool = False

    def __post_init__(self) -> None:
        if self.timeout_seconds is not None and self.timeout_seconds <= 0.0:
            raise ValueError("ReleasePolicy.timeout_seconds must be > 0")

    @classmethod
    def default(cls) -> ReleasePolicy:
        """Await release as is."""
        return cls()

    @classmethod
    def bounded(cls, seconds: float) -> ReleasePolicy:
        """Give up on a release after `seconds`."""
        return cls(timeout_seconds=seconds)

    @classmethod
    def shielded(cls, timeout_seconds: float | None = None) -> ReleasePolicy:
        """Protect release from cancellation, optionally bounded."""
        return cls(timeout_seconds=timeout_seconds, shield=True)


_DEFAULT_POLICY = ReleasePolicy.default()

# Brackets nested inline in one task before use moves to a fresh task.
MAX_INLINE_DEPTH = 64

_depth: contextvars.ContextVar[int] = contextvars.ContextVar("managed_bracket_depth", default=0)


async def _run_nested[Raw](use: RawThunk[Raw]) -> Raw:
    """
    Await a use phase one nesting level deeper.

    Every MAX_INLINE_DEPTH levels the rest of the chain continues in a new
    task with a fresh stack. The current task awaits it, so ordering and
    cancellation are the same as inline.
    """
    depth = _depth.get()
    if depth < MAX_INLINE_DEPTH:
        token = _depth.set(depth + 1)
        try:
            return await use()
        finally:
            _depth.reset(token)

    context = contextvars.copy_context()
    context.run(_depth.set, 0)
    task = asyncio.get_running_loop().create_task(use(), context=context)
    return await task


async def _bounded[Raw](
    awaitable: typing.Awaitable[Raw],
    *,
    seconds: float | None,
    finish: Callable[[Result[typing.Any, typing.Any], Sequence[typing.Any]], Raw],
) -> Raw:
    if seconds is None:
        return await awaitable
    try:
        async with asyncio.timeout(seconds) as deadline:
            return await awaitable
    except asyncio.TimeoutError:
        # a TimeoutError raised by the release itself is a release failure
        if not deadline.expired():
            raise
        return finish(Error(TimeoutError(seconds)), [])


async def _settle(task: asyncio.Future[typing.Any]) -> None:
    while not task.done():
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            continue


async def _await_release[Raw](
    thunk: RawThunk[Raw],
    *,
    policy: ReleasePolicy,
    extract: Callable[[typing.Any], Result[typing.Any, typing.Any]],
    finish: Callable[[Result[typing.Any, typing.Any], Sequence[typing.Any]], Raw],
) -> Raw:
    bounded = _bounded(thunk(), seconds=policy.timeout_seconds, finish=finish)
    if not policy.shield:
        return await bounded

    task = asyncio.ensure_future(bounded)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError as cancelled:
        # The release still finishes before the cancellation moves on.
        await _settle(task)
        if task.cancelled():
            raise
        failure = task.exception()
        if failure is not None:
            _note_lost_release(cancelled, failure)
            raise
        match extract(task.result()):
            case Error(release_error):
                _note_lost_release(cancelled, release_error)
            case _:
                pass
        raise


def _note_lost_release(exc: BaseException, release_error: object) -> None:
    logger.error(
        "release failed during cancellation: %r",
        release_error,
        exc_info=release_error if isinstance(release_error, BaseException) else None,
    )
    exc.add_note(f"release failed during cancellation: {release_error!r}")


# ============================================================================
# Generic combinator (extract + wrap pattern)
# ============================================================================


def bracket_caseM[M, T, R, E, RawA, RawU, RawRel, RawOut](
    acquire: RawThunk[RawA],
    *,
    release: Callable[[T, ExitCase[typing.Any]], RawThunk[RawRel]],
    use: Callable[[T], RawThunk[RawU]],
    extract: Callable[[typing.Any], Result[typing.Any, typing.Any]],
    finish: Callable[[Result[typing.Any, typing.Any], Sequence[typing.Any]], RawOut],
    wrap: Callable[[RawThunk[RawOut]], M],
    policy: ReleasePolicy | None = None,
) -> M:
    """
    Generic bracket with outcome-aware release.

    Args:
        acquire: Callable returning Coroutine[RawA]
        release: (resource, exit case) -> callable returning Coroutine[RawRel]
        use: resource -> callable returning Coroutine[RawU]
        extract: Raw -> Result, for any step's raw value
        finish: (final Result, raws of steps that ran) -> RawOut
        wrap: Constructor to wrap thunk back into monad M
        policy: How release steps are awaited

    Example (LazyCoroResult):
        bracket_caseM(lcr, release=..., use=..., extract=identity,
                      finish=finish_result, wrap=LazyCoroResult)
    """
    release_policy = policy if policy is not None else _DEFAULT_POLICY

    async def release_step(resource: T, case: ExitCase[typing.Any]) -> RawRel:
        logger.debug("releasing %s after %s", type(resource).__name__, case)
        return await _await_release(
            release(resource, case),
            policy=release_policy,
            extract=extract,
            finish=finish,
        )

    async def release_after_raise(resource: T, exc: BaseException) -> None:
        case = exit_case.from_exception(exc)
        try:
            released = await release_step(resource, case)
        except Exception as release_exc:
            if isinstance(case, Cancelled):
                _note_lost_release(exc, release_exc)
                return
            raise CompositeError(exc, release_exc) from exc

        match extract(released):
            case Ok(_):
                return
            case Error(release_error):
                if isinstance(case, Cancelled):
                    _note_lost_release(exc, release_error)
                    return
                raise CompositeError(exc, release_error) from exc

    async def use_and_release(acquired: RawA, resource: T) -> RawOut:
        try:
            used = await _run_nested(use(resource))
        except BaseException as exc:
            await release_after_raise(resource, exc)
            raise

        use_result = extract(used)
        try:
            released = await release_step(resource, exit_case.from_result(use_result))
        except Exception as release_exc:
            match use_result:
                case Error(e):
                    raise CompositeError(e, release_exc) from release_exc
                case _:
                    raise
        steps = [acquired, used, released]

        match extract(released), use_result:
            case Ok(_), _:
                return finish(use_result, steps)
            case Error(release_error), Ok(_):
                return finish(Error(release_error), steps)
            case Error(release_error), Error(e):
                return finish(Error(CompositeError(e, release_error)), steps)
            case _ as unreachable:
                typing.assert_never(unreachable)

    async def run() -> RawOut:
        acquired = await acquire()

        match extract(acquired):
            case Error(e):
                return finish(Error(e), [acquired])
            case Ok(resource):
                return await use_and_release(acquired, resource)
            case _ as unreachable:
                typing.assert_never(unreachable)

    return wrap(run)


# ============================================================================
# Sugar for LazyCoroResult
# ============================================================================


def bracket_case[T, R, E](
    acquire: LazyCoroResult[T, E],
    *,
    release: Callable[[T, ExitCase[E | Exception]], LazyCoroResult[None, E]],
    use: Callable[[T], LazyCoroResult[R, E]],
    policy: ReleasePolicy | None = None,
) -> LazyCoroResult[R, E | CompositeError]:
    """Resource management: acquire → use → release(resource, exit case)."""
    return bracket_caseM(
        acquire,
        release=release,
        use=use,
        extract=identity,
        finish=finish_result,
        wrap=LazyCoroResult,
        policy=policy,
    )


def bracket[T, R, E](
    acquire: LazyCoroResult[T, E],
    *,
    release: Callable[[T], LazyCoroResult[None, E]],
    use: Callable[[T], LazyCoroResult[R, E]],
    policy: ReleasePolicy | None = None,
) -> LazyCoroResult[R, E | CompositeError]:
    """Resource management: acquire → use → release (always, same for every exit)."""

    def release_case(resource: T, case: ExitCase[E | Exception]) -> LazyCoroResult[None, E]:
        _ = case
        return release(resource)

    return bracket_case(acquire, release=release_case, use=use, policy=policy)


# ============================================================================
# Sugar for LazyCoroResultWriter
# ============================================================================


def bracket_case_w[T, R, E, W](
    acquire: LazyCoroResultWriter[T, E, W],
    *,
    release: Callable[[T, ExitCase[E | Exception]], LazyCoroResultWriter[None, E, W]],
    use: Callable[[T], LazyCoroResultWriter[R, E, W]],
    policy: ReleasePolicy | None = None,
) -> LazyCoroResultWriter[R, E | CompositeError, W]:
    """
    Outcome-aware bracket with log merging.

    Log order: acquire, use, release. If use raises, the exception carries
    no log and the journal of that cycle is lost with it.
    """
    return bracket_caseM(
        acquire,
        release=release,
        use=use,
        extract=extract_writer_result,
        finish=finish_writer_result,
        wrap=wrap_lazy_coro_result_writer,
        policy=policy,
    )


def bracket_w[T, R, E, W](
    acquire: LazyCoroResultWriter[T, E, W],
    *,
    release: Callable[[T], LazyCoroResultWriter[None, E, W]],
    use: Callable[[T], LazyCoroResultWriter[R, E, W]],
    policy: ReleasePolicy | None = None,
) -> LazyCoroResultWriter[R, E | CompositeError, W]:
    """Resource management with log merging."""

    def release_case(resource: T, case: ExitCase[E | Exception]) -> LazyCoroResultWriter[None, E, W]:
        _ = case
        return release(resource)

    return bracket_case_w(acquire, release=release_case, use=use, policy=policy)


__all__ = (
    "ReleasePolicy",
    "bracket",
    "bracket_case",
    "bracket_w",
    "bracket_case_w",
    "bracket_caseM",
)
