"""
Resource
========

Reusable description of acquiring a value, using it, and giving it back.
Resources compose; finalizers then run in reverse order of acquisition,
whatever happens in between.

    db = Resource.of(open_db, close_db)
    consumer = Resource.of(open_consumer, close_consumer)

    service = db.flat_map(
        lambda handle: consumer.flat_map(
            lambda c: Resource.of(lambda: start_service(handle, c), stop_service)
        )
    )

    result = await service.invoke(lambda svc: svc.handle(request))
    # stop_service, close_consumer, close_db, in that order

Nothing executes until `invoke`. Each invocation is an independent
acquire/use/release cycle, so one Resource can be invoked many times,
concurrently too. The acquired value belongs to the `use` continuation:
do not keep it past the effect `use` returns.
"""

from __future__ import annotations

import typing
from collections.abc import Callable
from dataclasses import dataclass

from kungfu import LazyCoroResult

from .._types import Combinable, Release, ReleaseCase, Thunk
from ..capability import LCR_BRACKET, BracketCapability
from ..exit_case import ExitCase
from .nodes import Chained, Combined, Lifted, Mapped, Node, Primitive, run


def _combine_values[T: Combinable](a: T, b: T) -> T:
    return a.combine(b)


@dataclass(frozen=True, slots=True)
class Resource[T, E]:
    """
    Fluent builder over resource nodes.

    Every method returns a new Resource; the wrapped node is never mutated.
    """

    node: Node[T, E]

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @staticmethod
    def of_case[A, Err](
        acquire: Thunk[typing.Any],
        release: ReleaseCase[A, Err, typing.Any],
        *,
        bracket: BracketCapability[typing.Any] = LCR_BRACKET,
    ) -> Resource[A, Err]:
        """
        Resource from an acquire thunk and an outcome-aware release.

        `acquire` is called once per invocation and must return an effect;
        `release(value, exit_case)` runs iff that effect succeeded.

            def release(conn: Conn, case: ExitCase[DbError]) -> LCR[None, DbError]:
                match case:
                    case Completed():
                        return conn.commit()
                    case Errored(_) | Cancelled():
                        return conn.rollback()
        """
        return Resource(Primitive(acquire, release, bracket))

    @staticmethod
    def of[A, Err](
        acquire: Thunk[typing.Any],
        release: Release[A, typing.Any],
        *,
        bracket: BracketCapability[typing.Any] = LCR_BRACKET,
    ) -> Resource[A, Err]:
        """Resource whose release does the same thing for every exit case."""

        def release_case(value: A, case: ExitCase[Err]) -> typing.Any:
            _ = case
            return release(value)

        return Resource.of_case(acquire, release_case, bracket=bracket)

    @staticmethod
    def lift[A, Err](
        effect: typing.Any,
        *,
        bracket: BracketCapability[typing.Any] = LCR_BRACKET,
    ) -> Resource[A, Err]:
        """
        Lift an effect into a Resource with no finalizer.

        The effect runs on every invocation. Use with caution: nothing
        cleans up after it.
        """
        return Resource(Lifted(effect, bracket))

    @staticmethod
    def just[A](
        value: A,
        *,
        bracket: BracketCapability[typing.Any] = LCR_BRACKET,
    ) -> Resource[A, typing.Never]:
        """Resource of a plain value, no finalizer."""
        return Resource.lift(bracket.pure(value), bracket=bracket)

    @staticmethod
    def empty[A: Combinable](
        identity: A,
        *,
        bracket: BracketCapability[typing.Any] = LCR_BRACKET,
    ) -> Resource[A, typing.Never]:
        """
        Monoid identity for `combine`, e.g. Resource.empty(Log.empty()).

        No finalizer is attached.
        """
        return Resource.just(identity, bracket=bracket)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def invoke[M](self, use: Callable[[T], M]) -> M:
        """
        Describe acquire → use → release as one effect of the leaves' monad.

        Awaiting (or calling) the returned effect runs the whole cycle once.
        """
        return run(self.node, use)

    __call__ = invoke

    def use[R](self, f: Callable[[T], R]) -> LazyCoroResult[R, E]:
        """invoke with a plain function. LazyCoroResult resources only."""
        return self.invoke(lambda value: LazyCoroResult.pure(f(value)))

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def map[U](self, f: Callable[[T], U]) -> Resource[U, E]:
        """
        Transform the acquired value; release behaviour is unchanged.

        Same as flat_map(lambda a: Resource.just(f(a))) without the extra
        bracket for the no-op finalizer.
        """
        return Resource(Mapped(self.node, f))

    def flat_map[U](self, f: Callable[[T], Resource[U, E]]) -> Resource[U, E]:
        """
        Acquire a dependent resource from this one's value.

        Acquisition: self, then f(value). Release: f(value), then self.
        If f(value) fails to acquire, self is still released (Errored).
        """
        return Resource(Chained(self.node, f))

    def ap[U](self, ff: Resource[Callable[[T], U], E]) -> Resource[U, E]:
        """Apply the function held by `ff`. Acquires self first, then ff."""
        return self.flat_map(lambda value: ff.map(lambda g: g(value)))

    def combine(
        self,
        other: Resource[T, E],
        combine: Callable[[T, T], T] | None = None,
    ) -> Resource[T, E]:
        """
        Merge two independent resources of the same value type.

        Acquires self then other, releases other then self. Without
        `combine` the values' own `.combine` method is used.
        """
        return Resource(Combined(self.node, other.node, combine if combine is not None else _combine_values))


__all__ = ("Resource",)
