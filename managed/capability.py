"""
Bracket capability
==================

What a Resource needs from the effect it runs on: bracket_case, pure, unit.
Passed explicitly to Resource constructors (default: LCR_BRACKET).

For custom monads:
1. Write extract/finish/wrap for your monad
2. Build bracket_case on top of bracket_caseM
3. Pack it with pure and unit into a BracketCapability
"""

from __future__ import annotations

import typing
from collections.abc import Callable
from dataclasses import dataclass

from kungfu import LazyCoroResult

from ._helpers import (
    extract_writer_result,
    finish_result,
    finish_writer_result,
    identity,
    wrap_lazy_coro_result_writer,
)
from ._types import ReleaseCase, Thunk
from .control.bracket import ReleasePolicy, bracket_caseM
from .writer import LazyCoroResultWriter, writer_ok


@dataclass(frozen=True, slots=True)
class BracketCapability[M]:
    """
    Typeclass for running Resources in monad M.

    bracket_case(acquire, release, use): acquire is a thunk producing M,
        called at run time, never while a Resource is being described.
    pure(value): lift a plain value, no side effects.
    unit(): canonical no-op, used as the release of finalizer-free leaves.
    """

    bracket_case: Callable[
        [Thunk[M], ReleaseCase[typing.Any, typing.Any, M], Callable[[typing.Any], M]],
        M,
    ]
    pure: Callable[[typing.Any], M]
    unit: Callable[[], M]


def lcr_bracket(policy: ReleasePolicy | None = None) -> BracketCapability[LazyCoroResult[typing.Any, typing.Any]]:
    """Capability for kungfu LazyCoroResult."""

    def bracket_case(
        acquire: Thunk[LazyCoroResult[typing.Any, typing.Any]],
        release: ReleaseCase[typing.Any, typing.Any, LazyCoroResult[None, typing.Any]],
        use: Callable[[typing.Any], LazyCoroResult[typing.Any, typing.Any]],
    ) -> LazyCoroResult[typing.Any, typing.Any]:
        # acquire() is deferred into the coroutine: describing must not run effects
        return bracket_caseM(
            lambda: acquire()(),
            release=release,
            use=use,
            extract=identity,
            finish=finish_result,
            wrap=LazyCoroResult,
            policy=policy,
        )

    return BracketCapability(
        bracket_case=bracket_case,
        pure=LazyCoroResult.pure,
        unit=lambda: LazyCoroResult.pure(None),
    )


def writer_bracket(
    policy: ReleasePolicy | None = None,
) -> BracketCapability[LazyCoroResultWriter[typing.Any, typing.Any, typing.Any]]:
    """Capability for LazyCoroResultWriter; logs merge in execution order."""

    def bracket_case(
        acquire: Thunk[LazyCoroResultWriter[typing.Any, typing.Any, typing.Any]],
        release: ReleaseCase[typing.Any, typing.Any, LazyCoroResultWriter[None, typing.Any, typing.Any]],
        use: Callable[[typing.Any], LazyCoroResultWriter[typing.Any, typing.Any, typing.Any]],
    ) -> LazyCoroResultWriter[typing.Any, typing.Any, typing.Any]:
        return bracket_caseM(
            lambda: acquire()(),
            release=release,
            use=use,
            extract=extract_writer_result,
            finish=finish_writer_result,
            wrap=wrap_lazy_coro_result_writer,
            policy=policy,
        )

    return BracketCapability(
        bracket_case=bracket_case,
        pure=writer_ok,
        unit=lambda: writer_ok(None),
    )


LCR_BRACKET = lcr_bracket()


__all__ = (
    "BracketCapability",
    "LCR_BRACKET",
    "lcr_bracket",
    "writer_bracket",
)
