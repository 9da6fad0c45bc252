"""
Resource comprehensions
=======================

Write a chain of dependent resources as a generator instead of nested
flat_map lambdas:

    @binding
    def service(url: str):
        handle = yield Resource.of(lambda: open_db(url), close_db)
        consumer = yield Resource.of(open_consumer, close_consumer)
        return Service(handle, consumer)

    await service("db://").invoke(lambda svc: svc.run())

Each `yield` is a flat_map. The generator function is called afresh on
every invocation, so the resulting Resource stays reusable.
"""

from __future__ import annotations

import typing
from collections.abc import Callable, Generator
from functools import wraps

from ..capability import LCR_BRACKET, BracketCapability
from .resource import Resource

type Comprehension[T, E] = Generator[Resource[typing.Any, E], typing.Any, T]


def _step[T, E](
    gen: Comprehension[T, E],
    sent: typing.Any,
    bracket: BracketCapability[typing.Any],
) -> Resource[T, E]:
    try:
        nxt = gen.send(sent)
    except StopIteration as stop:
        return Resource.just(stop.value, bracket=bracket)
    return nxt.flat_map(lambda value: _step(gen, value, bracket))


def comprehension[T, E](
    start: Callable[[], Comprehension[T, E]],
    *,
    bracket: BracketCapability[typing.Any] = LCR_BRACKET,
) -> Resource[T, E]:
    """Resource running a fresh generator from `start` per invocation."""
    return Resource.just(None, bracket=bracket).flat_map(lambda _: _step(start(), None, bracket))


@typing.overload
def binding[**P, T, E](
    fn: Callable[P, Comprehension[T, E]],
    /,
) -> Callable[P, Resource[T, E]]: ...


@typing.overload
def binding[**P, T, E](
    *,
    bracket: BracketCapability[typing.Any],
) -> Callable[[Callable[P, Comprehension[T, E]]], Callable[P, Resource[T, E]]]: ...


def binding(
    fn: Callable[..., typing.Any] | None = None,
    /,
    *,
    bracket: BracketCapability[typing.Any] = LCR_BRACKET,
) -> typing.Any:
    """
    Decorator turning a resource-yielding generator function into a
    function returning Resource.

    Use `@binding(bracket=writer_bracket())` for other effects.
    """

    def decorate(func: Callable[..., Comprehension[typing.Any, typing.Any]]) -> Callable[..., Resource[typing.Any, typing.Any]]:
        @wraps(func)
        def wrapper(*args: typing.Any, **kwargs: typing.Any) -> Resource[typing.Any, typing.Any]:
            return comprehension(lambda: func(*args, **kwargs), bracket=bracket)

        return wrapper

    if fn is None:
        return decorate
    return decorate(fn)


__all__ = ("binding", "comprehension")
