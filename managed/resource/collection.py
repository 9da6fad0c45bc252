"""Sequence / traverse over resources

Acquire many resources as one: left to right, released right to left."""

from __future__ import annotations

import typing
from collections.abc import Callable, Sequence
from functools import partial

from .._helpers import identity
from ..capability import LCR_BRACKET, BracketCapability
from .resource import Resource

# Acquired values so far, newest first: (value, rest) | None
type _Stack = tuple[typing.Any, _Stack] | None


def _push[A, T, E](handler: Callable[[A], Resource[T, E]], item: A, stack: _Stack) -> Resource[_Stack, E]:
    return handler(item).map(lambda value: (value, stack))


def _to_list(stack: _Stack) -> list[typing.Any]:
    values: list[typing.Any] = []
    while stack is not None:
        value, stack = stack
        values.append(value)
    values.reverse()
    return values


def traverse[A, T, E](
    items: Sequence[A],
    handler: Callable[[A], Resource[T, E]],
    *,
    bracket: BracketCapability[typing.Any] = LCR_BRACKET,
) -> Resource[list[T], E]:
    """
    Resource per item, acquired in item order, as one Resource of a list.

    handler(item) is called at invocation time, after the previous item's
    resource was acquired. The first failing acquisition releases every
    resource acquired before it.
    """
    acc: Resource[_Stack, E] = Resource.just(None, bracket=bracket)
    for item in items:
        acc = acc.flat_map(partial(_push, handler, item))
    return acc.map(_to_list)


def sequence[T, E](
    resources: Sequence[Resource[T, E]],
    *,
    bracket: BracketCapability[typing.Any] = LCR_BRACKET,
) -> Resource[list[T], E]:
    """
    Flip structure: [Resource[T]] -> Resource[[T]].

    Implemented as traverse(id).
    """
    return traverse(resources, identity, bracket=bracket)


__all__ = ("sequence", "traverse")
