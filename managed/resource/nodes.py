"""
Resource description nodes
==========================

A Resource is a tree of these nodes. Nothing runs while the tree is built;
`run` interprets it once per invocation, delegating every leaf to its
capability's bracket_case and nesting the continuations so that release
order is the exact reverse of acquisition order.

Leaves:
- Primitive: explicit acquire + outcome-aware release
- Lifted: bare effect, no-op release

Composition:
- Mapped: pure function over the inner value
- Chained: dependent resource computed from the inner value
- Combined: two independent resources merged by a binary function
"""

from __future__ import annotations

import typing
from collections.abc import Callable
from dataclasses import dataclass

from .._types import ReleaseCase, Thunk
from ..capability import BracketCapability


class Described[T, E](typing.Protocol):
    """Anything carrying a node (Resource)."""

    @property
    def node(self) -> Node[T, E]: ...


class Node[T, E]:
    """Description of how to acquire a T and how to give it back."""


@dataclass(frozen=True, slots=True)
class Primitive[T, E](Node[T, E]):
    acquire: Thunk[typing.Any]
    release: ReleaseCase[T, E, typing.Any]
    bracket: BracketCapability[typing.Any]


@dataclass(frozen=True, slots=True)
class Lifted[T, E](Node[T, E]):
    effect: typing.Any
    bracket: BracketCapability[typing.Any]


@dataclass(frozen=True, slots=True)
class Mapped[S, T, E](Node[T, E]):
    inner: Node[S, E]
    f: Callable[[S], T]


@dataclass(frozen=True, slots=True)
class Chained[S, T, E](Node[T, E]):
    inner: Node[S, E]
    f: Callable[[S], Described[T, E]]


@dataclass(frozen=True, slots=True)
class Combined[T, E](Node[T, E]):
    left: Node[T, E]
    right: Node[T, E]
    combine: Callable[[T, T], T]


type Frame = Mapped[typing.Any, typing.Any, typing.Any] | Chained[typing.Any, typing.Any, typing.Any]


def _continuation[M](
    frames: list[Frame],
    top: int,
    use: Callable[[typing.Any], M],
) -> Callable[[typing.Any], M]:
    """
    Continuation applying frames[top - 1] .. frames[0], then use.

    A Chained frame hands the rest of the frames to the dependent resource,
    so the dependent's bracket sits inside the current one.
    """

    def step(value: typing.Any) -> M:
        i = top
        while i > 0:
            i -= 1
            match frames[i]:
                case Mapped(f=f):
                    value = f(value)
                case Chained(f=f):
                    return run(f(value).node, _continuation(frames, i, use))
        return use(value)

    return step


def run[T, M](node: Node[T, typing.Any], use: Callable[[T], M]) -> M:
    """
    Describe one acquire/use/release cycle of `node` as an effect M.

    Left-nested Mapped/Chained layers are peeled into a frame list instead
    of being recursed into, so r.map(f).flat_map(g).map(h)... stays linear.
    """
    frames: list[Frame] = []
    while isinstance(node, (Mapped, Chained)):
        frames.append(node)
        node = node.inner

    k = _continuation(frames, len(frames), use)

    match node:
        case Primitive(acquire=acquire, release=release, bracket=bracket):
            return bracket.bracket_case(acquire, release, k)
        case Lifted(effect=effect, bracket=bracket):
            return bracket.bracket_case(lambda: effect, lambda _a, _case: bracket.unit(), k)
        case Combined(left=left, right=right, combine=combine):
            return run(left, lambda a: run(right, lambda b: k(combine(a, b))))
        case _:
            raise TypeError(f"Unknown resource node: {node!r}")


__all__ = (
    "Node",
    "Primitive",
    "Lifted",
    "Mapped",
    "Chained",
    "Combined",
    "run",
)
