"""
Log - monoidal accumulator for the Writer effect
================================================

Also the reference Combinable: Resource.combine falls back to `.combine`.
"""

from __future__ import annotations


class Log[A](list[A]):
    """
    Append-only journal with monoid operations.

    - empty: Log.empty() (or plain Log())
    - combine: concatenation, associative

    Release journals use it to record acquire/release order:
        Log.of("open:db").combine(Log.of("close:db"))
    """

    @staticmethod
    def of[T](*items: T) -> Log[T]:
        """Create log with items."""
        return Log[T](items)

    @staticmethod
    def empty[T]() -> Log[T]:
        """Monoid identity."""
        return Log[T]()

    def combine(self, other: Log[A], /) -> Log[A]:
        result: Log[A] = Log(self)
        result.extend(other)
        return result

    def tell(self, item: A, /) -> Log[A]:
        result: Log[A] = Log(self)
        result.append(item)
        return result


__all__ = ("Log",)
