"""
Writer effect
=============

LazyCoroResultWriter: lazy coroutine + Result[T, E] + Log[W].
The second effect type the bracket primitive and Resource run on.
"""

from .log import Log
from .result import WriterResult
from .monad import LazyCoroResultWriter, writer_ok, writer_error

__all__ = (
    "Log",
    "WriterResult",
    "LazyCoroResultWriter",
    "writer_ok",
    "writer_error",
)
