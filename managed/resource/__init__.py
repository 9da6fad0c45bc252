from .binding import binding, comprehension
from .collection import sequence, traverse
from .context import from_async_context
from .nodes import Chained, Combined, Lifted, Mapped, Node, Primitive, run
from .resource import Resource

__all__ = (
    "Resource",
    # Nodes
    "Node",
    "Primitive",
    "Lifted",
    "Mapped",
    "Chained",
    "Combined",
    "run",
    # Comprehension
    "binding",
    "comprehension",
    # Collection
    "sequence",
    "traverse",
    # Context managers
    "from_async_context",
)
