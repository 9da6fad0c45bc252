"""
managed: acquire/release resources that compose.

A Resource describes how to acquire a value and how to give it back.
Resources chain (flat_map), transform (map) and merge (combine); running
one acquires everything in order and releases in exact reverse order,
whether use succeeds, fails, raises or is cancelled.

Architecture:
- Bracket primitive: bracket_caseM (generic, extract + wrap pattern),
  bracket_case for LazyCoroResult, bracket_case_w for LazyCoroResultWriter
- BracketCapability: what a Resource needs from its effect, passed explicitly
- Resource: immutable description, interpreted by `invoke`
"""

# Core types
from ._types import LCR, Combinable, NoError

# Exit cases
from . import exit_case
from .exit_case import CANCELLED, COMPLETED, Cancelled, Completed, Errored, ExitCase

# Writer effect
from . import writer
from .writer import LazyCoroResultWriter, Log, WriterResult, writer_error, writer_ok

# Bracket primitive
from .control import (
    ReleasePolicy,
    bracket,
    bracket_case,
    bracket_case_w,
    bracket_caseM,
    bracket_w,
)

# Capabilities
from .capability import LCR_BRACKET, BracketCapability, lcr_bracket, writer_bracket

# Resource
from .resource import (
    Resource,
    binding,
    comprehension,
    from_async_context,
    sequence,
    traverse,
)

# Errors
from ._errors import CompositeError, ResourceError, TimeoutError

__version__ = "0.1.0"

__all__ = (
    # Types
    "LCR",
    "Combinable",
    "NoError",
    # Exit cases
    "exit_case",
    "ExitCase",
    "Completed",
    "Errored",
    "Cancelled",
    "COMPLETED",
    "CANCELLED",
    # Writer
    "writer",
    "LazyCoroResultWriter",
    "Log",
    "WriterResult",
    "writer_ok",
    "writer_error",
    # Bracket
    "ReleasePolicy",
    "bracket",
    "bracket_case",
    "bracket_w",
    "bracket_case_w",
    "bracket_caseM",
    # Capabilities
    "BracketCapability",
    "LCR_BRACKET",
    "lcr_bracket",
    "writer_bracket",
    # Resource
    "Resource",
    "binding",
    "comprehension",
    "sequence",
    "traverse",
    "from_async_context",
    # Errors
    "CompositeError",
    "ResourceError",
    "TimeoutError",
)
