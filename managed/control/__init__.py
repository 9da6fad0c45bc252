from .bracket import (
    ReleasePolicy,
    bracket,
    bracket_case,
    bracket_w,
    bracket_case_w,
    bracket_caseM,
)

__all__ = (
    # Policies
    "ReleasePolicy",
    # Bracket
    "bracket",
    "bracket_case",
    "bracket_w",
    "bracket_case_w",
    "bracket_caseM",
)
