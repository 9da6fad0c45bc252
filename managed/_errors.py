from __future__ import annotations


class TimeoutError(Exception):
    """Release took longer than ReleasePolicy allows."""

    seconds: float

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        super().__init__(f"Release timed out after {seconds}s")


class CompositeError(Exception):
    """
    Use failed and release failed too.

    `error` is the use-phase failure (primary), `release_error` the cleanup one.
    Both can themselves be CompositeError when brackets are nested.
    """

    error: object
    release_error: object

    def __init__(self, error: object, release_error: object) -> None:
        self.error = error
        self.release_error = release_error
        super().__init__(f"{error!r}; release also failed: {release_error!r}")


class ResourceError(Exception):
    """Result-channel error handed to an exception-based API (__aexit__)."""

    error: object

    def __init__(self, error: object) -> None:
        self.error = error
        super().__init__(f"Resource use failed with {error!r}")


__all__ = ("CompositeError", "ResourceError", "TimeoutError")
