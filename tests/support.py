from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from kungfu import Error, LazyCoroResult, Ok, Result

from managed import ExitCase, Resource


@dataclass
class Failure(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


def ok[T](value: T) -> LazyCoroResult[T, Failure]:
    return LazyCoroResult.pure(value)


def fail(error: Failure) -> LazyCoroResult[None, Failure]:
    async def run() -> Result[None, Failure]:
        return Error(error)

    return LazyCoroResult(run)


def raising(exc: BaseException) -> LazyCoroResult[None, Failure]:
    async def run() -> Result[None, Failure]:
        raise exc

    return LazyCoroResult(run)


@dataclass
class Journal:
    """Records acquire/release events of tracked resources."""

    events: list[str] = field(default_factory=list)
    cases: dict[str, ExitCase[object]] = field(default_factory=dict)

    @property
    def acquired(self) -> list[str]:
        return [e.removeprefix("acquire:") for e in self.events if e.startswith("acquire:")]

    @property
    def released(self) -> list[str]:
        return [e.removeprefix("release:") for e in self.events if e.startswith("release:")]

    def resource(
        self,
        name: str,
        *,
        acquire_error: Failure | None = None,
        acquire_raises: BaseException | None = None,
        release_error: Failure | None = None,
        release_raises: BaseException | None = None,
        release_delay: float = 0.0,
    ) -> Resource[str, Failure]:
        def acquire() -> LazyCoroResult[str, Failure]:
            async def run() -> Result[str, Failure]:
                self.events.append(f"acquire:{name}")
                if acquire_raises is not None:
                    raise acquire_raises
                if acquire_error is not None:
                    return Error(acquire_error)
                return Ok(name)

            return LazyCoroResult(run)

        def release(value: str, case: ExitCase[object]) -> LazyCoroResult[None, Failure]:
            async def run() -> Result[None, Failure]:
                if release_delay:
                    await asyncio.sleep(release_delay)
                self.events.append(f"release:{value}")
                self.cases[value] = case
                if release_raises is not None:
                    raise release_raises
                if release_error is not None:
                    return Error(release_error)
                return Ok(None)

            return LazyCoroResult(run)

        return Resource.of_case(acquire, release)


def value_of[T](result: Result[T, object]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(error):
            raise AssertionError(f"expected Ok, got Error({error!r})")


def error_of(result: Result[object, object]) -> object:
    match result:
        case Error(error):
            return error
        case Ok(value):
            raise AssertionError(f"expected Error, got Ok({value!r})")
