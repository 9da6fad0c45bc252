from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from pathlib import Path

from kungfu import Error, Ok, Result

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@dataclass(frozen=True, slots=True)
class Failure(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover (examples only)
        return self.message


@dataclass(slots=True)
class Handle:
    dsn: str
    open: bool = True


@dataclass(slots=True)
class Consumer:
    topic: str
    open: bool = True


@dataclass(slots=True)
class Service:
    handle: Handle
    consumer: Consumer


@dataclass(slots=True)
class FakeInfra:
    """Records what was opened and closed, in order."""

    delay_seconds: float = 0.0
    fail_consumer: bool = False
    events: list[str] = field(default_factory=list)

    async def open_db(self, dsn: str) -> Result[Handle, Failure]:
        await asyncio.sleep(self.delay_seconds)
        self.events.append(f"open db {dsn}")
        return Ok(Handle(dsn))

    async def close_db(self, handle: Handle) -> Result[None, Failure]:
        handle.open = False
        self.events.append(f"close db {handle.dsn}")
        return Ok(None)

    async def open_consumer(self, topic: str) -> Result[Consumer, Failure]:
        await asyncio.sleep(self.delay_seconds)
        if self.fail_consumer:
            return Error(Failure(f"consumer {topic}: broker unavailable"))
        self.events.append(f"open consumer {topic}")
        return Ok(Consumer(topic))

    async def close_consumer(self, consumer: Consumer) -> Result[None, Failure]:
        consumer.open = False
        self.events.append(f"close consumer {consumer.topic}")
        return Ok(None)

    async def start_service(self, handle: Handle, consumer: Consumer) -> Result[Service, Failure]:
        self.events.append("start service")
        return Ok(Service(handle, consumer))

    async def stop_service(self, service: Service) -> Result[None, Failure]:
        _ = service
        self.events.append("stop service")
        return Ok(None)


def banner(title: str) -> None:  # pragma: no cover (examples only)
    print(f"\n== {title} ==")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:  # pragma: no cover (examples only)
    asyncio.run(main())
