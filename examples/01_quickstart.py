from __future__ import annotations

from _infra import FakeInfra, Handle, Service, banner, run

from kungfu import Error, LazyCoroResult, Ok

from managed import Resource, binding


def stack(infra: FakeInfra) -> Resource[Service, Exception]:
    db = Resource.of(
        lambda: LazyCoroResult(lambda: infra.open_db("postgres://app")),
        lambda h: LazyCoroResult(lambda: infra.close_db(h)),
    )
    consumer = Resource.of(
        lambda: LazyCoroResult(lambda: infra.open_consumer("orders")),
        lambda c: LazyCoroResult(lambda: infra.close_consumer(c)),
    )

    def service(handle: Handle) -> Resource[Service, Exception]:
        return consumer.flat_map(
            lambda c: Resource.of(
                lambda: LazyCoroResult(lambda: infra.start_service(handle, c)),
                lambda s: LazyCoroResult(lambda: infra.stop_service(s)),
            )
        )

    return db.flat_map(service)


@binding
def stack_comprehension(infra: FakeInfra):
    # Same stack, written as a generator: each yield is a flat_map.
    handle = yield Resource.of(
        lambda: LazyCoroResult(lambda: infra.open_db("postgres://app")),
        lambda h: LazyCoroResult(lambda: infra.close_db(h)),
    )
    consumer = yield Resource.of(
        lambda: LazyCoroResult(lambda: infra.open_consumer("orders")),
        lambda c: LazyCoroResult(lambda: infra.close_consumer(c)),
    )
    service = yield Resource.of(
        lambda: LazyCoroResult(lambda: infra.start_service(handle, consumer)),
        lambda s: LazyCoroResult(lambda: infra.stop_service(s)),
    )
    return service


async def main() -> None:
    banner("01_quickstart: nested resources, released in reverse")

    for build in (stack, stack_comprehension):
        infra = FakeInfra(delay_seconds=0.01)
        result = await build(infra).use(lambda svc: f"serving {svc.consumer.topic} from {svc.handle.dsn}")
        match result:
            case Ok(message):
                print(message)
            case Error(err):
                print(f"error: {err!r}")
        print(" -> ".join(infra.events))

    banner("01_quickstart: consumer fails, db still closed")

    infra = FakeInfra(fail_consumer=True)
    result = await stack(infra).use(lambda svc: svc)
    print(result)
    print(" -> ".join(infra.events))


if __name__ == "__main__":
    run(main)
