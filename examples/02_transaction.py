from __future__ import annotations

from _infra import Failure, banner, run

from kungfu import Error, Ok

from managed import (
    Cancelled,
    Completed,
    Errored,
    ExitCase,
    LazyCoroResultWriter,
    Resource,
    writer_bracket,
    writer_error,
    writer_ok,
)

WRITER = writer_bracket()


def transaction(name: str) -> Resource[str, Failure]:
    """Commit on success, roll back on failure or cancellation; every step logged."""

    def release(tx: str, case: ExitCase[Failure]) -> LazyCoroResultWriter[None, Failure, str]:
        match case:
            case Completed():
                return writer_ok(None, f"commit {tx}")
            case Errored(err):
                return writer_ok(None, f"rollback {tx} ({err})")
            case Cancelled():
                return writer_ok(None, f"rollback {tx} (cancelled)")

    return Resource.of_case(lambda: writer_ok(name, f"begin {name}"), release, bracket=WRITER)


def transfer(amount: int):
    def body(tx: str) -> LazyCoroResultWriter[int, Failure, str]:
        if amount > 100:
            return writer_error(Failure("insufficient funds"), f"{tx}: debit {amount} refused")
        return writer_ok(amount, f"{tx}: debit {amount}")

    return body


async def main() -> None:
    banner("02_transaction: release sees how use ended")

    for amount in (40, 500):
        outcome = await transaction("tx-1").invoke(transfer(amount))
        match outcome.result:
            case Ok(value):
                print(f"transferred {value}")
            case Error(err):
                print(f"failed: {err}")
        for line in outcome.log:
            print(f"  {line}")

    banner("02_transaction: nested transactions, inner closes first")

    nested = transaction("outer").flat_map(lambda _: transaction("inner"))
    outcome = await nested.invoke(transfer(10))
    for line in outcome.log:
        print(f"  {line}")


if __name__ == "__main__":
    run(main)
