import asyncio

import pytest
from kungfu import LazyCoroResult, Ok, Result

from managed import CANCELLED, COMPLETED, Errored, ReleasePolicy, Resource, lcr_bracket
from support import Failure, Journal, error_of, fail, ok, raising, value_of


@pytest.mark.asyncio
async def test_chained_resources_release_in_reverse(journal: Journal):
    r1 = journal.resource("1")
    r2 = journal.resource("2")

    result = await r1.flat_map(lambda _: r2).invoke(lambda _: ok("done"))()

    assert value_of(result) == "done"
    assert journal.events == ["acquire:1", "acquire:2", "release:2", "release:1"]
    assert journal.cases == {"1": COMPLETED, "2": COMPLETED}


@pytest.mark.asyncio
async def test_long_chain_releases_in_exact_reverse(journal: Journal):
    names = [str(i) for i in range(10)]
    chain = journal.resource(names[0])
    for name in names[1:]:
        chain = chain.flat_map(lambda _, name=name: journal.resource(name))

    await chain.invoke(lambda _: ok(None))()

    assert journal.acquired == names
    assert journal.released == list(reversed(names))


@pytest.mark.asyncio
async def test_right_nested_chain_releases_in_exact_reverse(journal: Journal):
    chain = journal.resource("1").flat_map(
        lambda _: journal.resource("2").flat_map(lambda _: journal.resource("3"))
    )

    await chain.invoke(lambda _: ok(None))()

    assert journal.released == ["3", "2", "1"]


@pytest.mark.asyncio
async def test_dependent_acquisition_sees_inner_value(journal: Journal):
    db = journal.resource("db")
    session = db.flat_map(lambda handle: journal.resource(f"session@{handle}"))

    result = await session.invoke(lambda s: ok(s.upper()))()

    assert value_of(result) == "SESSION@DB"
    assert journal.released == ["session@db", "db"]


@pytest.mark.asyncio
async def test_use_error_releases_everything_before_result(journal: Journal):
    boom = Failure("use failed")
    seen_at_failure: list[list[str]] = []

    def use(_: str) -> LazyCoroResult[None, Failure]:
        seen_at_failure.append(list(journal.released))
        return fail(boom)

    result = await journal.resource("1").flat_map(lambda _: journal.resource("2")).invoke(use)()

    assert error_of(result) == boom
    assert seen_at_failure == [[]]
    assert journal.released == ["2", "1"]
    assert journal.cases == {"1": Errored(boom), "2": Errored(boom)}


@pytest.mark.asyncio
async def test_use_raising_releases_everything_then_raises(journal: Journal):
    boom = Failure("crash")

    with pytest.raises(Failure):
        await journal.resource("1").flat_map(lambda _: journal.resource("2")).invoke(lambda _: raising(boom))()

    assert journal.released == ["2", "1"]
    assert journal.cases == {"1": Errored(boom), "2": Errored(boom)}


@pytest.mark.asyncio
async def test_failed_dependent_acquisition_releases_only_inner(journal: Journal):
    boom = Failure("cannot open session")
    used: list[str] = []

    def use(value: str) -> LazyCoroResult[None, Failure]:
        used.append(value)
        return ok(None)

    chain = journal.resource("1").flat_map(lambda _: journal.resource("2", acquire_error=boom))
    result = await chain.invoke(use)()

    assert error_of(result) == boom
    assert used == []
    assert journal.acquired == ["1", "2"]
    assert journal.released == ["1"]
    assert journal.cases == {"1": Errored(boom)}


@pytest.mark.asyncio
async def test_raising_dependent_acquisition_releases_inner_then_raises(journal: Journal):
    crash = Failure("socket closed")
    chain = journal.resource("1").flat_map(lambda _: journal.resource("2", acquire_raises=crash))

    with pytest.raises(Failure) as info:
        await chain.invoke(lambda _: ok(None))()

    assert info.value is crash
    assert journal.acquired == ["1", "2"]
    assert journal.released == ["1"]
    assert journal.cases == {"1": Errored(crash)}


@pytest.mark.asyncio
async def test_dependent_function_raising_releases_inner(journal: Journal):
    def open_dependent(_: str) -> Resource[str, Failure]:
        raise Failure("bad config")

    with pytest.raises(Failure, match="bad config"):
        await journal.resource("1").flat_map(open_dependent).invoke(lambda _: ok(None))()

    assert journal.released == ["1"]


@pytest.mark.asyncio
async def test_cancellation_releases_everything_with_cancelled(journal: Journal):
    started = asyncio.Event()

    async def forever() -> Result[None, Failure]:
        started.set()
        await asyncio.sleep(10)
        return Ok(None)

    chain = journal.resource("1").flat_map(lambda _: journal.resource("2"))
    task = asyncio.ensure_future(chain.invoke(lambda _: LazyCoroResult(forever))())
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert journal.released == ["2", "1"]
    assert journal.cases == {"1": CANCELLED, "2": CANCELLED}


@pytest.mark.asyncio
async def test_map_preserves_release_count(journal: Journal):
    mapped = await journal.resource("db").map(str.upper).invoke(lambda v: ok(v))()
    direct = await journal.resource("db").invoke(lambda v: ok(v.upper()))()

    assert value_of(mapped) == value_of(direct) == "DB"
    assert journal.released == ["db", "db"]


@pytest.mark.asyncio
async def test_map_function_raising_releases(journal: Journal):
    def explode(_: str) -> str:
        raise Failure("mapping failed")

    with pytest.raises(Failure):
        await journal.resource("1").map(explode).invoke(lambda v: ok(v))()

    assert journal.released == ["1"]


@pytest.mark.asyncio
async def test_combine_acquires_left_first_releases_right_first(journal: Journal):
    merged = journal.resource("a").combine(journal.resource("b"), lambda x, y: x + y)

    result = await merged.invoke(lambda v: ok(v))()

    assert value_of(result) == "ab"
    assert journal.acquired == ["a", "b"]
    assert journal.released == ["b", "a"]


@pytest.mark.asyncio
async def test_combine_right_acquire_failure_releases_left(journal: Journal):
    boom = Failure("b unavailable")
    merged = journal.resource("a").combine(journal.resource("b", acquire_error=boom), lambda x, y: x + y)

    result = await merged.invoke(lambda v: ok(v))()

    assert error_of(result) == boom
    assert journal.released == ["a"]


@pytest.mark.asyncio
async def test_same_resource_invoked_twice_is_independent(journal: Journal):
    resource = journal.resource("1").flat_map(lambda _: journal.resource("2"))

    await resource.invoke(lambda _: ok(None))()
    first = list(journal.events)
    await resource.invoke(lambda _: ok(None))()

    assert journal.events == first + first


@pytest.mark.asyncio
async def test_concurrent_invocations_own_their_cycle(journal: Journal):
    resource = journal.resource("1", release_delay=0.01)

    results = await asyncio.gather(
        resource.invoke(lambda v: ok(f"{v}-a"))(),
        resource.invoke(lambda v: ok(f"{v}-b"))(),
    )

    assert [value_of(r) for r in results] == ["1-a", "1-b"]
    assert journal.acquired == ["1", "1"]
    assert journal.released == ["1", "1"]


@pytest.mark.asyncio
async def test_nothing_runs_until_invoked_effect_is_awaited(journal: Journal):
    used: list[str] = []

    def use(value: str) -> LazyCoroResult[None, Failure]:
        used.append(value)
        return ok(None)

    effect = journal.resource("1").flat_map(lambda _: journal.resource("2")).invoke(use)

    assert journal.events == []
    assert used == []

    await effect()
    assert used == ["2"]


@pytest.mark.asyncio
async def test_release_error_surfaces_after_successful_use(journal: Journal):
    close_failed = Failure("close failed")
    chain = journal.resource("1").flat_map(lambda _: journal.resource("2", release_error=close_failed))

    result = await chain.invoke(lambda _: ok("done"))()

    assert error_of(result) == close_failed
    # outer resource sees the inner release failure as its use failure
    assert journal.cases == {"2": COMPLETED, "1": Errored(close_failed)}


@pytest.mark.asyncio
async def test_call_is_invoke(journal: Journal):
    result = await journal.resource("1")(lambda v: ok(v))()

    assert value_of(result) == "1"
    assert journal.released == ["1"]


@pytest.mark.asyncio
async def test_use_runs_plain_function(journal: Journal):
    result = await journal.resource("1").use(lambda v: v * 3)()

    assert value_of(result) == "111"
    assert journal.released == ["1"]


@pytest.mark.asyncio
async def test_shielded_inner_release_finishes_before_outer_release_starts():
    shielded = lcr_bracket(ReleasePolicy.shielded())
    events: list[str] = []
    inner_closing = asyncio.Event()
    gate = asyncio.Event()

    def tracked(name: str, *, slow: bool) -> Resource[str, Failure]:
        async def open_() -> Result[str, Failure]:
            events.append(f"acquire:{name}")
            return Ok(name)

        def close(value: str) -> LazyCoroResult[None, Failure]:
            async def run() -> Result[None, Failure]:
                events.append(f"release-start:{value}")
                if slow:
                    inner_closing.set()
                    await gate.wait()
                events.append(f"release-end:{value}")
                return Ok(None)

            return LazyCoroResult(run)

        return Resource.of(lambda: LazyCoroResult(open_), close, bracket=shielded)

    chain = tracked("outer", slow=False).flat_map(lambda _: tracked("inner", slow=True))
    task = asyncio.ensure_future(chain.invoke(lambda _: ok(None))())
    await inner_closing.wait()
    task.cancel()
    await asyncio.sleep(0.01)

    assert events[-1] == "release-start:inner"

    gate.set()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert events == [
        "acquire:outer",
        "acquire:inner",
        "release-start:inner",
        "release-end:inner",
        "release-start:outer",
        "release-end:outer",
    ]


@pytest.mark.asyncio
async def test_thousand_long_chain_releases_in_exact_reverse(journal: Journal):
    names = [str(i) for i in range(1000)]
    chain = journal.resource(names[0])
    for name in names[1:]:
        chain = chain.flat_map(lambda _, name=name: journal.resource(name))

    result = await chain.invoke(lambda v: ok(v))()

    assert value_of(result) == "999"
    assert journal.released == list(reversed(names))


@pytest.mark.asyncio
async def test_cancelling_a_deep_chain_releases_every_level(journal: Journal):
    names = [str(i) for i in range(300)]
    chain = journal.resource(names[0])
    for name in names[1:]:
        chain = chain.flat_map(lambda _, name=name: journal.resource(name))
    in_use = asyncio.Event()

    async def block() -> Result[None, Failure]:
        in_use.set()
        await asyncio.Event().wait()
        return Ok(None)

    task = asyncio.ensure_future(chain.invoke(lambda _: LazyCoroResult(block))())
    await in_use.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert journal.released == list(reversed(names))
    assert set(journal.cases.values()) == {CANCELLED}
