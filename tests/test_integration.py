"""End-to-end flows combining options, results and the pipeline."""

from __future__ import annotations

import pytest

from matchkit import option, result
from matchkit.option import absent, from_nullable, present
from matchkit.pipeline import Pipeline

pytestmark = pytest.mark.integration


def _describe(r: result.Result[int, Exception]) -> str:
    return result.dispatch(r, lambda v: f"ok:{v}", lambda e: f"err:{type(e).__name__}")


@pytest.mark.asyncio
async def test_pipeline_stages_can_produce_results() -> None:
    raw = ["1", None, "x", "42"]
    parse = Pipeline(lambda s: result.try_call(int, s)).then(_describe)

    async with parse as p:
        for value in raw:
            await p.send(from_nullable(value))
        await p.close()
        outputs = [out async for out in p]

    assert outputs == [present("ok:1"), absent(), present("err:ValueError"), present("ok:42")]


def test_result_chain_feeds_option_chain() -> None:
    def positive(v: int) -> result.Result[int, Exception]:
        return result.success(v) if v > 0 else result.failure(ValueError("not positive"))

    def even(v: int) -> option.Option[int]:
        return present(v) if v % 2 == 0 else absent()

    def run(s: str) -> option.Option[int]:
        parsed = result.run_chain(result.try_call(int, s), [positive])
        return option.run_chain(result.to_option(parsed), [even])

    assert run("8") == present(8)
    assert run("7") == absent()
    assert run("-2") == absent()
    assert run("nope") == absent()
