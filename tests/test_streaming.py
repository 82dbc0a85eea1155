from typing import AsyncIterator, Iterable, List, Optional

import pytest

from canvas_assistant.providers import NetworkError
from canvas_assistant.services.conversation.streaming import (
    StreamAggregator,
    StreamStatus,
    collect_stream,
)


async def _deltas(items: Iterable[str], error: Optional[Exception] = None) -> AsyncIterator[str]:
    for item in items:
        yield item
    if error is not None:
        raise error


@pytest.mark.asyncio
async def test_collect_reports_growing_partials() -> None:
    seen: List[str] = []

    result = await collect_stream(_deltas(["Hel", "", "lo", " world"]), seen.append)

    assert seen == ["Hel", "Hello", "Hello world"]
    assert result.text == "Hello world"
    assert result.status is StreamStatus.COMPLETED
    assert result.completed and not result.partial


@pytest.mark.asyncio
async def test_cancel_keeps_text_delivered_so_far() -> None:
    aggregator = StreamAggregator()

    async def stop_after_two(partial: str) -> None:
        if aggregator.delta_count == 2:
            aggregator.cancel()

    result = await aggregator.collect(_deltas(["a", "b", "c", "d"]), stop_after_two)

    assert result.text == "ab"
    assert result.status is StreamStatus.CANCELLED
    assert result.partial


@pytest.mark.asyncio
async def test_provider_failure_mid_stream_keeps_partial() -> None:
    error = NetworkError("connection reset")

    result = await collect_stream(_deltas(["Partial ", "answer"], error))

    assert result.text == "Partial answer"
    assert result.status is StreamStatus.FAILED
    assert result.error is error


@pytest.mark.asyncio
async def test_failure_before_first_delta_yields_empty_text() -> None:
    result = await collect_stream(_deltas([], NetworkError("refused")))

    assert result.text == ""
    assert result.status is StreamStatus.FAILED
    assert not result.partial


@pytest.mark.asyncio
async def test_aggregator_consumes_a_single_stream() -> None:
    aggregator = StreamAggregator()
    await aggregator.collect(_deltas(["x"]))

    with pytest.raises(RuntimeError):
        await aggregator.collect(_deltas(["y"]))


@pytest.mark.asyncio
async def test_abandoned_updates_report_cancelled() -> None:
    aggregator = StreamAggregator()
    updates = aggregator.updates(_deltas(["one", "two"]))

    assert await updates.__anext__() == "one"
    await updates.aclose()

    assert aggregator.result().status is StreamStatus.CANCELLED
    assert aggregator.result().text == "one"
