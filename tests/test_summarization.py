import pytest

from canvas_assistant.providers import NetworkError
from canvas_assistant.services import ConversationStore, SummarizationScheduler
from canvas_assistant.services.conversation.summarization import (
    SummarizationError,
    fallback_summary_text,
    summarize_turns,
)

from .conftest import FakeProvider, make_turn


async def _append(store: ConversationStore, scheduler: SummarizationScheduler, start: int, stop: int) -> None:
    for index in range(start, stop + 1):
        store.append(make_turn(index))
        await scheduler.check_and_trigger()


@pytest.mark.asyncio
async def test_one_summary_per_completed_block(store: ConversationStore) -> None:
    scheduler = SummarizationScheduler(store, FakeProvider(reply="digest"), interval=5)

    await _append(store, scheduler, 1, 4)
    assert store.summary_count == 0

    await _append(store, scheduler, 5, 5)
    assert store.summary_count == 1
    first = store.latest_summary()
    assert first.round_number == 1
    assert [turn.user_message for turn in first.covered_turns] == [f"question {i}" for i in range(1, 6)]

    await _append(store, scheduler, 6, 9)
    assert store.summary_count == 1

    await _append(store, scheduler, 10, 10)
    second = store.latest_summary()
    assert store.summary_count == 2
    assert second.round_number == 2
    assert [turn.user_message for turn in second.covered_turns] == [f"question {i}" for i in range(6, 11)]


@pytest.mark.asyncio
async def test_summary_count_tracks_turn_blocks(store: ConversationStore) -> None:
    scheduler = SummarizationScheduler(store, FakeProvider(reply="digest"), interval=5)

    await _append(store, scheduler, 1, 23)

    assert store.summary_count == len(store) // 5


@pytest.mark.asyncio
async def test_missed_rounds_are_caught_up(store: ConversationStore) -> None:
    scheduler = SummarizationScheduler(store, FakeProvider(reply="digest"), interval=5)
    for index in range(1, 11):
        store.append(make_turn(index))

    created = await scheduler.check_and_trigger()

    assert [summary.round_number for summary in created] == [1, 2]
    assert created[1].covered_turns[0].user_message == "question 6"


@pytest.mark.asyncio
async def test_previous_summary_feeds_next_round(store: ConversationStore) -> None:
    provider = FakeProvider(reply="rolling digest")
    scheduler = SummarizationScheduler(store, provider, interval=2)

    await _append(store, scheduler, 1, 4)

    second_prompt = provider.payloads[1].messages[0].content
    assert "Previous summary:\nrolling digest" in second_prompt
    assert "Conversation round 2" in second_prompt


@pytest.mark.asyncio
async def test_failure_still_records_fallback_summary(store: ConversationStore) -> None:
    provider = FakeProvider(error=NetworkError("timeout"))
    scheduler = SummarizationScheduler(store, provider, interval=5)

    await _append(store, scheduler, 1, 5)

    summary = store.latest_summary()
    assert summary.text == fallback_summary_text(1)
    assert len(summary.covered_turns) == 5
    # one retry before falling back
    assert len(provider.payloads) == 2


@pytest.mark.asyncio
async def test_background_mode_writes_after_drain(store: ConversationStore) -> None:
    scheduler = SummarizationScheduler(store, FakeProvider(reply="digest"), interval=5, background=True)

    await _append(store, scheduler, 1, 5)
    await scheduler.drain()

    assert store.summary_count == 1
    assert store.latest_summary().text == "digest"
    await scheduler.aclose()


@pytest.mark.asyncio
async def test_zero_interval_disables_summaries(store: ConversationStore) -> None:
    scheduler = SummarizationScheduler(store, FakeProvider(reply="digest"), interval=0)

    await _append(store, scheduler, 1, 10)

    assert store.summary_count == 0


@pytest.mark.asyncio
async def test_summarize_turns_rejects_empty_output() -> None:
    with pytest.raises(SummarizationError):
        await summarize_turns(FakeProvider(reply="   "), [make_turn(1)], 1)
