from canvas_assistant.providers import ImagePart
from canvas_assistant.services import ConversationStore, ScreenFrame, Summary
from canvas_assistant.services.conversation.context_builder import (
    NO_ANALYSIS_MARKER,
    SYSTEM_PROMPT,
    build_context_window,
)

from .conftest import make_turn


def test_summary_history_and_query_in_order(store: ConversationStore) -> None:
    for index in range(1, 6):
        store.append(make_turn(index))
    store.append_summary(
        Summary(round_number=1, text="User is sketching a login flow.", covered_turns=tuple(store.turns()))
    )

    payload = build_context_window(store, "  What next?  ", screen_analysis="Three boxes")

    roles = [message.role for message in payload.messages]
    assert roles == ["system", "user", "assistant", "user", "assistant", "user", "assistant", "user"]
    assert payload.messages[0].content == "Latest Summary (Round 1):\nUser is sketching a login flow."
    assert payload.messages[1].content == "question 3"
    assert payload.messages[6].content == "answer 5"
    assert payload.messages[-1].content == "Current Canvas State: Three boxes\n\nUser Query: What next?"
    assert payload.query == "What next?"
    assert payload.system == SYSTEM_PROMPT


def test_short_log_without_summary(store: ConversationStore) -> None:
    store.append(make_turn(1))

    payload = build_context_window(store, "hello")

    assert [message.role for message in payload.messages] == ["user", "assistant", "user"]
    assert payload.messages[-1].content == f"Current Canvas State: {NO_ANALYSIS_MARKER}\n\nUser Query: hello"


def test_history_turns_carry_their_screen_analysis(store: ConversationStore) -> None:
    store.append(make_turn(1, analysis="A flowchart with two nodes"))

    payload = build_context_window(store, "hi")

    assert payload.messages[0].content == "question 1\n\nScreen Analysis: A flowchart with two nodes"


def test_image_is_appended_last(store: ConversationStore, frame: ScreenFrame) -> None:
    payload = build_context_window(store, "describe", screen_frame=frame)

    image_message = payload.messages[-1]
    assert image_message.role == "user"
    assert image_message.has_image
    part = image_message.content[0]
    assert isinstance(part, ImagePart)
    assert part.url == frame.as_data_url()
    assert part.detail == "auto"
    assert payload.messages[-2].content.endswith("User Query: describe")


def test_rendered_messages_prepend_system_prompt(store: ConversationStore) -> None:
    payload = build_context_window(store, "hi")

    rendered = payload.as_messages()

    assert rendered[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert rendered[-1]["role"] == "user"
