"""Prompt construction for the canvas chat assistant."""

from __future__ import annotations

from textwrap import dedent
from typing import TYPE_CHECKING, List, Optional

from ...providers import ImagePart, PromptMessage, PromptPayload
from .state import Summary, Turn
from .store import ConversationStore

if TYPE_CHECKING:  # pragma: no cover - used for type checkers only
    from ..capture.frames import ScreenFrame

DEFAULT_CONTEXT_TURNS = 3
NO_ANALYSIS_MARKER = "No canvas analysis available"

SYSTEM_PROMPT = dedent(
    """
    You are an AI assistant helping users with their canvas diagrams. You have access to:
    1. The current state of their canvas
    2. The previous conversation history
    3. The latest conversation summary (if available)
    4. The user's current query

    Provide helpful, specific responses that take into account both the visual state of their diagram
    and the conversation context. If a summary is available, use it to maintain continuity and
    reference previous developments.
    """
).strip()


def build_system_prompt() -> str:
    """Return the static system prompt for the chat assistant."""
    return SYSTEM_PROMPT


def _render_summary(summary: Summary) -> str:
    return f"Latest Summary (Round {summary.round_number}):\n{summary.text.strip()}"


def _render_history(turns: List[Turn]) -> List[PromptMessage]:
    messages: List[PromptMessage] = []
    for turn in turns:
        user_text = turn.user_message
        if turn.screen_analysis:
            user_text = f"{user_text}\n\nScreen Analysis: {turn.screen_analysis}"
        messages.append(PromptMessage(role="user", content=user_text))
        messages.append(PromptMessage(role="assistant", content=turn.ai_response))
    return messages


def _render_current_turn(query: str, screen_analysis: Optional[str]) -> str:
    analysis = (screen_analysis or "").strip() or NO_ANALYSIS_MARKER
    return f"Current Canvas State: {analysis}\n\nUser Query: {query.strip()}"


def build_context_window(
    store: ConversationStore,
    query: str,
    *,
    screen_analysis: Optional[str] = None,
    screen_frame: Optional["ScreenFrame"] = None,
    turn_count: int = DEFAULT_CONTEXT_TURNS,
) -> PromptPayload:
    """Compose summary, recent history, and the current query into one payload.

    Order is fixed: summary framing, then the last *turn_count* turns as
    user/assistant pairs, then the current canvas state and query, then the
    image (if any) in a message of its own.
    """
    messages: List[PromptMessage] = []

    summary = store.latest_summary()
    if summary is not None:
        messages.append(PromptMessage(role="system", content=_render_summary(summary)))

    messages.extend(_render_history(store.window(turn_count)))
    messages.append(PromptMessage(role="user", content=_render_current_turn(query, screen_analysis)))

    if screen_frame is not None:
        messages.append(
            PromptMessage(
                role="user",
                content=[ImagePart(url=screen_frame.as_data_url(), detail="auto")],
            )
        )

    return PromptPayload(messages=messages, query=query.strip(), system=build_system_prompt())


__all__ = [
    "DEFAULT_CONTEXT_TURNS",
    "NO_ANALYSIS_MARKER",
    "SYSTEM_PROMPT",
    "build_context_window",
    "build_system_prompt",
]
