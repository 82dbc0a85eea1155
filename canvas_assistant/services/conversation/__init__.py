"""Conversation-related service helpers."""

from .context_builder import build_context_window, build_system_prompt
from .state import Summary, Turn
from .store import ConversationStore
from .streaming import StreamAggregator, StreamResult, StreamStatus
from .summarization import SummarizationError, SummarizationScheduler

__all__ = [
    "ConversationStore",
    "StreamAggregator",
    "StreamResult",
    "StreamStatus",
    "SummarizationError",
    "SummarizationScheduler",
    "Summary",
    "Turn",
    "build_context_window",
    "build_system_prompt",
]
