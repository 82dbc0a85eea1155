"""Service layer components."""

from .conversation import (
    ConversationStore,
    StreamAggregator,
    SummarizationScheduler,
    Summary,
    Turn,
    build_context_window,
)
from .capture import (
    CaptureError,
    ScreenAnalyzer,
    ScreenCaptureAdapter,
    ScreenFrame,
    StaticCaptureAdapter,
    UnavailableCaptureAdapter,
    analysis_prompt_descriptions,
)
from .conversation.chat_handler import ChatOrchestrator, SendResult
from .conversation.session import (
    ChatSession,
    build_chat_session,
    get_chat_session,
    reset_chat_session,
)


__all__ = [
    "CaptureError",
    "ChatOrchestrator",
    "ChatSession",
    "ConversationStore",
    "ScreenAnalyzer",
    "ScreenCaptureAdapter",
    "ScreenFrame",
    "SendResult",
    "StaticCaptureAdapter",
    "StreamAggregator",
    "SummarizationScheduler",
    "Summary",
    "Turn",
    "UnavailableCaptureAdapter",
    "analysis_prompt_descriptions",
    "build_chat_session",
    "build_context_window",
    "get_chat_session",
    "reset_chat_session",
]
