from .chat import (
    AnalysisTypesResponse,
    ChatHistoryClearResponse,
    ChatHistoryResponse,
    ChatSendRequest,
    ChatSendResponse,
    ChatSummariesResponse,
    ScreenAnalysisRequest,
    ScreenAnalysisResponse,
    SummaryPayload,
    TurnPayload,
)
from .meta import HealthResponse, RootResponse

__all__ = [
    "AnalysisTypesResponse",
    "ChatHistoryClearResponse",
    "ChatHistoryResponse",
    "ChatSendRequest",
    "ChatSendResponse",
    "ChatSummariesResponse",
    "HealthResponse",
    "RootResponse",
    "ScreenAnalysisRequest",
    "ScreenAnalysisResponse",
    "SummaryPayload",
    "TurnPayload",
]
