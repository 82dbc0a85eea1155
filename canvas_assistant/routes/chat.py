from __future__ import annotations

from typing import Any, AsyncIterator, Dict, Optional, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, StreamingResponse

from ..logging_config import logger
from ..models import (
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
from ..services import (
    ChatSession,
    ScreenFrame,
    StaticCaptureAdapter,
    Summary,
    Turn,
    analysis_prompt_descriptions,
    get_chat_session,
    reset_chat_session,
)
from ..utils import error_response

router = APIRouter(prefix="/chat", tags=["chat"])


def _capture_from_request(
    screen_image: Optional[str], canvas_state: Optional[Dict[str, Any]]
) -> Optional[StaticCaptureAdapter]:
    if not screen_image:
        return None
    return StaticCaptureAdapter(ScreenFrame.from_data_url(screen_image), canvas_state)


def _turn_payload(turn: Turn) -> TurnPayload:
    return TurnPayload(
        user_message=turn.user_message,
        ai_response=turn.ai_response,
        created_at=turn.created_at,
        has_screen_snapshot=turn.screen_snapshot is not None,
        screen_analysis=turn.screen_analysis,
        is_error=turn.is_error,
    )


def _summary_payload(summary: Summary) -> SummaryPayload:
    return SummaryPayload(
        round_number=summary.round_number,
        created_at=summary.created_at,
        text=summary.text,
        covered_turns=[_turn_payload(turn) for turn in summary.covered_turns],
    )


@router.post("/send", response_model=ChatSendResponse, summary="Submit a chat message and receive a completion")
# Run one full send through the orchestrator and report the recorded turn
async def chat_send(
    payload: ChatSendRequest,
    session: ChatSession = Depends(get_chat_session),
) -> Union[ChatSendResponse, JSONResponse]:
    try:
        capture = _capture_from_request(payload.screen_image, payload.canvas_state)
        result = await session.orchestrator.send(
            payload.message,
            capture=capture,
            analysis_type=payload.analysis_type,
        )
    except ValueError as exc:
        return error_response(str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    return ChatSendResponse(
        response=result.response,
        is_error=result.is_error,
        turn_count=len(session.store),
        summary_count=session.store.summary_count,
        capture_error=result.capture_error,
    )


@router.post(
    "/stream",
    response_model=None,
    summary="Submit a chat message and stream the completion as plain text",
)
async def chat_stream(
    payload: ChatSendRequest,
    session: ChatSession = Depends(get_chat_session),
) -> Union[StreamingResponse, JSONResponse]:
    if not payload.message.strip():
        return error_response("Missing user message", status_code=status.HTTP_400_BAD_REQUEST)
    try:
        capture = _capture_from_request(payload.screen_image, payload.canvas_state)
    except ValueError as exc:
        return error_response(str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    # Fail before the response starts when the provider is unusable.
    session.provider.ensure_configured()

    async def _deltas() -> AsyncIterator[str]:
        previous = ""
        partials = session.orchestrator.stream_send(
            payload.message, capture=capture, analysis_type=payload.analysis_type
        )
        try:
            async for partial in partials:
                chunk = partial[len(previous):] if partial.startswith(previous) else partial
                previous = partial
                if chunk:
                    yield chunk
        finally:
            await partials.aclose()

    return StreamingResponse(_deltas(), media_type="text/plain; charset=utf-8")


@router.post("/analyze", response_model=ScreenAnalysisResponse)
# Analyse the shared screen on its own and record it in the conversation
async def chat_analyze(
    payload: ScreenAnalysisRequest,
    session: ChatSession = Depends(get_chat_session),
) -> Union[ScreenAnalysisResponse, JSONResponse]:
    try:
        capture = _capture_from_request(payload.screen_image, payload.canvas_state)
    except ValueError as exc:
        return error_response(str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    turn = await session.orchestrator.analyze_screen(capture=capture, analysis_type=payload.analysis_type)
    if turn is None:
        logger.info("screen analysis request produced no result")
        return error_response(
            "Screen analysis unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return ScreenAnalysisResponse(analysis=turn.ai_response, turn_count=len(session.store))


@router.get("/analysis-types", response_model=AnalysisTypesResponse)
def analysis_types() -> AnalysisTypesResponse:
    return AnalysisTypesResponse(analysis_types=analysis_prompt_descriptions())


@router.get("/history", response_model=ChatHistoryResponse)
# Retrieve the turn log of the current session
def chat_history(session: ChatSession = Depends(get_chat_session)) -> ChatHistoryResponse:
    return ChatHistoryResponse(turns=[_turn_payload(turn) for turn in session.store.turns()])


@router.get("/summaries", response_model=ChatSummariesResponse)
def chat_summaries(session: ChatSession = Depends(get_chat_session)) -> ChatSummariesResponse:
    return ChatSummariesResponse(
        summaries=[_summary_payload(summary) for summary in session.store.summaries()]
    )


@router.delete("/history", response_model=ChatHistoryClearResponse)
# Start a fresh session; the old log is dropped, never edited
async def clear_history() -> ChatHistoryClearResponse:
    await reset_chat_session()
    return ChatHistoryClearResponse()


__all__ = ["router"]
