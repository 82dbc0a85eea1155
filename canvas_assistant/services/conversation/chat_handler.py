"""Send-completion flow: capture, context, provider call, aggregation, bookkeeping."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from ...logging_config import logger
from ...providers import PromptPayload, ProviderClient
from ...providers.errors import ConfigurationError, ProviderError
from ..capture import (
    CaptureError,
    ScreenAnalyzer,
    ScreenCaptureAdapter,
    ScreenFrame,
    UnavailableCaptureAdapter,
)
from .context_builder import DEFAULT_CONTEXT_TURNS, build_context_window
from .state import Turn
from .store import ConversationStore
from .streaming import StreamAggregator, StreamResult, StreamStatus, UpdateCallback
from .summarization import SummarizationScheduler

SCREEN_ANALYSIS_LABEL = "Screen Analysis"
CANCELLED_RESPONSE_TEXT = "Response cancelled before any content was received."


def describe_error(exc: BaseException) -> str:
    return f"Error: {exc}"


@dataclass
class _CaptureOutcome:
    frame: Optional[ScreenFrame] = None
    analysis: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class _PreparedSend:
    query: str
    payload: PromptPayload
    capture: _CaptureOutcome


@dataclass(frozen=True)
class SendResult:
    """Outcome of one send: the recorded turn plus how the response was produced."""

    turn: Turn
    stream: Optional[StreamResult] = None
    error: Optional[ProviderError] = None
    capture_error: Optional[str] = None

    @property
    def response(self) -> str:
        return self.turn.ai_response

    @property
    def is_error(self) -> bool:
        return self.turn.is_error


class ChatOrchestrator:
    """Drives one conversation session.

    Callers serialise sends; the orchestrator does not lock. It is the only
    writer of turns to its store.
    """

    def __init__(
        self,
        store: ConversationStore,
        provider: ProviderClient,
        *,
        scheduler: Optional[SummarizationScheduler] = None,
        capture: Optional[ScreenCaptureAdapter] = None,
        analyzer: Optional[ScreenAnalyzer] = None,
        turn_count: int = DEFAULT_CONTEXT_TURNS,
    ) -> None:
        self.store = store
        self.provider = provider
        self.scheduler = scheduler
        self.capture = capture or UnavailableCaptureAdapter()
        self.analyzer = analyzer
        self.turn_count = turn_count
        self._capture_task: Optional[asyncio.Future] = None
        self._capture_aborted = False
        self._active_stream: Optional[StreamAggregator] = None

    # ------------------------------------------------------------------ capture

    def abort_capture(self) -> bool:
        """Abort an in-flight capture/analysis. Returns True when one was running."""
        task = self._capture_task
        if task is None or task.done():
            return False
        self._capture_aborted = True
        task.cancel()
        logger.info("screen capture abort requested")
        return True

    async def _run_capture(
        self,
        adapter: ScreenCaptureAdapter,
        outcome: _CaptureOutcome,
        analysis_type: Optional[str],
    ) -> None:
        try:
            frame = await adapter.capture_frame()
            snapshot = await adapter.canvas_snapshot() if frame is not None else None
        except CaptureError:
            raise
        except Exception as exc:
            raise CaptureError(f"Screen capture failed: {exc}") from exc

        if frame is None:
            return
        outcome.frame = frame
        if self.analyzer is None:
            return
        outcome.analysis = await self.analyzer.analyze(frame, snapshot, analysis_type=analysis_type)

    async def _capture_context(
        self,
        adapter: ScreenCaptureAdapter,
        analysis_type: Optional[str],
    ) -> _CaptureOutcome:
        outcome = _CaptureOutcome()
        if not adapter.available:
            return outcome

        self._capture_aborted = False
        task = asyncio.ensure_future(self._run_capture(adapter, outcome, analysis_type))
        self._capture_task = task
        try:
            await task
        except CaptureError as exc:
            logger.warning("screen analysis unavailable; continuing without it", extra={"error": str(exc)})
            outcome.analysis = None
            outcome.error = str(exc)
        except asyncio.CancelledError:
            if not self._capture_aborted:
                raise
            logger.info("screen analysis aborted; continuing without it")
            return _CaptureOutcome(error="Screen analysis aborted")
        finally:
            self._capture_task = None
            self._capture_aborted = False
        return outcome

    # --------------------------------------------------------------------- send

    def cancel_response(self) -> bool:
        """Stop the in-flight stream; whatever arrived so far becomes the response.

        Takes effect at the next delta. If the provider has stalled, cancel the
        task running send() instead; the partial text is still recorded.
        """
        aggregator = self._active_stream
        if aggregator is None:
            return False
        aggregator.cancel()
        return True

    async def _prepare(
        self,
        query: str,
        capture: Optional[ScreenCaptureAdapter],
        analysis_type: Optional[str],
    ) -> _PreparedSend:
        text = (query or "").strip()
        if not text:
            raise ValueError("Missing user message")

        # Nothing is recorded when the provider cannot be used at all.
        self.provider.ensure_configured()

        outcome = await self._capture_context(capture or self.capture, analysis_type)
        payload = build_context_window(
            self.store,
            text,
            screen_analysis=outcome.analysis,
            screen_frame=outcome.frame,
            turn_count=self.turn_count,
        )
        logger.info(
            "chat request",
            extra={
                "message_length": len(text),
                "history_turns": min(len(self.store), self.turn_count),
                "has_analysis": outcome.analysis is not None,
                "has_frame": outcome.frame is not None,
                "provider": self.provider.kind.value,
            },
        )
        return _PreparedSend(query=text, payload=payload, capture=outcome)

    def _source(self, payload: PromptPayload) -> AsyncIterator[str]:
        if self.provider.streaming_enabled:
            return self.provider.stream_complete(payload)
        return _single_delta(self.provider, payload)

    def _build_turn(
        self,
        prepared: _PreparedSend,
        text: str,
        error: Optional[ProviderError],
        status: StreamStatus = StreamStatus.COMPLETED,
    ) -> Turn:
        # A provider failure marks the turn even when partial text is kept.
        is_error = error is not None
        if not text:
            if error is not None:
                text = describe_error(error)
            elif status is StreamStatus.CANCELLED:
                text = CANCELLED_RESPONSE_TEXT
                is_error = True
        return Turn(
            user_message=prepared.query,
            ai_response=text,
            screen_snapshot=prepared.capture.frame,
            screen_analysis=prepared.capture.analysis,
            is_error=is_error,
        )

    async def _record(self, turn: Turn) -> None:
        self.store.append(turn)
        if self.scheduler is None:
            return
        try:
            await self.scheduler.check_and_trigger()
        except Exception as exc:  # pragma: no cover
            logger.error("summarization check failed", extra={"error": str(exc)})

    async def send(
        self,
        query: str,
        *,
        on_update: Optional[UpdateCallback] = None,
        capture: Optional[ScreenCaptureAdapter] = None,
        analysis_type: Optional[str] = None,
    ) -> SendResult:
        """Run one full send and record exactly one turn for it."""
        prepared = await self._prepare(query, capture, analysis_type)

        stream_result: Optional[StreamResult] = None
        error: Optional[ProviderError] = None
        if self.provider.streaming_enabled:
            aggregator = StreamAggregator()
            self._active_stream = aggregator
            try:
                stream_result = await aggregator.collect(self._source(prepared.payload), on_update)
            except asyncio.CancelledError:
                if aggregator.text:
                    await self._record(self._build_turn(prepared, aggregator.text, None))
                raise
            finally:
                self._active_stream = None
            text, error, status = stream_result.text, stream_result.error, stream_result.status
            if isinstance(error, ConfigurationError) and not text:
                raise error
        else:
            status = StreamStatus.COMPLETED
            try:
                text = await self.provider.complete(prepared.payload)
            except ConfigurationError:
                raise
            except ProviderError as exc:
                logger.error("chat provider request failed", extra={"error": str(exc)})
                error, text = exc, ""

        turn = self._build_turn(prepared, text, error, status)
        await self._record(turn)

        logger.info(
            "chat response recorded",
            extra={
                "response_length": len(turn.ai_response),
                "is_error": turn.is_error,
                "turn_count": len(self.store),
            },
        )
        return SendResult(
            turn=turn,
            stream=stream_result,
            error=error,
            capture_error=prepared.capture.error,
        )

    async def stream_send(
        self,
        query: str,
        *,
        capture: Optional[ScreenCaptureAdapter] = None,
        analysis_type: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """Yield the growing response text; the turn is recorded even if the consumer stops early."""
        prepared = await self._prepare(query, capture, analysis_type)

        aggregator = StreamAggregator()
        self._active_stream = aggregator
        updates = aggregator.updates(self._source(prepared.payload))
        try:
            async for partial in updates:
                yield partial
            result = aggregator.result()
            if result.error is not None and not result.text:
                yield describe_error(result.error)
        finally:
            await updates.aclose()
            self._active_stream = None
            result = aggregator.result()
            turn = self._build_turn(prepared, result.text, result.error, result.status)
            await self._record(turn)
            logger.info(
                "chat stream recorded",
                extra={"status": result.status.value, "response_length": len(turn.ai_response)},
            )

    # ---------------------------------------------------------- analysis only

    async def analyze_screen(
        self,
        *,
        capture: Optional[ScreenCaptureAdapter] = None,
        analysis_type: Optional[str] = None,
    ) -> Optional[Turn]:
        """Capture and analyse the screen on its own, recording it as a turn.

        Returns None (and records nothing) when sharing is inactive, no analyzer
        is configured, or the analysis fails or is aborted.
        """
        adapter = capture or self.capture
        if not adapter.available or self.analyzer is None:
            logger.info("screen analysis skipped; capture or analyzer unavailable")
            return None

        outcome = await self._capture_context(adapter, analysis_type)
        if outcome.frame is None or not outcome.analysis:
            return None

        turn = Turn(
            user_message=SCREEN_ANALYSIS_LABEL,
            ai_response=outcome.analysis,
            screen_snapshot=outcome.frame,
            screen_analysis=outcome.analysis,
        )
        await self._record(turn)
        return turn


async def _single_delta(provider: ProviderClient, payload: PromptPayload) -> AsyncIterator[str]:
    text = await provider.complete(payload)
    if text:
        yield text


__all__ = [
    "CANCELLED_RESPONSE_TEXT",
    "ChatOrchestrator",
    "SCREEN_ANALYSIS_LABEL",
    "SendResult",
    "describe_error",
]
