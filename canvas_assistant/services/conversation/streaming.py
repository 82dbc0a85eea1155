"""Collect incremental provider output into a single message."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Union

from ...logging_config import logger
from ...providers.errors import ProviderError

UpdateCallback = Callable[[str], Union[None, Awaitable[None]]]


class StreamStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class StreamResult:
    """Final text of a stream plus how the stream ended."""

    text: str
    status: StreamStatus
    error: Optional[ProviderError] = None

    @property
    def completed(self) -> bool:
        return self.status is StreamStatus.COMPLETED

    @property
    def partial(self) -> bool:
        return self.status is not StreamStatus.COMPLETED and bool(self.text)


async def _close_stream(stream: AsyncIterator[str]) -> None:
    closer = getattr(stream, "aclose", None)
    if closer is None:
        return
    try:
        await closer()
    except ProviderError as exc:
        logger.debug("stream close raised provider error", extra={"error": str(exc)})


class StreamAggregator:
    """Accumulates deltas from a single-pass stream.

    Each aggregator consumes exactly one stream. Whatever was delivered before a
    cancellation or a provider failure is kept as the final text.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._text = ""
        self._status = StreamStatus.PENDING
        self._error: Optional[ProviderError] = None
        self._cancel_requested = False
        self._started = False

    @property
    def text(self) -> str:
        return self._text

    @property
    def status(self) -> StreamStatus:
        return self._status

    @property
    def error(self) -> Optional[ProviderError]:
        return self._error

    @property
    def delta_count(self) -> int:
        return len(self._parts)

    def cancel(self) -> None:
        """Ask the aggregator to stop after the delta currently being handled.

        The flag is only checked when a delta arrives. A stalled upstream keeps
        the consumer waiting until the next delta or the provider timeout; cancel
        the consuming task to stop immediately.
        """
        self._cancel_requested = True

    def add(self, delta: str) -> str:
        self._parts.append(delta)
        self._text += delta
        return self._text

    def _finish(self, status: StreamStatus) -> None:
        if self._status is StreamStatus.PENDING:
            self._status = status

    async def updates(self, stream: AsyncIterator[str]) -> AsyncIterator[str]:
        """Yield the accumulated text after every non-empty delta."""
        if self._started:
            raise RuntimeError("StreamAggregator instances consume a single stream")
        self._started = True

        try:
            async for delta in stream:
                if self._cancel_requested:
                    break
                if not delta:
                    continue
                yield self.add(delta)
                if self._cancel_requested:
                    break
        except ProviderError as exc:
            self._error = exc
            self._finish(StreamStatus.FAILED)
            logger.warning(
                "stream interrupted by provider error",
                extra={"error": str(exc), "partial_length": len(self._text)},
            )
            return
        except (asyncio.CancelledError, GeneratorExit):
            self._finish(StreamStatus.CANCELLED)
            raise
        finally:
            await _close_stream(stream)

        self._finish(StreamStatus.CANCELLED if self._cancel_requested else StreamStatus.COMPLETED)

    async def collect(
        self,
        stream: AsyncIterator[str],
        on_update: Optional[UpdateCallback] = None,
    ) -> StreamResult:
        """Drain *stream*, reporting progress to *on_update*, and return the result."""
        updates = self.updates(stream)
        try:
            async for partial in updates:
                if on_update is None:
                    continue
                outcome = on_update(partial)
                if inspect.isawaitable(outcome):
                    await outcome
        finally:
            await updates.aclose()
        return self.result()

    def result(self) -> StreamResult:
        status = self._status
        if status is StreamStatus.PENDING and self._started:
            # Consumer walked away without closing the generator.
            status = StreamStatus.CANCELLED
        return StreamResult(text=self._text, status=status, error=self._error)


async def collect_stream(
    stream: AsyncIterator[str],
    on_update: Optional[UpdateCallback] = None,
) -> StreamResult:
    return await StreamAggregator().collect(stream, on_update)


__all__ = [
    "StreamAggregator",
    "StreamResult",
    "StreamStatus",
    "UpdateCallback",
    "collect_stream",
]
