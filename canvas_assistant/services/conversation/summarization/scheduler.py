from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

from ....logging_config import logger
from ....providers import ProviderClient
from ..state import Summary, Turn
from ..store import ConversationStore
from .summarizer import SummarizationError, fallback_summary_text, summarize_turns

DEFAULT_SUMMARY_INTERVAL = 5


@dataclass(frozen=True)
class _SummaryJob:
    round_number: int
    covered_turns: Tuple[Turn, ...]


class SummarizationScheduler:
    """Writes one summary per completed block of turns.

    Covered turns and the round number are fixed when the block completes, so a
    summary never changes as the log keeps growing. Failures never surface.
    """

    def __init__(
        self,
        store: ConversationStore,
        provider: Optional[ProviderClient],
        *,
        interval: int = DEFAULT_SUMMARY_INTERVAL,
        background: bool = False,
    ) -> None:
        self.store = store
        self.provider = provider
        self.interval = interval
        self.background = background
        self._reserved_rounds = 0
        self._pending: Deque[_SummaryJob] = deque()
        self._worker: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    def _reserve_jobs(self) -> List[_SummaryJob]:
        if not self.enabled:
            return []
        due_rounds = len(self.store) // self.interval
        if due_rounds <= self._reserved_rounds:
            return []

        turns = self.store.turns()
        jobs = []
        for round_number in range(self._reserved_rounds + 1, due_rounds + 1):
            start = (round_number - 1) * self.interval
            covered = tuple(turns[start : start + self.interval])
            jobs.append(_SummaryJob(round_number=round_number, covered_turns=covered))
        self._reserved_rounds = due_rounds
        return jobs

    async def check_and_trigger(self) -> List[Summary]:
        """Queue or run summaries for every block completed since the last check."""
        jobs = self._reserve_jobs()
        if not jobs:
            return []

        logger.info(
            "conversation summarization triggered",
            extra={
                "turn_count": len(self.store),
                "rounds": [job.round_number for job in jobs],
                "background": self.background,
            },
        )

        if self.background:
            self._pending.extend(jobs)
            self._ensure_worker()
            return []

        return [await self._run_job(job) for job in jobs]

    def _ensure_worker(self) -> None:
        if self._worker is not None and not self._worker.done():
            return
        loop = asyncio.get_running_loop()
        self._worker = loop.create_task(self._run_worker())

    async def _run_worker(self) -> None:
        while self._pending:
            job = self._pending.popleft()
            await self._run_job(job)

    async def _run_job(self, job: _SummaryJob) -> Summary:
        previous = self.store.latest_summary()
        try:
            if self.provider is None:
                raise SummarizationError("No summarization provider configured")
            text = await summarize_turns(
                self.provider,
                job.covered_turns,
                job.round_number,
                previous.text if previous else None,
            )
        except SummarizationError as exc:
            logger.warning(
                "conversation summarization skipped; using fallback text",
                extra={"error": str(exc), "round_number": job.round_number},
            )
            text = fallback_summary_text(job.round_number)
        except Exception as exc:  # pragma: no cover
            logger.error(
                "conversation summarization crashed",
                extra={"error": str(exc), "round_number": job.round_number},
            )
            text = fallback_summary_text(job.round_number)

        summary = Summary(
            round_number=job.round_number,
            text=text,
            covered_turns=job.covered_turns,
        )
        self.store.append_summary(summary)

        logger.info(
            "conversation summarization completed",
            extra={"round_number": summary.round_number, "covered": len(summary.covered_turns)},
        )
        return summary

    async def drain(self) -> None:
        """Wait until every queued summary has been written."""
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)

    async def aclose(self) -> None:
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._pending.clear()


__all__ = ["DEFAULT_SUMMARY_INTERVAL", "SummarizationScheduler"]
