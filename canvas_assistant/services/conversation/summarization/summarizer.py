from __future__ import annotations

from typing import Optional, Sequence

from ....logging_config import logger
from ....providers import ProviderClient
from ....providers.errors import ProviderError
from ..state import Turn
from .prompt_builder import build_summarization_prompt


class SummarizationError(RuntimeError):
    """Raised when a summary could not be generated for a round."""


def fallback_summary_text(round_number: int) -> str:
    return f"Summary of conversation round {round_number}"


async def summarize_turns(
    provider: ProviderClient,
    turns: Sequence[Turn],
    round_number: int,
    previous_summary: Optional[str] = None,
    *,
    attempts: int = 2,
) -> str:
    """Ask *provider* for a digest of *turns*, retrying once on provider errors."""
    prompt = build_summarization_prompt(round_number, turns, previous_summary)
    payload = prompt.as_payload()

    last_error: Optional[Exception] = None
    for attempt in range(max(attempts, 1)):
        try:
            content = (await provider.complete(payload)).strip()
            if content:
                return content
            raise SummarizationError("Summary response missing content")
        except (ProviderError, SummarizationError) as exc:
            last_error = exc
            if attempt + 1 < attempts:
                logger.warning(
                    "conversation summarization attempt failed; retrying",
                    extra={"error": str(exc), "round_number": round_number},
                )
                continue
            logger.error(
                "conversation summarization failed",
                extra={"error": str(exc), "round_number": round_number},
            )

    raise SummarizationError(f"Conversation summarization failed: {last_error}") from last_error


__all__ = ["SummarizationError", "fallback_summary_text", "summarize_turns"]
