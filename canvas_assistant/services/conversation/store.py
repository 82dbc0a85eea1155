from __future__ import annotations

import threading
from typing import List, Optional

from ...logging_config import logger
from .state import Summary, Turn


class ConversationStore:
    """Append-only turn log plus the summaries derived from it.

    Entries are never edited, removed, or reordered; a new session gets a new store.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._turns: List[Turn] = []
        self._summaries: List[Summary] = []

    def append(self, turn: Turn) -> None:
        with self._lock:
            self._turns.append(turn)
            count = len(self._turns)
        logger.debug(
            "conversation turn appended",
            extra={"turn_count": count, "is_error": turn.is_error},
        )

    def append_summary(self, summary: Summary) -> None:
        with self._lock:
            self._summaries.append(summary)
            count = len(self._summaries)
        logger.debug(
            "conversation summary appended",
            extra={"round_number": summary.round_number, "summary_count": count},
        )

    def latest_summary(self) -> Optional[Summary]:
        with self._lock:
            return self._summaries[-1] if self._summaries else None

    def window(self, n: int) -> List[Turn]:
        """Return the last *n* turns in chronological order."""
        if n <= 0:
            return []
        with self._lock:
            return list(self._turns[-n:])

    def turns(self) -> List[Turn]:
        with self._lock:
            return list(self._turns)

    def summaries(self) -> List[Summary]:
        with self._lock:
            return list(self._summaries)

    @property
    def summary_count(self) -> int:
        with self._lock:
            return len(self._summaries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)


__all__ = ["ConversationStore"]
