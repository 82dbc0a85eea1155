from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - used for type checkers only
    from ..capture.frames import ScreenFrame


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """One user query and its resolved assistant response."""

    user_message: str
    ai_response: str
    created_at: datetime = field(default_factory=utc_now)
    screen_snapshot: Optional["ScreenFrame"] = None
    screen_analysis: Optional[str] = None
    is_error: bool = False


@dataclass(frozen=True)
class Summary:
    """Digest of a fixed run of consecutive turns."""

    round_number: int
    text: str
    covered_turns: Tuple[Turn, ...]
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if self.round_number < 1:
            raise ValueError("round_number must be >= 1")


__all__ = ["Summary", "Turn", "utc_now"]
