"""Screen capture collaborators consumed by the chat orchestrator."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .frames import ScreenFrame


@runtime_checkable
class ScreenCaptureAdapter(Protocol):
    """Supplies a still frame and the canvas editor's state when sharing is active."""

    @property
    def available(self) -> bool:  # pragma: no cover - typing protocol
        ...

    async def capture_frame(self) -> Optional[ScreenFrame]:  # pragma: no cover - typing protocol
        ...

    async def canvas_snapshot(self) -> Optional[Dict[str, Any]]:  # pragma: no cover - typing protocol
        ...


class UnavailableCaptureAdapter:
    """Adapter used when no screen is being shared."""

    available = False

    async def capture_frame(self) -> Optional[ScreenFrame]:
        return None

    async def canvas_snapshot(self) -> Optional[Dict[str, Any]]:
        return None


class StaticCaptureAdapter:
    """Adapter over a frame and snapshot handed in by the embedding application."""

    def __init__(
        self,
        frame: Optional[ScreenFrame],
        snapshot: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._frame = frame
        self._snapshot = snapshot

    @property
    def available(self) -> bool:
        return self._frame is not None

    async def capture_frame(self) -> Optional[ScreenFrame]:
        return self._frame

    async def canvas_snapshot(self) -> Optional[Dict[str, Any]]:
        return self._snapshot


__all__ = ["ScreenCaptureAdapter", "StaticCaptureAdapter", "UnavailableCaptureAdapter"]
