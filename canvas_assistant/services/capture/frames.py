from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass


@dataclass(frozen=True)
class ScreenFrame:
    """A still image of the user's workspace."""

    data: bytes
    mime_type: str = "image/jpeg"

    def as_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_data_url(cls, value: str, *, default_mime: str = "image/jpeg") -> "ScreenFrame":
        """Decode a ``data:`` URL or a bare base64 string."""
        raw = (value or "").strip()
        if not raw:
            raise ValueError("screen image is empty")

        mime_type = default_mime
        if raw.startswith("data:"):
            header, sep, raw = raw.partition(",")
            if not sep or ";base64" not in header:
                raise ValueError("screen image must be a base64 data URL")
            mime_type = header[5:].split(";", 1)[0] or default_mime

        try:
            data = base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"screen image is not valid base64: {exc}") from exc
        if not data:
            raise ValueError("screen image is empty")
        return cls(data=data, mime_type=mime_type)

    def __repr__(self) -> str:
        return f"ScreenFrame(mime_type={self.mime_type!r}, size={len(self.data)})"


__all__ = ["ScreenFrame"]
