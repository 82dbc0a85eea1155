"""Provider-agnostic prompt payload and the provider client contract."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Optional, Union

from .errors import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover - used for type checkers only
    from ..config import Settings


class ProviderKind(str, Enum):
    HOSTED = "hosted"
    CUSTOM_HTTP = "custom_http"


def _parse_kind(raw: str) -> ProviderKind:
    try:
        return ProviderKind((raw or "").strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown chat provider: {raw!r}") from exc


@dataclass(frozen=True)
class ProviderConfig:
    """Connection and sampling parameters for a single provider client."""

    kind: ProviderKind
    model: str
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = 0.7
    streaming: bool = True
    max_tokens: int = 1000
    timeout: float = 60.0
    session_id: str = "user_1"

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        *,
        model: Optional[str] = None,
        kind: Optional[ProviderKind] = None,
    ) -> "ProviderConfig":
        resolved_kind = kind or _parse_kind(settings.chat_provider)
        if resolved_kind is ProviderKind.CUSTOM_HTTP:
            return cls(
                kind=resolved_kind,
                model=model or "custom-flow",
                endpoint=settings.custom_flow_url,
                api_key=settings.custom_flow_api_key,
                temperature=settings.chat_temperature,
                streaming=settings.chat_streaming,
                max_tokens=settings.chat_max_tokens,
                timeout=settings.provider_timeout_seconds,
                session_id=settings.custom_flow_session_id,
            )
        return cls(
            kind=resolved_kind,
            model=model or settings.chat_model,
            endpoint=settings.openai_base_url,
            api_key=settings.openai_api_key,
            temperature=settings.chat_temperature,
            streaming=settings.chat_streaming,
            max_tokens=settings.chat_max_tokens,
            timeout=settings.provider_timeout_seconds,
        )


@dataclass(frozen=True)
class TextPart:
    text: str

    def as_dict(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ImagePart:
    url: str
    detail: str = "auto"

    def as_dict(self) -> Dict[str, Any]:
        return {"type": "image_url", "image_url": {"url": self.url, "detail": self.detail}}


ContentPart = Union[TextPart, ImagePart]


@dataclass(frozen=True)
class PromptMessage:
    """A role-tagged message whose content is plain text or a list of typed parts."""

    role: str
    content: Union[str, List[ContentPart]]

    @property
    def has_image(self) -> bool:
        return not isinstance(self.content, str) and any(
            isinstance(part, ImagePart) for part in self.content
        )

    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "\n".join(part.text for part in self.content if isinstance(part, TextPart))

    def as_dict(self) -> Dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [part.as_dict() for part in self.content]}


@dataclass
class PromptPayload:
    """Ordered prompt handed to any provider; `query` is the raw user text."""

    messages: List[PromptMessage] = field(default_factory=list)
    query: str = ""
    system: Optional[str] = None

    def as_messages(self) -> List[Dict[str, Any]]:
        rendered = [message.as_dict() for message in self.messages]
        if self.system:
            return [{"role": "system", "content": self.system}, *rendered]
        return rendered


def encode_json(value: Any) -> str:
    """Compact JSON encoding shared by every provider for non-text values."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


class ProviderClient(ABC):
    """Capability set shared by every model backend."""

    kind: ProviderKind

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    def streaming_enabled(self) -> bool:
        return self.config.streaming

    @abstractmethod
    def ensure_configured(self) -> None:
        """Raise ConfigurationError when the client cannot issue requests."""

    @abstractmethod
    async def complete(self, payload: PromptPayload) -> str:
        """Return the full response text for *payload*."""

    @abstractmethod
    def stream_complete(self, payload: PromptPayload) -> AsyncIterator[str]:
        """Return a lazy, single-pass sequence of text deltas."""

    async def aclose(self) -> None:
        return None


__all__ = [
    "ContentPart",
    "ImagePart",
    "PromptMessage",
    "PromptPayload",
    "ProviderClient",
    "ProviderConfig",
    "ProviderKind",
    "TextPart",
    "encode_json",
]
