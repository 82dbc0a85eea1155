from __future__ import annotations

from typing import AsyncIterator, List, Optional, Sequence

import pytest

from canvas_assistant.providers import (
    ConfigurationError,
    PromptPayload,
    ProviderClient,
    ProviderConfig,
    ProviderKind,
)
from canvas_assistant.providers.errors import ProviderError
from canvas_assistant.services import (
    ChatOrchestrator,
    ConversationStore,
    ScreenFrame,
    SummarizationScheduler,
    Turn,
)


class FakeProvider(ProviderClient):
    """In-memory provider that records payloads and replays canned output."""

    kind = ProviderKind.HOSTED

    def __init__(
        self,
        *,
        reply: str = "",
        deltas: Optional[Sequence[str]] = None,
        streaming: bool = False,
        error: Optional[ProviderError] = None,
        configured: bool = True,
    ) -> None:
        super().__init__(
            ProviderConfig(kind=ProviderKind.HOSTED, model="fake-model", api_key="test", streaming=streaming)
        )
        self.reply = reply
        self.deltas = list(deltas) if deltas is not None else [reply]
        self.error = error
        self.configured = configured
        self.payloads: List[PromptPayload] = []
        self.closed = False

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("fake provider missing credential")

    async def complete(self, payload: PromptPayload) -> str:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.reply

    async def stream_complete(self, payload: PromptPayload) -> AsyncIterator[str]:
        self.payloads.append(payload)
        for delta in self.deltas:
            yield delta
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


def make_turn(index: int, *, analysis: Optional[str] = None) -> Turn:
    return Turn(
        user_message=f"question {index}",
        ai_response=f"answer {index}",
        screen_analysis=analysis,
    )


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
def frame() -> ScreenFrame:
    return ScreenFrame(data=b"\xff\xd8\xff\xe0fake-jpeg", mime_type="image/jpeg")


@pytest.fixture
def make_orchestrator(store: ConversationStore):
    def _factory(
        provider: ProviderClient,
        *,
        summary_provider: Optional[ProviderClient] = None,
        **kwargs,
    ) -> ChatOrchestrator:
        scheduler = SummarizationScheduler(
            store,
            summary_provider or FakeProvider(reply="digest"),
            background=False,
        )
        return ChatOrchestrator(store, provider, scheduler=scheduler, **kwargs)

    return _factory
