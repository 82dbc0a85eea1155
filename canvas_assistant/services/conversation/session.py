"""Process-wide chat session wiring."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import List, Optional

import httpx

from ...config import Settings, get_settings
from ...logging_config import logger
from ...providers import ProviderClient, ProviderConfig, ProviderKind, create_provider
from ..capture import ScreenAnalyzer
from .chat_handler import ChatOrchestrator
from .store import ConversationStore
from .summarization import SummarizationScheduler


@dataclass
class ChatSession:
    """Store, providers, scheduler and orchestrator for one conversation."""

    store: ConversationStore
    provider: ProviderClient
    scheduler: SummarizationScheduler
    orchestrator: ChatOrchestrator
    summary_provider: Optional[ProviderClient] = None
    analysis_provider: Optional[ProviderClient] = None
    _owned: List[ProviderClient] = field(default_factory=list, repr=False)

    async def aclose(self) -> None:
        await self.scheduler.aclose()
        for client in self._owned:
            try:
                await client.aclose()
            except Exception as exc:  # pragma: no cover
                logger.warning("provider close failed", extra={"error": str(exc)})


def _summary_config(chat_config: ProviderConfig, settings: Settings) -> ProviderConfig:
    if chat_config.kind is ProviderKind.CUSTOM_HTTP:
        # Keep summaries out of the flow's own chat memory.
        return replace(chat_config, streaming=False, session_id=f"{chat_config.session_id}-summary")
    return replace(chat_config, model=settings.summarizer_model, streaming=False)


def build_chat_session(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ChatSession:
    settings = settings or get_settings()

    chat_config = ProviderConfig.from_settings(settings)
    provider = create_provider(chat_config, transport=transport)
    summary_provider = create_provider(_summary_config(chat_config, settings), transport=transport)
    owned = [provider, summary_provider]

    analysis_provider: Optional[ProviderClient] = None
    analyzer: Optional[ScreenAnalyzer] = None
    if settings.openai_api_key:
        analysis_config = ProviderConfig.from_settings(
            settings, model=settings.analysis_model, kind=ProviderKind.HOSTED
        )
        analysis_provider = create_provider(analysis_config, transport=transport)
        analyzer = ScreenAnalyzer(analysis_provider)
        owned.append(analysis_provider)
    else:
        logger.info("screen analysis disabled: hosted API key not configured")

    store = ConversationStore()
    scheduler = SummarizationScheduler(
        store,
        summary_provider,
        interval=settings.conversation_summary_interval,
        background=settings.summarize_in_background,
    )
    orchestrator = ChatOrchestrator(
        store,
        provider,
        scheduler=scheduler,
        analyzer=analyzer,
        turn_count=settings.context_turn_count,
    )
    return ChatSession(
        store=store,
        provider=provider,
        scheduler=scheduler,
        orchestrator=orchestrator,
        summary_provider=summary_provider,
        analysis_provider=analysis_provider,
        _owned=owned,
    )


_chat_session: Optional[ChatSession] = None
_factory_lock = threading.Lock()


def get_chat_session() -> ChatSession:
    global _chat_session
    if _chat_session is None:
        with _factory_lock:
            if _chat_session is None:
                _chat_session = build_chat_session()
    return _chat_session


async def reset_chat_session() -> None:
    """Discard the current session; the next call to get_chat_session starts fresh."""
    global _chat_session
    with _factory_lock:
        session, _chat_session = _chat_session, None
    if session is not None:
        await session.aclose()
        logger.info("chat session reset")


__all__ = ["ChatSession", "build_chat_session", "get_chat_session", "reset_chat_session"]
