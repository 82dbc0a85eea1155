from typing import Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from canvas_assistant.app import app
from canvas_assistant.providers import ProviderClient
from canvas_assistant.services import (
    ChatOrchestrator,
    ChatSession,
    ConversationStore,
    ScreenAnalyzer,
    ScreenFrame,
    SummarizationScheduler,
    get_chat_session,
)

from .conftest import FakeProvider


def _session(provider: ProviderClient, analyzer: Optional[ScreenAnalyzer] = None) -> ChatSession:
    store = ConversationStore()
    scheduler = SummarizationScheduler(store, FakeProvider(reply="digest"), interval=2)
    orchestrator = ChatOrchestrator(store, provider, scheduler=scheduler, analyzer=analyzer)
    return ChatSession(store=store, provider=provider, scheduler=scheduler, orchestrator=orchestrator)


@pytest.fixture
def client() -> Iterator[TestClient]:
    yield TestClient(app)
    app.dependency_overrides.clear()


def _use(session: ChatSession) -> ChatSession:
    app.dependency_overrides[get_chat_session] = lambda: session
    return session


def test_send_returns_response_and_counts(client: TestClient) -> None:
    session = _use(_session(FakeProvider(reply="Draw an arrow.")))

    response = client.post("/api/v1/chat/send", json={"message": "How do I connect these?"})

    assert response.status_code == 200
    body = response.json()
    assert body["response"] == "Draw an arrow."
    assert body["is_error"] is False
    assert body["turn_count"] == 1
    assert body["summary_count"] == 0
    assert len(session.store) == 1


def test_send_rejects_blank_message(client: TestClient) -> None:
    session = _use(_session(FakeProvider(reply="unused")))

    response = client.post("/api/v1/chat/send", json={"message": "   "})

    assert response.status_code == 400
    assert response.json()["ok"] is False
    assert len(session.store) == 0


def test_missing_configuration_maps_to_400(client: TestClient) -> None:
    session = _use(_session(FakeProvider(configured=False)))

    response = client.post("/api/v1/chat/send", json={"message": "hello"})

    assert response.status_code == 400
    assert response.json()["error_type"] == "configuration_error"
    assert len(session.store) == 0


def test_stream_returns_concatenated_deltas(client: TestClient) -> None:
    session = _use(_session(FakeProvider(deltas=["Use ", "a ", "swimlane."], streaming=True)))

    response = client.post("/api/v1/chat/stream", json={"message": "layout tips?"})

    assert response.status_code == 200
    assert response.text == "Use a swimlane."
    assert session.store.turns()[0].ai_response == "Use a swimlane."


def test_history_and_summaries(client: TestClient) -> None:
    _use(_session(FakeProvider(reply="ok")))

    for text in ("first", "second"):
        client.post("/api/v1/chat/send", json={"message": text})

    history = client.get("/api/v1/chat/history").json()
    summaries = client.get("/api/v1/chat/summaries").json()

    assert [turn["user_message"] for turn in history["turns"]] == ["first", "second"]
    assert summaries["summaries"][0]["round_number"] == 1
    assert summaries["summaries"][0]["text"] == "digest"
    assert len(summaries["summaries"][0]["covered_turns"]) == 2


def test_analyze_records_turn(client: TestClient) -> None:
    analyzer = ScreenAnalyzer(FakeProvider(reply="A sequence diagram"))
    session = _use(_session(FakeProvider(reply="unused"), analyzer=analyzer))
    image = ScreenFrame(data=b"\x89PNGfake", mime_type="image/png").as_data_url()

    response = client.post("/api/v1/chat/analyze", json={"screen_image": image})

    assert response.status_code == 200
    assert response.json()["analysis"] == "A sequence diagram"
    assert session.store.turns()[0].user_message == "Screen Analysis"


def test_analyze_without_analyzer_is_unavailable(client: TestClient) -> None:
    _use(_session(FakeProvider(reply="unused")))
    image = ScreenFrame(data=b"\x89PNGfake", mime_type="image/png").as_data_url()

    response = client.post("/api/v1/chat/analyze", json={"screen_image": image})

    assert response.status_code == 503


def test_analysis_types_and_health(client: TestClient) -> None:
    types = client.get("/api/v1/chat/analysis-types").json()["analysis_types"]
    health = client.get("/api/v1/health").json()

    assert types[0] == "General analysis of the screen content"
    assert health["ok"] is True
    assert health["service"] == "canvas-assistant"
