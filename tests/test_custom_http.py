import json
from typing import Any, Dict, List

import httpx
import pytest

from canvas_assistant.providers import (
    ConfigurationError,
    CustomHttpClient,
    NetworkError,
    PromptPayload,
    ProviderConfig,
    ProviderKind,
    ProviderResponseError,
    extract_response_text,
)
from canvas_assistant.providers.custom_http import build_envelope

FLOW_URL = "http://flow.local/api/v1/run/canvas"


def _wrap(inner: Any) -> Dict[str, Any]:
    return {"outputs": [{"outputs": [inner]}]}


def _config(**overrides) -> ProviderConfig:
    values = dict(kind=ProviderKind.CUSTOM_HTTP, model="custom-flow", endpoint=FLOW_URL, api_key="flow-key")
    values.update(overrides)
    return ProviderConfig(**values)


def test_results_message_text_wins() -> None:
    body = _wrap({"results": {"message": {"text": "primary"}}, "message": "shallow"})

    assert extract_response_text(body) == "primary"


def test_falls_through_to_lower_priority_path() -> None:
    body = _wrap({"results": {"message": {"text": ""}}, "artifacts": {"message": "from artifacts"}})

    assert extract_response_text(body) == "from artifacts"


def test_nested_outputs_message_checked_before_artifacts() -> None:
    body = _wrap({"outputs": {"message": {"message": "nested"}}, "artifacts": {"message": "artifact"}})

    assert extract_response_text(body) == "nested"


def test_non_string_hit_is_json_encoded() -> None:
    body = _wrap({"outputs": {"message": {"sender": "AI"}}})

    assert extract_response_text(body) == '{"sender":"AI"}'


def test_empty_object_counts_as_a_hit() -> None:
    body = {"outputs": [{"outputs": [{}]}], "meta": 1}

    assert extract_response_text(body) == "{}"


def test_empty_list_counts_as_a_hit() -> None:
    assert extract_response_text(_wrap({"text": []})) == "[]"


def test_zero_and_false_are_skipped() -> None:
    body = _wrap({"results": {"message": {"text": 0}}, "message": False, "text": "fallback text"})

    assert extract_response_text(body) == "fallback text"


def test_unrecognised_shape_returns_whole_body_as_json() -> None:
    body = {"status": "ok", "data": [1, 2]}

    assert extract_response_text(body) == json.dumps(body, separators=(",", ":"))


def test_envelope_shape() -> None:
    assert build_envelope("hello", "user_1") == {
        "input_value": "hello",
        "output_type": "chat",
        "input_type": "chat",
        "session_id": "user_1",
    }


@pytest.mark.asyncio
async def test_complete_posts_envelope_and_extracts_text() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_wrap({"text": "flow reply"}))

    client = CustomHttpClient(_config(), transport=httpx.MockTransport(handler))
    try:
        text = await client.complete(PromptPayload(query="Explain the diagram"))
    finally:
        await client.aclose()

    assert text == "flow reply"
    sent = requests[0]
    assert str(sent.url) == FLOW_URL
    assert sent.headers["x-api-key"] == "flow-key"
    assert json.loads(sent.content) == build_envelope("Explain the diagram", "user_1")


@pytest.mark.asyncio
async def test_stream_yields_single_delta() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=_wrap({"message": "one shot"})))
    client = CustomHttpClient(_config(api_key=None), transport=transport)

    deltas = [delta async for delta in client.stream_complete(PromptPayload(query="hi"))]
    await client.aclose()

    assert deltas == ["one shot"]


@pytest.mark.asyncio
async def test_error_status_raises_response_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
    client = CustomHttpClient(_config(), transport=transport)

    with pytest.raises(ProviderResponseError) as excinfo:
        await client.complete(PromptPayload(query="hi"))
    await client.aclose()

    assert excinfo.value.status_code == 502


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = CustomHttpClient(_config(), transport=httpx.MockTransport(handler))

    with pytest.raises(NetworkError):
        await client.complete(PromptPayload(query="hi"))
    await client.aclose()


def test_missing_endpoint_is_a_configuration_error() -> None:
    client = CustomHttpClient(_config(endpoint=None))

    with pytest.raises(ConfigurationError):
        client.ensure_configured()
