"""Client for a self-hosted HTTP workflow backend (flow runner style API)."""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, Optional, Sequence, Tuple, Union

import httpx

from ..logging_config import logger
from .base import PromptPayload, ProviderClient, ProviderConfig, ProviderKind, encode_json
from .errors import ConfigurationError, NetworkError, ProviderResponseError

PathStep = Union[str, int]

# Order matters: the backend schema is unstable, so the first truthy hit wins
# even where a deeper field is checked before a shallower one.
RESPONSE_TEXT_PATHS: Tuple[Tuple[PathStep, ...], ...] = (
    ("outputs", 0, "outputs", 0, "results", "message", "text"),
    ("outputs", 0, "outputs", 0, "outputs", "message", "message"),
    ("outputs", 0, "outputs", 0, "artifacts", "message"),
    ("outputs", 0, "outputs", 0, "outputs", "message"),
    ("outputs", 0, "outputs", 0, "message"),
    ("outputs", 0, "outputs", 0, "text"),
    ("outputs", 0, "outputs", 0),
    ("outputs", 0, "outputs", 0, "results", "message", "text_key"),
)

_MISSING = object()


def _walk(body: Any, path: Sequence[PathStep]) -> Any:
    current = body
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return _MISSING
            current = current[step]
        else:
            if not isinstance(current, dict) or step not in current:
                return _MISSING
            current = current[step]
    return current


def _is_blank(value: Any) -> bool:
    # Empty containers count as a hit; only null, "", false, 0 and NaN are skipped.
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or value != value
    return False


def extract_response_text(body: Any) -> str:
    """Return the first non-blank value along RESPONSE_TEXT_PATHS, else the whole body as JSON."""
    for path in RESPONSE_TEXT_PATHS:
        value = _walk(body, path)
        if value is _MISSING or _is_blank(value):
            continue
        return value if isinstance(value, str) else encode_json(value)
    return encode_json(body)


def build_envelope(query: str, session_id: str) -> Dict[str, str]:
    return {
        "input_value": query,
        "output_type": "chat",
        "input_type": "chat",
        "session_id": session_id,
    }


class CustomHttpClient(ProviderClient):
    """Workflow backend that takes a fixed chat envelope and returns arbitrary JSON."""

    kind = ProviderKind.CUSTOM_HTTP

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def ensure_configured(self) -> None:
        if not (self.config.endpoint or "").strip():
            raise ConfigurationError("Custom flow endpoint not configured. Set CUSTOM_FLOW_URL.")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.config.api_key:
            headers["x-api-key"] = self.config.api_key
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
        return self._client

    async def complete(self, payload: PromptPayload) -> str:
        self.ensure_configured()
        envelope = build_envelope(payload.query, self.config.session_id)
        client = await self._get_client()

        logger.debug(
            "custom flow request",
            extra={"endpoint": self.config.endpoint, "query_length": len(payload.query)},
        )

        try:
            response = await client.post(
                self.config.endpoint.strip(), headers=self._headers(), json=envelope
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Custom flow request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ProviderResponseError(
                f"Custom flow request failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderResponseError("Custom flow returned a non-JSON body") from exc

        return extract_response_text(body)

    async def stream_complete(self, payload: PromptPayload) -> AsyncIterator[str]:
        # The flow backend answers in one piece; expose it as a single delta.
        text = await self.complete(payload)
        if text:
            yield text

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


__all__ = [
    "CustomHttpClient",
    "RESPONSE_TEXT_PATHS",
    "build_envelope",
    "extract_response_text",
]
