from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from ..logging_config import logger
from .base import PromptPayload, ProviderClient, ProviderConfig, ProviderKind, encode_json
from .errors import ConfigurationError, NetworkError, ProviderResponseError

DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _response_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        detail = error or payload.get("message")
        if detail:
            return str(detail)
    return encode_json(payload)


def _coerce_content(content: Any) -> str:
    """Flatten a message or delta content into plain text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for part in content:
            if isinstance(part, dict) and part.get("type") == "text":
                texts.append(str(part.get("text") or ""))
            elif isinstance(part, str):
                texts.append(part)
        return "".join(texts)
    return encode_json(content)


def _chunk_deltas(chunk: Any) -> List[str]:
    """Return the text deltas of one SSE chunk, rejecting shapes that are not chat chunks."""
    if not isinstance(chunk, dict):
        raise ProviderResponseError(f"Hosted LLM stream sent a malformed chunk: {encode_json(chunk)[:200]}")
    choices = chunk.get("choices") or []
    if not isinstance(choices, list):
        raise ProviderResponseError("Hosted LLM stream chunk has malformed choices")

    deltas = []
    for choice in choices:
        if not isinstance(choice, dict):
            raise ProviderResponseError("Hosted LLM stream chunk has a malformed choice")
        delta = choice.get("delta")
        if delta is None:
            continue
        if not isinstance(delta, dict):
            raise ProviderResponseError("Hosted LLM stream chunk has a malformed delta")
        text = _coerce_content(delta.get("content"))
        if text:
            deltas.append(text)
    return deltas


class HostedLLMClient(ProviderClient):
    """Client for an OpenAI-compatible chat completions API."""

    kind = ProviderKind.HOSTED

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return (self.config.endpoint or DEFAULT_BASE_URL).rstrip("/")

    def ensure_configured(self) -> None:
        if not (self.config.api_key or "").strip():
            raise ConfigurationError("Hosted LLM API key not configured. Set OPENAI_API_KEY.")

    def _headers(self, *, stream: bool) -> Dict[str, str]:
        self.ensure_configured()
        return {
            "Authorization": f"Bearer {self.config.api_key.strip()}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream" if stream else "application/json",
        }

    def _request_body(self, payload: PromptPayload, *, stream: bool) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": payload.as_messages(),
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "stream": stream,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
        return self._client

    async def complete(self, payload: PromptPayload) -> str:
        headers = self._headers(stream=False)
        body = self._request_body(payload, stream=False)
        client = await self._get_client()

        logger.debug(
            "hosted completion request",
            extra={"model": self.config.model, "messages": len(body["messages"])},
        )

        try:
            response = await client.post(
                f"{self.base_url}/chat/completions", headers=headers, json=body
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Hosted LLM request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ProviderResponseError(
                f"Hosted LLM request failed ({response.status_code}): {_response_detail(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderResponseError("Hosted LLM returned a non-JSON body") from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise ProviderResponseError("Hosted LLM response missing choices")
        choice = choices[0]
        message = choice.get("message") if isinstance(choice, dict) else None
        if not isinstance(message, dict):
            raise ProviderResponseError("Hosted LLM response has a malformed choice")
        return _coerce_content(message.get("content"))

    async def stream_complete(self, payload: PromptPayload) -> AsyncIterator[str]:
        headers = self._headers(stream=True)
        body = self._request_body(payload, stream=True)
        client = await self._get_client()

        try:
            async with client.stream(
                "POST", f"{self.base_url}/chat/completions", headers=headers, json=body
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise ProviderResponseError(
                        f"Hosted LLM stream failed ({response.status_code}): "
                        f"{_response_detail(response)}",
                        status_code=response.status_code,
                    )

                async for line in response.aiter_lines():
                    if not line or not line.startswith("data:"):
                        continue

                    data_str = line[5:].strip()
                    if data_str == "[DONE]":
                        break

                    try:
                        chunk = json.loads(data_str)
                    except json.JSONDecodeError:
                        logger.debug("skipping malformed stream chunk", extra={"chunk": data_str[:200]})
                        continue

                    for delta in _chunk_deltas(chunk):
                        yield delta
        except httpx.HTTPError as exc:
            raise NetworkError(f"Hosted LLM stream failed: {exc}") from exc

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


__all__ = ["HostedLLMClient", "DEFAULT_BASE_URL"]
