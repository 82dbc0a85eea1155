from __future__ import annotations

from typing import Optional


class ProviderError(RuntimeError):
    """Base class for failures raised by a model provider client."""


class ConfigurationError(ProviderError):
    """Raised when a provider is missing a required credential or endpoint."""


class NetworkError(ProviderError):
    """Raised when the transport fails before a response is received."""


class ProviderResponseError(ProviderError):
    """Raised on a non-2xx status or a body that cannot be parsed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "ProviderError",
    "ConfigurationError",
    "NetworkError",
    "ProviderResponseError",
]
