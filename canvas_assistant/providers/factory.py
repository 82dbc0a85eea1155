from __future__ import annotations

from typing import Callable, Dict, Optional

import httpx

from .base import ProviderClient, ProviderConfig, ProviderKind
from .custom_http import CustomHttpClient
from .errors import ConfigurationError
from .hosted import HostedLLMClient

ProviderFactory = Callable[..., ProviderClient]

_REGISTRY: Dict[ProviderKind, ProviderFactory] = {
    ProviderKind.HOSTED: HostedLLMClient,
    ProviderKind.CUSTOM_HTTP: CustomHttpClient,
}


def create_provider(
    config: ProviderConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderClient:
    """Instantiate the client variant registered for ``config.kind``."""
    factory = _REGISTRY.get(config.kind)
    if factory is None:
        raise ConfigurationError(f"No provider registered for kind {config.kind!r}")
    return factory(config, transport=transport)


__all__ = ["create_provider"]
