from .base import (
    ImagePart,
    PromptMessage,
    PromptPayload,
    ProviderClient,
    ProviderConfig,
    ProviderKind,
    TextPart,
)
from .custom_http import CustomHttpClient, extract_response_text
from .errors import ConfigurationError, NetworkError, ProviderError, ProviderResponseError
from .factory import create_provider
from .hosted import HostedLLMClient

__all__ = [
    "ConfigurationError",
    "CustomHttpClient",
    "HostedLLMClient",
    "ImagePart",
    "NetworkError",
    "PromptMessage",
    "PromptPayload",
    "ProviderClient",
    "ProviderConfig",
    "ProviderError",
    "ProviderKind",
    "ProviderResponseError",
    "TextPart",
    "create_provider",
    "extract_response_text",
]
