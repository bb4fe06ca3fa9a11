"""LLM request/response pipeline.

This package defines the model registry, token estimation, prompt assembly,
payload construction, provider services and response parsers.
"""

from .models import DEFAULT_REGISTRY, ModelRegistry
from .payload_builder import PayloadBuilder
from .prompt_manager import PromptManager
from .prompts import PromptLibrary, translation_response_schema
from .providers import DeepSeekProvider, OpenAIProvider, ProviderService, create_provider_service
from .response_parser import DeepSeekResponseParser, OpenAIResponseParser, ResponseParser
from .token_estimator import ReferenceTokenTracker, TokenEstimator
from .transport import HttpTransport, TransportResponse

__all__ = [
    "DEFAULT_REGISTRY",
    "DeepSeekProvider",
    "DeepSeekResponseParser",
    "HttpTransport",
    "ModelRegistry",
    "OpenAIProvider",
    "OpenAIResponseParser",
    "PayloadBuilder",
    "PromptLibrary",
    "PromptManager",
    "ProviderService",
    "ReferenceTokenTracker",
    "ResponseParser",
    "TokenEstimator",
    "TransportResponse",
    "create_provider_service",
    "translation_response_schema",
]
