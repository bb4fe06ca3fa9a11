"""Top-level package for nodetocode.

This package turns serialized visual scripting graphs into LLM translation
requests for OpenAI and DeepSeek and parses the generated code back out.
The main entry points are `create_provider_service` and `TranslationSession`.
"""

from .llm.providers import create_provider_service
from .session import TranslationSession

__all__ = ["TranslationSession", "__version__", "create_provider_service"]

__version__ = "0.1.0"
