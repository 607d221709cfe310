"""promptgate: a resilience layer for OpenAI chat completions.

Paces request starts, enforces rolling-window request and token ceilings,
and retries recoverable upstream failures with exponential backoff.
"""

from promptgate.core.services.prompt_service import PromptClient
from promptgate.domain.models.config import ClientConfig, RateLimitConfig
from promptgate.domain.models.prompt import PromptInput, PromptResponse, PromptStatus

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "PromptClient",
    "PromptInput",
    "PromptResponse",
    "PromptStatus",
    "RateLimitConfig",
]
