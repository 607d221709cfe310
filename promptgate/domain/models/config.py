"""Configuration value objects for a prompt client.

`ClientConfig` is what callers construct (or what `build_client_config`
assembles from settings files). The `Validated*` objects are produced by the
`ConfigValidator` and are what the resilience components are built from.
All durations are in seconds.
"""

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_RATE_LIMIT_WINDOW_S = 60.0
DEFAULT_RATE_LIMIT_POLL_INTERVAL_S = 1.0

@dataclass
class RateLimitConfig:
    """Caller-facing rate limit ceilings. `None` means unlimited."""
    requests_per_minute: Optional[int] = None
    tokens_per_minute: Optional[int] = None
    window: float = DEFAULT_RATE_LIMIT_WINDOW_S
    poll_interval: float = DEFAULT_RATE_LIMIT_POLL_INTERVAL_S

@dataclass
class ClientConfig:
    """Configuration options for the prompt client.

    Attributes:
        api_key: OpenAI API key. Falls back to the OPENAI_API_KEY env var.
        default_model: Default model id. Defaults to gpt-4o.
        default_temperature: Default sampling temperature (0-2). Defaults to 0.7.
        system_message: Default system message for all prompts.
        max_tokens: Maximum number of tokens in the response.
        base_url: Custom API base URL (proxies, Azure).
        organization: OpenAI organization id.
        timeout: Per-request upstream timeout in seconds. Defaults to 60.
        rate_limit: Requests/tokens per window ceilings.
        request_delay: Minimum spacing between request starts, in seconds.
        use_jitter: Randomize the request delay. Defaults to True.
        jitter_factor: Maximum jitter as a fraction of the delay (0-1).
        enable_retry: Retry recoverable failures. Defaults to True.
        max_retry_attempts: Total attempts per request, including the first.
        base_retry_delay: Backoff delay before the first retry, in seconds.
        max_retry_delay: Backoff cap, in seconds.
    """
    api_key: Optional[str] = None
    default_model: Optional[str] = None
    default_temperature: Optional[float] = None
    system_message: Optional[str] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    organization: Optional[str] = None
    timeout: Optional[float] = None
    rate_limit: Optional[RateLimitConfig] = None
    request_delay: Optional[float] = None
    use_jitter: Optional[bool] = None
    jitter_factor: Optional[float] = None
    enable_retry: Optional[bool] = None
    max_retry_attempts: Optional[int] = None
    base_retry_delay: Optional[float] = None
    max_retry_delay: Optional[float] = None
    tokenizer: Optional[str] = None  # tiktoken encoding name; None = chars/4 heuristic

@dataclass(frozen=True)
class ValidatedRateLimits:
    requests_per_minute: Optional[int] = None
    tokens_per_minute: Optional[int] = None
    window: float = DEFAULT_RATE_LIMIT_WINDOW_S
    poll_interval: float = DEFAULT_RATE_LIMIT_POLL_INTERVAL_S

@dataclass(frozen=True)
class ValidatedThrottleSettings:
    request_delay: Optional[float] = None
    use_jitter: bool = True
    jitter_factor: float = 0.3

@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration.

    Attributes:
        enabled: When False exactly one attempt is made.
        max_attempts: Total attempts including the first (>= 1).
        base_delay: Backoff before the first retry, in seconds.
        max_delay: Backoff cap, in seconds (>= base_delay).
        jitter_factor: Extra random delay, as a fraction of the capped delay.
    """
    enabled: bool = True
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter_factor: float = field(default=0.25)
