"""Range checks and defaults for client configuration and per-call overrides.

Every method returns the validated (or defaulted) value and raises
`ConfigurationError` on invalid input. Nothing here talks to the network.
"""

import logging
import math
import os
from typing import Any, Optional

from promptgate.domain.exceptions import ConfigurationError
from promptgate.domain.models.ai import OpenAIModel
from promptgate.domain.models.config import (
    DEFAULT_RATE_LIMIT_POLL_INTERVAL_S,
    DEFAULT_RATE_LIMIT_WINDOW_S,
    RateLimitConfig,
    RetryPolicy,
    ValidatedRateLimits,
    ValidatedThrottleSettings,
)
from promptgate.domain.models.prompt import PromptInput
from promptgate.infrastructure.ai.openai.model_registry import ModelRegistry
from promptgate.infrastructure.resilience.delay import DEFAULT_JITTER_FACTOR

logger = logging.getLogger(__name__)

OPENAI_API_KEY_PREFIX = "sk-"

DEFAULT_MODEL = OpenAIModel.GPT_4O.value
DEFAULT_TIMEOUT_S = 60.0

DEFAULT_TEMPERATURE = 0.7
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0

MIN_MAX_TOKENS = 1
MIN_REQUESTS_PER_MINUTE = 1
MIN_TOKENS_PER_MINUTE = 1
MIN_REQUEST_DELAY_S = 0.0

DEFAULT_USE_JITTER = True
MIN_JITTER_FACTOR = 0.0
MAX_JITTER_FACTOR = 1.0

DEFAULT_RETRY_ENABLED = True
DEFAULT_MAX_RETRY_ATTEMPTS = 3
DEFAULT_BASE_RETRY_DELAY_S = 1.0
DEFAULT_MAX_RETRY_DELAY_S = 30.0
MIN_RETRY_ATTEMPTS = 1

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)

class ConfigValidator:
    """Validates `ClientConfig` fields and `PromptInput` overrides."""

    def __init__(self, registry: Optional[ModelRegistry] = None):
        self.registry = registry or ModelRegistry()

    def validate_api_key(self, api_key: Optional[str] = None) -> str:
        key = api_key or os.getenv("OPENAI_API_KEY")
        if not key:
            raise ConfigurationError(
                "OpenAI API key not found. Provide it via:\n"
                "1. ClientConfig(api_key='...')\n"
                "2. OPENAI_API_KEY environment variable"
            )
        if not key.startswith(OPENAI_API_KEY_PREFIX):
            raise ConfigurationError(
                f"Invalid OpenAI API key format. API keys should start with '{OPENAI_API_KEY_PREFIX}'"
            )
        return key

    def validate_model(self, model: Optional[str] = None) -> str:
        validated = model or DEFAULT_MODEL
        if not self.registry.has_model(validated):
            valid_models = ", ".join(m.value for m in self.registry.get_all_models())
            raise ConfigurationError(f'Invalid model: "{validated}". Must be one of: {valid_models}')
        return OpenAIModel(validated).value

    def validate_temperature(self, temperature: Optional[float] = None) -> float:
        validated = DEFAULT_TEMPERATURE if temperature is None else temperature
        if not _is_number(validated):
            raise ConfigurationError("Temperature must be a valid number")
        if validated < MIN_TEMPERATURE or validated > MAX_TEMPERATURE:
            raise ConfigurationError(f"Temperature must be between {MIN_TEMPERATURE:g} and {MAX_TEMPERATURE:g}")
        return float(validated)

    def validate_max_tokens(self, max_tokens: Optional[int], model: str) -> Optional[int]:
        if max_tokens is None:
            return None
        if not _is_number(max_tokens) or max_tokens < MIN_MAX_TOKENS:
            raise ConfigurationError(f"max_tokens must be a positive number (at least {MIN_MAX_TOKENS})")

        context_window = self.registry.get_model_metadata(model).context_window
        if max_tokens > context_window:
            raise ConfigurationError(f"max_tokens ({max_tokens}) exceeds model's context window ({context_window})")
        return int(max_tokens)

    def validate_system_message(self, system_message: Optional[str] = None) -> Optional[str]:
        if system_message is None:
            return None
        if not isinstance(system_message, str):
            raise ConfigurationError("System message must be a string")
        if not system_message.strip():
            raise ConfigurationError("System message cannot be empty or whitespace only")
        return system_message

    def validate_timeout(self, timeout: Optional[float] = None) -> float:
        if timeout is None:
            return DEFAULT_TIMEOUT_S
        if not _is_number(timeout) or timeout <= 0:
            raise ConfigurationError("timeout must be a positive number of seconds")
        return float(timeout)

    def validate_rate_limits(self, rate_limit: Optional[RateLimitConfig] = None) -> ValidatedRateLimits:
        if rate_limit is None:
            return ValidatedRateLimits()

        rpm = rate_limit.requests_per_minute
        if rpm is not None and (not _is_number(rpm) or rpm < MIN_REQUESTS_PER_MINUTE or int(rpm) != rpm):
            raise ConfigurationError(f"requests_per_minute must be an integer of at least {MIN_REQUESTS_PER_MINUTE}")

        tpm = rate_limit.tokens_per_minute
        if tpm is not None and (not _is_number(tpm) or tpm < MIN_TOKENS_PER_MINUTE or int(tpm) != tpm):
            raise ConfigurationError(f"tokens_per_minute must be an integer of at least {MIN_TOKENS_PER_MINUTE}")

        window = DEFAULT_RATE_LIMIT_WINDOW_S if rate_limit.window is None else rate_limit.window
        if not _is_number(window) or window <= 0:
            raise ConfigurationError("rate limit window must be greater than 0 seconds")

        poll_interval = DEFAULT_RATE_LIMIT_POLL_INTERVAL_S if rate_limit.poll_interval is None else rate_limit.poll_interval
        if not _is_number(poll_interval) or poll_interval <= 0:
            raise ConfigurationError("rate limit poll_interval must be greater than 0 seconds")

        return ValidatedRateLimits(
            requests_per_minute=int(rpm) if rpm is not None else None,
            tokens_per_minute=int(tpm) if tpm is not None else None,
            window=float(window),
            poll_interval=float(poll_interval),
        )

    def validate_throttle_settings(
        self,
        request_delay: Optional[float] = None,
        use_jitter: Optional[bool] = None,
        jitter_factor: Optional[float] = None,
    ) -> ValidatedThrottleSettings:
        if request_delay is not None and (not _is_number(request_delay) or request_delay < MIN_REQUEST_DELAY_S):
            raise ConfigurationError(f"request_delay must be non-negative (at least {MIN_REQUEST_DELAY_S:g}s)")

        validated_jitter = DEFAULT_JITTER_FACTOR if jitter_factor is None else jitter_factor
        if not _is_number(validated_jitter) or not MIN_JITTER_FACTOR <= validated_jitter <= MAX_JITTER_FACTOR:
            raise ConfigurationError(f"jitter_factor must be between {MIN_JITTER_FACTOR:g} and {MAX_JITTER_FACTOR:g}")

        return ValidatedThrottleSettings(
            request_delay=request_delay,
            use_jitter=DEFAULT_USE_JITTER if use_jitter is None else bool(use_jitter),
            jitter_factor=float(validated_jitter),
        )

    def validate_retry_settings(
        self,
        enabled: Optional[bool] = None,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
    ) -> RetryPolicy:
        attempts = DEFAULT_MAX_RETRY_ATTEMPTS if max_attempts is None else max_attempts
        if not _is_number(attempts) or attempts < MIN_RETRY_ATTEMPTS or int(attempts) != attempts:
            raise ConfigurationError(f"max_retry_attempts must be an integer of at least {MIN_RETRY_ATTEMPTS}")

        base = DEFAULT_BASE_RETRY_DELAY_S if base_delay is None else base_delay
        if not _is_number(base) or base < 0:
            raise ConfigurationError("base_retry_delay must be non-negative")

        cap = max(DEFAULT_MAX_RETRY_DELAY_S, base) if max_delay is None else max_delay
        if not _is_number(cap) or cap < base:
            raise ConfigurationError(f"max_retry_delay ({cap}) must be at least base_retry_delay ({base})")

        return RetryPolicy(
            enabled=DEFAULT_RETRY_ENABLED if enabled is None else bool(enabled),
            max_attempts=int(attempts),
            base_delay=float(base),
            max_delay=float(cap),
        )

    def validate_prompt_input(self, prompt_input: PromptInput, default_model: str) -> str:
        """Checks per-call overrides and returns the model the call will use."""
        model = self.validate_model(prompt_input.model or default_model)
        if prompt_input.temperature is not None:
            self.validate_temperature(prompt_input.temperature)
        self.validate_max_tokens(prompt_input.max_tokens, model)
        self.validate_system_message(prompt_input.system_message)
        return model
