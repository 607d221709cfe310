"""Exceptions raised by the promptgate domain and infrastructure layers.

Operational failures (upstream errors, schema mismatches) are turned into
`PromptResponse` objects by the client service. Configuration mistakes are
programmer errors and propagate to the caller.
"""


class PromptGateError(Exception):
    """Base class for all promptgate exceptions."""

    def __init__(self, message: str = "promptgate error"):
        self.message = message
        super().__init__(message)


class ConfigurationError(PromptGateError, ValueError):
    """Raised when client configuration or per-call parameters are invalid."""


class OutputValidationError(PromptGateError):
    """Raised when the model output does not match the expected output shape.

    The message always contains the "does not match expected schema" marker so
    that string-based classification still recognizes it.
    """

    def __init__(self, issues: list[str]):
        self.issues = issues
        super().__init__(
            f"OpenAI response does not match expected schema: {', '.join(issues)}"
        )


class RateLimitCeilingError(PromptGateError):
    """Raised when a request's token estimate can never fit the token ceiling."""

    def __init__(self, estimated_tokens: int, max_tokens: int):
        self.estimated_tokens = estimated_tokens
        self.max_tokens = max_tokens
        super().__init__(
            f"Estimated {estimated_tokens} tokens exceeds the rate limit ceiling "
            f"of {max_tokens} tokens per window"
        )


class ModelNotFoundError(PromptGateError, KeyError):
    """Raised when a model identifier is missing from the model registry."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"Model metadata not found for: {model}")

    def __str__(self) -> str:
        return self.message


class ChunkCallbackError(PromptGateError):
    """Raised when the caller's stream chunk callback fails.

    Wraps the callback's exception so it is never mistaken for an upstream
    failure and retried.
    """

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Stream chunk callback failed: {type(cause).__name__}: {cause}")
