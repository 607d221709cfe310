"""API Resilience Implementations.

Contains services for pacing request starts, enforcing rolling-window rate
limits, classifying upstream failures and retrying recoverable ones with
exponential backoff.
Bounded Context: API Resilience
"""

from promptgate.infrastructure.resilience.api_retry import ApiRetryService
from promptgate.infrastructure.resilience.error_classifier import FailureKind, classify_failure
from promptgate.infrastructure.resilience.rate_limiter import RateLimitWindow, Reservation
from promptgate.infrastructure.resilience.throttle import ThrottleGate

__all__ = [
    "ApiRetryService",
    "FailureKind",
    "RateLimitWindow",
    "Reservation",
    "ThrottleGate",
    "classify_failure",
]
