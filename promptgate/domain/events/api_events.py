"""Domain Events related to API calls and resilience.

Examples include events for when calls are throttled, deferred by the rate
limit window, retried, fail, or succeed.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Optional

@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an upstream attempt is about to be made."""
    provider: str # e.g., 'openai'
    model: str
    attempt_number: int = 1
    stream: bool = False
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a logical request succeeds."""
    provider: str
    model: str
    latency_ms: float
    attempts: int = 1
    response_summary: Optional[Any] = None # e.g., token usage
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a logical request fails definitively (after retries)."""
    provider: str
    model: str
    error_type: str
    error_message: str
    status: str = "unknown_error"
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when a request waits for rate limit admission."""
    provider: str
    estimated_tokens: int
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class RequestThrottled(DomainEvent):
    """Event triggered when the throttle gate delays a request start."""
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed attempt."""
    attempt_number: int
    delay_seconds: float
    failure_kind: str
    error_message: str = ""
    timestamp: float = field(default_factory=time.time)
