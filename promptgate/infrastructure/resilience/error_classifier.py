"""Failure classification for upstream calls.

Classification is a decision table keyed on the exception type and the
numeric HTTP status code. Only when neither gives a signal is the error
message scanned for well-known markers, so that loosely-typed failures from
other transports are still recognized.

The same `FailureKind` drives two decisions: retry vs terminal inside the
retry engine, and the outward `PromptStatus` reported to the caller.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

import httpx
import openai
from pydantic import ValidationError

from promptgate.domain.exceptions import ChunkCallbackError, OutputValidationError, RateLimitCeilingError
from promptgate.domain.models.prompt import PromptStatus

logger = logging.getLogger(__name__)

class FailureKind(str, Enum):
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    SERVER = "server"        # transient upstream 5xx
    NETWORK = "network"
    VALIDATION = "validation"
    CLIENT = "client"        # other 4xx/5xx, malformed requests, auth
    UNKNOWN = "unknown"

RETRIABLE_KINDS = frozenset({
    FailureKind.RATE_LIMIT,
    FailureKind.TIMEOUT,
    FailureKind.SERVER,
    FailureKind.NETWORK,
})

# --- HTTP status codes ---
HTTP_TOO_MANY_REQUESTS = 429
RETRIABLE_SERVER_STATUSES = frozenset({500, 502, 503, 504})

# --- Message markers (fallback layer) ---
RATE_LIMIT_MARKERS = ("rate limit", "429", "too many requests")
TIMEOUT_MARKERS = ("timeout", "timed out", "etimedout")
SERVER_MARKERS = ("500", "502", "503", "504")
NETWORK_MARKERS = (
    "econnrefused",
    "enotfound",
    "econnreset",
    "network error",
    "connection refused",
    "connection reset",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
)
SCHEMA_MISMATCH_MARKER = "does not match expected schema"
API_MARKERS = ("API", "400", "401", "403", "404")

STATUS_FOR_KIND = {
    FailureKind.VALIDATION: PromptStatus.VALIDATION_ERROR,
    FailureKind.RATE_LIMIT: PromptStatus.RATE_LIMIT_ERROR,
    FailureKind.TIMEOUT: PromptStatus.TIMEOUT_ERROR,
    FailureKind.NETWORK: PromptStatus.NETWORK_ERROR,
    FailureKind.SERVER: PromptStatus.API_ERROR,
    FailureKind.CLIENT: PromptStatus.API_ERROR,
    FailureKind.UNKNOWN: PromptStatus.UNKNOWN_ERROR,
}

DEFAULT_ERROR_MESSAGE = "An unknown error occurred"

def get_error_message(error: BaseException) -> str:
    """Human-readable message for any exception."""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    text = str(error)
    return text or type(error).__name__ or DEFAULT_ERROR_MESSAGE

def get_status_code(error: BaseException) -> Optional[int]:
    """Extracts a numeric HTTP status from the common exception shapes."""
    for attr in ("status_code", "status", "statusCode"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value

    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int) and not isinstance(status, bool):
        return status
    return None

def _classify_by_type(error: BaseException) -> Optional[FailureKind]:
    # Order matters: the SDK's timeout error subclasses its connection error.
    if isinstance(error, (OutputValidationError, ValidationError)):
        return FailureKind.VALIDATION
    if isinstance(error, RateLimitCeilingError):
        return FailureKind.RATE_LIMIT
    if isinstance(error, ChunkCallbackError):
        return FailureKind.UNKNOWN
    if isinstance(error, (openai.APITimeoutError, httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return FailureKind.TIMEOUT
    if isinstance(error, (openai.APIConnectionError, httpx.NetworkError, ConnectionError)):
        return FailureKind.NETWORK
    if isinstance(error, openai.APIResponseValidationError):
        return FailureKind.CLIENT
    return None

def _classify_by_status(status_code: int) -> FailureKind:
    if status_code == HTTP_TOO_MANY_REQUESTS:
        return FailureKind.RATE_LIMIT
    if status_code in RETRIABLE_SERVER_STATUSES:
        return FailureKind.SERVER
    return FailureKind.CLIENT

def _classify_by_message(message: str) -> FailureKind:
    lowered = message.lower()
    if SCHEMA_MISMATCH_MARKER in lowered:
        return FailureKind.VALIDATION
    if any(marker in lowered for marker in RATE_LIMIT_MARKERS):
        return FailureKind.RATE_LIMIT
    if any(marker in lowered for marker in TIMEOUT_MARKERS):
        return FailureKind.TIMEOUT
    if any(marker in lowered for marker in SERVER_MARKERS):
        return FailureKind.SERVER
    if any(marker in lowered for marker in NETWORK_MARKERS):
        return FailureKind.NETWORK
    # "API" is case sensitive on purpose: "rapid" must not match.
    if any(marker in message for marker in API_MARKERS):
        return FailureKind.CLIENT
    return FailureKind.UNKNOWN

def classify_failure(error: BaseException) -> FailureKind:
    """Classifies an exception raised by an upstream attempt."""
    kind = _classify_by_type(error)
    if kind is None:
        status_code = get_status_code(error)
        if status_code is not None:
            kind = _classify_by_status(status_code)
        else:
            kind = _classify_by_message(get_error_message(error))
    logger.debug(f"Classified {type(error).__name__} as {kind.value}")
    return kind

def is_retriable(error: BaseException) -> bool:
    return classify_failure(error) in RETRIABLE_KINDS

def to_prompt_status(error: BaseException) -> PromptStatus:
    """Maps an exception to the coarser, caller-facing status."""
    return STATUS_FOR_KIND[classify_failure(error)]
