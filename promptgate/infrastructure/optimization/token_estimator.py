"""Service for estimating token counts for prompts before they are sent.

The estimate feeds rate-limit admission, so it only has to be cheap and
stable, not exact. By default a chars-per-token heuristic is used; a
`tiktoken` encoding can be configured for a closer count of the text part.
Bounded Context: Token Management
"""

import json
import logging
import math
from typing import Any, Iterable, List, Optional

import tiktoken

from promptgate.domain.models.ai import ChatMessage
from promptgate.domain.models.common import TokenCount

logger = logging.getLogger(__name__)

APPROX_CHARS_PER_TOKEN = 4
DEFAULT_RESPONSE_TOKEN_BUDGET = 1000

def stringify_input(value: Any) -> str:
    """Text form of a prompt input; non-strings are JSON-encoded."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)

def _text_of(content: Any) -> str:
    """Text of a message content; multi-part contents contribute their text parts."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "") for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    return ""

class TokenEstimator:
    """Estimates token counts using the character heuristic or tiktoken."""

    def __init__(self, encoding_name: Optional[str] = None):
        """Initializes the TokenEstimator.

        Args:
            encoding_name: tiktoken encoding (e.g. "cl100k_base"). When not
                given, the `APPROX_CHARS_PER_TOKEN` heuristic is used.
        """
        self.encoding_name = encoding_name
        self.tokenizer = tiktoken.get_encoding(encoding_name) if encoding_name else None
        if self.tokenizer:
            logger.info(f"TokenEstimator initialized with tiktoken encoding: {encoding_name}")
        else:
            logger.debug("TokenEstimator using character approximation.")

    def estimate_tokens(self, text: str) -> TokenCount:
        """Estimates the token count for a single string of text."""
        if not text:
            return TokenCount(0)
        if self.tokenizer:
            return TokenCount(len(self.tokenizer.encode(text)))
        return TokenCount(math.ceil(len(text) / APPROX_CHARS_PER_TOKEN))

    def estimate_tokens_for_messages(self, messages: List[ChatMessage]) -> TokenCount:
        """Estimates the text tokens of a message list (no per-message overhead)."""
        text = "".join(_text_of(message.get("content")) for message in messages)
        return self.estimate_tokens(text)

    def estimate_request_tokens(
        self,
        prompt_input: Any,
        system_message: Optional[str] = None,
        history: Optional[Iterable[ChatMessage]] = None,
        max_tokens: Optional[int] = None,
        default_max_tokens: Optional[int] = None,
    ) -> TokenCount:
        """Estimates the full size of one request: prompt text plus response budget.

        Args:
            prompt_input: The user input; non-strings are JSON-encoded.
            system_message: The effective system message, if any.
            history: Prior conversation messages sent with the request.
            max_tokens: The request's response budget.
            default_max_tokens: The client's response budget, used when the
                request does not set one.

        Returns:
            Estimated prompt tokens plus the response budget
            (`DEFAULT_RESPONSE_TOKEN_BUDGET` when neither budget is set).
        """
        parts = [system_message or "", stringify_input(prompt_input)]
        parts.extend(_text_of(message.get("content")) for message in history or [])
        prompt_tokens = self.estimate_tokens("".join(parts))

        if max_tokens is not None:
            budget = max_tokens
        elif default_max_tokens is not None:
            budget = default_max_tokens
        else:
            budget = DEFAULT_RESPONSE_TOKEN_BUDGET

        estimate = prompt_tokens + budget
        logger.debug(f"Estimated request size: {prompt_tokens} prompt + {budget} response = {estimate} tokens")
        return TokenCount(estimate)
