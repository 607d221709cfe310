"""Concrete implementation of the CompletionProvider interface using the OpenAI API.

Hides the specifics of the OpenAI client library. The SDK's own retry loop is
disabled; retries are owned by `ApiRetryService` so that every attempt passes
through the same classification and backoff.
"""

import logging
import os
import time
from typing import Any, AsyncIterator, Dict, Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, RateLimitError

from promptgate.domain.exceptions import ConfigurationError
from promptgate.domain.interfaces.ai_model import CompletionProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0

class OpenAICompletionProvider(CompletionProvider):
    """OpenAI implementation of the CompletionProvider interface."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        organization: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """Initializes the OpenAI client.

        Args:
            api_key: OpenAI API key. Reads from OPENAI_API_KEY env var if None.
            base_url: Custom API base URL.
            organization: OpenAI organization id.
            timeout: Request timeout in seconds.
            client: Pre-built SDK client, mainly for tests.
        """
        if client is not None:
            self.client = client
            return

        effective_api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not effective_api_key:
            raise ConfigurationError("OpenAI API key not provided and not found in environment variables.")

        self.client = AsyncOpenAI(
            api_key=effective_api_key,
            base_url=base_url,
            organization=organization,
            timeout=timeout or DEFAULT_TIMEOUT_S,
            max_retries=0,
        )
        logger.info(f"OpenAICompletionProvider initialized (base_url={base_url or 'default'})")

    async def create_completion(self, params: Dict[str, Any]) -> Any:
        """Sends a chat completion request and returns the SDK's ChatCompletion."""
        logger.debug(f"Sending {len(params.get('messages', []))} messages to OpenAI model: {params.get('model')}")
        start_time = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(**params)
        except RateLimitError as e:
            logger.warning(f"OpenAI Rate Limit Error encountered: {e}")
            raise
        except APITimeoutError as e:
            logger.warning(f"OpenAI request timed out: {e}")
            raise
        except APIConnectionError as e:
            logger.warning(f"OpenAI connection error: {e}")
            raise
        except APIStatusError as e:
            logger.warning(f"OpenAI API Error encountered (Status: {e.status_code}): {e}")
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Received response from OpenAI in {latency_ms:.2f}ms. Usage: {getattr(response, 'usage', None)}")
        return response

    async def stream_completion(self, params: Dict[str, Any]) -> AsyncIterator[Any]:
        """Yields ChatCompletionChunk objects from a streaming request."""
        logger.debug(f"Opening stream to OpenAI model: {params.get('model')}")
        stream = await self.client.chat.completions.create(**{**params, "stream": True})
        chunk_count = 0
        try:
            async for chunk in stream:
                chunk_count += 1
                yield chunk
        finally:
            await stream.close()
        logger.debug(f"OpenAI stream finished after {chunk_count} chunks")
