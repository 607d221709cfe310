"""Interface for upstream completion providers.

Defines the contract the prompt client uses to reach a generative-text API.
The client never talks to an SDK directly, so tests and alternative backends
can plug in here.
"""

import abc
from typing import Any, AsyncIterator, Dict


class CompletionProvider(abc.ABC):
    """Abstract Base Class for chat-completion backends."""

    name: str = "provider"

    @abc.abstractmethod
    async def create_completion(self, params: Dict[str, Any]) -> Any:
        """Sends a non-streaming chat completion request.

        Args:
            params: Request parameters (model, messages, temperature, ...).

        Returns:
            A completion object exposing `choices`, `usage` and `model`
            attributes shaped like the OpenAI `ChatCompletion`.

        Raises:
            Exception: Any transport or HTTP failure, left unclassified.
        """
        pass

    @abc.abstractmethod
    def stream_completion(self, params: Dict[str, Any]) -> AsyncIterator[Any]:
        """Sends a streaming chat completion request.

        Args:
            params: Request parameters; `stream` is set by the provider.

        Returns:
            An async iterator of chunks shaped like `ChatCompletionChunk`.
        """
        pass
