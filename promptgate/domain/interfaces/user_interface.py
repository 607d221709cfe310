"""Interface for presenting results to the user.

Defines the contract for displaying prompt results, streamed text, model
listings and messages, allowing different UI implementations.
"""

import abc
from typing import Any, List

from promptgate.domain.models.ai import ModelMetadata
from promptgate.domain.models.common import PromptCost
from promptgate.domain.models.prompt import PromptResponse

class UserInterface(abc.ABC):
    """Abstract Base Class for user-facing output."""

    @abc.abstractmethod
    def display_response(self, response: PromptResponse, **kwargs: Any) -> None:
        """Displays a completed prompt result, successful or not."""
        pass

    @abc.abstractmethod
    def display_stream_chunk(self, chunk: str) -> None:
        """Displays one streamed text delta without a trailing newline."""
        pass

    @abc.abstractmethod
    def display_models(self, models: List[ModelMetadata], **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_cost(self, model: str, input_tokens: int, output_tokens: int, cost: PromptCost) -> None:
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        pass
