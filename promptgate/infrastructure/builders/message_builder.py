"""Builds the chat message list for a prompt request."""

import logging
from typing import Any, Dict, List, Optional

from promptgate.domain.models.ai import ChatMessage
from promptgate.domain.models.prompt import PromptInput
from promptgate.infrastructure.ai.openai.model_registry import ModelRegistry
from promptgate.infrastructure.optimization.token_estimator import stringify_input

logger = logging.getLogger(__name__)

class MessageBuilder:
    """Assembles system message, conversation history and user input."""

    def __init__(self, registry: Optional[ModelRegistry] = None):
        self.registry = registry or ModelRegistry()

    def build_messages(
        self,
        prompt_input: PromptInput,
        model: str,
        default_system_message: Optional[str] = None,
    ) -> List[ChatMessage]:
        """Builds the messages for one request.

        Args:
            prompt_input: The caller's request.
            model: The resolved model id.
            default_system_message: The client's system message, used unless
                the request overrides it.

        Returns:
            Messages in send order: system, history, then the user input.
        """
        messages: List[ChatMessage] = []

        system_message = prompt_input.system_message or default_system_message
        if system_message:
            messages.append(ChatMessage(role="system", content=system_message))

        if prompt_input.messages:
            messages.extend(prompt_input.messages)

        messages.append(self._build_user_message(prompt_input, model))
        return messages

    def _build_user_message(self, prompt_input: PromptInput, model: str) -> ChatMessage:
        text = stringify_input(prompt_input.input)

        if not prompt_input.images:
            return ChatMessage(role="user", content=text)

        if not self.registry.supports_feature(model, "vision"):
            logger.warning(f"Model {model} does not support vision; sending {len(prompt_input.images)} image(s) as text-only prompt.")
            return ChatMessage(role="user", content=text)

        content: List[Dict[str, Any]] = [{"type": "text", "text": text}]
        for image_url in prompt_input.images:
            content.append({"type": "image_url", "image_url": {"url": image_url}})
        return ChatMessage(role="user", content=content)
