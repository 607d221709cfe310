"""Builds chat-completion request parameters.

Optional features (structured output, tools) are only attached when the
target model supports them; otherwise they are dropped with a log line so
the request still goes out.
"""

import logging
from typing import Any, Dict, List, Optional

from promptgate.domain.models.ai import ChatMessage
from promptgate.domain.models.prompt import PromptInput
from promptgate.infrastructure.ai.openai.model_registry import ModelRegistry
from promptgate.infrastructure.parsers.schema_parser import SchemaParser

logger = logging.getLogger(__name__)

RESPONSE_FORMAT_NAME = "response"

class RequestBuilder:
    """Assembles the parameter dict passed to a CompletionProvider."""

    def __init__(self, schema_parser: Optional[SchemaParser] = None, registry: Optional[ModelRegistry] = None):
        self.schema_parser = schema_parser or SchemaParser()
        self.registry = registry or ModelRegistry()

    def build_request_params(
        self,
        prompt_input: PromptInput,
        model: str,
        messages: List[ChatMessage],
        default_temperature: float,
        default_max_tokens: Optional[int] = None,
        stream: bool = False,
    ) -> Dict[str, Any]:
        """Builds request parameters for one attempt.

        Args:
            prompt_input: The caller's request.
            model: The resolved model id.
            messages: The assembled message list.
            default_temperature: Client temperature, unless overridden.
            default_max_tokens: Client response budget, unless overridden.
            stream: Build parameters for a streaming request.
        """
        temperature = prompt_input.temperature if prompt_input.temperature is not None else default_temperature
        max_tokens = prompt_input.max_tokens if prompt_input.max_tokens is not None else default_max_tokens

        params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        if stream:
            params["stream"] = True

        self._add_structured_output(params, prompt_input, model)
        self._add_tools(params, prompt_input, model)
        return params

    def _add_structured_output(self, params: Dict[str, Any], prompt_input: PromptInput, model: str) -> None:
        if prompt_input.output_schema is None:
            return
        if not self.registry.supports_feature(model, "structured_output"):
            logger.info(f"Model {model} does not support structured output; response_format omitted.")
            return

        params["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": RESPONSE_FORMAT_NAME,
                "schema": self.schema_parser.to_openai_schema(prompt_input.output_schema),
                "strict": True,
            },
        }

    def _add_tools(self, params: Dict[str, Any], prompt_input: PromptInput, model: str) -> None:
        if not prompt_input.tools:
            return
        if not self.registry.supports_feature(model, "function_calling"):
            logger.info(f"Model {model} does not support function calling; {len(prompt_input.tools)} tool(s) omitted.")
            return

        params["tools"] = prompt_input.tools
        if prompt_input.tool_choice:
            params["tool_choice"] = prompt_input.tool_choice
