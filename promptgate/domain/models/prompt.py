"""Domain models for a single prompt request and its result.

A `PromptInput` describes what the caller wants; a `PromptResponse` is always
returned for it, carrying either the validated content or a classified error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from .ai import ChatMessage
from .common import PromptCost, TokenUsage

class PromptStatus(str, Enum):
    """Outward-facing status of a prompt call."""
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    API_ERROR = "api_error"
    RATE_LIMIT_ERROR = "rate_limit_error"
    TIMEOUT_ERROR = "timeout_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN_ERROR = "unknown_error"

@dataclass
class PromptInput:
    """A single prompt request.

    Attributes:
        input: User message text, or structured data serialized to JSON.
        model: Overrides the client's default model.
        temperature: Overrides the client's default temperature.
        system_message: Overrides the client's default system message.
        max_tokens: Overrides the client's response token budget.
        output_schema: Pydantic model the response must validate against.
        tools: Function/tool definitions for function calling.
        tool_choice: 'auto', 'none', or a specific tool selection.
        images: Image URLs for vision-capable models.
        messages: Prior conversation history.
    """
    input: Any
    model: Optional[str] = None
    temperature: Optional[float] = None
    system_message: Optional[str] = None
    max_tokens: Optional[int] = None
    output_schema: Optional[Type[BaseModel]] = None
    tools: Optional[List[Dict[str, Any]]] = None
    tool_choice: Optional[Any] = None
    images: Optional[List[str]] = None
    messages: Optional[List[ChatMessage]] = None

@dataclass
class PromptResponse:
    """Result of a prompt call. Never raised, always returned."""
    status: PromptStatus
    input: PromptInput
    content: Any = ""
    structured_output: Optional[Any] = None
    tool_calls: Optional[List[Any]] = None
    usage: Optional[TokenUsage] = None
    cost: Optional[PromptCost] = None
    model: str = ""
    finish_reason: Optional[str] = None
    raw: Optional[Any] = None
    error: Optional[str] = None
    latency_ms: Optional[float] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.status is PromptStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view of the response (without the raw SDK object)."""
        structured = self.structured_output
        if isinstance(structured, BaseModel):
            structured = structured.model_dump()
        content = self.content
        if isinstance(content, BaseModel):
            content = content.model_dump()
        return {
            "status": self.status.value,
            "content": content,
            "structured_output": structured,
            "usage": dict(self.usage) if self.usage else None,
            "cost": dict(self.cost) if self.cost else None,
            "model": self.model,
            "finish_reason": self.finish_reason,
            "error": self.error,
            "latency_ms": self.latency_ms,
            "attempts": self.attempts,
        }
