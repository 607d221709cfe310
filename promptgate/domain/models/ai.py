"""Domain models related to AI models and their capabilities.

Includes the chat message structure sent upstream and the static metadata
(tier, pricing, context window, feature flags) describing each model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, TypedDict

from .common import MessageRole

# --- AI Interaction Structures ---

class ChatMessage(TypedDict, total=False):
    """Represents a message structure expected by the chat completions API."""
    role: MessageRole
    content: Any  # str, or a list of content parts for vision requests
    name: str
    tool_call_id: str
    tool_calls: List[Any]

# --- Model Representation ---

class ModelTier(str, Enum):
    """Model family/generation."""
    GPT_3_5 = "gpt-3.5"
    GPT_4 = "gpt-4"
    GPT_4_TURBO = "gpt-4-turbo"
    GPT_4O = "gpt-4o"
    O1 = "o1"

class PricingTier(str, Enum):
    """Relative cost bucket."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

class OpenAIModel(str, Enum):
    """Model identifiers accepted by the client."""
    GPT_3_5_TURBO = "gpt-3.5-turbo"
    GPT_3_5_TURBO_0125 = "gpt-3.5-turbo-0125"
    GPT_4 = "gpt-4"
    GPT_4_TURBO = "gpt-4-turbo"
    GPT_4_TURBO_PREVIEW = "gpt-4-turbo-preview"
    GPT_4_TURBO_2024_04_09 = "gpt-4-turbo-2024-04-09"
    GPT_4O = "gpt-4o"
    GPT_4O_2024_05_13 = "gpt-4o-2024-05-13"
    GPT_4O_2024_08_06 = "gpt-4o-2024-08-06"
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4O_MINI_2024_07_18 = "gpt-4o-mini-2024-07-18"
    O1_PREVIEW = "o1-preview"
    O1_PREVIEW_2024_09_12 = "o1-preview-2024-09-12"
    O1_MINI = "o1-mini"
    O1_MINI_2024_09_12 = "o1-mini-2024-09-12"
    O1 = "o1"
    O1_2024_12_17 = "o1-2024-12-17"

@dataclass(frozen=True)
class ModelPricing:
    """Price in USD per one million tokens."""
    input_per_1m: float
    output_per_1m: float

    @property
    def average_per_1m(self) -> float:
        return (self.input_per_1m + self.output_per_1m) / 2

@dataclass(frozen=True)
class ModelMetadata:
    """Static description of a model: capabilities, limits and pricing."""
    model: OpenAIModel
    display_name: str
    description: str
    supports_structured_output: bool
    context_window: int
    tier: ModelTier
    pricing_tier: PricingTier
    pricing: ModelPricing
    supports_vision: bool
    supports_function_calling: bool
    knowledge_cutoff: Optional[str] = None
    release_date: Optional[str] = None
    recommended_for: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class PricingDifference:
    """Pricing delta between two models (first minus second)."""
    input_difference: float
    output_difference: float
    input_percentage_difference: float
    output_percentage_difference: float

@dataclass(frozen=True)
class ModelComparison:
    """Result of comparing two models side by side."""
    model1: ModelMetadata
    model2: ModelMetadata
    context_window_difference: int
    pricing: PricingDifference
    pricing_tier: str
    features: List[str]
