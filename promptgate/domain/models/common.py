"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like message roles,
token counts and usage records, ensuring consistency and type safety.
"""

from typing import Any, Dict, NewType, TypedDict

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
MessageRole = NewType("MessageRole", str)      # 'system', 'user', 'assistant', 'tool'

# === Token Management ===
TokenCount = NewType("TokenCount", int)        # Number of tokens

# === Request shaping ===
JsonSchema = NewType("JsonSchema", Dict[str, Any])  # OpenAI-compatible JSON schema

# --- Structured Data ---
class TokenUsage(TypedDict):
    """Represents token usage information from an AI call."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

class PromptCost(TypedDict):
    """Estimated cost of a single completion, in USD."""
    input_cost: float
    output_cost: float
    total_cost: float
