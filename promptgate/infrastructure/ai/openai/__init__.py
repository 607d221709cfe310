"""OpenAI provider adapter and model registry."""

from promptgate.infrastructure.ai.openai.gpt_client import OpenAICompletionProvider
from promptgate.infrastructure.ai.openai.model_registry import OPENAI_MODEL_REGISTRY, ModelRegistry

__all__ = ["OPENAI_MODEL_REGISTRY", "ModelRegistry", "OpenAICompletionProvider"]
