"""Registry of OpenAI chat models: capabilities, context windows and pricing.

The table is static data; `ModelRegistry` answers lookups over it (feature
support, cheapest model meeting requirements, cost estimates, comparisons).

Pricing source: https://openai.com/api/pricing/ (USD per 1M tokens).
"""

import logging
from typing import Dict, List, Optional, Union

from promptgate.domain.exceptions import ModelNotFoundError
from promptgate.domain.models.ai import (
    ModelComparison,
    ModelMetadata,
    ModelPricing,
    ModelTier,
    OpenAIModel,
    PricingDifference,
    PricingTier,
)
from promptgate.domain.models.common import PromptCost

logger = logging.getLogger(__name__)

TOKENS_PER_MILLION = 1_000_000

_GPT_3_5_USES = ["general chat", "simple tasks", "cost-sensitive applications"]
_GPT_4_TURBO_USES = ["complex analysis", "structured outputs", "large documents", "vision tasks"]
_GPT_4O_USES = ["production APIs", "structured outputs", "general purpose", "vision tasks"]
_GPT_4O_MINI_USES = ["development", "testing", "simple tasks", "cost optimization"]
_O1_PREVIEW_USES = ["complex reasoning", "mathematics", "scientific problems", "code generation"]
_O1_MINI_USES = ["coding", "mathematics", "STEM problems", "cost-sensitive reasoning"]
_O1_USES = ["complex reasoning", "research", "advanced problem-solving", "mathematics"]

def _entry(model: OpenAIModel, display_name: str, description: str, *, structured: bool,
           context: int, tier: ModelTier, pricing_tier: PricingTier, price_in: float,
           price_out: float, vision: bool, tools: bool, cutoff: Optional[str],
           released: Optional[str] = None, uses: Optional[List[str]] = None) -> ModelMetadata:
    return ModelMetadata(
        model=model,
        display_name=display_name,
        description=description,
        supports_structured_output=structured,
        context_window=context,
        tier=tier,
        pricing_tier=pricing_tier,
        pricing=ModelPricing(input_per_1m=price_in, output_per_1m=price_out),
        supports_vision=vision,
        supports_function_calling=tools,
        knowledge_cutoff=cutoff,
        release_date=released,
        recommended_for=list(uses or []),
    )

OPENAI_MODEL_REGISTRY: Dict[OpenAIModel, ModelMetadata] = {
    # GPT-3.5
    OpenAIModel.GPT_3_5_TURBO: _entry(
        OpenAIModel.GPT_3_5_TURBO, "GPT-3.5 Turbo",
        "Standard GPT-3.5 model, good for general chat and completions",
        structured=True, context=16385, tier=ModelTier.GPT_3_5, pricing_tier=PricingTier.LOW,
        price_in=0.50, price_out=1.50, vision=False, tools=True,
        cutoff="September 2021", uses=_GPT_3_5_USES),
    OpenAIModel.GPT_3_5_TURBO_0125: _entry(
        OpenAIModel.GPT_3_5_TURBO_0125, "GPT-3.5 Turbo (Jan 2024)",
        "Snapshot of GPT-3.5 from January 2024",
        structured=True, context=16385, tier=ModelTier.GPT_3_5, pricing_tier=PricingTier.LOW,
        price_in=0.50, price_out=1.50, vision=False, tools=True,
        cutoff="September 2021", released="2024-01-25", uses=_GPT_3_5_USES),
    # GPT-4
    OpenAIModel.GPT_4: _entry(
        OpenAIModel.GPT_4, "GPT-4",
        "Original GPT-4 model, very capable but slower than newer models",
        structured=False, context=8192, tier=ModelTier.GPT_4, pricing_tier=PricingTier.VERY_HIGH,
        price_in=30.00, price_out=60.00, vision=False, tools=True,
        cutoff="September 2021", uses=["complex reasoning", "high-quality outputs"]),
    # GPT-4 Turbo
    OpenAIModel.GPT_4_TURBO: _entry(
        OpenAIModel.GPT_4_TURBO, "GPT-4 Turbo",
        "Latest GPT-4 Turbo with structured output support and large context window",
        structured=True, context=128000, tier=ModelTier.GPT_4_TURBO, pricing_tier=PricingTier.HIGH,
        price_in=10.00, price_out=30.00, vision=True, tools=True,
        cutoff="December 2023", uses=_GPT_4_TURBO_USES),
    OpenAIModel.GPT_4_TURBO_PREVIEW: _entry(
        OpenAIModel.GPT_4_TURBO_PREVIEW, "GPT-4 Turbo Preview",
        "Preview version of GPT-4 Turbo",
        structured=True, context=128000, tier=ModelTier.GPT_4_TURBO, pricing_tier=PricingTier.HIGH,
        price_in=10.00, price_out=30.00, vision=True, tools=True,
        cutoff="December 2023", uses=_GPT_4_TURBO_USES[:3]),
    OpenAIModel.GPT_4_TURBO_2024_04_09: _entry(
        OpenAIModel.GPT_4_TURBO_2024_04_09, "GPT-4 Turbo (April 2024)",
        "Snapshot of GPT-4 Turbo from April 2024",
        structured=True, context=128000, tier=ModelTier.GPT_4_TURBO, pricing_tier=PricingTier.HIGH,
        price_in=10.00, price_out=30.00, vision=True, tools=True,
        cutoff="December 2023", released="2024-04-09", uses=_GPT_4_TURBO_USES),
    # GPT-4o
    OpenAIModel.GPT_4O: _entry(
        OpenAIModel.GPT_4O, "GPT-4o",
        "OpenAI's omni model with best performance-to-cost ratio",
        structured=True, context=128000, tier=ModelTier.GPT_4O, pricing_tier=PricingTier.MEDIUM,
        price_in=2.50, price_out=10.00, vision=True, tools=True,
        cutoff="October 2023", uses=_GPT_4O_USES),
    OpenAIModel.GPT_4O_2024_05_13: _entry(
        OpenAIModel.GPT_4O_2024_05_13, "GPT-4o (May 2024)",
        "Original GPT-4o release snapshot",
        structured=True, context=128000, tier=ModelTier.GPT_4O, pricing_tier=PricingTier.MEDIUM,
        price_in=5.00, price_out=15.00, vision=True, tools=True,
        cutoff="October 2023", released="2024-05-13", uses=_GPT_4O_USES),
    OpenAIModel.GPT_4O_2024_08_06: _entry(
        OpenAIModel.GPT_4O_2024_08_06, "GPT-4o (August 2024)",
        "Updated GPT-4o snapshot with improved structured outputs",
        structured=True, context=128000, tier=ModelTier.GPT_4O, pricing_tier=PricingTier.MEDIUM,
        price_in=2.50, price_out=10.00, vision=True, tools=True,
        cutoff="October 2023", released="2024-08-06", uses=_GPT_4O_USES),
    OpenAIModel.GPT_4O_MINI: _entry(
        OpenAIModel.GPT_4O_MINI, "GPT-4o Mini",
        "Smaller, cheaper version of GPT-4o for simpler tasks",
        structured=True, context=128000, tier=ModelTier.GPT_4O, pricing_tier=PricingTier.LOW,
        price_in=0.15, price_out=0.60, vision=True, tools=True,
        cutoff="October 2023", uses=_GPT_4O_MINI_USES),
    OpenAIModel.GPT_4O_MINI_2024_07_18: _entry(
        OpenAIModel.GPT_4O_MINI_2024_07_18, "GPT-4o Mini (July 2024)",
        "Snapshot of GPT-4o Mini from July 2024",
        structured=True, context=128000, tier=ModelTier.GPT_4O, pricing_tier=PricingTier.LOW,
        price_in=0.15, price_out=0.60, vision=True, tools=True,
        cutoff="October 2023", released="2024-07-18", uses=_GPT_4O_MINI_USES),
    # o1 reasoning models (no function calling)
    OpenAIModel.O1_PREVIEW: _entry(
        OpenAIModel.O1_PREVIEW, "o1 Preview",
        "Reasoning model optimized for complex problem-solving (no streaming or function calling)",
        structured=True, context=128000, tier=ModelTier.O1, pricing_tier=PricingTier.VERY_HIGH,
        price_in=15.00, price_out=60.00, vision=True, tools=False,
        cutoff="October 2023", released="2024-09-12", uses=_O1_PREVIEW_USES),
    OpenAIModel.O1_PREVIEW_2024_09_12: _entry(
        OpenAIModel.O1_PREVIEW_2024_09_12, "o1 Preview (September 2024)",
        "Snapshot of o1 preview from September 2024",
        structured=True, context=128000, tier=ModelTier.O1, pricing_tier=PricingTier.VERY_HIGH,
        price_in=15.00, price_out=60.00, vision=True, tools=False,
        cutoff="October 2023", released="2024-09-12", uses=_O1_PREVIEW_USES),
    OpenAIModel.O1_MINI: _entry(
        OpenAIModel.O1_MINI, "o1 Mini",
        "Faster, cheaper reasoning model for STEM tasks (no streaming or function calling)",
        structured=True, context=128000, tier=ModelTier.O1, pricing_tier=PricingTier.HIGH,
        price_in=3.00, price_out=12.00, vision=True, tools=False,
        cutoff="October 2023", released="2024-09-12", uses=_O1_MINI_USES),
    OpenAIModel.O1_MINI_2024_09_12: _entry(
        OpenAIModel.O1_MINI_2024_09_12, "o1 Mini (September 2024)",
        "Snapshot of o1 mini from September 2024",
        structured=True, context=128000, tier=ModelTier.O1, pricing_tier=PricingTier.HIGH,
        price_in=3.00, price_out=12.00, vision=True, tools=False,
        cutoff="October 2023", released="2024-09-12", uses=_O1_MINI_USES),
    OpenAIModel.O1: _entry(
        OpenAIModel.O1, "o1",
        "Full o1 reasoning model with enhanced capabilities (no streaming or function calling)",
        structured=True, context=200000, tier=ModelTier.O1, pricing_tier=PricingTier.VERY_HIGH,
        price_in=15.00, price_out=60.00, vision=True, tools=False,
        cutoff="October 2023", released="2024-12-17", uses=_O1_USES),
    OpenAIModel.O1_2024_12_17: _entry(
        OpenAIModel.O1_2024_12_17, "o1 (December 2024)",
        "Snapshot of o1 from December 2024",
        structured=True, context=200000, tier=ModelTier.O1, pricing_tier=PricingTier.VERY_HIGH,
        price_in=15.00, price_out=60.00, vision=True, tools=False,
        cutoff="October 2023", released="2024-12-17", uses=_O1_USES),
}

FEATURES = ("vision", "function_calling", "structured_output")

class ModelRegistry:
    """Read-only queries over the model table."""

    def __init__(self, registry: Optional[Dict[OpenAIModel, ModelMetadata]] = None):
        self._registry = registry if registry is not None else OPENAI_MODEL_REGISTRY

    def get_model_metadata(self, model: Union[OpenAIModel, str]) -> ModelMetadata:
        """Returns the metadata for a model id.

        Raises:
            ModelNotFoundError: If the model is not in the registry.
        """
        try:
            key = OpenAIModel(model)
        except ValueError:
            raise ModelNotFoundError(str(model)) from None
        metadata = self._registry.get(key)
        if metadata is None:
            raise ModelNotFoundError(key.value)
        return metadata

    def has_model(self, model: Union[OpenAIModel, str]) -> bool:
        try:
            self.get_model_metadata(model)
        except ModelNotFoundError:
            return False
        return True

    def get_all_models(self) -> List[OpenAIModel]:
        return list(self._registry.keys())

    def get_models_by_tier(self, tier: Union[ModelTier, str]) -> List[ModelMetadata]:
        return [m for m in self._registry.values() if m.tier == tier]

    def get_models_by_pricing_tier(self, pricing_tier: Union[PricingTier, str]) -> List[ModelMetadata]:
        return [m for m in self._registry.values() if m.pricing_tier == pricing_tier]

    def get_vision_models(self) -> List[ModelMetadata]:
        return [m for m in self._registry.values() if m.supports_vision]

    def get_function_calling_models(self) -> List[ModelMetadata]:
        return [m for m in self._registry.values() if m.supports_function_calling]

    def get_structured_output_models(self) -> List[ModelMetadata]:
        return [m for m in self._registry.values() if m.supports_structured_output]

    def supports_feature(self, model: Union[OpenAIModel, str], feature: str) -> bool:
        """Checks one of 'vision', 'function_calling' or 'structured_output'."""
        metadata = self.get_model_metadata(model)
        if feature not in FEATURES:
            return False
        return getattr(metadata, f"supports_{feature}")

    def get_recommended_models(self, use_case: str) -> List[ModelMetadata]:
        """Models whose recommended uses mention `use_case` (case-insensitive)."""
        needle = use_case.lower()
        return [
            m for m in self._registry.values()
            if any(needle in rec.lower() for rec in m.recommended_for)
        ]

    def get_cheapest_model(
        self,
        supports_vision: bool = False,
        supports_function_calling: bool = False,
        supports_structured_output: bool = False,
        min_context_window: Optional[int] = None,
    ) -> Optional[ModelMetadata]:
        """Cheapest model (by average per-1M price) meeting all requirements."""
        candidates = list(self._registry.values())
        if supports_vision:
            candidates = [m for m in candidates if m.supports_vision]
        if supports_function_calling:
            candidates = [m for m in candidates if m.supports_function_calling]
        if supports_structured_output:
            candidates = [m for m in candidates if m.supports_structured_output]
        if min_context_window is not None:
            candidates = [m for m in candidates if m.context_window >= min_context_window]

        if not candidates:
            return None
        return min(candidates, key=lambda m: m.pricing.average_per_1m)

    def get_models_sorted_by_price(self) -> List[ModelMetadata]:
        return sorted(self._registry.values(), key=lambda m: m.pricing.average_per_1m)

    def calculate_cost(self, model: Union[OpenAIModel, str], input_tokens: int, output_tokens: int) -> PromptCost:
        """Estimated USD cost of a completion from its token counts."""
        pricing = self.get_model_metadata(model).pricing
        input_cost = (input_tokens / TOKENS_PER_MILLION) * pricing.input_per_1m
        output_cost = (output_tokens / TOKENS_PER_MILLION) * pricing.output_per_1m
        return PromptCost(
            input_cost=input_cost,
            output_cost=output_cost,
            total_cost=input_cost + output_cost,
        )

    def compare_models(self, model1: Union[OpenAIModel, str], model2: Union[OpenAIModel, str]) -> ModelComparison:
        meta1 = self.get_model_metadata(model1)
        meta2 = self.get_model_metadata(model2)

        features = []
        if meta1.supports_vision != meta2.supports_vision:
            features.append("vision")
        if meta1.supports_function_calling != meta2.supports_function_calling:
            features.append("function calling")
        if meta1.supports_structured_output != meta2.supports_structured_output:
            features.append("structured output")

        input_difference = meta1.pricing.input_per_1m - meta2.pricing.input_per_1m
        output_difference = meta1.pricing.output_per_1m - meta2.pricing.output_per_1m
        input_pct = (input_difference / meta2.pricing.input_per_1m * 100) if meta2.pricing.input_per_1m else 0.0
        output_pct = (output_difference / meta2.pricing.output_per_1m * 100) if meta2.pricing.output_per_1m else 0.0

        return ModelComparison(
            model1=meta1,
            model2=meta2,
            context_window_difference=meta1.context_window - meta2.context_window,
            pricing=PricingDifference(
                input_difference=input_difference,
                output_difference=output_difference,
                input_percentage_difference=input_pct,
                output_percentage_difference=output_pct,
            ),
            pricing_tier=f"{meta1.pricing_tier.value} vs {meta2.pricing_tier.value}",
            features=features,
        )
