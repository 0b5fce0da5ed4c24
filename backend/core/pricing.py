"""
Token Cost Engine
=================
Estimated USD cost of chat messages from per-million-token model pricing.

Chat events carry a single total token count, not a prompt/completion
split. The engine splits that total with a fixed input ratio (default
25% input / 75% output) before applying the two rates. This ratio and
the zero-cost policy for messages without a token count or without a
pricing row are the dominant sources of estimate error: unpriced models
and untokenized messages are undercounted, never rejected.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from backend.config import settings
from backend.schemas.events import ChatMessageEvent, ModelPricing

logger = structlog.get_logger()

ONE_MILLION = Decimal("1000000")
COST_QUANTUM = Decimal("0.0000000001")
ZERO = Decimal("0")


class CostModel:
    """
    Per-message cost estimator over a fixed pricing snapshot.

    Pricing is keyed by exact model name; a model with no row costs 0.
    """

    def __init__(
        self,
        pricing: Iterable[ModelPricing],
        input_token_ratio: Optional[Decimal] = None,
    ):
        ratio = settings.input_token_ratio if input_token_ratio is None else Decimal(input_token_ratio)
        if not ZERO <= ratio <= Decimal("1"):
            raise ValueError(f"input_token_ratio must be within [0, 1], got {ratio}")
        self.input_token_ratio = ratio
        self.output_token_ratio = Decimal("1") - ratio
        self._pricing: dict[str, ModelPricing] = {p.model_name: p for p in pricing}

    @property
    def pricing(self) -> Mapping[str, ModelPricing]:
        return self._pricing

    def get_model_pricing(self, model: str) -> Optional[ModelPricing]:
        """Pricing row for a model, or None when unpriced."""
        return self._pricing.get(model)

    def split_tokens(self, total_tokens: int) -> tuple[int, int]:
        """
        Split a total token count into (input, output) shares.

        Each share is truncated to a whole token independently.
        """
        input_tokens = int(Decimal(total_tokens) * self.input_token_ratio)
        output_tokens = int(Decimal(total_tokens) * self.output_token_ratio)
        return input_tokens, output_tokens

    def calculate_cost(self, model: str, total_tokens: Optional[int]) -> Decimal:
        """
        Calculate cost for a token total billed against a model.

        Returns:
            Cost in USD; 0 when the token count or pricing row is missing
        """
        if total_tokens is None:
            return ZERO
        pricing = self._pricing.get(model)
        if pricing is None:
            return ZERO

        input_tokens, output_tokens = self.split_tokens(total_tokens)
        input_cost = (Decimal(input_tokens) / ONE_MILLION) * pricing.input_cost_per_1m
        output_cost = (Decimal(output_tokens) / ONE_MILLION) * pricing.output_cost_per_1m
        return (input_cost + output_cost).quantize(COST_QUANTUM)

    def message_cost(self, message: ChatMessageEvent) -> Decimal:
        """Estimated cost of a single chat message."""
        return self.calculate_cost(message.model_used, message.token_count)

    def total_cost(self, messages: Iterable[ChatMessageEvent]) -> Decimal:
        """Sum of per-message costs."""
        return sum((self.message_cost(m) for m in messages), ZERO)


class YamlPricingSource:
    """
    Pricing rows loaded from a YAML file.

    Expected layout::

        models:
          gpt-4o-mini:
            provider: openai
            input_per_1m: 0.15
            output_per_1m: 0.60
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or settings.pricing_config_path
        self._pricing_data: dict[str, Any] = {}
        self._load_pricing()

    def _load_pricing(self) -> None:
        """Load pricing configuration from YAML file."""
        config_file = Path(self.config_path)

        if not config_file.exists():
            logger.warning("Pricing config not found, no models priced", path=self.config_path)
            self._pricing_data = {}
            return

        with open(config_file) as f:
            self._pricing_data = yaml.safe_load(f) or {}
        logger.info("Loaded pricing configuration", path=self.config_path)

    def reload(self) -> None:
        """Reload pricing configuration from file."""
        self._load_pricing()

    async def get_active_models(self) -> list[ModelPricing]:
        models = []
        for model_name, pricing in (self._pricing_data.get("models") or {}).items():
            if not isinstance(pricing, dict) or not pricing.get("active", True):
                continue
            models.append(
                ModelPricing(
                    model_name=model_name,
                    provider=str(pricing.get("provider", "")),
                    input_cost_per_1m=Decimal(str(pricing.get("input_per_1m", 0))),
                    output_cost_per_1m=Decimal(str(pricing.get("output_per_1m", 0))),
                )
            )
        return sorted(models, key=lambda m: m.model_name)
