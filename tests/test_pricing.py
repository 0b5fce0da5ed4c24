"""
Cost Model Tests
================
Tests for per-message cost estimation and pricing sources.
"""

from decimal import Decimal

import pytest

from backend.core.pricing import CostModel, YamlPricingSource


class TestCostModel:
    """Tests for the token cost model."""

    @pytest.fixture
    def model(self, pricing_rows) -> CostModel:
        return CostModel(pricing_rows, input_token_ratio=Decimal("0.25"))

    def test_split_uses_quarter_input(self, model: CostModel):
        """Test that a token total splits 25% input / 75% output."""
        assert model.split_tokens(1000) == (250, 750)

    def test_split_truncates_each_share(self, model: CostModel):
        """Test that fractional token shares are truncated independently."""
        assert model.split_tokens(3) == (0, 2)

    def test_hundred_messages_cost(self, model: CostModel, make_event):
        """Test 100 messages of 1000 tokens at $1/M in, $3/M out."""
        events = [make_event(token_count=1000, model_used="gpt-4o-mini") for _ in range(100)]

        assert model.message_cost(events[0]) == Decimal("0.0025")
        assert model.total_cost(events) == Decimal("0.25")

    def test_missing_token_count_costs_zero(self, model: CostModel, make_event):
        """Test that a message without a token count contributes nothing."""
        event = make_event(token_count=None)
        assert model.message_cost(event) == Decimal("0")

    def test_unpriced_model_costs_zero(self, model: CostModel, make_event):
        """Test that a model without a pricing row contributes nothing."""
        event = make_event(model_used="unknown-model")
        assert model.message_cost(event) == Decimal("0")

    def test_cost_is_linear_in_tokens(self, model: CostModel):
        """Test that doubling the tokens doubles the cost."""
        single = model.calculate_cost("gpt-4o-mini", 4000)
        double = model.calculate_cost("gpt-4o-mini", 8000)

        assert single > 0
        assert double == single * 2

    def test_cost_is_decimal(self, model: CostModel):
        """Test that costs are Decimal, not float."""
        assert isinstance(model.calculate_cost("claude-3-haiku", 1000), Decimal)

    def test_custom_ratio(self, pricing_rows):
        """Test that the input ratio is configurable."""
        model = CostModel(pricing_rows, input_token_ratio=Decimal("0.5"))
        # 500/1e6 * 1 + 500/1e6 * 3
        assert model.calculate_cost("gpt-4o-mini", 1000) == Decimal("0.002")

    def test_ratio_out_of_range_rejected(self, pricing_rows):
        """Test that a ratio outside [0, 1] is rejected."""
        with pytest.raises(ValueError):
            CostModel(pricing_rows, input_token_ratio=Decimal("1.5"))

    def test_get_model_pricing(self, model: CostModel):
        """Test pricing lookup by exact model name."""
        assert model.get_model_pricing("gpt-4o-mini").provider == "openai"
        assert model.get_model_pricing("GPT-4O-MINI") is None


class TestYamlPricingSource:
    """Tests for YAML-backed pricing."""

    async def test_loads_active_models(self, tmp_path):
        """Test loading models and skipping inactive ones."""
        config = tmp_path / "pricing.yaml"
        config.write_text(
            "models:\n"
            "  gpt-4o-mini:\n"
            "    provider: openai\n"
            "    input_per_1m: 0.15\n"
            "    output_per_1m: 0.60\n"
            "  gpt-3.5-turbo:\n"
            "    provider: openai\n"
            "    input_per_1m: 0.50\n"
            "    output_per_1m: 1.50\n"
            "    active: false\n"
        )

        models = await YamlPricingSource(str(config)).get_active_models()

        assert [m.model_name for m in models] == ["gpt-4o-mini"]
        assert models[0].input_cost_per_1m == Decimal("0.15")
        assert models[0].output_cost_per_1m == Decimal("0.60")

    async def test_missing_file_prices_nothing(self, tmp_path):
        """Test that a missing config file yields no pricing rows."""
        source = YamlPricingSource(str(tmp_path / "missing.yaml"))
        assert await source.get_active_models() == []

    async def test_reload_picks_up_changes(self, tmp_path):
        """Test that reload re-reads the file."""
        config = tmp_path / "pricing.yaml"
        config.write_text("models: {}\n")
        source = YamlPricingSource(str(config))
        assert await source.get_active_models() == []

        config.write_text("models:\n  m:\n    provider: p\n    input_per_1m: 1\n    output_per_1m: 2\n")
        source.reload()

        models = await source.get_active_models()
        assert models[0].model_name == "m"
        assert models[0].output_cost_per_1m == Decimal("2")
