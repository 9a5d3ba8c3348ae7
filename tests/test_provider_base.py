"""Tests for taskrouter.providers.base — TierProvider ABC."""

import pytest

from taskrouter.providers.base import TierProvider
from taskrouter.schemas.config import ModelConfig
from taskrouter.schemas.messages import ProviderResult
from taskrouter.schemas.routing import Tier


def _make_config(**overrides) -> ModelConfig:
    """Helper to create a ModelConfig with sensible defaults."""
    defaults = {
        "provider": "test",
        "model": "test/test-model-v1",
        "display_name": "Test Model",
        "api_key_env": "TEST_API_KEY",
        "context_window": 128000,
        "cost_input": 3.00,
        "cost_output": 15.00,
    }
    defaults.update(overrides)
    return ModelConfig(**defaults)


class ConcreteProvider(TierProvider):
    """Minimal concrete implementation for testing the ABC."""

    async def invoke(self, task, context):
        return ProviderResult(content="test", model=self.model_id)


class TestTierProviderProperties:
    def test_identity_properties(self):
        provider = ConcreteProvider(Tier.GEMINI_PRO, _make_config())
        assert provider.tier is Tier.GEMINI_PRO
        assert provider.provider_id == "test"
        assert provider.model_id == "test/test-model-v1"
        assert provider.display_name == "Test Model"
        assert provider.context_window == 128000

    def test_cost_properties(self):
        provider = ConcreteProvider(
            Tier.GEMINI_PRO, _make_config(cost_input=2.50, cost_output=10.00),
        )
        assert provider.cost_per_1m_input == 2.50
        assert provider.cost_per_1m_output == 10.00

    def test_config_property(self):
        config = _make_config()
        provider = ConcreteProvider(Tier.CLAUDE_OPUS, config)
        assert provider.config is config


class TestCalculateCost:
    def test_basic_cost_calculation(self):
        provider = ConcreteProvider(Tier.CLAUDE_SONNET, _make_config())
        # 1000/1M * 3.00 + 500/1M * 15.00
        cost = provider.calculate_cost(1000, 500)
        assert abs(cost - 0.0105) < 1e-10

    def test_zero_tokens(self):
        provider = ConcreteProvider(Tier.CLAUDE_SONNET, _make_config())
        assert provider.calculate_cost(0, 0) == 0.0

    def test_large_token_count(self):
        provider = ConcreteProvider(
            Tier.CLAUDE_OPUS, _make_config(cost_input=15.00, cost_output=75.00),
        )
        cost = provider.calculate_cost(1_000_000, 1_000_000)
        assert abs(cost - 90.0) < 1e-10


class TestAbstractEnforcement:
    def test_cannot_instantiate_abc_directly(self):
        with pytest.raises(TypeError):
            TierProvider(Tier.GEMINI_FLASH, _make_config())
