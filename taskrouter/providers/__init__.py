"""Tier providers and the TOML-backed model registry."""

from taskrouter.providers.base import TierProvider
from taskrouter.providers.litellm_provider import (
    LiteLLMProvider,
    ReasoningProvider,
    parse_reasoning_response,
)

__all__ = [
    "LiteLLMProvider",
    "ReasoningProvider",
    "TierProvider",
    "parse_reasoning_response",
]
