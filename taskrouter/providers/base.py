"""Abstract base class for all tier providers.

Every LLM adapter implements the TierProvider interface. Routing code only
sees this interface and never touches provider SDKs directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from taskrouter.schemas.config import ModelConfig
from taskrouter.schemas.messages import ProviderResult
from taskrouter.schemas.routing import Tier
from taskrouter.schemas.task import Task, TaskContext


class TierProvider(ABC):
    """Abstract interface for the LLM serving one routing tier.

    Initialized from a ModelConfig loaded from the TOML registry. Exposes
    identity, cost info, and a single async invoke() method that all
    providers must implement.
    """

    def __init__(self, tier: Tier, config: ModelConfig) -> None:
        self._tier = tier
        self._config = config

    # ── Identity ──────────────────────────────────────────────

    @property
    def tier(self) -> Tier:
        """Routing tier this provider serves."""
        return self._tier

    @property
    def provider_id(self) -> str:
        """Provider identifier (e.g. 'google', 'anthropic', 'deepseek')."""
        return self._config.provider

    @property
    def model_id(self) -> str:
        """LiteLLM model identifier used for the call."""
        return self._config.model

    @property
    def display_name(self) -> str:
        """Human-friendly model name for CLI output."""
        return self._config.display_name

    @property
    def context_window(self) -> int:
        """Maximum context window size in tokens."""
        return self._config.context_window

    # ── Cost ──────────────────────────────────────────────────

    @property
    def cost_per_1m_input(self) -> float:
        """Cost per 1M input tokens in USD."""
        return self._config.cost_input

    @property
    def cost_per_1m_output(self) -> float:
        """Cost per 1M output tokens in USD."""
        return self._config.cost_output

    @property
    def config(self) -> ModelConfig:
        """The full ModelConfig backing this provider."""
        return self._config

    # ── Core interface ────────────────────────────────────────

    @abstractmethod
    async def invoke(self, task: Task | str, context: TaskContext) -> ProviderResult:
        """Send the task to the model and return its response.

        This is the only method a provider must implement. It must raise on
        any transport or API failure and never return a partial success.

        Args:
            task: Plain text or a structured Task.
            context: Call context (history, role, guidelines, overrides).

        Returns:
            A ProviderResult with ``content`` and ``model`` populated.

        Raises:
            TimeoutError: If the model call times out.
            RuntimeError: If the model call fails.
        """

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate the USD cost for a given token count.

        Args:
            prompt_tokens: Number of input tokens.
            completion_tokens: Number of output tokens.

        Returns:
            Estimated cost in USD.
        """
        input_cost = (prompt_tokens / 1_000_000) * self.cost_per_1m_input
        output_cost = (completion_tokens / 1_000_000) * self.cost_per_1m_output
        return input_cost + output_cost
