"""Configuration schemas for the model registry and the router.

ModelConfig entries are loaded from models.toml, one per routing tier.
RouterConfig holds the defaults.toml values: threshold table, per-call
deadline, session persistence and chat history settings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from taskrouter.schemas.routing import ThresholdTable


class ModelConfig(BaseModel):
    """Configuration for the LLM behind one routing tier.

    Loaded from models.toml. Each entry provides the LiteLLM routing
    information, sampling defaults, cost data and transport retry budget.
    """

    provider: str = Field(description="Provider identifier (e.g. 'google', 'anthropic', 'deepseek')")
    model: str = Field(description="LiteLLM model identifier (e.g. 'gemini/gemini-1.5-flash')")
    display_name: str = Field(description="Human-friendly model name for CLI output")
    api_key_env: str = Field(description="Environment variable name holding the API key")
    api_base: str = Field(default="", description="Custom API base URL (empty = provider default)")
    context_window: int = Field(gt=0, description="Maximum context window size in tokens")
    temperature: float = Field(
        default=0.7, ge=0.0, le=2.0, description="Default sampling temperature",
    )
    max_tokens: int = Field(default=4096, gt=0, description="Default output token cap")
    supports_structured: bool = Field(
        default=False, description="Whether the model supports JSON response format",
    )
    cost_input: float = Field(ge=0.0, description="Cost per 1M input tokens in USD")
    cost_output: float = Field(ge=0.0, description="Cost per 1M output tokens in USD")
    max_retries: int = Field(
        default=3, ge=1, le=5,
        description="Transport attempts per invocation for transient errors",
    )


class RouterConfig(BaseModel):
    """Top-level router configuration.

    Loaded from defaults.toml and overridden by CLI flags.
    """

    thresholds: ThresholdTable = Field(
        default_factory=ThresholdTable, description="Base complexity thresholds",
    )
    invoke_timeout: int = Field(
        default=120, gt=0, description="Deadline in seconds for a single provider invocation",
    )
    persist_sessions: bool = Field(
        default=True, description="Whether chat sessions are persisted to SQLite",
    )
    session_db_path: str = Field(
        default="~/.taskrouter/sessions.db", description="Path to the session database file",
    )
    documents_dir: str = Field(
        default="~/.taskrouter/documents",
        description="Directory where the local document creator writes documents",
    )
    history_window: int = Field(
        default=6, ge=0, description="Number of recent messages sent as chat history",
    )
    history_truncate: int = Field(
        default=500, gt=0, description="Max characters kept per history message",
    )
