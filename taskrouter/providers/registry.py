"""Model registry and TOML configuration loader.

Loads the per-tier model definitions from models.toml and the router
defaults from defaults.toml, and builds the static tier-to-provider table
the TaskRouter dispatches through.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from taskrouter.providers.base import TierProvider
from taskrouter.providers.litellm_provider import LiteLLMProvider, ReasoningProvider
from taskrouter.routing.engine import REASONING_TIER
from taskrouter.schemas.config import ModelConfig, RouterConfig
from taskrouter.schemas.routing import ThresholdTable, Tier

# Default config directory relative to the taskrouter package
_CONFIG_DIR = Path(__file__).parent.parent / "config"


def load_models(config_path: Path | None = None) -> dict[str, ModelConfig]:
    """Load the model registry from a TOML file.

    Args:
        config_path: Path to models.toml. Defaults to taskrouter/config/models.toml.

    Returns:
        Dictionary mapping tier keys to ModelConfig instances.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid.
    """
    path = config_path or _CONFIG_DIR / "models.toml"
    if not path.exists():
        raise FileNotFoundError(f"Model registry not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    models_section = raw.get("models")
    if not models_section or not isinstance(models_section, dict):
        raise ValueError(f"No [models] section found in {path}")

    return {
        key: ModelConfig(**entry)
        for key, entry in models_section.items()
        if isinstance(entry, dict)
    }


def load_router_config(config_path: Path | None = None) -> RouterConfig:
    """Load router defaults from a TOML file.

    Args:
        config_path: Path to defaults.toml. Defaults to taskrouter/config/defaults.toml.

    Returns:
        RouterConfig with values from the TOML file; missing keys keep
        their model defaults.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Router config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    router_section = dict(raw.get("router", {}))
    thresholds = ThresholdTable(**router_section.pop("thresholds", {}))
    return RouterConfig(**router_section, thresholds=thresholds)


def build_providers(
    registry: dict[str, ModelConfig],
    *,
    timeout: int = 120,
) -> dict[Tier, TierProvider]:
    """Build the static tier-to-provider table from a loaded registry.

    The reasoning tier gets a ReasoningProvider; every other tier a plain
    LiteLLMProvider.

    Args:
        registry: Model registry keyed by tier label.
        timeout: Transport timeout in seconds passed to each provider.

    Returns:
        Mapping of every Tier to its provider.

    Raises:
        ValueError: If the registry has no entry for some tier.
    """
    missing = [tier.value for tier in Tier if tier.value not in registry]
    if missing:
        raise ValueError(f"Model registry has no entry for tier(s): {', '.join(missing)}")

    providers: dict[Tier, TierProvider] = {}
    for tier in Tier:
        cls = ReasoningProvider if tier is REASONING_TIER else LiteLLMProvider
        providers[tier] = cls(tier, registry[tier.value], timeout=timeout)
    return providers
