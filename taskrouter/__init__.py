"""taskrouter — complexity-based routing of tasks across LLM provider tiers."""

__version__ = "0.1.0"
