"""AI chat backend: multi-provider generation router with graceful fallback."""

__version__ = "0.1.0"
