"""Themes, mode prompts and chat providers for a local-first coding assistant."""

__version__ = "0.1.0"