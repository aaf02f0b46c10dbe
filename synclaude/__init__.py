"""Synclaude - model catalog selection and settings for Claude Code."""

__version__ = "1.0.0"

__all__ = ["__version__"]
