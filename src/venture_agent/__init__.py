"""Venture Agent package."""

from .config import RetrievalConfig, Settings

__all__ = ["RetrievalConfig", "Settings"]
