"""Expose constructed client wrappers."""

from .analyzer_api import AnalyzerApiClient
from .claude import ClaudeClient

__all__ = [
    "AnalyzerApiClient",
    "ClaudeClient",
]
