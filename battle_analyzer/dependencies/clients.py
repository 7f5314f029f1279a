"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from battle_analyzer.clients import ClaudeClient
from battle_analyzer.core.config import get_settings
from battle_analyzer.services import InferenceProxy, InMemoryQuotaGovernor


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_claude_client() -> ClaudeClient:
    """Provide the upstream inference client."""
    settings = _settings()
    return ClaudeClient(settings.anthropic)


@lru_cache()
def get_quota_governor() -> InMemoryQuotaGovernor:
    """Provide the process-wide quota governor; it lives as long as the process."""
    settings = _settings()
    return InMemoryQuotaGovernor(settings.quota)


def get_inference_proxy() -> InferenceProxy:
    """Build the quota-governed proxy around the shared client and governor."""
    return InferenceProxy(get_claude_client(), get_quota_governor())


__all__ = [
    "get_claude_client",
    "get_inference_proxy",
    "get_quota_governor",
]
