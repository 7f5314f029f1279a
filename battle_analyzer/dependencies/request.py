"""
Per-request FastAPI dependencies: settings and the caller's client identifier.
"""

from functools import lru_cache

from fastapi import Request

from battle_analyzer.core.config import AppSettings, get_settings

UNKNOWN_CLIENT = "unknown"


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


def get_client_id(request: Request) -> str:
    """Identify the caller for rate limiting.

    Prefers the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer. Headers are trusted as-is; deploy behind a proxy that sets
    them.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


__all__ = ["get_app_settings", "get_client_id"]
