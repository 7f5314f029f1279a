"""Expose dependency helpers for FastAPI routers."""

from .clients import get_claude_client, get_inference_proxy, get_quota_governor
from .request import get_app_settings, get_client_id

__all__ = [
    "get_app_settings",
    "get_claude_client",
    "get_client_id",
    "get_inference_proxy",
    "get_quota_governor",
]
