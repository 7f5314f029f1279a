"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "ANTHROPIC_API_KEY": "test-anthropic-key",
    "ANTHROPIC_BASE_URL": "https://inference.test",
    "APP_ENV": "test",
    "DAILY_LIMIT": "50",
    "RATE_LIMIT_MAX_REQUESTS": "5",
    "RATE_LIMIT_WINDOW_SECONDS": "60",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
