"""Process-local quota governor guarding calls to the inference service.

Two limits apply before any upstream call is made:

1. a sliding per-client window (``rate_limit_max_requests`` admissions per
   ``rate_limit_window_seconds``), and
2. a global daily budget that resets when the UTC calendar date changes.

The state lives in process memory only. Restarting the process, or running
several instances, loses or splits the counters; callers treat the limits as
best-effort rather than exact. The ``QuotaGovernor`` protocol is the seam for
swapping in a networked store with atomic increments.
"""

from __future__ import annotations

import enum
import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional, Protocol

from battle_analyzer.core.config import QuotaSettings

logger = logging.getLogger(__name__)


class QuotaDenialReason(str, enum.Enum):
    RATE_LIMITED = "rate_limited"
    DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"


@dataclass(frozen=True, slots=True)
class AdmissionDecision:
    """Outcome of an admission attempt."""

    allowed: bool
    reason: Optional[QuotaDenialReason] = None
    retry_after_seconds: Optional[int] = None

    @classmethod
    def admitted(cls) -> "AdmissionDecision":
        return cls(allowed=True)


@dataclass(frozen=True, slots=True)
class UsageSnapshot:
    """Daily usage figures attached to successful proxy responses."""

    requests_today: int
    daily_limit: int
    remaining: int

    def as_dict(self) -> dict[str, int]:
        return {
            "requests_today": self.requests_today,
            "daily_limit": self.daily_limit,
            "remaining": self.remaining,
        }


class QuotaGovernor(Protocol):
    """Check-and-reserve / commit interface in front of the inference service."""

    daily_limit: int

    def admit(self, client_id: str) -> AdmissionDecision:
        """Check both limits and reserve a slot when admitted."""

    def commit(self) -> UsageSnapshot:
        """Count a reserved request against the daily budget after success."""

    def release(self) -> None:
        """Drop a reservation whose upstream call failed."""

    def snapshot(self) -> UsageSnapshot:
        """Return the current daily usage without mutating it."""


def _utc_date(timestamp: float) -> date:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()


class InMemoryQuotaGovernor:
    """Single-process governor; every check-and-mutate runs under one lock."""

    def __init__(
        self,
        settings: QuotaSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.daily_limit = settings.daily_limit
        self.max_requests = settings.rate_limit_max_requests
        self.window_seconds = settings.rate_limit_window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._requests: dict[str, deque[float]] = {}
        self._daily_count = 0
        self._daily_date = _utc_date(clock())
        # Admitted calls that have not committed or released yet. They count
        # against the daily budget so concurrent admissions cannot overshoot it.
        self._in_flight = 0

    def admit(self, client_id: str) -> AdmissionDecision:
        now = self._clock()
        with self._lock:
            window = self._prune(client_id, now)
            if len(window) >= self.max_requests:
                retry_after = max(1, math.ceil(window[0] + self.window_seconds - now))
                logger.info(
                    "Rate limit hit for client %s (%d requests in %.0fs window).",
                    client_id,
                    len(window),
                    self.window_seconds,
                )
                return AdmissionDecision(
                    allowed=False,
                    reason=QuotaDenialReason.RATE_LIMITED,
                    retry_after_seconds=retry_after,
                )

            self._roll_date(now)
            if self._daily_count + self._in_flight >= self.daily_limit:
                logger.info(
                    "Daily limit of %d requests reached; rejecting client %s.",
                    self.daily_limit,
                    client_id,
                )
                return AdmissionDecision(
                    allowed=False,
                    reason=QuotaDenialReason.DAILY_LIMIT_EXCEEDED,
                )

            window.append(now)
            self._requests[client_id] = window
            self._in_flight += 1
            return AdmissionDecision.admitted()

    def commit(self) -> UsageSnapshot:
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)
            self._roll_date(self._clock())
            self._daily_count += 1
            return self._snapshot_locked()

    def release(self) -> None:
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)

    def snapshot(self) -> UsageSnapshot:
        with self._lock:
            self._roll_date(self._clock())
            return self._snapshot_locked()

    def _prune(self, client_id: str, now: float) -> deque[float]:
        window = self._requests.get(client_id)
        if window is None:
            return deque()
        while window and now - window[0] >= self.window_seconds:
            window.popleft()
        if not window:
            # Keep the mapping from growing with one-off clients.
            del self._requests[client_id]
        return window

    def _roll_date(self, now: float) -> None:
        today = _utc_date(now)
        if today != self._daily_date:
            logger.info(
                "Resetting daily counter for %s (was %d on %s).",
                today.isoformat(),
                self._daily_count,
                self._daily_date.isoformat(),
            )
            self._daily_date = today
            self._daily_count = 0

    def _snapshot_locked(self) -> UsageSnapshot:
        return UsageSnapshot(
            requests_today=self._daily_count,
            daily_limit=self.daily_limit,
            remaining=max(0, self.daily_limit - self._daily_count),
        )


__all__ = [
    "AdmissionDecision",
    "InMemoryQuotaGovernor",
    "QuotaDenialReason",
    "QuotaGovernor",
    "UsageSnapshot",
]
