# src/rentwise/adapters/rate_limit.py
from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Tuple

from rentwise.adapters.config import config
from rentwise.adapters.logging_utils import get_logger

logger = get_logger(__name__)

_MINUTE_S = 60.0
_HISTORY_S = 3600.0


@dataclass
class RateLimiter:
    """
    Outbound call budget shared by the provider adapters that receive it.

    Three checks, in order: minimum spacing between calls, calls in the last
    minute, and an emergency threshold on calls in the last hour. Tripping the
    emergency threshold blocks every call until `emergency_cooldown_s` has
    passed, after which history is cleared.

    One instance per engine (or per test); there is no module-level limiter.
    """

    max_calls_per_minute: int = 30
    min_interval_s: float = 0.0
    emergency_threshold: int = 100
    emergency_cooldown_s: float = 300.0
    clock: Callable[[], float] = time.monotonic

    _history: Deque[Tuple[float, str]] = field(default_factory=deque, init=False, repr=False)
    _last_call: float | None = field(default=None, init=False, repr=False)
    _blocked_until: float | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def acquire(self, endpoint: str = "") -> bool:
        """Record and allow a call, or return False without recording it."""
        with self._lock:
            now = self.clock()

            if self._blocked_until is not None:
                if now < self._blocked_until:
                    logger.warning(
                        "rate_limit_emergency_block",
                        extra={"context": {"endpoint": endpoint, "retry_in_s": round(self._blocked_until - now, 1)}},
                    )
                    return False
                self._reset_locked()
                logger.info("rate_limit_emergency_reset", extra={"context": {"endpoint": endpoint}})

            if self._last_call is not None and now - self._last_call < self.min_interval_s:
                logger.warning(
                    "rate_limit_interval",
                    extra={"context": {"endpoint": endpoint, "retry_in_s": round(self.min_interval_s - (now - self._last_call), 2)}},
                )
                return False

            while self._history and now - self._history[0][0] >= _HISTORY_S:
                self._history.popleft()

            recent = sum(1 for ts, _ in self._history if now - ts < _MINUTE_S)
            if recent >= self.max_calls_per_minute:
                logger.warning(
                    "rate_limit_per_minute",
                    extra={"context": {"endpoint": endpoint, "calls_last_minute": recent}},
                )
                return False

            if len(self._history) >= self.emergency_threshold:
                self._blocked_until = now + self.emergency_cooldown_s
                logger.error(
                    "rate_limit_emergency_shutdown",
                    extra={"context": {"endpoint": endpoint, "calls_last_hour": len(self._history)}},
                )
                return False

            self._history.append((now, endpoint))
            self._last_call = now
            return True

    def reset(self) -> None:
        with self._lock:
            self._reset_locked()

    def _reset_locked(self) -> None:
        self._history.clear()
        self._last_call = None
        self._blocked_until = None

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            now = self.clock()
            recent = sum(1 for ts, _ in self._history if now - ts < _MINUTE_S)
            wait = 0.0
            if self._last_call is not None:
                wait = max(0.0, self.min_interval_s - (now - self._last_call))
            blocked = self._blocked_until is not None and now < self._blocked_until
            return {
                "total_calls": len(self._history),
                "calls_last_minute": recent,
                "is_rate_limited": blocked or wait > 0 or recent >= self.max_calls_per_minute,
                "emergency_shutdown": blocked,
                "next_allowed_in_s": round(wait, 3) if wait > 0 else None,
            }


def make_rate_limiter() -> RateLimiter:
    return RateLimiter(
        max_calls_per_minute=config.RATE_MAX_CALLS_PER_MINUTE,
        min_interval_s=config.RATE_MIN_INTERVAL_S,
        emergency_threshold=config.RATE_EMERGENCY_THRESHOLD,
        emergency_cooldown_s=config.RATE_EMERGENCY_COOLDOWN_S,
    )
