"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and a restart resets every counter.
- Thread-safe: every read-prune-check-append runs under the store lock.
- Idle clients are reclaimed by an occasional random sweep on the request
  path; there is no background thread.
"""

from __future__ import annotations

import logging
import math
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_PROBABILITY = 0.01


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ClientWindowState:
    """Admission timestamps (epoch ms, ascending) for one client."""

    timestamps: list[int] = field(default_factory=list)
    window_ms: int = 0


def _prune(timestamps: list[int], window_start: int) -> list[int]:
    # Timestamps are appended in order, so the survivors are a suffix.
    for index, ts in enumerate(timestamps):
        if ts > window_start:
            return timestamps[index:]
    return []


class ClientWindowStore:
    """Process-scoped mapping of client identifier to its window state.

    Shared by every limiter instance that is handed the same store. Callers
    must hold :attr:`lock` while touching :attr:`windows`.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.windows: dict[str, ClientWindowState] = {}

    def __len__(self) -> int:
        with self.lock:
            return len(self.windows)

    def snapshot(self, identifier: str) -> list[int]:
        """Copy of the stored timestamps for an identifier (empty if unknown)."""
        with self.lock:
            state = self.windows.get(identifier)
            return list(state.timestamps) if state else []

    def clear(self) -> None:
        with self.lock:
            self.windows.clear()


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests in a trailing, continuously moving window.

    A request at time ``now`` is admitted when fewer than ``limit`` earlier
    admissions for the same identifier fall in ``(now - window_ms, now]``.
    Denied requests are not recorded.

    Degenerate configuration never raises: ``limit <= 0`` denies everything
    and ``window_ms <= 0`` admits everything (history is always empty).
    """

    def __init__(
        self,
        store: ClientWindowStore | None = None,
        *,
        clock: Callable[[], int] = _epoch_ms,
        sweep_probability: float = DEFAULT_SWEEP_PROBABILITY,
        rng: Callable[[], float] = random.random,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared window store; a private one is created when omitted.
            clock: Time source returning epoch milliseconds.
            sweep_probability: Chance per call of sweeping idle identifiers.
            rng: Source of uniform floats in [0, 1) deciding the sweep.
        """
        self._store = store if store is not None else ClientWindowStore()
        self._clock = clock
        self._sweep_probability = sweep_probability
        self._rng = rng

    @property
    def store(self) -> ClientWindowStore:
        return self._store

    def consume(self, identifier: str, *, limit: int, window_ms: int) -> RateLimitResult:
        now = self._clock()
        window_start = now - window_ms
        windows = self._store.windows

        with self._store.lock:
            state = windows.get(identifier)
            if state is None:
                state = ClientWindowState()
                windows[identifier] = state

            # Build the new sequence aside; the stored one is replaced only
            # once the decision is complete.
            recent = _prune(state.timestamps, window_start)
            allowed = limit > 0 and len(recent) < limit
            if allowed:
                recent = recent + [now]

            state.timestamps = recent
            state.window_ms = window_ms
            count = len(recent)
            oldest = recent[0] if recent else now

        if self._rng() < self._sweep_probability:
            self.sweep(now)

        limit_value = max(limit, 0)
        remaining = max(0, limit_value - count)
        reset_at_ms = oldest + max(window_ms, 0)

        if allowed:
            return RateLimitResult(
                allowed=True,
                limit=limit_value,
                remaining=remaining,
                reset_at_ms=reset_at_ms,
                retry_after_seconds=None,
            )

        # A non-positive limit never admits, so there is nothing to wait for.
        retry_after = max(1, math.ceil((reset_at_ms - now) / 1000)) if limit > 0 else None
        return RateLimitResult(
            allowed=False,
            limit=limit_value,
            remaining=0,
            reset_at_ms=reset_at_ms,
            retry_after_seconds=retry_after,
        )

    def sweep(self, now: int | None = None) -> int:
        """Prune every identifier by its own window and drop the empty ones.

        Args:
            now: Reference time in epoch ms (defaults to the limiter clock).

        Returns:
            Number of identifiers removed.
        """
        now = self._clock() if now is None else now
        removed = 0
        with self._store.lock:
            windows = self._store.windows
            for identifier in list(windows):
                state = windows[identifier]
                state.timestamps = _prune(state.timestamps, now - state.window_ms)
                if not state.timestamps:
                    del windows[identifier]
                    removed += 1
            tracked = len(windows)

        logger.debug(
            "rate_limit.sweep",
            extra={"removed": removed, "tracked": tracked},
        )
        return removed
