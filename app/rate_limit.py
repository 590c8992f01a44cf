"""In-memory per-client request throttle."""
from __future__ import annotations

import enum
import logging
import random
from threading import Lock
from typing import Callable, Dict, List, Tuple

from fastapi import Request

from app.utils import epoch_millis

LOGGER = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class Decision(enum.Enum):
    """Outcome of an admission check."""

    ADMIT = "admit"
    DENY = "deny"

    def __bool__(self) -> bool:
        return self is Decision.ADMIT


class RequestThrottle:
    """Tracks admitted requests per client within a sliding window.

    Every call to :meth:`admit` prunes the caller's own window. Windows of
    clients that stopped calling are only dropped by :meth:`sweep`, which
    ``admit`` triggers with probability ``sweep_probability``.
    """

    def __init__(
        self,
        max_requests: int = 3,
        window_ms: int = 60_000,
        sweep_probability: float = 0.01,
        *,
        clock: Callable[[], int] = epoch_millis,
        rand: Callable[[], float] = random.random,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.sweep_probability = sweep_probability
        self._clock = clock
        self._rand = rand
        self._windows: Dict[str, List[int]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def active_clients(self) -> int:
        """Return how many clients currently have a tracked window."""

        return len(self)

    def window_for(self, client_id: str) -> Tuple[int, ...]:
        """Return the stored timestamps for ``client_id`` without pruning."""

        with self._lock:
            return tuple(self._windows.get(client_id, ()))

    def admit(self, client_id: str, now: int | None = None) -> Decision:
        """Record a request from ``client_id`` unless it is over its quota."""

        if not client_id:
            raise ValueError("client_id must be a non-empty string")
        if now is None:
            now = self._clock()

        with self._lock:
            recent = self._live(self._windows.get(client_id, ()), now)
            if len(recent) >= self.max_requests:
                self._windows[client_id] = recent
                decision = Decision.DENY
            else:
                recent.append(now)
                self._windows[client_id] = recent
                decision = Decision.ADMIT

            if self._rand() < self.sweep_probability:
                self._sweep_locked(now)

        return decision

    def sweep(self, now: int | None = None) -> int:
        """Drop windows with no timestamps left inside the window.

        Returns the number of clients removed.
        """

        if now is None:
            now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    def _sweep_locked(self, now: int) -> int:
        removed = 0
        for client_id in list(self._windows):
            recent = self._live(self._windows[client_id], now)
            if recent:
                self._windows[client_id] = recent
            else:
                del self._windows[client_id]
                removed += 1
        if removed:
            LOGGER.debug("throttle sweep removed %d idle clients", removed)
        return removed

    def _live(self, timestamps, now: int) -> List[int]:
        return [ts for ts in timestamps if now - ts < self.window_ms]


def resolve_client_id(request: Request) -> str:
    """Return the peer address of ``request`` or the shared unknown bucket."""

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT
