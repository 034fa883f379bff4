"""Server statistics.

In-memory counters for the persistence and relay endpoints. These are
operational counters only; transmission success rates come from the stored
logs (``GET /transmission-stats``) or from a client's own session.
No framework dependencies.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class TargetActivity:
    """Relay activity for a single target address."""
    last_seen: float          # time.monotonic() timestamp
    relayed: int = 0
    failed: int = 0


class ServerStats:
    """Thread-safe server counters with per-target relay tracking.

    A target is listed as active if the relay forwarded to it within
    ``active_window_seconds``.
    """

    def __init__(self, active_window_seconds: float = 120.0) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()
        self._active_window = active_window_seconds

        self.samples_stored: int = 0
        self.logs_stored: int = 0
        self.validation_errors: int = 0
        self.storage_errors: int = 0
        self.relay_requests: int = 0
        self.relay_successes: int = 0
        self.relay_failures: int = 0

        self._targets: dict[str, TargetActivity] = {}

    def record_sample_stored(self) -> None:
        with self._lock:
            self.samples_stored += 1

    def record_log_stored(self) -> None:
        with self._lock:
            self.logs_stored += 1

    def record_validation_error(self) -> None:
        with self._lock:
            self.validation_errors += 1

    def record_storage_error(self) -> None:
        with self._lock:
            self.storage_errors += 1

    def record_relay(self, target_address: str, success: bool) -> None:
        now = time.monotonic()
        with self._lock:
            self.relay_requests += 1
            if success:
                self.relay_successes += 1
            else:
                self.relay_failures += 1
            target = self._targets.setdefault(target_address, TargetActivity(last_seen=now))
            target.last_seen = now
            if success:
                target.relayed += 1
            else:
                target.failed += 1

    def _prune_stale_targets(self, now: float) -> None:
        """Remove targets not seen within the active window. Caller holds lock."""
        cutoff = now - self._active_window
        stale = [addr for addr, t in self._targets.items() if t.last_seen < cutoff]
        for addr in stale:
            del self._targets[addr]

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        now_mono = time.monotonic()
        with self._lock:
            self._prune_stale_targets(now_mono)
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "samples_stored": self.samples_stored,
                "logs_stored": self.logs_stored,
                "validation_errors": self.validation_errors,
                "storage_errors": self.storage_errors,
                "relay": {
                    "requests": self.relay_requests,
                    "successes": self.relay_successes,
                    "failures": self.relay_failures,
                    "active_targets": {
                        addr: {"relayed": t.relayed, "failed": t.failed}
                        for addr, t in self._targets.items()
                    },
                    "window_seconds": self._active_window,
                },
            }
