"""Per-scan progress session, owned by the caller and passed into the scan."""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

PHASES = (
    "idle",
    "researching",
    "discovering",
    "extracting",
    "validating",
    "syncing",
    "complete",
)


class ScanProgress:
    """Tracks the phase, current URL and errors of one scan.

    Unlike a process-wide registry, a session lives exactly as long as the
    caller keeps a reference to it. Every update is also forwarded to the
    optional ``callback`` as a human-readable message.
    """

    def __init__(self, domain: str, callback: Optional[Callable[[str], None]] = None):
        self.domain = domain
        self.callback = callback
        self.phase = "idle"
        self.started_at: Optional[float] = None
        self.completed_at: Optional[float] = None
        self.current_url: Optional[str] = None
        self.errors: List[str] = []
        self.history: List[Tuple[str, float]] = []

    def _emit(self, message: str) -> None:
        logger.info("[%s] %s", self.domain, message)
        if self.callback:
            try:
                self.callback(message)
            except Exception as exc:
                logger.warning("[%s] progress callback failed: %s", self.domain, exc)

    def start(self) -> None:
        self.started_at = time.time()
        self.completed_at = None
        self._emit("Scan started")

    def advance(self, phase: str, current_url: Optional[str] = None) -> None:
        if phase not in PHASES:
            raise ValueError(f"Unknown scan phase: {phase}")
        self.phase = phase
        self.current_url = current_url
        self.history.append((phase, time.time()))
        if phase == "complete":
            self.completed_at = time.time()
        self._emit(f"Phase: {phase}")

    def note(self, message: str, current_url: Optional[str] = None) -> None:
        if current_url is not None:
            self.current_url = current_url
        self._emit(message)

    def record_error(self, error: str) -> None:
        self.errors.append(error)
        self._emit(f"Error: {error}")

    @property
    def is_active(self) -> bool:
        return self.phase not in ("idle", "complete")

    @property
    def elapsed_seconds(self) -> Optional[float]:
        if self.started_at is None:
            return None
        end = self.completed_at or time.time()
        return end - self.started_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "phase": self.phase,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "current_url": self.current_url,
            "errors": list(self.errors),
            "history": [{"phase": phase, "at": at} for phase, at in self.history],
            "elapsed_seconds": self.elapsed_seconds,
        }
