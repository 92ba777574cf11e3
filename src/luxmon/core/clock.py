"""Process-wide elapsed-time base used to timestamp samples."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ProcessClock:
    """Immutable start instant; create once at startup and pass it around."""

    started_at: float = field(default_factory=time.monotonic)

    def elapsed(self) -> float:
        """Seconds since :attr:`started_at`."""
        return time.monotonic() - self.started_at
