from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LockSession:
    """
    Proof that a session held a lock as of its acquisition.

    Attributes:
        name: Name of the lock the session belongs to
        token: Value stored under the lock key while this session owns it
        deadline: Conservative expiry on the time.monotonic() clock
    """
    name: str
    token: str
    deadline: float

    def remaining_seconds(self) -> float:
        """Get time left before the lease must be considered lost (0 if past)."""
        return max(0.0, self.deadline - time.monotonic())

    def is_expired(self) -> bool:
        return time.monotonic() >= self.deadline
