from enum import Enum


class RunnerPhase(Enum):
    """Where a LockRunner is in its acquire, hold, release cycle."""
    IDLE = "idle"
    ACQUIRING = "acquiring"
    HOLDING = "holding"
    RELEASING = "releasing"
    DONE = "done"
    CANCELLED = "cancelled"
