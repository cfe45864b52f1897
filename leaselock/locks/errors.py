"""
Exceptions raised by lease locks and the lock runner.

Contention and lost ownership are not exceptions: ``Lock.acquire`` returns
``None`` when another session holds the lock and ``Lock.release`` returns
``False`` when the key belongs to a different session.
"""


class LockError(Exception):
    """Base class for every lock exception."""


class LockStoreError(LockError):
    """
    Raised when a round trip to the backing store fails.

    The outcome of the operation is unknown. The originating
    ``redis`` exception is always attached as ``__cause__``.
    """

    def __init__(self, name: str, action: str, message: str) -> None:
        super().__init__(f"{action} of lock '{name}' failed: {message}")
        self.name = name
        self.action = action


class LockConfigurationError(LockError, ValueError):
    """Raised for empty names, empty tokens, missing clients, or non-positive durations."""


class LockMismatchError(LockError, ValueError):
    """Raised when a session from one lock is handed to a lock with a different name."""

    def __init__(self, lock_name: str, session_name: str) -> None:
        super().__init__(
            f"Session for lock '{session_name}' cannot be used with lock '{lock_name}'"
        )
        self.lock_name = lock_name
        self.session_name = session_name


class LockAcquireTimeout(LockError, TimeoutError):
    """Raised when the caller's deadline passes before the lock is acquired."""

    def __init__(self, name: str, attempts: int) -> None:
        super().__init__(
            f"Timed out acquiring lock '{name}' after {attempts} attempts"
        )
        self.name = name
        self.attempts = attempts


class LeaseExpiredError(LockError, TimeoutError):
    """Raised when protected work is still running at the session's conservative deadline."""

    def __init__(self, name: str, token: str) -> None:
        super().__init__(
            f"Work under lock '{name}' outlived its lease (session {token})"
        )
        self.name = name
        self.token = token
