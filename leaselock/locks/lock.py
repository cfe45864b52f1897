"""
Redis-backed lease lock.

A Lock names a key and a lease. Sessions become owners of the key by
writing their token into it with a millisecond expiry; every mutation
goes through one of two Lua scripts, so the check and the write happen
atomically on the server.

Usage:
    lock = Lock(client, "reports:nightly", lease=5.0)

    session = await lock.acquire()
    if session:
        # We own the lock until session.deadline at the latest
        session = await lock.extend(session)

        await lock.release(session)
"""

from __future__ import annotations

import time

from redis.asyncio import Redis
from redis.exceptions import RedisError

from leaselock.logging import LoggerPort, NopLogger

from .errors import (
    LockConfigurationError,
    LockMismatchError,
    LockStoreError,
)
from .lock_session import LockSession
from .scripts import (
    ACQUIRE_SCRIPT,
    ACQUIRE_SUCCESS_REPLY,
    RELEASE_ALREADY_GONE,
    RELEASE_DELETE_RACED,
    RELEASE_DELETED,
    RELEASE_OWNED_BY_OTHER,
    RELEASE_SCRIPT,
)
from .tokens import new_token


class Lock:
    """
    Mutual exclusion over a single named key.

    The lock itself holds no session state. Any number of tasks may
    share one Lock and the connection pool behind its client.

    Attributes:
        name: Key identifying the protected resource
        lease: Seconds a session may hold the lock without extending
    """

    __slots__ = (
        "_client",
        "_name",
        "_lease",
        "_lease_ms",
        "_logger",
        "_acquire_script",
        "_release_script",
    )

    def __init__(
        self,
        client: Redis,
        name: str,
        lease: float,
        logger: LoggerPort | None = None,
    ) -> None:
        if client is None:
            raise LockConfigurationError("Lock requires a store client")

        if not name:
            raise LockConfigurationError("Lock name must be a non-empty string")

        if lease is None or lease <= 0:
            raise LockConfigurationError(
                f"Lock lease must be positive, got {lease!r}"
            )

        lease_ms = int(lease * 1000)
        if lease_ms < 1:
            raise LockConfigurationError(
                f"Lock lease must be at least one millisecond, got {lease!r}"
            )

        if logger is None:
            logger = NopLogger()

        self._client = client
        self._name = name
        self._lease = lease_ms / 1000
        self._lease_ms = lease_ms
        self._logger = logger

        self._acquire_script = client.register_script(ACQUIRE_SCRIPT)
        self._release_script = client.register_script(RELEASE_SCRIPT)

    @property
    def name(self) -> str:
        return self._name

    @property
    def lease(self) -> float:
        return self._lease

    @property
    def logger(self) -> LoggerPort:
        return self._logger

    def with_logger(self, logger: LoggerPort) -> Lock:
        """Replace the lock's logger and return the lock for chaining."""
        if logger is None:
            raise LockConfigurationError("Logger override cannot be None")

        self._logger = logger
        return self

    async def acquire(self) -> LockSession | None:
        """
        Try once to acquire the lock with a brand new session token.

        Returns:
            The new session, or None if another session holds the lock
        """
        return await self.acquire_with_session(new_token())

    async def acquire_with_session(self, token: str) -> LockSession | None:
        """
        Try once to make ``token`` the owner of the lock.

        If ``token`` already owns the key its expiry is refreshed to a
        full lease. Otherwise the key is written only if it is absent.

        Args:
            token: Session token proving ownership

        Returns:
            A session with a conservative deadline, or None on contention

        Raises:
            LockStoreError: The store round trip failed
        """
        if not token:
            raise LockConfigurationError("Session token must be a non-empty string")

        logger = self._logger.with_fields(
            action="acquire",
            name=self._name,
            token=token,
        )

        started = time.monotonic()

        try:
            reply = await self._acquire_script(
                keys=[self._name],
                args=[token, self._lease_ms],
            )

        except RedisError as err:
            await logger.error("Acquire request failed", error=str(err))
            raise LockStoreError(self._name, "acquire", str(err)) from err

        if reply is None:
            await logger.debug("Lock is held by another session")
            return None

        if isinstance(reply, bytes):
            reply = reply.decode(errors="replace")

        if not isinstance(reply, str):
            await logger.error(
                "Unexpected acquire reply type",
                reply=repr(reply),
                reply_type=type(reply).__name__,
            )
            return None

        if reply != ACQUIRE_SUCCESS_REPLY:
            await logger.error("Unexpected acquire reply", reply=reply)
            return None

        # The store starts the lease when the script runs, which is some
        # time after we sent it. Charge the whole round trip to the lease.
        acquired_at = time.monotonic()
        elapsed = acquired_at - started

        await logger.debug("Lock acquired", elapsed=elapsed)

        return LockSession(
            name=self._name,
            token=token,
            deadline=acquired_at + (self._lease - elapsed),
        )

    async def release(self, session: LockSession) -> bool:
        """
        Release the lock if ``session`` still owns it.

        Returns:
            True if the key is no longer held by this session (deleted or
            already expired), False if a different session owns it

        Raises:
            LockMismatchError: The session belongs to another lock
            LockConfigurationError: The session has an empty token
            LockStoreError: The store round trip failed
        """
        self._check_session(session)

        logger = self._logger.with_fields(
            action="release",
            name=self._name,
            token=session.token,
        )

        try:
            reply = await self._release_script(
                keys=[self._name],
                args=[session.token],
            )

        except RedisError as err:
            await logger.error("Release request failed", error=str(err))
            raise LockStoreError(self._name, "release", str(err)) from err

        if reply is None:
            await logger.error("Release returned no reply")
            return False

        if isinstance(reply, bool) or not isinstance(reply, int):
            await logger.debug(
                "Unexpected release reply type",
                reply=repr(reply),
                reply_type=type(reply).__name__,
            )
            return False

        if reply == RELEASE_DELETED:
            await logger.debug("Lock released")
            return True

        elif reply == RELEASE_DELETE_RACED:
            # Key expired between the GET and the DEL inside the script.
            await logger.debug("Lock expired during release")
            return True

        elif reply == RELEASE_ALREADY_GONE:
            await logger.debug("Lock already expired or released")
            return True

        elif reply == RELEASE_OWNED_BY_OTHER:
            await logger.debug("Lock is owned by another session")
            return False

        await logger.debug("Unexpected release code", code=reply)
        return False

    async def extend(self, session: LockSession) -> LockSession | None:
        """
        Refresh the lease of a held session, keeping its token.

        Returns:
            A new session with a later deadline, or None if the token no
            longer owns the lock

        Raises:
            LockMismatchError: The session belongs to another lock
            LockStoreError: The store round trip failed
        """
        self._check_session(session)
        return await self.acquire_with_session(session.token)

    def _check_session(self, session: LockSession):
        if session.name != self._name:
            raise LockMismatchError(self._name, session.name)

        if not session.token:
            raise LockConfigurationError("Session token must be a non-empty string")
