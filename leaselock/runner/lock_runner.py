"""
Run a coroutine while holding a lease lock.

The runner drives one acquire, hold, release cycle:

1. ACQUIRING: retry the lock with a single session token until it is
   granted, the caller's timeout passes, or the task is cancelled.
2. HOLDING: await the work under a timeout derived from the session's
   conservative deadline.
3. RELEASING: always runs, whatever the work did. Release is retried
   until the store confirms the key is no longer held by this session,
   including after the caller's timeout or a cancellation. Once the
   task is cancelled, each attempt, including one already in flight, is
   bounded by the release timeout floor.

Usage:
    runner = LockRunner(lock, retry_interval=0.05, timeout=30.0)

    async def rebuild(session: LockSession):
        ...

    result = await runner.run(rebuild)
"""

from __future__ import annotations

import asyncio
import time
from typing import (
    Awaitable,
    Callable,
    Generic,
    TypeVar,
)

from leaselock.locks import (
    LeaseExpiredError,
    Lock,
    LockAcquireTimeout,
    LockConfigurationError,
    LockSession,
    LockStoreError,
    new_token,
)
from leaselock.logging import LoggerPort

from .runner_phase import RunnerPhase


T = TypeVar("T")

DEFAULT_RELEASE_TIMEOUT_FLOOR = 10.0


class LockRunner(Generic[T]):
    """
    Acquire, run, and release for a single invocation.

    Create one runner per invocation; concurrent callers of the same
    Lock each get their own runner.

    Attributes:
        lock: The lock guarding the work
        retry_interval: Seconds to sleep between acquire or release attempts
        timeout: Caller's budget in seconds for acquiring and running, or None
        release_timeout_floor: Minimum per-attempt release timeout once the
            caller's budget is spent or the task is being cancelled
        max_release_attempts: Release attempts before giving up, or None to
            retry until the store confirms
    """

    __slots__ = (
        "_lock",
        "_retry_interval",
        "_timeout",
        "_logger",
        "_release_timeout_floor",
        "_max_release_attempts",
        "_phase",
        "_session",
        "_release_scope",
    )

    def __init__(
        self,
        lock: Lock,
        retry_interval: float,
        timeout: float | None = None,
        logger: LoggerPort | None = None,
        release_timeout_floor: float = DEFAULT_RELEASE_TIMEOUT_FLOOR,
        max_release_attempts: int | None = None,
    ) -> None:
        if lock is None:
            raise LockConfigurationError("LockRunner requires a lock")

        if retry_interval is None or retry_interval <= 0:
            raise LockConfigurationError(
                f"Retry interval must be positive, got {retry_interval!r}"
            )

        if release_timeout_floor <= 0:
            raise LockConfigurationError(
                f"Release timeout floor must be positive, got {release_timeout_floor!r}"
            )

        if max_release_attempts is not None and max_release_attempts < 1:
            raise LockConfigurationError(
                f"Max release attempts must be at least 1, got {max_release_attempts!r}"
            )

        if logger is None:
            logger = lock.logger

        self._lock = lock
        self._retry_interval = retry_interval
        self._timeout = timeout
        self._logger = logger
        self._release_timeout_floor = release_timeout_floor
        self._max_release_attempts = max_release_attempts
        self._phase = RunnerPhase.IDLE
        self._session: LockSession | None = None
        self._release_scope: asyncio.Timeout | None = None

    @property
    def phase(self) -> RunnerPhase:
        return self._phase

    @property
    def session(self) -> LockSession | None:
        """The session most recently acquired by this runner."""
        return self._session

    async def run(
        self,
        work: Callable[[LockSession], Awaitable[T]],
    ) -> T:
        """
        Acquire the lock, await ``work(session)``, then release the lock.

        Returns:
            Whatever ``work`` returns

        Raises:
            LockAcquireTimeout: The timeout passed before the lock was granted
            LeaseExpiredError: The work was still running at the session deadline
            TimeoutError: The caller's timeout cut the work short
            asyncio.CancelledError: The task was cancelled
            Exception: Anything raised by ``work``, after the lock is released
        """
        caller_deadline: float | None = None
        if self._timeout is not None:
            caller_deadline = time.monotonic() + self._timeout

        token = new_token()
        logger = self._logger.with_fields(
            name=self._lock.name,
            token=token,
        )

        self._phase = RunnerPhase.ACQUIRING

        try:
            session = await self._acquire(token, caller_deadline, logger)

        except (LockAcquireTimeout, asyncio.CancelledError):
            self._phase = RunnerPhase.CANCELLED
            raise

        self._session = session
        self._phase = RunnerPhase.HOLDING

        try:
            return await self._hold(session, work, caller_deadline)

        finally:
            self._phase = RunnerPhase.RELEASING

            try:
                await self._release(session, caller_deadline, logger)

            finally:
                self._phase = RunnerPhase.DONE

    async def _acquire(
        self,
        token: str,
        caller_deadline: float | None,
        logger: LoggerPort,
    ) -> LockSession:
        attempts = 0

        while True:
            # Checked before every round trip so an expired caller never
            # touches the store.
            if caller_deadline is not None and time.monotonic() >= caller_deadline:
                raise LockAcquireTimeout(self._lock.name, attempts)

            attempts += 1

            try:
                session = await self._lock.acquire_with_session(token)

            except LockStoreError as err:
                await logger.debug(
                    "Lock acquire attempt failed",
                    attempt=attempts,
                    error=str(err),
                )

                await asyncio.sleep(self._retry_interval)
                continue

            if session is not None:
                return session

            await asyncio.sleep(self._retry_interval)

    async def _hold(
        self,
        session: LockSession,
        work: Callable[[LockSession], Awaitable[T]],
        caller_deadline: float | None,
    ) -> T:
        remaining = session.remaining_seconds()
        bounded_by_lease = True

        if caller_deadline is not None:
            caller_remaining = max(0.0, caller_deadline - time.monotonic())
            if caller_remaining < remaining:
                remaining = caller_remaining
                bounded_by_lease = False

        scope = asyncio.timeout(remaining)

        try:
            async with scope:
                return await work(session)

        except TimeoutError as err:
            if scope.expired() and bounded_by_lease:
                raise LeaseExpiredError(session.name, session.token) from err

            raise

    async def _release(
        self,
        session: LockSession,
        caller_deadline: float | None,
        logger: LoggerPort,
    ):
        caller_task = asyncio.current_task()
        release_task = asyncio.ensure_future(
            self._release_until_confirmed(
                session,
                caller_deadline,
                caller_task,
                logger,
            )
        )

        cancelled = False

        while True:
            try:
                await asyncio.shield(release_task)
                break

            except asyncio.CancelledError:
                if release_task.cancelled():
                    raise

                # Keep waiting for the release to land, then deliver
                # the cancellation. An attempt already in flight may have
                # started without a bound, so cap it at the floor now.
                cancelled = True
                self._bound_release_attempt()

        if cancelled:
            raise asyncio.CancelledError()

    async def _release_until_confirmed(
        self,
        session: LockSession,
        caller_deadline: float | None,
        caller_task: asyncio.Task | None,
        logger: LoggerPort,
    ) -> bool:
        attempts = 0

        while True:
            if (
                self._max_release_attempts is not None
                and attempts >= self._max_release_attempts
            ):
                await logger.error(
                    "Gave up releasing lock",
                    attempts=attempts,
                )

                return False

            attempts += 1

            try:
                async with asyncio.timeout(
                    self._release_timeout(caller_deadline, caller_task)
                ) as scope:
                    self._release_scope = scope
                    try:
                        released = await self._lock.release(session)

                    finally:
                        self._release_scope = None

            except (LockStoreError, TimeoutError) as err:
                await logger.debug(
                    "Lock release attempt failed",
                    attempt=attempts,
                    error=str(err),
                )

                await asyncio.sleep(self._retry_interval)
                continue

            if released:
                return True

            await logger.debug(
                "Lock release not confirmed",
                attempt=attempts,
            )

            await asyncio.sleep(self._retry_interval)

    def _release_timeout(
        self,
        caller_deadline: float | None,
        caller_task: asyncio.Task | None,
    ) -> float | None:
        caller_cancelling = caller_task is not None and caller_task.cancelling() > 0

        if not caller_cancelling:
            if caller_deadline is None:
                return None

            caller_remaining = caller_deadline - time.monotonic()
            if caller_remaining > 0:
                return caller_remaining

        return max(self._retry_interval, self._release_timeout_floor)

    def _bound_release_attempt(self):
        scope = self._release_scope
        if scope is None or scope.expired():
            return

        loop = asyncio.get_running_loop()
        bound = loop.time() + max(self._retry_interval, self._release_timeout_floor)

        when = scope.when()
        if when is None or when > bound:
            scope.reschedule(bound)
