from typing import Awaitable, Callable, TypeVar

from leaselock.env import Env
from leaselock.locks import Lock, LockConfigurationError, LockSession
from leaselock.logging import LoggerPort

from .lock_runner import DEFAULT_RELEASE_TIMEOUT_FLOOR, LockRunner


T = TypeVar("T")


async def run_with_lock(
    lock: Lock,
    work: Callable[[LockSession], Awaitable[T]],
    retry_interval: float,
    timeout: float | None = None,
    logger: LoggerPort | None = None,
    release_timeout_floor: float = DEFAULT_RELEASE_TIMEOUT_FLOOR,
    max_release_attempts: int | None = None,
) -> T:
    """
    Wait for ``lock``, await ``work(session)``, and release the lock.

    The lock's own logger is used unless ``logger`` is given.
    """
    runner: LockRunner[T] = LockRunner(
        lock,
        retry_interval,
        timeout=timeout,
        logger=logger,
        release_timeout_floor=release_timeout_floor,
        max_release_attempts=max_release_attempts,
    )

    return await runner.run(work)


async def run_with_lock_logged(
    lock: Lock,
    work: Callable[[LockSession], Awaitable[T]],
    retry_interval: float,
    logger: LoggerPort,
    timeout: float | None = None,
    release_timeout_floor: float = DEFAULT_RELEASE_TIMEOUT_FLOOR,
    max_release_attempts: int | None = None,
) -> T:
    if logger is None:
        raise LockConfigurationError("run_with_lock_logged requires a logger")

    return await run_with_lock(
        lock,
        work,
        retry_interval,
        timeout=timeout,
        logger=logger,
        release_timeout_floor=release_timeout_floor,
        max_release_attempts=max_release_attempts,
    )


def create_runner_from_env(
    lock: Lock,
    env: Env,
    timeout: float | None = None,
    logger: LoggerPort | None = None,
) -> LockRunner:
    return LockRunner(
        lock,
        env.retry_interval_seconds(),
        timeout=timeout,
        logger=logger,
        release_timeout_floor=env.release_timeout_floor_seconds(),
        max_release_attempts=env.LEASELOCK_MAX_RELEASE_ATTEMPTS,
    )
