"""
leaselock: lease-based mutual exclusion over Redis.

Usage:
    from redis.asyncio import Redis
    from leaselock import Lock, run_with_lock

    lock = Lock(Redis(), "reports:nightly", lease=5.0)

    async def rebuild(session):
        ...

    await run_with_lock(lock, rebuild, retry_interval=0.05)
"""

from .env import (
    Env as Env,
    configure_logging as configure_logging,
    load_env as load_env,
)
from .locks import (
    LeaseExpiredError as LeaseExpiredError,
    Lock as Lock,
    LockAcquireTimeout as LockAcquireTimeout,
    LockConfigurationError as LockConfigurationError,
    LockError as LockError,
    LockMismatchError as LockMismatchError,
    LockSession as LockSession,
    LockStoreError as LockStoreError,
    create_lock_from_env as create_lock_from_env,
    create_redis_client as create_redis_client,
    new_token as new_token,
)
from .logging import (
    LoggerPort as LoggerPort,
    NopLogger as NopLogger,
    StreamLogger as StreamLogger,
)
from .runner import (
    LockRunner as LockRunner,
    RunnerPhase as RunnerPhase,
    create_runner_from_env as create_runner_from_env,
    run_with_lock as run_with_lock,
    run_with_lock_logged as run_with_lock_logged,
)
