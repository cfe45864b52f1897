from redis.asyncio import Redis

from leaselock.env import Env
from leaselock.logging import LoggerPort

from .lock import Lock


def create_redis_client(env: Env) -> Redis:
    return Redis.from_url(
        env.LEASELOCK_REDIS_URL,
        max_connections=env.LEASELOCK_REDIS_POOL_SIZE,
    )


def create_lock_from_env(
    name: str,
    env: Env,
    client: Redis | None = None,
    logger: LoggerPort | None = None,
) -> Lock:
    if client is None:
        client = create_redis_client(env)

    return Lock(
        client,
        name,
        env.lease_seconds(),
        logger=logger,
    )
