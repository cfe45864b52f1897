"""
Pytest configuration for leaselock tests.

Locks run against an in-memory fakeredis server with Lua scripting
enabled, one server per test.
"""

from typing import AsyncGenerator

import fakeredis
import pytest

from leaselock.locks import Lock, new_token

from tests.mocks import CapturingLogger


@pytest.fixture
async def redis_client() -> AsyncGenerator[fakeredis.FakeAsyncRedis, None]:
    server = fakeredis.FakeServer()
    client = fakeredis.FakeAsyncRedis(server=server)

    yield client

    await client.aclose()


@pytest.fixture
def lock_name() -> str:
    return f"leaselock-test:{new_token()}"


@pytest.fixture
def captured_logger() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture
def lock_factory(redis_client, lock_name, captured_logger):
    def create_lock(
        lease: float = 5.0,
        name: str | None = None,
    ) -> Lock:
        return Lock(
            redis_client,
            name or lock_name,
            lease,
            logger=captured_logger,
        )

    return create_lock
