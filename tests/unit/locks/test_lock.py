"""
Test: Lease Lock Primitive

This test validates the Lock implementation:
1. Acquire then release succeeds without contention
2. A held lock rejects every other session until release or expiry
3. Locks with distinct names never interact
4. Extend keeps the token and pushes the deadline out
5. Release after expiry still reports success
6. Release by a session that lost the key reports failure and keeps the new owner
7. Store failures and malformed replies are surfaced or contained

Run with: pytest tests/unit/locks/test_lock.py
"""

import asyncio
import time

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from leaselock.locks import (
    Lock,
    LockConfigurationError,
    LockMismatchError,
    LockSession,
    LockStoreError,
)

from tests.mocks import ScriptStub


@pytest.mark.asyncio
async def test_acquire_and_release(lock_factory):
    """Test that an uncontended lock can be acquired and released."""
    lock = lock_factory(lease=0.2)

    session = await lock.acquire()

    assert session is not None
    assert session.name == lock.name
    assert len(session.token) == 32
    assert not session.is_expired()

    assert await lock.release(session) is True


@pytest.mark.asyncio
async def test_acquire_twice_same_instance(lock_factory):
    """Test that a second acquire on a held lock is rejected."""
    lock = lock_factory(lease=5.0)

    for _ in range(2):
        session = await lock.acquire()
        assert session is not None

        assert await lock.acquire() is None, "Held lock should reject a new session"

        assert await lock.release(session) is True


@pytest.mark.asyncio
async def test_distinct_names_are_independent(lock_factory):
    """Test that locks with different names can be held at the same time."""
    first = lock_factory(lease=5.0, name="leaselock-test:first")
    second = lock_factory(lease=5.0, name="leaselock-test:second")

    first_session = await first.acquire()
    second_session = await second.acquire()

    assert first_session is not None
    assert second_session is not None

    assert await first.release(first_session) is True
    assert await second.release(second_session) is True


@pytest.mark.asyncio
async def test_concurrent_acquire_grants_one(lock_factory):
    """Test that concurrent acquires on one name grant exactly one session."""
    lock = lock_factory(lease=5.0)

    sessions = await asyncio.gather(*[lock.acquire() for _ in range(8)])

    granted = [session for session in sessions if session is not None]
    assert len(granted) == 1


@pytest.mark.asyncio
async def test_contended_until_release(lock_factory):
    """Test that a waiting session gets the lock once the owner releases."""
    lock = lock_factory(lease=5.0)

    owner = await lock.acquire()
    assert owner is not None
    assert await lock.acquire() is None

    assert await lock.release(owner) is True

    assert await lock.acquire() is not None


@pytest.mark.asyncio
async def test_contended_until_expiry(lock_factory):
    """Test that an unreleased lock becomes available after its lease."""
    lock = lock_factory(lease=0.1)

    owner = await lock.acquire()
    assert owner is not None
    assert await lock.acquire() is None

    await asyncio.sleep(0.15)

    assert await lock.acquire() is not None


@pytest.mark.asyncio
async def test_deadline_is_conservative(lock_factory, redis_client):
    """Test that the session deadline never exceeds the lease."""
    lock = lock_factory(lease=2.0)

    before = time.monotonic()
    session = await lock.acquire()
    after = time.monotonic()

    assert session is not None
    # Lease time is counted from before the request was sent.
    assert before + lock.lease - 1e-6 <= session.deadline <= after + lock.lease

    store_ttl_ms = await redis_client.pttl(lock.name)
    assert store_ttl_ms > 0
    assert session.remaining_seconds() <= lock.lease


@pytest.mark.asyncio
async def test_extend_keeps_token(lock_factory):
    """Test that extend refreshes the lease under the same token."""
    lock = lock_factory(lease=0.5)

    session = await lock.acquire()
    assert session is not None

    await asyncio.sleep(0.2)

    extended = await lock.extend(session)

    assert extended is not None
    assert extended.token == session.token
    assert extended.deadline >= session.deadline

    await asyncio.sleep(0.4)

    # Past the original lease, still inside the extended one.
    assert await lock.acquire() is None
    assert await lock.release(extended) is True


@pytest.mark.asyncio
async def test_acquire_with_same_token_is_reentrant(lock_factory):
    """Test that acquiring with the owning token renews instead of failing."""
    lock = lock_factory(lease=5.0)

    first = await lock.acquire_with_session("session-a")
    second = await lock.acquire_with_session("session-a")

    assert first is not None
    assert second is not None
    assert second.token == first.token
    assert await lock.acquire_with_session("session-b") is None


@pytest.mark.asyncio
async def test_extend_after_takeover(lock_factory):
    """Test that extending a session that lost the key returns None."""
    lock = lock_factory(lease=0.1)

    stale = await lock.acquire()
    assert stale is not None

    await asyncio.sleep(0.15)

    owner = await lock.acquire()
    assert owner is not None

    assert await lock.extend(stale) is None


@pytest.mark.asyncio
async def test_release_after_expiry(lock_factory):
    """Test that releasing an expired lock still reports success."""
    lease = 0.1
    lock = lock_factory(lease=lease)

    session = await lock.acquire()
    assert session is not None

    await asyncio.sleep(lease)

    assert await lock.release(session) is True


@pytest.mark.asyncio
async def test_release_twice(lock_factory):
    """Test that releasing an already released session reports success."""
    lock = lock_factory(lease=5.0)

    session = await lock.acquire()

    assert await lock.release(session) is True
    assert await lock.release(session) is True


@pytest.mark.asyncio
async def test_release_by_stale_session(lock_factory, redis_client):
    """Test that a session which lost the key cannot delete the new owner."""
    lock = lock_factory(lease=0.1)

    stale = await lock.acquire()
    await asyncio.sleep(0.15)

    owner = await lock.acquire()
    assert owner is not None

    assert await lock.release(stale) is False
    assert await redis_client.get(lock.name) == owner.token.encode()

    assert await lock.release(owner) is True


@pytest.mark.asyncio
async def test_session_for_other_lock_is_rejected(lock_factory):
    """Test that sessions cannot cross between locks."""
    first = lock_factory(name="leaselock-test:first")
    second = lock_factory(name="leaselock-test:second")

    session = await first.acquire()

    with pytest.raises(LockMismatchError):
        await second.release(session)

    with pytest.raises(LockMismatchError):
        await second.extend(session)

    foreign = LockSession(
        name="leaselock-test:elsewhere",
        token=session.token,
        deadline=session.deadline,
    )

    with pytest.raises(LockMismatchError):
        await first.release(foreign)


@pytest.mark.parametrize(
    "name,lease",
    [
        ("", 5.0),
        ("leaselock-test:lease", 0),
        ("leaselock-test:lease", -1.0),
        ("leaselock-test:lease", 0.0001),
    ],
)
@pytest.mark.asyncio
async def test_invalid_configuration(redis_client, name, lease):
    """Test that empty names and non-positive leases are refused."""
    with pytest.raises(LockConfigurationError):
        Lock(redis_client, name, lease)


def test_missing_client():
    """Test that a lock cannot be built without a store client."""
    with pytest.raises(LockConfigurationError):
        Lock(None, "leaselock-test:client", 5.0)


@pytest.mark.asyncio
async def test_empty_token_is_refused(lock_factory):
    lock = lock_factory()

    with pytest.raises(LockConfigurationError):
        await lock.acquire_with_session("")


@pytest.mark.asyncio
async def test_store_error_is_raised(lock_factory, captured_logger):
    """Test that transport failures surface as LockStoreError."""
    lock = lock_factory()
    lock._acquire_script = ScriptStub(
        outcomes=[RedisConnectionError("store unavailable")],
    )

    with pytest.raises(LockStoreError) as raised:
        await lock.acquire()

    assert isinstance(raised.value.__cause__, RedisConnectionError)
    assert raised.value.action == "acquire"
    assert "Acquire request failed" in captured_logger.messages("error")


@pytest.mark.asyncio
async def test_release_store_error_is_raised(lock_factory):
    lock = lock_factory()
    session = await lock.acquire()

    lock._release_script = ScriptStub(
        outcomes=[RedisConnectionError("store unavailable")],
    )

    with pytest.raises(LockStoreError):
        await lock.release(session)


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [b"QUEUED", "NOPE", 1, [b"OK"]])
async def test_unexpected_acquire_reply(lock_factory, captured_logger, reply):
    """Test that malformed acquire replies count as not acquired."""
    lock = lock_factory()
    lock._acquire_script = ScriptStub(outcomes=[reply])

    assert await lock.acquire() is None
    assert len(captured_logger.messages("error")) == 1


@pytest.mark.asyncio
async def test_acquire_accepts_str_reply(lock_factory):
    lock = lock_factory()
    lock._acquire_script = ScriptStub(outcomes=["OK"])

    assert await lock.acquire() is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply,released",
    [
        (0, True),
        (1, True),
        (2, True),
        (3, False),
        (7, False),
        (b"1", False),
        (None, False),
    ],
)
async def test_release_reply_codes(lock_factory, reply, released):
    """Test how each release script reply is interpreted."""
    lock = lock_factory()
    session = await lock.acquire()

    lock._release_script = ScriptStub(outcomes=[reply])

    assert await lock.release(session) is released


@pytest.mark.asyncio
async def test_logs_carry_lock_fields(redis_client, lock_name, captured_logger):
    """Test that lock logs are tagged with action, name, and token."""
    lock = Lock(redis_client, lock_name, 5.0).with_logger(captured_logger)

    session = await lock.acquire()
    await lock.release(session)

    actions = [entry.fields["action"] for entry in captured_logger.entries]
    assert actions == ["acquire", "release"]

    for entry in captured_logger.entries:
        assert entry.fields["name"] == lock_name
        assert entry.fields["token"] == session.token


@pytest.mark.asyncio
async def test_release_refuses_empty_token(lock_factory, redis_client):
    """Test that a hand-built session without a token never reaches the store."""
    lock = lock_factory()
    owner = await lock.acquire()
    lock._release_script = ScriptStub()

    blank = LockSession(name=lock.name, token="", deadline=owner.deadline)

    with pytest.raises(LockConfigurationError):
        await lock.release(blank)

    with pytest.raises(LockConfigurationError):
        await lock.extend(blank)

    assert lock._release_script.calls == 0
    assert await redis_client.get(lock.name) == owner.token.encode()
