"""
Lease locks over a shared Redis key.

Provides atomic acquire, extend and release of a named key so that
independent processes can take turns on a shared resource.
"""

from .errors import (
    LeaseExpiredError as LeaseExpiredError,
    LockAcquireTimeout as LockAcquireTimeout,
    LockConfigurationError as LockConfigurationError,
    LockError as LockError,
    LockMismatchError as LockMismatchError,
    LockStoreError as LockStoreError,
)
from .lock import Lock as Lock
from .lock_session import LockSession as LockSession
from .redis_client import (
    create_lock_from_env as create_lock_from_env,
    create_redis_client as create_redis_client,
)
from .tokens import new_token as new_token
