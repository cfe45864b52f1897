from __future__ import annotations

from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictInt, StrictStr

from .time_parser import TimeParser

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    LEASELOCK_REDIS_URL: StrictStr = "redis://localhost:6379/0"
    LEASELOCK_REDIS_POOL_SIZE: StrictInt = 10
    LEASELOCK_LEASE: StrictStr = "30s"
    LEASELOCK_RETRY_INTERVAL: StrictStr = "100ms"
    LEASELOCK_RELEASE_TIMEOUT_FLOOR: StrictStr = "10s"
    LEASELOCK_MAX_RELEASE_ATTEMPTS: StrictInt | None = None
    LEASELOCK_LOG_LEVEL: StrictStr = "info"
    LEASELOCK_LOG_OUTPUT: Literal["stdout", "stderr"] = "stderr"

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "LEASELOCK_REDIS_URL": str,
            "LEASELOCK_REDIS_POOL_SIZE": int,
            "LEASELOCK_LEASE": str,
            "LEASELOCK_RETRY_INTERVAL": str,
            "LEASELOCK_RELEASE_TIMEOUT_FLOOR": str,
            "LEASELOCK_MAX_RELEASE_ATTEMPTS": int,
            "LEASELOCK_LOG_LEVEL": str,
            "LEASELOCK_LOG_OUTPUT": str,
        }

    def lease_seconds(self) -> float:
        return TimeParser().parse(self.LEASELOCK_LEASE)

    def retry_interval_seconds(self) -> float:
        return TimeParser().parse(self.LEASELOCK_RETRY_INTERVAL)

    def release_timeout_floor_seconds(self) -> float:
        return TimeParser().parse(self.LEASELOCK_RELEASE_TIMEOUT_FLOOR)
