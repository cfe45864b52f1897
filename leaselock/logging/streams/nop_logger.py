from __future__ import annotations

from typing import Any


class NopLogger:
    """Discards every entry. Default for locks and runners built without a logger."""

    async def debug(self, message: str, **fields: Any) -> None:
        return None

    async def error(self, message: str, **fields: Any) -> None:
        return None

    def with_fields(self, **fields: Any) -> NopLogger:
        return self
