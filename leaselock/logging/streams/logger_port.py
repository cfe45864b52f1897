from __future__ import annotations

from typing import Any, Protocol


class LoggerPort(Protocol):
    async def debug(self, message: str, **fields: Any) -> None: ...

    async def error(self, message: str, **fields: Any) -> None: ...

    def with_fields(self, **fields: Any) -> LoggerPort: ...
