from __future__ import annotations

import asyncio
import datetime
import sys
import threading
from typing import (
    Any,
    Dict,
    Literal,
    TextIO,
)

import msgspec

from leaselock.logging.config import LoggingConfig
from leaselock.logging.models import Entry, Log, LogLevel


LogFormat = Literal["template", "json"]

DEFAULT_TEMPLATE = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message} {fields}"

_write_lock = threading.Lock()


class StreamLogger:
    def __init__(
        self,
        name: str | None = None,
        fields: Dict[str, Any] | None = None,
        template: str | None = None,
        log_format: LogFormat = "template",
        stream: TextIO | None = None,
        config: LoggingConfig | None = None,
    ) -> None:
        if name is None:
            name = "leaselock"

        if template is None:
            template = DEFAULT_TEMPLATE

        if config is None:
            config = LoggingConfig()

        self._name = name
        self._fields: Dict[str, Any] = dict(fields or {})
        self._template = template
        self._log_format = log_format
        self._stream = stream
        self._config = config
        self._encoder = msgspec.json.Encoder(enc_hook=repr)

    @property
    def name(self):
        return self._name

    @property
    def fields(self):
        return dict(self._fields)

    def with_fields(self, **fields: Any) -> StreamLogger:
        return StreamLogger(
            name=self._name,
            fields={
                **self._fields,
                **fields,
            },
            template=self._template,
            log_format=self._log_format,
            stream=self._stream,
            config=self._config,
        )

    async def debug(self, message: str, **fields: Any) -> None:
        await self._log(LogLevel.DEBUG, message, fields)

    async def error(self, message: str, **fields: Any) -> None:
        await self._log(LogLevel.ERROR, message, fields)

    async def _log(
        self,
        level: LogLevel,
        message: str,
        fields: Dict[str, Any],
    ):
        if self._config.enabled(self._name, level) is False:
            return

        frame = sys._getframe(2)
        code = frame.f_code

        log = Log(
            entry=Entry(
                message=message,
                level=level,
                fields={
                    **self._fields,
                    **fields,
                },
            ),
            logger_name=self._name,
            filename=code.co_filename,
            function_name=code.co_name,
            line_number=frame.f_lineno,
            thread_id=threading.get_native_id(),
            timestamp=datetime.datetime.now(datetime.UTC).isoformat(),
        )

        if self._log_format == "json":
            line = self._encoder.encode(log).decode()

        else:
            line = log.entry.to_template(
                self._template,
                context={
                    "filename": log.filename,
                    "function_name": log.function_name,
                    "line_number": log.line_number,
                    "thread_id": log.thread_id,
                    "timestamp": log.timestamp,
                },
            )

        stream = self._stream
        if stream is None:
            stream = sys.stdout if self._config.output == "stdout" else sys.stderr

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            self._write,
            stream,
            line,
        )

    def _write(self, stream: TextIO, line: str):
        with _write_lock:
            stream.write(line + "\n")
            stream.flush()
