"""
Process-wide logging settings held in context variables.

Tasks inherit the settings of the context they were created in, so a
test or a worker can narrow the level without affecting its parent.
"""

import contextvars
from typing import FrozenSet, Literal

from leaselock.logging.models import LogLevel, LogLevelName


LogOutput = Literal["stdout", "stderr"]

_log_level = contextvars.ContextVar("leaselock_log_level", default=LogLevel.INFO)
_log_output: contextvars.ContextVar[LogOutput] = contextvars.ContextVar(
    "leaselock_log_output",
    default="stderr",
)
_disabled_loggers = contextvars.ContextVar(
    "leaselock_disabled_loggers",
    default=frozenset(),
)


class LoggingConfig:
    def update(
        self,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
        disabled_loggers: list[str] | None = None,
    ):
        if log_level:
            _log_level.set(LogLevel.to_level(log_level))

        if log_output:
            _log_output.set(log_output)

        if disabled_loggers is not None:
            _disabled_loggers.set(frozenset(disabled_loggers))

    def enabled(self, logger_name: str, log_level: LogLevel) -> bool:
        if logger_name in _disabled_loggers.get():
            return False

        return log_level.rank >= _log_level.get().rank

    @property
    def level(self) -> LogLevel:
        return _log_level.get()

    @property
    def output(self) -> LogOutput:
        return _log_output.get()

    @property
    def disabled_loggers(self) -> FrozenSet[str]:
        return _disabled_loggers.get()
