from .logger_port import LoggerPort as LoggerPort
from .nop_logger import NopLogger as NopLogger
from .stream_logger import (
    StreamLogger as StreamLogger,
    LogFormat as LogFormat,
)
