from leaselock.logging import LoggingConfig

from .env import Env


def configure_logging(env: Env) -> LoggingConfig:
    config = LoggingConfig()
    config.update(
        log_level=env.LEASELOCK_LOG_LEVEL,
        log_output=env.LEASELOCK_LOG_OUTPUT,
    )

    return config
