from .lock_runner import (
    DEFAULT_RELEASE_TIMEOUT_FLOOR as DEFAULT_RELEASE_TIMEOUT_FLOOR,
    LockRunner as LockRunner,
)
from .run_with_lock import (
    run_with_lock as run_with_lock,
    run_with_lock_logged as run_with_lock_logged,
    create_runner_from_env as create_runner_from_env,
)
from .runner_phase import RunnerPhase as RunnerPhase
