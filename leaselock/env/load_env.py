import os
from typing import Callable, Dict, Iterable, Mapping, Tuple, TypeVar, Union

from dotenv import dotenv_values

from .env import Env

T = TypeVar("T", bound=Env)

PrimaryType = Union[str, int, bool, float, bytes]


def load_env(
    default: type[T] = Env,
    env_file: str | None = None,
    override: T | None = None,
) -> T:
    """
    Build an Env from, in increasing precedence, the process environment,
    a dotenv file (``.env`` in the working directory unless given), and
    the explicitly set fields of ``override``.
    """
    envars = default.types_map()

    if env_file is None:
        env_file = ".env"

    values = _coerce(envars, os.environ.items())

    if env_file and os.path.exists(env_file):
        values.update(
            _coerce(envars, dotenv_values(dotenv_path=env_file).items())
        )

    model = default
    if override is not None:
        values.update(override.model_dump(exclude_unset=True))
        model = type(override)

    return model(
        **{name: value for name, value in values.items() if value is not None}
    )


def _coerce(
    envars: Mapping[str, Callable[[str], PrimaryType]],
    items: Iterable[Tuple[str, str | None]],
) -> Dict[str, PrimaryType]:
    # Unknown names and empty values are skipped so defaults still apply.
    return {
        name: envars[name](value)
        for name, value in items
        if name in envars and value
    }
