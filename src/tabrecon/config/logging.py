"""Shared logging helpers for tabrecon."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import InvalidConfigurationError

LOG_LEVEL_ENV = "TABRECON_LOG_LEVEL"


def resolve_log_level(default: int = logging.INFO) -> int:
    """Read ``TABRECON_LOG_LEVEL`` (a level name such as ``DEBUG``) if set."""

    raw = optional_env_var(LOG_LEVEL_ENV)
    if raw is None:
        return default
    level = logging.getLevelNamesMapping().get(raw.upper())
    if level is None:
        raise InvalidConfigurationError(LOG_LEVEL_ENV, raw, "a logging level name")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    Logs go to stderr so command output on stdout stays machine readable. Pass
    ``force=True`` to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level if level is not None else resolve_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
