"""Shared logging helpers for fleetsync."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "FLEETSYNC_LOG_LEVEL"


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the level
    defaults to ``FLEETSYNC_LOG_LEVEL`` (or INFO) and the format is terse enough for
    CLI output and job logs alike. Pass ``force=True`` to reconfigure during tests or
    specialised entry points.
    """

    if level is None:
        level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
        resolved = logging.getLevelName(level_name)
        level = resolved if isinstance(resolved, int) else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
