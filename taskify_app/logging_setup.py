# taskify_app/logging_setup.py

from __future__ import annotations

import logging
import sys


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep our own logs, and only let other libraries through at WARNING+.
    uvicorn's own loggers are left alone so the server still reports startup.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith("taskify_app") or name.startswith("uvicorn"):
            return True
        # passlib logs a noisy traceback when probing the bcrypt version
        if name.startswith("passlib"):
            return record.levelno >= logging.ERROR
        return record.levelno >= logging.WARNING


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    Configure a single stderr handler on the root logger.

    Safe to call more than once: previously installed handlers are replaced.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(ch)

    logging.captureWarnings(True)
