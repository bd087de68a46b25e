from __future__ import annotations

import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_level(level: int | str) -> int:
    """Accept either a logging constant or a name such as ``"debug"``."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    *,
    level: int | str = logging.INFO,
    log_file: str | None = None,
    console: bool = True,
    fmt: str = DEFAULT_FORMAT,
) -> None:
    handlers: list[logging.Handler] = []

    if console:
        handlers.append(logging.StreamHandler(stream=sys.stderr))

    if log_file:
        log_dir = os.path.dirname(str(log_file))
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))

    if not handlers:
        # Never leave logging unconfigured.
        handlers.append(logging.NullHandler())

    logging.basicConfig(level=resolve_level(level), format=fmt, handlers=handlers, force=True)
