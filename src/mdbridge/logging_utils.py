"""Logging setup for the mdbridge command line.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are installed here, by the entry point, and nowhere else.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

PLAIN_FORMAT = "%(levelname)s: %(message)s"
TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
TRACE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: int | str | None, default: int = logging.WARNING) -> int:
    """Turn a level name or number into a logging level.

    Unknown names fall back to ``default``.

    Examples
    --------
    >>> resolve_level("debug")
    10
    >>> resolve_level("nonsense", logging.INFO)
    20

    """
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
    file_level: int | str | None = None,
) -> logging.Logger:
    """Install stderr (and optional file) handlers on the root logger.

    Existing root handlers are removed, so calling this twice does not
    duplicate output.

    Parameters
    ----------
    log_level : int | str
        Level for the stderr handler, as a number or a name such as ``"INFO"``
    log_file : str, optional
        Also append log records to this file
    trace_mode : bool, default False
        Include timestamps and logger names in every record
    file_level : int | str, optional
        Level for the file handler; defaults to ``log_level``. A lower file
        level lets the file capture detail that stderr omits.

    Returns
    -------
    logging.Logger
        The root logger

    """
    console_level = resolve_level(log_level)
    file_handler_level = resolve_level(file_level, console_level)

    formatter = logging.Formatter(
        TRACE_FORMAT if trace_mode else PLAIN_FORMAT,
        datefmt=TRACE_DATE_FORMAT if trace_mode else None,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    root_level = console_level
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root_logger.warning("Could not create log file %s: %s", log_file, exc)
        else:
            file_handler.setLevel(file_handler_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_level = min(console_level, file_handler_level)

    # The root level gates records before any handler sees them
    root_logger.setLevel(root_level)
    if log_file and len(root_logger.handlers) > 1:
        root_logger.info("Logging to file: %s", log_file)
    return root_logger
