"""
bfvm — Logging Setup

Library modules only create module loggers (logging.getLogger(__name__))
and never attach handlers. Front ends call setup_logging() once:

  console  rich.logging.RichHandler, WARNING+ by default
  file     optional, DEBUG+, pipe-separated format

File format:
  2026-01-19 10:42:07 | INFO    | bfvm.emu | run:214 | HALT after 42 steps
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str = "bfvm",
    level: Optional[int] = None,
    console_level: int = logging.WARNING,
    log_file: Optional[Union[str, Path]] = None,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure and return the `name` logger.

    `level` defaults to the lowest level any installed handler needs, so
    DEBUG records are only built when something will receive them.

    Safe to call more than once: handlers installed by an earlier call are
    replaced, so repeated CLI invocations in one process (tests) do not
    stack duplicate handlers.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if level is None:
        level = min(console_level, logging.DEBUG if log_file else console_level)
    logger.setLevel(level)

    # ── Console handler: only important stuff (WARNING+ default) ──
    if rich_console:
        ch = RichHandler(
            console=Console(stderr=True),
            level=console_level,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        logger.addHandler(fh)
        logger.debug("Log file: %s", log_path)

    return logger
