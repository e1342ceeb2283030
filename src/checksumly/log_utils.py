"""
📄 log_utils.py

Purpose:
    Console and side-file logging for update/check runs.

Key Features:
    - setup_logging(): RichHandler on stderr (INFO, DEBUG with --verbose) and,
      with --log, an appending FileHandler that records every message.
    - log_invocation(): writes the resolved run parameters at DEBUG level.
    - shutdown_logging(): flushes and detaches the handlers.

Usage:
    Called once by the CLI before dispatching to update or check.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "checksumly"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _separate_runs(log_file: Path) -> None:
    # blank line between runs appended to the same file
    if log_file.exists() and log_file.stat().st_size > 0:
        with open(log_file, "a", encoding="utf-8") as fh:
            fh.write("\n")


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
    console: Console | None = None,
) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    shutdown_logging()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _separate_runs(log_file)

        fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(fh)

    return logger


def log_invocation(config, action: str) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.debug(f"{' '.join(sys.argv)} {datetime.now().astimezone().isoformat(timespec='seconds')}")
    logger.debug(f"ACTION={action}")
    logger.debug(f"BASE={config.base_dir}")
    logger.debug(f"FOLDER={config.scope_dir}")
    logger.debug(f"DATATABLE={config.hash_file}")
    logger.debug(f"FILETYPES={config.file_types if config.file_types is not None else '(inherit)'}")
    logger.debug(f"HASH={config.hash_algorithm}")
    logger.debug(f"FORCE={int(config.force)}")
    logger.debug(f"LOGFILE={config.log_file or ''}")


def shutdown_logging() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
