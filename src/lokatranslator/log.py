"""Logging setup: rich console output plus a timestamped log file per run."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(threadName)s %(name)s: %(message)s"


def log_file_path(log_dir: Path, now: datetime | None = None) -> Path:
    """``<log_dir>/YYYY-MM-DD/HH-MM-SS.log``"""
    now = now or datetime.now()
    return log_dir / now.strftime("%Y-%m-%d") / f"{now.strftime('%H-%M-%S')}.log"


def setup_logging(
    log_dir: Path | None = Path("logs"),
    *,
    verbose: bool = False,
    quiet: bool = False,
    console: Console | None = None,
) -> Path | None:
    """Configure the root logger. Returns the log file path, if any."""
    level = logging.DEBUG if verbose else logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    console_handler = RichHandler(
        console=console,
        show_path=False,
        log_time_format="%H:%M:%S",
        rich_tracebacks=verbose,
    )
    console_handler.setLevel(logging.WARNING if quiet else level)
    root.addHandler(console_handler)

    path: Path | None = None
    if log_dir is not None:
        path = log_file_path(log_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%H:%M:%S"))
        file_handler.setLevel(level)
        root.addHandler(file_handler)

    # Keep third-party chatter out of the run log
    for noisy in ("urllib3", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return path
