"""Logging for ctwizard: a quiet Rich console handler plus an optional file log.

All handlers hang off the package logger "ctwizard". Module loggers are its
children and only propagate, so a record is written once per handler no
matter how many modules call get_logger().
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "ctwizard"

LOG_FILE = Path("/var/log/ctwizard/ctwizard.log")
FALLBACK_LOG_FILE = Path("/tmp/ctwizard.log")

FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

console = Console(stderr=True)

_active_log_file: Optional[Path] = None


def _package_logger() -> logging.Logger:
    root = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        # Prompts own the terminal; only warnings and errors go to the console.
        handler = RichHandler(console=console, show_path=False, show_time=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.setLevel(logging.WARNING)
        root.addHandler(handler)
        root.setLevel(logging.DEBUG)
        root.propagate = False
    return root


def _open_log_file(path: Path) -> logging.FileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path)


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Mirror every ctwizard record into a log file.

    Uses log_file if given, else /var/log/ctwizard/ctwizard.log, falling back
    to /tmp/ctwizard.log when that location cannot be written. Calling it
    again returns the file already in use.

    Returns:
        Path of the log file receiving records
    """
    global _active_log_file

    if _active_log_file is not None:
        return _active_log_file

    target = Path(log_file) if log_file else LOG_FILE
    try:
        handler = _open_log_file(target)
    except OSError:
        target = FALLBACK_LOG_FILE
        handler = _open_log_file(target)

    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = _package_logger()
    root.addHandler(handler)
    _active_log_file = target

    root.info(f"ctwizard logging to {target}")
    return target


def get_logger(name: str) -> logging.Logger:
    """Logger for a ctwizard module (pass __name__)."""
    root = _package_logger()
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return root.getChild(name)
