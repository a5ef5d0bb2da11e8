"""Shared utilities for ctwizard CLI modules."""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from ctwizard.core.errors import PlatformCommandError, WizardError

# Default search paths for the defaults file and requirement manifest
DEFAULTS_PATHS = [
    "./ctwizard.yml",
    str(Path.home() / ".config" / "ctwizard" / "ctwizard.yml"),
    "/etc/ctwizard/ctwizard.yml",
]
MANIFEST_PATHS = [
    "./pvesm_required_list",
    "/etc/ctwizard/pvesm_required_list",
]


def _first_existing(paths: List[str], fallback: str) -> str:
    for path in paths:
        if Path(path).exists():
            return path
    return fallback


def find_defaults(defaults_path: Optional[str] = None) -> str:
    """Locate the container defaults file."""
    if defaults_path:
        return defaults_path

    if env_path := os.environ.get("CTWIZARD_DEFAULTS"):
        return env_path

    return _first_existing(DEFAULTS_PATHS, "ctwizard.yml")


def find_manifest(manifest_path: Optional[str] = None) -> str:
    """Locate the storage requirement manifest."""
    if manifest_path:
        return manifest_path

    if env_path := os.environ.get("CTWIZARD_MANIFEST"):
        return env_path

    return _first_existing(MANIFEST_PATHS, "pvesm_required_list")


def is_mock() -> bool:
    """Return True when CLI runs in mock mode."""
    return os.environ.get("CTWIZARD_MOCK") == "1"


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Set up file logging for CLI commands; returns the log file in use."""
    from ctwizard.core.logger import setup_file_logging as _setup_file_logging
    return _setup_file_logging(log_file=log_file, verbose=verbose)


def handle_wizard_error(
    e: WizardError,
    console: Console,
    verbose: bool = False,
) -> None:
    """Report a provisioning failure and exit with its status.

    Output looks like the classic shell trap line:
        [ERROR] 25@create Command 'pct create ...' failed with status 25
    """
    status = e.exit_code
    where = f"{status}@{e.step}" if e.step else str(status)
    console.print(f"[red][ERROR][/red] [yellow]{where}[/yellow] {e}")
    if isinstance(e, PlatformCommandError):
        console.print(f"[dim]Invocation: {' '.join(e.cmd)}[/dim]")
    if verbose:
        console.print_exception()
    raise typer.Exit(status)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle non-wizard CLI errors with consistent formatting."""
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    """Print error message with consistent formatting."""
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    """Print warning message with consistent formatting."""
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    """Print info message with consistent formatting."""
    console.print(f"[cyan]{prefix}[/cyan] {message}")
