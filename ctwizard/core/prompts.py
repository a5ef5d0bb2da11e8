"""Operator terminal I/O.

Every question and status line the wizard produces goes through a Prompter
so that tests can script the answers and inspect the output.
"""
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule

from ctwizard.cli_support import print_error, print_info, print_success, print_warning


class Prompter:
    """Interactive prompts backed by Typer, with pre-filled defaults."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    # ==================== Input ====================

    def ask(self, message: str, default: Optional[str] = None) -> str:
        """Free-form text; pressing ENTER accepts the default."""
        if default is None:
            return str(typer.prompt(message)).strip()
        return str(typer.prompt(message, default=default)).strip()

    def confirm(self, message: str, default: bool = False) -> bool:
        return typer.confirm(message, default=default)

    def choose(self, message: str, options: Sequence[str], default: int = 1) -> int:
        """Numbered menu; returns the zero-based index of the chosen option."""
        for idx, option in enumerate(options, start=1):
            self.console.print(f"  {idx}) {option}")

        while True:
            answer = str(typer.prompt(message, default=str(default))).strip()
            if answer.isascii() and answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer) - 1
            self.console.print(f"[red]Enter a number between 1 and {len(options)}[/red]")

    # ==================== Output ====================

    def say(self, message: str) -> None:
        self.console.print(message)

    def info(self, message: str) -> None:
        print_info(self.console, message)

    def success(self, message: str) -> None:
        print_success(self.console, message)

    def error(self, message: str) -> None:
        print_error(self.console, message)

    def warn(self, headline: str, problems: Sequence[str] = (), footer: str = "") -> None:
        """Warning with an enumerated list of problems, e.g. for a rejected input."""
        print_warning(self.console, f"[bold]{headline}[/bold]")
        for line in numbered(list(problems)):
            self.console.print(f"    {line}")
        if footer:
            self.console.print(f"  {footer}")
        self.console.print()

    def box(self, message: str, title: Optional[str] = None) -> None:
        self.console.print(Panel(message, title=title, width=84, padding=(1, 3)))

    def section(self, title: str) -> None:
        self.console.print(Rule(title, align="left"))
        self.console.print()


def numbered(lines: List[str]) -> List[str]:
    """Prefix each line with its 1-based position."""
    return [f"{idx}. {line}" for idx, line in enumerate(lines, start=1)]
