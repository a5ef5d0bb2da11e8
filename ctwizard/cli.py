#!/usr/bin/env python3
"""ctwizard CLI - Interactive LXC provisioning for Proxmox VE."""

import typer
from rich.console import Console

from ctwizard.cli_create_commands import register_create_commands
from ctwizard.core.logger import get_logger

app = typer.Typer(
    name="ctwizard",
    help="""ctwizard - Interactive LXC provisioning for Proxmox VE

Validates hostname, IPv4, gateway, CTID and storage bind mounts
before handing over to pct.

Quick start:
  ctwizard check -d jellyfin.yml -m pvesm_required_list   # Are the defaults free?
  ctwizard create -d jellyfin.yml -m pvesm_required_list  # Run the wizard
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

register_create_commands(app, console)

if __name__ == "__main__":
    app()
