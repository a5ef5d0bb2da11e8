"""Provisioning CLI commands - create, check."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from ctwizard.cli_support import (
    find_defaults,
    find_manifest,
    handle_cli_error,
    handle_wizard_error,
    is_mock,
    print_info,
    print_warning,
    setup_file_logging,
)
from ctwizard.config import ConfigValidationError, load_defaults, load_manifest
from ctwizard.core.config import get_settings
from ctwizard.core.errors import WizardError
from ctwizard.core.express import ExpressCheck
from ctwizard.core.modules import KernelModules
from ctwizard.core.negotiator import StorageNegotiator
from ctwizard.core.prompts import Prompter
from ctwizard.core.validator import InputValidator
from ctwizard.core.wizard import ProvisioningWizard
from ctwizard.core.workspace import Workspace
from ctwizard.models.defaults import ContainerDefaults
from ctwizard.models.storage import StorageRequirement
from ctwizard.services.network import NetworkProbe
from ctwizard.services.proxmox import PlatformClient


def _load_inputs(
    console: Console,
    defaults_path: Optional[str],
    manifest_path: Optional[str],
    verbose: bool,
) -> Tuple[ContainerDefaults, List[StorageRequirement]]:
    """Load the defaults file and requirement manifest, exiting with 2 on bad input."""
    try:
        defaults = load_defaults(find_defaults(defaults_path))

        manifest_file = find_manifest(manifest_path)
        if manifest_path is None and not Path(manifest_file).exists():
            print_warning(console, "No requirement manifest found, no bind mounts will be configured")
            requirements: List[StorageRequirement] = []
        else:
            requirements = load_manifest(manifest_file)
    except (FileNotFoundError, ConfigValidationError) as e:
        handle_cli_error(e, console, verbose, exit_code=2)

    return defaults, requirements


def register_create_commands(root: typer.Typer, console: Console) -> None:
    """Attach provisioning commands to the main CLI."""

    @root.command("create")
    def create_command(
        defaults_path: Optional[str] = typer.Option(None, "--defaults", "-d", help="Container defaults YAML file."),
        manifest_path: Optional[str] = typer.Option(None, "--manifest", "-m", help="Storage requirement manifest (role|description per line)."),
        skip_modules: bool = typer.Option(False, "--skip-modules", help="Do not load or persist kernel modules."),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Write a log of this run to a file."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks."),
    ) -> None:
        """Interactively create a new LXC container."""
        if log_file or verbose:
            log_path = setup_file_logging(log_file=log_file, verbose=verbose)
            print_info(console, f"Logging to {log_path}")

        defaults, requirements = _load_inputs(console, defaults_path, manifest_path, verbose)

        settings = get_settings()
        mock = is_mock()
        platform = PlatformClient(mock=mock, settings=settings)
        probe = NetworkProbe(mock=mock, settings=settings)
        modules = None if skip_modules else KernelModules(mock=mock, settings=settings)
        prompter = Prompter(console)

        prompter.section(f"{defaults.section_head} - {defaults.display_name} CT")

        with Workspace() as workspace:
            wizard = ProvisioningWizard(
                platform, probe, prompter, defaults, requirements, workspace,
                modules=modules, settings=settings,
            )
            try:
                wizard.run()
            except WizardError as e:
                handle_wizard_error(e, console, verbose)
            except (KeyboardInterrupt, typer.Abort):
                console.print("\n[yellow]Aborted by operator.[/yellow]")
                raise typer.Exit(130)

    @root.command("check")
    def check_command(
        defaults_path: Optional[str] = typer.Option(None, "--defaults", "-d", help="Container defaults YAML file."),
        manifest_path: Optional[str] = typer.Option(None, "--manifest", "-m", help="Storage requirement manifest (role|description per line)."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks on failure."),
    ) -> None:
        """Report whether every default setting is available on this host."""
        defaults, requirements = _load_inputs(console, defaults_path, manifest_path, verbose)

        settings = get_settings()
        mock = is_mock()
        platform = PlatformClient(mock=mock, settings=settings)
        probe = NetworkProbe(mock=mock, settings=settings)
        validator = InputValidator(platform, probe, defaults)
        negotiator = StorageNegotiator(
            Prompter(console), nas_hostname=defaults.nas_hostname or settings.nas_hostname
        )

        try:
            report = ExpressCheck(validator, negotiator, defaults).run(
                requirements, platform.list_storage_pools()
            )
        except WizardError as e:
            handle_wizard_error(e, console, verbose)

        values = {
            "hostname": defaults.hostname,
            "ip": defaults.ip,
            "gateway": defaults.gateway,
            "ctid": str(defaults.ctid),
            "bind-mounts": ", ".join(f"{m.pool}->{m.path}" for m in report.mounts) or "-",
        }

        table = Table(title=f"{defaults.display_name} defaults", show_header=True, header_style="bold cyan")
        table.add_column("Setting", style="bold")
        table.add_column("Default")
        table.add_column("Status")
        for name, ok in report.checks.items():
            status = "[green]available[/green]" if ok else "[red]unavailable[/red]"
            table.add_row(name, values.get(name, ""), status)
        console.print(table)

        if not report.all_available:
            raise typer.Exit(1)
