"""Provisioning wizard: sequences the prompts and creates the container."""
from typing import Callable, List, Optional, Sequence

import typer
from rich.table import Table

from ctwizard.core.config import WizardSettings, get_settings
from ctwizard.core.errors import OperatorDeclinedError, PreflightError, WizardError
from ctwizard.core.express import ExpressCheck
from ctwizard.core.logger import get_logger
from ctwizard.core.negotiator import StorageNegotiator
from ctwizard.core.recovery import ContainerRecovery
from ctwizard.core.resolver import ConflictResolver
from ctwizard.core.validator import InputValidator, derive_ctid, is_whole_number, octets
from ctwizard.models.container import ContainerResources, ContainerSpec, NetworkConfig
from ctwizard.models.defaults import ContainerDefaults
from ctwizard.models.session import ProvisioningSession
from ctwizard.models.storage import StorageRequirement

logger = get_logger(__name__)

PREFERRED_ROOT_STORAGE = "local-zfs"


class ProvisioningWizard:
    """Walks the operator through every setting, then runs pct create.

    Order: preflight, root storage, express defaults, hostname, ip, gateway,
    ctid, disk size, ram, bind mounts, final confirmation, create. Any
    WizardError raised after creation has started triggers cleanup of the
    half-built container before it propagates.
    """

    def __init__(
        self,
        platform,
        probe,
        prompter,
        defaults: ContainerDefaults,
        requirements: Sequence[StorageRequirement],
        workspace,
        modules=None,
        settings: Optional[WizardSettings] = None,
    ):
        self.platform = platform
        self.probe = probe
        self.prompter = prompter
        self.defaults = defaults
        self.requirements = list(requirements)
        self.workspace = workspace
        self.modules = modules
        self.settings = settings or get_settings()

        self.session = ProvisioningSession()
        self.validator = InputValidator(platform, probe, defaults)
        self.resolver = ConflictResolver(prompter)
        self.negotiator = StorageNegotiator(
            prompter,
            nas_hostname=defaults.nas_hostname or self.settings.nas_hostname,
            web_url=f"https://{probe.host_address()}:8006",
        )
        self.recovery = ContainerRecovery(platform)
        self.current_step: Optional[str] = None
        self._create_attempted = False

    @property
    def label(self) -> str:
        return self.defaults.display_name

    def run(self) -> ProvisioningSession:
        """Run every step; returns the session of the created container."""
        try:
            self._run_steps()
        except WizardError as e:
            if e.step is None:
                e.step = self.current_step
            logger.error(f"Provisioning failed at step '{e.step}': {e}")
            self.abort()
            raise
        except (KeyboardInterrupt, typer.Abort):
            logger.warning(f"Provisioning interrupted at step '{self.current_step}'")
            self.abort()
            raise
        return self.session

    def abort(self) -> None:
        """Remove a half-created container and the scratch directory."""
        if self._create_attempted:
            self.prompter.say(f"Cleaning up CT {self.session.ctid}...")
            if not self.recovery.cleanup_failed(self.session.ctid, self.session.storage):
                self.prompter.error(
                    f"Cleanup of CT {self.session.ctid} was incomplete. "
                    "Check it with 'pct list' and 'pvesm list' before retrying."
                )
        self.workspace.cleanup()

    def _enter(self, name: str, func: Callable[[], None]) -> None:
        self.current_step = name
        logger.debug(f"Step: {name}")
        func()

    def _run_steps(self) -> None:
        self._enter("preflight", self.preflight)
        self._enter("storage", self.select_storage)
        self._enter("express", self.offer_express)
        if not self.session.express:
            self._enter("hostname", self.set_hostname)
            self._enter("ip", self.set_ip)
            self._enter("gateway", self.set_gateway)
            self._enter("ctid", self.set_ctid)
            self._enter("disk", self.set_disk_size)
            self._enter("ram", self.set_ram)
            self._enter("bind-mounts", self.set_bind_mounts)
        self._enter("confirm", self.confirm)
        self._enter("create", self.create)

    # ==================== Steps ====================

    def preflight(self) -> None:
        if self.modules is not None:
            self.modules.ensure(self.settings.kernel_modules)

    def select_storage(self) -> None:
        self.prompter.say(
            f"Select the storage location where the {self.label} CT will be created..."
        )
        names = [pool.name for pool in self.platform.list_storage_pools(content="rootdir")]

        if not names:
            self.prompter.warn("PVE containers require at least one storage location.")
            raise PreflightError("Unable to detect a valid storage location on this PVE host.")

        if len(names) == 1:
            self.session.storage = names[0]
        else:
            self.prompter.say("More than one storage location has been detected.")
            default = names.index(PREFERRED_ROOT_STORAGE) + 1 if PREFERRED_ROOT_STORAGE in names else 1
            idx = self.prompter.choose(
                f"Which storage location would you like to use (recommend {PREFERRED_ROOT_STORAGE})?",
                names,
                default=default,
            )
            self.session.storage = names[idx]

        self.prompter.info(f"PVE CT storage location is set: [yellow]{self.session.storage}[/yellow]")

    def offer_express(self) -> None:
        """Offer every default in one go when all of them are available."""
        report = ExpressCheck(self.validator, self.negotiator, self.defaults).run(
            self.requirements, self.platform.list_storage_pools()
        )
        if not report.all_available:
            logger.info(f"Defaults not available: {', '.join(report.unavailable)}")
            return

        d = self.defaults
        lines = [
            f"1) CT hostname: [yellow]{d.hostname}[/yellow]",
            f"2) CT IPv4 address: [yellow]{d.ip}[/yellow]",
            f"3) CT Gateway address: [yellow]{d.gateway}[/yellow]",
            f"4) CT CTID: [yellow]{d.ctid}[/yellow]",
        ]
        for idx, mount in enumerate(report.mounts, start=5):
            lines.append(f"{idx}) Bind mount: {mount.pool} ---> {mount.path}")

        self.prompter.say(
            "All of our default build settings are available (recommended). "
            f"Our settings for {self.label} are:"
        )
        for line in lines:
            self.prompter.say(f"    {line}")

        if not self.prompter.confirm("Proceed with our defaults (recommended)?", default=True):
            self.prompter.info("Proceeding with standard installation.")
            return

        self.session.hostname = d.hostname
        self.session.ip = d.ip
        self.session.gateway = d.gateway
        self.session.vlan_tag = d.tag
        self.session.ctid = d.ctid
        self.session.disk_size = d.disk_size
        self.session.ram = d.ram
        self.session.mounts = list(report.mounts)
        self.session.express = True
        self.workspace.write_mounts(self.session.mounts)
        self.prompter.info(f"{self.label} CT is set to use the defaults.")

    def set_hostname(self) -> None:
        self.prompter.say(f"Setting {self.label} CT hostname...")
        while True:
            answer = self.prompter.ask("Enter a CT hostname", default=self.defaults.hostname)
            result = self.validator.validate_hostname(answer)
            if not result.accepted:
                self.prompter.warn("There are problems with your input:", result.problems, "Try again...")
                continue
            if self.resolver.resolve(result, "CT hostname"):
                self.session.hostname = result.value
                suffix = " (non-standard)" if result.needs_confirmation else ""
                self.prompter.info(f"{self.label} CT hostname is set: [yellow]{result.value}[/yellow]{suffix}")
                return

    def set_ip(self) -> None:
        self.prompter.say(f"Setting {self.label} CT IPv4 address...")
        default = self.defaults.ip
        while True:
            answer = self.prompter.ask("Enter a CT IPv4 address", default=default)
            self.prompter.say("Performing checks on your input (be patient, may take a while)...")
            result = self.validator.validate_ip(answer)
            if not result.accepted:
                self.prompter.warn("There are problems with your input:", result.problems, "Try again...")
                continue
            if self.resolver.resolve(result, "IPv4 address"):
                self.session.ip = result.value
                self.session.vlan_tag = result.vlan_tag
                self.prompter.info(
                    f"{self.label} CT IPv4 address is set: [yellow]{result.value}[/yellow] "
                    f"(VLAN{result.vlan_tag})"
                )
                return
            default = answer

    def set_gateway(self) -> None:
        self.prompter.say(f"Setting {self.label} CT Gateway IPv4 address...")
        gateway = self.validator.derive_gateway(self.session.ip)
        if gateway is None:
            self.prompter.box(
                f"Because you have chosen to use a non-standard {self.label} CT IP "
                f"{self.session.ip} and VLAN setting we cannot determine your Gateway "
                "IP address for this CT. You must manually input a working Gateway IPv4 address."
            )
            prefix = ".".join(self.session.ip.split(".")[:3])
            result = self.resolver.manual_entry(
                "Enter a working Gateway IPv4 address for this CT",
                f"{prefix}.xxx",
                self.validator.validate_gateway,
            )
            gateway = result.value

        self.session.gateway = gateway
        self.prompter.info(f"{self.label} CT Gateway IP is set: [yellow]{gateway}[/yellow]")

    def set_ctid(self) -> None:
        self.prompter.say(f"Setting {self.label} CT container CTID...")
        while True:
            derived = derive_ctid(self.session.ip)
            last = octets(self.session.ip)[3]
            self.prompter.say(
                "Proxmox CTID numeric IDs must be 100 or greater. The CTID is derived "
                "from the last octet of the CT IPv4 address."
            )
            if last < 100:
                self.prompter.say(
                    f"The last octet {last} is outside the PVE range, so 100 is added ({derived})."
                )

            result = self.validator.validate_ctid(derived)
            if result.accepted:
                self._commit_ctid(int(result.value))
                return

            self.prompter.warn(
                "There are problems with your input:", result.problems,
                "PVE will auto-generate a valid CTID (press ENTER to accept).",
            )
            suggestion = self.platform.next_free_id()
            answer = self.prompter.ask(
                "Accept the PVE generated CTID or type a new CTID numeric ID",
                default=str(suggestion),
            )
            retry = self.validator.validate_ctid(answer)
            if retry.accepted:
                self._commit_ctid(int(retry.value))
                return
            self.prompter.warn("There are problems with your input:", retry.problems, "Try again...")

    def _commit_ctid(self, vmid: int) -> None:
        self.session.ctid = vmid
        self.prompter.info(f"{self.label} CTID is set: [yellow]{vmid}[/yellow]")

    def _ask_positive_int(self, message: str, default: int) -> int:
        while True:
            answer = self.prompter.ask(message, default=str(default))
            if is_whole_number(answer) and int(answer) > 0:
                return int(answer)
            self.prompter.warn("There are problems with your input:",
                               [f"'{answer}' is not a positive whole number."], "Try again...")

    def set_disk_size(self) -> None:
        self.session.disk_size = self._ask_positive_int("Enter CT Disk Size (GiB)", self.defaults.disk_size)
        self.prompter.info(f"CT virtual disk is set: [yellow]{self.session.disk_size} GiB[/yellow].")

    def set_ram(self) -> None:
        self.session.ram = self._ask_positive_int(
            "Enter CT RAM memory to be allocated (MiB)", self.defaults.ram
        )
        self.prompter.info(f"CT allocated memory is set: [yellow]{self.session.ram} MiB[/yellow].")

    def set_bind_mounts(self) -> None:
        mounts = self.negotiator.negotiate(self.requirements, self.platform.list_storage_pools())
        self.session.mounts = mounts
        self.workspace.write_mounts(mounts)
        if mounts:
            self.prompter.info(f"{self.label} CT storage mount points are set.")

    def confirm(self) -> None:
        table = Table(title=f"{self.label} CT", show_header=True, header_style="bold cyan")
        table.add_column("Setting", style="bold")
        table.add_column("Value", style="yellow")
        for setting, value in self.summary():
            table.add_row(setting, value)
        self.prompter.console.print(table)

        if not self.prompter.confirm(f"Create {self.label} CT {self.session.ctid} with these settings?",
                                     default=True):
            raise OperatorDeclinedError("Container creation declined by operator.", step="confirm")

    def summary(self) -> List[tuple]:
        s = self.session
        rows = [
            ("Storage", s.storage),
            ("Hostname", s.hostname),
            ("IPv4 address", f"{s.ip}/{self.defaults.cidr}"),
            ("Gateway", s.gateway),
            ("VLAN tag", str(s.vlan_tag)),
            ("CTID", str(s.ctid)),
            ("Disk", f"{s.disk_size} GiB"),
            ("RAM", f"{s.ram} MiB"),
        ]
        rows.extend((f"Bind mount {i}", f"{m.pool} ---> {m.path}") for i, m in enumerate(s.mounts))
        return rows

    def build_spec(self) -> ContainerSpec:
        s = self.session
        d = self.defaults
        return ContainerSpec(
            vmid=s.ctid,
            hostname=s.hostname,
            template=d.template,
            storage=s.storage,
            network=NetworkConfig(
                bridge=d.bridge, ip=s.ip, cidr=d.cidr, gateway=s.gateway, tag=s.vlan_tag,
            ),
            resources=ContainerResources(memory=s.ram, cores=d.cores, disk=s.disk_size, swap=d.swap),
            unprivileged=d.unprivileged,
            features=d.features,
            tags=list(d.tags),
        )

    def create(self) -> None:
        missing = self.session.missing_fields()
        if missing:
            raise WizardError(f"Session incomplete, missing: {', '.join(missing)}")

        spec = self.build_spec()
        self._create_attempted = True
        self.prompter.say(f"Creating {self.label} CT {spec.vmid}...")
        self.platform.create_container(spec)
        self.session.created = True

        mounts = self.workspace.read_mounts()
        if mounts:
            self.prompter.say(f"Creating {self.label} CT bind mounts...")
        for idx, mount in enumerate(mounts):
            self.platform.set_mount(spec.vmid, idx, mount)
            self.prompter.info(f"{self.label} CT bind mount created: {mount.pool} ---> [yellow]{mount.path}[/yellow]")

        self.prompter.success(f"{self.label} CT {spec.vmid} ({spec.hostname}) created")
