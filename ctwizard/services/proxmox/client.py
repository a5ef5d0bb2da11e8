"""Typed adapter over the pct, pvesm and pvesh command line tools."""
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ctwizard.core.config import WizardSettings, get_settings
from ctwizard.core.errors import PlatformCommandError
from ctwizard.core.logger import get_logger
from ctwizard.models.container import ContainerInfo, ContainerSpec
from ctwizard.models.storage import StorageMount, StoragePool
from .parsing import (
    parse_container_list,
    parse_lxc_ips,
    parse_storage_status,
    parse_volume_list,
)

logger = get_logger(__name__)

# Where Proxmox mounts network storages on the host
PVE_MOUNT_ROOT = "/mnt/pve"


class PlatformClient:
    """Talks to Proxmox VE through its CLI and returns structured results.

    All parsing of tabular command output lives behind this class so the
    wizard can be driven by a fake in tests.
    """

    def __init__(self, mock: bool = False, settings: Optional[WizardSettings] = None):
        self.mock = mock
        self.settings = settings or get_settings()

    def _run(self, cmd: Sequence[str], step: Optional[str] = None,
             timeout: Optional[int] = None) -> str:
        """Run a command and return stdout, raising PlatformCommandError on failure."""
        logger.debug(f"Command: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                check=True,
                timeout=timeout,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed ({e.returncode}): {' '.join(cmd)}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            raise PlatformCommandError(cmd, e.returncode, e.stderr or "", step=step) from e
        except FileNotFoundError as e:
            raise PlatformCommandError(cmd, 127, f"{cmd[0]}: command not found", step=step) from e
        except subprocess.TimeoutExpired as e:
            raise PlatformCommandError(cmd, 124, f"timed out after {timeout}s", step=step) from e
        return result.stdout

    # ==================== Containers ====================

    def list_containers(self) -> List[ContainerInfo]:
        """List all LXC containers on this node."""
        if self.mock:
            logger.debug("MOCK: Would run pct list")
            return [
                ContainerInfo(vmid=100, name="jellyfin", status="running"),
                ContainerInfo(vmid=101, name="nextcloud", status="stopped"),
            ]

        output = self._run(["pct", "list"], timeout=self.settings.command_timeout)
        return parse_container_list(output)

    def find_container_by_name(self, name: str) -> Optional[ContainerInfo]:
        """Case-insensitive hostname lookup."""
        wanted = name.lower()
        for container in self.list_containers():
            if container.name.lower() == wanted:
                return container
        return None

    def find_container_by_id(self, vmid: int) -> Optional[ContainerInfo]:
        for container in self.list_containers():
            if container.vmid == vmid:
                return container
        return None

    def container_status(self, vmid: int) -> Optional[str]:
        """Return 'running', 'stopped', ... or None if the container does not exist."""
        if self.mock:
            found = self.find_container_by_id(vmid)
            return found.status if found else None

        try:
            result = subprocess.run(
                ["pct", "status", str(vmid)],
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, FileNotFoundError):
            return None

        # status: running
        parts = result.stdout.split()
        return parts[1] if len(parts) > 1 else "unknown"

    def next_free_id(self) -> int:
        """Ask the cluster for the next unused CTID."""
        if self.mock:
            used = {c.vmid for c in self.list_containers()}
            vmid = 100
            while vmid in used:
                vmid += 1
            return vmid

        output = self._run(["pvesh", "get", "/cluster/nextid"], timeout=self.settings.command_timeout)
        return int(output.strip().strip('"'))

    def allocated_ips(self) -> Dict[str, int]:
        """Map every static IPv4 bound in a container config to its CTID."""
        if self.mock:
            return {"192.168.1.100": 100}

        allocated: Dict[str, int] = {}
        conf_dir = Path(self.settings.lxc_conf_dir)
        if not conf_dir.exists():
            logger.warning(f"Container config directory not found: {conf_dir}")
            return allocated

        for conf in sorted(conf_dir.glob("*.conf")):
            if not (conf.stem.isascii() and conf.stem.isdigit()):
                continue
            for ip in parse_lxc_ips(conf.read_text()):
                allocated.setdefault(ip, int(conf.stem))
        return allocated

    def create_container(self, spec: ContainerSpec) -> int:
        """Create a container with pct create and return its CTID."""
        template = spec.template
        if ":" not in template:
            template_file = template if ".tar" in template else f"{template}.tar.zst"
            template = f"local:vztmpl/{template_file}"

        res = spec.resources
        cmd = [
            "pct", "create", str(spec.vmid), template,
            "--hostname", spec.hostname,
            "--memory", str(res.memory),
            "--cores", str(res.cores),
            "--swap", str(res.swap),
            "--rootfs", f"{spec.storage}:{res.disk}",
            "--net0", spec.network.to_net0(),
            "--unprivileged", "1" if spec.unprivileged else "0",
            "--onboot", "1" if spec.onboot else "0",
        ]
        if spec.features:
            cmd.extend(["--features", spec.features])
        if spec.tags:
            cmd.extend(["--tags", ",".join(spec.tags)])

        if self.mock:
            logger.info(f"MOCK: Would create container {spec.vmid} ({spec.hostname})")
            logger.debug(f"MOCK: {' '.join(cmd)}")
            return spec.vmid

        logger.info(f"Creating container {spec.vmid} ({spec.hostname})")
        self._run(cmd, step="create")
        logger.info(f"Container {spec.vmid} ({spec.hostname}) created")
        return spec.vmid

    def set_mount(self, vmid: int, index: int, mount: StorageMount) -> None:
        """Attach a storage pool to the container as mount point mp<index>."""
        host_path = f"{PVE_MOUNT_ROOT}/{mount.pool}"
        cmd = ["pct", "set", str(vmid), f"-mp{index}", mount.to_mp(PVE_MOUNT_ROOT)]

        if self.mock:
            logger.info(f"MOCK: Would add mount mp{index} to {vmid}: {host_path} -> {mount.path}")
            return

        self._run(cmd, step="bind-mounts")
        logger.info(f"Mount mp{index} added to {vmid}: {host_path} -> {mount.path}")

    def stop_container(self, vmid: int) -> None:
        if self.mock:
            logger.info(f"MOCK: Would stop container {vmid}")
            return
        self._run(["pct", "stop", str(vmid)], step="cleanup")

    def destroy_container(self, vmid: int) -> None:
        if self.mock:
            logger.info(f"MOCK: Would destroy container {vmid}")
            return
        self._run(["pct", "destroy", str(vmid)], step="cleanup")

    def unmount_container(self, vmid: int) -> None:
        if self.mock:
            logger.info(f"MOCK: Would unmount container {vmid}")
            return
        self._run(["pct", "unmount", str(vmid)], step="cleanup")

    # ==================== Storage ====================

    def list_storage_pools(self, content: Optional[str] = None) -> List[StoragePool]:
        """List storages from pvesm status, optionally filtered by content type."""
        if self.mock:
            logger.debug("MOCK: Would run pvesm status")
            pools = [
                StoragePool(name="local", type="dir"),
                StoragePool(name="local-zfs", type="zfspool"),
            ]
            if content != "rootdir":
                pools += [
                    StoragePool(name="nas-01-media", type="nfs"),
                    StoragePool(name="nas-01-backups", type="nfs"),
                ]
            return pools

        cmd = ["pvesm", "status"]
        if content:
            cmd.extend(["-content", content])
        return parse_storage_status(self._run(cmd, timeout=self.settings.command_timeout))

    def list_volumes(self, storage: str, vmid: int) -> List[str]:
        """Volume IDs owned by a CTID on a storage."""
        if self.mock:
            return []
        output = self._run(["pvesm", "list", storage, "--vmid", str(vmid)], step="cleanup")
        return parse_volume_list(output)

    def free_volume(self, volid: str) -> None:
        if self.mock:
            logger.info(f"MOCK: Would free volume {volid}")
            return
        self._run(["pvesm", "free", volid], step="cleanup")
