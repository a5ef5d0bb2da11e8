"""Shared test fixtures for ctwizard tests."""
import io
from typing import Dict, Iterable, List, Optional

import pytest
from rich.console import Console

from ctwizard.core.config import WizardSettings, set_settings
from ctwizard.core.errors import PlatformCommandError
from ctwizard.core.prompts import Prompter
from ctwizard.core.workspace import Workspace
from ctwizard.models.container import ContainerInfo
from ctwizard.models.defaults import ContainerDefaults
from ctwizard.models.storage import StoragePool, StorageRequirement


class ScriptedPrompter(Prompter):
    """Prompter that replays canned answers and records every question.

    ask() answers: a string, or None to take the pre-filled default.
    confirm() answers: bool.
    choose() answers: 1-based menu number, as an operator would type it.
    An exception instance in the script is raised instead of answering.
    """

    def __init__(self, answers: Optional[Iterable] = None):
        self.buffer = io.StringIO()
        super().__init__(Console(file=self.buffer, width=120, force_terminal=False))
        self.answers: List = list(answers or [])
        self.questions: List[str] = []

    def _next(self, message: str):
        self.questions.append(message)
        if not self.answers:
            raise AssertionError(f"No scripted answer left for: {message}")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def ask(self, message, default=None):
        answer = self._next(message)
        return default if answer is None else str(answer)

    def confirm(self, message, default=False):
        return bool(self._next(message))

    def choose(self, message, options, default=1):
        return int(self._next(message)) - 1

    @property
    def output(self) -> str:
        return self.buffer.getvalue()


class FakePlatform:
    """In-memory stand-in for PlatformClient."""

    def __init__(self, containers=None, pools=None, rootdir=None, allocated=None, next_id=200):
        self.containers: List[ContainerInfo] = list(containers or [])
        self.pools: List[StoragePool] = list(pools or [])
        self.rootdir: List[StoragePool] = list(rootdir or [StoragePool(name="local-zfs", type="zfspool")])
        self.allocated: Dict[str, int] = dict(allocated or {})
        self.next_id = next_id
        self.volumes: Dict[int, List[str]] = {}
        self.created = []
        self.mounts = []
        self.stopped = []
        self.destroyed = []
        self.unmounted = []
        self.freed = []
        self.fail_create: Optional[PlatformCommandError] = None
        self.fail_mount: Optional[PlatformCommandError] = None
        self.calls = {"list_containers": 0, "allocated_ips": 0}

    def list_containers(self):
        self.calls["list_containers"] += 1
        return list(self.containers)

    def find_container_by_name(self, name):
        return next((c for c in self.containers if c.name.lower() == name.lower()), None)

    def find_container_by_id(self, vmid):
        return next((c for c in self.containers if c.vmid == vmid), None)

    def container_status(self, vmid):
        return next((c.status for c in self.containers if c.vmid == vmid), None)

    def next_free_id(self):
        return self.next_id

    def allocated_ips(self):
        self.calls["allocated_ips"] += 1
        return dict(self.allocated)

    def list_storage_pools(self, content=None):
        if content == "rootdir":
            return list(self.rootdir)
        return list(self.pools)

    def list_volumes(self, storage, vmid):
        return list(self.volumes.get(vmid, []))

    def create_container(self, spec):
        if self.fail_create:
            raise self.fail_create
        self.created.append(spec)
        self.containers.append(ContainerInfo(vmid=spec.vmid, name=spec.hostname, status="stopped"))
        return spec.vmid

    def set_mount(self, vmid, index, mount):
        if self.fail_mount:
            raise self.fail_mount
        self.mounts.append((vmid, index, mount))

    def stop_container(self, vmid):
        self.stopped.append(vmid)

    def destroy_container(self, vmid):
        self.destroyed.append(vmid)
        self.containers = [c for c in self.containers if c.vmid != vmid]

    def unmount_container(self, vmid):
        self.unmounted.append(vmid)

    def free_volume(self, volid):
        self.freed.append(volid)


class FakeProbe:
    """Network probe with a fixed set of live addresses."""

    def __init__(self, reachable=("192.168.50.5", "192.168.1.1"), gateway="192.168.1.1"):
        self.reachable = set(reachable)
        self.gateway = gateway
        self.pinged: List[str] = []

    def ping(self, address):
        self.pinged.append(address)
        return address in self.reachable

    def default_gateway(self):
        return self.gateway

    def host_address(self):
        return "192.168.1.101"


@pytest.fixture(autouse=True)
def reset_settings():
    """Keep global settings from leaking between tests."""
    set_settings(WizardSettings())
    yield
    set_settings(None)


@pytest.fixture
def defaults():
    """Jellyfin-style defaults on VLAN 50."""
    return ContainerDefaults(
        hostname="jellyfin",
        ip="192.168.50.111",
        gateway="192.168.50.5",
        tag=50,
        disk_size=20,
        ram=2048,
        template="local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst",
        section_head="MediaLab",
    )


@pytest.fixture
def requirements():
    return [
        StorageRequirement("media", "Media files"),
        StorageRequirement("backups", "Backup archive"),
    ]


@pytest.fixture
def nas_pools():
    return [
        StoragePool(name="local", type="dir"),
        StoragePool(name="local-zfs", type="zfspool"),
        StoragePool(name="nas-01-media", type="nfs"),
        StoragePool(name="nas-01-backups", type="nfs"),
    ]


@pytest.fixture
def platform(nas_pools):
    return FakePlatform(
        containers=[
            ContainerInfo(vmid=100, name="pihole", status="running"),
            ContainerInfo(vmid=101, name="nextcloud", status="stopped"),
        ],
        pools=nas_pools,
        allocated={"192.168.50.100": 100},
    )


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def workspace(tmp_path):
    ws = Workspace(base_dir=str(tmp_path))
    with ws:
        yield ws
