"""Container configuration models."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class NetworkConfig:
    """Network configuration for a container's eth0 interface."""
    bridge: str = "vmbr0"
    ip: str = "dhcp"  # "dhcp" or bare IPv4 address
    cidr: int = 24
    gateway: Optional[str] = None
    tag: Optional[int] = None  # VLAN tag, None or 1 means untagged
    firewall: bool = True

    def to_net0(self) -> str:
        """Render the pct --net0 option value."""
        net = f"name=eth0,bridge={self.bridge},firewall={'1' if self.firewall else '0'}"
        if self.tag and self.tag > 1:
            net += f",tag={self.tag}"
        if self.ip == "dhcp":
            return net + ",ip=dhcp"
        net += f",ip={self.ip}/{self.cidr}"
        if self.gateway:
            net += f",gw={self.gateway}"
        return net


@dataclass
class ContainerResources:
    """Resource allocation for a container."""
    memory: int = 512  # MiB
    cores: int = 1
    disk: int = 8  # GiB
    swap: int = 512  # MiB


@dataclass
class ContainerSpec:
    """Everything pct create needs for one container."""
    vmid: int
    hostname: str
    template: str
    storage: str
    network: NetworkConfig = field(default_factory=NetworkConfig)
    resources: ContainerResources = field(default_factory=ContainerResources)
    unprivileged: bool = True
    onboot: bool = True
    features: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class ContainerInfo:
    """Runtime information about a container, as listed by pct."""
    vmid: int
    name: str
    status: str  # running, stopped, etc.
    lock: str = ""

    @property
    def is_running(self) -> bool:
        """Check if container is running."""
        return self.status == "running"
