"""Explicit provisioning session threaded through every wizard step."""
from dataclasses import dataclass, field
from typing import List, Optional

from ctwizard.models.storage import StorageMount


@dataclass
class ProvisioningSession:
    """Values accepted so far in one wizard run.

    A field stays None until its step has passed every confirmation gate.
    """
    storage: Optional[str] = None
    hostname: Optional[str] = None
    ip: Optional[str] = None
    gateway: Optional[str] = None
    vlan_tag: Optional[int] = None
    ctid: Optional[int] = None
    disk_size: Optional[int] = None
    ram: Optional[int] = None
    mounts: List[StorageMount] = field(default_factory=list)
    express: bool = False
    created: bool = False

    def missing_fields(self) -> List[str]:
        """Names of required fields that have not been accepted yet."""
        required = ("storage", "hostname", "ip", "gateway", "vlan_tag", "ctid", "disk_size", "ram")
        return [name for name in required if getattr(self, name) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()
