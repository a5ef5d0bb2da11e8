"""Storage requirement and mount models."""
from dataclasses import dataclass, field
from typing import List

NONE_ROLE = "none"


@dataclass(frozen=True)
class StorageRequirement:
    """A logical storage role the container needs, e.g. media or backups."""
    role: str
    description: str = ""

    @property
    def is_sentinel(self) -> bool:
        """True for the 'none' placeholder that never needs a pool."""
        return self.role.lower() == NONE_ROLE


@dataclass(frozen=True)
class StoragePool:
    """A storage backend registered with Proxmox (one pvesm status row)."""
    name: str
    type: str = ""
    status: str = "active"
    total: int = 0
    used: int = 0
    available: int = 0

    @property
    def is_local(self) -> bool:
        """Host-local pools are never offered as bind mount sources."""
        return "local" in self.name


@dataclass(frozen=True)
class StorageMount:
    """Binds a host storage pool to a path inside the container."""
    pool: str
    path: str

    @property
    def role(self) -> str:
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    @classmethod
    def for_role(cls, pool: str, role: str) -> "StorageMount":
        return cls(pool=pool, path=f"/mnt/{role.lower()}")

    def to_mp(self, host_root: str) -> str:
        """Render the pct -mpN option value for a pool mounted under host_root."""
        return f"{host_root}/{self.pool},mp={self.path}"


@dataclass
class CoverageReport:
    """Result of comparing required roles against assigned mounts."""
    missing: List[StorageRequirement] = field(default_factory=list)
    duplicated: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing and not self.duplicated

    @property
    def missing_roles(self) -> List[str]:
        return [req.role for req in self.missing]
