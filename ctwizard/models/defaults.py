"""Build defaults for one container type, loaded from YAML."""
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_IPV4_RE = re.compile(r"[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}")
_HOSTNAME_RE = re.compile(r"[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?")


def _check_ipv4(value: str) -> str:
    if not _IPV4_RE.fullmatch(value) or any(int(octet) > 255 for octet in value.split(".")):
        raise ValueError(f"'{value}' is not a dotted-quad IPv4 address")
    return ".".join(str(int(octet)) for octet in value.split("."))


class ContainerDefaults(BaseModel):
    """Recommended settings for a container, offered as prompt defaults."""

    model_config = ConfigDict(extra='forbid')

    hostname: str = Field(..., description="Default CT hostname")
    ip: str = Field(..., description="Default CT IPv4 address")
    gateway: str = Field(..., description="Default gateway IPv4 address")
    tag: int = Field(1, ge=1, le=4094, description="Expected VLAN tag")
    ctid: Optional[int] = Field(None, ge=100, description="Default CTID (derived from ip if omitted)")
    disk_size: int = Field(8, gt=0, description="Root disk size in GiB")
    ram: int = Field(512, gt=0, description="Memory in MiB")
    cores: int = Field(1, gt=0)
    swap: int = Field(512, ge=0)
    cidr: int = Field(24, ge=1, le=32)
    bridge: str = "vmbr0"
    template: str = Field(..., description="OS template volume, e.g. local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst")
    unprivileged: bool = True
    features: Optional[str] = "nesting=1"
    section_head: str = Field("Container", description="Suite name shown in section headers")
    nas_hostname: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator('hostname')
    @classmethod
    def validate_hostname(cls, v):
        """Hostnames are stored lower-case and must be DNS labels."""
        v = v.lower()
        if not _HOSTNAME_RE.fullmatch(v):
            raise ValueError(f"Hostname '{v}' is not a valid DNS label")
        return v

    @field_validator('ip', 'gateway')
    @classmethod
    def validate_ipv4(cls, v):
        """Validate dotted-quad format and drop zero padding."""
        return _check_ipv4(v)

    @model_validator(mode='after')
    def fill_ctid(self) -> 'ContainerDefaults':
        """Derive the default CTID from the last octet of the default ip."""
        if self.ctid is None:
            last = int(self.ip.rsplit(".", 1)[1])
            self.ctid = last if last >= 100 else last + 100
        return self

    @property
    def display_name(self) -> str:
        return self.hostname.capitalize()
