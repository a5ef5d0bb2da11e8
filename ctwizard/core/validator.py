"""Input validation for hostname, IPv4 address, gateway and CTID candidates.

Every check is read-only: it may list containers, read container configs or
send a ping, but it never changes anything on the host. Running the same
check twice against an unchanged host gives the same answer.
"""
import re
from typing import Optional

from ctwizard.core.logger import get_logger
from ctwizard.models.defaults import ContainerDefaults
from ctwizard.models.validation import (
    CandidateKind,
    ConfirmationTier,
    RejectionReason,
    ValidationResult,
)

logger = get_logger(__name__)

_IPV4_RE = re.compile(r"[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}")
_HOSTNAME_RE = re.compile(r"[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?")

MIN_CTID = 100


def is_valid_ipv4(value: str) -> bool:
    """True iff value is four dot-separated integers, each in [0, 255]."""
    if not isinstance(value, str) or not _IPV4_RE.fullmatch(value):
        return False
    return all(int(octet) <= 255 for octet in value.split("."))


def is_whole_number(value: str) -> bool:
    """ASCII digits only; '²' or '٣' pass isdigit() but not int()."""
    return value.isascii() and value.isdigit()


def octets(ip: str):
    return [int(part) for part in ip.split(".")]


def canonical_ipv4(ip: str) -> str:
    """Drop zero padding: 192.168.050.007 -> 192.168.50.7."""
    return ".".join(str(octet) for octet in octets(ip))


def same_subnet24(first: str, second: str) -> bool:
    """True when both addresses share their first three octets."""
    return octets(first)[:3] == octets(second)[:3]


def derive_ctid(ip: str) -> int:
    """CTID from the host part of an address: .150 -> 150, .42 -> 142."""
    last = octets(ip)[3]
    return last if last >= MIN_CTID else last + MIN_CTID


class InputValidator:
    """Classifies operator input against the live host state."""

    def __init__(self, platform, probe, defaults: ContainerDefaults):
        self.platform = platform
        self.probe = probe
        self.defaults = defaults

    # ==================== Hostname ====================

    def validate_hostname(self, candidate: str) -> ValidationResult:
        hostname = candidate.strip().lower()
        if not hostname or not _HOSTNAME_RE.fullmatch(hostname):
            return ValidationResult.reject(
                CandidateKind.HOSTNAME, hostname, RejectionReason.MALFORMED,
                f"The CT hostname \"{hostname}\" is not a valid hostname "
                "(letters, digits and hyphens only).",
            )

        existing = self.platform.find_container_by_name(hostname)
        if existing is not None:
            return ValidationResult.reject(
                CandidateKind.HOSTNAME, hostname, RejectionReason.IN_USE,
                f"The CT hostname \"{hostname}\" already exists (CTID {existing.vmid}).",
            )

        result = ValidationResult(kind=CandidateKind.HOSTNAME, value=hostname)
        if hostname != self.defaults.hostname:
            result.tier = ConfirmationTier.SAFE
            result.notes = [
                f"The CT hostname \"{hostname}\" is suitable and is available, BUT",
                f"we recommend the default hostname \"{self.defaults.hostname}\". "
                f"\"{hostname}\" can also be used despite being irregular.",
            ]
        return result

    # ==================== IPv4 address ====================

    def validate_ip(self, candidate: str) -> ValidationResult:
        """Classify a container address.

        Decision table, first matching row wins:
            1. malformed                        -> reject MALFORMED
            2. bound to another container       -> reject ALLOCATED
            3. answers ping                     -> reject IN_USE
            4. third octet == expected VLAN tag -> accept, no confirmation
            5. third octet == 1                 -> accept after one confirmation, VLAN 1
            6. anything else                    -> accept after two confirmations,
                                                   VLAN = third octet (1 if not > 1)
        """
        ip = candidate.strip()
        kind = CandidateKind.IPV4

        if not is_valid_ipv4(ip):
            return ValidationResult.reject(
                kind, ip, RejectionReason.MALFORMED,
                "The IP address is incorrectly formatted. It must be in the IPv4 "
                "quad-dotted octet format (i.e xxx.xxx.xxx.xxx).",
            )

        ip = canonical_ipv4(ip)
        allocated = self.platform.allocated_ips()
        if ip in allocated:
            return ValidationResult.reject(
                kind, ip, RejectionReason.ALLOCATED,
                "The IP address meets the IPv4 standard, BUT",
                f"the IP is already assigned to PVE CT {allocated[ip]}.",
            )

        if self.probe.ping(ip):
            return ValidationResult.reject(
                kind, ip, RejectionReason.IN_USE,
                "The IP address meets the IPv4 standard,",
                "the IP is not assigned to another PVE CT, BUT",
                f"the IP address {ip} is already in use by another device on your LAN.",
            )

        expected = self.defaults.tag
        third = octets(ip)[2]

        if third == expected:
            return ValidationResult(kind=kind, value=ip, vlan_tag=expected)

        default_ip = self.defaults.ip
        if third == 1:
            return ValidationResult(
                kind=kind, value=ip, vlan_tag=1, tier=ConfirmationTier.SAFE,
                notes=[
                    "The IP address meets the IPv4 standard,",
                    "the IP is not assigned to another PVE CT,",
                    f"the IP address {ip} is not in use (available), BUT",
                    f"we recommend VLAN{expected} with the IPv4 address {default_ip}; "
                    f"{ip} is still workable if your LAN is not VLAN ready.",
                ],
            )

        return ValidationResult(
            kind=kind, value=ip, vlan_tag=third if third > 1 else 1,
            tier=ConfirmationTier.RISKY,
            notes=[
                "The IP address meets the IPv4 standard,",
                f"the IP address {ip} is not in use (available),",
                "the IP is not assigned to another PVE CT, BUT",
                f"we recommend VLAN{expected} with the IPv4 address {default_ip}. "
                f"Changing to a non-standard VLAN{third} may leave this CT with "
                "NO network or NAS access.",
            ],
        )

    # ==================== Gateway ====================

    def derive_gateway(self, ip: str) -> Optional[str]:
        """Gateway that can be accepted without asking, if any.

        1. the container keeps its default address and the default gateway
           answers a ping
        2. the host's own default-route gateway sits in the same /24 as the
           container address
        Otherwise None, and the operator has to type one in.
        """
        if ip == self.defaults.ip and self.probe.ping(self.defaults.gateway):
            return self.defaults.gateway

        host_gateway = self.probe.default_gateway()
        if host_gateway and is_valid_ipv4(host_gateway) and same_subnet24(ip, host_gateway):
            return host_gateway

        return None

    def validate_gateway(self, candidate: str) -> ValidationResult:
        gateway = candidate.strip()
        kind = CandidateKind.GATEWAY

        if not is_valid_ipv4(gateway):
            return ValidationResult.reject(
                kind, gateway, RejectionReason.MALFORMED,
                "Your IP address is incorrectly formatted. It must be in the IPv4 "
                "quad-dotted octet format (i.e xxx.xxx.xxx.xxx).",
            )

        gateway = canonical_ipv4(gateway)
        if not self.probe.ping(gateway):
            return ValidationResult.reject(
                kind, gateway, RejectionReason.UNREACHABLE,
                "The IP address meets the IPv4 standard, BUT",
                f"the IP address {gateway} is NOT reachable (cannot ping).",
            )

        return ValidationResult(kind=kind, value=gateway)

    # ==================== CTID ====================

    def validate_ctid(self, candidate) -> ValidationResult:
        raw = str(candidate).strip()
        kind = CandidateKind.CTID

        if not is_whole_number(raw):
            return ValidationResult.reject(
                kind, raw, RejectionReason.MALFORMED,
                f"CTID \"{raw}\" is not a whole number.",
            )

        vmid = int(raw)
        if vmid < MIN_CTID:
            return ValidationResult.reject(
                kind, raw, RejectionReason.OUT_OF_RANGE,
                f"Proxmox CTID numeric IDs must be {MIN_CTID} or greater, got {vmid}.",
            )

        owner = self.platform.find_container_by_id(vmid)
        if owner is not None:
            return ValidationResult.reject(
                kind, raw, RejectionReason.IN_USE,
                f"PVE CTID numeric ID {vmid} is in use by another CT labelled \"{owner.name}\".",
            )

        return ValidationResult(kind=kind, value=str(vmid))
