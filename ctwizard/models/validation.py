"""Validation results shared by the input validator and the resolver."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CandidateKind(Enum):
    """What a candidate value is supposed to be."""
    HOSTNAME = "hostname"
    IPV4 = "ipv4"
    GATEWAY = "gateway"
    CTID = "ctid"


class RejectionReason(Enum):
    """Why a candidate value was refused."""
    MALFORMED = "malformed"
    IN_USE = "in-use"
    ALLOCATED = "allocated"
    UNREACHABLE = "unreachable"
    OUT_OF_RANGE = "out-of-range"


class ConfirmationTier(Enum):
    """How much operator confirmation an accepted value still needs.

    Ordered by risk: NONE < SAFE < RISKY < MANUAL.
    """
    NONE = 0
    SAFE = 1  # non-standard but harmless, one confirmation
    RISKY = 2  # non-standard with network risk, two confirmations
    MANUAL = 3  # nothing derivable, operator must type a value


@dataclass
class ValidationResult:
    """Outcome of validating one candidate value."""
    kind: CandidateKind
    value: str
    reason: Optional[RejectionReason] = None
    tier: ConfirmationTier = ConfirmationTier.NONE
    vlan_tag: Optional[int] = None
    problems: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.reason is None

    @property
    def needs_confirmation(self) -> bool:
        return self.accepted and self.tier in (ConfirmationTier.SAFE, ConfirmationTier.RISKY)

    @classmethod
    def reject(cls, kind: CandidateKind, value: str, reason: RejectionReason,
               *problems: str) -> "ValidationResult":
        return cls(kind=kind, value=value, reason=reason, problems=list(problems))
