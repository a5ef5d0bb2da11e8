"""Data models for ctwizard."""
from ctwizard.models.container import (
    ContainerInfo,
    ContainerResources,
    ContainerSpec,
    NetworkConfig,
)
from ctwizard.models.defaults import ContainerDefaults
from ctwizard.models.session import ProvisioningSession
from ctwizard.models.storage import (
    CoverageReport,
    StorageMount,
    StoragePool,
    StorageRequirement,
)
from ctwizard.models.validation import (
    CandidateKind,
    ConfirmationTier,
    RejectionReason,
    ValidationResult,
)

__all__ = [
    'CandidateKind',
    'ConfirmationTier',
    'ContainerDefaults',
    'ContainerInfo',
    'ContainerResources',
    'ContainerSpec',
    'CoverageReport',
    'NetworkConfig',
    'ProvisioningSession',
    'RejectionReason',
    'StorageMount',
    'StoragePool',
    'StorageRequirement',
    'ValidationResult',
]
