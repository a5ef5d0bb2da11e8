"""Express check: are all recommended defaults available on this host?"""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ctwizard.core.logger import get_logger
from ctwizard.core.negotiator import StorageNegotiator, check_coverage
from ctwizard.core.validator import InputValidator
from ctwizard.models.defaults import ContainerDefaults
from ctwizard.models.storage import StorageMount, StoragePool, StorageRequirement
from ctwizard.models.validation import ConfirmationTier

logger = get_logger(__name__)


@dataclass
class ExpressReport:
    """Availability of each default build setting."""
    checks: Dict[str, bool] = field(default_factory=dict)
    mounts: List[StorageMount] = field(default_factory=list)

    @property
    def all_available(self) -> bool:
        return bool(self.checks) and all(self.checks.values())

    @property
    def unavailable(self) -> List[str]:
        return [name for name, ok in self.checks.items() if not ok]


class ExpressCheck:
    """Evaluates the defaults without prompting."""

    def __init__(self, validator: InputValidator, negotiator: StorageNegotiator,
                 defaults: ContainerDefaults):
        self.validator = validator
        self.negotiator = negotiator
        self.defaults = defaults

    def run(self, requirements: Sequence[StorageRequirement],
            pools: Sequence[StoragePool]) -> ExpressReport:
        report = ExpressReport()

        report.checks["hostname"] = self.validator.validate_hostname(self.defaults.hostname).accepted

        ip_result = self.validator.validate_ip(self.defaults.ip)
        report.checks["ip"] = ip_result.accepted and ip_result.tier == ConfirmationTier.NONE

        report.checks["gateway"] = self.validator.probe.ping(self.defaults.gateway)
        report.checks["ctid"] = self.validator.validate_ctid(self.defaults.ctid).accepted

        mounts = self.negotiator.auto_detect(requirements, pools, strict=True)
        report.checks["bind-mounts"] = check_coverage(requirements, mounts).complete
        if report.checks["bind-mounts"]:
            report.mounts = mounts

        logger.debug(f"Express check: {report.checks}")
        return report
