"""Storage mount negotiation: map required storage roles onto host pools.

Pools are expected to follow the '<nas>-<index>-<role>' naming convention
(for example nas-01-media). When they do, the mapping is detected
automatically. When they do not, the operator assigns a role to every
available pool by hand. Either way the result covers every required role
exactly once, or the run is aborted; a partial mapping is never returned.
"""
import re
from collections import Counter
from typing import List, Optional, Sequence

from ctwizard.config.manifest import required_roles
from ctwizard.core.errors import IncompleteCoverageError, OperatorDeclinedError
from ctwizard.core.logger import get_logger
from ctwizard.models.storage import (
    NONE_ROLE,
    CoverageReport,
    StorageMount,
    StoragePool,
    StorageRequirement,
)

logger = get_logger(__name__)


def check_coverage(requirements: Sequence[StorageRequirement],
                   mounts: Sequence[StorageMount]) -> CoverageReport:
    """Compare required roles against assigned mounts.

    Complete iff every non-'none' role has exactly one mount.
    """
    counts = Counter(mount.role for mount in mounts)
    report = CoverageReport()
    for req in required_roles(requirements):
        if counts[req.role] == 0:
            report.missing.append(req)
        elif counts[req.role] > 1:
            report.duplicated.append(req.role)
    return report


class StorageNegotiator:
    """Produces a complete role -> mount path mapping for a container."""

    def __init__(self, prompter, nas_hostname: str = "nas", web_url: Optional[str] = None):
        self.prompter = prompter
        self.nas_hostname = nas_hostname
        self.web_url = web_url

    def _pattern(self, role: str, strict: bool):
        if strict:
            return re.compile(rf"^{re.escape(self.nas_hostname)}-[0-9]+-{re.escape(role)}$", re.IGNORECASE)
        return re.compile(rf"^.+-.+-{re.escape(role)}$", re.IGNORECASE)

    def auto_detect(self, requirements: Sequence[StorageRequirement],
                    pools: Sequence[StoragePool], strict: bool = True) -> List[StorageMount]:
        """Match pool names against each required role.

        Host-local pools are skipped. If several pools match one role the
        first one wins and the rest are logged.
        """
        candidates = [pool for pool in pools if not pool.is_local]
        mounts = []
        for req in required_roles(requirements):
            pattern = self._pattern(req.role, strict)
            matches = [pool.name for pool in candidates if pattern.match(pool.name)]
            if not matches:
                continue
            if len(matches) > 1:
                logger.warning(
                    f"Several pools match role '{req.role}': {', '.join(matches)}; using {matches[0]}"
                )
            mounts.append(StorageMount.for_role(matches[0], req.role))
        return mounts

    def negotiate(self, requirements: Sequence[StorageRequirement],
                  pools: Sequence[StoragePool]) -> List[StorageMount]:
        """Run detection, confirmation and manual fallback.

        Raises:
            IncompleteCoverageError: Roles remain unassigned after manual assignment
            OperatorDeclinedError: Operator refused both detection and manual assignment
        """
        required = required_roles(requirements)
        if not required:
            self.prompter.info("No storage bind mounts are required.")
            return []

        self.prompter.say("Performing PVE host storage mount scan...")

        mounts = self.auto_detect(requirements, pools, strict=True)
        strict_complete = check_coverage(requirements, mounts).complete
        if strict_complete:
            self.prompter.say("A default set of PVE storage mounts has been detected:")
            self._show_mapping(mounts)
            if self.prompter.confirm("Accept these storage mount assignments?", default=True):
                return mounts
        else:
            mounts = self.auto_detect(requirements, pools, strict=False)
            self.prompter.say("Scanning your PVE host. Availability is shown:")
            self._show_availability(required, mounts)
            if check_coverage(requirements, mounts).complete:
                if self.prompter.confirm("Confirm if the PVE storage mount assignments are correct?"):
                    return mounts

        report = check_coverage(requirements, mounts)
        self._explain_manual(required)
        if not self.prompter.confirm("Manually assign each media type to your PVE storage mounts?"):
            self.prompter.say("Good choice. Fix the issue and try again...")
            if report.missing:
                raise IncompleteCoverageError(report.missing_roles)
            raise OperatorDeclinedError("Storage mount assignment declined.", step="bind-mounts")

        mounts = self.manual_assign(requirements, pools)
        report = check_coverage(requirements, mounts)
        if not report.complete:
            self._report_missing(requirements, report)
            raise IncompleteCoverageError(report.missing_roles or report.duplicated)

        return mounts

    def manual_assign(self, requirements: Sequence[StorageRequirement],
                      pools: Sequence[StoragePool]) -> List[StorageMount]:
        """Ask the operator which role each non-local pool serves.

        Only roles that are still unassigned are offered, plus 'none' to
        leave a pool unused, so no role can be mapped twice.
        """
        mounts: List[StorageMount] = []
        unassigned = list(required_roles(requirements))
        none_desc = next(
            (req.description for req in requirements if req.is_sentinel and req.description),
            "Do not mount this storage",
        )

        for pool in (p for p in pools if not p.is_local):
            if not unassigned:
                logger.info(f"All roles assigned, skipping pool {pool.name}")
                continue

            while True:
                options = [f"{req.role.upper()} - {req.description}" for req in unassigned]
                options.append(f"{NONE_ROLE.upper()} - {none_desc}")
                idx = self.prompter.choose(
                    f"Select the media type for PVE storage mount '{pool.name}'", options
                )
                chosen = unassigned[idx] if idx < len(unassigned) else None
                role = chosen.role if chosen else NONE_ROLE
                self.prompter.say(f"You have assigned and set: '{pool.name}' ---> '{role}'")
                if self.prompter.confirm("Confirm your setting is correct?"):
                    break
                self.prompter.say("No problem. Try again...")

            if chosen is None:
                continue
            mounts.append(StorageMount.for_role(pool.name, chosen.role))
            unassigned.remove(chosen)

        return mounts

    # ==================== Output ====================

    def _show_mapping(self, mounts: Sequence[StorageMount]) -> None:
        for idx, mount in enumerate(mounts, start=1):
            self.prompter.say(f"     {idx}) Auto assigned and set: {mount.pool} ---> {mount.path}")

    def _show_availability(self, required: Sequence[StorageRequirement],
                           mounts: Sequence[StorageMount]) -> None:
        by_role = {mount.role: mount for mount in mounts}
        for idx, req in enumerate(required, start=1):
            mount = by_role.get(req.role)
            if mount:
                self.prompter.say(f"     {idx}) Auto assigned and set: {mount.pool} ---> {mount.path}")
            else:
                self.prompter.say(f"     {idx}) PVE storage mount '{req.role}' is: [red]missing[/red]")

    def _explain_manual(self, required: Sequence[StorageRequirement]) -> None:
        roles = ",".join(req.role for req in required)
        text = (
            "We cannot identify and assign all of the required PVE storage mounts. "
            "You have two options: abort, or manually assign a media type to every "
            "available PVE host storage mount. This works for hosts where the storage "
            "mounts exist but have non-standard labels.\n\n"
            f"You MUST have all {len(required)}x media types ({roles}) available on your PVE host."
        )
        if self.web_url:
            text += f"\n\nTo create storage mounts use the Proxmox web interface: {self.web_url}"
        self.prompter.box(text)

    def _report_missing(self, requirements: Sequence[StorageRequirement],
                        report: CoverageReport) -> None:
        self.prompter.warn(
            "There are problems with your input:",
            [f"PVE storage mount '{req.role}' is: missing" for req in report.missing]
            + [f"PVE storage mount '{role}' is assigned more than once" for role in report.duplicated],
        )
        self.prompter.say(
            "The PVE host is missing some required storage mounts. Create all of the "
            "following PVE storage mounts (replace nas-0X with your NAS identifier, e.g. nas-01):"
        )
        for idx, req in enumerate(required_roles(requirements), start=1):
            self.prompter.say(f"     {idx}) '{self.nas_hostname}-0X-{req.role}' <---  {req.description}")
