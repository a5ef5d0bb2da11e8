"""Requirement manifest parsing.

The manifest lists the storage roles a container needs, one per line:

    media|Media files
    backups|Backup archive
    none|No storage required

Blank lines and lines starting with '#' are ignored. A role of 'none' is a
placeholder and is kept in the list so it can be offered during manual
assignment, but it never takes part in coverage checks.
"""
from pathlib import Path
from typing import Iterable, List, Union

from ctwizard.config.loader import ConfigValidationError
from ctwizard.core.logger import get_logger
from ctwizard.models.storage import StorageRequirement

logger = get_logger(__name__)


def parse_manifest(lines: Iterable[str]) -> List[StorageRequirement]:
    """Parse manifest lines into an ordered list of requirements.

    Raises:
        ConfigValidationError: On an empty role or a role listed twice
    """
    requirements: List[StorageRequirement] = []
    seen = set()

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        role, _, description = line.partition("|")
        role = role.strip().lower()
        if not role:
            raise ConfigValidationError(f"Manifest line {lineno}: missing role name")
        if role in seen:
            raise ConfigValidationError(f"Manifest line {lineno}: role '{role}' listed twice")

        seen.add(role)
        requirements.append(StorageRequirement(role=role, description=description.strip()))

    return requirements


def load_manifest(path: Union[str, Path]) -> List[StorageRequirement]:
    """Load a requirement manifest from disk."""
    manifest_path = Path(path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Requirement manifest not found: {manifest_path}")

    with open(manifest_path) as f:
        requirements = parse_manifest(f)

    logger.debug(f"Loaded {len(requirements)} storage requirements from {manifest_path}")
    return requirements


def required_roles(requirements: Iterable[StorageRequirement]) -> List[StorageRequirement]:
    """Requirements that need a pool, in manifest order."""
    return [req for req in requirements if not req.is_sentinel]
