"""Scratch directory for staging intermediate files during one run."""
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional

from ctwizard.core.logger import get_logger
from ctwizard.models.storage import StorageMount

logger = get_logger(__name__)

MOUNT_LIST_FILE = "pvesm_input_list"


class Workspace:
    """Process-private temporary directory, removed unconditionally on exit.

    Use as a context manager:

        with Workspace() as ws:
            ws.write_mounts(mounts)
    """

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir
        self.path: Optional[Path] = None

    def __enter__(self) -> "Workspace":
        self.path = Path(tempfile.mkdtemp(prefix="ctwizard-", dir=self.base_dir))
        logger.debug(f"Workspace created: {self.path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False

    def cleanup(self) -> None:
        if self.path is not None and self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
            logger.debug(f"Workspace removed: {self.path}")
        self.path = None

    def _file(self, name: str) -> Path:
        if self.path is None:
            raise RuntimeError("Workspace is not active")
        return self.path / name

    def write_mounts(self, mounts: Iterable[StorageMount], name: str = MOUNT_LIST_FILE) -> Path:
        """Stage a mount list, one 'pool path' pair per line."""
        target = self._file(name)
        with open(target, "w") as f:
            for mount in mounts:
                f.write(f"{mount.pool} {mount.path}\n")
        return target

    def read_mounts(self, name: str = MOUNT_LIST_FILE) -> List[StorageMount]:
        """Read a staged mount list; a missing file means no mounts."""
        target = self._file(name)
        if not target.exists():
            return []

        mounts = []
        with open(target) as f:
            for line in f:
                parts = line.split()
                if len(parts) == 2:
                    mounts.append(StorageMount(pool=parts[0], path=parts[1]))
        return mounts
