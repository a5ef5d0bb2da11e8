"""Kernel module preflight: load now and persist for boot."""
import subprocess
from pathlib import Path
from typing import Iterable, Optional

from ctwizard.core.config import WizardSettings, get_settings
from ctwizard.core.errors import PreflightError
from ctwizard.core.logger import get_logger

logger = get_logger(__name__)


class KernelModules:
    """Ensures the kernel features containers rely on are available."""

    def __init__(self, mock: bool = False, settings: Optional[WizardSettings] = None):
        self.mock = mock
        self.settings = settings or get_settings()
        self.modules_file = Path(self.settings.modules_file)

    def is_loaded(self, name: str) -> bool:
        try:
            result = subprocess.run(["lsmod"], capture_output=True, text=True, check=True)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            logger.warning(f"Could not list kernel modules: {e}")
            return False

        return any(line.split()[0] == name for line in result.stdout.splitlines()[1:] if line.split())

    def load(self, name: str) -> None:
        if self.is_loaded(name):
            logger.debug(f"Kernel module '{name}' already loaded")
            return

        try:
            subprocess.run(["modprobe", name], capture_output=True, text=True, check=True)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise PreflightError(f"Failed to load '{name}' module.", step="preflight") from e
        logger.info(f"Loaded kernel module '{name}'")

    def persist(self, name: str) -> None:
        """Add the module to the boot-time list unless it is already there."""
        existing = []
        if self.modules_file.exists():
            existing = [line.strip() for line in self.modules_file.read_text().splitlines()]
        if name in existing:
            return

        try:
            with open(self.modules_file, "a") as f:
                f.write(f"{name}\n")
        except OSError as e:
            raise PreflightError(
                f"Failed to add '{name}' module to load at boot.", step="preflight"
            ) from e
        logger.info(f"Added '{name}' to {self.modules_file}")

    def ensure(self, names: Optional[Iterable[str]] = None) -> None:
        """Load and persist each module; idempotent."""
        for name in names if names is not None else self.settings.kernel_modules:
            if self.mock:
                logger.info(f"MOCK: Would load kernel module '{name}'")
                continue
            self.load(name)
            self.persist(name)
