"""Error taxonomy for provisioning runs."""
from typing import List, Optional, Sequence


class WizardError(Exception):
    """Base class for provisioning failures.

    Attributes:
        step: Wizard step that was running when the error was raised
        exit_code: Process exit status the CLI should use
    """

    exit_code = 1

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step


class PreflightError(WizardError):
    """Host is missing something the wizard needs before it can start."""


class OperatorDeclinedError(WizardError):
    """Operator refused a gate that cannot be retried."""


class IncompleteCoverageError(WizardError):
    """Required storage roles could not all be mapped to a pool."""

    def __init__(self, missing: Sequence[str], step: Optional[str] = "bind-mounts"):
        self.missing: List[str] = list(missing)
        super().__init__(
            "Missing required storage mounts: " + ", ".join(self.missing), step=step
        )


class PlatformCommandError(WizardError):
    """A Proxmox CLI command exited with a non-zero status."""

    def __init__(
        self,
        cmd: Sequence[str],
        returncode: int,
        stderr: str = "",
        step: Optional[str] = None,
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command '{' '.join(self.cmd)}' failed with status {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message, step=step)

    @property
    def exit_code(self) -> int:
        return self.returncode or 1
