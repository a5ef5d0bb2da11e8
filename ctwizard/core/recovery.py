"""Best-effort rollback of a partially created container."""
from typing import Optional

from ctwizard.core.errors import PlatformCommandError
from ctwizard.core.logger import get_logger

logger = get_logger(__name__)


class ContainerRecovery:
    """Removes whatever a failed run left behind on the platform.

    Each step is attempted independently; a failure in one is logged and
    does not stop the rest.
    """

    def __init__(self, platform):
        self.platform = platform

    def cleanup_failed(self, vmid: Optional[int], storage: Optional[str] = None) -> bool:
        """Unmount, stop and destroy the container, or free its orphan volumes.

        A container left locked by pct mount (lock "mounted") is unmounted
        first; pct cannot stop or destroy a container holding that lock.

        Returns:
            True if every attempted step succeeded
        """
        if vmid is None:
            return True

        ok = True
        status = self.platform.container_status(vmid)
        if status is not None:
            if self._lock_of(vmid) == "mounted":
                ok &= self._attempt(f"unmount container {vmid}", self.platform.unmount_container, vmid)
            if status == "running":
                ok &= self._attempt(f"stop container {vmid}", self.platform.stop_container, vmid)
            ok &= self._attempt(f"destroy container {vmid}", self.platform.destroy_container, vmid)
            return ok

        if storage:
            try:
                volumes = self.platform.list_volumes(storage, vmid)
            except PlatformCommandError as e:
                logger.error(f"Could not list volumes of {vmid} on {storage}: {e}")
                return False
            for volid in volumes:
                ok &= self._attempt(f"free volume {volid}", self.platform.free_volume, volid)

        return ok

    def _lock_of(self, vmid: int) -> str:
        try:
            info = self.platform.find_container_by_id(vmid)
        except PlatformCommandError as e:
            logger.error(f"Could not read lock state of {vmid}: {e}")
            return ""
        return info.lock if info is not None else ""

    @staticmethod
    def _attempt(label: str, func, *args) -> bool:
        try:
            func(*args)
        except PlatformCommandError as e:
            logger.error(f"Cleanup failed to {label}: {e}")
            return False
        logger.info(f"Cleanup: {label}")
        return True
