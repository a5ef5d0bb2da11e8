"""Reachability probes and host routing lookups."""
import subprocess
from typing import Iterable, Optional, Set

from ctwizard.core.config import WizardSettings, get_settings
from ctwizard.core.logger import get_logger

logger = get_logger(__name__)

MOCK_GATEWAY = "192.168.1.1"


class NetworkProbe:
    """Answers 'is anything at this address?' and 'where is the default route?'."""

    def __init__(self, mock: bool = False, settings: Optional[WizardSettings] = None,
                 reachable: Optional[Iterable[str]] = None):
        self.mock = mock
        self.settings = settings or get_settings()
        self._mock_reachable: Set[str] = set(reachable) if reachable is not None else {MOCK_GATEWAY}

    def ping(self, address: str) -> bool:
        """Return True if the address answers an ICMP echo request."""
        if self.mock:
            alive = address in self._mock_reachable
            logger.debug(f"MOCK: ping {address} -> {'alive' if alive else 'no answer'}")
            return alive

        cmd = [
            "ping",
            "-s", str(self.settings.ping_size),
            "-c", str(self.settings.ping_count),
            "-W", str(self.settings.ping_timeout),
            address,
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            logger.error("ping binary not found, treating every address as unreachable")
            return False

        logger.debug(f"ping {address} -> exit {result.returncode}")
        return result.returncode == 0

    def default_gateway(self) -> Optional[str]:
        """Return the host's default route gateway, if one is configured."""
        if self.mock:
            return MOCK_GATEWAY

        try:
            result = subprocess.run(
                ["ip", "route", "show", "default"],
                capture_output=True,
                text=True,
                check=True,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            logger.warning(f"Could not read default route: {e}")
            return None

        # default via 192.168.1.5 dev vmbr0 proto kernel onlink
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 3 and parts[0] == "default" and parts[1] == "via":
                return parts[2]
        return None

    def host_address(self) -> str:
        """Primary address of this host, used when pointing at the web UI."""
        if self.mock:
            return "192.168.1.101"

        try:
            result = subprocess.run(
                ["hostname", "-i"], capture_output=True, text=True, check=True
            )
        except (subprocess.CalledProcessError, FileNotFoundError):
            return "localhost"

        parts = result.stdout.split()
        return parts[0] if parts else "localhost"
