"""ctwizard runtime configuration and settings."""
import os
from dataclasses import dataclass, field
from typing import List, Optional


def _split_modules(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class WizardSettings:
    """Runtime configuration for wizard runs.

    Attributes:
        ping_count: Echo requests sent per reachability probe (default: 2)
        ping_size: Payload size in bytes for each echo request (default: 1)
        ping_timeout: Seconds before a probe is considered failed (default: 5)
        lxc_conf_dir: Directory holding container configs (default: /etc/pve/lxc)
        modules_file: Boot-time kernel module list (default: /etc/modules)
        kernel_modules: Modules that must be loaded before provisioning
        nas_hostname: NAS identifier prefix used in storage pool names
        command_timeout: Timeout in seconds for read-only platform queries
    """

    ping_count: int = 2
    ping_size: int = 1
    ping_timeout: int = 5
    lxc_conf_dir: str = "/etc/pve/lxc"
    modules_file: str = "/etc/modules"
    kernel_modules: List[str] = field(default_factory=lambda: ["aufs", "overlay"])
    nas_hostname: str = "nas"
    command_timeout: int = 30

    @classmethod
    def from_env(cls) -> "WizardSettings":
        """Create settings from environment variables.

        Environment variables:
            CTWIZARD_PING_COUNT: Echo requests per probe
            CTWIZARD_PING_SIZE: Echo payload size
            CTWIZARD_PING_TIMEOUT: Probe timeout in seconds
            CTWIZARD_LXC_CONF_DIR: Container config directory
            CTWIZARD_MODULES_FILE: Boot-time module list
            CTWIZARD_MODULES: Comma-separated kernel modules to load
            CTWIZARD_NAS_HOSTNAME: NAS identifier prefix
            CTWIZARD_COMMAND_TIMEOUT: Platform query timeout in seconds

        Returns:
            WizardSettings instance with values from environment or defaults
        """
        defaults = cls()
        modules = os.getenv("CTWIZARD_MODULES")
        return cls(
            ping_count=int(os.getenv("CTWIZARD_PING_COUNT", defaults.ping_count)),
            ping_size=int(os.getenv("CTWIZARD_PING_SIZE", defaults.ping_size)),
            ping_timeout=int(os.getenv("CTWIZARD_PING_TIMEOUT", defaults.ping_timeout)),
            lxc_conf_dir=os.getenv("CTWIZARD_LXC_CONF_DIR", defaults.lxc_conf_dir),
            modules_file=os.getenv("CTWIZARD_MODULES_FILE", defaults.modules_file),
            kernel_modules=_split_modules(modules) if modules is not None else defaults.kernel_modules,
            nas_hostname=os.getenv("CTWIZARD_NAS_HOSTNAME", defaults.nas_hostname),
            command_timeout=int(
                os.getenv("CTWIZARD_COMMAND_TIMEOUT", defaults.command_timeout)
            ),
        )


# Global settings instance (can be overridden)
_settings: Optional[WizardSettings] = None


def get_settings() -> WizardSettings:
    """Get the global wizard settings.

    Returns:
        WizardSettings instance (creates from environment if not set)
    """
    global _settings
    if _settings is None:
        _settings = WizardSettings.from_env()
    return _settings


def set_settings(settings: Optional[WizardSettings]):
    """Set the global wizard settings.

    Args:
        settings: WizardSettings instance to use globally, or None to reset
    """
    global _settings
    _settings = settings
