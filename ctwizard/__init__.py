"""ctwizard - interactive LXC provisioning wizard for Proxmox VE."""

__version__ = "0.3.0"
