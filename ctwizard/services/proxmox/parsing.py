"""Parsers for the tabular text printed by pct and pvesm."""
import re
from typing import Dict, List

from ctwizard.models.container import ContainerInfo
from ctwizard.models.storage import StoragePool

_NET_LINE_RE = re.compile(r"^net\d+:")
_IP_RE = re.compile(r"(?:^|,)ip=([^,/\s]+)")


def parse_column_table(output: str) -> List[Dict[str, str]]:
    """Parse fixed-width table output using the header's column offsets.

    pct list leaves the Lock column blank for unlocked containers, so a plain
    whitespace split would shift the Name column. Each column spans from the
    start of its header word to the start of the next one; the last column
    runs to the end of the line.
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines:
        return []

    header = lines[0]
    starts = [m.start() for m in re.finditer(r"\S+", header)]
    names = header.split()

    rows = []
    for line in lines[1:]:
        row = {}
        for idx, name in enumerate(names):
            start = starts[idx]
            end = starts[idx + 1] if idx + 1 < len(starts) else None
            row[name] = line[start:end].strip() if end is not None else line[start:].strip()
        rows.append(row)
    return rows


def parse_container_list(output: str) -> List[ContainerInfo]:
    """Turn pct list output into ContainerInfo records."""
    containers = []
    for row in parse_column_table(output):
        vmid = row.get("VMID", "")
        if not (vmid.isascii() and vmid.isdigit()):
            continue
        containers.append(ContainerInfo(
            vmid=int(vmid),
            status=row.get("Status", ""),
            lock=row.get("Lock", ""),
            name=row.get("Name", ""),
        ))
    return containers


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def parse_storage_status(output: str) -> List[StoragePool]:
    """Turn pvesm status output into StoragePool records."""
    pools = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if not parts:
            continue
        pools.append(StoragePool(
            name=parts[0],
            type=parts[1] if len(parts) > 1 else "",
            status=parts[2] if len(parts) > 2 else "",
            total=_to_int(parts[3]) if len(parts) > 3 else 0,
            used=_to_int(parts[4]) if len(parts) > 4 else 0,
            available=_to_int(parts[5]) if len(parts) > 5 else 0,
        ))
    return pools


def parse_volume_list(output: str) -> List[str]:
    """Return the volume IDs from pvesm list output."""
    volumes = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if parts:
            volumes.append(parts[0])
    return volumes


def parse_lxc_ips(config_text: str) -> List[str]:
    """Return the static IPv4 addresses bound in a container config.

    Matches lines such as:
        net0: name=eth0,bridge=vmbr0,gw=192.168.1.5,ip=192.168.1.150/24,type=veth
    """
    ips = []
    for line in config_text.splitlines():
        line = line.strip()
        if not _NET_LINE_RE.match(line):
            continue
        match = _IP_RE.search(line.split(":", 1)[1].strip())
        if match and match.group(1) != "dhcp":
            ips.append(match.group(1))
    return ips
