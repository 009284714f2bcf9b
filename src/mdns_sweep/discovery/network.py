"""Network interface and address enumeration for mDNS Sweep."""

import platform
import socket
import subprocess
from typing import List, NamedTuple, Optional

import netifaces
import structlog

logger = structlog.get_logger(__name__)


class InterfaceAddress(NamedTuple):
    interface: str
    ip: str
    family: int  # socket.AF_INET or socket.AF_INET6


def get_windows_interfaces() -> List[str]:
    """Get network interfaces on Windows using netsh.

    Returns:
        List[str]: List of interface names.
    """
    try:
        output = subprocess.check_output(
            ["netsh", "interface", "show", "interface"],
            universal_newlines=True
        )
        interfaces = []
        for line in output.split('\n')[1:]:  # Skip header row
            parts = line.split(None, 3)
            if len(parts) == 4 and parts[0] == "Enabled":
                interfaces.append(parts[3].strip())  # Name may contain spaces
        return interfaces
    except (OSError, subprocess.SubprocessError) as e:
        logger.error("Failed to get Windows interfaces", error=str(e))
        return []

def get_linux_interfaces() -> List[str]:
    """Get network interfaces on Linux using the ip command.

    Returns:
        List[str]: List of interface names, loopback excluded.
    """
    try:
        output = subprocess.check_output(
            ["ip", "link", "show"],
            universal_newlines=True
        )
        interfaces = []
        for line in output.split('\n'):
            if line[:1].isdigit() and ": " in line:  # "2: eth0: <...>"
                iface = line.split(": ")[1].split("@")[0]
                if iface != "lo":
                    interfaces.append(iface)
        return interfaces
    except (OSError, subprocess.SubprocessError) as e:
        logger.error("Failed to get Linux interfaces", error=str(e))
        return []

def get_network_interfaces(skip_loopback: bool = True) -> List[str]:
    """Get list of network interfaces in a platform-agnostic way.

    Args:
        skip_loopback: Whether to exclude loopback interfaces.

    Returns:
        List[str]: List of interface names.
    """
    try:
        interfaces = netifaces.interfaces()
    except Exception as e:
        logger.warning("netifaces discovery failed, trying platform-specific fallback", error=str(e))
        if platform.system() == "Windows":
            return get_windows_interfaces()
        return get_linux_interfaces()

    if skip_loopback:
        interfaces = [
            iface for iface in interfaces
            if not iface.lower().startswith(("lo", "loopback"))
        ]
    return interfaces

def get_interface_addresses(interface: str) -> List[InterfaceAddress]:
    """Get the IPv4 and IPv6 addresses bound to an interface.

    IPv6 zone suffixes ("%eth0") are stripped.

    Args:
        interface: Network interface name.

    Returns:
        List[InterfaceAddress]: IPv4 addresses first, then IPv6.
    """
    try:
        addr_info = netifaces.ifaddresses(interface)
    except (ValueError, KeyError, OSError) as e:
        logger.error("Failed to get addresses for interface", interface=interface, error=str(e))
        return []

    addresses: List[InterfaceAddress] = []
    for nf_family, family in ((netifaces.AF_INET, socket.AF_INET), (netifaces.AF_INET6, socket.AF_INET6)):
        for entry in addr_info.get(nf_family, []):
            if 'addr' in entry:
                addresses.append(InterfaceAddress(interface, entry['addr'].split('%')[0], family))
    return addresses

def get_active_interfaces() -> List[str]:
    """Get list of active network interfaces that have IP addresses."""
    return [iface for iface in get_network_interfaces() if get_interface_addresses(iface)]

def get_interface_index(interface: Optional[str]) -> int:
    """Resolve an interface name to its index; 0 lets the kernel choose."""
    if not interface:
        return 0
    try:
        return socket.if_nametoindex(interface)
    except OSError as e:
        logger.warning("Could not resolve interface index", interface=interface, error=str(e))
        return 0

def pick_interface_ip(interface: str, family: int = socket.AF_INET) -> Optional[str]:
    """First address of the given family on `interface`, or None."""
    for address in get_interface_addresses(interface):
        if address.family == family:
            return address.ip
    return None
