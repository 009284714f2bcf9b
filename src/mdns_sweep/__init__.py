"""mDNS Sweep - multicast service discovery scanner for local networks.

Sweeps an address range with mDNS/DNS-SD queries and collects the services,
addresses, SRV and TXT records each responder advertises.
"""

__version__ = "0.1.0"

from .config import Config
from .discovery.exchange import MDNSExchange
from .discovery.scanner import MDNSScanner
from .models.device import Device, SrvRecord

__all__ = ["Config", "Device", "MDNSExchange", "MDNSScanner", "SrvRecord"]
