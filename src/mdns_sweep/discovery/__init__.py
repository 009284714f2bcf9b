"""
mDNS discovery: interface enumeration, single-target exchange and range scanning.
"""
from .exchange import MDNSExchange, MulticastEndpoint
from .network import (
    InterfaceAddress,
    get_active_interfaces,
    get_interface_addresses,
    get_interface_index,
    get_network_interfaces,
    pick_interface_ip,
)
from .registry import DeviceRegistry
from .scanner import MDNSScanner, enumerate_targets, parse_target_network

__all__ = [
    "DeviceRegistry",
    "InterfaceAddress",
    "MDNSExchange",
    "MDNSScanner",
    "MulticastEndpoint",
    "enumerate_targets",
    "parse_target_network",
    "get_active_interfaces",
    "get_interface_addresses",
    "get_interface_index",
    "get_network_interfaces",
    "pick_interface_ip",
]
