"""
Pydantic models for mDNS Sweep.
"""
from .common import (
    MDNS_IPV4_GROUP,
    MDNS_IPV6_GROUP,
    MDNS_PORT,
    BasePydanticModel,
    RecordClass,
    RecordType,
)
from .device import Device, SrvRecord
from .dns import Header, Message, Question, ResourceRecord

__all__ = [
    "BasePydanticModel",
    "Device",
    "Header",
    "MDNS_IPV4_GROUP",
    "MDNS_IPV6_GROUP",
    "MDNS_PORT",
    "Message",
    "Question",
    "RecordClass",
    "RecordType",
    "ResourceRecord",
    "SrvRecord",
]
