"""
Exception hierarchy for mDNS Sweep.
"""
from typing import Optional


class MDNSSweepError(Exception):
    """Base class for all mDNS Sweep errors."""
    pass

class DecodeError(MDNSSweepError):
    """Raised when a discovery packet (or part of one) cannot be decoded:
    truncated header, out-of-bounds label or pointer, invalid UTF-8,
    or too many compression pointers."""
    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (offset {offset})"
        super().__init__(message)
        self.offset = offset

class EncodeError(MDNSSweepError, ValueError):
    """Raised when a service name cannot be encoded into a query packet."""
    pass

class TransportError(MDNSSweepError):
    """Raised for socket level failures (create, bind, join, send, receive)."""
    def __init__(self, message: str, family: Optional[int] = None):
        super().__init__(message)
        self.family = family

class InvalidTargetError(MDNSSweepError, ValueError):
    """Raised when the scan target range is not a valid CIDR literal."""
    def __init__(self, target: str, reason: str):
        super().__init__(f"Invalid scan target '{target}': {reason}")
        self.target = target
        self.reason = reason
