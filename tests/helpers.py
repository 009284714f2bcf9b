"""Packet building helpers shared by the test modules."""
import struct

from mdns_sweep.protocol.codec import encode_name

RESPONSE_FLAGS = 0x8400  # QR + AA


def header(qd: int = 0, an: int = 0, ns: int = 0, ar: int = 0, txid: int = 0, flags: int = RESPONSE_FLAGS) -> bytes:
    return struct.pack("!HHHHHH", txid, flags, qd, an, ns, ar)


def record(name: bytes, rtype: int, rdata: bytes, rclass: int = 1, ttl: int = 120) -> bytes:
    """Encode one resource record; `name` is already wire encoded."""
    return name + struct.pack("!HHIH", rtype, rclass, ttl, len(rdata)) + rdata


def ptr_a_response(service: str, instance: str, address: bytes) -> bytes:
    """A response with one PTR answer and one A additional record."""
    return (
        header(an=1, ar=1)
        + record(encode_name(service), 12, encode_name(instance))
        + record(encode_name(instance), 1, address)
    )
