"""
mDNS wire protocol: packet codec and record interpretation.
"""
from .codec import decode_message, decode_name, encode_name, encode_query, parse_message
from .records import apply, apply_all, parse_address, parse_srv, parse_txt

__all__ = [
    "apply",
    "apply_all",
    "decode_message",
    "decode_name",
    "encode_name",
    "encode_query",
    "parse_address",
    "parse_message",
    "parse_srv",
    "parse_txt",
]
