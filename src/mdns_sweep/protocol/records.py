"""
Interprets decoded resource records and folds them into a Device.
"""
import ipaddress
import struct

import structlog  # type: ignore[import-not-found]

from ..exceptions import DecodeError
from ..models.common import RecordType
from ..models.device import Device, SrvRecord
from ..models.dns import ResourceRecord
from .codec import decode_name

logger = structlog.get_logger(__name__)

SRV_FIXED = struct.Struct("!HHH")  # priority, weight, port
_ADDRESS_LENGTHS = {RecordType.A: 4, RecordType.AAAA: 16}


def decode_rdata_name(record: ResourceRecord, offset: int = 0) -> str:
    """Decode a name stored at `offset` within the record's rdata.

    Pointers are resolved against the source packet when the record carries
    one, otherwise against the rdata alone. Label reads never go past the end
    of the rdata; pointers only reach backwards, so the packet is cut there.
    """
    if offset >= len(record.rdata):
        raise DecodeError("Name offset beyond record data", offset)
    if record.packet:
        rdata_end = record.rdata_offset + len(record.rdata)
        name, _ = decode_name(record.packet[:rdata_end], record.rdata_offset + offset)
    else:
        name, _ = decode_name(record.rdata, offset)
    return name


def parse_srv(record: ResourceRecord) -> SrvRecord:
    if len(record.rdata) <= SRV_FIXED.size:
        raise DecodeError("SRV record data too short", len(record.rdata))
    priority, weight, port = SRV_FIXED.unpack_from(record.rdata, 0)
    target = decode_rdata_name(record, SRV_FIXED.size)
    return SrvRecord(priority=priority, weight=weight, port=port, target=target)


def parse_txt(rdata: bytes) -> dict[str, str]:
    """Parse TXT rdata into key/value pairs.

    Entries without '=' map to an empty value, the first occurrence of a key
    wins and entries with an empty key are skipped. A length byte that runs
    past the end of the data stops parsing; pairs read so far are kept.
    """
    pairs: dict[str, str] = {}
    pos = 0
    while pos < len(rdata):
        length = rdata[pos]
        pos += 1
        if length == 0:
            continue
        if pos + length > len(rdata):
            logger.debug("TXT entry length exceeds record data, ignoring the rest", offset=pos - 1, length=length)
            break
        raw = rdata[pos:pos + length]
        pos += length
        try:
            entry = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping TXT entry that is not valid UTF-8", offset=pos - length - 1)
            continue
        key, _, value = entry.partition("=")
        if not key:
            continue
        pairs.setdefault(key, value)
    return pairs


def parse_address(record: ResourceRecord) -> str:
    expected = _ADDRESS_LENGTHS.get(record.rtype)
    if expected is None:
        raise DecodeError(f"{record.type_name} is not an address record")
    if len(record.rdata) != expected:
        raise DecodeError(f"{record.type_name} record data must be {expected} bytes, got {len(record.rdata)}")
    if expected == 4:
        return str(ipaddress.IPv4Address(record.rdata))
    return str(ipaddress.IPv6Address(record.rdata))


def apply(device: Device, record: ResourceRecord) -> bool:
    """Fold one record into `device`.

    Malformed record data is logged and leaves the device untouched.

    Returns:
        bool: True if the device gained a new entry.
    """
    log = logger.bind(record_name=record.name, record_type=record.type_name)
    try:
        if record.rtype == RecordType.PTR:
            return device.add_service(decode_rdata_name(record))
        if record.rtype == RecordType.SRV:
            return device.add_srv(parse_srv(record))
        if record.rtype == RecordType.TXT:
            txt = parse_txt(record.rdata)
            return device.add_txt(txt) if txt else False
        if record.rtype in _ADDRESS_LENGTHS:
            return device.add_address(parse_address(record))
    except DecodeError as e:
        log.warning("Ignoring malformed record data", error=str(e))
        return False

    log.debug("Ignoring unsupported record type")
    return False


def apply_all(device: Device, records: list[ResourceRecord]) -> int:
    """Apply every record; returns how many added something new."""
    return sum(1 for record in records if apply(device, record))
