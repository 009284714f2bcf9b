"""
Wire codec for multicast DNS discovery packets.

Builds ANY-type discovery queries and decodes responses, including
compressed name references. All multi-byte fields are big-endian.
"""
import random
import struct
from collections.abc import Iterable

import structlog  # type: ignore[import-not-found]

from ..exceptions import DecodeError, EncodeError
from ..models.common import RecordClass, RecordType
from ..models.dns import Header, Message, Question, ResourceRecord

logger = structlog.get_logger(__name__)

HEADER = struct.Struct("!HHHHHH")  # id, flags, qdcount, ancount, nscount, arcount
QUESTION_FIXED = struct.Struct("!HH")  # qtype, qclass
RECORD_FIXED = struct.Struct("!HHIH")  # type, class, ttl, rdlength

STANDARD_QUERY_FLAGS = 0x0000
POINTER_MASK = 0xC0
MAX_POINTER_HOPS = 10
MAX_LABEL_LENGTH = 63
MAX_NAME_LENGTH = 255


def encode_name(name: str) -> bytes:
    """Encode a dotted name as a sequence of length-prefixed labels.

    A single trailing dot is accepted ("_http._tcp.local." == "_http._tcp.local").

    Raises:
        EncodeError: If the name is empty, has an empty label, a label longer
            than 63 bytes, or encodes to more than 255 bytes.
    """
    trimmed = name[:-1] if name.endswith(".") else name
    if not trimmed:
        raise EncodeError("Service name must not be empty")

    encoded = bytearray()
    for label in trimmed.split("."):
        raw = label.encode("utf-8")
        if not raw:
            raise EncodeError(f"Empty label in service name '{name}'")
        if len(raw) > MAX_LABEL_LENGTH:
            raise EncodeError(f"Label '{label}' in '{name}' exceeds {MAX_LABEL_LENGTH} bytes")
        encoded.append(len(raw))
        encoded += raw
    encoded.append(0)

    if len(encoded) > MAX_NAME_LENGTH:
        raise EncodeError(f"Service name '{name}' exceeds {MAX_NAME_LENGTH} bytes when encoded")
    return bytes(encoded)


def encode_query(service_names: Iterable[str], transaction_id: int | None = None) -> bytes:
    """Build one query packet asking for ANY records of every service name.

    Args:
        service_names: Names such as "_http._tcp.local", one question each, in order.
        transaction_id: Fixed 16-bit id; a random one is chosen when omitted.

    Returns:
        bytes: The encoded packet.
    """
    names = list(service_names)
    if len(names) > 0xFFFF:
        raise EncodeError("Too many service names for a single query packet")
    if transaction_id is None:
        transaction_id = random.getrandbits(16)

    packet = bytearray(HEADER.pack(transaction_id & 0xFFFF, STANDARD_QUERY_FLAGS, len(names), 0, 0, 0))
    for name in names:
        packet += encode_name(name)
        packet += QUESTION_FIXED.pack(RecordType.ANY, RecordClass.IN)
    return bytes(packet)


def decode_name(buf: bytes, offset: int) -> tuple[str, int]:
    """Decode a possibly compressed name starting at `offset`.

    Compression pointers must point strictly backwards and at most
    MAX_POINTER_HOPS of them are followed.

    Returns:
        tuple[str, int]: The dotted name (no trailing dot) and the offset just
        past the name as it appears at `offset`.

    Raises:
        DecodeError: On any out-of-bounds read, forward or self pointer,
            pointer hop limit, or label that is not valid UTF-8.
    """
    labels: list[str] = []
    pos = offset
    end: int | None = None  # Set once the first pointer (or terminator) is seen
    hops = 0

    while True:
        if pos >= len(buf):
            raise DecodeError("Name runs past end of packet", pos)
        length = buf[pos]

        if length == 0:
            if end is None:
                end = pos + 1
            break

        if length & POINTER_MASK == POINTER_MASK:
            if pos + 1 >= len(buf):
                raise DecodeError("Truncated compression pointer", pos)
            target = ((length & 0x3F) << 8) | buf[pos + 1]
            if end is None:
                end = pos + 2
            hops += 1
            if hops > MAX_POINTER_HOPS:
                raise DecodeError(f"More than {MAX_POINTER_HOPS} compression pointers", pos)
            if target >= pos:
                raise DecodeError("Compression pointer does not point backwards", pos)
            pos = target
            continue

        start = pos + 1
        stop = start + length
        if stop > len(buf):
            raise DecodeError("Label runs past end of packet", pos)
        try:
            labels.append(buf[start:stop].decode("utf-8"))
        except UnicodeDecodeError as e:
            raise DecodeError("Label is not valid UTF-8", pos) from e
        pos = stop

    return ".".join(labels), end


def _decode_question(data: bytes, pos: int) -> tuple[Question, int]:
    name, pos = decode_name(data, pos)
    if pos + QUESTION_FIXED.size > len(data):
        raise DecodeError("Truncated question", pos)
    qtype, qclass = QUESTION_FIXED.unpack_from(data, pos)
    return Question(name=name, qtype=qtype, qclass=qclass), pos + QUESTION_FIXED.size


def _decode_record(data: bytes, pos: int) -> tuple[ResourceRecord, int]:
    name, pos = decode_name(data, pos)
    if pos + RECORD_FIXED.size > len(data):
        raise DecodeError("Truncated resource record header", pos)
    rtype, rclass, ttl, rdlength = RECORD_FIXED.unpack_from(data, pos)
    rdata_offset = pos + RECORD_FIXED.size
    rdata_end = rdata_offset + rdlength
    if rdata_end > len(data):
        raise DecodeError("Record data runs past end of packet", rdata_offset)
    record = ResourceRecord(
        name=name,
        rtype=rtype,
        rclass=rclass,
        ttl=ttl,
        rdata=data[rdata_offset:rdata_end],
        packet=data,
        rdata_offset=rdata_offset,
    )
    return record, rdata_end


def parse_message(data: bytes) -> Message:
    """Parse a whole packet into header, questions and record sections.

    A malformed entry ends parsing at that entry: everything parsed before it
    is kept, and later sections are left empty since their start offset is
    no longer known.

    Raises:
        DecodeError: Only if the fixed 12-byte header is truncated.
    """
    if len(data) < HEADER.size:
        raise DecodeError(f"Packet shorter than {HEADER.size}-byte header", len(data))

    txid, flags, qdcount, ancount, nscount, arcount = HEADER.unpack_from(data, 0)
    header = Header(
        transaction_id=txid,
        flags=flags,
        questions=qdcount,
        answers=ancount,
        authorities=nscount,
        additionals=arcount,
    )
    log = logger.bind(transaction_id=txid)
    pos = HEADER.size

    questions: list[Question] = []
    for _ in range(qdcount):
        try:
            question, pos = _decode_question(data, pos)
        except DecodeError as e:
            log.debug("Malformed question section, no records decoded", error=str(e))
            return Message(header=header, questions=tuple(questions))
        questions.append(question)

    sections: list[tuple[ResourceRecord, ...]] = []
    intact = True
    for section_name, count in (("answer", ancount), ("authority", nscount), ("additional", arcount)):
        records: list[ResourceRecord] = []
        while intact and len(records) < count:
            try:
                record, pos = _decode_record(data, pos)
            except DecodeError as e:
                log.debug("Malformed record, stopping", section=section_name, parsed=len(records), error=str(e))
                intact = False
                break
            records.append(record)
        sections.append(tuple(records))

    answers, authorities, additionals = sections
    return Message(
        header=header,
        questions=tuple(questions),
        answers=answers,
        authorities=authorities,
        additionals=additionals,
    )


def decode_message(data: bytes) -> list[ResourceRecord]:
    """Decode every answer, authority and additional record in a packet.

    Raises:
        DecodeError: If the header itself is truncated.
    """
    return parse_message(data).records
