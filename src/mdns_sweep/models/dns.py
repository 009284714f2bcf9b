from pydantic import ConfigDict, Field

from .common import CLASS_MASK, BasePydanticModel, RecordType


class Header(BasePydanticModel):
    model_config = ConfigDict(frozen=True)

    transaction_id: int = Field(..., ge=0, le=0xFFFF)
    flags: int = Field(default=0, ge=0, le=0xFFFF)
    questions: int = Field(default=0, ge=0, le=0xFFFF)
    answers: int = Field(default=0, ge=0, le=0xFFFF)
    authorities: int = Field(default=0, ge=0, le=0xFFFF)
    additionals: int = Field(default=0, ge=0, le=0xFFFF)

    @property
    def is_response(self) -> bool:
        return bool(self.flags & 0x8000)

class Question(BasePydanticModel):
    model_config = ConfigDict(frozen=True)

    name: str
    qtype: int = RecordType.ANY
    qclass: int = 1

class ResourceRecord(BasePydanticModel):
    """A single resource record. `rdata` stays opaque until interpreted."""

    model_config = ConfigDict(frozen=True)

    name: str
    rtype: int
    rclass: int = 1
    ttl: int = 0
    rdata: bytes = b""
    # Source packet and absolute rdata offset, so compressed names inside
    # rdata (PTR, SRV) can follow pointers into the rest of the packet.
    packet: bytes = Field(default=b"", repr=False, exclude=True)
    rdata_offset: int = Field(default=0, repr=False, exclude=True)

    @property
    def type_name(self) -> str:
        return RecordType.name_of(self.rtype)

    @property
    def cache_flush(self) -> bool:
        return bool(self.rclass & ~CLASS_MASK)

class Message(BasePydanticModel):
    model_config = ConfigDict(frozen=True)

    header: Header
    questions: tuple[Question, ...] = ()
    answers: tuple[ResourceRecord, ...] = ()
    authorities: tuple[ResourceRecord, ...] = ()
    additionals: tuple[ResourceRecord, ...] = ()

    @property
    def records(self) -> list[ResourceRecord]:
        """Answer, authority and additional records, in that order."""
        return [*self.answers, *self.authorities, *self.additionals]
