from enum import IntEnum

from pydantic import BaseModel

MDNS_PORT = 5353
MDNS_IPV4_GROUP = "224.0.0.251"
MDNS_IPV6_GROUP = "ff02::fb"


class BasePydanticModel(BaseModel):
    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "use_enum_values": True,
    }

class RecordType(IntEnum):
    A = 1
    PTR = 12
    TXT = 16
    AAAA = 28
    SRV = 33
    NSEC = 47
    ANY = 255

    @classmethod
    def name_of(cls, code: int) -> str:
        """Human readable name for a type code, e.g. 'PTR' or 'TYPE65'."""
        try:
            return cls(code).name
        except ValueError:
            return f"TYPE{code}"

class RecordClass(IntEnum):
    IN = 1
    ANY = 255

# Top bit of the class field is the mDNS cache-flush / unicast-response bit
CLASS_MASK = 0x7FFF
