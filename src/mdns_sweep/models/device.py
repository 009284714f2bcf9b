from typing import Any

from pydantic import ConfigDict, Field, field_validator

from .common import BasePydanticModel


class SrvRecord(BasePydanticModel):
    model_config = ConfigDict(frozen=True)

    priority: int = Field(..., ge=0, le=0xFFFF)
    weight: int = Field(..., ge=0, le=0xFFFF)
    port: int = Field(..., ge=0, le=0xFFFF)
    target: str

class Device(BasePydanticModel):
    """Everything learned about one responding address during a scan.

    Every list is de-duplicated on insert and keeps first-seen order.
    TXT entries are compared as whole mappings, so two TXT records that
    share a key but differ in value are both kept.
    """

    services: list[str] = Field(default_factory=list, description="Advertised service instance names (PTR).")
    addresses: list[str] = Field(default_factory=list, description="IPv4/IPv6 addresses (A/AAAA).")
    srv_records: list[SrvRecord] = Field(default_factory=list, description="Service locators (SRV).")
    txt_records: list[dict[str, str]] = Field(default_factory=list, description="Text attributes (TXT).")

    @field_validator("services", "addresses", "srv_records", "txt_records")
    @classmethod
    def drop_duplicates(cls, values: list) -> list:
        unique: list = []
        for value in values:
            _append_unique(unique, value)
        return unique

    def add_service(self, name: str) -> bool:
        return _append_unique(self.services, name)

    def add_address(self, address: str) -> bool:
        return _append_unique(self.addresses, address)

    def add_srv(self, srv: SrvRecord) -> bool:
        return _append_unique(self.srv_records, srv)

    def add_txt(self, txt: dict[str, str]) -> bool:
        return _append_unique(self.txt_records, dict(txt))

    def merge(self, other: "Device") -> bool:
        """Union `other` into this device. Returns True if anything was added."""
        changed = False
        for name in other.services:
            changed |= self.add_service(name)
        for address in other.addresses:
            changed |= self.add_address(address)
        for srv in other.srv_records:
            changed |= self.add_srv(srv)
        for txt in other.txt_records:
            changed |= self.add_txt(txt)
        return changed

    @property
    def is_empty(self) -> bool:
        return not (self.services or self.addresses or self.srv_records or self.txt_records)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form; empty collections are omitted."""
        data: dict[str, Any] = {}
        if self.services:
            data["services"] = list(self.services)
        if self.addresses:
            data["addresses"] = list(self.addresses)
        if self.srv_records:
            data["srv_records"] = [srv.model_dump() for srv in self.srv_records]
        if self.txt_records:
            data["txt_records"] = [dict(txt) for txt in self.txt_records]
        return data


def _append_unique(items: list, item: Any) -> bool:
    if item in items:
        return False
    items.append(item)
    return True
