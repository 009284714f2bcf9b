"""
Unit tests for Pydantic models in src/mdns_sweep/models/
"""
import pytest
from pydantic import ValidationError

from mdns_sweep.models.common import RecordType
from mdns_sweep.models.device import Device, SrvRecord
from mdns_sweep.models.dns import Header, ResourceRecord


def test_device_merge_is_commutative():
    """Merging fragments in either order yields the same union."""
    left = Device(services=["svcA"])
    right = Device(addresses=["10.0.0.5"])

    a = Device()
    a.merge(left)
    a.merge(right)
    b = Device()
    b.merge(right)
    b.merge(left)

    assert a == b
    assert a.services == ["svcA"]
    assert a.addresses == ["10.0.0.5"]

def test_device_merge_is_idempotent():
    fragment = Device(
        services=["svcA"],
        srv_records=[SrvRecord(priority=0, weight=0, port=80, target="web.local")],
        txt_records=[{"path": "/"}],
    )
    device = Device()

    assert device.merge(fragment) is True
    assert device.merge(fragment) is False
    assert device == fragment

def test_device_preserves_insertion_order():
    device = Device()
    for name in ["b", "a", "c", "a", "b"]:
        device.add_service(name)

    assert device.services == ["b", "a", "c"]

def test_device_constructor_drops_duplicates():
    srv = SrvRecord(priority=0, weight=0, port=80, target="web.local")
    device = Device(
        services=["a", "b", "a"],
        addresses=["10.0.0.5", "10.0.0.5"],
        srv_records=[srv, srv],
        txt_records=[{"k": "v"}, {"k": "v"}, {"k": "w"}],
    )

    assert device.services == ["a", "b"]
    assert device.addresses == ["10.0.0.5"]
    assert device.srv_records == [srv]
    assert device.txt_records == [{"k": "v"}, {"k": "w"}]

def test_add_txt_stores_a_copy():
    txt = {"k": "v"}
    device = Device()
    device.add_txt(txt)
    txt["k"] = "changed"

    assert device.txt_records == [{"k": "v"}]

def test_device_to_dict_omits_empty_collections():
    device = Device(services=["printer._ipp._tcp.local"])
    device.add_srv(SrvRecord(priority=0, weight=0, port=631, target="printer.local"))

    assert device.to_dict() == {
        "services": ["printer._ipp._tcp.local"],
        "srv_records": [{"priority": 0, "weight": 0, "port": 631, "target": "printer.local"}],
    }
    assert Device().to_dict() == {}

def test_srv_record_is_frozen_and_validated():
    srv = SrvRecord(priority=0, weight=0, port=80, target="web.local")
    with pytest.raises(ValidationError):
        srv.port = 81
    with pytest.raises(ValidationError):
        SrvRecord(priority=0, weight=0, port=70000, target="web.local")

def test_device_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        Device(hostname="x")

def test_header_flags():
    assert Header(transaction_id=1, flags=0x8400).is_response
    assert not Header(transaction_id=1).is_response

def test_record_type_names():
    assert RecordType.name_of(12) == "PTR"
    assert RecordType.name_of(65) == "TYPE65"
    assert ResourceRecord(name="x", rtype=33).type_name == "SRV"
