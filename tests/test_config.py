"""Tests for configuration module."""

import json

import pytest
from pydantic import ValidationError

from mdns_sweep.config import DEFAULT_SERVICE_TYPES, Config, ScanConfig


def test_config_defaults():
    config = Config()

    assert config.scan.service_types == DEFAULT_SERVICE_TYPES
    assert config.scan.timeout_seconds == 2.0
    assert config.scan.concurrency == 50
    assert config.scan.watchdog_grace_seconds == 1.0
    assert config.scan.port == 5353
    assert config.scan.cidr is None
    assert config.logging.level == "INFO"
    assert config.logging.format == "console"
    assert config.logging.file is None

def test_default_service_types_not_shared():
    first, second = ScanConfig(), ScanConfig()
    first.service_types.append("_extra._tcp.local")

    assert "_extra._tcp.local" not in second.service_types

def test_config_from_env(monkeypatch):
    """Nested fields are read from MDNS_SWEEP_<SECTION>__<FIELD> variables."""
    monkeypatch.setenv("MDNS_SWEEP_SCAN__TIMEOUT_SECONDS", "3.5")
    monkeypatch.setenv("MDNS_SWEEP_SCAN__CONCURRENCY", "10")
    monkeypatch.setenv("MDNS_SWEEP_SCAN__CIDR", "192.168.1.0/24")
    monkeypatch.setenv("MDNS_SWEEP_LOGGING__LEVEL", "DEBUG")

    config = Config()

    assert config.scan.timeout_seconds == 3.5
    assert config.scan.concurrency == 10
    assert config.scan.cidr == "192.168.1.0/24"
    assert config.logging.level == "DEBUG"

def test_config_from_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "scan": {"service_types": ["_ipp._tcp.local"], "concurrency": 5, "interface": "eth1"},
        "logging": {"format": "json"},
    }))

    config = Config.from_file(config_file)

    assert config.scan.service_types == ["_ipp._tcp.local"]
    assert config.scan.concurrency == 5
    assert config.scan.interface == "eth1"
    assert config.scan.timeout_seconds == 2.0
    assert config.logging.format == "json"

@pytest.mark.parametrize("field,value", [
    ("concurrency", 0),
    ("timeout_seconds", 0),
    ("port", 70000),
    ("watchdog_grace_seconds", -1),
])
def test_scan_config_validation(field, value):
    with pytest.raises(ValidationError):
        ScanConfig(**{field: value})
