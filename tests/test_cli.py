"""Tests for the mdns-sweep command line interface."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from mdns_sweep import __version__
from mdns_sweep.__main__ import cli
from mdns_sweep.models.device import Device, SrvRecord


@pytest.fixture
def runner():
    return CliRunner()

@pytest.fixture
def devices():
    return {
        "192.168.1.20": Device(
            services=["printer._ipp._tcp.local"],
            addresses=["192.168.1.20"],
            srv_records=[SrvRecord(priority=0, weight=0, port=631, target="printer.local")],
            txt_records=[{"rp": "ipp/print"}],
        )
    }


def test_version(runner):
    result = runner.invoke(cli, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output

def test_config_show(runner):
    result = runner.invoke(cli, ["config-show"])

    assert result.exit_code == 0
    assert '"concurrency": 50' in result.output

def test_scan_prints_and_writes_results(runner, devices, tmp_path):
    output_file = tmp_path / "devices.json"
    scan = AsyncMock(return_value=devices)

    with patch("mdns_sweep.__main__.MDNSScanner.scan", scan):
        result = runner.invoke(cli, [
            "scan", "--ip", "192.168.1.10", "--cidr", "192.168.1.0/24",
            "-s", "_ipp._tcp.local", "--timeout", "1.5", "-n", "20",
            "--output", str(output_file),
        ])

    assert result.exit_code == 0, result.output
    assert "printer._ipp._tcp.local" in result.output
    assert "printer.local:631" in result.output
    assert json.loads(output_file.read_text()) == {
        "192.168.1.20": {
            "services": ["printer._ipp._tcp.local"],
            "addresses": ["192.168.1.20"],
            "srv_records": [{"priority": 0, "weight": 0, "port": 631, "target": "printer.local"}],
            "txt_records": [{"rp": "ipp/print"}],
        }
    }
    scan.assert_awaited_once_with(
        interface=None,
        interface_ip="192.168.1.10",
        service_types=["_ipp._tcp.local"],
        cidr="192.168.1.0/24",
        timeout=1.5,
        concurrency=20,
    )

def test_scan_output_short_flag(runner, devices, tmp_path):
    output_file = tmp_path / "out.json"

    with patch("mdns_sweep.__main__.MDNSScanner.scan", AsyncMock(return_value=devices)):
        result = runner.invoke(cli, ["scan", "--ip", "192.168.1.10", "--cidr", "192.168.1.0/24", "-o", str(output_file)])

    assert result.exit_code == 0, result.output
    assert list(json.loads(output_file.read_text())) == ["192.168.1.20"]

def test_scan_resolves_interface_address(runner):
    scan = AsyncMock(return_value={})

    with patch("mdns_sweep.__main__.pick_interface_ip", return_value="10.0.0.2") as pick, \
         patch("mdns_sweep.__main__.MDNSScanner.scan", scan):
        result = runner.invoke(cli, ["scan", "-i", "eth0", "--cidr", "10.0.0.0/24"])

    assert result.exit_code == 0, result.output
    assert "No mDNS responders found." in result.output
    pick.assert_called_once()
    assert scan.await_args.kwargs["interface_ip"] == "10.0.0.2"
    assert scan.await_args.kwargs["interface"] == "eth0"

def test_scan_invalid_cidr(runner):
    result = runner.invoke(cli, ["scan", "--ip", "10.0.0.2", "--cidr", "10.0.0.0/99"])

    assert result.exit_code == 2
    assert "Invalid scan target" in result.output

def test_scan_requires_target_range(runner):
    result = runner.invoke(cli, ["scan", "--ip", "10.0.0.2"])

    assert result.exit_code == 2

def test_scan_requires_ip_or_interface(runner):
    result = runner.invoke(cli, ["scan", "--cidr", "10.0.0.0/24"])

    assert result.exit_code == 2

def test_interfaces(runner):
    from mdns_sweep.discovery.network import InterfaceAddress
    import socket

    with patch("mdns_sweep.__main__.get_network_interfaces", return_value=["eth0"]), \
         patch("mdns_sweep.__main__.get_interface_addresses",
               return_value=[InterfaceAddress("eth0", "192.168.1.10", socket.AF_INET)]):
        result = runner.invoke(cli, ["interfaces"])

    assert result.exit_code == 0
    assert "eth0" in result.output
    assert "ipv4  192.168.1.10" in result.output
