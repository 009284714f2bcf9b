"""CLI entry point for mDNS Sweep."""

import asyncio
import ipaddress
import json
import socket
import sys
from pathlib import Path
from typing import Dict, List, Optional

import click

from .config import Config
from .discovery.network import get_interface_addresses, get_network_interfaces, pick_interface_ip
from .discovery.scanner import MDNSScanner
from .exceptions import InvalidTargetError
from .logging_config import configure_logging
from .models.device import Device


@click.group()
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON configuration file.",
    envvar="MDNS_SWEEP_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the logging level (e.g., DEBUG, INFO).",
    envvar="MDNS_SWEEP_LOGGING_LEVEL"
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format.",
    envvar="MDNS_SWEEP_LOGGING_FORMAT"
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str], log_format: Optional[str]) -> None:
    """mDNS Sweep - discovers mDNS/DNS-SD services across an address range."""
    try:
        cfg = Config.from_file(Path(config_file)) if config_file else Config()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if log_level:
        cfg.logging.level = log_level.upper()
    if log_format:
        cfg.logging.format = log_format.lower()

    configure_logging(cfg.logging)
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command()
@click.option("--interface", "-i", default=None, help="Network interface to send queries from (e.g. 'eth0').")
@click.option("--ip", "interface_ip", default=None, help="Local address to use; looked up from --interface when omitted.")
@click.option("--cidr", default=None, help="Target range in CIDR notation (e.g. '192.168.1.0/24').")
@click.option("--service", "-s", "services", multiple=True, help="Service type to query (e.g. '_http._tcp.local'). Can be used multiple times.")
@click.option("--timeout", "-t", type=float, default=None, help="Seconds to collect responses per target.")
@click.option("--concurrency", "-n", type=int, default=None, help="Number of targets queried at the same time.")
@click.option(
    "--output", "-o", "output_file",
    type=click.Path(dir_okay=False, writable=True, resolve_path=True),
    help="Write the discovered devices to this file as JSON."
)
@click.pass_context
def scan(
    ctx: click.Context,
    interface: Optional[str],
    interface_ip: Optional[str],
    cidr: Optional[str],
    services: List[str],
    timeout: Optional[float],
    concurrency: Optional[int],
    output_file: Optional[str],
) -> None:
    """Sweeps a CIDR range with mDNS queries and reports responders."""
    config: Config = ctx.obj["config"]
    interface = interface or config.scan.interface
    cidr = cidr or config.scan.cidr
    if not cidr:
        raise click.UsageError("A target range is required (--cidr or scan.cidr in the configuration).")

    if not interface_ip:
        if not interface:
            raise click.UsageError("Either --ip or --interface is required.")
        family = _cidr_family(cidr)
        interface_ip = pick_interface_ip(interface, family)
        if not interface_ip:
            click.echo(f"No usable address found on interface {interface}.", err=True)
            sys.exit(1)

    scanner = MDNSScanner(app_config=config)
    try:
        devices = asyncio.run(scanner.scan(
            interface=interface,
            interface_ip=interface_ip,
            service_types=list(services) or None,
            cidr=cidr,
            timeout=timeout,
            concurrency=concurrency,
        ))
    except InvalidTargetError as e:
        click.echo(str(e), err=True)
        sys.exit(2)
    except KeyboardInterrupt:
        click.echo("\nScan interrupted by user.", err=True)
        sys.exit(130)

    _print_devices(devices)

    if output_file:
        payload = {address: device.to_dict() for address, device in devices.items()}
        try:
            with open(output_file, "w") as f:
                json.dump(payload, f, indent=2)
            click.echo(f"Results written to {output_file}")
        except OSError as e:
            click.echo(f"Error writing output file {output_file}: {e}", err=True)
            sys.exit(1)


@cli.command()
def interfaces() -> None:
    """Lists network interfaces and their addresses."""
    for iface in get_network_interfaces(skip_loopback=False):
        addresses = get_interface_addresses(iface)
        click.echo(iface)
        for address in addresses:
            family = "ipv6" if address.family == socket.AF_INET6 else "ipv4"
            click.echo(f"  {family}  {address.ip}")


@cli.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"mDNS Sweep v{__version__}")


@cli.command()
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: Config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


def _cidr_family(cidr: str) -> int:
    try:
        network = ipaddress.ip_network(cidr.strip(), strict=False)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--cidr") from e
    return socket.AF_INET6 if network.version == 6 else socket.AF_INET


def _print_devices(devices: Dict[str, Device]) -> None:
    if not devices:
        click.echo("No mDNS responders found.")
        return

    for address in sorted(devices, key=_address_sort_key):
        device = devices[address]
        click.echo(f"\n{address}")
        for service in device.services:
            click.echo(f"  service  {service}")
        for ip in device.addresses:
            click.echo(f"  address  {ip}")
        for srv in device.srv_records:
            click.echo(f"  srv      {srv.target}:{srv.port} (priority {srv.priority}, weight {srv.weight})")
        for txt in device.txt_records:
            click.echo("  txt      " + ", ".join(f"{k}={v}" for k, v in txt.items()))
    click.echo(f"\n{len(devices)} responder(s) found.")


def _address_sort_key(address: str):
    try:
        ip = ipaddress.ip_address(address.split("%")[0])
        return (ip.version, int(ip))
    except ValueError:
        return (99, 0)


if __name__ == "__main__":
    cli()
