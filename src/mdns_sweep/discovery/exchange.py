"""
Single-target mDNS query/response exchange.

Sends one discovery query to a target address and collects every response
that arrives before an absolute deadline, folding the decoded records into
per-source Device entries.
"""
import asyncio
import contextlib
import ipaddress
import socket
import struct
from collections.abc import Sequence

import structlog  # type: ignore[import-not-found]

from ..exceptions import DecodeError, TransportError
from ..models.common import MDNS_IPV4_GROUP, MDNS_IPV6_GROUP, MDNS_PORT
from ..models.device import Device
from ..protocol.codec import decode_message, encode_query
from ..protocol.records import apply_all
from .network import get_interface_index

logger = structlog.get_logger(__name__)


class MulticastEndpoint:
    """An ephemeral non-blocking UDP socket joined to the mDNS group.

    Use as a context manager: group membership is dropped and the socket
    closed on exit, including when the enclosing task is cancelled.
    A failed group join is logged and the socket is kept, since unicast
    replies to the ephemeral port still arrive without membership.
    """

    def __init__(self, family: int, interface_ip: str | None = None, interface_index: int = 0):
        self.family = family
        self.interface_ip = interface_ip
        self.interface_index = interface_index
        self.sock: socket.socket | None = None
        self._membership: tuple[int, int, bytes] | None = None  # (level, drop option, mreq)
        self.logger = logger.bind(family=_family_name(family))

    def open(self) -> "MulticastEndpoint":
        try:
            sock = socket.socket(self.family, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        except OSError as e:
            raise TransportError(f"Could not create UDP socket: {e}", self.family) from e
        try:
            sock.setblocking(False)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("::", 0) if self.family == socket.AF_INET6 else ("0.0.0.0", 0))
        except OSError as e:
            sock.close()
            raise TransportError(f"Could not bind UDP socket: {e}", self.family) from e
        self.sock = sock
        self._join_group()
        return self

    def _join_group(self) -> None:
        try:
            if self.family == socket.AF_INET6:
                mreq = socket.inet_pton(socket.AF_INET6, MDNS_IPV6_GROUP) + struct.pack("@I", self.interface_index)
                self.sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_JOIN_GROUP, mreq)
                self._membership = (socket.IPPROTO_IPV6, socket.IPV6_LEAVE_GROUP, mreq)
                if self.interface_index:
                    self.sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_IF, self.interface_index)
            else:
                local = socket.inet_aton(self.interface_ip) if self.interface_ip else struct.pack("!I", socket.INADDR_ANY)
                mreq = socket.inet_aton(MDNS_IPV4_GROUP) + local
                self.sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
                self._membership = (socket.IPPROTO_IP, socket.IP_DROP_MEMBERSHIP, mreq)
                if self.interface_ip:
                    self.sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, local)
        except OSError as e:
            self.logger.warning("Could not join mDNS multicast group", interface_ip=self.interface_ip, interface_index=self.interface_index, error=str(e))

    def close(self) -> None:
        if self.sock is None:
            return
        if self._membership is not None:
            level, option, mreq = self._membership
            try:
                self.sock.setsockopt(level, option, mreq)
            except OSError as e:
                self.logger.debug("Could not leave mDNS multicast group", error=str(e))
            self._membership = None
        self.sock.close()
        self.sock = None

    def __enter__(self) -> "MulticastEndpoint":
        return self.open()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class MDNSExchange:
    """Runs one query/response exchange against a single target address."""

    def __init__(self, port: int = MDNS_PORT, max_datagram_size: int = 9000):
        self.port = port
        self.max_datagram_size = max_datagram_size
        self.logger = logger.bind(service="MDNSExchange")

    async def query(
        self,
        local_interface_ip: str,
        service_names: Sequence[str],
        target_ip: str,
        timeout: float,
        interface: str | None = None,
    ) -> dict[str, Device]:
        """
        Query `target_ip` for `service_names` and collect responses for `timeout` seconds.

        Never raises (apart from task cancellation): transport and decode
        failures are logged and whatever was collected so far is returned.

        Returns:
            dict[str, Device]: Devices keyed by responding source address.
        """
        log = self.logger.bind(target=target_ip)
        devices: dict[str, Device] = {}

        try:
            packet = encode_query(service_names)
            target = ipaddress.ip_address(target_ip)
            loop = asyncio.get_running_loop()
            deadline = loop.time() + timeout

            with contextlib.ExitStack() as stack:
                endpoints: list[MulticastEndpoint] = []
                ipv4 = self._open_endpoint(stack, socket.AF_INET, interface_ip=_ipv4_or_none(local_interface_ip))
                if ipv4 is not None:
                    endpoints.append(ipv4)
                if target.version == 6:
                    ipv6 = self._open_endpoint(stack, socket.AF_INET6, interface_index=get_interface_index(interface))
                    if ipv6 is not None:
                        endpoints.append(ipv6)

                wanted_family = socket.AF_INET6 if target.version == 6 else socket.AF_INET
                sent = False
                for endpoint in endpoints:
                    if endpoint.family == wanted_family:
                        sent |= await self._send(endpoint, packet, target, log)
                if not sent:
                    log.debug("Query was not sent, skipping collection")
                    return devices

                await asyncio.gather(*(self._collect(endpoint, deadline, devices, log) for endpoint in endpoints))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.warning("mDNS exchange failed", error=str(e), collected=len(devices))

        if devices:
            log.debug("mDNS exchange finished", responders=sorted(devices))
        return devices

    def _open_endpoint(self, stack: contextlib.ExitStack, family: int, **kwargs) -> MulticastEndpoint | None:
        endpoint = MulticastEndpoint(family, **kwargs)
        try:
            return stack.enter_context(endpoint)
        except TransportError as e:
            self.logger.warning("Could not open mDNS endpoint", family=_family_name(family), error=str(e))
            return None

    async def _send(self, endpoint: MulticastEndpoint, packet: bytes, target: ipaddress.IPv4Address | ipaddress.IPv6Address, log) -> bool:
        loop = asyncio.get_running_loop()
        if target.version == 6:
            address = (str(target), self.port, 0, endpoint.interface_index)
        else:
            address = (str(target), self.port)
        try:
            await loop.sock_sendto(endpoint.sock, packet, address)
        except OSError as e:
            log.warning("Failed to send mDNS query", family=_family_name(endpoint.family), error=str(e))
            return False
        log.debug("Sent mDNS query", family=_family_name(endpoint.family), size=len(packet))
        return True

    async def _collect(self, endpoint: MulticastEndpoint, deadline: float, devices: dict[str, Device], log) -> None:
        loop = asyncio.get_running_loop()
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                data, address = await asyncio.wait_for(
                    loop.sock_recvfrom(endpoint.sock, self.max_datagram_size),
                    timeout=remaining,
                )
            except TimeoutError:
                break
            except OSError as e:
                log.warning("Failed to receive mDNS response", family=_family_name(endpoint.family), error=str(e))
                break
            self._absorb(data, address[0], devices, log)

    def _absorb(self, data: bytes, source: str, devices: dict[str, Device], log) -> None:
        device = devices.get(source)
        if device is None:
            device = devices[source] = Device()
        try:
            records = decode_message(data)
        except DecodeError as e:
            log.warning("Dropping undecodable mDNS response", source=source, size=len(data), error=str(e))
            return
        added = apply_all(device, records)
        log.debug("Received mDNS response", source=source, records=len(records), new_entries=added)


def _family_name(family: int) -> str:
    return "ipv6" if family == socket.AF_INET6 else "ipv4"


def _ipv4_or_none(address: str | None) -> str | None:
    """`address` if it is an IPv4 literal; the IPv4 group join needs nothing else."""
    try:
        return address if address and ipaddress.ip_address(address).version == 4 else None
    except ValueError:
        return None
