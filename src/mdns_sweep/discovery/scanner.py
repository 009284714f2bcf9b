"""
Bounded-concurrency mDNS sweep over a CIDR range.
"""
import asyncio
import ipaddress
from collections.abc import Iterator, Sequence
from typing import Protocol

import structlog  # type: ignore[import-not-found]

from ..config import Config
from ..exceptions import InvalidTargetError
from ..models.device import Device
from .exchange import MDNSExchange
from .registry import DeviceRegistry

logger = structlog.get_logger(__name__)

QUEUE_DEPTH_PER_WORKER = 2


class Exchange(Protocol):
    async def query(
        self,
        local_interface_ip: str,
        service_names: Sequence[str],
        target_ip: str,
        timeout: float,
        interface: str | None = None,
    ) -> dict[str, Device]: ...


def parse_target_network(cidr: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    """Parse a scan range. Host bits are allowed ("192.168.1.7/24" scans 192.168.1.0/24).

    Raises:
        InvalidTargetError: If `cidr` is not valid CIDR notation.
    """
    try:
        return ipaddress.ip_network(cidr.strip(), strict=False)
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidTargetError(str(cidr), str(e)) from e


def enumerate_targets(cidr: str) -> Iterator[str]:
    """Host addresses in `cidr`, in order, produced lazily.

    The range is validated when called, before the first address is taken.
    """
    network = parse_target_network(cidr)
    return (str(host) for host in network.hosts())


class MDNSScanner:
    """
    Sweeps an address range with mDNS queries using a fixed-size worker pool
    and merges every response into one DeviceRegistry.
    """

    def __init__(self, app_config: Config | None = None, exchange: Exchange | None = None):
        self.app_config = app_config or Config()
        self.scan_config = self.app_config.scan
        self.exchange = exchange or MDNSExchange(
            port=self.scan_config.port,
            max_datagram_size=self.scan_config.max_datagram_size,
        )
        self.logger = logger.bind(service="MDNSScanner")

    async def scan(
        self,
        interface: str | None,
        interface_ip: str,
        service_types: Sequence[str] | None,
        cidr: str,
        timeout: float | None = None,
        concurrency: int | None = None,
    ) -> dict[str, Device]:
        """
        Query every host in `cidr` and return the merged device registry.

        Args:
            interface: Interface name (used for the IPv6 scope), may be None.
            interface_ip: Local address whose interface joins the multicast group.
            service_types: Service names to query; configured defaults when None.
            cidr: Target range, e.g. "192.168.1.0/24".
            timeout: Per-target collection time; configured default when None.
            concurrency: Number of workers; configured default when None.

        Returns:
            dict[str, Device]: Devices keyed by responding address.

        Raises:
            InvalidTargetError: If `cidr` is invalid. Raised before any query is sent.
            ValueError: If `concurrency` is below 1.
        """
        targets = enumerate_targets(cidr)
        services = list(service_types) if service_types else list(self.scan_config.service_types)
        timeout = self.scan_config.timeout_seconds if timeout is None else timeout
        concurrency = self.scan_config.concurrency if concurrency is None else concurrency
        if concurrency < 1:
            raise ValueError("Concurrency must be at least 1.")

        log = self.logger.bind(cidr=cidr, interface=interface, interface_ip=interface_ip)
        log.info("Starting mDNS scan", services=len(services), timeout=timeout, concurrency=concurrency)

        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=concurrency * QUEUE_DEPTH_PER_WORKER)
        registry = DeviceRegistry()
        watchdog = timeout + self.scan_config.watchdog_grace_seconds
        producer = asyncio.create_task(self._produce(targets, queue), name="mdns-target-producer")
        workers = [
            asyncio.create_task(
                self._worker(worker_id, queue, registry, interface, interface_ip, services, timeout, watchdog),
                name=f"mdns-worker-{worker_id}",
            )
            for worker_id in range(concurrency)
        ]
        tasks = [producer, *workers]
        try:
            await producer
            await queue.join()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        log.info("mDNS scan complete", responders=len(registry))
        return registry.snapshot()

    @staticmethod
    async def _produce(targets: Iterator[str], queue: "asyncio.Queue[str]") -> None:
        for target in targets:
            await queue.put(target)

    async def _worker(
        self,
        worker_id: int,
        queue: "asyncio.Queue[str]",
        registry: DeviceRegistry,
        interface: str | None,
        interface_ip: str,
        services: list[str],
        timeout: float,
        watchdog: float,
    ) -> None:
        log = self.logger.bind(worker=worker_id)
        while True:
            target = await queue.get()
            try:
                devices = await asyncio.wait_for(
                    self.exchange.query(interface_ip, services, target, timeout, interface=interface),
                    timeout=watchdog,
                )
                if devices:
                    await registry.merge(devices)
            except TimeoutError:
                log.warning("mDNS query watchdog expired", target=target, watchdog=watchdog)
            except Exception as e:
                log.exception("Unexpected error while querying target", target=target, error=str(e))
            finally:
                queue.task_done()
