"""
Shared result registry for a scan run.
"""
import asyncio
import json
from collections.abc import Mapping

import structlog  # type: ignore[import-not-found]

from ..models.device import Device

logger = structlog.get_logger(__name__)


class DeviceRegistry:
    """Devices keyed by responding address, merged from many workers.

    Merges are unions, so the final content does not depend on the order
    in which workers report.
    """

    def __init__(self):
        self._devices: dict[str, Device] = {}
        self._lock = asyncio.Lock()

    async def merge(self, devices: Mapping[str, Device]) -> int:
        """Union a batch of per-address devices into the registry.

        Returns:
            int: Number of addresses seen for the first time.
        """
        new_addresses = 0
        async with self._lock:
            for address, fragment in devices.items():
                existing = self._devices.get(address)
                if existing is None:
                    existing = self._devices[address] = Device()
                    existing.merge(fragment)
                    new_addresses += 1
                    logger.info("Discovered mDNS responder", address=address, services=len(fragment.services))
                elif existing.merge(fragment):
                    logger.debug("Updated mDNS responder", address=address)
        return new_addresses

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, address: object) -> bool:
        return address in self._devices

    def get(self, address: str) -> Device | None:
        return self._devices.get(address)

    def snapshot(self) -> dict[str, Device]:
        """Copy of the current registry content."""
        return {address: device.model_copy(deep=True) for address, device in self._devices.items()}

    def to_dict(self) -> dict[str, dict]:
        return {address: device.to_dict() for address, device in self._devices.items()}

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
