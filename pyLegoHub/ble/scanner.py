# pyLegoHub/ble/scanner.py

import logging
from typing import Any, Dict, List, Optional, Sequence

from bleak import BleakScanner

logger = logging.getLogger(__name__)


class LegoScanner:
    """
    A class to handle scanning and discovering LEGO BLE hubs.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    async def discover_hubs(self, service_uuids: Optional[Sequence[str]] = None,
                            name_filter: str = "") -> List[Dict[str, Any]]:
        """
        Scans for hubs advertising one of the given services.
        Returns one entry per hub: name, address and rssi.
        """
        logger.info("Scanning for LEGO hubs (services=%s)...", list(service_uuids or []))
        devices = await BleakScanner.discover(
            timeout=self.timeout,
            service_uuids=list(service_uuids) if service_uuids else None,
        )
        lowered_filter = name_filter.strip().lower()

        hubs = []
        for device in devices:
            name = device.name or ""
            if lowered_filter and lowered_filter not in name.lower():
                continue
            hubs.append({
                "name": name,
                "address": device.address,
                "rssi": getattr(device, "rssi", None),
            })
        logger.info("Found %d hub(s)", len(hubs))
        return hubs

    async def discover_hub(self, service_uuids: Optional[Sequence[str]] = None) -> Optional[str]:
        """
        Returns the address of the first hub found, or None.
        """
        hubs = await self.discover_hubs(service_uuids)
        if not hubs:
            logger.info("No LEGO hub found.")
            return None
        return hubs[0]["address"]
