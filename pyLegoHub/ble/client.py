# pyLegoHub/ble/client.py

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from bleak import BleakClient

from .scanner import LegoScanner
from .utils import decode_payload, encode_payload

logger = logging.getLogger(__name__)


class LegoClient:
    """
    A class to manage the BLE connection and communication with a LEGO hub.

    Payloads cross this boundary as base64 text: write() decodes them before
    they go on the air and notifications are handed to callbacks encoded.
    """

    def __init__(self, filters: Dict[str, Any],
                 on_connect: Optional[Callable[[], Awaitable]] = None,
                 on_reset: Optional[Callable[[], None]] = None,
                 on_message: Optional[Callable[[str], None]] = None,
                 scanner: Optional[LegoScanner] = None):
        self.filters = filters
        self.address = None
        self.client = None
        self.connected = False
        self._on_connect = on_connect
        self._on_reset = on_reset
        self._on_message = on_message
        self._scanner = scanner or LegoScanner()

    def _service_uuids(self) -> List[str]:
        services = []
        for entry in self.filters.get("filters", []):
            services.extend(entry.get("services", []))
        return services

    async def discover(self) -> List[Dict[str, Any]]:
        return await self._scanner.discover_hubs(self._service_uuids())

    async def connect_peripheral(self, address: str) -> bool:
        if self.client is not None:
            await self.disconnect()
        self.address = address
        self.client = BleakClient(address, disconnected_callback=self._handle_disconnect)
        try:
            await self.client.connect()
        except Exception as e:
            logger.warning("Failed to connect to LEGO hub at %s: %s", address, e)
            return False
        self.connected = True
        logger.info("Connected to LEGO hub at %s", address)
        if self._on_connect is not None:
            try:
                await self._on_connect()
            except Exception as e:
                logger.warning("Failed to set up LEGO hub at %s: %s", address, e)
                await self.disconnect()
                return False
        return True

    def _handle_disconnect(self, _client):
        if not self.connected:
            return
        self.connected = False
        logger.info("LEGO hub at %s disconnected", self.address)
        if self._on_reset is not None:
            self._on_reset()

    async def disconnect(self):
        if self.connected:
            self.connected = False
            await self.client.disconnect()
            logger.info("Disconnected from LEGO hub at %s", self.address)

    def is_connected(self) -> bool:
        return self.connected and self.client is not None and self.client.is_connected

    async def write(self, service_id: str, characteristic_id: str, message, encoding: Optional[str] = None):
        """
        Writes one message to a characteristic. The service id is only used
        for logging; characteristic UUIDs are unique on every supported hub.
        """
        if encoding == "base64":
            data = decode_payload(message)
        elif isinstance(message, str):
            data = message.encode("utf-8")
        else:
            data = bytes(message)
        logger.debug("> %s/%s %s", service_id, characteristic_id, data.hex())
        return await self.client.write_gatt_char(characteristic_id, data)

    async def start_notifications(self, service_id: str, characteristic_id: str,
                                  callback: Optional[Callable[[str], None]] = None):
        """
        Subscribes to a characteristic; callback (on_message by default)
        receives base64 text.
        """
        callback = callback or self._on_message

        def handler(_sender, data: bytearray):
            callback(encode_payload(data))

        logger.debug("Starting notifications on %s/%s", service_id, characteristic_id)
        return await self.client.start_notify(characteristic_id, handler)

    async def stop_notifications(self, service_id: str, characteristic_id: str):
        return await self.client.stop_notify(characteristic_id)
