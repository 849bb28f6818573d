# pyLegoHub/bt/client.py

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import serial
import serial.tools.list_ports

from pyLegoHub.ble.utils import decode_payload, encode_payload

logger = logging.getLogger(__name__)

# Substrings identifying a Bluetooth serial port across platforms
BLUETOOTH_PORT_HINTS = ("bluetooth", "bthenum", "rfcomm")


class LegoSerialClient:
    """
    Classic Bluetooth (serial port profile) connection to a SPIKE Prime or
    EV3 hub, through the serial port the operating system creates for a
    paired hub.

    Incoming data is forwarded to on_message as base64 text, in the chunks
    it was read.
    """

    def __init__(self, filters: Dict[str, Any],
                 on_connect: Optional[Callable[[], Awaitable]] = None,
                 on_reset: Optional[Callable[[], None]] = None,
                 on_message: Optional[Callable[[str], None]] = None,
                 baudrate: int = 115200):
        # Major/minor device class of the hub; serial ports do not expose it,
        # so discovery relies on the port description instead.
        self.filters = filters
        self.port = None
        self._baudrate = baudrate
        self._serial: Optional[serial.Serial] = None
        self._reader: Optional[asyncio.Task] = None
        self._on_connect = on_connect
        self._on_reset = on_reset
        self._on_message = on_message

    async def discover(self, name_filter: str = "") -> List[Dict[str, Any]]:
        lowered_filter = name_filter.strip().lower()
        ports = []
        for port in serial.tools.list_ports.comports():
            text = " ".join([port.device or "", port.description or "", port.hwid or ""]).lower()
            if not any(hint in text for hint in BLUETOOTH_PORT_HINTS):
                continue
            if lowered_filter and lowered_filter not in text:
                continue
            ports.append({"name": port.description or port.device, "address": port.device})
        ports.sort(key=lambda item: item["address"])
        return ports

    async def connect_peripheral(self, port: str) -> bool:
        if self._serial is not None:
            await self.disconnect()
        self.port = port
        try:
            self._serial = serial.Serial(
                port=port,
                baudrate=self._baudrate,
                timeout=0.1,
                write_timeout=1.0,
            )
        except serial.SerialException as e:
            logger.warning("Failed to open %s: %s", port, e)
            self._serial = None
            return False

        logger.info("Connected to hub on %s", port)
        self._reader = asyncio.get_running_loop().create_task(self._read_loop())
        if self._on_connect is not None:
            try:
                await self._on_connect()
            except Exception as e:
                logger.warning("Failed to set up hub on %s: %s", port, e)
                await self.disconnect()
                return False
        return True

    def is_connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    async def send_message(self, message, encoding: Optional[str] = None):
        if not self.is_connected():
            return
        if encoding == "base64":
            data = decode_payload(message)
        elif isinstance(message, str):
            data = message.encode("utf-8")
        else:
            data = bytes(message)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, data)

    def _write(self, data: bytes):
        self._serial.write(data)
        self._serial.flush()

    def _read_chunk(self) -> bytes:
        return self._serial.read(self._serial.in_waiting or 1)

    async def _read_loop(self):
        loop = asyncio.get_running_loop()
        while self.is_connected():
            try:
                data = await loop.run_in_executor(None, self._read_chunk)
            except (serial.SerialException, OSError) as e:
                logger.warning("Lost connection to hub on %s: %s", self.port, e)
                self._close()
                if self._on_reset is not None:
                    self._on_reset()
                return
            if data and self._on_message is not None:
                self._on_message(encode_payload(data))

    def _close(self):
        if self._serial is not None and self._serial.is_open:
            self._serial.close()
        self._serial = None

    async def disconnect(self):
        if self._reader is not None:
            self._reader.cancel()
            self._reader = None
        self._close()
        logger.info("Disconnected from hub on %s", self.port)
