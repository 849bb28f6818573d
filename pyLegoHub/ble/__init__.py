# pyLegoHub/ble/__init__.py

"""
pyLegoHub.ble - Bluetooth Low Energy transport for LEGO hubs.
Provides functionality for scanning, connecting, writing and subscribing to notifications.
"""

from .scanner import LegoScanner
from .client import LegoClient
from .utils import (
    UUIDHelper,
    WEDO2_DEVICE_SERVICE_UUID,
    WEDO2_IO_SERVICE_UUID,
    CHARACTERISTIC_ATTACHED_IO_UUID,
    CHARACTERISTIC_INPUT_VALUES_UUID,
    CHARACTERISTIC_INPUT_COMMAND_UUID,
    CHARACTERISTIC_OUTPUT_COMMAND_UUID,
    LWP3_SERVICE_UUID,
    LWP3_CHARACTERISTIC_UUID,
    encode_payload,
    decode_payload,
)
