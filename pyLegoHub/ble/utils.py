# pyLegoHub/ble/utils.py

import base64


class UUIDHelper:
    UUID_CUSTOM_BASE = "1212-EFDE-1523-785FEABCD123"
    UUID_LWP3_BASE = "1212-EFDE-1623-785FEABCD123"
    UUID_STANDARD_BASE = "0000-1000-8000-00805f9b34fb"

    @staticmethod
    def add_leading_zeroes(prefix: str) -> str:
        """
        Removes the '0x' prefix (if present) and pads the value to ensure 8 digits.
        """
        if prefix.startswith("0x"):
            prefix = prefix[2:]
        return ("00000000" + prefix)[-8:]

    @staticmethod
    def uuid_with_prefix_custom_base(prefix: str) -> str:
        """
        Constructs a full UUID using the WeDo 2.0 custom base.
        """
        padding = UUIDHelper.add_leading_zeroes(prefix)
        return f"{padding}-{UUIDHelper.UUID_CUSTOM_BASE.lower()}"

    @staticmethod
    def uuid_with_prefix_lwp3_base(prefix: str) -> str:
        """
        Constructs a full UUID using the LEGO Wireless Protocol 3 base.
        """
        padding = UUIDHelper.add_leading_zeroes(prefix)
        return f"{padding}-{UUIDHelper.UUID_LWP3_BASE.lower()}"


# WeDo 2.0 services and characteristics
WEDO2_DEVICE_SERVICE_UUID = UUIDHelper.uuid_with_prefix_custom_base("0x1523")
WEDO2_IO_SERVICE_UUID = UUIDHelper.uuid_with_prefix_custom_base("0x4f0e")
CHARACTERISTIC_ATTACHED_IO_UUID = UUIDHelper.uuid_with_prefix_custom_base("0x1527")
CHARACTERISTIC_LOW_VOLTAGE_ALERT_UUID = UUIDHelper.uuid_with_prefix_custom_base("0x1528")
CHARACTERISTIC_INPUT_VALUES_UUID = UUIDHelper.uuid_with_prefix_custom_base("0x1560")
CHARACTERISTIC_INPUT_COMMAND_UUID = UUIDHelper.uuid_with_prefix_custom_base("0x1563")
CHARACTERISTIC_OUTPUT_COMMAND_UUID = UUIDHelper.uuid_with_prefix_custom_base("0x1565")

# PoweredUp / Duplo Train hubs expose a single service and characteristic
LWP3_SERVICE_UUID = UUIDHelper.uuid_with_prefix_lwp3_base("0x1623")
LWP3_CHARACTERISTIC_UUID = UUIDHelper.uuid_with_prefix_lwp3_base("0x1624")


def encode_payload(data) -> str:
    """
    Bytes -> base64 text, the encoding used at the transport boundary.
    """
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_payload(text) -> bytes:
    """
    Base64 text -> bytes. Raw bytes are passed through unchanged.
    """
    if isinstance(text, (bytes, bytearray)):
        return bytes(text)
    return base64.b64decode(text, validate=True)
