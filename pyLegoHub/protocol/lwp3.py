# pyLegoHub/protocol/lwp3.py

"""
LEGO Wireless Protocol 3 frames used by the PoweredUp and Duplo Train hubs.

Common header: [length, hub_id (0x00), message_type, ...].
"""

import struct
from typing import Optional, Tuple

from .wedo2 import to_byte

HUB_ID = 0x00


class MessageType:
    ATTACHED_IO = 0x04
    PORT_INPUT_FORMAT_SETUP = 0x41
    PORT_VALUE = 0x45
    PORT_OUTPUT_COMMAND = 0x81


class AttachedIOEvent:
    DETACHED = 0x00
    ATTACHED = 0x01
    ATTACHED_VIRTUAL = 0x02


# Port output command: execute immediately with feedback, direct write mode
STARTUP_AND_COMPLETION = 0x11
WRITE_DIRECT_MODE_DATA = 0x51

MOTOR_BRAKE = 0x7F
MOTOR_OFF = 0x00


def write_direct(port: int, mode: int, value: int) -> bytes:
    """
    [0x08, 0x00, 0x81, port, 0x11, 0x51, mode, value]
    """
    return bytes([
        0x08,
        HUB_ID,
        MessageType.PORT_OUTPUT_COMMAND,
        port,
        STARTUP_AND_COMPLETION,
        WRITE_DIRECT_MODE_DATA,
        mode,
        to_byte(value),
    ])


def motor_power(port: int, power: int) -> bytes:
    return write_direct(port, 0x00, power)


def motor_brake(port: int) -> bytes:
    return write_direct(port, 0x00, MOTOR_BRAKE)


def motor_off(port: int) -> bytes:
    return write_direct(port, 0x00, MOTOR_OFF)


def input_format_setup(port: int, mode: int, delta: int = 1, notifications: bool = True) -> bytes:
    """
    [0x0a, 0x00, 0x41, port, mode, delta (4 bytes LE), notifications]
    """
    return bytes([0x0a, HUB_ID, MessageType.PORT_INPUT_FORMAT_SETUP, port, mode]) + \
        struct.pack("<I", delta) + bytes([0x01 if notifications else 0x00])


def message_type(data: bytes) -> Optional[int]:
    if len(data) < 3:
        return None
    return data[2]


def parse_attached_io(data: bytes) -> Optional[Tuple[int, bool, Optional[int]]]:
    """
    Returns (port, attached, device_type) for an attached I/O frame.
    """
    if len(data) < 5 or data[2] != MessageType.ATTACHED_IO:
        return None
    port = data[3]
    if data[4] == AttachedIOEvent.DETACHED:
        return port, False, None
    if len(data) < 6:
        return None
    return port, True, data[5]


def parse_port_value(data: bytes) -> Optional[Tuple[int, bytes]]:
    """
    Returns (port, values) for a single port value frame.
    """
    if len(data) < 5 or data[2] != MessageType.PORT_VALUE:
        return None
    return data[3], bytes(data[4:])
