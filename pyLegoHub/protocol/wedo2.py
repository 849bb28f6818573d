# pyLegoHub/protocol/wedo2.py

"""
WeDo 2.0 frame encoders and decoders.

Output commands use [connect_id, command, byte_count, payload...]; input
commands (sensor mode setup) are fixed 11 byte frames. Every literal here is
part of the wire format.
"""

import struct
from typing import Optional, Tuple


class WeDo2Device:
    MOTOR = 1
    PIEZO = 22
    LED = 23
    TILT = 34
    DISTANCE = 35


class WeDo2ConnectID:
    LED = 6
    PIEZO = 5


class WeDo2Command:
    MOTOR_POWER = 1
    PLAY_TONE = 2
    STOP_TONE = 3
    WRITE_RGB = 4
    SET_VOLUME = 255


class WeDo2Mode:
    TILT = 0      # angle
    DISTANCE = 0  # detect
    LED = 1       # RGB


class WeDo2Unit:
    TILT = 0      # raw
    DISTANCE = 1  # percent
    LED = 0       # raw


MOTOR_BRAKE = 0x7F
MOTOR_OFF = 0x00


def to_byte(value: int) -> int:
    """
    Stores a signed value in one byte (two's complement), e.g. -50 becomes 206.
    """
    return int(value) & 0xFF


def output_command(connect_id: int, command: int, values=()) -> bytes:
    values = [to_byte(v) for v in values]
    return bytes([connect_id, command, len(values)] + values)


def motor_power(connect_id: int, power: int) -> bytes:
    """
    Drive command; power in [-100, 100].
    """
    return output_command(connect_id, WeDo2Command.MOTOR_POWER, [power])


def motor_brake(connect_id: int) -> bytes:
    return output_command(connect_id, WeDo2Command.MOTOR_POWER, [MOTOR_BRAKE])


def motor_off(connect_id: int) -> bytes:
    return output_command(connect_id, WeDo2Command.MOTOR_POWER, [MOTOR_OFF])


def write_rgb(rgb: int, connect_id: int = WeDo2ConnectID.LED) -> bytes:
    return output_command(connect_id, WeDo2Command.WRITE_RGB, [
        (rgb >> 16) & 0xFF,
        (rgb >> 8) & 0xFF,
        rgb & 0xFF,
    ])


def play_tone(tone: float, milliseconds: int, connect_id: int = WeDo2ConnectID.PIEZO) -> bytes:
    tone = int(tone)
    milliseconds = int(milliseconds)
    return output_command(connect_id, WeDo2Command.PLAY_TONE, [
        tone,
        tone >> 8,
        milliseconds,
        milliseconds >> 8,
    ])


def stop_tone(connect_id: int = WeDo2ConnectID.PIEZO) -> bytes:
    return bytes([connect_id, WeDo2Command.STOP_TONE])


def input_command(connect_id: int, device_type: int, mode: int,
                  delta: int = 1, unit: int = 0, notifications: bool = True) -> bytes:
    """
    Sensor format command:
      [0x01, 0x02, connect_id, type, mode, delta (4 bytes LE), unit, notifications]
    """
    return bytes([0x01, 0x02, connect_id, device_type, mode]) + \
        struct.pack("<I", delta) + bytes([unit, 0x01 if notifications else 0x00])


def parse_attached_io(data: bytes) -> Optional[Tuple[int, bool, Optional[int]]]:
    """
    Attached I/O frames start with the connect id (1 or 2).
    Returns (connect_id, attached, device_type) or None for other frames.
    """
    if len(data) < 2 or data[0] not in (1, 2):
        return None
    connect_id = data[0]
    if data[1] == 0:
        return connect_id, False, None
    if len(data) < 4:
        return None
    return connect_id, True, data[3]


def parse_sensor_value(data: bytes) -> Optional[Tuple[int, bytes]]:
    """
    Input value frames: [?, connect_id, value...]. Returns (connect_id, values).
    """
    if len(data) < 3:
        return None
    return data[1], bytes(data[2:])
