# pyLegoHub/protocol/ev3.py

"""
EV3 direct commands.

A command is a header followed by an opcode stream:
  [len lo, len hi, counter lo, counter hi, type, alloc lo, alloc hi, opcodes...]
The length excludes the two length bytes themselves.
"""

import struct
from typing import List, Optional


class Ev3Encoding:
    ONE_BYTE = 0x81                  # 0b1000-001, "1 byte to follow"
    TWO_BYTES = 0x82                 # 0b1000-010, "2 bytes to follow"
    FOUR_BYTES = 0x83                # 0b1000-011, "4 bytes to follow"
    GLOBAL_VARIABLE_ONE_BYTE = 0xE1  # 0b1110-001, "1 byte to follow"
    GLOBAL_CONSTANT_INDEX_0 = 0x20   # 0b00100000
    GLOBAL_VARIABLE_INDEX_0 = 0x60   # 0b01100000


class Ev3Command:
    DIRECT_COMMAND_REPLY = 0x00
    DIRECT_COMMAND_NO_REPLY = 0x80
    DIRECT_REPLY = 0x02


class Ev3Opcode:
    OPOUTPUT_STEP_SPEED = 0xAE
    OPOUTPUT_TIME_SPEED = 0xAF
    OPOUTPUT_STOP = 0xA3
    OPOUTPUT_RESET = 0xA2
    OPOUTPUT_STEP_SYNC = 0xB0
    OPOUTPUT_TIME_SYNC = 0xB1
    OPOUTPUT_GET_COUNT = 0xB3
    OPSOUND = 0x94
    OPSOUND_CMD_TONE = 1
    OPSOUND_CMD_STOP = 0
    OPINPUT_DEVICE_LIST = 0x98
    OPINPUT_READSI = 0x9D


class Ev3Args:
    LAYER = 0  # chained EV3s are not supported
    COAST = 0
    BRAKE = 1
    RAMP = 50  # ms
    DO_NOT_CHANGE_TYPE = 0
    MAX_DEVICES = 32


class Ev3Device:
    """Device type codes reported by OPINPUT_DEVICE_LIST."""
    TOUCH = 16
    LARGE_MOTOR = 7
    MEDIUM_MOTOR = 8
    COLOR = 29
    ULTRASONIC = 30
    GYRO = 32
    NONE = 126
    NONE_MOTOR = 125

    MOTORS = (LARGE_MOTOR, MEDIUM_MOTOR)


# Sensor mode used when reading each device type
EV3_MODES = {
    Ev3Device.TOUCH: 0,       # pressed
    Ev3Device.COLOR: 1,       # ambient light
    Ev3Device.ULTRASONIC: 0,  # centimeters
}

# Sensor state key fed by each device type
EV3_LABELS = {
    Ev3Device.TOUCH: "button",
    Ev3Device.COLOR: "brightness",
    Ev3Device.ULTRASONIC: "distance",
}

# Port 1-4 sensors start the device list, motors A-D start at offset 16
SENSOR_PORTS = 4
MOTOR_PORTS = 4
MOTOR_LIST_OFFSET = 16
DEVICE_LIST_ALLOCATION = 33
REPLY_HEADER_SIZE = 5


def generate_command(command_type: int, byte_commands: List[int], allocation: int = 0) -> bytes:
    body = [
        0x00,  # message counter, unused
        0x00,
        command_type,
        allocation & 0xFF,
        (allocation >> 8) & 0xFF,
    ] + [b & 0xFF for b in byte_commands]
    length = len(body)
    return bytes([length & 0xFF, (length >> 8) & 0xFF] + body)


def port_mask(index: int) -> int:
    return 2 ** index


def run_values(run: int) -> List[int]:
    """
    Run duration argument: two bytes while it fits a signed 16 bit value,
    four bytes otherwise.
    """
    if run < 0x7fff:
        return [
            Ev3Encoding.TWO_BYTES,
            run & 0xff,
            (run >> 8) & 0xff,
        ]

    return [
        Ev3Encoding.FOUR_BYTES,
        run & 0xff,
        (run >> 8) & 0xff,
        (run >> 16) & 0xff,
        (run >> 24) & 0xff,
    ]


def time_speed(index: int, speed: int, milliseconds: int) -> List[int]:
    """
    OPOUTPUT_TIME_SPEED opcode stream for one motor.

    A negative speed is made positive by negating the duration too; the speed
    byte is then written as 0x100 - speed when the (possibly negated) duration
    is negative. The total time is split into ramp up, steady run and ramp
    down; durations shorter than two ramps are split evenly between the ramps.
    """
    n = int(milliseconds)
    speed = int(speed)
    ramp = Ev3Args.RAMP

    if speed < 0:
        speed = -1 * speed
        n = -1 * n

    direction = 0x100 - speed if n < 0 else speed
    n = abs(n)

    rampup = ramp
    rampdown = ramp
    run = n - (ramp * 2)
    if run < 0:
        rampup = n // 2
        run = 0
        rampdown = n - rampup

    return [
        Ev3Opcode.OPOUTPUT_TIME_SPEED,
        Ev3Args.LAYER,
        port_mask(index),
        Ev3Encoding.ONE_BYTE,
        direction & 0xff,
        Ev3Encoding.ONE_BYTE,
        rampup,
    ] + run_values(run) + [
        Ev3Encoding.ONE_BYTE,
        rampdown,
        Ev3Args.BRAKE,
    ]


def stop(index: int, brake: bool = False) -> List[int]:
    return [
        Ev3Opcode.OPOUTPUT_STOP,
        Ev3Args.LAYER,
        port_mask(index),
        Ev3Args.BRAKE if brake else Ev3Args.COAST,
    ]


def tone(freq: float, milliseconds: int, volume: int = 2) -> List[int]:
    freq = int(freq)
    milliseconds = int(milliseconds)
    return [
        Ev3Opcode.OPSOUND,
        Ev3Opcode.OPSOUND_CMD_TONE,
        Ev3Encoding.ONE_BYTE,
        volume,
        Ev3Encoding.TWO_BYTES,
        freq & 0xff,
        (freq >> 8) & 0xff,
        Ev3Encoding.TWO_BYTES,
        milliseconds & 0xff,
        (milliseconds >> 8) & 0xff,
    ]


def stop_sound() -> List[int]:
    return [Ev3Opcode.OPSOUND, Ev3Opcode.OPSOUND_CMD_STOP]


def device_list() -> bytes:
    return generate_command(
        Ev3Command.DIRECT_COMMAND_REPLY,
        [
            Ev3Opcode.OPINPUT_DEVICE_LIST,
            Ev3Encoding.ONE_BYTE,
            Ev3Args.MAX_DEVICES,
            Ev3Encoding.GLOBAL_VARIABLE_INDEX_0,
            Ev3Encoding.GLOBAL_VARIABLE_ONE_BYTE,
            Ev3Encoding.GLOBAL_CONSTANT_INDEX_0,
        ],
        DEVICE_LIST_ALLOCATION,
    )


def read_sensor(port: int, mode: int, offset: int) -> List[int]:
    return [
        Ev3Opcode.OPINPUT_READSI,
        Ev3Args.LAYER,
        port,
        Ev3Args.DO_NOT_CHANGE_TYPE,
        mode,
        Ev3Encoding.GLOBAL_VARIABLE_ONE_BYTE,
        offset,
    ]


def read_motor_count(port: int, offset: int) -> List[int]:
    return [
        Ev3Opcode.OPOUTPUT_GET_COUNT,
        Ev3Args.LAYER,
        port,
        Ev3Encoding.GLOBAL_VARIABLE_ONE_BYTE,
        offset,
    ]


def parse_reply(data: bytes) -> Optional[bytes]:
    """
    Returns the global variable payload of a DIRECT_REPLY, or None.
    """
    if len(data) < REPLY_HEADER_SIZE or data[4] != Ev3Command.DIRECT_REPLY:
        return None
    return bytes(data[REPLY_HEADER_SIZE:])


def read_float(payload: bytes, offset: int) -> float:
    return struct.unpack_from("<f", payload, offset)[0]


def read_int(payload: bytes, offset: int) -> int:
    return struct.unpack_from("<i", payload, offset)[0]


class ReplyReader:
    """
    Splits a serial byte stream into replies using their two byte length
    prefix. Incomplete replies are kept until the rest arrives.
    """

    def __init__(self):
        self._buffer = bytearray()

    def feed(self, data: bytes) -> List[bytes]:
        self._buffer.extend(data)
        replies = []
        while len(self._buffer) >= 2:
            size = self._buffer[0] | (self._buffer[1] << 8)
            if len(self._buffer) < size + 2:
                break
            replies.append(bytes(self._buffer[:size + 2]))
            del self._buffer[:size + 2]
        return replies

    def clear(self):
        self._buffer.clear()


def run_for(index: int, speed: int, milliseconds: int) -> bytes:
    return generate_command(Ev3Command.DIRECT_COMMAND_NO_REPLY, time_speed(index, speed, milliseconds))


def coast(index: int) -> bytes:
    return generate_command(Ev3Command.DIRECT_COMMAND_NO_REPLY, stop(index, brake=False))


# Four bytes per sensor value, then four bytes per motor count
VALUES_ALLOCATION = (SENSOR_PORTS + MOTOR_PORTS) * 4


def read_values(sensor_modes, motor_ports) -> Optional[bytes]:
    """
    One reply-expecting command reading every sensor in sensor_modes
    ({port: mode}) and the tacho count of every port in motor_ports.
    Sensor port i lands at offset i * 4, motor port i at 16 + i * 4.
    Returns None when there is nothing to read.
    """
    byte_commands = []
    for port, mode in sorted(sensor_modes.items()):
        byte_commands += read_sensor(port, mode, port * 4)
    for port in sorted(motor_ports):
        byte_commands += read_motor_count(port, MOTOR_LIST_OFFSET + port * 4)
    if not byte_commands:
        return None
    return generate_command(Ev3Command.DIRECT_COMMAND_REPLY, byte_commands, VALUES_ALLOCATION)
