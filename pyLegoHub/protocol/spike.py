# pyLegoHub/protocol/spike.py

"""
SPIKE Prime JSON protocol.

Requests are JSON objects {"i": id, "m": method, "p": params} terminated by a
carriage return; "i" is only present when a reply is expected. The hub
streams its own messages ({"m": <int>, "p": ...}) and replies ({"i": id,
"r": result}) the same way, possibly several per notification.
"""

import json
import logging
import math
import random
import string
from typing import Any, Container, Dict, List, Optional

logger = logging.getLogger(__name__)

TERMINATOR = "\r"
REQUEST_ID_LENGTH = 4
_ID_ALPHABET = string.digits + string.ascii_lowercase


class HubMessage:
    STATE = 0    # ports, acceleration, gyro rate, tilt angle, LED matrix, timer
    STORAGE = 1
    BATTERY = 2
    BUTTON = 3
    EVENT = 4    # orientation, gesture


# Index of each field inside the STATE parameter list
STATE_PORTS = range(0, 6)
STATE_ACCELERATION = 6
STATE_GYRO_RATE = 7
STATE_TILT_ANGLE = 8

SPIKE_PORTS = ["A", "B", "C", "D", "E", "F"]

SPIKE_ORIENTATION = {
    "any": 0,
    "front": 1,
    "back": 2,
    "up": 3,
    "down": 4,
    "rightside": 5,
    "leftside": 6,
}


class SpikeDevice:
    MEDIUM_MOTOR = 48
    LARGE_MOTOR = 49
    SMALL_MOTOR = 65
    MEDIUM_ANGULAR_MOTOR = 75
    LARGE_ANGULAR_MOTOR = 76
    COLOR = 61
    DISTANCE = 62
    FORCE = 63

    MOTORS = (MEDIUM_MOTOR, LARGE_MOTOR, SMALL_MOTOR, MEDIUM_ANGULAR_MOTOR, LARGE_ANGULAR_MOTOR)


class SpikeStop:
    COAST = 0
    BRAKE = 1
    HOLD = 2


def encode_message(method: str, params: Dict[str, Any], request_id: Optional[str] = None) -> bytes:
    message = {}
    if request_id is not None:
        message["i"] = request_id
    message["m"] = method
    message["p"] = params
    return (json.dumps(message, separators=(",", ":")) + TERMINATOR).encode("utf-8")


def decode_messages(text: str) -> List[Dict[str, Any]]:
    """
    Splits a notification into its carriage-return delimited JSON objects.
    Chunks that are not valid JSON objects are logged and skipped.
    """
    messages = []
    for chunk in text.strip().split(TERMINATOR):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            message = json.loads(chunk)
        except ValueError:
            logger.warning("Dropping malformed SPIKE message: %r", chunk)
            continue
        if not isinstance(message, dict):
            logger.warning("Dropping unexpected SPIKE payload: %r", chunk)
            continue
        messages.append(message)
    return messages


class MessageReader:
    """
    Reassembles hub messages from serial reads, which can end in the middle
    of a message. A trailing piece that is not yet a complete JSON object is
    held back and prefixed to the next read.
    """

    MAX_PENDING = 16 * 1024

    def __init__(self):
        self._pending = ""

    def feed(self, text: str) -> List[Dict[str, Any]]:
        text = self._pending + text
        self._pending = ""
        chunks = text.split(TERMINATOR)
        tail = chunks.pop()
        if tail.strip():
            if _is_complete(tail):
                chunks.append(tail)
            elif tail.lstrip().startswith("{") and len(tail) < self.MAX_PENDING:
                self._pending = tail
            else:
                logger.warning("Dropping malformed SPIKE message: %r", tail)
        return decode_messages(TERMINATOR.join(chunks))

    def clear(self):
        self._pending = ""


def _is_complete(chunk: str) -> bool:
    try:
        json.loads(chunk)
    except ValueError:
        return False
    return True


def new_request_id(in_use: Container[str] = ()) -> str:
    while True:
        request_id = "".join(random.choice(_ID_ALPHABET) for _ in range(REQUEST_ID_LENGTH))
        if request_id not in in_use:
            return request_id


def port_index(port) -> Optional[int]:
    """
    Accepts a port letter ("A".."F") or a zero based index.
    """
    if isinstance(port, str):
        letter = port.strip().upper()
        if letter in SPIKE_PORTS:
            return SPIKE_PORTS.index(letter)
        try:
            port = int(letter)
        except ValueError:
            return None
    if isinstance(port, int) and 0 <= port < len(SPIKE_PORTS):
        return port
    return None


def display_image(image_bits: str, brightness: int) -> str:
    """
    Turns a 25 character 0/1 string into the hub's "bbbbb:bbbbb:..." image,
    lit pixels set to the given brightness (0-9).
    """
    symbol = ("".join(c for c in str(image_bits) if c.isdigit()) + "0" * 25)[:25]
    symbol = symbol.replace("1", str(brightness))
    return ":".join(symbol[i:i + 5] for i in range(0, 25, 5))


def brightness_level(percent: float) -> int:
    """
    Maps a 0-100 brightness to the 0-9 pixel levels of the light matrix,
    rounding halves up.
    """
    percent = max(0, min(percent, 100))
    return int(math.floor(9 * percent / 100 + 0.5))


def motor_run_timed(port: int, speed: int, milliseconds: int):
    """
    Timed run executed by the hub, ending with a brake. A negative duration
    reverses the speed.
    """
    speed = int(speed)
    milliseconds = int(milliseconds)
    if milliseconds < 0:
        speed = -speed
        milliseconds = -milliseconds
    return "scratch.motor_run_timed", {
        "port": SPIKE_PORTS[port],
        "speed": speed,
        "time": milliseconds,
        "stall": True,
        "stop": SpikeStop.BRAKE,
    }


def motor_stop(port: int, stop: int = SpikeStop.COAST):
    return "scratch.motor_stop", {"port": SPIKE_PORTS[port], "stop": stop}
