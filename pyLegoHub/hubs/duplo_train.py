# pyLegoHub/hubs/duplo_train.py

import logging

from pyLegoHub.ble.client import LegoClient
from pyLegoHub.ble.utils import LWP3_CHARACTERISTIC_UUID, LWP3_SERVICE_UUID, encode_payload
from pyLegoHub.config import DUPLO_TRAIN_CONFIG
from pyLegoHub.devices.motor import Motor, MotorCommands
from pyLegoHub.manager import Manager
from pyLegoHub.protocol import lwp3
from pyLegoHub.protocol.lwp3 import MessageType

logger = logging.getLogger(__name__)


class DuploTrainDevice:
    LED = 0x17
    MOTOR = 0x29
    SPEAKER = 0x2a
    COLOR = 0x2b
    SPEEDOMETER = 0x2c


class DuploTrainConnectID:
    MOTOR = 0x00
    SPEAKER = 0x01
    LED = 0x11


SENSOR_MODES = {
    DuploTrainDevice.SPEAKER: 1,
    DuploTrainDevice.COLOR: 0,  # color index
}

# Output mode used to trigger a built-in sound on the speaker port
SPEAKER_SOUND_MODE = 0x01

COLORS = [
    "black",
    "pink",
    "purple",
    "blue",
    "light blue",
    "light green",
    "green",
    "yellow",
    "orange",
    "red",
    "white",
]

SOUNDS = {
    "brake": 0x03,
    "departure": 0x05,
    "refill": 0x07,
    "horn": 0x09,
    "steam": 0x0a,
}


class DuploTrain(Manager):
    """
    Duplo Train session: one motor, a color sensor under the train, an LED
    and a speaker, all on the LWP3 characteristic.
    """

    TRANSPORT_FILTERS = {"filters": [{"services": [LWP3_SERVICE_UUID]}]}
    SENSOR_DEFAULTS = {"color": -1}
    SENSOR_KEYS_BY_TYPE = {DuploTrainDevice.COLOR: ("color",)}
    MOTOR_SLOTS = (DuploTrainConnectID.MOTOR,)
    DEFAULT_CONFIG = DUPLO_TRAIN_CONFIG

    def __init__(self, runtime, extension_id="duploTrain", config=None, transport_factory=None):
        super().__init__(runtime, extension_id, config, transport_factory)
        self._motor_commands = MotorCommands(
            self.send,
            lwp3.motor_power,
            lwp3.motor_brake,
            lwp3.motor_off,
        )

    def _default_transport_factory(self):
        return LegoClient

    @property
    def color(self) -> int:
        """
        Index into COLORS of the color under the train, -1 when unknown.
        """
        return self.sensors["color"]

    def send(self, message: bytes, use_limiter: bool = True):
        logger.debug("> %s", message.hex())
        return self._send_payload(
            lambda: self._transport.write(
                LWP3_SERVICE_UUID, LWP3_CHARACTERISTIC_UUID, encode_payload(message), "base64"),
            use_limiter,
        )

    def set_led(self, color):
        """
        Accepts a color name from COLORS or a numeric color index.
        """
        if color in COLORS:
            index = COLORS.index(color)
        else:
            try:
                index = int(float(color))
            except (TypeError, ValueError):
                logger.warning("Unknown Duplo Train LED color: %r", color)
                index = 0
        return self.send(lwp3.write_direct(DuploTrainConnectID.LED, 0x00, index))

    def play_sound(self, sound):
        """
        Accepts a sound name from SOUNDS or a numeric sound index.
        """
        index = SOUNDS.get(sound)
        if index is None:
            try:
                index = int(float(sound))
            except (TypeError, ValueError):
                logger.warning("Unknown Duplo Train sound: %r", sound)
                index = 0
        return self.send(lwp3.write_direct(DuploTrainConnectID.SPEAKER, SPEAKER_SOUND_MODE, index))

    async def _on_connect(self):
        await self._transport.start_notifications(
            LWP3_SERVICE_UUID, LWP3_CHARACTERISTIC_UUID, self._on_message)

    def _handle_message(self, data: bytes):
        kind = lwp3.message_type(data)
        if kind == MessageType.ATTACHED_IO:
            attached = lwp3.parse_attached_io(data)
            if attached is None:
                logger.warning("Ignoring short attached I/O frame: %s", data.hex())
                return
            port, is_attached, device_type = attached
            if is_attached:
                self._register_sensor_or_motor(port, device_type)
            else:
                self._clear_port(port)
        elif kind == MessageType.PORT_VALUE:
            value = lwp3.parse_port_value(data)
            if value is None:
                return
            port, values = value
            if self.ports.get(port) == DuploTrainDevice.COLOR:
                self.sensors["color"] = values[0]
        else:
            logger.debug("Unhandled Duplo Train message: %s", data.hex())

    def _register_sensor_or_motor(self, port: int, device_type: int):
        self.ports[port] = device_type

        if device_type == DuploTrainDevice.MOTOR:
            self._register_motor(port, Motor(
                self._motor_commands, port, brake_time_ms=self.config.brake_time_ms))
            return

        mode = SENSOR_MODES.get(device_type)
        if mode is not None:
            # The hub ignores mode changes sent right after the attach event.
            self._call_later(
                self.config.sensor_setup_delay_ms,
                self.send,
                lwp3.input_format_setup(port, mode),
                False,
            )
