# pyLegoHub/hubs/poweredup.py

import logging

from pyLegoHub.ble.client import LegoClient
from pyLegoHub.ble.utils import LWP3_CHARACTERISTIC_UUID, LWP3_SERVICE_UUID, encode_payload
from pyLegoHub.config import POWEREDUP_CONFIG
from pyLegoHub.devices.motor import Motor, MotorCommands
from pyLegoHub.manager import Manager
from pyLegoHub.protocol import lwp3, wedo2
from pyLegoHub.protocol.lwp3 import MessageType

logger = logging.getLogger(__name__)


class PoweredUpDevice:
    MOTOR = 1
    TRAIN_MOTOR = 2
    LED_LIGHT = 8
    PIEZO = 22
    LED = 23
    TILT = 34
    DISTANCE = 35

    # Everything driven through a motor handle
    OUTPUTS = (MOTOR, TRAIN_MOTOR, LED_LIGHT)


class PoweredUpConnectID:
    LED = 6
    PIEZO = 5


class PoweredUpMode:
    TILT = 0      # angle
    DISTANCE = 0  # detect
    LED = 1


SENSOR_MODES = {
    PoweredUpDevice.TILT: PoweredUpMode.TILT,
    PoweredUpDevice.DISTANCE: PoweredUpMode.DISTANCE,
}


class PoweredUp(Manager):
    """
    PoweredUp hub session (LEGO Wireless Protocol 3). Ports A and B carry
    motors, train motors, lights, tilt or distance sensors.

    Motor frames use the LWP3 port output command; the LED and piezo frames
    keep the WeDo 2.0 output layout.
    """

    TRANSPORT_FILTERS = {"filters": [{"services": [LWP3_SERVICE_UUID]}]}
    SENSOR_DEFAULTS = {"tilt_x": 0, "tilt_y": 0, "distance": 0}
    SENSOR_KEYS_BY_TYPE = {
        PoweredUpDevice.TILT: ("tilt_x", "tilt_y"),
        PoweredUpDevice.DISTANCE: ("distance",),
    }
    MOTOR_SLOTS = (0, 1)
    DEFAULT_CONFIG = POWEREDUP_CONFIG

    def __init__(self, runtime, extension_id="poweredup", config=None, transport_factory=None):
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
    def tilt_x(self) -> int:
        return self.sensors["tilt_x"]

    @property
    def tilt_y(self) -> int:
        return self.sensors["tilt_y"]

    @property
    def distance(self) -> int:
        return self.sensors["distance"]

    def send(self, message: bytes, use_limiter: bool = True):
        logger.debug("> %s", message.hex())
        return self._send_payload(
            lambda: self._transport.write(
                LWP3_SERVICE_UUID, LWP3_CHARACTERISTIC_UUID, encode_payload(message), "base64"),
            use_limiter,
        )

    def set_led(self, rgb: int):
        return self.send(wedo2.write_rgb(rgb, PoweredUpConnectID.LED))

    def stop_led(self):
        return self.send(wedo2.write_rgb(0x000000, PoweredUpConnectID.LED))

    def play_tone(self, tone: float, milliseconds: int):
        return self.send(wedo2.play_tone(tone, milliseconds, PoweredUpConnectID.PIEZO))

    def stop_tone(self):
        # Only sent by the stop button, so it skips the rate limiter.
        return self.send(wedo2.stop_tone(PoweredUpConnectID.PIEZO), use_limiter=False)

    def stop_sound(self):
        self.stop_tone()

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
            device_type = self.ports.get(port)
            if device_type == PoweredUpDevice.DISTANCE:
                self.sensors["distance"] = values[0]
            elif device_type == PoweredUpDevice.TILT and len(values) >= 2:
                self.sensors["tilt_x"] = values[0]
                self.sensors["tilt_y"] = values[1]
        else:
            logger.debug("Unhandled PoweredUp message: %s", data.hex())

    def _register_sensor_or_motor(self, port: int, device_type: int):
        self.ports[port] = device_type

        if device_type in PoweredUpDevice.OUTPUTS:
            self._register_motor(port, Motor(
                self._motor_commands, port, brake_time_ms=self.config.brake_time_ms))
            return

        mode = SENSOR_MODES.get(device_type)
        if mode is not None:
            self.send(lwp3.input_format_setup(port, mode), use_limiter=False)
