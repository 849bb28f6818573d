# pyLegoHub/hubs/wedo2.py

import logging

from pyLegoHub.ble.client import LegoClient
from pyLegoHub.ble.utils import (
    CHARACTERISTIC_ATTACHED_IO_UUID,
    CHARACTERISTIC_INPUT_COMMAND_UUID,
    CHARACTERISTIC_INPUT_VALUES_UUID,
    CHARACTERISTIC_OUTPUT_COMMAND_UUID,
    WEDO2_DEVICE_SERVICE_UUID,
    WEDO2_IO_SERVICE_UUID,
    encode_payload,
)
from pyLegoHub.config import WEDO2_CONFIG
from pyLegoHub.devices.motor import Motor, MotorCommands
from pyLegoHub.manager import Manager
from pyLegoHub.protocol import wedo2
from pyLegoHub.protocol.wedo2 import WeDo2ConnectID, WeDo2Device, WeDo2Mode, WeDo2Unit

logger = logging.getLogger(__name__)

SENSOR_SETUP = {
    WeDo2Device.TILT: (WeDo2Mode.TILT, WeDo2Unit.TILT),
    WeDo2Device.DISTANCE: (WeDo2Mode.DISTANCE, WeDo2Unit.DISTANCE),
}


class WeDo2(Manager):
    """
    WeDo 2.0 hub session. Two ports (connect ids 1 and 2), stored by
    zero-based index; an internal RGB LED and piezo speaker.
    """

    TRANSPORT_FILTERS = {"filters": [{"services": [WEDO2_DEVICE_SERVICE_UUID]}]}
    SENSOR_DEFAULTS = {"tilt_x": 0, "tilt_y": 0, "distance": 0}
    SENSOR_KEYS_BY_TYPE = {
        WeDo2Device.TILT: ("tilt_x", "tilt_y"),
        WeDo2Device.DISTANCE: ("distance",),
    }
    MOTOR_SLOTS = (0, 1)
    DEFAULT_CONFIG = WEDO2_CONFIG

    def __init__(self, runtime, extension_id="wedo2", config=None, transport_factory=None):
        super().__init__(runtime, extension_id, config, transport_factory)
        self._motor_commands = MotorCommands(
            self._send_output,
            wedo2.motor_power,
            wedo2.motor_brake,
            wedo2.motor_off,
        )
        self._values_subscribed = False

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

    def send(self, characteristic_id: str, message: bytes, use_limiter: bool = True):
        logger.debug("> %s", message.hex())
        return self._send_payload(
            lambda: self._transport.write(
                WEDO2_IO_SERVICE_UUID, characteristic_id, encode_payload(message), "base64"),
            use_limiter,
        )

    def _send_output(self, message: bytes, use_limiter: bool = True):
        return self.send(CHARACTERISTIC_OUTPUT_COMMAND_UUID, message, use_limiter)

    def set_led(self, rgb: int):
        return self._send_output(wedo2.write_rgb(rgb))

    def stop_led(self):
        return self._send_output(wedo2.write_rgb(0x000000))

    def play_tone(self, tone: float, milliseconds: int):
        return self._send_output(wedo2.play_tone(tone, milliseconds))

    def stop_tone(self):
        # Only sent by the stop button, so it skips the rate limiter.
        return self._send_output(wedo2.stop_tone(), use_limiter=False)

    def stop_sound(self):
        self.stop_tone()

    def _set_led_mode(self):
        return self.send(CHARACTERISTIC_INPUT_COMMAND_UUID, wedo2.input_command(
            WeDo2ConnectID.LED, WeDo2Device.LED, WeDo2Mode.LED,
            delta=0, unit=WeDo2Unit.LED, notifications=False,
        ))

    async def _on_connect(self):
        await self._transport.start_notifications(
            WEDO2_DEVICE_SERVICE_UUID, CHARACTERISTIC_ATTACHED_IO_UUID, self._on_message)
        await self._set_led_mode()
        await self.set_led(0x0000FF)

    def _handle_message(self, data: bytes):
        # Frames starting with a connect id (1 or 2) come from the attached
        # I/O characteristic; anything else is a sensor value.
        attached = wedo2.parse_attached_io(data)
        if attached is not None:
            connect_id, is_attached, device_type = attached
            if is_attached:
                self._register_sensor_or_motor(connect_id, device_type)
            else:
                self._clear_port(connect_id - 1)
            return

        value = wedo2.parse_sensor_value(data)
        if value is None:
            logger.warning("Ignoring short WeDo 2.0 frame: %s", data.hex())
            return
        connect_id, values = value
        device_type = self.ports.get(connect_id - 1)
        if device_type == WeDo2Device.DISTANCE:
            self.sensors["distance"] = values[0]
        elif device_type == WeDo2Device.TILT and len(values) >= 2:
            self.sensors["tilt_x"] = values[0]
            self.sensors["tilt_y"] = values[1]

    def _register_sensor_or_motor(self, connect_id: int, device_type: int):
        index = connect_id - 1
        self.ports[index] = device_type

        if device_type == WeDo2Device.MOTOR:
            self._register_motor(index, Motor(
                self._motor_commands, index, connect_id=connect_id,
                brake_time_ms=self.config.brake_time_ms,
            ))
            return

        setup = SENSOR_SETUP.get(device_type)
        if setup is None:
            logger.info("Unsupported WeDo 2.0 device type %s on port %s", device_type, connect_id)
            return
        mode, unit = setup
        self.send(CHARACTERISTIC_INPUT_COMMAND_UUID, wedo2.input_command(
            connect_id, device_type, mode, delta=1, unit=unit, notifications=True,
        ), use_limiter=False).add_done_callback(lambda _: self._start_value_notifications())

    def reset(self):
        super().reset()
        self._values_subscribed = False

    def _start_value_notifications(self):
        if self._values_subscribed or not self.is_connected():
            return
        self._values_subscribed = True
        self._send_payload(
            lambda: self._transport.start_notifications(
                WEDO2_IO_SERVICE_UUID, CHARACTERISTIC_INPUT_VALUES_UUID, self._on_message),
            use_limiter=False,
        )
