# pyLegoHub/hubs/ev3.py

import asyncio
import logging
from typing import Dict, Optional

from pyLegoHub.ble.utils import encode_payload
from pyLegoHub.bt.client import LegoSerialClient
from pyLegoHub.config import EV3_CONFIG
from pyLegoHub.devices.motor import TimedMotor, TimedMotorCommands
from pyLegoHub.manager import Manager
from pyLegoHub.protocol import ev3
from pyLegoHub.protocol.ev3 import EV3_LABELS, EV3_MODES, Ev3Command, Ev3Device

logger = logging.getLogger(__name__)


class Ev3(Manager):
    """
    EV3 brick session over classic Bluetooth, using binary direct commands.

    The brick does not push sensor data, so a poll loop alternates between
    reading the attached device list and reading the values of the attached
    sensors and motors. Sensor ports 1-4 are indexes 0-3 in ports; motor
    ports A-D are kept in motor_ports.
    """

    TRANSPORT_FILTERS = {"majorDeviceClass": 8, "minorDeviceClass": 1}
    SENSOR_DEFAULTS = {
        "distance": 0,
        "brightness": 0,
        "buttons": [0, 0, 0, 0],
    }
    MOTOR_SLOTS = tuple(range(ev3.MOTOR_PORTS))
    DEFAULT_CONFIG = EV3_CONFIG

    def __init__(self, runtime, extension_id="ev3", config=None, transport_factory=None):
        super().__init__(runtime, extension_id, config, transport_factory)
        self._motor_commands = TimedMotorCommands(self.send, ev3.run_for, ev3.coast)
        self.motor_ports: Dict[int, int] = {}
        self._reader = ev3.ReplyReader()
        self._poll_task: Optional[asyncio.Task] = None
        self._expect_device_list = False

    def _default_transport_factory(self):
        return LegoSerialClient

    @property
    def distance(self) -> float:
        return self.sensors["distance"]

    @property
    def brightness(self) -> float:
        return self.sensors["brightness"]

    def is_button_pressed(self, port: int) -> bool:
        buttons = self.sensors["buttons"]
        if not 0 <= port < len(buttons):
            logger.warning("Invalid EV3 sensor port %r", port)
            return False
        return buttons[port] == 1

    def send(self, message: bytes, use_limiter: bool = True):
        logger.debug("> %s", message.hex())
        return self._send_payload(
            lambda: self._transport.send_message(encode_payload(message), "base64"),
            use_limiter,
        )

    def beep(self, freq: float, milliseconds: int):
        return self.send(ev3.generate_command(
            Ev3Command.DIRECT_COMMAND_NO_REPLY, ev3.tone(freq, milliseconds)))

    def stop_sound(self):
        # Only sent by the stop button, so it skips the rate limiter.
        return self.send(ev3.generate_command(
            Ev3Command.DIRECT_COMMAND_NO_REPLY, ev3.stop_sound()), use_limiter=False)

    # -- polling -------------------------------------------------------------

    async def _on_connect(self):
        if self._poll_task is not None:
            self._poll_task.cancel()
        self._poll_task = asyncio.ensure_future(self._poll_loop())

    async def _poll_loop(self):
        polls = 0
        while self.is_connected():
            if polls % self.config.device_refresh_polls == 0:
                self._expect_device_list = True
                await self.send(ev3.device_list(), use_limiter=False)
            else:
                command = ev3.read_values(self._sensor_modes(), self._motor_ports())
                if command is not None:
                    self._expect_device_list = False
                    await self.send(command, use_limiter=False)
            polls += 1
            await asyncio.sleep(self.config.poll_interval_ms / 1000.0)

    def _sensor_modes(self) -> Dict[int, int]:
        return {
            port: EV3_MODES[device_type]
            for port, device_type in self.ports.items()
            if device_type in EV3_MODES
        }

    def _motor_ports(self):
        return [port for port in self.motor_ports if self.motors.get(port) is not None]

    def reset(self):
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        super().reset()
        self.motor_ports = {}
        self._reader.clear()
        self._expect_device_list = False

    # -- inbound -------------------------------------------------------------

    def _handle_message(self, data: bytes):
        for reply in self._reader.feed(data):
            payload = ev3.parse_reply(reply)
            if payload is None:
                logger.warning("Ignoring EV3 reply: %s", reply.hex())
                continue
            if self._expect_device_list:
                self._expect_device_list = False
                self._update_devices(payload)
            else:
                self._update_values(payload)

    def _update_devices(self, payload: bytes):
        if len(payload) < ev3.MOTOR_LIST_OFFSET + ev3.MOTOR_PORTS:
            logger.warning("Short EV3 device list: %s", payload.hex())
            return

        for port in range(ev3.SENSOR_PORTS):
            device_type = payload[port]
            if device_type == self.ports.get(port):
                continue
            self._clear_sensor(port)
            if device_type in EV3_LABELS:
                self.ports[port] = device_type

        for port in range(ev3.MOTOR_PORTS):
            device_type = payload[ev3.MOTOR_LIST_OFFSET + port]
            if device_type == self.motor_ports.get(port):
                continue
            self.motor_ports.pop(port, None)
            motor = self.motors.pop(port, None)
            if motor is not None:
                motor.dispose()
            if device_type in Ev3Device.MOTORS:
                self.motor_ports[port] = device_type
                self._register_motor(port, TimedMotor(
                    self._motor_commands, port, device_type,
                    coast_delay_ms=self.config.coast_delay_ms,
                ))

    def _clear_sensor(self, port: int):
        label = EV3_LABELS.get(self.ports.pop(port, None))
        if label == "button":
            self.sensors["buttons"][port] = 0
        elif label is not None:
            self.sensors[label] = 0

    def _update_values(self, payload: bytes):
        for port, device_type in list(self.ports.items()):
            offset = port * 4
            if offset + 4 > len(payload):
                continue
            value = ev3.read_float(payload, offset)
            label = EV3_LABELS[device_type]
            if label == "button":
                self.sensors["buttons"][port] = 1 if value else 0
            else:
                self.sensors[label] = value

        for port in self._motor_ports():
            offset = ev3.MOTOR_LIST_OFFSET + port * 4
            if offset + 4 > len(payload):
                continue
            self.motors[port].position = ev3.read_int(payload, offset)
