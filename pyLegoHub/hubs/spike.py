# pyLegoHub/hubs/spike.py

import asyncio
import logging
from typing import Any, Dict, Optional

from pyLegoHub.ble.utils import encode_payload
from pyLegoHub.bt.client import LegoSerialClient
from pyLegoHub.config import SPIKE_CONFIG
from pyLegoHub.devices.motor import TimedMotor, TimedMotorCommands
from pyLegoHub.manager import Manager, resolved
from pyLegoHub.protocol import spike
from pyLegoHub.protocol.spike import SPIKE_ORIENTATION, HubMessage, SpikeDevice

logger = logging.getLogger(__name__)

PORT_COUNT = len(spike.SPIKE_PORTS)


def _default_sensors() -> Dict[str, Any]:
    return {
        "distance": 0,
        "brightness": 0,
        "buttons": [0] * PORT_COUNT,
        "angle": {"pitch": 0, "roll": 0, "yaw": 0},
        "orientation": SPIKE_ORIENTATION["front"],
        "battery": {"voltage": 0.0, "level": 0},
        "hub_buttons": {},
    }


class Spike(Manager):
    """
    SPIKE Prime hub session over classic Bluetooth.

    Requests are JSON objects; the ones sent with a request id return a
    future resolved with the hub's reply ("r"), or None when the session is
    reset first. The hub streams its state (ports, IMU) on its own.
    """

    TRANSPORT_FILTERS = {"majorDeviceClass": 8, "minorDeviceClass": 1}
    SENSOR_DEFAULTS = _default_sensors()
    SENSOR_KEYS_BY_TYPE = {
        SpikeDevice.DISTANCE: ("distance",),
        SpikeDevice.COLOR: ("brightness",),
    }
    MOTOR_SLOTS = tuple(range(PORT_COUNT))
    DEFAULT_CONFIG = SPIKE_CONFIG

    def __init__(self, runtime, extension_id="spike", config=None, transport_factory=None):
        super().__init__(runtime, extension_id, config, transport_factory)
        self._motor_commands = TimedMotorCommands(
            self._send_motor_command,
            spike.motor_run_timed,
            spike.motor_stop,
        )
        self._requests: Dict[str, asyncio.Future] = {}
        self._reader = spike.MessageReader()
        self.pixel_brightness = 100
        self.volume = 100

    def _default_transport_factory(self):
        return LegoSerialClient

    # -- reporters -----------------------------------------------------------

    @property
    def distance(self) -> float:
        """
        Distance sensor reading in cm, limited to 0-100.
        """
        value = max(0, min(self.sensors["distance"], 100))
        return round(value, 2)

    @property
    def brightness(self):
        return self.sensors["brightness"]

    @property
    def angle(self) -> Dict[str, int]:
        return self.sensors["angle"]

    @property
    def orientation(self) -> int:
        return self.sensors["orientation"]

    @property
    def battery(self) -> Dict[str, Any]:
        return self.sensors["battery"]

    def is_button_pressed(self, port: int) -> bool:
        """
        True while the force sensor on the given port is pressed.
        """
        buttons = self.sensors["buttons"]
        if not 0 <= port < len(buttons):
            logger.warning("Invalid SPIKE port %r", port)
            return False
        return buttons[port] == 1

    def is_hub_button_pressed(self, name: str) -> bool:
        return bool(self.sensors["hub_buttons"].get(name, 0))

    # -- outbound ------------------------------------------------------------

    def send_command(self, method: str, params: Dict[str, Any],
                     needs_response: bool = True, use_limiter: bool = True):
        """
        Sends one JSON request. Skipped requests resolve to None right away.
        """
        if not self._can_send(use_limiter):
            return resolved()

        request_id = None
        reply = None
        if needs_response:
            request_id = spike.new_request_id(self._requests)
            reply = asyncio.get_running_loop().create_future()
            self._requests[request_id] = reply

        message = spike.encode_message(method, params, request_id)
        logger.debug("> %s", message.decode("utf-8").strip())
        write = asyncio.ensure_future(self._write_request(message, request_id))
        return reply if reply is not None else write

    async def _write_request(self, message: bytes, request_id: Optional[str]):
        try:
            await self._transport.send_message(encode_payload(message), "base64")
        except Exception as e:
            logger.warning("%s: write failed: %s", self._extension_id, e)
            # The hub will never answer a request it did not receive.
            self._settle(request_id, None)

    def _send_motor_command(self, command, use_limiter: bool = True):
        method, params = command
        return self.send_command(method, params, needs_response=False, use_limiter=use_limiter)

    def _settle(self, request_id: Optional[str], result):
        if request_id is None:
            return
        reply = self._requests.pop(request_id, None)
        if reply is not None and not reply.done():
            reply.set_result(result)

    def beep(self, note: int, milliseconds: int):
        return self.send_command("scratch.sound_beep_for_time", {
            "volume": self.volume,
            "note": int(note),
            "duration": int(milliseconds),
        })

    def stop_sound(self):
        # Only sent by the stop button, so it skips the rate limiter.
        return self.send_command("scratch.sound_off", {}, needs_response=False, use_limiter=False)

    def display_image_for(self, image_bits: str, milliseconds: int):
        image = spike.display_image(image_bits, spike.brightness_level(self.pixel_brightness))
        return self.send_command("scratch.display_image_for", {
            "image": image,
            "duration": int(milliseconds),
        })

    def display_image(self, image_bits: str):
        image = spike.display_image(image_bits, spike.brightness_level(self.pixel_brightness))
        return self.send_command("scratch.display_image", {"image": image})

    def display_text(self, text: str):
        return self.send_command("scratch.display_text", {"text": str(text)})

    def display_clear(self):
        return self.send_command("scratch.display_clear", {})

    def display_set_pixel(self, x: int, y: int, brightness: float):
        """
        Lights one pixel; x and y are zero based, brightness is 0-100.
        """
        return self.send_command("scratch.display_set_pixel", {
            "x": int(x),
            "y": int(y),
            "brightness": spike.brightness_level(brightness),
        })

    # -- lifecycle -----------------------------------------------------------

    async def _on_connect(self):
        await self.send_command("trigger_current_state", {}, needs_response=False)

    def reset(self):
        super().reset()
        self._reader.clear()
        requests, self._requests = self._requests, {}
        for reply in requests.values():
            if not reply.done():
                reply.set_result(None)

    def _clear_port(self, port: int):
        device_type = self.ports.get(port)
        super()._clear_port(port)
        if device_type == SpikeDevice.FORCE:
            self.sensors["buttons"][port] = 0

    # -- inbound -------------------------------------------------------------

    def _handle_message(self, data: bytes):
        text = data.decode("utf-8", errors="replace")
        for message in self._reader.feed(text):
            self._dispatch(message)

    def _dispatch(self, message: Dict[str, Any]):
        kind = message.get("m")
        if kind != HubMessage.STATE or "i" in message:
            logger.debug("< %s", message)

        params = message.get("p")
        if kind == HubMessage.STATE:
            self._update_state(params)
        elif kind == HubMessage.BATTERY:
            if isinstance(params, list) and len(params) >= 2:
                self.sensors["battery"] = {"voltage": params[0], "level": params[1]}
        elif kind == HubMessage.BUTTON:
            if isinstance(params, list) and len(params) >= 2:
                self.sensors["hub_buttons"][params[0]] = params[1]
        elif kind == HubMessage.EVENT:
            if isinstance(params, str) and SPIKE_ORIENTATION.get(params):
                self.sensors["orientation"] = SPIKE_ORIENTATION[params]

        if "i" in message:
            self._settle(message["i"], message.get("r"))

    def _update_state(self, params):
        if not isinstance(params, list):
            logger.warning("Unexpected SPIKE state: %r", params)
            return

        for port in spike.STATE_PORTS:
            if port < len(params):
                self._update_port(port, params[port])

        angle = params[spike.STATE_TILT_ANGLE] if len(params) > spike.STATE_TILT_ANGLE else None
        if isinstance(angle, list) and len(angle) >= 3:
            yaw, pitch, roll = angle[:3]
            self.sensors["angle"] = {"pitch": pitch, "roll": roll, "yaw": yaw}

    def _update_port(self, port: int, entry):
        if not isinstance(entry, list) or len(entry) < 2:
            return
        device_type, values = entry[0], entry[1] or []

        if device_type != self.ports.get(port):
            if port in self.ports:
                self._clear_port(port)
            if device_type:
                self._register_device(port, device_type)

        if device_type in SpikeDevice.MOTORS:
            motor = self.motors.get(port)
            if motor is not None and len(values) > 1 and values[1] is not None:
                motor.position = values[1]
        elif device_type == SpikeDevice.DISTANCE:
            self.sensors["distance"] = values[0] if values and values[0] is not None else 0
        elif device_type == SpikeDevice.COLOR:
            if values and values[0] is not None:
                self.sensors["brightness"] = values[0]
        elif device_type == SpikeDevice.FORCE:
            if len(values) > 1:
                self.sensors["buttons"][port] = 1 if values[1] else 0

    def _register_device(self, port: int, device_type: int):
        self.ports[port] = device_type
        if device_type in SpikeDevice.MOTORS:
            self._register_motor(port, TimedMotor(
                self._motor_commands, port, device_type,
                coast_delay_ms=self.config.coast_delay_ms,
            ))
