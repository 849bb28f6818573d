# pyLegoHub/manager.py

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pyLegoHub.ble.utils import decode_payload
from pyLegoHub.config import SessionConfig
from pyLegoHub.events import PROJECT_STOP_ALL, EventSource
from pyLegoHub.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def resolved(value=None) -> asyncio.Future:
    """
    An already completed future, returned for sends that are skipped.
    """
    future = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class Manager:
    """
    Base class for one peripheral session (one hub).

    Owns the transport, the port registry (port -> device type), the motor
    handles and the latest sensor values. Outbound messages go through
    _send_payload(), which silently skips the write when the hub is not
    connected or the rate limiter says no. Inbound notifications arrive as
    base64 text in _on_message() and are dispatched by the subclass.
    """

    TRANSPORT_FILTERS: Dict[str, Any] = {}
    SENSOR_DEFAULTS: Dict[str, Any] = {}
    # Sensor keys reset when a device of that type leaves a port
    SENSOR_KEYS_BY_TYPE: Dict[int, tuple] = {}
    MOTOR_SLOTS: tuple = ()
    DEFAULT_CONFIG = SessionConfig()

    def __init__(self, runtime: EventSource, extension_id: str,
                 config: Optional[SessionConfig] = None,
                 transport_factory: Optional[Callable] = None):
        self._runtime = runtime
        self._extension_id = extension_id
        self.config = config or self.DEFAULT_CONFIG
        self._transport_factory = transport_factory or self._default_transport_factory()
        self._transport = None
        self._rate_limiter = RateLimiter(self.config.send_rate_max)
        self._timers = set()

        self.ports: Dict[int, int] = {}
        self.motors: Dict[int, Any] = {}
        self.sensors: Dict[str, Any] = copy.deepcopy(self.SENSOR_DEFAULTS)

        self._runtime.on(PROJECT_STOP_ALL, self.stop_all)

    @property
    def extension_id(self) -> str:
        return self._extension_id

    def _default_transport_factory(self) -> Callable:
        raise NotImplementedError

    # -- lifecycle -----------------------------------------------------------

    async def scan(self):
        """
        Creates a fresh transport and returns the hubs it can see. A session
        that is still connected is disconnected and reset first.
        """
        if self._transport is not None:
            await self.disconnect()
        self._transport = self._transport_factory(
            self.TRANSPORT_FILTERS,
            on_connect=self._on_connect,
            on_reset=self.reset,
            on_message=self._on_message,
        )
        return await self._transport.discover()

    async def connect(self, peripheral_id) -> bool:
        if self._transport is None:
            logger.warning("%s: connect(%s) called before scan()", self._extension_id, peripheral_id)
            return False
        connected = await self._transport.connect_peripheral(peripheral_id)
        if not connected:
            self.reset()
        return connected

    async def disconnect(self):
        self.reset()
        if self._transport is not None:
            await self._transport.disconnect()

    def is_connected(self) -> bool:
        if self._transport is None:
            return False
        return self._transport.is_connected()

    def reset(self):
        """
        Forgets every attached device: motors are disposed so none of their
        timers can fire later, sensors go back to their defaults.
        """
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        for motor in self.motors.values():
            if motor is not None:
                motor.dispose()
        self.ports = {}
        self.motors = {}
        self.sensors = copy.deepcopy(self.SENSOR_DEFAULTS)

    def close(self):
        """
        Detaches this session from the runtime.
        """
        self._runtime.off(PROJECT_STOP_ALL, self.stop_all)
        self.reset()

    async def _on_connect(self):
        pass

    # -- devices -------------------------------------------------------------

    def motor(self, index: int):
        """
        The motor at the given index, or None.
        """
        if index not in self.MOTOR_SLOTS:
            logger.warning("%s: invalid motor index %r", self._extension_id, index)
            return None
        return self.motors.get(index)

    def _register_motor(self, index: int, motor):
        previous = self.motors.get(index)
        if previous is not None:
            previous.dispose()
        self.motors[index] = motor

    def _clear_port(self, port: int):
        """
        Removes the device on a port: its motor handle is disposed and the
        sensor values it fed go back to their defaults.
        """
        device_type = self.ports.pop(port, None)
        for key in self.SENSOR_KEYS_BY_TYPE.get(device_type, ()):
            self.sensors[key] = copy.deepcopy(self.SENSOR_DEFAULTS[key])
        motor = self.motors.pop(port, None)
        if motor is not None:
            motor.dispose()

    def stop_all_motors(self):
        for motor in list(self.motors.values()):
            if motor is not None:
                # Bypass the rate limiter so the stop button always works.
                motor.turn_off(use_limiter=False)

    def stop_sound(self):
        pass

    def stop_all(self):
        """
        PROJECT_STOP_ALL handler: silences the hub and stops every motor.
        """
        if not self.is_connected():
            return
        self.stop_sound()
        self.stop_all_motors()

    # -- outbound ------------------------------------------------------------

    def _send_payload(self, write: Callable[[], Awaitable], use_limiter: bool = True) -> Awaitable:
        """
        Starts write() unless the hub is disconnected or rate limited.
        Always returns an awaitable; skipped writes resolve to None.
        """
        if not self._can_send(use_limiter):
            return resolved()
        return asyncio.ensure_future(self._guarded_write(write))

    def _can_send(self, use_limiter: bool = True) -> bool:
        if not self.is_connected():
            return False
        if use_limiter and not self._rate_limiter.okay_to_send():
            logger.debug("%s: rate limited, dropping message", self._extension_id)
            return False
        return True

    async def _guarded_write(self, write: Callable[[], Awaitable]):
        try:
            return await write()
        except Exception as e:
            logger.warning("%s: write failed: %s", self._extension_id, e)
            return None

    def _call_later(self, delay_ms: float, callback: Callable, *args):
        """
        Schedules a callback that reset() cancels.
        """
        def run():
            self._timers.discard(handle)
            callback(*args)

        handle = asyncio.get_running_loop().call_later(delay_ms / 1000.0, run)
        self._timers.add(handle)
        return handle

    # -- inbound -------------------------------------------------------------

    def _on_message(self, message):
        """
        Transport notification callback. Malformed notifications are logged
        and dropped; they never reach the caller.
        """
        try:
            data = decode_payload(message)
        except (ValueError, TypeError) as e:
            logger.warning("%s: undecodable notification %r: %s", self._extension_id, message, e)
            return
        try:
            self._handle_message(data)
        except Exception:
            logger.exception("%s: dropping notification %s", self._extension_id, data.hex())

    def _handle_message(self, data: bytes):
        raise NotImplementedError
