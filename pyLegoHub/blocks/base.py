# pyLegoHub/blocks/base.py

import asyncio
import logging
from typing import Iterable, List

from .cast import clamp, to_number, wrap_clamp

logger = logging.getLogger(__name__)


class MotorID:
    A = "port A"
    B = "port B"
    ALL = "all ports"


class MotorDirection:
    FORWARD = "this way"
    BACKWARD = "that way"
    REVERSE = "reverse"


class TiltDirection:
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ANY = "any"


class BlockAdapter:
    """
    Turns block arguments into calls on one hub session.

    Commands the hub never acknowledges still take a minimum visible time
    (the session's send interval), or the requested duration, whether or
    not a hub is connected.
    """

    MAX_MOTOR_DURATION_MS = 15000

    def __init__(self, session):
        self.session = session

    @property
    def send_interval(self) -> float:
        return self.session.config.send_interval_ms / 1000.0

    async def _pace(self, milliseconds=None):
        if milliseconds is None:
            await asyncio.sleep(self.send_interval)
        else:
            await asyncio.sleep(max(0, milliseconds) / 1000.0)

    def _duration_ms(self, seconds, max_ms) -> float:
        return clamp(to_number(seconds) * 1000, 0, max_ms)

    def _motor_indexes(self, motor_id) -> List[int]:
        raise NotImplementedError

    def _motors(self, motor_id) -> Iterable:
        for index in self._motor_indexes(motor_id):
            motor = self.session.motor(index)
            if motor is not None:
                yield motor


class MotorBlocks(BlockAdapter):
    """
    Motor blocks for the hubs that drive their motors directly (WeDo 2.0,
    PoweredUp, Duplo Train).
    """

    MOTOR_INDEXES = {
        MotorID.A: [0],
        MotorID.B: [1],
        MotorID.ALL: [0, 1],
    }

    def _motor_indexes(self, motor_id) -> List[int]:
        indexes = self.MOTOR_INDEXES.get(motor_id)
        if indexes is None:
            logger.warning("Invalid motor ID: %r", motor_id)
            return []
        return indexes

    async def motor_on_for(self, motor_id, duration):
        milliseconds = self._duration_ms(duration, self.MAX_MOTOR_DURATION_MS)
        for motor in self._motors(motor_id):
            motor.turn_on_for(milliseconds)
        await self._pace(milliseconds)

    async def start_motor_power_for(self, motor_id, power, duration):
        milliseconds = self._duration_ms(duration, self.MAX_MOTOR_DURATION_MS)
        for motor in self._motors(motor_id):
            motor.power = clamp(to_number(power), -100, 100)
            motor.turn_on_for(milliseconds)
        await self._pace(milliseconds)

    async def motor_on(self, motor_id):
        for motor in self._motors(motor_id):
            motor.turn_on()
        await self._pace()

    async def motor_off(self, motor_id):
        for motor in self._motors(motor_id):
            motor.turn_off()
        await self._pace()

    async def start_motor_power(self, motor_id, power):
        for motor in self._motors(motor_id):
            motor.power = clamp(to_number(power), -100, 100)
            motor.turn_on()
        await self._pace()

    async def set_motor_direction(self, motor_id, direction):
        for motor in self._motors(motor_id):
            if direction == MotorDirection.FORWARD:
                motor.set_direction(1)
            elif direction == MotorDirection.BACKWARD:
                motor.set_direction(-1)
            elif direction == MotorDirection.REVERSE:
                motor.reverse()
            else:
                logger.warning("Unknown motor direction in set_motor_direction: %r", direction)
        await self._pace()


class TiltBlocks:
    """
    Tilt and distance reporters shared by WeDo 2.0 and PoweredUp.
    """

    TILT_THRESHOLD = 15

    def when_distance(self, op, reference) -> bool:
        if op in ("<", "&lt;"):
            return self.session.distance < to_number(reference)
        if op in (">", "&gt;"):
            return self.session.distance > to_number(reference)
        logger.warning("Unknown comparison operator in when_distance: %r", op)
        return False

    def get_distance(self):
        return self.session.distance

    def is_tilted(self, direction) -> bool:
        if direction == TiltDirection.ANY:
            return abs(self.session.tilt_x) >= self.TILT_THRESHOLD or \
                abs(self.session.tilt_y) >= self.TILT_THRESHOLD
        angle = self.get_tilt_angle(direction)
        return angle is not None and angle >= self.TILT_THRESHOLD

    when_tilted = is_tilted

    def get_tilt_angle(self, direction):
        """
        Angle towards the given direction. Raw values above 45 are negative
        angles stored in one byte.
        """
        tilt_x = self.session.tilt_x
        tilt_y = self.session.tilt_y
        if direction == TiltDirection.UP:
            return 256 - tilt_y if tilt_y > 45 else -tilt_y
        if direction == TiltDirection.DOWN:
            return tilt_y - 256 if tilt_y > 45 else tilt_y
        if direction == TiltDirection.LEFT:
            return 256 - tilt_x if tilt_x > 45 else -tilt_x
        if direction == TiltDirection.RIGHT:
            return tilt_x - 256 if tilt_x > 45 else tilt_x
        logger.warning("Unknown tilt direction in get_tilt_angle: %r", direction)
        return None


class TimedMotorBlocks(BlockAdapter):
    """
    Motor, button and distance blocks for the hubs that run timed motor
    commands themselves (EV3, SPIKE Prime).
    """

    def _motor_indexes(self, port) -> List[int]:
        index = self._port_index(port)
        if index is None or index not in self.session.MOTOR_SLOTS:
            logger.warning("Invalid motor ID: %r", port)
            return []
        return [index]

    def _port_index(self, port):
        number = to_number(port)
        if isinstance(number, float) and not number.is_integer():
            return None
        return int(number)

    async def _turn_for(self, port, time, direction):
        milliseconds = self._duration_ms(time, self.MAX_MOTOR_DURATION_MS)
        for motor in self._motors(port):
            motor.direction = direction
            motor.turn_on_for(milliseconds)
        # Run for some time even when no motor is connected
        await self._pace(milliseconds)

    async def motor_turn_clockwise(self, port, time):
        await self._turn_for(port, time, 1)

    async def motor_turn_counter_clockwise(self, port, time):
        await self._turn_for(port, time, -1)

    def motor_set_power(self, port, power):
        for motor in self._motors(port):
            motor.power = clamp(to_number(power), 0, 100)

    def get_motor_position(self, port):
        index = self._port_index(port)
        if index is None or index not in self.session.MOTOR_SLOTS:
            return None
        motor = self.session.motor(index)
        if motor is None:
            return 0
        return wrap_clamp(motor.position, 0, 360)

    def button_pressed(self, port) -> bool:
        index = self._port_index(port)
        if index is None:
            return False
        return self.session.is_button_pressed(index)

    when_button_pressed = button_pressed

    def when_distance_less_than(self, distance) -> bool:
        return self.session.distance < clamp(to_number(distance), 0, 100)

    def when_brightness_less_than(self, brightness) -> bool:
        return self.session.brightness < clamp(to_number(brightness), 0, 100)

    def get_distance(self):
        return self.session.distance

    def get_brightness(self):
        return self.session.brightness
