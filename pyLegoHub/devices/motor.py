# pyLegoHub/devices/motor.py

from typing import Awaitable, Callable, Optional

from pyLegoHub.timers import DeferredAction


# send(payload, use_limiter=True) -> awaitable, provided by the owning session
SendFunc = Callable[..., Awaitable]


class MotorCommands:
    """
    Encoder strategy for Motor: turns (connect_id, power) into frames for one
    hub family and hands them to the session's send pipeline.
    """

    def __init__(self, send: SendFunc, encode_on, encode_brake, encode_off):
        self._send = send
        self._encode_on = encode_on
        self._encode_brake = encode_brake
        self._encode_off = encode_off

    def on(self, connect_id: int, power: int):
        return self._send(self._encode_on(connect_id, power))

    def brake(self, connect_id: int):
        return self._send(self._encode_brake(connect_id))

    def off(self, connect_id: int, use_limiter: bool = True):
        return self._send(self._encode_off(connect_id), use_limiter)


class TimedMotorCommands:
    """
    Encoder strategy for TimedMotor: a timed run executed by the hub and a
    coast (float) command.
    """

    def __init__(self, send: SendFunc, encode_run_for, encode_coast):
        self._send = send
        self._encode_run_for = encode_run_for
        self._encode_coast = encode_coast

    def run_for(self, index: int, speed: int, milliseconds: int):
        return self._send(self._encode_run_for(index, speed, milliseconds))

    def coast(self, index: int):
        # Never rate limited, the motor has to stop.
        return self._send(self._encode_coast(index), False)


class _BaseMotor:
    MIN_POWER = -100
    MAX_POWER = 100
    DEFAULT_POWER = 100

    def __init__(self, index: int):
        self._index = index
        self._direction = 1
        self._power = self.DEFAULT_POWER
        self._is_on = False
        self._pending = DeferredAction()

    @property
    def index(self) -> int:
        return self._index

    @property
    def direction(self) -> int:
        """
        1 for "this way", -1 for "that way".
        """
        return self._direction

    @direction.setter
    def direction(self, value):
        self._direction = -1 if value < 0 else 1

    @property
    def power(self) -> int:
        return self._power

    @power.setter
    def power(self, value):
        self._power = max(self.MIN_POWER, min(int(value), self.MAX_POWER))

    @property
    def is_on(self) -> bool:
        """
        True while the motor is driven; False when off, braking or coasting.
        """
        return self._is_on

    @property
    def has_pending_action(self) -> bool:
        return self._pending.pending

    def dispose(self):
        """
        Cancels any deferred action; called when the motor is discarded.
        """
        self._pending.cancel()
        self._is_on = False


class Motor(_BaseMotor):
    """
    Power, direction and timers for one WeDo 2.0, PoweredUp or Duplo Train
    motor.

    States: off, on (indefinitely or for a duration) and braking. A timed run
    ends with active braking, followed by the motor being switched off once
    the brake has settled.
    """

    BRAKE_TIME_MS = 1000

    def __init__(self, commands: MotorCommands, index: int, connect_id: Optional[int] = None,
                 brake_time_ms: int = BRAKE_TIME_MS):
        super().__init__(index)
        self._commands = commands
        self._connect_id = index if connect_id is None else connect_id
        self._brake_time_ms = brake_time_ms

    @property
    def connect_id(self) -> int:
        return self._connect_id

    @property
    def pending_timeout_start_time(self) -> Optional[float]:
        return self._pending.start_time

    @property
    def pending_timeout_delay(self) -> Optional[float]:
        return self._pending.delay_ms

    def turn_on(self):
        """
        Turns this motor on indefinitely.
        """
        self._commands.on(self._connect_id, self._power * self._direction)
        self._is_on = True
        self._pending.cancel()

    def turn_on_for(self, milliseconds: float):
        """
        Turns this motor on, then starts braking after the given time.
        """
        milliseconds = max(0, milliseconds)
        self.turn_on()
        self._pending.schedule(self.start_braking, milliseconds)

    def start_braking(self):
        """
        Actively brakes; the motor is switched off once the brake has settled.
        """
        self._commands.brake(self._connect_id)
        self._is_on = False
        self._pending.schedule(self.turn_off, self._brake_time_ms)

    def turn_off(self, use_limiter: bool = True):
        self._commands.off(self._connect_id, use_limiter)
        self._is_on = False
        self._pending.cancel()

    def set_direction(self, value: int):
        """
        Changes direction. A running motor keeps running; a timed run keeps
        its original end time.
        """
        self.direction = value
        if not self._is_on:
            return
        if self._pending.pending and self._pending.delay_ms:
            self.turn_on_for(self._pending.remaining_ms())
        else:
            self.turn_on()

    def reverse(self):
        self.set_direction(-self._direction)


class TimedMotor(_BaseMotor):
    """
    EV3 / SPIKE motor. The hub executes a timed run (with ramps and a brake)
    itself; afterwards the motor is released to coast unless a newer command
    superseded the run.
    """

    MIN_POWER = 0
    DEFAULT_POWER = 50
    COAST_DELAY_MS = 1000

    def __init__(self, commands: TimedMotorCommands, index: int, device_type: Optional[int] = None,
                 coast_delay_ms: int = COAST_DELAY_MS):
        super().__init__(index)
        self._commands = commands
        self._coast_delay_ms = coast_delay_ms
        self.device_type = device_type
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, value: int):
        self._position = int(value)

    def turn_on_for(self, milliseconds: float):
        if self._power == 0:
            return
        self._commands.run_for(self._index, self._power * self._direction, int(milliseconds))
        self._is_on = True
        self.coast_after(milliseconds)

    def coast_after(self, milliseconds: float):
        """
        Coasts once the run and its brake are over, unless another command
        comes first.
        """
        if self._power == 0:
            return
        self._pending.schedule(self._finish_run, abs(milliseconds) + self._coast_delay_ms)

    def _finish_run(self):
        self.coast()

    def coast(self):
        self._pending.cancel()
        self._is_on = False
        if self._power == 0:
            return
        self._commands.coast(self._index)

    def turn_off(self, use_limiter: bool = True):
        self.coast()
