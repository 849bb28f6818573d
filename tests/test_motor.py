import asyncio
import unittest

from pyLegoHub.devices.motor import Motor, MotorCommands, TimedMotor, TimedMotorCommands
from pyLegoHub.protocol import ev3, wedo2
from pyLegoHub.timers import DeferredAction


class RecordingSend:
    def __init__(self):
        self.sent = []

    def __call__(self, payload, use_limiter=True):
        self.sent.append((payload, use_limiter))


def wedo2_motor(send, brake_time_ms=1000):
    commands = MotorCommands(send, wedo2.motor_power, wedo2.motor_brake, wedo2.motor_off)
    return Motor(commands, 0, connect_id=1, brake_time_ms=brake_time_ms)


def ev3_motor(send, coast_delay_ms=1000):
    commands = TimedMotorCommands(send, ev3.run_for, ev3.coast)
    return TimedMotor(commands, 0, ev3.Ev3Device.LARGE_MOTOR, coast_delay_ms=coast_delay_ms)


BRAKE = wedo2.motor_brake(1)
OFF = wedo2.motor_off(1)


class DeferredActionTests(unittest.IsolatedAsyncioTestCase):
    async def test_schedule_replaces_previous_callback(self) -> None:
        action = DeferredAction()
        fired = []
        action.schedule(lambda: fired.append("first"), 10)
        action.schedule(lambda: fired.append("second"), 20)
        await asyncio.sleep(0.05)
        self.assertEqual(fired, ["second"])
        self.assertFalse(action.pending)

    async def test_cancel_bumps_token(self) -> None:
        action = DeferredAction()
        fired = []
        token = action.schedule(lambda: fired.append(True), 10)
        action.cancel()
        self.assertGreater(action.token, token)
        await asyncio.sleep(0.03)
        self.assertEqual(fired, [])

    async def test_remaining_time(self) -> None:
        action = DeferredAction()
        action.schedule(lambda: None, 1000)
        await asyncio.sleep(0.05)
        self.assertLess(action.remaining_ms(), 1000)
        self.assertGreater(action.remaining_ms(), 800)
        action.cancel()
        self.assertEqual(action.remaining_ms(), 0.0)


class MotorTests(unittest.IsolatedAsyncioTestCase):
    async def test_power_is_clamped_before_sending(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.power = 150
        motor.turn_on()
        motor.power = -150
        motor.turn_on()
        self.assertEqual([payload for payload, _ in send.sent],
                         [wedo2.motor_power(1, 100), wedo2.motor_power(1, -100)])
        motor.dispose()

    async def test_drive_power_includes_direction(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.power = 40
        motor.direction = -1
        motor.turn_on()
        self.assertEqual(send.sent[-1][0], wedo2.motor_power(1, -40))
        motor.dispose()

    async def test_timed_run_brakes_then_turns_off(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send, brake_time_ms=60)
        motor.turn_on_for(20)
        self.assertTrue(motor.is_on)

        await asyncio.sleep(0.04)
        self.assertFalse(motor.is_on)
        self.assertEqual(send.sent[-1][0], BRAKE)

        await asyncio.sleep(0.08)
        self.assertEqual(send.sent[-1][0], OFF)
        self.assertFalse(motor.has_pending_action)

    async def test_second_timed_run_supersedes_the_first(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.turn_on_for(30)
        motor.turn_on_for(120)

        await asyncio.sleep(0.07)
        self.assertTrue(motor.is_on)
        self.assertNotIn(BRAKE, [payload for payload, _ in send.sent])

        await asyncio.sleep(0.1)
        self.assertEqual([payload for payload, _ in send.sent].count(BRAKE), 1)
        motor.dispose()

    async def test_shorter_second_run_brakes_early_and_once(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.turn_on_for(150)
        motor.turn_on_for(20)

        await asyncio.sleep(0.05)
        self.assertEqual([payload for payload, _ in send.sent].count(BRAKE), 1)
        await asyncio.sleep(0.15)
        self.assertEqual([payload for payload, _ in send.sent].count(BRAKE), 1)
        motor.dispose()

    async def test_turn_off_cancels_pending_brake(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.turn_on_for(20)
        motor.turn_off(use_limiter=False)
        self.assertEqual(send.sent[-1], (OFF, False))

        await asyncio.sleep(0.04)
        self.assertNotIn(BRAKE, [payload for payload, _ in send.sent])

    async def test_direction_change_keeps_end_time(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.turn_on_for(200)
        await asyncio.sleep(0.05)

        motor.set_direction(-1)
        self.assertEqual(send.sent[-1][0], wedo2.motor_power(1, -100))
        self.assertTrue(motor.has_pending_action)
        self.assertLess(motor.pending_timeout_delay, 200)
        self.assertGreater(motor.pending_timeout_delay, 100)
        motor.dispose()

    async def test_direction_change_on_running_motor_without_timer(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.turn_on()
        motor.reverse()
        self.assertEqual(send.sent[-1][0], wedo2.motor_power(1, -100))
        self.assertFalse(motor.has_pending_action)

    async def test_direction_change_on_stopped_motor_sends_nothing(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send)
        motor.set_direction(-1)
        self.assertEqual(send.sent, [])
        self.assertEqual(motor.direction, -1)

    async def test_dispose_cancels_brake_settle(self) -> None:
        send = RecordingSend()
        motor = wedo2_motor(send, brake_time_ms=20)
        motor.start_braking()
        motor.dispose()
        await asyncio.sleep(0.04)
        self.assertEqual([payload for payload, _ in send.sent], [BRAKE])


class TimedMotorTests(unittest.IsolatedAsyncioTestCase):
    async def test_negative_duration_matches_flipped_direction(self) -> None:
        forward = RecordingSend()
        motor = ev3_motor(forward)
        motor.turn_on_for(-500)

        backward = RecordingSend()
        flipped = ev3_motor(backward)
        flipped.direction = -1
        flipped.turn_on_for(500)

        self.assertEqual(forward.sent[0][0], backward.sent[0][0])
        motor.dispose()
        flipped.dispose()

    async def test_power_range_and_default(self) -> None:
        motor = ev3_motor(RecordingSend())
        self.assertEqual(motor.power, 50)
        motor.power = -20
        self.assertEqual(motor.power, 0)
        motor.power = 150
        self.assertEqual(motor.power, 100)

    async def test_coasts_after_run_and_delay(self) -> None:
        send = RecordingSend()
        motor = ev3_motor(send, coast_delay_ms=20)
        motor.turn_on_for(20)
        self.assertTrue(motor.is_on)

        await asyncio.sleep(0.07)
        self.assertFalse(motor.is_on)
        self.assertEqual(send.sent[-1], (ev3.coast(0), False))

    async def test_newer_run_suppresses_stale_coast(self) -> None:
        send = RecordingSend()
        motor = ev3_motor(send, coast_delay_ms=30)
        motor.turn_on_for(10)
        await asyncio.sleep(0.01)
        motor.turn_on_for(100)

        await asyncio.sleep(0.03)
        self.assertNotIn(ev3.coast(0), [payload for payload, _ in send.sent])
        self.assertTrue(motor.is_on)
        motor.dispose()

    async def test_zero_power_sends_nothing(self) -> None:
        send = RecordingSend()
        motor = ev3_motor(send)
        motor.power = 0
        motor.turn_on_for(100)
        motor.coast()
        self.assertEqual(send.sent, [])


if __name__ == "__main__":
    unittest.main()
