import asyncio
import unittest

from pyLegoHub.ble.utils import LWP3_CHARACTERISTIC_UUID
from pyLegoHub.events import PROJECT_STOP_ALL, EventSource
from pyLegoHub.hubs import DuploTrain, PoweredUp
from pyLegoHub.protocol import lwp3
from pyLegoHub.rate_limiter import RateLimiter

from fakes import FAST_CONFIG, FixedClock, TransportFactory, connect, drain


def attached(port, device_type):
    return bytes([0x0F, 0x00, 0x04, port, 0x01, device_type, 0, 0, 0, 0, 0, 0, 0, 0, 0])


def detached(port):
    return bytes([0x05, 0x00, 0x04, port, 0x00])


def port_value(port, *values):
    return bytes([4 + len(values), 0x00, 0x45, port] + list(values))


class PoweredUpSessionTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.runtime = EventSource()
        self.factory = TransportFactory()
        self.hub = PoweredUp(self.runtime, config=FAST_CONFIG, transport_factory=self.factory)
        await connect(self.hub)
        self.transport = self.factory.last

    async def asyncTearDown(self) -> None:
        self.hub.close()

    async def test_connect_subscribes_to_lwp3_characteristic(self) -> None:
        self.assertEqual(self.transport.subscriptions, [LWP3_CHARACTERISTIC_UUID])
        self.assertEqual(self.transport.writes, [])

    async def test_sensor_attach_sends_input_format_setup(self) -> None:
        self.transport.notify(attached(1, 34))
        await drain()
        self.assertEqual(self.transport.payloads(), [lwp3.input_format_setup(1, 0)])

    async def test_sensor_setup_bypasses_the_rate_limiter(self) -> None:
        self.hub._rate_limiter = RateLimiter(0, clock=FixedClock())
        self.transport.notify(attached(0, 35))
        await drain()
        self.assertEqual(self.transport.payloads(), [lwp3.input_format_setup(0, 0)])

    async def test_rescan_forgets_attached_devices(self) -> None:
        self.transport.notify(attached(0, 35))
        self.transport.notify(attached(1, 1))
        self.transport.notify(port_value(0, 9))

        await connect(self.hub)
        self.assertEqual(self.hub.ports, {})
        self.assertIsNone(self.hub.motor(1))
        self.assertEqual(self.hub.distance, 0)

    async def test_port_values_update_sensors(self) -> None:
        self.transport.notify(attached(0, 35))
        self.transport.notify(attached(1, 34))
        self.transport.notify(port_value(0, 9))
        self.transport.notify(port_value(1, 20, 236))

        self.assertEqual(self.hub.distance, 9)
        self.assertEqual((self.hub.tilt_x, self.hub.tilt_y), (20, 236))

        self.transport.notify(detached(1))
        self.assertEqual((self.hub.tilt_x, self.hub.tilt_y), (0, 0))
        self.assertEqual(self.hub.distance, 9)

    async def test_values_for_unknown_ports_are_ignored(self) -> None:
        self.transport.notify(port_value(3, 50))
        self.assertEqual(self.hub.distance, 0)

    async def test_outputs_get_motor_handles(self) -> None:
        self.transport.notify(attached(0, 1))
        self.transport.notify(attached(1, 8))
        self.assertIsNotNone(self.hub.motor(0))
        self.assertIsNotNone(self.hub.motor(1))

        self.hub.motor(1).power = 40
        self.hub.motor(1).turn_on()
        await drain()
        self.assertEqual(self.transport.payloads(), [lwp3.motor_power(1, 40)])

    async def test_led_and_tone_use_lwp3_connect_ids(self) -> None:
        await self.hub.set_led(0xFF0000)
        await self.hub.play_tone(440, 1000)
        self.assertEqual(self.transport.payloads(), [
            bytes([6, 4, 3, 255, 0, 0]),
            bytes([5, 2, 4, 0xB8, 0x01, 0xE8, 0x03]),
        ])

    async def test_stop_all(self) -> None:
        self.transport.notify(attached(0, 1))
        self.runtime.emit(PROJECT_STOP_ALL)
        await drain()
        self.assertEqual(self.transport.payloads(), [bytes([5, 3]), lwp3.motor_off(0)])

    async def test_unknown_message_types_are_ignored(self) -> None:
        self.transport.notify(bytes([0x06, 0x00, 0x01, 0x02, 0x06, 0x00]))
        self.assertEqual(self.hub.ports, {})


class DuploTrainSessionTests(unittest.IsolatedAsyncioTestCase):
    COLOR_PORT = 0x12

    async def asyncSetUp(self) -> None:
        self.runtime = EventSource()
        self.factory = TransportFactory()
        self.hub = DuploTrain(self.runtime, config=FAST_CONFIG, transport_factory=self.factory)
        await connect(self.hub)
        self.transport = self.factory.last

    async def asyncTearDown(self) -> None:
        self.hub.close()

    async def test_color_defaults_to_unknown(self) -> None:
        self.assertEqual(self.hub.color, -1)

    async def test_color_sensor_mode_is_set_after_a_delay(self) -> None:
        self.transport.notify(attached(self.COLOR_PORT, 0x2b))
        await drain()
        self.assertEqual(self.transport.writes, [])

        await asyncio.sleep(FAST_CONFIG.sensor_setup_delay_ms / 1000.0 * 3)
        await drain()
        self.assertEqual(self.transport.payloads(), [lwp3.input_format_setup(self.COLOR_PORT, 0)])

    async def test_color_values_and_detach(self) -> None:
        self.transport.notify(attached(self.COLOR_PORT, 0x2b))
        self.transport.notify(port_value(self.COLOR_PORT, 9))
        self.assertEqual(self.hub.color, 9)

        self.transport.notify(detached(self.COLOR_PORT))
        self.assertEqual(self.hub.color, -1)

    async def test_reset_cancels_delayed_sensor_setup(self) -> None:
        self.transport.notify(attached(self.COLOR_PORT, 0x2b))
        self.transport.drop()
        await connect(self.hub)
        fresh = self.factory.last

        await asyncio.sleep(FAST_CONFIG.sensor_setup_delay_ms / 1000.0 * 3)
        await drain()
        self.assertEqual(fresh.writes, [])
        self.assertEqual(self.transport.writes, [])

    async def test_delayed_sensor_setup_bypasses_the_rate_limiter(self) -> None:
        self.hub._rate_limiter = RateLimiter(0, clock=FixedClock())
        self.transport.notify(attached(self.COLOR_PORT, 0x2b))

        await asyncio.sleep(FAST_CONFIG.sensor_setup_delay_ms / 1000.0 * 3)
        await drain()
        self.assertEqual(self.transport.payloads(), [lwp3.input_format_setup(self.COLOR_PORT, 0)])

    async def test_rescan_cancels_delayed_sensor_setup(self) -> None:
        self.transport.notify(attached(self.COLOR_PORT, 0x2b))
        await connect(self.hub)
        fresh = self.factory.last

        await asyncio.sleep(FAST_CONFIG.sensor_setup_delay_ms / 1000.0 * 3)
        await drain()
        self.assertEqual(fresh.writes, [])
        self.assertEqual(self.transport.writes, [])

    async def test_led_accepts_names_and_numbers(self) -> None:
        await self.hub.set_led("red")
        await self.hub.set_led(3)
        self.assertEqual(self.transport.payloads(), [
            lwp3.write_direct(0x11, 0x00, 9),
            lwp3.write_direct(0x11, 0x00, 3),
        ])

    async def test_play_sound(self) -> None:
        await self.hub.play_sound("horn")
        self.assertEqual(self.transport.payloads(), [bytes([8, 0, 0x81, 1, 0x11, 0x51, 1, 9])])

    async def test_unknown_sound_is_logged(self) -> None:
        with self.assertLogs("pyLegoHub.hubs.duplo_train", level="WARNING"):
            await self.hub.play_sound("whistle")

    async def test_motor_and_stop_all(self) -> None:
        self.transport.notify(attached(0x00, 0x29))
        motor = self.hub.motor(0)
        self.assertIsNotNone(motor)

        motor.turn_on()
        self.runtime.emit(PROJECT_STOP_ALL)
        await drain()
        self.assertEqual(self.transport.payloads(), [lwp3.motor_power(0, 100), lwp3.motor_off(0)])


if __name__ == "__main__":
    unittest.main()
