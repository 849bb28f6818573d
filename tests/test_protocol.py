import unittest

from pyLegoHub.protocol import ev3, lwp3, spike, wedo2


class WeDo2FrameTests(unittest.TestCase):
    def test_motor_frames(self) -> None:
        self.assertEqual(wedo2.motor_power(1, 50), bytes([1, 1, 1, 50]))
        self.assertEqual(wedo2.motor_power(2, -50), bytes([2, 1, 1, 206]))
        self.assertEqual(wedo2.motor_brake(1), bytes([1, 1, 1, 0x7F]))
        self.assertEqual(wedo2.motor_off(1), bytes([1, 1, 1, 0x00]))

    def test_led_and_tone_frames(self) -> None:
        self.assertEqual(wedo2.write_rgb(0x0000FF), bytes([6, 4, 3, 0, 0, 255]))
        self.assertEqual(wedo2.write_rgb(0x123456), bytes([6, 4, 3, 0x12, 0x34, 0x56]))
        self.assertEqual(wedo2.play_tone(440, 1000), bytes([5, 2, 4, 0xB8, 0x01, 0xE8, 0x03]))
        self.assertEqual(wedo2.stop_tone(), bytes([5, 3]))

    def test_input_command(self) -> None:
        frame = wedo2.input_command(1, wedo2.WeDo2Device.DISTANCE, 0, delta=1, unit=1)
        self.assertEqual(frame, bytes([1, 2, 1, 35, 0, 1, 0, 0, 0, 1, 1]))
        led_mode = wedo2.input_command(6, 23, 1, delta=0, unit=0, notifications=False)
        self.assertEqual(led_mode, bytes([1, 2, 6, 23, 1, 0, 0, 0, 0, 0, 0]))

    def test_attached_io_discriminator(self) -> None:
        self.assertEqual(wedo2.parse_attached_io(bytes([1, 1, 0, 35])), (1, True, 35))
        self.assertEqual(wedo2.parse_attached_io(bytes([2, 0])), (2, False, None))
        self.assertIsNone(wedo2.parse_attached_io(bytes([0, 2, 42])))
        self.assertEqual(wedo2.parse_sensor_value(bytes([0, 2, 42])), (2, bytes([42])))
        self.assertIsNone(wedo2.parse_sensor_value(bytes([0, 2])))


class Lwp3FrameTests(unittest.TestCase):
    def test_write_direct(self) -> None:
        self.assertEqual(lwp3.write_direct(0x11, 0x00, 3),
                         bytes([0x08, 0x00, 0x81, 0x11, 0x11, 0x51, 0x00, 0x03]))
        self.assertEqual(lwp3.motor_power(0, -100),
                         bytes([0x08, 0x00, 0x81, 0x00, 0x11, 0x51, 0x00, 0x9C]))
        self.assertEqual(lwp3.motor_brake(1)[-1], 0x7F)
        self.assertEqual(lwp3.motor_off(1)[-1], 0x00)

    def test_input_format_setup(self) -> None:
        self.assertEqual(lwp3.input_format_setup(1, 0),
                         bytes([0x0A, 0x00, 0x41, 0x01, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01]))

    def test_decoders(self) -> None:
        attach = bytes([0x0F, 0x00, 0x04, 0x01, 0x01, 0x22, 0x00, 0, 0, 0, 0, 0, 0, 0, 0])
        self.assertEqual(lwp3.parse_attached_io(attach), (1, True, 0x22))
        self.assertEqual(lwp3.parse_attached_io(bytes([5, 0, 4, 1, 0])), (1, False, None))
        self.assertIsNone(lwp3.parse_attached_io(bytes([5, 0, 0x45, 1, 0])))
        self.assertEqual(lwp3.parse_port_value(bytes([5, 0, 0x45, 0, 7])), (0, bytes([7])))
        self.assertIsNone(lwp3.message_type(bytes([1, 0])))


class Ev3CommandTests(unittest.TestCase):
    def test_header(self) -> None:
        command = ev3.generate_command(ev3.Ev3Command.DIRECT_COMMAND_NO_REPLY, ev3.stop_sound())
        self.assertEqual(command, bytes([7, 0, 0, 0, 0x80, 0, 0, 0x94, 0]))

    def test_header_allocation_high_byte(self) -> None:
        command = ev3.generate_command(0x00, [], allocation=0x0120)
        self.assertEqual(command[5:7], bytes([0x20, 0x01]))

    def test_device_list(self) -> None:
        self.assertEqual(ev3.device_list(), bytes([
            11, 0, 0, 0, 0x00, 33, 0,
            0x98, 0x81, 32, 0x60, 0xE1, 0x20,
        ]))

    def test_time_speed(self) -> None:
        self.assertEqual(ev3.time_speed(0, 50, 1000), [
            0xAF, 0, 1, 0x81, 50, 0x81, 50, 0x82, 0x84, 0x03, 0x81, 50, 1,
        ])

    def test_time_speed_short_run_splits_ramps(self) -> None:
        self.assertEqual(ev3.time_speed(1, 100, 60), [
            0xAF, 0, 2, 0x81, 100, 0x81, 30, 0x82, 0, 0, 0x81, 30, 1,
        ])

    def test_negative_duration_matches_reversed_speed(self) -> None:
        self.assertEqual(ev3.time_speed(2, 50, -500), ev3.time_speed(2, -50, 500))
        self.assertEqual(ev3.time_speed(2, -50, 500)[4], 0x100 - 50)

    def test_run_values_switch_to_four_bytes(self) -> None:
        self.assertEqual(ev3.run_values(0x7FFE), [0x82, 0xFE, 0x7F])
        self.assertEqual(ev3.run_values(0x7FFF), [0x83, 0xFF, 0x7F, 0x00, 0x00])

    def test_tone(self) -> None:
        self.assertEqual(ev3.tone(440, 250), [0x94, 1, 0x81, 2, 0x82, 0xB8, 0x01, 0x82, 0xFA, 0x00])

    def test_read_values(self) -> None:
        command = ev3.read_values({0: 0}, [1])
        self.assertEqual(command, bytes([
            17, 0, 0, 0, 0x00, 32, 0,
            0x9D, 0, 0, 0, 0, 0xE1, 0,
            0xB3, 0, 1, 0xE1, 20,
        ]))
        self.assertIsNone(ev3.read_values({}, []))

    def test_reply_reader_reassembles_split_replies(self) -> None:
        reader = ev3.ReplyReader()
        self.assertEqual(reader.feed(bytes([3, 0, 0, 0])), [])
        self.assertEqual(reader.feed(bytes([2, 4, 0])), [bytes([3, 0, 0, 0, 2])])
        self.assertEqual(reader.feed(bytes([0, 0, 2, 9])), [bytes([4, 0, 0, 0, 2, 9])])

    def test_parse_reply(self) -> None:
        self.assertEqual(ev3.parse_reply(bytes([4, 0, 0, 0, 2, 9])), bytes([9]))
        self.assertIsNone(ev3.parse_reply(bytes([4, 0, 0, 0, 4, 9])))


class SpikeMessageTests(unittest.TestCase):
    def test_encode_message(self) -> None:
        self.assertEqual(spike.encode_message("scratch.display_clear", {}, "ab12"),
                         b'{"i":"ab12","m":"scratch.display_clear","p":{}}\r')
        self.assertEqual(spike.encode_message("trigger_current_state", {}),
                         b'{"m":"trigger_current_state","p":{}}\r')

    def test_decode_skips_malformed_chunks(self) -> None:
        messages = spike.decode_messages('{"m":2,"p":[8.3,100]}\rnot json\r[1]\r{"i":"x","r":null}')
        self.assertEqual(messages, [{"m": 2, "p": [8.3, 100]}, {"i": "x", "r": None}])

    def test_reader_holds_incomplete_tail(self) -> None:
        reader = spike.MessageReader()
        self.assertEqual(reader.feed('{"i":"a","r":1}\r{"i":"b"'), [{"i": "a", "r": 1}])
        self.assertEqual(reader.feed(',"r":2}\r'), [{"i": "b", "r": 2}])

    def test_reader_accepts_unterminated_complete_message(self) -> None:
        reader = spike.MessageReader()
        self.assertEqual(reader.feed('{"i":"a","r":1}'), [{"i": "a", "r": 1}])

    def test_request_ids_are_unique(self) -> None:
        in_use = set()
        for _ in range(50):
            request_id = spike.new_request_id(in_use)
            self.assertEqual(len(request_id), 4)
            self.assertNotIn(request_id, in_use)
            in_use.add(request_id)

    def test_display_image(self) -> None:
        self.assertEqual(spike.display_image("1010101010101010101010101", 9),
                         "90909:09090:90909:09090:90909")
        self.assertEqual(spike.display_image("11", 5), "55000:00000:00000:00000:00000")

    def test_brightness_level_rounds_half_up(self) -> None:
        self.assertEqual(spike.brightness_level(50), 5)
        self.assertEqual(spike.brightness_level(100), 9)
        self.assertEqual(spike.brightness_level(0), 0)

    def test_port_index(self) -> None:
        self.assertEqual(spike.port_index("c"), 2)
        self.assertEqual(spike.port_index(5), 5)
        self.assertIsNone(spike.port_index("G"))
        self.assertIsNone(spike.port_index(6))

    def test_motor_run_timed(self) -> None:
        method, params = spike.motor_run_timed(0, 50, -500)
        self.assertEqual(method, "scratch.motor_run_timed")
        self.assertEqual(params, {"port": "A", "speed": -50, "time": 500, "stall": True, "stop": 1})


if __name__ == "__main__":
    unittest.main()
