# pyLegoHub/blocks/spike.py

import logging

from pyLegoHub.protocol import spike

from .base import TimedMotorBlocks
from .cast import clamp, to_number, to_string

logger = logging.getLogger(__name__)

MAX_BEEP_DURATION_MS = 3000
MAX_IMAGE_DURATION_MS = 60000
ANGLE_AXES = ("pitch", "roll", "yaw")


class SpikeBlocks(TimedMotorBlocks):
    """
    SPIKE Prime blocks. Ports are given as letters ("A".."F") or indexes.
    Light matrix blocks wait for the hub to acknowledge the request.
    """

    def _port_index(self, port):
        if isinstance(port, str):
            return spike.port_index(port)
        return super()._port_index(port)

    async def display_image_for(self, matrix, duration):
        milliseconds = self._duration_ms(duration, MAX_IMAGE_DURATION_MS)
        await self.session.display_image_for(to_string(matrix), milliseconds)

    async def display_image(self, matrix):
        await self.session.display_image(to_string(matrix))

    async def display_text(self, text):
        await self.session.display_text(to_string(text))

    async def display_clear(self):
        await self.session.display_clear()

    def display_set_brightness(self, brightness):
        self.session.pixel_brightness = clamp(to_number(brightness), 0, 100)

    async def display_set_pixel(self, x, y, brightness):
        x = to_number(x)
        y = to_number(y)
        if not (1 <= x <= 5 and 1 <= y <= 5):
            return
        brightness = clamp(to_number(brightness), 0, 100)
        await self.session.display_set_pixel(x - 1, y - 1, brightness)

    def get_orientation(self):
        return self.session.orientation

    def get_angle(self, axis):
        axis = to_string(axis)
        if axis not in ANGLE_AXES:
            logger.warning("Unknown axis in get_angle: %r", axis)
            return None
        return self.session.angle[axis]

    async def beep(self, note, time):
        note = clamp(to_number(note), 47, 99)
        milliseconds = self._duration_ms(time, MAX_BEEP_DURATION_MS)
        if milliseconds == 0:
            return  # a beep time of 0 is never sent
        self.session.beep(note, milliseconds)
        # Run for some time even when no hub is connected
        await self._pace(milliseconds)
