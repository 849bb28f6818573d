# pyLegoHub/blocks/wedo2.py

import colorsys
import logging

from .base import MotorBlocks, TiltBlocks
from .cast import clamp, to_number, to_string, wrap_clamp

logger = logging.getLogger(__name__)

# Named colors for the hub light
LIGHT_COLORS = {
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "white": (255, 255, 255),
    "black": (0, 0, 0),
}


def rgb_to_decimal(red: int, green: int, blue: int) -> int:
    return (red << 16) | (green << 8) | blue


def hue_to_rgb(hue: float) -> int:
    """
    Full saturation and value color for a hue in [0, 100].
    """
    red, green, blue = colorsys.hsv_to_rgb(hue / 100.0, 1.0, 1.0)
    return rgb_to_decimal(round(red * 255), round(green * 255), round(blue * 255))


def note_to_tone(midi_note: float) -> float:
    # MIDI note 69 is A4, 440 Hz
    return 440 * 2 ** ((midi_note - 69) / 12)


class WeDo2Blocks(MotorBlocks, TiltBlocks):
    """
    Blocks for the WeDo 2.0 hub (and, through PoweredUpBlocks, the
    PoweredUp hub, which has the same light, piezo and sensors).
    """

    MAX_NOTE_DURATION_MS = 3000

    async def set_light_hue(self, hue):
        hue = wrap_clamp(to_number(hue), 0, 100)
        self.session.set_led(hue_to_rgb(hue))
        await self._pace()

    async def set_light_color(self, color):
        rgb = LIGHT_COLORS.get(to_string(color).strip().lower())
        if rgb is None:
            logger.warning("Color %r not defined. Available colors: %s", color, list(LIGHT_COLORS))
        else:
            self.session.set_led(rgb_to_decimal(*rgb))
        await self._pace()

    async def play_note_for(self, note, duration):
        milliseconds = self._duration_ms(duration, self.MAX_NOTE_DURATION_MS)
        # The hub plays a zero duration note forever
        if milliseconds == 0:
            return
        note = clamp(to_number(note), 25, 125)
        self.session.play_tone(note_to_tone(note), milliseconds)
        # Play for some time even when no hub is connected
        await self._pace(milliseconds)
