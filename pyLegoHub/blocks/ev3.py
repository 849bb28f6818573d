# pyLegoHub/blocks/ev3.py

from .base import TimedMotorBlocks
from .cast import clamp, to_number

MAX_BEEP_DURATION_MS = 3000


def note_to_frequency(note: float) -> float:
    # Brick notes sit one octave above the MIDI tuning standard
    return 2 ** ((note - 69 + 12) / 12) * 440


class Ev3Blocks(TimedMotorBlocks):
    """
    EV3 blocks: motors on ports A-D (0-3), sensors on ports 1-4 (0-3).
    """

    async def beep(self, note, time):
        note = clamp(to_number(note), 47, 99)  # valid EV3 sounds
        milliseconds = self._duration_ms(time, MAX_BEEP_DURATION_MS)
        if milliseconds == 0:
            return  # a beep time of 0 is never sent
        self.session.beep(note_to_frequency(note), milliseconds)
        # Run for some time even when no brick is connected
        await self._pace(milliseconds)
