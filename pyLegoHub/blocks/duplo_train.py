# pyLegoHub/blocks/duplo_train.py

from typing import List

from pyLegoHub.hubs.duplo_train import COLORS

from .base import MotorBlocks

NO_COLOR = "none"


class DuploTrainBlocks(MotorBlocks):
    """
    Duplo Train blocks. The train has a single motor, so every motor menu
    entry drives it.
    """

    def _motor_indexes(self, motor_id) -> List[int]:
        return [0]

    async def set_led_color(self, color):
        self.session.set_led(color)
        await self._pace()

    async def play_sound(self, sound):
        self.session.play_sound(sound)
        await self._pace()

    def get_color(self) -> str:
        index = self.session.color
        if 0 <= index < len(COLORS):
            return COLORS[index]
        return NO_COLOR

    def is_color(self, color) -> bool:
        if color == NO_COLOR:
            return self.session.color == -1
        if color not in COLORS:
            return False
        return self.session.color == COLORS.index(color)

    when_color = is_color
