"""
pyLegoHub.protocol - Pure frame encoders and decoders for each hub family.
"""

from . import ev3, lwp3, spike, wedo2

__all__ = ["ev3", "lwp3", "spike", "wedo2"]
