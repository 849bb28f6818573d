"""
pyLegoHub.devices - Motor handles shared by every hub family.
"""

from .motor import Motor, MotorCommands, TimedMotor, TimedMotorCommands

__all__ = ["Motor", "MotorCommands", "TimedMotor", "TimedMotorCommands"]
