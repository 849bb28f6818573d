# pyLegoHub/bt/__init__.py

"""
pyLegoHub.bt - Classic Bluetooth serial transport for SPIKE Prime and EV3 hubs.
"""

from .client import LegoSerialClient

__all__ = ["LegoSerialClient"]
