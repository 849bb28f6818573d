# pyLegoHub/__init__.py

"""
pyLegoHub - Host-side drivers for LEGO WeDo 2.0, PoweredUp, Duplo Train,
SPIKE Prime and EV3 hubs.
Version: 0.2.0
"""

__version__ = "0.2.0"

# Transports
from .ble import LegoClient, LegoScanner
from .bt import LegoSerialClient

# Sessions and their building blocks
from .config import SessionConfig
from .events import PROJECT_STOP_ALL, EventSource
from .hubs import DuploTrain, Ev3, PoweredUp, Spike, WeDo2
from .manager import Manager
from .rate_limiter import RateLimiter

# Block adapters
from .blocks import DuploTrainBlocks, Ev3Blocks, PoweredUpBlocks, SpikeBlocks, WeDo2Blocks
