# pyLegoHub/blocks/__init__.py

from .base import MotorDirection, MotorID, TiltDirection
from .duplo_train import DuploTrainBlocks
from .ev3 import Ev3Blocks
from .poweredup import PoweredUpBlocks
from .spike import SpikeBlocks
from .wedo2 import WeDo2Blocks
