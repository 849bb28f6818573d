# pyLegoHub/hubs/__init__.py

from .duplo_train import DuploTrain
from .ev3 import Ev3
from .poweredup import PoweredUp
from .spike import Spike
from .wedo2 import WeDo2
