# pyLegoHub/blocks/poweredup.py

from .wedo2 import WeDo2Blocks


class PoweredUpBlocks(WeDo2Blocks):
    """
    PoweredUp blocks: the WeDo 2.0 block set on ports A and B of a
    PoweredUp hub.
    """
