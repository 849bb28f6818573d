# pyLegoHub/blocks/cast.py

"""
Coercion of block arguments, which arrive as strings or numbers.
"""

import math


def to_number(value):
    """
    Numeric value of a block argument; anything that is not a number is 0.
    """
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return 0 if isinstance(value, float) and math.isnan(value) else value
    text = str(value).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return 0
    return 0 if math.isnan(number) else number


def to_string(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def clamp(value, low, high):
    return max(low, min(value, high))


def wrap_clamp(value, low, high):
    """
    Wraps value into [low, high], e.g. wrap_clamp(370, 0, 360) == 9.
    """
    span = high - low + 1
    return value - math.floor((value - low) / span) * span
