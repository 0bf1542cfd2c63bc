import math


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
