"""Distance tests that compare squared lengths instead of taking roots."""
from __future__ import annotations

from .trig import sqr


def is_shorter(x1: float, y1: float, x2: float, y2: float, distance: float) -> bool:
    """True when the segment (x1, y1)-(x2, y2) is shorter than ``distance``."""
    return sqr(x1 - x2) + sqr(y1 - y2) < sqr(distance)


def is_closer(
    x: float,
    y: float,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    distance: float,
) -> bool:
    """True when point (x, y) lies within ``distance`` of segment (x1, y1)-(x2, y2)."""
    x_length = x2 - x1
    y_length = y2 - y1

    length_squared = sqr(x_length) + sqr(y_length)
    if length_squared > 0:
        projection = ((x - x1) * x_length + (y - y1) * y_length) / length_squared
    else:
        projection = -1.0

    if projection < 0:
        closest_x, closest_y = x1, y1
    elif projection > 1:
        closest_x, closest_y = x2, y2
    else:
        closest_x = x1 + projection * x_length
        closest_y = y1 + projection * y_length

    return is_shorter(x, y, closest_x, closest_y, distance)
