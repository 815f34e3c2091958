"""Lookup-table trigonometry on angles measured in turns, plus small helpers.

1 turn = 360 degrees = 2*pi radians. Angles are normalized into [0, 1).
"""
from __future__ import annotations

import math
import random

import numpy as np

PI_2 = 2 * math.pi
LUT_RES = 1024

# sin/cos are indexed by angle, asin/acos by ratio in [-1, 1] (both ends included)
_ANGLES = np.arange(LUT_RES) / LUT_RES
_RATIOS = np.linspace(-1.0, 1.0, LUT_RES + 1)

SIN_LUT = np.sin(PI_2 * _ANGLES)
COS_LUT = np.cos(PI_2 * _ANGLES)
ASIN_LUT = np.arcsin(_RATIOS) / PI_2
ACOS_LUT = np.arccos(_RATIOS) / PI_2


def sqr(n: float) -> float:
    return n * n


def round_angle(turns: float) -> float:
    """Normalize an angle in turns into [0, 1)."""
    if 0 <= turns < 1:
        return turns
    turns %= 1
    # -1e-18 % 1 rounds up to exactly 1.0
    return 0.0 if turns >= 1 else turns


def _angle_index(turns: float) -> int:
    return int(round_angle(turns) * LUT_RES) % LUT_RES


def _ratio_index(ratio: float) -> int:
    ratio = clamp(ratio, -1.0, 1.0)
    return int(round((ratio + 1) / 2 * LUT_RES))


def sin(turns: float) -> float:
    return float(SIN_LUT[_angle_index(turns)])


def cos(turns: float) -> float:
    return float(COS_LUT[_angle_index(turns)])


def asin(ratio: float) -> float:
    """Arcsine of ``ratio``, in turns within [-0.25, 0.25]."""
    return float(ASIN_LUT[_ratio_index(ratio)])


def acos(ratio: float) -> float:
    """Arccosine of ``ratio``, in turns within [0, 0.5]."""
    return float(ACOS_LUT[_ratio_index(ratio)])


def get_gap(angle1: float, angle2: float) -> float:
    """Smallest distance between two angles, in turns (0 to 0.5)."""
    gap = abs(round_angle(angle1) - round_angle(angle2))
    return gap if gap <= 0.5 else 1 - gap


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def lerp(start: float, stop: float, t: float) -> float:
    return start + (stop - start) * t


def rand_int(rng: random.Random, low: int, high: int) -> int:
    """Random integer in [low, high). Empty ranges collapse to ``low``."""
    return low + math.floor(rng.random() * max(0, high - low))
