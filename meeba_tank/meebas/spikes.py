"""Spike geometry: triangles attached to a body's edge that drain calories."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

from ..config import SimulationConfig
from ..utils.trig import asin, cos, sin


@dataclass
class SpikeOffset:
    """The spike's three points relative to the body's center. Fixed at spawn."""

    x1: int = 0
    y1: int = 0
    x2: int = 0
    y2: int = 0
    x3: int = 0
    y3: int = 0


@dataclass
class Spike:
    length: int
    angle: float
    drain: int  # calories per second
    offset: SpikeOffset = field(default_factory=SpikeOffset)
    # Absolute points: tip (x1, y1) and two base points
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    x3: float = 0.0
    y3: float = 0.0


def _x_offset(angle: float, distance: float) -> int:
    return math.floor(cos(angle) * distance)


def _y_offset(angle: float, distance: float) -> int:
    return math.floor(-sin(angle) * distance)


def get_spike_drain(length: int, config: SimulationConfig) -> int:
    # Zero-length spikes drain like length 1 ones
    length = max(1, length)
    return math.ceil(config.adjusted_base_drain / length ** config.spikes.drain_exponent)


def spawn_spike(radius: int, angle: float, length: int, config: SimulationConfig) -> Spike:
    """Build a spike for a body of ``radius``. Absolute points start at the origin."""
    half_width_angle = asin(config.spikes.width / 2 / radius)

    offset = SpikeOffset(
        x1=_x_offset(angle, radius + length),
        y1=_y_offset(angle, radius + length),
        x2=_x_offset(angle - half_width_angle, radius - 1),
        y2=_y_offset(angle - half_width_angle, radius - 1),
        x3=_x_offset(angle + half_width_angle, radius - 1),
        y3=_y_offset(angle + half_width_angle, radius - 1),
    )
    return Spike(length=length, angle=angle, drain=get_spike_drain(length, config), offset=offset)


def move_spike(spike: Spike, x: float, y: float) -> None:
    offset = spike.offset
    spike.x1 = x + offset.x1
    spike.y1 = y + offset.y1
    spike.x2 = x + offset.x2
    spike.y2 = y + offset.y2
    spike.x3 = x + offset.x3
    spike.y3 = y + offset.y3


def get_spike_mover(x: float, y: float) -> Callable[[Spike], None]:
    """A function placing any spike around the center (x, y)."""
    return lambda spike: move_spike(spike, x, y)
