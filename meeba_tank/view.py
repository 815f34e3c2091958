"""
Optional pygame presentation of a tank.

Reads bodies and frame events, never mutates them. Cosmetic state (spike
highlights, saturation) lives here rather than on the bodies.
"""
from __future__ import annotations

from typing import Iterable, Sequence

import pygame

from .events import SpikeDrained
from .meebas.bodies import Body
from .utils.trig import clamp, lerp

BACKGROUND = (235, 240, 245)
SPIKE_COLOR = (40, 40, 40)
ACTIVE_SPIKE_COLOR = (230, 40, 40)
CORPSE_LIGHTNESS = 70


class SpikeHighlighter:
    """Flash spikes that just drained something, fading back over ``duration`` ms."""

    def __init__(self, duration: float = 100.0):
        self.duration = duration
        self._started: dict[tuple[int, int], float] = {}

    def record(self, events: Iterable) -> None:
        for event in events:
            if isinstance(event, SpikeDrained):
                self._started[(event.attacker_id, event.spike_index)] = event.tick

    def level(self, body_id: int, spike_index: int, now: float) -> float:
        """1.0 right after a drain, falling linearly to 0.0."""
        start = self._started.get((body_id, spike_index))
        if start is None:
            return 0.0
        return clamp(1 - (now - start) / self.duration, 0.0, 1.0)

    def prune(self, now: float) -> None:
        expired = [key for key, start in self._started.items() if now - start >= self.duration]
        for key in expired:
            del self._started[key]


def body_saturation(body: Body) -> float:
    """How well fed a body is, 0.0 (about to die) to 1.0 (about to split)."""
    if body.is_mote:
        return 1.0
    vitals = body.vitals
    if vitals.is_dead:
        return 0.0
    span = vitals.spawns_at - vitals.dies_at
    if span <= 0:
        return 1.0
    return clamp((vitals.calories - vitals.dies_at) / span, 0.0, 1.0)


def body_color(body: Body) -> pygame.Color:
    color = pygame.Color(body.fill)
    h, s, l, a = color.hsla
    if body.vitals.is_dead and not body.is_mote:
        l = CORPSE_LIGHTNESS
    color.hsla = (h, s * body_saturation(body), l, a)
    return color


def spike_color(level: float) -> tuple[int, int, int]:
    return tuple(int(lerp(idle, active, level)) for idle, active in zip(SPIKE_COLOR, ACTIVE_SPIKE_COLOR))


class TankView:
    """Draws a list of bodies onto a pygame surface."""

    def __init__(self, width: int, height: int, surface: pygame.Surface | None = None):
        self.width = width
        self.height = height
        if surface is None:
            surface = pygame.display.set_mode((width, height))
            pygame.display.set_caption("Meeba Tank")
        self.surface = surface
        self.highlighter = SpikeHighlighter()

    def draw(self, bodies: Sequence[Body], now: float, events: Iterable = ()) -> None:
        self.highlighter.record(events)
        self.surface.fill(BACKGROUND)

        for body in bodies:
            for index, spike in enumerate(body.spikes):
                color = spike_color(self.highlighter.level(body.id, index, now))
                points = [(spike.x1, spike.y1), (spike.x2, spike.y2), (spike.x3, spike.y3)]
                pygame.draw.polygon(self.surface, color, points)

            pos = (int(body.x), int(body.y))
            pygame.draw.circle(self.surface, body_color(body), pos, body.radius)

        self.highlighter.prune(now)
