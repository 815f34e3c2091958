"""Things that happened during a frame, for consumers outside the core."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SpikeDrained:
    tick: float  # frame stop time, ms
    attacker_id: int
    target_id: int
    spike_index: int
    amount: float


@dataclass(frozen=True)
class BodyDied:
    tick: float
    body_id: int


@dataclass(frozen=True)
class BodyReproduced:
    tick: float
    parent_id: int
    child_ids: tuple[int, ...]


@dataclass(frozen=True)
class BodyRemoved:
    tick: float
    body_id: int


@dataclass(frozen=True)
class MotesSpawned:
    tick: float
    count: int
