# meeba_tank/stats.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Sequence

import numpy as np

from .meebas.bodies import Body


# ----------------------------------------------------------------------
# Per-property summary
# ----------------------------------------------------------------------
@dataclass
class PropertyStats:
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    mode: float = 0.0


def analyze_property(values: Sequence[float]) -> PropertyStats:
    if len(values) == 0:
        return PropertyStats()

    arr = np.asarray(values, dtype=float)
    uniques, counts = np.unique(arr, return_counts=True)
    return PropertyStats(
        min=float(arr.min()),
        max=float(arr.max()),
        mean=float(arr.mean()),
        # np.unique sorts, so ties go to the smallest value
        mode=float(uniques[np.argmax(counts)]),
    )


def body_category(body: Body) -> str:
    if body.is_mote:
        return "motes"
    if body.vitals.is_dead:
        return "corpses"
    return "meebas"


# ----------------------------------------------------------------------
# Population snapshot
# ----------------------------------------------------------------------
@dataclass
class PopulationSnapshot:
    timestamp: float
    meebas: int
    motes: int
    corpses: int
    calories: float
    size: PropertyStats
    spike_count: PropertyStats
    spike_length: PropertyStats
    upkeep: PropertyStats
    speed: PropertyStats


def take_snapshot(timestamp: float, bodies: Sequence[Body]) -> PopulationSnapshot:
    groups: dict[str, list[Body]] = {"meebas": [], "motes": [], "corpses": []}
    for body in bodies:
        groups[body_category(body)].append(body)

    meebas = groups["meebas"]
    spikes = [spike for meeba in meebas for spike in meeba.spikes]

    return PopulationSnapshot(
        timestamp=timestamp,
        meebas=len(meebas),
        motes=len(groups["motes"]),
        corpses=len(groups["corpses"]),
        calories=float(sum(body.vitals.calories for body in bodies)),
        size=analyze_property([m.mass for m in meebas]),
        spike_count=analyze_property([len(m.spikes) for m in meebas]),
        spike_length=analyze_property([s.length for s in spikes]),
        upkeep=analyze_property([m.vitals.upkeep for m in meebas]),
        speed=analyze_property([m.velocity.speed for m in meebas]),
    )


# ----------------------------------------------------------------------
# History
# ----------------------------------------------------------------------
@dataclass
class PopulationStats:
    """Bounded history of population snapshots."""

    history: list[PopulationSnapshot] = field(default_factory=list)
    max_history_len: int = 500

    latest: PopulationSnapshot | None = None

    def update(self, timestamp: float, bodies: Sequence[Body]) -> PopulationSnapshot:
        self.latest = take_snapshot(timestamp, bodies)
        self.history.append(self.latest)
        if len(self.history) > self.max_history_len:
            del self.history[: len(self.history) - self.max_history_len]
        return self.latest

    def latest_as_dict(self) -> dict | None:
        if self.latest is None:
            return None
        return asdict(self.latest)

    def history_as_dicts(self) -> list[dict]:
        return [asdict(s) for s in self.history]
