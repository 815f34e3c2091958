"""Calorie-based life cycle of a body."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from ..config import SimulationConfig
from .spikes import Spike


@dataclass
class Vitals:
    calories: float
    upkeep: int  # calories burned per second
    dies_at: int
    spawns_at: float
    is_dead: bool = False


def get_upkeep(mass: int, spikes: Sequence[Spike], config: SimulationConfig) -> int:
    spike_config = config.spikes
    mass_cost = mass ** config.vitals.mass_exponent
    if mass_cost <= 0:
        return 0

    spike_total = sum(
        spike_config.base_upkeep + spike.length * spike_config.length_upkeep
        for spike in spikes
    )
    spike_cost = spike_total / mass_cost * spike_config.upkeep_adjustment
    return math.floor((mass_cost + spike_cost) * config.temperature_factor)


def init_vitals(mass: int, spikes: Sequence[Spike], config: SimulationConfig) -> Vitals:
    factors = config.vitals
    calories = math.floor(mass * factors.start_factor)
    dies_at = math.floor(mass * factors.death_factor)

    return Vitals(
        calories=calories,
        upkeep=get_upkeep(mass, spikes, config),
        dies_at=dies_at,
        spawns_at=math.floor(mass * factors.spawn_factor),
        is_dead=calories < dies_at,
    )


def _check_death(vitals: Vitals) -> None:
    # Death is permanent, whatever happens to calories afterwards
    vitals.is_dead = vitals.is_dead or vitals.calories < vitals.dies_at


def set_calories(vitals: Vitals, calories: float) -> None:
    vitals.calories = calories
    _check_death(vitals)


def drain_calories(vitals: Vitals, amount: float) -> float:
    """Remove up to ``amount`` calories and return how many were actually removed."""
    actual = min(max(0, amount), vitals.calories)
    vitals.calories -= actual
    _check_death(vitals)
    return actual


def feed_calories(vitals: Vitals, amount: float) -> None:
    vitals.calories += max(0, amount)
    _check_death(vitals)
