"""Simulation configuration.

All tunable values live in one ``SimulationConfig`` tree that is handed to the
body factory and the simulation when they are built. Values that depend on
other settings (temperature-adjusted drain, minimum mass, mote capacity...)
are computed on demand, so replacing a setting never leaves a stale cache.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any


class ConfigError(KeyError):
    """Raised when a dotted setting path does not exist."""


# ------------------------------------------------------------------ #
# Sections
# ------------------------------------------------------------------ #
@dataclass(frozen=True)
class TankConfig:
    width: int = 1000
    height: int = 800


@dataclass(frozen=True)
class PopulationConfig:
    bodies: int = 50
    energy: float = 1_000_000.0
    # Extra launch speed budget shared out between children on reproduction
    spawn_energy: float = 20_000.0
    # Children leave at heading +/- this many turns
    spawn_angle_offset: float = 0.125
    temperature: float = 20.0
    max_delay: float = 0.1  # seconds
    max_separation_attempts: int = 10


@dataclass(frozen=True)
class MeebaConfig:
    min_radius: int = 10


@dataclass(frozen=True)
class MutationConfig:
    enabled: bool = False
    bit_flip_chance: float = 0.0005
    repeat_byte_chance: float = 0.008
    drop_byte_chance: float = 0.008
    repeat_gene_chance: float = 0.03
    drop_gene_chance: float = 0.03


@dataclass(frozen=True)
class GenomeConfig:
    average_gene_count: int = 16
    average_gene_size: int = 8
    bits_per_mass: int = 1
    bits_per_spike_length: int = 2
    # Relative odds of each control byte when generating random genes
    control_byte_weights: tuple[tuple[int, int], ...] = ((0xF0, 9), (0xF1, 1))
    mutation: MutationConfig = field(default_factory=MutationConfig)


@dataclass(frozen=True)
class SpikeConfig:
    width: int = 6
    base_drain: float = 320.0
    drain_exponent: float = 1.025
    base_upkeep: float = 8.0
    length_upkeep: float = 0.25
    upkeep_adjustment: float = 16.0


@dataclass(frozen=True)
class VitalsConfig:
    death_factor: float = 0.5
    start_factor: float = 1.5
    spawn_factor: float = 2.5
    mass_exponent: float = 0.66


@dataclass(frozen=True)
class MoteConfig:
    radius: int = 10
    max_speed: float = 20.0
    rate: float = 8.0  # motes per second
    calories_per_mass: float = 1.0
    # Tank area reserved per unit of mote mass when computing capacity
    crowding: float = 20.0
    fill: str = "#9acd32"


# ------------------------------------------------------------------ #
# Root
# ------------------------------------------------------------------ #
@dataclass(frozen=True)
class SimulationConfig:
    tank: TankConfig = field(default_factory=TankConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)
    meebas: MeebaConfig = field(default_factory=MeebaConfig)
    genome: GenomeConfig = field(default_factory=GenomeConfig)
    spikes: SpikeConfig = field(default_factory=SpikeConfig)
    vitals: VitalsConfig = field(default_factory=VitalsConfig)
    motes: MoteConfig = field(default_factory=MoteConfig)

    # --- derived values ---
    @property
    def temperature_factor(self) -> float:
        return max(0.0, self.population.temperature) / 30

    @property
    def adjusted_base_drain(self) -> float:
        return self.spikes.base_drain * self.temperature_factor

    @property
    def min_mass(self) -> int:
        return math.ceil(math.pi * self.meebas.min_radius ** 2)

    @property
    def max_energy(self) -> float:
        """Starting speed budget: a body of mass ``m`` gets at most this / m."""
        bodies = max(1, self.population.bodies)
        return 2 * self.population.energy / bodies

    @property
    def mote_mass(self) -> int:
        # Motes obey the same mass floor as meebas
        return max(self.min_mass, math.ceil(math.pi * self.motes.radius ** 2))

    @property
    def mote_capacity(self) -> int:
        footprint = self.mote_mass * self.motes.crowding
        return int(self.tank.width * self.tank.height / footprint)

    # --- dotted path access ---
    def get(self, path: str) -> Any:
        node: Any = self
        for key in path.split("."):
            if not is_dataclass(node) or key not in _field_names(node):
                raise ConfigError(path)
            node = getattr(node, key)
        return node

    def updated(self, path: str, value: Any) -> "SimulationConfig":
        """Return a copy of this config with one dotted-path setting replaced."""
        return _replace_path(self, path.split("."), value, path)


def _field_names(obj) -> set[str]:
    return {f.name for f in fields(obj)}


def _replace_path(node, keys: list[str], value, path: str):
    key = keys[0]
    if not is_dataclass(node) or key not in _field_names(node):
        raise ConfigError(path)
    if len(keys) == 1:
        return replace(node, **{key: value})
    return replace(node, **{key: _replace_path(getattr(node, key), keys[1:], value, path)})
