"""
Bodies and the factory that builds them.

A body is either a meeba, grown from its genome, or a mote: a small,
spikeless, DNA-less food particle with no upkeep that never reproduces.
"""
from __future__ import annotations

import itertools
import math
import random

from ..config import SimulationConfig
from ..utils.physics import Velocity, to_vector
from ..utils.trig import rand_int, round_angle
from .genome import create_genome, read_genome, replicate_genome
from .spikes import Spike, get_spike_mover, spawn_spike
from .vitals import Vitals, init_vitals, set_calories

COLOR_RANGE = 256 * 256 * 256


def radius_for_mass(mass: float) -> int:
    return int(math.floor(math.sqrt(mass / math.pi)))


class Body:
    """A circle in the tank with mass, velocity, vitals and optional spikes."""

    def __init__(
        self,
        body_id: int,
        mass: int,
        *,
        dna: str = "",
        fill: str = "black",
        x: float = 0.0,
        y: float = 0.0,
        velocity: Velocity | None = None,
        vitals: Vitals | None = None,
        spikes: list[Spike] | None = None,
    ):
        self.id = body_id
        self.dna = dna
        self.fill = fill

        self.x = x
        self.y = y
        self.mass = mass
        self.velocity = velocity if velocity is not None else Velocity()
        self.vitals = vitals if vitals is not None else Vitals(0, 0, 0, math.inf)

        # Longest first, so the first spike bounds the reach of all of them
        self.spikes = sorted(spikes or [], key=lambda spike: spike.length, reverse=True)

        # Per-frame scratch state
        self.next_x = x
        self.next_y = y
        self.last_collision_id: int | None = None
        self.is_inactive = False

    @property
    def mass(self) -> int:
        return self._mass

    @mass.setter
    def mass(self, value: int) -> None:
        self._mass = value
        self._radius = radius_for_mass(value)

    @property
    def radius(self) -> int:
        return self._radius

    @property
    def is_mote(self) -> bool:
        return not self.dna

    @property
    def reach(self) -> int:
        """Radius plus the longest spike."""
        return self._radius + (self.spikes[0].length if self.spikes else 0)

    def move_to(self, x: float, y: float) -> None:
        self.x = x
        self.y = y
        self.next_x = x
        self.next_y = y
        mover = get_spike_mover(x, y)
        for spike in self.spikes:
            mover(spike)

    def __repr__(self) -> str:
        kind = "Mote" if self.is_mote else "Meeba"
        return (
            f"<{kind} id={self.id} x={self.x:.1f} y={self.y:.1f} "
            f"mass={self.mass} calories={self.vitals.calories}>"
        )


class BodyFactory:
    """Builds random meebas, children of existing meebas, and motes."""

    def __init__(self, config: SimulationConfig, rng: random.Random):
        self.config = config
        self.rng = rng
        self._ids = itertools.count()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _random_fill(self) -> str:
        return f"#{rand_int(self.rng, 0, COLOR_RANGE):06x}"

    def _random_location(self, radius: int) -> tuple[int, int]:
        tank = self.config.tank
        return (
            rand_int(self.rng, radius, tank.width - radius),
            rand_int(self.rng, radius, tank.height - radius),
        )

    def relocate(self, body: Body) -> None:
        """Teleport a body to a random spot fully inside the tank."""
        body.move_to(*self._random_location(body.radius))

    def init_body(self, dna: bytes) -> Body:
        """Grow a body from its genome. Position and velocity are left at zero."""
        commands = read_genome(dna, self.config.genome)
        # The mass floor keeps even an empty genome drawable
        mass = self.config.min_mass + commands.mass
        radius = radius_for_mass(mass)

        spikes = [
            spawn_spike(radius, command.angle, command.length, self.config)
            for command in commands.spikes
        ]
        return Body(
            next(self._ids),
            mass,
            dna=dna.hex().upper(),
            spikes=spikes,
            vitals=init_vitals(mass, spikes, self.config),
        )

    # ------------------------------------------------------------------ #
    # Public constructors
    # ------------------------------------------------------------------ #
    def get_random_body(self) -> Body:
        body = self.init_body(create_genome(self.rng, self.config.genome))

        body.fill = self._random_fill()
        body.move_to(*self._random_location(body.radius))
        body.velocity.angle = self.rng.random()
        body.velocity.speed = rand_int(self.rng, 0, int(self.config.max_energy / body.mass))
        return body

    def replicate_parent(self, parent: Body, angle: float) -> Body:
        """A child of ``parent`` launched at ``angle``, just clear of the parent's center."""
        dna = replicate_genome(
            bytes.fromhex(parent.dna),
            self.rng,
            self.config.genome.mutation,
        )
        body = self.init_body(dna)
        body.fill = parent.fill

        set_calories(body.vitals, math.floor(parent.vitals.calories / 2))

        dx, dy = to_vector(Velocity(angle, 2 * body.radius))
        body.move_to(parent.x + dx, parent.y + dy)

        bonus = self.rng.random() * self.config.population.spawn_energy / body.mass
        body.velocity.angle = round_angle(angle)
        body.velocity.speed = parent.velocity.speed + bonus
        return body

    def spawn_mote(self) -> Body:
        motes = self.config.motes
        mass = self.config.mote_mass

        vitals = Vitals(
            calories=math.floor(mass * motes.calories_per_mass),
            upkeep=0,
            dies_at=0,
            spawns_at=math.inf,
        )
        mote = Body(next(self._ids), mass, fill=motes.fill, vitals=vitals)
        mote.move_to(*self._random_location(mote.radius))
        mote.velocity.angle = self.rng.random()
        mote.velocity.speed = self.rng.random() * motes.max_speed
        return mote
