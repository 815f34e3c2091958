from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Sequence

from .config import SimulationConfig
from .events import BodyDied, BodyRemoved, BodyReproduced, MotesSpawned, SpikeDrained
from .meebas.bodies import Body, BodyFactory
from .meebas.vitals import drain_calories, feed_calories
from .utils.geometry import is_closer, is_shorter
from .utils.physics import bounce_x, bounce_y, collide, to_vector
from .utils.trig import get_gap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """Values shared by every pass of one frame."""

    delay: float  # seconds since the previous frame, clamped
    tick: float  # frame stop time, ms


# ------------------------------------------------------------------ #
# Pair tests
# ------------------------------------------------------------------ #
def is_overlapping(body1: Body, body2: Body) -> bool:
    return is_shorter(body1.x, body1.y, body2.x, body2.y, body1.radius + body2.radius)


def will_overlap(body1: Body, body2: Body) -> bool:
    return is_shorter(
        body1.next_x, body1.next_y, body2.next_x, body2.next_y, body1.radius + body2.radius
    )


def can_interact(body1: Body, body2: Body) -> bool:
    """
    Cheap broad-phase filter on predicted centers. Only ``body1``'s spikes
    count towards the range, so the test is not symmetric.
    """
    if body1 is body2:
        return False
    return is_shorter(
        body1.next_x,
        body1.next_y,
        body2.next_x,
        body2.next_y,
        body1.reach + body2.radius,
    )


def collided_last(body1: Body, body2: Body) -> bool:
    return body1.last_collision_id == body2.id and body2.last_collision_id == body1.id


def spike_touches(attacker: Body, spike_index: int, target: Body) -> bool:
    """Does the spike (at the attacker's predicted position) reach the target?"""
    spike = attacker.spikes[spike_index]
    tip_x = attacker.next_x + spike.offset.x1
    tip_y = attacker.next_y + spike.offset.y1

    # A short spike cannot pass through the target, so only its tip matters
    if spike.length < 2 * target.radius:
        return is_shorter(tip_x, tip_y, target.next_x, target.next_y, target.radius)

    return is_closer(
        target.next_x,
        target.next_y,
        attacker.next_x,
        attacker.next_y,
        tip_x,
        tip_y,
        target.radius,
    )


class Simulation:
    """Owns the body list, the random generator and the per-frame pipeline."""

    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        seed: int | str | None = None,
    ):
        self.config = config or SimulationConfig()

        self.seed = seed if seed is not None else random.randrange(2**32)
        self.rng = random.Random(self.seed)
        self.factory = BodyFactory(self.config, self.rng)

        self.bodies: list[Body] = []
        self.events: list = []
        self.frame_count = 0
        self._last_tick: float | None = None

    # ------------------------------------------------------------------ #
    # Setup
    # ------------------------------------------------------------------ #
    def populate(self, count: int | None = None) -> list[Body]:
        """Fill the tank with random meebas that do not overlap (if possible)."""
        if count is None:
            count = self.config.population.bodies
        self.bodies = [self.factory.get_random_body() for _ in range(count)]
        self.separate_bodies(self.bodies)
        logger.info("Simulating %d bodies with seed %s", len(self.bodies), self.seed)
        return self.bodies

    def separate_bodies(self, bodies: Sequence[Body]) -> None:
        """Teleport overlapping bodies until none overlap or attempts run out."""
        attempts = 0
        overlaps_found = True

        while attempts < self.config.population.max_separation_attempts and overlaps_found:
            attempts += 1
            overlaps_found = False

            for body in bodies:
                for other in bodies:
                    if body is not other and is_overlapping(body, other):
                        overlaps_found = True
                        self.factory.relocate(body)

        if overlaps_found:
            logger.debug("Bodies still overlap after %d separation attempts", attempts)

    # ------------------------------------------------------------------ #
    # Driving
    # ------------------------------------------------------------------ #
    def step(self, now: float) -> list[Body]:
        """Advance the owned body list to timestamp ``now`` (ms)."""
        if self._last_tick is not None:
            self.bodies = self.simulate_frame(self.bodies, self._last_tick, now)
        self._last_tick = now
        return self.bodies

    def reset_clock(self, now: float) -> None:
        """Treat ``now`` as the previous frame time, e.g. after a pause."""
        self._last_tick = now
        self.events = []

    def simulate_frame(self, bodies: Sequence[Body], start: float, stop: float) -> list[Body]:
        """Run one frame over ``bodies`` and return the bodies that remain, plus new ones."""
        delay = min(max(0.0, (stop - start) / 1000), self.config.population.max_delay)
        frame = Frame(delay=delay, tick=stop)
        self.events = []
        self.frame_count += 1

        for body in bodies:
            self._predict_move(body, frame)
        for body in bodies:
            self._bounce_wall(body, frame)
        for body in bodies:
            self._interact(body, bodies, frame)
        for body in bodies:
            body.move_to(body.next_x, body.next_y)
        for body in bodies:
            self._metabolize(body, frame)

        children: list[Body] = []
        for body in bodies:
            self._check_lifecycle(body, children, frame)

        survivors = [body for body in bodies if not body.is_inactive]
        motes = self._spawn_motes(len(survivors) + len(children), frame)
        return survivors + children + motes

    # ------------------------------------------------------------------ #
    # Movement
    # ------------------------------------------------------------------ #
    def _predict_move(self, body: Body, frame: Frame) -> None:
        dx, dy = to_vector(body.velocity)
        body.next_x = body.x + dx * frame.delay
        body.next_y = body.y + dy * frame.delay

    def _bounce_wall(self, body: Body, frame: Frame) -> None:
        tank = self.config.tank
        radius = body.radius
        angle = body.velocity.angle

        # Only bounce when heading into the wall, not already moving away from it
        if get_gap(0, angle) < 0.25 and body.next_x > tank.width - radius:
            bounce_x(body.velocity)
        elif get_gap(0.25, angle) < 0.25 and body.next_y < radius:
            bounce_y(body.velocity)
        elif get_gap(0.5, angle) < 0.25 and body.next_x < radius:
            bounce_x(body.velocity)
        elif get_gap(0.75, angle) < 0.25 and body.next_y > tank.height - radius:
            bounce_y(body.velocity)
        else:
            return

        self._predict_move(body, frame)
        body.last_collision_id = None

    # ------------------------------------------------------------------ #
    # Interaction (O(n^2))
    # ------------------------------------------------------------------ #
    def _interact(self, body: Body, bodies: Sequence[Body], frame: Frame) -> None:
        for other in bodies:
            if not can_interact(body, other):
                continue
            self._collide(body, other, frame)
            if not body.vitals.is_dead:
                self._drain_with_spikes(body, other, frame)

    def _collide(self, body: Body, other: Body, frame: Frame) -> None:
        # Pairs still in contact from their last bounce are left alone to avoid jitter
        if collided_last(body, other):
            return
        if not (will_overlap(body, other) or is_overlapping(body, other)):
            return

        collide(body, other)
        self._predict_move(body, frame)
        self._predict_move(other, frame)
        body.last_collision_id = other.id
        other.last_collision_id = body.id

    def _drain_with_spikes(self, attacker: Body, target: Body, frame: Frame) -> None:
        for index, spike in enumerate(attacker.spikes):
            if not spike_touches(attacker, index, target):
                continue

            was_dead = target.vitals.is_dead
            drained = drain_calories(target.vitals, math.floor(spike.drain * frame.delay))
            feed_calories(attacker.vitals, drained)
            self.events.append(SpikeDrained(frame.tick, attacker.id, target.id, index, drained))
            self._note_death(target, was_dead, frame)

    # ------------------------------------------------------------------ #
    # Life cycle
    # ------------------------------------------------------------------ #
    def _note_death(self, body: Body, was_dead: bool, frame: Frame) -> None:
        if body.vitals.is_dead and not was_dead:
            logger.debug("Body %d died at %.0f ms", body.id, frame.tick)
            self.events.append(BodyDied(frame.tick, body.id))

    def _metabolize(self, body: Body, frame: Frame) -> None:
        if body.vitals.is_dead:
            return
        drain_calories(body.vitals, body.vitals.upkeep * frame.delay)
        self._note_death(body, False, frame)

    def _check_lifecycle(self, body: Body, children: list[Body], frame: Frame) -> None:
        vitals = body.vitals

        if vitals.calories <= 0:
            body.is_inactive = True
            self.events.append(BodyRemoved(frame.tick, body.id))
        elif not vitals.is_dead and vitals.calories >= vitals.spawns_at:
            body.is_inactive = True
            offset = self.config.population.spawn_angle_offset
            angle = body.velocity.angle
            new = [
                self.factory.replicate_parent(body, angle - offset),
                self.factory.replicate_parent(body, angle + offset),
            ]
            children.extend(new)
            logger.debug("Body %d split into %s", body.id, [child.id for child in new])
            self.events.append(
                BodyReproduced(frame.tick, body.id, tuple(child.id for child in new))
            )

    def _spawn_motes(self, population: int, frame: Frame) -> list[Body]:
        expected = self.config.motes.rate * frame.delay
        count = math.floor(expected)
        if self.rng.random() < expected % 1:
            count += 1

        count = min(count, self.config.mote_capacity - population)
        if count <= 0:
            return []

        self.events.append(MotesSpawned(frame.tick, count))
        return [self.factory.spawn_mote() for _ in range(count)]
