import math

import pytest

pytest.importorskip("numpy")

from meeba_tank.config import SimulationConfig
from meeba_tank.events import (
    BodyDied,
    BodyRemoved,
    BodyReproduced,
    MotesSpawned,
    SpikeDrained,
)
from meeba_tank.simulation import Simulation, can_interact, is_overlapping, spike_touches
from meeba_tank.utils.trig import get_gap

ANGLE_TOLERANCE = 0.01
SPIKE_DNA = bytes([0xF1, 0xEF, 0xEF, 0xEF, 0xEF])  # one 14 px spike pointing east
LONG_SPIKE_DNA = bytes([0xF1] + [0xEF] * 6)  # one 21 px spike pointing east


def _run(sim, bodies, frames, frame_ms=100):
    for index in range(frames):
        bodies = sim.simulate_frame(bodies, index * frame_ms, (index + 1) * frame_ms)
    return bodies


def _events_of(sim, kind):
    return [event for event in sim.events if isinstance(event, kind)]


# ------------------------------------------------------------------ #
# Movement
# ------------------------------------------------------------------ #
def test_body_moves_by_speed_times_delay(sim, make_body):
    body = make_body(50, 50, angle=0, speed=100)

    bodies = sim.simulate_frame([body], 0, 100)
    assert body.x == pytest.approx(60)
    assert body.y == pytest.approx(50)

    _run(sim, bodies, 2)
    assert body.x == pytest.approx(80)


def test_long_frames_are_clamped(sim, make_body):
    body = make_body(50, 50, angle=0, speed=100)
    sim.simulate_frame([body], 0, 1000)
    assert body.x == pytest.approx(60)


def test_backwards_clock_does_not_move_bodies(sim, make_body):
    body = make_body(50, 50, angle=0, speed=100)
    sim.simulate_frame([body], 500, 400)
    assert body.x == 50


def test_step_tracks_the_previous_tick(sim, make_body):
    body = make_body(50, 50, angle=0, speed=100)
    sim.bodies = [body]

    sim.step(1000)
    assert body.x == 50
    sim.step(1100)
    assert body.x == pytest.approx(60)

    sim.reset_clock(5000)
    sim.step(5050)
    assert body.x == pytest.approx(65)
    assert sim.frame_count == 2


def test_body_bounces_off_the_left_wall(sim, make_body):
    body = make_body(15, 50, angle=0.5, speed=100)
    body.last_collision_id = 99

    _run(sim, [body], 2)

    assert body.velocity.angle == pytest.approx(0, abs=ANGLE_TOLERANCE)
    assert body.velocity.speed == 100
    assert body.x >= body.radius
    assert body.last_collision_id is None


def test_body_moving_away_from_a_wall_is_not_bounced(sim, make_body):
    # Already past the wall, but heading back into the tank
    body = make_body(5, 50, angle=0, speed=100)
    sim.simulate_frame([body], 0, 100)
    assert body.velocity.angle == 0
    assert body.x == pytest.approx(15)


# ------------------------------------------------------------------ #
# Collisions
# ------------------------------------------------------------------ #
def test_equal_bodies_swap_velocities_head_on(sim, make_body):
    left = make_body(30, 50, angle=0, speed=50)
    right = make_body(55, 50, angle=0.5, speed=50)

    sim.simulate_frame([left, right], 0, 100)

    assert left.velocity.angle == pytest.approx(0.5, abs=ANGLE_TOLERANCE)
    assert left.velocity.speed == pytest.approx(50, abs=0.5)
    assert get_gap(right.velocity.angle, 0) < ANGLE_TOLERANCE
    assert right.velocity.speed == pytest.approx(50, abs=0.5)
    assert left.last_collision_id == right.id
    assert right.last_collision_id == left.id
    assert left.x < 30 and right.x > 55


def test_pair_that_just_collided_is_not_collided_again(sim, make_body):
    left = make_body(30, 50, angle=0, speed=50)
    right = make_body(55, 50, angle=0.5, speed=50)
    left.last_collision_id = right.id
    right.last_collision_id = left.id

    sim.simulate_frame([left, right], 0, 100)

    assert left.velocity.angle == 0
    assert right.velocity.angle == 0.5


def test_distant_bodies_do_not_collide(sim, make_body):
    left = make_body(20, 20, angle=0, speed=10)
    right = make_body(80, 80, angle=0.5, speed=10)

    sim.simulate_frame([left, right], 0, 100)

    assert left.last_collision_id is None
    assert right.last_collision_id is None


def test_broad_phase_counts_only_the_first_bodys_spikes(sim, make_body):
    attacker = make_body(50, 50, dna=SPIKE_DNA)
    target = make_body(80, 50)

    assert can_interact(attacker, target)
    assert not can_interact(target, attacker)
    assert not can_interact(attacker, attacker)


# ------------------------------------------------------------------ #
# Spikes
# ------------------------------------------------------------------ #
@pytest.fixture()
def attacker_and_mote(sim, make_body):
    attacker = make_body(50, 50, dna=SPIKE_DNA)
    mote = sim.factory.spawn_mote()
    mote.move_to(50 + attacker.spikes[0].offset.x1, 50)
    mote.velocity.speed = 0
    return attacker, mote


def test_spike_drains_target_and_feeds_attacker(sim, attacker_and_mote):
    attacker, mote = attacker_and_mote
    spike = attacker.spikes[0]
    assert spike.length == 14
    assert spike.angle == 0

    attacker_start = attacker.vitals.calories
    mote_start = mote.vitals.calories
    expected = math.floor(spike.drain * 0.1)

    sim.simulate_frame([attacker, mote], 0, 100)

    assert expected > 0
    assert mote.vitals.calories == mote_start - expected
    assert attacker.vitals.calories == pytest.approx(
        attacker_start + expected - attacker.vitals.upkeep * 0.1
    )
    assert _events_of(sim, SpikeDrained) == [SpikeDrained(100, attacker.id, mote.id, 0, expected)]


def test_dead_attacker_does_not_drain(sim, attacker_and_mote):
    attacker, mote = attacker_and_mote
    attacker.vitals.is_dead = True
    mote_start = mote.vitals.calories

    sim.simulate_frame([attacker, mote], 0, 100)

    assert mote.vitals.calories == mote_start
    assert _events_of(sim, SpikeDrained) == []


def test_eaten_mote_is_removed(sim, attacker_and_mote):
    attacker, mote = attacker_and_mote
    mote.vitals.calories = 1

    bodies = sim.simulate_frame([attacker, mote], 0, 100)

    assert mote.vitals.calories == 0
    assert mote not in bodies
    assert attacker in bodies
    assert _events_of(sim, BodyRemoved) == [BodyRemoved(100, mote.id)]


def test_spawned_motes_respect_the_minimum_mass(sim):
    mote = sim.factory.spawn_mote()
    assert mote.mass >= sim.config.min_mass
    assert mote.radius >= sim.config.meebas.min_radius


def test_short_spike_drains_a_meeba_its_tip_lands_in(sim, make_body):
    attacker = make_body(50, 50, dna=SPIKE_DNA)
    # Tip at (74, 50), 8 px inside the target
    target = make_body(82, 50)
    spike = attacker.spikes[0]
    assert spike.length < 2 * target.radius

    target_start = target.vitals.calories
    expected = math.floor(spike.drain * 0.1)

    sim.simulate_frame([attacker, target], 0, 100)

    assert _events_of(sim, SpikeDrained) == [SpikeDrained(100, attacker.id, target.id, 0, expected)]
    assert target.vitals.calories == pytest.approx(
        target_start - expected - target.vitals.upkeep * 0.1
    )


def test_short_spike_tip_just_outside_a_meeba_does_not_drain(sim, make_body):
    attacker = make_body(50, 50, dna=SPIKE_DNA)
    # Tip at (74, 50), 10.5 px from the target center
    target = make_body(74, 60.5)
    assert can_interact(attacker, target)
    target_start = target.vitals.calories

    sim.simulate_frame([attacker, target], 0, 100)

    assert _events_of(sim, SpikeDrained) == []
    assert target.vitals.calories == pytest.approx(target_start - target.vitals.upkeep * 0.1)


def test_short_spike_only_hits_with_its_tip(make_body):
    attacker = make_body(50, 50, dna=SPIKE_DNA)
    # 9 px beside the shaft, 13 px from the tip
    target = make_body(64, 59)
    assert not spike_touches(attacker, 0, target)


def test_long_spike_hits_along_its_whole_length(make_body):
    attacker = make_body(50, 50, dna=LONG_SPIKE_DNA)
    target = make_body(66, 59)
    assert attacker.spikes[0].length >= 2 * target.radius
    # 9 px beside the shaft, 17 px from the tip at (81, 50)
    assert spike_touches(attacker, 0, target)

    target.move_to(66, 61)
    assert not spike_touches(attacker, 0, target)


# ------------------------------------------------------------------ #
# Life cycle
# ------------------------------------------------------------------ #
def test_well_fed_body_splits_into_two_children(sim, make_body):
    parent = make_body(50, 50, angle=0.25)
    parent.vitals.calories = parent.vitals.spawns_at + 100

    bodies = sim.simulate_frame([parent], 0, 100)

    assert parent.is_inactive
    assert parent not in bodies
    assert len(bodies) == 2

    offset = sim.config.population.spawn_angle_offset
    angles = sorted(child.velocity.angle for child in bodies)
    assert angles == [pytest.approx(0.25 - offset), pytest.approx(0.25 + offset)]
    for child in bodies:
        assert child.dna == parent.dna
        assert child.vitals.calories == math.floor(parent.vitals.calories / 2)

    (event,) = _events_of(sim, BodyReproduced)
    assert event.parent_id == parent.id
    assert set(event.child_ids) == {child.id for child in bodies}


def test_dead_body_does_not_reproduce(sim, make_body):
    corpse = make_body(50, 50)
    corpse.vitals.calories = corpse.vitals.spawns_at + 100
    corpse.vitals.is_dead = True

    bodies = sim.simulate_frame([corpse], 0, 100)
    assert bodies == [corpse]


def test_starving_body_dies_and_stays_as_a_corpse(sim, make_body):
    body = make_body(50, 50)
    body.vitals.calories = body.vitals.dies_at + 1

    bodies = sim.simulate_frame([body], 0, 100)

    assert body.vitals.is_dead
    assert bodies == [body]
    assert _events_of(sim, BodyDied) == [BodyDied(100, body.id)]

    # Corpses no longer burn calories
    calories = body.vitals.calories
    sim.simulate_frame(bodies, 100, 200)
    assert body.vitals.calories == calories
    assert _events_of(sim, BodyDied) == []


# ------------------------------------------------------------------ #
# Motes
# ------------------------------------------------------------------ #
def test_motes_spawn_at_the_configured_rate():
    config = (
        SimulationConfig()
        .updated("tank.width", 1000)
        .updated("tank.height", 1000)
        .updated("motes.rate", 10.0)
    )
    sim = Simulation(config, seed=3)
    assert config.mote_capacity == 158

    bodies = sim.simulate_frame([], 0, 100)
    assert len(bodies) == 1
    assert bodies[0].is_mote
    assert _events_of(sim, MotesSpawned) == [MotesSpawned(100, 1)]

    bodies = _run(sim, bodies, 5)
    assert len(bodies) == 6


def test_mote_spawning_stops_at_capacity():
    config = (
        SimulationConfig()
        .updated("tank.width", 1000)
        .updated("tank.height", 1000)
        .updated("motes.rate", 10_000.0)
    )
    sim = Simulation(config, seed=3)

    bodies = sim.simulate_frame([], 0, 100)
    assert len(bodies) == config.mote_capacity

    sim.simulate_frame(bodies, 100, 200)
    assert _events_of(sim, MotesSpawned) == []


def test_small_tank_holds_a_single_mote(small_config):
    config = small_config.updated("motes.rate", 100.0)
    sim = Simulation(config, seed=3)
    assert config.mote_capacity == 1
    assert len(sim.simulate_frame([], 0, 100)) == 1


# ------------------------------------------------------------------ #
# Setup
# ------------------------------------------------------------------ #
def test_separate_bodies_leaves_spread_out_bodies_alone(sim, make_body):
    bodies = [make_body(20, 20), make_body(75, 75), make_body(20, 75)]
    positions = [(body.x, body.y) for body in bodies]

    sim.separate_bodies(bodies)

    assert [(body.x, body.y) for body in bodies] == positions


def test_separate_bodies_moves_overlapping_bodies_apart(small_config):
    config = small_config.updated("tank.width", 1000).updated("tank.height", 1000)
    sim = Simulation(config, seed=8)
    bodies = [sim.factory.init_body(b"\xf0\x00") for _ in range(5)]
    for body in bodies:
        body.move_to(500, 500)

    sim.separate_bodies(bodies)

    for body in bodies:
        for other in bodies:
            assert body is other or not is_overlapping(body, other)


def test_separate_bodies_gives_up_quietly_when_the_tank_is_full(sim):
    bodies = [sim.factory.init_body(b"\xf0\x00") for _ in range(30)]
    for body in bodies:
        body.move_to(50, 50)

    sim.separate_bodies(bodies)

    assert len(bodies) == 30


def test_populate_fills_the_tank():
    config = SimulationConfig().updated("population.bodies", 12)
    sim = Simulation(config, seed="tank")
    bodies = sim.populate()

    assert len(bodies) == 12
    assert sim.bodies is bodies
    assert all(not body.is_mote for body in bodies)


def test_same_seed_same_history():
    config = SimulationConfig().updated("population.bodies", 15)

    def history(seed):
        sim = Simulation(config, seed=seed)
        sim.populate()
        for tick in range(0, 40 * 16, 16):
            sim.step(tick)
        return [(body.id, body.x, body.y, body.vitals.calories) for body in sim.bodies]

    assert history(7) == history(7)
    assert history(7) != history(8)


def test_long_run_stays_consistent():
    config = (
        SimulationConfig()
        .updated("tank.width", 400)
        .updated("tank.height", 400)
        .updated("population.bodies", 15)
    )
    sim = Simulation(config, seed=99)
    sim.populate()

    for tick in range(0, 200 * 50, 50):
        bodies = sim.step(tick)
        assert len({body.id for body in bodies}) == len(bodies)
        for body in bodies:
            assert body.vitals.calories > 0
            assert not body.is_inactive
            assert math.isfinite(body.x) and math.isfinite(body.y)
