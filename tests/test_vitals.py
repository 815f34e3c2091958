import math

import pytest

from meeba_tank.config import SimulationConfig
from meeba_tank.meebas.spikes import Spike
from meeba_tank.meebas.vitals import (
    Vitals,
    drain_calories,
    feed_calories,
    get_upkeep,
    init_vitals,
    set_calories,
)


@pytest.fixture()
def config():
    return SimulationConfig()


def test_init_vitals_scales_thresholds_with_mass(config):
    vitals = init_vitals(400, [], config)

    assert vitals.calories == 600
    assert vitals.dies_at == 200
    assert vitals.spawns_at == 1000
    assert vitals.dies_at < vitals.calories < vitals.spawns_at
    assert not vitals.is_dead


def test_upkeep_grows_with_mass_and_spikes(config):
    plain = get_upkeep(400, [], config)
    assert plain == math.floor(400 ** 0.66 * config.temperature_factor)

    spiky = get_upkeep(400, [Spike(length=20, angle=0, drain=1)], config)
    longer = get_upkeep(400, [Spike(length=60, angle=0, drain=1)], config)
    assert plain < spiky < longer

    mass_cost = 400 ** 0.66
    spike_cost = (8 + 20 * 0.25) / mass_cost * 16
    assert spiky == math.floor((mass_cost + spike_cost) * config.temperature_factor)


def test_upkeep_stops_when_the_tank_is_frozen(config):
    frozen = config.updated("population.temperature", 0.0)
    assert get_upkeep(400, [Spike(length=20, angle=0, drain=1)], frozen) == 0


def test_upkeep_of_massless_body_is_zero(config):
    assert get_upkeep(0, [], config) == 0


def test_drain_returns_what_was_removed():
    vitals = Vitals(calories=100, upkeep=0, dies_at=50, spawns_at=250)

    assert drain_calories(vitals, 30) == 30
    assert vitals.calories == 70
    assert not vitals.is_dead

    assert drain_calories(vitals, 500) == 70
    assert vitals.calories == 0
    assert vitals.is_dead


def test_drain_ignores_negative_amounts():
    vitals = Vitals(calories=100, upkeep=0, dies_at=50, spawns_at=250)
    assert drain_calories(vitals, -10) == 0
    assert vitals.calories == 100


def test_death_is_permanent():
    vitals = Vitals(calories=60, upkeep=0, dies_at=50, spawns_at=250)

    drain_calories(vitals, 20)
    assert vitals.is_dead

    feed_calories(vitals, 500)
    assert vitals.calories == 540
    assert vitals.is_dead

    set_calories(vitals, 100)
    assert vitals.is_dead


def test_set_calories_checks_death():
    vitals = Vitals(calories=60, upkeep=0, dies_at=50, spawns_at=250)
    set_calories(vitals, 49)
    assert vitals.is_dead


def test_feeding_keeps_a_live_body_alive():
    vitals = Vitals(calories=60, upkeep=0, dies_at=50, spawns_at=250)
    feed_calories(vitals, 40)
    assert vitals.calories == 100
    assert not vitals.is_dead
