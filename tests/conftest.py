import os
import sys
from pathlib import Path

# Ensure pygame can run headlessly during tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest

# Ensure the repository root is importable when tests are invoked from arbitrary
# working directories (e.g., running a single file from within ``tests/``).
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

try:
    import pygame
except ModuleNotFoundError:  # pragma: no cover - handled via skip below
    pygame = None


@pytest.fixture()
def headless_pygame():
    """Provide a headless pygame instance for tests that need it."""
    if pygame is None:
        pytest.skip("pygame is required for this test")

    if not pygame.get_init():
        pygame.init()
    pygame.display.init()
    yield pygame
    pygame.quit()


@pytest.fixture()
def small_config():
    """A 100x100 tank with mote spawning switched off."""
    pytest.importorskip("numpy")
    from meeba_tank.config import SimulationConfig

    return (
        SimulationConfig()
        .updated("tank.width", 100)
        .updated("tank.height", 100)
        .updated("motes.rate", 0.0)
    )


@pytest.fixture()
def sim(small_config):
    from meeba_tank.simulation import Simulation

    return Simulation(small_config, seed=1234)


@pytest.fixture()
def make_body(sim):
    """Build a spikeless minimum-mass meeba (or one from ``dna``) at a given spot."""

    def _make(x, y, angle=0.0, speed=0.0, dna=b"\xf0\x00"):
        body = sim.factory.init_body(bytes(dna))
        body.move_to(x, y)
        body.velocity.angle = angle
        body.velocity.speed = speed
        return body

    return _make
