"""Command-line harness: runs a tank headless or in a pygame window."""
from __future__ import annotations

import argparse
import logging
from typing import Sequence

from .config import SimulationConfig
from .simulation import Simulation
from .stats import PopulationStats

logger = logging.getLogger(__name__)

STATS_INTERVAL_MS = 5000


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Meeba Tank - a closed 2D ecosystem")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: random)")
    parser.add_argument("--bodies", type=int, default=None, help="Starting meeba count")
    parser.add_argument("--width", type=int, default=None, help="Tank width in pixels")
    parser.add_argument("--height", type=int, default=None, help="Tank height in pixels")
    parser.add_argument("--temperature", type=float, default=None, help="Ambient temperature")
    parser.add_argument("--mutate", action="store_true", help="Mutate genomes on reproduction")
    parser.add_argument("--headless", action="store_true", help="Run without a window")
    parser.add_argument("--frames", type=int, default=1000, help="Frames to run when headless")
    parser.add_argument("--frame-ms", type=float, default=16.0, help="Frame length when headless")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SimulationConfig:
    config = SimulationConfig()
    overrides = {
        "population.bodies": args.bodies,
        "tank.width": args.width,
        "tank.height": args.height,
        "population.temperature": args.temperature,
        "genome.mutation.enabled": True if args.mutate else None,
    }
    for path, value in overrides.items():
        if value is not None:
            config = config.updated(path, value)
    return config


def _log_snapshot(stats: PopulationStats, now: float, sim: Simulation) -> None:
    snapshot = stats.update(now, sim.bodies)
    logger.info(
        "t=%.1fs meebas=%d motes=%d corpses=%d mean mass=%.0f mean spikes=%.1f",
        now / 1000,
        snapshot.meebas,
        snapshot.motes,
        snapshot.corpses,
        snapshot.size.mean,
        snapshot.spike_count.mean,
    )


def run_headless(sim: Simulation, frames: int, frame_ms: float) -> PopulationStats:
    stats = PopulationStats()
    now = 0.0
    last_report = 0.0
    sim.step(now)

    for _ in range(frames):
        now += frame_ms
        sim.step(now)
        if now - last_report >= STATS_INTERVAL_MS:
            _log_snapshot(stats, now, sim)
            last_report = now

    _log_snapshot(stats, now, sim)
    return stats


def run_windowed(sim: Simulation) -> None:
    import pygame

    from .view import TankView

    pygame.init()
    view = TankView(sim.config.tank.width, sim.config.tank.height)
    clock = pygame.time.Clock()
    stats = PopulationStats()
    last_report = 0.0
    paused = False

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    running = False
                elif event.key == pygame.K_p:
                    paused = not paused

        clock.tick(60)
        now = float(pygame.time.get_ticks())
        if paused:
            # Drop the paused time instead of replaying it as one long frame
            sim.reset_clock(now)
        else:
            sim.step(now)

        view.draw(sim.bodies, now, sim.events)
        pygame.display.flip()

        if now - last_report >= STATS_INTERVAL_MS:
            _log_snapshot(stats, now, sim)
            last_report = now

    pygame.quit()


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    sim = Simulation(build_config(args), seed=args.seed)
    sim.populate()

    if args.headless:
        run_headless(sim, args.frames, args.frame_ms)
    else:
        run_windowed(sim)
