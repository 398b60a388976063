"""Command line entry point: ``python -m jellystar``."""

import argparse
import logging
import sys

from jellystar.errors import JellystarError
from jellystar.logging_config import setup_logging
from jellystar.mesh.obj import ObjMesh
from jellystar.mesh.star import generate_star
from jellystar.sim import Simulation

logger = logging.getLogger("jellystar")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="jellystar", description="Soft-body star drop simulation")
    parser.add_argument("--obj", help="OBJ file to simulate (default: generated star)")
    parser.add_argument("--headless", action="store_true", help="run without a window")
    parser.add_argument("--steps", type=int, default=2000, help="step limit in headless mode")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", help="also write the log to this file")
    return parser.parse_args(argv)


def run_headless(sim: Simulation, max_steps: int) -> None:
    sim.start()
    while sim.is_running() and sim.steps < max_steps:
        sim.step()

    logger.info(
        f"Finished after {sim.steps} steps: mode={sim.mode.value}, "
        f"kinetic energy={sim.kinetic_energy():.6f}, lowest y={sim.lowest_point():.4f}"
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        sim = Simulation()
        if args.obj:
            sim.load_mesh(ObjMesh.from_file(args.obj))
        else:
            sim.load_mesh(generate_star())

        if args.headless:
            run_headless(sim, args.steps)
        else:
            from jellystar.viewer import run_viewer

            run_viewer(sim)
    except (JellystarError, OSError) as exc:
        logger.error(f"{exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
