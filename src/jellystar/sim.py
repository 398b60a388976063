# sim.py
"""
Simulation controller.

Owns the mesh, the springs and the per-particle state, and advances them
one fixed tick per ``step`` call. The caller paces the ticks (one per
rendered frame); nothing here runs on a timer or a thread. Not safe to
call from more than one thread at a time.
"""

from __future__ import annotations

from enum import Enum
import logging

import numpy as np

from jellystar.config import SimulationParams, check_time_step
from jellystar.errors import MeshError, SimulationError
from jellystar.mesh.obj import ObjMesh, RenderBuffers
from jellystar.mesh.topology import SpringSet, build_springs
from jellystar.models import Spring
from jellystar.settle import SettleState, advance_settle, begin_settle, should_settle
from jellystar.solver import integrate, kinetic_energy
from jellystar.types import POSITIONS

logger = logging.getLogger(__name__)


class SimulationMode(Enum):
    DYNAMIC = "dynamic"
    SETTLING = "settling"
    STOPPED = "stopped"


class Simulation:
    def __init__(self, params: SimulationParams | None = None) -> None:
        self._params = params if params is not None else SimulationParams()
        self._params.validate()

        # Immutable topology tier
        self.mesh: ObjMesh | None = None
        self.spring_list: list[Spring] = []
        self.springs = SpringSet.from_springs([])

        # Per-step state tier
        self.positions: POSITIONS = np.zeros((0, 3))
        self.velocities: POSITIONS = np.zeros((0, 3))
        self.normals: POSITIONS = np.zeros((0, 3))
        self._buffers: RenderBuffers | None = None

        self._running = False
        self._settle: SettleState | None = None
        self.is_exploded = False
        self.steps = 0

    # ------------------------
    # Configuration
    # ------------------------

    @property
    def params(self) -> SimulationParams:
        return self._params

    @params.setter
    def params(self, value: SimulationParams) -> None:
        value.validate()
        self._params = value

    # ------------------------
    # Mesh / reset
    # ------------------------

    def load_mesh(self, description: str | ObjMesh) -> None:
        """Replace the body with a new mesh and reset all derived state."""
        mesh = description if isinstance(description, ObjMesh) else ObjMesh.parse(description)
        if len(mesh.vertices) == 0:
            raise MeshError("mesh has no vertices")
        self.mesh = mesh
        self.reset()
        logger.info(
            f"Loaded mesh: {len(mesh.vertices)} particles, {len(mesh.faces)} faces, "
            f"{len(mesh.triangles)} triangles, {self.springs.count} springs"
        )

    def reset(self) -> None:
        """Back to the undeformed mesh at rest; stays stopped until ``start``."""
        mesh = self._require_mesh()
        self.stop()
        self._settle = None
        self.is_exploded = False
        self.steps = 0

        self.positions = np.array(mesh.vertices, dtype=np.float64)
        self.velocities = np.zeros_like(self.positions)

        self.spring_list = build_springs(mesh.faces, self.positions)
        self.springs = SpringSet.from_springs(self.spring_list)

        self._refresh_outputs()
        logger.debug("Simulation reset")

    # ------------------------
    # Run flag
    # ------------------------

    def start(self) -> None:
        self._require_mesh()
        if not self._running:
            self._running = True
            logger.info("Simulation started")

    def stop(self) -> None:
        if self._running:
            self._running = False
            logger.info("Simulation stopped")

    def toggle(self) -> bool:
        """Flip the run flag; returns the new value."""
        if self._running:
            self.stop()
        else:
            self.start()
        return self._running

    def is_running(self) -> bool:
        return self._running

    @property
    def mode(self) -> SimulationMode:
        if not self._running:
            return SimulationMode.STOPPED
        if self._settle is not None:
            return SimulationMode.SETTLING
        return SimulationMode.DYNAMIC

    @property
    def settle_state(self) -> SettleState | None:
        return self._settle

    # ------------------------
    # Step
    # ------------------------

    def step(self, dt: float | None = None) -> RenderBuffers:
        """
        Advance one tick and return fresh render buffers.

        Does nothing (and returns the current buffers) while stopped. The
        returned arrays are valid until the next ``step``/``reset``.
        """
        mesh = self._require_mesh()
        if not self._running:
            return self.buffers

        dt = self._params.time_step if dt is None else check_time_step(dt)

        if self._settle is not None:
            if advance_settle(self._settle, self.positions, self._params, dt):
                logger.info(f"Settled after {self.steps + 1} steps")
                self._settle = None
                self.stop()
        else:
            integrate(self.positions, self.velocities, self.springs, self._params, dt)
            if not np.isfinite(self.positions).all():
                self.is_exploded = True
                logger.warning(
                    f"Simulation became unstable at step {self.steps + 1} "
                    f"(stiffness={self._params.stiffness}, dt={dt}); stopping"
                )
                self.stop()
            elif should_settle(self.positions, self.velocities, self._params):
                self._settle = begin_settle(self.positions, mesh.vertices)

        self.steps += 1
        self._refresh_outputs()
        return self.buffers

    # ------------------------
    # Outputs / diagnostics
    # ------------------------

    @property
    def buffers(self) -> RenderBuffers:
        if self._buffers is None:
            raise SimulationError("no mesh loaded")
        return self._buffers

    def kinetic_energy(self) -> float:
        if len(self.velocities) == 0:
            return 0.0
        return float(kinetic_energy(self.velocities, float(self._params.particle_mass)))

    def lowest_point(self) -> float:
        return float(self.positions[:, 1].min()) if len(self.positions) else float("nan")

    def _refresh_outputs(self) -> None:
        mesh = self._require_mesh()
        self.normals = mesh.compute_normals(self.positions)
        self._buffers = mesh.vertex_buffers(self.positions, self.normals)

    def _require_mesh(self) -> ObjMesh:
        if self.mesh is None:
            raise SimulationError("no mesh loaded; call load_mesh() first")
        return self.mesh
