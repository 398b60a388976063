# solver.py
"""
Explicit mass-spring integrator.

One step = gravity + spring + damper forces, semi-implicit Euler
(velocity first, then position with the new velocity), then collision
against the cube [-bounds, bounds]^3.
"""

from numba import njit, prange  # type: ignore
import numpy as np

from jellystar.config import SimulationParams, check_time_step
from jellystar.mesh.topology import SpringSet
from jellystar.types import POSITIONS

# ===============================
# PHYSICS KERNELS
# ===============================


@njit(fastmath=True, cache=True)  # type: ignore
def accumulate_forces(
    pos: np.ndarray,
    vel: np.ndarray,
    spring_i: np.ndarray,
    spring_j: np.ndarray,
    rest_lengths: np.ndarray,
    stiffness: float,
    damping: float,
    mass: float,
    gx: float,
    gy: float,
    gz: float,
) -> np.ndarray:
    """
    Total force per particle.

    The damper acts on the full relative velocity of the two endpoints, not
    just its component along the spring, so it also damps sideways motion.
    Each spring adds exactly the negation of what it adds to its other end.
    """
    n = pos.shape[0]
    forces = np.empty((n, 3))
    for i in range(n):
        forces[i, 0] = gx * mass
        forces[i, 1] = gy * mass
        forces[i, 2] = gz * mass

    for s in range(len(spring_i)):
        a = spring_i[s]
        b = spring_j[s]

        dx = pos[b, 0] - pos[a, 0]
        dy = pos[b, 1] - pos[a, 1]
        dz = pos[b, 2] - pos[a, 2]

        dist = np.sqrt(dx * dx + dy * dy + dz * dz)
        fx = 0.0
        fy = 0.0
        fz = 0.0
        if dist > 0.0:
            magnitude = stiffness * (dist - rest_lengths[s])
            fx = dx / dist * magnitude
            fy = dy / dist * magnitude
            fz = dz / dist * magnitude

        fx += (vel[b, 0] - vel[a, 0]) * damping
        fy += (vel[b, 1] - vel[a, 1]) * damping
        fz += (vel[b, 2] - vel[a, 2]) * damping

        forces[a, 0] += fx
        forces[a, 1] += fy
        forces[a, 2] += fz
        forces[b, 0] -= fx
        forces[b, 1] -= fy
        forces[b, 2] -= fz

    return forces


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def integrate_particles(
    pos: np.ndarray,
    vel: np.ndarray,
    forces: np.ndarray,
    mass: float,
    dt: float,
) -> None:
    """v += F/m * dt, then x += v * dt."""
    for i in prange(len(pos)):
        for k in range(3):
            vel[i, k] += forces[i, k] / mass * dt
            pos[i, k] += vel[i, k] * dt


@njit(cache=True, parallel=True)  # type: ignore
def resolve_collisions(
    pos: np.ndarray,
    vel: np.ndarray,
    bounds: float,
    restitution: float,
) -> None:
    """Clamp into the box; each violated axis bounces independently."""
    for i in prange(len(pos)):
        for k in range(3):
            if pos[i, k] < -bounds:
                pos[i, k] = -bounds
                vel[i, k] *= -restitution
            elif pos[i, k] > bounds:
                pos[i, k] = bounds
                vel[i, k] *= -restitution


@njit(fastmath=True, cache=True)  # type: ignore
def kinetic_energy(vel: np.ndarray, mass: float) -> float:
    total = 0.0
    for i in range(len(vel)):
        total += 0.5 * mass * (vel[i, 0] ** 2 + vel[i, 1] ** 2 + vel[i, 2] ** 2)
    return total


# ===============================
# STEP
# ===============================


def spring_forces(
    positions: POSITIONS,
    velocities: POSITIONS,
    springs: SpringSet,
    params: SimulationParams,
) -> POSITIONS:
    gx, gy, gz = params.gravity
    return accumulate_forces(
        positions,
        velocities,
        springs.p0,
        springs.p1,
        springs.rest_lengths,
        float(params.stiffness),
        float(params.damping * params.damping_scale),
        float(params.particle_mass),
        gx,
        gy,
        gz,
    )


def integrate(
    positions: POSITIONS,
    velocities: POSITIONS,
    springs: SpringSet,
    params: SimulationParams,
    dt: float,
) -> None:
    """Advance ``positions``/``velocities`` in place by one step of ``dt`` seconds."""
    dt = check_time_step(dt)
    forces = spring_forces(positions, velocities, springs, params)
    integrate_particles(positions, velocities, forces, float(params.particle_mass), dt)
    resolve_collisions(positions, velocities, float(params.bounds), float(params.restitution))
