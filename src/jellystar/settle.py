# settle.py
"""
Settle phase.

Once the body is nearly at rest on the floor, force simulation is replaced
by a rigid blend: the undeformed model-space shape is placed at the current
center and rotated from its estimated orientation toward a level pose that
keeps only the heading (yaw). When the remaining angle drops below
``settle_epsilon`` the blend is done.

The orientation estimate uses three landmark particles (first, last,
middle) rather than a best-fit frame; the resting pose depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math

import numpy as np

from jellystar.config import SimulationParams
from jellystar.models import Quaternion, Vector3
from jellystar.solver import kinetic_energy
from jellystar.types import EULER, POSITIONS

logger = logging.getLogger(__name__)


@dataclass
class SettleState:
    center: Vector3
    orientation: Quaternion
    target: Quaternion
    # Undeformed model-space positions, re-posed every settle step
    reference: POSITIONS

    def remaining_angle(self) -> float:
        return self.orientation.angle_to(self.target)


def should_settle(positions: POSITIONS, velocities: POSITIONS, params: SimulationParams) -> bool:
    """Low kinetic energy and some particle at (or within tolerance of) the floor."""
    energy = kinetic_energy(velocities, float(params.particle_mass))
    lowest_y = float(positions[:, 1].min())
    return energy < params.energy_threshold and lowest_y <= params.ground_threshold


def euler_from_basis(x_axis: Vector3, y_axis: Vector3, z_axis: Vector3) -> EULER:
    """
    Y-X-Z Euler angles ``(x, y, z)`` of the matrix with columns x/y/z axis.

    The axes are used as given; a basis that is not orthonormal still yields
    defined angles.
    """
    m11, m13 = x_axis.x, z_axis.x
    m21, m22, m23 = x_axis.y, y_axis.y, z_axis.y
    m31, m33 = x_axis.z, z_axis.z

    pitch = math.asin(-min(max(m23, -1.0), 1.0))
    if abs(m23) < 0.9999999:
        yaw = math.atan2(m13, m33)
        roll = math.atan2(m21, m22)
    else:
        # Gimbal lock: fold roll into yaw
        yaw = math.atan2(-m31, m11)
        roll = 0.0
    return pitch, yaw, roll


def estimate_transform(positions: POSITIONS) -> tuple[Vector3, EULER]:
    """Center of the particles and a landmark-based orientation estimate."""
    n = len(positions)
    center = Vector3(*positions.mean(axis=0))

    p0 = Vector3(*positions[0]) - center
    p1 = Vector3(*positions[n - 1]) - center
    p2 = Vector3(*positions[n // 2]) - center

    z_axis = (p1 - p0).cross(p2 - p0).normalize()
    x_axis = p0.normalize()
    y_axis = z_axis.cross(x_axis).normalize()

    return center, euler_from_basis(x_axis, y_axis, z_axis)


def begin_settle(positions: POSITIONS, reference: POSITIONS) -> SettleState:
    center, rotation = estimate_transform(positions)
    _, yaw, _ = rotation
    state = SettleState(
        center=center,
        orientation=Quaternion.from_euler(rotation),
        target=Quaternion.from_euler((0.0, yaw, 0.0)),
        reference=np.array(reference, dtype=np.float64),
    )
    logger.info(
        f"Settling around ({center.x:.3f}, {center.y:.3f}, {center.z:.3f}), "
        f"{math.degrees(state.remaining_angle()):.1f} deg to level"
    )
    return state


def advance_settle(
    state: SettleState, positions: POSITIONS, params: SimulationParams, dt: float
) -> bool:
    """
    One blend step: rotate toward the target and re-pose ``positions`` in place.
    Coordinates are clamped into the collision box; velocities are untouched.

    Returns:
        True once the remaining angle is below ``params.settle_epsilon``
    """
    fraction = min(params.settle_speed * dt, 1.0)
    state.orientation = state.orientation.slerp(state.target, fraction)

    rotation = np.array(state.orientation.to_matrix(), dtype=np.float64)
    positions[:] = state.reference @ rotation.T + np.array(tuple(state.center))
    # The rigid pose may poke through the box; positions stay inside it
    np.clip(positions, -params.bounds, params.bounds, out=positions)

    remaining = state.remaining_angle()
    logger.debug(f"Settle step: {remaining:.4f} rad remaining")
    return remaining < params.settle_epsilon
