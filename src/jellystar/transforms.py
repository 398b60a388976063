# transforms.py
"""Row-major 4x4 view helpers for the preview window (transpose before GL upload)."""

import numpy as np

from jellystar.types import MATRIX


def perspective(fov_y: float, aspect: float, near: float, far: float) -> MATRIX:
    f = 1.0 / np.tan(fov_y * 0.5)
    return np.array(
        [
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / (near - far), (2.0 * far * near) / (near - far)],
            [0.0, 0.0, -1.0, 0.0],
        ],
        dtype=np.float32,
    )


def orbit_projection(aspect: float, distance: float) -> MATRIX:
    """60 degree perspective whose clip range brackets the body at ``distance`` by +-10."""
    return perspective(np.radians(60.0), aspect, max(distance - 10.0, 0.1), distance + 10.0)


def orbit_model_view(distance: float, pitch: float, yaw: float) -> MATRIX:
    """Push the scene ``distance`` units down -z after yawing, then pitching, it."""
    cx, sx = np.cos(pitch), np.sin(pitch)
    cy, sy = np.cos(yaw), np.sin(yaw)

    rot_x = np.array([[1, 0, 0, 0], [0, cx, -sx, 0], [0, sx, cx, 0], [0, 0, 0, 1]], dtype=np.float32)
    rot_y = np.array([[cy, 0, sy, 0], [0, 1, 0, 0], [-sy, 0, cy, 0], [0, 0, 0, 1]], dtype=np.float32)
    move = np.eye(4, dtype=np.float32)
    move[2, 3] = -distance

    return move @ rot_y @ rot_x


def normal_matrix(model_view: MATRIX) -> MATRIX:
    """Inverse-transpose of the upper 3x3; falls back to the 3x3 itself when singular."""
    upper = model_view[:3, :3].astype(np.float64)
    try:
        return np.linalg.inv(upper).T.astype(np.float32)
    except np.linalg.LinAlgError:
        return upper.astype(np.float32)
