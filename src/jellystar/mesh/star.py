# star.py
"""
Procedural star body.

Generates the default soft body as OBJ text: a flat star outline extruded
along z, centered at the origin so the undeformed shape doubles as the
model-space reference pose used while settling.
"""

import math

from jellystar.mesh.obj import ObjMesh


def generate_star(
    points: int = 5,
    outer_radius: float = 0.5,
    inner_radius: float = 0.22,
    depth: float = 0.2,
) -> str:
    """
    Build an extruded star mesh.

    Layout:
    - front outline (z = +depth/2): 2 * points vertices alternating tip/notch,
      first tip pointing up
    - back outline (z = -depth/2): same

    Each cap is one triangle per tip plus the convex polygon through the
    notches; sides are quads. No vertex joins more than five edges, which
    keeps the default stiffness/damping stable at a 16 ms step.

    Args:
        points: Number of star tips (>= 3)
        outer_radius: Distance of the tips from the axis
        inner_radius: Distance of the notches from the axis
        depth: Thickness along z

    Returns:
        OBJ text with ``v`` and ``f`` records
    """
    if points < 3:
        raise ValueError(f"a star needs at least 3 points, got {points}")
    if not 0 < inner_radius < outer_radius:
        raise ValueError("expected 0 < inner_radius < outer_radius")

    ring = 2 * points
    half = depth / 2.0
    lines = [f"# star: {points} points, {2 * ring} vertices", "o star"]

    # 1. Outlines
    for z in (half, -half):
        for s in range(ring):
            theta = math.pi / 2 + (2 * math.pi * s) / ring
            r = outer_radius if s % 2 == 0 else inner_radius
            lines.append(f"v {r * math.cos(theta):.6f} {r * math.sin(theta):.6f} {z:.6f}")

    # OBJ indices are 1-based
    def front(s: int) -> int:
        return 1 + s % ring

    def back(s: int) -> int:
        return 1 + ring + s % ring

    notches = range(1, ring, 2)

    # 2. Front cap, counter-clockwise seen from +z
    for s in range(0, ring, 2):
        lines.append(f"f {front(s - 1)} {front(s)} {front(s + 1)}")
    lines.append("f " + " ".join(str(front(s)) for s in notches))

    # 3. Back cap, reversed winding
    for s in range(0, ring, 2):
        lines.append(f"f {back(s + 1)} {back(s)} {back(s - 1)}")
    lines.append("f " + " ".join(str(back(s)) for s in reversed(notches)))

    # 4. Side quads
    for s in range(ring):
        lines.append(f"f {front(s)} {back(s)} {back(s + 1)} {front(s + 1)}")

    return "\n".join(lines) + "\n"


def star_mesh(**kwargs: float) -> ObjMesh:
    """Parsed ``generate_star`` output."""
    return ObjMesh.parse(generate_star(**kwargs))  # type: ignore[arg-type]
