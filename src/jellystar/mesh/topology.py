# topology.py
"""Spring network derived from mesh edges."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import math
from typing import NamedTuple

import numpy as np

from jellystar.models import Spring
from jellystar.types import INDEX, POSITIONS


def build_springs(faces: Iterable[Sequence[int]], positions: POSITIONS) -> list[Spring]:
    """
    One spring per undirected mesh edge.

    Edges are visited face by face, corner to next corner (wrapping), so the
    result order is deterministic for a given mesh. Rest lengths are the
    current distances between the endpoints; coincident endpoints give a
    zero rest length, which is still a valid spring.
    """
    springs: list[Spring] = []
    added_springs: set[tuple[int, int]] = set()

    for f in faces:
        for i in range(len(f)):
            p0 = f[i]
            p1 = f[(i + 1) % len(f)]
            pair = (p0, p1) if p0 < p1 else (p1, p0)
            if pair in added_springs:
                continue
            a, b = positions[p0], positions[p1]
            rest = math.sqrt((b[0] - a[0]) ** 2 + (b[1] - a[1]) ** 2 + (b[2] - a[2]) ** 2)
            springs.append(Spring(p0, p1, rest))
            added_springs.add(pair)

    return springs


class SpringSet(NamedTuple):
    """Springs packed into parallel arrays for the integrator kernels."""

    p0: INDEX
    p1: INDEX
    rest_lengths: POSITIONS

    @classmethod
    def from_springs(cls, springs: Sequence[Spring]) -> SpringSet:
        p0 = np.array([s.p0 for s in springs], dtype=np.int32)
        p1 = np.array([s.p1 for s in springs], dtype=np.int32)
        rest = np.array([s.rest_length for s in springs], dtype=np.float64)
        for arr in (p0, p1, rest):
            arr.setflags(write=False)
        return cls(p0, p1, rest)

    @property
    def count(self) -> int:
        return len(self.p0)
