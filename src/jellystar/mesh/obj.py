# obj.py
"""
OBJ-subset mesh model.

Parsing is permissive: unknown records, comments and blank lines are
skipped, missing ``/``-separated fields in a face corner are simply left
out, and faces with fewer than three corners are dropped. Only input that
would later turn into NaNs or out-of-range indices is rejected.

Topology is fixed once an ``ObjMesh`` exists. Particle positions and normals
live outside the mesh and are passed in by the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NamedTuple

from numba import njit  # type: ignore
import numpy as np

from jellystar.errors import MeshError
from jellystar.types import BUFFER, INDEX, POSITIONS

logger = logging.getLogger(__name__)


class RenderBuffers(NamedTuple):
    """Flat per-triangle-corner arrays, ready for a vertex buffer upload."""

    positions: BUFFER
    normals: BUFFER
    tex_coords: BUFFER

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3


# ===============================
# KERNELS
# ===============================


@njit(fastmath=True, cache=True)  # type: ignore
def accumulate_normals(pos: np.ndarray, face_offsets: np.ndarray, face_indices: np.ndarray) -> np.ndarray:
    """Smooth vertex normals: unit face normal of each face summed onto its corners, renormalized."""
    normals = np.zeros((pos.shape[0], 3))

    for f in range(len(face_offsets) - 1):
        start = face_offsets[f]
        end = face_offsets[f + 1]
        i0 = face_indices[start]
        i1 = face_indices[start + 1]
        i2 = face_indices[start + 2]

        ux = pos[i1, 0] - pos[i0, 0]
        uy = pos[i1, 1] - pos[i0, 1]
        uz = pos[i1, 2] - pos[i0, 2]
        vx = pos[i2, 0] - pos[i0, 0]
        vy = pos[i2, 1] - pos[i0, 1]
        vz = pos[i2, 2] - pos[i0, 2]

        nx = uy * vz - uz * vy
        ny = uz * vx - ux * vz
        nz = ux * vy - uy * vx

        length = np.sqrt(nx * nx + ny * ny + nz * nz)
        if length > 0.0:
            nx /= length
            ny /= length
            nz /= length

        for k in range(start, end):
            v = face_indices[k]
            normals[v, 0] += nx
            normals[v, 1] += ny
            normals[v, 2] += nz

    for i in range(len(normals)):
        length = np.sqrt(normals[i, 0] ** 2 + normals[i, 1] ** 2 + normals[i, 2] ** 2)
        if length > 0.0:
            normals[i, 0] /= length
            normals[i, 1] /= length
            normals[i, 2] /= length

    return normals


# ===============================
# TOPOLOGY HELPERS
# ===============================


def fan_triangulate(faces: tuple[tuple[int, ...], ...]) -> INDEX:
    """(f[0], f[i+1], f[i+2]) for every face, in face order; n-2 triangles per n-gon."""
    triangles = [(f[0], f[j + 1], f[j + 2]) for f in faces for j in range(len(f) - 2)]
    return np.array(triangles, dtype=np.int32).reshape(-1, 3)


def face_table(faces: tuple[tuple[int, ...], ...]) -> tuple[INDEX, INDEX]:
    """Flatten ragged faces into (offsets, indices) arrays the kernels can walk."""
    offsets = np.zeros(len(faces) + 1, dtype=np.int32)
    offsets[1:] = np.cumsum([len(f) for f in faces])
    indices = np.array([i for f in faces for i in f], dtype=np.int32)
    return offsets, indices


def _parse_floats(fields: list[str], line_no: int, tag: str) -> list[float]:
    if len(fields) < 3:
        raise MeshError(f"'{tag}' record needs 3 coordinates, got {len(fields)}", line_no)
    try:
        return [float(x) for x in fields[:3]]
    except ValueError as exc:
        raise MeshError(f"bad '{tag}' coordinate: {exc}", line_no) from exc


def _resolve_index(token: str, count: int, line_no: int) -> int:
    try:
        idx = int(token)
    except ValueError as exc:
        raise MeshError(f"bad face index {token!r}", line_no) from exc
    if idx == 0:
        raise MeshError("face indices are 1-based, got 0", line_no)
    # Negative indices count back from the last element read so far
    return idx - 1 if idx > 0 else count + idx


# ===============================
# MESH
# ===============================


class ObjMesh:
    def __init__(
        self,
        vertices: POSITIONS | list[list[float]],
        faces: list[list[int]] | tuple[tuple[int, ...], ...],
        normals: list[list[float]] | None = None,
        normal_faces: list[list[int]] | None = None,
        tex_faces: list[list[int]] | None = None,
    ) -> None:
        self.vertices: POSITIONS = np.array(vertices, dtype=np.float64).reshape(-1, 3)
        self.vertices.setflags(write=False)

        self.faces: tuple[tuple[int, ...], ...] = tuple(tuple(int(i) for i in f) for f in faces)
        # Parsed for completeness; the simulator always recomputes normals.
        self.normals = [list(n) for n in normals or []]
        self.normal_faces = [list(f) for f in normal_faces or []]
        self.tex_faces = [list(f) for f in tex_faces or []]

        num_vertices = len(self.vertices)
        for n, face in enumerate(self.faces):
            if len(face) < 3:
                raise MeshError(f"face {n} has {len(face)} corners, need at least 3")
            bad = [i for i in face if not 0 <= i < num_vertices]
            if bad:
                raise MeshError(f"face {n} references missing vertices {bad} (mesh has {num_vertices})")

        self.triangles: INDEX = fan_triangulate(self.faces)
        self.face_offsets, self.face_indices = face_table(self.faces)

    def __repr__(self) -> str:
        return f"ObjMesh({len(self.vertices)} vertices, {len(self.faces)} faces, {len(self.triangles)} triangles)"

    @classmethod
    def parse(cls, objdata: str) -> ObjMesh:
        vpos: list[list[float]] = []
        norm: list[list[float]] = []
        tex_count = 0
        face: list[list[int]] = []
        nfac: list[list[int]] = []
        tfac: list[list[int]] = []
        face_lines: list[int] = []
        skipped = 0

        for line_no, raw in enumerate(objdata.splitlines(), start=1):
            elem = raw.split()
            if not elem:
                continue
            tag, fields = elem[0], elem[1:]

            if tag == "v":
                vpos.append(_parse_floats(fields, line_no, tag))
            elif tag == "vn":
                norm.append(_parse_floats(fields, line_no, tag))
            elif tag == "vt":
                tex_count += 1
            elif tag == "f":
                f: list[int] = []
                tf: list[int] = []
                nf: list[int] = []
                for part in fields:
                    ids = part.split("/")
                    if ids[0]:
                        f.append(_resolve_index(ids[0], len(vpos), line_no))
                    if len(ids) > 1 and ids[1]:
                        tf.append(_resolve_index(ids[1], tex_count, line_no))
                    if len(ids) > 2 and ids[2]:
                        nf.append(_resolve_index(ids[2], len(norm), line_no))
                if len(f) < 3:
                    skipped += 1
                    continue
                face.append(f)
                face_lines.append(line_no)
                if nf:
                    nfac.append(nf)
                if tf:
                    tfac.append(tf)

        if skipped:
            logger.debug(f"Skipped {skipped} face(s) with fewer than 3 vertices")

        # Checked after the loop so faces may come before their vertices
        for indices, line_no in zip(face, face_lines):
            bad = [i + 1 for i in indices if not 0 <= i < len(vpos)]
            if bad:
                raise MeshError(f"face references missing vertices {bad} (mesh has {len(vpos)})", line_no)

        return cls(vpos, face, normals=norm, normal_faces=nfac, tex_faces=tfac)

    @classmethod
    def from_file(cls, path: str | Path) -> ObjMesh:
        path = Path(path)
        logger.info(f"Reading mesh from {path}")
        return cls.parse(path.read_text(encoding="utf-8"))

    # ------------------------
    # Per-step outputs
    # ------------------------

    def compute_normals(self, positions: POSITIONS) -> POSITIONS:
        """Per-vertex normals for the current particle positions."""
        return accumulate_normals(positions, self.face_offsets, self.face_indices)

    def vertex_buffers(self, positions: POSITIONS, normals: POSITIONS) -> RenderBuffers:
        """Fan-triangulated position/normal buffers; a fresh copy every call."""
        tris = self.triangles.ravel()
        return RenderBuffers(
            positions=positions[tris].astype(np.float32).ravel(),
            normals=normals[tris].astype(np.float32).ravel(),
            tex_coords=np.empty(0, dtype=np.float32),
        )
