# models.py
"""
Small value types used by the simulator.

``Vector3`` keeps two operation sets apart: the binary operators (``+``,
``-``, ``*``, ``/``) and ``normalize``/``cross`` always return a new vector,
while the augmented operators (``+=``, ``-=``) and ``apply_quaternion``
mutate the vector in place and return it.
"""
from __future__ import annotations

from collections.abc import Iterator
import math

from jellystar.types import EULER


class Vector3:
    __slots__ = ["x", "y", "z"]

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> None:
        self.x, self.y, self.z = float(x), float(y), float(z)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __repr__(self) -> str:
        return f"Vector3({self.x!r}, {self.y!r}, {self.z!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.z == other.z

    __hash__ = None  # type: ignore[assignment]  # mutable

    def copy(self) -> Vector3:
        return Vector3(self.x, self.y, self.z)

    # -- value-returning ---------------------------------------------------

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> Vector3:  # Handles: scalar * vector
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector3:
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def normalize(self) -> Vector3:
        length = self.length()
        return self / length if length > 0 else Vector3(0, 0, 0)

    def cross(self, other: Vector3) -> Vector3:
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    # -- in-place ----------------------------------------------------------

    def __iadd__(self, other: Vector3) -> Vector3:
        self.x += other.x
        self.y += other.y
        self.z += other.z
        return self

    def __isub__(self, other: Vector3) -> Vector3:
        self.x -= other.x
        self.y -= other.y
        self.z -= other.z
        return self

    def apply_quaternion(self, q: Quaternion) -> Vector3:
        """Rotate this vector by the unit quaternion ``q`` in place."""
        x, y, z = self.x, self.y, self.z
        qx, qy, qz, qw = q.x, q.y, q.z, q.w

        # t = q * v
        ix = qw * x + qy * z - qz * y
        iy = qw * y + qz * x - qx * z
        iz = qw * z + qx * y - qy * x
        iw = -qx * x - qy * y - qz * z

        # t * conj(q)
        self.x = ix * qw + iw * -qx + iy * -qz - iz * -qy
        self.y = iy * qw + iw * -qy + iz * -qx - ix * -qz
        self.z = iz * qw + iw * -qz + ix * -qy - iy * -qx
        return self


class Quaternion:
    """Rotation quaternion ``(x, y, z, w)``; all methods return new values."""

    __slots__ = ["x", "y", "z", "w"]

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0, w: float = 1.0) -> None:
        self.x, self.y, self.z, self.w = float(x), float(y), float(z), float(w)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z
        yield self.w

    def __repr__(self) -> str:
        return f"Quaternion({self.x!r}, {self.y!r}, {self.z!r}, {self.w!r})"

    @classmethod
    def identity(cls) -> Quaternion:
        return cls(0.0, 0.0, 0.0, 1.0)

    @classmethod
    def from_euler(cls, angles: EULER) -> Quaternion:
        """
        Build a quaternion from intrinsic Euler angles ``(x, y, z)`` applied
        in Y-X-Z order (yaw, then pitch, then roll).
        """
        ax, ay, az = angles
        c1, s1 = math.cos(ax / 2), math.sin(ax / 2)
        c2, s2 = math.cos(ay / 2), math.sin(ay / 2)
        c3, s3 = math.cos(az / 2), math.sin(az / 2)
        return cls(
            s1 * c2 * c3 + c1 * s2 * s3,
            c1 * s2 * c3 - s1 * c2 * s3,
            c1 * c2 * s3 - s1 * s2 * c3,
            c1 * c2 * c3 + s1 * s2 * s3,
        )

    def dot(self, other: Quaternion) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z + self.w * other.w

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> Quaternion:
        length = self.length()
        if length == 0:
            return Quaternion.identity()
        return Quaternion(self.x / length, self.y / length, self.z / length, self.w / length)

    def angle_to(self, other: Quaternion) -> float:
        """Angular distance in radians between the two orientations."""
        return 2.0 * math.acos(min(abs(self.dot(other)), 1.0))

    def slerp(self, other: Quaternion, t: float) -> Quaternion:
        """Spherical interpolation from ``self`` (t=0) to ``other`` (t=1) along the short arc."""
        if t <= 0.0:
            return Quaternion(*self)
        if t >= 1.0:
            return Quaternion(*other)

        cos_half = self.dot(other)
        bx, by, bz, bw = other
        if cos_half < 0:
            bx, by, bz, bw = -bx, -by, -bz, -bw
            cos_half = -cos_half

        if cos_half >= 1.0:
            return Quaternion(*self)

        sqr_sin_half = 1.0 - cos_half * cos_half
        if sqr_sin_half <= 2.220446049250313e-16:
            s = 1.0 - t
            return Quaternion(
                s * self.x + t * bx,
                s * self.y + t * by,
                s * self.z + t * bz,
                s * self.w + t * bw,
            ).normalize()

        sin_half = math.sqrt(sqr_sin_half)
        half = math.atan2(sin_half, cos_half)
        ratio_a = math.sin((1.0 - t) * half) / sin_half
        ratio_b = math.sin(t * half) / sin_half
        return Quaternion(
            self.x * ratio_a + bx * ratio_b,
            self.y * ratio_a + by * ratio_b,
            self.z * ratio_a + bz * ratio_b,
            self.w * ratio_a + bw * ratio_b,
        )

    def rotate(self, v: Vector3) -> Vector3:
        return v.copy().apply_quaternion(self)

    def to_matrix(self) -> list[list[float]]:
        """3x3 row-major rotation matrix whose columns are the rotated basis axes."""
        cols = [self.rotate(Vector3(1, 0, 0)), self.rotate(Vector3(0, 1, 0)), self.rotate(Vector3(0, 0, 1))]
        return [[c.x for c in cols], [c.y for c in cols], [c.z for c in cols]]


class Spring:
    def __init__(self, p0: int, p1: int, rest_length: float) -> None:
        self.p0 = p0
        self.p1 = p1
        self.rest_length = rest_length

    def __repr__(self) -> str:
        return f"Spring({self.p0}, {self.p1}, rest_length={self.rest_length!r})"

    @property
    def key(self) -> tuple[int, int]:
        """Undirected edge key."""
        return (self.p0, self.p1) if self.p0 < self.p1 else (self.p1, self.p0)
