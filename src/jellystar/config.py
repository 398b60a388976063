# config.py
"""
Simulation parameters.

All values are plain constants chosen by the caller; there is no persistence
format. The defaults reproduce the soft star body: low stiffness relative to
the 16 ms step keeps the explicit integrator stable. Raising ``stiffness``
without lowering ``time_step`` will eventually blow the body apart.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
import math

from jellystar.errors import ConfigurationError


@dataclass(frozen=True)
class SimulationParams:
    gravity: tuple[float, float, float] = (0.0, -1.5, 0.0)
    particle_mass: float = 0.1
    stiffness: float = 40.0
    damping: float = 1.2
    # Applied on top of ``damping`` to the relative-velocity damper
    damping_scale: float = 0.7
    restitution: float = 0.2
    # Half-extent of the collision cube centered at the origin
    bounds: float = 1.0
    time_step: float = 0.016

    # Settle detection / blend
    energy_threshold: float = 0.001
    ground_threshold: float = -0.95
    settle_epsilon: float = 0.01
    settle_speed: float = 2.0

    def __post_init__(self) -> None:
        try:
            gravity = tuple(float(g) for g in self.gravity)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"gravity must be 3 numbers, got {self.gravity!r}") from exc
        object.__setattr__(self, "gravity", gravity)
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError if any value would make a step meaningless."""
        if len(self.gravity) != 3:
            raise ConfigurationError(f"gravity must have 3 components, got {len(self.gravity)}")

        for f in fields(self):
            value = getattr(self, f.name)
            values = value if isinstance(value, tuple) else (value,)
            try:
                finite = all(math.isfinite(v) for v in values)
            except TypeError as exc:
                raise ConfigurationError(f"{f.name} must be a number, got {value!r}") from exc
            if not finite:
                raise ConfigurationError(f"{f.name} must be finite, got {value!r}")

        if self.particle_mass <= 0.0:
            raise ConfigurationError(
                f"particle_mass must be positive, got {self.particle_mass} "
                "(force to acceleration conversion divides by it)"
            )
        if self.time_step <= 0.0:
            raise ConfigurationError(f"time_step must be positive, got {self.time_step}")
        if self.bounds <= 0.0:
            raise ConfigurationError(f"bounds must be positive, got {self.bounds}")
        if self.settle_epsilon <= 0.0:
            raise ConfigurationError(f"settle_epsilon must be positive, got {self.settle_epsilon}")
        if self.settle_speed <= 0.0:
            raise ConfigurationError(f"settle_speed must be positive, got {self.settle_speed}")
        if self.stiffness < 0.0 or self.damping < 0.0 or self.damping_scale < 0.0:
            raise ConfigurationError("stiffness, damping and damping_scale must not be negative")
        if self.restitution < 0.0:
            raise ConfigurationError(f"restitution must not be negative, got {self.restitution}")

    def replace(self, **changes: object) -> SimulationParams:
        """Copy with ``changes`` applied; the copy is validated."""
        return replace(self, **changes)


def check_time_step(dt: float) -> float:
    try:
        dt = float(dt)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"time step must be a number, got {dt!r}") from exc
    if not math.isfinite(dt) or dt <= 0.0:
        raise ConfigurationError(f"time step must be a positive finite number, got {dt}")
    return dt
