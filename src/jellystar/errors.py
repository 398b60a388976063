# errors.py
"""Exception hierarchy for the simulation core."""


class JellystarError(Exception):
    """Base class for every error raised by jellystar."""


class ConfigurationError(JellystarError, ValueError):
    """A simulation parameter violates the caller contract (e.g. zero mass)."""


class MeshError(JellystarError, ValueError):
    """The mesh description cannot be turned into a particle system."""

    def __init__(self, message: str, line: int | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class SimulationError(JellystarError):
    """An operation was called in a state that cannot honour it."""
