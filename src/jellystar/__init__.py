"""
Jellystar Soft-Body Simulation Package

A mass-spring soft body rebuilt from a polygon mesh, dropped into a box,
and eased into a level resting pose once it comes to rest.
"""

from .config import SimulationParams
from .errors import ConfigurationError, JellystarError, MeshError, SimulationError
from .mesh.obj import ObjMesh, RenderBuffers
from .models import Quaternion, Spring, Vector3
from .sim import Simulation, SimulationMode

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "JellystarError",
    "MeshError",
    "ObjMesh",
    "Quaternion",
    "RenderBuffers",
    "Simulation",
    "SimulationError",
    "SimulationMode",
    "SimulationParams",
    "Spring",
    "Vector3",
]
