# Main init for the library
from . import core
from . import simulators
from . import interop

from .core.rotation_sim import simulate_rotations, ShapeMismatchError

__all__ = [
    'core',
    'simulators',
    'interop',
    'simulate_rotations',
    'ShapeMismatchError'
]
