# rf_tools/core/__init__.py

from .constants import (
    GAMMA_HZ_PER_T_PROTON,
    DEFAULT_DT_S
)
from .rotation_sim import (
    ShapeMismatchError,
    rf_tip_matrix,
    precess_z,
    apply_rf_tip,
    rotate_field,
    simulate_rotations
)
from .trig_tables import (
    phase_table,
    precession_table,
    rf_tip_table,
    flip_angle_table,
    rf_phase_pair
)

__all__ = [
    # constants
    'GAMMA_HZ_PER_T_PROTON',
    'DEFAULT_DT_S',
    # rotation_sim
    'ShapeMismatchError',
    'rf_tip_matrix',
    'precess_z',
    'apply_rf_tip',
    'rotate_field',
    'simulate_rotations',
    # trig_tables
    'phase_table',
    'precession_table',
    'rf_tip_table',
    'flip_angle_table',
    'rf_phase_pair'
]
