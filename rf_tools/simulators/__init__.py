# rf_tools/simulators/__init__.py
from .pulse_simulator import (
    uniform_field,
    hard_pulse_waveform,
    complex_rf_phase,
    simulate_slice_profile,
    simulate_hard_pulse_train
)
from .profile_metrics import (
    ProfileMetrics,
    transverse_magnetization,
    norm_drift,
    analyze_slice_profile,
    evaluate_profile
)

__all__ = [
    'uniform_field',
    'hard_pulse_waveform',
    'complex_rf_phase',
    'simulate_slice_profile',
    'simulate_hard_pulse_train',
    'ProfileMetrics',
    'transverse_magnetization',
    'norm_drift',
    'analyze_slice_profile',
    'evaluate_profile'
]
