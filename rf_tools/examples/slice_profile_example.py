# rf_tools/examples/slice_profile_example.py
"""
Example script: simulate a hard pulse played under a slice-select gradient,
then print the profile metrics.

Run with: python -m rf_tools.examples.slice_profile_example
"""
import numpy as np
from rf_tools import simulators


def run_slice_profile_example(verbose=True):
    flip_angle_deg = 90.0
    duration_s = 0.5e-3
    dt_s = 4e-6
    slice_select_gradient_Tm = 0.002
    z_positions_m = np.linspace(-0.02, 0.02, 201)

    rf_T, time_s = simulators.hard_pulse_waveform(flip_angle_deg, duration_s, dt_s)
    M_profile = simulators.simulate_slice_profile(
        rf_T, time_s, slice_select_gradient_Tm, z_positions_m, verbose=verbose
    )
    initial_field = simulators.uniform_field(len(z_positions_m))
    metrics = simulators.evaluate_profile(M_profile, z_positions_m, initial_field=initial_field)
    if verbose:
        print(f"Simulated profile shape: {M_profile.shape}")
        print(metrics)
    return M_profile, metrics


if __name__ == "__main__":
    run_slice_profile_example()
