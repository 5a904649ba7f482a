# File: rf_tools/simulators/pulse_simulator.py
import numpy as np
from rf_tools.core.rotation_sim import simulate_rotations
from rf_tools.core.trig_tables import (
    precession_table,
    phase_table,
    rf_tip_table,
    flip_angle_table,
    rf_phase_pair
)
from rf_tools.core.constants import GAMMA_HZ_PER_T_PROTON, DEFAULT_DT_S


def _log(message, verbose):
    if verbose:
        print(f"[PulseSimulator] {message}")


def uniform_field(n_positions, mx0=0.0, my0=0.0, mz0=1.0):
    """Field of shape (n_positions, 3) with the same vector at every position."""
    return np.tile(np.array([mx0, my0, mz0], dtype=np.float64), (n_positions, 1))


def hard_pulse_waveform(flip_angle_deg, duration_s, dt_s=DEFAULT_DT_S,
                        gyromagnetic_ratio_hz_t=GAMMA_HZ_PER_T_PROTON):
    """
    Constant-amplitude RF waveform with the given total flip angle.

    Args:
        flip_angle_deg (float): Total flip angle in degrees.
        duration_s (float): Pulse duration in seconds. Zero gives empty arrays.
        dt_s (float, optional): Sample spacing in seconds. Defaults to 1 us.
        gyromagnetic_ratio_hz_t (float, optional): Gyromagnetic ratio in Hz/T.

    Returns:
        tuple: (rf_pulse, time_vector)
            rf_pulse (np.ndarray): RF waveform in Tesla.
            time_vector (np.ndarray): Sample times in seconds, starting at 0.
    """
    if duration_s < 0:
        raise ValueError("Duration cannot be negative.")
    if dt_s <= 0:
        raise ValueError("Time step (dt_s) must be positive.")
    if duration_s == 0:
        return np.array([]), np.array([])

    # At least one sample, even for pulses shorter than dt
    n_samples = max(1, int(round(duration_s / dt_s)))
    time = np.arange(n_samples) * dt_s

    # B1 * gamma_rad * n_samples * dt = flip angle
    B1_amplitude = np.deg2rad(flip_angle_deg) / (2 * np.pi * gyromagnetic_ratio_hz_t * n_samples * dt_s)
    return np.ones(n_samples) * B1_amplitude, time


def complex_rf_phase(rf_pulse, tolerance=1e-6):
    """
    Splits a complex RF waveform into a signed real amplitude and one pulse-wide phase.

    The reference phase is that of the largest-magnitude sample; every sample is
    projected onto that axis. Samples at the opposite phase become negative
    amplitudes.

    Args:
        rf_pulse (np.ndarray): Complex (or real) RF waveform.
        tolerance (float, optional): Largest allowed off-axis component, relative to
            the peak magnitude. Defaults to 1e-6.

    Returns:
        tuple: (rf_amplitude, phase_rad)
            rf_amplitude (np.ndarray): Real signed amplitude, same shape as rf_pulse.
            phase_rad (float): Pulse-wide phase in radians.

    Raises:
        ValueError: If the waveform phase is not constant (up to a sign flip).
    """
    rf_pulse = np.asarray(rf_pulse)
    if not np.iscomplexobj(rf_pulse):
        return rf_pulse.astype(np.float64), 0.0
    if rf_pulse.size == 0:
        return np.array([], dtype=np.float64), 0.0

    peak = np.max(np.abs(rf_pulse))
    if peak == 0:
        return np.zeros(rf_pulse.shape, dtype=np.float64), 0.0

    phase_rad = float(np.angle(rf_pulse.flat[np.argmax(np.abs(rf_pulse))]))
    rotated = rf_pulse * np.exp(-1j * phase_rad)
    off_axis = np.max(np.abs(rotated.imag))
    if off_axis > tolerance * peak:
        raise ValueError(
            f"RF waveform phase varies over the pulse (off-axis component {off_axis:.3e} "
            f"vs peak {peak:.3e}); a single pulse-wide phase is required.")
    return rotated.real.astype(np.float64), phase_rad


def simulate_slice_profile(rf_pulse_T, time_s,
                           slice_select_gradient_Tm,
                           z_positions_m,
                           rf_phase_deg=0.0,
                           off_resonance_hz=0.0,
                           mx0=0.0, my0=0.0, mz0=1.0,
                           gyromagnetic_ratio_hz_t=GAMMA_HZ_PER_T_PROTON,
                           return_all=False,
                           device=None,
                           verbose=False,
                           dt_s=None):
    """
    Simulates the magnetization profile of a pulse played under a constant gradient.

    Each RF sample is treated as one dwell time of free precession followed
    by an instantaneous tip (hard-pulse approximation). Relaxation is
    not modelled.

    Args:
        rf_pulse_T (np.ndarray): RF amplitude waveform (Tesla). Real, or complex with
            a constant phase.
        time_s (np.ndarray): Time vector for the RF pulse (seconds), same shape as rf_pulse_T.
        slice_select_gradient_Tm (float): Slice selection gradient strength (T/m).
        z_positions_m (np.ndarray): Positions along the gradient axis (m).
        rf_phase_deg (float, optional): RF phase in degrees, added to the waveform's own
            phase. Defaults to 0.0.
        off_resonance_hz (float or np.ndarray, optional): Off-resonance (Hz), scalar or one
            value per position. Defaults to 0.0.
        mx0, my0, mz0 (float, optional): Initial magnetization at every position.
        gyromagnetic_ratio_hz_t (float, optional): Gyromagnetic ratio in Hz/T.
        return_all (bool, optional): If True, return the profile after every sample.
        device (str, optional): Torch device for the kernel.
        verbose (bool, optional): Print progress information. Defaults to False.
        dt_s (float, optional): Sample spacing in seconds. Defaults to None, which takes
            it from time_s (a single sample uses time_s[0] if positive, else 1 us).

    Returns:
        np.ndarray: Magnetization profile (Nz, 3), or (Nt, Nz, 3) if return_all.
    """
    if not isinstance(rf_pulse_T, np.ndarray): rf_pulse_T = np.asarray(rf_pulse_T)
    if not isinstance(time_s, np.ndarray): time_s = np.asarray(time_s)
    z_positions_m = np.atleast_1d(np.asarray(z_positions_m, dtype=np.float64))

    initial_field = uniform_field(len(z_positions_m), mx0, my0, mz0)
    if rf_pulse_T.size == 0 or time_s.size == 0:
        _log("Empty RF pulse, returning initial magnetization.", verbose)
        return initial_field[np.newaxis][:0] if return_all else initial_field
    if rf_pulse_T.shape != time_s.shape:
        raise ValueError("rf_pulse_T and time_s must have the same shape.")

    if dt_s is None:
        dt_s = time_s[1] - time_s[0] if len(time_s) > 1 else (time_s[0] if time_s[0] > 0 else DEFAULT_DT_S)
    if dt_s <= 0: raise ValueError("Time steps (dt_s) must be positive.")

    rf_amplitude_T, waveform_phase_rad = complex_rf_phase(rf_pulse_T)
    cp_rf, sp_rf = rf_phase_pair(np.deg2rad(rf_phase_deg) + waveform_phase_rad)

    cos_theta, sin_theta = precession_table(z_positions_m, slice_select_gradient_Tm, dt_s,
                                            off_resonance_hz, gyromagnetic_ratio_hz_t)
    cos_alpha, sin_alpha = rf_tip_table(rf_amplitude_T, dt_s, gyromagnetic_ratio_hz_t)

    _log(f"Simulating {len(cos_alpha)} steps over {len(z_positions_m)} positions (dt = {dt_s * 1e6:.2f} us).", verbose)
    return simulate_rotations(initial_field, cos_theta, sin_theta, cos_alpha, sin_alpha,
                              cp_rf, sp_rf, return_all=return_all, device=device)


def simulate_hard_pulse_train(flip_angles_deg, phase_per_step_rad,
                              rf_phase_deg=0.0,
                              initial_field=None,
                              return_all=False,
                              device=None,
                              verbose=False):
    """
    Simulates a train of hard sub-pulses from flip angles and per-position phase steps.

    Args:
        flip_angles_deg (array-like): Flip angle of each sub-pulse (degrees), shape (Nt,).
        phase_per_step_rad (array-like): Phase accrued by each position between
            sub-pulses (radians), shape (Nz,).
        rf_phase_deg (float, optional): Pulse-wide RF phase (degrees). Defaults to 0.0.
        initial_field (np.ndarray, optional): Initial field (Nz, 3). Defaults to
            equilibrium magnetization [0, 0, 1] at every position.
        return_all (bool, optional): If True, return the field after every sub-pulse.
        device (str, optional): Torch device for the kernel.
        verbose (bool, optional): Print progress information. Defaults to False.

    Returns:
        np.ndarray: Final field (Nz, 3), or (Nt, Nz, 3) if return_all.
    """
    cos_theta, sin_theta = phase_table(phase_per_step_rad)
    cos_alpha, sin_alpha = flip_angle_table(flip_angles_deg)
    cp_rf, sp_rf = rf_phase_pair(np.deg2rad(rf_phase_deg))

    if initial_field is None:
        initial_field = uniform_field(len(cos_theta))

    _log(f"Hard pulse train: {len(cos_alpha)} sub-pulses, {len(cos_theta)} positions.", verbose)
    return simulate_rotations(initial_field, cos_theta, sin_theta, cos_alpha, sin_alpha,
                              cp_rf, sp_rf, return_all=return_all, device=device)
