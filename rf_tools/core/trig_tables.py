# File: rf_tools/core/trig_tables.py
import numpy as np
from rf_tools.core.constants import GAMMA_HZ_PER_T_PROTON
from rf_tools.core.rotation_sim import ShapeMismatchError


def _as_1d(values, name):
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise ShapeMismatchError(f"{name} must be 1-D, got shape {arr.shape}")
    return arr


def phase_table(phase_per_step_rad):
    """
    Cosine/sine table of per-position phase increments.

    Args:
        phase_per_step_rad (array-like): Phase accrued by each position during one
            time step (radians), shape (Nz,).

    Returns:
        tuple: (cos_theta, sin_theta), each np.ndarray of shape (Nz,).
    """
    theta = _as_1d(phase_per_step_rad, "phase_per_step_rad")
    return np.cos(theta), np.sin(theta)


def precession_table(z_positions_m, gradient_T_per_m, dt_s, off_resonance_hz=0.0,
                     gyromagnetic_ratio_hz_t=GAMMA_HZ_PER_T_PROTON):
    """
    Per-position precession table for a constant gradient plus off-resonance.

    theta_i = 2*pi * (gamma * G * z_i + df_i) * dt

    Args:
        z_positions_m (array-like): Positions along the gradient axis (m), shape (Nz,).
        gradient_T_per_m (float): Gradient amplitude during each step (T/m).
        dt_s (float): Duration of one time step (s). Must be positive.
        off_resonance_hz (float or array-like, optional): Off-resonance (Hz), scalar
            or shape (Nz,). Defaults to 0.0.
        gyromagnetic_ratio_hz_t (float, optional): Gyromagnetic ratio in Hz/T.
            Defaults to GAMMA_HZ_PER_T_PROTON.

    Returns:
        tuple: (cos_theta, sin_theta), each np.ndarray of shape (Nz,).
    """
    if dt_s <= 0:
        raise ValueError("Time step (dt_s) must be positive.")
    z = _as_1d(z_positions_m, "z_positions_m")
    df = np.asarray(off_resonance_hz, dtype=np.float64)
    if df.ndim > 0 and df.shape != z.shape:
        raise ShapeMismatchError(
            f"off_resonance_hz shape mismatch. Expected {z.shape} or scalar, got {df.shape}")

    theta = 2 * np.pi * (gyromagnetic_ratio_hz_t * gradient_T_per_m * z + df) * dt_s
    return np.cos(theta), np.sin(theta)


def rf_tip_table(rf_amplitude_T, dt_s, gyromagnetic_ratio_hz_t=GAMMA_HZ_PER_T_PROTON):
    """
    Per-step flip angle table from a real RF amplitude waveform.

    alpha_t = 2*pi * gamma * B1_t * dt. The amplitude is signed, a negative
    sample tips about the opposite transverse axis.

    Args:
        rf_amplitude_T (array-like): RF amplitude per sub-pulse (Tesla), shape (Nt,).
        dt_s (float): Duration of one sub-pulse (s). Must be positive.
        gyromagnetic_ratio_hz_t (float, optional): Gyromagnetic ratio in Hz/T.

    Returns:
        tuple: (cos_alpha, sin_alpha), each np.ndarray of shape (Nt,).
    """
    if dt_s <= 0:
        raise ValueError("Time step (dt_s) must be positive.")
    if np.iscomplexobj(rf_amplitude_T):
        raise ValueError("rf_amplitude_T must be real; split complex waveforms with complex_rf_phase first.")
    b1 = _as_1d(rf_amplitude_T, "rf_amplitude_T")
    alpha = 2 * np.pi * gyromagnetic_ratio_hz_t * b1 * dt_s
    return np.cos(alpha), np.sin(alpha)


def flip_angle_table(flip_angles_deg):
    """Cosine/sine table of sub-pulse flip angles given in degrees."""
    alpha = np.deg2rad(_as_1d(flip_angles_deg, "flip_angles_deg"))
    return np.cos(alpha), np.sin(alpha)


def rf_phase_pair(phase_rad):
    """Returns (cp_rf, sp_rf) as Python floats for a pulse-wide RF phase in radians."""
    phase_rad = float(phase_rad)
    return float(np.cos(phase_rad)), float(np.sin(phase_rad))
