# File: rf_tools/simulators/profile_metrics.py
# Metrics for checking a simulated magnetization profile against what the pulse
# was meant to do (slice width, passband ripple, numerical norm drift).

import numpy as np


class ProfileMetrics:
    """
    A class to hold validation metrics for a simulated magnetization profile.
    """
    def __init__(self):
        self.slice_thickness_m = None
        self.slice_ripple_percent = None
        self.mean_transverse = None
        self.max_norm_drift = None

    def __str__(self):
        metrics_str = []
        if self.slice_thickness_m is not None:
            metrics_str.append(f"Slice Thickness (FWHM): {self.slice_thickness_m*1000:.2f} mm")
        if self.slice_ripple_percent is not None:
            metrics_str.append(f"Slice Ripple: {self.slice_ripple_percent:.2f}%")
        if self.mean_transverse is not None:
            metrics_str.append(f"Mean |Mxy|: {self.mean_transverse:.4f}")
        if self.max_norm_drift is not None:
            metrics_str.append(f"Max |M| drift: {self.max_norm_drift:.3e}")

        return "\n".join(metrics_str) if metrics_str else "No metrics calculated."


def transverse_magnetization(field):
    """Complex transverse magnetization Mx + iMy for an (Nz, 3) field."""
    field = np.asarray(field, dtype=np.float64)
    return field[..., 0] + 1j * field[..., 1]


def norm_drift(initial_field, final_field):
    """
    Per-position change of |M| between two fields.

    The kernel never renormalizes, so for pure rotations this is the
    accumulated floating-point error.
    """
    initial_field = np.asarray(initial_field, dtype=np.float64)
    final_field = np.asarray(final_field, dtype=np.float64)
    if initial_field.shape != final_field.shape:
        raise ValueError(f"Field shape mismatch. Got {initial_field.shape} and {final_field.shape}")
    return np.linalg.norm(final_field, axis=-1) - np.linalg.norm(initial_field, axis=-1)


def _interp_crossing(value, mz_sorted, z_sorted, idx):
    # np.interp needs increasing sample points
    pair = [idx, idx + 1] if mz_sorted[idx] <= mz_sorted[idx + 1] else [idx + 1, idx]
    return np.interp(value, mz_sorted[pair], z_sorted[pair])


def analyze_slice_profile(mz_profile, z_positions_m, target_mz=-1.0):
    """
    Analyzes a 1D Mz slice profile to extract FWHM thickness and passband ripple.

    Args:
        mz_profile (np.ndarray): Array of Mz values along the z-axis.
        z_positions_m (np.ndarray): Corresponding z positions in meters.
        target_mz (float): Mz value for full effect (-1 for inversion, 0 for 90 degree excitation).

    Returns:
        dict: 'fwhm_m' (Full Width at Half Maximum in meters) and 'ripple_percent'.
    """
    mz_profile = np.asarray(mz_profile, dtype=np.float64)
    z_positions_m = np.asarray(z_positions_m, dtype=np.float64)
    if mz_profile.size == 0 or z_positions_m.size == 0 or mz_profile.shape != z_positions_m.shape:
        return {"fwhm_m": 0.0, "ripple_percent": 0.0}

    sorted_indices = np.argsort(z_positions_m)
    z_sorted = z_positions_m[sorted_indices]
    mz_sorted = mz_profile[sorted_indices]

    # Half-way between the unperturbed Mz=1 and the deepest point reached
    min_mz = np.min(mz_sorted)
    half_value = (1.0 + min_mz) / 2.0
    inside = mz_sorted < half_value

    fwhm_m = 0.0
    crossings = np.where(np.diff(inside))[0]
    if len(crossings) >= 2:
        z1 = _interp_crossing(half_value, mz_sorted, z_sorted, crossings[0])
        z2 = _interp_crossing(half_value, mz_sorted, z_sorted, crossings[-1])
        fwhm_m = float(abs(z2 - z1))

    # Passband: within 10% of the deepest point
    passband_thresh = min_mz + 0.1 * abs(1.0 - min_mz)
    in_passband = mz_sorted <= passband_thresh
    ripple_percent = 0.0
    if np.any(in_passband) and target_mz < 1.0:
        mz_passband = mz_sorted[in_passband]
        # Pk-Pk as % of the total intended Mz change
        ripple_percent = float((np.max(mz_passband) - np.min(mz_passband)) / (1.0 - target_mz) * 100)

    return {"fwhm_m": fwhm_m, "ripple_percent": ripple_percent}


def evaluate_profile(field, z_positions_m=None, initial_field=None, target_mz=0.0):
    """
    Collects ProfileMetrics for a simulated (Nz, 3) field.

    Args:
        field (np.ndarray): Final magnetization field, shape (Nz, 3).
        z_positions_m (np.ndarray, optional): Positions for slice-profile analysis.
        initial_field (np.ndarray, optional): Field before the pulse, for norm drift.
        target_mz (float, optional): Intended Mz inside the slice. Defaults to 0.0.

    Returns:
        ProfileMetrics: An object containing calculated metrics.
    """
    field = np.asarray(field, dtype=np.float64)
    metrics = ProfileMetrics()
    if field.shape[0] > 0:
        metrics.mean_transverse = float(np.mean(np.abs(transverse_magnetization(field))))

    if z_positions_m is not None:
        analysis = analyze_slice_profile(field[:, 2], z_positions_m, target_mz=target_mz)
        metrics.slice_thickness_m = analysis["fwhm_m"]
        metrics.slice_ripple_percent = analysis["ripple_percent"]

    if initial_field is not None and field.shape[0] > 0:
        metrics.max_norm_drift = float(np.max(np.abs(norm_drift(initial_field, field))))

    return metrics
