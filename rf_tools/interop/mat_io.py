"""MATLAB host boundary for the rotation kernel.

MATLAB stores a field as a 3 x Nz matrix (one column per position) and
scalars as 1 x 1 matrices. These helpers convert between that layout and
the (Nz, 3) fields used everywhere else in rf_tools.
"""
import numpy as np
import torch
from scipy.io import loadmat, savemat

from rf_tools.core.rotation_sim import simulate_rotations, ShapeMismatchError

# Argument order of the kernel, also the default .mat variable names
INPUT_ORDER = ('Min', 'cos_theta', 'sin_theta', 'cos_alpha', 'sin_alpha', 'cp_rf', 'sp_rf')
DEFAULT_INPUT_KEYS = {name: name for name in INPUT_ORDER}


def _to_numpy(value):
    if isinstance(value, torch.Tensor):
        return value.detach().cpu().numpy()
    return np.asarray(value)


def field_from_host(array):
    """
    Converts a host field (3 x Nz, or a flat column-major buffer) to shape (Nz, 3).
    """
    arr = np.asarray(_to_numpy(array), dtype=np.float64)
    if arr.ndim == 2 and arr.shape[0] == 3:
        return np.ascontiguousarray(arr.T)
    if arr.ndim == 1 and arr.size % 3 == 0:
        return arr.reshape(-1, 3).copy()
    raise ShapeMismatchError(f"Host field must be 3 x Nz, got shape {arr.shape}")


def field_to_host(field):
    """Converts an (Nz, 3) field to a new 3 x Nz float64 host array."""
    arr = np.asarray(_to_numpy(field), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ShapeMismatchError(f"Field must have shape (Nz, 3), got {arr.shape}")
    return np.ascontiguousarray(arr.T)


def simulate_host(Min, cos_theta, sin_theta, cos_alpha, sin_alpha, cp_rf, sp_rf, device=None):
    """
    Runs the kernel on inputs laid out the way the MATLAB caller passes them.

    Args:
        Min (array-like): Initial field, 3 x Nz. Nz is taken from its width.
        cos_theta, sin_theta (array-like): Precession tables, Nz values each (1 x Nz, Nz x 1 or 1-D).
        cos_alpha, sin_alpha (array-like): RF tip tables, Nt values each. Nt is taken from cos_alpha.
        cp_rf, sp_rf (float or array-like): RF phase cosine/sine, 1 x 1.
        device (str, optional): Torch device for the kernel.

    Returns:
        np.ndarray: Freshly allocated 3 x Nz float64 output field.
    """
    field = field_from_host(Min)
    Mout = simulate_rotations(field, _to_numpy(cos_theta), _to_numpy(sin_theta),
                              _to_numpy(cos_alpha), _to_numpy(sin_alpha),
                              _to_numpy(cp_rf), _to_numpy(sp_rf), device=device)
    return field_to_host(Mout)


def load_mat_inputs(filename, keys=None, to_torch=False, device='cpu'):
    """
    Load the seven kernel inputs from a MATLAB .mat file.

    Args:
        filename (str): Path to .mat file.
        keys (dict, optional): Maps kernel argument names (see INPUT_ORDER) to variable
            names in the file. Missing entries fall back to DEFAULT_INPUT_KEYS.
        to_torch (bool): If True, return torch tensors instead of numpy arrays.
        device (str): PyTorch device, used when to_torch is True.

    Returns:
        dict: {argument name: array}, in INPUT_ORDER.

    Raises:
        KeyError: If a required variable is not present in the file.
    """
    names = dict(DEFAULT_INPUT_KEYS)
    if keys:
        unknown = set(keys) - set(INPUT_ORDER)
        if unknown:
            raise ValueError(f"Unknown input names: {sorted(unknown)}. Expected names from {INPUT_ORDER}")
        names.update(keys)

    mat = loadmat(filename)
    # Remove MATLAB metadata keys
    mat = {k: v for k, v in mat.items() if not k.startswith('__')}

    inputs = {}
    for arg in INPUT_ORDER:
        var = names[arg]
        if var not in mat:
            raise KeyError(f"Variable '{var}' (for {arg}) not found in {filename}")
        arr = np.asarray(mat[var], dtype=np.float64)
        inputs[arg] = torch.from_numpy(arr).to(device) if to_torch else arr
    return inputs


def save_mat_inputs(filename, initial_field, cos_theta, sin_theta, cos_alpha, sin_alpha, cp_rf, sp_rf):
    """Save kernel inputs to a .mat file in host layout; initial_field is (Nz, 3)."""
    save_dict = {
        'Min': field_to_host(initial_field),
        'cos_theta': _to_numpy(cos_theta),
        'sin_theta': _to_numpy(sin_theta),
        'cos_alpha': _to_numpy(cos_alpha),
        'sin_alpha': _to_numpy(sin_alpha),
        'cp_rf': np.array([[float(_to_numpy(cp_rf).reshape(-1)[0])]]),
        'sp_rf': np.array([[float(_to_numpy(sp_rf).reshape(-1)[0])]]),
    }
    savemat(filename, save_dict)


def save_mat_output(filename, field, key='Mout', extra=None):
    """
    Save an (Nz, 3) field to a .mat file as a 3 x Nz matrix.

    Args:
        filename (str): Output .mat file.
        field (np.ndarray or torch.Tensor): Field of shape (Nz, 3).
        key (str): Variable name for the field. Defaults to 'Mout'.
        extra (dict, optional): Additional {name: array/tensor} entries to store.
    """
    save_dict = {key: field_to_host(field)}
    for k, v in (extra or {}).items():
        save_dict[k] = _to_numpy(v)
    savemat(filename, save_dict)


def run_mat_file(input_filename, output_filename=None, keys=None, output_key='Mout', device=None):
    """
    Loads inputs from a .mat file, runs the kernel and optionally writes the result.

    Returns:
        np.ndarray: 3 x Nz output field.
    """
    inputs = load_mat_inputs(input_filename, keys=keys)
    Mout = simulate_host(*(inputs[name] for name in INPUT_ORDER), device=device)
    if output_filename:
        savemat(output_filename, {output_key: Mout})
    return Mout
