"""Hard-pulse rotation kernel: interleaved z-precession and RF tip rotations."""
import torch


class ShapeMismatchError(ValueError):
    """Raised when the field and trig tables passed to the kernel disagree in shape."""


def _as_vector(values, name, device):
    # MATLAB hands over 1xN or Nx1 matrices; anything else with more than one
    # non-singleton dimension is not a table.
    vec = torch.as_tensor(values, dtype=torch.float64, device=device)
    if vec.ndim > 1:
        if sum(1 for n in vec.shape if n != 1) > 1:
            raise ShapeMismatchError(f"{name} must be a 1-D table, got shape {tuple(vec.shape)}")
    return vec.reshape(-1)


def _as_scalar(value, name):
    arr = torch.as_tensor(value, dtype=torch.float64)
    if arr.numel() != 1:
        raise ShapeMismatchError(f"{name} must be a single value, got shape {tuple(arr.shape)}")
    return float(arr.reshape(-1)[0])


def rf_tip_matrix(cos_alpha, sin_alpha, cp_rf, sp_rf):
    """
    Closed-form 3x3 rotation of angle alpha about the transverse axis at phase phi.

    Composes a rotation into the RF phase frame, a rotation about that axis by
    the flip angle and the inverse frame rotation.

    Args:
        cos_alpha (float or torch.Tensor): Cosine of the flip angle. May be a 1-D tensor
            of length Nt, in which case a stack of Nt matrices is returned.
        sin_alpha (float or torch.Tensor): Sine of the flip angle, same shape as cos_alpha.
        cp_rf (float): Cosine of the RF phase.
        sp_rf (float): Sine of the RF phase.

    Returns:
        torch.Tensor: Rotation matrix of shape (3, 3), or (Nt, 3, 3) for tabled angles.
    """
    ca = torch.as_tensor(cos_alpha, dtype=torch.float64)
    sa = torch.as_tensor(sin_alpha, dtype=torch.float64, device=ca.device)
    cp = float(cp_rf)
    sp = float(sp_rf)

    cross = cp * sp - ca * cp * sp
    rows = [
        torch.stack([cp * cp + ca * sp * sp, cross, -sp * sa], dim=-1),
        torch.stack([cross, ca * cp * cp + sp * sp, cp * sa], dim=-1),
        torch.stack([sp * sa, -cp * sa, ca], dim=-1),
    ]
    return torch.stack(rows, dim=-2)


def precess_z(M, cos_theta, sin_theta):
    """
    Clockwise rotation of the transverse plane by each position's phase increment.

    Args:
        M (torch.Tensor): Magnetization field, shape (Nz, 3).
        cos_theta (torch.Tensor): Cosine of the per-position phase, shape (Nz,).
        sin_theta (torch.Tensor): Sine of the per-position phase, shape (Nz,).

    Returns:
        torch.Tensor: New field of shape (Nz, 3). Mz is carried over unchanged.
    """
    mx, my, mz = M[:, 0], M[:, 1], M[:, 2]
    return torch.stack([cos_theta * mx + sin_theta * my,
                        -sin_theta * mx + cos_theta * my,
                        mz], dim=-1)


def apply_rf_tip(M, cos_alpha, sin_alpha, cp_rf, sp_rf):
    """Applies one RF tip rotation to every position of an (Nz, 3) field."""
    R = rf_tip_matrix(cos_alpha, sin_alpha, cp_rf, sp_rf).to(M.device)
    return M @ R.T


def rotate_field(initial_field, cos_theta, sin_theta, cos_alpha, sin_alpha,
                 cp_rf, sp_rf, return_all=False, device=None):
    """
    Runs the hard-pulse rotation kernel and returns torch tensors.

    For each time step t (in order) every position is first precessed about z
    by its own angle theta_i, then tipped by alpha_t about the transverse axis
    at the pulse-wide RF phase. No renormalization is applied.

    Args:
        initial_field (array-like or torch.Tensor): Initial magnetization, shape (Nz, 3)
            or a flat buffer of 3*Nz values ([Mx0, My0, Mz0, Mx1, ...]).
        cos_theta (array-like): Cosine of the per-step precession angle, shape (Nz,).
        sin_theta (array-like): Sine of the per-step precession angle, shape (Nz,).
        cos_alpha (array-like): Cosine of each sub-pulse flip angle, shape (Nt,).
        sin_alpha (array-like): Sine of each sub-pulse flip angle, shape (Nt,).
        cp_rf (float): Cosine of the RF phase.
        sp_rf (float): Sine of the RF phase.
        return_all (bool, optional): If True, return the field after every time step.
            Defaults to False.
        device (str or torch.device, optional): Torch device for the computation.
            Defaults to None (CPU, or the device of a tensor input).

    Returns:
        torch.Tensor: Final field in the same layout as initial_field (float64).
            If return_all is True: shape (Nt, *initial_field.shape).

    Raises:
        ShapeMismatchError: If paired tables differ in length or the field does not
            hold exactly Nz vectors.
    """
    cos_theta = _as_vector(cos_theta, "cos_theta", device)
    sin_theta = _as_vector(sin_theta, "sin_theta", cos_theta.device)
    cos_alpha = _as_vector(cos_alpha, "cos_alpha", cos_theta.device)
    sin_alpha = _as_vector(sin_alpha, "sin_alpha", cos_theta.device)
    cp_rf = _as_scalar(cp_rf, "cp_rf")
    sp_rf = _as_scalar(sp_rf, "sp_rf")

    if cos_theta.shape != sin_theta.shape:
        raise ShapeMismatchError(
            f"cos_theta/sin_theta shape mismatch. Got {tuple(cos_theta.shape)} and {tuple(sin_theta.shape)}")
    if cos_alpha.shape != sin_alpha.shape:
        raise ShapeMismatchError(
            f"cos_alpha/sin_alpha shape mismatch. Got {tuple(cos_alpha.shape)} and {tuple(sin_alpha.shape)}")

    Nz = cos_theta.shape[0]
    Nt = cos_alpha.shape[0]

    # Fresh working copy; the caller's buffer is never written.
    M = torch.as_tensor(initial_field, dtype=torch.float64, device=cos_theta.device).clone()
    input_shape = tuple(M.shape)
    if M.ndim == 1:
        if M.numel() != 3 * Nz:
            raise ShapeMismatchError(
                f"initial_field shape mismatch. Expected {3 * Nz} values for Nz={Nz}, got {M.numel()}")
        M = M.reshape(Nz, 3)
    elif M.ndim != 2 or input_shape != (Nz, 3):
        raise ShapeMismatchError(
            f"initial_field shape mismatch. Expected ({Nz}, 3), got {input_shape}")

    rf_matrices_T = rf_tip_matrix(cos_alpha, sin_alpha, cp_rf, sp_rf).transpose(-1, -2)

    if return_all:
        M_time_course = torch.zeros((Nt, Nz, 3), dtype=torch.float64, device=M.device)

    for t in range(Nt):
        M = precess_z(M, cos_theta, sin_theta)
        M = M @ rf_matrices_T[t]
        if return_all:
            M_time_course[t] = M

    if return_all:
        return M_time_course.reshape((Nt,) + input_shape)
    return M.reshape(input_shape)


def simulate_rotations(initial_field, cos_theta, sin_theta, cos_alpha, sin_alpha,
                       cp_rf, sp_rf, return_all=False, device=None):
    """
    Numpy front end of :func:`rotate_field`.

    Accepts numpy arrays, lists or tensors and always returns a new float64
    np.ndarray on the host, shaped like initial_field (or (Nt, ...) when
    return_all is True).
    """
    M = rotate_field(initial_field, cos_theta, sin_theta, cos_alpha, sin_alpha,
                     cp_rf, sp_rf, return_all=return_all, device=device)
    return M.detach().cpu().numpy()
