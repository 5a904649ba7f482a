import argparse
import sys

import numpy as np
import yaml

from rf_tools.config import load_config, merge_config, z_positions_from_config
from rf_tools.interop.mat_io import run_mat_file, field_from_host, save_mat_output
from rf_tools.simulators.pulse_simulator import hard_pulse_waveform, simulate_slice_profile
from rf_tools.simulators.profile_metrics import evaluate_profile


def _log(message, verbose):
    if verbose:
        print(f"[rf-tools-sim] {message}")


def simulate_from_config(config, verbose=False):
    """
    Runs one simulation described by a merged config dict.

    Kernel inputs come from inputs.mat_file when it is set, otherwise the
    trig tables are built from the hard pulse described in the pulse section.

    Returns:
        tuple: (field, z_positions_m, initial_field)
            field (np.ndarray): Final magnetization, shape (Nz, 3).
            z_positions_m (np.ndarray or None): Positions, None for .mat inputs.
            initial_field (np.ndarray or None): Initial field, None for .mat inputs.
    """
    device = config['device']
    inputs = config['inputs']
    if inputs['mat_file']:
        _log(f"Loading kernel inputs from {inputs['mat_file']}", verbose)
        Mout = run_mat_file(inputs['mat_file'], keys=inputs['keys'], device=device)
        return field_from_host(Mout), None, None

    pulse = config['pulse']
    rf_T, time_s = hard_pulse_waveform(pulse['flip_angle_deg'], pulse['duration_s'], pulse['dt_s'])
    z_positions_m = z_positions_from_config(pulse['z_positions_m'])
    mx0, my0, mz0 = (float(v) for v in pulse['initial_magnetization'])
    _log(f"Hard pulse: {pulse['flip_angle_deg']} deg, {len(rf_T)} samples, {len(z_positions_m)} positions", verbose)

    field = simulate_slice_profile(rf_T, time_s, pulse['slice_select_gradient_Tm'], z_positions_m,
                                   rf_phase_deg=pulse['rf_phase_deg'],
                                   off_resonance_hz=pulse['off_resonance_hz'],
                                   mx0=mx0, my0=my0, mz0=mz0,
                                   device=device, verbose=verbose, dt_s=pulse['dt_s'])
    initial_field = np.tile([mx0, my0, mz0], (len(z_positions_m), 1))
    return field, z_positions_m, initial_field


def run_cli(argv=None):
    parser = argparse.ArgumentParser(
        description="Hard-pulse RF rotation simulator CLI"
    )
    parser.add_argument('--config', type=str, help="YAML or JSON config file")
    parser.add_argument('--matlab-in', type=str, help="Read kernel inputs from this .mat file")
    parser.add_argument('--matlab-out', type=str, help="Save result as .mat file (3 x Nz)")
    parser.add_argument('--txt-out', type=str, help="Save result as text (one Mx My Mz row per position)")
    parser.add_argument('--device', type=str, default=None, help="PyTorch device")
    parser.add_argument('--verbose', action='store_true', help="Verbose output")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else merge_config({})
        if args.matlab_in:
            config['inputs']['mat_file'] = args.matlab_in
        if args.device:
            config['device'] = args.device
        if args.verbose:
            print("Loaded configuration:")
            print(config)

        field, z_positions_m, initial_field = simulate_from_config(config, verbose=args.verbose)

        mat_out = args.matlab_out or config['output']['mat_file']
        if mat_out:
            save_mat_output(mat_out, field, key=config['output']['key'])
            _log(f"Saved .mat file: {mat_out}", args.verbose)
        txt_out = args.txt_out or config['output']['txt_file']
        if txt_out:
            np.savetxt(txt_out, field, header="Mx My Mz")
            _log(f"Saved text file: {txt_out}", args.verbose)
    except (OSError, KeyError, ValueError, RuntimeError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        return 1

    if args.verbose:
        print(str(evaluate_profile(field, z_positions_m, initial_field)))
    return 0


def main():
    sys.exit(run_cli())


if __name__ == '__main__':
    main()
