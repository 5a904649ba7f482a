# File: rf_tools/config.py
# Run configuration for the rf_tools command line. Configs are YAML or JSON
# files with the sections below; each section given in a file is merged over
# its defaults key by key.

import copy
import json

import numpy as np
import yaml

from rf_tools.interop.mat_io import DEFAULT_INPUT_KEYS

DEFAULT_CONFIG = {
    'device': 'cpu',
    'inputs': {
        'mat_file': None,
        'keys': dict(DEFAULT_INPUT_KEYS),
    },
    'pulse': {
        'flip_angle_deg': 90.0,
        'duration_s': 1e-3,
        'dt_s': 1e-5,
        'rf_phase_deg': 0.0,
        'slice_select_gradient_Tm': 0.0,
        'z_positions_m': [0.0],
        'off_resonance_hz': 0.0,
        'initial_magnetization': [0.0, 0.0, 1.0],
    },
    'output': {
        'mat_file': None,
        'key': 'Mout',
        'txt_file': None,
    },
}


def merge_config(params):
    """
    Merges a user config dict over DEFAULT_CONFIG.

    Raises:
        ValueError: For unknown sections or keys.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in (params or {}).items():
        if section not in config:
            raise ValueError(f"Unknown config section '{section}'. Expected one of {sorted(config)}")
        if isinstance(config[section], dict):
            if not isinstance(values, dict):
                raise ValueError(f"Config section '{section}' must be a mapping.")
            unknown = set(values) - set(config[section])
            if unknown:
                raise ValueError(f"Unknown keys in config section '{section}': {sorted(unknown)}")
            if section == 'inputs' and 'keys' in values:
                values = dict(values, keys=dict(config['inputs']['keys'], **(values['keys'] or {})))
            config[section].update(values)
        else:
            config[section] = values
    return config


def load_config(filename):
    """Loads a YAML (.yaml/.yml) or JSON config file and merges it over the defaults."""
    with open(filename, 'r') as f:
        if filename.endswith('.yaml') or filename.endswith('.yml'):
            params = yaml.safe_load(f)
        else:
            params = json.load(f)
    return merge_config(params)


def z_positions_from_config(value):
    """
    Positions from a config entry: a list of positions in meters, or a
    mapping {start, stop, num} expanded with np.linspace.
    """
    if isinstance(value, dict):
        return np.linspace(float(value['start']), float(value['stop']), int(value['num']))
    return np.atleast_1d(np.asarray(value, dtype=np.float64))
