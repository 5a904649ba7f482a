# rf_tools/interop/__init__.py
from .mat_io import (
    INPUT_ORDER,
    DEFAULT_INPUT_KEYS,
    field_from_host,
    field_to_host,
    simulate_host,
    load_mat_inputs,
    save_mat_inputs,
    save_mat_output,
    run_mat_file
)

__all__ = [
    'INPUT_ORDER',
    'DEFAULT_INPUT_KEYS',
    'field_from_host',
    'field_to_host',
    'simulate_host',
    'load_mat_inputs',
    'save_mat_inputs',
    'save_mat_output',
    'run_mat_file'
]
