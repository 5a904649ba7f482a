# rf_tools/core/constants.py
# Gyromagnetic ratio for Hydrogen (1H) in Hz/T
GAMMA_HZ_PER_T_PROTON = 42.57747892e6

# Dwell time used when a single-sample waveform carries no timing (1 us)
DEFAULT_DT_S = 1e-6
