# File: rf_tools/tests/test_pulse_simulator.py
import contextlib
import io
import unittest
import numpy as np
from rf_tools import simulators
from rf_tools.core.constants import GAMMA_HZ_PER_T_PROTON


class TestPulseSimulations(unittest.TestCase):

    # Default parameters for pulse generation
    duration = 1e-3
    dt = 1e-5
    flip_angle_deg = 90.0

    # Spatial parameters
    slice_grad_Tm = 0.006
    z_positions_m = np.linspace(-0.01, 0.01, 5) # 5 points over 2cm range

    def test_hard_pulse_waveform(self):
        rf_T, time_s = simulators.hard_pulse_waveform(self.flip_angle_deg, self.duration, self.dt)
        self.assertEqual(rf_T.shape, time_s.shape)
        self.assertEqual(len(rf_T), 100)
        self.assertTrue(np.allclose(rf_T, rf_T[0]))
        area = 2 * np.pi * GAMMA_HZ_PER_T_PROTON * np.sum(rf_T) * self.dt
        self.assertAlmostEqual(area, np.pi / 2)

        rf_zero, time_zero = simulators.hard_pulse_waveform(self.flip_angle_deg, 0.0)
        self.assertEqual(rf_zero.size, 0)
        self.assertEqual(time_zero.size, 0)
        with self.assertRaises(ValueError):
            simulators.hard_pulse_waveform(self.flip_angle_deg, -1e-3)

    def test_on_resonance_ninety(self):
        rf_T, time_s = simulators.hard_pulse_waveform(self.flip_angle_deg, self.duration, self.dt)
        M = simulators.simulate_slice_profile(rf_T, time_s, 0.0, [0.0])
        self.assertEqual(M.shape, (1, 3))
        np.testing.assert_allclose(M[0], [0.0, 1.0, 0.0], atol=1e-10)

    def test_single_sample_pulse_dt(self):
        rf_T, time_s = simulators.hard_pulse_waveform(self.flip_angle_deg, 1e-5, 1e-5)
        self.assertEqual(len(rf_T), 1)
        M = simulators.simulate_slice_profile(rf_T, time_s, 0.0, [0.0], dt_s=1e-5)
        np.testing.assert_allclose(M[0], [0.0, 1.0, 0.0], atol=1e-10)

    def test_rf_phase_moves_tip_axis(self):
        rf_T, time_s = simulators.hard_pulse_waveform(self.flip_angle_deg, self.duration, self.dt)
        M = simulators.simulate_slice_profile(rf_T, time_s, 0.0, [0.0], rf_phase_deg=90.0)
        np.testing.assert_allclose(M[0], [-1.0, 0.0, 0.0], atol=1e-10)

    def test_complex_waveform_phase(self):
        rf_T, time_s = simulators.hard_pulse_waveform(self.flip_angle_deg, self.duration, self.dt)
        M_complex = simulators.simulate_slice_profile(rf_T * np.exp(1j * np.pi / 2), time_s, 0.0, [0.0])
        M_phase = simulators.simulate_slice_profile(rf_T, time_s, 0.0, [0.0], rf_phase_deg=90.0)
        np.testing.assert_allclose(M_complex, M_phase, atol=1e-12)

    def test_complex_rf_phase(self):
        rf = np.array([1.0, 2.0, -1.0]) * np.exp(1j * 0.3)
        amplitude, phase = simulators.complex_rf_phase(rf)
        self.assertAlmostEqual(phase, 0.3)
        np.testing.assert_allclose(amplitude, [1.0, 2.0, -1.0])

        with self.assertRaises(ValueError):
            simulators.complex_rf_phase(np.array([1.0, 1.0j]))

        amplitude, phase = simulators.complex_rf_phase(np.zeros(4, dtype=complex))
        np.testing.assert_array_equal(amplitude, np.zeros(4))
        self.assertEqual(phase, 0.0)

    def test_slice_profile(self):
        rf_T, time_s = simulators.hard_pulse_waveform(self.flip_angle_deg, self.duration, self.dt)
        M = simulators.simulate_slice_profile(rf_T, time_s, self.slice_grad_Tm, self.z_positions_m)
        self.assertEqual(M.shape, (len(self.z_positions_m), 3))
        # Centre position is on resonance
        np.testing.assert_allclose(M[2], [0.0, 1.0, 0.0], atol=1e-10)
        # Pure rotations keep |M| = 1 everywhere
        np.testing.assert_allclose(np.linalg.norm(M, axis=1), np.ones(len(self.z_positions_m)), atol=1e-12)

    def test_slice_profile_return_all(self):
        rf_T, time_s = simulators.hard_pulse_waveform(self.flip_angle_deg, self.duration, self.dt)
        M_all = simulators.simulate_slice_profile(rf_T, time_s, self.slice_grad_Tm, self.z_positions_m,
                                                  return_all=True)
        self.assertEqual(M_all.shape, (len(rf_T), len(self.z_positions_m), 3))
        M = simulators.simulate_slice_profile(rf_T, time_s, self.slice_grad_Tm, self.z_positions_m)
        np.testing.assert_allclose(M_all[-1], M)

    def test_empty_pulse_returns_initial_field(self):
        M = simulators.simulate_slice_profile([], [], self.slice_grad_Tm, self.z_positions_m, mx0=0.5, mz0=0.5)
        np.testing.assert_array_equal(M, np.tile([0.5, 0.0, 0.5], (len(self.z_positions_m), 1)))

    def test_shape_mismatch(self):
        with self.assertRaises(ValueError):
            simulators.simulate_slice_profile(np.ones(4), np.arange(5) * self.dt, 0.0, [0.0])

    def test_hard_pulse_train(self):
        M = simulators.simulate_hard_pulse_train([45.0, 45.0], np.zeros(3))
        np.testing.assert_allclose(M, np.tile([0.0, 1.0, 0.0], (3, 1)), atol=1e-12)

        M_all = simulators.simulate_hard_pulse_train([30.0, 30.0, 30.0], [0.0, 0.2], return_all=True)
        self.assertEqual(M_all.shape, (3, 2, 3))

        initial = np.array([[0.0, 0.0, -1.0]])
        M_neg = simulators.simulate_hard_pulse_train([180.0], [0.0], initial_field=initial)
        np.testing.assert_allclose(M_neg[0], [0.0, 0.0, 1.0], atol=1e-12)

    def test_verbose_output(self):
        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            simulators.simulate_hard_pulse_train([90.0], [0.0], verbose=True)
        self.assertIn("[PulseSimulator]", buffer.getvalue())

    def test_slice_profile_example(self):
        from rf_tools.examples.slice_profile_example import run_slice_profile_example
        M_profile, metrics = run_slice_profile_example(verbose=False)
        self.assertEqual(M_profile.shape, (201, 3))
        self.assertLess(metrics.max_norm_drift, 1e-12)


if __name__ == '__main__':
    unittest.main()
