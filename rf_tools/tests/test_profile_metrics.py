import unittest
import numpy as np
from rf_tools.simulators import profile_metrics
from rf_tools.simulators.profile_metrics import (
    ProfileMetrics,
    transverse_magnetization,
    norm_drift,
    analyze_slice_profile,
    evaluate_profile
)


class TestProfileMetrics(unittest.TestCase):

    def setUp(self):
        self.z = np.linspace(-1.0, 1.0, 201)
        self.mz_box = np.where(np.abs(self.z) < 0.245, 0.0, 1.0)

    def test_fwhm_of_box_profile(self):
        result = analyze_slice_profile(self.mz_box, self.z, target_mz=0.0)
        # Edges fall half-way between +-0.24 and +-0.25
        self.assertAlmostEqual(result["fwhm_m"], 0.49, places=6)
        self.assertAlmostEqual(result["ripple_percent"], 0.0)

    def test_fwhm_unsorted_positions(self):
        order = np.random.default_rng(0).permutation(len(self.z))
        result = analyze_slice_profile(self.mz_box[order], self.z[order], target_mz=0.0)
        self.assertAlmostEqual(result["fwhm_m"], 0.49, places=6)

    def test_ripple(self):
        mz = self.mz_box.copy()
        mz[100] = 0.02
        result = analyze_slice_profile(mz, self.z, target_mz=0.0)
        self.assertAlmostEqual(result["ripple_percent"], 2.0)

        mz_inv = np.where(np.abs(self.z) < 0.245, -1.0, 1.0)
        mz_inv[100] = -0.96
        result_inv = analyze_slice_profile(mz_inv, self.z, target_mz=-1.0)
        self.assertAlmostEqual(result_inv["ripple_percent"], 2.0)

    def test_invalid_profile(self):
        result = analyze_slice_profile(np.array([]), np.array([]))
        self.assertEqual(result["fwhm_m"], 0.0)
        result = analyze_slice_profile(np.ones(3), np.ones(4))
        self.assertEqual(result["ripple_percent"], 0.0)

    def test_transverse_and_norm_drift(self):
        field = np.array([[1.0, 0.0, 0.0], [0.0, 2.0, 1.0]])
        np.testing.assert_allclose(transverse_magnetization(field), [1.0, 2.0j])
        np.testing.assert_allclose(norm_drift(field, field * 2), np.linalg.norm(field, axis=1))
        with self.assertRaises(ValueError):
            norm_drift(field, field[:1])

    def test_evaluate_profile(self):
        field = np.zeros((len(self.z), 3))
        field[:, 2] = self.mz_box
        field[:, 1] = np.sqrt(1.0 - self.mz_box ** 2)
        metrics = evaluate_profile(field, self.z, initial_field=np.tile([0.0, 0.0, 1.0], (len(self.z), 1)))
        self.assertIsInstance(metrics, ProfileMetrics)
        self.assertAlmostEqual(metrics.slice_thickness_m, 0.49, places=6)
        self.assertAlmostEqual(metrics.max_norm_drift, 0.0)
        self.assertIn("Slice Thickness", str(metrics))

    def test_empty_metrics_str(self):
        self.assertEqual(str(profile_metrics.ProfileMetrics()), "No metrics calculated.")


if __name__ == '__main__':
    unittest.main()
