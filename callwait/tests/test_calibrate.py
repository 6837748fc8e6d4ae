import unittest

import numpy as np

from callwait.calibrate import CalibrationError, calibrate, median_wait, next_step


class CalibrateTest(unittest.TestCase):
    """Volume calibration lands the median wait just below the target."""

    def test_converges_below_target(self) -> None:
        for seed in (1, 2, 3):
            rng = np.random.default_rng(seed)
            ordered = calibrate(rng, 2, 2.0, 1.0, horizon=500.0, max_iterations=500)
            self.assertTrue(ordered)
            self.assertLess(median_wait(ordered), 2.0)
            waits = [c.waiting for c in ordered]
            self.assertEqual(waits, sorted(waits))

    def test_calibrated_load_is_busy(self) -> None:
        rng = np.random.default_rng(8)
        ordered = calibrate(rng, 3, 3.0, 2.0, horizon=600.0, max_iterations=500)
        self.assertGreater(max(c.waiting for c in ordered), 0.0)

    def test_iteration_cap_raises(self) -> None:
        rng = np.random.default_rng(1)
        with self.assertRaises(CalibrationError):
            calibrate(rng, 2, 2.0, 1.0, horizon=500.0, max_iterations=3)

    def test_rejects_invalid_parameters(self) -> None:
        rng = np.random.default_rng(1)
        with self.assertRaises(ValueError):
            calibrate(rng, 0, 2.0, 1.0, horizon=500.0)
        with self.assertRaises(ValueError):
            calibrate(rng, 2, 0.0, 1.0, horizon=500.0)
        with self.assertRaises(ValueError):
            calibrate(rng, 2, 2.0, -1.0, horizon=500.0)

    def test_next_step(self) -> None:
        self.assertEqual(next_step(4, True, True), 8)
        self.assertEqual(next_step(4, False, True), 2)
        self.assertEqual(next_step(-4, False, True), 2)
        self.assertEqual(next_step(1, False, True), 0)
        self.assertEqual(next_step(8, True, False), -4)
        self.assertEqual(next_step(1, False, False), -1)
        self.assertEqual(next_step(-1, False, False), -1)

    def test_median_of_empty_set(self) -> None:
        with self.assertRaises(ValueError):
            median_wait([])


if __name__ == "__main__":
    unittest.main()
