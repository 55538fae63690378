"""Unit tests for landmark correspondence storage."""

import unittest
import numpy as np
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from registration.landmarks import LandmarkStore, as_position


class TestAsPosition(unittest.TestCase):
    """Test position validation."""

    def test_valid_position(self):
        position = as_position([1, 2.5, -3])
        self.assertEqual(position.shape, (3,))
        self.assertEqual(position.dtype, float)

    def test_wrong_length(self):
        with self.assertRaises(ValueError):
            as_position([1.0, 2.0])

    def test_non_numeric(self):
        with self.assertRaises(ValueError):
            as_position(["a", "b", "c"])

    def test_non_finite(self):
        with self.assertRaises(ValueError):
            as_position([0.0, float('nan'), 1.0])

    def test_none(self):
        with self.assertRaises(ValueError):
            as_position(None)


class TestLandmarkStore(unittest.TestCase):
    """Test LandmarkStore class."""

    def setUp(self):
        """Set up test fixtures."""
        self.store = LandmarkStore()
        self.store.add_defined_landmark("a", [0, 0, 0], 0)
        self.store.add_defined_landmark("b", [1, 0, 0], 1)
        self.store.add_recorded_landmark([5, 0, 0], 0)

    def test_counts(self):
        """Count reports recorded landmarks only."""
        self.assertEqual(self.store.count(), 1)
        self.assertEqual(self.store.defined_count(), 2)
        self.assertEqual(len(self.store), 1)

    def test_overwrite_at_index(self):
        """Inserting at a used index replaces the landmark."""
        self.store.add_defined_landmark("c", [7, 8, 9], 1)
        self.assertEqual(self.store.defined_count(), 2)
        self.assertEqual(self.store.get_defined_landmark(1).name, "c")
        np.testing.assert_array_equal(self.store.get_defined_landmark(1).position, [7, 8, 9])

        self.store.add_recorded_landmark([6, 0, 0], 0)
        self.assertEqual(self.store.count(), 1)
        np.testing.assert_array_equal(self.store.recorded_points(), [[6, 0, 0]])

    def test_points_ordered_by_index(self):
        """Arrays follow index order, not insertion order."""
        store = LandmarkStore()
        store.add_defined_landmark("second", [2, 2, 2], 1)
        store.add_defined_landmark("first", [1, 1, 1], 0)
        np.testing.assert_array_equal(store.defined_points(), [[1, 1, 1], [2, 2, 2]])
        self.assertEqual(store.defined_landmark_names(), ["first", "second"])

    def test_empty_points(self):
        store = LandmarkStore()
        self.assertEqual(store.defined_points().shape, (0, 3))
        self.assertEqual(store.recorded_points().shape, (0, 3))

    def test_reset_is_idempotent(self):
        self.store.reset()
        self.store.reset()
        self.assertEqual(self.store.count(), 0)
        self.assertEqual(self.store.defined_count(), 0)
        self.assertEqual(self.store.defined_landmark_names(), [])

    def test_clear_recorded_keeps_defined(self):
        self.store.clear_recorded()
        self.assertEqual(self.store.count(), 0)
        self.assertEqual(self.store.defined_count(), 2)

    def test_missing_name_is_empty(self):
        self.store.add_defined_landmark(None, [3, 3, 3], 2)
        self.assertEqual(self.store.get_defined_landmark(2).name, "")

    def test_invalid_index(self):
        with self.assertRaises(ValueError):
            self.store.add_recorded_landmark([0, 0, 0], -1)
        with self.assertRaises(ValueError):
            self.store.add_defined_landmark("x", [0, 0, 0], 1.5)

    def test_copy_is_independent(self):
        """A copied store is not affected by later changes."""
        snapshot = self.store.copy()
        self.store.add_recorded_landmark([9, 9, 9], 1)
        self.store.get_defined_landmark(0).position[0] = 100.0

        self.assertEqual(snapshot.count(), 1)
        np.testing.assert_array_equal(snapshot.get_defined_landmark(0).position, [0, 0, 0])


if __name__ == '__main__':
    unittest.main()
