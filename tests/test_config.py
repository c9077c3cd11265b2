"""
Tests for size tables and config persistence.
"""
import os
import tempfile
from unittest import TestCase, main

from config import (
    SearchConfig,
    deadline_ms_for_size,
    exploration_for_size,
    iterations_for_size,
    scaled_iterations,
    win_length_for_size,
)


class TestSizeTables(TestCase):
    """Per-size constants."""

    def test_win_length(self):
        self.assertEqual([win_length_for_size(n) for n in (3, 4, 5, 6, 9)], [3, 3, 4, 5, 5])
        with self.assertRaises(ValueError):
            win_length_for_size(2)

    def test_win_length_must_fit_board(self):
        config = SearchConfig(win_lengths={3: 4})
        with self.assertRaises(ValueError):
            config.win_length_for_size(3)

    def test_exploration(self):
        self.assertEqual(exploration_for_size(3), 1.414)
        self.assertEqual(exploration_for_size(4), 1.5)
        self.assertEqual(exploration_for_size(5), 1.6)
        self.assertEqual(exploration_for_size(8), 1.6)

    def test_iterations(self):
        self.assertEqual([iterations_for_size(n) for n in (3, 4, 5, 6, 7)], [2000, 3000, 4000, 8000, 1000])

    def test_scaled_iterations(self):
        self.assertEqual(scaled_iterations(3, 2000), 2000)
        self.assertEqual(scaled_iterations(4, 3000), 2700)
        self.assertEqual(scaled_iterations(5, 100), 90)
        self.assertEqual(scaled_iterations(6, 8000), 7200)

    def test_deadline(self):
        self.assertEqual([deadline_ms_for_size(n) for n in (3, 4, 5, 6, 10)], [2000, 2500, 3000, 3500, 3500])


class TestSearchConfig(TestCase):
    """Validation and JSON round-trip."""

    def test_rejects_unknown_value_update(self):
        with self.assertRaises(ValueError):
            SearchConfig(value_update='median')

    def test_rejects_bad_probability(self):
        with self.assertRaises(ValueError):
            SearchConfig(heuristic_probability=1.5)

    def test_json_round_trip(self):
        config = SearchConfig(
            win_lengths={3: 3, 4: 4},
            exploration_steps=[(3, 2.0)],
            value_update='legacy',
            max_playout_depth=12,
        )
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'configs', 'search.json')
            config.to_json(path)
            loaded = SearchConfig.from_json(path)

        self.assertEqual(loaded, config)
        self.assertEqual(loaded.win_length_for_size(4), 4)
        self.assertEqual(loaded.exploration_for_size(3), 2.0)


if __name__ == '__main__':
    main()
