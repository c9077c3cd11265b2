"""
Tests for line rules: winner detection, near-win counting and move threats.
"""
from unittest import TestCase, main

import numpy as np

from game import KInARowGame
from rules import board_score, completes_line, find_winner, is_full, near_win_count, winning_cells


def board(rows):
    return np.array(rows, dtype=np.int8)


class TestFindWinner(TestCase):
    """Window scanning over rows, columns and both diagonals."""

    def test_row_column_and_diagonals_3x3(self):
        self.assertEqual(find_winner(board([[1, 1, 1], [0, -1, -1], [0, 0, 0]]), 3), 1)
        self.assertEqual(find_winner(board([[-1, 1, 1], [-1, 1, 0], [-1, 0, 0]]), 3), -1)
        self.assertEqual(find_winner(board([[1, -1, 0], [-1, 1, 0], [0, 0, 1]]), 3), 1)
        self.assertEqual(find_winner(board([[1, 1, -1], [1, -1, 0], [-1, 0, 0]]), 3), -1)

    def test_no_winner_on_empty_board(self):
        self.assertIsNone(find_winner(np.zeros((5, 5), dtype=np.int8), 4))

    def test_offset_windows_on_larger_board(self):
        """Windows shorter than the board are found at every offset."""
        b = np.zeros((4, 4), dtype=np.int8)
        b[0, 1] = b[1, 2] = b[2, 3] = 1
        self.assertEqual(find_winner(b, 3), 1)

        b = np.zeros((4, 4), dtype=np.int8)
        b[1, 3] = b[2, 2] = b[3, 1] = -1
        self.assertEqual(find_winner(b, 3), -1)

        b = np.zeros((5, 5), dtype=np.int8)
        b[4, 1:5] = -1
        self.assertEqual(find_winner(b, 4), -1)

    def test_broken_line_is_not_a_win(self):
        b = np.zeros((5, 5), dtype=np.int8)
        b[2, [0, 1, 3, 4]] = 1
        self.assertIsNone(find_winner(b, 4))

    def test_full_board_without_line(self):
        b = board([[1, -1, 1], [1, -1, -1], [-1, 1, 1]])
        self.assertTrue(is_full(b))
        self.assertIsNone(find_winner(b, 3))

    def test_is_full(self):
        self.assertFalse(is_full(board([[1, -1, 1], [1, -1, -1], [-1, 1, 0]])))
        self.assertFalse(is_full(np.zeros((3, 3), dtype=np.int8)))

    def test_invariant_under_half_turn(self):
        """Rotating a finished game by 180 degrees keeps the same winner."""
        rng = np.random.default_rng(11)
        for size in (3, 4, 5, 6):
            for _ in range(15):
                game = KInARowGame(size)
                while not game.game_over:
                    game.step(int(rng.choice(game.get_valid_moves_list())))
                expected = None if game.winner == 0 else game.winner
                rotated = np.ascontiguousarray(np.rot90(game.board, 2))
                self.assertEqual(find_winner(game.board, game.win_length), expected)
                self.assertEqual(find_winner(rotated, game.win_length), expected)

    def test_rejects_bad_win_length(self):
        with self.assertRaises(ValueError):
            find_winner(np.zeros((3, 3), dtype=np.int8), 4)
        with self.assertRaises(ValueError):
            find_winner(np.zeros((3, 4), dtype=np.int8), 3)


class TestNearWins(TestCase):
    """Near-win counting and the heuristic score built on it."""

    def test_counts_each_open_window(self):
        b = board([[1, 1, 0], [0, 1, 0], [0, 0, 0]])
        # row 0, column 1 and the main diagonal
        self.assertEqual(near_win_count(b, 1, 3), 3)
        self.assertEqual(near_win_count(b, -1, 3), 0)

    def test_blocked_window_is_not_counted(self):
        b = board([[1, 1, 0], [0, 1, 0], [0, 0, -1]])
        self.assertEqual(near_win_count(b, 1, 3), 2)

    def test_anti_diagonal_offset(self):
        b = np.zeros((4, 4), dtype=np.int8)
        b[0, 3] = b[1, 2] = -1
        self.assertEqual(near_win_count(b, -1, 3), 1)

    def test_board_score(self):
        won = board([[1, 1, 1], [-1, -1, 0], [0, 0, 0]])
        self.assertEqual(board_score(won, 1, 3), 1.0)
        self.assertEqual(board_score(won, -1, 3), 0.0)

        open_board = board([[1, 1, 0], [0, 1, 0], [0, 0, 0]])
        self.assertAlmostEqual(board_score(open_board, 1, 3), 0.3)

    def test_board_score_is_capped(self):
        b = board([[1, 1, 0], [0, 1, 0], [0, 0, 0]])
        self.assertAlmostEqual(board_score(b, 1, 3, near_win_weight=0.5, near_win_cap=0.7), 0.7)


class TestMoveThreats(TestCase):
    """Incremental line checks used by playouts and tactics."""

    def test_completes_line(self):
        b = board([[1, 1, 1], [-1, -1, 0], [0, 0, 0]])
        self.assertTrue(completes_line(b, 0, 2, 3))
        self.assertFalse(completes_line(b, 1, 0, 3))
        self.assertFalse(completes_line(b, 2, 2, 3))

    def test_winning_cells_in_scan_order(self):
        b = board([[1, 1, 0], [-1, -1, 0], [0, 0, 0]])
        self.assertEqual(winning_cells(b, 1, 3).tolist(), [2])
        self.assertEqual(winning_cells(b, -1, 3).tolist(), [5])

        b = board([[1, 0, 1], [0, 0, 0], [1, 0, 0]])
        self.assertEqual(winning_cells(b, 1, 3).tolist(), [1, 3, 4])

    def test_winning_cells_leaves_board_untouched(self):
        b = board([[1, 1, 0], [-1, -1, 0], [0, 0, 0]])
        before = b.copy()
        winning_cells(b, 1, 3)
        np.testing.assert_array_equal(b, before)


if __name__ == '__main__':
    main()
