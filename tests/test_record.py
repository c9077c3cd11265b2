"""
Tests for game records and replay.
"""
import os
import tempfile
from unittest import TestCase, main

from game import O, X
from record import GameRecord, MoveRecord, load_game, replay_boards, save_game, winner_label


class TestGameRecord(TestCase):
    """Validation, serialization and replay."""

    def setUp(self):
        self.record = GameRecord(3, player1_name='Alice', player2_name='Computer')
        for position, mark in ((4, 'X'), (0, 'O'), (8, 'X')):
            self.record.add_move(position, mark)

    def test_move_order(self):
        self.assertEqual([m.move_order for m in self.record.moves], [1, 2, 3])

    def test_validation(self):
        with self.assertRaises(ValueError):
            GameRecord(7)
        with self.assertRaises(ValueError):
            GameRecord(3, game_type='solo')
        with self.assertRaises(ValueError):
            GameRecord(3, winner='nobody')
        with self.assertRaises(ValueError):
            MoveRecord(position=-1, symbol='X', move_order=1)
        with self.assertRaises(ValueError):
            MoveRecord(position=0, symbol='Z', move_order=1)
        with self.assertRaises(ValueError):
            MoveRecord(position=0, symbol='X', move_order=0)

    def test_to_dict(self):
        data = self.record.to_dict()
        self.assertEqual(data['boardSize'], 3)
        self.assertEqual(data['gameType'], 'onePlayer')
        self.assertEqual(data['moves'][1], {'position': 0, 'symbol': 'O', 'moveOrder': 2})

    def test_save_and_load(self):
        self.record.winner = 'tie'
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'games', 'game.json')
            save_game(self.record, path)
            loaded = load_game(path)
        self.assertEqual(loaded, self.record)

    def test_replay(self):
        boards = list(replay_boards(self.record))
        self.assertEqual(len(boards), 3)
        self.assertEqual(boards[0][4], 'X')
        self.assertIsNone(boards[0][0])
        self.assertEqual(boards[-1], ['O', None, None, None, 'X', None, None, None, 'X'])

    def test_replay_sorts_by_move_order(self):
        self.record.moves.reverse()
        boards = list(replay_boards(self.record))
        self.assertEqual(boards[0], [None, None, None, None, 'X', None, None, None, None])

    def test_replay_rejects_bad_moves(self):
        self.record.add_move(4, 'O')
        with self.assertRaises(ValueError):
            list(replay_boards(self.record))

        record = GameRecord(3)
        record.add_move(9, 'X')
        with self.assertRaises(ValueError):
            list(replay_boards(record))

    def test_winner_label(self):
        self.assertEqual(winner_label(X), 'player1')
        self.assertEqual(winner_label(O), 'player2')
        self.assertEqual(winner_label(0), 'tie')
        self.assertEqual(winner_label(O, player1_mark='O'), 'player1')


if __name__ == '__main__':
    main()
