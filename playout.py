"""
Playout policies: simulate a game from a search leaf to estimate its outcome.
"""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from config import SearchConfig
from rules import find_winner, near_win_count, winning_cells


class PlayoutPolicy(ABC):
    """
    Base playout.

    Each ply: stop on a finished board, take an immediate win if the side
    to move has one, otherwise play choose_move(). Past the depth cap the
    position is scored by near-win counts.
    """

    def __init__(self, config: Optional[SearchConfig] = None, rng: Optional[np.random.Generator] = None):
        self.config = config if config is not None else SearchConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def choose_move(self, board: np.ndarray, moves: np.ndarray, player: int, win_length: int) -> int:
        """Pick a flat index from moves for player."""

    def simulate(self, board: np.ndarray, player: int, win_length: int) -> Optional[int]:
        """
        Play out from board with player to move.

        Returns:
            The winning mark, or None for a draw.
        """
        state = board.copy()
        flat = state.reshape(-1)
        current, waiting = player, -player
        max_depth = min(self.config.max_playout_depth, state.size)

        for _ in range(max_depth):
            winner = find_winner(state, win_length)
            if winner is not None:
                return winner

            moves = np.flatnonzero(flat == 0)
            if len(moves) == 0:
                return None

            if len(winning_cells(state, current, win_length)) > 0:
                return current

            move = self.choose_move(state, moves, current, win_length)
            flat[move] = current
            current, waiting = waiting, current

        return self.evaluate(state, win_length)

    def evaluate(self, board: np.ndarray, win_length: int) -> Optional[int]:
        """Declare the side with more near-wins the winner, None on a tie."""
        scores = {}
        for mark in (1, -1):
            count = near_win_count(board, mark, win_length)
            scores[mark] = min(self.config.near_win_cap, count * self.config.near_win_weight)
        if scores[1] > scores[-1]:
            return 1
        if scores[-1] > scores[1]:
            return -1
        return None


class RandomPlayout(PlayoutPolicy):
    """Uniformly random moves."""

    def choose_move(self, board: np.ndarray, moves: np.ndarray, player: int, win_length: int) -> int:
        return int(moves[self.rng.integers(len(moves))])


class HeuristicPlayout(PlayoutPolicy):
    """
    Mostly greedy playout.

    With probability heuristic_probability the moves are scored by
    blocking value plus closeness to the center and one of the best
    top_moves is played; otherwise a uniformly random move is played.
    """

    def move_scores(self, board: np.ndarray, moves: np.ndarray, player: int, win_length: int) -> np.ndarray:
        n = board.shape[0]
        center = n // 2
        threats = set(winning_cells(board, -player, win_length).tolist())

        scores = np.zeros(len(moves), dtype=np.float64)
        for i, move in enumerate(moves):
            row, col = divmod(int(move), n)
            if int(move) in threats:
                scores[i] += self.config.block_bonus
            distance = abs(row - center) + abs(col - center)
            scores[i] += max(0, self.config.center_radius - distance)
        return scores

    def choose_move(self, board: np.ndarray, moves: np.ndarray, player: int, win_length: int) -> int:
        if self.rng.random() < self.config.heuristic_probability:
            scores = self.move_scores(board, moves, player, win_length)
            top = np.argsort(-scores, kind='stable')[:self.config.top_moves]
            return int(moves[top[self.rng.integers(len(top))]])
        return int(moves[self.rng.integers(len(moves))])
