"""
K-in-a-row game environment.
N x N board, K consecutive marks in a row, column or diagonal win.
"""
import numpy as np
from typing import Iterable, List, Optional, Tuple

from config import DEFAULT_CONFIG
from rules import completes_line, find_winner, is_full

EMPTY = 0
X = 1
O = -1

SYMBOLS = {EMPTY: '.', X: 'X', O: 'O'}

_SYMBOL_TO_MARK = {
    None: EMPTY,
    '': EMPTY,
    '.': EMPTY,
    ' ': EMPTY,
    'X': X,
    'x': X,
    'O': O,
    'o': O,
}


class InvalidBoardSize(ValueError):
    """Board length does not match size * size."""


class NoLegalMove(ValueError):
    """A move was requested on a board with no empty cell."""


def opponent(mark: int) -> int:
    return -mark


def symbol(mark: int) -> str:
    return SYMBOLS[mark]


def parse_mark(mark) -> int:
    """Accept 'X'/'O' or 1/-1."""
    if isinstance(mark, str):
        value = _SYMBOL_TO_MARK.get(mark, EMPTY)
    elif isinstance(mark, (int, np.integer)):
        value = int(mark)
    else:
        value = EMPTY
    if value not in (X, O):
        raise ValueError(f"Unrecognized mark: {mark!r}")
    return value


def parse_cell(cell) -> int:
    if cell is None or isinstance(cell, str):
        if cell not in _SYMBOL_TO_MARK:
            raise ValueError(f"Unrecognized cell: {cell!r}")
        return _SYMBOL_TO_MARK[cell]
    value = int(cell)
    if value not in (EMPTY, X, O):
        raise ValueError(f"Unrecognized cell: {cell!r}")
    return value


def parse_board(cells: Iterable) -> np.ndarray:
    """Convert a flat sequence of cells into a flat int8 array."""
    if isinstance(cells, np.ndarray) and cells.dtype.kind in 'iu':
        flat = cells.ravel().astype(np.int8)
        if not np.isin(flat, (EMPTY, X, O)).all():
            raise ValueError("Board contains unrecognized cell values")
        return flat
    return np.array([parse_cell(cell) for cell in cells], dtype=np.int8)


def to_2d(cells: Iterable, size: int) -> np.ndarray:
    """Flat cells -> (size, size) int8 board."""
    flat = parse_board(cells)
    if flat.size != size * size:
        raise InvalidBoardSize(f"Expected {size * size} cells for a {size}x{size} board, got {flat.size}")
    return flat.reshape(size, size)


def to_1d(board: np.ndarray) -> List[Optional[str]]:
    """(size, size) board -> flat list of 'X', 'O' and None."""
    return [None if cell == EMPTY else SYMBOLS[int(cell)] for cell in np.asarray(board).ravel()]


def empty_squares(cells: Iterable) -> List[int]:
    return np.flatnonzero(parse_board(cells) == EMPTY).tolist()


class KInARowGame:
    """
    K-in-a-row game environment.
    Board representation:
        0 = empty
        1 = X (first player)
        -1 = O (second player)
    """

    def __init__(self, board_size: int = 3, win_length: Optional[int] = None):
        self.board_size = board_size
        self.win_length = win_length if win_length is not None else DEFAULT_CONFIG.win_length_for_size(board_size)
        if not 2 <= self.win_length <= board_size:
            raise ValueError(f"Win length {self.win_length} does not fit board size {board_size}")
        self.reset()

    def reset(self) -> np.ndarray:
        """Reset the game to initial state."""
        self.board = np.zeros((self.board_size, self.board_size), dtype=np.int8)
        self.current_player = X
        self.last_move: Optional[Tuple[int, int]] = None
        self.game_over = False
        self.winner = EMPTY  # EMPTY = ongoing/draw
        return self.board

    @classmethod
    def from_cells(cls, cells: Iterable, board_size: int, current_player=None,
                   win_length: Optional[int] = None) -> 'KInARowGame':
        """
        Build a game from a flat board. The player to move defaults to
        whoever has fewer marks, X on ties.
        """
        game = cls(board_size, win_length)
        game.board = to_2d(cells, board_size).copy()
        if current_player is None:
            current_player = X if np.sum(game.board == X) <= np.sum(game.board == O) else O
        game.current_player = parse_mark(current_player)
        winner = find_winner(game.board, game.win_length)
        if winner is not None:
            game.game_over = True
            game.winner = winner
        elif is_full(game.board):
            game.game_over = True
        return game

    def get_valid_moves_list(self) -> List[int]:
        """Get list of valid move indices."""
        return np.flatnonzero(self.board.ravel() == EMPTY).tolist()

    def action_to_coord(self, action: int) -> Tuple[int, int]:
        return (action // self.board_size, action % self.board_size)

    def coord_to_action(self, row: int, col: int) -> int:
        return row * self.board_size + col

    def is_valid_move(self, action: int) -> bool:
        if action < 0 or action >= self.board_size * self.board_size:
            return False
        row, col = self.action_to_coord(action)
        return self.board[row, col] == EMPTY

    def step(self, action: int) -> Tuple[np.ndarray, bool]:
        """
        Place the current player's mark.

        Returns:
            board: Board after the move
            done: Whether the game is over
        """
        if self.game_over:
            raise ValueError("Game is already over")

        if not self.is_valid_move(action):
            raise ValueError(f"Invalid move: {action}")

        row, col = self.action_to_coord(action)
        self.board[row, col] = self.current_player
        self.last_move = (row, col)

        if completes_line(self.board, row, col, self.win_length):
            self.game_over = True
            self.winner = self.current_player
        elif is_full(self.board):
            self.game_over = True
            self.winner = EMPTY

        self.current_player = opponent(self.current_player)
        return self.board, self.game_over

    def clone(self) -> 'KInARowGame':
        game = KInARowGame.__new__(KInARowGame)
        game.board_size = self.board_size
        game.win_length = self.win_length
        game.board = self.board.copy()
        game.current_player = self.current_player
        game.last_move = self.last_move
        game.game_over = self.game_over
        game.winner = self.winner
        return game

    def render(self) -> str:
        """Return a string representation of the board."""
        lines = ['   ' + ' '.join(f'{i:2d}' for i in range(self.board_size))]
        for i in range(self.board_size):
            row_str = f'{i:2d} '
            row_str += ' '.join(f' {SYMBOLS[int(self.board[i, j])]}' for j in range(self.board_size))
            lines.append(row_str)
        return '\n'.join(lines)

    def __str__(self) -> str:
        return self.render()
