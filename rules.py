"""
Line rules for k-in-a-row boards, compiled with Numba.

Board convention (see game.py):
    0 = empty
    1 = X (first player)
    -1 = O (second player)
"""
import numpy as np
from numba import njit
from typing import Optional


@njit(cache=True)
def _window_owner(board: np.ndarray, row: int, col: int, dr: int, dc: int, win_length: int) -> int:
    """Mark filling the whole window starting at (row, col), or 0."""
    first = board[row, col]
    if first == 0:
        return 0
    for i in range(1, win_length):
        if board[row + dr * i, col + dc * i] != first:
            return 0
    return int(first)


@njit(cache=True)
def _is_near_win(board: np.ndarray, row: int, col: int, dr: int, dc: int, mark: int, win_length: int) -> bool:
    own = 0
    empty = 0
    for i in range(win_length):
        cell = board[row + dr * i, col + dc * i]
        if cell == mark:
            own += 1
        elif cell == 0:
            empty += 1
    return own == win_length - 1 and empty == 1


@njit(cache=True)
def find_winner_fast(board: np.ndarray, win_length: int) -> int:
    """Scan rows, columns, then both diagonal orientations for a full window."""
    n = board.shape[0]
    span = n - win_length + 1

    # Rows
    for row in range(n):
        for col in range(span):
            owner = _window_owner(board, row, col, 0, 1, win_length)
            if owner != 0:
                return owner

    # Columns
    for col in range(n):
        for row in range(span):
            owner = _window_owner(board, row, col, 1, 0, win_length)
            if owner != 0:
                return owner

    # Top-left to bottom-right
    for row in range(span):
        for col in range(span):
            owner = _window_owner(board, row, col, 1, 1, win_length)
            if owner != 0:
                return owner

    # Top-right to bottom-left
    for row in range(span):
        for col in range(win_length - 1, n):
            owner = _window_owner(board, row, col, 1, -1, win_length)
            if owner != 0:
                return owner

    return 0


@njit(cache=True)
def near_win_count_fast(board: np.ndarray, mark: int, win_length: int) -> int:
    """Count windows holding win_length - 1 of mark and exactly one empty cell."""
    n = board.shape[0]
    span = n - win_length + 1
    count = 0

    for i in range(n):
        for j in range(span):
            if _is_near_win(board, i, j, 0, 1, mark, win_length):
                count += 1
            if _is_near_win(board, j, i, 1, 0, mark, win_length):
                count += 1

    for row in range(span):
        for col in range(span):
            if _is_near_win(board, row, col, 1, 1, mark, win_length):
                count += 1
            if _is_near_win(board, row, col + win_length - 1, 1, -1, mark, win_length):
                count += 1

    return count


@njit(cache=True)
def completes_line(board: np.ndarray, row: int, col: int, win_length: int) -> bool:
    """Check whether the stone at (row, col) sits in a run of at least win_length."""
    player = board[row, col]
    if player == 0:
        return False

    n = board.shape[0]
    directions = ((0, 1), (1, 0), (1, 1), (1, -1))

    for dr, dc in directions:
        count = 1
        for i in range(1, win_length):
            r, c = row + dr * i, col + dc * i
            if 0 <= r < n and 0 <= c < n and board[r, c] == player:
                count += 1
            else:
                break
        for i in range(1, win_length):
            r, c = row - dr * i, col - dc * i
            if 0 <= r < n and 0 <= c < n and board[r, c] == player:
                count += 1
            else:
                break

        if count >= win_length:
            return True

    return False


@njit(cache=True)
def winning_cells(board: np.ndarray, player: int, win_length: int) -> np.ndarray:
    """
    Flat indices of empty cells where player would complete a line,
    in row-major order. Assumes nobody has won on the board yet.
    """
    n = board.shape[0]
    work = board.copy()
    out = np.empty(n * n, dtype=np.int64)
    count = 0
    for row in range(n):
        for col in range(n):
            if work[row, col] != 0:
                continue
            work[row, col] = player
            if completes_line(work, row, col, win_length):
                out[count] = row * n + col
                count += 1
            work[row, col] = 0
    return out[:count]


def _check_board(board: np.ndarray, win_length: int) -> None:
    if board.ndim != 2 or board.shape[0] != board.shape[1]:
        raise ValueError(f"Board must be square, got shape {board.shape}")
    if not 2 <= win_length <= board.shape[0]:
        raise ValueError(f"Win length {win_length} does not fit a {board.shape[0]}x{board.shape[0]} board")


def find_winner(board: np.ndarray, win_length: int) -> Optional[int]:
    """Return the mark owning the first complete window, or None."""
    _check_board(board, win_length)
    winner = find_winner_fast(board, win_length)
    return int(winner) if winner != 0 else None


def is_full(board: np.ndarray) -> bool:
    return not np.any(board == 0)


def near_win_count(board: np.ndarray, mark: int, win_length: int) -> int:
    _check_board(board, win_length)
    return int(near_win_count_fast(board, mark, win_length))


def board_score(
    board: np.ndarray,
    mark: int,
    win_length: int,
    near_win_weight: float = 0.1,
    near_win_cap: float = 0.7,
) -> float:
    """
    Heuristic value of a position for mark.

    Returns 1 if mark has won, 0 if the other side has, otherwise the
    capped near-win count.
    """
    winner = find_winner(board, win_length)
    if winner == mark:
        return 1.0
    if winner is not None:
        return 0.0
    return min(near_win_cap, near_win_count(board, mark, win_length) * near_win_weight)
