"""
Move decision for the computer player.

decide_move() answers trivial and tactical positions directly, runs a
budgeted MCTS otherwise, and downgrades any internal failure to a fixed
fallback order (center, corners, random empty cell, first empty cell).
"""
import sys
import time
from typing import Callable, Iterable, Optional

import numpy as np

from config import SearchConfig
from game import EMPTY, InvalidBoardSize, NoLegalMove, parse_board, parse_mark, symbol
from mcts import MCTS, top_children
from playout import PlayoutPolicy
from rules import winning_cells

__all__ = [
    'InvalidBoardSize',
    'NoLegalMove',
    'SearchFault',
    'decide_move',
    'fallback_move',
    'get_best_move',
    'tactical_move',
]


class SearchFault(RuntimeError):
    """Internal failure while searching; recovered with fallback_move()."""


def tactical_move(board: np.ndarray, player: int, win_length: int) -> Optional[int]:
    """
    Forced answers, checked in order:
        1. the only empty cell
        2. the first cell (row-major) that wins for player
        3. the first cell that the opponent would win with
    """
    moves = np.flatnonzero(board.ravel() == EMPTY)
    if len(moves) == 1:
        return int(moves[0])

    wins = winning_cells(board, player, win_length)
    if len(wins) > 0:
        return int(wins[0])

    blocks = winning_cells(board, -player, win_length)
    if len(blocks) > 0:
        return int(blocks[0])

    return None


def fallback_move(cells: np.ndarray, size: int, rng: Optional[np.random.Generator] = None) -> int:
    """Center, then a corner, then a random empty cell, then the first empty cell."""
    rng = rng if rng is not None else np.random.default_rng()
    try:
        center = (size // 2) * size + size // 2
        if cells[center] == EMPTY:
            return center

        corners = [0, size - 1, size * (size - 1), size * size - 1]
        for corner in corners:
            if cells[corner] == EMPTY:
                return corner

        empty = np.flatnonzero(cells == EMPTY)
        if len(empty) > 0:
            return int(empty[rng.integers(len(empty))])
    except (IndexError, ValueError) as e:
        print(f"Fallback strategy error: {e}", file=sys.stderr)

    for index, cell in enumerate(cells):
        if cell == EMPTY:
            return index
    raise NoLegalMove("No empty cell left on the board")


def _search_move(
    cells: np.ndarray,
    size: int,
    player: int,
    iterations: int,
    win_length: int,
    config: SearchConfig,
    rng: np.random.Generator,
    clock: Callable[[], float],
    playout: Optional[PlayoutPolicy],
    verbose: bool,
) -> int:
    board = cells.reshape(size, size)

    move = tactical_move(board, player, win_length)
    if move is not None:
        if verbose:
            print(f"Forced move: {move}")
        return move

    scaled = config.scaled_iterations(size, iterations)
    deadline_ms = config.deadline_ms_for_size(size)
    if verbose:
        print(f"Scaled iterations: {scaled}, deadline: {deadline_ms} ms")

    mcts = MCTS(config=config, playout=playout, rng=rng, clock=clock)
    move, arena, stats = mcts.best_move(board, player, win_length, scaled, deadline_ms)

    if verbose:
        print(f"Search: {stats.iterations} iterations in {stats.elapsed:.2f}s, "
              f"{stats.nodes} nodes{' (deadline hit)' if stats.timed_out else ''}")
        for child_move, visits, value in top_children(arena, 0):
            r, c = divmod(child_move, size)
            print(f"  ({r}, {c}): {visits} visits, value {value:.3f}")

    return move


def decide_move(
    board: Iterable,
    size: int,
    mover,
    iteration_budget: Optional[int] = None,
    win_length: Optional[int] = None,
    config: Optional[SearchConfig] = None,
    rng: Optional[np.random.Generator] = None,
    clock: Callable[[], float] = time.perf_counter,
    playout: Optional[PlayoutPolicy] = None,
    verbose: bool = False,
) -> int:
    """
    Pick the computer's next move.

    Args:
        board: Flat cells, length size * size ('X'/'O'/None or 1/-1/0)
        size: Board side length N
        mover: Mark to move ('X'/'O' or 1/-1)
        iteration_budget: MCTS iterations (None = per-size default)
        win_length: Marks in a row to win (None = per-size default)
        config: Search tunables
        rng: Random source for expansion, playouts and fallbacks
        clock: Seconds counter used for the deadline
        playout: Playout policy (default HeuristicPlayout)
        verbose: Print search diagnostics

    Returns:
        Flat index of an empty cell

    Raises:
        InvalidBoardSize: len(board) != size * size
        NoLegalMove: no empty cell on the board
        ValueError: malformed cells, unknown mover, non-positive budget
    """
    config = config if config is not None else SearchConfig()
    rng = rng if rng is not None else np.random.default_rng()

    cells = parse_board(board)
    if cells.size != size * size:
        raise InvalidBoardSize(f"Expected {size * size} cells for a {size}x{size} board, got {cells.size}")
    player = parse_mark(mover)

    if iteration_budget is None:
        iteration_budget = config.iterations_for_size(size)
    if iteration_budget <= 0:
        raise ValueError(f"Iteration budget must be positive, got {iteration_budget}")
    if win_length is None:
        win_length = config.win_length_for_size(size)
    if not 2 <= win_length <= size:
        raise ValueError(f"Win length {win_length} does not fit board size {size}")

    if not np.any(cells == EMPTY):
        raise NoLegalMove("Board is full")

    if verbose:
        print(f"Board size: {size}, mover: {symbol(player)}, iterations: {iteration_budget}")

    try:
        try:
            move = _search_move(cells, size, player, iteration_budget, win_length,
                                config, rng, clock, playout, verbose)
        except Exception as e:
            raise SearchFault(f"{type(e).__name__}: {e}") from e
        if not 0 <= move < cells.size or cells[move] != EMPTY:
            raise SearchFault(f"Search returned illegal move {move}")
        return move
    except SearchFault as e:
        print(f"MCTS error: {e}", file=sys.stderr)
        return fallback_move(cells, size, rng)


def get_best_move(board: Iterable, size: int = 3, computer_symbol='O',
                  win_length: Optional[int] = None, **kwargs) -> int:
    """decide_move() with the per-size iteration budget and win length."""
    return decide_move(board, size, computer_symbol, None, win_length, **kwargs)
