"""
Monte Carlo Tree Search over a NodeArena.

Selection uses UCT, expansion adds one random untried move per iteration,
leaves are scored with a playout policy, and results are backed up to the
root from the point of view of the player the search runs for.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np

from config import SearchConfig
from playout import HeuristicPlayout, PlayoutPolicy
from tree import NodeArena, NODE_VALUE, NODE_VISIT

WIN = 1.0
DRAW = 0.5
LOSS = 0.0


@dataclass
class SearchStats:
    """Summary of one search run."""
    iterations: int
    elapsed: float  # seconds
    nodes: int
    timed_out: bool


def uct_select(arena: NodeArena, idx: int, exploration: float) -> int:
    """Select child with highest UCT score. Ties keep the earliest child."""
    log_visits = math.log(arena.visits(idx))

    best_score = -math.inf
    best_child = -1
    for child in arena.children[idx]:
        visits = arena.visits(child)
        if visits == 0:
            raise ValueError(f"Child {child} of node {idx} has no visits")
        score = arena.value(child) / visits + exploration * math.sqrt(log_visits / visits)
        if score > best_score:
            best_score = score
            best_child = child

    if best_child < 0:
        raise ValueError(f"Node {idx} has no children to select from")
    return best_child


def expand(arena: NodeArena, idx: int, rng: np.random.Generator) -> int:
    """Add a child for a uniformly random untried move."""
    untried = arena.untried[idx]
    move = untried[int(rng.integers(len(untried)))]
    return arena.add_child(idx, move)


def outcome_value(winner: Optional[int], player: int) -> float:
    if winner is None:
        return DRAW
    return WIN if winner == player else LOSS


def backpropagate(arena: NodeArena, idx: int, result: float, learning_rate: float = 0.1,
                  value_update: str = 'mean'):
    """
    Walk from idx up to the root, counting the visit and folding in result.

    'mean' keeps a running sum so that value / visits is the average
    outcome. 'legacy' applies value = (1 - lr) * value + lr * result * visits.
    """
    nodes = arena.nodes
    for node in arena.path_to_root(idx):
        nodes[node, NODE_VISIT] += 1
        if value_update == 'legacy':
            visits = nodes[node, NODE_VISIT]
            nodes[node, NODE_VALUE] = (1 - learning_rate) * nodes[node, NODE_VALUE] + learning_rate * result * visits
        else:
            nodes[node, NODE_VALUE] += result


def final_score(arena: NodeArena, child: int, visit_weight: float) -> float:
    visits = arena.visits(child)
    return arena.value(child) / visits + math.log(visits) * visit_weight


def final_move(arena: NodeArena, root: int, rng: np.random.Generator, visit_weight: float = 0.1) -> int:
    """
    Move of the best root child by mean value plus a log-visit bonus.
    Falls back to a random untried root move when no child is usable.
    """
    best_score = -math.inf
    best_child = -1
    for child in arena.children[root]:
        if arena.visits(child) == 0:
            continue
        score = final_score(arena, child, visit_weight)
        if score > best_score:
            best_score = score
            best_child = child

    if best_child >= 0:
        return arena.move(best_child)

    untried = arena.untried[root]
    if not untried:
        raise ValueError("Root has neither scored children nor untried moves")
    return untried[int(rng.integers(len(untried)))]


def top_children(arena: NodeArena, root: int, k: int = 3) -> List[Tuple[int, int, float]]:
    """(move, visits, mean value) of the k most visited root children."""
    stats = [
        (arena.move(child), arena.visits(child), arena.mean_value(child))
        for child in arena.children[root]
        if arena.visits(child) > 0
    ]
    stats.sort(key=lambda s: s[1], reverse=True)
    return stats[:k]


class MCTS:
    """
    Budgeted MCTS.

    Stops after the iteration budget or once the deadline has passed,
    whichever comes first. The clock is only read between iterations.
    """

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        playout: Optional[PlayoutPolicy] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config if config is not None else SearchConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.playout = playout if playout is not None else HeuristicPlayout(self.config, self.rng)
        self.clock = clock

    def search(
        self,
        board: np.ndarray,
        player: int,
        win_length: int,
        iterations: int,
        deadline_ms: float,
    ) -> Tuple[NodeArena, SearchStats]:
        """Run MCTS from board with player to move. Root is node 0."""
        board_size = board.shape[0]
        arena = NodeArena(board_size, win_length)
        root = arena.add_root(board, player)
        exploration = self.config.exploration_for_size(board_size)
        deadline = deadline_ms / 1000.0

        start = self.clock()
        done = 0
        timed_out = False
        while done < iterations:
            if self.clock() - start >= deadline:
                timed_out = True
                break
            done += 1

            # Selection
            node = root
            while not arena.is_terminal(node) and arena.is_fully_expanded(node):
                node = uct_select(arena, node, exploration)

            # Expansion
            if not arena.is_terminal(node) and not arena.is_fully_expanded(node):
                node = expand(arena, node, self.rng)

            # Simulation
            winner = self.playout.simulate(arena.board(node), arena.player(node), win_length)

            # Backpropagation
            backpropagate(
                arena,
                node,
                outcome_value(winner, player),
                learning_rate=self.config.learning_rate,
                value_update=self.config.value_update,
            )

        stats = SearchStats(
            iterations=done,
            elapsed=self.clock() - start,
            nodes=len(arena),
            timed_out=timed_out,
        )
        return arena, stats

    def best_move(
        self,
        board: np.ndarray,
        player: int,
        win_length: int,
        iterations: int,
        deadline_ms: float,
    ) -> Tuple[int, NodeArena, SearchStats]:
        arena, stats = self.search(board, player, win_length, iterations, deadline_ms)
        move = final_move(arena, 0, self.rng, self.config.final_visit_weight)
        return move, arena, stats
