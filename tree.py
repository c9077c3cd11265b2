"""
Arena storage for the search tree.

Nodes are rows in flat arrays addressed by index. A node's children list
is the only owner of those children; the parent column is a plain index
used for walking back to the root.
"""
import numpy as np
from typing import Iterator, List

from rules import find_winner, is_full

# Each node row stores: [visit_count, value, parent_idx, move, player, terminal]
NODE_VISIT = 0
NODE_VALUE = 1
NODE_PARENT = 2
NODE_MOVE = 3
NODE_PLAYER = 4
NODE_TERMINAL = 5
NODE_FIELDS = 6

NO_NODE = -1
NO_MOVE = -1


def init_nodes(max_nodes: int) -> np.ndarray:
    """Initialize node storage array."""
    nodes = np.zeros((max_nodes, NODE_FIELDS), dtype=np.float64)
    nodes[:, NODE_PARENT] = NO_NODE
    nodes[:, NODE_MOVE] = NO_MOVE
    return nodes


class NodeArena:
    """
    Search tree for a single decision call.

    Boards are kept in one int8 slab, one (size, size) slice per node.
    Capacity doubles when the arena fills up.
    """

    def __init__(self, board_size: int, win_length: int, capacity: int = 1024):
        self.board_size = board_size
        self.win_length = win_length
        self.nodes = init_nodes(capacity)
        self.boards = np.zeros((capacity, board_size, board_size), dtype=np.int8)
        self.children: List[List[int]] = []
        self.untried: List[List[int]] = []
        self.size = 0

    def __len__(self) -> int:
        return self.size

    def _grow(self):
        capacity = 2 * len(self.nodes)
        nodes = init_nodes(capacity)
        nodes[:self.size] = self.nodes[:self.size]
        boards = np.zeros((capacity, self.board_size, self.board_size), dtype=np.int8)
        boards[:self.size] = self.boards[:self.size]
        self.nodes = nodes
        self.boards = boards

    def _allocate(self, board: np.ndarray, player: int, parent: int, move: int) -> int:
        if self.size == len(self.nodes):
            self._grow()
        idx = self.size
        self.size += 1

        terminal = find_winner(board, self.win_length) is not None or is_full(board)
        self.nodes[idx, NODE_VISIT] = 0
        self.nodes[idx, NODE_VALUE] = 0.0
        self.nodes[idx, NODE_PARENT] = parent
        self.nodes[idx, NODE_MOVE] = move
        self.nodes[idx, NODE_PLAYER] = player
        self.nodes[idx, NODE_TERMINAL] = 1.0 if terminal else 0.0
        self.boards[idx] = board
        self.children.append([])
        self.untried.append(np.flatnonzero(board.ravel() == 0).tolist())
        return idx

    def add_root(self, board: np.ndarray, player: int) -> int:
        if self.size != 0:
            raise ValueError("Arena already has a root")
        if board.shape != (self.board_size, self.board_size):
            raise ValueError(f"Board shape {board.shape} does not match size {self.board_size}")
        return self._allocate(board, player, NO_NODE, NO_MOVE)

    def add_child(self, idx: int, move: int) -> int:
        """Materialize an untried move of node idx as a new child."""
        untried = self.untried[idx]
        if move not in untried:
            raise ValueError(f"Move {move} is not untried at node {idx}")

        player = self.player(idx)
        board = self.boards[idx].copy()
        row, col = divmod(move, self.board_size)
        board[row, col] = player

        child = self._allocate(board, -player, idx, move)
        untried.remove(move)
        self.children[idx].append(child)
        return child

    def visits(self, idx: int) -> int:
        return int(self.nodes[idx, NODE_VISIT])

    def value(self, idx: int) -> float:
        return float(self.nodes[idx, NODE_VALUE])

    def mean_value(self, idx: int) -> float:
        return self.value(idx) / self.visits(idx)

    def parent(self, idx: int) -> int:
        return int(self.nodes[idx, NODE_PARENT])

    def move(self, idx: int) -> int:
        return int(self.nodes[idx, NODE_MOVE])

    def player(self, idx: int) -> int:
        return int(self.nodes[idx, NODE_PLAYER])

    def board(self, idx: int) -> np.ndarray:
        return self.boards[idx]

    def is_terminal(self, idx: int) -> bool:
        return self.nodes[idx, NODE_TERMINAL] > 0

    def is_fully_expanded(self, idx: int) -> bool:
        return len(self.untried[idx]) == 0

    def path_to_root(self, idx: int) -> Iterator[int]:
        """Yield idx and each of its ancestors, root last."""
        while idx != NO_NODE:
            yield idx
            idx = self.parent(idx)
