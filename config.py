"""
Search configuration for the k-in-a-row engine.

Every size-dependent constant lives here as data so that a caller can
override a single table without touching the search code.
"""
import json
import os
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Tuple

VALUE_UPDATES = ('mean', 'legacy')


@dataclass
class SearchConfig:
    """
    Tunables for one decision call.

    Step tables are lists of (max_size, value) pairs checked in order:
    the first entry with size <= max_size wins, otherwise the default applies.
    """

    # Board size -> cells in a row needed to win
    win_lengths: Dict[int, int] = field(default_factory=lambda: {3: 3, 4: 3, 5: 4})
    default_win_length: int = 5

    # UCT exploration constant by board size
    exploration_steps: List[Tuple[int, float]] = field(default_factory=lambda: [(3, 1.414), (4, 1.5)])
    default_exploration: float = 1.6

    # Iteration budget by board size, scaled down from scale_from_size upwards
    iterations_by_size: Dict[int, int] = field(default_factory=lambda: {3: 2000, 4: 3000, 5: 4000, 6: 8000})
    default_iterations: int = 1000
    iteration_scale: float = 0.9
    scale_from_size: int = 4

    # Wall-clock budget in milliseconds by board size
    deadline_steps: List[Tuple[int, int]] = field(default_factory=lambda: [(3, 2000), (4, 2500), (5, 3000)])
    default_deadline_ms: int = 3500

    # Playout policy
    max_playout_depth: int = 30
    heuristic_probability: float = 0.8
    top_moves: int = 3
    block_bonus: float = 5.0
    center_radius: int = 3
    near_win_weight: float = 0.1
    near_win_cap: float = 0.7

    # Final move choice: mean value + final_visit_weight * ln(visits)
    final_visit_weight: float = 0.1

    # Backpropagation
    learning_rate: float = 0.1
    value_update: str = 'mean'

    def __post_init__(self):
        if self.value_update not in VALUE_UPDATES:
            raise ValueError(f"value_update must be one of {VALUE_UPDATES}, got {self.value_update!r}")
        if not 0.0 <= self.heuristic_probability <= 1.0:
            raise ValueError(f"heuristic_probability must be in [0, 1], got {self.heuristic_probability}")
        if self.top_moves < 1:
            raise ValueError(f"top_moves must be positive, got {self.top_moves}")
        # JSON turns keys into strings and tuples into lists
        self.win_lengths = {int(k): int(v) for k, v in self.win_lengths.items()}
        self.iterations_by_size = {int(k): int(v) for k, v in self.iterations_by_size.items()}
        self.exploration_steps = [(int(s), float(c)) for s, c in self.exploration_steps]
        self.deadline_steps = [(int(s), int(ms)) for s, ms in self.deadline_steps]

    @staticmethod
    def _step_lookup(steps, size, default):
        for max_size, value in steps:
            if size <= max_size:
                return value
        return default

    def win_length_for_size(self, size: int) -> int:
        if size < 3:
            raise ValueError(f"Unsupported board size: {size}")
        win_length = self.win_lengths.get(size, self.default_win_length)
        if not 2 <= win_length <= size:
            raise ValueError(f"Win length {win_length} does not fit board size {size}")
        return win_length

    def exploration_for_size(self, size: int) -> float:
        return self._step_lookup(self.exploration_steps, size, self.default_exploration)

    def iterations_for_size(self, size: int) -> int:
        return self.iterations_by_size.get(size, self.default_iterations)

    def deadline_ms_for_size(self, size: int) -> int:
        return self._step_lookup(self.deadline_steps, size, self.default_deadline_ms)

    def scaled_iterations(self, size: int, budget: int) -> int:
        """Cap the caller's budget, trimming it on larger boards."""
        if size < self.scale_from_size:
            return budget
        return min(budget, int(budget * self.iteration_scale))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'SearchConfig':
        return cls(**data)

    def to_json(self, path: str):
        """Save the configuration as JSON."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_json(cls, path: str) -> 'SearchConfig':
        with open(path) as f:
            return cls.from_dict(json.load(f))


DEFAULT_CONFIG = SearchConfig()


def win_length_for_size(size: int) -> int:
    return DEFAULT_CONFIG.win_length_for_size(size)


def exploration_for_size(size: int) -> float:
    return DEFAULT_CONFIG.exploration_for_size(size)


def iterations_for_size(size: int) -> int:
    return DEFAULT_CONFIG.iterations_for_size(size)


def deadline_ms_for_size(size: int) -> int:
    return DEFAULT_CONFIG.deadline_ms_for_size(size)


def scaled_iterations(size: int, budget: int) -> int:
    return DEFAULT_CONFIG.scaled_iterations(size, budget)
