"""
Game records: the move list of a finished game, saved as JSON and replayable.
"""
import json
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional

from game import EMPTY, X, parse_mark

GAME_TYPES = ('onePlayer', 'twoPlayer')
WINNERS = ('player1', 'player2', 'tie')
MIN_BOARD_SIZE = 3
MAX_BOARD_SIZE = 6


@dataclass
class MoveRecord:
    """One placed mark. move_order starts at 1."""
    position: int
    symbol: str
    move_order: int

    def __post_init__(self):
        if self.position < 0:
            raise ValueError(f"Invalid position: {self.position}")
        if self.symbol not in ('X', 'O'):
            raise ValueError(f"Invalid symbol: {self.symbol!r}")
        if self.move_order < 1:
            raise ValueError(f"Invalid move order: {self.move_order}")

    def to_dict(self) -> dict:
        return {'position': self.position, 'symbol': self.symbol, 'moveOrder': self.move_order}

    @classmethod
    def from_dict(cls, data: dict) -> 'MoveRecord':
        return cls(position=data['position'], symbol=data['symbol'], move_order=data['moveOrder'])


@dataclass
class GameRecord:
    """Record of a single game."""
    board_size: int
    game_type: str = 'onePlayer'
    player1_name: str = 'Player 1'
    player2_name: str = 'Computer'
    moves: List[MoveRecord] = field(default_factory=list)
    winner: Optional[str] = None  # None while the game is unfinished
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec='seconds'))
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if not MIN_BOARD_SIZE <= self.board_size <= MAX_BOARD_SIZE:
            raise ValueError(f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}, got {self.board_size}")
        if self.game_type not in GAME_TYPES:
            raise ValueError(f"Invalid game type: {self.game_type!r}")
        if self.winner is not None and self.winner not in WINNERS:
            raise ValueError(f"Invalid winner: {self.winner!r}")

    def add_move(self, position: int, symbol: str) -> MoveRecord:
        move = MoveRecord(position=position, symbol=symbol, move_order=len(self.moves) + 1)
        self.moves.append(move)
        return move

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'createdAt': self.created_at,
            'gameType': self.game_type,
            'boardSize': self.board_size,
            'winner': self.winner,
            'player1Name': self.player1_name,
            'player2Name': self.player2_name,
            'moves': [move.to_dict() for move in self.moves],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GameRecord':
        return cls(
            board_size=data['boardSize'],
            game_type=data.get('gameType', 'onePlayer'),
            player1_name=data.get('player1Name', 'Player 1'),
            player2_name=data.get('player2Name', 'Computer'),
            moves=[MoveRecord.from_dict(m) for m in data.get('moves', [])],
            winner=data.get('winner'),
            created_at=data.get('createdAt', datetime.now().isoformat(timespec='seconds')),
            id=data.get('id', uuid.uuid4().hex),
        )


def winner_label(winner: int, player1_mark=X) -> str:
    """Map a winning mark (0 for a draw) to 'player1', 'player2' or 'tie'."""
    if winner == EMPTY:
        return 'tie'
    return 'player1' if winner == parse_mark(player1_mark) else 'player2'


def save_game(record: GameRecord, path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(record.to_dict(), f, indent=2)


def load_game(path: str) -> GameRecord:
    with open(path) as f:
        return GameRecord.from_dict(json.load(f))


def replay_boards(record: GameRecord) -> Iterator[List[Optional[str]]]:
    """Yield the flat board after each move, in move order."""
    cells: List[Optional[str]] = [None] * (record.board_size * record.board_size)
    for move in sorted(record.moves, key=lambda m: m.move_order):
        if move.position >= len(cells):
            raise ValueError(f"Move {move.move_order} is off the board: {move.position}")
        if cells[move.position] is not None:
            raise ValueError(f"Move {move.move_order} plays on occupied cell {move.position}")
        cells[move.position] = move.symbol
        yield list(cells)
