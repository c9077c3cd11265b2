"""
Play interface for the k-in-a-row AI.
Allows human vs AI games, AI evaluation and replay of recorded games.
"""
import argparse
from typing import Optional

import numpy as np
from tqdm import tqdm

from config import SearchConfig
from engine import decide_move
from game import EMPTY, O, X, KInARowGame, symbol
from record import GameRecord, load_game, replay_boards, save_game, winner_label


class KInARowPlayer:
    """Base class for players."""

    name = 'Player'

    def get_action(self, game: KInARowGame) -> int:
        raise NotImplementedError


class HumanPlayer(KInARowPlayer):
    """Human player via command line input."""

    name = 'Human'

    def get_action(self, game: KInARowGame) -> int:
        while True:
            try:
                user_input = input("Enter move (row col): ").strip()
                parts = user_input.split()
                if len(parts) != 2:
                    print("Please enter row and column separated by space")
                    continue

                row, col = int(parts[0]), int(parts[1])
                if not (0 <= row < game.board_size and 0 <= col < game.board_size):
                    print("Position is off the board")
                    continue
                action = game.coord_to_action(row, col)

                if game.is_valid_move(action):
                    return action
                else:
                    print("Invalid move, position already occupied")
            except ValueError:
                print("Invalid input, please enter two numbers")


class AIPlayer(KInARowPlayer):
    """AI player using MCTS."""

    name = 'AI'

    def __init__(
        self,
        iterations: Optional[int] = None,
        config: Optional[SearchConfig] = None,
        seed: Optional[int] = None,
        verbose: bool = False,
    ):
        self.iterations = iterations
        self.config = config if config is not None else SearchConfig()
        self.rng = np.random.default_rng(seed)
        self.verbose = verbose

    def get_action(self, game: KInARowGame) -> int:
        if self.verbose:
            print("AI thinking...")
        return decide_move(
            game.board.ravel(),
            game.board_size,
            game.current_player,
            self.iterations,
            game.win_length,
            config=self.config,
            rng=self.rng,
            verbose=self.verbose,
        )


class RandomPlayer(KInARowPlayer):
    """Random player for testing."""

    name = 'Random'

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def get_action(self, game: KInARowGame) -> int:
        valid_moves = game.get_valid_moves_list()
        return int(self.rng.choice(valid_moves))


def play_game(
    player1: KInARowPlayer,
    player2: KInARowPlayer,
    board_size: int = 3,
    show_board: bool = True,
    record: Optional[GameRecord] = None,
) -> int:
    """
    Play a game between two players.

    Args:
        player1: X player (first)
        player2: O player (second)
        board_size: Board size
        show_board: Whether to print the board
        record: Game record to append the moves to

    Returns:
        Winner: 1 for player1, -1 for player2, 0 for draw
    """
    game = KInARowGame(board_size=board_size)
    players = {X: player1, O: player2}

    if show_board:
        print(f"\nStarting new game! {game.win_length} in a row wins.")
        print(game)

    move_count = 0
    while not game.game_over:
        mover = game.current_player
        if show_board:
            print(f"\n{symbol(mover)} ({players[mover].name}) to move:")

        action = players[mover].get_action(game)
        row, col = game.action_to_coord(action)

        if show_board:
            print(f"Move: ({row}, {col})")

        game.step(action)
        move_count += 1
        if record is not None:
            record.add_move(action, symbol(mover))

        if show_board:
            print(game)

    if record is not None:
        record.winner = winner_label(game.winner, X)

    if show_board:
        if game.winner == EMPTY:
            print("\nGame over: Draw!")
        else:
            print(f"\nGame over: {symbol(game.winner)} wins in {move_count} moves!")

    return game.winner


def evaluate_players(
    player1: KInARowPlayer,
    player2: KInARowPlayer,
    num_games: int = 20,
    board_size: int = 3,
):
    """
    Play player1 against player2, alternating who moves first.

    Returns:
        (player1 wins, player2 wins, draws)
    """
    print(f"\nEvaluating: {player1.name} vs {player2.name}")
    print(f"Board size: {board_size}x{board_size}, games: {num_games}")

    player1_wins = 0
    player2_wins = 0
    draws = 0

    for game_idx in tqdm(range(num_games), desc="Evaluation"):
        if game_idx % 2 == 0:
            result = play_game(player1, player2, board_size, show_board=False)
        else:
            result = -play_game(player2, player1, board_size, show_board=False)

        if result == 1:
            player1_wins += 1
        elif result == -1:
            player2_wins += 1
        else:
            draws += 1

    print(f"\n{'='*50}")
    print("Final Results:")
    print(f"{'='*50}")
    print(f"{player1.name}: {player1_wins} ({player1_wins/num_games*100:.1f}%)")
    print(f"{player2.name}: {player2_wins} ({player2_wins/num_games*100:.1f}%)")
    print(f"Draws: {draws} ({draws/num_games*100:.1f}%)")

    return player1_wins, player2_wins, draws


def interactive_game(
    human_first: bool = True,
    board_size: int = 3,
    iterations: Optional[int] = None,
    config: Optional[SearchConfig] = None,
    seed: Optional[int] = None,
    record_path: Optional[str] = None,
) -> int:
    """Play an interactive game against the AI, optionally saving it."""
    human = HumanPlayer()
    ai = AIPlayer(iterations=iterations, config=config, seed=seed, verbose=True)

    print(f"\n{'='*50}")
    print("K-in-a-row: Human vs AI")
    print(f"{'='*50}")
    print(f"Board size: {board_size}x{board_size}")
    print(f"You are: {'X' if human_first else 'O'}")
    print(f"{'='*50}")

    players = (human, ai) if human_first else (ai, human)
    record = None
    if record_path:
        record = GameRecord(board_size, player1_name=players[0].name, player2_name=players[1].name)
    result = play_game(players[0], players[1], board_size, record=record)

    human_mark = X if human_first else O
    if result == EMPTY:
        print("It's a draw!")
    elif result == human_mark:
        print("Congratulations! You won!")
    else:
        print("The AI wins!")

    if record is not None:
        save_game(record, record_path)
        print(f"Saved game to {record_path}")

    return result


def replay_game(path: str):
    """Print every position of a recorded game."""
    record = load_game(path)
    print(f"{record.player1_name} (X) vs {record.player2_name} (O), "
          f"{record.board_size}x{record.board_size}, {record.created_at}")

    for order, cells in enumerate(replay_boards(record), start=1):
        game = KInARowGame.from_cells(cells, record.board_size)
        print(f"\nMove {order} of {len(record.moves)}:")
        print(game)

    print(f"\nResult: {record.winner or 'unfinished'}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Play k-in-a-row against an MCTS AI')
    parser.add_argument('--config', type=str, default=None, help='Search config JSON')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Play command
    play_parser = subparsers.add_parser('play', help='Play against AI')
    play_parser.add_argument('--ai-first', action='store_true', help='Let AI play first')
    play_parser.add_argument('--iterations', type=int, default=None, help='MCTS iterations per move')
    play_parser.add_argument('--board-size', type=int, default=3, help='Board size')
    play_parser.add_argument('--seed', type=int, default=None, help='Random seed')
    play_parser.add_argument('--record', type=str, default=None, help='Save the game as JSON')

    # Evaluate command
    eval_parser = subparsers.add_parser('evaluate', help='Evaluate AI against random play')
    eval_parser.add_argument('--num-games', type=int, default=20, help='Number of games')
    eval_parser.add_argument('--iterations', type=int, default=None, help='MCTS iterations per move')
    eval_parser.add_argument('--board-size', type=int, default=3, help='Board size')
    eval_parser.add_argument('--self-play', action='store_true', help='AI vs AI instead of AI vs random')
    eval_parser.add_argument('--seed', type=int, default=None, help='Random seed')

    # Replay command
    replay_parser = subparsers.add_parser('replay', help='Replay a recorded game')
    replay_parser.add_argument('path', type=str, help='Game JSON path')

    args = parser.parse_args()

    config = SearchConfig.from_json(args.config) if args.config else SearchConfig()

    if args.command == 'play':
        interactive_game(
            human_first=not args.ai_first,
            board_size=args.board_size,
            iterations=args.iterations,
            config=config,
            seed=args.seed,
            record_path=args.record,
        )
    elif args.command == 'evaluate':
        ai = AIPlayer(iterations=args.iterations, config=config, seed=args.seed)
        if args.self_play:
            opponent_player = AIPlayer(iterations=args.iterations, config=config,
                                       seed=None if args.seed is None else args.seed + 1)
            opponent_player.name = 'AI (2)'
        else:
            opponent_player = RandomPlayer(seed=args.seed)
        evaluate_players(ai, opponent_player, num_games=args.num_games, board_size=args.board_size)
    elif args.command == 'replay':
        replay_game(args.path)
    else:
        # Default: 3x3 game against the AI
        interactive_game(config=config)
