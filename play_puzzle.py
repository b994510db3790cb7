#!/usr/bin/env python3
"""
Play the Mahjong Puzzle in a terminal.

Usage:
    python play_puzzle.py                      # resume the saved session or deal a new one
    python play_puzzle.py --new --seed 42      # discard the save and deal a seeded board
    python play_puzzle.py --auto 200 --pace    # watch a random agent play 200 moves
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from agents.random_agent import RandomAgent
from envs.puzzle_env import MahjongPuzzleEnv
from mahjong_puzzle.game import Frame, PuzzleGame
from mahjong_puzzle.pipeline import PacingScheduler, ResolutionStep, SwapResult
from mahjong_puzzle.rules import RULE_SETS, get_rules
from mahjong_puzzle.storage import DEFAULT_SAVE_PATH, SessionStore

logger = logging.getLogger(__name__)

HELP = """Commands:
  r c     select the cell at row r, column c (select two adjacent cells to swap)
  hint    spend a hint to highlight matchable cells
  reset   discard this session and deal a new board
  quit    save and exit"""


def print_step(step: ResolutionStep, frame: Frame) -> None:
    """Render sink used with --pace: redraw after each visible stage."""
    print(f"\n--- {step.stage.name} ---")
    print(frame)


def print_outcome(outcome) -> None:
    if outcome.result == SwapResult.IGNORED:
        print("Those cells are not adjacent.")
    elif outcome.result == SwapResult.REVERTED:
        print("No match, swapped back.")
    elif outcome.result == SwapResult.MATCHED:
        chains = f" (+{outcome.chains} chain)" if outcome.chains else ""
        print(f"Matched {len(outcome.matches)} meld(s){chains}.")
    elif outcome.result == SwapResult.WON:
        print(f"🀄 WIN! {', '.join(outcome.score.pattern_names) or 'No patterns'}: +{outcome.points}")
    elif outcome.result == SwapResult.WIN_ABORTED:
        print("The hand was not complete, nothing happened.")
    if outcome.reshuffles:
        print("No moves left, the board was reshuffled.")


def play_interactive(game: PuzzleGame) -> None:
    """Read commands from stdin until quit or EOF."""
    print(HELP)
    while True:
        print()
        print(game.frame())
        try:
            line = input("> ").strip().lower()
        except EOFError:
            break
        if not line:
            continue
        if line in ("q", "quit", "exit"):
            break
        if line == "help":
            print(HELP)
        elif line == "hint":
            before = game.session.hint_currency
            cells = game.request_hint()
            if not cells:
                print("No hint available.")
            elif game.session.hint_currency == before:
                print("The hint is already shown.")
        elif line == "reset":
            game.reset()
            print("New board dealt.")
        else:
            parts = line.split()
            try:
                if len(parts) != 2:
                    raise ValueError(line)
                cell = (int(parts[0]), int(parts[1]))
                outcome = game.select_cell(cell)
            except (IndexError, ValueError):
                print("Enter a row and a column, e.g. '3 4', or 'help'.")
                continue
            if outcome is not None:
                print_outcome(outcome)

    print("Session saved. Thanks for playing!")


def play_auto(game: PuzzleGame, moves: int, seed=None) -> None:
    """Let a random agent play through the Gymnasium adapter."""
    env = MahjongPuzzleEnv(rules=game.rules, game=game, max_steps=moves)
    agent = RandomAgent(seed=seed)
    obs = env.observe()
    wins = 0

    for _ in range(moves):
        action, _ = agent.predict(obs)
        obs, reward, terminated, truncated, info = env.step(action)
        if terminated:
            wins += 1
            logger.info(f"Agent won, score now {info['score']}")
        if truncated:
            break

    print(env.game.frame())
    print(f"\n=== {moves} moves: {wins} win(s), score {game.session.score} ===")
    env.close()


def main():
    parser = argparse.ArgumentParser(
        description="Mahjong tile-matching puzzle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP,
    )

    parser.add_argument("--save", type=str, default=str(DEFAULT_SAVE_PATH),
                        help="Session save file")
    parser.add_argument("--new", action="store_true",
                        help="Discard the saved session and deal a new board")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")
    parser.add_argument("--rules", type=str, default="standard",
                        choices=sorted(RULE_SETS),
                        help="Rule set")
    parser.add_argument("--pace", action="store_true",
                        help="Redraw and pause between resolution stages")
    parser.add_argument("--auto", type=int, default=0, metavar="N",
                        help="Let a random agent play N moves")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    rules = get_rules(args.rules)
    store = SessionStore(args.save)
    scheduler = PacingScheduler.from_rules(rules) if args.pace else None

    if args.new:
        game = PuzzleGame(rules=rules, seed=args.seed, store=store, scheduler=scheduler)
        game.reset()
    else:
        game = PuzzleGame.load_or_start(store, rules, seed=args.seed, scheduler=scheduler)

    if args.pace:
        game.add_observer(print_step)

    logger.info(f"Playing with {rules.name} rules, saving to {store.path}")

    if args.auto > 0:
        play_auto(game, args.auto, args.seed)
    else:
        play_interactive(game)


if __name__ == "__main__":
    main()
