#!/usr/bin/env python3
from pathlib import Path
import sys

# Resolve project root (two levels up from this file: treasurehunt/main.py -> project root)
PROJECT_ROOT = Path(__file__).resolve().parent.parent
# Ensure project root on sys.path so `import treasurehunt.*` works when running as a script
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import argparse
from typing import Callable, Optional

from pydantic import ValidationError

from treasurehunt.schemas import MAX_MAP_SIZE, MAX_PLAYERS, MIN_PLAYERS, GameConfig
from treasurehunt.exceptions import (
    InvalidMapSize,
    InvalidPlayerCount,
    InvalidTeamCount,
    MapGenerationError,
    TreasureHuntError,
)
from treasurehunt.services.html import write_player_maps
from treasurehunt.services.roster import Player
from treasurehunt.services.session import Session, min_map_size

WELCOME = (
    "Welcome! Ready for a treasure hunt? The rules of the game are simple:\n\n"
    "Each player must use the U(p), D(own), L(eft), and R(ight) keys to move\n"
    "along the map. Each player gets one (valid) move per round. The first to\n"
    "find the treasure, wins! Beware however - land on a water tile, and you\n"
    "have to start all over again! Are you up to the challenge?\n"
    "-------------------------------------------------------------------------"
)


def ask_int(prompt: str, input_fn: Callable[[str], str] = input) -> int:
    while True:
        text = input_fn(prompt).strip()
        try:
            return int(text)
        except ValueError:
            print(f"'{text}' is not a number.")


def ask_html_dir(input_fn: Callable[[str], str] = input) -> Path:
    while True:
        d = Path(input_fn("Kindly enter a directory path in which to write the HTML files: ").strip())
        if d.is_dir():
            return d
        print("Invalid file path specified.")


def setup_session(sess: Session, args: argparse.Namespace, input_fn: Callable[[str], str] = input) -> None:
    """コマンドライン引数で不足している値を対話的に入力させ、セッションを初期化する。"""
    n_players = args.players
    while True:
        if n_players is None:
            n_players = ask_int(f"Kindly enter the number of players between {MIN_PLAYERS} and {MAX_PLAYERS}: ", input_fn)
        try:
            sess.setup_players(n_players)
            break
        except InvalidPlayerCount as e:
            print(e)
            n_players = None

    lo = min_map_size(len(sess.players))
    size = args.size
    while True:
        if size is None:
            size = ask_int(f"Kindly enter a map size between {lo} and {MAX_MAP_SIZE}: ", input_fn)
        try:
            sess.setup_map(size)
            break
        except InvalidMapSize as e:
            print(e)
            size = None

    sess.assign_start_positions()

    n_teams = args.teams
    while True:
        try:
            sess.allocate_teams(n_teams)
            break
        except InvalidTeamCount as e:
            print(e)
            n_teams = ask_int(f"Kindly enter the number of teams between 1 and {len(sess.players)}: ", input_fn)


def main(argv: Optional[list[str]] = None, input_fn: Callable[[str], str] = input) -> int:
    parser = argparse.ArgumentParser(prog="treasure-hunt", description="Turn-based grid treasure hunt")
    parser.add_argument("--players", type=int, default=None, help="number of players (2-8)")
    parser.add_argument("--size", type=int, default=None, help="map size (5-50, at least 8 for 5+ players)")
    parser.add_argument("--teams", type=int, default=None, help="number of teams (default: one per player)")
    parser.add_argument("--html-dir", type=str, default=None, help="directory for the per-player HTML maps")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--min-water", type=int, default=1, help="minimum water percentage")
    parser.add_argument("--max-water", type=int, default=10, help="maximum water percentage")
    parser.add_argument("--min-winnable", type=int, default=75, help="minimum percentage of tiles that can reach the treasure")
    args = parser.parse_args(argv)

    try:
        config = GameConfig(min_water_pct=args.min_water, max_water_pct=args.max_water, min_winnable_pct=args.min_winnable)
    except ValidationError as e:
        parser.error(str(e))

    print(WELCOME)
    sess = Session(config=config, rand_seed=args.seed)
    try:
        setup_session(sess, args, input_fn)
    except MapGenerationError as e:
        parser.error(str(e))
    html_dir = Path(args.html_dir) if args.html_dir else ask_html_dir(input_fn)
    if not html_dir.is_dir():
        parser.error(f"not a directory: {html_dir}")

    def read_move(player: Player) -> str:
        print(f"Player #{player.player_id}, it's your turn!")
        return input_fn("Do you wish to move U(p), D(own), L(eft), or R(ight)? : ")

    def on_invalid(player: Player, err: TreasureHuntError) -> None:
        print(f"Invalid input provided. {err}")

    def on_round(s: Session) -> None:
        assert s.map is not None
        for pid in s.drowned:
            print(f"Player #{pid}: better be careful, or you'll drown! Back to your start tile.")
        write_player_maps(s.players, s.map, html_dir)
        print("-------------------------------------------------------------------------")

    try:
        winners = sess.run(read_move, on_round=on_round, on_invalid=on_invalid)
    except (EOFError, KeyboardInterrupt):
        print("\nGame aborted.")
        return 1
    assert sess.map is not None
    write_player_maps(sess.players, sess.map, html_dir)
    print(f"Game over after {sess.round} round(s)! Winner(s): " + ", ".join(f"Player #{w}" for w in winners))
    return 0


if __name__ == "__main__":
    sys.exit(main())
