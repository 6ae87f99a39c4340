from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from steamscript.content.demo import new_demo_game
from steamscript.content.io import save_game_json
from steamscript.sim.hash import game_hash


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steamscript-new-save",
        description="Start the Aetheria demo story and write it as a canonical save JSON (game_state + save_hash).",
    )
    parser.add_argument("save_path", help="Output path for canonical game save JSON")
    parser.add_argument("--seed", type=int, default=0, help="Game seed for the new save (default: 0)")
    parser.add_argument("--player-name", default="", help="Player name stored in the save")
    parser.add_argument("--force", action="store_true", help="Overwrite output path if it already exists")
    parser.add_argument("--print-summary", action="store_true", help="Print a short summary of the starting state")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    save_path = Path(args.save_path)

    try:
        if save_path.exists() and not args.force:
            raise ValueError(f"output exists: {save_path} (use --force to overwrite)")

        game = new_demo_game(seed=args.seed)
        game.player.name = args.player_name
        save_game_json(save_path, game, metadata={"player_name": game.player.display_name})

        save_payload = json.loads(save_path.read_text(encoding="utf-8"))
        print(
            "ok "
            f"save_path={save_path} "
            f"seed={game.seed} "
            f"game_hash={game_hash(game)} "
            f"save_hash={save_payload['save_hash']}"
        )
        if args.print_summary:
            print(
                "summary "
                f"location={game.current_location} "
                f"time={game.date:%Y-%m-%d %H:%M} "
                f"cards={','.join(card.id for card in game.player.cards)} "
                f"npcs={len(game.npcs)}"
            )
    except Exception as exc:
        print(f"error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
