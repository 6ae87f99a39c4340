from __future__ import annotations

import argparse
import logging
from typing import Sequence

from steamscript.content.demo import build_demo_library
from steamscript.content.io import load_game_json, load_save_metadata
from steamscript.sim.hash import game_hash


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steamscript-inspect",
        description="Verify a save's hash, migrate it if needed, and print a concise summary of the game state.",
    )
    parser.add_argument("save_path", help="Path to a save JSON (canonical envelope or bare legacy snapshot)")
    parser.add_argument("--print-cards", action="store_true", help="Print each active card with its fields")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        game = load_game_json(args.save_path, build_demo_library())
        metadata = load_save_metadata(args.save_path)
        print(
            "ok "
            f"game_hash={game_hash(game)} "
            f"player={metadata.get('player_name', game.player.display_name)} "
            f"location={game.current_location} "
            f"time={game.date:%Y-%m-%d %H:%M} "
            f"cards={len(game.player.cards)} "
            f"npcs={len(game.npcs)} "
            f"frames={len(game.scene.stack)} "
            f"in_scene={game.in_scene}"
        )
        if args.print_cards:
            for card in game.player.cards:
                fields = " ".join(f"{key}={card[key]}" for key in sorted(card))
                print(f"card id={card.id} type={card.type} {fields}".rstrip())
    except Exception as exc:
        print(f"error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
