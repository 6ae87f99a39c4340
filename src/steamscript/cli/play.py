from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Sequence

from steamscript.content.demo import build_demo_library, describe_reminders, new_demo_game
from steamscript.content.io import load_game_json, load_settings_json, save_game_json, save_settings_json
from steamscript.sim.core import Game
from steamscript.sim.format import plain_text
from steamscript.sim.scripts import Instruction

DEFAULT_SAVE_PATH = "saves/steamscript_save.json"
DEFAULT_SEED = 7
DEFAULT_WAIT_COMMAND_MINUTES = 30

Action = tuple[str, Any]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="steamscript-play", description="Play the Aetheria demo story in a terminal.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Seed used when starting a new game.")
    parser.add_argument("--load-save", default=None, help="Path to a save JSON to load at startup.")
    parser.add_argument("--save-path", default=DEFAULT_SAVE_PATH, help="Where the save command writes the game.")
    parser.add_argument("--settings-path", default=None, help="Settings JSON loaded at startup and written on exit.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    return parser


def render_item(item: dict[str, Any]) -> str:
    if item.get("type") == "speech":
        return f'"{item.get("text", "")}"'
    return plain_text(item)


def default_actions(game: Game) -> list[Action]:
    """Actions available when no scene has taken over: travel, people, activities, waiting."""
    actions: list[Action] = []
    definition = game.library.locations.require(game.location.id)
    for link in definition.links:
        destination = game.library.locations.require(link.dest)
        actions.append((f"Go to {link.label or destination.name}", Instruction("go", {"location": link.dest})))
    for npc_id in game.npcs_present:
        npc = game.npcs[npc_id]
        name = game.library.npcs.require(npc_id).display_name(npc.name_known)
        actions.append((f"Talk to {name}", Instruction("approach", {"npc": npc_id})))
    for activity in definition.activities:
        if activity.condition is not None and not game.run(activity.condition):
            continue
        actions.append((activity.name, Instruction("runActivity", {"activity": activity.name})))
    actions.append(("Relax", Instruction("relaxAtLocation", {})))
    actions.append(("Wait a while", Instruction("wait", {"minutes": DEFAULT_WAIT_COMMAND_MINUTES})))
    return actions


def current_actions(game: Game) -> list[Action]:
    if game.scene.options:
        return [
            (option.get("label") or "Continue", option["action"])
            for option in game.scene.options
            if not option.get("disabled")
        ]
    return default_actions(game)


def render_scene(game: Game, output: Callable[[str], None]) -> list[Action]:
    date = game.date
    output(f"== {game.library.locations.require(game.location.id).name} | {date:%A %d %B %Y %H:%M} ==")
    for item in game.scene.content:
        output(render_item(item))
    if game.settings.get("show_hints"):
        for reminder in describe_reminders(game):
            output(f"* {plain_text(reminder)}")
    actions = current_actions(game)
    for index, (label, _) in enumerate(actions, start=1):
        output(f"  {index}. {label}")
    return actions


def run_session(
    game: Game,
    *,
    input_fn: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
    save_path: str | Path = DEFAULT_SAVE_PATH,
) -> Game:
    """Drive the action loop until ``quit`` or end of input."""
    while True:
        game.before_action()
        actions = render_scene(game, output)
        try:
            command = input_fn("> ").strip()
        except EOFError:
            break

        if command in ("quit", "q"):
            break
        if command == "save":
            save_game_json(save_path, game, metadata={"player_name": game.player.display_name})
            output(f"saved to {save_path}")
            continue
        if command.startswith("wait"):
            _, _, rest = command.partition(" ")
            minutes = int(rest) if rest.strip().isdigit() else DEFAULT_WAIT_COMMAND_MINUTES
            game.perform(Instruction("wait", {"minutes": minutes}))
            _autosave(game, save_path)
            continue
        if not command.isdigit() or not 1 <= int(command) <= len(actions):
            output("Choose a number from the list, or: save, wait <minutes>, quit.")
            continue

        _, action = actions[int(command) - 1]
        game.perform(action)
        _autosave(game, save_path)
    return game


def _autosave(game: Game, save_path: str | Path) -> None:
    if game.settings.get("autosave"):
        save_game_json(save_path, game, metadata={"player_name": game.player.display_name})


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        if args.load_save:
            game = load_game_json(args.load_save, build_demo_library())
        else:
            game = new_demo_game(seed=args.seed)
        if args.settings_path and Path(args.settings_path).exists():
            game.settings = load_settings_json(args.settings_path)

        run_session(game, save_path=args.save_path)

        if args.settings_path:
            save_settings_json(args.settings_path, game.settings)
    except Exception as exc:
        print(f"error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
