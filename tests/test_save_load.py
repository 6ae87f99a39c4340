import json
from pathlib import Path

import pytest

from steamscript.content.demo import build_demo_library, new_demo_game
from steamscript.content.io import (
    load_game_json,
    load_save_metadata,
    load_settings_json,
    save_game_json,
    save_settings_json,
)
from steamscript.sim import dsl
from steamscript.sim.core import Game, Settings
from steamscript.sim.hash import game_hash
from steamscript.sim.registry import DefinitionNotFoundError
from steamscript.sim.scripts import Instruction


def _build_game() -> Game:
    game = new_demo_game(seed=99)
    game.perform(dsl.go("market"))
    game.perform(dsl.scene(dsl.text("A street organ plays."), dsl.text("The tune ends."), dsl.text("Coins clink.")))
    return game


def test_save_load_round_trip_preserves_game_state(tmp_path: Path) -> None:
    game = _build_game()
    path = tmp_path / "save.json"

    save_game_json(path, game)
    loaded = load_game_json(path, build_demo_library())

    assert game_hash(loaded) == game_hash(game)
    assert loaded.time == game.time
    assert loaded.current_location == "market"
    assert [card.to_dict() for card in loaded.player.cards] == [card.to_dict() for card in game.player.cards]
    assert loaded.scene.stack == game.scene.stack
    assert loaded.scene.stack[0].pages == [Instruction("text", {"parts": ["The tune ends."]}), Instruction("text", {"parts": ["Coins clink."]})]
    assert sorted(loaded.npcs) == ["ivy", "rob"]
    assert loaded.locations["market"].num_visits == 1


def test_loaded_game_continues_identically(tmp_path: Path) -> None:
    game = _build_game()
    path = tmp_path / "save.json"
    save_game_json(path, game)
    loaded = load_game_json(path, build_demo_library())

    for current in (game, loaded):
        current.perform(current.scene.options[0]["action"])
        current.perform(Instruction("runActivity", {"activity": "Rummage for parts"}))
        current.perform(dsl.wait(40))

    assert game_hash(loaded) == game_hash(game)


def test_save_file_is_canonical_json_written_atomically(tmp_path: Path) -> None:
    game = _build_game()
    path = tmp_path / "nested" / "save.json"

    save_game_json(path, game, metadata={"player_name": "Ada"})

    text = path.read_text(encoding="utf-8")
    payload = json.loads(text)
    assert text == json.dumps(payload, indent=2, separators=(",", ": "), sort_keys=True)
    assert payload["schema_version"] == 1
    assert payload["game_state"]["version"] == 2
    assert list(path.parent.glob("*.tmp")) == []
    assert load_save_metadata(path) == {"player_name": "Ada"}


def test_tampered_save_fails_hash_check(tmp_path: Path) -> None:
    game = _build_game()
    path = tmp_path / "save.json"
    save_game_json(path, game)

    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["game_state"]["score"] = 1000
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValueError, match="save_hash mismatch"):
        load_game_json(path, build_demo_library())


def test_unsupported_schema_version_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "save.json"
    save_game_json(path, _build_game())
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["schema_version"] = 9
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValueError, match="unsupported schema_version: 9"):
        load_game_json(path, build_demo_library())


def test_saves_referencing_unknown_definitions_fail_to_load(tmp_path: Path) -> None:
    game = _build_game()
    state = game.to_dict()
    state["player"]["cards"].append({"id": "cursed", "type": "Effect"})
    path = tmp_path / "bare.json"
    path.write_text(json.dumps(state), encoding="utf-8")

    with pytest.raises(DefinitionNotFoundError, match="card definition not found: cursed"):
        load_game_json(path, build_demo_library())


def test_transient_fields_are_not_saved() -> None:
    game = _build_game()
    game.player.sleeping = True

    state = game.to_dict()

    assert "stats" not in state["player"]
    assert "sleeping" not in state["player"]
    assert "npcs_present" not in state
    assert Game.from_dict(state, build_demo_library()).npcs_present == game.npcs_present


def test_settings_file_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    settings = Settings()
    settings.set("debug", True)
    settings.set("autosave", False)

    save_settings_json(path, settings)

    assert load_settings_json(path) == settings


def test_settings_file_rejects_non_boolean_flags(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"schema_version": 1, "settings": {"debug": "yes"}}), encoding="utf-8")

    with pytest.raises(ValueError, match="settings.debug must be a boolean"):
        load_settings_json(path)
