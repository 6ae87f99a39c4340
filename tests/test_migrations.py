import json
from pathlib import Path

import pytest

from steamscript.content.demo import build_demo_library
from steamscript.content.io import load_game_json
from steamscript.content.migrations import SaveMigrationError, migrate_game_state
from steamscript.sim.core import DEFAULT_SETTINGS
from steamscript.sim.scene import Frame
from steamscript.sim.scripts import Instruction
from steamscript.sim.timekeeping import SECONDS_PER_HOUR, START_TIME


def _legacy_v1_snapshot() -> dict:
    return {
        "version": 1,
        "score": 4,
        "player": {
            "name": "Ada",
            "basestats": {"Wits": 50, "Charm": 35},
            "stats": {"Wits": 55, "Charm": 35},
            "inventory": [{"id": "crown", "number": 2}, {"id": "brass-cog"}, {"id": "crown", "number": 1}],
            "cards": [{"id": "tipsy", "type": "Effect", "alcohol": 15}],
        },
        "locations": {"station": {"numVisits": 2, "discovered": True}},
        "npcs": {"rob": {"stats": {"affection": 3}, "location": "station", "nameKnown": True}},
        "currentLocation": "station",
        "time": START_TIME + SECONDS_PER_HOUR,
        "scene": {
            "content": [],
            "options": [{"type": "button", "script": ["advanceScene", {}], "label": "Continue"}],
            "stack": [["text", {"text": "Later that evening."}]],
            "npc": "rob",
            "hideNpcImage": True,
        },
        "settings": {"debug": True},
    }


def test_v1_snapshot_is_upgraded_to_the_current_shape() -> None:
    migrated = migrate_game_state(_legacy_v1_snapshot())

    assert migrated["version"] == 2
    assert migrated["current_location"] == "station"
    assert migrated["locations"] == {"station": {"num_visits": 2, "discovered": True}}
    assert migrated["npcs"] == {"rob": {"stats": {"affection": 3, "nameKnown": 1}, "location": "station"}}
    assert migrated["player"]["inventory"] == {"crown": 3, "brass-cog": 1}
    assert "stats" not in migrated["player"]
    assert migrated["scene"]["stack"] == [{"pages": [["text", {"text": "Later that evening."}]]}]
    assert migrated["scene"]["options"] == [{"type": "button", "action": ["advanceScene", {}], "label": "Continue"}]
    assert migrated["scene"]["hide_npc_image"] is True
    assert migrated["settings"] == {**DEFAULT_SETTINGS, "debug": True}
    assert migrated["seed"] == 0


def test_migration_does_not_mutate_its_input() -> None:
    snapshot = _legacy_v1_snapshot()
    original = json.loads(json.dumps(snapshot))

    migrate_game_state(snapshot)

    assert snapshot == original


def test_oldest_dialog_scene_shape_becomes_content_and_a_button() -> None:
    snapshot = _legacy_v1_snapshot()
    snapshot["scene"] = {"dialog": "The clock strikes nine.", "next": "intro"}

    scene = migrate_game_state(snapshot)["scene"]

    assert scene["content"] == [{"type": "text", "text": "The clock strikes nine."}]
    assert scene["options"] == [{"type": "button", "action": ["intro", {}], "label": None}]
    assert scene["stack"] == []


def test_unversioned_snapshot_gets_defaults() -> None:
    migrated = migrate_game_state({"player": {"name": "Ada"}})

    assert migrated["version"] == 2
    assert migrated["time"] == START_TIME
    assert migrated["current_location"] == "station"
    assert migrated["score"] == 0
    assert migrated["scene"]["stack"] == []


def test_bad_snapshots_raise_migration_errors() -> None:
    with pytest.raises(SaveMigrationError, match="was not an object"):
        migrate_game_state([])
    with pytest.raises(SaveMigrationError, match="missing a player block"):
        migrate_game_state({"version": 0})
    with pytest.raises(SaveMigrationError, match="version missing or invalid"):
        migrate_game_state({"version": "two", "player": {}})
    with pytest.raises(SaveMigrationError, match="newer than supported"):
        migrate_game_state({"version": 3, "player": {}})


def test_legacy_snapshot_file_loads_into_a_live_game(tmp_path: Path) -> None:
    path = tmp_path / "legacy.json"
    path.write_text(json.dumps(_legacy_v1_snapshot()), encoding="utf-8")

    game = load_game_json(path, build_demo_library())

    assert game.player.display_name == "Ada"
    assert game.player.count_item("crown") == 3
    assert game.player.get_card("tipsy")["alcohol"] == 15
    assert game.locations["station"].num_visits == 2
    assert game.npcs["rob"].name_known
    assert game.npcs_present == ["rob"]
    assert game.scene.stack == [Frame(pages=[Instruction("text", {"text": "Later that evening."})])]
    assert game.scene.options[0]["action"] == Instruction("advanceScene", {})
    assert game.settings.get("debug")
