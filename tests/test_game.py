import logging

import pytest

from steamscript.sim import dsl
from steamscript.sim.core import Game, Settings
from steamscript.sim.format import COLOURS, colour, p, plain_text
from steamscript.sim.library import ContentLibrary, build_core_library
from steamscript.sim.location import LocationDefinition
from steamscript.sim.npc import NPC, NPCDefinition
from steamscript.sim.player import LAST_ACTION_TIMER
from steamscript.sim.registry import DefinitionNotFoundError
from steamscript.sim.rules import EnergyDrainModule
from steamscript.sim.scripts import Instruction
from steamscript.sim.timekeeping import SECONDS_PER_HOUR, start_of_day

STATION_SCHEDULE = [(7, 19, "platform"), (22, 2, "signal-box")]


def _build_game(events: list[str] | None = None) -> Game:
    events = events if events is not None else []

    def _generate_porter(game: Game, npc: NPC) -> None:
        events.append("generate")
        npc.stats["affection"] = 3

    def _porter_moves(game: Game, params: dict) -> None:
        events.append("move")
        game.get_npc(params["npc"]).follow_schedule(game, STATION_SCHEDULE)

    library = build_core_library(start_location="platform")
    library.locations.register("platform", LocationDefinition(name="Platform Nine"))
    library.locations.register("signal-box", LocationDefinition(name="Signal Box"))
    library.npcs.register(
        "porter",
        NPCDefinition(
            name="Alf",
            generate=_generate_porter,
            on_move=_porter_moves,
            on_leave_player=lambda game, params: game.add("{npc} heads off for the night."),
            after_update=lambda game, params: events.append(f"after:{params['npc']}"),
        ),
    )
    return Game(library)


def _set_hour(game: Game, hour: float) -> None:
    game.time = start_of_day(game.time) + int(hour * SECONDS_PER_HOUR)


def test_before_action_is_idempotent() -> None:
    game = _build_game()
    game.get_npc("porter")
    game.player.basestats["Wits"] = 30

    game.before_action()
    first = (list(game.npcs_present), dict(game.player.stats), game.to_dict())
    game.before_action()
    second = (list(game.npcs_present), dict(game.player.stats), game.to_dict())

    assert first == second
    assert game.npcs_present == ["porter"]


def test_take_action_reports_errors_without_losing_earlier_content(caplog) -> None:
    game = _build_game()

    with caplog.at_level(logging.ERROR, logger="steamscript.sim.core"):
        game.perform(dsl.seq(dsl.text("The lever sticks."), dsl.call("missing")))

    assert [plain_text(item) for item in game.scene.content] == [
        "The lever sticks.",
        "Error: script not found: missing",
    ]
    assert game.scene.content[-1] == p(colour("Error: script not found: missing", COLOURS["negative"]))
    assert "action" in caplog.text


def test_take_action_records_the_action_time_and_clears_the_display() -> None:
    game = _build_game()
    game.add("old news")
    game.scene.push_frame(["text"])
    game.time_lapse(5)

    game.take_action(Instruction("inScene", {}))

    assert game.player.timers[LAST_ACTION_TIMER] == game.time
    assert game.scene.content == []
    assert game.scene.has_pending_pages


def test_after_action_closes_the_sequence_only_without_options() -> None:
    events: list[str] = []
    game = _build_game(events)
    game.get_npc("porter")
    game.update_npcs_present()
    game.scene.npc = "porter"
    game.scene.push_frame(["text"])
    game.add_option(Instruction("exitScene", {}), "Leave")

    game.after_action()
    assert game.scene.npc == "porter"
    assert game.scene.stack

    game.clear_scene()
    game.after_action()
    assert game.scene.npc is None
    assert game.scene.stack == []
    assert events.count("after:porter") == 2


def test_npcs_are_generated_lazily_and_registered_before_moving() -> None:
    events: list[str] = []
    game = _build_game(events)

    assert game.npcs == {}
    assert game.locations == {}

    npc = game.get_npc("porter")
    assert game.get_npc("porter") is npc
    assert events == ["generate", "move"]
    assert npc.affection == 3
    assert npc.location == "platform"


def test_unknown_definitions_are_fatal() -> None:
    game = _build_game()

    with pytest.raises(DefinitionNotFoundError, match="location definition not found: nowhere"):
        game.get_location("nowhere")
    with pytest.raises(DefinitionNotFoundError, match="npc definition not found: ghost"):
        game.get_npc("ghost")
    with pytest.raises(ValueError, match="no npc in the current scene"):
        game.npc


def test_schedules_wrap_past_midnight_and_vacate_when_unmatched() -> None:
    game = _build_game()
    npc = game.get_npc("porter")

    _set_hour(game, 23)
    npc.follow_schedule(game, STATION_SCHEDULE)
    assert npc.location == "signal-box"

    _set_hour(game, 1.5)
    npc.follow_schedule(game, STATION_SCHEDULE)
    assert npc.location == "signal-box"

    _set_hour(game, 3)
    npc.follow_schedule(game, STATION_SCHEDULE)
    assert npc.location is None


def test_schedule_weekdays_accept_zero_or_seven_for_sunday() -> None:
    game = _build_game()
    npc = game.get_npc("porter")
    npc.location = None

    npc.follow_schedule(game, [(9, 17, "signal-box", [1, 2, 3, 4, 5])])
    assert npc.location is None

    npc.follow_schedule(game, [(9, 17, "signal-box", [7])])
    assert npc.location == "signal-box"


def test_leaving_the_player_runs_the_leave_hook() -> None:
    game = _build_game()
    npc = game.get_npc("porter")
    assert npc.location == game.current_location

    _set_hour(game, 20)
    npc.follow_schedule(game, STATION_SCHEDULE)

    assert npc.location is None
    assert game.scene.npc == "porter"
    assert [plain_text(item) for item in game.scene.content] == ["Alf heads off for the night."]


def test_add_rejects_unrenderable_items() -> None:
    game = _build_game()

    game.add(None)
    game.add(["one", colour("two", COLOURS["item"])])
    assert [plain_text(item) for item in game.scene.content] == ["one", "two"]

    with pytest.raises(TypeError, match="cannot add int"):
        game.add(5)


def test_settings_validate_flags_and_keep_unknown_ones() -> None:
    settings = Settings.from_dict({"debug": True, "large_text": True})

    assert settings.get("debug")
    assert settings.get("autosave")
    assert settings.to_dict()["large_text"] is True
    with pytest.raises(ValueError, match="setting debug must be a boolean"):
        settings.set("debug", "yes")


def test_rule_module_names_are_unique_per_game() -> None:
    library = ContentLibrary()
    library.add_rule_module(EnergyDrainModule)
    game = Game(library)

    assert game.get_rule_module("energy_drain") is not None
    with pytest.raises(ValueError, match="duplicate rule module name: energy_drain"):
        game.register_rule_module(EnergyDrainModule())

    library.freeze()
    with pytest.raises(ValueError, match="content library is frozen"):
        library.add_rule_module(EnergyDrainModule)


def test_named_rng_streams_are_deterministic_per_seed() -> None:
    game_a = Game(seed=42)
    game_b = Game(seed=42)
    game_c = Game(seed=43)

    draws_a = [game_a.rng_stream("scripts").random() for _ in range(3)]
    game_b.rng_stream("skill_checks").random()
    draws_b = [game_b.rng_stream("scripts").random() for _ in range(3)]

    assert draws_a == draws_b
    assert draws_a != [game_c.rng_stream("scripts").random() for _ in range(3)]
