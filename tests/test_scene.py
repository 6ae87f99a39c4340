from steamscript.sim import dsl
from steamscript.sim.core import Game
from steamscript.sim.format import plain_text
from steamscript.sim.library import build_core_library
from steamscript.sim.scene import Frame, Scene
from steamscript.sim.scripts import Instruction


def _build_game() -> Game:
    return Game(build_core_library())


def _texts(game: Game) -> list[str]:
    return [plain_text(item) for item in game.scene.content]


def _labels(game: Game) -> list[str]:
    return [option["label"] for option in game.scene.options]


def _choose(game: Game, label: str) -> None:
    for option in game.scene.options:
        if option["label"] == label:
            game.perform(option["action"])
            return
    raise AssertionError(f"no option labelled {label!r}: {_labels(game)}")


def test_clear_scene_keeps_the_stack_but_empties_the_display() -> None:
    game = _build_game()
    game.scene.push_frame([Instruction("text", {"text": "later"})])
    game.scene.npc = "someone"
    game.add("now")
    game.add_option(Instruction("exitScene", {}), "Leave")

    game.clear_scene()

    assert game.scene.content == []
    assert game.scene.options == []
    assert game.scene.stack == [Frame(pages=[Instruction("text", {"text": "later"})])]
    assert game.scene.npc == "someone"


def test_dismiss_scene_resets_everything() -> None:
    game = _build_game()
    game.scene.push_frame(["text"])
    game.scene.npc = "someone"
    game.scene.hide_npc_image = True

    game.dismiss_scene()

    assert game.scene == Scene()


def test_frames_are_innermost_first() -> None:
    scene = Scene()
    assert scene.top_frame.pages == []
    assert len(scene.stack) == 1

    scene.push_frame(["outer"])
    scene.push_frame(["inner"])

    assert scene.next_page() == Instruction("inner", {})
    assert scene.next_page() == Instruction("outer", {})
    assert scene.next_page() is None
    assert scene.stack == []
    assert scene.pop_frame() is None


def test_in_scene_tracks_options_pages_and_shops() -> None:
    scene = Scene()
    assert not scene.in_scene

    scene.push_frame([])
    assert not scene.in_scene
    scene.push_frame(["page"])
    assert scene.in_scene

    scene.dismiss()
    scene.shop = {"name": "Cog Stall"}
    assert scene.in_scene

    scene.dismiss()
    scene.add_option(["exitScene", {}], "Leave")
    assert scene.in_scene
    assert scene.options[0]["action"] == Instruction("exitScene", {})


def test_scene_pages_advance_one_continue_at_a_time() -> None:
    game = _build_game()

    game.perform(dsl.scene(dsl.text("The whistle blows."), dsl.text("Steam fills the platform."), dsl.text("The train is gone.")))
    assert _texts(game) == ["The whistle blows."]
    assert _labels(game) == ["Continue"]

    _choose(game, "Continue")
    assert _texts(game) == ["Steam fills the platform."]
    assert _labels(game) == ["Continue"]

    _choose(game, "Continue")
    assert _texts(game) == ["The train is gone."]
    assert game.scene.options == []
    assert game.scene.stack == []
    assert not game.in_scene


def test_advance_scene_skips_pages_that_render_nothing() -> None:
    game = _build_game()

    game.perform(dsl.scene(dsl.text("Start."), dsl.time_lapse(5), dsl.text("Five minutes later.")))
    before = game.time
    _choose(game, "Continue")

    assert game.time - before == 5 * 60
    assert _texts(game) == ["Five minutes later."]


def test_menu_repeats_until_an_exit_entry_is_chosen() -> None:
    game = _build_game()
    menu = dsl.menu(
        dsl.menu_entry("Ask about gears", dsl.text("They turn.")),
        dsl.menu_entry("Ask about the secret", dsl.text("Hush."), condition=dsl.has_item("badge")),
        dsl.menu_entry("Goodbye", dsl.text("You walk away."), exit=True),
    )

    game.perform(menu)
    assert _labels(game) == ["Ask about gears", "Goodbye"]

    _choose(game, "Ask about gears")
    assert _texts(game) == ["They turn."]
    assert _labels(game) == ["Continue"]

    _choose(game, "Continue")
    assert _texts(game) == []
    assert _labels(game) == ["Ask about gears", "Goodbye"]

    _choose(game, "Goodbye")
    assert _texts(game) == ["You walk away."]
    assert game.scene.options == []
    assert game.scene.stack == []


def test_branch_option_pushes_its_pages() -> None:
    game = _build_game()

    game.perform(dsl.seq(dsl.text("The tunnel forks."), dsl.branch("Left", dsl.text("Darkness."), dsl.text("Light ahead."))))
    assert _labels(game) == ["Left"]

    _choose(game, "Left")
    assert _texts(game) == ["Darkness."]
    _choose(game, "Continue")
    assert _texts(game) == ["Light ahead."]


def test_exit_scene_clears_pending_pages() -> None:
    game = _build_game()
    game.perform(dsl.scene(dsl.text("One."), dsl.text("Two.")))

    game.perform(dsl.exit_scene())

    assert game.scene.stack == []
    assert not game.in_scene


def test_scene_round_trips_with_instruction_actions() -> None:
    scene = Scene()
    scene.push_frame([Instruction("text", {"text": "queued"})])
    scene.add_option(Instruction("advanceScene", {}), "Continue")
    scene.npc = "rob"

    restored = Scene.from_dict(scene.to_dict())

    assert restored == scene
    assert restored.options[0]["action"] == Instruction("advanceScene", {})
