import pytest

from steamscript.sim.cards import Card, CardDefinition
from steamscript.sim.core import Game
from steamscript.sim.format import COLOURS, colour
from steamscript.sim.library import build_core_library
from steamscript.sim.registry import DefinitionNotFoundError


def _build_game(removed: list[str] | None = None) -> Game:
    removed = removed if removed is not None else []

    def _record_removed(game: Game, card: Card) -> None:
        removed.append(card.id)

    def _charm_bonus(player, card, stats) -> None:
        stats["Charm"] = stats.get("Charm", 0) + card.get("bonus", 5)

    library = build_core_library()
    library.cards.register_many(
        {
            "tipsy": CardDefinition(name="Tipsy", type="Effect", subsumed_by=("drunk",), on_removed=_record_removed),
            "drunk": CardDefinition(name="Drunk", type="Effect", on_removed=_record_removed),
            "anxious": CardDefinition(name="Anxious", type="Trait", on_removed=_record_removed),
            "calm": CardDefinition(name="Calm", type="Trait", replaces=("anxious",)),
            "errand": CardDefinition(name="Deliver the Parcel", type="Quest"),
            "chore": CardDefinition(name="Oil the Hinges", type="Task", allow_multiple=True),
            "charming": CardDefinition(name="Charming", type="Trait", calc_stats=_charm_bonus),
        }
    )
    return Game(library)


def test_subsumed_card_cannot_be_added_while_stronger_card_is_present() -> None:
    game = _build_game()

    game.add_card("drunk")

    assert game.add_card("tipsy") is None
    assert not game.player.has_card("tipsy")
    assert [card.id for card in game.player.cards] == ["drunk"]


def test_stronger_card_silently_drops_the_weaker_one() -> None:
    removed: list[str] = []
    game = _build_game(removed)
    game.add_card("tipsy")
    game.clear_scene()

    game.add_card("drunk")

    assert [card.id for card in game.player.cards] == ["drunk"]
    assert removed == []
    assert game.scene.content == [colour("Effect: Drunk", COLOURS["effect"])]


def test_removing_a_weaker_card_while_upgraded_emits_no_notice() -> None:
    removed: list[str] = []
    game = _build_game(removed)
    game.add_card("drunk")
    game.player.cards.append(Card(id="tipsy", type="Effect"))
    game.clear_scene()

    assert game.remove_card("tipsy")

    assert removed == []
    assert game.scene.content == []


def test_replacement_leaves_exactly_one_card_and_no_removal_notice() -> None:
    removed: list[str] = []
    game = _build_game(removed)
    game.add_card("anxious")
    game.clear_scene()

    game.add_card("calm")

    assert [card.id for card in game.player.cards] == ["calm"]
    assert removed == []
    assert game.scene.content == [colour("Trait gained: Calm", COLOURS["trait"])]


def test_default_notices_are_keyed_by_card_type() -> None:
    game = _build_game()

    game.add_card("errand")
    game.add_card("chore")
    game.remove_card("errand")
    game.remove_card("chore")

    assert game.scene.content == [
        colour("Quest received: Deliver the Parcel", COLOURS["discovery"]),
        colour("New task: Oil the Hinges", COLOURS["task"]),
        colour("Quest removed: Deliver the Parcel", COLOURS["negative"]),
        colour("Task removed: Oil the Hinges", COLOURS["task"]),
    ]


def test_silent_add_and_remove_emit_nothing() -> None:
    game = _build_game()

    game.add_card("errand", silent=True)
    game.remove_card("errand", silent=True)

    assert game.scene.content == []
    assert game.remove_card("errand") is False


def test_duplicates_only_for_cards_that_allow_multiples() -> None:
    game = _build_game()

    assert game.add_card("errand") is not None
    assert game.add_card("errand") is None
    game.add_card("chore")
    game.add_card("chore")

    assert [card.id for card in game.player.cards] == ["errand", "chore", "chore"]


def test_extra_fields_live_on_the_instance() -> None:
    game = _build_game()

    card = game.add_card("tipsy", extra={"alcohol": 12})

    assert card["alcohol"] == 12
    assert card.to_dict() == {"id": "tipsy", "type": "Effect", "alcohol": 12}
    with pytest.raises(ValueError, match="card field 'id' is reserved"):
        card["id"] = "drunk"


def test_complete_quest_marks_completion_once() -> None:
    game = _build_game()
    game.add_card("errand")
    game.clear_scene()

    assert game.complete_quest("errand")
    assert not game.complete_quest("errand")

    assert game.player.get_card("errand").completed
    assert game.scene.content == [colour("Quest completed: Deliver the Parcel", COLOURS["positive"])]


def test_card_stat_modifiers_apply_on_add_and_clear_on_remove() -> None:
    game = _build_game()
    game.player.basestats["Charm"] = 40

    game.add_card("charming", extra={"bonus": 7})
    assert game.player.stats["Charm"] == 47

    game.remove_card("charming")
    assert game.player.stats["Charm"] == 40


def test_after_update_hooks_may_remove_their_own_card() -> None:
    library = build_core_library()
    library.cards.register(
        "fleeting",
        CardDefinition(name="Fleeting", type="Effect", after_update=lambda game, card: game.remove_card(card.id, silent=True)),
    )
    game = Game(library)
    game.add_card("fleeting")

    game.after_action()

    assert game.player.cards == []


def test_unknown_cards_and_types_are_rejected() -> None:
    game = _build_game()

    with pytest.raises(DefinitionNotFoundError, match="card definition not found: ghost"):
        game.add_card("ghost")
    with pytest.raises(ValueError, match="card type must be one of"):
        CardDefinition(name="Odd", type="Curse")
    with pytest.raises(ValueError, match="card type must be one of"):
        Card(id="odd", type="Curse")
