"""A small demonstration story: one evening in the city of Aetheria."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from steamscript.content.items import load_items_json
from steamscript.sim import dsl
from steamscript.sim.cards import Card, CardDefinition, card_reminders
from steamscript.sim.core import Game
from steamscript.sim.format import COLOURS, colour
from steamscript.sim.library import ContentLibrary, build_core_library
from steamscript.sim.location import Activity, LocationDefinition, LocationLink
from steamscript.sim.npc import PRONOUNS, NPC, NPCDefinition
from steamscript.sim.rules import EnergyDrainModule
from steamscript.sim.timekeeping import SECONDS_PER_MINUTE

if TYPE_CHECKING:
    from steamscript.sim.player import Player

START_LOCATION = "station"
ALCOHOL_DECAY_MINUTES = 10
INTOXICATED_THRESHOLD = 40
STARTING_BASE_STATS = {
    "Agility": 35,
    "Perception": 40,
    "Brawn": 25,
    "Wits": 45,
    "Charm": 40,
    "Energy": 80,
    "Composure": 60,
    "Stress": 10,
    "Pain": 0,
    "Mood": 60,
}

ROB_SCHEDULE = [(7, 19, "station"), (19, 23, "tavern")]
IVY_SCHEDULE = [(16, 2, "tavern")]


# Cards


def _alcohol_on_time(game: Game, card: Card, seconds: int) -> None:
    ticks = game.calc_ticks(seconds, ALCOHOL_DECAY_MINUTES * SECONDS_PER_MINUTE)
    if ticks <= 0:
        return
    card["alcohol"] = max(0, card.get("alcohol", 0) - ticks)
    if card["alcohol"] <= 0:
        game.remove_card(card.id)
    elif card.id == "intoxicated" and card["alcohol"] < INTOXICATED_THRESHOLD:
        remaining = card["alcohol"]
        game.remove_card("intoxicated", silent=True)
        game.add_card("tipsy", extra={"alcohol": remaining})


def _intoxicated_stats(player: Player, card: Card, stats: dict[str, float]) -> None:
    penalty = card.get("alcohol", 0) // 10
    stats["Wits"] = stats.get("Wits", 0) - penalty
    stats["Agility"] = stats.get("Agility", 0) - penalty
    stats["Mood"] = stats.get("Mood", 0) + 5


def _tipsy_stats(player: Player, card: Card, stats: dict[str, float]) -> None:
    stats["Charm"] = stats.get("Charm", 0) + 5


def _intoxicated_reminders(game: Game, card: Card) -> list[str]:
    return ["The room sways gently. Perhaps no more ale for a while."]


def _introvert_stats(player: Player, card: Card, stats: dict[str, float]) -> None:
    stats["Perception"] = stats.get("Perception", 0) + 5


def _extrovert_stats(player: Player, card: Card, stats: dict[str, float]) -> None:
    stats["Charm"] = stats.get("Charm", 0) + 5


def _lodgings_reminders(game: Game, card: Card) -> list[str]:
    if card.completed:
        return []
    return ["You still need somewhere to sleep tonight."]


def drink_ale(game: Game, params: dict[str, Any]) -> None:
    """Add alcohol to whichever drunkenness card is active, escalating when it builds up."""
    amount = params.get("alcohol", 20)
    card = game.player.get_card("intoxicated") or game.player.get_card("tipsy")
    if card is None:
        game.add_card("tipsy", extra={"alcohol": amount})
        return
    card["alcohol"] = card.get("alcohol", 0) + amount
    if card.id == "tipsy" and card["alcohol"] >= INTOXICATED_THRESHOLD:
        game.add_card("intoxicated", extra={"alcohol": card["alcohol"]})
    game.calc_stats()


CARDS = {
    "tipsy": CardDefinition(
        name="Tipsy",
        type="Effect",
        description="A pleasant warmth from the Kettle's ale.",
        subsumed_by=("intoxicated",),
        on_time=_alcohol_on_time,
        calc_stats=_tipsy_stats,
    ),
    "intoxicated": CardDefinition(
        name="Intoxicated",
        type="Effect",
        description="Rather more than a pleasant warmth.",
        on_time=_alcohol_on_time,
        calc_stats=_intoxicated_stats,
        reminders=_intoxicated_reminders,
    ),
    "introvert": CardDefinition(
        name="Introvert",
        type="Trait",
        description="You notice more than you say.",
        replaces=("extrovert",),
        calc_stats=_introvert_stats,
    ),
    "extrovert": CardDefinition(
        name="Extrovert",
        type="Trait",
        description="Crowds are an opportunity.",
        replaces=("introvert",),
        calc_stats=_extrovert_stats,
    ),
    "find-lodgings": CardDefinition(
        name="Find Lodgings",
        type="Quest",
        description="Find a bed for the night before the gas lamps go out.",
        reminders=_lodgings_reminders,
    ),
}


# Locations


LOCATIONS = {
    "station": LocationDefinition(
        name="Aetheria Station",
        description="Steam hisses from the great iron locomotives under a vaulted glass roof.",
        links=(
            LocationLink(dest="market", time=5),
            LocationLink(dest="tavern", time=8, label="The Copper Kettle"),
        ),
        activities=(
            Activity(
                name="Read the timetable",
                script=dsl.seq(
                    dsl.text("The timetable is a riot of brass letters. No more trains tonight."),
                    dsl.time_lapse(2),
                ),
            ),
        ),
        on_arrive=dsl.text("The station concourse echoes with footsteps."),
        on_relax=dsl.seq(dsl.text("You sit on a bench and watch the engines."), dsl.add_stat("Stress", -2, hidden=True)),
    ),
    "market": LocationDefinition(
        name="Gaslight Market",
        description="Stalls of cogs, spices and secondhand coats line the cobbles.",
        links=(
            LocationLink(dest="station", time=5),
            LocationLink(dest="tavern", time=4),
            LocationLink(dest="lake", time=15, label="Down to the lake"),
        ),
        activities=(
            Activity(
                name="Rummage for parts",
                script=dsl.skill_check(
                    "Investigation",
                    10,
                    on_success=dsl.gain_item("brass-cog", text="You find a brass cog in a tray of scrap."),
                    on_failure=dsl.text("Nothing but rust and bent springs."),
                ),
            ),
        ),
        on_first_arrive=dsl.text("The smell of roasting chestnuts is everywhere."),
    ),
    "tavern": LocationDefinition(
        name="The Copper Kettle",
        description="A low-beamed tavern with a copper still gleaming behind the bar.",
        links=(
            LocationLink(dest="market", time=4),
            LocationLink(dest="station", time=8),
        ),
        activities=(
            Activity(
                name="Order an ale",
                script=dsl.cond(
                    dsl.has_item("crown"),
                    dsl.seq(
                        dsl.lose_item("crown"),
                        dsl.text("You slide a krona across the bar and receive a foaming mug."),
                        dsl.call("drinkAle", {"alcohol": 20}),
                        dsl.time_lapse(15),
                    ),
                    dsl.text("You pat your pockets. Not a single krona."),
                ),
            ),
            Activity(
                name="Ask about rooms",
                script=dsl.seq(
                    dsl.text("The landlady has a spare room upstairs, and hands you a key."),
                    dsl.complete_quest("find-lodgings"),
                ),
                condition=dsl.has_card("find-lodgings"),
            ),
        ),
        on_first_arrive=dsl.text("Warmth and noise spill out as you push open the door."),
        on_wait=dsl.random(
            dsl.when(dsl.hour_between(20, 23), dsl.text("Someone starts a rowdy chorus at the back.")),
            dsl.text("The fire crackles."),
            dsl.text("A barrel is rolled in from the cellar."),
        ),
    ),
    "lake": LocationDefinition(
        name="Lake Brass",
        description="Still black water reflects the gas lamps along the promenade.",
        links=(LocationLink(dest="market", time=15),),
        on_first_arrive=dsl.paragraph(dsl.hl("You have found the lake promenade.", COLOURS["discovery"])),
        on_relax=dsl.seq(dsl.text("You breathe in the cool air."), dsl.add_stat("Mood", 3)),
    ),
}


# NPCs


def _follow(schedule: list[tuple[int, int, str]]) -> Any:
    def _on_move(game: Game, params: dict[str, Any]) -> None:
        game.get_npc(params["npc"]).follow_schedule(game, schedule)

    return _on_move


def _generate_rob(game: Game, npc: NPC) -> None:
    npc.stats["affection"] = 5


def _ivy_maybe_approach(game: Game, params: dict[str, Any]) -> None:
    npc = game.get_npc(params["npc"])
    if npc.approach_count > 0:
        return
    if game.rng_stream("ivy").random() < 0.25:
        game.run("approach", {"npc": npc.id})


NPCS = {
    "rob": NPCDefinition(
        name="Rob",
        uname="a conductor",
        description="A tall man in a conductor's cap, pocket watch always in hand.",
        speech_color="#6ab0de",
        pronouns=PRONOUNS["he"],
        faction="Railway",
        generate=_generate_rob,
        on_move=_follow(ROB_SCHEDULE),
        on_first_approach=dsl.scene(
            dsl.seq(
                dsl.text("The conductor tips {npc:his} cap."),
                dsl.say("Evening, miss. Trains are done for the night."),
            ),
            dsl.seq(
                dsl.say("Name's Rob. If you need a bed, the Copper Kettle has rooms."),
                dsl.call("learnNpcName"),
            ),
            dsl.menu(
                dsl.menu_entry("Ask about the city", dsl.say("Aetheria never sleeps, but the trains do.")),
                dsl.menu_entry(
                    "Ask about the lake",
                    dsl.seq(dsl.say("Down past the market. Lovely at night."), dsl.call("discoverLocation", {"location": "lake"})),
                    condition=dsl.not_(dsl.call("locationDiscovered", {"location": "lake"})),
                ),
                dsl.menu_entry("Say goodbye", dsl.call("endConversation", {"reply": "Mind the gap."}), exit=True),
            ),
        ),
        on_approach=dsl.seq(
            dsl.say("Back again, {pc}?"),
            dsl.option("Chat", "npc:chat"),
            dsl.leave_option(reply="Safe travels."),
        ),
        scripts={
            "chat": dsl.seq(
                dsl.say("The 7:15 from Brassport is never on time."),
                dsl.call("addNpcStat", {"stat": "affection", "change": 1, "max": 20}),
                dsl.leave_option(),
            ),
        },
    ),
    "ivy": NPCDefinition(
        name="Ivy",
        uname="the barmaid",
        description="A quick-eyed barmaid with copper rings on every finger.",
        speech_color="#e58fb3",
        pronouns=PRONOUNS["she"],
        faction="Kettle",
        on_move=_follow(IVY_SCHEDULE),
        maybe_approach=_ivy_maybe_approach,
        on_first_approach=dsl.seq(
            dsl.say("You look like you could use a drink, love."),
            dsl.call("learnNpcName"),
            dsl.say("I'm Ivy. First one's on the house."),
            dsl.call("drinkAle", {"alcohol": 10}),
            dsl.leave_option(reply="Don't be a stranger."),
        ),
        on_approach=dsl.seq(dsl.say("Another?"), dsl.leave_option()),
    ),
}


def build_demo_library() -> ContentLibrary:
    library = build_core_library(start_location=START_LOCATION)
    library.scripts.register("drinkAle", drink_ale)
    dsl.register_sequence(
        library.scripts,
        "intro",
        [
            dsl.text("The last train from Brassport wheezes to a halt under the glass roof of {location}."),
            dsl.text("It is late, and you have nowhere to stay."),
            dsl.add_quest("find-lodgings"),
        ],
    )
    library.cards.register_many(CARDS)
    library.locations.register_many(LOCATIONS)
    library.npcs.register_many(NPCS)
    load_items_json().register_into(library.items)
    library.add_rule_module(EnergyDrainModule)
    library.freeze()
    return library


def new_demo_game(*, seed: int = 0, library: ContentLibrary | None = None) -> Game:
    game = Game(library if library is not None else build_demo_library(), seed=seed)
    game.player.basestats.update(STARTING_BASE_STATS)
    game.player.add_item("crown", 3)
    for npc_id in sorted(NPCS):
        game.get_npc(npc_id)
    game.run("discoverLocation", {"location": START_LOCATION})
    game.move_to_location(START_LOCATION)
    game.perform("intro")
    return game


def describe_reminders(game: Game) -> list[dict[str, Any]]:
    return [colour(reminder, COLOURS["task"]) for reminder in card_reminders(game)]
