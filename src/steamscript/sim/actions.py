from __future__ import annotations

from typing import TYPE_CHECKING, Any

from steamscript.sim.format import COLOURS, colour, speech
from steamscript.sim.scripts import ScriptFn, ScriptRegistry
from steamscript.sim.timekeeping import DEFAULT_WAIT_MINUTES

if TYPE_CHECKING:
    from steamscript.sim.core import Game

DEFAULT_REPLY_COLOUR = "#a8d4f0"


def _wait(game: Game, params: dict[str, Any]) -> bool:
    return game.wait(params.get("minutes", DEFAULT_WAIT_MINUTES), text=params.get("text"), then=params.get("then"))


def _go(game: Game, params: dict[str, Any]) -> None:
    """Follow a link from the current location, spending its travel time."""
    location_id = params.get("location")
    if not isinstance(location_id, str) or not location_id:
        raise ValueError("go requires a location parameter")
    destination = game.library.locations.require(location_id)

    link = game.library.locations.require(game.location.id).link_to(location_id)
    if link is None:
        game.add(f"You can't see a way to {destination.name or location_id}.")
        return
    if link.check_access is not None:
        reason = link.check_access(game)
        if reason:
            game.add(reason)
            return
    if link.on_follow is not None:
        game.run(link.on_follow, {"location": location_id})
        if game.in_scene:
            return

    location = game.get_location(location_id)
    first_visit = location.num_visits == 0
    location.num_visits += 1

    minutes = params.get("minutes", link.time)
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)) or minutes < 0:
        raise ValueError("go requires non-negative minutes")
    game.time_lapse(minutes)
    game.run("move", {"location": location_id})
    location.discovered = True

    if first_visit and destination.on_first_arrive is not None:
        game.run(destination.on_first_arrive, {"location": location_id})
    if destination.on_arrive is not None:
        game.run(destination.on_arrive, {"location": location_id})


def _move(game: Game, params: dict[str, Any]) -> None:
    location_id = params.get("location")
    if not isinstance(location_id, str) or not location_id:
        raise ValueError("move requires a location parameter")
    game.move_to_location(location_id)
    minutes = params.get("minutes")
    if minutes:
        game.time_lapse(minutes)


def _discover_location(game: Game, params: dict[str, Any]) -> None:
    location_id = params.get("location")
    if not isinstance(location_id, str) or not location_id:
        raise ValueError("discoverLocation requires a location parameter")
    location = game.get_location(location_id)
    if location.discovered:
        return
    location.discovered = True
    if params.get("text"):
        game.add(colour(params["text"], params.get("colour") or COLOURS["discovery"]))


def _approach(game: Game, params: dict[str, Any]) -> None:
    npc_id = params.get("npc")
    if not isinstance(npc_id, str) or not npc_id:
        raise ValueError("approach requires an npc parameter")
    npc = game.get_npc(npc_id)
    npc.approach_count += 1
    definition = game.library.npcs.require(npc_id)

    game.scene.npc = npc_id
    game.scene.hide_npc_image = False
    script = definition.on_approach
    if npc.approach_count == 1 and definition.on_first_approach is not None:
        script = definition.on_first_approach
    if script is not None:
        game.run(script, {"npc": npc_id})
        return
    game.add(f"{definition.display_name(npc.name_known)} isn't interested in talking to you.")


def _interact(game: Game, params: dict[str, Any]) -> None:
    npc_id = params.get("npc") or game.scene.npc
    if not npc_id:
        raise ValueError("interact requires an npc parameter or a scene npc")
    script_name = params.get("script")
    if not isinstance(script_name, str) or not script_name:
        raise ValueError("interact requires a script parameter")
    game.get_npc(npc_id)
    script = game.library.npcs.require(npc_id).scripts.get(script_name)
    if script is None:
        raise ValueError(f"npc {npc_id} has no script {script_name}")
    game.time_lapse(1)
    game.run(script, {"npc": npc_id, **(params.get("params") or {})})


def _run_activity(game: Game, params: dict[str, Any]) -> None:
    name = params.get("activity")
    if not isinstance(name, str) or not name:
        raise ValueError("runActivity requires an activity parameter")
    definition = game.library.locations.require(game.location.id)
    for activity in definition.activities:
        if activity.name == name:
            if activity.condition is not None and not game.run(activity.condition):
                break
            game.run(activity.script)
            return
    game.add("Activity not found.")


def _relax_at_location(game: Game, params: dict[str, Any]) -> None:
    on_relax = game.library.locations.require(game.location.id).on_relax
    if on_relax is None:
        game.add("There's nothing particularly relaxing to do here.")
        return
    game.run(on_relax)


def _end_conversation(game: Game, params: dict[str, Any]) -> None:
    game.add(params.get("text") or "You politely end the conversation.")
    reply = params.get("reply")
    if not reply:
        return
    if game.scene.npc is not None:
        game.npc.say(game, reply)
    else:
        game.add(speech(reply, DEFAULT_REPLY_COLOUR))


def _end_scene(game: Game, params: dict[str, Any]) -> None:
    if params.get("text"):
        game.add(params["text"])


def _leave_shop(game: Game, params: dict[str, Any]) -> None:
    game.scene.shop = None
    if params.get("text"):
        game.add(params["text"])


ACTION_SCRIPTS: dict[str, ScriptFn] = {
    "wait": _wait,
    "go": _go,
    "move": _move,
    "discoverLocation": _discover_location,
    "approach": _approach,
    "interact": _interact,
    "runActivity": _run_activity,
    "relaxAtLocation": _relax_at_location,
    "endConversation": _end_conversation,
    "endScene": _end_scene,
    "leaveShop": _leave_shop,
}


def register_action_scripts(registry: ScriptRegistry) -> None:
    registry.register_many(ACTION_SCRIPTS)
