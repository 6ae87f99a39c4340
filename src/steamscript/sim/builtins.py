from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from steamscript.sim.accessor import is_accessor
from steamscript.sim.format import COLOURS, colour, highlight, is_content, p, speech, txt
from steamscript.sim.interpolation import interpolate_string, interpolate_text
from steamscript.sim.location import LocationAccessor
from steamscript.sim.npc import NPCAccessor, leave_option
from steamscript.sim.player import PlayerAccessor, is_known_stat
from steamscript.sim.scene import as_page
from steamscript.sim.scripts import Instruction, ScriptFn, ScriptRegistry, is_instruction, run, run_all

if TYPE_CHECKING:
    from steamscript.sim.core import Game

CONTINUE_LABEL = "Continue"
SKILL_RNG_STREAM = "skill_checks"
SCRIPT_RNG_STREAM = "scripts"


def _require_str(params: Mapping[str, Any], key: str, script: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"{script} requires a {key} parameter")
    return value


def _require_number(params: Mapping[str, Any], key: str, script: str) -> float:
    value = params.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{script} requires a numeric {key} parameter")
    return value


def _count(params: Mapping[str, Any], script: str) -> int:
    number = params.get("number", 1)
    if isinstance(number, bool) or not isinstance(number, int) or number < 0:
        raise ValueError(f"{script} requires a non-negative integer number")
    return number


def _chance(game: Game, params: Mapping[str, Any], script: str) -> bool:
    chance = params.get("chance", 1.0)
    if isinstance(chance, bool) or not isinstance(chance, (int, float)) or not 0 <= chance <= 1:
        raise ValueError(f"{script} chance must be a number between 0 and 1")
    if chance >= 1:
        return True
    return game.rng_stream(SCRIPT_RNG_STREAM).random() < chance


def _in_range(value: float, params: Mapping[str, Any], *, default_positive: bool) -> bool:
    low, high = params.get("min"), params.get("max")
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    if low is None and high is None and default_positive:
        return value > 0
    return True


def _signed(amount: float) -> str:
    return f"+{amount:g}" if amount > 0 else f"{amount:g}"


def _scene_npc_id(game: Game, params: Mapping[str, Any]) -> str | None:
    return params.get("npc") or game.scene.npc


# Control flow


def _seq(game: Game, params: dict[str, Any]) -> None:
    run_all(game, params.get("instructions") or [])


def _when(game: Game, params: dict[str, Any]) -> None:
    condition, then = params.get("condition"), params.get("then")
    if condition is None or not then:
        return
    if run(game, condition):
        run_all(game, then)


def _cond(game: Game, params: dict[str, Any]) -> None:
    for branch in params.get("branches") or []:
        if run(game, branch["condition"]):
            run(game, branch["then"])
            return
    if params.get("default") is not None:
        run(game, params["default"])


def _random(game: Game, params: dict[str, Any]) -> None:
    """Run one eligible child; ``when`` children join the pool only if their condition holds."""
    pool: list[list[Any]] = []
    for child in params.get("children") or []:
        if not child:
            continue
        if is_instruction(child) and child[0] == "when":
            gated = child[1]
            if gated.get("condition") is not None and gated.get("then") and run(game, gated["condition"]):
                pool.append(list(gated["then"]))
        else:
            pool.append([child])
    if pool:
        run_all(game, game.rng_stream(SCRIPT_RNG_STREAM).choice(pool))


def _menu(game: Game, params: dict[str, Any]) -> None:
    entries = params.get("entries") or []
    menu_self = Instruction("menu", {"entries": entries})
    for entry in entries:
        condition = entry.get("condition")
        if condition is not None and not run(game, condition):
            continue
        push = [entry["content"]] if entry.get("is_exit") else [entry["content"], menu_self]
        game.add_option(Instruction("advanceScene", {"push": push}), entry.get("label"))


def _skill_check(game: Game, params: dict[str, Any]) -> bool:
    skill = params.get("skill")
    if not skill:
        return False
    success = game.player.skill_test(skill, params.get("difficulty", 0), rng=game.rng_stream(SKILL_RNG_STREAM))
    if success and params.get("on_success") is not None:
        run(game, params["on_success"])
    elif not success and params.get("on_failure") is not None:
        run(game, params["on_failure"])
    return success


# Predicates


def _has_item(game: Game, params: dict[str, Any]) -> bool:
    item = params.get("item")
    return bool(item) and game.player.count_item(item) >= params.get("count", 1)


def _has_stat(game: Game, params: dict[str, Any]) -> bool:
    stat = params.get("stat")
    if not stat:
        return False
    return _in_range(game.player.stats.get(stat, 0), params, default_positive=False)


def _has_reputation(game: Game, params: dict[str, Any]) -> bool:
    reputation = params.get("reputation")
    if not reputation:
        return False
    return _in_range(game.player.reputation.get(reputation, 0), params, default_positive=True)


def _in_location(game: Game, params: dict[str, Any]) -> bool:
    return game.current_location == params.get("location")


def _in_scene(game: Game, params: dict[str, Any]) -> bool:
    return game.in_scene


def _npc_stat(game: Game, params: dict[str, Any]) -> bool:
    npc_id, stat = _scene_npc_id(game, params), params.get("stat")
    if not npc_id or not stat:
        return False
    npc = game.npcs.get(npc_id)
    if npc is None:
        return False
    return _in_range(npc.stats.get(stat, 0), params, default_positive=True)


def _has_card(game: Game, params: dict[str, Any]) -> bool:
    return bool(params.get("card")) and game.player.has_card(params["card"])


def _card_completed(game: Game, params: dict[str, Any]) -> bool:
    card = game.player.get_card(params.get("card") or "")
    return card is not None and card.completed


def _location_discovered(game: Game, params: dict[str, Any]) -> bool:
    location = game.locations.get(params.get("location") or "")
    return location is not None and location.discovered


def _hour_between(game: Game, params: dict[str, Any]) -> bool:
    start, end = params.get("from", 0), params.get("to", 24)
    hour = game.hour_of_day
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def _time_elapsed(game: Game, params: dict[str, Any]) -> bool:
    timer = _require_str(params, "timer", "timeElapsed")
    minutes = _require_number(params, "minutes", "timeElapsed")
    recorded = game.player.timers.get(timer)
    if recorded is None:
        return True
    return game.time - recorded >= minutes * 60


def _debug(game: Game, params: dict[str, Any]) -> bool:
    return game.is_debug


def _not(game: Game, params: dict[str, Any]) -> bool:
    predicate = params.get("predicate")
    return predicate is None or not run(game, predicate)


def _and(game: Game, params: dict[str, Any]) -> bool:
    return all(run(game, predicate) for predicate in params.get("predicates") or [])


def _or(game: Game, params: dict[str, Any]) -> bool:
    return any(run(game, predicate) for predicate in params.get("predicates") or [])


# State changes


def _time_lapse(game: Game, params: dict[str, Any]) -> int:
    return game.time_lapse(
        params.get("minutes", 0),
        seconds=params.get("seconds", 0),
        until_hour=params.get("until_hour"),
    )


def _gain_item(game: Game, params: dict[str, Any]) -> None:
    item = _require_str(params, "item", "gainItem")
    number = _count(params, "gainItem")
    if len(game.library.items):
        game.library.items.require(item)
    if params.get("text"):
        game.add(colour(interpolate_text(game, params["text"]), COLOURS["item"]))
    game.player.add_item(item, number)
    game.calc_stats()


def _lose_item(game: Game, params: dict[str, Any]) -> None:
    item = _require_str(params, "item", "loseItem")
    game.player.remove_item(item, _count(params, "loseItem"))
    game.calc_stats()


def _add_stat(game: Game, params: dict[str, Any]) -> None:
    stat = _require_str(params, "stat", "addStat")
    if not is_known_stat(stat):
        raise ValueError(f"addStat: unknown stat {stat}")
    change = _require_number(params, "change", "addStat")
    if not _chance(game, params, "addStat"):
        return

    current = game.player.basestats.get(stat, 0)
    updated = max(params.get("min", 0), min(params.get("max", 100), current + change))
    actual = updated - current
    if actual == 0 or (actual > 0) != (change > 0):
        return
    game.player.basestats[stat] = updated
    game.calc_stats()

    if not params.get("hidden"):
        color = params.get("colour") or (COLOURS["positive"] if change > 0 else COLOURS["negative"])
        game.add(colour(params.get("text") or f"{stat} {_signed(change)}", color))


def _calc_stats(game: Game, params: dict[str, Any]) -> None:
    game.calc_stats()


def _record_time(game: Game, params: dict[str, Any]) -> None:
    game.player.set_timer(_require_str(params, "timer", "recordTime"), game.time)


def _add_npc_stat(game: Game, params: dict[str, Any]) -> None:
    npc_id = _scene_npc_id(game, params)
    if not npc_id:
        raise ValueError("addNpcStat requires an npc parameter or a scene npc")
    stat = _require_str(params, "stat", "addNpcStat")
    change = _require_number(params, "change", "addNpcStat")
    npc = game.npcs.get(npc_id)
    if npc is None:
        raise ValueError(f"addNpcStat: npc not generated: {npc_id}")

    current = npc.stats.get(stat, 0)
    updated = current + change
    if params.get("max") is not None:
        updated = min(updated, params["max"])
    if params.get("min") is not None:
        updated = max(updated, params["min"])
    actual = updated - current
    if actual == 0:
        return
    npc.stats[stat] = updated
    if not params.get("hidden"):
        color = COLOURS["positive"] if actual > 0 else COLOURS["negative"]
        game.add(colour(f"{stat.capitalize()} {_signed(actual)}", color))


def _set_npc_location(game: Game, params: dict[str, Any]) -> None:
    npc_id = _scene_npc_id(game, params)
    if not npc_id:
        raise ValueError("setNpcLocation requires an npc parameter or a scene npc")
    npc = game.npcs.get(npc_id)
    if npc is None:
        raise ValueError(f"setNpcLocation: npc not generated: {npc_id}")
    location = params.get("location")
    if location is not None:
        game.library.locations.require(location)
    npc.location = location
    game.update_npcs_present()


def _add_reputation(game: Game, params: dict[str, Any]) -> None:
    reputation = _require_str(params, "reputation", "addReputation")
    change = _require_number(params, "change", "addReputation")
    if not _chance(game, params, "addReputation"):
        return
    current = game.player.reputation.get(reputation, 0)
    updated = max(params.get("min", 0), min(params.get("max", 100), current + change))
    actual = updated - current
    if actual == 0 or (actual > 0) != (change > 0):
        return
    game.player.reputation[reputation] = updated
    if not params.get("hidden"):
        color = COLOURS["positive"] if change > 0 else COLOURS["negative"]
        game.add(colour(f"{reputation.capitalize()} {_signed(change)}", color))


def _set_npc(game: Game, params: dict[str, Any]) -> None:
    npc_id = _require_str(params, "npc", "setNpc")
    game.library.npcs.require(npc_id)
    game.scene.npc = npc_id


def _hide_npc_image(game: Game, params: dict[str, Any]) -> None:
    game.scene.hide_npc_image = True


def _show_npc_image(game: Game, params: dict[str, Any]) -> None:
    game.scene.hide_npc_image = False


def _learn_npc_name(game: Game, params: dict[str, Any]) -> None:
    if game.scene.npc is None:
        return
    game.get_npc(game.scene.npc).name_known = True


# Content


def _resolve_parts(game: Game, parts: list[Any]) -> list[str | dict[str, Any]]:
    resolved: list[str | dict[str, Any]] = []
    for part in parts:
        if isinstance(part, str):
            resolved.extend(interpolate_string(game, part))
            continue
        value = run(game, part)
        if is_accessor(value):
            value = value.default(game)
        if isinstance(value, str) or is_content(value):
            resolved.append(value)
    return resolved


def _text(game: Game, params: dict[str, Any]) -> None:
    parts = params.get("parts") or ([params["text"]] if params.get("text") else [])
    resolved = _resolve_parts(game, parts)
    if resolved:
        game.add(p(*resolved))


def _paragraph(game: Game, params: dict[str, Any]) -> None:
    content = params.get("content")
    if not content:
        return
    game.add(
        p(
            *(
                item if isinstance(item, str) else highlight(item["text"], item["color"], item.get("hover_text"))
                for item in content
            )
        )
    )


def _say(game: Game, params: dict[str, Any]) -> None:
    parts = params.get("parts") or ([params["text"]] if params.get("text") else [])
    resolved = _resolve_parts(game, parts)
    if not resolved:
        return
    text = "".join(part if isinstance(part, str) else str(part.get("text", "")) for part in resolved)
    color = params.get("color")
    npc_id = _scene_npc_id(game, params)
    if color is None and npc_id:
        color = game.library.npcs.require(npc_id).speech_color
    game.add(speech(text, color))


def _player_name(game: Game, params: dict[str, Any]) -> dict[str, Any]:
    return colour(game.player.display_name, COLOURS["player"])


def _npc_name(game: Game, params: dict[str, Any]) -> dict[str, Any]:
    npc_id = _scene_npc_id(game, params)
    if not npc_id:
        return txt("someone")
    return NPCAccessor(game.get_npc(npc_id)).default(game)


def _option(game: Game, params: dict[str, Any]) -> None:
    """Add a button; ``npc:`` and ``global:`` prefixes pick the script namespace."""
    label = params.get("label")
    if not label:
        return
    script = params.get("script") or re.sub(r"[^a-z0-9]", "", label.lower())
    script_params = dict(params.get("params") or {})

    if script.startswith("npc:"):
        action = Instruction("interact", {"script": script[4:], "params": script_params})
    elif script.startswith("global:"):
        action = Instruction(script[7:], script_params)
    elif game.scene.npc and script in game.library.npcs.require(game.scene.npc).scripts:
        action = Instruction("interact", {"script": script, "params": script_params})
    else:
        action = Instruction(script, script_params)
    game.add_option(action, label, disabled=bool(params.get("disabled")))


def _npc_leave_option(game: Game, params: dict[str, Any]) -> None:
    game.add_option(leave_option(params.get("text"), params.get("reply")), params.get("label") or "Leave")


# Cards


def _card_args(params: dict[str, Any]) -> tuple[dict[str, Any] | None, bool]:
    """Split card fields from the notice flag, which may sit in the params or inside ``args``."""
    args = params.get("args")
    silent = bool(params.get("silent"))
    if isinstance(args, dict) and "silent" in args:
        args = dict(args)
        silent = bool(args.pop("silent")) or silent
    return args, silent


def _add_card(game: Game, params: dict[str, Any]) -> None:
    args, silent = _card_args(params)
    game.add_card(_require_str(params, "card", "addCard"), params.get("type"), args, silent=silent)


def _remove_card(game: Game, params: dict[str, Any]) -> None:
    game.remove_card(_require_str(params, "card", "removeCard"), silent=bool(params.get("silent")))


def _add_quest(game: Game, params: dict[str, Any]) -> None:
    args, silent = _card_args(params)
    game.add_card(_require_str(params, "quest", "addQuest"), "Quest", args, silent=silent)


def _complete_quest(game: Game, params: dict[str, Any]) -> None:
    game.complete_quest(_require_str(params, "quest", "completeQuest"))


def _add_effect(game: Game, params: dict[str, Any]) -> None:
    args, silent = _card_args(params)
    game.add_card(_require_str(params, "effect", "addEffect"), "Effect", args, silent=silent)


# Scene stack


def _push_scene_pages(game: Game, params: dict[str, Any]) -> None:
    pages = params.get("pages")
    if not pages:
        return
    game.scene.push_frame(list(pages))
    if not game.scene.options:
        game.add_option(Instruction("advanceScene", {}), CONTINUE_LABEL)


def _advance_scene(game: Game, params: dict[str, Any]) -> None:
    """Run pages until one produces content or options; offer Continue while pages remain."""
    push = params.get("push")
    if push:
        frame = game.scene.top_frame
        frame.pages[:0] = [as_page(page) for page in push]

    while True:
        page = game.scene.next_page()
        if page is None:
            break
        content_before = len(game.scene.content)
        run(game, page)
        if len(game.scene.content) > content_before or game.scene.options:
            break

    game.scene.drop_exhausted_frames()
    if not game.scene.options and game.scene.has_pending_pages:
        game.add_option(Instruction("advanceScene", {}), CONTINUE_LABEL)


def _exit_scene(game: Game, params: dict[str, Any]) -> None:
    game.scene.stack = []


# Accessors


def _npc_accessor(game: Game, params: dict[str, Any]) -> NPCAccessor:
    npc_id = _scene_npc_id(game, params)
    return NPCAccessor(game.get_npc(npc_id) if npc_id else None)


def _location_accessor(game: Game, params: dict[str, Any]) -> LocationAccessor:
    location_id = params.get("location") or game.current_location
    if not location_id:
        raise ValueError("location accessor requires a current location")
    return LocationAccessor(location_id)


def _player_accessor(game: Game, params: dict[str, Any]) -> PlayerAccessor:
    return PlayerAccessor()


CORE_SCRIPTS: dict[str, ScriptFn] = {
    "seq": _seq,
    "when": _when,
    "cond": _cond,
    "random": _random,
    "menu": _menu,
    "skillCheck": _skill_check,
    "hasItem": _has_item,
    "hasStat": _has_stat,
    "hasReputation": _has_reputation,
    "inLocation": _in_location,
    "inScene": _in_scene,
    "npcStat": _npc_stat,
    "hasCard": _has_card,
    "cardCompleted": _card_completed,
    "locationDiscovered": _location_discovered,
    "hourBetween": _hour_between,
    "timeElapsed": _time_elapsed,
    "debug": _debug,
    "not": _not,
    "and": _and,
    "or": _or,
    "timeLapse": _time_lapse,
    "gainItem": _gain_item,
    "loseItem": _lose_item,
    "addStat": _add_stat,
    "calcStats": _calc_stats,
    "recordTime": _record_time,
    "addNpcStat": _add_npc_stat,
    "setNpcLocation": _set_npc_location,
    "addReputation": _add_reputation,
    "setNpc": _set_npc,
    "hideNpcImage": _hide_npc_image,
    "showNpcImage": _show_npc_image,
    "learnNpcName": _learn_npc_name,
    "text": _text,
    "paragraph": _paragraph,
    "say": _say,
    "playerName": _player_name,
    "pc": _player_name,
    "npcName": _npc_name,
    "option": _option,
    "npcLeaveOption": _npc_leave_option,
    "addCard": _add_card,
    "removeCard": _remove_card,
    "addQuest": _add_quest,
    "completeQuest": _complete_quest,
    "addEffect": _add_effect,
    "pushScenePages": _push_scene_pages,
    "advanceScene": _advance_scene,
    "exitScene": _exit_scene,
    "npc": _npc_accessor,
    "location": _location_accessor,
    "player": _player_accessor,
}


def register_core_scripts(registry: ScriptRegistry) -> None:
    registry.register_many(CORE_SCRIPTS)
