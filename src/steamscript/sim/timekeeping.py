from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from steamscript.sim.core import Game

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
WAIT_CHUNK_MINUTES = 10
DEFAULT_WAIT_MINUTES = 15
TIME_EFFECTS_SCRIPT = "timeEffects"

_EPOCH = datetime(1970, 1, 1)
START_TIME = int((datetime(1902, 1, 5, 12, 0) - _EPOCH).total_seconds())


def calc_ticks(time: int, elapsed: int, interval: int) -> int:
    """Count ``interval`` boundaries crossed in the window ``(time - elapsed, time]``."""
    if not isinstance(interval, int) or interval <= 0:
        raise ValueError("calc_ticks interval must be a positive integer")
    if elapsed < 0:
        raise ValueError("calc_ticks elapsed must be non-negative")
    return time // interval - (time - elapsed) // interval


def game_datetime(time: int) -> datetime:
    return _EPOCH + timedelta(seconds=time)


def hour_of_day(time: int) -> float:
    return (time % SECONDS_PER_DAY) / SECONDS_PER_HOUR


def day_of_week(time: int) -> int:
    """Weekday index with 0 for Sunday."""
    return (game_datetime(time).weekday() + 1) % 7


def start_of_day(time: int) -> int:
    return time - time % SECONDS_PER_DAY


def _duration(value: Any, *, field_name: str) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"time_lapse requires numeric {field_name}")
    if value < 0:
        raise ValueError(f"time_lapse requires non-negative {field_name}")
    return value


def time_lapse(
    game: Game,
    *,
    seconds: int | float = 0,
    minutes: int | float = 0,
    until_hour: float | None = None,
) -> int:
    """Advance the clock and propagate the elapsed time; returns elapsed seconds."""
    if until_hour is not None:
        if isinstance(until_hour, bool) or not isinstance(until_hour, (int, float)):
            raise ValueError("time_lapse until_hour must be a number")
        target = start_of_day(game.time) + int(until_hour * SECONDS_PER_HOUR)
        seconds, minutes = max(0, target - game.time), 0

    total = int(_duration(seconds, field_name="seconds") + _duration(minutes, field_name="minutes") * SECONDS_PER_MINUTE)
    if total == 0:
        return 0

    game.time += total

    for card in list(game.player.cards):
        definition = game.library.cards.require(card.id)
        if definition.on_time is not None:
            definition.on_time(game, card, total)

    for module in game.rule_modules:
        module.on_time_lapse(game, total)
    if TIME_EFFECTS_SCRIPT in game.scripts:
        game.run(TIME_EFFECTS_SCRIPT, {"seconds": total})

    if calc_ticks(game.time, total, SECONDS_PER_HOUR) > 0 and not game.in_scene:
        for npc_id in list(game.npcs):
            hook = game.library.npcs.require(npc_id).on_move
            if hook is not None:
                game.run(hook, {"npc": npc_id})
        game.update_npcs_present()
    return total


def _run_hook_interrupts(game: Game, hook: Any, params: dict[str, Any]) -> bool:
    """Run a wait hook; it interrupts only if it left the scene intercepted by its own additions."""
    if hook is None:
        return False
    before = game.scene.interception_marker()
    game.run(hook, params)
    return game.in_scene and game.scene.interception_marker() != before


def wait(
    game: Game,
    minutes: int | float = DEFAULT_WAIT_MINUTES,
    *,
    text: str | None = None,
    then: Any = None,
) -> bool:
    """Wait in fixed chunks, stopping as soon as a hook intercepts the scene.

    Returns ``True`` when the full duration elapsed (and ``then`` ran).
    """
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)) or minutes < 0:
        raise ValueError("wait requires non-negative minutes")
    if text:
        game.add(text)

    remaining = minutes
    while remaining > 0:
        chunk = min(remaining, WAIT_CHUNK_MINUTES)
        time_lapse(game, minutes=chunk)
        remaining -= chunk
        if _wait_chunk_interrupted(game, chunk):
            logger.debug("wait interrupted with %s minutes remaining", remaining)
            return False

    if then is not None:
        game.run(then)
    return True


def _wait_chunk_interrupted(game: Game, chunk: int | float) -> bool:
    for npc_id in list(game.npcs_present):
        definition = game.library.npcs.require(npc_id)
        params = {"npc": npc_id, "minutes": chunk}
        if _run_hook_interrupts(game, definition.maybe_approach, params):
            return True
        if _run_hook_interrupts(game, definition.on_wait, params):
            return True

    for npc_id in [npc_id for npc_id in game.npcs if npc_id not in game.npcs_present]:
        definition = game.library.npcs.require(npc_id)
        if _run_hook_interrupts(game, definition.on_wait_away, {"npc": npc_id, "minutes": chunk}):
            return True

    location = game.location.id
    definition = game.library.locations.require(location)
    params = {"location": location, "minutes": chunk}
    if _run_hook_interrupts(game, definition.on_tick, params):
        return True
    return _run_hook_interrupts(game, definition.on_wait, params)
