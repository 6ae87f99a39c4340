"""Versioned upgrades for older game snapshot shapes."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any

from steamscript.sim.core import DEFAULT_SETTINGS, GAME_FORMAT_VERSION
from steamscript.sim.timekeeping import START_TIME

logger = logging.getLogger(__name__)


class SaveMigrationError(ValueError):
    """Raised when a snapshot cannot be migrated to the current format."""


Migration = Callable[[dict[str, Any]], dict[str, Any]]

_LEGACY_START_LOCATION = "station"


def _migrate_v0_to_v1(payload: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(payload.get("player"), dict):
        raise SaveMigrationError("legacy snapshot is missing a player block")
    upgraded = dict(payload)
    upgraded["version"] = 1
    upgraded.setdefault("score", 0)
    upgraded.setdefault("time", START_TIME)
    upgraded.setdefault("currentLocation", _LEGACY_START_LOCATION)
    upgraded.setdefault("locations", {})
    upgraded.setdefault("npcs", {})
    upgraded.setdefault("scene", {})
    return upgraded


def _legacy_action(option: dict[str, Any]) -> Any:
    if "action" in option:
        return option["action"]
    return option.get("script")


def _migrate_scene(scene: Any) -> dict[str, Any]:
    if not isinstance(scene, dict):
        return {"content": [], "options": [], "npc": None, "hide_npc_image": False, "shop": None, "stack": []}

    if "dialog" in scene or "next" in scene:
        content = [{"type": "text", "text": scene["dialog"]}] if scene.get("dialog") else []
        options = [{"type": "button", "action": [scene["next"], {}], "label": None}] if scene.get("next") else []
        return {"content": content, "options": options, "npc": None, "hide_npc_image": False, "shop": None, "stack": []}

    options = []
    for option in scene.get("options") or []:
        if not isinstance(option, dict):
            raise SaveMigrationError("legacy scene option must be an object")
        options.append(
            {
                "type": option.get("type", "button"),
                "action": _legacy_action(option),
                "label": option.get("label"),
                **({"disabled": True} if option.get("disabled") else {}),
            }
        )

    stack = scene.get("stack") or []
    if not isinstance(stack, list):
        raise SaveMigrationError("legacy scene stack must be a list")
    if stack and all(isinstance(frame, dict) and "pages" in frame for frame in stack):
        frames = stack
    elif stack:
        frames = [{"pages": stack}]
    else:
        frames = []

    return {
        "content": scene.get("content") or [],
        "options": options,
        "npc": scene.get("npc"),
        "hide_npc_image": bool(scene.get("hideNpcImage", scene.get("hide_npc_image", False))),
        "shop": scene.get("shop"),
        "stack": frames,
    }


def _migrate_player(player: dict[str, Any]) -> dict[str, Any]:
    upgraded = dict(player)
    upgraded.pop("stats", None)
    inventory = upgraded.get("inventory")
    if isinstance(inventory, list):
        counts: dict[str, int] = {}
        for row in inventory:
            if isinstance(row, dict) and row.get("id"):
                counts[row["id"]] = counts.get(row["id"], 0) + int(row.get("number", 1))
        upgraded["inventory"] = counts
    return upgraded


def _migrate_v1_to_v2(payload: dict[str, Any]) -> dict[str, Any]:
    locations = {}
    for location_id, row in (payload.get("locations") or {}).items():
        row = row if isinstance(row, dict) else {}
        locations[location_id] = {
            "num_visits": int(row.get("numVisits", row.get("num_visits", 0))),
            "discovered": bool(row.get("discovered", False)),
        }

    npcs = {}
    for npc_id, row in (payload.get("npcs") or {}).items():
        row = row if isinstance(row, dict) else {}
        stats = dict(row.get("stats") or {})
        if "nameKnown" in row:
            stats["nameKnown"] = 1 if row["nameKnown"] else 0
        npcs[npc_id] = {"stats": stats, "location": row.get("location")}

    return {
        "version": 2,
        "score": payload.get("score", 0),
        "player": _migrate_player(payload["player"]),
        "locations": locations,
        "npcs": npcs,
        "current_location": payload.get("currentLocation", payload.get("current_location")),
        "time": payload.get("time", START_TIME),
        "scene": _migrate_scene(payload.get("scene")),
        "settings": {**DEFAULT_SETTINGS, **(payload.get("settings") or {})},
        "seed": payload.get("seed", 0),
        "rng_state": payload.get("rng_state"),
    }


MIGRATIONS: dict[int, Migration] = {
    0: _migrate_v0_to_v1,
    1: _migrate_v1_to_v2,
}


def migrate_game_state(payload: dict[str, Any], target_version: int = GAME_FORMAT_VERSION) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise SaveMigrationError("game snapshot was not an object")

    version = payload.get("version", 0)
    if version is None:
        version = 0
    if isinstance(version, bool) or not isinstance(version, int):
        raise SaveMigrationError("game snapshot version missing or invalid")
    if version > target_version:
        raise SaveMigrationError(f"game snapshot version {version} is newer than supported {target_version}")

    current = copy.deepcopy(payload)
    while version < target_version:
        migrator = MIGRATIONS.get(version)
        if migrator is None:
            raise SaveMigrationError(f"no migration available for game snapshot version {version}")
        current = migrator(current)
        logger.debug("migrated game snapshot from version %s", version)
        version = current.get("version", version + 1)
        if not isinstance(version, int):
            raise SaveMigrationError("migration produced an invalid version")
    return current
