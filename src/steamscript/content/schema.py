from __future__ import annotations

from typing import Any

SUPPORTED_SCHEMA_VERSIONS = {1}
REQUIRED_GAME_OBJECT_FIELDS = ("player", "locations", "npcs", "scene", "settings")


def _is_json_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float, str))


def _validate_json_value(value: Any, *, field_name: str) -> None:
    if _is_json_primitive(value):
        return
    if isinstance(value, list):
        for item in value:
            _validate_json_value(item, field_name=field_name)
        return
    if isinstance(value, dict):
        for key, nested_value in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{field_name} keys must be strings")
            _validate_json_value(nested_value, field_name=field_name)
        return
    raise ValueError(f"{field_name} must contain only canonical JSON primitives")


def _validate_scene_shape(scene: dict[str, Any]) -> None:
    for field_name in ("content", "options", "stack"):
        if not isinstance(scene.get(field_name), list):
            raise ValueError(f"game_state.scene.{field_name} must be a list")
    for index, frame in enumerate(scene["stack"]):
        if not isinstance(frame, dict) or not isinstance(frame.get("pages"), list):
            raise ValueError(f"game_state.scene.stack[{index}].pages must be a list")
    for index, option in enumerate(scene["options"]):
        if not isinstance(option, dict) or "action" not in option:
            raise ValueError(f"game_state.scene.options[{index}] must be an object with an action")


def validate_game_state(game_state: dict[str, Any], *, version: int) -> None:
    """Check the structural shape of a current-version game snapshot."""
    if not isinstance(game_state, dict):
        raise ValueError("game_state must be an object")
    if game_state.get("version") != version:
        raise ValueError(f"game_state.version must be {version}")
    for field_name in ("time", "score", "seed"):
        value = game_state.get(field_name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"game_state.{field_name} must be an integer")
    for field_name in REQUIRED_GAME_OBJECT_FIELDS:
        if not isinstance(game_state.get(field_name), dict):
            raise ValueError(f"game_state.{field_name} must be an object")
    current_location = game_state.get("current_location")
    if current_location is not None and not isinstance(current_location, str):
        raise ValueError("game_state.current_location must be a string or null")
    if not isinstance(game_state["player"].get("cards", []), list):
        raise ValueError("game_state.player.cards must be a list")
    for name, value in game_state["settings"].items():
        if not isinstance(value, bool):
            raise ValueError(f"game_state.settings.{name} must be a boolean")
    _validate_scene_shape(game_state["scene"])
    _validate_json_value(game_state, field_name="game_state")


def validate_save_payload(payload: dict[str, Any]) -> None:
    if not isinstance(payload, dict):
        raise ValueError("save payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("save payload must contain integer field: schema_version")
    if schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {schema_version}")

    save_digest = payload.get("save_hash")
    if not isinstance(save_digest, str) or not save_digest:
        raise ValueError("save payload must contain string field: save_hash")

    game_state = payload.get("game_state")
    if not isinstance(game_state, dict):
        raise ValueError("save payload must contain object field: game_state")
    _validate_json_value(game_state, field_name="game_state")

    if "metadata" in payload:
        if not isinstance(payload["metadata"], dict):
            raise ValueError("save payload field metadata must be an object when present")
        _validate_json_value(payload["metadata"], field_name="metadata")


def validate_settings_payload(payload: dict[str, Any]) -> None:
    if not isinstance(payload, dict):
        raise ValueError("settings payload must be an object")
    schema_version = payload.get("schema_version")
    if schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {schema_version}")
    flags = payload.get("settings")
    if not isinstance(flags, dict):
        raise ValueError("settings payload must contain object field: settings")
    for name, value in flags.items():
        if not isinstance(value, bool):
            raise ValueError(f"settings.{name} must be a boolean")
