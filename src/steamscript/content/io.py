from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from steamscript.content.migrations import migrate_game_state
from steamscript.content.schema import validate_game_state, validate_save_payload, validate_settings_payload
from steamscript.sim.core import GAME_FORMAT_VERSION, Game, Settings
from steamscript.sim.hash import save_hash
from steamscript.sim.library import ContentLibrary

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")


def _build_save_payload(game: Game, metadata: dict[str, Any] | None) -> dict[str, Any]:
    game_state = game.to_dict()
    validate_game_state(game_state, version=GAME_FORMAT_VERSION)
    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "game_state": game_state,
        "metadata": dict(metadata or {}),
    }
    payload["save_hash"] = save_hash(payload)
    return payload


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: dict[str, Any]) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    serialized = _canonical_json(payload)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def _read_json(path: str | Path) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def game_state_from_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Extract a current-version snapshot from a save envelope or a bare legacy snapshot."""
    if isinstance(payload, dict) and "game_state" in payload and "save_hash" in payload:
        validate_save_payload(payload)
        expected_hash = payload["save_hash"]
        actual_hash = save_hash(payload)
        if expected_hash != actual_hash:
            raise ValueError(f"save_hash mismatch while loading save (stored={expected_hash}, recomputed={actual_hash})")
        game_state = payload["game_state"]
    else:
        game_state = payload
    migrated = migrate_game_state(game_state)
    validate_game_state(migrated, version=GAME_FORMAT_VERSION)
    return migrated


def save_game_json(path: str | Path, game: Game, *, metadata: dict[str, Any] | None = None) -> None:
    payload = _build_save_payload(game, metadata)
    validate_save_payload(payload)
    _write_atomic_json(path, payload)
    logger.info("game saved to %s", path)


def load_game_json(path: str | Path, library: ContentLibrary | None = None) -> Game:
    game = Game.from_dict(game_state_from_payload(_read_json(path)), library)
    logger.info("game loaded from %s", path)
    return game


def load_save_metadata(path: str | Path) -> dict[str, Any]:
    payload = _read_json(path)
    if isinstance(payload, dict) and isinstance(payload.get("metadata"), dict):
        return payload["metadata"]
    return {}


def save_settings_json(path: str | Path, settings: Settings) -> None:
    payload = {"schema_version": SCHEMA_VERSION, "settings": settings.to_dict()}
    validate_settings_payload(payload)
    _write_atomic_json(path, payload)


def load_settings_json(path: str | Path) -> Settings:
    payload = _read_json(path)
    validate_settings_payload(payload)
    return Settings.from_dict(payload["settings"])
