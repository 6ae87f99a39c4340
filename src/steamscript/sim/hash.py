from __future__ import annotations

import hashlib
import json
from typing import Any

from steamscript.sim.core import Game


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def save_hash(payload: dict[str, Any]) -> str:
    return _digest(
        {
            "schema_version": payload["schema_version"],
            "game_state": payload["game_state"],
        }
    )


def game_hash(game: Game) -> str:
    return _digest(game.to_dict())
