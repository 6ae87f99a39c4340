from __future__ import annotations

import hashlib
import random
from typing import Any


def derive_stream_seed(master_seed: int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


def _json_list_to_tuple(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_json_list_to_tuple(item) for item in value)
    return value


def _tuple_to_json_list(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_tuple_to_json_list(item) for item in value]
    return value


class RandomStreams:
    """Named ``random.Random`` streams derived from one master seed."""

    def __init__(self, master_seed: int) -> None:
        if isinstance(master_seed, bool) or not isinstance(master_seed, int):
            raise ValueError("seed must be an integer")
        self.master_seed = master_seed
        self._streams: dict[str, random.Random] = {}

    def stream(self, name: str) -> random.Random:
        if name not in self._streams:
            self._streams[name] = random.Random(derive_stream_seed(self.master_seed, name))
        return self._streams[name]

    def state_payload(self) -> dict[str, Any]:
        return {name: _tuple_to_json_list(self._streams[name].getstate()) for name in sorted(self._streams)}

    def restore(self, payload: dict[str, Any] | None) -> None:
        if payload is None:
            return
        if not isinstance(payload, dict):
            raise ValueError("rng_state must be an object")
        for name in sorted(payload):
            self.stream(name).setstate(_json_list_to_tuple(payload[name]))
