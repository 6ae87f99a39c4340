from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from steamscript.sim.registry import DefinitionRegistry

ITEMS_SCHEMA_VERSION = 1
DEFAULT_ITEMS_PATH = Path(__file__).resolve().parent / "data" / "items.json"
ITEM_CATEGORIES = {"Food", "Trinket", "Currency", "Clothes", "Tool"}


@dataclass(frozen=True)
class ItemDefinition:
    item_id: str
    name: str
    description: str
    category: str
    stackable: bool
    tags: tuple[str, ...]


@dataclass(frozen=True)
class ItemCatalog:
    schema_version: int
    items: tuple[ItemDefinition, ...]

    def by_id(self) -> dict[str, ItemDefinition]:
        return {item.item_id: item for item in self.items}

    def register_into(self, registry: DefinitionRegistry[Any]) -> None:
        for item in self.items:
            registry.register(item.item_id, item)


def load_items_json(path: str | Path = DEFAULT_ITEMS_PATH) -> ItemCatalog:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return _catalog_from_payload(payload)


def _catalog_from_payload(payload: dict[str, Any]) -> ItemCatalog:
    if not isinstance(payload, dict):
        raise ValueError("item catalog payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("item catalog must contain integer field: schema_version")
    if schema_version != ITEMS_SCHEMA_VERSION:
        raise ValueError(f"unsupported item catalog schema_version: {schema_version}")

    items = payload.get("items")
    if not isinstance(items, list):
        raise ValueError("item catalog must contain list field: items")

    normalized: list[ItemDefinition] = []
    seen: set[str] = set()
    for index, row in enumerate(items):
        if not isinstance(row, dict):
            raise ValueError(f"items[{index}] must be an object")

        item_id = row.get("item_id")
        if not isinstance(item_id, str) or not item_id:
            raise ValueError(f"items[{index}].item_id must be a non-empty string")
        if item_id in seen:
            raise ValueError(f"duplicate item_id: {item_id}")
        seen.add(item_id)

        name = row.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"items[{index}].name must be a non-empty string")

        category = row.get("category")
        if category not in ITEM_CATEGORIES:
            raise ValueError(f"items[{index}].category must be one of: {', '.join(sorted(ITEM_CATEGORIES))}")

        stackable = row.get("stackable", True)
        if not isinstance(stackable, bool):
            raise ValueError(f"items[{index}].stackable must be a boolean")

        tags = row.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(tag, str) and tag for tag in tags):
            raise ValueError(f"items[{index}].tags must be a list of non-empty strings")

        normalized.append(
            ItemDefinition(
                item_id=item_id,
                name=name,
                description=str(row.get("description", "")),
                category=category,
                stackable=stackable,
                tags=tuple(sorted(dict.fromkeys(tags))),
            )
        )

    normalized.sort(key=lambda item: item.item_id)
    return ItemCatalog(schema_version=schema_version, items=tuple(normalized))
