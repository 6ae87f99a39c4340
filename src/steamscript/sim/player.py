from __future__ import annotations

import copy
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from steamscript.sim.accessor import AttributeAccessor
from steamscript.sim.cards import Card, find_card
from steamscript.sim.format import COLOURS, colour
from steamscript.sim.registry import DefinitionRegistry

if TYPE_CHECKING:
    from steamscript.sim.cards import CardDefinition
    from steamscript.sim.core import Game

STAT_NAMES = ("Agility", "Perception", "Brawn", "Wits", "Charm")
METER_NAMES = ("Energy", "Composure", "Stress", "Pain", "Mood")
SKILLS = {
    "Mechanics": "Wits",
    "Etiquette": "Charm",
    "Athletics": "Brawn",
    "Stealth": "Agility",
    "Investigation": "Perception",
}
STAT_MIN = 0
STAT_MAX = 100
LAST_ACTION_TIMER = "lastAction"
DEFAULT_PLAYER_NAME = "Elise"


def is_known_stat(name: str) -> bool:
    return name in STAT_NAMES or name in METER_NAMES or name in SKILLS


def _clamp(value: float, minimum: float = STAT_MIN, maximum: float = STAT_MAX) -> float:
    return max(minimum, min(maximum, value))


def _number_map(payload: Any, *, field_name: str) -> dict[str, float]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"{field_name} must be an object")
    values: dict[str, float] = {}
    for key, value in payload.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{field_name}[{key}] must be a number")
        values[str(key)] = value
    return values


@dataclass
class Player:
    name: str = ""
    basestats: dict[str, float] = field(default_factory=lambda: {name: 0 for name in STAT_NAMES + METER_NAMES})
    stats: dict[str, float] = field(default_factory=dict)
    timers: dict[str, int] = field(default_factory=dict)
    reputation: dict[str, float] = field(default_factory=dict)
    relationships: dict[str, str] = field(default_factory=dict)
    inventory: dict[str, int] = field(default_factory=dict)
    cards: list[Card] = field(default_factory=list)
    sleeping: bool = False
    unknown_fields: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or DEFAULT_PLAYER_NAME

    def has_card(self, card_id: str) -> bool:
        return find_card(self, card_id) is not None

    def get_card(self, card_id: str) -> Card | None:
        return find_card(self, card_id)

    def set_timer(self, timer_name: str, time: int) -> None:
        self.timers[timer_name] = time

    def get_timer(self, timer_name: str) -> int:
        """Timer value, initialised from the last action time when never set."""
        if timer_name not in self.timers:
            self.timers[timer_name] = self.timers.get(LAST_ACTION_TIMER, 0)
        return self.timers[timer_name]

    def add_item(self, item_id: str, number: int = 1) -> None:
        if not isinstance(number, int) or number < 0:
            raise ValueError("item number must be a non-negative integer")
        self.inventory[item_id] = self.inventory.get(item_id, 0) + number

    def remove_item(self, item_id: str, number: int = 1) -> int:
        if not isinstance(number, int) or number < 0:
            raise ValueError("item number must be a non-negative integer")
        held = self.inventory.get(item_id, 0)
        removed = min(held, number)
        if held - removed <= 0:
            self.inventory.pop(item_id, None)
        else:
            self.inventory[item_id] = held - removed
        return removed

    def count_item(self, item_id: str) -> int:
        return self.inventory.get(item_id, 0)

    def add_base_stat(self, stat: str, amount: float) -> float:
        current = self.basestats.get(stat, 0)
        updated = round(_clamp(current + amount))
        self.basestats[stat] = updated
        return updated - current

    def calc_stats(self, cards: DefinitionRegistry[CardDefinition]) -> None:
        stats = dict(self.basestats)
        for card in list(self.cards):
            definition = cards.require(card.id)
            if definition.calc_stats is not None:
                definition.calc_stats(self, card, stats)
        self.stats = {name: _clamp(value) for name, value in stats.items()}

    def skill_test(self, stat: str, difficulty: float = 0, *, rng: random.Random) -> bool:
        """Roll d100 against base stat plus skill minus difficulty.

        A roll of 1 always succeeds and 100 always fails.
        """
        roll = rng.randint(1, 100)
        if roll == 1:
            return True
        if roll == 100:
            return False
        governing = SKILLS.get(stat)
        if governing is not None:
            threshold = self.basestats.get(governing, 0) + self.basestats.get(stat, 0)
        else:
            threshold = self.basestats.get(stat, 0)
        return roll < threshold - difficulty

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "basestats": dict(sorted(self.basestats.items())),
            "timers": dict(sorted(self.timers.items())),
            "reputation": {key: value for key, value in sorted(self.reputation.items()) if value != 0},
            "relationships": dict(sorted(self.relationships.items())),
            "inventory": dict(sorted(self.inventory.items())),
            "cards": [card.to_dict() for card in self.cards],
        }
        payload.update(copy.deepcopy(self.unknown_fields))
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Player":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("player must be an object")
        known_fields = {"name", "basestats", "timers", "reputation", "relationships", "inventory", "cards"}
        player = cls(
            name=str(data.get("name", "")),
            unknown_fields={key: copy.deepcopy(value) for key, value in data.items() if key not in known_fields},
        )
        if data.get("basestats") is not None:
            player.basestats = _number_map(data["basestats"], field_name="player.basestats")
        player.timers = {key: int(value) for key, value in _number_map(data.get("timers"), field_name="player.timers").items()}
        player.reputation = _number_map(data.get("reputation"), field_name="player.reputation")

        relationships = data.get("relationships") or {}
        if not isinstance(relationships, dict):
            raise ValueError("player.relationships must be an object")
        player.relationships = {str(key): str(value) for key, value in relationships.items()}

        inventory = data.get("inventory") or {}
        if not isinstance(inventory, dict):
            raise ValueError("player.inventory must be an object")
        player.inventory = {str(key): int(value) for key, value in inventory.items() if int(value) > 0}

        cards = data.get("cards") or []
        if not isinstance(cards, list):
            raise ValueError("player.cards must be a list")
        player.cards = [Card.from_dict(row) for row in cards]
        return player


class PlayerAccessor(AttributeAccessor):
    kind = "player"

    def default(self, game: Game) -> dict[str, Any]:
        return colour(game.player.display_name, COLOURS["player"])

    def prop_name(self, game: Game, rest: str) -> dict[str, Any]:
        return self.default(game)

    def prop_stat(self, game: Game, rest: str) -> float:
        return game.player.stats.get(rest, 0)

    def prop_base(self, game: Game, rest: str) -> float:
        return game.player.basestats.get(rest, 0)

    def prop_item(self, game: Game, rest: str) -> int:
        return game.player.count_item(rest)

    def prop_card(self, game: Game, rest: str) -> str:
        return game.library.cards.require(rest).name
