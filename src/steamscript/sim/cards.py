from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from steamscript.sim.format import COLOURS, colour
from steamscript.sim.scripts import plain_data

if TYPE_CHECKING:
    from steamscript.sim.core import Game
    from steamscript.sim.player import Player

logger = logging.getLogger(__name__)

CARD_TYPES = ("Quest", "Effect", "Trait", "Task")

CardHook = Callable[["Game", "Card"], Any]
CardTimeHook = Callable[["Game", "Card", int], Any]
CardStatsHook = Callable[["Player", "Card", dict[str, float]], Any]

_ADDED_NOTICES = {
    "Quest": ("Quest received", COLOURS["discovery"]),
    "Effect": ("Effect", COLOURS["effect"]),
    "Trait": ("Trait gained", COLOURS["trait"]),
    "Task": ("New task", COLOURS["task"]),
}
_REMOVED_NOTICES = {
    "Quest": ("Quest removed", COLOURS["negative"]),
    "Effect": ("Effect ended", COLOURS["effect"]),
    "Trait": ("Trait lost", COLOURS["trait"]),
    "Task": ("Task removed", COLOURS["task"]),
}


@dataclass(frozen=True)
class CardDefinition:
    name: str
    type: str
    description: str = ""
    image: str | None = None
    allow_multiple: bool = False
    replaces: tuple[str, ...] = ()
    subsumed_by: tuple[str, ...] = ()
    on_added: CardHook | None = None
    on_removed: CardHook | None = None
    on_time: CardTimeHook | None = None
    calc_stats: CardStatsHook | None = None
    after_update: CardHook | None = None
    reminders: Callable[["Game", "Card"], list[str]] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("card name must be a non-empty string")
        if self.type not in CARD_TYPES:
            raise ValueError(f"card type must be one of: {', '.join(CARD_TYPES)}")
        object.__setattr__(self, "replaces", tuple(self.replaces))
        object.__setattr__(self, "subsumed_by", tuple(self.subsumed_by))


@dataclass
class Card:
    """Mutable card instance: fixed ``id``/``type`` plus open per-instance fields."""

    id: str
    type: str
    fields: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("card id must be a non-empty string")
        if self.type not in CARD_TYPES:
            raise ValueError(f"card type must be one of: {', '.join(CARD_TYPES)}")

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in ("id", "type"):
            raise ValueError(f"card field {key!r} is reserved")
        self.fields[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    @property
    def completed(self) -> bool:
        return self.fields.get("completed") is True

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "type": self.type}
        payload.update(plain_data(self.fields))
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        if not isinstance(data, dict):
            raise ValueError("card must be an object")
        if not data.get("id"):
            raise ValueError("card requires an id")
        if not data.get("type"):
            raise ValueError("card requires a type")
        extra = {key: copy.deepcopy(value) for key, value in data.items() if key not in ("id", "type")}
        return cls(id=str(data["id"]), type=str(data["type"]), fields=extra)


def find_card(player: Player, card_id: str) -> Card | None:
    for card in player.cards:
        if card.id == card_id:
            return card
    return None


def add_card(
    game: Game,
    card_id: str,
    card_type: str | None = None,
    extra: dict[str, Any] | None = None,
    *,
    silent: bool = False,
) -> Card | None:
    """Add a card to the player, returning the new instance or ``None`` when suppressed."""
    definition = game.library.cards.require(card_id)
    card = Card(id=card_id, type=card_type or definition.type)
    player = game.player

    if not definition.allow_multiple and player.has_card(card_id):
        return None
    if any(player.has_card(stronger) for stronger in definition.subsumed_by):
        logger.debug("card %s subsumed on add", card_id)
        return None

    for weaker in list(player.cards):
        if weaker.id == card_id:
            continue
        weaker_definition = game.library.cards.require(weaker.id)
        if weaker.id in definition.replaces or card_id in weaker_definition.subsumed_by:
            remove_card(game, weaker.id, silent=True)

    for key, value in (extra or {}).items():
        card[key] = copy.deepcopy(value)
    player.cards.append(card)
    logger.debug("card %s added (%s)", card_id, card.type)

    if not silent:
        if definition.on_added is not None:
            definition.on_added(game, card)
        else:
            label, color = _ADDED_NOTICES[card.type]
            game.add(colour(f"{label}: {definition.name}", color))
    game.calc_stats()
    return card


def remove_card(game: Game, card_id: str, *, silent: bool = False) -> bool:
    player = game.player
    card = find_card(player, card_id)
    if card is None:
        return False
    player.cards.remove(card)
    logger.debug("card %s removed", card_id)

    definition = game.library.cards.require(card_id)
    upgraded = any(player.has_card(stronger) for stronger in definition.subsumed_by)
    if not silent and not upgraded:
        if definition.on_removed is not None:
            definition.on_removed(game, card)
        else:
            label, color = _REMOVED_NOTICES[card.type]
            game.add(colour(f"{label}: {definition.name}", color))
    game.calc_stats()
    return True


def complete_quest(game: Game, card_id: str) -> bool:
    card = find_card(game.player, card_id)
    if card is None or card.completed:
        return False
    card["completed"] = True
    definition = game.library.cards.require(card_id)
    game.add(colour(f"Quest completed: {definition.name}", COLOURS["positive"]))
    return True


def card_reminders(game: Game) -> list[str]:
    reminders: list[str] = []
    for card in list(game.player.cards):
        definition = game.library.cards.require(card.id)
        if definition.reminders is not None:
            reminders.extend(definition.reminders(game, card))
    return reminders
