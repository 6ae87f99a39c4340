from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from steamscript.sim.accessor import AttributeAccessor
from steamscript.sim.format import COLOURS, colour, speech
from steamscript.sim.interpolation import interpolate_text
from steamscript.sim.scripts import Instruction, parse_args

if TYPE_CHECKING:
    from steamscript.sim.core import Game

DEFAULT_NPC_STATS = {"approachCount": 0, "nameKnown": 0, "affection": 0}


@dataclass(frozen=True)
class Pronouns:
    subject: str
    object: str
    possessive: str


PRONOUNS = {
    "he": Pronouns("he", "him", "his"),
    "she": Pronouns("she", "her", "her"),
    "they": Pronouns("they", "them", "their"),
}

ScheduleEntry = tuple[int, int, str] | tuple[int, int, str, Sequence[int]]


@dataclass(frozen=True)
class NPCDefinition:
    name: str = ""
    uname: str = ""
    description: str = ""
    image: str | None = None
    speech_color: str | None = None
    pronouns: Pronouns = PRONOUNS["they"]
    faction: str | None = None
    generate: Callable[["Game", "NPC"], None] | None = None
    on_first_approach: Any = None
    on_approach: Any = None
    on_move: Any = None
    maybe_approach: Any = None
    on_wait: Any = None
    on_wait_away: Any = None
    on_leave_player: Any = None
    after_update: Any = None
    scripts: Mapping[str, Any] = field(default_factory=dict)

    def display_name(self, name_known: bool) -> str:
        name = self.name if name_known else self.uname
        return name or self.name or self.uname or "someone"


@dataclass
class NPC:
    id: str
    stats: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_NPC_STATS))
    location: str | None = None

    @property
    def approach_count(self) -> int:
        return int(self.stats.get("approachCount", 0))

    @approach_count.setter
    def approach_count(self, value: int) -> None:
        self.stats["approachCount"] = value

    @property
    def name_known(self) -> bool:
        return self.stats.get("nameKnown", 0) > 0

    @name_known.setter
    def name_known(self, value: bool) -> None:
        self.stats["nameKnown"] = 1 if value else 0

    @property
    def affection(self) -> float:
        return self.stats.get("affection", 0)

    @affection.setter
    def affection(self, value: float) -> None:
        self.stats["affection"] = value

    def follow_schedule(self, game: Game, schedule: Sequence[ScheduleEntry]) -> None:
        """Move to the location whose hour range (and optional weekdays) covers now.

        Ranges may wrap past midnight; weekdays use 0 or 7 for Sunday. With no
        match the NPC leaves any scheduled location and otherwise stays put.
        """
        hour = int(game.hour_of_day)
        weekday = game.day_of_week
        target: str | None = None
        matched = False
        for entry in schedule:
            start, end, location_id = entry[0], entry[1], entry[2]
            days = entry[3] if len(entry) > 3 else None
            if days is not None and not any(day % 7 == weekday for day in days):
                continue
            if start <= end:
                covers = start <= hour < end
            else:
                covers = hour >= start or hour < end
            if covers:
                target = location_id
                matched = True
                break

        destination = self.location
        if matched:
            destination = target
        elif self.location is not None and self.location in {entry[2] for entry in schedule}:
            destination = None

        if self.location == game.current_location and destination != self.location:
            hook = game.library.npcs.require(self.id).on_leave_player
            if hook is not None and not game.player.sleeping and not game.in_scene:
                game.scene.npc = self.id
                game.run(hook, {"npc": self.id})

        self.location = destination

    def say(self, game: Game, text: str) -> None:
        definition = game.library.npcs.require(self.id)
        game.add(speech(interpolate_text(game, text), definition.speech_color))

    def to_dict(self) -> dict[str, Any]:
        return {"stats": dict(sorted(self.stats.items())), "location": self.location}

    @classmethod
    def from_dict(cls, npc_id: str, payload: dict[str, Any]) -> "NPC":
        if not isinstance(payload, dict):
            raise ValueError(f"npcs[{npc_id}] must be an object")
        npc = cls(id=npc_id)
        stats = payload.get("stats")
        if stats is not None:
            if not isinstance(stats, dict):
                raise ValueError(f"npcs[{npc_id}].stats must be an object")
            npc.stats = {
                str(key): value
                for key, value in copy.deepcopy(stats).items()
                if isinstance(value, (int, float)) and not isinstance(value, bool)
            }
        location = payload.get("location")
        npc.location = str(location) if location is not None else None
        return npc


def leave_option(text: str | None = None, reply: str | None = None) -> Instruction:
    return Instruction(
        "seq",
        {
            "instructions": [
                Instruction("endConversation", {"text": text, "reply": reply}),
                Instruction("exitScene", {}),
            ]
        },
    )


class NPCAccessor(AttributeAccessor):
    """``{npc}``, ``{npc:he}``, ``{npc(rob):faction}``, ``npc:chat``."""

    kind = "NPC"

    def __init__(self, npc: NPC | None) -> None:
        self.npc = npc

    def require_npc(self) -> NPC:
        if self.npc is None:
            raise ValueError("npc accessor has no npc")
        return self.npc

    def default(self, game: Game) -> dict[str, Any]:
        npc = self.require_npc()
        definition = game.library.npcs.require(npc.id)
        return colour(definition.display_name(npc.name_known), definition.speech_color or COLOURS["npc"])

    def resolve(self, game: Game, rest: str) -> Any:
        args = parse_args(rest)
        if args is not None:
            argline, tail = args
            accessor = NPCAccessor(game.get_npc(argline))
            return accessor.resolve(game, tail) if tail else accessor.default(game)
        return super().resolve(game, rest)

    def _pronouns(self, game: Game) -> Pronouns:
        return game.library.npcs.require(self.require_npc().id).pronouns

    def prop_name(self, game: Game, rest: str) -> dict[str, Any]:
        return self.default(game)

    def prop_he(self, game: Game, rest: str) -> str:
        return self._pronouns(game).subject

    def prop_him(self, game: Game, rest: str) -> str:
        return self._pronouns(game).object

    def prop_his(self, game: Game, rest: str) -> str:
        return self._pronouns(game).possessive

    def prop_He(self, game: Game, rest: str) -> str:
        return self._pronouns(game).subject.capitalize()

    def prop_Him(self, game: Game, rest: str) -> str:
        return self._pronouns(game).object.capitalize()

    def prop_His(self, game: Game, rest: str) -> str:
        return self._pronouns(game).possessive.capitalize()

    def prop_faction(self, game: Game, rest: str) -> str:
        return game.library.npcs.require(self.require_npc().id).faction or "unaffiliated"

    def resolve_unknown(self, game: Game, rest: str) -> Any:
        definition = game.library.npcs.require(self.require_npc().id)
        script = definition.scripts.get(rest)
        if script is None:
            raise ValueError(f"unknown NPC accessor property: {rest}")
        return script
