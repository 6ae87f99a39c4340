from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from steamscript.sim.accessor import AttributeAccessor
from steamscript.sim.format import COLOURS, highlight
from steamscript.sim.scripts import Instruction, parse_args

if TYPE_CHECKING:
    from steamscript.sim.core import Game

DEFAULT_LINK_MINUTES = 1


@dataclass(frozen=True)
class LocationLink:
    dest: str
    time: int = DEFAULT_LINK_MINUTES
    label: str | None = None
    on_follow: Any = None
    check_access: Callable[["Game"], str | None] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.dest, str) or not self.dest:
            raise ValueError("link dest must be a non-empty string")
        if isinstance(self.time, bool) or not isinstance(self.time, int) or self.time < 0:
            raise ValueError("link time must be a non-negative integer")


@dataclass(frozen=True)
class Activity:
    name: str
    script: Any
    condition: Any = None


@dataclass(frozen=True)
class LocationDefinition:
    name: str
    description: str = ""
    image: str | None = None
    links: tuple[LocationLink, ...] = ()
    activities: tuple[Activity, ...] = ()
    on_first_arrive: Any = None
    on_arrive: Any = None
    on_wait: Any = None
    on_tick: Any = None
    on_relax: Any = None
    scripts: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "links", tuple(self.links))
        object.__setattr__(self, "activities", tuple(self.activities))

    def link_to(self, dest: str) -> LocationLink | None:
        for link in self.links:
            if link.dest == dest:
                return link
        return None


@dataclass
class Location:
    id: str
    num_visits: int = 0
    discovered: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"num_visits": self.num_visits, "discovered": self.discovered}

    @classmethod
    def from_dict(cls, location_id: str, payload: dict[str, Any]) -> "Location":
        if not isinstance(payload, dict):
            raise ValueError(f"locations[{location_id}] must be an object")
        num_visits = payload.get("num_visits", 0)
        if isinstance(num_visits, bool) or not isinstance(num_visits, int) or num_visits < 0:
            raise ValueError(f"locations[{location_id}].num_visits must be a non-negative integer")
        return cls(id=location_id, num_visits=num_visits, discovered=bool(payload.get("discovered", False)))


class LocationAccessor(AttributeAccessor):
    """``{location}``, ``location:link:lake``, ``location(lake):name``."""

    kind = "location"

    def __init__(self, location_id: str) -> None:
        self.location_id = location_id

    def _definition(self, game: Game) -> LocationDefinition:
        return game.library.locations.require(self.location_id)

    def default(self, game: Game) -> dict[str, Any]:
        return highlight(self._definition(game).name, COLOURS["discovery"])

    def resolve(self, game: Game, rest: str) -> Any:
        args = parse_args(rest)
        if args is not None:
            argline, tail = args
            game.library.locations.require(argline)
            accessor = LocationAccessor(argline)
            return accessor.resolve(game, tail) if tail else accessor.default(game)
        return super().resolve(game, rest)

    def prop_name(self, game: Game, rest: str) -> dict[str, Any]:
        return self.default(game)

    def prop_description(self, game: Game, rest: str) -> str:
        return self._definition(game).description

    def prop_visits(self, game: Game, rest: str) -> int:
        location = game.locations.get(self.location_id)
        return location.num_visits if location is not None else 0

    def prop_discovered(self, game: Game, rest: str) -> bool:
        location = game.locations.get(self.location_id)
        return location.discovered if location is not None else False

    def prop_link(self, game: Game, rest: str) -> Instruction:
        if self._definition(game).link_to(rest) is None:
            raise ValueError(f"location {self.location_id} has no link to {rest}")
        return Instruction("go", {"location": rest})

    def resolve_unknown(self, game: Game, rest: str) -> Any:
        script = self._definition(game).scripts.get(rest)
        if script is None:
            raise ValueError(f"unknown location accessor property: {rest}")
        return script
