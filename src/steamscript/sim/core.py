from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from steamscript.sim import cards as card_lifecycle
from steamscript.sim import timekeeping
from steamscript.sim.cards import Card
from steamscript.sim.format import COLOURS, colour, is_content, is_option, p
from steamscript.sim.interpolation import interpolate_string
from steamscript.sim.library import ContentLibrary, build_core_library
from steamscript.sim.location import Location
from steamscript.sim.npc import NPC
from steamscript.sim.player import LAST_ACTION_TIMER, Player
from steamscript.sim.rng import RandomStreams
from steamscript.sim.rules import RuleModule
from steamscript.sim.scene import Scene
from steamscript.sim.scripts import ScriptRegistry, is_instruction, run

logger = logging.getLogger(__name__)

GAME_FORMAT_VERSION = 2
DEFAULT_SETTINGS = {"debug": False, "autosave": True, "show_hints": True}


@dataclass
class Settings:
    """Named boolean flags persisted with every snapshot."""

    flags: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_SETTINGS))

    def get(self, name: str) -> bool:
        return self.flags.get(name, False)

    def set(self, name: str, value: bool) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("setting name must be a non-empty string")
        if not isinstance(value, bool):
            raise ValueError(f"setting {name} must be a boolean")
        self.flags[name] = value

    def to_dict(self) -> dict[str, bool]:
        return dict(sorted(self.flags.items()))

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> "Settings":
        settings = cls()
        if payload is None:
            return settings
        if not isinstance(payload, dict):
            raise ValueError("settings must be an object")
        for name, value in payload.items():
            settings.set(str(name), value)
        return settings


class Game:
    """Aggregate root: clock, player, lazily created locations and NPCs, scene."""

    def __init__(self, library: ContentLibrary | None = None, *, seed: int = 0) -> None:
        self.library = library if library is not None else build_core_library()
        self.seed = seed
        self.streams = RandomStreams(seed)
        self.score = 0
        self.time = timekeeping.START_TIME
        self.current_location: str | None = self.library.start_location
        self.player = Player()
        self.locations: dict[str, Location] = {}
        self.npcs: dict[str, NPC] = {}
        self.npcs_present: list[str] = []
        self.scene = Scene()
        self.settings = Settings()
        self.rule_modules: list[RuleModule] = []
        for factory in self.library.rule_modules:
            self.register_rule_module(factory())

    @property
    def scripts(self) -> ScriptRegistry:
        return self.library.scripts

    # Locations and NPCs

    @property
    def location(self) -> Location:
        if self.current_location is None:
            raise ValueError("game has no current location")
        return self.get_location(self.current_location)

    def get_location(self, location_id: str) -> Location:
        location = self.locations.get(location_id)
        if location is None:
            self.library.locations.require(location_id)
            location = Location(id=location_id)
            self.locations[location_id] = location
        return location

    def get_npc(self, npc_id: str) -> NPC:
        npc = self.npcs.get(npc_id)
        if npc is not None:
            return npc
        definition = self.library.npcs.require(npc_id)
        npc = NPC(id=npc_id)
        if definition.generate is not None:
            definition.generate(self, npc)
        self.npcs[npc_id] = npc
        logger.debug("npc %s generated", npc_id)
        if definition.on_move is not None:
            self.run(definition.on_move, {"npc": npc_id})
        return npc

    @property
    def npc(self) -> NPC:
        if self.scene.npc is None:
            raise ValueError("no npc in the current scene")
        return self.get_npc(self.scene.npc)

    def move_to_location(self, location_id: str) -> None:
        self.get_location(location_id)
        self.current_location = location_id
        self.update_npcs_present()

    def update_npcs_present(self) -> None:
        self.npcs_present = sorted(
            npc_id for npc_id, npc in self.npcs.items() if npc.location is not None and npc.location == self.current_location
        )

    # Scene

    @property
    def in_scene(self) -> bool:
        return self.scene.in_scene

    def add_option(self, action: Any, label: str | None = None, *, disabled: bool = False) -> dict[str, Any]:
        return self.scene.add_option(action, label, disabled=disabled)

    def add(self, item: Any) -> None:
        if item is None:
            return
        if isinstance(item, str):
            parts = interpolate_string(self, item)
            if parts:
                self.scene.content.append(p(*parts))
            return
        if is_option(item):
            self.scene.options.append(item)
            return
        if is_content(item):
            self.scene.content.append(item)
            return
        if isinstance(item, (list, tuple)) and not is_instruction(item):
            for entry in item:
                self.add(entry)
            return
        raise TypeError(f"cannot add {type(item).__name__} to the scene")

    def clear_scene(self) -> None:
        self.scene.clear()

    def dismiss_scene(self) -> None:
        self.scene.dismiss()

    # Action loop

    def run(self, script: Any, params: dict[str, Any] | None = None) -> Any:
        return run(self, script, params)

    def before_action(self) -> None:
        self.update_npcs_present()
        self.calc_stats()

    def take_action(self, action: Any, params: dict[str, Any] | None = None) -> None:
        self.player.set_timer(LAST_ACTION_TIMER, self.time)
        self.clear_scene()
        try:
            self.run(action, params)
        except Exception as exc:
            logger.exception("action %r failed", action)
            self.add(p(colour(f"Error: {exc}", COLOURS["negative"])))

    def after_action(self) -> None:
        for card in list(self.player.cards):
            definition = self.library.cards.require(card.id)
            if definition.after_update is not None:
                definition.after_update(self, card)
        for npc_id in list(self.npcs_present):
            hook = self.library.npcs.require(npc_id).after_update
            if hook is not None:
                self.run(hook, {"npc": npc_id})
        for module in self.rule_modules:
            module.after_action(self)

        if not self.scene.options:
            self.scene.stack = []
            self.scene.npc = None
            self.scene.hide_npc_image = False
        self.calc_stats()

    def perform(self, action: Any, params: dict[str, Any] | None = None) -> None:
        """Run one player action through all three phases."""
        self.before_action()
        self.take_action(action, params)
        self.after_action()

    # Time

    def time_lapse(self, minutes: int | float = 0, *, seconds: int | float = 0, until_hour: float | None = None) -> int:
        return timekeeping.time_lapse(self, seconds=seconds, minutes=minutes, until_hour=until_hour)

    def wait(self, minutes: int | float = timekeeping.DEFAULT_WAIT_MINUTES, *, text: str | None = None, then: Any = None) -> bool:
        return timekeeping.wait(self, minutes, text=text, then=then)

    def calc_ticks(self, elapsed: int, interval: int) -> int:
        return timekeeping.calc_ticks(self.time, elapsed, interval)

    @property
    def date(self) -> datetime:
        return timekeeping.game_datetime(self.time)

    @property
    def hour_of_day(self) -> float:
        return timekeeping.hour_of_day(self.time)

    @property
    def day_of_week(self) -> int:
        return timekeeping.day_of_week(self.time)

    @property
    def is_debug(self) -> bool:
        return self.settings.get("debug")

    # Cards

    def add_card(
        self,
        card_id: str,
        card_type: str | None = None,
        extra: dict[str, Any] | None = None,
        *,
        silent: bool = False,
    ) -> Card | None:
        return card_lifecycle.add_card(self, card_id, card_type, extra, silent=silent)

    def remove_card(self, card_id: str, *, silent: bool = False) -> bool:
        return card_lifecycle.remove_card(self, card_id, silent=silent)

    def complete_quest(self, card_id: str) -> bool:
        return card_lifecycle.complete_quest(self, card_id)

    def calc_stats(self) -> None:
        self.player.calc_stats(self.library.cards)

    # Rules and randomness

    def rng_stream(self, name: str) -> random.Random:
        return self.streams.stream(name)

    def get_rule_module(self, module_name: str) -> RuleModule | None:
        for module in self.rule_modules:
            if module.name == module_name:
                return module
        return None

    def register_rule_module(self, module: RuleModule) -> None:
        if any(existing.name == module.name for existing in self.rule_modules):
            raise ValueError(f"duplicate rule module name: {module.name}")
        self.rule_modules.append(module)
        module.on_registered(self)

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": GAME_FORMAT_VERSION,
            "score": self.score,
            "player": self.player.to_dict(),
            "locations": {location_id: self.locations[location_id].to_dict() for location_id in sorted(self.locations)},
            "npcs": {npc_id: self.npcs[npc_id].to_dict() for npc_id in sorted(self.npcs)},
            "current_location": self.current_location,
            "time": self.time,
            "scene": self.scene.to_dict(),
            "settings": self.settings.to_dict(),
            "seed": self.seed,
            "rng_state": self.streams.state_payload(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any], library: ContentLibrary | None = None) -> "Game":
        if not isinstance(payload, dict):
            raise ValueError("game snapshot must be an object")
        version = payload.get("version")
        if version != GAME_FORMAT_VERSION:
            raise ValueError(f"unsupported game snapshot version: {version}")

        seed = payload.get("seed", 0)
        game = cls(library, seed=seed)
        game.score = int(payload.get("score", 0))
        time = payload.get("time")
        if isinstance(time, bool) or not isinstance(time, int):
            raise ValueError("time must be an integer")
        game.time = time

        game.player = Player.from_dict(payload.get("player"))
        for card in game.player.cards:
            game.library.cards.require(card.id)

        locations = payload.get("locations") or {}
        if not isinstance(locations, dict):
            raise ValueError("locations must be an object")
        for location_id, row in sorted(locations.items()):
            game.library.locations.require(location_id)
            game.locations[location_id] = Location.from_dict(location_id, row)

        npcs = payload.get("npcs") or {}
        if not isinstance(npcs, dict):
            raise ValueError("npcs must be an object")
        for npc_id, row in sorted(npcs.items()):
            game.library.npcs.require(npc_id)
            game.npcs[npc_id] = NPC.from_dict(npc_id, row)

        current_location = payload.get("current_location")
        if current_location is not None:
            game.library.locations.require(current_location)
        game.current_location = current_location

        game.scene = Scene.from_dict(payload.get("scene"))
        game.settings = Settings.from_dict(payload.get("settings"))
        game.streams.restore(copy.deepcopy(payload.get("rng_state")))
        game.update_npcs_present()
        game.calc_stats()
        return game
