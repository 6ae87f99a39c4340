from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from steamscript.sim.actions import register_action_scripts
from steamscript.sim.builtins import register_core_scripts
from steamscript.sim.cards import CardDefinition
from steamscript.sim.location import LocationDefinition
from steamscript.sim.npc import NPCDefinition
from steamscript.sim.registry import DefinitionRegistry
from steamscript.sim.scripts import ScriptRegistry

if TYPE_CHECKING:
    from steamscript.sim.rules import RuleModule


class ContentLibrary:
    """One registry per content namespace, populated at startup and then frozen."""

    def __init__(self, *, start_location: str | None = None) -> None:
        self.scripts = ScriptRegistry()
        self.cards: DefinitionRegistry[CardDefinition] = DefinitionRegistry("card")
        self.locations: DefinitionRegistry[LocationDefinition] = DefinitionRegistry("location")
        self.npcs: DefinitionRegistry[NPCDefinition] = DefinitionRegistry("npc")
        self.items: DefinitionRegistry[Any] = DefinitionRegistry("item")
        self.rule_modules: list[Callable[[], RuleModule]] = []
        self.start_location = start_location
        self._frozen = False

    def add_rule_module(self, factory: Callable[[], RuleModule]) -> None:
        if self._frozen:
            raise ValueError("content library is frozen")
        self.rule_modules.append(factory)

    def freeze(self) -> None:
        self.scripts.freeze()
        self.cards.freeze()
        self.locations.freeze()
        self.npcs.freeze()
        self.items.freeze()
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen


def build_core_library(*, start_location: str | None = None) -> ContentLibrary:
    library = ContentLibrary(start_location=start_location)
    register_core_scripts(library.scripts)
    register_action_scripts(library.scripts)
    return library
