from __future__ import annotations

from typing import TYPE_CHECKING

from steamscript.sim.timekeeping import SECONDS_PER_MINUTE, calc_ticks

if TYPE_CHECKING:
    from steamscript.sim.core import Game

ENERGY_DRAIN_INTERVAL_MINUTES = 15


class RuleModule:
    """Time-accumulation hook substrate.

    Rule modules are registered on a ``Game`` instance and run in stable
    registration order. They are code, not state, and are never serialized.
    """

    name: str

    def on_registered(self, game: Game) -> None:
        """Called once, immediately when the module is registered."""

    def on_time_lapse(self, game: Game, seconds: int) -> None:
        """Called after card time hooks whenever the clock advances."""

    def after_action(self, game: Game) -> None:
        """Called at the end of every action, before stats are recomputed."""


class EnergyDrainModule(RuleModule):
    """Spend one point of base Energy per quarter hour crossed while awake."""

    name = "energy_drain"

    def __init__(self, *, interval_minutes: int = ENERGY_DRAIN_INTERVAL_MINUTES, stat: str = "Energy") -> None:
        if not isinstance(interval_minutes, int) or interval_minutes <= 0:
            raise ValueError("interval_minutes must be a positive integer")
        self.interval_seconds = interval_minutes * SECONDS_PER_MINUTE
        self.stat = stat

    def on_time_lapse(self, game: Game, seconds: int) -> None:
        if game.player.sleeping:
            return
        ticks = calc_ticks(game.time, seconds, self.interval_seconds)
        if ticks <= 0:
            return
        current = game.player.basestats.get(self.stat, 0)
        game.player.basestats[self.stat] = max(0, current - ticks)
