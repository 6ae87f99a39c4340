from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from steamscript.sim.core import Game


@runtime_checkable
class Accessor(Protocol):
    """Value that an expression such as ``npc:he`` can drill into."""

    def default(self, game: Game) -> Any: ...

    def resolve(self, game: Game, rest: str) -> Any: ...


def is_accessor(value: Any) -> bool:
    if value is None or isinstance(value, type):
        return False
    return callable(getattr(value, "resolve", None)) and callable(getattr(value, "default", None))


class AttributeAccessor:
    """Accessor base dispatching ``rest`` to ``prop_<name>`` methods.

    A handler receives whatever follows ``name:`` (empty when nothing does).
    """

    kind = "value"

    def default(self, game: Game) -> Any:
        raise NotImplementedError

    def resolve(self, game: Game, rest: str) -> Any:
        name, _, tail = rest.partition(":")
        handler = getattr(self, f"prop_{name}", None)
        if handler is not None:
            return handler(game, tail)
        return self.resolve_unknown(game, rest)

    def resolve_unknown(self, game: Game, rest: str) -> Any:
        raise ValueError(f"unknown {self.kind} accessor property: {rest}")
