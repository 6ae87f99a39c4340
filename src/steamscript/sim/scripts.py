from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, NamedTuple

from steamscript.sim.accessor import is_accessor

if TYPE_CHECKING:
    from steamscript.sim.core import Game

ScriptFn = Callable[["Game", dict[str, Any]], Any]


class Instruction(NamedTuple):
    """Serializable deferred script call: ``(name, params)``."""

    name: str
    params: dict[str, Any]


Script = ScriptFn | Instruction | str


class ScriptNotFoundError(LookupError):
    pass


class AccessorError(TypeError):
    pass


def is_instruction(value: Any) -> bool:
    return (
        isinstance(value, (tuple, list))
        and len(value) == 2
        and isinstance(value[0], str)
        and isinstance(value[1], Mapping)
    )


def as_instruction(value: Any) -> Instruction:
    if isinstance(value, Instruction):
        return value
    if not is_instruction(value):
        raise ValueError("instruction must be a [name, params] pair")
    return Instruction(name=value[0], params=dict(value[1]))


def is_runnable(value: Any) -> bool:
    return callable(value) or is_instruction(value)


class ScriptRegistry:
    """Process-wide name to script function table."""

    def __init__(self) -> None:
        self._scripts: dict[str, ScriptFn] = {}
        self._frozen = False

    def register(self, name: str, fn: ScriptFn) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("script name must be a non-empty string")
        if not callable(fn):
            raise ValueError(f"script {name!r} must be callable")
        if self._frozen:
            raise ValueError("script registry is frozen")
        if name in self._scripts:
            raise ValueError(f"duplicate script name: {name}")
        self._scripts[name] = fn

    def register_many(self, scripts: Mapping[str, ScriptFn]) -> None:
        for name, fn in scripts.items():
            self.register(name, fn)

    def script(self, name: str) -> Callable[[ScriptFn], ScriptFn]:
        def _decorator(fn: ScriptFn) -> ScriptFn:
            self.register(name, fn)
            return fn

        return _decorator

    def lookup(self, name: str) -> ScriptFn | None:
        return self._scripts.get(name)

    def require(self, name: str) -> ScriptFn:
        fn = self._scripts.get(name)
        if fn is None:
            raise ScriptNotFoundError(f"script not found: {name}")
        return fn

    def names(self) -> list[str]:
        return sorted(self._scripts)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._scripts

    def __len__(self) -> int:
        return len(self._scripts)


def split_expression(text: str) -> tuple[str, str] | None:
    """Split ``head:rest`` or ``head(args)rest`` at the first marker.

    Returns ``None`` for plain names and for a ``(`` that is never closed.
    """
    for index, char in enumerate(text):
        if char == ":":
            return text[:index], text[index + 1 :]
        if char == "(":
            if ")" not in text[index + 1 :]:
                return None
            return text[:index], text[index:]
    return None


def parse_args(rest: str) -> tuple[str, str] | None:
    """Parse a leading ``(args)`` fragment into ``(argline, tail)``."""
    if not rest.startswith("("):
        return None
    close = rest.find(")")
    if close == -1:
        return None
    tail = rest[close + 1 :]
    if tail.startswith(":"):
        tail = tail[1:]
    return rest[1:close], tail


def run(game: Game, script: Any, params: Mapping[str, Any] | None = None) -> Any:
    outer = dict(params) if params else {}
    if script is None:
        return None
    if is_instruction(script):
        name, own_params = script
        return run(game, name, {**own_params, **outer})
    if callable(script):
        return script(game, outer)
    if not isinstance(script, str):
        raise TypeError(f"cannot run script of type {type(script).__name__}")

    split = split_expression(script)
    if split is None:
        return game.scripts.require(script)(game, outer)

    head, rest = split
    accessor = run(game, head)
    if not is_accessor(accessor):
        raise AccessorError(f"script {head} does not return an accessor")
    resolved = accessor.resolve(game, rest)
    if is_runnable(resolved):
        return run(game, resolved, outer)
    return resolved


def run_all(game: Game, scripts: Iterable[Any]) -> None:
    for script in scripts:
        run(game, script)


def plain_data(value: Any) -> Any:
    """Deep copy ``value`` as JSON-shaped data (tuples and instructions become lists)."""
    if isinstance(value, Mapping):
        return {str(key): plain_data(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain_data(item) for item in value]
    return value
