"""Builders for authoring content as serializable instructions.

Every builder returns plain data (an ``Instruction`` or a small dict), so the
result can sit in a scene frame or an option and survive a save.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from steamscript.sim.scripts import Instruction, run_all

if TYPE_CHECKING:
    from steamscript.sim.core import Game
    from steamscript.sim.scripts import ScriptRegistry


def call(script: str, params: dict[str, Any] | None = None) -> Instruction:
    return Instruction(script, dict(params or {}))


def _compact(**params: Any) -> dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


# Content


def text(*parts: str | Instruction) -> Instruction:
    return call("text", {"parts": list(parts)})


def paragraph(*content: str | dict[str, Any]) -> Instruction:
    return call("paragraph", {"content": list(content)})


def hl(text: str, color: str, hover_text: str | None = None) -> dict[str, Any]:
    return _compact(text=text, color=color, hover_text=hover_text)


def say(text: str, npc: str | None = None, color: str | None = None) -> Instruction:
    return call("say", _compact(text=text, npc=npc, color=color))


def option(label: str, script: str | None = None, params: dict[str, Any] | None = None) -> Instruction:
    return call("option", _compact(label=label, script=script, params=params))


def leave_option(text: str | None = None, reply: str | None = None, label: str = "Leave") -> Instruction:
    return call("npcLeaveOption", _compact(text=text, reply=reply, label=label))


# Control flow


def seq(*instructions: Any) -> Instruction:
    return call("seq", {"instructions": list(instructions)})


def when(condition: Any, *then: Any) -> Instruction:
    return call("when", {"condition": condition, "then": list(then)})


def unless(condition: Any, *then: Any) -> Instruction:
    return when(not_(condition), *then)


def cond(*args: Any) -> Instruction:
    """``cond(test, then, otherwise)`` or ``cond(test1, then1, test2, then2, ..., default)``."""
    if len(args) < 2:
        raise ValueError("cond requires at least 2 arguments")
    branches = [{"condition": args[index], "then": args[index + 1]} for index in range(0, len(args) - 1, 2)]
    default = args[-1] if len(args) % 2 == 1 else None
    return call("cond", _compact(branches=branches, default=default))


def random(*children: Any) -> Instruction:
    return call("random", {"children": [child for child in children if child]})


def menu_entry(label: str, content: Any, *, exit: bool = False, condition: Any = None) -> dict[str, Any]:
    return _compact(label=label, content=content, is_exit=exit, condition=condition)


def menu(*entries: dict[str, Any]) -> Instruction:
    return call("menu", {"entries": list(entries)})


def scene(first: Any, *pages: Any) -> Instruction:
    """Run ``first`` now and queue the remaining pages behind a Continue button."""
    if not pages:
        return seq(first)
    return seq(first, call("pushScenePages", {"pages": list(pages)}))


def branch(label: str, *pages: Any) -> Instruction:
    return call("option", {"label": label, "script": "global:advanceScene", "params": {"push": list(pages)}})


def exit_scene() -> Instruction:
    return call("exitScene")


def skill_check(skill: str, difficulty: int = 0, on_success: Any = None, on_failure: Any = None) -> Instruction:
    return call("skillCheck", _compact(skill=skill, difficulty=difficulty, on_success=on_success, on_failure=on_failure))


# Game actions


def go(location: str, minutes: int | None = None) -> Instruction:
    return call("go", _compact(location=location, minutes=minutes))


def move(location: str) -> Instruction:
    return call("move", {"location": location})


def time_lapse(minutes: int) -> Instruction:
    return call("timeLapse", {"minutes": minutes})


def wait(minutes: int, text: str | None = None, then: Any = None) -> Instruction:
    return call("wait", _compact(minutes=minutes, text=text, then=then))


def gain_item(item: str, number: int = 1, text: str | None = None) -> Instruction:
    return call("gainItem", _compact(item=item, number=number, text=text))


def lose_item(item: str, number: int = 1) -> Instruction:
    return call("loseItem", {"item": item, "number": number})


def add_stat(stat: str, change: float, **options: Any) -> Instruction:
    return call("addStat", {"stat": stat, "change": change, **options})


def add_card(card: str, args: dict[str, Any] | None = None) -> Instruction:
    return call("addCard", _compact(card=card, args=args))


def remove_card(card: str) -> Instruction:
    return call("removeCard", {"card": card})


def add_quest(quest: str, args: dict[str, Any] | None = None, *, silent: bool = False) -> Instruction:
    return call("addQuest", _compact(quest=quest, args=args, silent=silent or None))


def complete_quest(quest: str) -> Instruction:
    return call("completeQuest", {"quest": quest})


def add_effect(effect: str, args: dict[str, Any] | None = None, *, silent: bool = False) -> Instruction:
    return call("addEffect", _compact(effect=effect, args=args, silent=silent or None))


# Predicates


def has_item(item: str, count: int = 1) -> Instruction:
    return call("hasItem", {"item": item, "count": count})


def has_stat(stat: str, min: float | None = None, max: float | None = None) -> Instruction:
    return call("hasStat", _compact(stat=stat, min=min, max=max))


def has_reputation(reputation: str, min: float | None = None, max: float | None = None) -> Instruction:
    return call("hasReputation", _compact(reputation=reputation, min=min, max=max))


def in_location(location: str) -> Instruction:
    return call("inLocation", {"location": location})


def in_scene() -> Instruction:
    return call("inScene")


def npc_stat(npc: str | None, stat: str, min: float | None = None, max: float | None = None) -> Instruction:
    return call("npcStat", _compact(npc=npc, stat=stat, min=min, max=max))


def has_card(card: str) -> Instruction:
    return call("hasCard", {"card": card})


def card_completed(card: str) -> Instruction:
    return call("cardCompleted", {"card": card})


def hour_between(start: float, end: float) -> Instruction:
    return call("hourBetween", {"from": start, "to": end})


def not_(predicate: Any) -> Instruction:
    return call("not", {"predicate": predicate})


def and_(*predicates: Any) -> Instruction:
    return call("and", {"predicates": list(predicates)})


def or_(*predicates: Any) -> Instruction:
    return call("or", {"predicates": list(predicates)})


def register_sequence(registry: ScriptRegistry, name: str, instructions: Sequence[Any]) -> None:
    """Register ``name`` as a script that runs ``instructions`` in order."""
    frozen = list(instructions)

    def _run_sequence(game: Game, params: dict[str, Any]) -> None:
        run_all(game, frozen)

    registry.register(name, _run_sequence)
