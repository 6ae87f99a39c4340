from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from steamscript.sim.accessor import is_accessor
from steamscript.sim.format import ERROR_TOKEN_COLOUR, is_content
from steamscript.sim.scripts import run

if TYPE_CHECKING:
    from steamscript.sim.core import Game

logger = logging.getLogger(__name__)


def interpolation_error(expression: str) -> dict[str, Any]:
    return {"type": "text", "text": f"{{{expression}}}", "color": ERROR_TOKEN_COLOUR}


def resolve_expression(game: Game, expression: str) -> str | dict[str, Any]:
    if not expression:
        return interpolation_error("")
    try:
        resolved = run(game, expression)
        if is_accessor(resolved):
            resolved = resolved.default(game)
    except Exception as exc:
        logger.debug("interpolation of {%s} failed: %s", expression, exc)
        return interpolation_error(expression)

    if isinstance(resolved, str) or is_content(resolved):
        return resolved
    if isinstance(resolved, (int, float)) and not isinstance(resolved, bool):
        return str(resolved)
    logger.debug("interpolation of {%s} produced %r", expression, resolved)
    return interpolation_error(expression)


def interpolate_string(game: Game, template: str) -> list[str | dict[str, Any]]:
    """Split ``template`` into literal text and resolved ``{expr}`` parts."""
    parts: list[str | dict[str, Any]] = []
    literal: list[str] = []
    index = 0
    length = len(template)

    while index < length:
        char = template[index]
        pair = template[index : index + 2]
        if pair in ("{{", "}}"):
            literal.append(char)
            index += 2
            continue
        if char == "{":
            end = template.find("}", index + 1)
            if end == -1:
                literal.append(char)
                index += 1
                continue
            if literal:
                parts.append("".join(literal))
                literal = []
            parts.append(resolve_expression(game, template[index + 1 : end].strip()))
            index = end + 1
            continue
        literal.append(char)
        index += 1

    if literal:
        parts.append("".join(literal))
    return parts


def interpolate_text(game: Game, template: str) -> str:
    if "{" not in template and "}" not in template:
        return template
    return "".join(part if isinstance(part, str) else str(part.get("text", "")) for part in interpolate_string(game, template))
