from __future__ import annotations

from typing import Any

COLOURS = {
    "positive": "#10b981",
    "negative": "#ef4444",
    "discovery": "#3b82f6",
    "effect": "#a855f7",
    "trait": "#f59e0b",
    "task": "#94a3b8",
    "item": "#ffeb3b",
    "player": "#e0b0ff",
    "npc": "#888888",
}
ERROR_TOKEN_COLOUR = "#ff4444"
CONTENT_TYPES = {"text", "paragraph", "speech"}
OPTION_TYPE = "button"


def txt(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def colour(text: str, color: str) -> dict[str, Any]:
    return {"type": "text", "text": text, "color": color}


def highlight(text: str, color: str, hover_text: str | None = None) -> dict[str, Any]:
    item: dict[str, Any] = {"type": "text", "text": text, "color": color}
    if hover_text is not None:
        item["hover_text"] = hover_text
    return item


def p(*content: str | dict[str, Any]) -> dict[str, Any]:
    """Paragraph of inline spans; bare strings become plain text spans."""
    if not content:
        raise ValueError("paragraph requires at least one content part")
    return {
        "type": "paragraph",
        "content": [txt(item) if isinstance(item, str) else item for item in content],
    }


def speech(text: str, color: str | None = None) -> dict[str, Any]:
    item: dict[str, Any] = {"type": "speech", "text": text}
    if color is not None:
        item["color"] = color
    return item


def button(action: Any, label: str | None = None, *, disabled: bool = False) -> dict[str, Any]:
    item: dict[str, Any] = {"type": OPTION_TYPE, "action": action, "label": label}
    if disabled:
        item["disabled"] = True
    return item


def is_content(value: Any) -> bool:
    return isinstance(value, dict) and value.get("type") in CONTENT_TYPES


def is_option(value: Any) -> bool:
    return isinstance(value, dict) and value.get("type") == OPTION_TYPE


def plain_text(item: str | dict[str, Any]) -> str:
    if isinstance(item, str):
        return item
    if item.get("type") == "paragraph":
        return "".join(plain_text(part) for part in item.get("content", []))
    return str(item.get("text", ""))
