from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from steamscript.sim.format import button
from steamscript.sim.scripts import Instruction, as_instruction, is_instruction, plain_data


def as_page(value: Any) -> Instruction:
    """Normalize a frame page; a bare script name or expression becomes a parameterless instruction."""
    if isinstance(value, str):
        return Instruction(value, {})
    return as_instruction(value)


@dataclass
class Frame:
    """One resumable narrative context: pages not yet run, front first."""

    pages: list[Instruction] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.pages = [as_page(page) for page in self.pages]

    def to_dict(self) -> dict[str, Any]:
        return {"pages": plain_data(self.pages)}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Frame":
        if not isinstance(payload, dict):
            raise ValueError("scene.stack frames must be objects")
        pages = payload.get("pages", [])
        if not isinstance(pages, list):
            raise ValueError("scene.stack frame pages must be a list")
        return cls(pages=list(pages))


@dataclass
class Scene:
    content: list[dict[str, Any]] = field(default_factory=list)
    options: list[dict[str, Any]] = field(default_factory=list)
    npc: str | None = None
    hide_npc_image: bool = False
    shop: dict[str, Any] | None = None
    stack: list[Frame] = field(default_factory=list)

    @property
    def top_frame(self) -> Frame:
        if not self.stack:
            self.stack.append(Frame())
        return self.stack[0]

    def push_frame(self, pages: list[Any] | None = None) -> Frame:
        frame = Frame(pages=list(pages or []))
        self.stack.insert(0, frame)
        return frame

    def pop_frame(self) -> Frame | None:
        if not self.stack:
            return None
        return self.stack.pop(0)

    @property
    def has_pending_pages(self) -> bool:
        return any(frame.pages for frame in self.stack)

    def next_page(self) -> Instruction | None:
        """Take the next page from the innermost non-empty frame, dropping exhausted frames."""
        while self.stack:
            frame = self.stack[0]
            if frame.pages:
                return frame.pages.pop(0)
            self.stack.pop(0)
        return None

    def drop_exhausted_frames(self) -> None:
        while self.stack and not self.stack[0].pages:
            self.stack.pop(0)

    def add_option(self, action: Any, label: str | None = None, *, disabled: bool = False) -> dict[str, Any]:
        if is_instruction(action):
            action = as_instruction(action)
        option = button(action, label, disabled=disabled)
        self.options.append(option)
        return option

    @property
    def in_scene(self) -> bool:
        return bool(self.options) or self.has_pending_pages or self.shop is not None

    def interception_marker(self) -> tuple[int, int, int, bool]:
        """Snapshot of what makes a scene intercept; compare before and after a hook."""
        pending = sum(len(frame.pages) for frame in self.stack)
        return len(self.options), len(self.stack), pending, self.shop is not None

    def clear(self) -> None:
        self.content = []
        self.options = []
        self.shop = None

    def dismiss(self) -> None:
        self.clear()
        self.stack = []
        self.npc = None
        self.hide_npc_image = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": plain_data(self.content),
            "options": [_option_to_dict(option) for option in self.options],
            "npc": self.npc,
            "hide_npc_image": self.hide_npc_image,
            "shop": plain_data(self.shop),
            "stack": [frame.to_dict() for frame in self.stack],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> "Scene":
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise ValueError("scene must be an object")
        content = payload.get("content", [])
        options = payload.get("options", [])
        stack = payload.get("stack", [])
        if not isinstance(content, list):
            raise ValueError("scene.content must be a list")
        if not isinstance(options, list):
            raise ValueError("scene.options must be a list")
        if not isinstance(stack, list):
            raise ValueError("scene.stack must be a list")
        npc = payload.get("npc")
        shop = payload.get("shop")
        return cls(
            content=copy.deepcopy(content),
            options=[_option_from_dict(option) for option in options],
            npc=str(npc) if npc is not None else None,
            hide_npc_image=bool(payload.get("hide_npc_image", False)),
            shop=copy.deepcopy(shop) if isinstance(shop, dict) else None,
            stack=[Frame.from_dict(frame) for frame in stack],
        )


def _option_to_dict(option: dict[str, Any]) -> dict[str, Any]:
    return plain_data(option)


def _option_from_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError("scene.options entries must be objects")
    if "action" not in payload:
        raise ValueError("scene.options entries require an action")
    option = copy.deepcopy(payload)
    if is_instruction(option["action"]):
        option["action"] = as_instruction(option["action"])
    return option
