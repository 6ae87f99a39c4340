from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Generic, TypeVar

T = TypeVar("T")


class DefinitionNotFoundError(LookupError):
    pass


class DefinitionRegistry(Generic[T]):
    """Immutable-at-runtime id to definition table for one content namespace."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._definitions: dict[str, T] = {}
        self._frozen = False

    def register(self, definition_id: str, definition: T) -> None:
        if not isinstance(definition_id, str) or not definition_id:
            raise ValueError(f"{self.kind} id must be a non-empty string")
        if self._frozen:
            raise ValueError(f"{self.kind} registry is frozen")
        if definition_id in self._definitions:
            raise ValueError(f"duplicate {self.kind} id: {definition_id}")
        self._definitions[definition_id] = definition

    def register_many(self, definitions: Mapping[str, T]) -> None:
        for definition_id, definition in definitions.items():
            self.register(definition_id, definition)

    def get(self, definition_id: str) -> T | None:
        return self._definitions.get(definition_id)

    def require(self, definition_id: str) -> T:
        definition = self._definitions.get(definition_id)
        if definition is None:
            raise DefinitionNotFoundError(f"{self.kind} definition not found: {definition_id}")
        return definition

    def ids(self) -> list[str]:
        return list(self._definitions)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, definition_id: object) -> bool:
        return definition_id in self._definitions

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)
