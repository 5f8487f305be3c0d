"""Shared protection state: the enabled flag, overlays and reentrancy flags."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from keyguard.keymaps import KeySequence

from .config import BindingRule


class ReentrancyFlag:
    """Boolean set for the duration of a ``hold()`` block, on every exit path."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @contextmanager
    def hold(self) -> Iterator[None]:
        previous = self._active
        self._active = True
        try:
            yield
        finally:
            self._active = previous

    def __repr__(self) -> str:
        return f"<ReentrancyFlag {self.name} active={self._active}>"


class OverlayTable(Mapping[KeySequence, object]):
    """Immutable overlay for one context: key -> command name or ``UNBOUND``."""

    __slots__ = ("context", "_entries")

    def __init__(self, context: str, entries: Mapping[KeySequence, object]) -> None:
        self.context = context
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, key: KeySequence) -> object:
        return self._entries[key]

    def __iter__(self) -> Iterator[KeySequence]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        body = ", ".join(f"{key}: {value!r}" for key, value in self._entries.items())
        return f"OverlayTable({self.context!r}, {{{body}}})"


@dataclass(frozen=True, slots=True)
class Conflict:
    """A bind attempt that would change a protected rule's resolved command."""

    rule: BindingRule
    keymap: str
    resolved: str
    attempted_keymap: str
    attempted_key: KeySequence
    attempted_value: object

    def describe(self) -> str:
        return (
            f"Key {self.rule.key.describe()} in {self.keymap} is protected "
            f"(bound to {self.resolved}); refusing to bind "
            f"{self.attempted_key.describe()} in {self.attempted_keymap} "
            f"to {self.attempted_value!r}"
        )


@dataclass
class ProtectionState:
    """Process-wide enabled flag plus one overlay per context id."""

    enabled: bool = False
    overlays: Dict[str, OverlayTable] = field(default_factory=dict)
    guard_suspended: ReentrancyFlag = field(
        default_factory=lambda: ReentrancyFlag("guard-suspended")
    )

    def overlay_for(self, context: str) -> Optional[OverlayTable]:
        if not self.enabled:
            return None
        return self.overlays.get(context)

    def install(self, table: OverlayTable) -> None:
        self.overlays[table.context] = table

    def clear(self) -> None:
        self.overlays = {}


__all__ = ["Conflict", "OverlayTable", "ProtectionState", "ReentrancyFlag"]
