"""Interfaces a host editor exposes to the protection feature."""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Protocol, Sequence

from keyguard.keymaps import BindRecord, Keymap, KeySequence, MapRef

from .hooks import HookRegistry


class _Unbound:
    """Overlay value meaning "explicitly no binding"; stops key lookup."""

    _instance: Optional["_Unbound"] = None

    def __new__(cls) -> "_Unbound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNBOUND"

    def __bool__(self) -> bool:
        return False


UNBOUND = _Unbound()

# interceptor(keymap, key, value, proceed) -> applied?
BindInterceptor = Callable[[Keymap, KeySequence, object, Callable[[], bool]], bool]
# source(context_id) -> table consulted before every active keymap
OverlaySource = Callable[[str], Optional[Mapping[KeySequence, object]]]


class KeymapHost(Protocol):
    """Collaborator surface consumed by ``keyguard.protection``."""

    hooks: HookRegistry

    @property
    def context_id(self) -> str: ...

    def resolve_map(self, ref: MapRef | None) -> Keymap: ...

    def lookup_key(self, keymap: Keymap, key: KeySequence) -> object | None: ...

    def command_remapping(self, keymap: Keymap, command: object) -> str | None: ...

    def bind_raw(self, keymap: Keymap, key: KeySequence, value: object) -> BindRecord: ...

    def revert_bind(self, record: BindRecord) -> None: ...

    def define_key(self, keymap: Keymap, key: KeySequence | str, value: object) -> bool: ...

    def active_keymaps(self, context: str | None = None) -> Sequence[Keymap]: ...

    def add_interceptor(self, interceptor: BindInterceptor) -> None: ...

    def remove_interceptor(self, interceptor: BindInterceptor) -> None: ...

    def add_overlay_source(self, source: OverlaySource) -> None: ...

    def remove_overlay_source(self, source: OverlaySource) -> None: ...

    def minor_mode_for_keymap(self, keymap: Keymap) -> str | None: ...

    def keymap_label(self, keymap: Keymap) -> str: ...

    def message(self, text: str) -> None: ...


__all__ = [
    "BindInterceptor",
    "KeymapHost",
    "OverlaySource",
    "UNBOUND",
]
