"""Host editor surface: collaborator protocol plus an in-memory reference host."""

from .hooks import (
    CONTEXT_CHANGED,
    KEYMAP_CHANGED,
    MESSAGE,
    HookFunction,
    HookRegistry,
    mode_hook,
)
from .protocols import UNBOUND, BindInterceptor, KeymapHost, OverlaySource
from .editor import DEFAULT_CONTEXT, EditorContext, EditorHost, MinorMode

__all__ = [
    "CONTEXT_CHANGED",
    "KEYMAP_CHANGED",
    "MESSAGE",
    "HookFunction",
    "HookRegistry",
    "mode_hook",
    "UNBOUND",
    "BindInterceptor",
    "KeymapHost",
    "OverlaySource",
    "DEFAULT_CONTEXT",
    "EditorContext",
    "EditorHost",
    "MinorMode",
]
