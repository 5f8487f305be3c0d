"""Keymaps, key sequences and the registry that names them."""

from .models import (
    GLOBAL,
    GLOBAL_MAP_NAME,
    KeySequence,
    KeyStroke,
    MapRef,
    coerce_sequence,
    is_command,
)
from .keymap import BindRecord, EntryChange, Keymap
from .registry import KeymapRegistry, RegistryStats, UnknownKeymapError

__all__ = [
    "GLOBAL",
    "GLOBAL_MAP_NAME",
    "KeySequence",
    "KeyStroke",
    "MapRef",
    "coerce_sequence",
    "is_command",
    "BindRecord",
    "EntryChange",
    "Keymap",
    "KeymapRegistry",
    "RegistryStats",
    "UnknownKeymapError",
]
