"""Keymap registry resolving ``MapRef`` handles to keymap objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from keyguard.runtime.telemetry import span

from .keymap import Keymap
from .models import GLOBAL_MAP_NAME, MapRef


class UnknownKeymapError(KeyError):
    """Raised when a map reference names no registered keymap."""

    def __init__(self, ref: MapRef | str) -> None:
        label = ref.label if isinstance(ref, MapRef) else ref
        super().__init__(f"Keymap '{label}' is not registered")
        self.ref = ref


@dataclass(slots=True)
class RegistryStats:
    """Lightweight snapshot describing registry state."""

    keymap_count: int
    names: tuple[str, ...]


class KeymapRegistry:
    """Owns the global keymap and every named keymap."""

    def __init__(
        self, *, global_map: Keymap | None = None, logger_name: str | None = None
    ) -> None:
        self.global_map = global_map or Keymap(GLOBAL_MAP_NAME)
        if self.global_map.name is None:
            self.global_map.name = GLOBAL_MAP_NAME
        self._keymaps: Dict[str, Keymap] = {}
        self._logger_name = logger_name

    def register(self, keymap: Keymap, *, replace: bool = False) -> Keymap:
        with span(
            "keymaps::register",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"keymap": keymap.name},
        ):
            if not keymap.name:
                raise ValueError("only named keymaps can be registered")
            if keymap.name == GLOBAL_MAP_NAME:
                raise ValueError(f"'{GLOBAL_MAP_NAME}' is reserved")
            if not replace and keymap.name in self._keymaps:
                raise ValueError(f"Keymap '{keymap.name}' already registered")
            self._keymaps[keymap.name] = keymap
            return keymap

    def create(self, name: str, *, parent: Keymap | None = None) -> Keymap:
        return self.register(Keymap(name, parent=parent))

    def get(self, name: str) -> Keymap:
        if name == GLOBAL_MAP_NAME:
            return self.global_map
        try:
            return self._keymaps[name]
        except KeyError:
            raise UnknownKeymapError(name) from None

    def resolve(self, ref: MapRef | None) -> Keymap:
        if ref is None or ref.is_global:
            return self.global_map
        return self.get(str(ref.name))

    def name_of(self, keymap: Keymap) -> Optional[str]:
        if keymap is self.global_map:
            return GLOBAL_MAP_NAME
        for name, candidate in self._keymaps.items():
            if candidate is keymap:
                return name
        return None

    def __iter__(self) -> Iterator[Keymap]:
        yield self.global_map
        yield from self._keymaps.values()

    def stats(self) -> RegistryStats:
        return RegistryStats(
            keymap_count=len(self._keymaps) + 1,
            names=(GLOBAL_MAP_NAME, *sorted(self._keymaps)),
        )


__all__ = ["KeymapRegistry", "RegistryStats", "UnknownKeymapError"]
