"""In-memory editor host: contexts, modes, key resolution and bind interception."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from keyguard.keymaps import (
    BindRecord,
    Keymap,
    KeymapRegistry,
    KeySequence,
    MapRef,
    coerce_sequence,
)
from keyguard.runtime import telemetry

from .hooks import CONTEXT_CHANGED, KEYMAP_CHANGED, MESSAGE, HookRegistry, mode_hook
from .protocols import UNBOUND, BindInterceptor, OverlaySource

DEFAULT_CONTEXT = "*scratch*"


@dataclass(slots=True)
class MinorMode:
    """Entry of the host's mode table."""

    name: str
    keymap: Keymap
    is_global: bool = False


@dataclass(slots=True)
class EditorContext:
    """Buffer-like context that decides which keymaps are active."""

    name: str
    major_mode: str = "fundamental-mode"
    local_map: Optional[Keymap] = None
    minor_modes: List[str] = field(default_factory=list)


class EditorHost:
    """Reference host implementing ``KeymapHost``.

    Key lookup order for a context: overlay sources, enabled minor mode
    keymaps (most recently enabled first; buffer-local modes before global
    ones), the context's local map, then the global map. Command remapping
    is applied once to whatever the lookup finds.
    """

    def __init__(
        self,
        *,
        registry: KeymapRegistry | None = None,
        logger_name: str | None = "keyguard.host",
    ) -> None:
        self.registry = registry or KeymapRegistry(logger_name=logger_name)
        self.hooks = HookRegistry()
        self.logger = telemetry.get_logger(logger_name)
        self.messages: List[str] = []
        self._logger_name = logger_name
        self._modes: Dict[str, MinorMode] = {}
        self._global_modes: List[str] = []
        self._contexts: Dict[str, EditorContext] = {
            DEFAULT_CONTEXT: EditorContext(DEFAULT_CONTEXT)
        }
        self._current = DEFAULT_CONTEXT
        self._interceptors: List[BindInterceptor] = []
        self._overlay_sources: List[OverlaySource] = []

    # -- contexts -------------------------------------------------------

    @property
    def global_map(self) -> Keymap:
        return self.registry.global_map

    @property
    def context_id(self) -> str:
        return self._current

    @property
    def current_context(self) -> EditorContext:
        return self._contexts[self._current]

    def context(self, name: str | None = None) -> EditorContext:
        key = name or self._current
        try:
            return self._contexts[key]
        except KeyError:
            raise KeyError(f"Unknown context '{key}'") from None

    def create_context(
        self,
        name: str,
        *,
        major_mode: str = "fundamental-mode",
        local_map: Keymap | None = None,
    ) -> EditorContext:
        if name in self._contexts:
            raise ValueError(f"Context '{name}' already exists")
        ctx = EditorContext(name, major_mode=major_mode, local_map=local_map)
        self._contexts[name] = ctx
        return ctx

    def switch_context(self, name: str) -> EditorContext:
        ctx = self.context(name)
        if name == self._current:
            return ctx
        self._current = name
        telemetry.record_event(
            "host.context_switch",
            level="debug",
            data={"context": name},
            logger_name=self._logger_name,
        )
        self.hooks.run(CONTEXT_CHANGED, name)
        return ctx

    def set_major_mode(
        self,
        major_mode: str,
        *,
        local_map: Keymap | None = None,
        context: str | None = None,
    ) -> EditorContext:
        ctx = self.context(context)
        ctx.major_mode = major_mode
        ctx.local_map = local_map
        self.hooks.run(CONTEXT_CHANGED, ctx.name)
        return ctx

    # -- minor modes ----------------------------------------------------

    def define_minor_mode(
        self,
        name: str,
        keymap: Keymap | str | None = None,
        *,
        is_global: bool = False,
    ) -> MinorMode:
        if name in self._modes:
            raise ValueError(f"Mode '{name}' already defined")
        if isinstance(keymap, Keymap):
            table = keymap
            if table.name and self.registry.name_of(table) is None:
                self.registry.register(table)
        else:
            map_name = keymap or f"{name}-map"
            try:
                table = self.registry.get(map_name)
            except KeyError:
                table = self.registry.create(map_name)
        mode = MinorMode(name, table, is_global=is_global)
        self._modes[name] = mode
        return mode

    def minor_mode(self, name: str) -> MinorMode:
        try:
            return self._modes[name]
        except KeyError:
            raise KeyError(f"Unknown mode '{name}'") from None

    def _mode_list(self, mode: MinorMode, context: str | None) -> List[str]:
        return self._global_modes if mode.is_global else self.context(context).minor_modes

    def enable_minor_mode(self, name: str, *, context: str | None = None) -> None:
        mode = self.minor_mode(name)
        enabled = self._mode_list(mode, context)
        if name in enabled:
            return
        enabled.append(name)
        self.hooks.run(
            mode_hook(name),
            {"mode": name, "enabled": True, "context": context or self._current},
        )

    def disable_minor_mode(self, name: str, *, context: str | None = None) -> None:
        mode = self.minor_mode(name)
        enabled = self._mode_list(mode, context)
        if name not in enabled:
            return
        enabled.remove(name)
        self.hooks.run(
            mode_hook(name),
            {"mode": name, "enabled": False, "context": context or self._current},
        )

    def is_mode_active(self, name: str, *, context: str | None = None) -> bool:
        mode = self.minor_mode(name)
        return name in self._mode_list(mode, context)

    def minor_mode_for_keymap(self, keymap: Keymap) -> str | None:
        for mode in self._modes.values():
            if mode.keymap is keymap:
                return mode.name
        return None

    # -- keymap primitives ---------------------------------------------

    def resolve_map(self, ref: MapRef | None) -> Keymap:
        return self.registry.resolve(ref)

    def keymap_label(self, keymap: Keymap) -> str:
        return self.registry.name_of(keymap) or keymap.name or repr(keymap)

    def active_keymaps(self, context: str | None = None) -> Sequence[Keymap]:
        ctx = self.context(context)
        maps: List[Keymap] = [
            self._modes[name].keymap for name in reversed(ctx.minor_modes)
        ]
        maps.extend(self._modes[name].keymap for name in reversed(self._global_modes))
        if ctx.local_map is not None:
            maps.append(ctx.local_map)
        maps.append(self.global_map)
        return maps

    def lookup_key(self, keymap: Keymap, key: KeySequence | str) -> object | None:
        return keymap.lookup(key)

    def command_remapping(self, keymap: Keymap, command: object) -> str | None:
        return keymap.remapping(command)

    def bind_raw(
        self, keymap: Keymap, key: KeySequence | str, value: object
    ) -> BindRecord:
        return keymap.define(key, value)

    def revert_bind(self, record: BindRecord) -> None:
        record.keymap.revert(record)

    def define_key(self, keymap: Keymap, key: KeySequence | str, value: object) -> bool:
        """Bind through the interceptor chain; returns whether the bind applied."""

        sequence = coerce_sequence(key)

        def apply() -> bool:
            self.bind_raw(keymap, sequence, value)
            self.hooks.run(
                KEYMAP_CHANGED,
                {"keymap": self.keymap_label(keymap), "key": sequence, "value": value},
            )
            return True

        def wrap(
            interceptor: BindInterceptor, proceed: Callable[[], bool]
        ) -> Callable[[], bool]:
            return lambda: interceptor(keymap, sequence, value, proceed)

        call: Callable[[], bool] = apply
        for interceptor in reversed(self._interceptors):
            call = wrap(interceptor, call)
        return bool(call())

    def global_set_key(self, key: KeySequence | str, value: object) -> bool:
        return self.define_key(self.global_map, key, value)

    def local_set_key(self, key: KeySequence | str, value: object) -> bool:
        ctx = self.current_context
        if ctx.local_map is None:
            ctx.local_map = Keymap(f"{ctx.name}-local-map")
        return self.define_key(ctx.local_map, key, value)

    # -- interception and overlays -------------------------------------

    def add_interceptor(self, interceptor: BindInterceptor) -> None:
        if interceptor not in self._interceptors:
            self._interceptors.append(interceptor)

    def remove_interceptor(self, interceptor: BindInterceptor) -> None:
        if interceptor in self._interceptors:
            self._interceptors.remove(interceptor)

    @property
    def interceptors(self) -> tuple[BindInterceptor, ...]:
        return tuple(self._interceptors)

    def add_overlay_source(self, source: OverlaySource) -> None:
        if source not in self._overlay_sources:
            self._overlay_sources.insert(0, source)

    def remove_overlay_source(self, source: OverlaySource) -> None:
        if source in self._overlay_sources:
            self._overlay_sources.remove(source)

    # -- key resolution -------------------------------------------------

    def key_binding(
        self, key: KeySequence | str, *, context: str | None = None
    ) -> object | None:
        """Command ``key`` runs in ``context`` after overlays and remapping."""

        sequence = coerce_sequence(key)
        ctx = self.context(context)
        maps = self.active_keymaps(ctx.name)
        for source in self._overlay_sources:
            table = source(ctx.name)
            if table is not None and sequence in table:
                value = table[sequence]
                return None if value is UNBOUND else self._remap(value, maps)
        for keymap in maps:
            value = keymap.lookup(sequence)
            if value is not None:
                return self._remap(value, maps)
        return None

    def _remap(self, value: object, maps: Sequence[Keymap]) -> object:
        for keymap in maps:
            target = keymap.remapping(value)
            if target is not None:
                return target
        return value

    def message(self, text: str) -> None:
        self.messages.append(text)
        self.logger.info(text)
        self.hooks.run(MESSAGE, text)


__all__ = ["DEFAULT_CONTEXT", "EditorContext", "EditorHost", "MinorMode"]
