"""Textual bridge: key dispatch through the host and conflict notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from keyguard.host import CONTEXT_CHANGED, MESSAGE, EditorHost
from keyguard.keymaps import Keymap, KeySequence, KeyStroke
from keyguard.protection import (
    ProtectedBindingError,
    ProtectedBindingRow,
    ProtectedBindings,
)

TEXTUAL_MODIFIERS: Dict[str, str] = {
    "ctrl": "C",
    "alt": "M",
    "meta": "M",
    "shift": "S",
    "super": "s",
    "hyper": "H",
}

NAMED_KEYS = {
    "tab",
    "enter",
    "escape",
    "backspace",
    "delete",
    "insert",
    "home",
    "end",
    "pageup",
    "pagedown",
    "up",
    "down",
    "left",
    "right",
    "space",
}


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


def textual_key_to_stroke(key: str, character: Optional[str] = None) -> KeyStroke:
    """Translate a Textual key name (``ctrl+x``, ``shift+tab``) to a stroke."""

    *modifier_names, base = key.split("+") if key != "+" else ["+"]
    modifiers = tuple(
        TEXTUAL_MODIFIERS[name] for name in modifier_names if name in TEXTUAL_MODIFIERS
    )
    if base in NAMED_KEYS or (len(base) > 1 and base[0] == "f" and base[1:].isdigit()):
        return KeyStroke(f"<{base}>", modifiers)
    if len(base) == 1:
        return KeyStroke(base, modifiers)
    if character and len(character) == 1 and character.isprintable():
        return KeyStroke(character, modifiers)
    return KeyStroke(f"<{base}>", modifiers)


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_status: Callable[[str], None]
    notify: Callable[[str], None] = _noop
    show_bindings: Callable[[Sequence[ProtectedBindingRow]], None] = _noop
    log: Callable[[str], None] = _noop


class TextualKeyguardAdapter:
    """Feeds Textual key events to an ``EditorHost`` and mirrors protection state."""

    def __init__(
        self,
        host: EditorHost,
        protection: ProtectedBindings,
        hooks: TextualUIHooks,
    ) -> None:
        self.host = host
        self.protection = protection
        self.hooks = hooks
        self._pending: List[KeyStroke] = []
        host.hooks.add(MESSAGE, self._handle_message)
        host.hooks.add(CONTEXT_CHANGED, self._handle_context_changed)
        self._refresh_bindings()

    def close(self) -> None:
        self.host.hooks.remove(MESSAGE, self._handle_message)
        self.host.hooks.remove(CONTEXT_CHANGED, self._handle_context_changed)

    @property
    def pending(self) -> tuple[KeyStroke, ...]:
        return tuple(self._pending)

    def handle_textual_key(
        self, key: str, *, character: Optional[str] = None
    ) -> object | None:
        """Resolve the key (plus any pending prefix) and report what it runs."""

        self._pending.append(textual_key_to_stroke(key, character))
        sequence = KeySequence(tuple(self._pending))
        command = self.host.key_binding(sequence)
        if isinstance(command, Keymap):
            self.hooks.update_status(f"{sequence.describe()}-")
            return command

        self._pending.clear()
        if command is None:
            self.hooks.update_status(f"{sequence.describe()} is undefined")
        else:
            label = command if isinstance(command, str) else repr(command)
            self.hooks.update_status(f"{sequence.describe()} runs {label}")
        self.hooks.log(f"key -> {sequence.describe()} command={command!r}")
        return command

    def bind(self, keymap: Keymap | str, key: KeySequence | str, command: object) -> bool:
        """Attempt a bind the way user configuration would; reports rejections."""

        table = keymap if isinstance(keymap, Keymap) else self.host.registry.get(keymap)
        try:
            applied = self.host.define_key(table, key, command)
        except ProtectedBindingError as exc:
            self.hooks.notify(str(exc))
            applied = False
        verdict = "bound" if applied else "rejected"
        self.hooks.update_status(f"{key} in {self.host.keymap_label(table)}: {verdict}")
        self._refresh_bindings()
        return applied

    def toggle_protection(self) -> bool:
        enabled = self.protection.toggle()
        self.hooks.update_status(f"protection {'on' if enabled else 'off'}")
        self._refresh_bindings()
        return enabled

    def _handle_message(self, payload: object | None) -> None:
        if isinstance(payload, str):
            self.hooks.notify(payload)

    def _handle_context_changed(self, payload: object | None) -> None:
        self._pending.clear()
        self._refresh_bindings()

    def _refresh_bindings(self) -> None:
        self.hooks.show_bindings(self.protection.describe())


__all__ = [
    "TextualKeyguardAdapter",
    "TextualUIHooks",
    "textual_key_to_stroke",
]
