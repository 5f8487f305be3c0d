"""Named hook lists the host runs on context and mode transitions."""

from __future__ import annotations

from typing import Callable, Dict

HookFunction = Callable[[object], None]

CONTEXT_CHANGED = "context.changed"
KEYMAP_CHANGED = "keymap.changed"
MESSAGE = "message"


def mode_hook(mode_name: str) -> str:
    """Hook run when ``mode_name`` is enabled or disabled."""

    return f"mode.{mode_name}.toggled"


class HookRegistry:
    """Minimal hook registry; callbacks run in registration order."""

    def __init__(self) -> None:
        self._hooks: Dict[str, list[HookFunction]] = {}

    def add(self, hook: str, callback: HookFunction) -> None:
        callbacks = self._hooks.setdefault(hook, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def remove(self, hook: str, callback: HookFunction) -> None:
        callbacks = self._hooks.get(hook)
        if not callbacks or callback not in callbacks:
            return
        callbacks.remove(callback)
        if not callbacks:
            del self._hooks[hook]

    def run(self, hook: str, payload: object | None = None) -> None:
        # Copy so callbacks may unregister themselves while running.
        for callback in list(self._hooks.get(hook, ())):
            callback(payload)

    def callbacks(self, hook: str) -> tuple[HookFunction, ...]:
        return tuple(self._hooks.get(hook, ()))


__all__ = [
    "CONTEXT_CHANGED",
    "KEYMAP_CHANGED",
    "MESSAGE",
    "HookFunction",
    "HookRegistry",
    "mode_hook",
]
