"""Resolution helpers shared by the guard and the refresher."""

from __future__ import annotations

from typing import Optional

from keyguard.host import KeymapHost
from keyguard.keymaps import Keymap, KeySequence, is_command

from .config import BindingRule


def effective_binding(
    host: KeymapHost, keymap: Keymap, key: KeySequence
) -> Optional[str]:
    """Command ``key`` runs in ``keymap`` after one level of remapping.

    Anything that is not a named command (prefix keymaps, anonymous
    callables, unbound keys) resolves to ``None``.
    """

    value = host.lookup_key(keymap, key)
    if not is_command(value):
        return None
    remapped = host.command_remapping(keymap, value)
    return remapped or str(value)


def rule_applies(
    host: KeymapHost,
    rule: BindingRule,
    keymap: Keymap,
    context: Optional[str] = None,
) -> bool:
    """Global rules always apply; others only while their keymap is active."""

    if rule.is_global:
        return True
    return any(active is keymap for active in host.active_keymaps(context))


__all__ = ["effective_binding", "rule_applies"]
