"""Bind interceptor that rejects binds overriding a protected rule."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from keyguard.host import KeymapHost
from keyguard.keymaps import Keymap, KeySequence
from keyguard.runtime.telemetry import span

from .config import BindingRule
from .resolve import effective_binding, rule_applies
from .state import Conflict, ProtectionState, ReentrancyFlag


class BindGuard:
    """Checks every bind attempt against the protected rules.

    Instances are registered with ``host.add_interceptor`` and called as
    ``guard(keymap, key, value, proceed)``. A conflicting attempt is never
    applied; ``on_conflict`` decides how it is reported and may raise.
    """

    def __init__(
        self,
        host: KeymapHost,
        state: ProtectionState,
        *,
        rules: Callable[[], Sequence[BindingRule]],
        on_conflict: Callable[[Conflict], None],
        after_bind: Callable[[], object],
        logger_name: str | None = None,
    ) -> None:
        self._host = host
        self._state = state
        self._rules = rules
        self._on_conflict = on_conflict
        self._after_bind = after_bind
        self._logger_name = logger_name
        self._checking = ReentrancyFlag("guard-checking")

    def __call__(
        self,
        keymap: Keymap,
        key: KeySequence,
        value: object,
        proceed: Callable[[], bool],
    ) -> bool:
        return self.attempt_bind(keymap, key, value, proceed)

    @property
    def checking(self) -> bool:
        return self._checking.active

    def attempt_bind(
        self,
        keymap: Keymap,
        key: KeySequence,
        value: object,
        proceed: Callable[[], bool],
    ) -> bool:
        if (
            not self._state.enabled
            or self._state.guard_suspended.active
            or self._checking.active
        ):
            return proceed()

        with span(
            "protection::guard",
            logger_name=self._logger_name,
            component="protection",
            metadata={"key": key.describe(), "keymap": self._host.keymap_label(keymap)},
        ) as handle:
            with self._checking.hold():
                conflict = self.find_conflict(keymap, key, value)
            if conflict is not None:
                handle.add_metadata("conflict", conflict.rule.describe())
                self._on_conflict(conflict)
                return False

        applied = proceed()
        if applied:
            self._after_bind()
        return applied

    def find_conflict(
        self, keymap: Keymap, key: KeySequence, value: object
    ) -> Optional[Conflict]:
        """First rule whose resolved command the attempted bind would change."""

        for rule in self._rules():
            target = self._host.resolve_map(rule.target)
            if not rule_applies(self._host, rule, target):
                continue
            existing = effective_binding(self._host, target, rule.key)
            if existing is None:
                continue
            after = self._probe(target, rule.key, keymap, key, value)
            if after != existing:
                return Conflict(
                    rule=rule,
                    keymap=self._host.keymap_label(target),
                    resolved=existing,
                    attempted_keymap=self._host.keymap_label(keymap),
                    attempted_key=key,
                    attempted_value=value,
                )
        return None

    def _probe(
        self,
        target: Keymap,
        rule_key: KeySequence,
        keymap: Keymap,
        key: KeySequence,
        value: object,
    ) -> Optional[str]:
        # Raw writes bypass interceptors and hooks, so nothing observes the probe.
        record = self._host.bind_raw(keymap, key, value)
        try:
            return effective_binding(self._host, target, rule_key)
        finally:
            self._host.revert_bind(record)


__all__ = ["BindGuard"]
