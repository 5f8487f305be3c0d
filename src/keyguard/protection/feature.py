"""The user-facing toggle wiring guard, refresher and host listeners together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from keyguard.host import CONTEXT_CHANGED, KeymapHost, mode_hook
from keyguard.keymaps import KeySequence, MapRef
from keyguard.runtime import telemetry

from .config import BindingRule, ProtectionSettings, RuleLike, Verbosity
from .errors import ProtectedBindingError
from .guard import BindGuard
from .refresher import PrecedenceRefresher
from .resolve import effective_binding, rule_applies
from .state import Conflict, OverlayTable, ProtectionState


@dataclass(frozen=True, slots=True)
class ProtectedBindingRow:
    """One line of ``ProtectedBindings.describe()``."""

    key: str
    keymap: str
    command: Optional[str]
    active: bool


class ProtectedBindings:
    """Keeps protected ``(key, keymap)`` bindings from being overridden.

    ``enable()`` installs a ``BindGuard`` on the host's bind primitive and an
    overlay source consulted before every other keymap, then keeps the
    overlay current by refreshing on context changes and on toggles of the
    minor modes that own a protected keymap. ``disable()`` undoes all of it.
    """

    def __init__(
        self, host: KeymapHost, settings: ProtectionSettings | None = None
    ) -> None:
        self.host = host
        self.settings = settings or ProtectionSettings()
        self.state = ProtectionState()
        self.refresher = PrecedenceRefresher(
            host,
            self.state,
            rules=lambda: self.settings.rules,
            logger_name=self.settings.logger_name,
        )
        self.guard = BindGuard(
            host,
            self.state,
            rules=lambda: self.settings.rules,
            on_conflict=self._report_conflict,
            after_bind=self.refresher.refresh,
            logger_name=self.settings.logger_name,
        )
        self._mode_hooks: List[str] = []

    @property
    def enabled(self) -> bool:
        return self.state.enabled

    @property
    def rules(self) -> tuple[BindingRule, ...]:
        return self.settings.rules

    # -- lifecycle ------------------------------------------------------

    def enable(self) -> None:
        if self.state.enabled:
            return
        self.state.enabled = True
        try:
            self.host.add_interceptor(self.guard)
            self.host.add_overlay_source(self.state.overlay_for)
            self.refresher.refresh()
            self.host.hooks.add(CONTEXT_CHANGED, self._on_context_changed)
            self._attach_mode_hooks()
        except Exception:
            self.disable()
            raise
        telemetry.record_event(
            "protection.enabled",
            data={"rules": len(self.settings.rules), "mode_hooks": self._mode_hooks},
            logger_name=self.settings.logger_name,
        )

    def disable(self) -> None:
        if not self.state.enabled:
            return
        self.host.hooks.remove(CONTEXT_CHANGED, self._on_context_changed)
        self._detach_mode_hooks()
        self.host.remove_interceptor(self.guard)
        self.host.remove_overlay_source(self.state.overlay_for)
        self.state.enabled = False
        self.state.clear()
        telemetry.record_event(
            "protection.disabled", logger_name=self.settings.logger_name
        )

    def toggle(self, enable: Optional[bool] = None) -> bool:
        target = not self.state.enabled if enable is None else enable
        if target:
            self.enable()
        else:
            self.disable()
        return self.state.enabled

    def refresh(self, context: Optional[str] = None) -> Optional[OverlayTable]:
        """Rebuild the overlay on demand; ``None`` while disabled."""

        return self.refresher.refresh(context)

    def overlay(self, context: Optional[str] = None) -> Optional[OverlayTable]:
        return self.state.overlay_for(context or self.host.context_id)

    # -- configuration --------------------------------------------------

    def set_rules(self, rules: Iterable[RuleLike]) -> None:
        """Replace the rule set; while enabled, unknown keymaps leave it untouched."""

        settings = self.settings.with_rules(rules)
        if not self.state.enabled:
            self.settings = settings
            return
        for rule in settings.rules:
            self.host.resolve_map(rule.target)
        previous, self.settings = self.settings, settings
        try:
            self._rewire()
        except Exception:
            self.settings = previous
            self._rewire()
            raise

    def _rewire(self) -> None:
        self._detach_mode_hooks()
        self._attach_mode_hooks()
        self.refresher.refresh()

    def set_verbosity(self, verbosity: Union[str, Verbosity]) -> None:
        self.settings = self.settings.with_verbosity(verbosity)

    def protect(
        self, key: KeySequence | str, keymap: MapRef | str | None = None
    ) -> BindingRule:
        rule = BindingRule.coerce((key, keymap))
        if rule not in self.settings.rules:
            self.set_rules((*self.settings.rules, rule))
        return rule

    def unprotect(
        self, key: KeySequence | str, keymap: MapRef | str | None = None
    ) -> bool:
        rule = BindingRule.coerce((key, keymap))
        if rule not in self.settings.rules:
            return False
        self.set_rules(existing for existing in self.settings.rules if existing != rule)
        return True

    def describe(self, context: Optional[str] = None) -> list[ProtectedBindingRow]:
        rows: list[ProtectedBindingRow] = []
        for rule in self.settings.rules:
            target = self.host.resolve_map(rule.target)
            rows.append(
                ProtectedBindingRow(
                    key=rule.key.describe(),
                    keymap=self.host.keymap_label(target),
                    command=effective_binding(self.host, target, rule.key),
                    active=rule_applies(self.host, rule, target, context),
                )
            )
        return rows

    # -- listeners ------------------------------------------------------

    def _attach_mode_hooks(self) -> None:
        for rule in self.settings.rules:
            if rule.is_global:
                continue
            keymap = self.host.resolve_map(rule.target)
            mode = self.host.minor_mode_for_keymap(keymap)
            if mode is None or mode in self._mode_hooks:
                continue
            self.host.hooks.add(mode_hook(mode), self._on_mode_toggled)
            self._mode_hooks.append(mode)

    def _detach_mode_hooks(self) -> None:
        for mode in self._mode_hooks:
            self.host.hooks.remove(mode_hook(mode), self._on_mode_toggled)
        self._mode_hooks = []

    def _on_context_changed(self, payload: object | None) -> None:
        self.refresher.refresh(payload if isinstance(payload, str) else None)

    def _on_mode_toggled(self, payload: object | None) -> None:
        context = payload.get("context") if isinstance(payload, dict) else None
        self.refresher.refresh(context if isinstance(context, str) else None)

    # -- reporting ------------------------------------------------------

    def _report_conflict(self, conflict: Conflict) -> None:
        verbosity = self.settings.verbosity
        telemetry.record_event(
            "protection.conflict",
            level="debug" if verbosity is Verbosity.SILENT else "warning",
            data={
                "key": conflict.rule.key.describe(),
                "keymap": conflict.keymap,
                "resolved": conflict.resolved,
                "attempted_keymap": conflict.attempted_keymap,
            },
            logger_name=self.settings.logger_name,
        )
        if verbosity is Verbosity.NOTIFY:
            self.host.message(conflict.describe())
        elif verbosity is Verbosity.FAIL_LOUD:
            raise ProtectedBindingError(conflict)


__all__ = ["ProtectedBindingRow", "ProtectedBindings"]
