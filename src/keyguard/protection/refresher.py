"""Rebuilds the per-context overlay that keeps protected bindings on top."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence

from keyguard.host import UNBOUND, KeymapHost
from keyguard.keymaps import KeySequence
from keyguard.runtime import telemetry

from .config import BindingRule
from .resolve import effective_binding, rule_applies
from .state import OverlayTable, ProtectionState, ReentrancyFlag


class PrecedenceRefresher:
    """Computes ``OverlayTable`` instances from the rules and installs them."""

    def __init__(
        self,
        host: KeymapHost,
        state: ProtectionState,
        *,
        rules: Callable[[], Sequence[BindingRule]],
        logger_name: str | None = None,
    ) -> None:
        self._host = host
        self._state = state
        self._rules = rules
        self._logger_name = logger_name
        self._refreshing = ReentrancyFlag("refreshing")

    @property
    def refreshing(self) -> bool:
        return self._refreshing.active

    def refresh(self, context: Optional[str] = None) -> Optional[OverlayTable]:
        """Replace ``context``'s overlay (default: current context).

        Returns the installed table, or ``None`` when the feature is disabled.
        """

        if not self._state.enabled:
            telemetry.record_event(
                "protection.refresh_skipped",
                level="info",
                data={"reason": "disabled"},
                logger_name=self._logger_name,
            )
            return None

        context_id = context or self._host.context_id
        if self._refreshing.active:
            return self._state.overlays.get(context_id)

        with telemetry.span(
            "protection::refresh",
            logger_name=self._logger_name,
            component="protection",
            metadata={"context": context_id},
        ) as handle:
            with self._refreshing.hold(), self._state.guard_suspended.hold():
                table = self.build(context_id)
                self._state.install(table)
            handle.add_metadata("entries", len(table))
        return table

    def build(self, context: str) -> OverlayTable:
        entries: Dict[KeySequence, object] = {}
        for rule in self._rules():
            target = self._host.resolve_map(rule.target)
            if not rule_applies(self._host, rule, target, context):
                continue
            if rule.key in entries:
                continue
            resolved = effective_binding(self._host, target, rule.key)
            entries[rule.key] = resolved if resolved is not None else UNBOUND
        return OverlayTable(context, entries)


__all__ = ["PrecedenceRefresher"]
