"""Executable Textual app demonstrating protected keybindings."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.widgets import DataTable, Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use keyguard.adapters.textual.app"
    ) from exc

from keyguard.host import EditorHost
from keyguard.protection import (
    ProtectedBindingRow,
    ProtectedBindings,
    ProtectionSettings,
    Verbosity,
)
from keyguard.runtime import telemetry

from .controller import TextualKeyguardAdapter, TextualUIHooks

DEMO_RULES = ("M-.", "<tab>@completion-mode-map", "C-x C-s")


def create_demo_host() -> EditorHost:
    """Host with a few global bindings and a completion minor mode."""

    host = EditorHost()
    host.global_set_key("M-.", "find-definition")
    host.global_set_key("C-x C-s", "save-buffer")
    host.global_set_key("<tab>", "indent-for-tab-command")
    completion = host.define_minor_mode("completion-mode")
    host.bind_raw(completion.keymap, "<tab>", "complete-at-point")
    host.create_context("notes.txt", major_mode="text-mode")
    return host


@dataclass
class UIState:
    status_text: str = ""


class KeyguardApp(App[None]):
    """Shows protected bindings and lets the user try to override them."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#bindings {
		height: 1fr;
		border: round $accent;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("f2", "toggle_protection", "Protect on/off"),
        ("f3", "override", "Rebind M-."),
        ("f4", "toggle_completion", "completion-mode"),
        ("f5", "switch_context", "Switch buffer"),
    ]

    def __init__(
        self,
        *,
        settings: ProtectionSettings | None = None,
        enable: bool = True,
    ) -> None:
        super().__init__()
        self._state = UIState()
        self._settings = settings or ProtectionSettings(rules=DEMO_RULES)
        self._enable = enable
        self.host: EditorHost | None = None
        self.protection: ProtectedBindings | None = None
        self.adapter: TextualKeyguardAdapter | None = None
        self._table: DataTable | None = None
        self._status_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        self._table = DataTable(id="bindings")
        yield self._table
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        if self._table is not None:
            self._table.add_columns("Key", "Keymap", "Command", "Active")
        self.host = create_demo_host()
        self.protection = ProtectedBindings(self.host, self._settings)
        if self._enable:
            self.protection.enable()
        hooks = TextualUIHooks(
            update_status=self._update_status,
            notify=self._notify,
            show_bindings=self._show_bindings,
        )
        self.adapter = TextualKeyguardAdapter(self.host, self.protection, hooks)

    def on_key(self, event: events.Key) -> None:
        if not self.adapter or event.key in {"ctrl+q", "f2", "f3", "f4", "f5"}:
            return
        self.adapter.handle_textual_key(event.key, character=event.character)
        event.stop()

    def action_toggle_protection(self) -> None:
        if self.adapter:
            self.adapter.toggle_protection()

    def action_override(self) -> None:
        if self.adapter and self.host:
            self.adapter.bind(self.host.global_map, "M-.", "xref-find-apropos")

    def action_toggle_completion(self) -> None:
        if not self.host:
            return
        if self.host.is_mode_active("completion-mode"):
            self.host.disable_minor_mode("completion-mode")
        else:
            self.host.enable_minor_mode("completion-mode")
        if self.adapter:
            self.adapter.handle_textual_key("tab")

    def action_switch_context(self) -> None:
        if not self.host:
            return
        target = "notes.txt" if self.host.context_id != "notes.txt" else "*scratch*"
        self.host.switch_context(target)
        self._update_status(f"buffer {target}")

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _notify(self, message: str) -> None:
        self.notify(message, title="keyguard", severity="warning")

    def _show_bindings(self, rows: Sequence[ProtectedBindingRow]) -> None:
        if self._table is None:
            return
        self._table.clear()
        for row in rows:
            self._table.add_row(
                row.key, row.keymap, row.command or "-", "yes" if row.active else "no"
            )


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the keyguard Textual demo.")
    parser.add_argument(
        "--rule",
        action="append",
        dest="rules",
        help="Protected binding as KEY or KEY@KEYMAP (repeatable)",
    )
    parser.add_argument(
        "--verbosity",
        choices=[member.value for member in Verbosity],
        default=None,
        help="How rejected binds are reported (default: KEYGUARD_VERBOSITY or notify)",
    )
    parser.add_argument(
        "--disabled",
        action="store_true",
        help="Start with protection turned off",
    )
    parser.add_argument(
        "--log-preset",
        choices=telemetry.LOG_PRESETS,
        default="quiet",
        help="Telemetry preset; 'quiet' keeps log lines off the terminal (default)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(preset=args.log_preset)
    settings = ProtectionSettings.from_env()
    if args.rules:
        settings = settings.with_rules(args.rules)
    elif not settings.rules:
        settings = settings.with_rules(DEMO_RULES)
    if args.verbosity:
        settings = settings.with_verbosity(args.verbosity)
    app = KeyguardApp(settings=settings, enable=not args.disabled)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
