from __future__ import annotations

from typing import List, Sequence

from keyguard.adapters.textual import (
    TextualKeyguardAdapter,
    TextualUIHooks,
    textual_key_to_stroke,
)
from keyguard.host import EditorHost
from keyguard.keymaps import Keymap
from keyguard.protection import (
    ProtectedBindingRow,
    ProtectedBindings,
    ProtectionSettings,
)


def make_adapter(
    verbosity: str = "notify",
) -> tuple[TextualKeyguardAdapter, List[str], List[str], List[Sequence[ProtectedBindingRow]]]:
    host = EditorHost()
    host.global_set_key("M-.", "find-def")
    host.global_set_key("C-x C-s", "save-buffer")
    protection = ProtectedBindings(
        host, ProtectionSettings(rules=("M-.", "C-x C-s"), verbosity=verbosity)
    )
    protection.enable()
    statuses: List[str] = []
    notices: List[str] = []
    tables: List[Sequence[ProtectedBindingRow]] = []
    hooks = TextualUIHooks(
        update_status=statuses.append,
        notify=notices.append,
        show_bindings=tables.append,
    )
    return TextualKeyguardAdapter(host, protection, hooks), statuses, notices, tables


def test_textual_key_translation() -> None:
    assert textual_key_to_stroke("ctrl+x").token == "C-x"
    assert textual_key_to_stroke("alt+full_stop", ".").token == "M-."
    assert textual_key_to_stroke("tab").token == "<tab>"
    assert textual_key_to_stroke("shift+tab").token == "S-<tab>"
    assert textual_key_to_stroke("f5").token == "<f5>"
    assert textual_key_to_stroke("a", "a").token == "a"


def test_adapter_resolves_prefix_sequences() -> None:
    adapter, statuses, _, _ = make_adapter()

    prefix = adapter.handle_textual_key("ctrl+x")
    assert isinstance(prefix, Keymap)
    assert statuses[-1] == "C-x-"

    command = adapter.handle_textual_key("ctrl+s")
    assert command == "save-buffer"
    assert statuses[-1] == "C-x C-s runs save-buffer"
    assert adapter.pending == ()


def test_adapter_reports_undefined_keys() -> None:
    adapter, statuses, _, _ = make_adapter()

    assert adapter.handle_textual_key("ctrl+z") is None
    assert statuses[-1] == "C-z is undefined"


def test_adapter_surfaces_rejected_bind() -> None:
    adapter, statuses, notices, _ = make_adapter()

    applied = adapter.bind(adapter.host.global_map, "M-.", "other-cmd")

    assert applied is False
    assert statuses[-1] == "M-. in global-map: rejected"
    assert len(notices) == 1
    assert "M-." in notices[0]


def test_adapter_catches_fail_loud_conflicts() -> None:
    adapter, statuses, notices, _ = make_adapter(verbosity="fail-loud")

    applied = adapter.bind("global-map", "C-x", "kill-region")

    assert applied is False
    assert notices and "C-x C-s" in notices[0]
    assert adapter.host.key_binding("C-x C-s") == "save-buffer"


def test_adapter_refreshes_binding_rows() -> None:
    adapter, statuses, _, tables = make_adapter()
    assert [row.key for row in tables[-1]] == ["M-.", "C-x C-s"]

    assert adapter.toggle_protection() is False
    assert statuses[-1] == "protection off"
    assert adapter.bind("global-map", "M-.", "other-cmd") is True
    assert tables[-1][0].command == "other-cmd"
