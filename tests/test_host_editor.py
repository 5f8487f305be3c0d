from __future__ import annotations

import pytest

from keyguard.host import (
    CONTEXT_CHANGED,
    KEYMAP_CHANGED,
    UNBOUND,
    EditorHost,
    mode_hook,
)
from keyguard.keymaps import KeySequence, MapRef, UnknownKeymapError


def make_host() -> EditorHost:
    host = EditorHost()
    host.global_set_key("C-k", "global-cmd")
    return host


def test_lookup_order_modes_over_local_over_global() -> None:
    host = make_host()
    assert host.key_binding("C-k") == "global-cmd"

    host.local_set_key("C-k", "local-cmd")
    assert host.key_binding("C-k") == "local-cmd"

    mode_a = host.define_minor_mode("mode-a")
    mode_b = host.define_minor_mode("mode-b")
    host.bind_raw(mode_a.keymap, "C-k", "mode-a-cmd")
    host.bind_raw(mode_b.keymap, "C-k", "mode-b-cmd")
    host.enable_minor_mode("mode-a")
    host.enable_minor_mode("mode-b")
    assert host.key_binding("C-k") == "mode-b-cmd"

    host.disable_minor_mode("mode-b")
    assert host.key_binding("C-k") == "mode-a-cmd"


def test_minor_modes_are_per_context_unless_global() -> None:
    host = make_host()
    local_mode = host.define_minor_mode("local-mode")
    global_mode = host.define_minor_mode("global-mode", is_global=True)
    host.create_context("other")

    host.enable_minor_mode("local-mode")
    host.enable_minor_mode("global-mode")

    assert local_mode.keymap in host.active_keymaps()
    assert local_mode.keymap not in host.active_keymaps("other")
    assert global_mode.keymap in host.active_keymaps("other")
    assert host.active_keymaps("other")[-1] is host.global_map


def test_overlay_source_wins_and_unbound_stops_lookup() -> None:
    host = make_host()
    tables = {"*scratch*": {KeySequence.parse("C-k"): UNBOUND}}

    host.add_overlay_source(tables.get)
    assert host.key_binding("C-k") is None

    tables["*scratch*"] = {KeySequence.parse("C-k"): "overlay-cmd"}
    assert host.key_binding("C-k") == "overlay-cmd"

    host.remove_overlay_source(tables.get)
    assert host.key_binding("C-k") == "global-cmd"


def test_key_binding_applies_remapping() -> None:
    host = make_host()
    host.global_set_key("M-.", "find-def")
    host.global_set_key(KeySequence.remap("find-def"), "xref-find")

    assert host.key_binding("M-.") == "xref-find"
    assert host.command_remapping(host.global_map, "find-def") == "xref-find"


def test_interceptor_can_veto_bind() -> None:
    host = make_host()
    changes: list[object] = []
    host.hooks.add(KEYMAP_CHANGED, changes.append)

    def veto(keymap, key, value, proceed):
        return False if value == "forbidden" else proceed()

    host.add_interceptor(veto)

    assert host.global_set_key("C-k", "forbidden") is False
    assert host.key_binding("C-k") == "global-cmd"
    assert host.global_set_key("C-k", "allowed") is True
    assert host.key_binding("C-k") == "allowed"
    assert len(changes) == 1

    host.remove_interceptor(veto)
    assert host.interceptors == ()


def test_interceptors_run_in_registration_order() -> None:
    host = make_host()
    calls: list[str] = []

    def outer(keymap, key, value, proceed):
        calls.append("outer")
        return proceed()

    def inner(keymap, key, value, proceed):
        calls.append("inner")
        return proceed()

    host.add_interceptor(outer)
    host.add_interceptor(inner)
    host.global_set_key("C-j", "newline")

    assert calls == ["outer", "inner"]


def test_raw_bind_fires_no_hooks() -> None:
    host = make_host()
    changes: list[object] = []
    host.hooks.add(KEYMAP_CHANGED, changes.append)

    record = host.bind_raw(host.global_map, "C-k", "temporary")
    host.revert_bind(record)

    assert changes == []
    assert host.key_binding("C-k") == "global-cmd"


def test_context_and_mode_hooks() -> None:
    host = make_host()
    host.create_context("notes")
    host.define_minor_mode("mode-x")
    contexts: list[object] = []
    toggles: list[object] = []
    host.hooks.add(CONTEXT_CHANGED, contexts.append)
    host.hooks.add(mode_hook("mode-x"), toggles.append)

    host.switch_context("notes")
    host.set_major_mode("text-mode")
    host.enable_minor_mode("mode-x")
    host.disable_minor_mode("mode-x")

    assert contexts == ["notes", "notes"]
    assert toggles == [
        {"mode": "mode-x", "enabled": True, "context": "notes"},
        {"mode": "mode-x", "enabled": False, "context": "notes"},
    ]


def test_minor_mode_for_keymap() -> None:
    host = make_host()
    mode = host.define_minor_mode("mode-x")

    assert mode.keymap is host.resolve_map(MapRef.named("mode-x-map"))
    assert host.minor_mode_for_keymap(mode.keymap) == "mode-x"
    assert host.minor_mode_for_keymap(host.global_map) is None


def test_resolve_unknown_map_raises_key_error() -> None:
    host = make_host()

    with pytest.raises(UnknownKeymapError):
        host.resolve_map(MapRef.named("missing-map"))
    with pytest.raises(KeyError):
        host.switch_context("missing")


def test_message_runs_hook() -> None:
    host = make_host()
    seen: list[object] = []
    host.hooks.add("message", seen.append)

    host.message("hello")

    assert host.messages == ["hello"]
    assert seen == ["hello"]
