from __future__ import annotations

import pytest

from keyguard.host import EditorHost, mode_hook
from keyguard.keymaps import KeySequence, MapRef, UnknownKeymapError
from keyguard.protection import (
    BindingRule,
    ProtectedBindingRow,
    ProtectedBindings,
    ProtectionSettings,
    Verbosity,
)


def make_host() -> EditorHost:
    host = EditorHost()
    host.global_set_key("M-.", "find-def")
    mode = host.define_minor_mode("mode-x")
    host.bind_raw(mode.keymap, "<tab>", "x-complete")
    return host


def test_verbosity_parse() -> None:
    assert Verbosity.parse("FAIL_LOUD") is Verbosity.FAIL_LOUD
    assert Verbosity.parse(" notify ") is Verbosity.NOTIFY
    assert Verbosity.parse(Verbosity.SILENT) is Verbosity.SILENT
    with pytest.raises(ValueError, match="Unknown verbosity"):
        Verbosity.parse("loud")


def test_binding_rule_parse() -> None:
    named = BindingRule.parse("<tab>@mode-x-map")
    global_rule = BindingRule.parse("M-.@global-map")
    control_at = BindingRule.parse("C-@")

    assert named.key == KeySequence.parse("<tab>")
    assert named.target == MapRef.named("mode-x-map")
    assert global_rule.is_global
    assert global_rule.map_ref.label == "global-map"
    assert control_at.key.tokens == ("C-@",)
    assert control_at.is_global
    meta_at_prefix = BindingRule.parse("M-@ x")
    assert meta_at_prefix.key.tokens == ("M-@", "x")
    assert meta_at_prefix.is_global
    assert BindingRule.parse("C-c @@mode-x-map").key.tokens == ("C-c", "@")
    with pytest.raises(ValueError):
        BindingRule.parse("  ")


def test_binding_rule_coerce_variants() -> None:
    assert BindingRule.coerce(("M-.", None)) == BindingRule.parse("M-.")
    assert BindingRule.coerce(("<tab>", "mode-x-map")).describe() == "<tab> in mode-x-map"
    assert BindingRule.coerce(("M-.", "global-map")).target is None


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KEYGUARD_RULES", "M-.; <tab>@mode-x-map ;")
    monkeypatch.setenv("KEYGUARD_VERBOSITY", "fail-loud")

    settings = ProtectionSettings.from_env()

    assert settings.rules == (
        BindingRule.parse("M-."),
        BindingRule.parse("<tab>@mode-x-map"),
    )
    assert settings.verbosity is Verbosity.FAIL_LOUD


def test_settings_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KEYGUARD_RULES", raising=False)
    monkeypatch.delenv("KEYGUARD_VERBOSITY", raising=False)

    settings = ProtectionSettings.from_env()

    assert settings.rules == ()
    assert settings.verbosity is Verbosity.NOTIFY


def test_toggle_round_trip() -> None:
    host = make_host()
    protection = ProtectedBindings(host, ProtectionSettings(rules=("M-.",)))

    assert protection.toggle() is True
    assert protection.guard in host.interceptors
    assert protection.toggle() is False
    assert host.interceptors == ()
    assert protection.toggle(False) is False


def test_enable_is_idempotent() -> None:
    host = make_host()
    protection = ProtectedBindings(host, ProtectionSettings(rules=("M-.",)))

    protection.enable()
    protection.enable()

    assert host.interceptors == (protection.guard,)


def test_enable_rolls_back_on_unknown_keymap() -> None:
    host = make_host()
    protection = ProtectedBindings(
        host, ProtectionSettings(rules=("C-c x@missing-map",))
    )

    with pytest.raises(UnknownKeymapError):
        protection.enable()

    assert not protection.enabled
    assert host.interceptors == ()
    assert host.key_binding("M-.") == "find-def"


def test_protect_and_unprotect_while_enabled() -> None:
    host = make_host()
    protection = ProtectedBindings(host)
    protection.enable()

    protection.protect("M-.")
    assert host.global_set_key("M-.", "other-cmd") is False

    assert protection.unprotect("M-.") is True
    assert protection.unprotect("M-.") is False
    assert host.global_set_key("M-.", "other-cmd") is True
    assert host.key_binding("M-.") == "other-cmd"


def test_set_rules_rewires_mode_hooks() -> None:
    host = make_host()
    protection = ProtectedBindings(host, ProtectionSettings(rules=("M-.",)))
    protection.enable()
    assert host.hooks.callbacks(mode_hook("mode-x")) == ()

    protection.set_rules(["<tab>@mode-x-map"])
    host.enable_minor_mode("mode-x")

    assert len(host.hooks.callbacks(mode_hook("mode-x"))) == 1
    assert protection.overlay()[KeySequence.parse("<tab>")] == "x-complete"


def test_protect_with_unknown_keymap_keeps_previous_rules() -> None:
    host = make_host()
    protection = ProtectedBindings(
        host, ProtectionSettings(rules=("M-.", "<tab>@mode-x-map"))
    )
    protection.enable()
    rules = protection.rules

    with pytest.raises(UnknownKeymapError):
        protection.protect("C-c x", "no-such-map")

    assert protection.rules == rules
    assert protection.enabled
    assert len(host.hooks.callbacks(mode_hook("mode-x"))) == 1
    assert host.global_set_key("C-c y", "other-cmd") is True
    assert host.global_set_key("M-.", "other-cmd") is False
    host.enable_minor_mode("mode-x")
    assert protection.overlay()[KeySequence.parse("<tab>")] == "x-complete"


def test_set_verbosity_takes_effect() -> None:
    host = make_host()
    protection = ProtectedBindings(host, ProtectionSettings(rules=("M-.",)))
    protection.enable()

    protection.set_verbosity("silent")
    host.global_set_key("M-.", "other-cmd")

    assert host.messages == []


def test_describe_reports_rules() -> None:
    host = make_host()
    protection = ProtectedBindings(
        host, ProtectionSettings(rules=("M-.", "<tab>@mode-x-map", "C-c z"))
    )

    rows = protection.describe()

    assert rows == [
        ProtectedBindingRow("M-.", "global-map", "find-def", True),
        ProtectedBindingRow("<tab>", "mode-x-map", "x-complete", False),
        ProtectedBindingRow("C-c z", "global-map", None, True),
    ]
