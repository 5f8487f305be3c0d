from __future__ import annotations

from pathlib import Path

import pytest

from keyguard.runtime import telemetry


@pytest.fixture
def restore_telemetry(monkeypatch: pytest.MonkeyPatch):
    yield
    monkeypatch.undo()
    telemetry.configure()


def test_env_flag_reads_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KEYGUARD_PROFILE", "off")
    monkeypatch.delenv("KEYGUARD_LOG_JSON", raising=False)

    assert telemetry.env_flag("PROFILE", True) is False
    assert telemetry.env_flag("LOG_JSON", True) is True


@pytest.mark.parametrize("preset", telemetry.LOG_PRESETS)
def test_presets_configure_fresh_loggers(
    preset: str,
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    restore_telemetry: None,
) -> None:
    monkeypatch.setenv("KEYGUARD_LOG_FILE", str(tmp_path / "keyguard.log"))
    before = telemetry.get_logger("keyguard.test")

    telemetry.configure(preset=preset)

    assert telemetry.get_logger("keyguard.test") is not before


def test_configure_rejects_unknown_or_conflicting_presets(
    restore_telemetry: None,
) -> None:
    with pytest.raises(ValueError, match="Unknown preset"):
        telemetry.configure(preset="verbose")
    with pytest.raises(ValueError, match="either"):
        telemetry.configure(config=object(), preset="quiet")


def test_demo_cli_defaults_to_quiet_logging() -> None:
    pytest.importorskip("textual")
    from keyguard.adapters.textual.app import _parse_args

    assert _parse_args([]).log_preset == "quiet"
    assert _parse_args(["--log-preset", "audit"]).log_preset == "audit"
    with pytest.raises(SystemExit):
        _parse_args(["--log-preset", "loud"])
