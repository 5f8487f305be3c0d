"""Protection settings: protected rules and conflict verbosity."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Union

from keyguard.keymaps import GLOBAL, KeySequence, MapRef, coerce_sequence
from keyguard.runtime import telemetry


class Verbosity(str, Enum):
    """How a rejected bind is surfaced."""

    SILENT = "silent"
    NOTIFY = "notify"
    FAIL_LOUD = "fail-loud"

    @classmethod
    def parse(cls, value: Union[str, "Verbosity"]) -> "Verbosity":
        if isinstance(value, Verbosity):
            return value
        normalized = value.strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown verbosity '{value}' (expected one of: {choices})"
            ) from None


@dataclass(frozen=True, slots=True)
class BindingRule:
    """A protected ``(key, keymap)`` pair; ``target=None`` means the global map."""

    key: KeySequence
    target: Optional[MapRef] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", coerce_sequence(self.key))
        if self.target is not None and self.target.is_global:
            object.__setattr__(self, "target", None)

    @property
    def map_ref(self) -> MapRef:
        return self.target or GLOBAL

    @property
    def is_global(self) -> bool:
        return self.target is None

    def describe(self) -> str:
        return f"{self.key.describe()} in {self.map_ref.label}"

    @classmethod
    def parse(cls, text: str) -> "BindingRule":
        """Parse ``"M-."`` or ``"<tab>@mode-x-map"``."""

        cleaned = text.strip()
        if not cleaned:
            raise ValueError("rule cannot be empty")
        key_text, _, map_text = cleaned.rpartition("@")
        # "C-@" and "M-@ x" are keys: "@" after a modifier is a keystroke.
        if (
            not key_text.strip()
            or not map_text
            or any(char.isspace() for char in map_text)
            or key_text.endswith("-")
        ):
            return cls(KeySequence.parse(cleaned))
        return cls(KeySequence.parse(key_text), MapRef.parse(map_text))

    @classmethod
    def coerce(cls, value: "RuleLike") -> "BindingRule":
        if isinstance(value, BindingRule):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        key, target = value
        if isinstance(target, str):
            target = MapRef.parse(target)
        return cls(coerce_sequence(key), target)


RuleLike = Union[
    BindingRule,
    str,
    tuple[Union[KeySequence, str], Union[MapRef, str, None]],
]


def _coerce_rules(rules: Iterable[RuleLike]) -> tuple[BindingRule, ...]:
    return tuple(BindingRule.coerce(rule) for rule in rules)


@dataclass(frozen=True, slots=True)
class ProtectionSettings:
    """Configuration consumed by ``ProtectedBindings``."""

    rules: tuple[BindingRule, ...] = ()
    verbosity: Verbosity = Verbosity.NOTIFY
    logger_name: str = "keyguard.protection"

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", _coerce_rules(self.rules))
        object.__setattr__(self, "verbosity", Verbosity.parse(self.verbosity))

    def with_rules(self, rules: Iterable[RuleLike]) -> "ProtectionSettings":
        return replace(self, rules=_coerce_rules(rules))

    def with_verbosity(self, verbosity: Union[str, Verbosity]) -> "ProtectionSettings":
        return replace(self, verbosity=Verbosity.parse(verbosity))

    @classmethod
    def from_env(cls) -> "ProtectionSettings":
        """Read ``KEYGUARD_RULES`` (``;`` separated) and ``KEYGUARD_VERBOSITY``."""

        raw_rules = telemetry.env("RULES") or ""
        rules = tuple(
            BindingRule.parse(chunk) for chunk in raw_rules.split(";") if chunk.strip()
        )
        verbosity = Verbosity.parse(telemetry.env("VERBOSITY") or Verbosity.NOTIFY.value)
        logger_name = telemetry.env("PROTECTION_LOGGER") or "keyguard.protection"
        return cls(rules=rules, verbosity=verbosity, logger_name=logger_name)


__all__ = ["BindingRule", "ProtectionSettings", "RuleLike", "Verbosity"]
