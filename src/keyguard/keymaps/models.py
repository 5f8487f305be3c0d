"""Dataclasses describing keys, key sequences and keymap references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional

MODIFIER_ORDER: tuple[str, ...] = ("A", "C", "H", "M", "S", "s")

MODIFIER_ALIASES = {
    "alt": "A",
    "ctrl": "C",
    "control": "C",
    "hyper": "H",
    "meta": "M",
    "shift": "S",
    "super": "s",
}

REMAP_KEY = "<remap>"
GLOBAL_MAP_NAME = "global-map"


def _normalize_modifier(modifier: str) -> str:
    cleaned = modifier.strip()
    if cleaned in MODIFIER_ORDER:
        return cleaned
    alias = MODIFIER_ALIASES.get(cleaned.lower())
    if alias is None:
        raise ValueError(f"unknown key modifier '{modifier}'")
    return alias


def _normalize_modifiers(modifiers: Iterable[str]) -> tuple[str, ...]:
    values = {_normalize_modifier(m) for m in modifiers if m.strip()}
    return tuple(m for m in MODIFIER_ORDER if m in values)


@dataclass(frozen=True, slots=True)
class KeyStroke:
    """Single normalized key press used by key sequences."""

    key: str
    modifiers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key cannot be empty")
        object.__setattr__(self, "modifiers", _normalize_modifiers(self.modifiers))

    @property
    def token(self) -> str:
        return "".join(f"{m}-" for m in self.modifiers) + self.key

    @classmethod
    def parse(cls, token: str) -> "KeyStroke":
        """Parse ``C-x``, ``M-.``, ``C-M-<up>`` or a bare key such as ``<tab>``."""

        text = token.strip()
        if not text:
            raise ValueError("key token cannot be empty")
        modifiers: list[str] = []
        while len(text) > 2 and text[1] == "-" and text[0] in MODIFIER_ORDER:
            modifiers.append(text[0])
            text = text[2:]
        return cls(text, tuple(modifiers))

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True, slots=True)
class KeySequence:
    """Immutable collection of keystrokes."""

    strokes: tuple[KeyStroke, ...]

    def __post_init__(self) -> None:
        if not self.strokes:
            raise ValueError("KeySequence requires at least one stroke")

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(stroke.token for stroke in self.strokes)

    @property
    def is_remap(self) -> bool:
        return self.strokes[0].key == REMAP_KEY and len(self.strokes) == 2

    def describe(self) -> str:
        return " ".join(self.tokens)

    def __str__(self) -> str:
        return self.describe()

    @classmethod
    def parse(cls, text: str) -> "KeySequence":
        """Parse a space separated description such as ``"C-x C-f"``."""

        strokes = tuple(KeyStroke.parse(part) for part in text.split())
        return cls(strokes=strokes)

    @classmethod
    def from_strings(cls, *keys: str) -> "KeySequence":
        return cls(strokes=tuple(KeyStroke.parse(key) for key in keys if key))

    @classmethod
    def remap(cls, command: str) -> "KeySequence":
        """Pseudo-key under which a keymap stores a command remapping."""

        if not is_command(command):
            raise ValueError("only named commands can be remapped")
        return cls(strokes=(KeyStroke(REMAP_KEY), KeyStroke(command)))


def coerce_sequence(key: "KeySequence | str") -> KeySequence:
    if isinstance(key, KeySequence):
        return key
    return KeySequence.parse(key)


def is_command(value: object) -> bool:
    """Named commands are the only bindings treated as symbolic."""

    return isinstance(value, str) and bool(value)


@dataclass(frozen=True, slots=True)
class MapRef:
    """Resolvable handle naming either the global map or a named keymap."""

    kind: Literal["global", "named"]
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind == "named" and not self.name:
            raise ValueError("named map references need a name")
        if self.kind == "global" and self.name is not None:
            raise ValueError("the global map reference takes no name")

    @property
    def is_global(self) -> bool:
        return self.kind == "global"

    @property
    def label(self) -> str:
        return GLOBAL_MAP_NAME if self.is_global else str(self.name)

    @classmethod
    def named(cls, name: str) -> "MapRef":
        return cls("named", name.strip())

    @classmethod
    def parse(cls, text: Optional[str]) -> "MapRef":
        if text is None or text.strip() in {"", "global", GLOBAL_MAP_NAME}:
            return GLOBAL
        return cls.named(text)

    def __str__(self) -> str:
        return self.label


GLOBAL = MapRef("global")


__all__ = [
    "GLOBAL",
    "GLOBAL_MAP_NAME",
    "KeyStroke",
    "KeySequence",
    "MapRef",
    "REMAP_KEY",
    "coerce_sequence",
    "is_command",
]
