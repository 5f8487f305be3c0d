"""Nested prefix keymaps with parent inheritance and undoable raw writes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from .models import KeySequence, KeyStroke, coerce_sequence, is_command

_MISSING = object()
_SHADOWED = object()


@dataclass(frozen=True, slots=True)
class EntryChange:
    """One slot overwritten by a raw write, with the value it held before."""

    table: "Keymap"
    stroke: KeyStroke
    previous: object


@dataclass(frozen=True, slots=True)
class BindRecord:
    """Undo information returned by ``Keymap.define``."""

    keymap: "Keymap"
    sequence: KeySequence
    changes: tuple[EntryChange, ...]
    revision: int


class Keymap:
    """Table mapping key sequences to commands, prefix keymaps or callables.

    Multi-stroke sequences are stored as nested keymaps, so binding a prefix
    stroke (``C-x``) to a command shadows every longer sequence below it. A
    stroke missing from this keymap is looked up in ``parent``.
    """

    def __init__(
        self, name: str | None = None, *, parent: Optional["Keymap"] = None
    ) -> None:
        self.name = name
        self.parent = parent
        self._entries: Dict[KeyStroke, object] = {}
        self._revision = 0

    def __repr__(self) -> str:
        label = self.name or "anonymous"
        return f"<Keymap {label} entries={len(self._entries)}>"

    @property
    def revision(self) -> int:
        return self._revision

    def lookup(self, key: KeySequence | str) -> object | None:
        """Return the raw binding of ``key`` or ``None`` when it is unbound.

        A sequence that runs past a stroke bound to something other than a
        keymap is reported as unbound; ``parent`` is not consulted for it.
        """

        value = self._resolve(coerce_sequence(key).strokes)
        return None if value is _SHADOWED else value

    def _resolve(self, strokes: tuple[KeyStroke, ...]) -> object | None:
        value = self._entries.get(strokes[0])
        if value is not None and len(strokes) > 1:
            if not isinstance(value, Keymap):
                return _SHADOWED
            value = value._resolve(strokes[1:])
        if value is None and self.parent is not None:
            return self.parent._resolve(strokes)
        return value

    def remapping(self, command: object) -> str | None:
        """Command that ``command`` is remapped to in this keymap, if any."""

        if not is_command(command):
            return None
        target = self.lookup(KeySequence.remap(str(command)))
        return str(target) if is_command(target) else None

    def define(self, key: KeySequence | str, value: object | None) -> BindRecord:
        """Bind ``key`` to ``value`` (``None`` unbinds) and return undo data.

        This is the raw primitive: no hooks or interceptors are involved.
        """

        sequence = coerce_sequence(key)
        changes: list[EntryChange] = []
        revision = self._revision
        table = self
        for stroke in sequence.strokes[:-1]:
            current = table._entries.get(stroke, _MISSING)
            if isinstance(current, Keymap):
                table = current
                continue
            inherited = table.parent.lookup(KeySequence((stroke,))) if table.parent else None
            child = Keymap(parent=inherited if isinstance(inherited, Keymap) else None)
            changes.append(EntryChange(table, stroke, current))
            table._entries[stroke] = child
            table = child

        last = sequence.strokes[-1]
        changes.append(EntryChange(table, last, table._entries.get(last, _MISSING)))
        if value is None:
            table._entries.pop(last, None)
        else:
            table._entries[last] = value
        self._revision += 1
        return BindRecord(
            keymap=self, sequence=sequence, changes=tuple(changes), revision=revision
        )

    def revert(self, record: BindRecord) -> None:
        """Undo a ``define`` so every touched slot holds its previous object."""

        if record.keymap is not self:
            raise ValueError("BindRecord belongs to a different keymap")
        for change in reversed(record.changes):
            if change.previous is _MISSING:
                change.table._entries.pop(change.stroke, None)
            else:
                change.table._entries[change.stroke] = change.previous
        self._revision = record.revision

    def iter_bindings(
        self, prefix: tuple[KeyStroke, ...] = ()
    ) -> Iterator[tuple[KeySequence, object]]:
        """Yield local leaf bindings depth-first; parents are not included."""

        for stroke, value in self._entries.items():
            path = prefix + (stroke,)
            if isinstance(value, Keymap):
                yield from value.iter_bindings(path)
            else:
                yield KeySequence(path), value

    def snapshot(self) -> Dict[str, object]:
        return {sequence.describe(): value for sequence, value in self.iter_bindings()}


__all__ = ["BindRecord", "EntryChange", "Keymap"]
