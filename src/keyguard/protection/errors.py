"""Exceptions raised by the protection feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import Conflict


class ProtectionError(RuntimeError):
    """Base class for protection failures."""


class ProtectedBindingError(ProtectionError):
    """Raised under ``fail-loud`` verbosity when a bind would override a rule."""

    def __init__(self, conflict: "Conflict") -> None:
        super().__init__(conflict.describe())
        self.conflict = conflict
        self.rule = conflict.rule


__all__ = ["ProtectionError", "ProtectedBindingError"]
