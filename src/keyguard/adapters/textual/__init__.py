"""Textual integration for keyguard."""

from .controller import TextualKeyguardAdapter, TextualUIHooks, textual_key_to_stroke

__all__ = ["TextualKeyguardAdapter", "TextualUIHooks", "textual_key_to_stroke"]
