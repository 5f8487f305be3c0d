"""Keep protected keybindings from being silently overridden."""

__all__ = [
    "adapters",
    "host",
    "keymaps",
    "protection",
    "runtime",
]

__version__ = "0.1.0"
