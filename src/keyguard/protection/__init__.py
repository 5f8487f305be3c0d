"""Protected keybindings: bind guard, precedence overlay and the feature toggle."""

from .config import BindingRule, ProtectionSettings, RuleLike, Verbosity
from .errors import ProtectedBindingError, ProtectionError
from .state import Conflict, OverlayTable, ProtectionState, ReentrancyFlag
from .resolve import effective_binding, rule_applies
from .guard import BindGuard
from .refresher import PrecedenceRefresher
from .feature import ProtectedBindingRow, ProtectedBindings

__all__ = [
    "BindingRule",
    "ProtectionSettings",
    "RuleLike",
    "Verbosity",
    "ProtectedBindingError",
    "ProtectionError",
    "Conflict",
    "OverlayTable",
    "ProtectionState",
    "ReentrancyFlag",
    "effective_binding",
    "rule_applies",
    "BindGuard",
    "PrecedenceRefresher",
    "ProtectedBindingRow",
    "ProtectedBindings",
]
