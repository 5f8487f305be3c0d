"""Runtime services (telemetry) shared by every keyguard component."""

from . import telemetry

__all__ = ["telemetry"]
