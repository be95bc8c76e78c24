"""Model interface for regime-dependent equilibrium conditions."""

from dsgeswitch.model.base import RegimeModel

__all__ = ["RegimeModel"]
