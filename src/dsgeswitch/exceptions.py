"""Exception hierarchy for dsgeswitch."""

from __future__ import annotations


class DSGESwitchError(Exception):
    """Base class for all dsgeswitch errors."""


class SolverError(DSGESwitchError):
    """A numerical solver could not produce a solution."""


class SolveFailure(SolverError):
    """The rational-expectations kernel found no unique bounded solution.

    Raised when the existence/uniqueness classification differs from
    ``(1, 1)`` or when a LAPACK routine fails inside the decomposition.
    Parameter-search loops are expected to catch it and reject the
    parameter draw.

    Attributes:
        regime: Regime whose solve failed (None outside regime switching).
        eu: Existence/uniqueness pair reported by the kernel, if any.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        regime: int | None = None,
        eu: tuple[int, int] | None = None,
    ) -> None:
        if message is None:
            message = "Error in Gensys" if regime is None else f"Error in Gensys, Regime {regime}"
        if eu is not None:
            message = f"{message} (eu={tuple(eu)})"
        super().__init__(message)
        self.regime = regime
        self.eu = None if eu is None else (int(eu[0]), int(eu[1]))


class KleinError(SolverError):
    """Klein's method found no unique stable solution."""

    def __init__(self, message: str = "Error in Klein") -> None:
        super().__init__(message)


class UnsupportedConfigurationError(DSGESwitchError):
    """The requested combination of settings is not supported."""


class PreconditionViolation(DSGESwitchError, AssertionError):
    """A caller-side configuration invariant does not hold."""


class ConfigError(DSGESwitchError, ValueError):
    """A configuration value is malformed."""
