"""Solver settings passed explicitly through the solve pipeline."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from dsgeswitch.exceptions import ConfigError

SOLUTION_METHODS = ("gensys", "klein")
DEFAULT_STABILITY_DIVIDER = 1.0 + 1e-6


def _as_range(value: Any) -> range:
    """Accept a ``range`` or an inclusive ``[first, last]`` pair."""
    if isinstance(value, range):
        return value
    if isinstance(value, int):
        return range(value, value + 1)
    if isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
        first, last = int(value[0]), int(value[1])
        return range(first, last + 1)
    raise ConfigError(f"Regime ranges must be [first, last] pairs, got {value!r}")


@dataclass
class SolverConfig:
    """Settings controlling how a model is solved.

    Attributes:
        solution_method: ``"gensys"`` or ``"klein"``.
        regime_switching: Solve one transition equation per regime.
        gensys_regimes: Ranges of permanent regimes solved independently.
        gensys2_regimes: Temporary-policy windows. Each range starts with
            the regime preceding the window and ends with the lift-off
            (anchor) regime.
        gensys2: Splice temporary-policy windows.
        uncertain_altpolicy: Agents are unsure which policy holds at lift-off.
        uncertain_temporary_altpolicy: Agents are unsure the temporary
            policy holds in each period of the window.
        replace_eqcond: Use per-regime policies from the registry to build
            equilibrium conditions.
        temporary_altpolicy_length: Declared number of temporary periods.
        gensys2_sparse_matrices: Use sparse matrices in the backward recursion.
        stability_divider: Eigenvalue modulus separating stable from
            unstable roots in gensys.
    """

    solution_method: str = "gensys"
    regime_switching: bool = False
    gensys_regimes: list[range] = field(default_factory=lambda: [range(1, 2)])
    gensys2_regimes: list[range] = field(default_factory=list)
    gensys2: bool = False
    uncertain_altpolicy: bool = False
    uncertain_temporary_altpolicy: bool = False
    replace_eqcond: bool = False
    temporary_altpolicy_length: int | None = None
    gensys2_sparse_matrices: bool = False
    stability_divider: float = DEFAULT_STABILITY_DIVIDER

    def __post_init__(self) -> None:
        if self.solution_method not in SOLUTION_METHODS:
            raise ConfigError(
                f"Unknown solution method '{self.solution_method}'. "
                f"Available: {', '.join(SOLUTION_METHODS)}"
            )
        self.gensys_regimes = [_as_range(r) for r in self.gensys_regimes]
        self.gensys2_regimes = [_as_range(r) for r in self.gensys2_regimes]

        for r in self.gensys_regimes:
            if len(r) == 0 or r.start < 1 or r.step != 1:
                raise ConfigError(f"Invalid gensys regime range {r}")
        for r in self.gensys2_regimes:
            if len(r) < 2 or r.start < 1 or r.step != 1:
                raise ConfigError(
                    f"Invalid gensys2 regime range {r}: a window needs a preceding "
                    "regime and a lift-off regime"
                )
        if self.temporary_altpolicy_length is not None and self.temporary_altpolicy_length < 0:
            raise ConfigError("temporary_altpolicy_length must be >= 0")
        if self.stability_divider <= 0:
            raise ConfigError("stability_divider must be positive")

    @property
    def regimes(self) -> list[int]:
        """Sorted union of all configured regimes."""
        out: set[int] = set()
        for r in [*self.gensys_regimes, *self.gensys2_regimes]:
            out.update(r)
        return sorted(out)

    @property
    def n_regimes(self) -> int:
        return len(self.regimes)

    def replace(self, **changes: Any) -> SolverConfig:
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SolverConfig:
        """Build a config from plain data (e.g. a YAML ``solver`` section)."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown solver settings: {sorted(unknown)}")
        kwargs = dict(data)
        for key in ("gensys_regimes", "gensys2_regimes"):
            if key in kwargs:
                kwargs[key] = [_as_range(r) for r in kwargs[key] or []]
        return cls(**kwargs)
