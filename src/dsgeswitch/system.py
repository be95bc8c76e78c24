"""Containers for equilibrium conditions and reduced-form transition equations.

Equilibrium conditions (canonical form):
    Gamma0 * x_t = Gamma1 * x_{t-1} + C + Psi * eps_t + Pi * eta_t

Transition equation:
    x_t = TTT * x_{t-1} + RRR * eps_t + CCC
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from dsgeswitch.exceptions import SolverError


@dataclass(slots=True)
class EquilibriumConditions:
    """Structural system matrices for one regime."""

    gamma0: NDArray[np.float64]
    gamma1: NDArray[np.float64]
    C: NDArray[np.float64]
    psi: NDArray[np.float64]
    pi: NDArray[np.float64]

    def __post_init__(self) -> None:
        self.gamma0 = np.asarray(self.gamma0, dtype=np.float64)
        self.gamma1 = np.asarray(self.gamma1, dtype=np.float64)
        self.C = np.asarray(self.C, dtype=np.float64).reshape(-1)
        self.psi = np.asarray(self.psi, dtype=np.float64)
        self.pi = np.asarray(self.pi, dtype=np.float64)

        n = self.gamma0.shape[0]
        if self.gamma0.shape != (n, n) or self.gamma1.shape != (n, n):
            raise ValueError(
                f"gamma0 and gamma1 must be square with the same shape, got "
                f"{self.gamma0.shape} and {self.gamma1.shape}"
            )
        if self.C.shape[0] != n:
            raise ValueError(f"C must have length {n}, got {self.C.shape[0]}")
        if self.psi.ndim != 2 or self.psi.shape[0] != n:
            raise ValueError(f"psi must have {n} rows, got shape {self.psi.shape}")
        if self.pi.ndim != 2 or self.pi.shape[0] != n:
            raise ValueError(f"pi must have {n} rows, got shape {self.pi.shape}")

    @property
    def n_states(self) -> int:
        return self.gamma0.shape[0]

    def __iter__(self) -> Iterator[NDArray[np.float64]]:
        return iter((self.gamma0, self.gamma1, self.C, self.psi, self.pi))

    def copy(self) -> EquilibriumConditions:
        return EquilibriumConditions(
            self.gamma0.copy(),
            self.gamma1.copy(),
            self.C.copy(),
            self.psi.copy(),
            self.pi.copy(),
        )


@dataclass(slots=True)
class TransitionSolution:
    """Reduced-form transition equation x_t = TTT x_{t-1} + RRR eps_t + CCC."""

    TTT: NDArray[np.float64]
    RRR: NDArray[np.float64]
    CCC: NDArray[np.float64]

    def __post_init__(self) -> None:
        self.TTT = np.asarray(self.TTT)
        self.RRR = np.asarray(self.RRR)
        self.CCC = np.asarray(self.CCC).reshape(-1)
        n = self.TTT.shape[0]
        if self.TTT.shape != (n, n):
            raise ValueError(f"TTT must be square, got shape {self.TTT.shape}")
        if self.RRR.ndim != 2 or self.RRR.shape[0] != n:
            raise ValueError(f"RRR must have {n} rows, got shape {self.RRR.shape}")
        if self.CCC.shape[0] != n:
            raise ValueError(f"CCC must have length {n}, got {self.CCC.shape[0]}")

    @property
    def n_states(self) -> int:
        return self.TTT.shape[0]

    @property
    def n_shocks(self) -> int:
        return self.RRR.shape[1]

    @property
    def spectral_radius(self) -> float:
        if self.n_states == 0:
            return 0.0
        return float(np.max(np.abs(np.linalg.eigvals(self.TTT))))

    def __iter__(self) -> Iterator[NDArray[np.float64]]:
        return iter((self.TTT, self.RRR, self.CCC))

    def copy(self) -> TransitionSolution:
        return TransitionSolution(self.TTT.copy(), self.RRR.copy(), self.CCC.copy())

    def as_real(self) -> TransitionSolution:
        """Drop the imaginary residue left by complex decompositions."""
        return TransitionSolution(
            np.real(self.TTT).astype(np.float64),
            np.real(self.RRR).astype(np.float64),
            np.real(self.CCC).astype(np.float64),
        )

    def truncate(self, n_states: int) -> TransitionSolution:
        """Return the block governing the first ``n_states`` states."""
        if n_states > self.n_states:
            raise ValueError(
                f"Cannot truncate a {self.n_states}-state solution to {n_states} states"
            )
        return TransitionSolution(
            self.TTT[:n_states, :n_states].copy(),
            self.RRR[:n_states, :].copy(),
            self.CCC[:n_states].copy(),
        )


@dataclass(slots=True)
class SolveResult:
    """Outcome of a solve: either a solution or the failure that prevented it."""

    solution: TransitionSolution | RegimeSwitchingSolution | None = None
    failure: SolverError | None = None

    def __post_init__(self) -> None:
        if (self.solution is None) == (self.failure is None):
            raise ValueError("SolveResult needs exactly one of solution or failure")

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> TransitionSolution | RegimeSwitchingSolution:
        if self.failure is not None:
            raise self.failure
        return self.solution


@dataclass
class RegimeSwitchingSolution:
    """Transition equations indexed by (1-based) regime."""

    transitions: dict[int, TransitionSolution] = field(default_factory=dict)

    @property
    def regimes(self) -> list[int]:
        return sorted(self.transitions)

    def __getitem__(self, regime: int) -> TransitionSolution:
        return self.transitions[regime]

    def __iter__(self) -> Iterator[int]:
        return iter(self.regimes)

    def __len__(self) -> int:
        return len(self.transitions)

    def __contains__(self, regime: object) -> bool:
        return regime in self.transitions

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "regime": reg,
                "n_states": sol.n_states,
                "n_shocks": sol.n_shocks,
                "spectral_radius": sol.spectral_radius,
                "max_abs_constant": float(np.max(np.abs(sol.CCC))) if sol.n_states else 0.0,
            }
            for reg, sol in sorted(self.transitions.items())
        ]
        if not rows:
            return pd.DataFrame(
                columns=["regime", "n_states", "n_shocks", "spectral_radius", "max_abs_constant"]
            )
        return pd.DataFrame(rows).set_index("regime")

    def summary(self) -> str:
        lines = [
            "Regime-Switching Solution",
            "=" * 50,
            f"  Regimes:            {len(self)}",
        ]
        if self.transitions:
            first = self.transitions[self.regimes[0]]
            lines.append(f"  States (augmented): {first.n_states}")
            lines.append(f"  Shocks:             {first.n_shocks}")
            for reg in self.regimes:
                lines.append(
                    f"  Regime {reg:<4d} spectral radius {self.transitions[reg].spectral_radius:.6f}"
                )
        return "\n".join(lines)
