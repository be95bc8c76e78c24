"""Klein (2000) solver via the generalized Schur decomposition.

Solves models written as

    A * E_t[x_{t+1}] = B * x_t,    x_t = [k_t; u_t]

with ``k_t`` predetermined and ``u_t`` jump variables, returning

    u_t     = TTT_jump  * k_t
    k_{t+1} = TTT_state * k_t + shock_loading * eps_{t+1}

References:
    Klein, P. (2000). Using the generalized Schur form to solve a
    multivariate linear rational expectations model. Journal of Economic
    Dynamics and Control, 24(10), 1405-1423.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from dsgeswitch.exceptions import KleinError

_log = logging.getLogger(__name__)


@dataclass
class KleinSystem:
    """A model in Klein form.

    Attributes:
        A: Coefficients on E_t[x_{t+1}] (n x n).
        B: Coefficients on x_t (n x n).
        n_predetermined: Number of predetermined variables, ordered first.
        shock_loading: Loading of shocks on predetermined variables
            (n_predetermined x n_shocks).
        state_names: Names of the entries of x_t.
    """

    A: NDArray[np.float64]
    B: NDArray[np.float64]
    n_predetermined: int
    shock_loading: NDArray[np.float64]
    state_names: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.A = np.asarray(self.A, dtype=np.float64)
        self.B = np.asarray(self.B, dtype=np.float64)
        self.shock_loading = np.asarray(self.shock_loading, dtype=np.float64)
        n = self.A.shape[0]
        if self.A.shape != (n, n) or self.B.shape != (n, n):
            raise ValueError(f"A and B must be square with the same shape, got {self.A.shape}, {self.B.shape}")
        if not 0 < self.n_predetermined <= n:
            raise ValueError(f"n_predetermined must be in 1..{n}, got {self.n_predetermined}")
        if self.shock_loading.shape[0] != self.n_predetermined:
            raise ValueError(
                f"shock_loading must have {self.n_predetermined} rows, "
                f"got {self.shock_loading.shape[0]}"
            )

    @property
    def n_vars(self) -> int:
        return self.A.shape[0]


def klein(
    system: KleinSystem, *, realsmall: float = 1e-10
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Solve a model in Klein form.

    Returns:
        ``(TTT_jump, TTT_state)``.

    Raises:
        KleinError: On coincident zeros, a stable-root count different
            from the number of predetermined variables, or a singular Z11.
    """
    nk = system.n_predetermined

    try:
        S, T, alpha, beta, _, Z = linalg.ordqz(
            system.A, system.B, sort=lambda a, b: np.abs(b) < np.abs(a), output="complex"
        )
    except (linalg.LinAlgError, ValueError) as exc:
        raise KleinError(f"Error in Klein: QZ decomposition failed ({exc})") from exc

    if np.any((np.abs(alpha) < realsmall) & (np.abs(beta) < realsmall)):
        raise KleinError("Error in Klein: coincident zeros")

    n_stable = int(np.sum(np.abs(beta) < np.abs(alpha)))
    if n_stable != nk:
        _log.warning(f"Klein: {n_stable} stable roots for {nk} predetermined variables")
        raise KleinError(
            f"Error in Klein: {n_stable} stable roots but {nk} predetermined variables"
        )

    Z11 = Z[:nk, :nk]
    Z21 = Z[nk:, :nk]
    if np.linalg.matrix_rank(Z11) < nk:
        raise KleinError("Error in Klein: Z11 is singular, no unique stable solution")

    S11 = S[:nk, :nk]
    T11 = T[:nk, :nk]
    Z11_inv = linalg.inv(Z11)

    TTT_jump = np.real(Z21 @ Z11_inv)
    TTT_state = np.real(Z11 @ linalg.solve(S11, T11) @ Z11_inv)
    return TTT_jump, TTT_state


def klein_transition_matrices(
    system: KleinSystem,
    TTT_state: NDArray[np.float64],
    TTT_jump: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Stack the Klein solution into a transition equation for x_t = [k_t; u_t].

    Returns:
        ``(TTT, RRR)`` with

            TTT = [[h_x,       0],      RRR = [[eta      ],
                   [g_x * h_x, 0]]             [g_x * eta]]
    """
    nk = system.n_predetermined
    n = system.n_vars
    eta = system.shock_loading

    TTT = np.zeros((n, n))
    TTT[:nk, :nk] = TTT_state
    TTT[nk:, :nk] = TTT_jump @ TTT_state

    RRR = np.vstack([eta, TTT_jump @ eta])
    return TTT, RRR
