"""Time-varying transition equations for temporary-policy windows.

Inside a window the equilibrium conditions change period by period, so the
solution is built backward from a known terminal transition equation. Each
period's conditions are first rewritten in predictable form

    Gamma0' x_t = Gamma1' x_{t-1} + Gamma2' E_t[x_{t+1}] + C' + Psi' eps_t

and, given the next period's solution ``E_t[x_{t+1}] = T x_t + C``,

    (Gamma0' - Gamma2' T) x_t = Gamma1' x_{t-1} + C' + Gamma2' C + Psi' eps_t.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import linalg, sparse
from scipy.sparse import linalg as sparse_linalg

from dsgeswitch.exceptions import PreconditionViolation, SolveFailure
from dsgeswitch.system import TransitionSolution

_log = logging.getLogger(__name__)


@dataclass
class PredictableForm:
    """Equilibrium conditions with expectations written out explicitly.

    Matrices are dense ndarrays, or ``scipy.sparse.csr_array`` when built
    with ``use_sparse=True``; ``C`` is always a dense vector.
    """

    gamma0: NDArray[np.float64] | sparse.csr_array
    gamma1: NDArray[np.float64] | sparse.csr_array
    gamma2: NDArray[np.float64] | sparse.csr_array
    C: NDArray[np.float64]
    psi: NDArray[np.float64] | sparse.csr_array

    @property
    def is_sparse(self) -> bool:
        return sparse.issparse(self.gamma0)

    @property
    def n_states(self) -> int:
        return self.gamma0.shape[0]


def gensys_to_predictable_form(
    gamma0: NDArray[np.float64],
    gamma1: NDArray[np.float64],
    C: NDArray[np.float64],
    psi: NDArray[np.float64],
    pi: NDArray[np.float64],
    *,
    use_sparse: bool = False,
) -> PredictableForm:
    """Rewrite gensys-form conditions in predictable form.

    Rows loading on expectational errors, ``Gamma0 x_t = Gamma1 x_{t-1} + C
    + Pi eta_t``, are moved one period ahead and conditioned on t, which
    gives ``Gamma1 x_t = Gamma0 E_t[x_{t+1}] - C``. All other rows keep their
    coefficients and get a zero row in Gamma2'.
    """
    gamma0 = np.asarray(gamma0, dtype=np.float64)
    gamma1 = np.asarray(gamma1, dtype=np.float64)
    C = np.asarray(C, dtype=np.float64).reshape(-1)
    psi = np.asarray(psi, dtype=np.float64)
    pi = np.asarray(pi, dtype=np.float64)

    expectational = np.any(pi != 0.0, axis=1)

    g0 = gamma0.copy()
    g1 = gamma1.copy()
    g2 = np.zeros_like(gamma0)
    c = C.copy()
    ps = psi.copy()

    g0[expectational] = gamma1[expectational]
    g2[expectational] = gamma0[expectational]
    g1[expectational] = 0.0
    c[expectational] = -C[expectational]
    ps[expectational] = 0.0

    if use_sparse:
        return PredictableForm(
            sparse.csr_array(g0),
            sparse.csr_array(g1),
            sparse.csr_array(g2),
            c,
            sparse.csr_array(ps),
        )
    return PredictableForm(g0, g1, g2, c, ps)


def _dense(a) -> NDArray[np.float64]:
    return a.toarray() if sparse.issparse(a) else np.asarray(a)


def gensys2_backward_step(
    form: PredictableForm,
    TTT_next: NDArray[np.float64],
    CCC_next: NDArray[np.float64],
    *,
    regime: int | None = None,
) -> TransitionSolution:
    """Solve one period given agents' expected next-period transition equation."""
    n = form.n_states
    if TTT_next.shape != (n, n) or CCC_next.shape[0] != n:
        raise PreconditionViolation(
            f"Next-period solution has {TTT_next.shape[0]} states, "
            f"predictable form has {n}"
        )

    gamma1 = _dense(form.gamma1)
    psi = _dense(form.psi)
    n_shocks = psi.shape[1]
    const = form.C + form.gamma2 @ CCC_next
    rhs = np.hstack([gamma1, psi, const.reshape(-1, 1)])

    if form.is_sparse:
        L = (form.gamma0 - form.gamma2 @ sparse.csr_array(TTT_next)).tocsc()
        try:
            sol = sparse_linalg.splu(L).solve(rhs)
        except RuntimeError as exc:
            raise SolveFailure(
                f"Singular predictable-form system in regime {regime}: {exc}", regime=regime
            ) from exc
    else:
        L = form.gamma0 - form.gamma2 @ TTT_next
        try:
            sol = linalg.solve(L, rhs)
        except linalg.LinAlgError as exc:
            raise SolveFailure(
                f"Singular predictable-form system in regime {regime}: {exc}", regime=regime
            ) from exc

    return TransitionSolution(
        sol[:, :n].copy(),
        sol[:, n : n + n_shocks].copy(),
        sol[:, n + n_shocks].copy(),
    )


def _window_regimes(regimes: Sequence[int] | None, n_periods: int) -> list[int | None]:
    if regimes is None:
        return [None] * n_periods
    if len(regimes) != n_periods:
        raise PreconditionViolation(
            f"Got {len(regimes)} regime labels for {n_periods} temporary periods"
        )
    return list(regimes)


def gensys2(
    forms: Sequence[PredictableForm],
    terminal: TransitionSolution,
    *,
    regimes: Sequence[int] | None = None,
) -> list[TransitionSolution]:
    """Backward recursion under perfect credibility of the temporary policy.

    Args:
        forms: Predictable forms of the K temporary periods, in time order.
        terminal: Transition equation in effect after the window.
        regimes: Optional regime labels of the K periods, for error messages.

    Returns:
        K + 1 transition equations; the last one is ``terminal``.
    """
    labels = _window_regimes(regimes, len(forms))
    out: list[TransitionSolution | None] = [None] * len(forms) + [terminal]
    for j in reversed(range(len(forms))):
        nxt = out[j + 1]
        out[j] = gensys2_backward_step(forms[j], nxt.TTT, nxt.CCC, regime=labels[j])
        _log.debug(f"gensys2: solved temporary period {j + 1}/{len(forms)} (regime {labels[j]})")
    return out


def expected_transition(
    weights: Sequence[float],
    believed: TransitionSolution,
    candidates: Sequence[TransitionSolution],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Probability-weighted next-period ``(TTT, CCC)``.

    ``weights[0]`` applies to ``believed``, ``weights[i]`` to ``candidates[i-1]``.
    """
    if len(weights) != 1 + len(candidates):
        raise PreconditionViolation(
            f"Expected {1 + len(candidates)} credibility weights, got {len(weights)}"
        )
    TTT = weights[0] * believed.TTT
    CCC = weights[0] * believed.CCC
    for w, cand in zip(weights[1:], candidates):
        TTT = TTT + w * cand.TTT
        CCC = CCC + w * cand.CCC
    return TTT, CCC


def gensys2_uncertain_altpol(
    weights: Sequence[Sequence[float]],
    candidates: Sequence[Sequence[TransitionSolution]],
    path: Sequence[TransitionSolution],
    forms: Sequence[PredictableForm],
    *,
    regimes: Sequence[int] | None = None,
) -> list[TransitionSolution]:
    """Backward recursion when the temporary policy itself is not fully credible.

    In period j agents expect the temporary policy to continue along the
    perfect-credibility ``path`` with probability ``weights[j][0]`` and each
    permanent candidate policy ``candidates[j][i-1]`` with probability
    ``weights[j][i]``.

    Args:
        weights: Per-period credibility weights (K entries).
        candidates: Per-period candidate solutions for the following period.
        path: Perfect-credibility solutions from :func:`gensys2` (K + 1 entries).
        forms: Predictable forms of the K temporary periods.
        regimes: Optional regime labels of the K periods.

    Returns:
        K + 1 transition equations; the last one is ``path[-1]``.
    """
    n_periods = len(forms)
    if len(weights) != n_periods or len(candidates) != n_periods or len(path) != n_periods + 1:
        raise PreconditionViolation(
            f"Inconsistent window inputs: {len(forms)} forms, {len(weights)} weight "
            f"vectors, {len(candidates)} candidate sets, {len(path)} path solutions"
        )
    labels = _window_regimes(regimes, n_periods)

    out: list[TransitionSolution | None] = [None] * n_periods + [path[-1]]
    for j in reversed(range(n_periods)):
        TTT_next, CCC_next = expected_transition(weights[j], path[j + 1], candidates[j])
        out[j] = gensys2_backward_step(forms[j], TTT_next, CCC_next, regime=labels[j])
    return out
