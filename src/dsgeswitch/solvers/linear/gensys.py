"""Sims (2002) gensys solver for linear rational expectations models.

Canonical form:
    Gamma0 * x_t = Gamma1 * x_{t-1} + C + Psi * eps_t + Pi * eta_t

Solution:
    x_t = TTT * x_{t-1} + RRR * eps_t + CCC

The kernel classifies the system with an existence/uniqueness pair ``eu``:

    ( 1,  1)  unique bounded solution
    ( 0,  *)  no bounded solution
    ( *,  0)  indeterminacy
    (-2, -2)  coincident zeros in the QZ decomposition
    (-3, -3)  LAPACK failure

It never raises for numerical failure; callers decide what a bad ``eu`` means.

References:
    Sims, C. A. (2002). Solving linear rational expectations models.
    Computational Economics, 20(1-2), 1-20.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from dsgeswitch.config import DEFAULT_STABILITY_DIVIDER

_log = logging.getLogger(__name__)

REALSMALL = 1e-6

EU_UNIQUE = (1, 1)
EU_COINCIDENT_ZEROS = (-2, -2)
EU_LAPACK_FAILURE = (-3, -3)


def _svd_big(
    a: NDArray, tol: float
) -> tuple[NDArray, NDArray, NDArray]:
    """SVD restricted to singular values above ``tol``.

    Returns ``(U, s, V)`` with ``a ~ U @ diag(s) @ V^H``; handles empty input.
    """
    rows, cols = a.shape
    if a.size == 0:
        return (
            np.zeros((rows, 0), dtype=complex),
            np.zeros(0),
            np.zeros((cols, 0), dtype=complex),
        )
    u, s, vh = linalg.svd(a, full_matrices=False)
    big = s > tol
    return u[:, big], s[big], vh[big, :].conj().T


def _failure(n: int, n_shocks: int, eu: tuple[int, int]):
    return (
        np.zeros((n, n), dtype=complex),
        np.zeros((n, n_shocks), dtype=complex),
        np.zeros(n, dtype=complex),
        eu,
    )


def gensys(
    g0: NDArray[np.float64],
    g1: NDArray[np.float64],
    c: NDArray[np.float64],
    psi: NDArray[np.float64],
    pi: NDArray[np.float64],
    div: float = DEFAULT_STABILITY_DIVIDER,
    *,
    realsmall: float = REALSMALL,
) -> tuple[NDArray[np.complex128], NDArray[np.complex128], NDArray[np.complex128], tuple[int, int]]:
    """Solve a linear rational expectations model.

    Args:
        g0: Coefficients on x_t (n x n).
        g1: Coefficients on x_{t-1} (n x n).
        c: Constant (n,).
        psi: Coefficients on exogenous shocks (n x n_shocks).
        pi: Coefficients on expectational errors (n x n_eta).
        div: Generalized eigenvalues with modulus above ``div`` are unstable.
        realsmall: Numerical zero.

    Returns:
        ``(TTT, RRR, CCC, eu)``. The matrices are complex; their imaginary
        parts are numerical residue of the complex QZ decomposition. On
        failure they are zero-filled.
    """
    g0 = np.asarray(g0, dtype=np.float64)
    g1 = np.asarray(g1, dtype=np.float64)
    c = np.asarray(c, dtype=np.float64).reshape(-1)
    psi = np.asarray(psi, dtype=np.float64)
    pi = np.asarray(pi, dtype=np.float64)

    n = g0.shape[0]
    n_shocks = psi.shape[1]

    def _stable(alpha, beta):
        return ~(np.abs(beta) > div * np.abs(alpha))

    try:
        a, b, alpha, beta, q, z = linalg.ordqz(
            g0.astype(complex), g1.astype(complex), sort=_stable, output="complex"
        )
    except (linalg.LinAlgError, ValueError) as exc:
        _log.warning(f"LAPACK exception in QZ decomposition: {exc}")
        return _failure(n, n_shocks, EU_LAPACK_FAILURE)

    if np.any((np.abs(alpha) < realsmall) & (np.abs(beta) < realsmall)):
        _log.warning("Coincident zeros. Indeterminacy and/or nonexistence.")
        return _failure(n, n_shocks, EU_COINCIDENT_ZEROS)

    nunstab = int(n - np.sum(_stable(alpha, beta)))
    nstab = n - nunstab

    qt = q.conj().T
    qt1 = qt[:nstab, :]
    qt2 = qt[nstab:, :]

    ueta, deta, veta = _svd_big(qt2 @ pi, realsmall)
    existence = len(deta) >= nunstab
    if not existence:
        _log.warning(
            f"{nunstab} unstable roots but only {len(deta)} expectational errors: "
            "no bounded solution"
        )

    ueta1, deta1, veta1 = _svd_big(qt1 @ pi, realsmall)
    if veta1.size == 0:
        unique = True
    else:
        loose = veta1 - veta @ (veta.conj().T @ veta1)
        s_loose = linalg.svd(loose, compute_uv=False)
        unique = int(np.sum(np.abs(s_loose) > realsmall * n)) == 0
    if not unique:
        _log.warning("Indeterminacy: expectational errors not pinned down by unstable roots")

    eu = (int(existence), int(unique))
    if eu != EU_UNIQUE:
        return _failure(n, n_shocks, eu)

    try:
        # Map the stable block's expectational errors onto the unstable block's.
        if nunstab > 0 and veta1.size > 0:
            inner = ueta @ ((veta.conj().T / deta[:, None]) @ veta1) @ (deta1[:, None] * ueta1.conj().T)
            tmat = np.hstack([np.eye(nstab), -inner.conj().T])
        else:
            tmat = np.hstack([np.eye(nstab), np.zeros((nstab, nunstab))])

        G0 = np.vstack([tmat @ a, np.hstack([np.zeros((nunstab, nstab)), np.eye(nunstab)])])
        G1 = np.vstack([tmat @ b, np.zeros((nunstab, n))])
        G0I = linalg.inv(G0)
        G1 = G0I @ G1

        if nunstab > 0:
            Ausix = a[nstab:, nstab:]
            Busix = b[nstab:, nstab:]
            c_unstab = linalg.solve(Ausix - Busix, qt2 @ c)
        else:
            c_unstab = np.zeros(0, dtype=complex)
        CCC = G0I @ np.concatenate([tmat @ (qt @ c), c_unstab])
        impact = G0I @ np.vstack([tmat @ (qt @ psi), np.zeros((nunstab, n_shocks))])
    except (linalg.LinAlgError, ValueError) as exc:
        _log.warning(f"LAPACK exception while assembling the gensys solution: {exc}")
        return _failure(n, n_shocks, EU_LAPACK_FAILURE)

    TTT = z @ G1 @ z.conj().T
    CCC = z @ CCC
    RRR = z @ impact
    return TTT, RRR, CCC, eu
