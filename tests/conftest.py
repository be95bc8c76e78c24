"""Pytest configuration and shared fixtures."""

from pathlib import Path

import numpy as np
import pytest

from dsgeswitch.models import AnSchorfheide
from dsgeswitch.solvers.linear.gensys import gensys

FIXTURES_DIR = Path(__file__).parent / "fixtures"
SETUPS_DIR = FIXTURES_DIR / "setups"


class RecordingKernel:
    """gensys wrapper counting calls; can report a failure on a given call."""

    def __init__(self, fail_on_call: int | None = None, eu: tuple[int, int] = (1, 0)):
        self.calls = 0
        self.fail_on_call = fail_on_call
        self.eu = eu

    def __call__(self, g0, g1, c, psi, pi, div):
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            n = g0.shape[0]
            return np.zeros((n, n)), np.zeros((n, psi.shape[1])), np.zeros(n), self.eu
        return gensys(g0, g1, c, psi, pi, div)


class CountingModel(AnSchorfheide):
    """AnSchorfheide recording which regimes had equilibrium conditions built."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.eqcond_calls: list[int | None] = []

    def eqcond(self, regime=None):
        self.eqcond_calls.append(regime)
        return super().eqcond(regime)


def assert_solves(eqcond, solution, atol: float = 1e-8) -> None:
    """Check a core solution against its gensys-form equilibrium conditions.

    Rows without expectational errors hold exactly: Gamma0 TTT = Gamma1,
    Gamma0 CCC = C and Gamma0 RRR = Psi. Rows with expectational errors hold
    in expectation for any state reachable through TTT:
    Gamma0 TTT TTT = Gamma1 TTT and Gamma0 (TTT CCC + CCC) = Gamma1 CCC + C.
    """
    g0, g1, c, psi, pi = eqcond
    TTT, RRR, CCC = solution
    exact = ~np.any(pi != 0.0, axis=1)
    expected = ~exact

    np.testing.assert_allclose((g0 @ TTT)[exact], g1[exact], atol=atol)
    np.testing.assert_allclose((g0 @ CCC)[exact], c[exact], atol=atol)
    np.testing.assert_allclose((g0 @ RRR)[exact], psi[exact], atol=atol)

    np.testing.assert_allclose((g0 @ TTT @ TTT)[expected], (g1 @ TTT)[expected], atol=atol)
    np.testing.assert_allclose(
        (g0 @ (TTT @ CCC + CCC))[expected], (g1 @ CCC + c)[expected], atol=atol
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def setups_dir() -> Path:
    """Return path to setup fixtures directory."""
    return SETUPS_DIR


@pytest.fixture
def model() -> AnSchorfheide:
    return AnSchorfheide()


@pytest.fixture
def switching_model() -> AnSchorfheide:
    """Model whose Phillips curve slope and policy response vary by regime."""
    return AnSchorfheide(
        regime_parameters={2: {"kappa": 0.3}, 3: {"psi1": 2.0, "rho_R": 0.4}},
    )


@pytest.fixture
def counting_model() -> CountingModel:
    return CountingModel()


@pytest.fixture
def recording_kernel():
    """Factory for call-recording kernels."""
    return RecordingKernel
