"""Tests for Klein's method and the non-switching Klein path."""

from __future__ import annotations

import numpy as np
import pytest

from dsgeswitch import KleinError, SolverConfig, UnsupportedConfigurationError, solve
from dsgeswitch.solvers.linear.klein import KleinSystem, klein, klein_transition_matrices


def _irf(TTT, RRR, horizon):
    out = [RRR]
    for _ in range(horizon):
        out.append(TTT @ out[-1])
    return np.stack(out)


def test_scalar_predetermined_variable():
    system = KleinSystem(np.array([[1.0]]), np.array([[0.9]]), 1, np.array([[1.0]]), ["k"])
    TTT_jump, TTT_state = klein(system)
    TTT, RRR = klein_transition_matrices(system, TTT_state, TTT_jump)

    np.testing.assert_allclose(TTT_state, [[0.9]], atol=1e-12)
    assert TTT_jump.shape == (0, 1)
    np.testing.assert_allclose(TTT, [[0.9]], atol=1e-12)
    np.testing.assert_allclose(RRR, [[1.0]], atol=1e-12)


def test_klein_matches_gensys_impulse_responses(model):
    gensys_solution = solve(model)
    klein_solution = solve(model, SolverConfig(solution_method="klein"))

    system = model.klein_system()
    klein_index = {name: i for i, name in enumerate(system.state_names)}
    endo = model.endogenous_states

    irf_g = _irf(gensys_solution.TTT, gensys_solution.RRR, 12)
    irf_k = _irf(klein_solution.TTT, klein_solution.RRR, 12)
    for name in ("y_t", "pi_t", "R_t"):
        np.testing.assert_allclose(
            irf_k[:, klein_index[name], :], irf_g[:, endo[name], :], atol=1e-8
        )
    assert np.all(klein_solution.CCC == 0.0)


def test_wrong_number_of_predetermined_variables(model):
    system = model.klein_system()
    bad = KleinSystem(system.A, system.B, 3, system.shock_loading[:3], system.state_names)

    with pytest.raises(KleinError, match="stable roots"):
        klein(bad)


def test_klein_rejects_regime_switching(model):
    config = SolverConfig(solution_method="klein", regime_switching=True)

    with pytest.raises(UnsupportedConfigurationError):
        solve(model, config)
