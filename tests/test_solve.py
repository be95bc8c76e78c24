"""Tests for the top-level solve dispatcher."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import assert_solves
from dsgeswitch import (
    HISTORICAL,
    AltPolicy,
    PolicyRegistry,
    PreconditionViolation,
    RegimeEqcondInfo,
    RegimeSwitchingSolution,
    SolveFailure,
    SolverConfig,
    TransitionSolution,
    solve,
    try_solve,
)
from dsgeswitch.models import TAYLOR93, ZERO_RATE
from dsgeswitch.system import SolveResult


def test_single_regime_solution_is_augmented(model):
    solution = solve(model)

    assert isinstance(solution, TransitionSolution)
    assert solution.n_states == model.n_states_augmented == 9
    assert solution.n_shocks == model.n_shocks
    assert solution.spectral_radius < 1.0
    assert solution.TTT.dtype == np.float64

    assert_solves(model.eqcond(), solution.truncate(model.n_states))
    pi_t1 = model.endogenous_states_augmented["pi_t1"]
    expected = np.zeros(model.n_states_augmented)
    expected[model.endogenous_states["pi_t"]] = 1.0
    np.testing.assert_array_equal(solution.TTT[pi_t1], expected)
    assert np.all(solution.RRR[pi_t1] == 0.0)


def test_alternative_policy_replaces_equilibrium_conditions(model):
    historical = solve(model)
    taylor = solve(model, registry=PolicyRegistry(alternative_policy=TAYLOR93))

    assert_solves(TAYLOR93.equilibrium_conditions(model), taylor.truncate(model.n_states))
    assert not np.allclose(taylor.TTT, historical.TTT)


def test_permanent_peg_raises(model):
    with pytest.raises(SolveFailure, match="Error in Gensys"):
        solve(model, registry=PolicyRegistry(alternative_policy=ZERO_RATE))


def test_try_solve_reports_failure(model):
    failed = try_solve(model, registry=PolicyRegistry(alternative_policy=ZERO_RATE))
    solved = try_solve(model)

    assert not failed.ok
    assert isinstance(failed.failure, SolveFailure)
    assert failed.solution is None
    with pytest.raises(SolveFailure):
        failed.unwrap()

    assert solved.ok
    assert solved.unwrap().n_states == model.n_states_augmented


def test_solve_result_holds_exactly_one_outcome(model):
    with pytest.raises(ValueError, match="exactly one"):
        SolveResult()
    with pytest.raises(ValueError, match="exactly one"):
        SolveResult(solution=solve(model), failure=SolveFailure(eu=(0, 0)))


def test_custom_policy_procedure_is_used(model):
    calls = []

    def fixed_solution(m, regime):
        calls.append(regime)
        n = m.n_states_augmented
        return TransitionSolution(0.5 * np.eye(n), np.ones((n, m.n_shocks)), np.zeros(n))

    policy = AltPolicy("fixed", solve=fixed_solution)
    solution = solve(model, registry=PolicyRegistry(alternative_policy=policy))

    assert calls == [None]
    np.testing.assert_array_equal(solution.TTT, 0.5 * np.eye(model.n_states_augmented))


def test_custom_policy_in_regime_switching(model):
    def fixed_solution(m, regime):
        n = m.n_states_augmented
        return TransitionSolution(
            0.1 * regime * np.eye(n), np.zeros((n, m.n_shocks)), np.zeros(n)
        )

    policy = AltPolicy("fixed", solve=fixed_solution)
    config = SolverConfig(regime_switching=True, gensys_regimes=[range(1, 4)])

    solution = solve(model, config, PolicyRegistry(alternative_policy=policy), regimes=[2])

    assert solution.regimes == [2]
    np.testing.assert_allclose(solution[2].TTT, 0.2 * np.eye(model.n_states_augmented))


def test_uncertain_policy_without_switching(model):
    registry = PolicyRegistry(
        alternative_policies=[TAYLOR93],
        regime_eqcond_info={1: RegimeEqcondInfo(HISTORICAL, [0.5, 0.5])},
    )

    perfect = solve(model, SolverConfig(), registry)
    blended = solve(model, SolverConfig(uncertain_altpolicy=True), registry)

    assert blended.n_states == model.n_states_augmented
    assert not np.allclose(blended.TTT, perfect.TTT, atol=1e-6)


def test_single_requested_regime_returns_mapping(switching_model):
    config = SolverConfig(regime_switching=True, gensys_regimes=[range(1, 4)])

    solution = solve(switching_model, config, regimes=[3])

    assert isinstance(solution, RegimeSwitchingSolution)
    assert list(solution) == [3]
    assert 3 in solution and 1 not in solution
    assert_solves(switching_model.eqcond(3), solution[3].truncate(switching_model.n_states))


def test_empty_request_is_rejected(model):
    config = SolverConfig(regime_switching=True)

    with pytest.raises(PreconditionViolation, match="No regimes"):
        solve(model, config, regimes=[])


def test_solution_table(switching_model):
    config = SolverConfig(regime_switching=True, gensys_regimes=[range(1, 4)])
    solution = solve(switching_model, config)

    frame = solution.to_frame()
    summary = solution.summary()

    assert list(frame.index) == [1, 2, 3]
    assert list(frame.columns) == ["n_states", "n_shocks", "spectral_radius", "max_abs_constant"]
    assert (frame["n_states"] == switching_model.n_states_augmented).all()
    assert (frame["spectral_radius"] < 1.0).all()
    assert "Regime-Switching Solution" in summary
    assert "Regimes:            3" in summary
