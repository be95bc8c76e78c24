"""Tests for solving under imperfect awareness from precomputed systems."""

from __future__ import annotations

import numpy as np
import pytest

from dsgeswitch import (
    HISTORICAL,
    PolicyRegistry,
    PreconditionViolation,
    RegimeEqcondInfo,
    SolverConfig,
    solve,
    solve_uncertain_altpolicy,
)
from dsgeswitch.models import TAYLOR93, ZERO_RATE
from dsgeswitch.solvers.regimes import RegimeSolveContext


@pytest.fixture
def config() -> SolverConfig:
    """Regime 1 before the peg, regimes 2-4 at the lower bound, lift-off in 5."""
    return SolverConfig(
        regime_switching=True,
        gensys_regimes=[range(1, 2)],
        gensys2_regimes=[range(1, 6)],
        gensys2=True,
        replace_eqcond=True,
        temporary_altpolicy_length=3,
    )


def _registry(liftoff_weights, peg_weights=()) -> PolicyRegistry:
    info = {reg: RegimeEqcondInfo(ZERO_RATE, list(peg_weights)) for reg in (2, 3, 4)}
    info[5] = RegimeEqcondInfo(HISTORICAL, list(liftoff_weights))
    return PolicyRegistry(alternative_policies=[TAYLOR93], regime_eqcond_info=info)


def _systems(model, config, registry):
    implemented = solve(model, config, registry)
    taylor = solve(model, registry=PolicyRegistry(alternative_policy=TAYLOR93))
    return [implemented, taylor]


def test_full_credibility_reproduces_implemented_system(model, config, recording_kernel):
    registry = _registry([1.0, 0.0], peg_weights=[1.0, 0.0])
    systems = _systems(model, config, registry)
    kernel = recording_kernel()

    ctx = RegimeSolveContext(model, config, registry, kernel)
    solution = solve_uncertain_altpolicy(ctx, systems, [True])

    assert solution.regimes == [1, 2, 3, 4, 5]
    for reg in solution:
        np.testing.assert_allclose(solution[reg].TTT, systems[0][reg].TTT, atol=1e-8)
        np.testing.assert_allclose(solution[reg].RRR, systems[0][reg].RRR, atol=1e-8)
        np.testing.assert_allclose(solution[reg].CCC, systems[0][reg].CCC, atol=1e-8)
    # Only regime 1 has no weights and goes through the kernel
    assert kernel.calls == 1


def test_uncertain_liftoff_changes_only_liftoff_regime(model, config):
    registry = _registry([0.5, 0.5])
    systems = _systems(model, config, registry)

    ctx = RegimeSolveContext(model, config, registry)
    solution = solve_uncertain_altpolicy(ctx, systems, [True])
    expected = solve(model, config.replace(uncertain_altpolicy=True), registry)

    assert not np.allclose(solution[5].TTT, systems[0][5].TTT, atol=1e-6)
    np.testing.assert_allclose(solution[5].TTT, expected[5].TTT, atol=1e-10)
    np.testing.assert_allclose(solution[5].CCC, expected[5].CCC, atol=1e-10)
    for reg in (1, 2, 3, 4):
        np.testing.assert_allclose(solution[reg].TTT, systems[0][reg].TTT, atol=1e-10)


def test_batch_regime_blends_without_kernel(model, recording_kernel):
    config = SolverConfig(regime_switching=True, gensys_regimes=[range(1, 4)])
    registry = PolicyRegistry(
        alternative_policies=[TAYLOR93],
        regime_eqcond_info={2: RegimeEqcondInfo(HISTORICAL, [0.5, 0.5])},
    )
    implemented = solve(model, config, PolicyRegistry())
    taylor = solve(model, config, PolicyRegistry(alternative_policy=TAYLOR93))
    kernel = recording_kernel()

    ctx = RegimeSolveContext(model, config, registry, kernel)
    solution = solve_uncertain_altpolicy(ctx, [implemented, taylor], [False])
    expected = solve(model, config.replace(uncertain_altpolicy=True), registry)

    assert kernel.calls == 2
    np.testing.assert_allclose(solution[2].TTT, expected[2].TTT, atol=1e-10)
    np.testing.assert_allclose(solution[2].CCC, expected[2].CCC, atol=1e-10)
    np.testing.assert_allclose(solution[3].TTT, implemented[3].TTT, atol=1e-10)


def test_requested_regimes_subset(model, config):
    registry = _registry([0.5, 0.5])
    systems = _systems(model, config, registry)

    ctx = RegimeSolveContext(model, config, registry)
    solution = solve_uncertain_altpolicy(ctx, systems, [True], regimes=[1])

    assert solution.regimes == [1]


def test_missing_regime_eqcond_info_raises(model, config):
    registry = _registry([0.5, 0.5])
    systems = _systems(model, config, registry)

    ctx = RegimeSolveContext(model, config, PolicyRegistry(alternative_policies=[TAYLOR93]))
    with pytest.raises(PreconditionViolation, match="regime_eqcond_info"):
        solve_uncertain_altpolicy(ctx, systems, [True])


def test_is_altpol_length_must_match_systems(model, config):
    registry = _registry([0.5, 0.5])
    systems = _systems(model, config, registry)

    ctx = RegimeSolveContext(model, config, registry)
    with pytest.raises(PreconditionViolation, match="is_altpol"):
        solve_uncertain_altpolicy(ctx, systems, [True, False])


def test_temporary_system_must_cover_regime(model, config):
    registry = _registry([0.5, 0.5])
    implemented = solve(model, config, registry)
    partial = solve(model, config, registry, regimes=[1])

    ctx = RegimeSolveContext(model, config, registry)
    with pytest.raises(PreconditionViolation, match="no transition equation for regime 5"):
        solve_uncertain_altpolicy(ctx, [implemented, partial], [False])
