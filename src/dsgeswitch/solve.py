"""Top-level driver: compute a model's transition equation(s).

    x_t = TTT x_{t-1} + RRR eps_t + CCC

``solve`` returns one augmented :class:`TransitionSolution`, or a
:class:`RegimeSwitchingSolution` with one per regime when regime switching
is enabled.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from dsgeswitch.config import SolverConfig
from dsgeswitch.exceptions import (
    PreconditionViolation,
    SolverError,
    UnsupportedConfigurationError,
)
from dsgeswitch.model.base import RegimeModel
from dsgeswitch.policy import PolicyKind, PolicyRegistry
from dsgeswitch.solvers.linear.gensys import gensys
from dsgeswitch.solvers.linear.klein import klein, klein_transition_matrices
from dsgeswitch.solvers.regimes import (
    RegimeSolveContext,
    SolveKernel,
    blend_regime,
    build_regime_eqconds,
    solve_gensys2,
    solve_gensys_regime,
    solve_gensys_regimes,
    solve_one_regime,
)
from dsgeswitch.system import RegimeSwitchingSolution, SolveResult, TransitionSolution

_log = logging.getLogger(__name__)


def solve(
    model: RegimeModel,
    config: SolverConfig | None = None,
    registry: PolicyRegistry | None = None,
    *,
    regimes: Iterable[int] | None = None,
    kernel: SolveKernel = gensys,
) -> TransitionSolution | RegimeSwitchingSolution:
    """Solve ``model``.

    Args:
        model: Model supplying equilibrium conditions and state augmentation.
        config: Solver settings (defaults to a single gensys solve).
        registry: Policies in place and regime mappings.
        regimes: Regimes to solve when regime switching (default: all
            configured regimes).
        kernel: Rational expectations kernel with the gensys signature.

    Raises:
        SolveFailure: The kernel found no unique bounded solution.
        KleinError: Klein's method failed.
        UnsupportedConfigurationError: Regime switching with Klein.
        PreconditionViolation: Inconsistent settings.
    """
    config = SolverConfig() if config is None else config
    registry = PolicyRegistry() if registry is None else registry

    if config.solution_method == "klein":
        if config.regime_switching:
            raise UnsupportedConfigurationError(
                "Regime switching has not been implemented for the klein solution method"
            )
        return solve_klein(model)

    ctx = RegimeSolveContext(model, config, registry, kernel)
    if config.regime_switching:
        return solve_regime_switching(ctx, regimes=regimes)
    return _solve_without_switching(ctx)


def try_solve(
    model: RegimeModel,
    config: SolverConfig | None = None,
    registry: PolicyRegistry | None = None,
    **kwargs,
) -> SolveResult:
    """Like :func:`solve`, but return numerical failures instead of raising them.

    Intended for parameter searches, which reject draws with ``not result.ok``.
    """
    try:
        return SolveResult(solution=solve(model, config, registry, **kwargs))
    except SolverError as exc:
        _log.debug(f"Solve failed: {exc}")
        return SolveResult(failure=exc)


def solve_klein(model: RegimeModel) -> TransitionSolution:
    """Solve ``model`` with Klein's method (no regime switching)."""
    system = model.klein_system()
    TTT_jump, TTT_state = klein(system)
    TTT, RRR = klein_transition_matrices(system, TTT_state, TTT_jump)
    return TransitionSolution(TTT, RRR, np.zeros(system.n_vars))


def _solve_without_switching(ctx: RegimeSolveContext) -> TransitionSolution:
    model = ctx.model
    registry = ctx.registry
    policy = registry.alternative_policy

    if policy.kind is PolicyKind.CUSTOM:
        _log.debug(f"Solving with the custom procedure of policy '{policy.key}'")
        solution = policy.solve(model, None).as_real()
        eqcond = None
    else:
        eqcond = policy.equilibrium_conditions(model, None)
        result = solve_gensys_regime(
            eqcond, div=ctx.config.stability_divider, kernel=ctx.kernel
        )
        if not result.ok:
            raise result.failure
        solution = model.augment_states(result.solution)

    weights = registry.weights(1)
    if ctx.config.uncertain_altpolicy and registry.applies_alternative_policy and weights:
        if eqcond is None:
            eqcond = policy.equilibrium_conditions(model, None)
        core = blend_regime(ctx, None, weights, solution.truncate(model.n_states), eqcond)
        solution = model.augment_states(core)

    return solution


def solve_regime_switching(
    ctx: RegimeSolveContext,
    *,
    regimes: Iterable[int] | None = None,
) -> RegimeSwitchingSolution:
    """Solve every requested regime.

    Permanent regimes (``config.gensys_regimes``) are solved first; with
    ``config.gensys2`` the temporary-policy windows in
    ``config.gensys2_regimes`` are then spliced in. Either every requested
    regime gets a transition equation or an exception is raised.
    """
    config = ctx.config
    requested = sorted(set(regimes)) if regimes is not None else config.regimes
    if not requested:
        raise PreconditionViolation("No regimes to solve")

    if len(requested) == 1:
        reg = requested[0]
        solution = solve_one_regime(ctx, reg, uncertain_altpolicy=config.uncertain_altpolicy)
        return RegimeSwitchingSolution({reg: solution})

    wanted = set(requested)
    eqconds = build_regime_eqconds(ctx, requested)
    out: dict[int, TransitionSolution] = {}

    for reg_range in config.gensys_regimes:
        batch = [reg for reg in reg_range if reg in wanted]
        if batch:
            solve_gensys_regimes(
                ctx, eqconds, out,
                regimes=batch,
                uncertain_altpolicy=config.uncertain_altpolicy,
            )

    if config.gensys2:
        for window in config.gensys2_regimes:
            spliced = set(window[1:])
            if not spliced & wanted:
                continue
            if not spliced <= wanted:
                raise PreconditionViolation(
                    f"Regimes {sorted(spliced - wanted)} of gensys2 window "
                    f"{window.start}..{window.stop - 1} were not requested"
                )
            solve_gensys2(
                ctx, eqconds, out,
                gensys2_regimes=list(window),
                uncertain_altpolicy=config.uncertain_altpolicy,
                uncertain_temporary_altpolicy=config.uncertain_temporary_altpolicy,
            )

    missing = [reg for reg in requested if reg not in out]
    if missing:
        raise PreconditionViolation(
            f"Regimes {missing} are not covered by gensys_regimes or gensys2_regimes"
        )
    return RegimeSwitchingSolution({reg: out[reg] for reg in requested})
