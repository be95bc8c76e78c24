"""Regime-switching solution of linear rational expectations models.

The pieces below are driven by :func:`dsgeswitch.solve.solve_regime_switching`:

- :func:`solve_gensys_regime` runs the kernel on one regime and classifies
  the outcome as a :class:`SolveResult`.
- :func:`build_regime_eqconds` builds the equilibrium conditions of every
  requested regime, copying regimes declared identical.
- :func:`solve_gensys_regimes` solves permanent regimes one by one.
- :func:`solve_gensys2` splices a temporary-policy window backward from its
  lift-off regime.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from dsgeswitch.config import SolverConfig
from dsgeswitch.exceptions import PreconditionViolation, SolveFailure
from dsgeswitch.model.base import RegimeModel
from dsgeswitch.policy import AltPolicy, PolicyKind, PolicyRegistry
from dsgeswitch.solvers.credibility import gensys_uncertain_altpol
from dsgeswitch.solvers.linear.gensys import EU_UNIQUE, gensys
from dsgeswitch.solvers.linear.gensys2 import (
    gensys2,
    gensys2_uncertain_altpol,
    gensys_to_predictable_form,
)
from dsgeswitch.system import (
    EquilibriumConditions,
    RegimeSwitchingSolution,
    SolveResult,
    TransitionSolution,
)

_log = logging.getLogger(__name__)

SolveKernel = Callable[..., tuple[Any, Any, Any, Any]]


@dataclass
class RegimeSolveContext:
    """Everything one solve call needs, resolved once by the dispatcher."""

    model: RegimeModel
    config: SolverConfig = field(default_factory=SolverConfig)
    registry: PolicyRegistry = field(default_factory=PolicyRegistry)
    kernel: SolveKernel = gensys
    _candidates: dict[tuple[str, int | None], TransitionSolution] = field(
        default_factory=dict, repr=False
    )


# ----------------------------------------------------------------------
# Single regime
# ----------------------------------------------------------------------


def solve_gensys_regime(
    eqcond: EquilibriumConditions,
    *,
    div: float,
    regime: int | None = None,
    kernel: SolveKernel = gensys,
) -> SolveResult:
    """Run the kernel on one regime's equilibrium conditions.

    Returns a :class:`SolveResult` holding either the real transition
    equation or a :class:`SolveFailure` tagged with ``regime``.
    """
    TTT, RRR, CCC, eu = kernel(*eqcond, div)
    eu = (int(eu[0]), int(eu[1]))
    if eu != EU_UNIQUE:
        _log.debug(f"Kernel returned eu={eu} for regime {regime}")
        return SolveResult(failure=SolveFailure(regime=regime, eu=eu))
    return SolveResult(solution=TransitionSolution(TTT, RRR, CCC).as_real())


def _core_solution(ctx: RegimeSolveContext, eqcond: EquilibriumConditions, regime: int | None):
    result = solve_gensys_regime(
        eqcond, div=ctx.config.stability_divider, regime=regime, kernel=ctx.kernel
    )
    if not result.ok:
        raise result.failure
    return result.solution


def perfect_credibility_solution(
    ctx: RegimeSolveContext, policy: AltPolicy, regime: int | None
) -> TransitionSolution:
    """Core transition equation if ``policy`` were permanent and fully credible."""
    key = (policy.key, regime)
    if key in ctx._candidates:
        return ctx._candidates[key]

    if policy.kind is PolicyKind.CUSTOM:
        solution = policy.solve(ctx.model, regime).as_real().truncate(ctx.model.n_states)
    else:
        solution = _core_solution(
            ctx, policy.equilibrium_conditions(ctx.model, regime), regime
        )
    ctx._candidates[key] = solution
    return solution


def blend_regime(
    ctx: RegimeSolveContext,
    regime: int | None,
    weights: Sequence[float],
    base: TransitionSolution,
    eqcond: EquilibriumConditions,
) -> TransitionSolution:
    """Agent-perceived transition equation of ``regime`` under ``weights``."""
    candidates = [
        perfect_credibility_solution(ctx, policy, regime)
        for policy in ctx.registry.alternative_policies
    ]
    form = gensys_to_predictable_form(
        *eqcond, use_sparse=ctx.config.gensys2_sparse_matrices
    )
    _log.debug(f"Blending regime {regime} over {len(candidates)} alternative policies")
    return gensys_uncertain_altpol(weights, candidates, base, form, regime=regime)


def regime_equilibrium_conditions(
    ctx: RegimeSolveContext, regime: int | None
) -> EquilibriumConditions:
    """Equilibrium conditions of one regime under the policy in place."""
    if ctx.config.replace_eqcond and regime is not None:
        policy = ctx.registry.policy_for(regime)
        if policy is not None:
            return policy.equilibrium_conditions(ctx.model, regime)
    return ctx.registry.alternative_policy.equilibrium_conditions(ctx.model, regime)


def solve_one_regime(
    ctx: RegimeSolveContext,
    regime: int | None,
    *,
    uncertain_altpolicy: bool = False,
    eqcond: EquilibriumConditions | None = None,
) -> TransitionSolution:
    """Augmented transition equation of a single regime.

    Uses the active policy's own solve procedure when it has one, otherwise
    the kernel. With ``uncertain_altpolicy`` the result is blended over the
    registry's alternative policies using the regime's credibility weights.
    """
    registry = ctx.registry
    policy = registry.alternative_policy
    apply_altpolicy = registry.applies_alternative_policy

    if policy.kind is PolicyKind.CUSTOM and apply_altpolicy:
        augmented = policy.solve(ctx.model, regime).as_real()
        core = augmented.truncate(ctx.model.n_states)
    else:
        if eqcond is None:
            eqcond = regime_equilibrium_conditions(ctx, regime)
        core = _core_solution(ctx, eqcond, regime)
        augmented = None

    weights = registry.weights(regime) if regime is not None else []
    if uncertain_altpolicy and apply_altpolicy and weights:
        if eqcond is None:
            eqcond = regime_equilibrium_conditions(ctx, regime)
        core = blend_regime(ctx, regime, weights, core, eqcond)
        augmented = None

    if augmented is not None:
        return augmented
    return ctx.model.augment_states(core, regime)


# ----------------------------------------------------------------------
# Equilibrium conditions for many regimes
# ----------------------------------------------------------------------


def build_regime_eqconds(
    ctx: RegimeSolveContext, regimes: Iterable[int]
) -> dict[int, EquilibriumConditions]:
    """Build equilibrium conditions for ``regimes`` in ascending order.

    A regime listed in ``identical_eqcond_regimes`` receives an independent
    copy of its source regime's matrices. A source outside ``regimes`` is
    built first, without being added to the output.
    """
    identical = ctx.registry.identical_eqcond_regimes
    built: dict[int, EquilibriumConditions] = {}

    def _build(reg: int) -> EquilibriumConditions:
        if reg in built:
            return built[reg]
        src = identical.get(reg)
        if src is not None and src != reg:
            _log.debug(f"Regime {reg}: copying equilibrium conditions of regime {src}")
            out = _build(src).copy()
        else:
            out = regime_equilibrium_conditions(ctx, reg)
        built[reg] = out
        return out

    requested = sorted(set(regimes))
    for reg in requested:
        _build(reg)
    return {reg: built[reg] for reg in requested}


# ----------------------------------------------------------------------
# Permanent regimes
# ----------------------------------------------------------------------


def _check_uncertain_flag(ctx: RegimeSolveContext, uncertain_altpolicy: bool) -> None:
    if uncertain_altpolicy != ctx.config.uncertain_altpolicy:
        raise PreconditionViolation(
            f"uncertain_altpolicy={uncertain_altpolicy} disagrees with the solver "
            f"configuration (uncertain_altpolicy={ctx.config.uncertain_altpolicy})"
        )


def _eqcond_for(
    eqconds: Mapping[int, EquilibriumConditions], regime: int
) -> EquilibriumConditions:
    if regime not in eqconds:
        raise PreconditionViolation(f"No equilibrium conditions were built for regime {regime}")
    return eqconds[regime]


def solve_gensys_regimes(
    ctx: RegimeSolveContext,
    eqconds: Mapping[int, EquilibriumConditions],
    out: dict[int, TransitionSolution],
    *,
    regimes: Iterable[int],
    uncertain_altpolicy: bool = False,
) -> dict[int, TransitionSolution]:
    """Solve permanent regimes in ascending order and store them in ``out``.

    Under perfect credibility a regime listed in
    ``perfect_credibility_identical_transitions`` copies the transition
    equation of an earlier regime instead of being solved. The first
    failing regime aborts the batch with a :class:`SolveFailure`.
    """
    _check_uncertain_flag(ctx, uncertain_altpolicy)
    identical = ctx.registry.perfect_credibility_identical_transitions

    for reg in sorted(regimes):
        src = identical.get(reg)
        if not uncertain_altpolicy and src is not None and src != reg:
            if src not in out:
                raise PreconditionViolation(
                    f"Regime {reg} reuses the transition equation of regime {src}, "
                    "which has not been solved"
                )
            _log.debug(f"Regime {reg}: reusing transition equation of regime {src}")
            out[reg] = out[src].copy()
            continue

        eqcond = _eqcond_for(eqconds, reg)
        result = solve_gensys_regime(
            eqcond, div=ctx.config.stability_divider, regime=reg, kernel=ctx.kernel
        )
        if not result.ok:
            raise result.failure
        solution = result.solution

        weights = ctx.registry.weights(reg)
        if uncertain_altpolicy and weights:
            solution = blend_regime(ctx, reg, weights, solution, eqcond)

        out[reg] = ctx.model.augment_states(solution, reg)
        _log.debug(f"Solved regime {reg}")

    return out


# ----------------------------------------------------------------------
# Temporary-policy windows
# ----------------------------------------------------------------------


def solve_gensys2(
    ctx: RegimeSolveContext,
    eqconds: Mapping[int, EquilibriumConditions],
    out: dict[int, TransitionSolution],
    *,
    gensys2_regimes: Sequence[int],
    uncertain_altpolicy: bool = False,
    uncertain_temporary_altpolicy: bool = False,
) -> dict[int, TransitionSolution]:
    """Splice one temporary-policy window into ``out``.

    ``gensys2_regimes`` lists the regime preceding the window, the K
    temporary regimes and the lift-off regime. The lift-off regime is solved
    first and the temporary regimes are built backward from it. The
    preceding regime keeps whatever solution it already has.
    """
    window = list(gensys2_regimes)
    if len(window) < 2:
        raise PreconditionViolation(
            f"A gensys2 window needs a preceding and a lift-off regime, got {window}"
        )
    temporary = window[1:-1]
    liftoff = window[-1]
    n_temporary = len(temporary)

    length = ctx.config.temporary_altpolicy_length
    if length is not None and length != n_temporary:
        raise PreconditionViolation(
            f"temporary_altpolicy_length={length} does not match the "
            f"{n_temporary} gensys2 regimes in {window}"
        )
    _check_uncertain_flag(ctx, uncertain_altpolicy)

    n = ctx.model.n_states
    liftoff_eqcond = eqconds.get(liftoff)
    terminal = solve_one_regime(
        ctx, liftoff, uncertain_altpolicy=False, eqcond=liftoff_eqcond
    ).truncate(n)

    final = terminal
    if uncertain_altpolicy:
        weights = ctx.registry.weights(liftoff)
        if weights:
            if liftoff_eqcond is None:
                liftoff_eqcond = regime_equilibrium_conditions(ctx, liftoff)
            final = blend_regime(ctx, liftoff, weights, terminal, liftoff_eqcond)

    forms = [
        gensys_to_predictable_form(
            *_eqcond_for(eqconds, reg), use_sparse=ctx.config.gensys2_sparse_matrices
        )
        for reg in temporary
    ]
    path = gensys2(forms, terminal, regimes=temporary)

    if uncertain_temporary_altpolicy:
        altpols = ctx.registry.alternative_policies
        perfect = [1.0] + [0.0] * len(altpols)
        weights = [ctx.registry.weights(reg) or perfect for reg in temporary]
        candidates = [
            [perfect_credibility_solution(ctx, policy, nxt) for policy in altpols]
            for nxt in window[2:]
        ]
        sequence = gensys2_uncertain_altpol(
            weights, candidates, path, forms, regimes=temporary
        )
    else:
        sequence = list(path)

    sequence[-1] = final

    for reg, solution in zip(window[1:], sequence):
        out[reg] = ctx.model.augment_states(solution, reg)
    _log.debug(f"Spliced gensys2 window {window[0]}..{liftoff} ({n_temporary} temporary regimes)")
    return out


# ----------------------------------------------------------------------
# Imperfect awareness with precomputed perfect-credibility systems
# ----------------------------------------------------------------------


PerfectCredibilitySystem = TransitionSolution | RegimeSwitchingSolution


def _system_at(
    system: PerfectCredibilitySystem, regime: int, *, permanent: bool, n_states: int
) -> TransitionSolution:
    """Core transition equation of one precomputed system in ``regime``.

    A permanent policy's system is regime-invariant after its last regime,
    so its final transition equation is used for every regime.
    """
    if isinstance(system, TransitionSolution):
        solution = system
    elif permanent:
        solution = system[system.regimes[-1]]
    elif regime in system:
        solution = system[regime]
    else:
        raise PreconditionViolation(
            f"Perfect-credibility system has no transition equation for regime {regime}"
        )
    return solution.truncate(n_states)


def solve_uncertain_altpolicy(
    ctx: RegimeSolveContext,
    perfect_cred_systems: Sequence[PerfectCredibilitySystem],
    is_altpol: Sequence[bool],
    *,
    regimes: Iterable[int] | None = None,
) -> RegimeSwitchingSolution:
    """Transition equations when agents are imperfectly aware of the policy.

    ``perfect_cred_systems[0]`` is the perfectly credible solution of the
    implemented policy (possibly with temporary-policy regimes) and
    ``perfect_cred_systems[i]`` that of ``registry.alternative_policies[i-1]``.
    ``is_altpol[i-1]`` marks candidate ``i`` as a permanent alternative policy.

    Regimes with credibility weights are blended directly from these systems
    without calling the kernel. Every temporary-policy window ends with the
    lift-off regime's weighted transition equation.
    """
    registry = ctx.registry
    config = ctx.config
    if not registry.regime_eqcond_info:
        raise PreconditionViolation(
            "regime_eqcond_info must be set to solve under imperfect awareness"
        )
    if not perfect_cred_systems:
        raise PreconditionViolation("At least one perfect-credibility system is required")
    if len(is_altpol) != len(perfect_cred_systems) - 1:
        raise PreconditionViolation(
            f"Got {len(is_altpol)} is_altpol flags for "
            f"{len(perfect_cred_systems) - 1} alternative-policy systems"
        )

    n = ctx.model.n_states
    implemented = perfect_cred_systems[0]
    alternatives = list(zip(perfect_cred_systems[1:], is_altpol))

    def _base(reg: int) -> TransitionSolution:
        return _system_at(implemented, reg, permanent=False, n_states=n)

    def _candidates(reg: int) -> list[TransitionSolution]:
        return [
            _system_at(system, reg, permanent=bool(flag), n_states=n)
            for system, flag in alternatives
        ]

    def _form(eqcond: EquilibriumConditions):
        return gensys_to_predictable_form(*eqcond, use_sparse=config.gensys2_sparse_matrices)

    requested = sorted(set(regimes)) if regimes is not None else config.regimes
    if not requested:
        raise PreconditionViolation("No regimes to solve")
    wanted = set(requested)
    eqctx = RegimeSolveContext(
        ctx.model, config.replace(replace_eqcond=True), registry, ctx.kernel
    )
    eqconds = build_regime_eqconds(eqctx, requested)
    out: dict[int, TransitionSolution] = {}

    for reg_range in config.gensys_regimes:
        for reg in (r for r in reg_range if r in wanted):
            weights = registry.weights(reg)
            if weights:
                eqcond = _eqcond_for(eqconds, reg)
                core = gensys_uncertain_altpol(
                    weights, _candidates(reg), _base(reg), _form(eqcond), regime=reg
                )
            else:
                core = _core_solution(ctx, _eqcond_for(eqconds, reg), reg)
            out[reg] = ctx.model.augment_states(core, reg)
            _log.debug(f"Solved regime {reg} under imperfect awareness")

    if config.gensys2:
        for window in config.gensys2_regimes:
            spliced = list(window)[1:]
            if not set(spliced) & wanted:
                continue
            if not set(spliced) <= wanted:
                raise PreconditionViolation(
                    f"Regimes {sorted(set(spliced) - wanted)} of gensys2 window "
                    f"{window.start}..{window.stop - 1} were not requested"
                )
            temporary = spliced[:-1]
            liftoff = spliced[-1]
            length = config.temporary_altpolicy_length
            if length is not None and length != len(temporary):
                raise PreconditionViolation(
                    f"temporary_altpolicy_length={length} does not match the "
                    f"{len(temporary)} gensys2 regimes in {list(window)}"
                )

            perfect = [1.0] + [0.0] * len(alternatives)
            final = gensys_uncertain_altpol(
                registry.weights(liftoff) or perfect,
                _candidates(liftoff),
                _base(liftoff),
                _form(_eqcond_for(eqconds, liftoff)),
                regime=liftoff,
            )
            sequence = gensys2_uncertain_altpol(
                [registry.weights(reg) or perfect for reg in temporary],
                [_candidates(nxt) for nxt in spliced[1:]],
                [_base(reg) for reg in spliced],
                [_form(_eqcond_for(eqconds, reg)) for reg in temporary],
                regimes=temporary,
            )
            sequence[-1] = final
            for reg, solution in zip(spliced, sequence):
                out[reg] = ctx.model.augment_states(solution, reg)
            _log.debug(
                f"Spliced gensys2 window {window.start}..{liftoff} under imperfect awareness"
            )

    missing = [reg for reg in requested if reg not in out]
    if missing:
        raise PreconditionViolation(
            f"Regimes {missing} are not covered by gensys_regimes or gensys2_regimes"
        )
    return RegimeSwitchingSolution({reg: out[reg] for reg in requested})
