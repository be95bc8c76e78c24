"""Agent-perceived transition equations under imperfect policy credibility."""

from __future__ import annotations

from collections.abc import Sequence

from dsgeswitch.exceptions import PreconditionViolation
from dsgeswitch.solvers.linear.gensys2 import (
    PredictableForm,
    expected_transition,
    gensys2_backward_step,
)
from dsgeswitch.system import TransitionSolution


def gensys_uncertain_altpol(
    weights: Sequence[float],
    candidates: Sequence[TransitionSolution],
    base: TransitionSolution,
    form: PredictableForm,
    *,
    regime: int | None = None,
) -> TransitionSolution:
    """Blend policy expectations into one regime's transition equation.

    The policy in place governs today's equilibrium conditions (``form``),
    but agents form expectations of tomorrow by mixing its perfect-credibility
    solution ``base`` (probability ``weights[0]``) with the solutions of the
    candidate policies (probabilities ``weights[1:]``).

    With all weight on the policy in place the result reproduces ``base``.
    """
    if len(weights) != 1 + len(candidates):
        raise PreconditionViolation(
            f"Regime {regime}: {len(weights)} credibility weights for "
            f"{len(candidates)} alternative policies plus the policy in place"
        )
    if base.n_states != form.n_states:
        raise PreconditionViolation(
            f"Regime {regime}: base solution has {base.n_states} states, "
            f"equilibrium conditions have {form.n_states}"
        )
    TTT, CCC = expected_transition(weights, base, candidates)
    return gensys2_backward_step(form, TTT, CCC, regime=regime)
