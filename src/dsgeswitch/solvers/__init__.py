"""Solvers for regime-switching linear models: gensys, gensys2, Klein."""

from dsgeswitch.solvers.credibility import gensys_uncertain_altpol
from dsgeswitch.solvers.linear import (
    KleinSystem,
    PredictableForm,
    gensys,
    gensys2,
    gensys2_uncertain_altpol,
    gensys_to_predictable_form,
    klein,
    klein_transition_matrices,
)
from dsgeswitch.solvers.regimes import (
    RegimeSolveContext,
    build_regime_eqconds,
    solve_gensys2,
    solve_gensys_regime,
    solve_gensys_regimes,
    solve_one_regime,
    solve_uncertain_altpolicy,
)

__all__ = [
    "gensys",
    "KleinSystem",
    "klein",
    "klein_transition_matrices",
    "PredictableForm",
    "gensys_to_predictable_form",
    "gensys2",
    "gensys2_uncertain_altpol",
    "gensys_uncertain_altpol",
    "RegimeSolveContext",
    "solve_gensys_regime",
    "build_regime_eqconds",
    "solve_gensys_regimes",
    "solve_gensys2",
    "solve_one_regime",
    "solve_uncertain_altpolicy",
]
