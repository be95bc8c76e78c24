"""Linear rational expectations kernels."""

from dsgeswitch.solvers.linear.gensys import gensys
from dsgeswitch.solvers.linear.gensys2 import (
    PredictableForm,
    gensys2,
    gensys2_uncertain_altpol,
    gensys_to_predictable_form,
)
from dsgeswitch.solvers.linear.klein import KleinSystem, klein, klein_transition_matrices

__all__ = [
    "gensys",
    "PredictableForm",
    "gensys_to_predictable_form",
    "gensys2",
    "gensys2_uncertain_altpol",
    "KleinSystem",
    "klein",
    "klein_transition_matrices",
]
