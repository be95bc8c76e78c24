"""Tests for blending policy expectations under imperfect credibility."""

from __future__ import annotations

import numpy as np
import pytest

from dsgeswitch import PreconditionViolation
from dsgeswitch.models.an_schorfheide import taylor93_eqcond
from dsgeswitch.solvers.credibility import gensys_uncertain_altpol
from dsgeswitch.solvers.linear.gensys2 import gensys_to_predictable_form
from dsgeswitch.solvers.regimes import solve_gensys_regime


@pytest.fixture
def base_and_form(model):
    eqcond = model.eqcond()
    base = solve_gensys_regime(eqcond, div=1 + 1e-6).unwrap()
    return base, gensys_to_predictable_form(*eqcond)


@pytest.fixture
def taylor93(model):
    return solve_gensys_regime(taylor93_eqcond(model), div=1 + 1e-6).unwrap()


def test_full_weight_on_policy_in_place_reproduces_base(base_and_form, taylor93):
    base, form = base_and_form

    blended = gensys_uncertain_altpol([1.0, 0.0], [taylor93], base, form)

    np.testing.assert_allclose(blended.TTT, base.TTT, atol=1e-8)
    np.testing.assert_allclose(blended.RRR, base.RRR, atol=1e-8)
    np.testing.assert_allclose(blended.CCC, base.CCC, atol=1e-8)


def test_single_policy_blend_is_identity(base_and_form):
    base, form = base_and_form

    blended = gensys_uncertain_altpol([1.0], [], base, form)

    np.testing.assert_allclose(blended.TTT, base.TTT, atol=1e-8)


def test_partial_credibility_changes_the_solution(base_and_form, taylor93):
    base, form = base_and_form

    blended = gensys_uncertain_altpol([0.5, 0.5], [taylor93], base, form)

    assert np.all(np.isfinite(blended.TTT))
    assert not np.allclose(blended.TTT, base.TTT, atol=1e-6)


def test_weight_count_must_match_candidates(base_and_form, taylor93):
    base, form = base_and_form

    with pytest.raises(PreconditionViolation, match="credibility weights"):
        gensys_uncertain_altpol([1.0], [taylor93], base, form, regime=2)
