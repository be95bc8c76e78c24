"""Tests for solver settings and the policy registry."""

from __future__ import annotations

import pytest

from dsgeswitch import (
    HISTORICAL,
    ConfigError,
    PolicyRegistry,
    RegimeEqcondInfo,
    SolverConfig,
)
from dsgeswitch.models import TAYLOR93, ZERO_RATE


class TestSolverConfig:
    def test_defaults(self):
        config = SolverConfig()

        assert config.solution_method == "gensys"
        assert not config.regime_switching
        assert config.gensys_regimes == [range(1, 2)]
        assert config.regimes == [1]
        assert config.stability_divider == pytest.approx(1.0 + 1e-6)

    def test_regimes_are_union_of_ranges(self):
        config = SolverConfig(
            gensys_regimes=[range(1, 2), range(6, 8)],
            gensys2_regimes=[range(1, 7)],
        )

        assert config.regimes == [1, 2, 3, 4, 5, 6, 7]
        assert config.n_regimes == 7

    def test_unknown_method(self):
        with pytest.raises(ConfigError, match="Unknown solution method"):
            SolverConfig(solution_method="perturbation")

    def test_gensys2_window_needs_two_regimes(self):
        with pytest.raises(ConfigError, match="lift-off"):
            SolverConfig(gensys2_regimes=[range(3, 4)])

    def test_regimes_start_at_one(self):
        with pytest.raises(ConfigError, match="Invalid gensys regime range"):
            SolverConfig(gensys_regimes=[range(0, 3)])

    def test_from_dict_accepts_inclusive_pairs(self):
        config = SolverConfig.from_dict(
            {
                "regime_switching": True,
                "gensys_regimes": [[1, 1], 6],
                "gensys2_regimes": [[1, 6]],
                "gensys2": True,
            }
        )

        assert config.gensys_regimes == [range(1, 2), range(6, 7)]
        assert config.gensys2_regimes == [range(1, 7)]

    def test_from_dict_rejects_unknown_settings(self):
        with pytest.raises(ConfigError, match="Unknown solver settings"):
            SolverConfig.from_dict({"gensys3": True})

    def test_replace_returns_new_config(self):
        config = SolverConfig()
        changed = config.replace(replace_eqcond=True)

        assert changed.replace_eqcond
        assert not config.replace_eqcond


class TestPolicyRegistry:
    def test_default_registry_applies_no_policy(self):
        registry = PolicyRegistry()

        assert registry.alternative_policy is HISTORICAL
        assert not registry.applies_alternative_policy
        assert registry.weights(2) == []
        assert registry.policy_for(2) is None

    def test_regime_info_applies_policy(self):
        registry = PolicyRegistry(
            alternative_policies=[TAYLOR93],
            regime_eqcond_info={2: RegimeEqcondInfo(ZERO_RATE, [0.8, 0.2])},
        )

        assert registry.applies_alternative_policy
        assert registry.policy_for(2) is ZERO_RATE
        assert registry.weights(2) == [0.8, 0.2]

    def test_weights_must_cover_every_policy(self):
        with pytest.raises(ConfigError, match="expected 2"):
            PolicyRegistry(
                alternative_policies=[TAYLOR93],
                regime_eqcond_info={2: RegimeEqcondInfo(ZERO_RATE, [1.0])},
            )

    @pytest.mark.parametrize("weights", [[0.8, 0.4], [1.2, -0.2], [float("nan"), 0.0]])
    def test_invalid_weights(self, weights):
        with pytest.raises(ConfigError, match="credibility weights"):
            RegimeEqcondInfo(ZERO_RATE, weights)

    def test_from_dict_resolves_policy_keys(self, model):
        registry = PolicyRegistry.from_dict(
            {
                "alternative_policies": ["taylor93"],
                "regime_eqcond_info": {
                    2: "zero_rate",
                    3: {"policy": "zero_rate", "weights": [0.9, 0.1]},
                },
                "identical_eqcond_regimes": {3: 2},
            },
            model.policies,
        )

        assert registry.alternative_policy is HISTORICAL
        assert registry.alternative_policies == [TAYLOR93]
        assert registry.policy_for(2) is ZERO_RATE
        assert registry.weights(3) == [0.9, 0.1]
        assert registry.identical_eqcond_regimes == {3: 2}

    def test_from_dict_unknown_policy(self, model):
        with pytest.raises(ConfigError, match="Unknown policy 'forward_guidance'"):
            PolicyRegistry.from_dict({"alternative_policy": "forward_guidance"}, model.policies)
