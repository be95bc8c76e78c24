"""Tests for loading setups from YAML files and dicts."""

from __future__ import annotations

import numpy as np
import pytest

from dsgeswitch import ConfigError, load_setup, solve
from dsgeswitch.models import ZERO_RATE, AnSchorfheide


def test_load_yaml_setup(setups_dir):
    model, config, registry = load_setup(setups_dir / "zlb.yaml")

    assert isinstance(model, AnSchorfheide)
    assert config.regime_switching and config.gensys2
    assert config.gensys2_regimes == [range(1, 6)]
    assert config.temporary_altpolicy_length == 3
    assert registry.policy_for(3) is ZERO_RATE
    assert registry.identical_eqcond_regimes == {3: 2, 4: 2}


def test_loaded_setup_solves(setups_dir):
    model, config, registry = load_setup(setups_dir / "zlb.yaml")

    solution = solve(model, config, registry)

    R = model.endogenous_states["R_t"]
    assert solution.regimes == [1, 2, 3, 4, 5]
    np.testing.assert_allclose(solution[2].CCC[R], -model.steady_state_rate(2), atol=1e-10)


def test_regime_parameters_from_yaml(setups_dir):
    model, _, _ = load_setup(setups_dir / "switching.yaml")

    assert model.parameter("kappa", 2) == 0.3
    assert model.parameter("kappa", 1) == model.parameter("kappa")


def test_load_dict_setup():
    model, config, registry = load_setup(
        {
            "model": "an_schorfheide",
            "parameters": {"psi1": 1.8},
            "solver": {"regime_switching": True, "gensys_regimes": [[1, 3]]},
        }
    )

    assert model.parameter("psi1") == 1.8
    assert config.regimes == [1, 2, 3]
    assert not registry.applies_alternative_policy


def test_unknown_model():
    with pytest.raises(ConfigError, match="Unknown model 'smets_wouters'"):
        load_setup({"model": "smets_wouters"})


def test_unknown_section():
    with pytest.raises(ConfigError, match="Unknown setup sections"):
        load_setup({"model": "an_schorfheide", "estimation": {}})


def test_unknown_parameter():
    with pytest.raises(ConfigError, match="Unknown parameters"):
        load_setup({"model": "an_schorfheide", "parameters": {"sigma": 1.0}})


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_setup(tmp_path / "missing.yaml")


def test_unsupported_suffix(tmp_path):
    path = tmp_path / "setup.json"
    path.write_text("{}")

    with pytest.raises(ConfigError, match="Use .yaml or .yml"):
        load_setup(path)
