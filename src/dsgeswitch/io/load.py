"""Unified setup loading interface.

A setup bundles a model, its solver settings and its policy registry, so a
regime-switching solve can be described in one YAML file or dict.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dsgeswitch.config import SolverConfig
from dsgeswitch.exceptions import ConfigError
from dsgeswitch.policy import PolicyRegistry

if TYPE_CHECKING:
    from dsgeswitch.model.base import RegimeModel

SECTIONS = ("model", "parameters", "regime_parameters", "solver", "policies")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        import yaml
    except ImportError as exc:
        raise ImportError(
            "PyYAML is required for YAML setups. "
            "Install with: pip install pyyaml"
        ) from exc

    with open(path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ConfigError(f"Setup file {path} must contain a mapping")
    return data


def load_setup(
    source: str | Path | Mapping[str, Any],
) -> tuple[RegimeModel, SolverConfig, PolicyRegistry]:
    """Load a model, solver config and policy registry from file or dict.

    Args:
        source: Path to a ``.yaml``/``.yml`` file, or the equivalent dict.

    Returns:
        Tuple of (RegimeModel, SolverConfig, PolicyRegistry)

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the setup is malformed

    Examples:
        model, config, registry = load_setup({
            "model": "an_schorfheide",
            "parameters": {"psi1": 1.8},
            "solver": {
                "regime_switching": True,
                "gensys_regimes": [[1, 1], [5, 5]],
                "gensys2": True,
                "gensys2_regimes": [[1, 5]],
                "replace_eqcond": True,
            },
            "policies": {
                "regime_eqcond_info": {2: "zero_rate", 3: "zero_rate", 4: "zero_rate"},
                "identical_eqcond_regimes": {3: 2, 4: 2},
            },
        })
    """
    if isinstance(source, Mapping):
        data = dict(source)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Setup file not found: {path}")
        if path.suffix.lower() not in (".yaml", ".yml"):
            raise ConfigError(
                f"Cannot determine format for '{path.suffix}'. Use .yaml or .yml"
            )
        data = _read_yaml(path)

    unknown = set(data) - set(SECTIONS)
    if unknown:
        raise ConfigError(f"Unknown setup sections: {sorted(unknown)}. Allowed: {list(SECTIONS)}")

    from dsgeswitch.models import MODELS

    model_name = data.get("model")
    if model_name not in MODELS:
        raise ConfigError(f"Unknown model '{model_name}'. Available: {sorted(MODELS)}")

    model = MODELS[model_name](
        parameters=data.get("parameters") or {},
        regime_parameters=data.get("regime_parameters") or {},
    )
    config = SolverConfig.from_dict(data.get("solver") or {})
    registry = PolicyRegistry.from_dict(data.get("policies") or {}, model.policies)
    return model, config, registry
