"""Base class for models with regime-dependent equilibrium conditions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING

import numpy as np

from dsgeswitch.exceptions import ConfigError, UnsupportedConfigurationError
from dsgeswitch.policy import HISTORICAL, AltPolicy

if TYPE_CHECKING:
    from dsgeswitch.solvers.linear.klein import KleinSystem
    from dsgeswitch.system import EquilibriumConditions, TransitionSolution


def _index(names: tuple[str, ...], offset: int = 0) -> dict[str, int]:
    return {name: offset + i for i, name in enumerate(names)}


class RegimeModel(ABC):
    """A linear rational expectations model whose parameters may vary by regime.

    Subclasses declare their state and shock names and build the gensys-form
    equilibrium conditions for a regime in :meth:`eqcond`.

    Attributes:
        parameters: Baseline parameter values.
        regime_parameters: Per-regime overrides, ``{regime: {name: value}}``.
    """

    name: str = "model"
    state_names: tuple[str, ...] = ()
    augmented_state_names: tuple[str, ...] = ()
    shock_names: tuple[str, ...] = ()
    expected_shock_names: tuple[str, ...] = ()
    default_parameters: Mapping[str, float] = {}

    def __init__(
        self,
        parameters: Mapping[str, float] | None = None,
        regime_parameters: Mapping[int, Mapping[str, float]] | None = None,
    ) -> None:
        self.parameters: dict[str, float] = dict(self.default_parameters)
        self.regime_parameters: dict[int, dict[str, float]] = {}
        if parameters:
            self.update(**parameters)
        for reg, values in (regime_parameters or {}).items():
            self.set_regime_parameters(int(reg), **values)

    # ------------------------------------------------------------------
    # Indices
    # ------------------------------------------------------------------

    @property
    def endogenous_states(self) -> dict[str, int]:
        return _index(self.state_names)

    @property
    def endogenous_states_augmented(self) -> dict[str, int]:
        return _index(self.augmented_state_names, offset=len(self.state_names))

    @property
    def exogenous_shocks(self) -> dict[str, int]:
        return _index(self.shock_names)

    @property
    def expected_shocks(self) -> dict[str, int]:
        return _index(self.expected_shock_names)

    @property
    def n_states(self) -> int:
        return len(self.state_names)

    @property
    def n_states_augmented(self) -> int:
        return len(self.state_names) + len(self.augmented_state_names)

    @property
    def n_shocks(self) -> int:
        return len(self.shock_names)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _check_names(self, names) -> None:
        unknown = sorted(set(names) - set(self.parameters))
        if unknown:
            raise ConfigError(
                f"Unknown parameters for {self.name}: {unknown}. "
                f"Available: {sorted(self.parameters)}"
            )

    def update(self, **values: float) -> None:
        """Set baseline parameter values."""
        self._check_names(values)
        for key, value in values.items():
            self.parameters[key] = float(value)

    def set_regime_parameters(self, regime: int, **values: float) -> None:
        if regime < 1:
            raise ConfigError(f"Regimes are numbered from 1, got {regime}")
        self._check_names(values)
        self.regime_parameters.setdefault(regime, {}).update(
            {k: float(v) for k, v in values.items()}
        )

    def parameter(self, name: str, regime: int | None = None) -> float:
        """Value of ``name`` in ``regime``, falling back to the baseline value."""
        if regime is not None and name in self.regime_parameters.get(regime, {}):
            return self.regime_parameters[regime][name]
        if name not in self.parameters:
            raise ConfigError(f"Unknown parameter '{name}' for {self.name}")
        return self.parameters[name]

    def parameter_values(self, regime: int | None = None) -> dict[str, float]:
        values = dict(self.parameters)
        if regime is not None:
            values.update(self.regime_parameters.get(regime, {}))
        return values

    # ------------------------------------------------------------------
    # Model pieces
    # ------------------------------------------------------------------

    @property
    def policies(self) -> dict[str, AltPolicy]:
        """Policies this model can be solved under, keyed by policy key."""
        return {HISTORICAL.key: HISTORICAL}

    @abstractmethod
    def eqcond(self, regime: int | None = None) -> EquilibriumConditions:
        """Gensys-form equilibrium conditions for ``regime``."""

    def augment_states(
        self, solution: TransitionSolution, regime: int | None = None
    ) -> TransitionSolution:
        """Extend a core solution with the augmented states."""
        if self.augmented_state_names:
            raise NotImplementedError(
                f"{type(self).__name__} declares augmented states but does not "
                "implement augment_states"
            )
        return solution.copy()

    def klein_system(self) -> KleinSystem:
        raise UnsupportedConfigurationError(
            f"{type(self).__name__} does not provide a Klein-form representation"
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_states={self.n_states}, "
            f"n_states_augmented={self.n_states_augmented}, n_shocks={self.n_shocks})"
        )


def zero_augmentation(
    solution: TransitionSolution, n_augmented: int
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Pad a core solution with ``n_augmented`` zero states."""
    n = solution.n_states
    TTT = np.zeros((n + n_augmented, n + n_augmented))
    RRR = np.zeros((n + n_augmented, solution.n_shocks))
    CCC = np.zeros(n + n_augmented)
    TTT[:n, :n] = solution.TTT
    RRR[:n, :] = solution.RRR
    CCC[:n] = solution.CCC
    return TTT, RRR, CCC
