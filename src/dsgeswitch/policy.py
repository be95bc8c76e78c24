"""Alternative policies, credibility weights and the per-regime policy registry."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from dsgeswitch.exceptions import ConfigError

if TYPE_CHECKING:
    from dsgeswitch.model.base import RegimeModel
    from dsgeswitch.system import EquilibriumConditions, TransitionSolution

EqcondFunction = Callable[["RegimeModel", "int | None"], "EquilibriumConditions"]
SolveProcedure = Callable[["RegimeModel", "int | None"], "TransitionSolution"]

WEIGHT_SUM_TOL = 1e-10


class PolicyKind(Enum):
    """How a policy is solved.

    DEFAULT policies go through the standard gensys pipeline (possibly with
    their own equilibrium conditions). CUSTOM policies carry their own solve
    procedure, which returns augmented transition matrices.
    """

    DEFAULT = "default"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AltPolicy:
    """A named monetary/fiscal policy rule.

    Attributes:
        key: Identifier, e.g. ``"historical"`` or ``"zero_rate"``.
        eqcond: Optional builder ``eqcond(model, regime)`` replacing the
            model's own equilibrium conditions under this policy.
        solve: Optional custom solve procedure ``solve(model, regime)``.
        description: Free text.
    """

    key: str
    eqcond: EqcondFunction | None = field(default=None, compare=False)
    solve: SolveProcedure | None = field(default=None, compare=False)
    description: str = field(default="", compare=False)

    @property
    def kind(self) -> PolicyKind:
        return PolicyKind.DEFAULT if self.solve is None else PolicyKind.CUSTOM

    def equilibrium_conditions(
        self, model: RegimeModel, regime: int | None = None
    ) -> EquilibriumConditions:
        """Equilibrium conditions of ``model`` in ``regime`` under this policy."""
        if self.eqcond is None:
            return model.eqcond(regime)
        return self.eqcond(model, regime)


HISTORICAL = AltPolicy("historical", description="Policy rule estimated on historical data")


def _validate_weights(weights: list[float]) -> list[float]:
    out = [float(w) for w in weights]
    for w in out:
        if not math.isfinite(w) or w < 0.0:
            raise ConfigError(f"credibility weights must be finite and >= 0, got {out}")
    if out and sum(out) > 1.0 + WEIGHT_SUM_TOL:
        raise ConfigError(f"credibility weights must sum to <= 1, got sum {sum(out):.12g}")
    return out


@dataclass
class RegimeEqcondInfo:
    """Policy in place during one regime and agents' credibility weights.

    ``weights[0]`` is the probability agents attach to the policy actually
    in place, ``weights[i]`` the probability of ``alternative_policies[i-1]``
    from the owning :class:`PolicyRegistry`. Empty weights mean perfect
    credibility.
    """

    alternative_policy: AltPolicy
    weights: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.weights = _validate_weights(self.weights)


@dataclass
class PolicyRegistry:
    """Explicit policy and regime-mapping information for one solve call."""

    alternative_policy: AltPolicy = HISTORICAL
    alternative_policies: list[AltPolicy] = field(default_factory=list)
    regime_eqcond_info: dict[int, RegimeEqcondInfo] = field(default_factory=dict)
    identical_eqcond_regimes: dict[int, int] = field(default_factory=dict)
    perfect_credibility_identical_transitions: dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.regime_eqcond_info = {int(k): v for k, v in self.regime_eqcond_info.items()}
        self.identical_eqcond_regimes = {
            int(k): int(v) for k, v in self.identical_eqcond_regimes.items()
        }
        self.perfect_credibility_identical_transitions = {
            int(k): int(v) for k, v in self.perfect_credibility_identical_transitions.items()
        }

        for reg in self.regime_eqcond_info:
            if reg < 1:
                raise ConfigError(f"regime_eqcond_info keys must be >= 1, got {reg}")
        for name, mapping in (
            ("identical_eqcond_regimes", self.identical_eqcond_regimes),
            ("perfect_credibility_identical_transitions",
             self.perfect_credibility_identical_transitions),
        ):
            for reg, src in mapping.items():
                if src < 1 or src > reg:
                    raise ConfigError(
                        f"{name}[{reg}] = {src}: regimes may only copy an earlier regime"
                    )

        n_candidates = 1 + len(self.alternative_policies)
        for reg, info in self.regime_eqcond_info.items():
            if info.weights and len(info.weights) != n_candidates:
                raise ConfigError(
                    f"regime {reg} has {len(info.weights)} credibility weights, expected "
                    f"{n_candidates} (policy in place + {len(self.alternative_policies)} "
                    "alternative policies)"
                )

    @property
    def applies_alternative_policy(self) -> bool:
        return bool(self.regime_eqcond_info) or self.alternative_policy.key != HISTORICAL.key

    def weights(self, regime: int) -> list[float]:
        info = self.regime_eqcond_info.get(regime)
        return [] if info is None else list(info.weights)

    def policy_for(self, regime: int) -> AltPolicy | None:
        info = self.regime_eqcond_info.get(regime)
        return None if info is None else info.alternative_policy

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        catalogue: Mapping[str, AltPolicy],
    ) -> PolicyRegistry:
        """Build a registry from plain data, resolving policy keys in ``catalogue``.

        Example::

            {
                "alternative_policy": "historical",
                "alternative_policies": ["taylor93"],
                "regime_eqcond_info": {2: {"policy": "zero_rate", "weights": [0.8, 0.2]}},
                "identical_eqcond_regimes": {3: 2},
            }
        """

        def _lookup(key: str) -> AltPolicy:
            if key not in catalogue:
                raise ConfigError(
                    f"Unknown policy '{key}'. Available: {sorted(catalogue)}"
                )
            return catalogue[key]

        info: dict[int, RegimeEqcondInfo] = {}
        for reg, entry in (data.get("regime_eqcond_info") or {}).items():
            if isinstance(entry, str):
                info[int(reg)] = RegimeEqcondInfo(_lookup(entry))
            elif isinstance(entry, Mapping):
                info[int(reg)] = RegimeEqcondInfo(
                    _lookup(str(entry.get("policy", HISTORICAL.key))),
                    list(entry.get("weights") or []),
                )
            else:
                raise ConfigError(f"Invalid regime_eqcond_info entry for regime {reg}: {entry}")

        return cls(
            alternative_policy=_lookup(str(data.get("alternative_policy", HISTORICAL.key))),
            alternative_policies=[_lookup(str(k)) for k in data.get("alternative_policies") or []],
            regime_eqcond_info=info,
            identical_eqcond_regimes=dict(data.get("identical_eqcond_regimes") or {}),
            perfect_credibility_identical_transitions=dict(
                data.get("perfect_credibility_identical_transitions") or {}
            ),
        )
