"""Temporary lower-bound episode with and without full credibility.

Three quarters at the lower bound (regimes 2-4) are followed by lift-off
under the historical rule (regime 5). With imperfect credibility agents
put 30% weight on the historical rule returning early in every quarter.

Run from repository root:
    python examples/zlb_forward_guidance.py
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

import numpy as np
import pandas as pd

from dsgeswitch import HISTORICAL, RegimeEqcondInfo, load_setup, solve


def expected_path(model, solution, n_periods: int) -> pd.DataFrame:
    """Deterministic path from steady state through the regime sequence."""
    last = solution.regimes[-1]
    x = np.zeros(model.n_states_augmented)
    rows = []
    for t in range(1, n_periods + 1):
        reg = min(t, last)
        x = solution[reg].TTT @ x + solution[reg].CCC
        rows.append(x.copy())
    names = [*model.state_names, *model.augmented_state_names]
    frame = pd.DataFrame(rows, columns=names, index=pd.RangeIndex(1, n_periods + 1, name="t"))
    return frame[["y_t", "pi_t", "R_t"]]


def main() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    model, config, registry = load_setup(repo_root / "tests" / "fixtures" / "setups" / "zlb.yaml")

    credible = solve(model, config, registry)
    print(credible.summary())
    print()
    print("Perfectly credible lower bound:")
    print(expected_path(model, credible, 8).to_string(float_format=lambda v: f"{v:.4f}"))
    print()

    partial = dataclasses.replace(
        registry,
        alternative_policies=[HISTORICAL],
        regime_eqcond_info={
            reg: RegimeEqcondInfo(info.alternative_policy, [0.7, 0.3])
            for reg, info in registry.regime_eqcond_info.items()
        },
    )
    uncertain = solve(model, config.replace(uncertain_temporary_altpolicy=True), partial)

    print("Lower bound with 70% credibility:")
    print(expected_path(model, uncertain, 8).to_string(float_format=lambda v: f"{v:.4f}"))


if __name__ == "__main__":
    np.set_printoptions(precision=6, suppress=True)
    main()
