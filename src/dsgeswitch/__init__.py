"""dsgeswitch: regime-switching solutions of linear DSGE models."""

from dsgeswitch._version import __version__
from dsgeswitch.config import SolverConfig
from dsgeswitch.exceptions import (
    ConfigError,
    DSGESwitchError,
    KleinError,
    PreconditionViolation,
    SolveFailure,
    SolverError,
    UnsupportedConfigurationError,
)
from dsgeswitch.io import load_setup
from dsgeswitch.model import RegimeModel
from dsgeswitch.policy import HISTORICAL, AltPolicy, PolicyKind, PolicyRegistry, RegimeEqcondInfo
from dsgeswitch.solve import solve, solve_klein, solve_regime_switching, try_solve
from dsgeswitch.solvers.regimes import solve_one_regime, solve_uncertain_altpolicy
from dsgeswitch.system import (
    EquilibriumConditions,
    RegimeSwitchingSolution,
    SolveResult,
    TransitionSolution,
)

__all__ = [
    "__version__",
    "SolverConfig",
    "DSGESwitchError",
    "SolverError",
    "SolveFailure",
    "KleinError",
    "UnsupportedConfigurationError",
    "PreconditionViolation",
    "ConfigError",
    "load_setup",
    "RegimeModel",
    "AltPolicy",
    "HISTORICAL",
    "PolicyKind",
    "PolicyRegistry",
    "RegimeEqcondInfo",
    "solve",
    "solve_klein",
    "solve_regime_switching",
    "solve_one_regime",
    "solve_uncertain_altpolicy",
    "try_solve",
    "EquilibriumConditions",
    "TransitionSolution",
    "SolveResult",
    "RegimeSwitchingSolution",
]
