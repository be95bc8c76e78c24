"""An and Schorfheide (2007) three-equation New Keynesian model.

Equilibrium conditions (deviations from steady state):

    y_t  = E_t[y_{t+1}] - (R_t - E_t[pi_{t+1}] - E_t[z_{t+1}]) / tau
           + g_t - E_t[g_{t+1}]
    pi_t = beta E_t[pi_{t+1}] + kappa (y_t - g_t)
    R_t  = rho_R R_{t-1} + (1 - rho_R) (psi1 pi_t + psi2 (y_t - g_t)) + eps_R,t
    g_t  = rho_g g_{t-1} + eps_g,t
    z_t  = rho_z z_{t-1} + eps_z,t

with beta = 1 / (1 + rA / 400).
"""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np

from dsgeswitch.model.base import RegimeModel, zero_augmentation
from dsgeswitch.policy import HISTORICAL, AltPolicy
from dsgeswitch.solvers.linear.klein import KleinSystem
from dsgeswitch.system import EquilibriumConditions, TransitionSolution

EQUATIONS = (
    "eq_euler",
    "eq_phillips",
    "eq_mp",
    "eq_y_t1",
    "eq_g",
    "eq_z",
    "eq_Ey",
    "eq_Epi",
)


class AnSchorfheide(RegimeModel):
    """Small-scale New Keynesian model with an interest-rate rule."""

    name = "an_schorfheide"
    state_names = ("y_t", "pi_t", "R_t", "y_t1", "g_t", "z_t", "Ey_t1", "Epi_t1")
    augmented_state_names = ("pi_t1",)
    shock_names = ("z_sh", "g_sh", "rm_sh")
    expected_shock_names = ("Ey_sh", "Epi_sh")
    default_parameters = {
        "tau": 2.0,
        "kappa": 0.15,
        "psi1": 1.5,
        "psi2": 0.5,
        "rA": 2.0,
        "pi_star": 3.0,
        "gamma_Q": 0.5,
        "rho_R": 0.6,
        "rho_g": 0.95,
        "rho_z": 0.65,
    }

    @property
    def equations(self) -> dict[str, int]:
        return {eq: i for i, eq in enumerate(EQUATIONS)}

    @property
    def policies(self) -> dict[str, AltPolicy]:
        return {p.key: p for p in (HISTORICAL, ZERO_RATE, TAYLOR93)}

    def steady_state_rate(self, regime: int | None = None) -> float:
        """Quarterly steady-state nominal rate R*."""
        p = self.parameter_values(regime)
        return (p["rA"] + p["pi_star"]) / 4.0 + p["gamma_Q"]

    def eqcond(self, regime: int | None = None) -> EquilibriumConditions:
        return self.build_eqcond(self.parameter_values(regime))

    def build_eqcond(self, p: Mapping[str, float]) -> EquilibriumConditions:
        """Equilibrium conditions for the parameter values ``p``."""
        endo = self.endogenous_states
        exo = self.exogenous_shocks
        ex = self.expected_shocks
        eq = self.equations

        n = self.n_states
        G0 = np.zeros((n, n))
        G1 = np.zeros((n, n))
        C = np.zeros(n)
        PSI = np.zeros((n, self.n_shocks))
        PI = np.zeros((n, len(ex)))

        tau, kappa = p["tau"], p["kappa"]
        rho_R, rho_g, rho_z = p["rho_R"], p["rho_g"], p["rho_z"]
        psi1, psi2 = p["psi1"], p["psi2"]
        beta = 1.0 / (1.0 + p["rA"] / 400.0)

        # Euler equation
        G0[eq["eq_euler"], endo["y_t"]] = 1.0
        G0[eq["eq_euler"], endo["R_t"]] = 1.0 / tau
        G0[eq["eq_euler"], endo["g_t"]] = -(1.0 - rho_g)
        G0[eq["eq_euler"], endo["z_t"]] = -rho_z / tau
        G0[eq["eq_euler"], endo["Ey_t1"]] = -1.0
        G0[eq["eq_euler"], endo["Epi_t1"]] = -1.0 / tau

        # Phillips curve
        G0[eq["eq_phillips"], endo["y_t"]] = -kappa
        G0[eq["eq_phillips"], endo["pi_t"]] = 1.0
        G0[eq["eq_phillips"], endo["g_t"]] = kappa
        G0[eq["eq_phillips"], endo["Epi_t1"]] = -beta

        # Monetary policy rule
        G0[eq["eq_mp"], endo["y_t"]] = -(1.0 - rho_R) * psi2
        G0[eq["eq_mp"], endo["pi_t"]] = -(1.0 - rho_R) * psi1
        G0[eq["eq_mp"], endo["R_t"]] = 1.0
        G0[eq["eq_mp"], endo["g_t"]] = (1.0 - rho_R) * psi2
        G1[eq["eq_mp"], endo["R_t"]] = rho_R
        PSI[eq["eq_mp"], exo["rm_sh"]] = 1.0

        # Lagged output
        G0[eq["eq_y_t1"], endo["y_t1"]] = 1.0
        G1[eq["eq_y_t1"], endo["y_t"]] = 1.0

        # Government spending and technology
        G0[eq["eq_g"], endo["g_t"]] = 1.0
        G1[eq["eq_g"], endo["g_t"]] = rho_g
        PSI[eq["eq_g"], exo["g_sh"]] = 1.0

        G0[eq["eq_z"], endo["z_t"]] = 1.0
        G1[eq["eq_z"], endo["z_t"]] = rho_z
        PSI[eq["eq_z"], exo["z_sh"]] = 1.0

        # Expectation errors
        G0[eq["eq_Ey"], endo["y_t"]] = 1.0
        G1[eq["eq_Ey"], endo["Ey_t1"]] = 1.0
        PI[eq["eq_Ey"], ex["Ey_sh"]] = 1.0

        G0[eq["eq_Epi"], endo["pi_t"]] = 1.0
        G1[eq["eq_Epi"], endo["Epi_t1"]] = 1.0
        PI[eq["eq_Epi"], ex["Epi_sh"]] = 1.0

        return EquilibriumConditions(G0, G1, C, PSI, PI)

    def augment_states(
        self, solution: TransitionSolution, regime: int | None = None
    ) -> TransitionSolution:
        """Add lagged inflation, pi_t1 = pi_{t-1}."""
        if solution.n_states != self.n_states:
            raise ValueError(
                f"Expected a core solution with {self.n_states} states, "
                f"got {solution.n_states}"
            )
        TTT, RRR, CCC = zero_augmentation(solution, len(self.augmented_state_names))
        TTT[self.endogenous_states_augmented["pi_t1"], self.endogenous_states["pi_t"]] = 1.0
        return TransitionSolution(TTT, RRR, CCC)

    def klein_system(self) -> KleinSystem:
        """Klein form with k_t = [R_{t-1}, g_t, z_t, m_t] and u_t = [y_t, pi_t, R_t]."""
        p = self.parameter_values()
        tau, kappa = p["tau"], p["kappa"]
        rho_R, rho_g, rho_z = p["rho_R"], p["rho_g"], p["rho_z"]
        psi1, psi2 = p["psi1"], p["psi2"]
        beta = 1.0 / (1.0 + p["rA"] / 400.0)

        names = ["R_t1", "g_t", "z_t", "m_t", "y_t", "pi_t", "R_t"]
        x = {name: i for i, name in enumerate(names)}
        A = np.zeros((7, 7))
        B = np.zeros((7, 7))

        # Predetermined laws of motion
        A[0, x["R_t1"]] = 1.0
        B[0, x["R_t"]] = 1.0
        A[1, x["g_t"]] = 1.0
        B[1, x["g_t"]] = rho_g
        A[2, x["z_t"]] = 1.0
        B[2, x["z_t"]] = rho_z
        A[3, x["m_t"]] = 1.0

        # Euler equation
        A[4, x["y_t"]] = 1.0
        A[4, x["pi_t"]] = 1.0 / tau
        B[4, x["y_t"]] = 1.0
        B[4, x["R_t"]] = 1.0 / tau
        B[4, x["g_t"]] = -(1.0 - rho_g)
        B[4, x["z_t"]] = -rho_z / tau

        # Phillips curve
        A[5, x["pi_t"]] = beta
        B[5, x["pi_t"]] = 1.0
        B[5, x["y_t"]] = -kappa
        B[5, x["g_t"]] = kappa

        # Monetary policy rule
        B[6, x["R_t"]] = 1.0
        B[6, x["R_t1"]] = -rho_R
        B[6, x["pi_t"]] = -(1.0 - rho_R) * psi1
        B[6, x["y_t"]] = -(1.0 - rho_R) * psi2
        B[6, x["g_t"]] = (1.0 - rho_R) * psi2
        B[6, x["m_t"]] = -1.0

        exo = self.exogenous_shocks
        eta = np.zeros((4, self.n_shocks))
        eta[x["g_t"], exo["g_sh"]] = 1.0
        eta[x["z_t"], exo["z_sh"]] = 1.0
        eta[x["m_t"], exo["rm_sh"]] = 1.0

        return KleinSystem(A, B, 4, eta, names)


def zero_rate_eqcond(model: AnSchorfheide, regime: int | None = None) -> EquilibriumConditions:
    """Nominal rate pinned at the effective lower bound, R_t = -R*."""
    out = model.eqcond(regime)
    row = model.equations["eq_mp"]
    out.gamma0[row, :] = 0.0
    out.gamma0[row, model.endogenous_states["R_t"]] = 1.0
    out.gamma1[row, :] = 0.0
    out.psi[row, :] = 0.0
    out.C[row] = -model.steady_state_rate(regime)
    return out


def taylor93_eqcond(model: AnSchorfheide, regime: int | None = None) -> EquilibriumConditions:
    """Taylor (1993) rule: psi1 = 1.5, psi2 = 0.125, no smoothing."""
    p = model.parameter_values(regime)
    p.update(psi1=1.5, psi2=0.125, rho_R=0.0)
    return model.build_eqcond(p)


ZERO_RATE = AltPolicy(
    "zero_rate",
    eqcond=zero_rate_eqcond,
    description="Nominal interest rate at the effective lower bound",
)
TAYLOR93 = AltPolicy(
    "taylor93",
    eqcond=taylor93_eqcond,
    description="Taylor (1993) rule without interest-rate smoothing",
)
