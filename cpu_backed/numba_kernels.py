"""
Numba-accelerated kernels for the AdEx membrane update.

The RK4 arithmetic of aeif_core.integrators.RK4, compiled with Numba.
Conductances are still evaluated by the exact synaptic kernels in Python
and handed to the compiled step at the three RK4 sample times.
"""

import numpy as np
from numba import njit

from aeif_core.integrators import IntegratorBase
from aeif_core.models import AEIFParameters


@njit
def compute_derivatives_single(V_m, w, g_AMPA, g_NMDA, g_GABA_A, I_stim,
                               C_m, g_L, E_L, V_th, V_peak, Delta_T, a, tau_w, I_e,
                               E_AMPA, E_NMDA, E_GABA_A, V_act_NMDA, S_act_NMDA):
    """
    Compute derivatives for a single neuron.

    Returns: (dV_m, dw)
    """
    V = min(V_m, V_peak)

    I_syn = (-g_AMPA * (V - E_AMPA)
             - g_NMDA * (V - E_NMDA) / (1.0 + np.exp((V_act_NMDA - V) / S_act_NMDA))
             - g_GABA_A * (V - E_GABA_A))
    I_spike = g_L * Delta_T * np.exp((V - V_th) / Delta_T)

    dV = (-g_L * (V - E_L) + I_spike + I_syn - w + I_e + I_stim) / C_m
    dw = (a * (V - E_L) - w) / tau_w

    return dV, dw


@njit
def rk4_step_single(V_m, w, g0, g_half, g1, I_stim, h,
                    C_m, g_L, E_L, V_th, V_peak, Delta_T, a, tau_w, I_e,
                    E_AMPA, E_NMDA, E_GABA_A, V_act_NMDA, S_act_NMDA):
    """
    Single RK4 step for one neuron.

    g0, g_half, g1 are the (AMPA, NMDA, GABA_A) conductances at the start,
    midpoint and end of the step.

    Returns: (V_m_new, w_new)
    """
    # k1
    dV1, dw1 = compute_derivatives_single(
        V_m, w, g0[0], g0[1], g0[2], I_stim,
        C_m, g_L, E_L, V_th, V_peak, Delta_T, a, tau_w, I_e,
        E_AMPA, E_NMDA, E_GABA_A, V_act_NMDA, S_act_NMDA
    )

    # k2
    dV2, dw2 = compute_derivatives_single(
        V_m + 0.5 * h * dV1, w + 0.5 * h * dw1,
        g_half[0], g_half[1], g_half[2], I_stim,
        C_m, g_L, E_L, V_th, V_peak, Delta_T, a, tau_w, I_e,
        E_AMPA, E_NMDA, E_GABA_A, V_act_NMDA, S_act_NMDA
    )

    # k3
    dV3, dw3 = compute_derivatives_single(
        V_m + 0.5 * h * dV2, w + 0.5 * h * dw2,
        g_half[0], g_half[1], g_half[2], I_stim,
        C_m, g_L, E_L, V_th, V_peak, Delta_T, a, tau_w, I_e,
        E_AMPA, E_NMDA, E_GABA_A, V_act_NMDA, S_act_NMDA
    )

    # k4
    dV4, dw4 = compute_derivatives_single(
        V_m + h * dV3, w + h * dw3,
        g1[0], g1[1], g1[2], I_stim,
        C_m, g_L, E_L, V_th, V_peak, Delta_T, a, tau_w, I_e,
        E_AMPA, E_NMDA, E_GABA_A, V_act_NMDA, S_act_NMDA
    )

    # Combine
    V_new = V_m + (h / 6.0) * (dV1 + 2*dV2 + 2*dV3 + dV4)
    w_new = w + (h / 6.0) * (dw1 + 2*dw2 + 2*dw3 + dw4)

    return V_new, w_new


class NumbaRK4(IntegratorBase):
    """
    RK4 integrator using the Numba-compiled step.

    Produces the same result as aeif_core.integrators.RK4 up to rounding.
    """

    name = 'rk4-numba'

    def __init__(self, params: AEIFParameters, n_substeps: int = 1):
        super().__init__(params)
        self.n_substeps = n_substeps
        p = params
        self._args = (
            p.C_m, p.g_L, p.E_L, p.V_th, p.V_peak, p.Delta_T, p.a, p.tau_w, p.I_e,
            p.E_rev_AMPA, p.E_rev_NMDA, p.E_rev_GABA_A, p.V_act_NMDA, p.S_act_NMDA,
        )

    def step(self, y, dt, conductances, I_stim):
        h = dt / self.n_substeps
        V_m, w = float(y[0]), float(y[1])
        t = 0.0
        g0 = np.asarray(conductances(t), dtype=np.float64)
        for _ in range(self.n_substeps):
            g_half = np.asarray(conductances(t + 0.5 * h), dtype=np.float64)
            g1 = np.asarray(conductances(t + h), dtype=np.float64)
            V_m, w = rk4_step_single(V_m, w, g0, g_half, g1, I_stim, h, *self._args)
            g0 = g1
            t += h
        return np.array([V_m, w])
