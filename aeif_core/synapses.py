"""
Biexponential synaptic conductance kernels with exact propagators.

Each kernel is the linear two-variable system

    g'  = g$ - g / tau_decay
    g$' = -g$ / tau_rise

whose solution over a fixed step is known in closed form, so the kernel
accumulates no truncation error whatever solver drives the membrane.
"""

import numpy as np
from typing import Dict, Mapping, Optional

from .errors import ConfigurationError
from .models import AEIFParameters, AEIFState, KERNEL_SLOTS, RECEPTORS


def peak_time(tau_rise: float, tau_decay: float) -> float:
    """
    Time to peak of the biexponential kernel (ms).

    t_peak = tau_decay * tau_rise * ln(tau_decay / tau_rise) / (tau_decay - tau_rise)
    """
    if tau_rise == tau_decay:
        raise ConfigurationError("tau_rise and tau_decay must differ")
    return tau_decay * tau_rise * np.log(tau_decay / tau_rise) / (tau_decay - tau_rise)


def synapse_normalization(tau_rise: float, tau_decay: float, g_peak: float) -> float:
    """
    Amount a unit spike adds to the auxiliary variable g$ so that the
    visible conductance g peaks at exactly g_peak.

    Args:
        tau_rise: Rise time constant (ms)
        tau_decay: Decay time constant (ms)
        g_peak: Peak conductance for a unit weight (nS)

    Returns:
        Normalization constant (nS/ms)
    """
    if tau_rise <= 0 or tau_decay <= 0:
        raise ConfigurationError("kernel time constants must be > 0")
    if tau_rise == tau_decay:
        raise ConfigurationError(
            f"tau_rise == tau_decay ({tau_rise}) has no biexponential normalization"
        )

    adjustment = 1.0 / tau_decay - 1.0 / tau_rise
    t_peak = peak_time(tau_rise, tau_decay)
    norm = 1.0 / (np.exp(-t_peak / tau_rise) - np.exp(-t_peak / tau_decay))
    return float(g_peak * norm * adjustment)


class BiexponentialKernel:
    """
    One receptor's conductance kernel.

    The kernel owns no state of its own: it reads and writes its (g, g$)
    slots in an AEIFState data array.
    """

    def __init__(self, name: str, tau_rise: float, tau_decay: float,
                 g_peak: float, E_rev: float, dt: float):
        self.name = name
        self.tau_rise = tau_rise
        self.tau_decay = tau_decay
        self.g_peak = g_peak
        self.E_rev = E_rev
        self.dt = dt
        self.g_index, self.aux_index = KERNEL_SLOTS[name]

        self.initial_value = synapse_normalization(tau_rise, tau_decay, g_peak)
        self.t_peak = peak_time(tau_rise, tau_decay)

        # coupling factor of g$ into g: tau_r * tau_d / (tau_d - tau_r)
        self._coupling = tau_rise * tau_decay / (tau_decay - tau_rise)
        self._P_rise, self._P_decay, self._P_couple = self._propagator(dt)

    def _propagator(self, t: float):
        """Propagator entries (P_rise, P_decay, P_couple) for an interval t."""
        P_rise = np.exp(-t / self.tau_rise)
        P_decay = np.exp(-t / self.tau_decay)
        P_couple = self._coupling * (P_decay - P_rise)
        return P_rise, P_decay, P_couple

    def conductance_at(self, data: np.ndarray, t: float) -> float:
        """Visible conductance t ms after the state held in data."""
        g, aux = data[self.g_index], data[self.aux_index]
        if t == self.dt:
            P_rise, P_decay, P_couple = self._P_rise, self._P_decay, self._P_couple
        else:
            P_rise, P_decay, P_couple = self._propagator(t)
        return g * P_decay + aux * P_couple

    def propagate(self, data: np.ndarray):
        """Advance (g, g$) exactly by one step, in place."""
        g, aux = data[self.g_index], data[self.aux_index]
        data[self.g_index] = g * self._P_decay + aux * self._P_couple
        data[self.aux_index] = aux * self._P_rise

    def deposit(self, data: np.ndarray, weight: float):
        """Add the contribution of this step's incoming spikes to g$."""
        if weight:
            data[self.aux_index] += weight * self.initial_value

    def update(self, data: np.ndarray, weight: float = 0.0):
        """Propagate by one step, then deposit the step's spike weight sum."""
        self.propagate(data)
        self.deposit(data, weight)

    def response(self, times: np.ndarray, weight: float = 1.0) -> np.ndarray:
        """Conductance time course of an isolated spike of the given weight."""
        times = np.asarray(times, dtype=np.float64)
        return weight * self.initial_value * self._coupling * (
            np.exp(-times / self.tau_decay) - np.exp(-times / self.tau_rise)
        )


class SynapticKernelBank:
    """
    The AMPA, NMDA and GABA_A kernels of one neuron.

    Kernels are independent of each other, so the update order is irrelevant.
    """

    def __init__(self, params: AEIFParameters, dt: float):
        self.dt = dt
        self.kernels: Dict[str, BiexponentialKernel] = {}
        for receptor in RECEPTORS:
            syn = params.synapse(receptor)
            self.kernels[receptor] = BiexponentialKernel(
                receptor, syn.tau_rise, syn.tau_decay, syn.g_peak, syn.E_rev, dt
            )

    def __getitem__(self, receptor: str) -> BiexponentialKernel:
        return self.kernels[receptor]

    @property
    def initial_values(self) -> Dict[str, float]:
        return {name: k.initial_value for name, k in self.kernels.items()}

    def conductances_at(self, state: AEIFState, t: float) -> np.ndarray:
        """Conductances (RECEPTORS order) t ms into the current step."""
        return np.array([
            self.kernels[receptor].conductance_at(state.data, t)
            for receptor in RECEPTORS
        ])

    def update(self, state: AEIFState, weights: Optional[Mapping[str, float]] = None):
        """
        Advance every kernel by one step and deposit incoming spike weights.

        Args:
            state: Neuron state, modified in place
            weights: Spike weight sum per receptor for this step (missing = 0)
        """
        weights = weights or {}
        for receptor, kernel in self.kernels.items():
            kernel.update(state.data, weights.get(receptor, 0.0))
