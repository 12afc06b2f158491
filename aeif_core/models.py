"""
Adaptive exponential integrate-and-fire model equations, parameter and
state definitions.

Conductance-based AdEx neuron (Brette & Gerstner 2005) with three
biexponential synaptic conductances (AMPA, NMDA, GABA_A). Units are
pF, nS, mV, pA and ms throughout.
"""

import numpy as np
from typing import Dict
from dataclasses import dataclass, asdict, fields

from .errors import ConfigurationError


RECEPTORS = ('AMPA', 'NMDA', 'GABA_A')


@dataclass(frozen=True)
class SynapseParameters:
    """Kinetics and reversal potential of one receptor type."""
    tau_rise: float
    tau_decay: float
    g_peak: float
    E_rev: float


@dataclass
class AEIFParameters:
    """
    Parameters for the conductance-based AdEx neuron.

    Defaults follow Brette & Gerstner (2005) for the membrane and
    adaptation; synaptic kinetics are typical cortical values.
    """
    # Membrane (pF, nS, mV)
    C_m: float = 281.0
    g_L: float = 30.0
    E_L: float = -70.6

    # Spike generation (mV)
    V_th: float = -50.4
    V_peak: float = 0.0
    V_reset: float = -60.0
    Delta_T: float = 2.0

    # Adaptation (nS, pA, ms)
    a: float = 4.0
    b: float = 80.5
    tau_w: float = 144.0

    # Refractory period (ms) and constant external current (pA)
    t_ref: float = 0.0
    I_e: float = 0.0

    # AMPA
    E_rev_AMPA: float = 0.0
    tau_syn_rise_AMPA: float = 0.2
    tau_syn_decay_AMPA: float = 2.0
    g_peak_AMPA: float = 0.1

    # NMDA, with sigmoidal voltage-dependent unblocking
    E_rev_NMDA: float = 0.0
    tau_syn_rise_NMDA: float = 2.0
    tau_syn_decay_NMDA: float = 100.0
    g_peak_NMDA: float = 0.075
    V_act_NMDA: float = -58.0
    S_act_NMDA: float = 2.5

    # GABA_A
    E_rev_GABA_A: float = -70.0
    tau_syn_rise_GABA_A: float = 0.2
    tau_syn_decay_GABA_A: float = 5.0
    g_peak_GABA_A: float = 0.33

    def synapse(self, receptor: str) -> SynapseParameters:
        """Return the kinetics of receptor 'AMPA', 'NMDA' or 'GABA_A'."""
        if receptor not in RECEPTORS:
            raise ValueError(f"Unknown receptor: {receptor}")
        return SynapseParameters(
            tau_rise=getattr(self, f'tau_syn_rise_{receptor}'),
            tau_decay=getattr(self, f'tau_syn_decay_{receptor}'),
            g_peak=getattr(self, f'g_peak_{receptor}'),
            E_rev=getattr(self, f'E_rev_{receptor}'),
        )

    def validate(self) -> 'AEIFParameters':
        """
        Check the constraints the propagators and normalization rely on.

        Raises:
            ConfigurationError: on the first violated constraint
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if not np.isfinite(value):
                raise ConfigurationError(f"{f.name} must be finite, got {value}")

        if self.C_m <= 0:
            raise ConfigurationError(f"C_m must be > 0, got {self.C_m}")
        if self.g_L < 0:
            raise ConfigurationError(f"g_L must be >= 0, got {self.g_L}")
        if self.Delta_T <= 0:
            raise ConfigurationError(f"Delta_T must be > 0, got {self.Delta_T}")
        if self.tau_w <= 0:
            raise ConfigurationError(f"tau_w must be > 0, got {self.tau_w}")
        if self.t_ref < 0:
            raise ConfigurationError(f"t_ref must be >= 0, got {self.t_ref}")
        if self.V_reset >= self.V_peak:
            raise ConfigurationError(
                f"V_reset ({self.V_reset}) must be below V_peak ({self.V_peak})"
            )
        if self.S_act_NMDA == 0:
            raise ConfigurationError("S_act_NMDA must be non-zero")

        for receptor in RECEPTORS:
            syn = self.synapse(receptor)
            if syn.tau_rise <= 0 or syn.tau_decay <= 0:
                raise ConfigurationError(
                    f"tau_syn_rise_{receptor} and tau_syn_decay_{receptor} must be > 0"
                )
            if syn.tau_rise >= syn.tau_decay:
                raise ConfigurationError(
                    f"tau_syn_rise_{receptor} ({syn.tau_rise}) must be strictly "
                    f"smaller than tau_syn_decay_{receptor} ({syn.tau_decay})"
                )
            if syn.g_peak < 0:
                raise ConfigurationError(f"g_peak_{receptor} must be >= 0")

        return self

    def to_dict(self) -> Dict[str, float]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, float]) -> 'AEIFParameters':
        """Create parameters from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ConfigurationError(f"Unknown parameter(s): {sorted(unknown)}")
        return cls(**d)


# Layout of AEIFState.data
V_M, W = 0, 1
KERNEL_SLOTS = {
    'AMPA': (2, 3),
    'NMDA': (4, 5),
    'GABA_A': (6, 7),
}
STATE_SIZE = 8


@dataclass
class AEIFState:
    """
    State variables of one AdEx neuron.

    data layout: [V_m, w, g_AMPA, g_AMPA$, g_NMDA, g_NMDA$, g_GABA_A, g_GABA_A$]
    The '$' entries are the kernels' fast auxiliary variables and are only
    touched by the synaptic kernels.
    """
    data: np.ndarray
    r: int = 0

    @property
    def V_m(self) -> float:
        """Membrane potential (mV)."""
        return float(self.data[V_M])

    @V_m.setter
    def V_m(self, value):
        self.data[V_M] = value

    @property
    def w(self) -> float:
        """Adaptation current (pA)."""
        return float(self.data[W])

    @w.setter
    def w(self, value):
        self.data[W] = value

    @property
    def g_AMPA(self) -> float:
        return float(self.data[KERNEL_SLOTS['AMPA'][0]])

    @property
    def g_NMDA(self) -> float:
        return float(self.data[KERNEL_SLOTS['NMDA'][0]])

    @property
    def g_GABA_A(self) -> float:
        return float(self.data[KERNEL_SLOTS['GABA_A'][0]])

    @property
    def conductances(self) -> np.ndarray:
        """Visible conductances in RECEPTORS order (nS)."""
        return self.data[[KERNEL_SLOTS[rec][0] for rec in RECEPTORS]].copy()

    def copy(self) -> 'AEIFState':
        return AEIFState(self.data.copy(), self.r)

    @staticmethod
    def resting_state(params: AEIFParameters) -> 'AEIFState':
        """
        Create initial state at rest.

        V_m = E_L, w = 0, all kernels empty, not refractory.
        """
        data = np.zeros(STATE_SIZE, dtype=np.float64)
        data[V_M] = params.E_L
        return AEIFState(data, 0)


def bounded_voltage(V_m, params: AEIFParameters):
    """Membrane potential as seen by the exponential and synaptic terms."""
    return np.minimum(V_m, params.V_peak)


def nmda_unblock(V, params: AEIFParameters):
    """
    Instantaneous sigmoidal NMDA unblocking.

    B(V) = 1 / (1 + exp((V_act - V) / S_act))
    """
    return 1.0 / (1.0 + np.exp((params.V_act_NMDA - V) / params.S_act_NMDA))


def compute_currents(V_m, g: np.ndarray, params: AEIFParameters) -> Dict[str, float]:
    """
    Compute membrane currents for a given potential and conductances.

    Args:
        V_m: Membrane potential (mV), clamped here to V_peak
        g: Conductances (nS) in RECEPTORS order
        params: Model parameters

    Returns:
        Dictionary with keys: 'I_L', 'I_spike', 'I_syn_AMPA', 'I_syn_NMDA',
        'I_syn_GABA_A', 'I_syn' (total synaptic current, pA)
    """
    V = bounded_voltage(V_m, params)

    I_syn_AMPA = -g[0] * (V - params.E_rev_AMPA)
    I_syn_NMDA = -g[1] * (V - params.E_rev_NMDA) * nmda_unblock(V, params)
    I_syn_GABA_A = -g[2] * (V - params.E_rev_GABA_A)

    I_L = -params.g_L * (V - params.E_L)
    I_spike = params.g_L * params.Delta_T * np.exp((V - params.V_th) / params.Delta_T)

    return {
        'I_L': I_L,
        'I_spike': I_spike,
        'I_syn_AMPA': I_syn_AMPA,
        'I_syn_NMDA': I_syn_NMDA,
        'I_syn_GABA_A': I_syn_GABA_A,
        'I_syn': I_syn_AMPA + I_syn_NMDA + I_syn_GABA_A,
    }


def derivatives(y: np.ndarray, g: np.ndarray, I_stim: float,
                params: AEIFParameters) -> np.ndarray:
    """
    Compute time derivatives of the nonlinear subsystem.

    Args:
        y: [V_m, w]
        g: Conductances (nS) in RECEPTORS order at the evaluation time
        I_stim: External stimulus current for this step (pA)
        params: Model parameters

    Returns:
        Array [dV_m/dt, dw/dt]
    """
    V_m, w = y[0], y[1]
    V = bounded_voltage(V_m, params)

    currents = compute_currents(V_m, g, params)
    dV = (currents['I_L'] + currents['I_spike'] + currents['I_syn']
          - w + params.I_e + I_stim) / params.C_m
    dw = (params.a * (V - params.E_L) - w) / params.tau_w

    return np.array([dV, dw])


def refractory_counts(t_ref: float, dt: float) -> int:
    """Refractory period expressed in whole simulation steps."""
    return int(round(t_ref / dt))

