"""
Single conductance-based AdEx neuron with a fixed-step update.

One call to AEIFNeuron.step() advances the neuron by dt:

1. validate this step's inputs (nothing is touched on failure)
2. integrate (V_m, w) over the step, with conductances following the
   kernels' closed-form trajectory
3. propagate the kernels exactly to the step end and deposit the
   incoming spike weights
4. run the threshold/refractory state machine on the candidate V_m
5. commit the new state and report whether a spike was emitted
"""

import copy
import dataclasses
import logging
import warnings
import numpy as np
from typing import Dict, Optional, Union

from .errors import ConfigurationError, InvalidInput, NumericalDivergence
from .integrators import IntegratorBase, make_integrator
from .models import (
    AEIFParameters, AEIFState, RECEPTORS, V_M, W,
    compute_currents, refractory_counts,
)
from .refractory import FSMState, ThresholdRefractoryFSM
from .synapses import SynapticKernelBank

logger = logging.getLogger(__name__)


RECORDABLES = (
    'V_m', 'w', 'g_AMPA', 'g_NMDA', 'g_GABA_A',
    'I_syn_AMPA', 'I_syn_NMDA', 'I_syn_GABA_A',
)


class AEIFNeuron:
    """
    Conductance-based adaptive exponential integrate-and-fire neuron with
    biexponential AMPA, NMDA and GABA_A synapses.

    Example:
        >>> neuron = AEIFNeuron(dt=0.1)
        >>> spiked = neuron.step(spike_weight_AMPA=1.0)
        >>> neuron.V_m, neuron.w
    """

    recordables = RECORDABLES

    def __init__(self,
                 params: Optional[AEIFParameters] = None,
                 dt: float = 0.1,
                 integrator: Union[str, IntegratorBase] = 'rk45',
                 **integrator_kwargs):
        """
        Initialize neuron.

        Args:
            params: Model parameters (uses defaults if None)
            dt: Simulation step (ms), fixed for the lifetime of the neuron
            integrator: 'rk45' (adaptive), 'rk4', 'euler', any name registered with
                register_integrator (importing cpu_backed adds 'rk4-numba'), or an
                IntegratorBase instance built with the same parameters
            **integrator_kwargs: Forwarded to the integrator when created by name

        Raises:
            ConfigurationError: if the parameters or dt are invalid, or an
                integrator instance was built with other parameters
        """
        # private copy: later edits to the caller's object do not reach this neuron
        self.params = dataclasses.replace(params) if params is not None else AEIFParameters()
        self.params.validate()

        if not np.isfinite(dt) or dt <= 0:
            raise ConfigurationError(f"dt must be a positive finite number, got {dt}")
        self.dt = float(dt)

        if isinstance(integrator, str):
            self.integrator = make_integrator(integrator, self.params, **integrator_kwargs)
        else:
            if integrator.params != self.params:
                raise ConfigurationError(
                    f"integrator {integrator.name!r} was built with different parameters "
                    f"than the neuron"
                )
            self.integrator = copy.copy(integrator)
            self.integrator.params = self.params

        self._check_step_size()

        self.refractory_counts = refractory_counts(self.params.t_ref, self.dt)
        self.kernels = SynapticKernelBank(self.params, self.dt)
        self.fsm = ThresholdRefractoryFSM(self.params, self.refractory_counts)

        self._state = AEIFState.resting_state(self.params)
        self.faulted = False

        logger.debug(
            "AEIFNeuron created: dt=%s ms, integrator=%s, refractory_counts=%d, "
            "initial_values=%s", self.dt, self.integrator.name,
            self.refractory_counts, self.initial_values
        )

    def _check_step_size(self):
        fastest = min(self.params.synapse(rec).tau_rise for rec in RECEPTORS)
        if self.dt > fastest:
            warnings.warn(
                f"dt ({self.dt} ms) is longer than the fastest synaptic rise time "
                f"({fastest} ms); EPSC onsets will be poorly resolved."
            )

        n_substeps = getattr(self.integrator, 'n_substeps', None)
        if not self.integrator.adaptive and n_substeps is not None:
            h = self.dt / n_substeps
            if h > 0.1:
                warnings.warn(
                    f"Large fixed integration step ({h} ms) may cause numerical "
                    f"instability near threshold. Recommended: <= 0.1 ms, "
                    f"or use the adaptive 'rk45' integrator."
                )

    @property
    def initial_values(self) -> Dict[str, float]:
        """Normalization constant deposited per unit spike weight, per receptor."""
        return self.kernels.initial_values

    @property
    def state(self) -> AEIFState:
        """Snapshot of the current state."""
        return self._state.copy()

    @property
    def V_m(self) -> float:
        return self._state.V_m

    @property
    def w(self) -> float:
        return self._state.w

    @property
    def r(self) -> int:
        return self._state.r

    @property
    def refractory(self) -> bool:
        return self.fsm.state_of(self._state.r) is FSMState.REFRACTORY

    def reset(self):
        """Return to the resting state and clear a fault."""
        self._state = AEIFState.resting_state(self.params)
        self.faulted = False
        logger.debug("AEIFNeuron reset to rest (V_m=%s mV)", self.params.E_L)

    def get(self, name: str) -> float:
        """Read a recordable quantity of the current state."""
        if name == 'V_m':
            return self._state.V_m
        if name == 'w':
            return self._state.w
        if name in ('g_AMPA', 'g_NMDA', 'g_GABA_A'):
            return getattr(self._state, name)
        if name in ('I_syn_AMPA', 'I_syn_NMDA', 'I_syn_GABA_A'):
            currents = compute_currents(self._state.V_m, self._state.conductances, self.params)
            return float(currents[name])
        raise ValueError(f"Unknown recordable: {name}. Valid options are {RECORDABLES}.")

    def _validate_inputs(self, weights: Dict[str, float], I_stim: float):
        values = {}
        for receptor, weight in weights.items():
            try:
                weight = float(weight)
            except (TypeError, ValueError):
                raise InvalidInput(
                    f"spike_weight_{receptor} must be a number, got {weight!r}"
                ) from None
            if not np.isfinite(weight):
                raise InvalidInput(f"spike_weight_{receptor} must be finite, got {weight}")
            if weight < 0:
                raise InvalidInput(f"spike_weight_{receptor} must be >= 0, got {weight}")
            values[receptor] = weight

        try:
            I_stim = float(I_stim)
        except (TypeError, ValueError):
            raise InvalidInput(f"I_stim must be a number, got {I_stim!r}") from None
        if not np.isfinite(I_stim):
            raise InvalidInput(f"I_stim must be finite, got {I_stim}")
        return values, I_stim

    def step(self,
             spike_weight_AMPA: float = 0.0,
             spike_weight_NMDA: float = 0.0,
             spike_weight_GABA_A: float = 0.0,
             I_stim: float = 0.0) -> bool:
        """
        Advance the neuron by one step of dt.

        Args:
            spike_weight_AMPA: Sum of AMPA weights arriving this step
            spike_weight_NMDA: Sum of NMDA weights arriving this step
            spike_weight_GABA_A: Sum of GABA_A weights arriving this step
            I_stim: Stimulus current sample for this step (pA)

        Returns:
            True if a spike was emitted during this step

        Raises:
            InvalidInput: malformed input, state unchanged
            NumericalDivergence: non-finite integrator result; the neuron is
                faulted until reset()
        """
        if self.faulted:
            raise NumericalDivergence("neuron is faulted by an earlier divergence; reset() it")

        weights = {
            'AMPA': spike_weight_AMPA,
            'NMDA': spike_weight_NMDA,
            'GABA_A': spike_weight_GABA_A,
        }
        weights, I_stim = self._validate_inputs(weights, I_stim)

        state = self._state.copy()

        def conductances(t):
            return self.kernels.conductances_at(state, t)

        y0 = state.data[[V_M, W]]
        try:
            y = self.integrator.step(y0, self.dt, conductances, I_stim)
        except NumericalDivergence:
            self._fault(y0)
            raise

        if not np.all(np.isfinite(y)):
            self._fault(y0)
            raise NumericalDivergence(
                f"integrator produced a non-finite state (V_m={y[0]}, w={y[1]})"
            )

        self.kernels.update(state, weights)

        V_m, w, r, spiked = self.fsm.apply(float(y[0]), float(y[1]), state.r)
        state.V_m = V_m
        state.w = w
        state.r = r

        self._state = state
        return spiked

    def _fault(self, y0):
        self.faulted = True
        logger.error(
            "AEIFNeuron diverged from V_m=%s mV, w=%s pA; instance faulted",
            y0[0], y0[1]
        )
