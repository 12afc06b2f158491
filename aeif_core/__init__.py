"""
AEIF Core - Conductance-based adaptive exponential integrate-and-fire neuron
with biexponential AMPA/NMDA/GABA_A synapses.
"""

from .errors import (
    AEIFError,
    ConfigurationError,
    InvalidInput,
    NumericalDivergence
)

from .models import (
    RECEPTORS,
    AEIFParameters,
    AEIFState,
    SynapseParameters,
    bounded_voltage,
    compute_currents,
    derivatives,
    nmda_unblock,
    refractory_counts
)

from .synapses import (
    BiexponentialKernel,
    SynapticKernelBank,
    peak_time,
    synapse_normalization
)

from .integrators import (
    IntegratorBase,
    ForwardEuler,
    RK4,
    RK45Scipy,
    make_integrator,
    register_integrator
)

from .refractory import (
    FSMState,
    ThresholdRefractoryFSM
)

from .neuron import (
    RECORDABLES,
    AEIFNeuron
)

from .utils import (
    Stimulus,
    spike_input,
    compute_spike_statistics,
    compute_firing_rate
)

__all__ = [
    # Errors
    'AEIFError',
    'ConfigurationError',
    'InvalidInput',
    'NumericalDivergence',

    # Models
    'RECEPTORS',
    'AEIFParameters',
    'AEIFState',
    'SynapseParameters',
    'bounded_voltage',
    'compute_currents',
    'derivatives',
    'nmda_unblock',
    'refractory_counts',

    # Synapses
    'BiexponentialKernel',
    'SynapticKernelBank',
    'peak_time',
    'synapse_normalization',

    # Integrators
    'IntegratorBase',
    'ForwardEuler',
    'RK4',
    'RK45Scipy',
    'make_integrator',
    'register_integrator',

    # Refractory
    'FSMState',
    'ThresholdRefractoryFSM',

    # Neuron
    'RECORDABLES',
    'AEIFNeuron',

    # Utils
    'Stimulus',
    'spike_input',
    'compute_spike_statistics',
    'compute_firing_rate',
]
