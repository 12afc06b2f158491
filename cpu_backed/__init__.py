"""
CPU Backend - Simulation harness for the AdEx neuron.

Importing this package registers the 'rk4-numba' integrator; Numba itself
is only imported when that integrator is built.
"""

from aeif_core.integrators import register_integrator
from aeif_core.utils import Stimulus, spike_input
from .cpu_simulator import CPUSimulator, AEIFModel, SimulationResult


def _numba_rk4(params, **kwargs):
    from .numba_kernels import NumbaRK4
    return NumbaRK4(params, **kwargs)


register_integrator('rk4-numba', _numba_rk4)


def Simulator(model=None, integrator: str = 'rk45', **integrator_kwargs) -> CPUSimulator:
    """
    Create an AdEx simulator.

    Args:
        model: AdEx model (creates default if None)
        integrator: 'rk45', 'rk4', 'euler' or 'rk4-numba'

    Examples:
        >>> sim = Simulator(integrator='rk4')
        >>> result = sim.run(T=100.0, dt=0.1)
    """
    return CPUSimulator(model=model, integrator=integrator, **integrator_kwargs)


__all__ = [
    'CPUSimulator',
    'Simulator',
    'AEIFModel',
    'Stimulus',
    'SimulationResult',
    'spike_input',
]
