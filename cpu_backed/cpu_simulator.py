"""
CPU-backed simulation harness for the AdEx neuron.

Drives one AEIFNeuron over a fixed number of steps from per-step stimulus
and spike-input arrays, recording the requested quantities.
"""

import dataclasses
import logging
import numpy as np
from typing import Dict, List, Optional, Union

from aeif_core.models import AEIFParameters
from aeif_core.neuron import AEIFNeuron, RECORDABLES
from aeif_core.utils import compute_spike_statistics, compute_firing_rate

logger = logging.getLogger(__name__)


class AEIFModel:
    """
    AdEx neuron model.

    Encapsulates model parameters and provides a clean interface.
    """

    def __init__(self, params: Optional[AEIFParameters] = None):
        """
        Initialize AdEx model.

        Args:
            params: Model parameters (uses defaults if None)
        """
        self.params = params if params is not None else AEIFParameters()

    def get_params(self) -> AEIFParameters:
        """Get model parameters."""
        return self.params

    def set_params(self, **kwargs):
        """
        Update model parameters.

        The new set is validated before it replaces the old one, and only
        neurons created afterwards see it.

        Example:
            model.set_params(b=0.0, tau_syn_decay_AMPA=3.0)

        Raises:
            ValueError: for an unknown parameter name
            ConfigurationError: if the updated set is invalid
        """
        names = {f.name for f in dataclasses.fields(self.params)}
        for key in kwargs:
            if key not in names:
                raise ValueError(f"Unknown parameter: {key}")
        params = dataclasses.replace(self.params, **kwargs)
        params.validate()
        self.params = params

    def create_neuron(self, dt: float, integrator: str = 'rk45', **kwargs) -> AEIFNeuron:
        """Create a neuron at rest with these parameters."""
        return AEIFNeuron(self.params, dt=dt, integrator=integrator, **kwargs)


class CPUSimulator:
    """
    Single-neuron simulator.

    Steps the neuron in plain Python; the integrator is selected by name.
    """

    def __init__(self,
                 model: Optional[AEIFModel] = None,
                 integrator: str = 'rk45',
                 **integrator_kwargs):
        """
        Initialize CPU simulator.

        Args:
            model: AdEx model (creates default if None)
            integrator: 'rk45', 'rk4', 'euler' or 'rk4-numba'
            **integrator_kwargs: Forwarded to the integrator
        """
        self.model = model if model is not None else AEIFModel()
        self.integrator = integrator
        self.integrator_kwargs = integrator_kwargs

    def run(self,
            T: float,
            dt: float = 0.1,
            stimulus: Optional[np.ndarray] = None,
            spikes_AMPA: Optional[np.ndarray] = None,
            spikes_NMDA: Optional[np.ndarray] = None,
            spikes_GABA_A: Optional[np.ndarray] = None,
            record: Optional[List[str]] = None,
            neuron: Optional[AEIFNeuron] = None) -> 'SimulationResult':
        """
        Run simulation.

        Args:
            T: Total simulation time (ms)
            dt: Time step (ms)
            stimulus: Stimulus current per step (pA)
            spikes_AMPA: AMPA spike weight sum per step
            spikes_NMDA: NMDA spike weight sum per step
            spikes_GABA_A: GABA_A spike weight sum per step
            record: Quantities to record (default: V_m, w and conductances)
            neuron: Continue from an existing neuron instead of a fresh one

        Returns:
            SimulationResult object with recorded data
        """
        if neuron is None:
            neuron = self.model.create_neuron(dt, self.integrator, **self.integrator_kwargs)
        elif neuron.dt != dt:
            raise ValueError(f"neuron was built for dt={neuron.dt}, not {dt}")

        if record is None:
            record = ['V_m', 'w', 'g_AMPA', 'g_NMDA', 'g_GABA_A']
        for var in record:
            if var not in RECORDABLES:
                raise ValueError(f"Unknown recordable: {var}. Valid options are {RECORDABLES}.")

        n_steps = int(np.ceil(T / dt - 1e-9))
        time = np.arange(n_steps + 1) * dt

        inputs = {
            'I_stim': self._per_step(stimulus, n_steps, 'stimulus'),
            'spike_weight_AMPA': self._per_step(spikes_AMPA, n_steps, 'spikes_AMPA'),
            'spike_weight_NMDA': self._per_step(spikes_NMDA, n_steps, 'spikes_NMDA'),
            'spike_weight_GABA_A': self._per_step(spikes_GABA_A, n_steps, 'spikes_GABA_A'),
        }

        results = {'time': time}
        for var in record:
            results[var] = np.zeros(n_steps + 1)
            results[var][0] = neuron.get(var)

        spike_steps = []
        for i in range(n_steps):
            spiked = neuron.step(**{name: values[i] for name, values in inputs.items()})
            if spiked:
                spike_steps.append(i + 1)
            for var in record:
                results[var][i + 1] = neuron.get(var)

        spike_steps = np.asarray(spike_steps, dtype=int)
        results['spikes'] = {
            'indices': spike_steps,
            'times': time[spike_steps] if len(spike_steps) else np.array([]),
            'count': len(spike_steps),
        }
        results['neuron'] = neuron

        logger.debug("Simulated %d steps of %s ms, %d spikes",
                     n_steps, dt, len(spike_steps))
        return SimulationResult(results, neuron.params, dt)

    @staticmethod
    def _per_step(values, n_steps: int, name: str) -> np.ndarray:
        if values is None:
            return np.zeros(n_steps)
        values = np.asarray(values, dtype=np.float64)
        if values.ndim != 1 or len(values) < n_steps:
            raise ValueError(f"{name} needs one sample per step ({n_steps}), got shape {values.shape}")
        return values[:n_steps]


class SimulationResult:
    """
    Container for simulation results.

    Provides convenient access to recorded data and analysis methods.
    """

    def __init__(self, data: Dict, params: AEIFParameters, dt: float):
        """
        Initialize result container.

        Args:
            data: Dictionary with simulation data
            params: Model parameters used
            dt: Time step used
        """
        self.data = data
        self.params = params
        self.dt = dt

    @property
    def time(self) -> np.ndarray:
        """Time array (ms); entry i is the state after i steps."""
        return self.data['time']

    @property
    def V_m(self) -> Optional[np.ndarray]:
        """Membrane potential trace."""
        return self.data.get('V_m', None)

    @property
    def w(self) -> Optional[np.ndarray]:
        """Adaptation current trace."""
        return self.data.get('w', None)

    @property
    def neuron(self) -> AEIFNeuron:
        """The neuron in its final state."""
        return self.data['neuron']

    @property
    def spikes(self):
        """Spike emission results."""
        return self.data.get('spikes', None)

    def __getitem__(self, name: str) -> np.ndarray:
        return self.data[name]

    def get_spike_count(self) -> int:
        """Number of emitted spikes."""
        return self.spikes['count']

    def get_spike_times(self) -> np.ndarray:
        """Times (ms) at the end of the steps that emitted a spike."""
        return self.spikes['times']

    def plot(self, variables: Optional[List[str]] = None, figsize=(12, 8)):
        """
        Plot simulation results.

        Args:
            variables: Variables to plot (default: all recorded)
            figsize: Figure size

        Returns:
            matplotlib figure and axes
        """
        import matplotlib.pyplot as plt

        if variables is None:
            variables = [var for var in RECORDABLES if var in self.data]

        n_plots = len(variables)
        fig, axes = plt.subplots(n_plots, 1, figsize=figsize, sharex=True)

        if n_plots == 1:
            axes = [axes]

        for ax, var in zip(axes, variables):
            ax.plot(self.time, self.data[var])
            if var == 'V_m':
                for t in self.get_spike_times():
                    ax.axvline(t, color='r', alpha=0.3, linewidth=0.8)
            ax.set_ylabel(var)
            ax.grid(True, alpha=0.3)

        axes[-1].set_xlabel('Time (ms)')
        fig.suptitle('AdEx Simulation Results')
        plt.tight_layout()

        return fig, axes

    def summary(self) -> str:
        """
        Get text summary of simulation results.

        Returns:
            Summary string
        """
        lines = ["Simulation Results Summary"]
        lines.append("=" * 40)
        lines.append(f"Duration: {self.time[-1]:.2f} ms")
        lines.append(f"Time step: {self.dt:.4f} ms")
        lines.append(f"Number of steps: {len(self.time) - 1}")

        if self.V_m is not None:
            lines.append(f"V_m range: [{self.V_m.min():.2f}, {self.V_m.max():.2f}] mV")
        if self.w is not None:
            lines.append(f"w range: [{self.w.min():.2f}, {self.w.max():.2f}] pA")

        count = self.get_spike_count()
        lines.append(f"Spikes: {count}")
        if count > 0:
            rate = compute_firing_rate(self.get_spike_times(), self.time[-1])
            lines.append(f"Firing rate: {rate:.2f} Hz")
        if count > 1:
            stats = compute_spike_statistics(self.get_spike_times())
            lines.append(f"Mean ISI: {stats['isi_mean']:.2f} ms (CV {stats['isi_cv']:.2f})")

        return "\n".join(lines)
