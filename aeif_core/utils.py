"""
Utility functions for per-step input generation and spike train analysis.
"""

import numpy as np
from typing import Optional, Sequence, Union


def _n_steps(duration: float, dt: float) -> int:
    return int(np.ceil(duration / dt - 1e-9))


class Stimulus:
    """
    Stimulus generator for neuron simulations.

    Every generator returns one current sample (pA) per simulation step.
    """

    @staticmethod
    def constant(amplitude: float, duration: float, dt: float) -> np.ndarray:
        """
        Generate constant current injection.

        Args:
            amplitude: Current amplitude (pA)
            duration: Total duration (ms)
            dt: Time step (ms)

        Returns:
            Array of current values
        """
        return np.full(_n_steps(duration, dt), float(amplitude))

    @staticmethod
    def step(amplitude: float, t_start: float, t_end: float,
             duration: float, dt: float) -> np.ndarray:
        """
        Generate step current (zero, then amplitude, then zero).

        Args:
            amplitude: Current amplitude during step (pA)
            t_start: Time when step starts (ms)
            t_end: Time when step ends (ms)
            duration: Total duration (ms)
            dt: Time step (ms)

        Returns:
            Array of current values
        """
        n_steps = _n_steps(duration, dt)
        time = np.arange(n_steps) * dt
        current = np.zeros(n_steps)
        mask = (time >= t_start - 1e-9) & (time < t_end - 1e-9)
        current[mask] = amplitude
        return current

    @staticmethod
    def pulse_train(amplitude: float, pulse_duration: float,
                    pulse_period: float, n_pulses: int,
                    t_start: float, duration: float, dt: float) -> np.ndarray:
        """
        Generate train of current pulses.

        Args:
            amplitude: Pulse amplitude (pA)
            pulse_duration: Duration of each pulse (ms)
            pulse_period: Period between pulse starts (ms)
            n_pulses: Number of pulses
            t_start: Time of first pulse (ms)
            duration: Total duration (ms)
            dt: Time step (ms)

        Returns:
            Array of current values
        """
        current = np.zeros(_n_steps(duration, dt))
        for i in range(n_pulses):
            pulse_start = t_start + i * pulse_period
            current += Stimulus.step(amplitude, pulse_start, pulse_start + pulse_duration,
                                     duration, dt)
        return current

    @staticmethod
    def noisy(mean: float, std: float, duration: float, dt: float,
              seed: Optional[int] = None) -> np.ndarray:
        """
        Generate noisy (Gaussian white noise) current.

        Args:
            mean: Mean current (pA)
            std: Standard deviation (pA)
            duration: Total duration (ms)
            dt: Time step (ms)
            seed: Random seed for reproducibility

        Returns:
            Array of current values
        """
        rng = np.random.default_rng(seed)
        return rng.normal(mean, std, _n_steps(duration, dt))

    @staticmethod
    def ramp(start_amplitude: float, end_amplitude: float,
             duration: float, dt: float) -> np.ndarray:
        """Generate linearly ramping current."""
        return np.linspace(start_amplitude, end_amplitude, _n_steps(duration, dt))


def spike_input(spike_times: Sequence[float],
                weights: Union[float, Sequence[float]],
                duration: float, dt: float) -> np.ndarray:
    """
    Quantize spike arrival times onto the simulation grid.

    Each spike is assigned to the step containing its arrival time and the
    weights of spikes sharing a step are summed.

    Args:
        spike_times: Arrival times (ms), 0 <= t < duration
        weights: One weight for all spikes or one per spike (must be >= 0)
        duration: Total duration (ms)
        dt: Time step (ms)

    Returns:
        Per-step weight sums
    """
    n_steps = _n_steps(duration, dt)
    spike_times = np.asarray(spike_times, dtype=np.float64)
    weights = np.broadcast_to(np.asarray(weights, dtype=np.float64), spike_times.shape)

    if np.any(weights < 0):
        raise ValueError("spike weights must be non-negative")

    indices = np.floor(spike_times / dt + 1e-9).astype(int)
    if np.any((indices < 0) | (indices >= n_steps)):
        raise ValueError(f"spike times must lie in [0, {duration})")

    out = np.zeros(n_steps)
    np.add.at(out, indices, weights)
    return out


def compute_spike_statistics(spike_times: np.ndarray) -> dict:
    """
    Compute basic spike train statistics.

    Args:
        spike_times: Array of spike times (ms)

    Returns:
        Dictionary with:
            - 'count': number of spikes
            - 'isi_mean': mean inter-spike interval (ms)
            - 'isi_std': standard deviation of ISI (ms)
            - 'isi_cv': coefficient of variation of ISI
    """
    spike_times = np.asarray(spike_times)
    n_spikes = len(spike_times)

    stats = {'count': n_spikes}

    if n_spikes < 2:
        stats['isi_mean'] = np.nan
        stats['isi_std'] = np.nan
        stats['isi_cv'] = np.nan
    else:
        isis = np.diff(spike_times)
        stats['isi_mean'] = np.mean(isis)
        stats['isi_std'] = np.std(isis)
        stats['isi_cv'] = stats['isi_std'] / stats['isi_mean'] if stats['isi_mean'] > 0 else np.nan

    return stats


def compute_firing_rate(spike_times: np.ndarray, duration: float) -> float:
    """
    Compute mean firing rate.

    Args:
        spike_times: Array of spike times (ms)
        duration: Total duration of recording (ms)

    Returns:
        Mean firing rate (Hz)
    """
    if duration <= 0:
        return 0.0

    # Convert ms to seconds for Hz
    return len(spike_times) / (duration / 1000.0)
