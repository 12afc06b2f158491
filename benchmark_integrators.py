"""
Benchmark script: integrator comparison for the AdEx neuron.

Compares runtime and accuracy of forward Euler, hand-written RK4, the
adaptive scipy RK45 solver and (when Numba is installed) the JIT-compiled
RK4 across different time steps.
"""

import numpy as np
import matplotlib.pyplot as plt
import time
import sys
import os

from cpu_backed import Simulator, AEIFModel, Stimulus, spike_input


def make_inputs(T, dt):
    """Suprathreshold current with a burst of AMPA and NMDA input."""
    stim = Stimulus.step(700.0, 20.0, T - 20.0, T, dt)
    spikes = spike_input(np.arange(5.0, T - 5.0, 7.0), 2.0, T, dt)
    return stim, spikes


def benchmark_integrator(integrator_type, T, dt, n_runs=3):
    """
    Benchmark a specific integrator.

    Args:
        integrator_type: 'euler', 'rk4', 'rk45' or 'rk4-numba'
        T: Simulation time (ms)
        dt: Time step (ms)
        n_runs: Number of runs for averaging

    Returns:
        Dictionary with timing statistics and the recorded membrane trace
    """
    model = AEIFModel()
    simulator = Simulator(model=model, integrator=integrator_type)
    stim, spikes = make_inputs(T, dt)

    # Warmup run (triggers JIT compilation for the Numba integrator)
    result = simulator.run(T, dt, stimulus=stim, spikes_AMPA=spikes, spikes_NMDA=spikes)

    times = []
    for _ in range(n_runs):
        start = time.perf_counter()
        result = simulator.run(T, dt, stimulus=stim, spikes_AMPA=spikes, spikes_NMDA=spikes)
        end = time.perf_counter()
        times.append(end - start)

    times = np.array(times)
    return {
        'mean': np.mean(times),
        'std': np.std(times),
        'spike_times': result.get_spike_times(),
    }


def spike_time_error(spike_times, reference):
    """Largest spike-time deviation from the reference; inf if spike counts differ."""
    if len(spike_times) != len(reference):
        return np.inf
    if len(reference) == 0:
        return 0.0
    return float(np.max(np.abs(spike_times - reference)))


def available_integrators():
    integrators = ['euler', 'rk4', 'rk45']
    try:
        import numba  # noqa: F401
        integrators.append('rk4-numba')
    except ImportError:
        print("NOTE: numba not installed, skipping 'rk4-numba'. Install with: pip install numba")
    return integrators


def run_comprehensive_benchmark(T=200.0, time_steps=None, n_runs=3):
    """
    Run integrator comparison benchmark.

    Args:
        T: Simulation time (ms)
        time_steps: List of time steps (ms) to test
        n_runs: Number of runs per benchmark
    """
    if time_steps is None:
        time_steps = [0.2, 0.1, 0.05, 0.02]

    integrators = available_integrators()

    print("=" * 80)
    print("AdEx neuron: Integrator Benchmark")
    print("=" * 80)
    print(f"\nSimulation parameters:")
    print(f"  Duration: {T} ms")
    print(f"  Runs per test: {n_runs}")
    print(f"\nTime steps: {time_steps}")
    print(f"Integrators: {integrators}")
    print(f"\n{'='*80}\n")

    # Reference: the adaptive solver at the finest step with tight tolerances
    stim, spikes = make_inputs(T, min(time_steps))
    reference = Simulator(integrator='rk45', rtol=1e-10, atol=1e-12).run(
        T, min(time_steps), stimulus=stim, spikes_AMPA=spikes, spikes_NMDA=spikes
    ).get_spike_times()
    print(f"Reference spike count: {len(reference)}\n")

    results = {name: [] for name in integrators}
    for dt in time_steps:
        print(f"dt = {dt:>5} ms")
        for name in integrators:
            r = benchmark_integrator(name, T, dt, n_runs)
            r['error'] = spike_time_error(r['spike_times'], reference)
            results[name].append(r)
            print(f"  {name:<10} {r['mean']:.4f}s  spikes: {len(r['spike_times']):>3}  "
                  f"max spike-time error: {r['error']:.4f} ms")
            sys.stdout.flush()

    print(f"\n{'='*80}")

    plot_results(time_steps, results)
    print_summary_table(time_steps, results)

    return time_steps, results


def plot_results(time_steps, results):
    """Create runtime and accuracy comparison plots."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    ax = axes[0]
    for name, rs in results.items():
        ax.errorbar(time_steps, [r['mean'] for r in rs], yerr=[r['std'] for r in rs],
                    marker='o', label=name, linewidth=2, capsize=4)
    ax.set_xlabel('Time step (ms)', fontsize=12)
    ax.set_ylabel('Time (seconds)', fontsize=12)
    ax.set_title('Runtime', fontsize=14, fontweight='bold')
    ax.set_xscale('log')
    ax.set_yscale('log')
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    for name, rs in results.items():
        errors = np.array([r['error'] for r in rs])
        finite = np.isfinite(errors) & (errors > 0)
        ax.plot(np.array(time_steps)[finite], errors[finite], marker='s', label=name, linewidth=2)
    ax.set_xlabel('Time step (ms)', fontsize=12)
    ax.set_ylabel('Max spike-time error (ms)', fontsize=12)
    ax.set_title('Accuracy vs. tight-tolerance RK45', fontsize=14, fontweight='bold')
    ax.set_xscale('log')
    ax.set_yscale('log')
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    output_dir = 'plots'
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, 'integrator_benchmark.png')
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    print(f"\nPlot saved to: {output_path}")

    plt.show()


def print_summary_table(time_steps, results):
    """Print formatted summary table."""
    print("\nSummary Table:")
    print("=" * 70)
    print(f"{'dt (ms)':<10} {'Integrator':<12} {'Time (s)':<12} {'Spikes':<8} {'Error (ms)':<12}")
    print("=" * 70)

    for i, dt in enumerate(time_steps):
        for name, rs in results.items():
            r = rs[i]
            print(f"{dt:<10} {name:<12} {r['mean']:<12.4f} {len(r['spike_times']):<8} {r['error']:<12.4f}")

    print("=" * 70)

    fastest = min(results, key=lambda name: sum(r['mean'] for r in results[name]))
    print(f"\nFastest integrator overall: {fastest}")


def main():
    """Main benchmark execution."""
    T = 200.0  # ms
    n_runs = 3

    if len(sys.argv) > 1:
        if sys.argv[1] in ['-h', '--help']:
            print("Usage: python benchmark_integrators.py [T] [n_runs]")
            print("  T: Simulation time in ms (default: 200.0)")
            print("  n_runs: Number of runs per benchmark (default: 3)")
            return

        T = float(sys.argv[1])
        if len(sys.argv) > 2:
            n_runs = int(sys.argv[2])

    run_comprehensive_benchmark(T, n_runs=n_runs)


if __name__ == '__main__':
    main()
