"""
Example: Basic AdEx simulation

This script demonstrates how to use the AdEx neuron core to simulate a
single neuron receiving synaptic input and a step current injection.
"""

import os

import numpy as np
import matplotlib.pyplot as plt

from cpu_backed import AEIFModel, Simulator, Stimulus, spike_input
from aeif_core import peak_time


def basic_demo():
    """Run basic AdEx simulation demo."""

    print("=" * 60)
    print("AdEx Neuron Simulation - Basic Demo")
    print("=" * 60)
    print()

    # Simulation parameters
    T = 300.0  # Total time (ms)
    dt = 0.05  # Time step (ms)

    print(f"Simulation duration: {T} ms")
    print(f"Time step: {dt} ms")
    print()

    # Create model with default parameters
    model = AEIFModel()
    params = model.get_params()
    print("Model parameters:")
    print(f"  C_m = {params.C_m} pF")
    print(f"  g_L = {params.g_L} nS")
    print(f"  E_L = {params.E_L} mV")
    print(f"  V_th = {params.V_th} mV, Delta_T = {params.Delta_T} mV")
    print(f"  a = {params.a} nS, b = {params.b} pA, tau_w = {params.tau_w} ms")
    for receptor in ('AMPA', 'NMDA', 'GABA_A'):
        syn = params.synapse(receptor)
        print(f"  {receptor}: tau_rise = {syn.tau_rise} ms, tau_decay = {syn.tau_decay} ms, "
              f"g_peak = {syn.g_peak} nS, t_peak = {peak_time(syn.tau_rise, syn.tau_decay):.3f} ms")
    print()

    # Synaptic input during the first 100 ms, then a suprathreshold step current
    spikes_AMPA = spike_input([10.0, 30.0, 32.0, 34.0], 20.0, T, dt)
    spikes_NMDA = spike_input([50.0], 20.0, T, dt)
    spikes_GABA_A = spike_input([75.0], 20.0, T, dt)
    stimulus = Stimulus.step(
        amplitude=800.0,  # pA
        t_start=100.0,    # ms
        t_end=250.0,      # ms
        duration=T,
        dt=dt
    )
    print("Inputs:")
    print("  AMPA spikes at 10, 30, 32, 34 ms (weight 20)")
    print("  NMDA spike at 50 ms, GABA_A spike at 75 ms (weight 20)")
    print("  Step current 800 pA from 100 to 250 ms")
    print()

    print("Creating simulator (adaptive RK45 integrator)...")
    simulator = Simulator(model=model, integrator='rk45')
    print()

    print("Running simulation...")
    result = simulator.run(
        T=T,
        dt=dt,
        stimulus=stimulus,
        spikes_AMPA=spikes_AMPA,
        spikes_NMDA=spikes_NMDA,
        spikes_GABA_A=spikes_GABA_A,
    )
    print("Simulation complete!")
    print()

    print(result.summary())
    print()

    spike_count = result.get_spike_count()
    if spike_count > 0:
        spike_times = result.get_spike_times()
        print(f"Spike times: {spike_times} ms")
        if spike_count > 1:
            print(f"Inter-spike intervals: {np.diff(spike_times)} ms")
    print()

    # Plot results
    print("Generating plots...")
    fig, axes = result.plot(variables=['V_m', 'w', 'g_AMPA', 'g_NMDA', 'g_GABA_A'],
                            figsize=(12, 10))
    axes[0].set_title('Membrane Potential, Adaptation and Synaptic Conductances')

    os.makedirs('plots', exist_ok=True)
    plt.savefig('plots/aeif_simulation_basic.png', dpi=150, bbox_inches='tight')
    print("Plot saved as: plots/aeif_simulation_basic.png")
    print()

    print("Demo complete!")


if __name__ == '__main__':
    basic_demo()
