"""
Pytest-based validation tests for the AdEx implementation.

Run with: pytest test/
"""

import numpy as np
import pytest
from scipy.integrate import solve_ivp

from aeif_core import (
    AEIFNeuron, AEIFParameters, RK4, bounded_voltage, derivatives,
    nmda_unblock, peak_time, spike_input,
)
from aeif_core.models import KERNEL_SLOTS, RECEPTORS
from cpu_backed import AEIFModel, Simulator, Stimulus


def psp(params, n_settle=1000, n_window=300, **weights):
    """
    Membrane deflection caused by one synaptic event, measured against an
    identical neuron that receives no event.
    """
    neuron = AEIFNeuron(params, dt=0.1, integrator='rk4')
    control = AEIFNeuron(params, dt=0.1, integrator='rk4')
    for _ in range(n_settle):
        neuron.step()
        control.step()

    neuron.step(**weights)
    control.step()
    deflection = []
    for _ in range(n_window):
        neuron.step()
        control.step()
        deflection.append(neuron.V_m - control.V_m)
    return np.array(deflection)


@pytest.mark.numerical
class TestRelaxation:
    """Zero input from equilibrium stays at equilibrium."""

    def test_equilibrium_is_stable(self, all_integrators, default_params):
        neuron = AEIFNeuron(default_params, dt=0.1, integrator=all_integrators)
        for _ in range(1000):
            assert neuron.step() is False

        # The exponential term shifts the true rest by well under a microvolt
        assert neuron.V_m == pytest.approx(default_params.E_L, abs=1e-3)
        assert neuron.w == pytest.approx(0.0, abs=1e-2)
        assert np.all(neuron.state.conductances == 0.0)
        assert neuron.r == 0

    @pytest.mark.parametrize("n_steps", [1, 10, 300])
    def test_repeated_zero_input_is_idempotent(self, n_steps, default_params):
        neuron = AEIFNeuron(default_params, dt=0.1)
        rest = neuron.state.data.copy()
        for _ in range(n_steps):
            neuron.step()
        assert np.allclose(neuron.state.data, rest, atol=1e-3)

    @pytest.mark.slow
    def test_conductances_relax_to_zero(self):
        neuron = AEIFNeuron(dt=0.1, integrator='rk4')
        neuron.step(spike_weight_AMPA=1.0, spike_weight_NMDA=1.0, spike_weight_GABA_A=1.0)
        for _ in range(10000):
            neuron.step()
        assert np.all(neuron.state.conductances < 1e-3 * neuron.params.g_peak_NMDA)
        assert neuron.V_m == pytest.approx(neuron.params.E_L, abs=1e-2)


@pytest.mark.physiological
class TestPostsynapticPotentials:
    """Single synaptic events."""

    def test_unit_ampa_epsp(self, default_params):
        """A unit AMPA spike gives a g_peak conductance peak at t_peak and a subthreshold EPSP."""
        dt, T = 0.01, 30.0
        sim = Simulator(AEIFModel(default_params), integrator='rk45')
        result = sim.run(T=T, dt=dt, spikes_AMPA=spike_input([0.0], 1.0, T, dt))

        g = result['g_AMPA']
        t_peak = peak_time(default_params.tau_syn_rise_AMPA, default_params.tau_syn_decay_AMPA)

        # deposited at the end of the first step
        t_rel = result.time[np.argmax(g)] - dt
        assert t_rel == pytest.approx(t_peak, abs=dt)
        assert g.max() == pytest.approx(default_params.g_peak_AMPA, rel=1e-3)

        assert result.get_spike_count() == 0
        assert result.V_m.max() > default_params.E_L + 0.01
        assert result.V_m.max() < default_params.V_th
        assert np.argmax(result.V_m) > np.argmax(g)
        assert result.V_m[-1] == pytest.approx(default_params.E_L, abs=0.01)

    def test_gaba_hyperpolarizes_from_depolarized_rest(self):
        """GABA_A (E_rev = -70 mV) pulls a depolarized membrane down."""
        deflection = psp(AEIFParameters(I_e=200.0), spike_weight_GABA_A=20.0)
        assert deflection.min() < -0.2
        assert deflection.max() < 0.01

    def test_nmda_unblock(self, default_params):
        assert nmda_unblock(default_params.V_act_NMDA, default_params) == pytest.approx(0.5)
        assert nmda_unblock(-90.0, default_params) < 1e-3
        assert nmda_unblock(0.0, default_params) > 0.999

    def test_nmda_response_is_voltage_dependent(self):
        """The same NMDA input depolarizes more from a depolarized baseline."""
        at_rest = psp(AEIFParameters(), spike_weight_NMDA=20.0).max()
        depolarized = psp(AEIFParameters(I_e=300.0), spike_weight_NMDA=20.0).max()
        assert at_rest > 0
        assert depolarized > 5 * at_rest


@pytest.mark.numerical
class TestNumericalAccuracy:
    """Comparisons between integrators and against scipy."""

    def test_bounded_voltage_prevents_overflow(self, default_params):
        y = np.array([1e6, 0.0])
        g = np.zeros(3)
        dy = derivatives(y, g, 0.0, default_params)
        assert np.all(np.isfinite(dy))
        assert bounded_voltage(1e6, default_params) == default_params.V_peak
        assert np.array_equal(dy, derivatives(np.array([default_params.V_peak, 0.0]),
                                              g, 0.0, default_params))

    def test_rk45_vs_rk4_subthreshold(self):
        dt, T = 0.05, 50.0
        stim = Stimulus.step(300.0, 5.0, 35.0, T, dt)
        spikes = spike_input([10.0, 12.0, 20.0], [2.0, 1.0, 3.0], T, dt)

        results = {}
        for integrator in ('rk4', 'rk45'):
            sim = Simulator(integrator=integrator)
            results[integrator] = sim.run(T=T, dt=dt, stimulus=stim,
                                          spikes_AMPA=spikes, spikes_NMDA=spikes)

        assert results['rk4'].get_spike_count() == 0
        assert np.allclose(results['rk4'].V_m, results['rk45'].V_m, atol=1e-3)
        assert np.allclose(results['rk4'].w, results['rk45'].w, atol=1e-3)
        # conductances come from the exact kernels, independent of the solver
        assert np.array_equal(results['rk4']['g_NMDA'], results['rk45']['g_NMDA'])

    def test_substeps_converge(self):
        """Subthreshold traces approach the finely substepped one as substeps grow."""
        stim = Stimulus.constant(500.0, 40.0, 0.1)
        spikes = spike_input([5.0, 15.0], 4.0, 40.0, 0.1)

        def trace(n_substeps):
            sim = Simulator(integrator='rk4', n_substeps=n_substeps)
            result = sim.run(T=40.0, dt=0.1, stimulus=stim, spikes_AMPA=spikes)
            assert result.get_spike_count() == 0
            return result.V_m

        coarse, fine, finer = trace(1), trace(4), trace(16)
        assert np.abs(fine - finer).max() <= np.abs(coarse - finer).max()
        assert np.abs(coarse - finer).max() < 1e-3

    def test_against_scipy_full_system(self, default_params):
        """
        Stepping the neuron matches solve_ivp on the full 8-variable ODE
        (membrane, adaptation and both variables of every kernel).
        """
        dt, n_steps, I_stim = 0.1, 100, 200.0
        neuron = AEIFNeuron(default_params, dt=dt, rtol=1e-10, atol=1e-12)
        neuron.step(spike_weight_AMPA=5.0, spike_weight_NMDA=3.0,
                    spike_weight_GABA_A=1.0, I_stim=I_stim)
        y0 = neuron.state.data.copy()

        for _ in range(n_steps):
            neuron.step(I_stim=I_stim)

        def ode_func(t, y):
            dy = np.zeros_like(y)
            g = np.array([y[KERNEL_SLOTS[rec][0]] for rec in RECEPTORS])
            dy[:2] = derivatives(y[:2], g, I_stim, default_params)
            for rec in RECEPTORS:
                syn = default_params.synapse(rec)
                gi, ai = KERNEL_SLOTS[rec]
                dy[gi] = y[ai] - y[gi] / syn.tau_decay
                dy[ai] = -y[ai] / syn.tau_rise
            return dy

        sol = solve_ivp(ode_func, (0.0, n_steps * dt), y0, method='RK45',
                        rtol=1e-10, atol=1e-12)

        assert neuron.V_m == pytest.approx(sol.y[0, -1], abs=1e-5)
        assert neuron.w == pytest.approx(sol.y[1, -1], abs=1e-5)
        assert neuron.state.conductances == pytest.approx(
            [sol.y[KERNEL_SLOTS[rec][0], -1] for rec in RECEPTORS], rel=1e-6
        )

    def test_no_nans_or_infs(self, rk4_simulator):
        """Test that simulation doesn't produce NaN or Inf values."""
        stim = Stimulus.noisy(900.0, 400.0, 100.0, 0.1, seed=3)
        spikes = spike_input(np.arange(0.0, 100.0, 1.5), 5.0, 100.0, 0.1)
        result = rk4_simulator.run(T=100.0, dt=0.1, stimulus=stim,
                                   spikes_AMPA=spikes, spikes_GABA_A=spikes)

        for var in ('V_m', 'w', 'g_AMPA', 'g_NMDA', 'g_GABA_A'):
            assert np.all(np.isfinite(result[var])), f"{var} contains NaN/Inf"

    def test_numba_matches_rk4(self, default_params):
        pytest.importorskip("numba")
        from cpu_backed.numba_kernels import NumbaRK4

        stim = Stimulus.constant(1000.0, 60.0, 0.1)
        spikes = spike_input([5.0, 25.0], 3.0, 60.0, 0.1)
        ref = Simulator(integrator=RK4(default_params)).run(
            T=60.0, dt=0.1, stimulus=stim, spikes_AMPA=spikes)
        jit = Simulator(integrator=NumbaRK4(default_params)).run(
            T=60.0, dt=0.1, stimulus=stim, spikes_AMPA=spikes)

        assert np.array_equal(ref.get_spike_times(), jit.get_spike_times())
        assert np.allclose(ref.V_m, jit.V_m, atol=1e-6)


class TestSpikeInput:
    """Tests for spike-time quantization."""

    def test_weights_summed_per_step(self):
        w = spike_input([0.0, 0.05, 0.1, 2.55], [1.0, 2.0, 0.5, 4.0], duration=3.0, dt=0.1)
        assert len(w) == 30
        assert w[0] == 3.0
        assert w[1] == 0.5
        assert w[25] == 4.0
        assert w.sum() == pytest.approx(7.5)

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            spike_input([1.0], -1.0, 3.0, 0.1)

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            spike_input([3.0], 1.0, 3.0, 0.1)
