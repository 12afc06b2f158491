"""
Basic functionality tests for the AdEx implementation.

These tests verify that core functionality works correctly.
Run with: pytest test/test_basic.py
"""

import numpy as np
import pytest


def test_imports():
    """Test that all modules can be imported."""
    from aeif_core import AEIFParameters, AEIFState, AEIFNeuron, RK4, RK45Scipy
    from aeif_core.utils import Stimulus, spike_input
    from cpu_backed import CPUSimulator, Simulator, AEIFModel

    # If we get here, all imports succeeded
    assert True


def test_model_creation():
    """Test model and state creation."""
    from cpu_backed import AEIFModel
    from aeif_core import AEIFState

    model = AEIFModel()
    params = model.get_params()
    assert params.C_m == 281.0
    assert params.g_L == 30.0
    assert params.V_peak == 0.0

    state = AEIFState.resting_state(params)
    assert state.data.shape == (8,)
    assert state.V_m == params.E_L
    assert state.w == 0.0
    assert state.r == 0
    assert np.all(state.conductances == 0.0)


def test_set_params():
    """Test parameter updates through the model."""
    from cpu_backed import AEIFModel

    model = AEIFModel()
    model.set_params(b=0.0, t_ref=2.0)
    assert model.get_params().b == 0.0
    assert model.get_params().t_ref == 2.0

    with pytest.raises(ValueError):
        model.set_params(g_Na=120.0)


def test_params_dict_round_trip(default_params):
    """Test conversion of parameters to and from a dictionary."""
    from aeif_core import AEIFParameters, ConfigurationError

    d = default_params.to_dict()
    assert d['tau_syn_decay_NMDA'] == 100.0
    assert AEIFParameters.from_dict(d) == default_params

    d['tau_m'] = 10.0
    with pytest.raises(ConfigurationError):
        AEIFParameters.from_dict(d)


def test_stimulus_generation():
    """Test stimulus generation."""
    from aeif_core.utils import Stimulus

    # Test step stimulus
    stim = Stimulus.step(500.0, 10.0, 40.0, 100.0, 0.1)
    assert len(stim) == 1000
    assert stim[99] == 0.0     # Just before t=10ms
    assert stim[100] == 500.0  # At t=10ms
    assert stim[399] == 500.0
    assert stim[400] == 0.0    # At t=40ms

    # Test constant stimulus
    stim = Stimulus.constant(5.0, 100.0, 0.1)
    assert len(stim) == 1000
    assert np.all(stim == 5.0)

    # Test pulse train: 2 ms pulses every 10 ms starting at 5 ms
    stim = Stimulus.pulse_train(100.0, 2.0, 10.0, 3, 5.0, 50.0, 0.1)
    assert len(stim) == 500
    assert stim[0] == 0.0
    assert stim[60] == 100.0   # t=6ms, first pulse
    assert stim[100] == 0.0    # t=10ms, between pulses
    assert stim[160] == 100.0  # t=16ms, second pulse
    assert stim[360] == 0.0    # t=36ms, after the third pulse

    # Test ramp
    stim = Stimulus.ramp(0.0, 300.0, 100.0, 0.1)
    assert len(stim) == 1000
    assert stim[0] == 0.0
    assert stim[-1] == 300.0
    assert np.all(np.diff(stim) > 0)

    # Test noisy stimulus is reproducible with a seed
    a = Stimulus.noisy(100.0, 20.0, 100.0, 0.1, seed=1)
    b = Stimulus.noisy(100.0, 20.0, 100.0, 0.1, seed=1)
    assert np.array_equal(a, b)


def test_spike_statistics():
    """Test spike train statistics."""
    from aeif_core.utils import compute_spike_statistics, compute_firing_rate

    stats = compute_spike_statistics(np.array([10.0, 20.0, 30.0, 40.0]))
    assert stats['count'] == 4
    assert stats['isi_mean'] == pytest.approx(10.0)
    assert stats['isi_cv'] == pytest.approx(0.0)

    assert np.isnan(compute_spike_statistics(np.array([5.0]))['isi_mean'])
    assert compute_firing_rate(np.array([10.0, 20.0]), 100.0) == pytest.approx(20.0)


def test_basic_simulation(rk4_simulator):
    """Test basic single neuron simulation with a suprathreshold step current."""
    from aeif_core.utils import Stimulus

    stimulus = Stimulus.step(1000.0, 10.0, 60.0, 80.0, 0.1)
    result = rk4_simulator.run(T=80.0, dt=0.1, stimulus=stimulus)

    assert result.V_m is not None
    assert len(result.time) == len(result.V_m) == 801
    assert result.V_m[0] == pytest.approx(-70.6)

    spike_count = result.get_spike_count()
    assert spike_count > 0, "Should emit at least one spike"
    assert np.all(result.get_spike_times() >= 10.0)
    assert np.all(result.get_spike_times() <= 65.0)
    assert "Spikes:" in result.summary()


@pytest.mark.parametrize("integrator", ['euler', 'rk4', 'rk45'])
def test_different_integrators(integrator):
    """Test different integrator types."""
    from cpu_backed import Simulator
    from aeif_core.utils import Stimulus

    stimulus = Stimulus.constant(1000.0, 30.0, 0.05)
    simulator = Simulator(integrator=integrator)
    result = simulator.run(T=30.0, dt=0.05, stimulus=stimulus)

    assert result.V_m is not None
    assert np.all(np.isfinite(result.V_m))
    assert result.get_spike_count() > 0


def test_unknown_integrator():
    """Test that unknown integrator names are rejected."""
    from aeif_core import AEIFNeuron

    with pytest.raises(ValueError):
        AEIFNeuron(integrator='rk23')


def test_numba_backend():
    """Test Numba integrator if available."""
    pytest.importorskip("numba")
    from cpu_backed import Simulator
    from aeif_core.utils import Stimulus

    stimulus = Stimulus.constant(1000.0, 30.0, 0.1)
    result = Simulator(integrator='rk4-numba').run(T=30.0, dt=0.1, stimulus=stimulus)
    assert result.V_m is not None
    assert result.get_spike_count() > 0


def test_registered_integrator():
    """Test that integrators registered by name can be used by the neuron."""
    import cpu_backed  # noqa: F401
    from aeif_core import AEIFNeuron, RK4, register_integrator
    from aeif_core.integrators import INTEGRATORS

    assert 'rk4-numba' in INTEGRATORS

    def rk4_fine(params, **kwargs):
        return RK4(params, n_substeps=4)

    register_integrator('rk4-fine', rk4_fine)
    try:
        neuron = AEIFNeuron(dt=0.1, integrator='rk4-fine')
        assert neuron.integrator.n_substeps == 4
        assert neuron.step(spike_weight_AMPA=1.0) is False
    finally:
        INTEGRATORS.pop('rk4-fine')
