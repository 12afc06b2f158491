"""
Pytest fixtures and configuration for AdEx tests.
"""

import pytest
from aeif_core import AEIFParameters, AEIFNeuron
from cpu_backed import AEIFModel, CPUSimulator


@pytest.fixture
def default_params():
    """Fixture providing default AdEx parameters."""
    return AEIFParameters()


@pytest.fixture
def default_model():
    """Fixture providing default AdEx model."""
    return AEIFModel()


@pytest.fixture
def rk4_simulator(default_model):
    """Fixture providing CPU simulator with fixed-step RK4."""
    return CPUSimulator(model=default_model, integrator='rk4')


@pytest.fixture
def rk45_simulator(default_model):
    """Fixture providing CPU simulator with adaptive RK45."""
    return CPUSimulator(model=default_model, integrator='rk45')


@pytest.fixture
def non_adapting_params():
    """Parameters with adaptation switched off, so w stays at zero between spikes."""
    return AEIFParameters(a=0.0, b=0.0)


@pytest.fixture
def resting_neuron():
    """Fixture providing a neuron at rest with dt = 0.1 ms."""
    return AEIFNeuron(dt=0.1)


@pytest.fixture(params=['euler', 'rk4', 'rk45'])
def all_integrators(request):
    """Fixture providing all pure-Python integrator names."""
    return request.param


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "physiological: mark test as checking physiological behavior"
    )
    config.addinivalue_line(
        "markers", "numerical: mark test as checking numerical properties"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
