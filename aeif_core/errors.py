"""
Exception hierarchy for the AdEx neuron core.

AEIFError (base)
├── ConfigurationError  - invalid parameter set, raised at construction
├── InvalidInput        - malformed per-step input, raised before any mutation
└── NumericalDivergence - integrator produced a non-finite state
"""


class AEIFError(Exception):
    """Base exception for all errors raised by the neuron core."""


class ConfigurationError(AEIFError, ValueError):
    """
    Invalid parameter set.

    Raised when a time constant, capacitance or kernel definition would make
    the propagators or the synapse normalization undefined.
    """


class InvalidInput(AEIFError, ValueError):
    """
    Malformed per-step input (negative spike weight, non-finite stimulus).

    The step call has no effect on the neuron state.
    """


class NumericalDivergence(AEIFError, ArithmeticError):
    """
    The integrator produced a non-finite membrane potential or adaptation
    current. The neuron instance is faulted and must not be stepped again.
    """
