"""
Test suite for the AdEx neuron implementation.

Run tests with:
    pytest test/
    pytest test/ -v
    pytest test/ -k "refractory"
    pytest test/ -m "not slow"
"""
