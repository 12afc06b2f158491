"""
Numerical integration methods for the nonlinear (V_m, w) subsystem.

Synaptic conductances are not part of the integrated vector: every
integrator receives a callable returning the kernels' closed-form
conductances at any time inside the step, and evaluates them at each of
its internal stages.
"""

import numpy as np
from typing import Callable
from scipy.integrate import RK45

from .errors import NumericalDivergence
from .models import AEIFParameters, derivatives


ConductanceFn = Callable[[float], np.ndarray]


class IntegratorBase:
    """Base class for ODE integrators."""

    name = 'base'
    adaptive = False

    def __init__(self, params: AEIFParameters):
        self.params = params

    def rhs(self, t: float, y: np.ndarray, conductances: ConductanceFn,
            I_stim: float) -> np.ndarray:
        """Derivatives at time t into the step."""
        return derivatives(y, conductances(t), I_stim, self.params)

    def step(self, y: np.ndarray, dt: float, conductances: ConductanceFn,
             I_stim: float) -> np.ndarray:
        """
        Advance [V_m, w] by one time step.

        Args:
            y: Current [V_m, w]
            dt: Time step (ms)
            conductances: t -> conductances (nS) for 0 <= t <= dt
            I_stim: Stimulus current, constant over the step (pA)

        Returns:
            New [V_m, w]
        """
        raise NotImplementedError


class ForwardEuler(IntegratorBase):
    """
    Forward Euler integration (first-order).

    Only useful as a reference; needs very small substeps near threshold.
    """

    name = 'euler'

    def __init__(self, params: AEIFParameters, n_substeps: int = 1):
        super().__init__(params)
        self.n_substeps = n_substeps

    def step(self, y, dt, conductances, I_stim):
        """Forward Euler step: y(t+h) = y(t) + h * f(t, y(t))"""
        h = dt / self.n_substeps
        t = 0.0
        for _ in range(self.n_substeps):
            y = y + h * self.rhs(t, y, conductances, I_stim)
            t += h
        return y


class RK4(IntegratorBase):
    """
    Fourth-order Runge-Kutta integration (RK4) with optional substeps.

    Suitable when dt is small against every time constant of the model.
    """

    name = 'rk4'

    def __init__(self, params: AEIFParameters, n_substeps: int = 1):
        super().__init__(params)
        self.n_substeps = n_substeps

    def step(self, y, dt, conductances, I_stim):
        """
        RK4 step:
        k1 = f(t, y)
        k2 = f(t + h/2, y + h/2 * k1)
        k3 = f(t + h/2, y + h/2 * k2)
        k4 = f(t + h, y + h * k3)
        y(t+h) = y(t) + h/6 * (k1 + 2*k2 + 2*k3 + k4)
        """
        h = dt / self.n_substeps
        t = 0.0
        for _ in range(self.n_substeps):
            k1 = self.rhs(t, y, conductances, I_stim)
            k2 = self.rhs(t + 0.5 * h, y + 0.5 * h * k1, conductances, I_stim)
            k3 = self.rhs(t + 0.5 * h, y + 0.5 * h * k2, conductances, I_stim)
            k4 = self.rhs(t + h, y + h * k3, conductances, I_stim)
            y = y + (h / 6.0) * (k1 + 2*k2 + 2*k3 + k4)
            t += h
        return y


class RK45Scipy(IntegratorBase):
    """
    Scipy's RK45 (Dormand-Prince) integrator with local error control.

    Internal steps are chosen adaptively (never longer than dt) until the
    end of the simulation step is reached.
    """

    name = 'rk45'
    adaptive = True

    def __init__(self, params: AEIFParameters, rtol: float = 1e-6, atol: float = 1e-9):
        super().__init__(params)
        self.rtol = rtol
        self.atol = atol

    def step(self, y, dt, conductances, I_stim):
        def func(t, y):
            """Wrapper to match scipy's expected signature."""
            return self.rhs(t, y, conductances, I_stim)

        solver = RK45(func, 0.0, np.asarray(y, dtype=np.float64), dt,
                      max_step=dt, rtol=self.rtol, atol=self.atol)

        while solver.status == 'running':
            solver.step()

        if solver.status == 'failed':
            raise NumericalDivergence(f"RK45 failed: {solver.message}")

        return solver.y.copy()


INTEGRATORS = {
    'euler': ForwardEuler,
    'rk4': RK4,
    'rk45': RK45Scipy,
}


def register_integrator(name: str, factory: Callable[..., IntegratorBase]):
    """
    Make an integrator available by name.

    Args:
        name: Name accepted by make_integrator and AEIFNeuron
        factory: Called as factory(params, **kwargs)
    """
    INTEGRATORS[name] = factory


def make_integrator(integrator_type: str, params: AEIFParameters, **kwargs) -> IntegratorBase:
    """
    Create an integrator by name.

    Args:
        integrator_type: 'euler', 'rk4', 'rk45' or a registered name
        params: Model parameters
        **kwargs: Forwarded to the integrator (n_substeps, rtol, atol)
    """
    try:
        cls = INTEGRATORS[integrator_type]
    except KeyError:
        raise ValueError(
            f"Unknown integrator type: {integrator_type}. "
            f"Valid options are {sorted(INTEGRATORS)}."
        ) from None
    return cls(params, **kwargs)
