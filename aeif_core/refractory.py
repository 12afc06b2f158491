"""
Threshold detection, reset and refractory countdown.

Runs after the integrator on the candidate (V_m, w) of a step and may
override them. The refractory clamp always wins over the integrator.
"""

from enum import Enum
from typing import Tuple

from .models import AEIFParameters


class FSMState(Enum):
    ACTIVE = 'active'
    REFRACTORY = 'refractory'


class ThresholdRefractoryFSM:
    """
    Two-state machine driven by the refractory counter r.

    ACTIVE (r == 0): a candidate V_m >= V_peak emits a spike, resets V_m,
    increments w by b and arms the counter with refractory_counts + 1.
    REFRACTORY (r > 0): V_m is clamped to V_reset, nothing else happens.

    A positive counter is decremented once at the end of every step,
    the spike step included, so exactly refractory_counts clamped steps
    follow each spike.
    The counter stored after a spike step therefore reads refractory_counts,
    not refractory_counts + 1.
    """

    def __init__(self, params: AEIFParameters, refractory_counts: int):
        self.V_peak = params.V_peak
        self.V_reset = params.V_reset
        self.b = params.b
        self.refractory_counts = refractory_counts

    @staticmethod
    def state_of(r: int) -> FSMState:
        return FSMState.REFRACTORY if r > 0 else FSMState.ACTIVE

    def apply(self, V_m: float, w: float, r: int) -> Tuple[float, float, int, bool]:
        """
        Apply one step's transition.

        Args:
            V_m: Candidate membrane potential from the integrator (mV)
            w: Candidate adaptation current (pA)
            r: Refractory counter before this step

        Returns:
            (V_m, w, r, spiked) after the transition
        """
        spiked = False

        if r > 0:
            V_m = self.V_reset
        elif V_m >= self.V_peak:
            r = self.refractory_counts + 1
            V_m = self.V_reset
            w = w + self.b
            spiked = True

        if r > 0:
            r -= 1

        return V_m, w, r, spiked
