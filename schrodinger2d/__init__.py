import logging

from .diagnostics import MassSample, StabilityConfig, StabilityDiagnostics, StabilityState, measure_masses
from .eigen import EigenState, compute_eigenstates
from .potential import Box, PotentialField, RadialWell, WellProfile
from .simulation import Packet, Simulation
from .solver import CrankNicolsonADI
from .tridiag import solve_tridiagonal

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Box",
    "CrankNicolsonADI",
    "EigenState",
    "MassSample",
    "Packet",
    "PotentialField",
    "RadialWell",
    "Simulation",
    "StabilityConfig",
    "StabilityDiagnostics",
    "StabilityState",
    "WellProfile",
    "compute_eigenstates",
    "measure_masses",
    "solve_tridiagonal",
]
