"""Mass bookkeeping and instability detection for the time integrator.

The monitor is a small state machine::

    BASELINE --time step--> WARMUP --(> warmup_steps)--> ACTIVE
        ^                      |                           |
        |                      +------ NaN/Inf ------------+--> UNSTABLE
        +------------------- rebaseline() --------------------------+

UNSTABLE is sticky: later good steps never clear it, only an explicit
rebaseline does. A non-finite psi is flagged even during warmup.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np
import numpy.typing as npt

from .potential import interior_slices

logger = logging.getLogger(__name__)

_TINY_MASS = 1e-300


@dataclass
class StabilityConfig:
    rel_mass_drift_tol: float = 0.15
    rel_cap_mass_growth_tol: float = 0.01
    rel_interior_mass_drift_tol: float = 1.0
    interior_mass_drift_vs_total_tol: float = 0.05
    min_initial_interior_mass_fraction: float = 0.05
    min_interior_area_fraction: float = 0.01
    warmup_steps: int = 8
    interior_drift_hard_fail: bool = False
    auto_pause_on_instability: bool = True


class StabilityState(Enum):
    BASELINE = "baseline"
    WARMUP = "warmup"
    ACTIVE = "active"
    UNSTABLE = "unstable"


class MassSample(NamedTuple):
    total: float
    interior: float
    left: float
    right: float
    finite: bool
    interior_area_fraction: float


def measure_masses(
    psi: npt.NDArray[np.complexfloating],
    Nx: int,
    Ny: int,
    dx: float,
    dy: float,
    cap_ratio: float,
) -> MassSample:
    """Total, interior (inside the sponge band) and left/right masses of psi."""
    psi2 = psi.reshape(Ny, Nx)
    finite = bool(np.isfinite(psi2).all())
    dens = psi2.real ** 2 + psi2.imag ** 2
    cell = dx * dy

    rows, cols = interior_slices(Nx, Ny, cap_ratio)
    interior = dens[rows, cols]
    mid = Nx // 2
    return MassSample(
        total=float(np.sum(dens) * cell),
        interior=float(np.sum(interior) * cell),
        left=float(np.sum(dens[:, :mid]) * cell),
        right=float(np.sum(dens[:, mid:]) * cell),
        finite=finite,
        interior_area_fraction=interior.size / dens.size,
    )


def _relative(current: float, initial: float) -> float:
    if initial <= _TINY_MASS:
        return 0.0
    return (current - initial) / initial


@dataclass
class StabilityDiagnostics:
    initial_mass: float = 0.0
    initial_interior_mass: float = 0.0
    current_mass: float = 0.0
    current_interior_mass: float = 0.0
    left_mass: float = 0.0
    right_mass: float = 0.0
    rel_mass_drift: float = 0.0
    rel_interior_mass_drift: float = 0.0
    rel_interior_mass_drift_vs_total: float = 0.0
    interior_area_fraction: float = 1.0
    finite: bool = True
    steps_since_baseline: int = 0
    state: StabilityState = StabilityState.BASELINE
    reason: str = ""
    warning: bool = False
    warning_reason: str = ""
    interior_guard_active: bool = True
    interior_guard_reason: str = ""

    @property
    def unstable(self) -> bool:
        return self.state is StabilityState.UNSTABLE

    @property
    def status(self) -> str:
        if self.unstable:
            return "unstable"
        if self.warning:
            return "warning"
        return "stable"

    def _record(self, sample: MassSample) -> None:
        self.current_mass = sample.total
        self.current_interior_mass = sample.interior
        self.left_mass = sample.left
        self.right_mass = sample.right
        self.finite = sample.finite
        self.interior_area_fraction = sample.interior_area_fraction
        self.rel_mass_drift = abs(_relative(sample.total, self.initial_mass))
        self.rel_interior_mass_drift = abs(_relative(sample.interior, self.initial_interior_mass))
        # interior growth beyond what the total did
        self.rel_interior_mass_drift_vs_total = (
            _relative(sample.interior, self.initial_interior_mass)
            - _relative(sample.total, self.initial_mass)
        )

    def _flag(self, reason: str) -> None:
        if self.unstable:
            return
        self.state = StabilityState.UNSTABLE
        self.reason = reason
        logger.warning("Simulation unstable after %d steps: %s", self.steps_since_baseline, reason)

    def rebaseline(self, sample: MassSample, config: StabilityConfig) -> None:
        """Capture baselines from a fresh evaluation and clear every flag."""
        self.initial_mass = sample.total
        self.initial_interior_mass = sample.interior
        self.steps_since_baseline = 0
        self.state = StabilityState.BASELINE
        self.reason = ""
        self.warning = False
        self.warning_reason = ""

        if sample.interior_area_fraction < config.min_interior_area_fraction:
            self.interior_guard_active = False
            self.interior_guard_reason = (
                f"interior area fraction {sample.interior_area_fraction:.4f} "
                f"< {config.min_interior_area_fraction:.4f}"
            )
        elif sample.total <= _TINY_MASS:
            self.interior_guard_active = False
            self.interior_guard_reason = "no initial mass"
        elif sample.interior / sample.total < config.min_initial_interior_mass_fraction:
            self.interior_guard_active = False
            self.interior_guard_reason = (
                f"initial interior mass fraction {sample.interior / sample.total:.4f} "
                f"< {config.min_initial_interior_mass_fraction:.4f}"
            )
        else:
            self.interior_guard_active = True
            self.interior_guard_reason = ""

        self._record(sample)
        if not sample.finite:
            self._flag("psi contains NaN/Inf")

    def update(
        self,
        sample: MassSample,
        config: StabilityConfig,
        cap_active: bool,
        is_time_step: bool = True,
    ) -> None:
        if is_time_step:
            self.steps_since_baseline += 1
        self._record(sample)
        self.warning = False
        self.warning_reason = ""

        if not sample.finite:
            self._flag("psi contains NaN/Inf")
            return
        if self.unstable:
            return
        if self.steps_since_baseline <= config.warmup_steps:
            if self.steps_since_baseline == 0:
                self.state = StabilityState.BASELINE
            else:
                self.state = StabilityState.WARMUP
            return
        self.state = StabilityState.ACTIVE

        if cap_active:
            limit = self.initial_mass * (1.0 + config.rel_cap_mass_growth_tol)
            if self.current_mass > limit:
                self._flag(
                    f"mass grew with absorbing boundary active: "
                    f"{self.current_mass:.6g} > {limit:.6g}"
                )
                return
        elif self.rel_mass_drift > config.rel_mass_drift_tol:
            self._flag(
                f"relative mass drift {self.rel_mass_drift:.4g} "
                f"exceeds {config.rel_mass_drift_tol:.4g}"
            )
            return

        if not self.interior_guard_active:
            return
        if self.rel_interior_mass_drift > config.rel_interior_mass_drift_tol:
            self._flag(
                f"relative interior mass drift {self.rel_interior_mass_drift:.4g} "
                f"exceeds {config.rel_interior_mass_drift_tol:.4g}"
            )
            return
        if self.rel_interior_mass_drift_vs_total > config.interior_mass_drift_vs_total_tol:
            message = (
                f"interior mass outgrew total by {self.rel_interior_mass_drift_vs_total:.4g} "
                f"(tolerance {config.interior_mass_drift_vs_total_tol:.4g})"
            )
            if config.interior_drift_hard_fail:
                self._flag(message)
            else:
                self.warning = True
                self.warning_reason = message
