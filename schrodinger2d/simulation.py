import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from .diagnostics import MassSample, StabilityConfig, StabilityDiagnostics, measure_masses
from .eigen import EigenState, compute_eigenstates, normalize
from .potential import Box, PotentialField, RadialWell
from .solver import CrankNicolsonADI

logger = logging.getLogger(__name__)

MIN_GRID = 8


@dataclass
class Packet:
    """Gaussian source in normalized coordinates; k in radians per unit length."""

    cx: float
    cy: float
    sigma: float
    amplitude: float
    kx: float = 0.0
    ky: float = 0.0


class Simulation:
    """Owner of the grid, the fields (psi, V), the potential definition and diagnostics.

    psi and V are flat complex arrays of length Nx*Ny, row-major
    (index j*Nx + i). Cells are square: dx = dy = 1/min(Nx, Ny).
    """

    def __init__(self, Nx: int = 372, Ny: int = 300, dt: float = 1e-4):
        self.dt = float(dt)
        self.running = False

        self.pfield = PotentialField()
        self.packets: list[Packet] = []

        self.stability = StabilityConfig()
        self.diagnostics = StabilityDiagnostics()
        self.solver = CrankNicolsonADI()

        self.Nx = self.Ny = 0
        self.Lx = self.Ly = 1.0
        self.dx = self.dy = 1.0
        self.psi = np.zeros(0, dtype=np.complex128)
        self.V = np.zeros(0, dtype=np.complex128)
        self.resize(Nx, Ny)

    def idx(self, i: int, j: int) -> int:
        return j * self.Nx + i

    # 网格与初始条件
    def resize(self, Nx: int, Ny: int) -> None:
        self.Nx = max(MIN_GRID, int(Nx))
        self.Ny = max(MIN_GRID, int(Ny))
        cell = 1.0 / min(self.Nx, self.Ny)
        self.dx = self.dy = cell
        self.Lx = self.Nx * cell
        self.Ly = self.Ny * cell
        self.psi = np.zeros(self.Nx * self.Ny, dtype=np.complex128)
        self.V = np.zeros(self.Nx * self.Ny, dtype=np.complex128)
        logger.info("Grid resized to %dx%d (dx=%.6g)", self.Nx, self.Ny, self.dx)
        self.reset()

    def _sync_potential_geometry(self) -> None:
        self.pfield.Nx = self.Nx
        self.pfield.Ny = self.Ny
        self.pfield.Lx = self.Lx
        self.pfield.Ly = self.Ly

    def rebuild_potential(self) -> None:
        self._sync_potential_geometry()
        self.V = self.pfield.build(self.V)

    def clear_psi(self) -> None:
        self.psi.fill(0.0)

    def reset(self) -> None:
        """Rebuild V and regenerate psi from the packet list."""
        self.clear_psi()
        self.rebuild_potential()
        for p in self.packets:
            self.inject_gaussian(p)
        self.refresh_diagnostics_baseline()

    def inject_gaussian(self, p: Packet) -> None:
        """Add A exp(-|r-c|^2 / 2 sigma^2) exp(i k.(r-c)) to psi."""
        cx = p.cx * self.Lx
        cy = p.cy * self.Ly
        sig = max(1e-12, p.sigma * min(self.Lx, self.Ly))
        x = (np.arange(self.Nx) + 0.5) * self.dx
        y = (np.arange(self.Ny) + 0.5) * self.dy
        gx = np.exp(-0.5 * ((x - cx) / sig) ** 2 + 1j * p.kx * (x - cx))
        gy = np.exp(-0.5 * ((y - cy) / sig) ** 2 + 1j * p.ky * (y - cy))
        psi2 = self.psi.reshape(self.Ny, self.Nx)
        psi2 += p.amplitude * (gy[:, None] * gx[None, :])

    def add_packet(self, p: Packet) -> None:
        self.packets.append(p)
        self.reset()

    def add_box(self, b: Box) -> None:
        self.pfield.boxes.append(b)
        self.rebuild_potential()

    def add_well(self, w: RadialWell) -> None:
        self.pfield.wells.append(w)
        self.rebuild_potential()

    # 时间演化
    def step(self) -> None:
        self.solver.step(self.psi, self.Nx, self.Ny, self.dx, self.dy, self.dt, self.V)
        self.diagnostics.update(
            self._sample(), self.stability, self.pfield.cap_enabled, is_time_step=True
        )
        if self.diagnostics.unstable and self.stability.auto_pause_on_instability and self.running:
            self.running = False
            logger.warning("Playback paused: %s", self.diagnostics.reason)

    def step_n(self, n: int) -> None:
        for _ in range(int(n)):
            self.step()

    # 诊断量
    def _sample(self) -> MassSample:
        return measure_masses(self.psi, self.Nx, self.Ny, self.dx, self.dy, self.pfield.cap_ratio)

    def mass(self) -> float:
        """Discrete L2 norm sum |psi|^2 dx dy."""
        return float(np.vdot(self.psi, self.psi).real) * self.dx * self.dy

    def interior_mass(self) -> float:
        return self._sample().interior

    def mass_split(self) -> tuple[float, float]:
        """(left, right) mass split by the vertical midline."""
        sample = self._sample()
        return sample.left, sample.right

    def refresh_diagnostics_baseline(self) -> None:
        self.diagnostics.rebaseline(self._sample(), self.stability)

    def refresh_diagnostics(self) -> None:
        """Re-evaluate diagnostics without counting a time step."""
        self.diagnostics.update(
            self._sample(), self.stability, self.pfield.cap_enabled, is_time_step=False
        )

    def renormalize(self) -> bool:
        """Scale psi to unit mass; skipped (returns False) when the mass is ~0."""
        m = self.mass()
        if not np.isfinite(m) or m <= 1e-300:
            logger.debug("Renormalize skipped: mass=%g", m)
            return False
        self.psi[...] = normalize(self.psi, self.dx, self.dy)
        self.refresh_diagnostics_baseline()
        return True

    # 本征态
    def compute_eigenstates(
        self,
        modes: int,
        max_basis: int = 64,
        max_iter: int = 200,
        tol: float = 1e-6,
    ) -> list[EigenState]:
        return compute_eigenstates(
            self.V.real, self.Nx, self.Ny, self.dx, self.dy,
            modes, max_basis=max_basis, max_iter=max_iter, tol=tol,
        )

    def apply_eigenstate(self, state: EigenState) -> None:
        psi = np.asarray(state.psi)
        if psi.size != self.Nx * self.Ny:
            logger.debug(
                "Ignoring eigenstate of length %d for a %dx%d grid", psi.size, self.Nx, self.Ny
            )
            return
        self.psi[...] = psi.reshape(-1)
        self.packets.clear()
        self.running = False
        self.refresh_diagnostics_baseline()

    @property
    def psi_grid(self) -> npt.NDArray[np.complexfloating]:
        """(Ny, Nx) view of psi."""
        return self.psi.reshape(self.Ny, self.Nx)
