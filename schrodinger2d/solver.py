import numpy as np
import numpy.typing as npt

from .tridiag import solve_tridiagonal


class ADIWorkspace:
    """Scratch buffers for CrankNicolsonADI, sized for one (Nx, Ny) grid."""

    def __init__(self):
        self.Nx = 0
        self.Ny = 0

    def ensure(self, Nx: int, Ny: int) -> None:
        if Nx == self.Nx and Ny == self.Ny:
            return
        self.Nx = Nx
        self.Ny = Ny
        cd = np.complex128
        self.phi = np.zeros((Ny, Nx), dtype=cd)
        self.phase = np.zeros((Ny, Nx), dtype=cd)
        # x-sweep: one system of size Nx per row, batched as columns
        self.ax = np.zeros(Nx, dtype=cd)
        self.bx = np.zeros(Nx, dtype=cd)
        self.cx = np.zeros(Nx, dtype=cd)
        self.rhs_x = np.zeros((Nx, Ny), dtype=cd)
        # y-sweep: one system of size Ny per column
        self.ay = np.zeros(Ny, dtype=cd)
        self.by = np.zeros(Ny, dtype=cd)
        self.cy = np.zeros(Ny, dtype=cd)
        self.rhs_y = np.zeros((Ny, Nx), dtype=cd)


def _fill_coefficients(a, b, c, coeff: complex) -> None:
    # (I - alpha D) with D the 3-point second difference, zero outside the grid
    a.fill(-coeff)
    a[0] = 0.0
    b.fill(1.0 + 2.0 * coeff)
    c.fill(-coeff)
    c[-1] = 0.0


class CrankNicolsonADI:
    """Crank–Nicolson ADI stepper for i dpsi/dt = -(1/2) Laplacian(psi) + V psi.

    The potential enters through exact half-step phase factors exp(-i V dt/2),
    so V may be complex (absorbing sponge) while the tridiagonal solves only
    see the kinetic coefficients. psi and V are flat, row-major, length Nx*Ny.
    """

    def __init__(self):
        self.workspace = ADIWorkspace()

    def _potential_half_step(self, psi2, V2, dt: float) -> None:
        ws = self.workspace
        np.multiply(V2, -0.5j * dt, out=ws.phase)
        np.exp(ws.phase, out=ws.phase)
        psi2 *= ws.phase

    def step(
        self,
        psi: npt.NDArray[np.complexfloating],
        Nx: int,
        Ny: int,
        dx: float,
        dy: float,
        dt: float,
        V: npt.NDArray[np.complexfloating],
    ) -> None:
        """Advance psi by one time step in place."""
        ws = self.workspace
        ws.ensure(Nx, Ny)
        psi2 = psi.reshape(Ny, Nx)
        V2 = V.reshape(Ny, Nx)

        self._potential_half_step(psi2, V2, dt)

        alpha = 0.25j * dt
        ax = alpha / (dx * dx)
        ay = alpha / (dy * dy)

        # 1) x 方向: (I - alpha D_x) phi = (I + alpha D_y) psi
        rhs = ws.phi
        np.multiply(psi2, -2.0, out=rhs)
        rhs[1:] += psi2[:-1]
        rhs[:-1] += psi2[1:]
        rhs *= ay
        rhs += psi2
        ws.rhs_x[...] = rhs.T
        _fill_coefficients(ws.ax, ws.bx, ws.cx, ax)
        solve_tridiagonal(ws.ax, ws.bx, ws.cx, ws.rhs_x)
        ws.phi[...] = ws.rhs_x.T

        # 2) y 方向: (I - alpha D_y) psi' = (I + alpha D_x) phi
        phi = ws.phi
        rhs = ws.rhs_y
        np.multiply(phi, -2.0, out=rhs)
        rhs[:, 1:] += phi[:, :-1]
        rhs[:, :-1] += phi[:, 1:]
        rhs *= ax
        rhs += phi
        _fill_coefficients(ws.ay, ws.by, ws.cy, ay)
        solve_tridiagonal(ws.ay, ws.by, ws.cy, rhs)
        psi2[...] = rhs

        self._potential_half_step(psi2, V2, dt)
