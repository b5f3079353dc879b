import math
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np
import numpy.typing as npt


class WellProfile(IntEnum):
    """Radial profile of a RadialWell. Integer values are the scene encoding."""

    GAUSSIAN = 0
    SOFT_COULOMB = 1
    INVERSE_SQUARE = 2
    HARMONIC_OSCILLATOR = 3


@dataclass
class Box:
    # 归一化 [0,1] 区域内的矩形；height > 0 为势垒，< 0 为势阱
    x0: float
    y0: float
    x1: float
    y1: float
    height: float


@dataclass
class RadialWell:
    cx: float
    cy: float
    strength: float
    radius: float
    profile: WellProfile = WellProfile.GAUSSIAN

    def __post_init__(self):
        self.profile = WellProfile(self.profile)


def radial_profile(
    profile: WellProfile,
    strength: float,
    r2: npt.NDArray[np.floating],
    r0sq: float,
) -> npt.NDArray[np.floating]:
    """Evaluate one radial profile on squared distances r2 (physical units)."""
    if profile == WellProfile.GAUSSIAN:
        return strength * np.exp(-r2 / r0sq)
    if profile == WellProfile.SOFT_COULOMB:
        return strength / np.sqrt(r2 + r0sq)
    if profile == WellProfile.INVERSE_SQUARE:
        return strength / (r2 + r0sq)
    if profile == WellProfile.HARMONIC_OSCILLATOR:
        # Parabola through `strength` at the center, zero at r = r0.
        return strength * (1.0 - r2 / r0sq)
    raise ValueError(f"Unknown well profile: {profile}")


def cap_border_widths(Nx: int, Ny: int, cap_ratio: float) -> tuple[int, int]:
    """Sponge width in cells along x and y (at least one cell each).

    Halves round away from zero: 0.25 * 10 gives 3 cells.
    """
    wx = max(1, int(math.floor(cap_ratio * Nx + 0.5)))
    wy = max(1, int(math.floor(cap_ratio * Ny + 0.5)))
    return wx, wy


def interior_slices(Nx: int, Ny: int, cap_ratio: float) -> tuple[slice, slice]:
    """(rows, cols) slices of the cells strictly inside the sponge band.

    Falls back to the full grid when the band leaves no interior.
    """
    wx, wy = cap_border_widths(Nx, Ny, cap_ratio)
    if Nx - 2 * wx <= 0 or Ny - 2 * wy <= 0:
        return slice(0, Ny), slice(0, Nx)
    return slice(wy, Ny - wy), slice(wx, Nx - wx)


def _edge_ramp(n: int, w: int) -> npt.NDArray[np.floating]:
    # linear distance into the border: 1 at the outermost cell, 0 inside
    idx = np.arange(n, dtype=float)
    s = np.zeros(n, dtype=float)
    lo = idx < w
    hi = idx >= n - w
    s[lo] = (w - idx[lo]) / w
    s[hi] = (idx[hi] - (n - w - 1)) / w
    return s


def cap_profile(Nx: int, Ny: int, cap_ratio: float) -> npt.NDArray[np.floating]:
    """Absorption shape in [0, 1], shape (Ny, Nx): smoothstep of the border depth, squared."""
    wx, wy = cap_border_widths(Nx, Ny, cap_ratio)
    sx = _edge_ramp(Nx, wx)
    sy = _edge_ramp(Ny, wy)
    s = np.maximum(sy[:, None], sx[None, :])
    ramp = s * s * (3.0 - 2.0 * s)
    return ramp * ramp


@dataclass
class PotentialField:
    """Static boxes + radial wells + complex absorbing sponge on an Nx x Ny grid."""

    Nx: int = 128
    Ny: int = 128
    Lx: float = 1.0
    Ly: float = 1.0
    cap_strength: float = 1.0
    cap_ratio: float = 0.1
    boxes: list[Box] = field(default_factory=list)
    wells: list[RadialWell] = field(default_factory=list)

    @property
    def cap_enabled(self) -> bool:
        return self.cap_strength > 1e-12 and self.cap_ratio > 0.0

    def cell_centers(self) -> tuple[npt.NDArray[np.floating], npt.NDArray[np.floating]]:
        x = (np.arange(self.Nx) + 0.5) * (self.Lx / self.Nx)
        y = (np.arange(self.Ny) + 0.5) * (self.Ly / self.Ny)
        return x, y

    def _add_boxes(self, V2: npt.NDArray[np.complexfloating]) -> None:
        Nx, Ny = self.Nx, self.Ny
        for b in self.boxes:
            if max(b.x0, b.x1) < 0.0 or min(b.x0, b.x1) > 1.0:
                continue
            if max(b.y0, b.y1) < 0.0 or min(b.y0, b.y1) > 1.0:
                continue
            ix0 = min(Nx - 1, max(0, int(np.floor(b.x0 * Nx))))
            ix1 = min(Nx - 1, max(0, int(np.floor(b.x1 * Nx))))
            iy0 = min(Ny - 1, max(0, int(np.floor(b.y0 * Ny))))
            iy1 = min(Ny - 1, max(0, int(np.floor(b.y1 * Ny))))
            if ix1 < ix0:
                ix0, ix1 = ix1, ix0
            if iy1 < iy0:
                iy0, iy1 = iy1, iy0
            V2[iy0:iy1 + 1, ix0:ix1 + 1] += b.height

    def _add_wells(self, V2: npt.NDArray[np.complexfloating]) -> None:
        if not self.wells:
            return
        x, y = self.cell_centers()
        min_length = min(self.Lx, self.Ly)
        for w in self.wells:
            r0 = max(1e-4, w.radius * min_length)
            dx = x - w.cx * self.Lx
            dy = y - w.cy * self.Ly
            r2 = dy[:, None] ** 2 + dx[None, :] ** 2
            V2 += radial_profile(w.profile, w.strength, r2, r0 * r0)

    def build(self, out: npt.NDArray[np.complexfloating] | None = None) -> npt.NDArray[np.complexfloating]:
        """Fill `out` (length Nx*Ny, row-major) with the complex potential.

        A new array is allocated when `out` is None or has the wrong size.
        Re V = boxes + wells, Im V = -cap_strength * sponge profile.
        """
        n = self.Nx * self.Ny
        if out is None or out.shape != (n,) or out.dtype != np.complex128:
            out = np.zeros(n, dtype=np.complex128)
        else:
            out.fill(0.0)

        V2 = out.reshape(self.Ny, self.Nx)
        self._add_boxes(V2)
        self._add_wells(V2)
        # 吸收边界 (CAP)：虚部为负
        V2 -= 1j * self.cap_strength * cap_profile(self.Nx, self.Ny, self.cap_ratio)
        return out
