"""Headless diagnostics runs and static matplotlib figures of a Simulation."""

import numpy as np
import numpy.typing as npt
import matplotlib.pyplot as plt

from .simulation import Simulation


def record_history(sim: Simulation, n_steps: int, every: int = 1) -> dict[str, npt.NDArray[np.floating]]:
    """Run n_steps and sample the diagnostics every `every` steps (step 0 included)."""
    every = max(1, int(every))
    rows = []

    def sample(n):
        d = sim.diagnostics
        rows.append((
            n * sim.dt,
            d.current_mass,
            d.left_mass,
            d.right_mass,
            d.current_interior_mass,
            d.rel_mass_drift,
        ))

    sim.refresh_diagnostics()
    sample(0)
    for n in range(1, int(n_steps) + 1):
        sim.step()
        if n % every == 0:
            sample(n)

    data = np.asarray(rows, dtype=float)
    keys = ("t", "mass", "left", "right", "interior", "rel_mass_drift")
    return {k: data[:, i] for i, k in enumerate(keys)}


def plot_density(
    sim: Simulation,
    img_path: str = "density.png",
    title: str | None = None,
    show_potential: bool = True,
):
    """|psi|^2 on the physical domain, with Re V contours overlaid."""
    dens = np.abs(sim.psi_grid) ** 2
    extent = (0.0, sim.Lx, 0.0, sim.Ly)

    fig, ax = plt.subplots(figsize=(7, 7 * sim.Ly / sim.Lx + 0.5))
    im = ax.imshow(dens, origin="lower", extent=extent, cmap="magma", interpolation="nearest")
    fig.colorbar(im, ax=ax, label="|ψ|^2")

    if show_potential:
        Vr = sim.V.real.reshape(sim.Ny, sim.Nx)
        if float(np.ptp(Vr)) > 0.0:
            x = (np.arange(sim.Nx) + 0.5) * sim.dx
            y = (np.arange(sim.Ny) + 0.5) * sim.dy
            ax.contour(x, y, Vr, levels=6, colors="w", linewidths=0.6, alpha=0.6)

    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title(title if title is not None else f"mass={sim.mass():.6f}")

    fig.tight_layout()
    fig.savefig(img_path, dpi=150)
    plt.close(fig)


def plot_mass_history(
    history: dict[str, npt.NDArray[np.floating]],
    img_path: str = "mass_history.png",
    title: str = "Mass and left/right split",
):
    """双 y 轴：左轴总质量/内部质量，右轴左右两半的质量。"""
    t = history["t"]

    fig, ax_m = plt.subplots(figsize=(9, 4.8))
    ax_s = ax_m.twinx()

    ln_m = ax_m.plot(t, history["mass"], color="C0", lw=1.6, label="mass")
    ln_i = ax_m.plot(t, history["interior"], color="C3", lw=1.2, ls="--", label="interior")
    ln_l = ax_s.plot(t, history["left"], color="C1", lw=1.2, label="left")
    ln_r = ax_s.plot(t, history["right"], color="C2", lw=1.2, label="right")

    ax_m.set_xlabel("t")
    ax_m.set_ylabel("mass")
    ax_s.set_ylabel("split")
    ax_m.grid(True, alpha=0.3)
    ax_m.set_title(title)

    lines = ln_m + ln_i + ln_l + ln_r
    labels = [str(line.get_label()) for line in lines]
    ax_m.legend(lines, labels, loc="best")

    plt.tight_layout()
    plt.savefig(img_path, dpi=150)
    plt.close(fig)
