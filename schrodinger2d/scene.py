"""Flat scene record for persistence layers, and conversions to/from a Simulation."""

from dataclasses import dataclass, field

from .potential import Box, RadialWell, WellProfile
from .simulation import Packet, Simulation


@dataclass
class SceneBox:
    x0: float
    y0: float
    x1: float
    y1: float
    height: float


@dataclass
class SceneWell:
    cx: float
    cy: float
    strength: float
    radius: float
    profile: int = 0


@dataclass
class ScenePacket:
    cx: float
    cy: float
    sigma: float
    amplitude: float
    kx: float = 0.0
    ky: float = 0.0


@dataclass
class Scene:
    Nx: int = 128
    Ny: int = 128
    dt: float = 0.001
    cap_strength: float = 1.0
    cap_ratio: float = 0.1
    rel_mass_drift_tol: float = 0.15
    rel_cap_mass_growth_tol: float = 0.01
    rel_interior_mass_drift_tol: float = 1.0
    interior_mass_drift_vs_total_tol: float = 0.05
    min_initial_interior_mass_fraction: float = 0.05
    min_interior_area_fraction: float = 0.01
    stability_warmup_steps: int = 8
    interior_drift_hard_fail: bool = False
    auto_pause_on_instability: bool = True
    boxes: list[SceneBox] = field(default_factory=list)
    wells: list[SceneWell] = field(default_factory=list)
    packets: list[ScenePacket] = field(default_factory=list)


def from_simulation(sim: Simulation) -> Scene:
    st = sim.stability
    return Scene(
        Nx=sim.Nx,
        Ny=sim.Ny,
        dt=sim.dt,
        cap_strength=sim.pfield.cap_strength,
        cap_ratio=sim.pfield.cap_ratio,
        rel_mass_drift_tol=st.rel_mass_drift_tol,
        rel_cap_mass_growth_tol=st.rel_cap_mass_growth_tol,
        rel_interior_mass_drift_tol=st.rel_interior_mass_drift_tol,
        interior_mass_drift_vs_total_tol=st.interior_mass_drift_vs_total_tol,
        min_initial_interior_mass_fraction=st.min_initial_interior_mass_fraction,
        min_interior_area_fraction=st.min_interior_area_fraction,
        stability_warmup_steps=st.warmup_steps,
        interior_drift_hard_fail=st.interior_drift_hard_fail,
        auto_pause_on_instability=st.auto_pause_on_instability,
        boxes=[SceneBox(b.x0, b.y0, b.x1, b.y1, b.height) for b in sim.pfield.boxes],
        wells=[SceneWell(w.cx, w.cy, w.strength, w.radius, int(w.profile)) for w in sim.pfield.wells],
        packets=[ScenePacket(p.cx, p.cy, p.sigma, p.amplitude, p.kx, p.ky) for p in sim.packets],
    )


def to_simulation(scene: Scene, sim: Simulation) -> None:
    """Load `scene` into `sim`: resize, copy every field, rebuild V and reset psi."""
    sim.resize(scene.Nx, scene.Ny)
    sim.dt = scene.dt
    sim.pfield.boxes = [Box(b.x0, b.y0, b.x1, b.y1, b.height) for b in scene.boxes]
    sim.pfield.wells = [
        RadialWell(w.cx, w.cy, w.strength, w.radius, WellProfile(w.profile)) for w in scene.wells
    ]
    sim.pfield.cap_strength = scene.cap_strength
    sim.pfield.cap_ratio = scene.cap_ratio

    st = sim.stability
    st.rel_mass_drift_tol = scene.rel_mass_drift_tol
    st.rel_cap_mass_growth_tol = scene.rel_cap_mass_growth_tol
    st.rel_interior_mass_drift_tol = scene.rel_interior_mass_drift_tol
    st.interior_mass_drift_vs_total_tol = scene.interior_mass_drift_vs_total_tol
    st.min_initial_interior_mass_fraction = scene.min_initial_interior_mass_fraction
    st.min_interior_area_fraction = scene.min_interior_area_fraction
    st.warmup_steps = scene.stability_warmup_steps
    st.interior_drift_hard_fail = scene.interior_drift_hard_fail
    st.auto_pause_on_instability = scene.auto_pause_on_instability

    sim.packets = [Packet(p.cx, p.cy, p.sigma, p.amplitude, p.kx, p.ky) for p in scene.packets]
    sim.reset()
