"""Ready-made scenes. Each loader replaces the boxes, wells and packets of a
Simulation (and sometimes dt), then resets it. Grid size, sponge and stability
settings are left as they are.
"""

import logging
import math

from .potential import Box, RadialWell, WellProfile
from .simulation import Packet, Simulation

logger = logging.getLogger(__name__)


def clear_scene(sim: Simulation) -> None:
    sim.running = False
    sim.pfield.boxes.clear()
    sim.pfield.wells.clear()
    sim.packets.clear()


def load_two_wall_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.pfield.boxes.append(Box(0.48, 0.0, 0.52, 1.0, 2400.0))
    sim.packets += [
        Packet(0.25, 0.75, 0.05, 1.0, 10.0, -1.0),
        Packet(0.25, 0.25, 0.05, 1.0, 42.0, 4.0),
    ]
    sim.reset()


def _slit_walls(height: float) -> list[Box]:
    # two outer walls and a centre bar leave slits at y in (0.4, 0.45) and (0.55, 0.6)
    return [
        Box(0.48, 0.0, 0.52, 0.4, height),
        Box(0.48, 0.6, 0.52, 1.0, height),
        Box(0.48, 0.45, 0.52, 0.55, height),
    ]


def load_double_slit_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.pfield.boxes += _slit_walls(2400.0)
    sim.packets.append(Packet(0.25, 0.5, 0.05, 1.0, 24.0, 0.0))
    sim.reset()


def load_double_slit_fast_scene(sim: Simulation) -> None:
    """High-momentum packet against much taller walls, with a 1e-5 time step."""
    clear_scene(sim)
    sim.dt = 1e-5
    sim.pfield.boxes += _slit_walls(100000.0)
    sim.packets.append(Packet(0.25, 0.5, 0.05, 1.0, 192.0, 0.0))
    sim.reset()


def load_counterpropagating_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.packets += [
        Packet(0.28, 0.5, 0.045, 0.8, 22.0, 0.0),
        Packet(0.72, 0.5, 0.045, 0.8, -22.0, 0.0),
        Packet(0.5, 0.68, 0.035, 0.6, -6.0, -10.0),
    ]
    sim.reset()


def load_waveguide_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.pfield.boxes += [
        Box(0.0, 0.0, 1.0, 0.08, 2200.0),
        Box(0.0, 0.92, 1.0, 1.0, 2200.0),
        Box(0.36, 0.0, 0.44, 0.38, 2200.0),
        Box(0.56, 0.62, 0.64, 1.0, 2200.0),
    ]
    sim.packets.append(Packet(0.12, 0.5, 0.05, 1.0, 28.0, 0.0))
    sim.reset()


def load_trap_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.pfield.boxes += [
        Box(0.1, 0.1, 0.9, 0.12, 3400.0),
        Box(0.1, 0.88, 0.9, 0.9, 3400.0),
        Box(0.1, 0.1, 0.12, 0.9, 3400.0),
        Box(0.88, 0.1, 0.9, 0.9, 3400.0),
        Box(0.43, 0.43, 0.57, 0.57, 2800.0),
    ]
    sim.pfield.wells.append(RadialWell(0.5, 0.5, -320.0, 0.08, WellProfile.SOFT_COULOMB))
    sim.packets += [
        Packet(0.3, 0.5, 0.04, 0.7, 12.0, 6.0),
        Packet(0.7, 0.5, 0.04, 0.7, -12.0, -6.0),
        Packet(0.5, 0.3, 0.035, 0.6, 0.0, 14.0),
    ]
    sim.reset()


def load_central_well_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.dt = 2.5e-5
    sim.pfield.wells.append(RadialWell(0.5, 0.5, -260.0, 0.075, WellProfile.GAUSSIAN))
    sim.packets += [
        Packet(0.35, 0.5, 0.035, 0.85, 0.0, 14.0),
        Packet(0.65, 0.5, 0.035, 0.85, 0.0, -14.0),
    ]
    sim.reset()


def load_central_well_inverse_square_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.dt = 2.5e-5
    sim.pfield.wells.append(RadialWell(0.5, 0.5, -500.0, 0.075, WellProfile.INVERSE_SQUARE))
    sim.packets.append(Packet(0.175, 0.5, 0.035, 0.85, 65.0, 25.0))
    sim.reset()


def load_central_well_harmonic_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.dt = 2.5e-5
    sim.pfield.wells.append(RadialWell(0.5, 0.5, -4000.0, 0.18, WellProfile.HARMONIC_OSCILLATOR))
    sim.packets.append(Packet(0.425, 0.5, 0.035, 0.85, 15.0, 0.0))
    sim.reset()


def load_well_lattice_scene(sim: Simulation, cols: int = 5, rows: int = 4) -> None:
    """Checkerboard of attractive soft-Coulomb and repulsive Gaussian wells."""
    clear_scene(sim)
    sim.dt = 2e-5
    for j in range(rows):
        for i in range(cols):
            attractive = (i + j) % 2 == 0
            sim.pfield.wells.append(RadialWell(
                0.18 + 0.14 * i,
                0.2 + 0.16 * j,
                -320.0 if attractive else 320.0,
                0.05,
                WellProfile.SOFT_COULOMB if attractive else WellProfile.GAUSSIAN,
            ))
    sim.packets += [
        Packet(0.08, 0.25, 0.03, 0.85, 60.0, 2.0),
        Packet(0.08, 0.75, 0.03, 0.85, 55.0, -2.0),
    ]
    sim.reset()


def load_ring_resonator_scene(sim: Simulation, segments: int = 12) -> None:
    """Ring of repulsive bumps (radius 0.28) around a harmonic core."""
    clear_scene(sim)
    sim.dt = 2e-5
    for i in range(segments):
        angle = 2.0 * math.pi * i / segments
        sim.pfield.wells.append(RadialWell(
            0.5 + 0.28 * math.cos(angle),
            0.5 + 0.28 * math.sin(angle),
            900.0,
            0.045,
            WellProfile.GAUSSIAN,
        ))
    sim.pfield.wells.append(RadialWell(0.5, 0.5, -450.0, 0.07, WellProfile.HARMONIC_OSCILLATOR))
    sim.packets += [
        Packet(0.35, 0.5, 0.035, 0.8, 0.0, 24.0),
        Packet(0.65, 0.5, 0.035, 0.8, 0.0, -24.0),
        Packet(0.5, 0.65, 0.03, 0.6, -18.0, 0.0),
    ]
    sim.reset()


def load_barrier_gauntlet_scene(sim: Simulation) -> None:
    clear_scene(sim)
    sim.dt = 2e-5
    sim.pfield.boxes += [
        Box(0.12, 0.1, 0.88, 0.18, 3400.0),
        Box(0.12, 0.82, 0.88, 0.9, 3400.0),
        Box(0.12, 0.28, 0.32, 0.72, 3400.0),
        Box(0.68, 0.28, 0.88, 0.72, 3400.0),
        Box(0.44, 0.44, 0.56, 0.56, 4200.0),
    ]
    # inverse-square sinks alternate low/high, then a soft-Coulomb well at the exit
    for i in range(3):
        sim.pfield.wells.append(RadialWell(
            0.35 + 0.15 * i, 0.3 if i % 2 == 0 else 0.7, -380.0, 0.06, WellProfile.INVERSE_SQUARE
        ))
    sim.pfield.wells.append(RadialWell(0.85, 0.5, -520.0, 0.07, WellProfile.SOFT_COULOMB))
    sim.packets += [
        Packet(0.18, 0.5, 0.035, 0.9, 48.0, 0.0),
        Packet(0.22, 0.35, 0.025, 0.7, 60.0, 12.0),
    ]
    sim.reset()


PRESETS = {
    "two_wall": load_two_wall_scene,
    "double_slit": load_double_slit_scene,
    "double_slit_fast": load_double_slit_fast_scene,
    "counterpropagating": load_counterpropagating_scene,
    "waveguide": load_waveguide_scene,
    "trap": load_trap_scene,
    "central_well": load_central_well_scene,
    "central_well_inverse_square": load_central_well_inverse_square_scene,
    "central_well_harmonic": load_central_well_harmonic_scene,
    "well_lattice": load_well_lattice_scene,
    "ring_resonator": load_ring_resonator_scene,
    "barrier_gauntlet": load_barrier_gauntlet_scene,
}


def load_preset(sim: Simulation, name: str) -> None:
    try:
        loader = PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown preset {name!r}; choose from {sorted(PRESETS)}") from None
    logger.info("Loading preset scene %r", name)
    loader(sim)
