import matplotlib

matplotlib.use("Agg")

import pytest

from schrodinger2d import Packet, Simulation


@pytest.fixture
def free_packet_sim():
    """64x64 grid, no sponge, one resting Gaussian packet in the middle."""
    sim = Simulation(64, 64, dt=1e-4)
    sim.pfield.cap_strength = 0.0
    sim.packets = [Packet(cx=0.5, cy=0.5, sigma=0.05, amplitude=1.0, kx=0.0, ky=0.0)]
    sim.reset()
    return sim
