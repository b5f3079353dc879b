import numpy as np
import pytest
from numpy.testing import assert_allclose

from schrodinger2d import RadialWell, Simulation, WellProfile
from schrodinger2d.eigen import (
    apply_hamiltonian,
    build_hamiltonian,
    eigen_decomposition,
    lanczos,
    lanczos_seed,
    tridiagonal_ql,
)


def _levels(energies, tol):
    """Collapse (near-)degenerate energies into distinct levels."""
    levels = [energies[0]]
    for e in energies[1:]:
        if e - levels[-1] > tol:
            levels.append(e)
    return levels


def test_tridiagonal_ql_matches_eigvalsh():
    rng = np.random.default_rng(7)
    d = rng.standard_normal(12) * 3.0
    e = rng.standard_normal(11)
    T = np.diag(d) + np.diag(e, 1) + np.diag(e, -1)

    evals, Z = tridiagonal_ql(d, e)

    assert_allclose(np.sort(evals), np.linalg.eigvalsh(T), atol=1e-10)
    assert_allclose(Z.T @ Z, np.eye(12), atol=1e-10)
    assert_allclose(T @ Z, Z * evals, atol=1e-9)


def test_tridiagonal_ql_trivial_sizes():
    evals, Z = tridiagonal_ql(np.array([2.5]), np.zeros(0))
    assert_allclose(evals, [2.5])
    assert_allclose(Z, [[1.0]])

    evals, _ = tridiagonal_ql(np.array([1.0, 3.0]), np.array([0.0]))
    assert_allclose(np.sort(evals), [1.0, 3.0])


def test_apply_hamiltonian_matches_sparse_matrix():
    Nx, Ny, h = 9, 12, 0.1
    rng = np.random.default_rng(3)
    V = rng.standard_normal(Nx * Ny)
    v = rng.standard_normal(Nx * Ny)
    H = build_hamiltonian(V, Nx, Ny, h, h)
    assert_allclose(apply_hamiltonian(v, V, Nx, Ny, h, h), H @ v, rtol=1e-12, atol=1e-9)


def test_lanczos_basis_is_orthonormal():
    Nx, Ny, h = 16, 16, 1.0 / 16
    V = np.zeros(Nx * Ny)
    w = h * h
    alphas, betas, Q = lanczos(
        lambda v: apply_hamiltonian(v, V, Nx, Ny, h, h), lanczos_seed(Nx * Ny), 40, 1e-10, weight=w
    )
    assert len(alphas) == 40
    assert len(betas) == 39
    assert_allclose(Q @ Q.T * w, np.eye(40), atol=1e-10)


def test_lanczos_zero_seed_returns_nothing():
    alphas, betas, Q = lanczos(lambda v: v, np.zeros(10), 5, 1e-8)
    assert len(alphas) == 0
    assert Q.shape == (0, 10)


def test_ground_state_of_empty_box_matches_analytic():
    sim = Simulation(24, 24)
    states = sim.compute_eigenstates(modes=1, max_basis=150, max_iter=150)
    assert len(states) == 1

    N, h = sim.Nx, sim.dx
    # discrete Dirichlet spectrum: sum over axes of (1 - cos(p pi / (N + 1))) / h^2
    e1d = (1.0 - np.cos(np.pi / (N + 1))) / h**2
    assert states[0].energy == pytest.approx(2.0 * e1d, rel=1e-7)

    psi = states[0].psi.real
    Hpsi = apply_hamiltonian(psi, sim.V.real, N, N, h, h)
    residual = np.linalg.norm(Hpsi - states[0].energy * psi) * h
    assert residual < 1e-3 * states[0].energy


def test_lanczos_matches_arpack_for_a_well():
    sim = Simulation(24, 24)
    sim.add_well(RadialWell(0.4, 0.55, -300.0, 0.15, WellProfile.GAUSSIAN))
    states = sim.compute_eigenstates(modes=1, max_basis=150, max_iter=150)

    H = build_hamiltonian(sim.V.real, sim.Nx, sim.Ny, sim.dx, sim.dy)
    energies, _ = eigen_decomposition(H, 2)
    assert states[0].energy == pytest.approx(energies[0], rel=1e-6)


def test_harmonic_well_spacing():
    sim = Simulation(48, 48)
    # V = -1250 + 20000 r^2, i.e. omega = 200 around the center
    sim.add_well(RadialWell(0.5, 0.5, -1250.0, 0.25, WellProfile.HARMONIC_OSCILLATOR))
    states = sim.compute_eigenstates(modes=4, max_basis=100, max_iter=100)

    assert len(states) == 4
    energies = [s.energy for s in states]
    assert all(b >= a for a, b in zip(energies, energies[1:]))

    for s in states:
        assert np.sum(np.abs(s.psi) ** 2) * sim.dx * sim.dy == pytest.approx(1.0, rel=1e-9)

    gap0 = energies[1] - energies[0]
    levels = _levels(energies, 0.25 * gap0)
    assert len(levels) >= 3
    gap1 = levels[1] - levels[0]
    gap2 = levels[2] - levels[1]
    assert abs(gap2 - gap1) / gap1 < 0.15
    assert gap1 == pytest.approx(200.0, rel=0.05)


def test_modes_capped_by_basis_size():
    sim = Simulation(8, 8)
    states = sim.compute_eigenstates(modes=10, max_basis=5, max_iter=200)
    assert len(states) == 5
    assert sim.compute_eigenstates(modes=0) == []


def test_eigenstates_ignore_absorbing_boundary():
    sim = Simulation(16, 16)
    sim.pfield.cap_strength = 0.0
    sim.rebuild_potential()
    a = sim.compute_eigenstates(modes=2, max_basis=40)
    sim.pfield.cap_strength = 50.0
    sim.rebuild_potential()
    b = sim.compute_eigenstates(modes=2, max_basis=40)
    assert [s.energy for s in a] == [s.energy for s in b]
