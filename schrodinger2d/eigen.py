"""Lowest eigenstates of H = -(1/2) Laplacian + Re V with Dirichlet boundaries.

The production path is a Lanczos iteration on the matrix-free 5-point
operator followed by an implicit-shift QL diagonalization of the Lanczos
tridiagonal matrix. `build_hamiltonian` / `eigen_decomposition` assemble the
same operator as a scipy sparse matrix. Nothing on the simulation path calls
them; they serve as a direct ARPACK reference to check the Lanczos results
against.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import scipy.sparse as sp
import scipy.sparse.linalg as spla

logger = logging.getLogger(__name__)

QL_MAX_ITER = 60
MIN_MODE_NORM = 1e-12


@dataclass
class EigenState:
    energy: float
    psi: npt.NDArray[np.complexfloating]


def normalize(psi: np.ndarray, dx: float, dy: float) -> np.ndarray:
    norm = np.sqrt(np.sum(np.abs(psi) ** 2) * dx * dy)
    if norm == 0:
        return psi
    return psi / norm


def apply_hamiltonian(
    v: npt.NDArray[np.floating],
    V_real: npt.NDArray[np.floating],
    Nx: int,
    Ny: int,
    dx: float,
    dy: float,
) -> npt.NDArray[np.floating]:
    """H v for a flat real vector v, zero outside the grid."""
    v2 = v.reshape(Ny, Nx)
    cx = -0.5 / (dx * dx)
    cy = -0.5 / (dy * dy)
    out = (V_real.reshape(Ny, Nx) - 2.0 * (cx + cy)) * v2
    out[:, 1:] += cx * v2[:, :-1]
    out[:, :-1] += cx * v2[:, 1:]
    out[1:, :] += cy * v2[:-1, :]
    out[:-1, :] += cy * v2[1:, :]
    return out.reshape(-1)


def build_hamiltonian(
    V_real: npt.NDArray[np.floating],
    Nx: int,
    Ny: int,
    dx: float,
    dy: float,
) -> sp.csr_matrix:
    """Sparse (Nx*Ny) x (Nx*Ny) Hamiltonian with the same stencil as apply_hamiltonian."""
    def second_difference(n: int, h: float) -> sp.spmatrix:
        main = (1.0 / h**2) * np.ones(n)
        off = -0.5 / h**2 * np.ones(n - 1)
        return sp.diags([off, main, off], offsets=(-1, 0, 1), format="csr")  # type: ignore[arg-type]

    Tx = second_difference(Nx, dx)
    Ty = second_difference(Ny, dy)
    # row-major index j*Nx + i: x varies fastest
    H = sp.kron(sp.eye(Ny), Tx) + sp.kron(Ty, sp.eye(Nx)) + sp.diags(np.asarray(V_real, dtype=float))
    return sp.csr_matrix(H)


def eigen_decomposition(H: sp.spmatrix, num_states: int):
    n = int(H.shape[0])
    ncv = min(n - 1, max(2 * num_states + 1, 32))
    energies, states = spla.eigsh(H, k=num_states, which="SA", ncv=ncv)
    idx = np.argsort(energies)
    energies = energies[idx]
    states = states[:, idx]
    return energies, states


def lanczos_seed(n: int) -> npt.NDArray[np.floating]:
    """Fixed sparse start vector: a strided set of cells with smooth positive weights."""
    seed = np.zeros(n, dtype=float)
    if n == 0:
        return seed
    stride = max(1, n // 61)
    idx = np.arange(0, n, stride)
    seed[idx] = 1.0 + 0.5 * np.sin(0.7 * idx)
    return seed


def lanczos(
    matvec,
    seed: npt.NDArray[np.floating],
    max_steps: int,
    tol: float,
    weight: float = 1.0,
) -> tuple[npt.NDArray[np.floating], npt.NDArray[np.floating], npt.NDArray[np.floating]]:
    """Krylov basis and tridiagonal coefficients of a symmetric operator.

    Inner products are sum(u*v)*weight. Returns (alphas, betas, Q) where the
    rows of Q are the orthonormal basis vectors, len(alphas) == len(Q) and
    len(betas) == len(alphas) - 1. The iteration stops early when the next
    residual norm drops below tol.
    """
    n = int(seed.shape[0])
    steps = min(int(max_steps), n)
    seed_norm = math.sqrt(float(np.dot(seed, seed)) * weight)
    if steps <= 0 or seed_norm == 0.0 or not math.isfinite(seed_norm):
        return np.zeros(0), np.zeros(0), np.zeros((0, n))

    Q = np.zeros((steps, n), dtype=float)
    Q[0] = seed / seed_norm
    alphas = []
    betas = []
    beta_prev = 0.0
    for k in range(steps):
        w = matvec(Q[k])
        alpha = float(np.dot(Q[k], w)) * weight
        w -= alpha * Q[k]
        if k > 0:
            w -= beta_prev * Q[k - 1]
        # two passes of full re-orthogonalization against the stored basis
        basis = Q[:k + 1]
        for _ in range(2):
            w -= (basis @ w * weight) @ basis
        alphas.append(alpha)

        beta = math.sqrt(float(np.dot(w, w)) * weight)
        if k == steps - 1 or beta < tol or not math.isfinite(beta):
            break
        betas.append(beta)
        Q[k + 1] = w / beta
        beta_prev = beta

    m = len(alphas)
    return np.asarray(alphas), np.asarray(betas), Q[:m]


def tridiagonal_ql(
    diag: npt.NDArray[np.floating],
    offdiag: npt.NDArray[np.floating],
    max_iter: int = QL_MAX_ITER,
) -> tuple[npt.NDArray[np.floating], npt.NDArray[np.floating]]:
    """Eigen-decomposition of a real symmetric tridiagonal matrix (implicit-shift QL).

    Returns (eigenvalues, Z) with eigenvectors in the columns of Z, unsorted.
    """
    n = int(len(diag))
    d = np.array(diag, dtype=float)
    e = np.zeros(n, dtype=float)
    e[: max(0, n - 1)] = offdiag[: max(0, n - 1)]
    z = np.eye(n)
    eps = np.finfo(float).eps

    for l in range(n):
        iterations = 0
        while True:
            m = l
            while m < n - 1:
                dd = abs(d[m]) + abs(d[m + 1])
                if abs(e[m]) <= eps * dd:
                    break
                m += 1
            if m == l:
                break
            if iterations == max_iter:
                logger.warning("QL iteration limit (%d) reached for eigenvalue %d", max_iter, l)
                break
            iterations += 1

            g = (d[l + 1] - d[l]) / (2.0 * e[l])
            r = math.hypot(g, 1.0)
            g = d[m] - d[l] + e[l] / (g + math.copysign(r, g))
            s = c = 1.0
            p = 0.0
            deflated = False
            for i in range(m - 1, l - 1, -1):
                f = s * e[i]
                b = c * e[i]
                r = math.hypot(f, g)
                e[i + 1] = r
                if r == 0.0:
                    d[i + 1] -= p
                    e[m] = 0.0
                    deflated = True
                    break
                s = f / r
                c = g / r
                g = d[i + 1] - p
                r = (d[i] - g) * s + 2.0 * c * b
                p = s * r
                d[i + 1] = g + p
                g = c * r - b
                # Givens rotation on columns i, i+1
                zi = z[:, i].copy()
                z[:, i] = c * zi - s * z[:, i + 1]
                z[:, i + 1] = s * zi + c * z[:, i + 1]
            if deflated:
                continue
            d[l] -= p
            e[l] = g
            e[m] = 0.0
    return d, z


def compute_eigenstates(
    V_real: npt.NDArray[np.floating],
    Nx: int,
    Ny: int,
    dx: float,
    dy: float,
    modes: int,
    max_basis: int = 64,
    max_iter: int = 200,
    tol: float = 1e-6,
) -> list[EigenState]:
    """Up to `modes` lowest eigenpairs, ascending in energy, normalized under dx*dy."""
    if modes <= 0:
        return []
    V_real = np.ascontiguousarray(np.real(V_real), dtype=float)
    weight = dx * dy

    def matvec(v):
        return apply_hamiltonian(v, V_real, Nx, Ny, dx, dy)

    alphas, betas, Q = lanczos(
        matvec,
        lanczos_seed(Nx * Ny),
        min(max_basis, max_iter),
        tol,
        weight=weight,
    )
    if len(alphas) == 0:
        return []

    evals, Z = tridiagonal_ql(alphas, betas)
    order = np.argsort(evals)

    states = []
    for idx in order[: min(modes, len(alphas))]:
        vec = Z[:, idx] @ Q
        norm = math.sqrt(float(np.dot(vec, vec)) * weight)
        if norm < MIN_MODE_NORM:
            continue
        states.append(EigenState(energy=float(evals[idx]), psi=(vec / norm).astype(np.complex128)))

    logger.debug(
        "Lanczos: basis=%d, modes=%d, energies=%s",
        len(alphas),
        len(states),
        [round(s.energy, 6) for s in states],
    )
    return states
