import numpy as np
import numpy.typing as npt


def solve_tridiagonal(
    a: npt.NDArray[np.complexfloating],
    b: npt.NDArray[np.complexfloating],
    c: npt.NDArray[np.complexfloating],
    d: npt.NDArray[np.complexfloating],
) -> npt.NDArray[np.complexfloating]:
    """Thomas algorithm for A x = d with A = tridiag(a, b, c).

    - a: sub-diagonal, a[0] unused
    - b: main diagonal, overwritten during elimination
    - c: super-diagonal, c[N-1] unused
    - d: right-hand side, shape (N,) or (N, m); overwritten with x

    With a 2D d every column is an independent system sharing the same matrix.
    The matrix must be non-singular without pivoting (diagonally dominant).
    """
    n = int(b.shape[0])
    if n == 0:
        return d

    for i in range(1, n):
        w = a[i] / b[i - 1]
        b[i] = b[i] - w * c[i - 1]
        d[i] -= w * d[i - 1]

    d[n - 1] /= b[n - 1]
    for i in range(n - 2, -1, -1):
        d[i] -= c[i] * d[i + 1]
        d[i] /= b[i]
    return d
