"""
Gram-Schmidt orthogonalisation of a lattice basis in column form.

The basis ``A`` holds one basis vector per column. Orthogonalisation produces

- ``B``: orthogonal (not normalised) vectors, one per column,
- ``mu``: lower-triangular projection coefficients
  ``mu[i, j] = (A_i . B_j) / (B_j . B_j)`` for ``j < i`` with a unit diagonal,
- ``norms``: squared lengths ``norms[i] = B_i . B_i``.

``update_gram_schmidt`` refreshes a contiguous block of rows in place, which
is what the LLL reducer uses after exchanging two basis vectors.
"""

from __future__ import annotations

import numpy as np

#: Ratio ``norms[i] / (A_i . A_i)`` at or below which vector ``i`` is treated
#: as linearly dependent on the vectors before it.
DEGENERACY_TOLERANCE: float = 1e-20


class DegenerateBasisError(ValueError):
    """Raised when the basis vectors are linearly dependent."""

    def __init__(self, index: int, norm: float):
        self.index = index
        self.norm = norm
        super().__init__(
            f"Basis vector {index} is linearly dependent on the preceding "
            f"vectors (squared orthogonal norm {norm!r}); a lattice basis "
            f"must be linearly independent."
        )


def _as_column_basis(basis) -> np.ndarray:
    """Return *basis* as a square float64 array, raising on bad shapes."""
    matrix = np.asarray(basis, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(
            f"Basis must be a square 2D matrix, got shape {matrix.shape}."
        )
    return matrix


def gram_schmidt(basis) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Orthogonalise a column-form basis.

    Parameters
    ----------
    basis : array_like, shape (n, n)
        Basis vectors as columns.

    Returns
    -------
    orthogonal : np.ndarray, shape (n, n)
        Orthogonal vectors ``B`` as columns.
    mu : np.ndarray, shape (n, n)
        Lower-triangular coefficient matrix with unit diagonal.
    norms : np.ndarray, shape (n,)
        Squared norms of the orthogonal vectors.

    Raises
    ------
    ValueError
        If the basis is not square.
    DegenerateBasisError
        If the basis vectors are linearly dependent.
    """
    a = _as_column_basis(basis)
    n = a.shape[1]
    orthogonal = np.zeros_like(a)
    mu = np.eye(n)
    norms = np.zeros(n)
    if n:
        update_gram_schmidt(a, orthogonal, mu, norms, 0, n - 1)
    return orthogonal, mu, norms


def update_gram_schmidt(
    basis: np.ndarray,
    orthogonal: np.ndarray,
    mu: np.ndarray,
    norms: np.ndarray,
    start: int,
    stop: int,
) -> None:
    """
    Recompute Gram-Schmidt rows ``start`` to ``stop`` (inclusive) in place.

    Rows before ``start`` of ``orthogonal``, ``mu`` and ``norms`` must already
    be consistent with ``basis``.

    Parameters
    ----------
    basis : np.ndarray, shape (n, n)
        Basis vectors as columns.
    orthogonal, mu, norms : np.ndarray
        Arrays as returned by :func:`gram_schmidt`, updated in place.
    start, stop : int
        First and last index to recompute.

    Raises
    ------
    ValueError
        If the index range is empty or out of bounds.
    DegenerateBasisError
        If a recomputed orthogonal vector vanishes.
    """
    n = basis.shape[1]
    if not 0 <= start <= stop < n:
        raise ValueError(
            f"Invalid Gram-Schmidt range [{start}, {stop}] for {n} vectors."
        )
    for i in range(start, stop + 1):
        column = basis[:, i]
        if i == 0:
            orthogonal[:, 0] = column
        else:
            mu[i, :i] = (column @ orthogonal[:, :i]) / norms[:i]
            orthogonal[:, i] = column - orthogonal[:, :i] @ mu[i, :i]
        mu[i, i] = 1.0
        mu[i, i + 1:] = 0.0
        norms[i] = orthogonal[:, i] @ orthogonal[:, i]
        if norms[i] <= DEGENERACY_TOLERANCE * (column @ column):
            raise DegenerateBasisError(i, float(norms[i]))
