"""
Lenstra-Lenstra-Lovász (LLL) reduction of a lattice basis.

The reducer works on the column form ``A = lattice.T`` and accumulates every
integer column operation in a mapping matrix ``M`` (also column form) so that
``A_reduced = A_original @ M``. Results are reported in row form:
``reduced = mapping @ lattice`` with ``mapping = M.T``.

A basis is LLL-reduced with parameter ``delta`` when, for every ``i >= 1``,

- ``|mu[i, j]| <= 0.5`` for all ``j < i`` (size reduction), and
- ``|B_i|^2 >= (delta - mu[i, i-1]^2) |B_{i-1}|^2`` (Lovász condition).

Both comparisons are exact floating-point comparisons. Each swap shrinks the
product of the leading Gram-Schmidt norms by a factor below ``delta``, so the
loop terminates for ``delta < 1``; ``delta = 1`` is therefore rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from lllcell.backends import DELTA_BOUNDS, get_default_delta
from lllcell.cell import validate_lattice
from lllcell.reduction.gram_schmidt import gram_schmidt, update_gram_schmidt

LOG = logging.getLogger(__name__)

#: Threshold on ``|mu[k, i]|`` above which column ``k`` is size-reduced.
SIZE_REDUCTION_THRESHOLD: float = 0.5


class ReductionError(RuntimeError):
    """Raised when the accumulated mapping is no longer unimodular."""
    pass


def validate_delta(delta: float | None) -> float:
    """
    Resolve and validate the Lovász parameter.

    Parameters
    ----------
    delta : float or None
        Requested parameter. ``None`` selects the configured default
        (``LLLCELL_DELTA``, normally 0.75).

    Returns
    -------
    float
        Validated parameter.

    Raises
    ------
    ValueError
        If delta lies outside the open interval (0.25, 1).
    """
    if delta is None:
        return get_default_delta()
    delta = float(delta)
    low, high = DELTA_BOUNDS
    if not low < delta < high:
        raise ValueError(
            f"Lovász parameter delta must lie strictly between {low} and "
            f"{high}, got {delta!r}."
        )
    return delta


@dataclass(frozen=True)
class LLLResult:
    """
    Outcome of an LLL reduction, in row form.

    Attributes
    ----------
    reduced : np.ndarray, shape (n, n)
        Reduced lattice vectors as rows.
    mapping : np.ndarray, shape (n, n), dtype int64
        Unimodular matrix with ``reduced = mapping @ lattice``.
    inverse : np.ndarray, shape (n, n)
        Real inverse of ``mapping``; ``lattice = inverse @ reduced`` and
        fractional coordinates convert as ``f_reduced = f @ inverse``.
    delta : float
        Lovász parameter used.
    n_swaps : int
        Number of basis-vector exchanges performed.
    n_iterations : int
        Number of outer iterations of the reduction loop.
    """

    reduced: np.ndarray
    mapping: np.ndarray
    inverse: np.ndarray
    delta: float
    n_swaps: int
    n_iterations: int


class LLLReducer:
    """
    Stateful LLL reducer.

    The reducer owns copies of all of its state; the lattice handed to the
    constructor is never modified. Each call to :meth:`step` performs one
    size-reduction pass on the current vector followed by the Lovász test.

    Parameters
    ----------
    lattice : array_like, shape (n, n)
        Lattice vectors as rows.
    delta : float, optional
        Lovász parameter in (0.25, 1). Defaults to ``LLLCELL_DELTA`` or 0.75.

    Attributes
    ----------
    basis : np.ndarray, shape (n, n)
        Current basis in column form.
    mapping : np.ndarray, shape (n, n), dtype int64
        Accumulated column operations, ``basis = lattice.T @ mapping``.
    orthogonal, mu, norms : np.ndarray
        Gram-Schmidt data for ``basis``.
    k : int
        Index of the vector under consideration.

    Raises
    ------
    ValueError
        If the lattice is not square or delta is out of range.
    DegenerateBasisError
        If the lattice vectors are linearly dependent.
    """

    def __init__(self, lattice, delta: float | None = None):
        self.delta = validate_delta(delta)
        self.lattice = validate_lattice(lattice)
        self.n = self.lattice.shape[0]

        self.basis = self.lattice.T.copy()
        self.mapping = np.eye(self.n, dtype=np.int64)
        self.orthogonal, self.mu, self.norms = gram_schmidt(self.basis)

        self.k = 1
        self.n_swaps = 0
        self.n_size_reductions = 0
        self.n_iterations = 0

    @property
    def done(self) -> bool:
        """Whether every position satisfies both reduction conditions."""
        return self.k > self.n - 1

    def size_reduce(self) -> None:
        """Make ``|mu[k, i]| <= 0.5`` for every ``i < k``."""
        k = self.k
        for i in range(k - 1, -1, -1):
            if abs(self.mu[k, i]) > SIZE_REDUCTION_THRESHOLD:
                q = int(np.rint(self.mu[k, i]))
                self.basis[:, k] -= q * self.basis[:, i]
                self.mapping[:, k] -= q * self.mapping[:, i]
                # B is unchanged by this operation; only row k of mu moves
                self.mu[k, :i] -= q * self.mu[i, :i]
                self.mu[k, i] -= q
                self.n_size_reductions += 1

    def lovasz_condition(self) -> bool:
        """Whether the Lovász condition holds between vectors ``k-1`` and ``k``."""
        k = self.k
        bound = (self.delta - self.mu[k, k - 1] ** 2) * self.norms[k - 1]
        return bool(self.norms[k] >= bound)

    def swap(self) -> None:
        """
        Exchange vectors ``k-1`` and ``k`` and refresh the Gram-Schmidt data.

        After the exchange ``B_{k-1}``, ``B_k`` and their norms change, and so
        does every coefficient that projects onto them: rows ``k-1`` and ``k``
        of ``mu`` and columns ``k-1`` and ``k`` of every later row. Rows from
        ``k-1`` to the end are therefore recomputed.
        """
        k = self.k
        self.basis[:, [k - 1, k]] = self.basis[:, [k, k - 1]]
        self.mapping[:, [k - 1, k]] = self.mapping[:, [k, k - 1]]
        update_gram_schmidt(
            self.basis, self.orthogonal, self.mu, self.norms, k - 1, self.n - 1
        )
        self.n_swaps += 1
        LOG.debug("Swapped basis vectors %d and %d (swap %d)", k - 1, k, self.n_swaps)
        self.k = max(1, k - 1)

    def step(self) -> bool:
        """
        Perform one outer iteration.

        Returns
        -------
        bool
            ``True`` while further iterations are needed.
        """
        if self.done:
            return False
        self.size_reduce()
        if self.lovasz_condition():
            self.k += 1
        else:
            self.swap()
        self.n_iterations += 1
        return not self.done

    def run(self) -> LLLResult:
        """Iterate until the basis is reduced and return the result."""
        while self.step():
            pass
        LOG.debug(
            "LLL reduction of %d vectors finished after %d iterations "
            "(%d swaps, %d size reductions, delta=%s)",
            self.n, self.n_iterations, self.n_swaps,
            self.n_size_reductions, self.delta,
        )
        return self.result()

    def result(self) -> LLLResult:
        """
        Package the current state as an :class:`LLLResult`.

        Raises
        ------
        RuntimeError
            If the reduction has not finished.
        ReductionError
            If the mapping is not unimodular.
        """
        if not self.done:
            raise RuntimeError("Run the reduction to completion before requesting the result.")
        mapping = self.mapping.T.copy()
        return LLLResult(
            reduced=self.basis.T.copy(),
            mapping=mapping,
            inverse=invert_mapping(mapping),
            delta=self.delta,
            n_swaps=self.n_swaps,
            n_iterations=self.n_iterations,
        )


def invert_mapping(mapping: np.ndarray) -> np.ndarray:
    """
    Real inverse of a unimodular mapping matrix.

    Raises
    ------
    ReductionError
        If the matrix is not integral with determinant +1 or -1, or cannot
        be inverted.
    """
    det = np.linalg.det(mapping.astype(np.float64))
    if round(abs(det)) != 1 or not np.allclose(np.rint(mapping), mapping):
        raise ReductionError(
            f"Mapping matrix is not unimodular (determinant {det!r})."
        )
    try:
        return np.linalg.inv(mapping.astype(np.float64))
    except np.linalg.LinAlgError as e:
        raise ReductionError("Mapping matrix is singular.") from e


def lll_reduce(lattice, delta: float | None = None) -> LLLResult:
    """
    LLL-reduce a lattice basis.

    Parameters
    ----------
    lattice : array_like, shape (n, n)
        Lattice vectors as rows.
    delta : float, optional
        Lovász parameter in (0.25, 1). Defaults to ``LLLCELL_DELTA`` or 0.75.

    Returns
    -------
    LLLResult
        Reduced basis, unimodular mapping and its inverse.

    Examples
    --------
    >>> result = lll_reduce([[1.0, 0.0], [5.0, 1.0]])
    >>> result.reduced
    array([[1., 0.],
           [0., 1.]])
    """
    return LLLReducer(lattice, delta).run()


def is_lll_reduced(lattice, delta: float | None = None, atol: float = 1e-9) -> bool:
    """
    Check whether the rows of *lattice* form an LLL-reduced basis.

    The Gram-Schmidt data are recomputed from scratch, so a small tolerance
    *atol* absorbs rounding differences with respect to the values the
    reducer tracked incrementally.

    Parameters
    ----------
    lattice : array_like, shape (n, n)
        Lattice vectors as rows.
    delta : float, optional
        Lovász parameter to test against.
    atol : float, optional
        Slack applied to both conditions (default: 1e-9).
    """
    delta = validate_delta(delta)
    _, mu, norms = gram_schmidt(validate_lattice(lattice).T)
    for i in range(1, len(norms)):
        if np.any(np.abs(mu[i, :i]) > SIZE_REDUCTION_THRESHOLD + atol):
            return False
        bound = (delta - mu[i, i - 1] ** 2) * norms[i - 1]
        if norms[i] < bound - atol * norms[i - 1]:
            return False
    return True
