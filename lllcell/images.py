"""
Minimum-image displacements between fractional points of a periodic lattice.

The search is brute force: the displacement between two points is shifted by
every lattice vector ``o @ reduced`` with ``o`` in {-1, 0, 1}^n and the
shortest candidate wins. This is exact whenever the nearest image lies within
one layer of neighbouring cells, which holds for an LLL-reduced basis but not
in general for a strongly skewed input basis.

Both points are first expressed in fractional coordinates of the reduced
basis and wrapped into [0, 1), so inputs far outside the cell are handled.

Ties between candidates of equal squared length are resolved in favour of the
offset that comes first in :func:`image_offsets` order, so results are
deterministic.

Two backends are available for the search kernel:

- 'numba' (default): JIT-compiled loop over candidates.
- 'numpy': NumPy broadcasting over all candidates at once.

Backend selection is controlled by the LLLCELL_BACKEND environment variable.
See `lllcell.backends` for configuration details.
"""

from __future__ import annotations

from functools import lru_cache
from itertools import product
from typing import Callable

import numpy as np

from lllcell.backends import get_backend, AVAILABLE_BACKENDS
from lllcell.cell import fractional_to_cartesian, wrap_fractional


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------


def _get_numba_function() -> Callable:
    """Import and return the Numba search kernel."""
    try:
        from lllcell.images_numba import nearest_image_numba
        return nearest_image_numba
    except ImportError as e:
        raise ImportError(
            "Numba backend requested but numba is not installed. "
            "Install with: pip install numba"
        ) from e


def get_backend_function(backend: str | None = None) -> Callable:
    """
    Get the nearest-image search kernel for the specified backend.

    Parameters
    ----------
    backend : str or None
        Backend to use: 'numpy' or 'numba'. If None, uses the
        LLLCELL_BACKEND environment variable, defaulting to 'numba'.

    Returns
    -------
    Callable
        ``kernel(pre_images, shifts) -> (indices, squared_lengths)``.

    Raises
    ------
    ValueError
        If an unknown backend is specified.
    ImportError
        If numba backend is requested but numba is not installed.
    """
    if backend is None:
        backend = get_backend()

    if backend not in AVAILABLE_BACKENDS:
        raise ValueError(
            f"Unknown image search backend: {backend!r}. "
            f"Available backends: {sorted(AVAILABLE_BACKENDS)}"
        )

    if backend == 'numba':
        return _get_numba_function()

    return nearest_image_numpy


# ---------------------------------------------------------------------------
# Image enumeration
# ---------------------------------------------------------------------------


@lru_cache(maxsize=None)
def _image_offsets(n: int) -> np.ndarray:
    offsets = np.array(list(product((-1, 0, 1), repeat=n)), dtype=np.int64)
    offsets.setflags(write=False)
    return offsets


def image_offsets(n: int = 3) -> np.ndarray:
    """
    Integer cell offsets of the ``3**n`` neighbouring images.

    Offsets are listed in lexicographic order over {-1, 0, 1}^n with the
    first axis varying slowest, so for ``n = 3`` the list starts at
    ``(-1, -1, -1)``, the zero offset sits at index 13 and ``(1, 1, 1)``
    is last.

    Parameters
    ----------
    n : int, optional
        Lattice dimension (default: 3).

    Returns
    -------
    np.ndarray, shape (3**n, n), dtype int64
        Read-only array of offsets.
    """
    if n < 1:
        raise ValueError(f"Lattice dimension must be positive, got {n}.")
    return _image_offsets(int(n))


# ---------------------------------------------------------------------------
# NumPy backend implementation
# ---------------------------------------------------------------------------


def nearest_image_numpy(
    pre_images: np.ndarray,
    shifts: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Select the shortest shifted displacement for each input displacement.

    Parameters
    ----------
    pre_images : np.ndarray, shape (m, n)
        Raw Cartesian displacements.
    shifts : np.ndarray, shape (s, n)
        Cartesian image shifts, in enumeration order.

    Returns
    -------
    indices : np.ndarray, shape (m,), dtype int64
        Index into *shifts* of the winning image (first on ties).
    squared : np.ndarray, shape (m,)
        Squared length of the winning displacement.
    """
    candidates = pre_images[:, np.newaxis, :] + shifts[np.newaxis, :, :]
    # accumulate in axis order so both backends round identically
    lengths = candidates[..., 0] * candidates[..., 0]
    for j in range(1, candidates.shape[-1]):
        lengths = lengths + candidates[..., j] * candidates[..., j]
    # argmin returns the first minimum, which is the tie-break rule
    indices = np.argmin(lengths, axis=1).astype(np.int64)
    squared = lengths[np.arange(len(indices)), indices]
    return indices, squared


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _as_points(points, n: int, name: str) -> np.ndarray:
    array = np.asarray(points, dtype=np.float64)
    if array.ndim != 2 or array.shape[1] != n:
        raise ValueError(
            f"{name} must have shape (m, {n}), got {array.shape}."
        )
    if not np.all(np.isfinite(array)):
        raise ValueError(f"{name} contains non-finite coordinates.")
    return array


def minimum_image_vectors(
    reduced: np.ndarray,
    inverse: np.ndarray,
    frac1: np.ndarray,
    frac2: np.ndarray,
    backend: str | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Minimum-image displacements for a batch of point pairs.

    Parameters
    ----------
    reduced : np.ndarray, shape (n, n)
        Reduced lattice vectors as rows.
    inverse : np.ndarray, shape (n, n)
        Inverse of the unimodular mapping, converting fractional coordinates
        of the original lattice into those of the reduced lattice.
    frac1, frac2 : np.ndarray, shape (m, n)
        Fractional coordinates, in the original lattice, of the start and
        end points of each pair. Values outside [0, 1) are allowed.
    backend : str or None, optional
        Search backend; defaults to ``LLLCELL_BACKEND``.

    Returns
    -------
    vectors : np.ndarray, shape (m, n)
        Shortest Cartesian displacement from ``frac1[i]`` to an image of
        ``frac2[i]``.
    distances : np.ndarray, shape (m,)
        Lengths of *vectors*.

    Raises
    ------
    ValueError
        If the array shapes are inconsistent.
    """
    reduced = np.asarray(reduced, dtype=np.float64)
    inverse = np.asarray(inverse, dtype=np.float64)
    n = reduced.shape[0]
    if reduced.shape != (n, n) or inverse.shape != (n, n):
        raise ValueError(
            f"Reduced lattice {reduced.shape} and inverse mapping "
            f"{inverse.shape} must be square matrices of equal size."
        )
    frac1 = _as_points(frac1, n, "frac1")
    frac2 = _as_points(frac2, n, "frac2")
    if frac1.shape != frac2.shape:
        raise ValueError(
            f"frac1 and frac2 must have the same shape, got {frac1.shape} "
            f"and {frac2.shape}."
        )

    kernel = get_backend_function(backend)

    # wrapping is a lattice translation; it keeps both points inside the
    # reduced cell so that one layer of images is enough
    cart1 = fractional_to_cartesian(wrap_fractional(frac1 @ inverse), reduced)
    cart2 = fractional_to_cartesian(wrap_fractional(frac2 @ inverse), reduced)
    pre_images = np.ascontiguousarray(cart2 - cart1)
    shifts = np.ascontiguousarray(image_offsets(n) @ reduced, dtype=np.float64)

    indices, squared = kernel(pre_images, shifts)
    vectors = pre_images + shifts[indices]
    return vectors, np.sqrt(squared)


def minimum_image(
    reduced: np.ndarray,
    inverse: np.ndarray,
    frac1: np.ndarray,
    frac2: np.ndarray,
    backend: str | None = None,
) -> tuple[np.ndarray, float]:
    """
    Minimum-image displacement between two fractional points.

    Parameters
    ----------
    reduced : np.ndarray, shape (n, n)
        Reduced lattice vectors as rows.
    inverse : np.ndarray, shape (n, n)
        Inverse of the unimodular mapping.
    frac1, frac2 : array_like, shape (n,)
        Fractional coordinates in the original lattice.
    backend : str or None, optional
        Search backend; defaults to ``LLLCELL_BACKEND``.

    Returns
    -------
    vector : np.ndarray, shape (n,)
        Shortest Cartesian displacement from *frac1* to an image of *frac2*.
    distance : float
        Length of *vector*.
    """
    frac1 = np.asarray(frac1, dtype=np.float64)
    frac2 = np.asarray(frac2, dtype=np.float64)
    if frac1.ndim != 1 or frac2.ndim != 1:
        raise ValueError(
            f"Points must be 1D coordinate vectors, got shapes "
            f"{frac1.shape} and {frac2.shape}."
        )
    vectors, distances = minimum_image_vectors(
        reduced, inverse, frac1[np.newaxis, :], frac2[np.newaxis, :], backend
    )
    return vectors[0], float(distances[0])
