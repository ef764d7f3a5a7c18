"""
Numba-accelerated nearest-image search.

JIT-compiled counterpart of :func:`lllcell.images.nearest_image_numpy`. The
candidate loop runs in enumeration order and only replaces the current best
on a strictly smaller squared length, so ties go to the first image exactly
as in the NumPy backend.
"""

from __future__ import annotations

import numpy as np
from numba import jit  # type: ignore[import-untyped]


@jit(nopython=True, cache=True)
def nearest_image_numba(
    pre_images: np.ndarray,
    shifts: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Select the shortest shifted displacement for each input displacement.

    Parameters
    ----------
    pre_images : np.ndarray, shape (m, n)
        Raw Cartesian displacements (float64, C-contiguous).
    shifts : np.ndarray, shape (s, n)
        Cartesian image shifts (float64, C-contiguous).

    Returns
    -------
    indices : np.ndarray, shape (m,), dtype int64
        Index into *shifts* of the winning image.
    squared : np.ndarray, shape (m,)
        Squared length of the winning displacement.
    """
    m = pre_images.shape[0]
    s = shifts.shape[0]
    n = shifts.shape[1]
    indices = np.zeros(m, dtype=np.int64)
    squared = np.empty(m, dtype=np.float64)
    for p in range(m):
        best = np.inf
        best_index = 0
        for i in range(s):
            d = 0.0
            for j in range(n):
                c = pre_images[p, j] + shifts[i, j]
                d += c * c
            if d < best:
                best = d
                best_index = i
        indices[p] = best_index
        squared[p] = best
    return indices, squared
