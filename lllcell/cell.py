"""
Coordinate transforms and cell geometry for periodic lattices.

All functions use the convention that rows of the lattice matrix are lattice
vectors: ``L[0] = a``, ``L[1] = b``, ``L[2] = c`` (matching pymatgen and ASE).
Nothing here is specific to three dimensions except
``inscribed_sphere_radius``, which uses cross products.

Key operations:

- Cartesian from fractional: ``r = s @ L``
- Periodic wrapping (fractional): ``s_wrapped = s - floor(s)``
- Cell volume: ``abs(det(L))``
"""

import numpy as np

__all__ = [
    'validate_lattice',
    'fractional_to_cartesian',
    'wrap_fractional',
    'cell_volume',
    'inscribed_sphere_radius',
]


def validate_lattice(lattice) -> np.ndarray:
    """
    Return *lattice* as a float64 copy after checking it is a usable cell.

    Parameters
    ----------
    lattice : array_like, shape (n, n)
        Lattice matrix with rows = lattice vectors.

    Returns
    -------
    np.ndarray, shape (n, n)
        Owned float64 copy of the lattice.

    Raises
    ------
    ValueError
        If the lattice is not a finite, square, non-empty 2D matrix.
    """
    matrix = np.array(lattice, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(
            f"Lattice must be a square 2D matrix, got shape {matrix.shape}."
        )
    if matrix.shape[0] == 0:
        raise ValueError("Lattice must contain at least one vector.")
    if not np.all(np.isfinite(matrix)):
        raise ValueError("Lattice contains non-finite entries.")
    return matrix


def fractional_to_cartesian(
    fractional: np.ndarray, lattice: np.ndarray
) -> np.ndarray:
    """
    Convert fractional coordinates to Cartesian positions.

    Parameters
    ----------
    fractional : np.ndarray, shape (N, n)
        Fractional coordinates.
    lattice : np.ndarray, shape (n, n)
        Lattice matrix with rows = lattice vectors.

    Returns
    -------
    np.ndarray, shape (N, n)
        Cartesian positions.
    """
    return fractional @ lattice


def wrap_fractional(fractional: np.ndarray) -> np.ndarray:
    """
    Wrap fractional coordinates into [0, 1).

    Parameters
    ----------
    fractional : np.ndarray, shape (N, n)
        Fractional coordinates (may be outside [0, 1)).

    Returns
    -------
    np.ndarray, shape (N, n)
        Wrapped fractional coordinates in [0, 1).
    """
    return fractional - np.floor(fractional)


def cell_volume(lattice: np.ndarray) -> float:
    """Volume (n-dimensional content) of the cell spanned by the rows of *lattice*."""
    return float(abs(np.linalg.det(lattice)))


def inscribed_sphere_radius(lattice: np.ndarray) -> float:
    """
    Compute the inscribed sphere radius of the parallelepiped defined by
    the lattice matrix.

    This is half the smallest perpendicular height of the cell. A reduced
    basis of a skewed lattice has a larger inscribed sphere than the input
    basis, which is what keeps the nearest periodic image within one layer
    of neighbouring cells.

    For orthorhombic cells this reduces to ``min(Lx, Ly, Lz) / 2``.

    Parameters
    ----------
    lattice : np.ndarray, shape (3, 3)
        Lattice matrix with rows = lattice vectors.

    Returns
    -------
    float
        Inscribed sphere radius.
    """
    a, b, c = lattice[0], lattice[1], lattice[2]
    volume = abs(np.linalg.det(lattice))

    h_bc = volume / np.linalg.norm(np.cross(b, c))
    h_ca = volume / np.linalg.norm(np.cross(c, a))
    h_ab = volume / np.linalg.norm(np.cross(a, b))

    return float(min(h_bc, h_ca, h_ab) / 2)
