"""
Periodic structure with lazily reduced lattice and minimum-image queries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from lllcell.cell import cell_volume, fractional_to_cartesian, validate_lattice
from lllcell.images import minimum_image, minimum_image_vectors
from lllcell.reduction.gram_schmidt import gram_schmidt
from lllcell.reduction.lll import LLLResult, lll_reduce, validate_delta

if TYPE_CHECKING:
    from ase import Atoms

LOG = logging.getLogger(__name__)


class Structure:
    """
    A lattice together with atomic fractional coordinates and species.

    The LLL-reduced basis, its unimodular mapping and the mapping's inverse
    are computed on the first distance query and cached for the lifetime of
    the instance. The stored lattice and coordinates are never modified.

    Parameters
    ----------
    lattice : array_like, shape (n, n)
        Lattice vectors as rows, in Cartesian units.
    coordinates : array_like, shape (N, n)
        Fractional coordinates of each atom. Values outside [0, 1) are kept
        as given.
    species : array_like of int, shape (N,)
        Species identifier of each atom; identifiers need not be unique.
    delta : float, optional
        Lovász parameter for the reduction (default: ``LLLCELL_DELTA`` or 0.75).
    backend : str, optional
        Image search backend (default: ``LLLCELL_BACKEND``).

    Raises
    ------
    ValueError
        If the numbers of coordinates and species differ, if the lattice is
        not square, if coordinates have the wrong width, or if delta is out
        of range.
    DegenerateBasisError
        If the lattice vectors are linearly dependent.

    Examples
    --------
    >>> structure = Structure(np.eye(3), [[0.5, 0.5, 0.5]], [1])
    >>> vector, distance = structure.get_distances([0, 0, 0], [0.9, 0.9, 0.9])
    >>> round(distance, 4)
    0.1732
    """

    def __init__(
        self,
        lattice,
        coordinates,
        species,
        delta: float | None = None,
        backend: str | None = None,
    ):
        species = np.array(species, dtype=np.int64)
        if species.ndim != 1:
            raise ValueError(
                f"Species must be a 1D sequence, got shape {species.shape}."
            )
        coords = np.array(coordinates, dtype=np.float64)
        if coords.ndim == 0 or coords.shape[0] != species.shape[0]:
            n_coords = coords.shape[0] if coords.ndim else 0
            raise ValueError(
                f"Number of coordinates ({n_coords}) does not match "
                f"number of species ({species.shape[0]})."
            )

        self._lattice = validate_lattice(lattice)
        n = self._lattice.shape[0]
        # a linearly dependent lattice is rejected here, not on first query
        gram_schmidt(self._lattice.T)

        if coords.shape == (0,):
            coords = coords.reshape(0, n)
        if coords.ndim != 2 or coords.shape[1] != n:
            raise ValueError(
                f"Coordinates must have shape (N, {n}), got {coords.shape}."
            )
        self._coordinates = coords
        self._species = species

        for array in (self._lattice, self._coordinates, self._species):
            array.setflags(write=False)

        self.delta = validate_delta(delta)
        self.backend = backend
        self._reduction: LLLResult | None = None

    # ------------------------------------------------------------------
    # Stored data
    # ------------------------------------------------------------------

    @property
    def lattice(self) -> np.ndarray:
        """Lattice vectors as rows (read-only)."""
        return self._lattice

    @property
    def coordinates(self) -> np.ndarray:
        """Fractional coordinates, shape (N, n) (read-only)."""
        return self._coordinates

    @property
    def species(self) -> np.ndarray:
        """Species identifiers, shape (N,) (read-only)."""
        return self._species

    @property
    def num_atoms(self) -> int:
        return len(self._species)

    @property
    def dimension(self) -> int:
        return self._lattice.shape[0]

    @property
    def cartesian_coordinates(self) -> np.ndarray:
        """Cartesian positions of the atoms, shape (N, n)."""
        return fractional_to_cartesian(self._coordinates, self._lattice)

    @property
    def volume(self) -> float:
        return cell_volume(self._lattice)

    def __len__(self) -> int:
        return self.num_atoms

    def __repr__(self) -> str:
        return (
            f"<Structure: {self.num_atoms} atoms, "
            f"{self.dimension}D lattice, volume={self.volume:.4f}>"
        )

    # ------------------------------------------------------------------
    # Reduced basis
    # ------------------------------------------------------------------

    @property
    def reduction(self) -> LLLResult:
        """The cached LLL reduction of the lattice, computed on first access."""
        if self._reduction is None:
            reduction = lll_reduce(self._lattice, self.delta)
            for array in (reduction.reduced, reduction.mapping, reduction.inverse):
                array.setflags(write=False)
            self._reduction = reduction
            LOG.debug(
                "Cached reduced basis for %r after %d swaps",
                self, self._reduction.n_swaps,
            )
        return self._reduction

    @property
    def reduced_lattice(self) -> np.ndarray:
        return self.reduction.reduced

    @property
    def mapping(self) -> np.ndarray:
        return self.reduction.mapping

    @property
    def inverse_mapping(self) -> np.ndarray:
        return self.reduction.inverse

    # ------------------------------------------------------------------
    # Distance queries
    # ------------------------------------------------------------------

    def get_distances(self, frac_a, frac_b) -> tuple[np.ndarray, float]:
        """
        Minimum-image displacement between two fractional points.

        Parameters
        ----------
        frac_a, frac_b : array_like, shape (n,)
            Fractional coordinates in this structure's lattice.

        Returns
        -------
        vector : np.ndarray, shape (n,)
            Shortest Cartesian displacement from *frac_a* to an image of
            *frac_b*.
        distance : float
            Length of *vector*.
        """
        reduction = self.reduction
        return minimum_image(
            reduction.reduced, reduction.inverse, frac_a, frac_b, self.backend
        )

    def get_atom_distance(self, i: int, j: int) -> tuple[np.ndarray, float]:
        """Minimum-image displacement from atom *i* to atom *j*."""
        return self.get_distances(self._coordinates[i], self._coordinates[j])

    def distance_matrix(self) -> np.ndarray:
        """
        Minimum-image distances between every pair of atoms.

        Returns
        -------
        np.ndarray, shape (N, N)
            Symmetric matrix with a zero diagonal.
        """
        n_atoms = self.num_atoms
        distances = np.zeros((n_atoms, n_atoms))
        if n_atoms < 2:
            return distances
        first, second = np.triu_indices(n_atoms, k=1)
        reduction = self.reduction
        _, pair_distances = minimum_image_vectors(
            reduction.reduced,
            reduction.inverse,
            self._coordinates[first],
            self._coordinates[second],
            self.backend,
        )
        distances[first, second] = pair_distances
        distances[second, first] = pair_distances
        return distances

    # ------------------------------------------------------------------
    # Interoperability
    # ------------------------------------------------------------------

    @classmethod
    def from_ase(cls, atoms: Atoms, **kwargs) -> Structure:
        """
        Build a structure from an ASE ``Atoms`` object.

        Species identifiers are the atomic numbers; coordinates are the
        unwrapped scaled positions.
        """
        return cls(
            np.asarray(atoms.get_cell()),
            atoms.get_scaled_positions(wrap=False),
            atoms.get_atomic_numbers(),
            **kwargs,
        )

    @classmethod
    def from_pymatgen(cls, structure, **kwargs) -> Structure:
        """Build a structure from a pymatgen ``Structure`` via ASE."""
        from pymatgen.io.ase import AseAtomsAdaptor

        return cls.from_ase(AseAtomsAdaptor.get_atoms(structure), **kwargs)

    def to_ase(self) -> Atoms:
        """
        Convert to a periodic ASE ``Atoms`` object.

        Species identifiers are interpreted as atomic numbers.

        Raises
        ------
        ValueError
            If the lattice is not three-dimensional.
        """
        if self.dimension != 3:
            raise ValueError(
                f"ASE Atoms require a 3D lattice, this structure is {self.dimension}D."
            )
        from ase import Atoms

        return Atoms(
            numbers=self._species,
            scaled_positions=self._coordinates,
            cell=self._lattice,
            pbc=True,
        )
