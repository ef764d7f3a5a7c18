"""Shared fixtures for unit tests."""

import numpy as np
import pytest


def random_unimodular(rng: np.random.Generator, n: int, steps: int = 6) -> np.ndarray:
    """Random integer matrix with determinant +1 built from shear operations."""
    matrix = np.eye(n, dtype=np.int64)
    for _ in range(steps):
        i, j = rng.choice(n, size=2, replace=False)
        matrix[i] += rng.integers(-3, 4) * matrix[j]
    return matrix


@pytest.fixture
def triclinic_lattice():
    """Mildly triclinic cell that needs two swaps to reduce."""
    return np.array([
        [2.0, 0.0, 0.0],
        [0.1, 1.8, 0.0],
        [0.1, 0.2, 0.9],
    ])


@pytest.fixture
def sheared_cubic_lattice():
    """Unit cubic lattice described by a strongly sheared basis."""
    return np.array([
        [1.0, 0.0, 0.0],
        [5.0, 1.0, 0.0],
        [3.0, 7.0, 1.0],
    ])


@pytest.fixture
def fcc_primitive_lattice():
    """Primitive FCC cell with conventional lattice constant 2."""
    return np.array([
        [0.0, 1.0, 1.0],
        [1.0, 0.0, 1.0],
        [1.0, 1.0, 0.0],
    ])


@pytest.fixture
def hexagonal_2d_lattice():
    """2D hexagonal lattice with the second vector sheared by ten cells."""
    return np.array([
        [1.0, 0.0],
        [10.5, np.sqrt(3) / 2],
    ])


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


@pytest.fixture(params=['numpy', 'numba'])
def backend(request):
    """Each image search backend; numba is skipped when unavailable."""
    if request.param == 'numba':
        pytest.importorskip('numba')
    return request.param


@pytest.fixture
def unimodular(rng):
    """Factory for random unimodular matrices drawn from the shared generator."""
    def make(n: int, steps: int = 6) -> np.ndarray:
        return random_unimodular(rng, n, steps)
    return make
