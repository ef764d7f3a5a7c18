"""Tests for lllcell.reduction.lll."""

import logging

import numpy as np
import pytest

from lllcell.backends import get_default_delta
from lllcell.cell import inscribed_sphere_radius
from lllcell.reduction import (
    DegenerateBasisError,
    LLLReducer,
    LLLResult,
    ReductionError,
    gram_schmidt,
    invert_mapping,
    is_lll_reduced,
    lll_reduce,
    validate_delta,
)


def assert_valid_reduction(lattice, result, delta=0.75):
    """Check unimodularity, lattice equivalence and the reduction conditions."""
    scale = max(1.0, np.abs(lattice).max())

    assert result.mapping.dtype == np.int64
    assert round(abs(np.linalg.det(result.mapping))) == 1
    np.testing.assert_allclose(result.mapping @ lattice, result.reduced, atol=1e-9 * scale)
    np.testing.assert_allclose(result.inverse @ result.reduced, lattice, atol=1e-9 * scale)
    np.testing.assert_allclose(result.inverse @ result.mapping, np.eye(len(lattice)), atol=1e-9)

    _, mu, norms = gram_schmidt(result.reduced.T)
    for i in range(1, len(lattice)):
        assert abs(mu[i, i - 1]) <= 0.5 + 1e-9
        assert norms[i] >= (delta - mu[i, i - 1] ** 2) * norms[i - 1] - 1e-9 * norms[i - 1]
    assert is_lll_reduced(result.reduced, delta)


class TestValidateDelta:
    """Tests for validate_delta()."""

    def test_none_uses_configured_default(self):
        assert validate_delta(None) == get_default_delta()

    @pytest.mark.parametrize("delta", [0.26, 0.5, 0.75, 0.99])
    def test_accepts_open_interval(self, delta):
        assert validate_delta(delta) == delta

    @pytest.mark.parametrize("delta", [0.25, 1.0, 0.0, -0.5, 1.5, np.nan])
    def test_rejects_outside_open_interval(self, delta):
        with pytest.raises(ValueError, match="strictly between"):
            validate_delta(delta)

    def test_reducer_validates_delta(self, triclinic_lattice):
        with pytest.raises(ValueError):
            LLLReducer(triclinic_lattice, delta=1.0)


class TestKnownReductions:
    """Reductions whose outcome can be worked out by hand."""

    def test_triclinic_cell(self, triclinic_lattice):
        result = lll_reduce(triclinic_lattice, delta=0.75)

        np.testing.assert_allclose(result.reduced, [
            [0.1, 0.2, 0.9],
            [2.0, 0.0, 0.0],
            [0.1, 1.8, 0.0],
        ])
        np.testing.assert_array_equal(result.mapping, [
            [0, 0, 1],
            [1, 0, 0],
            [0, 1, 0],
        ])
        assert result.n_swaps == 2
        assert result.delta == 0.75

    def test_sheared_cubic_recovers_unit_cube(self, sheared_cubic_lattice):
        result = lll_reduce(sheared_cubic_lattice)

        np.testing.assert_allclose(result.reduced, np.eye(3), atol=1e-12)
        np.testing.assert_array_equal(
            result.mapping, np.rint(np.linalg.inv(sheared_cubic_lattice)).astype(int)
        )
        assert result.n_swaps == 0

    def test_hexagonal_2d(self, hexagonal_2d_lattice):
        """Size reduction uses round-half-to-even: rint(10.5) == 10."""
        result = lll_reduce(hexagonal_2d_lattice)

        np.testing.assert_allclose(result.reduced, [[1.0, 0.0], [0.5, np.sqrt(3) / 2]])
        np.testing.assert_array_equal(result.mapping, [[1, 0], [-10, 1]])

    def test_single_vector(self):
        result = lll_reduce([[2.5]])
        np.testing.assert_array_equal(result.reduced, [[2.5]])
        np.testing.assert_array_equal(result.mapping, [[1]])
        assert result.n_iterations == 0

    def test_result_is_frozen(self, triclinic_lattice):
        result = lll_reduce(triclinic_lattice)
        assert isinstance(result, LLLResult)
        with pytest.raises(AttributeError):
            result.delta = 0.5


class TestReductionProperties:
    """Unimodularity, lattice equivalence and reduction conditions."""

    def test_triclinic(self, triclinic_lattice):
        assert_valid_reduction(triclinic_lattice, lll_reduce(triclinic_lattice))

    @pytest.mark.parametrize("delta", [0.3, 0.75, 0.99])
    def test_random_skewed_cells(self, rng, unimodular, delta):
        for _ in range(20):
            base = rng.normal(size=(3, 3))
            lattice = unimodular(3) @ base
            assert_valid_reduction(lattice, lll_reduce(lattice, delta), delta)

    @pytest.mark.parametrize("n", [2, 4])
    def test_other_dimensions(self, rng, unimodular, n):
        for _ in range(10):
            lattice = unimodular(n) @ (np.eye(n) + 0.2 * rng.normal(size=(n, n)))
            assert_valid_reduction(lattice, lll_reduce(lattice))

    def test_reduction_grows_inscribed_sphere(self, rng, unimodular):
        base = np.diag([3.0, 4.0, 5.0]) + 0.3 * rng.normal(size=(3, 3))
        lattice = unimodular(3, steps=10) @ base
        result = lll_reduce(lattice)
        assert inscribed_sphere_radius(result.reduced) >= inscribed_sphere_radius(lattice)

    def test_reduced_basis_is_shorter(self, sheared_cubic_lattice):
        result = lll_reduce(sheared_cubic_lattice)
        assert np.linalg.norm(result.reduced, axis=1).max() < \
            np.linalg.norm(sheared_cubic_lattice, axis=1).max()

    def test_input_lattice_not_modified(self, triclinic_lattice):
        original = triclinic_lattice.copy()
        lll_reduce(triclinic_lattice)
        np.testing.assert_array_equal(triclinic_lattice, original)

    def test_idempotent(self, rng, unimodular):
        for _ in range(10):
            lattice = unimodular(3) @ rng.normal(size=(3, 3))
            first = lll_reduce(lattice)
            second = lll_reduce(first.reduced)
            assert second.n_swaps == 0

    def test_reduced_triclinic_is_fixed_point(self, triclinic_lattice):
        first = lll_reduce(triclinic_lattice)
        second = lll_reduce(first.reduced)
        assert second.n_swaps == 0
        np.testing.assert_array_equal(second.mapping, np.eye(3, dtype=int))
        np.testing.assert_array_equal(second.reduced, first.reduced)

    def test_degenerate_lattice_raises(self):
        with pytest.raises(DegenerateBasisError):
            lll_reduce([[1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [0.0, 0.0, 1.0]])


class TestReducerSteps:
    """Tests for the step-level LLLReducer API."""

    def _assert_state_current(self, reducer):
        orthogonal, mu, norms = gram_schmidt(reducer.basis)
        np.testing.assert_allclose(reducer.orthogonal, orthogonal, atol=1e-8)
        np.testing.assert_allclose(np.tril(reducer.mu), np.tril(mu), atol=1e-8)
        np.testing.assert_allclose(reducer.norms, norms, rtol=1e-8)

    def _assert_mapping_consistent(self, reducer):
        np.testing.assert_allclose(
            reducer.lattice.T @ reducer.mapping, reducer.basis, atol=1e-9
        )
        assert round(abs(np.linalg.det(reducer.mapping))) == 1

    def test_incremental_state_matches_full_recompute(self, rng, unimodular):
        """Stored Gram-Schmidt data stay current after every step."""
        for n in (3, 4):
            for _ in range(10):
                lattice = unimodular(n, steps=5) @ (np.eye(n) + 0.2 * rng.normal(size=(n, n)))
                reducer = LLLReducer(lattice)
                while reducer.step():
                    self._assert_state_current(reducer)
                    self._assert_mapping_consistent(reducer)
                self._assert_state_current(reducer)

    def test_size_reduce_bounds_current_row(self, sheared_cubic_lattice):
        reducer = LLLReducer(sheared_cubic_lattice)
        reducer.k = 2
        reducer.size_reduce()
        assert np.all(np.abs(reducer.mu[2, :2]) <= 0.5)
        assert reducer.n_size_reductions == 2
        self._assert_state_current(reducer)

    def test_size_reduce_is_idempotent(self, sheared_cubic_lattice):
        reducer = LLLReducer(sheared_cubic_lattice)
        reducer.size_reduce()
        basis = reducer.basis.copy()
        mapping = reducer.mapping.copy()
        reducer.size_reduce()
        np.testing.assert_array_equal(reducer.basis, basis)
        np.testing.assert_array_equal(reducer.mapping, mapping)

    def test_size_reduce_leaves_orthogonal_basis(self, sheared_cubic_lattice):
        reducer = LLLReducer(sheared_cubic_lattice)
        orthogonal = reducer.orthogonal.copy()
        reducer.size_reduce()
        np.testing.assert_array_equal(reducer.orthogonal, orthogonal)

    def test_swap_moves_cursor_back(self, triclinic_lattice):
        reducer = LLLReducer(triclinic_lattice)
        reducer.k = 2
        assert not reducer.lovasz_condition()
        reducer.swap()
        assert reducer.k == 1
        np.testing.assert_array_equal(reducer.basis[:, 1], triclinic_lattice[2])
        np.testing.assert_array_equal(reducer.basis[:, 2], triclinic_lattice[1])
        self._assert_state_current(reducer)

    def test_swap_at_first_position_keeps_cursor(self, triclinic_lattice):
        reducer = LLLReducer(triclinic_lattice)
        reducer.swap()
        assert reducer.k == 1
        assert reducer.n_swaps == 1

    def test_done_and_step(self, triclinic_lattice):
        reducer = LLLReducer(triclinic_lattice)
        assert not reducer.done
        reducer.run()
        assert reducer.done
        assert reducer.step() is False

    def test_result_before_completion_raises(self, triclinic_lattice):
        reducer = LLLReducer(triclinic_lattice)
        with pytest.raises(RuntimeError, match="to completion"):
            reducer.result()

    def test_iterations_counted(self, triclinic_lattice):
        reducer = LLLReducer(triclinic_lattice)
        result = reducer.run()
        assert result.n_iterations == reducer.n_iterations
        # advance, swap at k=2, swap at k=1, advance, advance
        assert result.n_iterations == 5


class TestInvertMapping:

    def test_unimodular_inverse(self):
        mapping = np.array([[1, 2], [0, 1]])
        np.testing.assert_allclose(invert_mapping(mapping), [[1.0, -2.0], [0.0, 1.0]])

    def test_non_unimodular_raises(self):
        with pytest.raises(ReductionError, match="not unimodular"):
            invert_mapping(np.array([[2, 0], [0, 1]]))

    def test_singular_raises(self):
        with pytest.raises(ReductionError):
            invert_mapping(np.array([[1, 1], [1, 1]]))

    def test_reduction_error_is_runtime_error(self):
        assert issubclass(ReductionError, RuntimeError)


class TestIsLLLReduced:

    def test_identity_is_reduced(self):
        assert is_lll_reduced(np.eye(3))

    def test_sheared_basis_is_not_reduced(self, sheared_cubic_lattice):
        assert not is_lll_reduced(sheared_cubic_lattice)

    def test_lovasz_violation_detected(self):
        """Size-reduced but badly ordered: long vector first."""
        assert not is_lll_reduced([[4.0, 0.0], [0.0, 1.0]])
        assert is_lll_reduced([[1.0, 0.0], [0.0, 4.0]])


class TestLogging:

    def test_swaps_are_logged(self, triclinic_lattice, caplog):
        caplog.set_level(logging.DEBUG, logger="lllcell")
        lll_reduce(triclinic_lattice)
        swaps = [r for r in caplog.records if "Swapped basis vectors" in r.getMessage()]
        assert len(swaps) == 2
        assert any("finished after" in r.getMessage() for r in caplog.records)
