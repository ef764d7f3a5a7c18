"""
Lattice basis reduction for lllcell.

- gram_schmidt / update_gram_schmidt: orthogonalisation of a column-form basis
- LLLReducer: stateful LLL reducer exposing the individual steps
- lll_reduce: convenience function returning an LLLResult

Preferred imports::

    from lllcell.reduction import lll_reduce

    result = lll_reduce(lattice, delta=0.75)
    print(result.reduced, result.mapping)
"""

from lllcell.reduction.gram_schmidt import (
    DEGENERACY_TOLERANCE,
    DegenerateBasisError,
    gram_schmidt,
    update_gram_schmidt,
)
from lllcell.reduction.lll import (
    LLLReducer,
    LLLResult,
    ReductionError,
    invert_mapping,
    is_lll_reduced,
    lll_reduce,
    validate_delta,
)

__all__ = [
    "DEGENERACY_TOLERANCE",
    "DegenerateBasisError",
    "LLLReducer",
    "LLLResult",
    "ReductionError",
    "gram_schmidt",
    "invert_mapping",
    "is_lll_reduced",
    "lll_reduce",
    "update_gram_schmidt",
    "validate_delta",
]
