"""
Backend and default-parameter configuration for lllcell.

This module provides unified backend selection for the periodic image search
and the package-wide default Lovász parameter.

The backend can be configured via the LLLCELL_BACKEND environment variable:
- 'numba': JIT-compiled image search (default, requires numba)
- 'numpy': Pure NumPy implementation

The default Lovász parameter can be configured via LLLCELL_DELTA:
- any float in the open interval (0.25, 1), default 0.75

Example
-------
>>> import os
>>> os.environ['LLLCELL_BACKEND'] = 'numpy'  # Before importing lllcell
>>> os.environ['LLLCELL_DELTA'] = '0.99'     # Stronger reduction
"""

from __future__ import annotations

import os

BACKEND_ENV_VAR = 'LLLCELL_BACKEND'
AVAILABLE_BACKENDS = frozenset({'numpy', 'numba'})
DEFAULT_BACKEND = 'numba'

DELTA_ENV_VAR = 'LLLCELL_DELTA'
DEFAULT_DELTA = 0.75

#: Open interval of admissible Lovász parameters.
DELTA_BOUNDS: tuple[float, float] = (0.25, 1.0)


def _resolve_backend() -> str:
    """Resolve and validate backend from environment variable.

    Called once at module import time to ensure the backend is valid.

    Returns
    -------
    str
        Validated backend name ('numpy' or 'numba').

    Raises
    ------
    ValueError
        If the environment variable contains an invalid backend name.
    """
    value = os.environ.get(BACKEND_ENV_VAR, DEFAULT_BACKEND).lower().strip()
    if not value:
        return DEFAULT_BACKEND
    if value not in AVAILABLE_BACKENDS:
        raise ValueError(
            f"Invalid LLLCELL_BACKEND '{value}'. "
            f"Must be one of: {', '.join(sorted(AVAILABLE_BACKENDS))}"
        )
    return value


def _resolve_delta() -> float:
    """Resolve the default Lovász parameter from environment variable.

    Returns
    -------
    float
        Default delta, strictly inside ``DELTA_BOUNDS``.

    Raises
    ------
    ValueError
        If the environment variable is not a float inside the bounds.
    """
    value = os.environ.get(DELTA_ENV_VAR, '').strip()
    if not value:
        return DEFAULT_DELTA
    try:
        delta = float(value)
    except ValueError:
        raise ValueError(
            f"Invalid {DELTA_ENV_VAR} '{value}'. Must be a float."
        )
    low, high = DELTA_BOUNDS
    if not low < delta < high:
        raise ValueError(
            f"Invalid {DELTA_ENV_VAR} '{value}'. "
            f"Must lie strictly between {low} and {high}."
        )
    return delta


BACKEND = _resolve_backend()
DELTA = _resolve_delta()


def get_backend() -> str:
    """
    Get the current backend.

    Returns
    -------
    str
        Backend name ('numpy' or 'numba').
    """
    return BACKEND


def get_default_delta() -> float:
    """
    Get the default Lovász parameter.

    Returns
    -------
    float
        Value of ``LLLCELL_DELTA`` resolved at import, or 0.75.
    """
    return DELTA
