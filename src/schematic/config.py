"""config.py - Determinism guards, version asserts, constants, dtypes.

Enforces:
- Single-thread env (OMP/BLAS/MKL/NUMEXPR=1, PYTHONHASHSEED=0)
- Minimum library versions (Python 3.9+, numpy 1.24+, scipy 1.10+)
- Fixed dtypes, grid alphabet and integer bounds
"""
from __future__ import annotations
import os
import sys
import numpy as np


# ============================================================================
# Determinism env (must be set before heavy libs import)
# ============================================================================
def _set_determinism_env() -> None:
    """Set threading and hash seed env vars for determinism."""
    os.environ.setdefault("OMP_NUM_THREADS", "1")
    os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
    os.environ.setdefault("MKL_NUM_THREADS", "1")
    os.environ.setdefault("NUMEXPR_NUM_THREADS", "1")
    os.environ.setdefault("PYTHONHASHSEED", "0")


_set_determinism_env()


# ============================================================================
# Version requirements (minimums, not pins)
# ============================================================================
REQUIRED_VERSIONS = {
    "python_major_minor": (3, 9),
    "numpy": (1, 24),
    "scipy": (1, 10),
}


def _major_minor(version: str) -> tuple:
    parts = []
    for piece in version.split(".")[:2]:
        digits = "".join(ch for ch in piece if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def _assert_versions() -> None:
    """Assert runtime library versions meet the minimums."""
    import scipy

    py_ver = sys.version_info
    req_py = REQUIRED_VERSIONS["python_major_minor"]
    if (py_ver.major, py_ver.minor) < req_py:
        raise RuntimeError(
            f"Python must be >= {req_py[0]}.{req_py[1]}, "
            f"got {py_ver.major}.{py_ver.minor}.{py_ver.micro}"
        )

    req_np = REQUIRED_VERSIONS["numpy"]
    if _major_minor(np.__version__) < req_np:
        raise RuntimeError(
            f"numpy must be >= {req_np[0]}.{req_np[1]}, got {np.__version__}"
        )

    req_sp = REQUIRED_VERSIONS["scipy"]
    if _major_minor(scipy.__version__) < req_sp:
        raise RuntimeError(
            f"scipy must be >= {req_sp[0]}.{req_sp[1]}, got {scipy.__version__}"
        )


_assert_versions()


# ============================================================================
# Grid alphabet
# ============================================================================

# Returned for every out-of-range read; also the in-grid filler character.
# Matches neither the digit nor the symbol classifier.
BACKGROUND = "."

# Conventional gear marker
GEAR_MARKER = "*"

DIGITS = "0123456789"

# ============================================================================
# Dtypes and integer bounds
# ============================================================================
GRID_DTYPE = np.dtype("<U1")  # one character per cell
INT_DTYPE = np.int64  # token values, sums, products

MAX_TOKEN_VALUE = int(np.iinfo(INT_DTYPE).max)
MAX_TOTAL = int(np.iinfo(INT_DTYPE).max)

# Raster order: (y, x) ascending, rows top-to-bottom, cells left-to-right
PIXEL_LEX = "row_col_asc"


# ============================================================================
# Dtype enforcement helpers
# ============================================================================
def enforce_dtype(arr, kind: str) -> np.ndarray:
    """Enforce dtype for given array kind.

    Args:
        arr: Input array or nested sequence
        kind: 'grid' (the only array kind stored by the package)

    Returns:
        Array with correct dtype

    Raises:
        ValueError: If kind is unknown
    """
    if kind == "grid":
        return np.asarray(arr, dtype=GRID_DTYPE)
    raise ValueError(f"Unknown dtype kind: {kind}")


def assert_value_bounds(value: int, what: str = "value") -> int:
    """Assert an integer fits the int64 budget.

    Args:
        value: Python integer (token value, product or running total)
        what: Label used in the error message

    Returns:
        The value unchanged

    Raises:
        OverflowError: If value is negative or exceeds MAX_TOTAL
    """
    if value < 0 or value > MAX_TOTAL:
        raise OverflowError(
            f"{what} out of bounds: {value} not in [0, {MAX_TOTAL}] "
            f"({np.dtype(INT_DTYPE).name} budget)"
        )
    return value
