"""hash_utils.py - Byte-stable hashing for receipts.

Provides deterministic, cross-platform hashing for:
- Character grids (byte-exact over the <U1 array)
- Token lists
- JSON-serializable objects (canonical key order)

All hashes use SHA256 and are stable across runs and platforms.
"""
from __future__ import annotations
import hashlib
import json
from typing import Any, Iterable
import numpy as np
from ..config import GRID_DTYPE


def sha256_bytes(b: bytes) -> str:
    """Compute SHA256 hex digest of bytes."""
    return hashlib.sha256(b).hexdigest()


def hash_grid(grid_data: np.ndarray) -> str:
    """Hash grid data (byte-exact).

    Args:
        grid_data: Character array (H, W) with dtype <U1

    Returns:
        SHA256 hex digest

    Raises:
        RuntimeError: If array does not have the grid dtype
    """
    if grid_data.dtype != GRID_DTYPE:
        raise RuntimeError(
            f"hash_grid requires dtype {GRID_DTYPE}, got {grid_data.dtype}"
        )
    # Shape goes in first so 1x6 and 2x3 grids with the same cells differ
    header = f"{grid_data.shape[0]}x{grid_data.shape[1]}:".encode("ascii")
    # Use C-order to ensure consistent byte layout
    return sha256_bytes(header + np.ascontiguousarray(grid_data).tobytes(order="C"))


def hash_json_canonical(obj: Any) -> str:
    """Hash JSON-serializable object with canonical serialization.

    Notes:
        - Keys are sorted
        - No whitespace
        - UTF-8 encoding
    """
    json_str = json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    return sha256_bytes(json_str.encode("utf-8"))


def hash_tokens(tokens: Iterable) -> str:
    """Hash a token sequence as a canonical list of [x, y, length] triples."""
    return hash_json_canonical([[t.x, t.y, t.length] for t in tokens])
