"""adjacency.py - Neighborhood enumeration and token-to-token adjacency.

Two query shapes:
- Border enumeration: every cell within Chebyshev distance 1 of a token's
  span, in a fixed order (top row, left flank, right flank, bottom row).
  Used to decide whether a token touches a symbol.
- Arithmetic overlap: |dy| <= 1 and the column spans overlap with one
  column of tolerance. Used for gear pairing.

For disjoint tokens both forms describe the same relation: B is adjacent to
A iff some cell of B lies in A's border. adjacent_by_border evaluates the
border form so the two can be compared directly.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
import numpy as np
from scipy.ndimage import binary_dilation
from .classify import SYMBOL, Classifier
from .types import Grid, Token

_CHEBYSHEV_1 = np.ones((3, 3), dtype=bool)


@dataclass(frozen=True)
class BorderCursor:
    """Index of the next border cell to emit (0 .. border_length - 1)."""

    index: int = 0


def border_length(token: Token) -> int:
    """Number of cells in the expanded neighborhood ring: 2*(length+2) + 2."""
    return 2 * (token.length + 2) + 2


def advance_border(
    token: Token, cursor: BorderCursor
) -> Optional[Tuple[Tuple[int, int], BorderCursor]]:
    """Return the border cell at cursor and the cursor after it.

    Args:
        token: Token whose neighborhood is enumerated
        cursor: Current position in the ring

    Returns:
        ((x, y), next_cursor), or None past the last cell

    Notes:
        - Order: top row left-to-right, left flank, right flank,
          bottom row left-to-right
        - Coordinates may lie outside the grid
    """
    i = cursor.index
    row_len = token.length + 2
    if i < 0 or i >= border_length(token):
        return None

    if i < row_len:
        cell = (token.x - 1 + i, token.y - 1)
    elif i == row_len:
        cell = (token.x - 1, token.y)
    elif i == row_len + 1:
        cell = (token.end, token.y)
    else:
        cell = (token.x - 1 + (i - row_len - 2), token.y + 1)

    return cell, BorderCursor(i + 1)


def border_cells(token: Token) -> List[Tuple[int, int]]:
    """All border coordinates of token in enumeration order."""
    cells = []
    step = advance_border(token, BorderCursor())
    while step is not None:
        cell, cursor = step
        cells.append(cell)
        step = advance_border(token, cursor)
    return cells


def iter_border(grid: Grid, token: Token) -> Iterator[str]:
    """Yield the characters around token (background for off-grid cells)."""
    step = advance_border(token, BorderCursor())
    while step is not None:
        (x, y), cursor = step
        yield grid.at(x, y)
        step = advance_border(token, cursor)


def touches(grid: Grid, token: Token, classifier: Classifier = SYMBOL) -> bool:
    """True if any border character of token satisfies classifier."""
    return any(classifier(ch) for ch in iter_border(grid, token))


def adjacent(a: Token, b: Token) -> bool:
    """Arithmetic adjacency test (symmetric).

    Args:
        a: Anchor token
        b: Other token

    Returns:
        True iff rows differ by at most 1 and a's span overlaps b's span
        widened by one column on each side
    """
    return abs(a.y - b.y) <= 1 and a.x <= b.x + b.length and a.x + a.length >= b.x


def adjacent_by_border(a: Token, b: Token) -> bool:
    """Adjacency derived from border enumeration: some cell of b is in a's border."""
    ring = set(border_cells(a))
    return any(cell in ring for cell in b.cells)


def neighborhood_mask(shape: Tuple[int, int], token: Token) -> np.ndarray:
    """Boolean mask of token's in-grid border cells.

    Args:
        shape: (H, W) of the grid
        token: Token inside the grid

    Returns:
        Bool array (H, W), True on border cells only

    Notes:
        - 3x3 binary dilation of the token span, minus the span itself
        - Off-grid border cells are dropped (they read as background)
    """
    span = np.zeros(shape, dtype=bool)
    span[token.y, token.x:token.end] = True
    return binary_dilation(span, structure=_CHEBYSHEV_1) & ~span


def touches_masked(symbol_mask: np.ndarray, token: Token) -> bool:
    """Vectorized form of touches() given a precomputed classifier mask."""
    return bool((neighborhood_mask(symbol_mask.shape, token) & symbol_mask).any())
