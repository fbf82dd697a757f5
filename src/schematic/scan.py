"""scan.py - Token scanner over a character grid.

Produces every maximal horizontal run of cells satisfying a classifier,
in raster order (rows top-to-bottom, cells left-to-right):
- ScanCursor / advance: explicit cursor state plus a pure step function
- scan_tokens: lazy generator driving advance from the grid origin
- label_runs: vectorized equivalent built on scipy.ndimage.label

Runs never span two rows. Reads go through Grid.at, so the cell past the
last column is the background sentinel and ends any run there.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
import numpy as np
from scipy.ndimage import find_objects, label
from .classify import Classifier
from .types import Grid, Token


@dataclass(frozen=True)
class ScanCursor:
    """Position of the next cell to inspect."""

    x: int = 0
    y: int = 0


START = ScanCursor()

# Horizontal-only connectivity: runs are joined left/right, never across rows
_ROW_STRUCTURE = np.array(
    [[0, 0, 0],
     [1, 1, 1],
     [0, 0, 0]],
    dtype=bool,
)


def advance(
    grid: Grid, classifier: Classifier, cursor: ScanCursor
) -> Optional[Tuple[Token, ScanCursor]]:
    """Find the next token at or after cursor.

    Args:
        grid: Grid to scan
        classifier: Predicate selecting run characters
        cursor: Cell to start inspecting from

    Returns:
        (token, next_cursor) where next_cursor points just past the run,
        or None when all rows are exhausted
    """
    W, H = grid.width, grid.height
    x, y = cursor.x, cursor.y

    while y < H:
        if x >= W:
            x, y = 0, y + 1
            continue
        if classifier(grid.at(x, y)):
            length = 1
            # Bounded by the row: classifiers may accept the background sentinel
            while x + length < W and classifier(grid.at(x + length, y)):
                length += 1
            return Token(x, y, length), ScanCursor(x + length, y)
        x += 1

    return None


def scan_tokens(grid: Grid, classifier: Classifier) -> Iterator[Token]:
    """Yield all tokens matching classifier in raster order.

    Notes:
        - Each call starts from a fresh cursor at the origin
        - Empty or all-background grids yield nothing
    """
    step = advance(grid, classifier, START)
    while step is not None:
        token, cursor = step
        yield token
        step = advance(grid, classifier, cursor)


def label_runs(grid: Grid, classifier: Classifier) -> List[Token]:
    """Vectorized run detection (same output as list(scan_tokens(...))).

    Args:
        grid: Grid to scan
        classifier: Predicate selecting run characters

    Returns:
        Tokens sorted in raster order

    Notes:
        - Uses scipy.ndimage.label with horizontal-only connectivity
        - find_objects gives each run's bounding slices
    """
    mask = classifier.mask(grid.data)
    if not mask.any():
        return []

    labels, n = label(mask, structure=_ROW_STRUCTURE)
    tokens = []
    for rows, cols in find_objects(labels)[:n]:
        tokens.append(Token(int(cols.start), int(rows.start), int(cols.stop - cols.start)))

    tokens.sort(key=lambda t: (t.y, t.x))
    return tokens
