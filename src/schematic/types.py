"""types.py - Canonical dataclasses and type shapes.

Defines immutable dataclasses used throughout the scanner:
- Grid: read-only character grid with a total (never failing) accessor
- Token: maximal horizontal run of cells matching one classifier
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple
import numpy as np
from .config import BACKGROUND, GRID_DTYPE, enforce_dtype


@dataclass(frozen=True)
class Token:
    """Horizontal run of grid cells.

    Attributes:
        x: Starting column
        y: Row
        length: Number of cells (>= 1)
    """

    x: int
    y: int
    length: int

    def __post_init__(self):
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Token origin must be non-negative, got x={self.x}, y={self.y}")
        if self.length < 1:
            raise ValueError(f"Token length must be >= 1, got {self.length}")

    @property
    def end(self) -> int:
        """Exclusive end column."""
        return self.x + self.length

    @property
    def cells(self) -> List[Tuple[int, int]]:
        """(x, y) coordinates covered by the run, left to right."""
        return [(x, self.y) for x in range(self.x, self.end)]

    def neighborhood(self) -> Tuple[int, int, int, int]:
        """Return inclusive bounds (x0, y0, x1, y1) of the one-cell-expanded span.

        Notes:
            - Bounds may fall outside the grid (negative or past the edge)
        """
        return (self.x - 1, self.y - 1, self.end, self.y + 1)


@dataclass(frozen=True, eq=False)
class Grid:
    """Character grid with bounds-safe reads.

    Attributes:
        data: numpy array (H, W) with dtype <U1; a read-only private copy

    Notes:
        - Equality compares shape and cells; hashing follows the same bytes
    """

    data: np.ndarray

    def __post_init__(self):
        if self.data.dtype != GRID_DTYPE:
            raise RuntimeError(
                f"Grid dtype must be {GRID_DTYPE}, got {self.data.dtype}"
            )
        if self.data.ndim != 2:
            raise ValueError(f"Grid must be 2D, got shape {self.data.shape}")
        # Copy so the caller's array stays writable
        data = np.array(self.data, dtype=GRID_DTYPE, copy=True)
        data.setflags(write=False)
        object.__setattr__(self, "data", data)

    def __eq__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(np.array_equal(self.data, other.data))

    def __hash__(self):
        return hash((self.data.shape, self.data.tobytes()))

    @classmethod
    def build(cls, text: str) -> "Grid":
        """Build a grid from schematic text.

        Args:
            text: Rows separated by line terminators; blank lines are ignored

        Returns:
            Grid with one row per non-empty (stripped) line

        Raises:
            ValueError: If rows have inconsistent lengths
        """
        rows = [line.strip() for line in text.splitlines()]
        rows = [row for row in rows if row]

        if not rows:
            return cls(np.empty((0, 0), dtype=GRID_DTYPE))

        W = len(rows[0])
        for y, row in enumerate(rows):
            if len(row) != W:
                raise ValueError(
                    f"Schematic must be rectangular: row {y} has {len(row)} cells, "
                    f"row 0 has {W}"
                )

        data = enforce_dtype([list(row) for row in rows], "grid")
        return cls(data)

    @property
    def shape(self) -> Tuple[int, int]:
        """Return (H, W) shape tuple."""
        return self.data.shape

    @property
    def height(self) -> int:
        """Number of rows."""
        return self.data.shape[0]

    @property
    def width(self) -> int:
        """Length of the first row (0 for an empty grid)."""
        return self.data.shape[1] if self.height else 0

    def at(self, x: int, y: int) -> str:
        """Read the cell at column x, row y.

        Returns:
            Stored character, or BACKGROUND for any out-of-range coordinate
        """
        if 0 <= x < self.width and 0 <= y < self.height:
            return str(self.data[y, x])
        return BACKGROUND

    def row_text(self, y: int) -> str:
        """Return row y as a string (empty string when out of range)."""
        if 0 <= y < self.height:
            return "".join(self.data[y])
        return ""

    def span_text(self, token: Token) -> str:
        """Return the characters covered by token."""
        return "".join(self.at(x, y) for x, y in token.cells)
