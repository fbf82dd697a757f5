"""aggregate.py - Part-number and gear-ratio queries.

Composes scanner output with the adjacency engine:
- part_number_sum: digit tokens touching any symbol, summed
- gear_ratio_sum: gear markers adjacent to exactly two digit tokens,
  summing the product of each pair
- solve: both answers for one schematic text
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Tuple
from .adjacency import adjacent, touches
from .classify import DIGIT, SYMBOL, marker
from .config import DIGITS, GEAR_MARKER, MAX_TOKEN_VALUE, assert_value_bounds
from .scan import scan_tokens
from .types import Grid, Token


@dataclass(frozen=True)
class Gear:
    """Gear marker with its two adjacent part numbers.

    Attributes:
        token: Marker token
        parts: The two adjacent digit tokens, raster order
        ratio: Product of the two part values
    """

    token: Token
    parts: Tuple[Token, Token]
    ratio: int


@dataclass(frozen=True)
class SchematicResult:
    """Answers for one schematic."""

    part_sum: int
    gear_ratio_sum: int
    shape: Tuple[int, int]
    parts: List[Token] = field(default_factory=list)
    gears: List[Gear] = field(default_factory=list)


def token_value(grid: Grid, token: Token) -> int:
    """Parse token's span as an unsigned base-10 integer.

    Raises:
        ValueError: If the span holds a non-digit character
        OverflowError: If the value exceeds MAX_TOKEN_VALUE
    """
    text = grid.span_text(token)
    if not text or any(ch not in DIGITS for ch in text):
        raise ValueError(f"Token {token} is not a digit run: {text!r}")
    value = int(text)
    if value > MAX_TOKEN_VALUE:
        raise OverflowError(f"Token {token} value {text} exceeds {MAX_TOKEN_VALUE}")
    return value


def part_numbers(grid: Grid) -> List[Token]:
    """Digit tokens with at least one symbol in their neighborhood."""
    return [t for t in scan_tokens(grid, DIGIT) if touches(grid, t, SYMBOL)]


def _sum_values(grid: Grid, tokens: List[Token]) -> int:
    total = 0
    for token in tokens:
        total = assert_value_bounds(total + token_value(grid, token), "part sum")
    return total


def part_number_sum(grid: Grid) -> int:
    """Sum of all part numbers."""
    return _sum_values(grid, part_numbers(grid))


def find_gears(grid: Grid, gear_marker: str = GEAR_MARKER) -> List[Gear]:
    """Markers adjacent to exactly two digit tokens.

    Args:
        grid: Grid to scan
        gear_marker: Marker character (default '*')

    Returns:
        Gears in raster order of their marker

    Notes:
        - Every digit token is a candidate, whether or not it is a part number
        - Markers with 0, 1 or >= 3 adjacent tokens are skipped
    """
    numbers = list(scan_tokens(grid, DIGIT))
    gears = []
    for gear in scan_tokens(grid, marker(gear_marker)):
        near = [t for t in numbers if adjacent(gear, t)]
        if len(near) != 2:
            continue
        ratio = assert_value_bounds(
            token_value(grid, near[0]) * token_value(grid, near[1]), "gear ratio"
        )
        gears.append(Gear(gear, (near[0], near[1]), ratio))
    return gears


def _sum_ratios(gears: List[Gear]) -> int:
    total = 0
    for gear in gears:
        total = assert_value_bounds(total + gear.ratio, "gear ratio sum")
    return total


def gear_ratio_sum(grid: Grid, gear_marker: str = GEAR_MARKER) -> int:
    """Sum of gear ratios."""
    return _sum_ratios(find_gears(grid, gear_marker))


def solve_grid(grid: Grid, gear_marker: str = GEAR_MARKER) -> SchematicResult:
    """Compute both answers for an already built grid.

    Args:
        grid: Schematic grid
        gear_marker: Marker character for gears

    Returns:
        SchematicResult with both sums and the tokens that produced them
    """
    parts = part_numbers(grid)
    gears = find_gears(grid, gear_marker)
    return SchematicResult(
        part_sum=_sum_values(grid, parts),
        gear_ratio_sum=_sum_ratios(gears),
        shape=grid.shape,
        parts=parts,
        gears=gears,
    )


def solve(text: str, gear_marker: str = GEAR_MARKER) -> SchematicResult:
    """Build the grid from text and compute both answers."""
    return solve_grid(Grid.build(text), gear_marker)
