"""schematic - Engineering-schematic token scanner.

Reads a rectangular character grid of digits, '.' background and symbols:
- Part numbers: digit runs touching any symbol (summed)
- Gears: '*' markers adjacent to exactly two digit runs (ratio products summed)

Architecture:
- Total reads: Grid.at returns the background sentinel off-grid, so no
  caller does bounds checks
- Generic scanning: one scan loop, parameterized by a Classifier
- Explicit cursors: scanner and border enumeration are pure step functions
- Deterministic: Single-threaded, fixed hash seed, byte-stable receipts

Modules:
- config: Environment guards, version asserts, dtypes, constants
- types: Canonical dataclasses (Grid, Token)
- classify: Character classifiers (DIGIT, SYMBOL, marker)
- scan: Token scanner (advance, scan_tokens, label_runs)
- adjacency: Border enumeration and token-to-token adjacency
- aggregate: Part-number and gear-ratio queries
- receipts: JSON proof artifacts per run
- harness: CLI runner
- utils: Hash utilities (byte-stable SHA256)
"""
from __future__ import annotations

# Version
__version__ = "0.1.0"

# Expose key types and functions at package level
from .types import Grid, Token
from .classify import Classifier, DIGIT, SYMBOL, GEAR, marker
from .scan import ScanCursor, advance, scan_tokens, label_runs
from .adjacency import adjacent, iter_border, touches
from .aggregate import (
    Gear,
    SchematicResult,
    gear_ratio_sum,
    part_number_sum,
    solve,
)
from . import config

__all__ = [
    "Grid",
    "Token",
    "Classifier",
    "DIGIT",
    "SYMBOL",
    "GEAR",
    "marker",
    "ScanCursor",
    "advance",
    "scan_tokens",
    "label_runs",
    "adjacent",
    "iter_border",
    "touches",
    "Gear",
    "SchematicResult",
    "part_number_sum",
    "gear_ratio_sum",
    "solve",
    "config",
]
