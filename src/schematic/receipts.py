"""receipts.py - Always-on receipts per schematic run.

Receipts are JSON files written to receipts/<run_id>/<stage>.json.
Each run records the answers, the tokens behind them, hashes of the grid
and token lists, and the runtime environment.
"""
from __future__ import annotations
import json
import os
import sys
from pathlib import Path
from typing import Dict, Any
from . import config
from .aggregate import SchematicResult
from .types import Grid
from .utils import hash_utils


def _write_json(path: Path, payload: Dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as f:
        json.dump(
            payload,
            f,
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
            indent=2,
        )
        f.write("\n")  # Trailing newline for Unix convention
    return path


def write_run_receipt(
    run_id: str, payload: Dict[str, Any], stage: str = "solve", out_dir: str = "receipts"
) -> Path:
    """Write receipt for one schematic run.

    Args:
        run_id: Run identifier (input file stem)
        payload: JSON-serializable receipt data
        stage: Stage name (default: 'solve')
        out_dir: Output directory (default: 'receipts')

    Returns:
        Path to written receipt file

    Notes:
        - Creates run directory if needed
        - Writes with sorted keys, Unix newlines
        - Overwrites existing receipt for same run/stage
    """
    return _write_json(Path(out_dir) / run_id / f"{stage}.json", payload)


def make_env_payload() -> Dict[str, Any]:
    """Create environment/constants payload.

    Returns:
        Dict with runtime versions, dtypes, grid alphabet, env vars
    """
    import numpy
    import scipy

    return {
        "runtime": {
            "python_min": ".".join(map(str, config.REQUIRED_VERSIONS["python_major_minor"])),
            "python_full": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            "numpy": numpy.__version__,
            "scipy": scipy.__version__,
        },
        "dtypes": {
            "GRID_DTYPE": str(config.GRID_DTYPE),
            "INT_DTYPE": numpy.dtype(config.INT_DTYPE).name,
            "MAX_TOKEN_VALUE": config.MAX_TOKEN_VALUE,
        },
        "constants": {
            "BACKGROUND": config.BACKGROUND,
            "GEAR_MARKER": config.GEAR_MARKER,
            "PIXEL_LEX": config.PIXEL_LEX,
        },
        "env": {
            "OMP_NUM_THREADS": os.getenv("OMP_NUM_THREADS"),
            "PYTHONHASHSEED": os.getenv("PYTHONHASHSEED"),
        },
    }


def make_result_payload(grid: Grid, result: SchematicResult, gear_marker: str) -> Dict[str, Any]:
    """Create the solve payload for a grid and its result.

    Notes:
        - Token lists are [x, y, length] triples in raster order
        - Hashes make repeated runs comparable byte-for-byte
    """
    H, W = result.shape
    return {
        "stage": "solve",
        "grid": {"H": int(H), "W": int(W), "hash": hash_utils.hash_grid(grid.data)},
        "gear_marker": gear_marker,
        "part_sum": result.part_sum,
        "gear_ratio_sum": result.gear_ratio_sum,
        "parts": {
            "count": len(result.parts),
            "tokens": [[t.x, t.y, t.length] for t in result.parts],
            "hash": hash_utils.hash_tokens(result.parts),
        },
        "gears": {
            "count": len(result.gears),
            "items": [
                {
                    "at": [g.token.x, g.token.y],
                    "parts": [[p.x, p.y, p.length] for p in g.parts],
                    "ratio": g.ratio,
                }
                for g in result.gears
            ],
        },
    }


def write_run_progress(progress: Dict[str, Any], out_dir: str = "progress") -> Path:
    """Write run-level progress JSON.

    Args:
        progress: Progress dict with runs_total, runs_ok, metrics
        out_dir: Output directory (default: 'progress')

    Returns:
        Path to <out_dir>/progress_solve.json
    """
    return _write_json(Path(out_dir) / "progress_solve.json", progress)
