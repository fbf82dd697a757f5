"""harness.py - CLI runner for the schematic scanner.

Reads one or more schematic files, prints both answers per file on stdout,
and writes a JSON receipt per run plus a progress summary, both under
--receipts-dir.

Usage:
    python -m schematic.harness 3.input
    python -m schematic.harness 3.input 3sample.input --verify --strict

Flags:
    --marker: Gear marker character (default '*')
    --receipts-dir: Where receipts go (default: receipts/)
    --no-receipt: Skip receipt and progress writing
    --verify: Cross-check scanner and adjacency forms against scipy versions
    --strict: Fail on first error (default: continue and report)
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Dict, Any, List
from . import receipts
from .adjacency import adjacent, adjacent_by_border, touches, touches_masked
from .aggregate import solve_grid
from .classify import DIGIT, SYMBOL, marker
from .config import GEAR_MARKER
from .scan import label_runs, scan_tokens
from .types import Grid


# ============================================================================
# Cross-check metric keys
# ============================================================================
VERIFY_METRICS = [
    "scan_labels_agree_ok",
    "touches_mask_agree_ok",
    "adjacency_forms_agree_ok",
    "adjacency_symmetric_ok",
]


def init_progress() -> Dict[str, Any]:
    """Initialize progress tracking dict for a harness invocation."""
    return {
        "runs_total": 0,
        "runs_ok": 0,
        "metrics": {k: {"ok": 0, "total": 0} for k in VERIFY_METRICS},
    }


def acc_bool(progress: Dict[str, Any], key: str, ok: bool) -> None:
    """Accumulate boolean metric in progress dict.

    Notes:
        - Silently ignores unknown keys
    """
    if key not in progress["metrics"]:
        return
    m = progress["metrics"][key]
    m["total"] += 1
    m["ok"] += int(bool(ok))


def duplicate_stems(paths: List[Path]) -> List[str]:
    """Return file stems used by more than one input, sorted."""
    seen = {}
    for path in paths:
        seen[path.stem] = seen.get(path.stem, 0) + 1
    return sorted(stem for stem, n in seen.items() if n > 1)


def verify_grid(grid: Grid, gear_marker: str = GEAR_MARKER) -> Dict[str, bool]:
    """Cross-check the lazy scanner and adjacency forms on one grid.

    Returns:
        Dict mapping each VERIFY_METRICS key to whether the check held

    Notes:
        - Scanner vs scipy.ndimage.label, for digits and the gear marker
        - Border enumeration vs binary dilation for symbol contact
        - Arithmetic vs border adjacency for every (gear, number) pair
    """
    gear_cls = marker(gear_marker)
    numbers = list(scan_tokens(grid, DIGIT))
    gears = list(scan_tokens(grid, gear_cls))

    scan_ok = numbers == label_runs(grid, DIGIT) and gears == label_runs(grid, gear_cls)

    symbol_mask = SYMBOL.mask(grid.data)
    touches_ok = all(
        touches(grid, t, SYMBOL) == touches_masked(symbol_mask, t) for t in numbers
    )

    forms_ok = True
    symmetric_ok = True
    for gear in gears:
        for number in numbers:
            forms_ok &= adjacent(gear, number) == adjacent_by_border(gear, number)
            symmetric_ok &= adjacent(gear, number) == adjacent(number, gear)

    return {
        "scan_labels_agree_ok": bool(scan_ok),
        "touches_mask_agree_ok": bool(touches_ok),
        "adjacency_forms_agree_ok": bool(forms_ok),
        "adjacency_symmetric_ok": bool(symmetric_ok),
    }


def run_file(
    path: Path,
    gear_marker: str = GEAR_MARKER,
    receipts_dir: str = "receipts",
    write_receipt: bool = True,
    verify: bool = False,
    progress: Dict[str, Any] = None,
):
    """Solve one schematic file.

    Args:
        path: Input file
        gear_marker: Gear marker character
        receipts_dir: Receipt output directory
        write_receipt: If True, write receipts/<stem>/solve.json
        verify: If True, run verify_grid and fail on any mismatch
        progress: Optional progress dict to accumulate metrics into

    Returns:
        SchematicResult

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: On malformed schematic
        RuntimeError: If verification finds a mismatch
    """
    if not path.exists():
        raise FileNotFoundError(f"Schematic not found: {path}")

    text = path.read_text(encoding="utf-8")
    grid = Grid.build(text)
    print(f"[schematic] {path.name}: grid {grid.height}x{grid.width}", file=sys.stderr)

    if verify:
        checks = verify_grid(grid, gear_marker)
        if progress is not None:
            for key, ok in checks.items():
                acc_bool(progress, key, ok)
        failed = sorted(k for k, ok in checks.items() if not ok)
        if failed:
            raise RuntimeError(f"Verification failed for {path.name}: {failed}")
        print(f"[schematic] {path.name}: verification passed", file=sys.stderr)

    result = solve_grid(grid, gear_marker)
    print(
        f"[schematic] {path.name}: {len(result.parts)} part numbers, {len(result.gears)} gears",
        file=sys.stderr,
    )

    if write_receipt:
        payload = receipts.make_result_payload(grid, result, gear_marker)
        payload["env"] = receipts.make_env_payload()
        receipt_path = receipts.write_run_receipt(path.stem, payload, out_dir=receipts_dir)
        print(f"[schematic] Receipt written to {receipt_path}", file=sys.stderr)

    return result


def main(argv: List[str] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Engineering-schematic scanner: part-number and gear-ratio sums"
    )
    parser.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        help="Schematic text files",
    )
    parser.add_argument(
        "--marker",
        type=str,
        default=GEAR_MARKER,
        help=f"Gear marker character (default: {GEAR_MARKER!r})",
    )
    parser.add_argument(
        "--receipts-dir",
        type=str,
        default="receipts",
        help="Receipt output directory (default: receipts)",
    )
    parser.add_argument(
        "--no-receipt",
        dest="receipt",
        action="store_false",
        help="Disable receipt and progress JSON writing",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Cross-check scanner and adjacency against the vectorized forms",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on first error (default: continue and report)",
    )

    args = parser.parse_args(argv)

    try:
        marker(args.marker)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Receipts are keyed by file stem; two inputs sharing one would overwrite
    if args.receipt:
        clashes = duplicate_stems(args.inputs)
        if clashes:
            print(
                f"Error: inputs share receipt names {clashes}; rename them or pass --no-receipt",
                file=sys.stderr,
            )
            return 1

    progress = init_progress()
    fail_count = 0
    for path in args.inputs:
        progress["runs_total"] += 1
        try:
            result = run_file(
                path,
                gear_marker=args.marker,
                receipts_dir=args.receipts_dir,
                write_receipt=args.receipt,
                verify=args.verify,
                progress=progress,
            )
        except (OSError, ValueError, OverflowError, RuntimeError) as e:
            fail_count += 1
            msg = f"[schematic] Failed on {path}: {e}"
            if args.strict:
                raise RuntimeError(msg) from e
            print(msg, file=sys.stderr)
            continue

        progress["runs_ok"] += 1
        if len(args.inputs) > 1:
            print(f"{path}:")
        print(f"Sum of part numbers: {result.part_sum}")
        print(f"Sum of gear ratios: {result.gear_ratio_sum}")

    print(
        f"[schematic] Complete: {progress['runs_ok']} solved, {fail_count} failures",
        file=sys.stderr,
    )

    if args.receipt:
        progress_path = receipts.write_run_progress(progress, out_dir=args.receipts_dir)
        print(f"[schematic] Progress written to {progress_path}", file=sys.stderr)

    return 1 if fail_count else 0


if __name__ == "__main__":
    sys.exit(main())
