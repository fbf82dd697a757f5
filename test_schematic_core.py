#!/usr/bin/env python3
"""
Schematic core tests: grid, scanner, adjacency, aggregation.

Covers:
1. grid_total_read_ok: off-grid reads (negative included) return background
2. scan_order_ok: digit runs come out in raster order, runs end at row edge
3. border_length_ok: border ring has 2*(length+2)+2 cells in fixed order
4. adjacency_forms_ok: arithmetic and border adjacency agree, symmetric
5. sample_sums_ok: 4361 / 467835 on the reference schematic
"""
import itertools

import numpy as np
import pytest

from schematic import config
from schematic.adjacency import (
    BorderCursor,
    adjacent,
    adjacent_by_border,
    advance_border,
    border_cells,
    border_length,
    iter_border,
    neighborhood_mask,
    touches,
    touches_masked,
)
from schematic.aggregate import (
    find_gears,
    gear_ratio_sum,
    part_number_sum,
    part_numbers,
    solve,
    token_value,
)
from schematic.classify import DIGIT, GEAR, SYMBOL, Classifier, marker
from schematic.scan import START, ScanCursor, advance, label_runs, scan_tokens
from schematic.types import Grid, Token

SAMPLE = """\
467..114..
...*......
..35..633.
......#...
617*......
.....+.58.
..592.....
......755.
...$.*....
.664.598..
"""


# ============================================================================
# Grid
# ============================================================================
def test_grid_build_rows():
    g = Grid.build("467..114..\n...*......\n")
    assert g.shape == (2, 10)
    assert g.row_text(0) == "467..114.."
    assert g.row_text(1) == "...*......"
    assert g.row_text(2) == ""


def test_grid_dimensions():
    g = Grid.build("467..114.9\n...*......\n")
    assert g.width == 10
    assert g.height == 2


def test_grid_at_reads_cells():
    g = Grid.build("467..114.9\n...*......\n")
    assert g.at(0, 0) == "4"
    assert g.at(1, 0) == "6"
    assert g.at(9, 0) == "9"
    assert g.at(3, 1) == "*"
    assert g.at(0, 1) == "."


def test_grid_at_out_of_range_is_background():
    g = Grid.build("467..114.9\n...*......\n")
    for x, y in [(-1, -1), (-1, 0), (0, -1), (10, 0), (0, 2), (10, 2), (-100, 50), (10**6, 0)]:
        assert g.at(x, y) == config.BACKGROUND


def test_grid_empty_text():
    for text in ["", "\n", "\n\n  \n"]:
        g = Grid.build(text)
        assert g.width == 0
        assert g.height == 0
        assert g.at(0, 0) == config.BACKGROUND


def test_grid_ignores_blank_lines_and_crlf():
    g = Grid.build("12.\r\n.*.\r\n\r\n")
    assert g.shape == (2, 3)
    assert g.at(2, 0) == "."
    assert g.at(1, 1) == "*"


def test_grid_ragged_rows_rejected():
    with pytest.raises(ValueError, match="rectangular"):
        Grid.build("123\n45\n")


def test_grid_is_read_only():
    g = Grid.build("12\n34\n")
    with pytest.raises(ValueError):
        g.data[0, 0] = "9"


def test_grid_rejects_wrong_dtype():
    with pytest.raises(RuntimeError):
        Grid(np.zeros((2, 2), dtype=np.int32))


def test_grid_equality_and_hash():
    a = Grid.build("467..\n...*.\n")
    b = Grid.build("467..\r\n...*.\r\n\r\n")
    assert a == b
    assert hash(a) == hash(b)
    assert a != Grid.build("467..\n...#.\n")
    assert Grid.build("123456\n") != Grid.build("123\n456\n")
    assert len({a, b}) == 1


def test_grid_leaves_caller_array_writable():
    arr = np.array([list("12"), list("3*")], dtype=config.GRID_DTYPE)
    g = Grid(arr)
    arr[0, 0] = "9"
    assert g.at(0, 0) == "1"
    assert not g.data.flags.writeable


def test_enforce_dtype_kinds():
    assert config.enforce_dtype([["1", "."]], "grid").dtype == config.GRID_DTYPE
    with pytest.raises(ValueError):
        config.enforce_dtype([[1, 2]], "int")


# ============================================================================
# Token / classifiers
# ============================================================================
def test_token_geometry():
    t = Token(2, 3, 4)
    assert t.end == 6
    assert t.cells == [(2, 3), (3, 3), (4, 3), (5, 3)]
    assert t.neighborhood() == (1, 2, 6, 4)


@pytest.mark.parametrize("args", [(0, 0, 0), (-1, 0, 1), (0, -1, 1)])
def test_token_invalid(args):
    with pytest.raises(ValueError):
        Token(*args)


def test_classifiers_on_background():
    assert not DIGIT(config.BACKGROUND)
    assert not SYMBOL(config.BACKGROUND)
    assert not GEAR(config.BACKGROUND)


def test_classifiers():
    assert all(DIGIT(ch) for ch in "0123456789")
    assert not DIGIT("*")
    assert SYMBOL("*") and SYMBOL("#") and SYMBOL("$")
    assert not SYMBOL("7")
    assert GEAR("*") and not GEAR("#")


@pytest.mark.parametrize("bad", ["", "5", ".", "**"])
def test_marker_rejects_non_symbols(bad):
    with pytest.raises(ValueError):
        marker(bad)


def test_classifier_mask_matches_predicate():
    g = Grid.build(SAMPLE)
    mask = SYMBOL.mask(g.data)
    assert mask.shape == g.shape
    assert mask.dtype == bool
    assert int(mask.sum()) == 6


# ============================================================================
# Token scanner
# ============================================================================
def test_scan_digit_tokens_first_row():
    g = Grid.build("467..114.9\n...*......\n")
    assert list(scan_tokens(g, DIGIT)) == [Token(0, 0, 3), Token(5, 0, 3), Token(9, 0, 1)]


def test_scan_three_rows():
    g = Grid.build("467..114.9\n...*......\n..35..633.\n")
    assert list(scan_tokens(g, DIGIT)) == [
        Token(0, 0, 3),
        Token(5, 0, 3),
        Token(9, 0, 1),
        Token(2, 2, 2),
        Token(6, 2, 3),
    ]


def test_advance_is_pure_step():
    g = Grid.build("467..114.9\n...*......\n")
    step = advance(g, DIGIT, START)
    assert step == (Token(0, 0, 3), ScanCursor(3, 0))
    step = advance(g, DIGIT, ScanCursor(3, 0))
    assert step == (Token(5, 0, 3), ScanCursor(8, 0))
    # Same input, same output
    assert advance(g, DIGIT, ScanCursor(3, 0)) == step
    assert advance(g, DIGIT, ScanCursor(10, 0)) is None
    assert advance(g, DIGIT, ScanCursor(0, 5)) is None


def test_advance_from_mid_run():
    g = Grid.build("467..\n")
    assert advance(g, DIGIT, ScanCursor(1, 0)) == (Token(1, 0, 2), ScanCursor(3, 0))


def test_runs_do_not_wrap_rows():
    g = Grid.build("..12\n34..\n")
    assert list(scan_tokens(g, DIGIT)) == [Token(2, 0, 2), Token(0, 1, 2)]


def test_scan_background_grid_is_empty():
    g = Grid.build("....\n....\n")
    assert list(scan_tokens(g, DIGIT)) == []
    assert list(scan_tokens(g, SYMBOL)) == []
    assert list(scan_tokens(Grid.build(""), DIGIT)) == []


def test_scan_restarts_per_call():
    g = Grid.build(SAMPLE)
    assert list(scan_tokens(g, DIGIT)) == list(scan_tokens(g, DIGIT))


def test_scan_extends_repeated_markers():
    g = Grid.build(".**.\n*...\n")
    assert list(scan_tokens(g, GEAR)) == [Token(1, 0, 2), Token(0, 1, 1)]


def test_label_runs_matches_scanner():
    for text in [SAMPLE, "467..114.9\n...*......\n", "....\n", "", "1\n", "**.*\n*..*\n"]:
        g = Grid.build(text)
        for cls in (DIGIT, GEAR, SYMBOL):
            assert label_runs(g, cls) == list(scan_tokens(g, cls))


def test_scan_run_stops_at_row_end_when_classifier_accepts_background():
    not_digit = Classifier("not-digit", lambda c: c not in config.DIGITS)
    g = Grid.build("1.\n")
    assert not_digit(config.BACKGROUND)
    assert list(scan_tokens(g, not_digit)) == [Token(1, 0, 1)]
    assert list(scan_tokens(g, not_digit)) == label_runs(g, not_digit)

    g = Grid.build("..1\n...\n")
    assert list(scan_tokens(g, not_digit)) == [Token(0, 0, 2), Token(0, 1, 3)]
    assert list(scan_tokens(g, not_digit)) == label_runs(g, not_digit)


# ============================================================================
# Adjacency engine
# ============================================================================
def test_border_enumeration_order():
    t = Token(5, 3, 2)
    assert border_cells(t) == [
        (4, 2), (5, 2), (6, 2), (7, 2),
        (4, 3), (7, 3),
        (4, 4), (5, 4), (6, 4), (7, 4),
    ]


@pytest.mark.parametrize("length", [1, 2, 3, 7])
def test_border_length(length):
    t = Token(0, 0, length)
    cells = border_cells(t)
    assert len(cells) == border_length(t) == 2 * (length + 2) + 2
    assert len(set(cells)) == len(cells)
    assert not set(cells) & set(t.cells)


def test_advance_border_past_end():
    t = Token(0, 0, 1)
    assert advance_border(t, BorderCursor(border_length(t))) is None
    assert advance_border(t, BorderCursor(0)) == ((-1, -1), BorderCursor(1))


def test_iter_border_first_token():
    g = Grid.build("467..114.9\n...*......\n")
    chars = list(iter_border(g, Token(0, 0, 3)))
    assert chars == ["."] * 11 + ["*"]


def test_touches_symbol():
    g = Grid.build(SAMPLE)
    assert touches(g, Token(0, 0, 3), SYMBOL)
    assert not touches(g, Token(5, 0, 3), SYMBOL)
    assert not touches(g, Token(7, 5, 2), SYMBOL)


def test_token_surrounded_by_background_excluded():
    g = Grid.build(".....\n.123.\n.....\n....#\n")
    assert part_numbers(g) == []
    assert part_number_sum(g) == 0


def test_touches_masked_agrees():
    g = Grid.build(SAMPLE)
    mask = SYMBOL.mask(g.data)
    for t in scan_tokens(g, DIGIT):
        assert touches(g, t, SYMBOL) == touches_masked(mask, t)


def test_neighborhood_mask_at_corner():
    m = neighborhood_mask((3, 4), Token(0, 0, 2))
    expected = np.array(
        [[0, 0, 1, 0],
         [1, 1, 1, 0],
         [0, 0, 0, 0]],
        dtype=bool,
    )
    assert np.array_equal(m, expected)


def _tokens_near(width=4, height=3, max_len=3):
    for y, x, length in itertools.product(range(height), range(width), range(1, max_len + 1)):
        yield Token(x, y, length)


def test_adjacent_symmetric():
    tokens = list(_tokens_near())
    for a in tokens:
        for b in tokens:
            assert adjacent(a, b) == adjacent(b, a)


def test_adjacency_forms_agree_for_single_cell_anchor():
    for gear in _tokens_near(max_len=1):
        for t in _tokens_near(width=6, height=4):
            if gear.y == t.y and t.x <= gear.x < t.end:
                continue  # overlapping cells, not disjoint tokens
            assert adjacent(gear, t) == adjacent_by_border(gear, t), (gear, t)
            assert adjacent(t, gear) == adjacent_by_border(t, gear), (gear, t)


def test_adjacency_forms_agree_for_disjoint_runs():
    for a in _tokens_near(width=5, height=3):
        for b in _tokens_near(width=5, height=3):
            if a.y == b.y and a.x < b.end and b.x < a.end:
                continue
            assert adjacent(a, b) == adjacent_by_border(a, b), (a, b)


def test_adjacent_cases():
    gear = Token(3, 1, 1)
    assert adjacent(gear, Token(0, 0, 3))  # ends diagonally above-left
    assert adjacent(gear, Token(2, 2, 2))
    assert not adjacent(gear, Token(5, 0, 3))
    assert not adjacent(gear, Token(3, 3, 1))  # two rows away
    assert adjacent(gear, Token(4, 1, 2))  # right flank


# ============================================================================
# Aggregation
# ============================================================================
def test_token_value():
    g = Grid.build("467..114.9\n...*......\n")
    assert token_value(g, Token(0, 0, 3)) == 467
    assert token_value(g, Token(9, 0, 1)) == 9


def test_token_value_rejects_non_digits():
    g = Grid.build("4*7\n")
    with pytest.raises(ValueError):
        token_value(g, Token(0, 0, 3))


def test_token_value_overflow():
    big = str(config.MAX_TOKEN_VALUE + 1)
    g = Grid.build(big + "*\n")
    with pytest.raises(OverflowError):
        token_value(g, Token(0, 0, len(big)))


def test_sum_overflow_fails_loudly():
    big = str(config.MAX_TOKEN_VALUE)
    g = Grid.build(f"{big}*{big}\n")
    with pytest.raises(OverflowError):
        part_number_sum(g)


def test_sample_part_number_sum():
    assert part_number_sum(Grid.build(SAMPLE)) == 4361


def test_sample_gear_ratio_sum():
    assert gear_ratio_sum(Grid.build(SAMPLE)) == 467835


def test_sample_gears():
    gears = find_gears(Grid.build(SAMPLE))
    assert [(g.token, g.parts, g.ratio) for g in gears] == [
        (Token(3, 1, 1), (Token(0, 0, 3), Token(2, 2, 2)), 16345),
        (Token(5, 8, 1), (Token(6, 7, 3), Token(5, 9, 3)), 451490),
    ]


def test_gear_cardinality():
    # zero, one, two, three adjacent numbers
    assert gear_ratio_sum(Grid.build("...\n.*.\n...\n")) == 0
    assert gear_ratio_sum(Grid.build("5..\n.*.\n...\n")) == 0
    assert gear_ratio_sum(Grid.build("5..\n.*.\n..7\n")) == 35
    assert gear_ratio_sum(Grid.build("5.9\n.*.\n..7\n")) == 0


def test_gear_with_same_row_neighbors():
    assert gear_ratio_sum(Grid.build("12*34\n")) == 12 * 34


def test_custom_marker():
    g = Grid.build("5..\n.#.\n..7\n")
    assert gear_ratio_sum(g) == 0
    assert gear_ratio_sum(g, "#") == 35


def test_solve_sample():
    result = solve(SAMPLE)
    assert result.part_sum == 4361
    assert result.gear_ratio_sum == 467835
    assert result.shape == (10, 10)
    assert len(result.parts) == 8
    assert len(result.gears) == 2


def test_solve_empty():
    result = solve("")
    assert result.part_sum == 0
    assert result.gear_ratio_sum == 0
