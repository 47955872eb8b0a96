from __future__ import annotations

import random

import pytest

from klotski.backend.engine.gamegenerator import GameGenerator
from klotski.backend.engine.gamesolver.zobrist import (
    HASH_BITS,
    build_table,
    footprint_keys,
    layout_hashes,
)
from klotski.backend.models.puzzle import DEFAULT_KINDS, Goal, Piece, Puzzle


def _sizes() -> dict[int, tuple[int, int]]:
    return {DEFAULT_KINDS.index(k.name): (k.w, k.h) for k in DEFAULT_KINDS}


def test_table_shape_and_range() -> None:
    table = build_table(5, 4, len(DEFAULT_KINDS), random.Random(0))
    assert len(table) == 5
    assert all(len(row) == 4 for row in table)
    values = [v for row in table for cell in row for v in cell]
    assert len(values) == 5 * 4 * 4
    assert all(0 < v < 2**HASH_BITS for v in values)


def test_seeded_tables_repeat() -> None:
    assert build_table(3, 3, 2, random.Random(9)) == build_table(3, 3, 2, random.Random(9))


@pytest.mark.parametrize("dims", [(0, 4, 4), (5, 0, 4), (5, 4, 0), (-1, 4, 4)])
def test_non_positive_dimensions_rejected(dims: tuple[int, int, int]) -> None:
    with pytest.raises(ValueError):
        build_table(*dims)


def test_footprint_keys_match_incremental_update() -> None:
    puzzle = GameGenerator.classic("heng-dao-li-ma")
    table = build_table(puzzle.rows, puzzle.cols, len(DEFAULT_KINDS), random.Random(3))
    keys = footprint_keys(table, _sizes())
    before = layout_hashes(table, puzzle)

    # G (1x1 at 1,3) slides down into the gap
    moved = puzzle.with_pieces(
        p.moved(0, 1) if p.id == "G" else p for p in puzzle.pieces
    )
    after = layout_hashes(table, moved)

    k = DEFAULT_KINDS.index("1x1")
    old_z, old_m = keys[k, 1, 3]
    new_z, new_m = keys[k, 1, 4]
    assert before[0] ^ old_z ^ new_z == after[0]
    assert before[1] ^ old_m ^ new_m == after[1]


def test_mirror_hash_equals_hash_of_reflection() -> None:
    puzzle = Puzzle(
        4,
        5,
        Goal(1, 3),
        (Piece.create("A", "2x2", 0, 0), Piece.create("B", "1x2", 3, 2)),
    )
    reflected = puzzle.with_pieces(
        Piece.create(p.id, p.kind, puzzle.cols - p.x - p.w, p.y) for p in puzzle.pieces
    )
    table = build_table(puzzle.rows, puzzle.cols, len(DEFAULT_KINDS), random.Random(5))
    zhash, mirror = layout_hashes(table, puzzle)
    assert mirror == layout_hashes(table, reflected)[0]
    assert zhash == layout_hashes(table, reflected)[1]
