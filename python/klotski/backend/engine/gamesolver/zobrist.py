"""Zobrist tables for incremental board hashing.

Every ``(row, col, kind)`` triple gets an independent random 32-bit value;
a board hashes to the XOR of the values of its occupied cells. Moving a
piece only touches the cells of its old and new footprint, so a slide
updates the hash in constant time instead of rehashing the whole grid.

The *mirror* hash uses column ``cols - 1 - col`` for each cell, which is
the structural hash of the board reflected left-right.
"""

from __future__ import annotations

import random
from collections.abc import Mapping

from klotski.backend.models.puzzle import Puzzle

HASH_BITS = 32
_HASH_MAX = (1 << HASH_BITS) - 1

ZobristTable = list[list[list[int]]]
FootprintKeys = dict[tuple[int, int, int], tuple[int, int]]


def build_table(
    rows: int,
    cols: int,
    kind_count: int,
    rng: random.Random | None = None,
) -> ZobristTable:
    """Return ``table[row][col][kind]`` of independent non-zero 32-bit values."""
    if rows <= 0 or cols <= 0 or kind_count <= 0:
        raise ValueError(
            f"Zobrist table needs positive dimensions, got "
            f"rows={rows} cols={cols} kinds={kind_count}."
        )
    rng = rng or random.Random()
    return [
        [[rng.randint(1, _HASH_MAX) for _ in range(kind_count)] for _ in range(cols)]
        for _ in range(rows)
    ]


def footprint_keys(
    table: ZobristTable,
    kind_sizes: Mapping[int, tuple[int, int]],
) -> FootprintKeys:
    """Pre-XOR the cells of every footprint at every in-bounds position.

    Maps ``(kind, x, y)`` to ``(structural, mirror)``. XOR-ing a piece's key
    at its old position and at its new one is the same as XOR-ing out each
    old cell and XOR-ing in each new cell.
    """
    rows = len(table)
    cols = len(table[0])
    keys: FootprintKeys = {}
    for k, (w, h) in kind_sizes.items():
        for y in range(rows - h + 1):
            for x in range(cols - w + 1):
                zh = mh = 0
                for cy in range(y, y + h):
                    row = table[cy]
                    for cx in range(x, x + w):
                        zh ^= row[cx][k]
                        mh ^= row[cols - 1 - cx][k]
                keys[k, x, y] = (zh, mh)
    return keys


def layout_hashes(table: ZobristTable, puzzle: Puzzle) -> tuple[int, int]:
    """Hash a whole layout from scratch, cell by cell."""
    cols = puzzle.cols
    zh = mh = 0
    for p in puzzle.pieces:
        k = puzzle.catalog.index(p.kind)
        for x, y in p.cells():
            zh ^= table[y][x][k]
            mh ^= table[y][cols - 1 - x][k]
    return zh, mh
