"""Search arena, path walk-back, and run-length move compression."""

from __future__ import annotations

from collections.abc import Iterable

from klotski.backend.models.board import Direction
from klotski.backend.models.move import Move

Step = tuple[str, Direction]

ROOT = -1


class SearchArena:
    """Edges of the search tree, addressed by integer handle.

    Each entry stores its parent's handle and the single slide that led to
    it; states themselves are not kept here, only what the walk-back needs.
    """

    __slots__ = ("_parents", "_steps")

    def __init__(self) -> None:
        self._parents: list[int] = []
        self._steps: list[Step | None] = []

    def __len__(self) -> int:
        return len(self._parents)

    def add(self, parent: int, step: Step | None) -> int:
        self._parents.append(parent)
        self._steps.append(step)
        return len(self._parents) - 1

    def path(self, handle: int) -> list[Step]:
        """Chronological slides from the root to *handle*."""
        steps: list[Step] = []
        parents = self._parents
        while handle != ROOT:
            step = self._steps[handle]
            if step is not None:
                steps.append(step)
            handle = parents[handle]
        steps.reverse()
        return steps


def compress_moves(steps: Iterable[Step]) -> list[Move]:
    """Merge runs of the same piece sliding the same way into one move."""
    moves: list[Move] = []
    run_id: str | None = None
    run_dir: Direction | None = None
    count = 0
    for piece_id, direction in steps:
        if piece_id == run_id and direction == run_dir:
            count += 1
            continue
        if run_id is not None and run_dir is not None:
            moves.append(Move(run_id, run_dir, count))
        run_id, run_dir, count = piece_id, direction, 1
    if run_id is not None and run_dir is not None:
        moves.append(Move(run_id, run_dir, count))
    return moves


def expand_moves(moves: Iterable[Move]) -> list[Step]:
    """One ``(piece_id, direction)`` entry per single-cell slide."""
    return [(m.piece_id, m.direction) for m in moves for _ in range(m.count)]


def total_slides(moves: Iterable[Move]) -> int:
    return sum(m.count for m in moves)
