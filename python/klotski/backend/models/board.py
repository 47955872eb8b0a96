"""Live, mutable board model used by the editor and for move replay."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from klotski.backend.errors import IllegalMoveError
from klotski.backend.models.puzzle import (
    DEFAULT_KINDS,
    Goal,
    KindCatalog,
    Piece,
    Puzzle,
    rects_overlap,
)

MIN_COLS, MAX_COLS = 3, 8
MIN_ROWS, MAX_ROWS = 4, 10

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> tuple[int, int]:
        """``(dx, dy)`` for a one-cell slide in this direction."""
        return _DELTAS[self]

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]


_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


def id_sequence() -> Iterator[str]:
    """Yield ``A, B, ..., Z, AA, AB, ...`` forever."""
    index = 0
    while True:
        i = index
        out = ""
        while True:
            out = _ALPHABET[i % 26] + out
            i = i // 26 - 1
            if i < 0:
                break
        yield out
        index += 1


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


@dataclass
class BoardModel:
    """Represents the board a user edits and a replay animates.

    Unlike :class:`Puzzle`, pieces here move in place. Every slide goes
    through the same bounds and collision rules the solver assumes, so a
    move list that does not replay cleanly points at a bug.
    """

    cols: int = 4
    rows: int = 5
    goal: Goal = field(default_factory=lambda: Goal(1, 3))
    pieces: list[Piece] = field(default_factory=list)
    catalog: KindCatalog = field(default=DEFAULT_KINDS, repr=False)
    _snapshot: Puzzle | None = field(default=None, init=False, repr=False)
    _next_id: Iterator[str] = field(default_factory=id_sequence, init=False, repr=False)

    # -- construction helpers -------------------------------------------------

    @classmethod
    def from_puzzle(cls, puzzle: Puzzle) -> BoardModel:
        model = cls()
        model.load_puzzle(puzzle)
        return model

    def to_puzzle(self) -> Puzzle:
        return Puzzle(
            cols=self.cols,
            rows=self.rows,
            goal=self.goal,
            pieces=tuple(self.pieces),
            catalog=self.catalog,
        )

    def load_puzzle(self, puzzle: Puzzle) -> None:
        """Replace the whole board. Fresh ids skip the ones already in use."""
        self.cols = puzzle.cols
        self.rows = puzzle.rows
        self.goal = puzzle.goal
        self.catalog = puzzle.catalog
        self.pieces = list(puzzle.pieces)
        used = {p.id for p in self.pieces}
        self._next_id = (i for i in id_sequence() if i not in used)

    def copy(self) -> BoardModel:
        return BoardModel.from_puzzle(self.to_puzzle())

    # -- editing --------------------------------------------------------------

    def set_board_size(self, cols: int, rows: int) -> None:
        self.cols = _clamp(cols, MIN_COLS, MAX_COLS)
        self.rows = _clamp(rows, MIN_ROWS, MAX_ROWS)
        self.set_goal_position(self.goal.x, self.goal.y)
        self.pieces = [
            p for p in self.pieces if p.x + p.w <= self.cols and p.y + p.h <= self.rows
        ]

    def set_goal_position(self, x: int, y: int) -> None:
        self.goal = replace(
            self.goal,
            x=_clamp(x, 0, self.cols - self.goal.w),
            y=_clamp(y, 0, self.rows - self.goal.h),
        )

    def clear(self) -> None:
        self.pieces = []
        self._next_id = id_sequence()

    def create_piece(self, kind: str, x: int, y: int) -> Piece:
        """Return an unplaced piece; an id is only consumed on a successful add."""
        return Piece.create("", kind, x, y, catalog=self.catalog)

    def try_add_piece(self, piece: Piece) -> Piece | None:
        """Add *piece* if it fits, returning the stored (id-bearing) piece."""
        if not self.in_bounds(piece) or self.collides_any(piece):
            return None
        escape = self.to_puzzle().escape_kind
        if (
            escape is not None
            and piece.kind == escape.name
            and any(p.kind == escape.name for p in self.pieces)
        ):
            return None
        if not piece.id:
            piece = replace(piece, id=next(self._next_id))
        elif any(p.id == piece.id for p in self.pieces):
            return None
        self.pieces.append(piece)
        return piece

    def remove_piece(self, piece_id: str) -> bool:
        before = len(self.pieces)
        self.pieces = [p for p in self.pieces if p.id != piece_id]
        return len(self.pieces) != before

    def save_snapshot(self) -> None:
        self._snapshot = self.to_puzzle()

    def reset_to_snapshot(self) -> bool:
        if self._snapshot is None:
            return False
        self.load_puzzle(self._snapshot)
        return True

    # -- queries --------------------------------------------------------------

    def piece(self, piece_id: str) -> Piece:
        for p in self.pieces:
            if p.id == piece_id:
                return p
        raise KeyError(piece_id)

    def in_bounds(self, rect: Any) -> bool:
        return (
            rect.x >= 0
            and rect.y >= 0
            and rect.x + rect.w <= self.cols
            and rect.y + rect.h <= self.rows
        )

    def collides_any(self, rect: Any, ignore_id: str | None = None) -> bool:
        return any(p.id != ignore_id and rects_overlap(rect, p) for p in self.pieces)

    def occupant(self, x: int, y: int) -> Piece | None:
        for p in self.pieces:
            if p.x <= x < p.x + p.w and p.y <= y < p.y + p.h:
                return p
        return None

    def is_solved(self) -> bool:
        return self.to_puzzle().is_solved()

    # -- movement -------------------------------------------------------------

    def try_move_piece(self, piece_id: str, dx: int, dy: int) -> bool:
        """Shift a piece by ``(dx, dy)`` cells if the target is free.

        Returns True if the move was applied.
        """
        for i, p in enumerate(self.pieces):
            if p.id == piece_id:
                target = p.moved(dx, dy)
                if not self.in_bounds(target) or self.collides_any(target, piece_id):
                    return False
                self.pieces[i] = target
                return True
        return False

    def apply_move(self, piece_id: str, direction: Direction) -> None:
        """Slide a piece one cell, raising :class:`IllegalMoveError` if blocked."""
        dx, dy = direction.delta
        if not self.try_move_piece(piece_id, dx, dy):
            raise IllegalMoveError(
                f"Illegal move: piece {piece_id!r} cannot slide {direction.value}"
            )
