"""Puzzle session on a live board — applies slides and checks the win condition."""

from __future__ import annotations

import logging

from klotski.backend.errors import IllegalMoveError, ReplayError
from klotski.backend.models.board import BoardModel, Direction
from klotski.backend.models.move import Move
from klotski.backend.models.puzzle import Puzzle

logger = logging.getLogger(__name__)


class GamePlay:
    """Orchestrates a single puzzle session."""

    def __init__(self, puzzle: Puzzle) -> None:
        self.puzzle = puzzle
        self.board = BoardModel.from_puzzle(puzzle)
        self.moves = 0

    @classmethod
    def from_board(cls, board: BoardModel) -> GamePlay:
        """Create a session from an existing board (e.g. one being edited)."""
        return cls(board.to_puzzle())

    # -- movement -------------------------------------------------------------

    def move(self, piece_id: str, direction: Direction) -> bool:
        """Slide a piece one cell in *direction*.

        Returns True if the move was valid and applied.
        """
        dx, dy = direction.delta
        if not self.board.try_move_piece(piece_id, dx, dy):
            return False
        self.moves += 1
        return True

    def slide(self, piece_id: str, direction: Direction) -> None:
        """Apply one slide the solver claims is legal.

        A rejection means the solver and the live board disagree about the
        rules, so it is logged and raised rather than skipped.
        """
        try:
            self.board.apply_move(piece_id, direction)
        except (IllegalMoveError, KeyError) as exc:
            logger.error(
                "Replay mismatch: %s %s rejected by the live board (%s)",
                piece_id,
                direction.value,
                exc,
            )
            raise ReplayError(
                f"Move {piece_id} {direction.value} is illegal on the live board"
            ) from exc
        self.moves += 1

    def apply(self, move: Move) -> None:
        for _ in range(move.count):
            self.slide(move.piece_id, move.direction)

    def restart(self) -> None:
        self.board = BoardModel.from_puzzle(self.puzzle)
        self.moves = 0

    # -- queries --------------------------------------------------------------

    @property
    def is_won(self) -> bool:
        return self.board.is_solved()
