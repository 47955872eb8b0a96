"""Step-by-step replay of a solution against the live board."""

from __future__ import annotations

from collections.abc import Iterable

from klotski.backend.engine.gameplay.game import GamePlay
from klotski.backend.models.board import BoardModel
from klotski.backend.models.move import Move
from klotski.backend.models.puzzle import Puzzle


class ReplayPlayer:
    """Cursor over the single-cell slides implied by a move list.

    Stepping backward applies the opposite slide, which goes through the
    same legality checks as stepping forward.
    """

    def __init__(self, puzzle: Puzzle, moves: Iterable[Move]) -> None:
        self.moves: list[Move] = list(moves)
        self.game = GamePlay(puzzle)
        # (index into self.moves, move) for every single-cell slide
        self._steps: list[tuple[int, Move]] = [
            (i, m) for i, m in enumerate(self.moves) for _ in range(m.count)
        ]
        self.current_step = 0

    # -- queries --------------------------------------------------------------

    @property
    def board(self) -> BoardModel:
        return self.game.board

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def progress(self) -> float:
        if not self._steps:
            return 1.0
        return self.current_step / len(self._steps)

    @property
    def at_start(self) -> bool:
        return self.current_step == 0

    @property
    def at_end(self) -> bool:
        return self.current_step == len(self._steps)

    @property
    def current_move(self) -> Move | None:
        """The move the most recently applied slide belongs to."""
        if self.current_step == 0:
            return None
        return self._steps[self.current_step - 1][1]

    def status_text(self) -> str:
        if self.current_step == 0:
            return ""
        index, move = self._steps[self.current_step - 1]
        return f"Step {index + 1}: {move}"

    # -- navigation -----------------------------------------------------------

    def step_forward(self) -> bool:
        if self.at_end:
            return False
        _, move = self._steps[self.current_step]
        self.game.slide(move.piece_id, move.direction)
        self.current_step += 1
        return True

    def step_backward(self) -> bool:
        if self.at_start:
            return False
        _, move = self._steps[self.current_step - 1]
        self.game.slide(move.piece_id, move.direction.opposite)
        self.current_step -= 1
        return True

    def reset(self) -> None:
        self.game.restart()
        self.current_step = 0

    def jump_to_end(self) -> None:
        while self.step_forward():
            pass

    def seek(self, progress: float) -> None:
        """Move the cursor to ``progress`` (0.0 – 1.0) of the way through."""
        progress = max(0.0, min(1.0, progress))
        target = round(progress * len(self._steps))
        while self.current_step < target:
            self.step_forward()
        while self.current_step > target:
            self.step_backward()
