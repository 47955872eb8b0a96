"""Classic layouts and randomly generated solvable puzzles."""

from __future__ import annotations

import random
from collections.abc import Sequence

from klotski.backend.models.board import BoardModel, Direction
from klotski.backend.models.puzzle import Goal, Piece, Puzzle

# (id, kind, x, y) on a 4×5 board with the goal at (1, 3)
_CLASSICS: dict[str, tuple[tuple[str, str, int, int], ...]] = {
    # 横刀立马, the traditional opening
    "heng-dao-li-ma": (
        ("A", "1x2", 0, 0),
        ("B", "2x2", 1, 0),
        ("C", "1x2", 3, 0),
        ("D", "1x2", 0, 2),
        ("E", "2x1", 1, 2),
        ("F", "1x2", 3, 2),
        ("G", "1x1", 1, 3),
        ("H", "1x1", 2, 3),
        ("I", "1x1", 0, 4),
        ("J", "1x1", 3, 4),
    ),
    # two singles in the way; five slides
    "simple": (
        ("A", "1x2", 0, 0),
        ("B", "2x2", 1, 0),
        ("C", "1x2", 3, 0),
        ("D", "1x1", 1, 2),
        ("E", "1x1", 2, 2),
    ),
    "empty": (("A", "2x2", 1, 0),),
}

_DIRECTIONS = tuple(Direction)


class GameGenerator:
    """Creates puzzles from built-in layouts or by scrambling a solved board."""

    @staticmethod
    def classic_names() -> list[str]:
        return sorted(_CLASSICS)

    @staticmethod
    def classic(name: str) -> Puzzle:
        """Return a built-in 4×5 layout."""
        try:
            layout = _CLASSICS[name]
        except KeyError:
            raise KeyError(
                f"Unknown classic {name!r}; choose from {', '.join(GameGenerator.classic_names())}"
            ) from None
        pieces = tuple(Piece.create(pid, kind, x, y) for pid, kind, x, y in layout)
        return Puzzle(cols=4, rows=5, goal=Goal(1, 3), pieces=pieces)

    @staticmethod
    def solved(
        cols: int,
        rows: int,
        extra: Sequence[tuple[str, int]] = (),
        rng: random.Random | None = None,
    ) -> Puzzle:
        """Return a solved board: escape piece on a bottom-centre goal, plus
        up to ``count`` randomly placed pieces of each ``(kind, count)``."""
        rng = rng or random.Random()
        goal = Goal((cols - 2) // 2, rows - 2)
        board = BoardModel(cols=cols, rows=rows, goal=goal)
        board.try_add_piece(board.create_piece("2x2", goal.x, goal.y))
        for kind, count in extra:
            for _ in range(count):
                for _attempt in range(200):
                    candidate = board.create_piece(
                        kind, rng.randrange(cols), rng.randrange(rows)
                    )
                    if board.try_add_piece(candidate) is not None:
                        break
        return board.to_puzzle()

    @staticmethod
    def scramble(
        puzzle: Puzzle, steps: int, rng: random.Random | None = None
    ) -> Puzzle:
        """Apply up to *steps* random legal slides, never undoing the last one.

        Every slide is reversible, so a scramble of a solvable puzzle is
        solvable.
        """
        rng = rng or random.Random()
        board = BoardModel.from_puzzle(puzzle)
        prev: tuple[str, Direction] | None = None

        for _ in range(steps):
            options: list[tuple[str, Direction]] = []
            for p in board.pieces:
                for direction in _DIRECTIONS:
                    if prev == (p.id, direction.opposite):
                        continue
                    dx, dy = direction.delta
                    target = p.moved(dx, dy)
                    if board.in_bounds(target) and not board.collides_any(target, p.id):
                        options.append((p.id, direction))
            if not options:
                break
            piece_id, direction = rng.choice(options)
            board.apply_move(piece_id, direction)
            prev = (piece_id, direction)

        return board.to_puzzle()

    @staticmethod
    def generate(
        cols: int,
        rows: int,
        extra: Sequence[tuple[str, int]] = (("1x2", 2), ("2x1", 1), ("1x1", 4)),
        steps: int = 200,
        rng: random.Random | None = None,
    ) -> Puzzle:
        """Return a random *solvable* puzzle that is not already solved.

        Falls back to the last scramble if a few attempts all end solved
        (e.g. a board too crowded to move).
        """
        rng = rng or random.Random()
        puzzle = GameGenerator.solved(cols, rows, extra, rng)
        for _ in range(10):
            puzzle = GameGenerator.scramble(puzzle, steps, rng)
            if not puzzle.is_solved():
                break
        return puzzle
