"""Solver test suite — fixture boards replayed through the live game.

Boards are JSON fixtures under ``<project_root>/fixtures/``. Every test is
hard-killed by ``pytest-timeout`` (configured in ``pyproject.toml``). When
the solver returns, the move list is replayed through the real game engine
to verify that every slide is legal and the escape piece ends on the goal.
"""

from __future__ import annotations

import json
import threading
from collections import deque
from pathlib import Path

import pytest

from klotski.backend.engine.gamegenerator import GameGenerator
from klotski.backend.engine.gameplay.game import GamePlay
from klotski.backend.engine.gamesolver import (
    Solver,
    SolverOptions,
    compress_moves,
    expand_moves,
    total_slides,
)
from klotski.backend.errors import PuzzleError, SearchAborted
from klotski.backend.models.board import BoardModel, Direction
from klotski.backend.models.move import Move
from klotski.backend.models.puzzle import Goal, Piece, Puzzle

FIXTURES_DIR = Path(__file__).resolve().parent.parent.parent / "fixtures"


# -- fixture loaders ----------------------------------------------------------


def _load(name: str) -> list[dict]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


def _ids(entry: dict) -> str:
    return entry["id"]


_SOLVABLE = _load("solvable.json")
_UNSOLVABLE = _load("unsolvable.json")
_SMALL = [e for e in _SOLVABLE if e["slides"] is not None]


# -- helpers ------------------------------------------------------------------


def _assert_solve(entry: dict) -> list[Move]:
    """Solve the puzzle and verify the returned moves reach the goal."""
    puzzle = Puzzle.from_dict(entry["puzzle"])

    moves = Solver.solve(puzzle)

    # ---- move-list sanity ---------------------------------------------------
    assert isinstance(moves, list), f"solve() returned {moves!r} ({entry['id']})"
    assert all(isinstance(m, Move) for m in moves)
    assert compress_moves(expand_moves(moves)) == moves, "moves are not compressed"

    # ---- apply moves via the real game engine and check win -----------------
    game = GamePlay(puzzle)
    for move in moves:
        game.apply(move)

    assert game.is_won, f"Board not solved after {len(moves)} moves ({entry['id']})"
    assert game.moves == total_slides(moves)
    return moves


def _reference_slides(puzzle: Puzzle) -> int | None:
    """Plain BFS over piece positions, no hashing or pruning."""
    start = BoardModel.from_puzzle(puzzle)

    def key(board: BoardModel) -> tuple:
        return tuple(sorted((p.kind, p.x, p.y) for p in board.pieces))

    seen = {key(start)}
    queue = deque([(start, 0)])
    while queue:
        board, depth = queue.popleft()
        if board.is_solved():
            return depth
        for p in board.pieces:
            for direction in Direction:
                nxt = board.copy()
                dx, dy = direction.delta
                if not nxt.try_move_piece(p.id, dx, dy):
                    continue
                k = key(nxt)
                if k not in seen:
                    seen.add(k)
                    queue.append((nxt, depth + 1))
    return None


# -- fixture boards -----------------------------------------------------------


@pytest.mark.parametrize("entry", _SOLVABLE, ids=_ids)
def test_solve_fixture(entry: dict) -> None:
    moves = _assert_solve(entry)
    if entry["slides"] is not None:
        assert total_slides(moves) == entry["slides"]


@pytest.mark.parametrize("entry", _UNSOLVABLE, ids=_ids)
def test_unsolvable_fixture(entry: dict) -> None:
    assert Solver.solve(Puzzle.from_dict(entry["puzzle"])) is None


@pytest.mark.parametrize("entry", _SMALL, ids=_ids)
def test_matches_reference_bfs(entry: dict) -> None:
    puzzle = Puzzle.from_dict(entry["puzzle"])
    assert total_slides(Solver.solve(puzzle)) == _reference_slides(puzzle)


@pytest.mark.parametrize("seed", [1, 2, 3, 42])
def test_length_independent_of_zobrist_seed(seed: int) -> None:
    puzzle = GameGenerator.classic("simple")
    baseline = total_slides(Solver.solve(puzzle, SolverOptions(seed=0)))
    assert total_slides(Solver.solve(puzzle, SolverOptions(seed=seed))) == baseline


# -- specific layouts ---------------------------------------------------------


def test_single_run_is_compressed() -> None:
    puzzle = Puzzle(4, 5, Goal(1, 0), (Piece.create("I", "2x2", 1, 3),))
    assert Solver.solve(puzzle) == [Move("I", Direction.UP, 3)]


def test_tiny_board_exact_solution() -> None:
    puzzle = Puzzle(
        3,
        3,
        Goal(0, 1),
        (Piece.create("A", "2x2", 0, 0), Piece.create("B", "1x1", 0, 2)),
    )
    assert Solver.solve(puzzle) == [
        Move("B", Direction.RIGHT, 2),
        Move("A", Direction.DOWN),
    ]


def test_already_solved_returns_empty_list() -> None:
    puzzle = Puzzle(4, 5, Goal(1, 3), (Piece.create("A", "2x2", 1, 3),))
    assert Solver.solve(puzzle) == []


def test_classic_first_move_uses_piece_next_to_gap() -> None:
    puzzle = GameGenerator.classic("heng-dao-li-ma")
    moves = Solver.solve(puzzle, SolverOptions(seed=7))
    assert moves
    assert moves[0].piece_id in {"G", "H", "I", "J"}

    game = GamePlay(puzzle)
    for move in moves:
        game.apply(move)
    hero = game.board.piece("B")
    assert (hero.x, hero.y) == (1, 3)


def test_solve_does_not_mutate_puzzle() -> None:
    puzzle = GameGenerator.classic("simple")
    before = puzzle.to_dict()
    Solver.solve(puzzle)
    assert puzzle.to_dict() == before


# -- mirror pruning -----------------------------------------------------------


def test_mirror_pruning_follows_goal_symmetry() -> None:
    centred = GameGenerator.classic("simple")
    assert Solver.is_mirror_symmetric(centred)
    assert Solver.search(centred).stats.mirror_pruning

    off_centre = Puzzle(
        4,
        5,
        Goal(0, 3),
        (Piece.create("A", "2x2", 2, 0), Piece.create("B", "1x1", 0, 2)),
    )
    assert not Solver.is_mirror_symmetric(off_centre)
    assert not Solver.search(off_centre).stats.mirror_pruning


def test_mirror_pruning_expands_fewer_states() -> None:
    puzzle = GameGenerator.classic("heng-dao-li-ma")
    on = Solver.search(puzzle, SolverOptions(mirror_pruning=True, seed=7))
    off = Solver.search(puzzle, SolverOptions(mirror_pruning=False, seed=7))
    assert total_slides(on.moves) == total_slides(off.moves)
    assert on.stats.expanded < off.stats.expanded


# -- options and statistics ---------------------------------------------------


def test_search_reports_stats() -> None:
    result = Solver.search(GameGenerator.classic("simple"))
    assert result.solved
    stats = result.stats
    assert stats.expanded > 0
    assert stats.generated > 0
    assert stats.peak_frontier > 0
    assert stats.elapsed_ms >= 0


def test_node_budget_aborts() -> None:
    puzzle = GameGenerator.classic("heng-dao-li-ma")
    with pytest.raises(SearchAborted) as info:
        Solver.search(puzzle, SolverOptions(max_nodes=50))
    assert "budget" in info.value.reason
    assert info.value.stats.expanded == 50


def test_cancelled_search_aborts() -> None:
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(SearchAborted, match="cancelled"):
        Solver.search(GameGenerator.classic("heng-dao-li-ma"), SolverOptions(cancel=cancel))


def test_expired_deadline_aborts() -> None:
    with pytest.raises(SearchAborted, match="deadline"):
        Solver.search(GameGenerator.classic("heng-dao-li-ma"), SolverOptions(timeout=0.0))


def test_generous_limits_do_not_interfere() -> None:
    puzzle = GameGenerator.classic("simple")
    options = SolverOptions(max_nodes=1_000_000, timeout=60.0, cancel=threading.Event())
    assert total_slides(Solver.solve(puzzle, options)) == 5


# -- hint ---------------------------------------------------------------------


def test_hint_is_first_slide() -> None:
    puzzle = Puzzle(4, 5, Goal(1, 0), (Piece.create("I", "2x2", 1, 3),))
    assert Solver.hint(puzzle) == Move("I", Direction.UP)


def test_hint_none_when_solved_or_unsolvable() -> None:
    solved = Puzzle(4, 5, Goal(1, 3), (Piece.create("A", "2x2", 1, 3),))
    assert Solver.hint(solved) is None
    stuck = Puzzle.from_dict(_UNSOLVABLE[0]["puzzle"])
    assert Solver.hint(stuck) is None


# -- preconditions ------------------------------------------------------------


@pytest.mark.parametrize(
    "puzzle",
    [
        Puzzle(0, 5, Goal(1, 3), ()),
        Puzzle(4, 5, Goal(3, 3), (Piece.create("A", "2x2", 1, 0),)),
        Puzzle(4, 5, Goal(1, 3), (Piece.create("A", "1x1", 0, 0),)),
        Puzzle(
            4,
            5,
            Goal(1, 3),
            (Piece.create("A", "2x2", 0, 0), Piece.create("B", "2x2", 2, 0)),
        ),
        Puzzle(
            4,
            5,
            Goal(1, 3),
            (Piece.create("A", "2x2", 0, 0), Piece.create("B", "1x1", 1, 1)),
        ),
        Puzzle(4, 5, Goal(1, 3), (Piece.create("A", "2x2", 3, 0),)),
    ],
    ids=["zero-cols", "goal-outside", "no-escape", "two-escapes", "overlap", "out-of-bounds"],
)
def test_invalid_puzzle_rejected(puzzle: Puzzle) -> None:
    with pytest.raises(PuzzleError):
        Solver.solve(puzzle)
