"""Replay player and game session over the live board."""

from __future__ import annotations

import logging

import pytest

from klotski.backend.engine.gamegenerator import GameGenerator
from klotski.backend.engine.gameplay import GamePlay, ReplayPlayer
from klotski.backend.engine.gamesolver import Solver
from klotski.backend.errors import ReplayError
from klotski.backend.models.board import BoardModel, Direction
from klotski.backend.models.move import Move
from klotski.backend.models.puzzle import Goal, Piece, Puzzle

UP, DOWN, LEFT, RIGHT = Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT


@pytest.fixture
def simple() -> Puzzle:
    return GameGenerator.classic("simple")


@pytest.fixture
def solution() -> list[Move]:
    # D left, E right, then the escape piece down three cells
    return [Move("D", LEFT), Move("E", RIGHT), Move("B", DOWN, 3)]


# -- game session -------------------------------------------------------------


def test_move_counts_only_legal_slides(simple: Puzzle) -> None:
    game = GamePlay(simple)
    assert not game.move("B", DOWN)
    assert game.move("D", LEFT)
    assert game.moves == 1


def test_apply_reaches_goal(simple: Puzzle, solution: list[Move]) -> None:
    game = GamePlay(simple)
    for move in solution:
        game.apply(move)
    assert game.is_won
    assert game.moves == 5

    game.restart()
    assert not game.is_won
    assert game.moves == 0


def test_illegal_replay_raises_and_logs(
    simple: Puzzle, caplog: pytest.LogCaptureFixture
) -> None:
    game = GamePlay(simple)
    with caplog.at_level(logging.ERROR), pytest.raises(ReplayError):
        game.apply(Move("B", DOWN))
    assert "Replay mismatch" in caplog.text


def test_unknown_piece_is_a_replay_error(simple: Puzzle) -> None:
    with pytest.raises(ReplayError):
        GamePlay(simple).slide("Z", UP)


def test_from_board() -> None:
    board = BoardModel()
    board.try_add_piece(board.create_piece("2x2", 1, 2))
    game = GamePlay.from_board(board)
    game.apply(Move("A", DOWN))
    assert game.is_won
    assert board.piece("A").y == 2


# -- replay player ------------------------------------------------------------


def test_player_walks_every_slide(simple: Puzzle, solution: list[Move]) -> None:
    player = ReplayPlayer(simple, solution)
    assert player.total_steps == 5
    assert player.at_start
    assert player.current_move is None
    assert player.status_text() == ""
    assert not player.step_backward()

    player.step_forward()
    assert player.status_text() == "Step 1: D left"

    player.step_forward()
    player.step_forward()
    assert player.current_move == Move("B", DOWN, 3)
    assert player.status_text() == "Step 3: B down 3 times"
    assert player.progress == pytest.approx(3 / 5)

    player.step_forward()
    player.step_forward()
    assert player.at_end
    assert not player.step_forward()
    assert player.board.is_solved()


def test_step_backward_restores_layout(simple: Puzzle, solution: list[Move]) -> None:
    player = ReplayPlayer(simple, solution)
    player.jump_to_end()
    while player.step_backward():
        pass
    assert player.board.to_puzzle() == simple


def test_seek_and_reset(simple: Puzzle, solution: list[Move]) -> None:
    player = ReplayPlayer(simple, solution)
    player.seek(0.6)
    assert player.current_step == 3
    player.seek(2.0)
    assert player.at_end
    player.seek(0.2)
    assert player.current_step == 1
    assert player.board.piece("D").x == 0

    player.reset()
    assert player.at_start
    assert player.board.to_puzzle() == simple


def test_empty_solution() -> None:
    solved = Puzzle(4, 5, Goal(1, 3), (Piece.create("A", "2x2", 1, 3),))
    player = ReplayPlayer(solved, [])
    assert player.total_steps == 0
    assert player.at_start and player.at_end
    assert player.progress == 1.0


def test_replays_solver_output() -> None:
    puzzle = GameGenerator.classic("heng-dao-li-ma")
    moves = Solver.solve(puzzle)
    player = ReplayPlayer(puzzle, moves)
    player.jump_to_end()
    assert player.board.is_solved()
