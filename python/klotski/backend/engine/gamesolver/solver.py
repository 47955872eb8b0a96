"""Klotski solver — breadth-first search over board layouts.

Each dequeued layout is checked against a visited set of 32-bit Zobrist
hashes. On boards whose goal is horizontally centred, a layout's mirror
hash is recorded too, so a layout and its left-right reflection are only
expanded once.

FIFO order guarantees the first goal layout dequeued is reached with the
fewest single-cell slides. Hash collisions are not detected.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections import deque
from dataclasses import dataclass

from klotski.backend.engine.gamesolver.path import ROOT, SearchArena, compress_moves
from klotski.backend.engine.gamesolver.zobrist import (
    build_table,
    footprint_keys,
    layout_hashes,
)
from klotski.backend.errors import SearchAborted
from klotski.backend.models.board import Direction
from klotski.backend.models.move import Move
from klotski.backend.models.puzzle import Puzzle

logger = logging.getLogger(__name__)

EMPTY = 0
POLL_MASK = 0x3FF
PROGRESS_LOG_MASK = 0xFFFF

_DIRECTIONS = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


@dataclass(frozen=True)
class SolverOptions:
    """Optional limits and knobs for a single search.

    ``mirror_pruning=None`` enables the mirror check only when the goal is
    horizontally centred. Forcing it on for an off-centre goal can return a
    longer answer or miss a solution.
    """

    max_nodes: int | None = None
    timeout: float | None = None
    mirror_pruning: bool | None = None
    cancel: threading.Event | None = None
    seed: int | None = None


@dataclass
class SearchStats:
    expanded: int = 0
    generated: int = 0
    duplicates: int = 0
    peak_frontier: int = 0
    mirror_pruning: bool = False
    elapsed_ms: int = 0


@dataclass(frozen=True)
class SearchResult:
    moves: list[Move] | None
    stats: SearchStats

    @property
    def solved(self) -> bool:
        return self.moves is not None


@dataclass(frozen=True, slots=True)
class _State:
    positions: tuple[tuple[int, int], ...]
    grid: bytes
    zhash: int
    mirror: int
    mover: int
    handle: int


class Solver:
    """Stateless solver — all methods are static."""

    @staticmethod
    def solve(puzzle: Puzzle, options: SolverOptions | None = None) -> list[Move] | None:
        """Return the shortest move list, ``[]`` if already solved, or ``None``
        if no sequence of slides reaches the goal."""
        return Solver.search(puzzle, options).moves

    @staticmethod
    def search(puzzle: Puzzle, options: SolverOptions | None = None) -> SearchResult:
        """Like :meth:`solve` but also report search statistics.

        Raises :class:`~klotski.backend.errors.PuzzleError` for a malformed
        puzzle and :class:`~klotski.backend.errors.SearchAborted` when a
        limit in *options* is hit.
        """
        puzzle.validate()
        return _Search(puzzle, options or SolverOptions()).run()

    @staticmethod
    def hint(puzzle: Puzzle, options: SolverOptions | None = None) -> Move | None:
        """Return the first single slide of a shortest solution, or ``None``
        if solved / unsolvable."""
        if puzzle.is_solved():
            return None
        moves = Solver.solve(puzzle, options)
        if not moves:
            return None
        return Move(moves[0].piece_id, moves[0].direction)

    @staticmethod
    def is_mirror_symmetric(puzzle: Puzzle) -> bool:
        """True if reflecting the board left-right leaves the goal in place."""
        goal = puzzle.goal
        return goal.x == puzzle.cols - goal.x - goal.w


class _Search:
    """One breadth-first search; owns its table, frontier and visited set."""

    def __init__(self, puzzle: Puzzle, options: SolverOptions) -> None:
        self.options = options
        self.cols = puzzle.cols
        self.rows = puzzle.rows
        self.ids = [p.id for p in puzzle.pieces]
        self.kinds = [puzzle.catalog.index(p.kind) for p in puzzle.pieces]
        self.sizes = [(p.w, p.h) for p in puzzle.pieces]
        hero = puzzle.escape_piece()
        assert hero is not None  # guaranteed by Puzzle.validate()
        self.hero = self.ids.index(hero.id)
        self.goal = (puzzle.goal.x, puzzle.goal.y)

        mirror = options.mirror_pruning
        if mirror is None:
            mirror = Solver.is_mirror_symmetric(puzzle)
        self.use_mirror = mirror

        self.table = build_table(
            self.rows, self.cols, len(puzzle.catalog), random.Random(options.seed)
        )
        self.keys = footprint_keys(self.table, dict(zip(self.kinds, self.sizes)))
        self.arena = SearchArena()
        self.stats = SearchStats(mirror_pruning=mirror)
        self.root = self._root(puzzle)

    # -- setup ----------------------------------------------------------------

    def _root(self, puzzle: Puzzle) -> _State:
        cols = self.cols
        grid = bytearray(self.rows * cols)
        for p, k in zip(puzzle.pieces, self.kinds):
            for x, y in p.cells():
                grid[y * cols + x] = k + 1
        zhash, mirror = layout_hashes(self.table, puzzle)
        return _State(
            positions=tuple((p.x, p.y) for p in puzzle.pieces),
            grid=bytes(grid),
            zhash=zhash,
            mirror=mirror,
            mover=-1,
            handle=self.arena.add(ROOT, None),
        )

    # -- main loop ------------------------------------------------------------

    def run(self) -> SearchResult:
        stats = self.stats
        start = time.monotonic()
        deadline = None
        if self.options.timeout is not None:
            deadline = start + self.options.timeout
        logger.info(
            "Solving %d×%d board with %d pieces (mirror pruning %s)",
            self.cols,
            self.rows,
            len(self.ids),
            "on" if self.use_mirror else "off",
        )

        visited: set[int] = set()
        frontier: deque[_State] = deque([self.root])
        use_mirror = self.use_mirror
        hero, goal = self.hero, self.goal

        while frontier:
            state = frontier.popleft()
            if state.zhash in visited or (use_mirror and state.mirror in visited):
                stats.duplicates += 1
                continue

            if state.positions[hero] == goal:
                moves = compress_moves(self.arena.path(state.handle))
                stats.elapsed_ms = int((time.monotonic() - start) * 1000)
                logger.info(
                    "Solved in %d slides (%d moves); expanded %d states in %d ms",
                    sum(m.count for m in moves),
                    len(moves),
                    stats.expanded,
                    stats.elapsed_ms,
                )
                return SearchResult(moves, stats)

            self._check_limits(start, deadline)
            visited.add(state.zhash)
            if use_mirror:
                visited.add(state.mirror)
            stats.expanded += 1
            self._expand(state, visited, frontier)
            if len(frontier) > stats.peak_frontier:
                stats.peak_frontier = len(frontier)
            if stats.expanded & PROGRESS_LOG_MASK == 0:
                logger.debug(
                    "Expanded %d states, frontier %d, visited %d",
                    stats.expanded,
                    len(frontier),
                    len(visited),
                )

        stats.elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "No solution: exhausted %d states in %d ms", stats.expanded, stats.elapsed_ms
        )
        return SearchResult(None, stats)

    def _check_limits(self, start: float, deadline: float | None) -> None:
        stats = self.stats
        max_nodes = self.options.max_nodes
        if max_nodes is not None and stats.expanded >= max_nodes:
            self._abort(start, f"node budget of {max_nodes} states exhausted")
        if stats.expanded & POLL_MASK:
            return
        cancel = self.options.cancel
        if cancel is not None and cancel.is_set():
            self._abort(start, "search cancelled")
        if deadline is not None and time.monotonic() > deadline:
            self._abort(start, f"deadline of {self.options.timeout}s exceeded")

    def _abort(self, start: float, reason: str) -> None:
        self.stats.elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.warning("Search aborted after %d states: %s", self.stats.expanded, reason)
        raise SearchAborted(reason, self.stats)

    # -- successor generation -------------------------------------------------

    def _expand(self, state: _State, visited: set[int], frontier: deque[_State]) -> None:
        """Queue every legal one-cell slide out of *state*.

        Pieces are scanned starting from the one that was just moved so that
        runs of the same piece end up next to each other in the path.
        """
        cols = self.cols
        keys = self.keys
        use_mirror = self.use_mirror
        positions = state.positions
        grid = state.grid
        n = len(positions)
        first = state.mover if state.mover >= 0 else 0

        for offset in range(n):
            i = (first + offset) % n
            x, y = positions[i]
            w, h = self.sizes[i]
            k = self.kinds[i]
            for direction in _DIRECTIONS:
                if not self._can_slide(grid, x, y, w, h, direction):
                    continue
                dx, dy = direction.delta
                nx, ny = x + dx, y + dy
                old_z, old_m = keys[k, x, y]
                new_z, new_m = keys[k, nx, ny]
                zhash = state.zhash ^ old_z ^ new_z
                mirror = state.mirror ^ old_m ^ new_m
                if zhash in visited or (use_mirror and mirror in visited):
                    self.stats.duplicates += 1
                    continue

                cells = bytearray(grid)
                for cy in range(y, y + h):
                    for cx in range(x, x + w):
                        cells[cy * cols + cx] = EMPTY
                for cy in range(ny, ny + h):
                    for cx in range(nx, nx + w):
                        cells[cy * cols + cx] = k + 1

                frontier.append(
                    _State(
                        positions=positions[:i] + ((nx, ny),) + positions[i + 1 :],
                        grid=bytes(cells),
                        zhash=zhash,
                        mirror=mirror,
                        mover=i,
                        handle=self.arena.add(state.handle, (self.ids[i], direction)),
                    )
                )
                self.stats.generated += 1

    def _can_slide(
        self, grid: bytes, x: int, y: int, w: int, h: int, direction: Direction
    ) -> bool:
        """Check only the border row/column the piece is sliding into."""
        cols = self.cols
        if direction is Direction.UP:
            if y == 0:
                return False
            base = (y - 1) * cols
            return all(grid[base + cx] == EMPTY for cx in range(x, x + w))
        if direction is Direction.DOWN:
            if y + h >= self.rows:
                return False
            base = (y + h) * cols
            return all(grid[base + cx] == EMPTY for cx in range(x, x + w))
        if direction is Direction.LEFT:
            if x == 0:
                return False
            return all(grid[cy * cols + x - 1] == EMPTY for cy in range(y, y + h))
        if x + w >= cols:
            return False
        return all(grid[cy * cols + x + w] == EMPTY for cy in range(y, y + h))
