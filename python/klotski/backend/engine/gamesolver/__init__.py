from klotski.backend.engine.gamesolver.path import (
    SearchArena,
    compress_moves,
    expand_moves,
    total_slides,
)
from klotski.backend.engine.gamesolver.solver import (
    SearchResult,
    SearchStats,
    Solver,
    SolverOptions,
)

__all__ = [
    "SearchArena",
    "SearchResult",
    "SearchStats",
    "Solver",
    "SolverOptions",
    "compress_moves",
    "expand_moves",
    "total_slides",
]
