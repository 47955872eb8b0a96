from klotski.backend.models.board import BoardModel, Direction
from klotski.backend.models.move import Move
from klotski.backend.models.puzzle import (
    DEFAULT_KINDS,
    Goal,
    KindCatalog,
    Piece,
    PieceKind,
    Puzzle,
)
from klotski.backend.models.storage import PuzzleStore

__all__ = [
    "BoardModel",
    "DEFAULT_KINDS",
    "Direction",
    "Goal",
    "KindCatalog",
    "Move",
    "Piece",
    "PieceKind",
    "Puzzle",
    "PuzzleStore",
]
