"""Solver output: a piece, a direction, and how many cells to slide."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from klotski.backend.errors import PuzzleError
from klotski.backend.models.board import Direction


@dataclass(frozen=True)
class Move:
    piece_id: str
    direction: Direction
    count: int = 1

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"Move count must be at least 1, got {self.count}.")

    def __str__(self) -> str:
        if self.count > 1:
            return f"{self.piece_id} {self.direction.value} {self.count} times"
        return f"{self.piece_id} {self.direction.value}"

    def to_dict(self) -> dict[str, Any]:
        """JSON form; ``count`` is omitted when it is 1."""
        data: dict[str, Any] = {"id": self.piece_id, "dir": self.direction.value}
        if self.count > 1:
            data["count"] = self.count
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Move:
        try:
            return cls(
                piece_id=str(data["id"]),
                direction=Direction(data["dir"]),
                count=int(data.get("count", 1)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise PuzzleError(f"Malformed move data {data!r}: {exc}") from exc
