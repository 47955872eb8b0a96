"""Immutable puzzle description: grid size, goal region and pieces."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from klotski.backend.errors import PuzzleError


# -- piece kinds --------------------------------------------------------------


@dataclass(frozen=True)
class PieceKind:
    """A rectangular footprint. ``name`` follows the ``"WxH"`` convention."""

    name: str
    w: int
    h: int


class KindCatalog:
    """Ordered collection of piece kinds.

    A kind's position in the catalog is its slot in the Zobrist table, so
    the catalog, not a hard-coded constant, decides the table's depth.
    """

    def __init__(self, kinds: Iterable[PieceKind]) -> None:
        self._kinds: tuple[PieceKind, ...] = tuple(kinds)
        if not self._kinds:
            raise ValueError("A kind catalog needs at least one kind.")
        self._index = {k.name: i for i, k in enumerate(self._kinds)}
        if len(self._index) != len(self._kinds):
            raise ValueError("Kind names must be unique.")

    def __len__(self) -> int:
        return len(self._kinds)

    def __iter__(self) -> Iterator[PieceKind]:
        return iter(self._kinds)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __repr__(self) -> str:
        names = ", ".join(k.name for k in self._kinds)
        return f"KindCatalog({names})"

    def index(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise PuzzleError(f"Unknown piece kind: {name!r}") from None

    def get(self, name: str) -> PieceKind:
        return self._kinds[self.index(name)]

    def by_size(self, w: int, h: int) -> PieceKind | None:
        for kind in self._kinds:
            if (kind.w, kind.h) == (w, h):
                return kind
        return None


DEFAULT_KINDS = KindCatalog(
    (
        PieceKind("1x1", 1, 1),
        PieceKind("2x2", 2, 2),
        PieceKind("1x2", 1, 2),
        PieceKind("2x1", 2, 1),
    )
)


# -- geometry -----------------------------------------------------------------


def rects_overlap(a: Any, b: Any) -> bool:
    """Collision check on anything with ``x``, ``y``, ``w`` and ``h``."""
    return a.x < b.x + b.w and a.x + a.w > b.x and a.y < b.y + b.h and a.y + a.h > b.y


@dataclass(frozen=True)
class Goal:
    """Target region for the escape piece."""

    x: int
    y: int
    w: int = 2
    h: int = 2


@dataclass(frozen=True)
class Piece:
    id: str
    kind: str
    x: int
    y: int
    w: int
    h: int

    @classmethod
    def create(
        cls,
        id: str,
        kind: str,
        x: int,
        y: int,
        catalog: KindCatalog = DEFAULT_KINDS,
    ) -> Piece:
        """Build a piece whose width and height come from *kind*."""
        k = catalog.get(kind)
        return cls(id=id, kind=kind, x=x, y=y, w=k.w, h=k.h)

    def moved(self, dx: int, dy: int) -> Piece:
        return replace(self, x=self.x + dx, y=self.y + dy)

    def cells(self) -> Iterator[tuple[int, int]]:
        """Yield the ``(x, y)`` grid cells the piece covers."""
        for dy in range(self.h):
            for dx in range(self.w):
                yield self.x + dx, self.y + dy


# -- puzzle -------------------------------------------------------------------


@dataclass(frozen=True)
class Puzzle:
    """A complete, immutable puzzle description.

    This is the solver's input. The escape piece is the one whose kind
    matches the goal's footprint.
    """

    cols: int
    rows: int
    goal: Goal
    pieces: tuple[Piece, ...] = ()
    catalog: KindCatalog = field(default=DEFAULT_KINDS, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pieces", tuple(self.pieces))

    # -- queries --------------------------------------------------------------

    @property
    def escape_kind(self) -> PieceKind | None:
        return self.catalog.by_size(self.goal.w, self.goal.h)

    def escape_piece(self) -> Piece | None:
        kind = self.escape_kind
        if kind is None:
            return None
        for p in self.pieces:
            if p.kind == kind.name:
                return p
        return None

    def piece(self, piece_id: str) -> Piece:
        for p in self.pieces:
            if p.id == piece_id:
                return p
        raise KeyError(piece_id)

    def is_solved(self) -> bool:
        hero = self.escape_piece()
        return hero is not None and (hero.x, hero.y) == (self.goal.x, self.goal.y)

    def in_bounds(self, rect: Any) -> bool:
        return (
            rect.x >= 0
            and rect.y >= 0
            and rect.x + rect.w <= self.cols
            and rect.y + rect.h <= self.rows
        )

    def with_pieces(self, pieces: Iterable[Piece]) -> Puzzle:
        return replace(self, pieces=tuple(pieces))

    # -- validation -----------------------------------------------------------

    def validate(self) -> None:
        """Raise :class:`PuzzleError` unless the puzzle is well formed."""
        if self.cols <= 0 or self.rows <= 0:
            raise PuzzleError(
                f"Board dimensions must be positive, got {self.cols}×{self.rows}."
            )
        if self.goal.w <= 0 or self.goal.h <= 0 or not self.in_bounds(self.goal):
            raise PuzzleError(f"Goal region {self.goal} is outside the board.")
        escape = self.escape_kind
        if escape is None:
            raise PuzzleError(
                f"No piece kind matches the {self.goal.w}×{self.goal.h} goal region."
            )

        ids = [p.id for p in self.pieces]
        if len(set(ids)) != len(ids):
            raise PuzzleError("Piece ids must be unique.")

        owner: dict[tuple[int, int], str] = {}
        escapes = 0
        for p in self.pieces:
            kind = self.catalog.get(p.kind)
            if (p.w, p.h) != (kind.w, kind.h):
                raise PuzzleError(
                    f"Piece {p.id!r} is {p.w}×{p.h} but kind {p.kind!r} "
                    f"is {kind.w}×{kind.h}."
                )
            if not p.id:
                raise PuzzleError("Every piece needs a non-empty id.")
            if not self.in_bounds(p):
                raise PuzzleError(f"Piece {p.id!r} at ({p.x}, {p.y}) is out of bounds.")
            if p.kind == escape.name:
                escapes += 1
            for cell in p.cells():
                other = owner.get(cell)
                if other is not None:
                    raise PuzzleError(
                        f"Pieces {other!r} and {p.id!r} overlap at {cell}."
                    )
                owner[cell] = p.id

        if escapes == 0:
            raise PuzzleError(f"The puzzle has no {escape.name} escape piece.")
        if escapes > 1:
            raise PuzzleError(
                f"Only one {escape.name} escape piece is allowed, found {escapes}."
            )

    # -- serialisation --------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "cols": self.cols,
            "rows": self.rows,
            "goal": {
                "x": self.goal.x,
                "y": self.goal.y,
                "w": self.goal.w,
                "h": self.goal.h,
            },
            "pieces": [
                {"id": p.id, "type": p.kind, "x": p.x, "y": p.y, "w": p.w, "h": p.h}
                for p in self.pieces
            ],
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], catalog: KindCatalog = DEFAULT_KINDS
    ) -> Puzzle:
        """Parse the JSON shape produced by :meth:`to_dict`.

        Piece ``w``/``h`` may be omitted; they are derived from ``type``.
        """
        if not isinstance(data, Mapping):
            raise PuzzleError("Puzzle data must be a JSON object.")
        try:
            goal_data = data.get("goal") or {}
            goal = Goal(
                x=int(goal_data["x"]),
                y=int(goal_data["y"]),
                w=int(goal_data.get("w", 2)),
                h=int(goal_data.get("h", 2)),
            )
            pieces: list[Piece] = []
            for entry in data.get("pieces") or []:
                kind = catalog.get(str(entry["type"]))
                pieces.append(
                    Piece(
                        id=str(entry["id"]),
                        kind=kind.name,
                        x=int(entry["x"]),
                        y=int(entry["y"]),
                        w=int(entry.get("w", kind.w)),
                        h=int(entry.get("h", kind.h)),
                    )
                )
            return cls(
                cols=int(data["cols"]),
                rows=int(data["rows"]),
                goal=goal,
                pieces=tuple(pieces),
                catalog=catalog,
            )
        except (KeyError, TypeError, ValueError) as exc:
            if isinstance(exc, PuzzleError):
                raise
            raise PuzzleError(f"Malformed puzzle data: {exc!r}") from exc
