"""Named-puzzle persistence, JSON import/export and share tokens."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path

from klotski.backend.errors import PuzzleError
from klotski.backend.models.puzzle import Puzzle

logger = logging.getLogger(__name__)


class PuzzleStore:
    """Loads, saves, and queries named puzzles kept in a JSON file.

    The file holds ``{"puzzles": {name: puzzle}, "default": name}``.
    """

    def __init__(self, filepath: Path) -> None:
        self.filepath = filepath
        self._puzzles: dict[str, dict] = {}
        self._default: str = ""
        self._load()

    # -- persistence ----------------------------------------------------------

    def _load(self) -> None:
        if not self.filepath.exists():
            return
        try:
            data = json.loads(self.filepath.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable puzzle store %s: %s", self.filepath, exc)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed puzzle store %s", self.filepath)
            return
        puzzles = data.get("puzzles")
        if isinstance(puzzles, dict):
            self._puzzles = dict(puzzles)
        default = data.get("default")
        self._default = default if isinstance(default, str) else ""

    def save(self) -> None:
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        data = {"puzzles": self._puzzles, "default": self._default or None}
        self.filepath.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n")

    # -- puzzles --------------------------------------------------------------

    def save_puzzle(self, name: str, puzzle: Puzzle) -> None:
        name = name.strip()
        if not name:
            raise ValueError("A puzzle needs a non-empty name.")
        self._puzzles[name] = puzzle.to_dict()
        self.save()
        logger.info("Saved puzzle %r", name)

    def get_puzzle(self, name: str) -> Puzzle | None:
        data = self._puzzles.get(name)
        if data is None:
            return None
        return Puzzle.from_dict(data)

    def delete_puzzle(self, name: str) -> bool:
        if name not in self._puzzles:
            return False
        del self._puzzles[name]
        if self._default == name:
            self._default = ""
        self.save()
        logger.info("Deleted puzzle %r", name)
        return True

    def list_names(self) -> list[str]:
        return sorted(self._puzzles)

    # -- default puzzle -------------------------------------------------------

    def set_default_name(self, name: str) -> None:
        if not name:
            self.clear_default_name()
            return
        if name not in self._puzzles:
            raise KeyError(name)
        self._default = name
        self.save()

    def get_default_name(self) -> str:
        return self._default

    def clear_default_name(self) -> None:
        self._default = ""
        self.save()

    def get_default_puzzle(self) -> Puzzle | None:
        if not self._default:
            return None
        return self.get_puzzle(self._default)


# -- files and share tokens ---------------------------------------------------


def load_puzzle_file(path: Path) -> Puzzle:
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise PuzzleError(f"{path} is not valid JSON: {exc}") from exc
    return Puzzle.from_dict(data)


def dump_puzzle_file(path: Path, puzzle: Puzzle) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(puzzle.to_dict(), indent=2) + "\n")


def to_share_token(puzzle: Puzzle) -> str:
    """URL-safe base64 of the compact puzzle JSON."""
    raw = json.dumps(puzzle.to_dict(), separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def from_share_token(token: str) -> Puzzle:
    token = token.strip().lstrip("#")
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw)
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise PuzzleError(f"Invalid share token: {exc}") from exc
    return Puzzle.from_dict(data)
