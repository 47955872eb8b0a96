"""Exception hierarchy shared by the models, engine and frontends."""

from __future__ import annotations


class KlotskiError(Exception):
    """Base class for all errors raised by this package."""


class PuzzleError(KlotskiError, ValueError):
    """A puzzle description is malformed or violates a precondition."""


class IllegalMoveError(KlotskiError):
    """A slide would leave the board or collide with another piece."""


class ReplayError(KlotskiError):
    """A move list could not be replayed against the live board."""


class SearchAborted(KlotskiError):
    """The search hit its node budget, deadline, or was cancelled."""

    def __init__(self, reason: str, stats: object | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.stats = stats
