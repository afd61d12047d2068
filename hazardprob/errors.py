"""Typed analysis failures and their outbound payload form."""

from typing import Any, Dict, Optional

from .utils import Coord


class AnalysisError(Exception):
    """
    Base class for every failure an analysis call can report.

    Attributes:
        reason: Stable machine-readable reason, used verbatim in payloads.
        at: Coordinate of the responsible clue cell, when one can be named.
    """

    reason = "AnalysisError"

    def __init__(self, message: str, at: Optional[Coord] = None) -> None:
        super().__init__(message)
        self.at: Optional[Coord] = at

    def to_payload(self) -> Dict[str, Any]:
        """Return the outbound `ok: false` form of this error."""
        payload: Dict[str, Any] = {"ok": False, "reason": self.reason}
        if self.at is not None:
            payload["at"] = {"x": self.at[0], "y": self.at[1]}
        return payload


class TooManyFlags(AnalysisError):
    """A clue has more flagged neighbors than its value allows."""

    reason = "TooManyFlags"


class InsufficientSpace(AnalysisError):
    """A clue needs more hazards than it has hidden neighbors."""

    reason = "InsufficientSpace"


class Contradiction(AnalysisError):
    """A cluster has no consistent assignment; the clues conflict jointly."""

    reason = "Contradiction"


class SearchLimitExceeded(AnalysisError):
    """A search cap stopped a cluster before any solution was found."""

    reason = "SearchLimitExceeded"


class AnalysisCancelled(AnalysisError):
    """The caller cancelled the analysis while a search was running."""

    reason = "Cancelled"
