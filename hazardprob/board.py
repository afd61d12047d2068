"""Immutable board snapshots: the only input the probability engine accepts."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .utils import Coord, get_neighborhoods, iter_coords


class CellStatus(str, Enum):
    """Visible state of one cell, with its inbound payload spelling as value."""

    HIDDEN = "hidden"
    FLAGGED = "flagged"
    REVEALED = "revealed"


# Text board symbols: "." hidden, "F" flagged, "0".."8" revealed clue.
HIDDEN_SYMBOL = "."
FLAG_SYMBOL = "F"


def _is_int(v: object) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


@dataclass(frozen=True)
class Cell:
    """One board cell. `value` is the clue and is present iff revealed."""

    x: int
    y: int
    status: CellStatus
    value: Optional[int] = None

    def __post_init__(self) -> None:
        if self.status is CellStatus.REVEALED:
            if not _is_int(self.value) or not 0 <= self.value <= 8:
                raise ValueError(
                    f"Revealed cell ({self.x},{self.y}) needs a clue in 0..8, "
                    f"got {self.value!r}."
                )
        elif self.value is not None:
            raise ValueError(
                f"Only revealed cells carry a value; ({self.x},{self.y}) is "
                f"{self.status.value}."
            )

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)

    @property
    def is_hidden(self) -> bool:
        return self.status is CellStatus.HIDDEN

    @property
    def is_flagged(self) -> bool:
        return self.status is CellStatus.FLAGGED

    @property
    def is_revealed(self) -> bool:
        return self.status is CellStatus.REVEALED

    def symbol(self) -> str:
        """Return the text-board symbol of this cell."""
        if self.is_hidden:
            return HIDDEN_SYMBOL
        if self.is_flagged:
            return FLAG_SYMBOL
        return str(self.value)


@dataclass(frozen=True)
class Board:
    """
    Immutable snapshot of a puzzle position.

    Cells are stored row-major as a tuple, so a Board can be handed to a
    worker thread or process without the caller's later edits reaching it.

    Attributes:
        width: Number of columns, > 0.
        height: Number of rows, > 0.
        hazard_budget: Total hazards on the board, flagged or not, >= 0.
        cells: One Cell per coordinate, row-major.
    """

    width: int
    height: int
    hazard_budget: int
    cells: Tuple[Cell, ...]

    def __post_init__(self) -> None:
        if not _is_int(self.width) or not _is_int(self.height):
            raise ValueError("Width and height must be integers.")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive.")
        if not _is_int(self.hazard_budget) or self.hazard_budget < 0:
            raise ValueError("hazard_budget must be a non-negative integer.")

        # Freeze whatever sequence was passed in.
        object.__setattr__(self, "cells", tuple(self.cells))
        if len(self.cells) != self.width * self.height:
            raise ValueError(
                f"Expected {self.width * self.height} cells, got {len(self.cells)}."
            )
        for cell, (x, y) in zip(self.cells, iter_coords(self.width, self.height)):
            if (cell.x, cell.y) != (x, y):
                raise ValueError(
                    f"Cell ({cell.x},{cell.y}) is out of row-major order; "
                    f"expected ({x},{y})."
                )

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_statuses(
        cls,
        width: int,
        height: int,
        hazard_budget: int,
        statuses: Iterable[Tuple[CellStatus, Optional[int]]],
    ) -> "Board":
        """Build a board from row-major (status, value) pairs."""
        cells: List[Cell] = [
            Cell(x, y, status, value)
            for (x, y), (status, value) in zip(iter_coords(width, height), statuses)
        ]
        return cls(width, height, hazard_budget, tuple(cells))

    @classmethod
    def from_rows(cls, rows: Sequence[str], hazard_budget: int) -> "Board":
        """
        Build a board from a text grid.

        Args:
            rows: One string per row; "." hidden, "F" flagged, "0".."8"
                revealed. Spaces are ignored.
            hazard_budget: Total hazards on the board.

        Raises:
            ValueError: If rows are empty, ragged, or contain unknown symbols.
        """
        grid = [row.replace(" ", "") for row in rows]
        if not grid or not grid[0]:
            raise ValueError("A text board needs at least one non-empty row.")
        width = len(grid[0])
        if any(len(row) != width for row in grid):
            raise ValueError("All rows of a text board must have the same length.")

        statuses: List[Tuple[CellStatus, Optional[int]]] = []
        for y, row in enumerate(grid):
            for x, ch in enumerate(row):
                if ch == HIDDEN_SYMBOL:
                    statuses.append((CellStatus.HIDDEN, None))
                elif ch.upper() == FLAG_SYMBOL:
                    statuses.append((CellStatus.FLAGGED, None))
                elif ch in "012345678":
                    statuses.append((CellStatus.REVEALED, int(ch)))
                else:
                    raise ValueError(f"Unknown board symbol {ch!r} at ({x},{y}).")

        return cls.from_statuses(width, len(grid), hazard_budget, statuses)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Board":
        """
        Parse an inbound board snapshot.

        Expected shape::

            {"width": int, "height": int, "hazardBudget": int,
             "cells": [{"status": "hidden"|"flagged"|"revealed",
                        "value": int 0..8 (iff revealed)}, ...]}

        Raises:
            ValueError: If the payload is malformed.
        """
        for key in ("width", "height", "hazardBudget", "cells"):
            if key not in payload:
                raise ValueError(f"Board payload is missing {key!r}.")

        width = payload["width"]
        height = payload["height"]
        raw_cells = payload["cells"]
        if not isinstance(raw_cells, (list, tuple)):
            raise ValueError("'cells' must be a list of cell objects.")
        if not _is_int(width) or not _is_int(height):
            raise ValueError("Width and height must be integers.")

        statuses: List[Tuple[CellStatus, Optional[int]]] = []
        for i, raw in enumerate(raw_cells):
            if not isinstance(raw, Mapping):
                raise ValueError(f"Cell #{i} must be an object.")
            try:
                status = CellStatus(raw.get("status"))
            except ValueError:
                raise ValueError(
                    f"Cell #{i} has unknown status {raw.get('status')!r}."
                ) from None
            value = raw.get("value") if status is CellStatus.REVEALED else None
            statuses.append((status, value))

        if len(statuses) != width * height:
            raise ValueError(
                f"Expected {width * height} cells, got {len(statuses)}."
            )
        return cls.from_statuses(width, height, payload["hazardBudget"], statuses)

    def to_payload(self) -> Dict[str, Any]:
        """Return the inbound JSON form of this board."""
        cells: List[Dict[str, Any]] = []
        for cell in self.cells:
            entry: Dict[str, Any] = {"status": cell.status.value}
            if cell.is_revealed:
                entry["value"] = cell.value
            cells.append(entry)
        return {
            "width": self.width,
            "height": self.height,
            "hazardBudget": self.hazard_budget,
            "cells": cells,
        }

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def cell(self, x: int, y: int) -> Cell:
        """Return the cell at (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError("Cell coordinates are outside the board.")
        return self.cells[y * self.width + x]

    def neighbors(self, x: int, y: int) -> Tuple[Coord, ...]:
        """Return the in-bounds 8-neighborhood of (x, y)."""
        return get_neighborhoods(self.width, self.height)[(x, y)]

    def hidden_coords(self) -> List[Coord]:
        """Return every hidden coordinate, row-major."""
        return [c.coord for c in self.cells if c.is_hidden]

    @property
    def flagged_count(self) -> int:
        return sum(1 for c in self.cells if c.is_flagged)

    def to_rows(self) -> List[str]:
        """Return the text-grid form of this board (inverse of from_rows)."""
        return [
            "".join(self.cell(x, y).symbol() for x in range(self.width))
            for y in range(self.height)
        ]

    def format_board(self) -> str:
        """Render the board with coordinate labels for terminal display."""
        header = " ".join(f"{x:2d}" for x in range(self.width))
        out = ["   " + header, "   " + "-" * (3 * self.width - 1)]
        for y in range(self.height):
            row = " ".join(f" {self.cell(x, y).symbol()}" for x in range(self.width))
            out.append(f"{y:2d} |" + row)
        return "\n".join(out)
