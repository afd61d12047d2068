"""Constraint builder: one hazard-count requirement per revealed clue."""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .board import Board
from .errors import InsufficientSpace, TooManyFlags
from .utils import Coord

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Constraint:
    """
    Exactly `required_count` of `targets` conceal a hazard.

    Attributes:
        owner: The revealed clue cell this constraint comes from.
        targets: Distinct hidden neighbors of the owner, in neighborhood order.
        required_count: Clue minus the owner's flagged neighbors.
    """

    owner: Coord
    targets: Tuple[Coord, ...]
    required_count: int


def build_constraints(board: Board) -> List[Constraint]:
    """
    Derive the constraint system of a board.

    Every revealed cell with at least one hidden neighbor yields a constraint,
    including clue 0 (which forces its hidden neighbors clear). Building them
    only for clues above 0 would leave the neighbors of a revealed 0 in the
    background, e.g. "0..." with one hazard would give (1, 0) 33% instead of
    0%. Clues without hidden neighbors are skipped unchecked. Constraints are
    ordered row-major by owner.

    Raises:
        TooManyFlags: A clue has more flagged neighbors than its value.
        InsufficientSpace: A clue needs more hazards than it has hidden
            neighbors.
    """
    constraints: List[Constraint] = []

    for cell in board.cells:
        if not cell.is_revealed:
            continue

        flag_count = 0
        hidden: List[Coord] = []
        for nx, ny in board.neighbors(cell.x, cell.y):
            nbr = board.cell(nx, ny)
            if nbr.is_flagged:
                flag_count += 1
            elif nbr.is_hidden:
                hidden.append((nx, ny))

        # Fully determined clues are not checked.
        if not hidden:
            continue

        required = int(cell.value or 0) - flag_count
        if required < 0:
            raise TooManyFlags(
                f"Too many flags around ({cell.x},{cell.y}).", at=cell.coord
            )
        if required > len(hidden):
            raise InsufficientSpace(
                f"Not enough hidden cells around ({cell.x},{cell.y}).",
                at=cell.coord,
            )

        constraints.append(Constraint(cell.coord, tuple(hidden), required))

    _logger.debug("Built %d constraints", len(constraints))
    return constraints
