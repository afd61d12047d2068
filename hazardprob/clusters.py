"""Frontier partitioning and extraction of independent constraint clusters."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Dict, List, Sequence, Set, Tuple

from .board import Board
from .constraints import Constraint
from .utils import Coord

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cluster:
    """
    A maximal set of frontier cells linked through shared constraints.

    Attributes:
        cells: Member cells, in frontier order.
        constraints: Every constraint targeting a member; all their targets
            are members too.
    """

    cells: Tuple[Coord, ...]
    constraints: Tuple[Constraint, ...]

    def __len__(self) -> int:
        return len(self.cells)


def partition_frontier(
    board: Board, constraints: Sequence[Constraint]
) -> Tuple[List[Coord], List[Coord]]:
    """
    Split the hidden cells of a board into frontier and background.

    Returns:
        Tuple of (frontier, background), both row-major. Frontier cells are
        targeted by at least one constraint; background cells by none.
    """
    targeted: Set[Coord] = set()
    for c in constraints:
        targeted.update(c.targets)

    frontier: List[Coord] = []
    background: List[Coord] = []
    for coord in board.hidden_coords():
        if coord in targeted:
            frontier.append(coord)
        else:
            background.append(coord)

    _logger.debug(
        "Frontier has %d cells, background %d", len(frontier), len(background)
    )
    return frontier, background


def extract_clusters(
    frontier: Sequence[Coord], constraints: Sequence[Constraint]
) -> List[Cluster]:
    """
    Group frontier cells into connected components of the constraint graph.

    Two cells are linked iff some constraint targets both. Components are
    found with an explicit-stack DFS and emitted in order of their first
    frontier cell.
    """
    # Bipartite view: frontier cell -> indices of constraints targeting it.
    touching: DefaultDict[Coord, List[int]] = defaultdict(list)
    for idx, c in enumerate(constraints):
        for t in c.targets:
            touching[t].append(idx)

    order: Dict[Coord, int] = {cell: i for i, cell in enumerate(frontier)}
    seen_cells: Set[Coord] = set()
    clusters: List[Cluster] = []

    for start in frontier:
        if start in seen_cells:
            continue

        stack: List[Coord] = [start]
        seen_cells.add(start)
        seen_constraints: Set[int] = set()
        members: List[Coord] = []

        while stack:
            cell = stack.pop()
            members.append(cell)

            for idx in touching[cell]:
                if idx in seen_constraints:
                    continue
                seen_constraints.add(idx)

                for t in constraints[idx].targets:
                    if t not in seen_cells:
                        seen_cells.add(t)
                        stack.append(t)

        members.sort(key=lambda c: order[c])
        clusters.append(
            Cluster(
                cells=tuple(members),
                constraints=tuple(constraints[i] for i in sorted(seen_constraints)),
            )
        )

    _logger.debug(
        "Extracted %d clusters (sizes %s)",
        len(clusters),
        [len(cl) for cl in clusters],
    )
    return clusters
