"""Exact backtracking enumeration of the hazard placements of one cluster."""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from .clusters import Cluster
from .errors import AnalysisCancelled, Contradiction, SearchLimitExceeded
from .utils import Coord

_logger = logging.getLogger(__name__)

UNASSIGNED = -1
CLEAR = 0
HAZARD = 1


@dataclass(frozen=True)
class ClusterSolution:
    """
    Search outcome for one cluster.

    Attributes:
        cells: Cluster cells, aligned with `hazard_counts`.
        hazard_counts: Per cell, the number of solutions placing a hazard there.
        solutions_count: Number of consistent assignments found (> 0).
        nodes_explored: Tentative assignments tried during the search.
        exact: False iff a search cap was reached, in which case the counts
            may describe a partial sample. Reaching `max_solutions` marks the
            result inexact even when no further solution exists, since the
            remaining search space is left unexplored.
    """

    cells: Tuple[Coord, ...]
    hazard_counts: Tuple[int, ...]
    solutions_count: int
    nodes_explored: int
    exact: bool = True

    @property
    def expected_hazards(self) -> float:
        """Mean number of hazards per solution."""
        return sum(self.hazard_counts) / self.solutions_count

    def probabilities(self) -> Dict[Coord, float]:
        """Return each cell's hazard percentage in [0, 100]."""
        s = self.solutions_count
        return {
            cell: count / s * 100.0
            for cell, count in zip(self.cells, self.hazard_counts)
        }


class ClusterSolver:
    """
    Enumerate every hazard/clear assignment of a cluster that satisfies all of
    its constraints.

    Cells get a local integer index once; the assignment is a list indexed by
    it. The search walks a fixed cell order (most-constrained first, ties by
    cluster order), tries clear then hazard at each node, and rescans every
    constraint of the cluster after each tentative assignment. It runs on an
    explicit frame stack, so deep clusters never hit the recursion limit and
    caps or cancellation are only checked between search nodes.
    """

    def __init__(
        self,
        cluster: Cluster,
        max_nodes: Union[int, float] = float("inf"),
        max_solutions: Union[int, float] = float("inf"),
        order_cells: bool = True,
        cancel_event: Optional[threading.Event] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """
        Args:
            cluster: The cluster to enumerate.
            max_nodes: Upper bound on tentative assignments; the search stops
                and reports an inexact result when reached.
            max_solutions: Upper bound on accepted solutions. Once the count
                reaches it the search stops and the result is inexact.
            order_cells: If False, search in cluster order instead of the
                most-constrained-first heuristic. Never changes the result.
            cancel_event: Checked at every search node; when set, the search
                raises AnalysisCancelled.
            stop_event: Second event with the same effect, set by whoever
                runs sibling searches; never the caller's own event.
        """
        if not cluster.cells:
            raise ValueError("Cannot solve an empty cluster.")
        if max_nodes <= 0 or max_solutions <= 0:
            raise ValueError("max_nodes and max_solutions must be positive.")

        self.cluster = cluster
        self.max_nodes = max_nodes
        self.max_solutions = max_solutions
        self._events: Tuple[threading.Event, ...] = tuple(
            e for e in (cancel_event, stop_event) if e is not None
        )

        index: Dict[Coord, int] = {cell: i for i, cell in enumerate(cluster.cells)}

        # Constraints rewritten over local indices.
        self._constraints: List[Tuple[Tuple[int, ...], int]] = [
            (tuple(index[t] for t in c.targets), c.required_count)
            for c in cluster.constraints
        ]

        degree = [0] * len(cluster.cells)
        for targets, _ in self._constraints:
            for i in targets:
                degree[i] += 1

        self._order: List[int] = list(range(len(cluster.cells)))
        if order_cells:
            # sort() is stable, so ties keep cluster order.
            self._order.sort(key=lambda i: -degree[i])

    def _is_consistent(self, assignment: List[int]) -> bool:
        """Check every constraint can still be met by the partial assignment."""
        for targets, required in self._constraints:
            placed = 0
            pending = 0
            for i in targets:
                v = assignment[i]
                if v == HAZARD:
                    placed += 1
                elif v == UNASSIGNED:
                    pending += 1
            if placed > required or placed + pending < required:
                return False
        return True

    def solve(self) -> ClusterSolution:
        """
        Run the enumeration.

        Returns:
            The per-cell hazard counters and the solution count.

        Raises:
            Contradiction: The search space was exhausted without a solution.
            SearchLimitExceeded: A cap stopped the search before any solution.
            AnalysisCancelled: The cancel event was set during the search.
        """
        n = len(self._order)
        order = self._order
        assignment: List[int] = [UNASSIGNED] * n
        hazard_counts: List[int] = [0] * n
        # next_value[d]: the value to try next for the cell at depth d.
        next_value: List[int] = [CLEAR] * n

        solutions = 0
        nodes = 0
        truncated = False
        depth = 0

        while depth >= 0:
            if next_value[depth] > HAZARD:
                # Both values tried: undo and backtrack.
                assignment[order[depth]] = UNASSIGNED
                depth -= 1
                continue

            if any(e.is_set() for e in self._events):
                raise AnalysisCancelled("Analysis cancelled during search.")
            if nodes >= self.max_nodes or solutions >= self.max_solutions:
                truncated = True
                break

            value = next_value[depth]
            next_value[depth] += 1
            assignment[order[depth]] = value
            nodes += 1

            if not self._is_consistent(assignment):
                continue

            if depth == n - 1:
                solutions += 1
                for i in range(n):
                    if assignment[i] == HAZARD:
                        hazard_counts[i] += 1
                continue

            depth += 1
            next_value[depth] = CLEAR

        if truncated:
            _logger.warning(
                "Search cap hit on a %d-cell cluster after %d nodes and %d "
                "solutions; probabilities are approximate",
                n,
                nodes,
                solutions,
            )
        else:
            _logger.debug(
                "Cluster of %d cells: %d solutions in %d nodes", n, solutions, nodes
            )

        if solutions == 0:
            if truncated:
                raise SearchLimitExceeded(
                    f"Search cap reached on a {n}-cell cluster before any solution."
                )
            raise Contradiction("No hazard placement satisfies all clues.")

        return ClusterSolution(
            cells=self.cluster.cells,
            hazard_counts=tuple(hazard_counts),
            solutions_count=solutions,
            nodes_explored=nodes,
            exact=not truncated,
        )
