"""Turn per-cluster solution counts into per-cell hazard percentages."""

import logging
from typing import Dict, Sequence

from .board import Board
from .solver import ClusterSolution
from .utils import Coord

_logger = logging.getLogger(__name__)


def background_percent(
    board: Board, solutions: Sequence[ClusterSolution], background_size: int
) -> float:
    """
    Uniform hazard percentage of every background cell.

    The hazards not already flagged or expected inside the clusters are
    spread evenly over the background. This is a simplification: each
    cluster's solutions are weighted equally instead of by how many ways the
    leftover hazards fit in the background, and the global hazard count is
    not enforced jointly across clusters.
    """
    if background_size <= 0:
        raise ValueError("background_size must be positive.")

    expected = sum(s.expected_hazards for s in solutions)
    remaining = max(0.0, board.hazard_budget - board.flagged_count - expected)
    return min(100.0, max(0.0, remaining / background_size * 100.0))


def aggregate_probabilities(
    board: Board,
    solutions: Sequence[ClusterSolution],
    background: Sequence[Coord],
) -> Dict[Coord, float]:
    """
    Combine cluster results and the background ratio into one map.

    Args:
        board: The analysed snapshot (hazard budget and flags).
        solutions: One solved ClusterSolution per cluster.
        background: Hidden cells not touched by any constraint.

    Returns:
        Percentage in [0, 100] for every hidden cell of the board.
    """
    probabilities: Dict[Coord, float] = {}
    for solution in solutions:
        probabilities.update(solution.probabilities())

    if background:
        pct = background_percent(board, solutions, len(background))
        _logger.debug("Background percent %.3f over %d cells", pct, len(background))
        for coord in background:
            probabilities[coord] = pct

    return probabilities
