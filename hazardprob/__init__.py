"""
Hazard Probability Engine

Computes, for every hidden cell of a hazard-counting grid puzzle, the
probability that it conceals a hazard:
- Constraint building: one hazard-count requirement per revealed clue
- Frontier partitioning: constrained cells versus unconstrained background
- Cluster extraction: independent components of the constraint graph
- Exact enumeration: backtracking over every consistent placement per cluster
- Aggregation: per-cell percentages plus a uniform background ratio
"""

from .board import Board, Cell, CellStatus
from .constraints import Constraint, build_constraints
from .clusters import Cluster, extract_clusters, partition_frontier
from .solver import ClusterSolution, ClusterSolver
from .aggregator import aggregate_probabilities
from .errors import (
    AnalysisCancelled,
    AnalysisError,
    Contradiction,
    InsufficientSpace,
    SearchLimitExceeded,
    TooManyFlags,
)
from .host import (
    AnalysisHost,
    AnalysisResult,
    ProbabilityAnalyzer,
    analyze_board,
    analyze_payload,
)
from .engine import HazardField
from .analysis import (
    format_probability_grid,
    measure_calibration,
    run_analysis_level_benchmark,
    run_analysis_many_tests,
    run_analysis_single_test,
)

__version__ = "1.0.0"

__all__ = [
    # Board model
    "Board",
    "Cell",
    "CellStatus",
    # Pipeline stages
    "Constraint",
    "build_constraints",
    "Cluster",
    "partition_frontier",
    "extract_clusters",
    "ClusterSolution",
    "ClusterSolver",
    "aggregate_probabilities",
    # Errors
    "AnalysisError",
    "TooManyFlags",
    "InsufficientSpace",
    "Contradiction",
    "SearchLimitExceeded",
    "AnalysisCancelled",
    # Execution host
    "ProbabilityAnalyzer",
    "AnalysisResult",
    "AnalysisHost",
    "analyze_board",
    "analyze_payload",
    # Analysis functions
    "HazardField",
    "format_probability_grid",
    "run_analysis_single_test",
    "run_analysis_many_tests",
    "run_analysis_level_benchmark",
    "measure_calibration",
]
