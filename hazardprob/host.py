"""Execution host: runs the probability pipeline on board snapshots."""

import asyncio
import logging
import threading
import time
from concurrent.futures import (
    FIRST_EXCEPTION,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
    cast,
)

import numpy as np

from .aggregator import aggregate_probabilities
from .board import Board
from .clusters import Cluster, extract_clusters, partition_frontier
from .constraints import build_constraints
from .errors import AnalysisError
from .solver import ClusterSolution, ClusterSolver
from .utils import Coord

_logger = logging.getLogger(__name__)

BoardInput = Union[Board, Mapping[str, Any]]


@dataclass(frozen=True)
class AnalysisResult:
    """
    Hazard percentages for every hidden cell of one board snapshot.

    Attributes:
        width: Board width.
        height: Board height.
        probabilities: (x, y) -> percentage in [0, 100], one per hidden cell.
        approximate_cells: Cells whose percentage comes from a capped search
            (directly, or through the background ratio).
        frontier_size: Hidden cells touched by at least one constraint.
        background_size: Hidden cells touched by none.
        cluster_sizes: Cell count of every cluster, in extraction order.
        solutions_counts: Solution count of every cluster, same order.
        nodes_explored: Total search nodes over all clusters.
        elapsed: Wall-clock seconds spent in the pipeline.
    """

    width: int
    height: int
    probabilities: Dict[Coord, float]
    approximate_cells: FrozenSet[Coord] = frozenset()
    frontier_size: int = 0
    background_size: int = 0
    cluster_sizes: Tuple[int, ...] = ()
    solutions_counts: Tuple[int, ...] = ()
    nodes_explored: int = 0
    elapsed: float = field(default=0.0, compare=False)

    @property
    def exact(self) -> bool:
        """True iff no search cap triggered anywhere."""
        return not self.approximate_cells

    def results(self) -> List[Dict[str, Any]]:
        """Return one outbound result entry per hidden cell, row-major."""
        return [
            {
                "x": x,
                "y": y,
                "percent": self.probabilities[(x, y)],
                "exact": (x, y) not in self.approximate_cells,
            }
            for x, y in sorted(self.probabilities, key=lambda c: (c[1], c[0]))
        ]

    def to_payload(self) -> Dict[str, Any]:
        """Return the outbound `ok: true` form of this result."""
        return {"ok": True, "exact": self.exact, "results": self.results()}

    def as_grid(self) -> np.ndarray:
        """Return a (height, width) float array; non-hidden cells are NaN."""
        grid = np.full((self.height, self.width), np.nan)
        for (x, y), pct in self.probabilities.items():
            grid[y, x] = pct
        return grid


class ProbabilityAnalyzer:
    """
    Runs Builder -> Partitioner -> Extractor -> Solver -> Aggregator on one
    board snapshot and returns a fresh AnalysisResult. Holds configuration
    only; nothing is kept between calls.
    """

    def __init__(
        self,
        max_nodes: Union[int, float] = float("inf"),
        max_solutions: Union[int, float] = float("inf"),
        parallel_clusters: bool = False,
        max_workers: Optional[int] = None,
    ) -> None:
        """
        Args:
            max_nodes: Per-cluster cap on search nodes; unlimited by default.
            max_solutions: Per-cluster cap on accepted solutions; unlimited
                by default.
            parallel_clusters: If True, solve clusters concurrently on a
                thread pool; each cluster keeps private search state.
            max_workers: Thread pool size when parallel_clusters is set.

        Raises:
            ValueError: If a cap or max_workers is non-positive.
        """
        if max_nodes <= 0:
            raise ValueError("max_nodes must be positive.")
        if max_solutions <= 0:
            raise ValueError("max_solutions must be positive.")
        if max_workers is not None and max_workers <= 0:
            raise ValueError("max_workers must be positive.")

        self.max_nodes = max_nodes
        self.max_solutions = max_solutions
        self.parallel_clusters = parallel_clusters
        self.max_workers = max_workers

    def _solve_cluster(
        self,
        cluster: Cluster,
        cancel_event: Optional[threading.Event],
        stop_event: Optional[threading.Event] = None,
    ) -> ClusterSolution:
        return ClusterSolver(
            cluster,
            max_nodes=self.max_nodes,
            max_solutions=self.max_solutions,
            cancel_event=cancel_event,
            stop_event=stop_event,
        ).solve()

    def _solve_clusters(
        self, clusters: List[Cluster], cancel_event: Optional[threading.Event]
    ) -> List[ClusterSolution]:
        if not self.parallel_clusters or len(clusters) < 2:
            return [self._solve_cluster(c, cancel_event) for c in clusters]

        # Private to this call; the caller's event is only ever read.
        stop_event = threading.Event()
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self._solve_cluster, c, cancel_event, stop_event)
                for c in clusters
            ]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for f in futures:
                if f in done and f.exception() is not None:
                    # Stop the sibling searches before leaving the pool.
                    stop_event.set()
                    raise cast(BaseException, f.exception())
            return [f.result() for f in futures]

    def analyze(
        self, board: Board, cancel_event: Optional[threading.Event] = None
    ) -> AnalysisResult:
        """
        Compute hazard percentages for every hidden cell of a board.

        Raises:
            TooManyFlags, InsufficientSpace: The clues are invalid; raised
                before any search.
            Contradiction: Some cluster has no consistent assignment.
            SearchLimitExceeded: A cap stopped a cluster with no solution.
            AnalysisCancelled: cancel_event was set mid-search.
        """
        started = time.perf_counter()

        constraints = build_constraints(board)
        frontier, background = partition_frontier(board, constraints)
        clusters = extract_clusters(frontier, constraints)
        solutions = self._solve_clusters(clusters, cancel_event)
        probabilities = aggregate_probabilities(board, solutions, background)

        approximate: Set[Coord] = set()
        for solution in solutions:
            if not solution.exact:
                approximate.update(solution.cells)
        if approximate:
            approximate.update(background)

        result = AnalysisResult(
            width=board.width,
            height=board.height,
            probabilities=probabilities,
            approximate_cells=frozenset(approximate),
            frontier_size=len(frontier),
            background_size=len(background),
            cluster_sizes=tuple(len(c) for c in clusters),
            solutions_counts=tuple(s.solutions_count for s in solutions),
            nodes_explored=sum(s.nodes_explored for s in solutions),
            elapsed=time.perf_counter() - started,
        )
        _logger.info(
            "Analysed %dx%d board: %d hidden, %d clusters, %d nodes, %.3fs%s",
            board.width,
            board.height,
            len(probabilities),
            len(clusters),
            result.nodes_explored,
            result.elapsed,
            "" if result.exact else " (approximate)",
        )
        return result


def _coerce_board(board: BoardInput) -> Board:
    if isinstance(board, Board):
        return board
    if isinstance(board, Mapping):
        return Board.from_payload(board)
    raise TypeError(f"Expected a Board or a board payload, got {type(board)!r}.")


def _analyze_in_worker(analyzer: ProbabilityAnalyzer, board: Board) -> AnalysisResult:
    """Process-pool entry point (events cannot cross process boundaries)."""
    return analyzer.analyze(board)


class AnalysisHost:
    """
    Runs analyses off the caller's thread and delivers results asynchronously.

    The board is captured by value when a request is submitted. The host does
    no queueing or merging of its own; callers should keep at most one
    request in flight per board they are editing.
    """

    def __init__(
        self,
        analyzer: Optional[ProbabilityAnalyzer] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        """
        Args:
            analyzer: Pipeline configuration; defaults to exact, unlimited.
            executor: Where analyses run. Defaults to a private single-worker
                thread pool, which the host shuts down on close.
        """
        self.analyzer: ProbabilityAnalyzer = analyzer or ProbabilityAnalyzer()
        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="hazardprob"
        )
        self._cancel_event: Optional[threading.Event] = None

    def submit(self, board: BoardInput) -> "Future[AnalysisResult]":
        """
        Schedule an analysis.

        Args:
            board: A Board, or an inbound payload dict which is parsed before
                this method returns.

        Returns:
            A future resolving to an AnalysisResult or raising AnalysisError.

        Raises:
            ValueError: If a payload dict is malformed.
        """
        snapshot = _coerce_board(board)
        if isinstance(self._executor, ProcessPoolExecutor):
            self._cancel_event = None
            return self._executor.submit(_analyze_in_worker, self.analyzer, snapshot)

        event = threading.Event()
        self._cancel_event = event
        return self._executor.submit(self.analyzer.analyze, snapshot, event)

    async def analyze_async(self, board: BoardInput) -> AnalysisResult:
        """Await an analysis without blocking the running event loop."""
        return await asyncio.wrap_future(self.submit(board))

    def cancel(self) -> bool:
        """
        Ask the most recent request to stop at its next search node.

        Returns:
            True if a cancellable request was signalled.
        """
        if self._cancel_event is None:
            return False
        self._cancel_event.set()
        return True

    def close(self, wait: bool = True) -> None:
        """Shut down the executor if this host created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "AnalysisHost":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def analyze_board(board: BoardInput, **options: Any) -> AnalysisResult:
    """Synchronously analyse a board; options go to ProbabilityAnalyzer."""
    return ProbabilityAnalyzer(**options).analyze(_coerce_board(board))


def analyze_payload(
    payload: Mapping[str, Any], analyzer: Optional[ProbabilityAnalyzer] = None
) -> Dict[str, Any]:
    """
    Map an inbound board payload to an outbound result payload.

    Analysis failures become `{"ok": False, "reason": ...}`; malformed input
    still raises ValueError.
    """
    board = Board.from_payload(payload)
    try:
        result = (analyzer or ProbabilityAnalyzer()).analyze(board)
    except AnalysisError as e:
        _logger.info("Analysis failed: %s (%s)", e.reason, e)
        return e.to_payload()
    return result.to_payload()
