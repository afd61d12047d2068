import asyncio
import threading
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor

import numpy as np
import pytest

from hazardprob import (
    AnalysisCancelled,
    AnalysisHost,
    Board,
    Contradiction,
    ProbabilityAnalyzer,
    analyze_board,
    analyze_payload,
)

ROW_PAYLOAD = {
    "width": 3,
    "height": 1,
    "hazardBudget": 1,
    "cells": [
        {"status": "revealed", "value": 1},
        {"status": "hidden"},
        {"status": "hidden"},
    ],
}


def test_analyze_payload_success_shape():
    assert analyze_payload(ROW_PAYLOAD) == {
        "ok": True,
        "exact": True,
        "results": [
            {"x": 1, "y": 0, "percent": 100.0, "exact": True},
            {"x": 2, "y": 0, "percent": 0.0, "exact": True},
        ],
    }


def test_analyze_payload_reports_contradiction():
    board = Board.from_rows([".2.0"], hazard_budget=2)
    assert analyze_payload(board.to_payload()) == {
        "ok": False,
        "reason": "Contradiction",
    }


def test_analyze_payload_reports_validation_errors_with_location():
    board = Board.from_rows(["..", "F4"], hazard_budget=4)
    assert analyze_payload(board.to_payload()) == {
        "ok": False,
        "reason": "InsufficientSpace",
        "at": {"x": 1, "y": 1},
    }


def test_analyze_payload_still_raises_on_malformed_input():
    with pytest.raises(ValueError):
        analyze_payload({"width": 1, "height": 1, "hazardBudget": 0, "cells": []})


def test_results_are_row_major_and_cover_every_hidden_cell():
    board = Board.from_rows([".1.", "..F"], hazard_budget=2)
    result = analyze_board(board)
    coords = [(r["x"], r["y"]) for r in result.results()]
    assert coords == board.hidden_coords()


def test_as_grid_marks_non_hidden_cells_nan():
    result = analyze_board(Board.from_rows(["1.."], hazard_budget=1))
    grid = result.as_grid()
    assert grid.shape == (1, 3)
    assert np.isnan(grid[0, 0])
    assert grid[0, 1] == 100.0
    assert grid[0, 2] == 0.0


def test_result_statistics():
    result = analyze_board(Board.from_rows([".1.1...2."], hazard_budget=4))
    assert result.frontier_size == 5
    assert result.background_size == 1
    assert result.cluster_sizes == (3, 2)
    assert result.solutions_counts == (2, 1)
    assert result.nodes_explored > 0
    assert result.exact


def test_capped_analysis_is_tagged_approximate():
    board = Board.from_rows([".1.1..."], hazard_budget=3)
    result = ProbabilityAnalyzer(max_solutions=1).analyze(board)
    assert not result.exact
    payload = result.to_payload()
    assert payload["ok"] is True
    assert payload["exact"] is False
    assert all(entry["exact"] is False for entry in payload["results"])


def test_parallel_clusters_match_sequential():
    board = Board.from_rows([".1.1...2.", ".........", "1..1...1."], hazard_budget=6)
    sequential = ProbabilityAnalyzer().analyze(board)
    parallel = ProbabilityAnalyzer(parallel_clusters=True, max_workers=2).analyze(board)
    assert parallel.probabilities == sequential.probabilities


def test_parallel_clusters_propagate_contradiction():
    board = Board.from_rows([".2.0...1."], hazard_budget=3)
    with pytest.raises(Contradiction):
        ProbabilityAnalyzer(parallel_clusters=True).analyze(board)


def test_parallel_failure_leaves_caller_event_untouched():
    analyzer = ProbabilityAnalyzer(parallel_clusters=True)
    event = threading.Event()
    with pytest.raises(Contradiction):
        analyzer.analyze(Board.from_rows([".2.0...1."], hazard_budget=3), event)
    assert not event.is_set()

    # The same event still works for the next, unrelated request.
    result = analyzer.analyze(Board.from_rows([".1...1."], hazard_budget=2), event)
    assert result.exact
    assert result.cluster_sizes == (2, 2)
    assert result.probabilities[(3, 0)] == 0.0


def test_zero_clue_clears_its_hidden_neighbors():
    result = analyze_board(Board.from_rows(["0..."], hazard_budget=1))
    assert result.probabilities == {(1, 0): 0.0, (2, 0): 50.0, (3, 0): 50.0}


def test_cancel_event_stops_analysis():
    event = threading.Event()
    event.set()
    with pytest.raises(AnalysisCancelled):
        ProbabilityAnalyzer().analyze(Board.from_rows([".1."], hazard_budget=1), event)


@pytest.mark.parametrize(
    "options",
    [{"max_nodes": 0}, {"max_solutions": 0}, {"max_workers": 0}],
)
def test_invalid_configuration_is_rejected(options):
    with pytest.raises(ValueError):
        ProbabilityAnalyzer(**options)


def test_host_submit_matches_synchronous_analysis():
    board = Board.from_rows([".1.1.", "....."], hazard_budget=2)
    with AnalysisHost() as host:
        result = host.submit(board).result(timeout=30)
    assert result.probabilities == analyze_board(board).probabilities


def test_host_captures_payload_at_submit_time():
    payload = {
        "width": 3,
        "height": 1,
        "hazardBudget": 1,
        "cells": [dict(c) for c in ROW_PAYLOAD["cells"]],
    }
    with AnalysisHost() as host:
        future = host.submit(payload)
        payload["cells"][0] = {"status": "hidden"}
        payload["hazardBudget"] = 3
        result = future.result(timeout=30)
    assert result.probabilities == {(1, 0): 100.0, (2, 0): 0.0}


def test_host_delivers_errors_through_the_future():
    with AnalysisHost() as host:
        future = host.submit(Board.from_rows([".2.0"], hazard_budget=2))
        with pytest.raises(Contradiction):
            future.result(timeout=30)


def test_host_rejects_unknown_input():
    with AnalysisHost() as host:
        with pytest.raises(TypeError):
            host.submit(["1.."])  # type: ignore[arg-type]


def test_host_analyze_async():
    async def run():
        with AnalysisHost() as host:
            return await host.analyze_async(ROW_PAYLOAD)

    result = asyncio.run(run())
    assert result.probabilities == {(1, 0): 100.0, (2, 0): 0.0}


def test_host_cancel_stops_submitted_request():
    gate = threading.Event()
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        # Hold the only worker so the analysis is still pending when cancelled.
        executor.submit(gate.wait, 30)
        host = AnalysisHost(executor=executor)
        future = host.submit(Board.from_rows([".1.1.1.1."], hazard_budget=4))
        assert host.cancel() is True
        gate.set()
        with pytest.raises(AnalysisCancelled):
            future.result(timeout=30)
    finally:
        gate.set()
        executor.shutdown()


def test_host_cancel_only_affects_latest_request():
    with AnalysisHost() as host:
        host.submit(Board.from_rows([".1."], hazard_budget=1)).result(timeout=30)
        host.cancel()
        result = host.submit(Board.from_rows([".1."], hazard_budget=1)).result(timeout=30)
    assert result.probabilities == {(0, 0): 50.0, (2, 0): 50.0}


def test_host_cancel_without_request():
    with AnalysisHost() as host:
        assert host.cancel() is False
        host.submit(Board.from_rows([".1."], hazard_budget=1)).result(timeout=30)
        assert host.cancel() is True


def test_host_on_process_pool():
    board = Board.from_rows([".1.1."], hazard_budget=2)
    with ProcessPoolExecutor(max_workers=1) as pool:
        host = AnalysisHost(executor=pool)
        result = host.submit(board).result(timeout=60)
        host.close()
    assert result.probabilities == analyze_board(board).probabilities
