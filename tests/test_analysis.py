import matplotlib.pyplot as plt

from hazardprob import (
    Board,
    analyze_board,
    format_probability_grid,
    measure_calibration,
    run_analysis_level_benchmark,
    run_analysis_many_tests,
    run_analysis_single_test,
)


def test_format_probability_grid():
    board = Board.from_rows(["1..F"], hazard_budget=2)
    text = format_probability_grid(board, analyze_board(board), show_coords=False)
    assert text.split() == ["1", "100", "0", "F"]


def test_format_probability_grid_with_coords():
    board = Board.from_rows([".1.", "..."], hazard_budget=1)
    lines = format_probability_grid(board, analyze_board(board)).splitlines()
    assert len(lines) == 4
    assert lines[2].startswith(" 0 |")


def test_single_test_is_reproducible():
    a = run_analysis_single_test(9, 9, 10, reveals=2, seed=11)
    b = run_analysis_single_test(9, 9, 10, reveals=2, seed=11)
    a.pop("elapsed")
    b.pop("elapsed")
    assert a == b
    assert a["frontier_size"] + a["background_size"] == a["hidden_count"]
    assert 0.0 <= a["brier_score"] <= 1.0


def test_many_tests_averages():
    stats = run_analysis_many_tests(9, 9, 10, runs=4, reveals=2, seed=3)
    assert 0.0 <= stats["exact_rate"] <= 1.0
    assert stats["max_elapsed"] >= stats["avg_elapsed"]
    assert "avg_nodes_explored" in stats


def test_calibration_table_accounts_for_every_sample():
    calibration = measure_calibration(9, 9, 10, runs=4, reveals=2, seed=5)
    assert calibration["samples"] > 0
    assert 0.0 <= calibration["brier_score"] <= 1.0
    assert sum(row[4] for row in calibration["table"]) == calibration["samples"]


def test_level_benchmark_without_showing_plots():
    results = run_analysis_level_benchmark(1, reveals=1, seed=2, max_nodes=10_000, show_plots=False)
    plt.close("all")
    assert set(results) == {"beginner", "intermediate", "expert"}
    for stats in results.values():
        assert "avg_frontier_size" in stats
