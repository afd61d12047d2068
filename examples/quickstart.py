"""
Quickstart example for the Hazard Probability Engine.

This script demonstrates basic usage of the analyzer.
"""

from hazardprob import (
    AnalysisError,
    AnalysisHost,
    Board,
    ProbabilityAnalyzer,
    analyze_payload,
    format_probability_grid,
    run_analysis_many_tests,
)


def main():
    print("=" * 60)
    print("Hazard Probability Engine - Quickstart Example")
    print("=" * 60)

    # Example 1: Analyse a small hand-written position
    print("\n1. Analysing a 5x4 position with 4 hazards...")
    print("-" * 60)

    board = Board.from_rows(
        [
            "01...",
            "01...",
            "00...",
            "00...",
        ],
        hazard_budget=4,
    )
    print(board.format_board())

    result = ProbabilityAnalyzer().analyze(board)
    print()
    print(format_probability_grid(board, result))
    print(f"Clusters: {len(result.cluster_sizes)}, nodes: {result.nodes_explored}")

    # Example 2: JSON payload in, JSON payload out
    print("\n2. Payload round trip...")
    print("-" * 60)

    payload = {
        "width": 3,
        "height": 1,
        "hazardBudget": 1,
        "cells": [
            {"status": "revealed", "value": 1},
            {"status": "hidden"},
            {"status": "hidden"},
        ],
    }
    print(analyze_payload(payload))

    # Example 3: Off-thread analysis and a contradictory board
    print("\n3. Contradictory board through the execution host...")
    print("-" * 60)

    bad = Board.from_rows([".2.0"], hazard_budget=2)
    with AnalysisHost() as host:
        future = host.submit(bad)
        try:
            future.result()
        except AnalysisError as e:
            print(f"Failed: {e.to_payload()}")

    # Example 4: Random positions
    print("\n4. Statistics over 20 random intermediate positions...")
    print("-" * 60)

    stats = run_analysis_many_tests(16, 16, 40, runs=20, reveals=3, seed=7)
    print(f"Average frontier size: {stats['avg_frontier_size']:.1f}")
    print(f"Average clusters: {stats['avg_clusters_count']:.1f}")
    print(f"Average search nodes: {stats['avg_nodes_explored']:.0f}")
    print(f"Average Brier score: {stats['avg_brier_score']:.3f}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
