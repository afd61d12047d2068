import pytest

from hazardprob import Board, ClusterSolution, ProbabilityAnalyzer, aggregate_probabilities
from hazardprob.aggregator import background_percent


def _analyze(rows, budget, **options):
    board = Board.from_rows(rows, hazard_budget=budget)
    return ProbabilityAnalyzer(**options).analyze(board).probabilities


def test_no_clues_spreads_the_budget_uniformly():
    probs = _analyze(["...", "...", "..."], budget=3)
    assert len(probs) == 9
    assert all(p == pytest.approx(100 / 3) for p in probs.values())


def test_background_is_clamped_to_100():
    probs = _analyze([".."], budget=5)
    assert probs == {(0, 0): 100.0, (1, 0): 100.0}


def test_clue_equal_to_neighbor_count_gives_certain_hazards():
    probs = _analyze(["...", ".8.", "..."], budget=8)
    assert len(probs) == 8
    assert set(probs.values()) == {100.0}


def test_zero_clue_gives_certain_clears():
    probs = _analyze(["....", ".0..", "...."], budget=3)
    for y in range(3):
        for x in range(3):
            if (x, y) != (1, 1):
                assert probs[(x, y)] == 0.0
    # The three cells of the last column are background and hold the budget.
    assert [probs[(3, y)] for y in range(3)] == [100.0, 100.0, 100.0]


def test_one_by_three_row():
    probs = _analyze(["1.."], budget=1)
    assert probs == {(1, 0): 100.0, (2, 0): 0.0}


def test_clue_one_with_two_hidden_neighbors():
    probs = _analyze([".1."], budget=1)
    assert probs == {(0, 0): 50.0, (2, 0): 50.0}


def test_flags_count_against_the_budget():
    probs = _analyze(["F1..."], budget=2)
    # The clue is satisfied by the flag; one hazard is left for 2 background cells.
    assert probs == {(2, 0): 0.0, (3, 0): 50.0, (4, 0): 50.0}


def test_clusters_are_independent():
    combined = _analyze([".1.1...2."], budget=4)
    left = _analyze([".1.1."], budget=2)
    right = _analyze([".2."], budget=2)

    for (x, y), p in left.items():
        assert combined[(x, y)] == pytest.approx(p)
    for (x, y), p in right.items():
        assert combined[(x + 6, y)] == pytest.approx(p)


def test_background_uses_expected_cluster_hazards():
    board = Board.from_rows(["......"], hazard_budget=3)
    solution = ClusterSolution(
        cells=((0, 0), (1, 0), (2, 0)),
        hazard_counts=(1, 1, 1),
        solutions_count=2,
        nodes_explored=6,
    )
    probs = aggregate_probabilities(board, [solution], [(3, 0), (4, 0), (5, 0)])
    assert probs[(0, 0)] == 50.0
    # 3 - 1.5 expected hazards spread over 3 background cells.
    assert probs[(3, 0)] == pytest.approx(50.0)


def test_background_never_goes_negative():
    board = Board.from_rows(["...."], hazard_budget=1)
    solution = ClusterSolution(
        cells=((0, 0), (1, 0)), hazard_counts=(1, 1), solutions_count=1, nodes_explored=2
    )
    assert background_percent(board, [solution], 2) == 0.0


def test_background_percent_needs_cells():
    board = Board.from_rows(["."], hazard_budget=1)
    with pytest.raises(ValueError):
        background_percent(board, [], 0)
