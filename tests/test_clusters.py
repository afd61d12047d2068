from hazardprob import (
    Board,
    HazardField,
    build_constraints,
    extract_clusters,
    partition_frontier,
)


def _clusters(rows, budget=1):
    board = Board.from_rows(rows, hazard_budget=budget)
    constraints = build_constraints(board)
    frontier, _ = partition_frontier(board, constraints)
    return extract_clusters(frontier, constraints)


def test_partition_splits_frontier_and_background():
    board = Board.from_rows(["1..."], hazard_budget=1)
    frontier, background = partition_frontier(board, build_constraints(board))
    assert frontier == [(1, 0)]
    assert background == [(2, 0), (3, 0)]


def test_no_clues_means_everything_is_background():
    board = Board.from_rows(["..", ".."], hazard_budget=1)
    frontier, background = partition_frontier(board, build_constraints(board))
    assert frontier == []
    assert background == [(0, 0), (1, 0), (0, 1), (1, 1)]
    assert extract_clusters(frontier, []) == []


def test_disjoint_clues_give_separate_clusters():
    clusters = _clusters([".1..1."])
    assert [c.cells for c in clusters] == [((0, 0), (2, 0)), ((3, 0), (5, 0))]
    assert [c.constraints[0].owner for c in clusters] == [(1, 0), (4, 0)]


def test_shared_targets_link_clues_transitively():
    (cluster,) = _clusters([".1.1.1."])
    assert cluster.cells == ((0, 0), (2, 0), (4, 0), (6, 0))
    assert [c.owner for c in cluster.constraints] == [(1, 0), (3, 0), (5, 0)]
    assert len(cluster) == 4


def test_clusters_partition_the_frontier_of_random_positions():
    for seed in range(5):
        field = HazardField(12, 10, 20, seed=seed)
        field.reveal(6, 5)
        field.reveal_random_safe(3)
        board = field.snapshot()

        constraints = build_constraints(board)
        frontier, background = partition_frontier(board, constraints)
        clusters = extract_clusters(frontier, constraints)

        seen = [cell for cluster in clusters for cell in cluster.cells]
        assert len(seen) == len(set(seen))
        assert set(seen) == set(frontier)
        assert not set(frontier) & set(background)

        for cluster in clusters:
            members = set(cluster.cells)
            for constraint in cluster.constraints:
                assert set(constraint.targets) <= members

        scoped = sum(len(cluster.constraints) for cluster in clusters)
        assert scoped == len(constraints)
