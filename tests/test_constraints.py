import pytest

from hazardprob import Board, Constraint, InsufficientSpace, TooManyFlags, build_constraints


def test_single_clue_targets_hidden_neighbors_in_order():
    board = Board.from_rows(["1.", ".."], hazard_budget=1)
    assert build_constraints(board) == [
        Constraint(owner=(0, 0), targets=((1, 0), (0, 1), (1, 1)), required_count=1)
    ]


def test_flags_reduce_required_count():
    board = Board.from_rows(["2F", ".."], hazard_budget=2)
    (constraint,) = build_constraints(board)
    assert constraint.targets == ((0, 1), (1, 1))
    assert constraint.required_count == 1


def test_zero_clue_yields_a_clear_constraint():
    board = Board.from_rows(["0.", ".."], hazard_budget=1)
    (constraint,) = build_constraints(board)
    assert constraint.required_count == 0
    assert len(constraint.targets) == 3


def test_fully_determined_clues_are_skipped():
    assert build_constraints(Board.from_rows(["1F"], hazard_budget=1)) == []
    assert build_constraints(Board.from_rows(["0F"], hazard_budget=1)) == []


def test_constraints_are_ordered_by_owner():
    board = Board.from_rows([".1.", "1.."], hazard_budget=1)
    owners = [c.owner for c in build_constraints(board)]
    assert owners == [(1, 0), (0, 1)]


def test_too_many_flags_names_the_clue():
    board = Board.from_rows(["1F", "F."], hazard_budget=2)
    with pytest.raises(TooManyFlags) as excinfo:
        build_constraints(board)
    assert excinfo.value.at == (0, 0)
    assert excinfo.value.to_payload() == {
        "ok": False,
        "reason": "TooManyFlags",
        "at": {"x": 0, "y": 0},
    }


def test_insufficient_space_names_the_clue():
    board = Board.from_rows(["3.", "11"], hazard_budget=3)
    with pytest.raises(InsufficientSpace) as excinfo:
        build_constraints(board)
    assert excinfo.value.at == (0, 0)
    assert excinfo.value.to_payload()["reason"] == "InsufficientSpace"
