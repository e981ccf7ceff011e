from __future__ import annotations

import numpy as np
import pytest

from proofrank.rank import Comparisons
from proofrank.rank._base import (
    build_pairwise_wins,
    validate_positive_float,
    validate_positive_int,
)


def test_from_names_uses_natural_item_order() -> None:
    comps = Comparisons.from_names(["Proof10", "Proof2"], ["Proof1", "Proof10"])

    assert comps.items == ("Proof1", "Proof2", "Proof10")
    np.testing.assert_array_equal(comps.winner, [2, 1])
    np.testing.assert_array_equal(comps.loser, [0, 2])
    assert comps.n_items == 3
    assert comps.n_comparisons == 2
    assert comps.judges.tolist() == [""]


def test_from_names_keeps_uncompared_vocabulary_items() -> None:
    comps = Comparisons.from_names(["A"], ["B"], judges=["j1"], items=["C", "B", "A"])

    assert comps.items == ("C", "B", "A")
    assert comps.winner_names() == ["A"]
    assert comps.loser_names() == ["B"]


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"winners": ["A", "B"], "losers": ["B"]}, "equal length"),
        ({"winners": ["A"], "losers": ["Z"], "items": ["A", "B"]}, "unknown items"),
        ({"winners": ["A"], "losers": ["B"], "items": ["A", "A", "B"]}, "duplicates"),
        ({"winners": ["A"], "losers": ["A"], "items": ["A", "B"]}, "same item"),
        ({"winners": ["A"], "losers": ["A"]}, "at least 2 items"),
    ],
)
def test_from_names_validation(kwargs: dict, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        Comparisons.from_names(**kwargs)


@pytest.mark.parametrize(
    ("winner", "loser", "match"),
    [
        (np.array([[0]]), np.array([[1]]), "must be 1D arrays"),
        (np.array([0.0]), np.array([1.0]), "must contain integer indices"),
        (np.array([0]), np.array([5]), r"indices must lie in \[0, 2\]"),
    ],
)
def test_comparisons_index_validation(winner, loser, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        Comparisons(
            items=("A", "B", "C"),
            winner=winner,
            loser=loser,
            judge=np.zeros(np.shape(winner), dtype=object),
        )


def test_build_pairwise_wins_counts_repeats() -> None:
    comps = Comparisons.from_names(["A", "A", "B", "C"], ["B", "B", "A", "A"])
    wins = build_pairwise_wins(comps)

    expected = np.array(
        [
            [0.0, 2.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
        ]
    )
    np.testing.assert_array_equal(wins, expected)


def test_scalar_validators() -> None:
    assert validate_positive_int("runs", np.int64(3)) == 3
    assert validate_positive_float("k", 2) == 2.0

    with pytest.raises(TypeError, match="runs must be an integer"):
        validate_positive_int("runs", True)
    with pytest.raises(TypeError, match="runs must be an integer"):
        validate_positive_int("runs", 2.0)
    with pytest.raises(ValueError, match="runs must be >= 1"):
        validate_positive_int("runs", 0)
    with pytest.raises(ValueError, match="k must be a positive finite scalar"):
        validate_positive_float("k", float("nan"))
