from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from proofrank import data, rank
from proofrank.rank import Comparisons


def test_elo_seed_determinism(ordered_comparisons: Comparisons) -> None:
    out1 = rank.fit_elo_comparisons(ordered_comparisons, runs=50, seed=11)
    out2 = rank.fit_elo_comparisons(ordered_comparisons, runs=50, seed=11)
    out3 = rank.fit_elo_comparisons(ordered_comparisons, runs=50, seed=12)

    np.testing.assert_array_equal(out1.final, out2.final)
    np.testing.assert_array_equal(out1.trajectory, out2.trajectory)
    assert not np.array_equal(out1.final, out3.final)


def test_elo_shapes_and_conservation(ordered_comparisons: Comparisons) -> None:
    result = rank.fit_elo_comparisons(
        ordered_comparisons, runs=20, initial_rating=1000.0, seed=0
    )
    C = ordered_comparisons.n_comparisons

    assert result.final.shape == (20, 4)
    assert result.trajectory.shape == (C + 1, 4)
    assert result.expected_hits.shape == (20,)
    np.testing.assert_array_equal(result.trajectory[0], np.full(4, 1000.0))
    np.testing.assert_allclose(result.trajectory[-1], result.final[0])
    # Every update moves rating points from loser to winner
    np.testing.assert_allclose(result.final.sum(axis=1), 4000.0)
    np.testing.assert_allclose(result.trajectory.sum(axis=1), 4000.0)


def test_elo_mean_ratings_order_items(
    ordered_comparisons: Comparisons, rank_assertions
) -> None:
    result = rank.fit_elo_comparisons(ordered_comparisons, runs=200, seed=5)

    scores = result.scores()
    rank_assertions.assert_scores(scores, 4)
    rank_assertions.assert_strictly_ordered(scores)
    rank_assertions.assert_ranking_matches_scores(result.ranking(), scores)
    np.testing.assert_allclose(result.ratings(), result.mean_ratings())
    assert result.ratings(show_all=True) is result.final


def test_first_update_uses_k_over_two() -> None:
    result = rank.fit_elo(["A"], ["B"], runs=1, k=100.0, seed=0)

    np.testing.assert_allclose(result.final[0], [50.0, -50.0])
    assert result.reliability() == pytest.approx(0.5)


def test_elo_reliability(ordered_comparisons: Comparisons) -> None:
    result = rank.fit_elo_comparisons(ordered_comparisons, runs=100, seed=2)

    assert np.all((result.expected_hits >= 0.0) & (result.expected_hits <= 1.0))
    assert 0.5 < result.reliability() <= 1.0


def test_swapped_column_labels_give_identical_results(
    judgements: pd.DataFrame,
) -> None:
    relabelled = judgements.rename(columns={"winner": "loser", "loser": "winner"})

    straight = data.comparisons_from_frame(judgements)
    swapped = data.comparisons_from_frame(
        relabelled, winner_col="loser", loser_col="winner"
    )

    out1 = rank.fit_elo_comparisons(straight, runs=10, seed=3)
    out2 = rank.fit_elo_comparisons(swapped, runs=10, seed=3)
    np.testing.assert_array_equal(out1.final, out2.final)


def test_fit_elo_matches_comparisons_entry_point(
    ordered_comparisons: Comparisons,
) -> None:
    by_name = rank.fit_elo(
        ordered_comparisons.winner_names(),
        ordered_comparisons.loser_names(),
        runs=10,
        seed=4,
        items=ordered_comparisons.items,
    )
    by_index = rank.fit_elo_comparisons(ordered_comparisons, runs=10, seed=4)

    np.testing.assert_array_equal(by_name.final, by_index.final)


def test_uncompared_item_keeps_initial_rating() -> None:
    result = rank.fit_elo(
        ["A", "B"],
        ["B", "A"],
        runs=5,
        initial_rating=10.0,
        seed=1,
        items=["A", "B", "C"],
    )
    np.testing.assert_allclose(result.final[:, 2], 10.0)


@pytest.mark.parametrize(
    ("kwargs", "error", "match"),
    [
        ({"runs": 0}, ValueError, "runs must be >= 1"),
        ({"runs": 1.5}, TypeError, "runs must be an integer"),
        ({"k": 0.0}, ValueError, "k must be a positive finite scalar"),
        (
            {"initial_rating": float("inf")},
            ValueError,
            "initial_rating must be finite",
        ),
    ],
)
def test_elo_input_validation(
    ordered_comparisons: Comparisons, kwargs: dict, error: type, match: str
) -> None:
    with pytest.raises(error, match=match):
        rank.fit_elo_comparisons(ordered_comparisons, **kwargs)
