from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pytest


@dataclass
class RankAssertionHelper:
    def assert_scores(self, scores: np.ndarray, expected_len: int) -> None:
        arr = np.asarray(scores, dtype=float)
        assert arr.shape == (expected_len,)
        assert np.all(np.isfinite(arr))

    def assert_strictly_ordered(self, scores: np.ndarray) -> None:
        """Scores decrease with item index (item 0 is strongest)."""
        arr = np.asarray(scores, dtype=float)
        assert np.all(np.diff(arr) < 0.0), arr

    def assert_ranking_matches_scores(
        self, ranking: np.ndarray, scores: np.ndarray
    ) -> None:
        ranking = np.asarray(ranking, dtype=float)
        scores = np.asarray(scores, dtype=float)
        assert float(np.min(ranking)) == pytest.approx(1.0)

        eps = 1e-12
        L = scores.shape[0]
        for i in range(L):
            for j in range(L):
                if scores[i] > scores[j] + eps:
                    assert ranking[i] <= ranking[j] + eps
                elif scores[i] < scores[j] - eps:
                    assert ranking[i] >= ranking[j] - eps


@pytest.fixture(scope="session")
def rank_assertions() -> RankAssertionHelper:
    return RankAssertionHelper()
