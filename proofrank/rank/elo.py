"""
Elo ratings over randomized presentation orders.

Elo updates are sequential, so final ratings depend on the order in which the
judgements are replayed. Following the EloChoice approach, the same set of
judgements is replayed in many independently shuffled orders and the final
ratings are averaged across runs.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from proofrank.utils import rank_scores

from ._base import Comparisons, validate_positive_int
from ._types import RankMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class EloResult:
    """
    Elo ratings from :func:`fit_elo`.

    Args:
        items: Item names aligned with the last axis of the rating arrays.
        final: Final ratings of every run, shape ``(runs, L)``.
        trajectory: Ratings of the first run after each update, shape
            ``(C + 1, L)``; row 0 holds the initial ratings.
        expected_hits: Per-run proportion of comparisons won by the item
            rated higher before the update (rating ties count 0.5),
            shape ``(runs,)``.
    """

    items: tuple[str, ...]
    final: np.ndarray
    trajectory: np.ndarray
    expected_hits: np.ndarray

    def mean_ratings(self) -> np.ndarray:
        """Across-run mean final rating per item."""
        return self.final.mean(axis=0)

    def ratings(self, show_all: bool = False) -> np.ndarray:
        """Mean final ratings, or the ``(runs, L)`` matrix when ``show_all``."""
        return self.final if show_all else self.mean_ratings()

    def scores(self) -> np.ndarray:
        return self.mean_ratings()

    def ranking(self, method: RankMethod = "competition") -> np.ndarray:
        return rank_scores(self.mean_ratings())[method]

    def reliability(self) -> float:
        """Mean over runs of the proportion of expected outcomes."""
        return float(self.expected_hits.mean())


def fit_elo(
    winners: Sequence[str],
    losers: Sequence[str],
    runs: int = 1000,
    k: float = 100.0,
    initial_rating: float = 0.0,
    seed: int | np.random.Generator | None = None,
    items: Sequence[str] | None = None,
) -> EloResult:
    """
    Rate items with Elo updates replayed over shuffled judgement orders.

    Method context:
        Each run draws a fresh permutation of the judgements from one
        generator built from ``seed`` and replays them from
        ``initial_rating``. The first run's rating path is kept as the
        representative trajectory. Winners and losers are consumed as
        parallel sequences, so the result does not depend on how the source
        columns were labelled.

    Args:
        winners: Winning item name of each judgement.
        losers: Losing item name of each judgement.
        runs: Positive number of randomized replays.
        k: Positive Elo step size.
        initial_rating: Starting rating of every item.
        seed: Seed or generator controlling the permutations. ``None``
            gives non-reproducible orders.
        items: Optional item vocabulary; see
            :meth:`proofrank.rank.Comparisons.from_names`.

    Returns:
        :class:`EloResult`.

    Formula:
        .. math::
            E_{wl} = \\frac{1}{1 + 10^{(r_l-r_w)/400}}

        .. math::
            r_w \\leftarrow r_w + k(1 - E_{wl}), \\quad
            r_l \\leftarrow r_l - k(1 - E_{wl})

    References:
        Elo, A. E. (1978). The Rating of Chessplayers, Past and Present.
        Arco Publishing.

        Clark, A. P., et al. (2018). EloChoice: a tool for analysing
        pairwise preference data. PLOS ONE.
        https://doi.org/10.1371/journal.pone.0190393

    Examples:
        >>> result = fit_elo(["A", "A", "B"], ["B", "C", "C"], runs=50, seed=1)
        >>> result.ranking().tolist()
        [1, 2, 3]
    """
    comparisons = Comparisons.from_names(winners, losers, items=items)
    return fit_elo_comparisons(
        comparisons, runs=runs, k=k, initial_rating=initial_rating, seed=seed
    )


def fit_elo_comparisons(
    comparisons: Comparisons,
    runs: int = 1000,
    k: float = 100.0,
    initial_rating: float = 0.0,
    seed: int | np.random.Generator | None = None,
) -> EloResult:
    """Same as :func:`fit_elo` on a :class:`Comparisons` object."""
    runs = validate_positive_int("runs", runs)
    k = float(k)
    if not np.isfinite(k) or k <= 0.0:
        raise ValueError(f"k must be a positive finite scalar; got {k}")
    initial_rating = float(initial_rating)
    if not np.isfinite(initial_rating):
        raise ValueError("initial_rating must be finite.")
    if comparisons.n_comparisons < 1:
        raise ValueError("Need at least 1 comparison to fit")

    rng = np.random.default_rng(seed)
    L = comparisons.n_items
    C = comparisons.n_comparisons
    winner, loser = comparisons.winner, comparisons.loser

    logger.info("replaying %d comparisons in %d randomized Elo runs", C, runs)

    final = np.empty((runs, L), dtype=float)
    expected_hits = np.empty(runs, dtype=float)
    trajectory = np.empty((C + 1, L), dtype=float)

    for run in range(runs):
        order = rng.permutation(C)
        ratings = np.full(L, initial_rating, dtype=float)
        if run == 0:
            trajectory[0] = ratings
        hits = 0.0

        for step, c in enumerate(order):
            i, j = winner[c], loser[c]
            R_w, R_l = ratings[i], ratings[j]
            if R_w > R_l:
                hits += 1.0
            elif R_w == R_l:
                hits += 0.5

            E_w = 1.0 / (1.0 + 10.0 ** ((R_l - R_w) / 400.0))
            delta = k * (1.0 - E_w)
            ratings[i] = R_w + delta
            ratings[j] = R_l - delta

            if run == 0:
                trajectory[step + 1] = ratings

        final[run] = ratings
        expected_hits[run] = hits / C

    return EloResult(
        items=comparisons.items,
        final=final,
        trajectory=trajectory,
        expected_hits=expected_hits,
    )


__all__ = ["EloResult", "fit_elo", "fit_elo_comparisons"]
