"""
PageRank on the comparison graph.

Every judgement adds one directed edge, by default from the loser to the
winner, so rank mass flows towards items that win. Repeated judgements of the
same pair become parallel edges and carry proportionally more mass.

Notation
--------

Let :math:`A_{ij}` be the number of edges from item :math:`i` to item
:math:`j` and :math:`d_i = \\sum_j A_{ij}` the out-degree. The transition
matrix is

.. math::
    T_{ji} = \\begin{cases}
        A_{ij} / d_i & d_i > 0 \\\\
        1 / L & d_i = 0
    \\end{cases}

and the scores solve :math:`r = d\\,T r + (1-d)\\,\\tfrac{1}{L}\\mathbf{1}`.
"""

import logging
from dataclasses import dataclass

import numpy as np

from proofrank.utils import rank_scores

from ._base import (
    Comparisons,
    build_pairwise_wins,
    validate_positive_float,
    validate_positive_int,
)
from ._types import EdgeDirection, RankMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PageRankResult:
    """
    Result of :func:`fit_pagerank`.

    Args:
        items: Item names aligned with ``scores``.
        adjacency: Edge multiplicities, ``adjacency[i, j]`` edges ``i -> j``.
        values: Stationary visitation probabilities, summing to 1.
        iterations: Power iterations performed.
    """

    items: tuple[str, ...]
    adjacency: np.ndarray
    values: np.ndarray
    iterations: int

    def scores(self) -> np.ndarray:
        return self.values

    def ranking(self, method: RankMethod = "competition") -> np.ndarray:
        return rank_scores(self.values)[method]


def comparison_graph(
    comparisons: Comparisons, direction: EdgeDirection = "loser_to_winner"
) -> np.ndarray:
    """Edge multiplicity matrix with one edge per judgement."""
    wins = build_pairwise_wins(comparisons)
    if direction == "loser_to_winner":
        return wins.T.copy()
    if direction == "winner_to_loser":
        return wins
    raise ValueError(
        'direction must be one of: "loser_to_winner", "winner_to_loser"'
    )


def fit_pagerank(
    comparisons: Comparisons,
    damping: float = 0.85,
    direction: EdgeDirection = "loser_to_winner",
    max_iter: int = 1000,
    tol: float = 1e-12,
) -> PageRankResult:
    """
    Score items by PageRank on the judgement multigraph.

    Method context:
        Edges have uniform weight and no personalization vector is used:
        teleportation and dangling nodes (items without outgoing edges)
        spread their mass uniformly over all items.

    Args:
        comparisons: Judgements forming the graph.
        damping: PageRank damping factor ``d`` in ``(0, 1)``.
        direction: ``"loser_to_winner"`` (default) or
            ``"winner_to_loser"``. The latter ranks items by how often they
            lose.
        max_iter: Positive maximum number of power iterations.
        tol: Positive L1 convergence tolerance.

    Returns:
        :class:`PageRankResult` whose scores lie in ``[0, 1]`` and sum to 1.

    References:
        Page, L., et al. (1999). The PageRank Citation Ranking: Bringing
        Order to the Web. Stanford InfoLab.

    Examples:
        >>> from proofrank.rank import Comparisons
        >>> comps = Comparisons.from_names(["A", "A", "B"], ["B", "C", "C"])
        >>> result = fit_pagerank(comps)
        >>> result.ranking().tolist()
        [1, 2, 3]
        >>> round(float(result.scores().sum()), 6)
        1.0
    """
    damping = float(damping)
    if not np.isfinite(damping) or not (0.0 < damping < 1.0):
        raise ValueError("damping must be in (0, 1)")
    max_iter = validate_positive_int("max_iter", max_iter)
    tol = validate_positive_float("tol", tol)

    A = comparison_graph(comparisons, direction)
    L = A.shape[0]
    e = np.ones(L, dtype=float) / L

    # Column-stochastic transition matrix
    # T[j, i] = probability of moving TO j FROM i
    out_degree = A.sum(axis=1)
    T = np.empty((L, L), dtype=float)
    for i in range(L):
        if out_degree[i] > 0:
            T[:, i] = A[i, :] / out_degree[i]
        else:
            T[:, i] = 1.0 / L  # Uniform if no outgoing edges

    r = e.copy()
    iterations = 0
    for iterations in range(1, max_iter + 1):
        r_new = damping * (T @ r) + (1 - damping) * e
        r_new = r_new / r_new.sum()
        if np.linalg.norm(r_new - r, 1) < tol:
            r = r_new
            break
        r = r_new
    else:
        logger.warning("PageRank did not converge within %d iterations", max_iter)

    logger.debug("PageRank converged after %d iterations", iterations)
    return PageRankResult(
        items=comparisons.items, adjacency=A, values=r, iterations=iterations
    )


__all__ = ["PageRankResult", "comparison_graph", "fit_pagerank"]
