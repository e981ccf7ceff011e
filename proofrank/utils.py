import logging

import numpy as np
from scipy.stats import rankdata

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_RANK_METHODS = {
    "competition": "min",
    "competition_max": "max",
    "dense": "dense",
    "avg": "average",
}


def rank_scores(scores_in_id_order, tol=1e-12):
    """
    Rank item scores, highest score first.

    Adjacent scores (in sorted order) closer than ``tol`` share a tie group,
    and NaN scores form the last group.

    Args:
        scores_in_id_order (list or np.ndarray): One score per item.
        tol (float): Largest gap still treated as a tie.

    Returns:
        dict: rank arrays aligned with the input, keyed by
        ``"competition"`` (1,2,2,4), ``"competition_max"`` (1,3,3,4),
        ``"dense"`` (1,2,2,3) and ``"avg"`` (1,2.5,2.5,4).
    """
    scores = np.asarray(scores_in_id_order, dtype=float)
    if scores.ndim != 1:
        raise ValueError(f"scores must be a 1D sequence, got shape {scores.shape}")
    if scores.size == 0:
        return {name: np.empty(0) for name in _RANK_METHODS}
    scores = np.where(np.isnan(scores), -np.inf, scores)

    order = np.argsort(-scores, kind="stable")
    ordered = scores[order]
    with np.errstate(invalid="ignore"):
        tied = (ordered[1:] == ordered[:-1]) | (np.abs(np.diff(ordered)) <= tol)
    group = np.cumsum(np.concatenate([[True], ~tied]))

    ranks = {}
    for name, method in _RANK_METHODS.items():
        in_order = rankdata(group, method=method)
        ranks[name] = np.empty_like(in_order)
        ranks[name][order] = in_order
    return ranks


def configure_logging(level=logging.INFO):
    """Install a root handler for command-line runs; library code only logs."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {level!r}")
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("matplotlib").setLevel(max(level, logging.WARNING))
