"""
Frequentist Bradley-Terry model with judge and item fit statistics.

Each judgement "``w`` beats ``l``" is a Bernoulli event with

.. math::
    p_c = \\Pr(w \\succ l) = \\sigma(\\theta_w - \\theta_l),

where :math:`\\theta` are centred item log-strengths. Because every
judgement is recorded from the winner's side, the observation is always
:math:`y_c = 1` and the standardized residual of a comparison depends only on
:math:`p_c`. Aggregating residuals per judge gives the information-weighted
fit statistic

.. math::
    \\mathrm{infit}_k =
    \\frac{\\sum_{c \\in k} (y_c - p_c)^2}{\\sum_{c \\in k} p_c (1 - p_c)},

used to flag judges whose decisions disagree with the consensus ordering.
The columns of the input are not "home/away" roles, so no order effect is
modelled, and ties are not part of the model.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.optimize import minimize

from proofrank.utils import rank_scores

from ._base import Comparisons, build_pairwise_wins, sigmoid, validate_positive_int
from ._types import RankMethod

logger = logging.getLogger(__name__)


def _validate_eps(eps: float) -> float:
    """Validate the pseudo-count adjustment."""
    if isinstance(eps, bool):
        raise TypeError("eps must be a finite scalar >= 0.0, got bool")
    value = float(eps)
    if not np.isfinite(value) or value < 0.0:
        raise ValueError(f"eps must be a finite scalar >= 0.0, got {eps!r}")
    return value


def _validate_outlier_sd(outlier_sd: float) -> float:
    value = float(outlier_sd)
    if not np.isfinite(value) or value <= 0.0:
        raise ValueError(
            f"outlier_sd must be a positive finite scalar, got {outlier_sd!r}"
        )
    return value


@dataclass(frozen=True, eq=False)
class BTMResult:
    """
    Result of :func:`fit_btm`.

    Args:
        items: Item names aligned with ``theta``.
        theta: Centred log-strength estimates, shape ``(L,)``.
        se: Standard errors of ``theta``, shape ``(L,)``.
        effects: Per-item table ``item, theta, se, n, wins, losses``.
        judge_fit: Per-judge table ``judge, n, infit, outfit, outlier``.
        item_fit: Per-item table ``item, n, infit, outfit``.
        summary: Counts, separation reliability and optimizer status.
    """

    items: tuple[str, ...]
    theta: np.ndarray
    se: np.ndarray
    effects: pd.DataFrame
    judge_fit: pd.DataFrame
    item_fit: pd.DataFrame
    summary: dict

    def scores(self) -> np.ndarray:
        return self.theta

    def ranking(self, method: RankMethod = "competition") -> np.ndarray:
        return rank_scores(self.theta)[method]

    def outlier_judges(self) -> list:
        return self.judge_fit.loc[self.judge_fit["outlier"], "judge"].tolist()


def fit_btm(
    comparisons: Comparisons,
    max_iter: int = 400,
    eps: float = 0.3,
    outlier_sd: float = 2.0,
) -> BTMResult:
    """
    Fit Bradley-Terry strengths by maximum likelihood and score judge fit.

    Method context:
        Decisive counts ``W_ij`` are adjusted by a pseudo-count ``eps`` in
        both directions of every pair that was compared at least once, so an
        item that never lost still receives a finite strength. Strengths are
        estimated with L-BFGS (capped at ``max_iter`` iterations) and
        centred to sum to zero. Standard errors come from the Moore-Penrose
        inverse of the observed Fisher information, which is the covariance
        of the centred parametrization.

    Args:
        comparisons: Judgements to fit. Must contain at least one comparison.
        max_iter: Positive maximum number of L-BFGS iterations.
        eps: Non-negative pseudo-count adjustment.
        outlier_sd: A judge is an outlier when its infit exceeds the mean
            judge infit by more than ``outlier_sd`` sample standard
            deviations.

    Returns:
        :class:`BTMResult`.

    Notation:
        ``W'_ij = W_ij + eps * 1{W_ij + W_ji > 0}``.

    Formula:
        .. math::
            \\hat\\theta = \\arg\\min_{\\theta}
            \\sum_{i\\ne j} W'_{ij} \\log\\left(1 + e^{\\theta_j-\\theta_i}\\right)

        .. math::
            \\mathrm{outlier}_k =
            \\mathrm{infit}_k >
            \\overline{\\mathrm{infit}} + 2\\,\\mathrm{sd}(\\mathrm{infit})

        .. math::
            \\mathrm{rel} =
            \\frac{\\mathrm{var}(\\hat\\theta) - \\overline{\\mathrm{se}^2}}
                 {\\mathrm{var}(\\hat\\theta)}

    References:
        Bradley, R. A., & Terry, M. E. (1952). Rank Analysis of Incomplete
        Block Designs: I. The Method of Paired Comparisons. Biometrika.
        https://doi.org/10.1093/biomet/39.3-4.324

        Pollitt, A. (2012). The method of Adaptive Comparative Judgement.
        Assessment in Education.
        https://doi.org/10.1080/0969594X.2012.665354

        Wright, B. D., & Masters, G. N. (1982). Rating Scale Analysis.
        MESA Press.

    Examples:
        >>> from proofrank.rank import Comparisons
        >>> comps = Comparisons.from_names(
        ...     ["A", "A", "B", "A"], ["B", "C", "C", "B"], judges=[1, 1, 2, 2]
        ... )
        >>> result = fit_btm(comps)
        >>> result.ranking().tolist()
        [1, 2, 3]

    Notes:
        With a single judge the sample standard deviation is undefined and no
        judge is flagged.
    """
    max_iter = validate_positive_int("max_iter", max_iter)
    eps = _validate_eps(eps)
    outlier_sd = _validate_outlier_sd(outlier_sd)
    if comparisons.n_comparisons < 1:
        raise ValueError("Need at least 1 comparison to fit")

    L = comparisons.n_items
    wins = build_pairwise_wins(comparisons)
    compared = (wins + wins.T) > 0
    adjusted = wins + eps * compared

    logger.info(
        "fitting Bradley-Terry: %d items, %d judges, %d comparisons",
        L,
        len(comparisons.judges),
        comparisons.n_comparisons,
    )

    def negative_log_likelihood(theta):
        P = sigmoid(theta[:, None] - theta[None, :])
        nll = -(adjusted * np.log(np.maximum(P, 1e-300))).sum()
        grad = (adjusted.T * P).sum(axis=1) - (adjusted * P.T).sum(axis=1)
        return float(nll), grad

    # Initialize from log win proportions
    total_wins = np.maximum(adjusted.sum(axis=1), 1.0)
    theta_init = np.log(total_wins / total_wins.sum())

    result = minimize(
        negative_log_likelihood,
        theta_init,
        jac=True,
        method="L-BFGS-B",
        options={"maxiter": max_iter},
    )
    if not result.success:
        logger.warning("Bradley-Terry optimizer did not converge: %s", result.message)

    theta = np.clip(result.x - result.x.mean(), -30.0, 30.0)
    se = _standard_errors(theta, adjusted)

    p = sigmoid(theta[comparisons.winner] - theta[comparisons.loser])
    judge_fit = _judge_fit(comparisons.judge, p, outlier_sd)
    item_fit = _item_fit(comparisons, p)
    effects = pd.DataFrame(
        {
            "item": list(comparisons.items),
            "theta": theta,
            "se": se,
            "n": np.bincount(comparisons.winner, minlength=L)
            + np.bincount(comparisons.loser, minlength=L),
            "wins": np.bincount(comparisons.winner, minlength=L),
            "losses": np.bincount(comparisons.loser, minlength=L),
        }
    )

    summary = {
        "n_items": L,
        "n_judges": int(judge_fit.shape[0]),
        "n_comparisons": comparisons.n_comparisons,
        "separation_reliability": separation_reliability(theta, se),
        "iterations": int(result.nit),
        "converged": bool(result.success),
    }
    logger.info(
        "Bradley-Terry fit finished after %d iterations, reliability %.3f, "
        "%d outlier judge(s)",
        summary["iterations"],
        summary["separation_reliability"],
        int(judge_fit["outlier"].sum()),
    )
    return BTMResult(
        items=comparisons.items,
        theta=theta,
        se=se,
        effects=effects,
        judge_fit=judge_fit,
        item_fit=item_fit,
        summary=summary,
    )


def _standard_errors(theta: np.ndarray, adjusted: np.ndarray) -> np.ndarray:
    """Standard errors of centred strengths from the Fisher information."""
    P = sigmoid(theta[:, None] - theta[None, :])
    counts = adjusted + adjusted.T
    weights = counts * P * P.T
    np.fill_diagonal(weights, 0.0)
    info = np.diag(weights.sum(axis=1)) - weights
    cov = np.linalg.pinv(info)
    return np.sqrt(np.clip(np.diag(cov), 0.0, None))


def separation_reliability(theta: np.ndarray, se: np.ndarray) -> float:
    """
    Scale separation reliability of strength estimates.

    Returns ``nan`` when estimates have no spread.
    """
    theta = np.asarray(theta, dtype=float)
    observed_var = float(np.var(theta, ddof=1)) if theta.shape[0] > 1 else 0.0
    if observed_var <= 0.0:
        return float("nan")
    error_var = float(np.mean(np.asarray(se, dtype=float) ** 2))
    return (observed_var - error_var) / observed_var


def _fit_table(groups: np.ndarray, p: np.ndarray, column: str) -> pd.DataFrame:
    residual_sq = (1.0 - p) ** 2
    variance = p * (1.0 - p)
    frame = pd.DataFrame(
        {
            column: groups,
            "residual_sq": residual_sq,
            "variance": variance,
            "z_sq": residual_sq / np.maximum(variance, 1e-12),
        }
    )
    grouped = frame.groupby(column, sort=True)
    table = pd.DataFrame(
        {
            "n": grouped.size(),
            "infit": grouped["residual_sq"].sum()
            / np.maximum(grouped["variance"].sum(), 1e-12),
            "outfit": grouped["z_sq"].mean(),
        }
    )
    return table.reset_index()


def _judge_fit(judges: np.ndarray, p: np.ndarray, outlier_sd: float) -> pd.DataFrame:
    table = _fit_table(np.asarray(judges, dtype=str), p, "judge")
    table["outlier"] = flag_outliers(table["infit"].to_numpy(), outlier_sd)
    return table


def _item_fit(comparisons: Comparisons, p: np.ndarray) -> pd.DataFrame:
    items = np.asarray(comparisons.items, dtype=object)
    involved = np.concatenate(
        [items[comparisons.winner], items[comparisons.loser]]
    )
    table = _fit_table(involved, np.concatenate([p, p]), "item")
    order = {name: k for k, name in enumerate(comparisons.items)}
    table["_order"] = table["item"].map(order)
    return table.sort_values("_order").drop(columns="_order").reset_index(drop=True)


def flag_outliers(infit: np.ndarray, outlier_sd: float = 2.0) -> np.ndarray:
    """
    Flag values above ``mean + outlier_sd * sd`` (sample sd, ddof=1).

    Args:
        infit: Judge infit statistics.
        outlier_sd: Number of standard deviations above the mean.

    Returns:
        Boolean array aligned with ``infit``. All ``False`` when fewer than
        two values are given.
    """
    infit = np.asarray(infit, dtype=float)
    if infit.shape[0] < 2:
        return np.zeros(infit.shape[0], dtype=bool)
    threshold = infit.mean() + outlier_sd * infit.std(ddof=1)
    return infit > threshold


__all__ = [
    "BTMResult",
    "fit_btm",
    "flag_outliers",
    "separation_reliability",
]
