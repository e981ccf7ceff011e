"""
Comparison reporting for score tables.

Correlations between the four methods' score columns are the only computed
artefact; the plotting helpers render them as a scatterplot matrix and show
MCMC traces of the Bayesian fit.
"""

import logging
from collections.abc import Sequence
from itertools import combinations
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.patches import Ellipse
from scipy.stats import gaussian_kde, kendalltau, pearsonr, spearmanr

from proofrank.rank import BayesianBTResult
from proofrank.rank._types import CorrelationMethod

logger = logging.getLogger(__name__)

_CORRELATIONS = {
    "pearson": pearsonr,
    "spearman": spearmanr,
    "kendall": kendalltau,
}


def _validate_method(method: str) -> str:
    if method not in _CORRELATIONS:
        raise ValueError(
            f'method must be one of: "pearson", "spearman", "kendall"; got {method!r}'
        )
    return method


def numeric_scores(table: pd.DataFrame) -> pd.DataFrame:
    """Restrict ``table`` to its numeric columns."""
    numeric = table.select_dtypes(include="number")
    if numeric.shape[1] < 2:
        raise ValueError(
            f"need at least 2 numeric score columns, got {list(numeric.columns)}"
        )
    return numeric


def _pairwise(x: pd.Series, y: pd.Series, method: str) -> tuple[float, float]:
    mask = x.notna() & y.notna()
    if int(mask.sum()) < 3:
        return float("nan"), float("nan")
    xs = x[mask].to_numpy(dtype=float)
    ys = y[mask].to_numpy(dtype=float)
    if np.ptp(xs) == 0.0 or np.ptp(ys) == 0.0:
        return float("nan"), float("nan")
    stat, pvalue = _CORRELATIONS[method](xs, ys)
    return float(stat), float(pvalue)


def _matrix(table: pd.DataFrame, method: str, which: int) -> pd.DataFrame:
    numeric = numeric_scores(table)
    columns = list(numeric.columns)
    out = pd.DataFrame(np.nan, index=columns, columns=columns, dtype=float)
    for a, b in combinations(columns, 2):
        value = _pairwise(numeric[a], numeric[b], method)[which]
        out.loc[a, b] = value
        out.loc[b, a] = value
    for column in columns:
        out.loc[column, column] = 1.0 if which == 0 else 0.0
    return out


def correlation_matrix(
    table: pd.DataFrame, method: CorrelationMethod = "pearson"
) -> pd.DataFrame:
    """
    Correlation coefficients between every pair of numeric score columns.

    Args:
        table: Score table; non-numeric columns (``item``) are ignored.
        method: ``"pearson"`` (default), ``"spearman"`` or ``"kendall"``.

    Returns:
        Square DataFrame indexed by column name. Pairs with fewer than three
        complete rows or a constant column give NaN.
    """
    return _matrix(table, _validate_method(method), which=0)


def correlation_pvalues(
    table: pd.DataFrame, method: CorrelationMethod = "pearson"
) -> pd.DataFrame:
    """Two-sided p-values matching :func:`correlation_matrix`."""
    return _matrix(table, _validate_method(method), which=1)


def significance_stars(pvalue: float) -> str:
    """R-style significance code for a p-value."""
    if pvalue is None or not np.isfinite(pvalue):
        return ""
    if pvalue < 0.001:
        return "***"
    if pvalue < 0.01:
        return "**"
    if pvalue < 0.05:
        return "*"
    if pvalue < 0.1:
        return "."
    return ""


def _correlation_ellipse(ax, x, y, n_std=1.0):
    cov = np.cov(x, y)
    eigvals, eigvecs = np.linalg.eigh(cov)
    eigvals = np.clip(eigvals, 0.0, None)
    angle = np.degrees(np.arctan2(eigvecs[1, -1], eigvecs[0, -1]))
    width, height = 2.0 * n_std * np.sqrt(eigvals[::-1])
    ax.add_patch(
        Ellipse(
            (float(np.mean(x)), float(np.mean(y))),
            width=width,
            height=height,
            angle=angle,
            fill=False,
            edgecolor="tab:red",
            linewidth=1.0,
        )
    )


def scatterplot_matrix(
    table: pd.DataFrame,
    method: CorrelationMethod = "pearson",
    histogram: bool = True,
    density: bool = True,
    ellipse: bool = True,
    stars: bool = True,
    path: str | Path | None = None,
):
    """
    Scatterplot matrix of the numeric score columns.

    Scatter plots fill the lower triangle, the diagonal shows each column's
    histogram (optionally with a kernel density curve) and the upper
    triangle prints the correlation coefficient with significance stars.

    Args:
        table: Score table.
        method: Correlation method for the upper triangle.
        histogram: Draw histograms on the diagonal.
        density: Overlay a Gaussian kernel density estimate on histograms.
        ellipse: Draw a one-sd correlation ellipse on each scatter plot.
        stars: Append significance stars to coefficients.
        path: If given, save the figure there.

    Returns:
        The matplotlib ``Figure``.
    """
    method = _validate_method(method)
    numeric = numeric_scores(table)
    columns = list(numeric.columns)
    corr = correlation_matrix(numeric, method)
    pvalues = correlation_pvalues(numeric, method)

    n = len(columns)
    fig, axes = plt.subplots(n, n, figsize=(2.6 * n, 2.6 * n), squeeze=False)
    for row, y_name in enumerate(columns):
        for col, x_name in enumerate(columns):
            ax = axes[row, col]
            x = numeric[x_name]
            y = numeric[y_name]
            if row == col:
                values = x.dropna().to_numpy(dtype=float)
                if histogram and values.size:
                    ax.hist(
                        values, bins="auto", density=True, color="tab:blue", alpha=0.6
                    )
                    if density and values.size > 1 and np.ptp(values) > 0.0:
                        grid = np.linspace(values.min(), values.max(), 200)
                        ax.plot(grid, gaussian_kde(values)(grid), color="tab:red")
                ax.set_title(x_name, fontsize=9)
            elif row > col:
                mask = x.notna() & y.notna()
                xs = x[mask].to_numpy(dtype=float)
                ys = y[mask].to_numpy(dtype=float)
                ax.scatter(xs, ys, s=12, color="tab:blue")
                if ellipse and xs.size > 2:
                    _correlation_ellipse(ax, xs, ys)
            else:
                r = corr.loc[y_name, x_name]
                label = "NA" if not np.isfinite(r) else f"{r:.2f}"
                if stars:
                    label += significance_stars(pvalues.loc[y_name, x_name])
                size = 10 + 14 * (abs(r) if np.isfinite(r) else 0.0)
                ax.text(
                    0.5,
                    0.5,
                    label,
                    ha="center",
                    va="center",
                    fontsize=size,
                    transform=ax.transAxes,
                )
                ax.set_xticks([])
                ax.set_yticks([])
            if col == 0 and row != 0:
                ax.set_ylabel(y_name, fontsize=8)
            if row == n - 1:
                ax.set_xlabel(x_name, fontsize=8)

    fig.suptitle(f"{method.capitalize()} correlations between ranking methods")
    fig.tight_layout()
    if path is not None:
        fig.savefig(path, dpi=150)
        logger.info("saved scatterplot matrix to %s", path)
    return fig


def trace_plot(
    result: BayesianBTResult,
    items: Sequence[str] | None = None,
    path: str | Path | None = None,
):
    """
    MCMC trace of each item's log-strength, one line per chain.

    Args:
        result: Bayesian Bradley-Terry fit.
        items: Items to show; all items by default.
        path: If given, save the figure there.
    """
    names = list(result.items) if items is None else list(items)
    index = {name: k for k, name in enumerate(result.items)}
    unknown = [name for name in names if name not in index]
    if unknown:
        raise ValueError(f"unknown items: {unknown}")

    ncols = 3
    nrows = max(int(np.ceil(len(names) / ncols)), 1)
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(4 * ncols, 2.2 * nrows), squeeze=False
    )
    for ax, name in zip(axes.ravel(), names):
        for chain in range(result.draws.shape[0]):
            ax.plot(
                result.draws[chain, :, index[name]],
                linewidth=0.5,
                label=f"chain {chain}",
            )
        ax.set_title(name, fontsize=9)
    for ax in axes.ravel()[len(names):]:
        ax.set_visible(False)
    fig.tight_layout()
    if path is not None:
        fig.savefig(path, dpi=150)
        logger.info("saved trace plot to %s", path)
    return fig


def render_html(frame: pd.DataFrame, float_format: str = "{:.3f}") -> str:
    """Render a result table as an HTML string."""
    return frame.to_html(index=False, float_format=float_format.format, na_rep="")


__all__ = [
    "numeric_scores",
    "correlation_matrix",
    "correlation_pvalues",
    "significance_stars",
    "scatterplot_matrix",
    "trace_plot",
    "render_html",
]
