"""End-to-end analysis: load, fit the four methods, join and correlate."""

import logging
from dataclasses import dataclass
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from proofrank import data, report, scores
from proofrank.config import AnalysisConfig
from proofrank.rank import (
    BayesianBTResult,
    BTMResult,
    Comparisons,
    EloResult,
    PageRankResult,
    fit_bayesian_bt,
    fit_bayesian_bt_cached,
    fit_btm,
    fit_elo_comparisons,
    fit_pagerank,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class AnalysisResult:
    """Everything one analysis run produces."""

    config: AnalysisConfig
    judgements: pd.DataFrame
    comparisons: Comparisons
    btm: BTMResult
    bayesian: BayesianBTResult
    elo: EloResult
    pagerank: PageRankResult
    table: pd.DataFrame
    correlations: pd.DataFrame


def run_analysis(
    judgements: pd.DataFrame | str | Path,
    config: AnalysisConfig | None = None,
    use_cache: bool = True,
) -> AnalysisResult:
    """
    Run the full comparison.

    Args:
        judgements: Raw judgement CSV path or raw DataFrame (columns as in
            :data:`proofrank.data.REQUIRED_COLUMNS`).
        config: Analysis constants; defaults to :class:`AnalysisConfig()`.
        use_cache: Reuse or write the Bayesian fit under ``config.cache_dir``.
    """
    config = AnalysisConfig() if config is None else config
    if isinstance(judgements, (str, Path)):
        judgements = data.read_judgements(judgements)
    frame = data.normalize_judgements(
        judgements, study=config.study, dimension=config.dimension
    )
    comparisons = data.comparisons_from_frame(frame)

    btm = fit_btm(
        comparisons,
        max_iter=config.btm_max_iter,
        eps=config.btm_eps,
        outlier_sd=config.outlier_sd,
    )
    if use_cache:
        bayesian = fit_bayesian_bt_cached(
            comparisons,
            config.bayesian_spec(),
            cache_dir=config.cache_dir,
            tag=config.cache_tag,
        )
    else:
        bayesian = fit_bayesian_bt(comparisons, config.bayesian_spec())
    elo = fit_elo_comparisons(
        comparisons, runs=config.elo_runs, k=config.elo_k, seed=config.elo_seed
    )
    pagerank = fit_pagerank(comparisons, damping=config.damping)

    table = scores.score_table(btm, bayesian, elo, pagerank)
    correlations = report.correlation_matrix(table, config.correlation)
    logger.info("analysis finished: %d items scored", len(table))
    return AnalysisResult(
        config=config,
        judgements=frame,
        comparisons=comparisons,
        btm=btm,
        bayesian=bayesian,
        elo=elo,
        pagerank=pagerank,
        table=table,
        correlations=correlations,
    )


def write_report(result: AnalysisResult, out_dir: str | Path) -> list[Path]:
    """Write HTML tables and PNG plots of ``result`` to ``out_dir``."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []

    tables = {
        "scores.html": scores.add_rank_columns(result.table),
        "correlations.html": result.correlations.reset_index(names="score"),
        "btm_effects.html": result.btm.effects,
        "judge_fit.html": result.btm.judge_fit,
        "item_fit.html": result.btm.item_fit,
        "bayesian_parameters.html": result.bayesian.parameters(),
        "bayesian_diagnostics.html": result.bayesian.diagnostics(),
        "bayesian_win_probabilities.html": result.bayesian.win_probabilities(),
        "bayesian_ranks.html": result.bayesian.rank_table(),
        "win_loss.html": data.win_loss_table(result.comparisons),
    }
    for name, frame in tables.items():
        path = out_dir / name
        path.write_text(report.render_html(frame), encoding="utf-8")
        written.append(path)

    plots = {
        "scatterplot_matrix.png": lambda p: report.scatterplot_matrix(
            result.table, result.config.correlation, path=p
        ),
        "trace.png": lambda p: report.trace_plot(result.bayesian, path=p),
    }
    for name, draw in plots.items():
        path = out_dir / name
        plt.close(draw(path))
        written.append(path)

    logger.info("wrote %d report files to %s", len(written), out_dir)
    return written


__all__ = ["AnalysisResult", "run_analysis", "write_report"]
