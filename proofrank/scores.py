"""
Score extraction and joining.

Each fitted model is reduced to a two-column frame ``item, <method>_score``
and the frames are combined with successive left joins on ``item``.
"""

import logging
from collections.abc import Sequence

import pandas as pd

from proofrank.rank import BayesianBTResult, BTMResult, EloResult, PageRankResult
from proofrank.utils import rank_scores

logger = logging.getLogger(__name__)

BTM_SCORE = "btm_score"
BAYESIAN_BTM_SCORE = "bayesian_btm_score"
ELO_SCORE = "elo_score"
PAGE_RANK_SCORE = "page_rank_score"

SCORE_COLUMNS = (BTM_SCORE, BAYESIAN_BTM_SCORE, ELO_SCORE, PAGE_RANK_SCORE)


def _score_frame(items, values, column: str) -> pd.DataFrame:
    return pd.DataFrame({"item": list(items), column: values})


def btm_scores(result: BTMResult) -> pd.DataFrame:
    """Frequentist Bradley-Terry strength per item."""
    effects = result.effects
    return _score_frame(effects["item"], effects["theta"].to_numpy(), BTM_SCORE)


def bayesian_bt_scores(result: BayesianBTResult) -> pd.DataFrame:
    """Posterior mean log-strength per item."""
    params = result.parameters()
    return _score_frame(params["item"], params["mean"].to_numpy(), BAYESIAN_BTM_SCORE)


def elo_scores(result: EloResult) -> pd.DataFrame:
    """Across-run mean Elo rating per item."""
    return _score_frame(result.items, result.mean_ratings(), ELO_SCORE)


def pagerank_scores(result: PageRankResult) -> pd.DataFrame:
    """PageRank visitation probability per item."""
    return _score_frame(result.items, result.scores(), PAGE_RANK_SCORE)


def join_scores(frames: Sequence[pd.DataFrame], on: str = "item") -> pd.DataFrame:
    """
    Left-join score frames on ``on``, anchored on the first frame.

    Items missing from a later frame get NaN in its columns; items present
    only in a later frame are not added. Duplicate keys are not collapsed.
    """
    if not frames:
        raise ValueError("join_scores needs at least one frame")
    table = frames[0]
    for frame in frames[1:]:
        table = table.merge(frame, on=on, how="left")
    missing = int(table.drop(columns=[on]).isna().sum().sum())
    if missing:
        logger.warning("score table has %d missing score cell(s)", missing)
    return table


def score_table(
    btm: BTMResult,
    bayesian: BayesianBTResult,
    elo: EloResult,
    pagerank: PageRankResult,
) -> pd.DataFrame:
    """
    Join the four methods' scores into one table.

    The join order is fixed (Bradley-Terry, Bayesian Bradley-Terry, Elo,
    PageRank) and every table carries all four columns.
    """
    return join_scores(
        [
            btm_scores(btm),
            bayesian_bt_scores(bayesian),
            elo_scores(elo),
            pagerank_scores(pagerank),
        ]
    )


def add_rank_columns(table: pd.DataFrame, columns: Sequence[str] = SCORE_COLUMNS):
    """Return a copy with ``<method>_rank`` columns (1 is best) per score column."""
    table = table.copy()
    for column in columns:
        if column not in table.columns:
            continue
        stem = column.removesuffix("_score")
        name = f"{stem}_rank"
        table[name] = rank_scores(table[column].to_numpy(dtype=float))["competition"]
    return table


__all__ = [
    "BTM_SCORE",
    "BAYESIAN_BTM_SCORE",
    "ELO_SCORE",
    "PAGE_RANK_SCORE",
    "SCORE_COLUMNS",
    "btm_scores",
    "bayesian_bt_scores",
    "elo_scores",
    "pagerank_scores",
    "join_scores",
    "score_table",
    "add_rank_columns",
]
