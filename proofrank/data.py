"""
Loading and normalizing comparative-judgement data.

The input CSV holds one row per judgement with at least the columns
``study``, ``dimension``, ``Won``, ``Lost`` and ``JudgeID``, where ``Won`` and
``Lost`` are numeric item ids. Normalization keeps one study and dimension,
translates ids to item names through a lookup table and adds the constant
``no_tie`` column expected by the fitters.
"""

import logging
from collections.abc import Mapping
from pathlib import Path

import numpy as np
import pandas as pd

from proofrank.rank._base import Comparisons

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("study", "dimension", "Won", "Lost", "JudgeID")

# Item ids used in the judgement files and the proof each one denotes.
PROOF_IDS = tuple((i, f"Proof{i}") for i in range(1, 16))


def proof_lookup() -> pd.DataFrame:
    """The 15-row ``id -> name`` lookup table for the proof items."""
    return pd.DataFrame(PROOF_IDS, columns=["id", "name"])


def _coerce_lookup(lookup) -> pd.DataFrame:
    if lookup is None:
        return proof_lookup()
    if isinstance(lookup, Mapping):
        lookup = pd.DataFrame(list(lookup.items()), columns=["id", "name"])
    if not isinstance(lookup, pd.DataFrame):
        raise TypeError(
            f"lookup must be a DataFrame or mapping, got {type(lookup).__name__}"
        )
    missing = {"id", "name"} - set(lookup.columns)
    if missing:
        raise ValueError(f"lookup is missing columns: {sorted(missing)}")
    if lookup["id"].duplicated().any():
        raise ValueError("lookup ids must be unique")
    lookup = lookup[["id", "name"]].copy()
    lookup["id"] = pd.to_numeric(lookup["id"])
    return lookup


def _matches(column: pd.Series, value) -> pd.Series:
    """Row mask of ``column == value``, numerically where ``value`` is a number."""
    as_text = column.astype(str) == str(value)
    target = pd.to_numeric(pd.Series([value]), errors="coerce").iloc[0]
    if pd.isna(target):
        return as_text
    return as_text | (pd.to_numeric(column, errors="coerce") == target)


def read_judgements(path: str | Path) -> pd.DataFrame:
    """Read a judgement CSV file."""
    frame = pd.read_csv(path)
    logger.info("read %d judgement rows from %s", len(frame), path)
    return frame


def normalize_judgements(
    frame: pd.DataFrame,
    study=2,
    dimension: str = "rigour",
    lookup=None,
) -> pd.DataFrame:
    """
    Filter raw judgements to one study and dimension and name the items.

    Args:
        frame: Raw judgements with the columns in ``REQUIRED_COLUMNS``.
        study: Study to keep. Numbers compare by value, so ``2`` matches
            ``"2"`` and the ``2.0`` pandas reads from a column with blanks.
        dimension: Dimension to keep, for example ``"rigour"``.
        lookup: ``id -> name`` table as a DataFrame with ``id``/``name``
            columns or a mapping. Defaults to :func:`proof_lookup`.

    Returns:
        DataFrame with columns ``judge, winner, loser, won_id, lost_id,
        study, dimension, no_tie`` in the original row order. Ids missing
        from the lookup leave ``winner``/``loser`` empty (NaN).

    Raises:
        ValueError: If required columns are absent.
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise ValueError(f"judgement data is missing columns: {missing}")
    lookup = _coerce_lookup(lookup)

    keep = _matches(frame["study"], study) & _matches(frame["dimension"], dimension)
    subset = frame.loc[keep].reset_index(drop=True)
    if subset.empty:
        logger.warning("no judgements for study=%s dimension=%s", study, dimension)

    out = pd.DataFrame(
        {
            "judge": subset["JudgeID"],
            "won_id": pd.to_numeric(subset["Won"], errors="coerce"),
            "lost_id": pd.to_numeric(subset["Lost"], errors="coerce"),
            "study": subset["study"],
            "dimension": subset["dimension"],
        }
    )
    # One join per role
    out = out.merge(
        lookup.rename(columns={"id": "won_id", "name": "winner"}),
        on="won_id",
        how="left",
    )
    out = out.merge(
        lookup.rename(columns={"id": "lost_id", "name": "loser"}),
        on="lost_id",
        how="left",
    )
    out["no_tie"] = 0

    unmatched = int((out["winner"].isna() | out["loser"].isna()).sum())
    if unmatched:
        logger.warning(
            "%d judgement(s) reference ids missing from the lookup", unmatched
        )

    logger.info(
        "kept %d judgements for study=%s dimension=%s", len(out), study, dimension
    )
    return out[
        [
            "judge",
            "winner",
            "loser",
            "won_id",
            "lost_id",
            "study",
            "dimension",
            "no_tie",
        ]
    ]


def load_judgements(
    path: str | Path,
    study=2,
    dimension: str = "rigour",
    lookup=None,
) -> pd.DataFrame:
    """Read and normalize a judgement CSV; see :func:`normalize_judgements`."""
    return normalize_judgements(
        read_judgements(path), study=study, dimension=dimension, lookup=lookup
    )


def comparisons_from_frame(
    frame: pd.DataFrame,
    items=None,
    winner_col: str = "winner",
    loser_col: str = "loser",
    judge_col: str | None = "judge",
) -> Comparisons:
    """
    Convert a normalized judgement table to :class:`Comparisons`.

    Rows with a missing winner or loser name are dropped with a warning.

    Args:
        frame: Normalized judgements.
        items: Optional item vocabulary; defaults to the names present.
        winner_col: Column holding winner names.
        loser_col: Column holding loser names.
        judge_col: Column holding judge labels, or ``None``.

    Raises:
        ValueError: If a column is missing or a row has the same winner and
            loser.
    """
    columns = [winner_col, loser_col] + ([judge_col] if judge_col else [])
    missing = [col for col in columns if col not in frame.columns]
    if missing:
        raise ValueError(f"judgement data is missing columns: {missing}")

    named = frame.dropna(subset=[winner_col, loser_col])
    dropped = len(frame) - len(named)
    if dropped:
        logger.warning("dropping %d judgement(s) with unknown items", dropped)

    judges = named[judge_col].tolist() if judge_col else None
    return Comparisons.from_names(
        named[winner_col].tolist(),
        named[loser_col].tolist(),
        judges=judges,
        items=items,
    )


def win_loss_table(comparisons: Comparisons) -> pd.DataFrame:
    """Per-item wins, losses, comparison count and win rate."""
    L = comparisons.n_items
    wins = np.bincount(comparisons.winner, minlength=L)
    losses = np.bincount(comparisons.loser, minlength=L)
    n = wins + losses
    with np.errstate(invalid="ignore", divide="ignore"):
        win_rate = np.where(n > 0, wins / np.maximum(n, 1), np.nan)
    return pd.DataFrame(
        {
            "item": list(comparisons.items),
            "wins": wins,
            "losses": losses,
            "n": n,
            "win_rate": win_rate,
        }
    )


__all__ = [
    "REQUIRED_COLUMNS",
    "PROOF_IDS",
    "proof_lookup",
    "read_judgements",
    "normalize_judgements",
    "load_judgements",
    "comparisons_from_frame",
    "win_loss_table",
]
