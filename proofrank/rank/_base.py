"""
Base utilities for ranking methods.

This module provides the ``Comparisons`` container consumed by every ranking
method and the count helpers built on top of it.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class Comparisons:
    """
    Pairwise judgements in index form.

    Args:
        items: Item names; ``winner`` and ``loser`` index into this tuple.
        winner: Integer array of shape ``(C,)`` with the winning item of each
            comparison.
        loser: Integer array of shape ``(C,)`` with the losing item of each
            comparison.
        judge: Array of shape ``(C,)`` with the judge label of each
            comparison.

    Notes:
        Instances are validated on construction; use :meth:`from_names` to
        build one from item-name sequences.
    """

    items: tuple[str, ...]
    winner: np.ndarray
    loser: np.ndarray
    judge: np.ndarray

    def __post_init__(self):
        items = tuple(str(item) for item in self.items)
        winner, loser = validate_comparisons(self.winner, self.loser, len(items))
        judge = np.asarray(self.judge, dtype=object)
        if judge.shape != winner.shape:
            raise ValueError(
                f"judge must have shape {winner.shape}, got {judge.shape}"
            )
        object.__setattr__(self, "items", items)
        object.__setattr__(self, "winner", winner)
        object.__setattr__(self, "loser", loser)
        object.__setattr__(self, "judge", judge)

    @classmethod
    def from_names(
        cls,
        winners: Sequence[str],
        losers: Sequence[str],
        judges: Sequence | None = None,
        items: Sequence[str] | None = None,
    ) -> "Comparisons":
        """
        Build comparisons from parallel winner/loser name sequences.

        Args:
            winners: Winning item name of each comparison.
            losers: Losing item name of each comparison.
            judges: Optional judge label of each comparison. Defaults to a
                single anonymous judge.
            items: Optional item vocabulary. Defaults to the sorted union of
                ``winners`` and ``losers``; items listed here but never
                compared are kept.

        Raises:
            ValueError: If lengths differ or a name is missing from ``items``.
        """
        winners = [str(name) for name in winners]
        losers = [str(name) for name in losers]
        if len(winners) != len(losers):
            raise ValueError(
                f"winners and losers must have equal length, got "
                f"{len(winners)} and {len(losers)}"
            )
        if items is None:
            items = sorted(set(winners) | set(losers), key=_natural_key)
        items = tuple(str(item) for item in items)
        index = {name: i for i, name in enumerate(items)}
        if len(index) != len(items):
            raise ValueError("items must not contain duplicates")

        unknown = sorted((set(winners) | set(losers)) - set(index))
        if unknown:
            raise ValueError(f"unknown items not in vocabulary: {unknown}")

        if judges is None:
            judges = [""] * len(winners)
        return cls(
            items=items,
            winner=np.array([index[name] for name in winners], dtype=int),
            loser=np.array([index[name] for name in losers], dtype=int),
            judge=np.asarray(list(judges), dtype=object),
        )

    @property
    def n_items(self) -> int:
        return len(self.items)

    @property
    def n_comparisons(self) -> int:
        return int(self.winner.shape[0])

    @property
    def judges(self) -> np.ndarray:
        """Sorted unique judge labels."""
        return np.array(sorted(set(self.judge.tolist()), key=str), dtype=object)

    def winner_names(self) -> list[str]:
        return [self.items[i] for i in self.winner]

    def loser_names(self) -> list[str]:
        return [self.items[i] for i in self.loser]


def _natural_key(name: str):
    """Sort key that orders ``Proof2`` before ``Proof10``."""
    head = name.rstrip("0123456789")
    tail = name[len(head):]
    return (head, int(tail) if tail else -1, name)


def validate_comparisons(
    winner: np.ndarray, loser: np.ndarray, n_items: int
) -> tuple[np.ndarray, np.ndarray]:
    """
    Validate and convert winner/loser index arrays.

    Args:
        winner: Winning item indices, shape ``(C,)``.
        loser: Losing item indices, shape ``(C,)``.
        n_items: Number of items in the vocabulary.

    Returns:
        Tuple ``(winner, loser)`` of integer arrays.

    Raises:
        ValueError: If shapes differ, indices are out of range, a comparison
            pits an item against itself, or there are fewer than 2 items.
    """
    winner = np.asarray(winner)
    loser = np.asarray(loser)

    if winner.ndim != 1 or loser.ndim != 1:
        raise ValueError(
            f"winner and loser must be 1D arrays, got shapes {winner.shape} "
            f"and {loser.shape}"
        )
    if winner.shape != loser.shape:
        raise ValueError(
            f"winner and loser must have equal length, got {winner.shape[0]} "
            f"and {loser.shape[0]}"
        )
    if n_items < 2:
        raise ValueError(f"Need at least 2 items to rank, got {n_items}")

    for name, arr in (("winner", winner), ("loser", loser)):
        if arr.size and not np.issubdtype(arr.dtype, np.integer):
            raise ValueError(f"{name} must contain integer indices, got {arr.dtype}")
        if arr.size and (arr.min() < 0 or arr.max() >= n_items):
            raise ValueError(f"{name} indices must lie in [0, {n_items - 1}]")

    if np.any(winner == loser):
        bad = int(np.flatnonzero(winner == loser)[0])
        raise ValueError(f"comparison {bad} has the same item as winner and loser")

    return winner.astype(int, copy=False), loser.astype(int, copy=False)


def build_pairwise_wins(comparisons: Comparisons) -> np.ndarray:
    """
    Build pairwise win count matrix from comparisons.

    Args:
        comparisons: Judgements in index form.

    Returns:
        Win matrix of shape ``(L, L)`` where ``wins[i, j]`` is the number of
        times item ``i`` beat item ``j``.
    """
    L = comparisons.n_items
    wins = np.zeros((L, L), dtype=float)
    np.add.at(wins, (comparisons.winner, comparisons.loser), 1.0)
    return wins


def sigmoid(x: np.ndarray) -> np.ndarray:
    """Numerically stable sigmoid function."""
    return 1.0 / (1.0 + np.exp(-np.clip(x, -30, 30)))


def validate_positive_int(name: str, value: int, min_value: int = 1) -> int:
    """Validate integer hyperparameters."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    ivalue = int(value)
    if ivalue < min_value:
        raise ValueError(f"{name} must be >= {min_value}, got {ivalue}")
    return ivalue


def validate_positive_float(name: str, value: float) -> float:
    """Validate positive finite scalar hyperparameters."""
    if isinstance(value, bool):
        raise TypeError(f"{name} must be a float, got bool")
    fvalue = float(value)
    if not np.isfinite(fvalue) or fvalue <= 0.0:
        raise ValueError(f"{name} must be a positive finite scalar, got {value}")
    return fvalue


__all__ = [
    "Comparisons",
    "validate_comparisons",
    "build_pairwise_wins",
    "sigmoid",
    "validate_positive_int",
    "validate_positive_float",
]
