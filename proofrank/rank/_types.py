"""Shared type aliases for ranking and reporting options."""

from typing import Literal, TypeAlias

RankMethod: TypeAlias = Literal["competition", "competition_max", "dense", "avg"]
CorrelationMethod: TypeAlias = Literal["pearson", "spearman", "kendall"]
EdgeDirection: TypeAlias = Literal["loser_to_winner", "winner_to_loser"]
