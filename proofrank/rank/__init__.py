"""
Ranking methods for pairwise comparative judgements.

This module provides the four ranking methods compared by proofrank. Each is
an independent function of a :class:`Comparisons` object and returns a result
object exposing one score per item (``result.scores()``) plus method-specific
diagnostics.

Input Format
------------
All ranking methods expect a :class:`Comparisons` instance: item names plus
parallel integer arrays ``winner`` and ``loser`` (one entry per judgement)
and a ``judge`` label array. Build one with
:meth:`Comparisons.from_names` or :func:`proofrank.data.comparisons_from_frame`.

Output Format
-------------
- ``result.scores()``: ``np.ndarray`` of shape ``(L,)`` aligned with
  ``comparisons.items``; higher is better.
- ``result.ranking(method)``: ranks derived from the scores with
  :func:`proofrank.utils.rank_scores`.

Available Methods
-----------------

**Bayesian:**
- `fit_bayesian_bt`: Bayesian Bradley-Terry posterior via Metropolis MCMC
- `fit_bayesian_bt_cached`: the same, memoized on disk by content hash

**Paired-comparison probabilistic models:**
- `fit_btm`: Bradley-Terry maximum likelihood with judge infit and outliers

**Pairwise rating systems:**
- `fit_elo`: Elo ratings averaged over randomized presentation orders

**Graph-based:**
- `fit_pagerank`: PageRank on the loser -> winner judgement multigraph

Examples
--------
>>> from proofrank import rank
>>> comps = rank.Comparisons.from_names(
...     ["A", "A", "B", "A"], ["B", "C", "C", "B"], judges=[1, 1, 2, 2]
... )
>>> rank.fit_btm(comps).ranking().tolist()
[1, 2, 3]
>>> rank.fit_pagerank(comps).ranking().tolist()
[1, 2, 3]
"""

from ._base import Comparisons

# Bayesian methods
from .bayesian import (
    BayesianBTResult,
    BayesianBTSpec,
    effective_sample_size,
    fit_bayesian_bt,
    hpdi,
    split_rhat,
)

# Paired-comparison probabilistic models
from .bradley_terry import BTMResult, fit_btm, flag_outliers, separation_reliability
from .cache import cache_key, fit_bayesian_bt_cached, load_result, save_result

# Pairwise rating systems
from .elo import EloResult, fit_elo, fit_elo_comparisons

# Graph-based methods
from .graph import PageRankResult, comparison_graph, fit_pagerank

# Prior classes for the Bayesian sampler
from .priors import CauchyPrior, NormalPrior, Prior, make_prior

__all__ = [
    "Comparisons",
    # Bayesian
    "BayesianBTSpec",
    "BayesianBTResult",
    "fit_bayesian_bt",
    "fit_bayesian_bt_cached",
    "cache_key",
    "save_result",
    "load_result",
    "hpdi",
    "split_rhat",
    "effective_sample_size",
    # Bradley-Terry
    "BTMResult",
    "fit_btm",
    "flag_outliers",
    "separation_reliability",
    # Elo
    "EloResult",
    "fit_elo",
    "fit_elo_comparisons",
    # Graph
    "PageRankResult",
    "comparison_graph",
    "fit_pagerank",
    # Prior classes
    "Prior",
    "NormalPrior",
    "CauchyPrior",
    "make_prior",
]
