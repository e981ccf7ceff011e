"""Proofrank package for comparing pairwise-comparison ranking methods.

Modules
------------------
- ``proofrank.data`` loads comparative-judgement CSV files and turns them
  into ``Comparisons`` shared by every ranking method.
- ``proofrank.rank`` provides the four ranking methods: Bayesian
  Bradley-Terry (MCMC), frequentist Bradley-Terry with judge infit, Elo over
  randomized orders, and PageRank on the comparison graph.
- ``proofrank.scores`` extracts one score per item from each fitted model and
  joins them into a score table.
- ``proofrank.report`` computes correlations between score columns and draws
  comparison plots.
- ``proofrank.config`` holds the analysis constants.
- ``proofrank.pipeline`` runs the whole comparison and writes reports.
- ``proofrank.utils`` provides ranking and logging utilities shared across
  modules.

"""

__version__ = "0.1.0"

from . import config, data, pipeline, rank, report, scores, utils

__all__ = ["config", "data", "pipeline", "rank", "report", "scores", "utils"]
