from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from proofrank.config import AnalysisConfig
from proofrank.rank import BayesianBTSpec


def test_defaults() -> None:
    config = AnalysisConfig()

    assert config.study == "2"
    assert config.dimension == "rigour"
    assert config.cache_dir == Path("fittedmodels")
    assert config.cache_tag == "study2rigour"
    assert config.elo_k == 100.0
    assert config.damping == 0.85


def test_study_is_stored_as_text() -> None:
    config = AnalysisConfig(study=3, dimension="insight", cache_dir="out")

    assert config.study == "3"
    assert config.cache_tag == "study3insight"
    assert config.cache_dir == Path("out")


def test_bayesian_spec() -> None:
    config = AnalysisConfig(mcmc_iter=500, mcmc_chains=3, mcmc_seed=9, prior_scale=2.0)

    assert config.bayesian_spec() == BayesianBTSpec(
        iter=500, chains=3, seed=9, prior_scale=2.0
    )


def test_from_args_keeps_defaults_for_missing_options() -> None:
    namespace = argparse.Namespace(
        csv="judgements.csv",
        study="1",
        elo_runs=25,
        damping=None,
        log_level="INFO",
    )
    config = AnalysisConfig.from_args(namespace)

    assert config.study == "1"
    assert config.elo_runs == 25
    assert config.damping == 0.85


@pytest.mark.parametrize(
    ("kwargs", "error", "match"),
    [
        ({"mcmc_iter": 1}, ValueError, "mcmc_iter must be >= 2"),
        ({"mcmc_chains": 0}, ValueError, "mcmc_chains must be >= 1"),
        ({"elo_runs": 2.5}, TypeError, "elo_runs must be an integer"),
        ({"damping": 1.0}, ValueError, r"damping must be in \(0, 1\)"),
        ({"btm_eps": -1.0}, ValueError, "btm_eps must be >= 0.0"),
        ({"outlier_sd": 0.0}, ValueError, "outlier_sd must be a positive"),
        ({"prior_family": "flat"}, ValueError, "prior family must be one of"),
        ({"correlation": "cosine"}, ValueError, "correlation must be one of"),
    ],
)
def test_validation(kwargs: dict, error: type, match: str) -> None:
    with pytest.raises(error, match=match):
        AnalysisConfig(**kwargs)
