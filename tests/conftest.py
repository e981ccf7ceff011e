from __future__ import annotations

from itertools import combinations

import matplotlib
import numpy as np
import pandas as pd
import pytest

from proofrank import data
from proofrank.config import AnalysisConfig
from proofrank.pipeline import run_analysis
from proofrank.rank import Comparisons

matplotlib.use("Agg")

N_PROOFS = 15
N_JUDGES = 12
CONTRARIAN_JUDGE = f"J{N_JUDGES}"


def build_raw_judgements(seed: int = 20261019, repeats: int = 4) -> pd.DataFrame:
    """Every proof pair judged ``repeats`` times; Proof1 is strongest.

    Judge ``J12`` always picks the weaker proof. Two rows belong to another
    study or dimension and must be filtered out.
    """
    rng = np.random.default_rng(seed)
    strengths = np.linspace(3.0, -3.0, N_PROOFS)

    rows = []
    for _ in range(repeats):
        for i, j in combinations(range(N_PROOFS), 2):
            judge = f"J{int(rng.integers(1, N_JUDGES + 1))}"
            if judge == CONTRARIAN_JUDGE:
                i_wins = False
            else:
                p = 1.0 / (1.0 + np.exp(-(strengths[i] - strengths[j])))
                i_wins = bool(rng.random() < p)
            won, lost = (i + 1, j + 1) if i_wins else (j + 1, i + 1)
            rows.append(
                {
                    "study": 2,
                    "dimension": "rigour",
                    "Won": won,
                    "Lost": lost,
                    "JudgeID": judge,
                }
            )

    for study, dimension in ((1, "rigour"), (2, "clarity")):
        rows.append(
            {
                "study": study,
                "dimension": dimension,
                "Won": 15,
                "Lost": 1,
                "JudgeID": "J1",
            }
        )
    return pd.DataFrame(rows)


@pytest.fixture(scope="session")
def raw_judgements() -> pd.DataFrame:
    return build_raw_judgements()


@pytest.fixture(scope="session")
def judgements(raw_judgements: pd.DataFrame) -> pd.DataFrame:
    return data.normalize_judgements(raw_judgements, study=2, dimension="rigour")


@pytest.fixture(scope="session")
def proof_comparisons(judgements: pd.DataFrame) -> Comparisons:
    return data.comparisons_from_frame(judgements)


@pytest.fixture(scope="session")
def ordered_comparisons() -> Comparisons:
    """Four items A > B > C > D; the stronger item wins 4 of 5 meetings."""
    items = ["A", "B", "C", "D"]
    winners, losers, judges = [], [], []
    for i, j in combinations(range(len(items)), 2):
        for rep in range(5):
            strong_wins = rep < 4
            winners.append(items[i] if strong_wins else items[j])
            losers.append(items[j] if strong_wins else items[i])
            judges.append(f"J{rep % 2}")
    return Comparisons.from_names(winners, losers, judges=judges, items=items)


@pytest.fixture(scope="session")
def contrarian_judge() -> str:
    return CONTRARIAN_JUDGE


@pytest.fixture(scope="session")
def small_config(tmp_path_factory) -> AnalysisConfig:
    return AnalysisConfig(
        mcmc_iter=2000,
        mcmc_chains=2,
        elo_runs=50,
        cache_dir=tmp_path_factory.mktemp("fittedmodels"),
    )


@pytest.fixture(scope="session")
def analysis(raw_judgements: pd.DataFrame, small_config: AnalysisConfig):
    return run_analysis(raw_judgements, small_config, use_cache=False)
