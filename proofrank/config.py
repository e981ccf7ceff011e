"""Analysis configuration shared by the command line and library callers."""

from dataclasses import dataclass, fields, replace
from pathlib import Path

from proofrank.rank import BayesianBTSpec
from proofrank.rank._base import validate_positive_float, validate_positive_int
from proofrank.rank.priors import make_prior


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Every constant of one analysis run.

    Args:
        study: Study to keep from the judgement file.
        dimension: Judged dimension to keep.
        mcmc_iter: Bayesian Bradley-Terry iterations per chain (warmup
            included).
        mcmc_chains: Number of MCMC chains.
        mcmc_seed: Seed of the MCMC chains.
        prior_family: Prior family on log-strengths, ``"normal"`` or
            ``"cauchy"``.
        prior_scale: Prior scale on log-strengths.
        btm_max_iter: Iteration cap of the frequentist Bradley-Terry fit.
        btm_eps: Pseudo-count adjustment of the frequentist fit.
        outlier_sd: Judge outlier threshold in standard deviations.
        elo_runs: Number of randomized Elo replays.
        elo_k: Elo step size.
        elo_seed: Seed of the Elo permutations.
        damping: PageRank damping factor.
        correlation: Correlation method used in reports.
        cache_dir: Directory for cached Bayesian fits.
    """

    study: str = "2"
    dimension: str = "rigour"
    mcmc_iter: int = 3000
    mcmc_chains: int = 4
    mcmc_seed: int = 42
    prior_family: str = "normal"
    prior_scale: float = 3.0
    btm_max_iter: int = 400
    btm_eps: float = 0.3
    outlier_sd: float = 2.0
    elo_runs: int = 1000
    elo_k: float = 100.0
    elo_seed: int = 42
    damping: float = 0.85
    correlation: str = "pearson"
    cache_dir: Path = Path("fittedmodels")

    def __post_init__(self):
        object.__setattr__(self, "study", str(self.study))
        object.__setattr__(self, "cache_dir", Path(self.cache_dir))
        for name, min_value in (
            ("mcmc_iter", 2),
            ("mcmc_chains", 1),
            ("mcmc_seed", 0),
            ("btm_max_iter", 1),
            ("elo_runs", 1),
            ("elo_seed", 0),
        ):
            value = validate_positive_int(name, getattr(self, name), min_value)
            object.__setattr__(self, name, value)
        validate_positive_float("outlier_sd", self.outlier_sd)
        validate_positive_float("elo_k", self.elo_k)
        make_prior(self.prior_family, self.prior_scale)
        if not 0.0 < float(self.damping) < 1.0:
            raise ValueError(f"damping must be in (0, 1), got {self.damping}")
        if float(self.btm_eps) < 0.0:
            raise ValueError(f"btm_eps must be >= 0.0, got {self.btm_eps}")
        if self.correlation not in ("pearson", "spearman", "kendall"):
            raise ValueError(
                'correlation must be one of: "pearson", "spearman", "kendall"; '
                f"got {self.correlation!r}"
            )

    @property
    def cache_tag(self) -> str:
        """Archive prefix for this (study, dimension) pair, e.g. ``study2rigour``."""
        return f"study{self.study}{self.dimension}"

    def bayesian_spec(self) -> BayesianBTSpec:
        return BayesianBTSpec(
            iter=self.mcmc_iter,
            chains=self.mcmc_chains,
            prior_family=self.prior_family,
            prior_scale=self.prior_scale,
            seed=self.mcmc_seed,
        )

    @classmethod
    def from_args(cls, namespace) -> "AnalysisConfig":
        """Build from an ``argparse.Namespace``; ``None`` values keep defaults."""
        names = {f.name for f in fields(cls)}
        overrides = {
            name: value
            for name, value in vars(namespace).items()
            if name in names and value is not None
        }
        return replace(cls(), **overrides)
